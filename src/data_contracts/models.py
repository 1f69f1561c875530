from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Literal, Optional
from datetime import date
from enum import Enum


# =========================
# ENUMS (shared, canonical)
# =========================

class OfferSource(str, Enum):
    listing = "listing"
    bid = "bid"


class FulfillmentRoute(str, Enum):
    stock = "stock"
    auction = "auction"
    mixed = "mixed"


class AlternativesMode(str, Enum):
    embedding = "embedding"
    rule_fallback = "rule-fallback"


SolverName = Literal["greedy", "ilp"]


# =========================
# OFFERS & DEMAND
# =========================

class Offer(BaseModel):
    source: OfferSource
    id: str
    brand: str
    code: str
    is_alternative: bool = False
    unit_price_minor: int = Field(ge=0)
    currency: str = "USD"
    available_qty: int = Field(ge=0)
    lead_time_days: Optional[int] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class RequirementLine(BaseModel):
    brand: str
    code: str
    required_qty: int
    due_date: Optional[date] = None


class PenaltyConfig(BaseModel):
    due_date: Optional[date] = None
    lead_penalty_minor_per_unit_per_day: int = Field(default=10, ge=0)
    alternative_penalty_minor_per_unit: int = Field(default=0, ge=0)


# =========================
# PLAN
# =========================

class UnitPenalties(BaseModel):
    lead_minor: int = 0
    alternative_minor: int = 0


class AllocationAssignment(BaseModel):
    source: OfferSource
    offer_id: str
    brand: str
    code: str
    qty: int = Field(gt=0)
    unit_price_minor: int
    effective_unit_minor: int
    lead_time_days: Optional[int]
    is_alternative: bool
    currency: str
    penalties_per_unit: UnitPenalties
    metadata: Dict[str, Any] = Field(default_factory=dict)


class PlanTotals(BaseModel):
    cost_minor: int = 0
    penalty_minor: int = 0
    grand_minor: int = 0


class AllocationPlan(BaseModel):
    assignments: List[AllocationAssignment] = Field(default_factory=list)
    remaining: int = Field(ge=0)
    totals: PlanTotals = Field(default_factory=PlanTotals)

    @property
    def allocated_qty(self) -> int:
        return sum(a.qty for a in self.assignments)


# =========================
# OPTIONS & RESULTS
# =========================

K_ALTERNATIVES_MIN = 1
K_ALTERNATIVES_MAX = 20


class SourcingOptions(BaseModel):
    allow_alternatives: bool = True
    k_alternatives: int = 6
    use_bids: bool = True
    lead_penalty_minor_per_unit_per_day: int = Field(default=10, ge=0)
    alternative_penalty_minor_per_unit: int = Field(default=0, ge=0)
    solver: SolverName = "greedy"

    @field_validator("k_alternatives")
    @classmethod
    def clamp_k(cls, v: int) -> int:
        return min(max(int(v), K_ALTERNATIVES_MIN), K_ALTERNATIVES_MAX)

    def penalty_config(self, due_date: Optional[date]) -> PenaltyConfig:
        return PenaltyConfig(
            due_date=due_date,
            lead_penalty_minor_per_unit_per_day=self.lead_penalty_minor_per_unit_per_day,
            alternative_penalty_minor_per_unit=self.alternative_penalty_minor_per_unit,
        )


class LineResult(BaseModel):
    input: RequirementLine
    options: SourcingOptions
    offers_count: int
    route: FulfillmentRoute
    plan: AllocationPlan
    solver: SolverName = "greedy"
    alternatives_mode: Optional[AlternativesMode] = None
    # only reported by the ILP solver
    feasible: Optional[bool] = None

    @property
    def needs_rfq(self) -> bool:
        return self.plan.remaining > 0 or self.feasible is False


class BatchSummary(BaseModel):
    total_lines: int = 0
    total_required_qty: int = 0
    total_grand_minor: int = 0
    lines_fully_satisfied: int = 0
    lines_need_pr: int = 0


class BatchResult(BaseModel):
    summary: BatchSummary
    items: List[LineResult]
