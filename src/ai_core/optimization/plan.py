from typing import Iterable

from src.ai_core.optimization.cost_model import UnitCost
from src.data_contracts.models import (
    AllocationAssignment,
    AllocationPlan,
    FulfillmentRoute,
    Offer,
    OfferSource,
    PlanTotals,
    UnitPenalties,
)


def make_assignment(offer: Offer, qty: int, cost: UnitCost) -> AllocationAssignment:
    return AllocationAssignment(
        source=offer.source,
        offer_id=offer.id,
        brand=offer.brand,
        code=offer.code,
        qty=qty,
        unit_price_minor=offer.unit_price_minor,
        effective_unit_minor=cost.effective_unit_minor,
        lead_time_days=offer.lead_time_days,
        is_alternative=offer.is_alternative,
        currency=offer.currency or "USD",
        penalties_per_unit=UnitPenalties(
            lead_minor=cost.lead_penalty_minor,
            alternative_minor=cost.alternative_penalty_minor,
        ),
        metadata=dict(offer.metadata),
    )


def totals_for(assignments: Iterable[AllocationAssignment]) -> PlanTotals:
    cost = 0
    penalty = 0
    for a in assignments:
        cost += a.qty * a.unit_price_minor
        penalty += a.qty * (a.penalties_per_unit.lead_minor + a.penalties_per_unit.alternative_minor)
    return PlanTotals(cost_minor=cost, penalty_minor=penalty, grand_minor=cost + penalty)


def classify_route(plan: AllocationPlan) -> FulfillmentRoute:
    used_listings = any(a.source == OfferSource.listing for a in plan.assignments)
    used_bids = any(a.source == OfferSource.bid for a in plan.assignments)

    if plan.remaining > 0:
        return FulfillmentRoute.mixed if used_listings else FulfillmentRoute.auction
    if used_bids and used_listings:
        return FulfillmentRoute.mixed
    if used_bids:
        return FulfillmentRoute.auction
    return FulfillmentRoute.stock


def empty_plan(required_qty: int) -> AllocationPlan:
    return AllocationPlan(assignments=[], remaining=required_qty, totals=PlanTotals())


def alternative_qty(plan: AllocationPlan) -> int:
    return sum(a.qty for a in plan.assignments if a.is_alternative)

