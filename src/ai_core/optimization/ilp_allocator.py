import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import pulp

from src.ai_core.optimization.cost_model import effective_unit
from src.ai_core.optimization.plan import empty_plan, make_assignment, totals_for
from src.data_contracts.models import AllocationPlan, Offer, PenaltyConfig

logger = logging.getLogger(__name__)


@dataclass
class IlpConfig:
    # Continuous solve + half-up rounding by default; True declares x_i integer.
    integral: bool = False
    # Passed to CBC as timeLimit when set
    time_limit_seconds: Optional[float] = None


class IlpAllocator:
    """
    LP/MILP allocator:
    - decision vars: x_i (quantity taken from offer i)
    - objective: sum(effective_unit_i * x_i), penalties folded into coefficients
    - constraints: demand sum(x) == required, capacity 0 <= x_i <= available_i
    """

    name = "ilp"

    def __init__(self, config: Optional[IlpConfig] = None):
        self.config = config or IlpConfig()

    def allocate(
        self,
        offers: List[Offer],
        required_qty: int,
        config: PenaltyConfig,
        now: Optional[datetime] = None,
    ) -> Tuple[AllocationPlan, bool]:
        """Returns (plan, feasible). Infeasibility is a normal outcome."""
        required_qty = int(required_qty)

        if not offers:
            return empty_plan(required_qty), False

        costs = [effective_unit(o, config, now) for o in offers]
        cat = "Integer" if self.config.integral else "Continuous"

        model = pulp.LpProblem("OfferAllocation", pulp.LpMinimize)

        # Decision variables
        x: Dict[int, pulp.LpVariable] = {}
        for idx, offer in enumerate(offers):
            x[idx] = pulp.LpVariable(
                f"x_{idx}", lowBound=0, cat=cat
            )

        # ------------------------
        # Constraints
        # ------------------------

        # exact demand: zero-cost offers must not be over-drawn
        model += pulp.lpSum(x.values()) == required_qty, "Demand"

        for idx, offer in enumerate(offers):
            model += x[idx] <= offer.available_qty, f"Cap_{idx}"

        # ------------------------
        # Objective
        # ------------------------

        model += pulp.lpSum(
            costs[idx].effective_unit_minor * x[idx] for idx in x
        ), "TotalEffectiveCost"

        solver_kwargs = {"msg": False}
        if self.config.time_limit_seconds is not None:
            solver_kwargs["timeLimit"] = self.config.time_limit_seconds
        status = model.solve(pulp.PULP_CBC_CMD(**solver_kwargs))
        status_name = pulp.LpStatus[status]

        logger.debug(
            "ilp solve: %d offers, required=%d, status=%s",
            len(offers), required_qty, status_name,
        )

        if status_name != "Optimal":
            return empty_plan(required_qty), False

        assignments = []
        needed = required_qty
        for idx, offer in enumerate(offers):
            # rounding never pushes the plan past the requirement
            qty = min(_round_half_up(pulp.value(x[idx]) or 0.0), needed)
            if qty <= 0:
                continue
            assignments.append(make_assignment(offer, qty, costs[idx]))
            needed -= qty

        plan = AllocationPlan(assignments=assignments, remaining=needed, totals=totals_for(assignments))

        objective = float(pulp.value(model.objective) or 0.0)
        logger.debug("ilp objective=%.2f allocated=%d", objective, plan.allocated_qty)
        return plan, True


def _round_half_up(value: float) -> int:
    return int(math.floor(float(value) + 0.5))
