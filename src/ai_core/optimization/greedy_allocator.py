from datetime import datetime
from typing import List, Optional

from src.ai_core.optimization.cost_model import effective_unit
from src.ai_core.optimization.plan import make_assignment, totals_for
from src.data_contracts.models import AllocationPlan, Offer, PenaltyConfig


class GreedyAllocator:
    """
    Cheapest-first allocation by effective unit cost.

    Cost-minimal when the only coupling between offers is the single demand
    constraint; not optimal once cross-offer rules (e.g. MOQ) apply.
    """

    name = "greedy"

    def allocate(
        self,
        offers: List[Offer],
        required_qty: int,
        config: PenaltyConfig,
        now: Optional[datetime] = None,
    ) -> AllocationPlan:

        ranked = [(o, effective_unit(o, config, now)) for o in offers]
        # sorted() is stable: ties keep the adapters' price/lead/recency order
        ranked = sorted(ranked, key=lambda pair: pair[1].effective_unit_minor)

        remaining = int(required_qty)
        assignments = []

        for offer, cost in ranked:
            if remaining <= 0:
                break

            take = min(remaining, offer.available_qty)
            if take <= 0:
                continue

            assignments.append(make_assignment(offer, take, cost))
            remaining -= take

        return AllocationPlan(
            assignments=assignments,
            remaining=remaining,
            totals=totals_for(assignments),
        )
