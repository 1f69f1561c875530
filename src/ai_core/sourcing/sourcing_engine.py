import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from src.ai_core.errors import MalformedInput
from src.ai_core.optimization.greedy_allocator import GreedyAllocator
from src.ai_core.optimization.ilp_allocator import IlpAllocator
from src.ai_core.optimization.plan import alternative_qty, classify_route
from src.ai_core.sourcing.alternatives import AlternativePartFinder
from src.ai_core.sourcing.family_registry import FamilyRegistry
from src.ai_core.sourcing.offer_sources import OfferSources
from src.data_contracts.models import (
    BatchResult,
    BatchSummary,
    FulfillmentRoute,
    LineResult,
    Offer,
    RequirementLine,
    SourcingOptions,
)

logger = logging.getLogger(__name__)


def validate_line(brand: Optional[str], code: Optional[str], required_qty) -> None:
    if not str(brand or "").strip() or not str(code or "").strip():
        raise MalformedInput("brand and code are required")
    if isinstance(required_qty, bool):
        raise MalformedInput(f"required_qty must be an integer, got {required_qty!r}")
    try:
        qty = int(required_qty)
    except (TypeError, ValueError):
        raise MalformedInput(f"required_qty must be an integer, got {required_qty!r}") from None
    if qty != required_qty or qty <= 0:
        raise MalformedInput(f"required_qty must be a positive integer, got {required_qty!r}")


class SourcingEngine:
    """
    Sources a requirement line from listings, bids and substitute parts,
    then allocates demand with the greedy or ILP allocator.

    Pure planning: nothing is reserved or written back.
    """

    def __init__(
        self,
        repo,
        registry: Optional[FamilyRegistry] = None,
        greedy: Optional[GreedyAllocator] = None,
        ilp: Optional[IlpAllocator] = None,
    ):
        self.sources = OfferSources(repo)
        self.registry = registry or FamilyRegistry(repo.get_component_registry)
        self.finder = AlternativePartFinder(repo, self.registry)
        self.greedy = greedy or GreedyAllocator()
        self.ilp = ilp or IlpAllocator()

    def gather_offers(self, brand: str, code: str, options: SourcingOptions):
        """Returns (offers, alternatives_mode)."""
        offers: List[Offer] = []
        mode = None

        # Direct SKU offers
        offers.extend(self.sources.gather_listings(brand, code))
        if options.use_bids:
            offers.extend(self.sources.gather_bids_for_sku(brand, code))

        if options.allow_alternatives:
            base = self.finder.find_exact_row(brand, code)
            if base is not None:
                alts = self.finder.get_alternatives_for(
                    base.table, base.row, options.k_alternatives
                )
                mode = alts.mode
                for row in alts.items:
                    alt_brand = row.get("brand") or row.get("brand_norm")
                    alt_code = row.get("code") or row.get("code_norm")
                    if not alt_brand or not alt_code:
                        continue
                    offers.extend(
                        o.model_copy(update={"is_alternative": True})
                        for o in self.sources.gather_listings(alt_brand, alt_code)
                    )
                    if options.use_bids:
                        offers.extend(self.sources.gather_alt_bids_for(alt_brand, alt_code))

        return offers, mode

    def optimize_line(
        self,
        brand: str,
        code: str,
        required_qty: int,
        due_date: Optional[date] = None,
        options: Optional[SourcingOptions] = None,
        now: Optional[datetime] = None,
    ) -> LineResult:
        validate_line(brand, code, required_qty)
        options = options or SourcingOptions()
        line = RequirementLine(
            brand=brand, code=code, required_qty=required_qty, due_date=due_date
        )

        offers, mode = self.gather_offers(brand, code, options)
        penalty_cfg = options.penalty_config(due_date)
        logger.debug("%s/%s: %d offers gathered", brand, code, len(offers))

        feasible = None
        if options.solver == "ilp":
            plan, feasible = self.ilp.allocate(offers, required_qty, penalty_cfg, now)
            route = classify_route(plan) if feasible else FulfillmentRoute.auction
        else:
            plan = self.greedy.allocate(offers, required_qty, penalty_cfg, now)
            route = classify_route(plan)

        logger.info(
            "planned %s/%s qty=%d solver=%s route=%s allocated=%d alt=%d remaining=%d grand=%d",
            brand, code, required_qty, options.solver, route.value,
            plan.allocated_qty, alternative_qty(plan), plan.remaining, plan.totals.grand_minor,
        )

        return LineResult(
            input=line,
            options=options,
            offers_count=len(offers),
            route=route,
            plan=plan,
            solver=options.solver,
            alternatives_mode=mode,
            feasible=feasible,
        )

    def optimize(
        self,
        items: Iterable[Union[RequirementLine, Dict[str, Any]]],
        options: Optional[SourcingOptions] = None,
        now: Optional[datetime] = None,
    ) -> BatchResult:
        """
        Plans every line in order. All lines are validated before any data is
        fetched; a data-access failure aborts the whole batch.
        """
        options = options or SourcingOptions()
        lines = [_as_line(it) for it in items]
        for line in lines:
            validate_line(line.brand, line.code, line.required_qty)

        summary = BatchSummary(total_lines=len(lines))
        results = []

        for line in lines:
            summary.total_required_qty += line.required_qty
            r = self.optimize_line(
                line.brand, line.code, line.required_qty, line.due_date, options, now
            )
            results.append(r)
            summary.total_grand_minor += r.plan.totals.grand_minor
            if r.needs_rfq:
                summary.lines_need_pr += 1
            else:
                summary.lines_fully_satisfied += 1

        return BatchResult(summary=summary, items=results)


def _as_line(item) -> RequirementLine:
    if isinstance(item, RequirementLine):
        return item
    if not isinstance(item, dict):
        raise MalformedInput(f"unsupported requirement line: {item!r}")
    validate_line(item.get("brand"), item.get("code"), item.get("required_qty"))
    return RequirementLine(**item)
