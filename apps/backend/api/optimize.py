# apps/backend/api/optimize.py

from datetime import date
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from apps.backend.schemas.requests import PlanRequest
from src.ai_core.errors import DataAccessError, MalformedInput
from src.ai_core.sourcing.family_registry import FamilyRegistry
from src.ai_core.sourcing.sourcing_engine import SourcingEngine
from src.data_contracts.models import SolverName, SourcingOptions
from src.repositories.factory import REGISTRY_TTL_SECONDS, get_market_repository

router = APIRouter(tags=["Optimize"])


def _drop_unset_feasible(line: dict) -> dict:
    # feasible is only part of the ILP contract
    if line.get("feasible") is None:
        line.pop("feasible", None)
    return line


@lru_cache(maxsize=1)
def get_sourcing_engine() -> SourcingEngine:
    repo = get_market_repository()
    registry = FamilyRegistry(repo.get_component_registry, ttl_seconds=REGISTRY_TTL_SECONDS)
    return SourcingEngine(repo, registry=registry)


@router.post("/plan")
def optimize_plan(
    request: PlanRequest,
    engine: SourcingEngine = Depends(get_sourcing_engine),
):
    """
    Batch sourcing plan. Lines that cannot be fully sourced are counted in
    summary.lines_need_pr (RFQ candidates), not reported as errors.
    """
    if not request.items:
        raise HTTPException(status_code=400, detail="items[] required")

    try:
        result = engine.optimize(request.items, request.sourcing_options())
    except MalformedInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DataAccessError as e:
        raise HTTPException(status_code=503, detail=f"Sourcing data unavailable: {str(e)}")

    out = result.model_dump(mode="json")
    for item in out["items"]:
        _drop_unset_feasible(item)
    return out


@router.get("/line")
def optimize_line(
    brand: str = "",
    code: str = "",
    qty: int = 0,
    due_date: Optional[date] = None,
    allow_alternatives: bool = True,
    k_alternatives: int = 6,
    use_bids: bool = True,
    lead_penalty: int = Query(10, ge=0),
    alt_penalty: int = Query(0, ge=0),
    solver: SolverName = "greedy",
    engine: SourcingEngine = Depends(get_sourcing_engine),
):
    if not brand or not code or not qty:
        raise HTTPException(status_code=400, detail="brand, code, qty required")

    options = SourcingOptions(
        allow_alternatives=allow_alternatives,
        k_alternatives=k_alternatives,
        use_bids=use_bids,
        lead_penalty_minor_per_unit_per_day=lead_penalty,
        alternative_penalty_minor_per_unit=alt_penalty,
        solver=solver,
    )

    try:
        result = engine.optimize_line(brand, code, qty, due_date, options)
    except MalformedInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DataAccessError as e:
        raise HTTPException(status_code=503, detail=f"Sourcing data unavailable: {str(e)}")

    return _drop_unset_feasible(result.model_dump(mode="json"))
