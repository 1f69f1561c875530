# apps/backend/schemas/requests.py

from pydantic import ConfigDict
from typing import List

from src.data_contracts.models import RequirementLine, SourcingOptions


class PlanRequest(SourcingOptions):
    # Requirement lines; sourcing options sit next to them at the top level
    items: List[RequirementLine]

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "items": [
                    {"brand": "Omron", "code": "G5V-1-DC5", "required_qty": 500, "due_date": "2026-11-30"},
                    {"brand": "TE", "code": "RT314024", "required_qty": 120},
                ],
                "allow_alternatives": True,
                "k_alternatives": 6,
                "use_bids": True,
                "lead_penalty_minor_per_unit_per_day": 10,
                "alternative_penalty_minor_per_unit": 0,
                "solver": "greedy",
            }
        }
    )

    def sourcing_options(self) -> SourcingOptions:
        return SourcingOptions(**self.model_dump(exclude={"items"}))
