import math
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Optional

from src.data_contracts.models import Offer, PenaltyConfig

SECONDS_PER_DAY = 86400


@dataclass
class UnitCost:
    lead_penalty_minor: int
    alternative_penalty_minor: int
    effective_unit_minor: int

    @property
    def penalty_minor(self) -> int:
        return self.lead_penalty_minor + self.alternative_penalty_minor


def days_until(due_date: Optional[date], now: Optional[datetime] = None) -> Optional[int]:
    """
    Whole days (rounded up) from now until midnight UTC of the due date.
    None when there is no due date.
    """
    if due_date is None:
        return None
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    if isinstance(due_date, datetime):
        due = due_date if due_date.tzinfo else due_date.replace(tzinfo=timezone.utc)
    else:
        due = datetime.combine(due_date, time.min, tzinfo=timezone.utc)

    return math.ceil((due - now).total_seconds() / SECONDS_PER_DAY)


def effective_unit(
    offer: Offer,
    config: PenaltyConfig,
    now: Optional[datetime] = None,
) -> UnitCost:
    """
    Price plus lead-time and substitution penalties, per unit.

    Missing lead time or missing due date means no lead penalty.
    """
    lead_penalty = 0
    days_left = days_until(config.due_date, now)
    if days_left is not None and offer.lead_time_days is not None:
        delay = max(0, offer.lead_time_days - days_left)
        lead_penalty = delay * config.lead_penalty_minor_per_unit_per_day

    alt_penalty = config.alternative_penalty_minor_per_unit if offer.is_alternative else 0

    return UnitCost(
        lead_penalty_minor=lead_penalty,
        alternative_penalty_minor=alt_penalty,
        effective_unit_minor=offer.unit_price_minor + lead_penalty + alt_penalty,
    )
