from src.data_contracts.models import SourcingOptions


def standard_policy() -> SourcingOptions:
    return SourcingOptions(
        allow_alternatives=True,
        k_alternatives=6,
        use_bids=True,
        lead_penalty_minor_per_unit_per_day=10,
        alternative_penalty_minor_per_unit=0,
        solver="greedy"
    )


def expedite_policy() -> SourcingOptions:
    return SourcingOptions(
        allow_alternatives=True,
        k_alternatives=10,                       # wider substitute search
        use_bids=True,
        lead_penalty_minor_per_unit_per_day=50,  # late units cost much more
        alternative_penalty_minor_per_unit=0,
        solver="ilp"
    )
