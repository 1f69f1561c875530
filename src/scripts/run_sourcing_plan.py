from datetime import date, timedelta

from src.ai_core.optimization.policy import expedite_policy, standard_policy
from src.ai_core.sourcing.sourcing_engine import SourcingEngine
from src.repositories.factory import get_market_repository

engine = SourcingEngine(get_market_repository())

due = date.today() + timedelta(days=10)

for name, options in (("STANDARD", standard_policy()), ("EXPEDITE", expedite_policy())):
    result = engine.optimize_line(
        brand="Omron",
        code="G5V-1-DC5",
        required_qty=900,
        due_date=due,
        options=options,
    )

    print(f"\n=== {name} ({options.solver}) ===")
    print("offers:", result.offers_count, "| route:", result.route.value,
          "| alternatives:", result.alternatives_mode)
    for a in result.plan.assignments:
        print(f"  {a.source.value:<7} {a.offer_id:<8} {a.brand} {a.code}: "
              f"{a.qty} @ {a.unit_price_minor} (eff {a.effective_unit_minor})")
    print("remaining:", result.plan.remaining, "| totals:", result.plan.totals.model_dump())
