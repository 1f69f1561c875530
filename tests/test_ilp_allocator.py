import random
import unittest

from src.ai_core.optimization.greedy_allocator import GreedyAllocator
from src.ai_core.optimization.ilp_allocator import IlpAllocator, IlpConfig, _round_half_up
from src.ai_core.optimization.plan import classify_route
from src.data_contracts.models import FulfillmentRoute, PenaltyConfig

from market_fixtures import NOW, bid, days_out, listing


class IlpAllocatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.allocator = IlpAllocator()

    def test_capacity_below_demand_is_infeasible(self) -> None:
        offers = [listing("L1", 100, 25), bid("B1", 90, 15)]
        plan, feasible = self.allocator.allocate(offers, 100, PenaltyConfig(), now=NOW)

        self.assertFalse(feasible)
        self.assertEqual(plan.assignments, [])
        self.assertEqual(plan.remaining, 100)
        self.assertEqual(plan.totals.grand_minor, 0)

    def test_no_offers_is_infeasible(self) -> None:
        plan, feasible = self.allocator.allocate([], 5, PenaltyConfig(), now=NOW)
        self.assertFalse(feasible)
        self.assertEqual(plan.remaining, 5)

    def test_cheapest_capacity_consumed_first(self) -> None:
        offers = [listing("L1", 100, 5), bid("B1", 90, 3)]
        plan, feasible = self.allocator.allocate(offers, 6, PenaltyConfig(), now=NOW)

        self.assertTrue(feasible)
        by_id = {a.offer_id: a.qty for a in plan.assignments}
        self.assertEqual(by_id, {"L1": 3, "B1": 3})
        self.assertEqual(plan.remaining, 0)
        self.assertEqual(plan.totals.cost_minor, 3 * 100 + 3 * 90)
        self.assertEqual(classify_route(plan), FulfillmentRoute.mixed)

    def test_penalties_drive_the_objective(self) -> None:
        # LATE: 100 + 5 days * 10 = 150 effective; SLOWER-PRICE: 120
        offers = [listing("LATE", 100, 5, lead=10), listing("ONTIME", 120, 5, lead=1)]
        cfg = PenaltyConfig(due_date=days_out(5), lead_penalty_minor_per_unit_per_day=10)
        plan, feasible = self.allocator.allocate(offers, 5, cfg, now=NOW)

        self.assertTrue(feasible)
        self.assertEqual([(a.offer_id, a.qty) for a in plan.assignments], [("ONTIME", 5)])
        self.assertEqual(plan.assignments[0].effective_unit_minor, 120)
        self.assertEqual(plan.totals.penalty_minor, 0)

    def test_reports_penalties_like_greedy(self) -> None:
        offers = [listing("BASE", 200, 5), listing("ALT", 150, 5, alt=True)]
        cfg = PenaltyConfig(alternative_penalty_minor_per_unit=20)
        plan, feasible = self.allocator.allocate(offers, 7, cfg, now=NOW)
        greedy = GreedyAllocator().allocate(offers, 7, cfg, now=NOW)

        self.assertTrue(feasible)
        self.assertEqual(
            sorted((a.offer_id, a.qty) for a in plan.assignments),
            sorted((a.offer_id, a.qty) for a in greedy.assignments),
        )
        self.assertEqual(plan.totals, greedy.totals)

    def test_integral_mode_matches_continuous_on_integer_data(self) -> None:
        offers = [listing("L1", 100, 4), bid("B1", 80, 2), bid("B2", 95, 3, lead=2)]
        cfg = PenaltyConfig(due_date=days_out(30))
        plan_lp, _ = self.allocator.allocate(offers, 7, cfg, now=NOW)
        plan_mip, feasible = IlpAllocator(IlpConfig(integral=True)).allocate(offers, 7, cfg, now=NOW)

        self.assertTrue(feasible)
        self.assertEqual(plan_lp.totals, plan_mip.totals)
        self.assertEqual(sum(a.qty for a in plan_mip.assignments), 7)

    def test_time_limit_is_accepted(self) -> None:
        allocator = IlpAllocator(IlpConfig(time_limit_seconds=30))
        plan, feasible = allocator.allocate([listing("L1", 100, 10)], 4, PenaltyConfig(), now=NOW)
        self.assertTrue(feasible)
        self.assertEqual(plan.assignments[0].qty, 4)

    def test_free_offers_are_not_over_drawn(self) -> None:
        offers = [listing("FREE1", 0, 10), listing("FREE2", 0, 10)]
        plan, feasible = self.allocator.allocate(offers, 5, PenaltyConfig(), now=NOW)

        self.assertTrue(feasible)
        self.assertEqual(plan.allocated_qty, 5)
        self.assertEqual(plan.remaining, 0)
        self.assertEqual(plan.totals.grand_minor, 0)

    def test_quantity_conservation_on_random_offer_sets(self) -> None:
        rng = random.Random(7)
        for _ in range(60):
            offers = []
            for i in range(rng.randint(1, 8)):
                make = listing if rng.random() < 0.5 else bid
                offers.append(make(
                    f"O{i}",
                    rng.randint(0, 500),
                    rng.randint(0, 20),
                    lead=rng.choice([None, 0, 3, 12]),
                    alt=rng.random() < 0.3,
                ))
            required = rng.randint(1, 60)
            cfg = PenaltyConfig(
                due_date=rng.choice([None, days_out(5)]),
                alternative_penalty_minor_per_unit=rng.randint(0, 50),
            )
            plan, feasible = self.allocator.allocate(offers, required, cfg, now=NOW)
            capacity = sum(o.available_qty for o in offers)
            available = {o.id: o.available_qty for o in offers}

            self.assertEqual(plan.allocated_qty + plan.remaining, required)
            self.assertEqual(feasible, capacity >= required)
            for a in plan.assignments:
                self.assertGreater(a.qty, 0)
                self.assertLessEqual(a.qty, available[a.offer_id])

    def test_rounding_is_half_up(self) -> None:
        self.assertEqual(_round_half_up(2.5), 3)
        self.assertEqual(_round_half_up(2.4999), 2)
        self.assertEqual(_round_half_up(5.9999999), 6)
        self.assertEqual(_round_half_up(1e-9), 0)


if __name__ == "__main__":
    unittest.main()
