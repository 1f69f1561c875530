import unittest

import pandas as pd

from src.ai_core.sourcing.family_registry import FamilyRegistry
from src.repositories.base import SpecsTable, normalize_key


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class CountingLoader:
    def __init__(self, rows) -> None:
        self.rows = rows
        self.calls = 0

    def __call__(self) -> pd.DataFrame:
        self.calls += 1
        return pd.DataFrame(self.rows, columns=["family_slug", "specs_table"])


class FamilyRegistryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.loader = CountingLoader([
            {"family_slug": "capacitor", "specs_table": "public.capacitor_specs"},
            {"family_slug": "Relay", "specs_table": "relay_specs"},
        ])
        self.registry = FamilyRegistry(self.loader, ttl_seconds=60, clock=self.clock)

    def test_entries_are_normalized(self) -> None:
        self.assertEqual(self.registry.tables(), [
            SpecsTable("capacitor_specs", "capacitor"),
            SpecsTable("relay_specs", "relay"),
        ])

    def test_cached_within_ttl(self) -> None:
        self.registry.tables()
        self.clock.now = 59.0
        self.registry.tables()
        self.assertEqual(self.loader.calls, 1)

    def test_reloaded_after_ttl(self) -> None:
        self.registry.tables()
        self.loader.rows = [{"family_slug": "diode", "specs_table": "diode_specs"}]
        self.clock.now = 60.0
        self.assertEqual(self.registry.tables(), [SpecsTable("diode_specs", "diode")])
        self.assertEqual(self.loader.calls, 2)

    def test_invalidate_forces_reload(self) -> None:
        self.registry.tables()
        self.registry.invalidate()
        self.registry.tables()
        self.assertEqual(self.loader.calls, 2)

    def test_unsafe_or_incomplete_entries_are_rejected(self) -> None:
        self.loader.rows = [
            {"family_slug": "relay", "specs_table": "relay_specs; DROP TABLE bids"},
            {"family_slug": "fuse", "specs_table": "fuse-specs"},
            {"family_slug": "", "specs_table": "orphan_specs"},
            {"family_slug": "diode", "specs_table": None},
            {"family_slug": "switch", "specs_table": "switch_specs"},
        ]
        with self.assertLogs("src.ai_core.sourcing.family_registry", level="WARNING") as logs:
            tables = self.registry.tables()
        self.assertEqual(tables, [SpecsTable("switch_specs", "switch")])
        self.assertEqual(len(logs.records), 4)

    def test_missing_cells_are_rejected(self) -> None:
        nan = float("nan")
        self.loader.rows = [
            {"family_slug": "diode", "specs_table": nan},
            {"family_slug": nan, "specs_table": "fuse_specs"},
            {"family_slug": "switch", "specs_table": "switch_specs"},
        ]
        with self.assertLogs("src.ai_core.sourcing.family_registry", level="WARNING") as logs:
            tables = self.registry.tables()
        self.assertEqual(tables, [SpecsTable("switch_specs", "switch")])
        self.assertEqual(len(logs.records), 2)

    def test_nan_is_not_an_identifier(self) -> None:
        self.assertIsNone(SpecsTable.parse(float("nan"), "relay"))
        self.assertIsNone(SpecsTable.parse("relay_specs", float("nan")))
        self.assertEqual(normalize_key(float("nan")), "")
        self.assertEqual(normalize_key(" Omron "), "omron")

    def test_first_entry_per_family_wins(self) -> None:
        self.loader.rows = [
            {"family_slug": "relay", "specs_table": "relay_specs"},
            {"family_slug": "relay", "specs_table": "relay_specs_v2"},
        ]
        self.assertEqual(self.registry.tables(), [SpecsTable("relay_specs", "relay")])

    def test_returned_list_is_a_copy(self) -> None:
        self.registry.tables().clear()
        self.assertEqual(len(self.registry.tables()), 2)


if __name__ == "__main__":
    unittest.main()
