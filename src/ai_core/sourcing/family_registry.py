import logging
import time
from typing import Callable, List, Optional

import pandas as pd

from src.repositories.base import SpecsTable

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0


class FamilyRegistry:
    """
    Read-through cache over the family -> specs-table registry.

    The loader returns a DataFrame with family_slug / specs_table columns
    (ordered by family_slug). Entries whose table name is not a plain SQL
    identifier never make it into the cache.
    """

    def __init__(
        self,
        loader: Callable[[], pd.DataFrame],
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.loader = loader
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._tables: Optional[List[SpecsTable]] = None
        self._expires_at = 0.0

    def tables(self) -> List[SpecsTable]:
        now = self.clock()
        if self._tables is None or now >= self._expires_at:
            self._tables = self._load()
            self._expires_at = now + self.ttl_seconds
        return list(self._tables)

    def invalidate(self) -> None:
        self._tables = None
        self._expires_at = 0.0

    def _load(self) -> List[SpecsTable]:
        df = self.loader()
        admitted = []
        seen = set()
        for row in df.to_dict(orient="records"):
            table = SpecsTable.parse(row.get("specs_table"), row.get("family_slug"))
            if table is None:
                logger.warning(
                    "rejected registry entry family=%r specs_table=%r",
                    row.get("family_slug"), row.get("specs_table"),
                )
                continue
            if table.family_slug in seen:
                continue
            seen.add(table.family_slug)
            admitted.append(table)
        logger.debug("family registry loaded: %d tables", len(admitted))
        return admitted
