import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pandas as pd

Row = Dict[str, Any]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class SpecsTable:
    """
    A per-family specs table admitted by the component registry.
    Repositories only accept table names that arrive as this type.
    """
    name: str
    family_slug: str

    @classmethod
    def parse(cls, specs_table: str, family_slug: str) -> Optional["SpecsTable"]:
        name = _cell_text(specs_table)
        if name.lower().startswith("public."):
            name = name[len("public."):]
        fam = _cell_text(family_slug).lower()
        if not fam or not _IDENTIFIER.match(name):
            return None
        return cls(name=name, family_slug=fam)

    @property
    def quoted(self) -> str:
        return f'"{self.name}"'


def _cell_text(value) -> str:
    # registry cells arrive as None or NaN when missing
    if isinstance(value, str):
        return value.strip()
    if value is None or pd.isna(value):
        return ""
    return str(value).strip()


def normalize_key(value: Optional[str]) -> str:
    return _cell_text(value).lower()


class MarketRepository(ABC):
    """Seller listings and buyer-auction bids."""

    @abstractmethod
    def get_listings(self, brand: str, code: str) -> pd.DataFrame:
        pass

    @abstractmethod
    def get_bids_for_sku(self, brand: str, code: str) -> pd.DataFrame:
        pass

    @abstractmethod
    def get_alt_bids(self, brand: str, code: str) -> pd.DataFrame:
        pass


class PartCatalogRepository(ABC):
    """Component registry and per-family specs tables."""

    @abstractmethod
    def get_component_registry(self) -> pd.DataFrame:
        pass

    @abstractmethod
    def find_exact(self, table: SpecsTable, brand: str, code: str) -> Optional[Row]:
        pass

    @abstractmethod
    def nearest_by_embedding(
        self, table: SpecsTable, base_row: Row, k: int
    ) -> List[Row]:
        pass

    @abstractmethod
    def nearest_by_attribute(
        self, table: SpecsTable, base_row: Row, k: int, attribute: str
    ) -> List[Row]:
        pass
