# src/ai_core/sourcing/alternatives.py

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from src.ai_core.errors import DataAccessError
from src.ai_core.sourcing.family_registry import FamilyRegistry
from src.data_contracts.models import AlternativesMode
from src.repositories.base import PartCatalogRepository, Row, SpecsTable

logger = logging.getLogger(__name__)

DEFAULT_K = 6
SIMILARITY_ATTRIBUTE = "coil_voltage_vdc"


@dataclass
class ExactMatch:
    table: SpecsTable
    family_slug: str
    row: Row


@dataclass
class AlternativeResult:
    mode: AlternativesMode
    items: List[Row] = field(default_factory=list)


def has_embedding(row: Row) -> bool:
    emb = row.get("embedding")
    if emb is None:
        return False
    try:
        return len(emb) > 0
    except TypeError:
        return False


class EmbeddingAlternatives:
    """Nearest neighbours by cosine distance over the precomputed embedding."""

    mode = AlternativesMode.embedding

    def __init__(self, repo: PartCatalogRepository):
        self.repo = repo

    def find_alternatives(self, table: SpecsTable, base_row: Row, k: int) -> AlternativeResult:
        return AlternativeResult(self.mode, self.repo.nearest_by_embedding(table, base_row, k))


class RuleBasedAlternatives:
    """
    score = (0 if same family else 1) + |attribute delta| / 100, ascending.
    A missing attribute on either side scores zero distance.
    """

    mode = AlternativesMode.rule_fallback

    def __init__(self, repo: PartCatalogRepository, attribute: str = SIMILARITY_ATTRIBUTE):
        self.repo = repo
        self.attribute = attribute

    def find_alternatives(self, table: SpecsTable, base_row: Row, k: int) -> AlternativeResult:
        items = self.repo.nearest_by_attribute(table, base_row, k, self.attribute)
        return AlternativeResult(self.mode, items)


class AlternativePartFinder:
    """
    Locates the base part across family specs tables and proposes substitutes.
    The embedding strategy is used when the base row carries an embedding;
    any failure there degrades to the rule-based scorer.
    """

    def __init__(
        self,
        repo: PartCatalogRepository,
        registry: FamilyRegistry,
        attribute: str = SIMILARITY_ATTRIBUTE,
    ):
        self.repo = repo
        self.registry = registry
        self.embedding = EmbeddingAlternatives(repo)
        self.fallback = RuleBasedAlternatives(repo, attribute)

    def find_exact_row(self, brand: str, code: str) -> Optional[ExactMatch]:
        for table in self.registry.tables():
            row = self.repo.find_exact(table, brand, code)
            if row is not None:
                return ExactMatch(
                    table=table,
                    family_slug=row.get("family_slug") or table.family_slug,
                    row=row,
                )
        return None

    def get_alternatives_for(
        self, table: SpecsTable, base_row: Row, k: int = DEFAULT_K
    ) -> AlternativeResult:
        if has_embedding(base_row):
            try:
                return self.embedding.find_alternatives(table, base_row, k)
            except DataAccessError as exc:
                logger.warning(
                    "embedding search on %s failed, using rule fallback: %s",
                    table.name, exc,
                )
        return self.fallback.find_alternatives(table, base_row, k)
