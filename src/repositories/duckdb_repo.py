import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

import duckdb
import pandas as pd

from src.ai_core.errors import DataAccessError
from src.data_contracts.validate import validate_df
from src.repositories.base import (
    MarketRepository,
    PartCatalogRepository,
    Row,
    SpecsTable,
    _IDENTIFIER,
    normalize_key,
)

logger = logging.getLogger(__name__)

# Fixed market tables; specs tables are only reachable through SpecsTable.
MARKET_DDL = {
    "listings": """
        CREATE TABLE IF NOT EXISTS listings (
            id VARCHAR PRIMARY KEY,
            brand VARCHAR,
            code VARCHAR,
            brand_norm VARCHAR,
            code_norm VARCHAR,
            price_minor BIGINT NOT NULL DEFAULT 0,
            currency VARCHAR DEFAULT 'USD',
            quantity_available INTEGER NOT NULL DEFAULT 0,
            lead_time_days INTEGER,
            seller_ref VARCHAR,
            status VARCHAR DEFAULT 'approved',
            created_at TIMESTAMP DEFAULT current_timestamp
        )
    """,
    "purchase_requests": """
        CREATE TABLE IF NOT EXISTS purchase_requests (
            id VARCHAR PRIMARY KEY,
            brand VARCHAR,
            code VARCHAR,
            brand_norm VARCHAR,
            code_norm VARCHAR,
            qty_required INTEGER,
            need_by_date DATE,
            status VARCHAR DEFAULT 'open',
            created_at TIMESTAMP DEFAULT current_timestamp
        )
    """,
    "bids": """
        CREATE TABLE IF NOT EXISTS bids (
            id VARCHAR PRIMARY KEY,
            purchase_request_id VARCHAR,
            seller_id VARCHAR,
            offer_brand VARCHAR,
            offer_code VARCHAR,
            offer_is_substitute BOOLEAN DEFAULT false,
            offer_qty INTEGER DEFAULT 0,
            price_minor BIGINT NOT NULL DEFAULT 0,
            currency VARCHAR DEFAULT 'USD',
            lead_time_days INTEGER,
            status VARCHAR DEFAULT 'offered',
            created_at TIMESTAMP DEFAULT current_timestamp
        )
    """,
    "component_registry": """
        CREATE TABLE IF NOT EXISTS component_registry (
            family_slug VARCHAR PRIMARY KEY,
            specs_table VARCHAR NOT NULL
        )
    """,
}

# tables whose brand/code get normalized keys on load
_NORMALIZED_TABLES = {"listings", "purchase_requests"}

_OFFER_ORDER = "price_minor ASC, lead_time_days ASC NULLS LAST, created_at DESC"


def _records(df: pd.DataFrame) -> List[Row]:
    """DataFrame -> list of plain dicts with NaN/NaT mapped to None."""
    if df.empty:
        return []
    return df.astype(object).where(df.notna(), None).to_dict(orient="records")


class DuckDBMarketRepository(MarketRepository, PartCatalogRepository):
    """
    Marketplace and part catalog backed by DuckDB.
    All values are bound parameters; identifiers come from allow-lists only.
    """

    def __init__(self, database: str = ":memory:", con=None):
        self.con = con if con is not None else duckdb.connect(database)

    # ------------------------
    # Schema & loading
    # ------------------------

    def create_schema(self) -> None:
        for ddl in MARKET_DDL.values():
            self._execute(ddl)

    def create_specs_table(
        self,
        table: SpecsTable,
        numeric_columns: Sequence[str] = ("coil_voltage_vdc",),
        with_embedding: bool = True,
    ) -> None:
        cols = [
            "id VARCHAR",
            "brand VARCHAR",
            "code VARCHAR",
            "brand_norm VARCHAR",
            "code_norm VARCHAR",
            "family_slug VARCHAR",
        ]
        for name in numeric_columns:
            if not _IDENTIFIER.match(name):
                raise ValueError(f"Invalid column name: {name!r}")
            cols.append(f'"{name}" DOUBLE')
        if with_embedding:
            cols.append("embedding DOUBLE[]")
        self._execute(f"CREATE TABLE IF NOT EXISTS {table.quoted} ({', '.join(cols)})")

    def register_family(self, table: SpecsTable) -> None:
        self._execute(
            "INSERT INTO component_registry (family_slug, specs_table) VALUES (?, ?) "
            "ON CONFLICT (family_slug) DO NOTHING",
            [table.family_slug, table.name],
        )

    def load_records(self, table, records: Iterable[Dict[str, Any]]) -> int:
        """
        Insert rows into a market table (by name) or a specs table (SpecsTable).
        Missing brand_norm/code_norm keys are derived from brand/code.
        """
        if isinstance(table, SpecsTable):
            target, normalize = table.quoted, True
        elif table in MARKET_DDL:
            target, normalize = table, table in _NORMALIZED_TABLES
        else:
            raise ValueError(f"Unknown table: {table!r}")

        count = 0
        for rec in records:
            rec = dict(rec)
            if normalize:
                rec.setdefault("brand_norm", normalize_key(rec.get("brand")))
                rec.setdefault("code_norm", normalize_key(rec.get("code")))
            cols = list(rec.keys())
            for c in cols:
                if not _IDENTIFIER.match(c):
                    raise ValueError(f"Invalid column name: {c!r}")
            sql = (
                f"INSERT INTO {target} ({', '.join(cols)}) "
                f"VALUES ({', '.join('?' for _ in cols)})"
            )
            self._execute(sql, [rec[c] for c in cols])
            count += 1
        logger.debug("loaded %d rows into %s", count, target)
        return count

    def load_frame(self, table, df: pd.DataFrame) -> int:
        validate_df(df, "specs" if isinstance(table, SpecsTable) else table)
        return self.load_records(table, _records(df))

    # ------------------------
    # Market (listings & bids)
    # ------------------------

    def get_listings(self, brand: str, code: str) -> pd.DataFrame:
        query = f"""
        SELECT
            id,
            brand,
            code,
            price_minor,
            currency,
            quantity_available,
            lead_time_days,
            seller_ref
        FROM listings
        WHERE brand_norm = ?
          AND code_norm = ?
          AND quantity_available > 0
          AND (status IS NULL OR status = 'approved')
        ORDER BY {_OFFER_ORDER}
        """
        return self._query(query, [normalize_key(brand), normalize_key(code)])

    def get_bids_for_sku(self, brand: str, code: str) -> pd.DataFrame:
        query = """
        SELECT
            b.id,
            pr.brand,
            pr.code,
            b.price_minor,
            b.currency,
            b.offer_qty,
            b.lead_time_days,
            b.purchase_request_id
        FROM bids b
        JOIN purchase_requests pr ON pr.id = b.purchase_request_id
        WHERE pr.brand_norm = ?
          AND pr.code_norm = ?
          AND NOT COALESCE(b.offer_is_substitute, false)
          AND (b.status IS NULL OR b.status = 'offered')
        ORDER BY b.price_minor ASC, b.lead_time_days ASC NULLS LAST, b.created_at DESC
        """
        return self._query(query, [normalize_key(brand), normalize_key(code)])

    def get_alt_bids(self, brand: str, code: str) -> pd.DataFrame:
        query = f"""
        SELECT
            id,
            offer_brand AS brand,
            offer_code AS code,
            price_minor,
            currency,
            offer_qty,
            lead_time_days,
            purchase_request_id
        FROM bids
        WHERE COALESCE(offer_is_substitute, false)
          AND lower(trim(offer_brand)) = ?
          AND lower(trim(offer_code)) = ?
          AND (status IS NULL OR status = 'offered')
        ORDER BY {_OFFER_ORDER}
        """
        return self._query(query, [normalize_key(brand), normalize_key(code)])

    # ------------------------
    # Part catalog
    # ------------------------

    def get_component_registry(self) -> pd.DataFrame:
        return self._query(
            "SELECT family_slug, specs_table FROM component_registry ORDER BY family_slug"
        )

    def find_exact(self, table: SpecsTable, brand: str, code: str) -> Optional[Row]:
        bn, cn = normalize_key(brand), normalize_key(code)
        query = f"""
        SELECT *
        FROM {table.quoted}
        WHERE (brand_norm = ? OR lower(brand) = ?)
          AND (code_norm = ? OR lower(code) = ?)
        LIMIT 1
        """
        rows = _records(self._query(query, [bn, bn, cn, cn]))
        return rows[0] if rows else None

    def nearest_by_embedding(self, table: SpecsTable, base_row: Row, k: int) -> List[Row]:
        if "embedding" not in self._columns(table):
            raise DataAccessError(f"{table.name} has no embedding column")

        vector = [float(v) for v in base_row["embedding"]]
        query = f"""
        SELECT *, 1 - list_cosine_similarity(embedding, CAST(? AS DOUBLE[])) AS dist
        FROM {table.quoted}
        WHERE NOT (COALESCE(brand_norm, '') = ? AND COALESCE(code_norm, '') = ?)
        ORDER BY dist ASC NULLS LAST, brand_norm, code_norm
        LIMIT ?
        """
        bn, cn = _base_keys(base_row)
        return _records(self._query(query, [vector, bn, cn, int(k)]))

    def nearest_by_attribute(
        self, table: SpecsTable, base_row: Row, k: int, attribute: str
    ) -> List[Row]:
        if not _IDENTIFIER.match(attribute):
            raise ValueError(f"Invalid attribute name: {attribute!r}")
        columns = self._columns(table)

        # Missing values on either side contribute zero distance.
        if attribute in columns:
            distance = f'COALESCE(ABS(CAST("{attribute}" AS DOUBLE) - CAST(? AS DOUBLE)) / 100.0, 0.0)'
            distance_params = [base_row.get(attribute)]
        else:
            distance, distance_params = "0.0", []

        base_family = base_row.get("family_slug") or table.family_slug
        if "family_slug" in columns:
            family = "CASE WHEN family_slug IS NOT NULL AND family_slug = ? THEN 0 ELSE 1 END"
            family_params = [base_family]
        else:
            family = "CASE WHEN CAST(? AS VARCHAR) = ? THEN 0 ELSE 1 END"
            family_params = [table.family_slug, base_family]

        query = f"""
        SELECT *, ({family}) * 1.0 + {distance} AS score
        FROM {table.quoted}
        WHERE NOT (COALESCE(brand_norm, '') = ? AND COALESCE(code_norm, '') = ?)
        ORDER BY score ASC, brand_norm, code_norm
        LIMIT ?
        """
        bn, cn = _base_keys(base_row)
        params = family_params + distance_params + [bn, cn, int(k)]
        return _records(self._query(query, params))

    # ------------------------
    # Internals
    # ------------------------

    def _columns(self, table: SpecsTable) -> Set[str]:
        df = self._query(
            "SELECT column_name FROM information_schema.columns WHERE table_name = ?",
            [table.name],
        )
        return set(df["column_name"].tolist())

    def _query(self, sql: str, params: Optional[list] = None) -> pd.DataFrame:
        try:
            return self.con.execute(sql, params or []).df()
        except duckdb.Error as exc:
            raise DataAccessError(str(exc)) from exc

    def _execute(self, sql: str, params: Optional[list] = None) -> None:
        try:
            self.con.execute(sql, params or [])
        except duckdb.Error as exc:
            raise DataAccessError(str(exc)) from exc


def _base_keys(base_row: Row):
    return (
        base_row.get("brand_norm") or normalize_key(base_row.get("brand")),
        base_row.get("code_norm") or normalize_key(base_row.get("code")),
    )
