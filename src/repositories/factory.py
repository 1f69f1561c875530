import os
from pathlib import Path

from src.repositories.duckdb_repo import DuckDBMarketRepository

# Resolve project root dynamically
PROJECT_ROOT = Path(__file__).resolve().parents[2]

DATA_BACKEND = os.getenv("SOURCING_DATA_BACKEND", "duckdb")
DB_PATH = os.getenv(
    "SOURCING_DB_PATH",
    (PROJECT_ROOT / "data" / "market.duckdb").as_posix(),
)
REGISTRY_TTL_SECONDS = float(os.getenv("SOURCING_REGISTRY_TTL_SECONDS", "300"))


def get_market_repository(database: str = None):
    if DATA_BACKEND == "duckdb":
        return DuckDBMarketRepository(database or DB_PATH)
    raise NotImplementedError(f"Data backend {DATA_BACKEND!r} not implemented yet")
