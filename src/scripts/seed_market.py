import numpy as np
import pandas as pd

from src.repositories.base import SpecsTable
from src.repositories.factory import DB_PATH, PROJECT_ROOT
from src.repositories.duckdb_repo import DuckDBMarketRepository

# -------------------------------------------------
# Local market database (listings, PRs, bids, relay specs)
# -------------------------------------------------
(PROJECT_ROOT / "data").mkdir(parents=True, exist_ok=True)

repo = DuckDBMarketRepository(DB_PATH)
repo.create_schema()

relays = SpecsTable.parse("relay_specs", "relay")
repo.create_specs_table(relays, numeric_columns=("coil_voltage_vdc",))
repo.register_family(relays)

# -------------------------------------------------
# Relay specs: one row = brand-code
# -------------------------------------------------
rng = np.random.default_rng(42)
base_vec = rng.normal(size=8)

specs = [
    ("Omron", "G5V-1-DC5", 5.0),
    ("Omron", "G5V-1-DC12", 12.0),
    ("Panasonic", "TQ2-5V", 5.0),
    ("TE", "RT314005", 5.0),
    ("TE", "RT314024", 24.0),
]
specs_df = pd.DataFrame([
    {
        "id": f"REL_{i:03d}",
        "brand": brand,
        "code": code,
        "family_slug": "relay",
        "coil_voltage_vdc": volts,
        # nearby vectors for same-coil parts
        "embedding": (base_vec + rng.normal(scale=0.05 + abs(volts - 5.0) / 10, size=8)).tolist(),
    }
    for i, (brand, code, volts) in enumerate(specs, start=1)
])
repo.load_frame(relays, specs_df)

# -------------------------------------------------
# Seller listings
# -------------------------------------------------
listings_df = pd.DataFrame([
    {"id": "LST_001", "brand": "Omron", "code": "G5V-1-DC5", "price_minor": 180,
     "quantity_available": 300, "lead_time_days": 2, "seller_ref": "SELLER_A"},
    {"id": "LST_002", "brand": "Omron", "code": "G5V-1-DC5", "price_minor": 175,
     "quantity_available": 120, "lead_time_days": 12, "seller_ref": "SELLER_B"},
    {"id": "LST_003", "brand": "Panasonic", "code": "TQ2-5V", "price_minor": 150,
     "quantity_available": 400, "lead_time_days": 5, "seller_ref": "SELLER_C"},
    {"id": "LST_004", "brand": "TE", "code": "RT314005", "price_minor": 160,
     "quantity_available": 50, "lead_time_days": None, "seller_ref": "SELLER_D"},
])
repo.load_frame("listings", listings_df)

# -------------------------------------------------
# Purchase requests + bids (auctions)
# -------------------------------------------------
pr_df = pd.DataFrame([
    {"id": "PR_001", "brand": "Omron", "code": "G5V-1-DC5", "qty_required": 1000},
])
repo.load_frame("purchase_requests", pr_df)

bids_df = pd.DataFrame([
    {"id": "BID_001", "purchase_request_id": "PR_001", "seller_id": "SELLER_E",
     "offer_qty": 500, "price_minor": 165, "lead_time_days": 20},
    {"id": "BID_002", "purchase_request_id": "PR_001", "seller_id": "SELLER_F",
     "offer_brand": "TE", "offer_code": "RT314005", "offer_is_substitute": True,
     "offer_qty": 250, "price_minor": 140, "lead_time_days": 7},
])
repo.load_frame("bids", bids_df)

print("✅ Market database seeded at:")
print(DB_PATH)
