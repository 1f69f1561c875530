from typing import Dict, List

DATASET_SPECS: Dict[str, List[str]] = {

    "listings": [
        "id",
        "brand",
        "code",
        "price_minor",
        "quantity_available",
    ],

    "purchase_requests": [
        "id",
        "brand",
        "code",
        "qty_required",
    ],

    "bids": [
        "id",
        "purchase_request_id",
        "offer_qty",
        "price_minor",
    ],

    "component_registry": [
        "family_slug",
        "specs_table",
    ],

    # per-family specs tables (relay_specs, capacitor_specs, ...)
    "specs": [
        "brand",
        "code",
    ],
}
