import logging

import pandas as pd
from .specs import DATASET_SPECS

logger = logging.getLogger(__name__)

NON_NEGATIVE_COLUMNS = ("quantity_available", "offer_qty", "qty_required", "price_minor")


def validate_df(df: pd.DataFrame, dataset_name: str) -> None:
    """
    Checks a frame against its dataset contract before it is loaded.
    Structural problems raise ValueError; suspicious values only log.
    """
    if dataset_name not in DATASET_SPECS:
        raise ValueError(f"Unknown dataset: {dataset_name}")

    missing = set(DATASET_SPECS[dataset_name]) - set(df.columns)
    if missing:
        raise ValueError(f"{dataset_name} missing columns: {sorted(missing)}")

    if df.empty:
        raise ValueError(f"{dataset_name} is empty")

    if "id" in df.columns and df["id"].duplicated().any():
        dupes = sorted(df.loc[df["id"].duplicated(), "id"].astype(str).unique())
        raise ValueError(f"{dataset_name} has duplicate ids: {dupes}")

    # soft checks
    for col in NON_NEGATIVE_COLUMNS:
        if col in df.columns and (pd.to_numeric(df[col], errors="coerce") < 0).any():
            logger.warning("negative %s detected in %s", col, dataset_name)

    if dataset_name == "bids" and "offer_is_substitute" in df.columns:
        subs = df[df["offer_is_substitute"].fillna(False).astype(bool)]
        unnamed = [
            c for c in ("offer_brand", "offer_code")
            if c not in subs.columns or subs[c].isna().any()
        ]
        if not subs.empty and unnamed:
            logger.warning("substitute bids without %s in %s", unnamed, dataset_name)
