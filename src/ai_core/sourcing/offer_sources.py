from typing import List

import pandas as pd

from src.data_contracts.models import Offer, OfferSource
from src.repositories.base import MarketRepository


def _clean(value):
    return None if value is None or pd.isna(value) else value


def _to_offers(
    df: pd.DataFrame,
    source: OfferSource,
    qty_col: str,
    meta_col: str,
    is_alternative: bool,
) -> List[Offer]:
    offers = []
    for raw in df.to_dict(orient="records"):
        row = {k: _clean(v) for k, v in raw.items()}
        lead = row.get("lead_time_days")
        offers.append(Offer(
            source=source,
            id=str(row["id"]),
            brand=row.get("brand") or "",
            code=row.get("code") or "",
            is_alternative=is_alternative,
            unit_price_minor=int(row.get("price_minor") or 0),
            currency=row.get("currency") or "USD",
            available_qty=int(row.get(qty_col) or 0),
            lead_time_days=None if lead is None else int(lead),
            metadata={meta_col: row.get(meta_col)},
        ))
    return offers


class OfferSources:
    """
    Normalizes listings and bids into Offer objects.
    Row order from the repository (price, lead time, recency) is preserved.
    """

    def __init__(self, repo: MarketRepository):
        self.repo = repo

    def gather_listings(self, brand: str, code: str) -> List[Offer]:
        df = self.repo.get_listings(brand, code)
        return _to_offers(
            df, OfferSource.listing, "quantity_available", "seller_ref", False
        )

    def gather_bids_for_sku(self, brand: str, code: str) -> List[Offer]:
        df = self.repo.get_bids_for_sku(brand, code)
        return _to_offers(
            df, OfferSource.bid, "offer_qty", "purchase_request_id", False
        )

    def gather_alt_bids_for(self, brand: str, code: str) -> List[Offer]:
        df = self.repo.get_alt_bids(brand, code)
        return _to_offers(
            df, OfferSource.bid, "offer_qty", "purchase_request_id", True
        )
