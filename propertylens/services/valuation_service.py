"""Valuation of a subject property from the comparables a user selected."""

from __future__ import annotations

from typing import Iterable, Optional

import pandas as pd

from ..models.comparables import VALUATION_STRATEGIES, Transaction, ValuationResult
from ..utils.logging import get_logger

LOGGER = get_logger("services.valuation")


def latest_per_property(comparables: Iterable[Transaction]) -> pd.DataFrame:
    """One row per property: its most recent sale."""

    df = pd.DataFrame(
        [
            {
                "property_id": txn.property_id,
                "transaction_date": pd.Timestamp(txn.transaction_date),
                "price": txn.price,
                "price_per_square_metre": txn.price_per_square_metre,
            }
            for txn in comparables
        ],
        columns=["property_id", "transaction_date", "price", "price_per_square_metre"],
    )
    if df.empty:
        return df
    df = df.sort_values("transaction_date", ascending=False, kind="mergesort")
    return df.drop_duplicates(subset="property_id", keep="first").reset_index(drop=True)


def compute_valuation(
    comparables: Iterable[Transaction],
    strategy: str = "average",
    subject_area_square_metres: float = 0.0,
) -> ValuationResult:
    if strategy not in VALUATION_STRATEGIES:
        raise ValueError(f"Unknown valuation strategy: {strategy}")

    latest = latest_per_property(comparables)
    valuation: Optional[float] = None
    used = 0

    if latest.empty:
        return ValuationResult(valuation=None, strategy=strategy, comparables_used=0)

    if strategy == "average":
        # a missing price still counts towards the divisor
        prices = pd.to_numeric(latest["price"], errors="coerce").fillna(0.0)
        valuation = float(prices.mean())
        used = len(prices)
    elif subject_area_square_metres > 0:
        per_sqm = pd.to_numeric(latest["price_per_square_metre"], errors="coerce")
        per_sqm = per_sqm[per_sqm > 0]
        if not per_sqm.empty:
            valuation = float(per_sqm.mean()) * subject_area_square_metres
            used = len(per_sqm)

    LOGGER.debug("valuation strategy=%s properties=%s used=%s value=%s", strategy, len(latest), used, valuation)
    return ValuationResult(valuation=valuation, strategy=strategy, comparables_used=used)
