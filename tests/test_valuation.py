from datetime import date

import pytest

from propertylens.models.comparables import Transaction
from propertylens.services.valuation_service import compute_valuation


def _sale(pid: str, sold: date, price=None, per_sqm=None) -> Transaction:
    return Transaction(
        property_id=pid,
        transaction_date=sold,
        distance_metres=0,
        price=price,
        price_per_square_metre=per_sqm,
    )


def test_average_uses_latest_sale_per_property():
    comps = [
        _sale("a", date(2020, 1, 1), price=100_000),
        _sale("a", date(2024, 1, 1), price=200_000),
        _sale("b", date(2023, 5, 1), price=300_000),
    ]
    result = compute_valuation(comps, "average")
    assert result.valuation == pytest.approx(250_000)
    assert result.comparables_used == 2
    assert result.strategy == "average"


def test_price_per_sqm_skips_missing_rates():
    comps = [
        _sale("a", date(2024, 1, 1), per_sqm=4000),
        _sale("b", date(2024, 2, 1), per_sqm=5000),
        _sale("c", date(2024, 3, 1), per_sqm=0),
    ]
    result = compute_valuation(comps, "price_per_sqm", subject_area_square_metres=50)
    assert result.valuation == pytest.approx(225_000)
    assert result.comparables_used == 2


def test_price_per_sqm_needs_subject_area():
    comps = [_sale("a", date(2024, 1, 1), per_sqm=4000)]
    assert compute_valuation(comps, "price_per_sqm", subject_area_square_metres=0).valuation is None


def test_no_comparables_no_valuation():
    result = compute_valuation([], "average")
    assert result.valuation is None
    assert result.comparables_used == 0


def test_unknown_strategy_rejected():
    with pytest.raises(ValueError):
        compute_valuation([], "median")
