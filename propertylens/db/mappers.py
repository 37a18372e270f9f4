"""Map provider records onto the comparables models."""

from typing import Any, Dict, Optional

from ..models.comparables import TargetProperty, Transaction
from ..utils.coerce import dig, to_float, to_str


def map_transaction_row(r: Dict[str, Any]) -> Transaction:
    return Transaction(
        property_id=to_str(r.get("street_group_property_id")),
        street=to_str(dig(r, "address", "simplified_format", "street")),
        property_type=r.get("property_type"),
        bedrooms=r.get("number_of_bedrooms"),
        bathrooms=r.get("number_of_bathrooms"),
        internal_area_square_metres=to_float(r.get("internal_area_square_metres")),
        transaction_date=r.get("transaction_date"),
        distance_metres=r.get("distance_in_metres"),
        price=to_float(r.get("price")),
        price_per_square_metre=to_float(r.get("price_per_square_metre")),
        payload=r,
    )


def map_target_property(r: Dict[str, Any], street_override: Optional[str] = None) -> TargetProperty:
    street = street_override or to_str(r.get("street") or dig(r, "address", "simplified_format", "street"))
    return TargetProperty(
        property_type=r.get("propertyType"),
        bedrooms=r.get("bedrooms"),
        bathrooms=r.get("bathrooms"),
        internal_area_square_metres=r.get("internalArea"),
        street=street,
    )
