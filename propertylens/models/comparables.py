"""Pydantic schemas for comparable-sales matching and valuation."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

ValuationStrategy = Literal["average", "price_per_sqm"]
VALUATION_STRATEGIES = ("average", "price_per_sqm")


class TargetProperty(BaseModel):
    """The subject property being appraised."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    property_type: str = Field(..., alias="propertyType")
    bedrooms: int = Field(..., ge=0)
    bathrooms: int = Field(..., ge=0)
    internal_area_square_metres: float = Field(..., gt=0, alias="internalArea")
    street: str = ""


class Transaction(BaseModel):
    """One historical sale offered as a comparable candidate.

    ``payload`` keeps the provider record the transaction was mapped from so it
    can be handed back to the caller untouched.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    property_id: str = Field(..., min_length=1, alias="propertyId")
    street: str = ""
    property_type: Optional[str] = Field(None, alias="propertyType")
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    internal_area_square_metres: Optional[float] = Field(None, alias="internalArea")
    transaction_date: date = Field(..., alias="transactionDate")
    distance_metres: float = Field(..., ge=0, alias="distanceMetres")
    price: Optional[float] = None
    price_per_square_metre: Optional[float] = Field(None, alias="pricePerSquareMetre")
    payload: Optional[Dict[str, Any]] = Field(None, exclude=True, repr=False)


class RelaxationTier(BaseModel):
    """One step of the widening distance/recency schedule.

    ``max_distance_metres == 0`` means "same street" rather than a literal
    distance. ``None`` on either bound means unconstrained.
    """

    model_config = ConfigDict(frozen=True)

    description: str
    max_distance_metres: Optional[float]
    max_age_days: Optional[int]

    @property
    def same_street_only(self) -> bool:
        return self.max_distance_metres == 0


class Bucket(BaseModel):
    description: str
    max_distance_metres: Optional[float]
    max_age_days: Optional[int]
    transactions: List[Transaction]


class BucketizeResult(BaseModel):
    buckets: List[Bucket]
    total_candidates_considered: int


class ComparablesFilterRequest(BaseModel):
    # Loosely typed on purpose: presence checks happen in the route so that a
    # missing field yields the same 400 the dashboard expects.
    uprn: Optional[Union[str, int]] = None
    nearbyTransactions: Optional[Any] = None
    targetProperty: Optional[Dict[str, Any]] = None
    targetStreet: Optional[str] = None


class BucketPayload(BaseModel):
    relaxationStrategy: str
    comparables: List[Dict[str, Any]]
    maxDistance: Optional[float]
    maxDays: Optional[int]


class ComparablesFilterData(BaseModel):
    buckets: List[BucketPayload]
    totalCandidatesConsidered: int


class ComparablesFilterResponse(BaseModel):
    success: bool = True
    data: ComparablesFilterData


class ComparablesSelection(BaseModel):
    uprn: str
    selected_comparable_ids: List[str] = Field(default_factory=list)
    valuation_strategy: ValuationStrategy = "average"
    calculated_valuation: Optional[float] = None
    last_updated: Optional[datetime] = None


class SaveSelectionRequest(BaseModel):
    uprn: Optional[Union[str, int]] = None
    selected_comparable_ids: Optional[List[str]] = None
    valuation_strategy: Optional[str] = None
    calculated_valuation: Optional[float] = None


class ValuationRequest(BaseModel):
    comparables: List[Dict[str, Any]] = Field(default_factory=list)
    strategy: str = "average"
    subjectArea: float = 0.0


class ValuationResult(BaseModel):
    valuation: Optional[float]
    strategy: ValuationStrategy
    comparables_used: int
    generated_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
