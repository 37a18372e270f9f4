import os
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from pydantic import ValidationError

try:
    from dotenv import load_dotenv
except ImportError:  # pragma: no cover - optional dependency
    load_dotenv = None

if load_dotenv is not None:
    from pathlib import Path

    load_dotenv(dotenv_path=Path(__file__).resolve().parents[1] / ".env", override=False)

from .db.mappers import map_target_property, map_transaction_row
from .db.repo import get_repository
from .models.comparables import (
    BucketPayload,
    ComparablesFilterData,
    ComparablesFilterRequest,
    ComparablesFilterResponse,
    SaveSelectionRequest,
    Transaction,
    ValuationRequest,
)
from .services.comparables_service import bucketize
from .services.valuation_service import compute_valuation
from .utils.logging import get_logger

LOGGER = get_logger("api")

SIZE_TOLERANCE_PERCENT = float(os.getenv("COMPS_SIZE_TOLERANCE_PERCENT", "10"))
TARGET_COMPARABLES_COUNT = int(os.getenv("COMPS_TARGET_COUNT", "5"))

app = FastAPI(title="propertylens")
router = APIRouter(prefix="/api")


def _reject(detail: str) -> HTTPException:
    LOGGER.info("rejected_request detail=%s", detail)
    return HTTPException(400, detail=detail)


def _map_transactions(rows: List[Any], field: str = "nearbyTransactions") -> List[Transaction]:
    transactions: List[Transaction] = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            raise _reject(f"{field}[{index}] must be an object")
        try:
            transactions.append(map_transaction_row(row))
        except ValidationError as exc:
            raise _reject(f"{field}[{index}] is invalid: {exc.errors()[0]['msg']}") from exc
    return transactions


def _as_payload(txn: Transaction) -> Dict[str, Any]:
    if txn.payload is not None:
        return txn.payload
    return txn.model_dump(mode="json", by_alias=True)


@router.post("/comparables-filter")
def comparables_filter(req: ComparablesFilterRequest):
    if not req.uprn:
        raise _reject("UPRN is required")
    if req.nearbyTransactions is None or not isinstance(req.nearbyTransactions, list):
        raise _reject("nearbyTransactions array is required")
    if req.targetProperty is None:
        raise _reject("targetProperty is required")

    try:
        target = map_target_property(req.targetProperty, street_override=req.targetStreet)
    except ValidationError as exc:
        raise _reject(f"targetProperty is invalid: {exc.errors()[0]['msg']}") from exc
    transactions = _map_transactions(req.nearbyTransactions)

    result = bucketize(
        transactions,
        target,
        size_tolerance_percent=SIZE_TOLERANCE_PERCENT,
        target_count_per_bucket=TARGET_COMPARABLES_COUNT,
    )
    LOGGER.info(
        "comparables_filter uprn=%s transactions=%s candidates=%s buckets=%s",
        req.uprn,
        len(transactions),
        result.total_candidates_considered,
        len(result.buckets),
    )
    data = ComparablesFilterData(
        buckets=[
            BucketPayload(
                relaxationStrategy=bucket.description,
                comparables=[_as_payload(txn) for txn in bucket.transactions],
                maxDistance=bucket.max_distance_metres,
                maxDays=bucket.max_age_days,
            )
            for bucket in result.buckets
        ],
        totalCandidatesConsidered=result.total_candidates_considered,
    )
    return jsonable_encoder(ComparablesFilterResponse(data=data))


@router.get("/comparables")
def get_comparables(uprn: Optional[str] = Query(None)):
    if not uprn:
        raise _reject("UPRN is required")
    return jsonable_encoder(get_repository().get_selection(uprn))


@router.post("/comparables")
def save_comparables(req: SaveSelectionRequest):
    if not req.uprn:
        raise _reject("UPRN is required")
    try:
        selection = get_repository().save_selection(
            str(req.uprn),
            selected_comparable_ids=req.selected_comparable_ids,
            valuation_strategy=req.valuation_strategy,
            calculated_valuation=req.calculated_valuation,
        )
    except ValueError as exc:
        raise _reject("Invalid valuation strategy") from exc
    return jsonable_encoder(selection)


@router.post("/comparables/valuation")
def valuation(req: ValuationRequest):
    comparables = _map_transactions(req.comparables, field="comparables")
    try:
        result = compute_valuation(comparables, req.strategy, req.subjectArea)
    except ValueError as exc:
        raise _reject("Invalid valuation strategy") from exc
    return jsonable_encoder(result)


@router.get("/health")
def health(): return {"status":"ok"}

app.include_router(router)
