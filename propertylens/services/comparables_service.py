"""Comparable sales matching with a cascading relaxation schedule.

Candidates are first narrowed to the subject's bed/bath/type/size profile. The
tiers below are then walked from tightest to loosest; each tier filters the
full candidate pool by street or distance and by recency, skips properties an
earlier tier already used, and keeps the best few. A tier with no matches
produces no bucket.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple

from ..models.comparables import Bucket, BucketizeResult, RelaxationTier, TargetProperty, Transaction
from ..utils.logging import get_logger

LOGGER = get_logger("services.comparables")

DEFAULT_SIZE_TOLERANCE_PERCENT = 10.0
DEFAULT_TARGET_COUNT = 5

_DAY = timedelta(days=1)
_MS = timedelta(milliseconds=1)
_BOUND_DECIMALS = 9

RELAXATION_TIERS: Tuple[RelaxationTier, ...] = (
    RelaxationTier(description="Same street, last 30 days", max_distance_metres=0, max_age_days=30),
    RelaxationTier(description="Same street, last 3 months", max_distance_metres=0, max_age_days=90),
    RelaxationTier(description="1/4 mile, last 3 months", max_distance_metres=402, max_age_days=90),
    RelaxationTier(description="1/2 mile, last 6 months", max_distance_metres=805, max_age_days=180),
    RelaxationTier(description="1 mile, last year", max_distance_metres=1609, max_age_days=365),
    RelaxationTier(description="2 miles, last 2 years", max_distance_metres=3218, max_age_days=730),
    RelaxationTier(description="Any distance, any date", max_distance_metres=None, max_age_days=None),
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def days_since(transaction: Transaction, now: datetime) -> int:
    """Whole days between ``now`` and the sale date at UTC midnight, rounded up.

    Milliseconds are the finest unit considered, so a sale dated today counts as
    one day old once the clock has passed midnight. A naive ``now`` is taken to be UTC.
    """

    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    sold_at = datetime.combine(transaction.transaction_date, time.min, tzinfo=timezone.utc)
    elapsed_ms = abs(now - sold_at) // _MS
    day_ms = _DAY // _MS
    return -(-elapsed_ms // day_ms)


def filter_candidates(
    transactions: Iterable[Transaction],
    target: TargetProperty,
    size_tolerance_percent: float = DEFAULT_SIZE_TOLERANCE_PERCENT,
) -> List[Transaction]:
    """Keep transactions with the subject's beds, baths and type and a similar floor area."""

    tolerance = size_tolerance_percent / 100
    # inclusive bounds; rounding drops float noise like 100 * 1.1 == 110.00000000000001
    size_min = round(target.internal_area_square_metres * (1 - tolerance), _BOUND_DECIMALS)
    size_max = round(target.internal_area_square_metres * (1 + tolerance), _BOUND_DECIMALS)

    candidates: List[Transaction] = []
    for txn in transactions:
        if txn.bedrooms != target.bedrooms or txn.bathrooms != target.bathrooms:
            continue
        if txn.property_type != target.property_type:
            continue
        area = txn.internal_area_square_metres
        if area is None or not size_min <= area <= size_max:
            continue
        candidates.append(txn)
    return candidates


def select_for_tier(
    candidates: Sequence[Transaction],
    tier: RelaxationTier,
    target_street: str,
    used_ids: FrozenSet[str],
    now: datetime,
    limit: int = DEFAULT_TARGET_COUNT,
) -> Tuple[List[Transaction], FrozenSet[str]]:
    """Pick up to ``limit`` comparables for one tier.

    Returns the selection and the used-id set extended with it. Candidates whose
    property already appears in ``used_ids`` are never selected.
    """

    pool = list(candidates)
    if tier.same_street_only:
        pool = [txn for txn in pool if txn.street == target_street]
    elif tier.max_distance_metres is not None:
        pool = [txn for txn in pool if txn.distance_metres <= tier.max_distance_metres]

    ages = {id(txn): days_since(txn, now) for txn in pool}
    if tier.max_age_days is not None:
        pool = [txn for txn in pool if ages[id(txn)] <= tier.max_age_days]

    pool = [txn for txn in pool if txn.property_id not in used_ids]
    pool.sort(key=lambda txn: (txn.street != target_street, txn.distance_metres, ages[id(txn)]))

    selected = pool[:limit]
    if not selected:
        return [], used_ids
    return selected, used_ids | {txn.property_id for txn in selected}


def bucketize(
    transactions: Sequence[Transaction],
    target: TargetProperty,
    size_tolerance_percent: float = DEFAULT_SIZE_TOLERANCE_PERCENT,
    target_count_per_bucket: int = DEFAULT_TARGET_COUNT,
    now: Optional[datetime] = None,
) -> BucketizeResult:
    """Group the best comparables for ``target`` into relaxation-tier buckets.

    ``total_candidates_considered`` is the size of the bed/bath/type/size match
    pool, independent of how many transactions end up in buckets.
    """

    now = now or _utcnow()
    candidates = filter_candidates(transactions, target, size_tolerance_percent)
    target_street = target.street or ""

    buckets: List[Bucket] = []
    used_ids: FrozenSet[str] = frozenset()
    for tier in RELAXATION_TIERS:
        selected, used_ids = select_for_tier(
            candidates, tier, target_street, used_ids, now, limit=target_count_per_bucket
        )
        if not selected:
            continue
        buckets.append(
            Bucket(
                description=tier.description,
                max_distance_metres=tier.max_distance_metres,
                max_age_days=tier.max_age_days,
                transactions=selected,
            )
        )

    LOGGER.debug(
        "bucketize transactions=%s candidates=%s buckets=%s selected=%s",
        len(transactions),
        len(candidates),
        len(buckets),
        sum(len(bucket.transactions) for bucket in buckets),
    )
    return BucketizeResult(buckets=buckets, total_candidates_considered=len(candidates))


__all__ = [
    "RELAXATION_TIERS",
    "DEFAULT_SIZE_TOLERANCE_PERCENT",
    "DEFAULT_TARGET_COUNT",
    "bucketize",
    "days_since",
    "filter_candidates",
    "select_for_tier",
]
