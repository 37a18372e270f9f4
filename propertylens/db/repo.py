"""Process-local store for the comparables a user picked for each property."""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

from ..models.comparables import VALUATION_STRATEGIES, ComparablesSelection
from ..utils.logging import get_logger

LOGGER = get_logger("db.repo")


class ComparablesRepo:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._selections: Dict[str, ComparablesSelection] = {}

    def get_selection(self, uprn: str) -> ComparablesSelection:
        with self._lock:
            stored = self._selections.get(uprn)
        if stored is None:
            return ComparablesSelection(uprn=uprn)
        return stored

    def save_selection(
        self,
        uprn: str,
        selected_comparable_ids: Optional[List[str]] = None,
        valuation_strategy: Optional[str] = None,
        calculated_valuation: Optional[float] = None,
    ) -> ComparablesSelection:
        strategy = valuation_strategy or "average"
        if strategy not in VALUATION_STRATEGIES:
            raise ValueError(f"Invalid valuation strategy: {strategy}")
        selection = ComparablesSelection(
            uprn=uprn,
            selected_comparable_ids=list(selected_comparable_ids or []),
            valuation_strategy=strategy,
            calculated_valuation=calculated_valuation,
            last_updated=datetime.now(timezone.utc),
        )
        with self._lock:
            self._selections[uprn] = selection
        LOGGER.info("saved_selection uprn=%s ids=%s strategy=%s", uprn, len(selection.selected_comparable_ids), strategy)
        return selection


_repo_singleton: ComparablesRepo | None = None


def get_repository() -> ComparablesRepo:
    global _repo_singleton
    if _repo_singleton is None:
        _repo_singleton = ComparablesRepo()
    return _repo_singleton


def reset_repository() -> None:
    global _repo_singleton
    _repo_singleton = None
