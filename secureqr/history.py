# secureqr/history.py

"""
Scan history projection.

The engine does not store anything. These helpers only define what a
history row looks like and how a bounded, most-recent-first list is
updated; the caller persists the returned list wherever it likes.
"""

from __future__ import annotations

import time
from typing import Iterable, List, Optional, Union

from . import config
from .gs1 import detect_gs1_country
from .models import ClassificationResult, HistoryEntry


def clamp_capacity(capacity: Optional[int]) -> int:
    if capacity is None:
        capacity = config.HISTORY_CAPACITY
    return max(config.HISTORY_MIN_CAPACITY, min(config.HISTORY_MAX_CAPACITY, int(capacity)))


def to_history_entry(
    result: ClassificationResult,
    raw: Optional[str] = None,
    timestamp: Optional[int] = None,
) -> HistoryEntry:
    """
    Project a classification onto a history row. `country` comes from the
    GS1 prefix of the raw scan (product barcodes), `timestamp` is epoch ms.
    """
    return HistoryEntry(
        content=result.normalized,
        level=result.level,
        type=result.type,
        wifi=result.wifi,
        country=detect_gs1_country(raw if raw is not None else result.normalized),
        timestamp=timestamp if timestamp is not None else int(time.time() * 1000),
    )


def push_history(
    entries: Iterable[Union[HistoryEntry, dict]],
    entry: Union[HistoryEntry, dict],
    capacity: Optional[int] = None,
) -> List[HistoryEntry]:
    """Prepend `entry`, drop older rows with the same content, cap the length."""
    new = HistoryEntry.model_validate(entry)
    rows = [new]
    for item in entries:
        row = HistoryEntry.model_validate(item)
        if row.content != new.content:
            rows.append(row)
    return rows[: clamp_capacity(capacity)]
