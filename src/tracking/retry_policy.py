"""Logic to determine whether a failed geocoding lookup may be retried."""

from __future__ import annotations

from datetime import timedelta
from typing import Tuple

from domain.models import GeoRecord

# (minimum consecutive failures, wait before the next attempt), ascending
BACKOFF_SCHEDULE: Tuple[Tuple[int, timedelta], ...] = (
    (1, timedelta(days=1)),
    (2, timedelta(days=3)),
    (3, timedelta(days=7)),
    (4, timedelta(days=14)),
)

PERMANENT_FAILURE_COUNT = 4
CLEANUP_AGE = timedelta(days=30)


def retry_interval(fail_count: int) -> timedelta:
    interval = BACKOFF_SCHEDULE[0][1]
    for threshold, wait in BACKOFF_SCHEDULE:
        if fail_count >= threshold:
            interval = wait
    return interval


def should_retry(record: GeoRecord, now: float) -> bool:
    elapsed = now - record.last_attempt
    return elapsed >= retry_interval(record.fail_count).total_seconds()


def is_permanently_failed(record: GeoRecord) -> bool:
    return record.failed and record.fail_count >= PERMANENT_FAILURE_COUNT


def is_cleanup_candidate(record: GeoRecord, now: float) -> bool:
    return is_permanently_failed(record) and record.last_attempt < now - CLEANUP_AGE.total_seconds()
