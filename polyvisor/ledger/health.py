"""Deterministic network health score.

Computed from whatever subset of the four scored categories currently
has a record. Absent categories are excluded, never treated as zero.
All arithmetic is integer with truncating division so the same store
contents and clock reading always give the same score.
"""

from __future__ import annotations

from typing import Callable, Mapping

import numpy as np

from .models import HealthStatus, MetricCategory, MetricRecord, NetworkHealthScore


BLOCK_TIME_TARGET_MS = 6000
BLOCK_TIME_MAX_DEVIATION_MS = 1000
UPTIME_FULL_BPS = 10000

# Freshness step function: age < FRESHNESS_THRESHOLDS_MS[i] -> FRESHNESS_SCORES[i],
# anything older than the last threshold -> FRESHNESS_SCORES[-1]
_HOUR_MS = 3_600_000
FRESHNESS_THRESHOLDS_MS = np.array(
    [1 * _HOUR_MS, 2 * _HOUR_MS, 6 * _HOUR_MS, 12 * _HOUR_MS], dtype=np.int64,
)
FRESHNESS_SCORES = np.array([100, 80, 60, 40, 20], dtype=np.int64)

HEALTHY_THRESHOLD = 90
WARNING_THRESHOLD = 70


def block_time_score(value: int) -> int:
    deviation = min(abs(value - BLOCK_TIME_TARGET_MS), BLOCK_TIME_MAX_DEVIATION_MS)
    return 100 * (BLOCK_TIME_MAX_DEVIATION_MS - deviation) // BLOCK_TIME_MAX_DEVIATION_MS


def transaction_score(value: int) -> int:
    return min(value // 100, 100)


def validator_score(value: int) -> int:
    # basis points, 10000 = 100% uptime
    return min(value, UPTIME_FULL_BPS) // 100


def congestion_score(value: int) -> int:
    return 100 - min(value, 100)


# Scored categories, in report order, with the NetworkHealthScore field each fills
SCORED_CATEGORIES: dict[MetricCategory, tuple[str, Callable[[int], int]]] = {
    MetricCategory.AVERAGE_BLOCK_TIME: ("block_time_score", block_time_score),
    MetricCategory.TRANSACTION_VOLUME: ("transaction_score", transaction_score),
    MetricCategory.VALIDATOR_UPTIME: ("validator_score", validator_score),
    MetricCategory.NETWORK_CONGESTION: ("congestion_score", congestion_score),
}


def freshness_scores(ages_ms: np.ndarray) -> np.ndarray:
    """Map record ages (ms) to freshness scores via the step function."""
    idx = np.searchsorted(FRESHNESS_THRESHOLDS_MS, ages_ms, side="right")
    return FRESHNESS_SCORES[idx]


def classify_health(overall_score: int, n_present: int) -> tuple[HealthStatus, list[str]]:
    """Band the overall score and produce matching warnings."""
    if n_present == 0:
        return HealthStatus.UNKNOWN, []
    if overall_score >= HEALTHY_THRESHOLD:
        return HealthStatus.HEALTHY, []
    if overall_score >= WARNING_THRESHOLD:
        return HealthStatus.WARNING, [
            f"network health needs attention: {overall_score}/100",
        ]
    return HealthStatus.CRITICAL, [
        f"network health score too low: {overall_score}/100",
    ]


def compute_health(
    records: Mapping[MetricCategory, MetricRecord],
    now: int,
) -> NetworkHealthScore:
    """Composite health score over the present scored categories.

    Steps:
    1. Sub-score each present scored category
    2. overall_score = integer mean of present sub-scores (0 if none)
    3. data_freshness = integer mean of per-record freshness (0 if none)
    4. Band overall_score into a HealthStatus

    Args:
        records: Latest record per category (any extra categories ignored).
        now: Current clock reading in milliseconds.
    """
    fields: dict[str, int] = {}
    present: list[MetricCategory] = []
    ages: list[int] = []

    for category, (field_name, scorer) in SCORED_CATEGORIES.items():
        record = records.get(category)
        if record is None:
            continue
        present.append(category)
        fields[field_name] = scorer(record.value)
        ages.append(max(now - record.timestamp, 0))

    if present:
        overall = sum(fields.values()) // len(present)
        freshness = int(freshness_scores(np.array(ages, dtype=np.int64)).sum()) // len(present)
    else:
        overall = 0
        freshness = 0

    status, warnings = classify_health(overall, len(present))

    return NetworkHealthScore(
        overall_score=overall,
        data_freshness=freshness,
        last_updated=now,
        categories_present=present,
        status=status,
        warnings=warnings,
        **fields,
    )


__all__ = [
    "BLOCK_TIME_TARGET_MS",
    "FRESHNESS_SCORES",
    "FRESHNESS_THRESHOLDS_MS",
    "SCORED_CATEGORIES",
    "block_time_score",
    "classify_health",
    "compute_health",
    "congestion_score",
    "freshness_scores",
    "transaction_score",
    "validator_score",
]
