"""Quantization-based disclosure control for stored metric records.

Readers never see a stored record directly; they get a projection keyed
by their privacy level. Every level is listed in DISCLOSURE_RULES; the
table is the single source of truth for what each level reveals.

MAXIMUM - value to 1000s, quality suppressed, reporter anonymized
HIGH    - value to 100s, quality to 10s, reporter anonymized
MEDIUM  - value to 10s, reporter anonymized
LOW     - exact value, reporter anonymized
MINIMAL - exact record
"""

from __future__ import annotations

from dataclasses import dataclass

from .models import ANONYMOUS_REPORTER, MetricRecord, PrivacyLevel


@dataclass(frozen=True)
class DisclosureRule:
    """What a single privacy level reveals."""

    value_unit: int
    quality_unit: int
    suppress_quality: bool
    anonymize_reporter: bool


DISCLOSURE_RULES: dict[PrivacyLevel, DisclosureRule] = {
    PrivacyLevel.MAXIMUM: DisclosureRule(
        value_unit=1000, quality_unit=1, suppress_quality=True, anonymize_reporter=True,
    ),
    PrivacyLevel.HIGH: DisclosureRule(
        value_unit=100, quality_unit=10, suppress_quality=False, anonymize_reporter=True,
    ),
    PrivacyLevel.MEDIUM: DisclosureRule(
        value_unit=10, quality_unit=1, suppress_quality=False, anonymize_reporter=True,
    ),
    PrivacyLevel.LOW: DisclosureRule(
        value_unit=1, quality_unit=1, suppress_quality=False, anonymize_reporter=True,
    ),
    PrivacyLevel.MINIMAL: DisclosureRule(
        value_unit=1, quality_unit=1, suppress_quality=False, anonymize_reporter=False,
    ),
}

# Finest to coarsest disclosure granularity
DISCLOSURE_ORDER: tuple[PrivacyLevel, ...] = (
    PrivacyLevel.MINIMAL,
    PrivacyLevel.LOW,
    PrivacyLevel.MEDIUM,
    PrivacyLevel.HIGH,
    PrivacyLevel.MAXIMUM,
)


def _floor_to(value: int, unit: int) -> int:
    return (value // unit) * unit


def rounding_unit(level: PrivacyLevel) -> int:
    """Granularity of the value disclosed at a level."""
    return DISCLOSURE_RULES[level].value_unit


def project(record: MetricRecord, level: PrivacyLevel) -> MetricRecord:
    """Return the view of a record that a reader at `level` may see.

    Pure: the stored record is not modified. timestamp and proof_ref are
    always passed through unchanged.
    """
    rule = DISCLOSURE_RULES[level]
    if rule.suppress_quality:
        quality = 0
    else:
        quality = _floor_to(record.data_quality_score, rule.quality_unit)

    return record.model_copy(update={
        "value": _floor_to(record.value, rule.value_unit),
        "data_quality_score": quality,
        "source_reporter": ANONYMOUS_REPORTER if rule.anonymize_reporter else record.source_reporter,
    })


__all__ = [
    "DISCLOSURE_ORDER",
    "DISCLOSURE_RULES",
    "DisclosureRule",
    "project",
    "rounding_unit",
]
