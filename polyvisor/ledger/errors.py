"""Submission outcomes and administrative errors.

Submission failures are values (SubmissionResult), reported per item and
never raised. Administrative misuse raises a LedgerError subclass.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SubmissionError(str, Enum):
    """Reason a submission was not admitted."""

    UNAUTHORIZED_REPORTER = "unauthorized_reporter"
    MALFORMED_PROOF = "malformed_proof"
    VALUE_MISMATCH = "value_mismatch"
    INVALID_PROOF = "invalid_proof"
    INSUFFICIENT_SOURCES = "insufficient_sources"
    BATCH_TOO_LARGE = "batch_too_large"
    MALFORMED_SUBMISSION = "malformed_submission"


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of one submission. Truthy when the metric was admitted."""

    accepted: bool
    error: SubmissionError | None = None
    quality_score: int | None = None
    proof_ref: int | None = None

    def __bool__(self) -> bool:
        return self.accepted

    @classmethod
    def ok(cls, quality_score: int, proof_ref: int) -> SubmissionResult:
        return cls(accepted=True, quality_score=quality_score, proof_ref=proof_ref)

    @classmethod
    def rejected(cls, error: SubmissionError) -> SubmissionResult:
        return cls(accepted=False, error=error)


class LedgerError(Exception):
    """Base class for administrative ledger errors."""


class InsufficientPermission(LedgerError):
    """Caller is not allowed to perform an administrative operation."""


class UnknownCategory(LedgerError):
    """An administrative path required a record that was never admitted."""


class InvalidReporterId(LedgerError):
    """A reporter id was empty."""


class ProofRefCollision(LedgerError):
    """The clock produced a proof reference that is already in use."""


__all__ = [
    "InsufficientPermission",
    "InvalidReporterId",
    "LedgerError",
    "ProofRefCollision",
    "SubmissionError",
    "SubmissionResult",
    "UnknownCategory",
]
