"""Ledger facade: the public operations of the metric ledger.

Submission pipeline:
  admission check -> proof verification -> quality score -> privacy
  classification -> proof + record write -> reputation update -> event

The facade exclusively owns the metric store, the reputation ledger, the
trusted reporter set and the per-caller privacy map. Each state transition
runs under a re-entrant lock; reads take the lock only long enough to grab
references to immutable records, so they see a consistent snapshot and
never wait for more than one transition. Proof verification and event
delivery happen outside the lock.
"""

from __future__ import annotations

import threading
from typing import Iterable, Sequence, Union

import bittensor as bt

from .admission import AdmissionControl, Authorizer, OwnerAuthorizer, short_id
from .clock import Clock, LogicalClock
from .errors import (
    InsufficientPermission,
    SubmissionError,
    SubmissionResult,
    UnknownCategory,
)
from .events import EventBus, MetricSubmitted, PrivacyLevelUpdated, ReporterRegistered
from .health import compute_health
from .models import (
    ContributorInfo,
    DataSource,
    MetricCategory,
    MetricRecord,
    MetricSubmission,
    NetworkHealthScore,
    PrivacyLevel,
    Proof,
)
from .privacy import project
from .reputation import ReputationLedger
from .store import MetricStore
from .verifier import ProofEngine, ProofVerifier


DEFAULT_MAX_BATCH_SIZE = 100

BatchItem = Union[MetricSubmission, tuple[MetricCategory, int, Proof, Sequence[DataSource]]]


class MetricLedger:
    """In-memory authoritative metric ledger."""

    def __init__(
        self,
        clock: Clock | None = None,
        engine: ProofEngine | None = None,
        owner: str | None = None,
        authorizer: Authorizer | None = None,
        trusted_reporters: Iterable[str] = (),
        default_privacy_level: PrivacyLevel = PrivacyLevel.HIGH,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
        event_bus: EventBus | None = None,
    ):
        self.clock = clock if clock is not None else LogicalClock()
        self.owner = owner
        self.authorizer = authorizer if authorizer is not None else OwnerAuthorizer(owner)
        self.default_privacy_level = PrivacyLevel(default_privacy_level)
        self.max_batch_size = max_batch_size
        self.events = event_bus if event_bus is not None else EventBus()

        self._verifier = ProofVerifier(engine)
        self._admission = AdmissionControl(trusted_reporters)
        self._store = MetricStore()
        self._reputation = ReputationLedger()
        self._privacy_levels: dict[str, PrivacyLevel] = {}
        self._lock = threading.RLock()

    # -- Administration --

    def register_reporter(self, reporter_id: str, caller: str | None = None) -> bool:
        """Add a reporter to the trusted set.

        Idempotent: registering a trusted reporter again is a no-op and
        returns False.

        Raises:
            InsufficientPermission: caller is not an administrator.
            InvalidReporterId: reporter_id is empty.
        """
        with self._lock:
            if not self.authorizer.is_admin(caller):
                bt.logging.warning({"ledger": {
                    "event": "register_denied", "caller": short_id(caller), "reporter": short_id(reporter_id),
                }})
                raise InsufficientPermission(f"caller {short_id(caller)} may not register reporters")

            added = self._admission.register(reporter_id)
            timestamp = self.clock.now()

        if added:
            self.events.emit(ReporterRegistered(reporter=reporter_id, timestamp=timestamp))
        return added

    def get_trusted_reporters(self, caller: str | None) -> list[str]:
        """Trusted reporter ids, visible to trusted reporters and administrators.

        Raises:
            InsufficientPermission: caller is neither trusted nor an administrator.
        """
        with self._lock:
            if not (
                (caller is not None and self._admission.is_trusted(caller))
                or self.authorizer.is_admin(caller)
            ):
                raise InsufficientPermission(f"caller {short_id(caller)} may not list reporters")
            return self._admission.reporters

    def is_trusted(self, reporter_id: str) -> bool:
        with self._lock:
            return self._admission.is_trusted(reporter_id)

    # -- Privacy settings --

    def set_privacy_level(self, caller_id: str, level: PrivacyLevel) -> None:
        """Set the caller's default privacy level.

        Affects the caller's future submissions and reads; records already
        admitted keep the level they were classified with.
        """
        level = PrivacyLevel(level)
        with self._lock:
            self._privacy_levels[caller_id] = level
            timestamp = self.clock.now()

        self.events.emit(PrivacyLevelUpdated(caller=caller_id, new_level=level, timestamp=timestamp))
        bt.logging.debug({"ledger": {"event": "privacy_level_set", "caller": short_id(caller_id), "level": level.value}})

    def get_privacy_level(self, caller_id: str | None) -> PrivacyLevel:
        with self._lock:
            return self._privacy_levels.get(caller_id, self.default_privacy_level)

    # -- Submission --

    def submit_metric(
        self,
        reporter_id: str,
        category: MetricCategory,
        value: int,
        proof: Proof,
        data_sources: Sequence[DataSource],
    ) -> SubmissionResult:
        """Admit one measurement, or report why it was rejected.

        A rejected submission leaves the store, proofs and reputation
        untouched. Proof verification runs outside the write lock; the
        trusted set only grows, so an admitted reporter stays admitted.
        """
        with self._lock:
            admitted = self._admission.check_admission(reporter_id)
        if not admitted:
            return SubmissionResult.rejected(SubmissionError.UNAUTHORIZED_REPORTER)

        try:
            category = MetricCategory(category)
        except ValueError:
            bt.logging.warning({"ledger": {
                "event": "submission_rejected",
                "reporter": short_id(reporter_id),
                "category": str(category),
                "reason": SubmissionError.MALFORMED_SUBMISSION.value,
            }})
            return SubmissionResult.rejected(SubmissionError.MALFORMED_SUBMISSION)

        verification = self._verifier.verify(proof, category, value, data_sources)
        if not verification:
            bt.logging.warning({"ledger": {
                "event": "submission_rejected",
                "reporter": short_id(reporter_id),
                "category": category.value,
                "reason": verification.reason.value,
            }})
            return SubmissionResult.rejected(verification.reason)

        quality = verification.quality_score
        with self._lock:
            privacy_level = self._privacy_levels.get(reporter_id, self.default_privacy_level)
            timestamp = self.clock.stamp()
            proof_ref = timestamp
            self._store.put_proof(proof_ref, proof)
            self._store.put(category, MetricRecord(
                value=value,
                timestamp=timestamp,
                proof_ref=proof_ref,
                privacy_level=privacy_level,
                data_quality_score=quality,
                source_reporter=reporter_id,
            ))
            self._reputation.record(reporter_id, quality, timestamp)

        self.events.emit(MetricSubmitted(
            category=category,
            value=value,
            quality_score=quality,
            reporter=reporter_id,
            timestamp=timestamp,
        ))
        bt.logging.info({"ledger": {
            "event": "metric_admitted",
            "reporter": short_id(reporter_id),
            "category": category.value,
            "quality": quality,
            "proof_ref": proof_ref,
        }})
        return SubmissionResult.ok(quality_score=quality, proof_ref=proof_ref)

    def submit_metrics_batch(
        self,
        reporter_id: str,
        submissions: Sequence[BatchItem],
    ) -> list[SubmissionResult]:
        """Submit each item independently.

        Partial success: a failing item does not roll back items already
        applied, and items are applied one transition at a time so readers
        are never held up for the whole batch. An item that is not a
        (category, value, proof, data_sources) tuple or MetricSubmission is
        rejected with MALFORMED_SUBMISSION. Batches above max_batch_size are
        rejected item by item without applying anything.
        """
        if len(submissions) > self.max_batch_size:
            bt.logging.warning({"ledger": {
                "event": "batch_too_large",
                "reporter": short_id(reporter_id),
                "size": len(submissions),
                "max": self.max_batch_size,
            }})
            return [SubmissionResult.rejected(SubmissionError.BATCH_TOO_LARGE) for _ in submissions]

        results = []
        for item in submissions:
            if isinstance(item, MetricSubmission):
                fields = (item.category, item.value, item.proof, item.data_sources)
            else:
                try:
                    category, value, proof, data_sources = item
                except (TypeError, ValueError):
                    results.append(SubmissionResult.rejected(SubmissionError.MALFORMED_SUBMISSION))
                    continue
                fields = (category, value, proof, data_sources)
            results.append(self.submit_metric(reporter_id, *fields))

        bt.logging.info({"ledger": {
            "event": "batch_processed",
            "reporter": short_id(reporter_id),
            "accepted": sum(1 for r in results if r),
            "rejected": sum(1 for r in results if not r),
        }})
        return results

    # -- Queries --

    def get_metric(self, caller_id: str | None, category: MetricCategory) -> MetricRecord | None:
        """Latest record for a category, projected at the caller's level."""
        category = MetricCategory(category)
        with self._lock:
            record = self._store.get(category)
            level = self._privacy_levels.get(caller_id, self.default_privacy_level)
        if record is None:
            return None
        return project(record, level)

    def get_historical_metrics(
        self,
        category: MetricCategory,
        from_ts: int,
        to_ts: int,
        level: PrivacyLevel,
    ) -> list[MetricRecord]:
        """Records of a category admitted within [from_ts, to_ts].

        Only the latest record per category is retained, so this returns
        at most one record.
        """
        category = MetricCategory(category)
        level = PrivacyLevel(level)
        with self._lock:
            record = self._store.get(category)
        if record is None or not (from_ts <= record.timestamp <= to_ts):
            return []
        return [project(record, level)]

    def get_health_score(self) -> NetworkHealthScore:
        with self._lock:
            records = self._store.snapshot()
            now = self.clock.now()
        return compute_health(records, now)

    def get_reputation(self, reporter_id: str) -> ContributorInfo | None:
        with self._lock:
            return self._reputation.get(reporter_id)

    def reputations(self) -> dict[str, ContributorInfo]:
        """Every contributor's counters, keyed by reporter id (sorted)."""
        with self._lock:
            return {r: self._reputation.get(r) for r in self._reputation.reporters()}

    # -- Stored proofs --

    def get_proof(self, proof_ref: int) -> Proof | None:
        with self._lock:
            return self._store.get_proof(proof_ref)

    def verify_stored_proof(self, proof_ref: int) -> bool:
        """Re-run structural and engine checks on a stored proof."""
        with self._lock:
            proof = self._store.get_proof(proof_ref)
        if proof is None:
            return False
        return self._verifier.verify_stored(proof)

    def verify_metric(self, category: MetricCategory) -> bool:
        """Re-verify the proof behind a category's current record.

        Raises:
            UnknownCategory: no record has been admitted for the category.
        """
        category = MetricCategory(category)
        with self._lock:
            record = self._store.get(category)
        if record is None:
            raise UnknownCategory(f"no record admitted for {category.value}")
        return self.verify_stored_proof(record.proof_ref)


__all__ = ["DEFAULT_MAX_BATCH_SIZE", "BatchItem", "MetricLedger"]
