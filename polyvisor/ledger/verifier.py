"""Proof admission gate and data-quality scoring.

The verifier checks a proof's structure against the claimed submission,
delegates the cryptographic check to an injected ProofEngine, and scores
the evidentiary strength of the submission. The score feeds reputation;
it never decides admission.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol, Sequence, runtime_checkable

import bittensor as bt

from .errors import SubmissionError
from .models import DataSource, MetricCategory, Proof
from .signer import verify_proof_signature


# ---------------------------------------------------------------------------
# Quality scoring parameters
# ---------------------------------------------------------------------------

MAX_QUALITY_SCORE = 100
MIN_SOURCES_FOR_FULL_SCORE = 3
FEW_SOURCES_PENALTY = 20
LOW_DIVERSITY_PENALTY = 15
MIN_VERIFICATION_KEY_BYTES = 100
WEAK_KEY_PENALTY = 10


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of proof verification."""

    valid: bool
    reason: SubmissionError | None = None
    quality_score: int = 0

    def __bool__(self) -> bool:
        return self.valid


@runtime_checkable
class ProofEngine(Protocol):
    """Cryptographic verification collaborator."""

    def check(self, proof: Proof) -> bool:
        """Return True if the proof is valid for its circuit."""
        ...


class StructuralEngine:
    """Accepts every proof that passed the structural gate."""

    def check(self, proof: Proof) -> bool:
        return True


class HotkeyAttestationEngine:
    """Accepts proofs signed by an allowed hotkey.

    verification_key_bytes carries the signer's SS58 address and
    proof_bytes its signature over (circuit_id, public_inputs).
    """

    def __init__(self, allowed_signers: Iterable[str]):
        self.allowed_signers = frozenset(allowed_signers)

    def check(self, proof: Proof) -> bool:
        try:
            signer = proof.verification_key_bytes.decode()
        except UnicodeDecodeError:
            return False
        if signer not in self.allowed_signers:
            return False
        return verify_proof_signature(proof, signer)


def score_quality(proof: Proof, data_sources: Sequence[DataSource]) -> int:
    """Heuristic 0-100 score; each penalty applies at most once."""
    score = MAX_QUALITY_SCORE
    n_sources = len(data_sources)

    if n_sources < MIN_SOURCES_FOR_FULL_SCORE:
        score -= FEW_SOURCES_PENALTY

    # fewer distinct source types than half the sources
    distinct_types = len({s.source_type for s in data_sources})
    if 2 * distinct_types < n_sources:
        score -= LOW_DIVERSITY_PENALTY

    if len(proof.verification_key_bytes) < MIN_VERIFICATION_KEY_BYTES:
        score -= WEAK_KEY_PENALTY

    return max(score, 0)


def check_structure(proof: Proof) -> SubmissionError | None:
    """Structural validity of a proof on its own (no submission context)."""
    if not proof.proof_bytes:
        return SubmissionError.MALFORMED_PROOF
    if not proof.public_inputs:
        return SubmissionError.MALFORMED_PROOF
    return None


class ProofVerifier:
    """Structural gate plus delegated cryptographic check."""

    def __init__(self, engine: ProofEngine | None = None):
        self.engine = engine if engine is not None else StructuralEngine()

    def verify(
        self,
        proof: Proof,
        claimed_category: MetricCategory,
        claimed_value: int,
        data_sources: Sequence[DataSource],
    ) -> VerificationResult:
        """Check a submission's proof. Stops at the first failed condition.

        Order: empty proof bytes, empty public inputs, value mismatch,
        missing data sources, engine rejection.
        """
        def _reject(reason: SubmissionError) -> VerificationResult:
            bt.logging.debug({"proof_verifier": {
                "event": "rejected",
                "category": claimed_category.value,
                "circuit_id": proof.circuit_id,
                "reason": reason.value,
            }})
            return VerificationResult(valid=False, reason=reason)

        structural = check_structure(proof)
        if structural is not None:
            return _reject(structural)

        if proof.public_inputs[0] != claimed_value:
            return _reject(SubmissionError.VALUE_MISMATCH)

        if not data_sources:
            return _reject(SubmissionError.INSUFFICIENT_SOURCES)

        if not self.engine.check(proof):
            return _reject(SubmissionError.INVALID_PROOF)

        return VerificationResult(
            valid=True,
            quality_score=score_quality(proof, data_sources),
        )

    def verify_stored(self, proof: Proof) -> bool:
        """Re-check a proof that is already in the store."""
        if check_structure(proof) is not None:
            return False
        return self.engine.check(proof)


__all__ = [
    "HotkeyAttestationEngine",
    "ProofEngine",
    "ProofVerifier",
    "StructuralEngine",
    "VerificationResult",
    "check_structure",
    "score_quality",
]
