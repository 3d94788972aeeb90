"""Authoritative metric store.

Holds the latest admitted record per category and the proofs those
records reference. Records are last-write-wins; no history is kept.
Proofs are immutable once stored and are never overwritten.
"""

from __future__ import annotations

from typing import Iterator

from .errors import ProofRefCollision
from .models import MetricCategory, MetricRecord, Proof


class MetricStore:
    """Category -> latest MetricRecord, proof_ref -> Proof."""

    def __init__(self) -> None:
        self._records: dict[MetricCategory, MetricRecord] = {}
        self._proofs: dict[int, Proof] = {}

    # -- Proofs --

    def put_proof(self, proof_ref: int, proof: Proof) -> None:
        if proof_ref in self._proofs:
            raise ProofRefCollision(f"proof_ref already in use: {proof_ref}")
        self._proofs[proof_ref] = proof

    def get_proof(self, proof_ref: int) -> Proof | None:
        return self._proofs.get(proof_ref)

    def has_proof(self, proof_ref: int) -> bool:
        return proof_ref in self._proofs

    @property
    def proof_count(self) -> int:
        return len(self._proofs)

    # -- Records --

    def put(self, category: MetricCategory, record: MetricRecord) -> MetricRecord | None:
        """Overwrite the record for a category. Returns the replaced record."""
        previous = self._records.get(category)
        self._records[category] = record
        return previous

    def get(self, category: MetricCategory) -> MetricRecord | None:
        return self._records.get(category)

    def snapshot(self) -> dict[MetricCategory, MetricRecord]:
        """Shallow copy of all records; records themselves are immutable."""
        return dict(self._records)

    def __contains__(self, category: MetricCategory) -> bool:
        return category in self._records

    def __iter__(self) -> Iterator[MetricCategory]:
        return iter(list(self._records))

    def __len__(self) -> int:
        return len(self._records)


__all__ = ["MetricStore"]
