"""Tests for the metric store."""

import pytest

from polyvisor.ledger.errors import ProofRefCollision
from polyvisor.ledger.models import MetricCategory, MetricRecord, PrivacyLevel, Proof
from polyvisor.ledger.store import MetricStore


def _record(value: int, ts: int) -> MetricRecord:
    return MetricRecord(
        value=value,
        timestamp=ts,
        proof_ref=ts,
        privacy_level=PrivacyLevel.HIGH,
        data_quality_score=100,
        source_reporter="r1",
    )


class TestRecords:

    def test_empty(self):
        store = MetricStore()
        assert store.get(MetricCategory.GAS_USAGE) is None
        assert len(store) == 0

    def test_last_write_wins(self):
        store = MetricStore()
        assert store.put(MetricCategory.GAS_USAGE, _record(1, 1)) is None
        previous = store.put(MetricCategory.GAS_USAGE, _record(2, 2))
        assert previous.value == 1
        assert store.get(MetricCategory.GAS_USAGE).value == 2
        assert len(store) == 1

    def test_categories_independent(self):
        store = MetricStore()
        store.put(MetricCategory.GAS_USAGE, _record(1, 1))
        store.put(MetricCategory.CHAIN_ACTIVITY, _record(2, 2))
        assert MetricCategory.GAS_USAGE in store
        assert set(store) == {MetricCategory.GAS_USAGE, MetricCategory.CHAIN_ACTIVITY}

    def test_snapshot_is_detached(self):
        store = MetricStore()
        store.put(MetricCategory.GAS_USAGE, _record(1, 1))
        snap = store.snapshot()
        store.put(MetricCategory.GAS_USAGE, _record(2, 2))
        assert snap[MetricCategory.GAS_USAGE].value == 1


class TestProofs:

    def test_put_and_get(self):
        store = MetricStore()
        proof = Proof(proof_bytes=b"\x01", public_inputs=[1])
        store.put_proof(10, proof)
        assert store.get_proof(10) == proof
        assert store.has_proof(10)
        assert store.proof_count == 1

    def test_proofs_never_overwritten(self):
        store = MetricStore()
        store.put_proof(10, Proof(proof_bytes=b"\x01", public_inputs=[1]))
        with pytest.raises(ProofRefCollision):
            store.put_proof(10, Proof(proof_bytes=b"\x02", public_inputs=[2]))
        assert store.get_proof(10).proof_bytes == b"\x01"

    def test_missing_proof(self):
        assert MetricStore().get_proof(1) is None
