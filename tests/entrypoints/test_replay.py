"""Tests for the ledger replay entrypoint."""

import json

import pytest
from pydantic import ValidationError

from polyvisor.base.config import LedgerSettings
from polyvisor.entrypoints.replay import OPERATIONS_ADAPTER, main, replay

HOUR_MS = 3_600_000
STRONG_KEY_HEX = "ab" * 100


def _submit_op(category: str, value: int, reporter: str = "r1", n_sources: int = 4) -> dict:
    return {
        "op": "submit",
        "reporter": reporter,
        "category": category,
        "value": value,
        "proof": {
            "proof_hex": "01",
            "public_inputs": [value],
            "verification_key_hex": STRONG_KEY_HEX,
            "circuit_id": 1,
        },
        "data_sources": [
            {"source_type": t, "source_id_hex": f"{i:02x}"}
            for i, t in enumerate(["validator_node", "full_node", "light_node", "relay_chain"][:n_sources])
        ],
    }


OPS = [
    {"op": "register", "reporter": "r1", "caller": "owner"},
    {"op": "register", "reporter": "r2", "caller": "intruder"},
    _submit_op("average_block_time", 6125),
    _submit_op("network_congestion", 45),
    _submit_op("gas_usage", 1, reporter="r2"),
    {"op": "submit_batch", "reporter": "r1", "items": [
        {k: v for k, v in _submit_op("transaction_volume", 5000).items() if k not in ("op", "reporter")},
    ]},
    {"op": "set_privacy", "caller": "r1", "level": "minimal"},
    {"op": "advance_clock", "millis": 3 * HOUR_MS},
]


@pytest.fixture(autouse=True)
def test_mode(monkeypatch):
    monkeypatch.setenv("POLYVISOR_TEST_MODE", "true")
    for name in LedgerSettings.model_fields:
        monkeypatch.delenv(f"POLYVISOR_LEDGER__{name.upper()}", raising=False)


class TestReplay:

    def test_outcomes(self):
        report = replay(OPERATIONS_ADAPTER.validate_python(OPS), LedgerSettings(owner="owner"))
        outcomes = report["operations"]
        assert outcomes[0]["added"] is True
        assert outcomes[1]["error"].startswith("InsufficientPermission")
        assert outcomes[2]["accepted"] is True
        assert outcomes[2]["quality_score"] == 100
        assert outcomes[4]["accepted"] is False
        assert outcomes[4]["error"] == "unauthorized_reporter"
        assert outcomes[5]["results"][0]["accepted"] is True
        assert report["clock"] == 3 + 3 * HOUR_MS

    def test_final_state(self):
        report = replay(OPERATIONS_ADAPTER.validate_python(OPS), LedgerSettings(owner="owner"))
        health = report["health"]
        assert health["block_time_score"] == 87
        assert health["congestion_score"] == 55
        assert health["transaction_score"] == 50
        assert health["validator_score"] is None
        # (87 + 55 + 50) // 3
        assert health["overall_score"] == 64
        assert health["status"] == "critical"
        assert health["data_freshness"] == 60
        assert list(report["reputation"]) == ["r1"]
        assert report["reputation"]["r1"]["total_contributions"] == 3

    def test_deterministic(self):
        settings = LedgerSettings(owner="owner")
        first = replay(OPERATIONS_ADAPTER.validate_python(OPS), settings)
        second = replay(OPERATIONS_ADAPTER.validate_python(OPS), settings)
        assert json.dumps(first, sort_keys=True) == json.dumps(second, sort_keys=True)

    def test_empty_reporter_recorded_as_error(self):
        ops = OPERATIONS_ADAPTER.validate_python([
            {"op": "register", "reporter": "", "caller": "owner"},
            {"op": "register", "reporter": "r1", "caller": "owner"},
        ])
        report = replay(ops, LedgerSettings(owner="owner"))
        assert report["operations"][0]["error"].startswith("InvalidReporterId")
        assert report["operations"][1]["added"] is True

    def test_schema_rejects_unknown_op(self):
        with pytest.raises(ValidationError):
            OPERATIONS_ADAPTER.validate_python([{"op": "delete_everything"}])

    def test_schema_rejects_bad_hex(self):
        op = _submit_op("gas_usage", 1)
        op["proof"]["proof_hex"] = "zz"
        with pytest.raises(ValidationError):
            OPERATIONS_ADAPTER.validate_python([op])


class TestMain:

    def test_writes_report(self, tmp_path):
        ops_file = tmp_path / "ops.json"
        ops_file.write_text(json.dumps(OPS))
        out_file = tmp_path / "report.json"
        code = main([str(ops_file), "--ledger.owner", "owner", "--replay.output", str(out_file)])
        assert code == 0
        report = json.loads(out_file.read_text())
        assert report["health"]["overall_score"] == 64

    def test_identical_runs_identical_output(self, tmp_path):
        ops_file = tmp_path / "ops.json"
        ops_file.write_text(json.dumps(OPS))
        outputs = []
        for name in ("a.json", "b.json"):
            out = tmp_path / name
            assert main([str(ops_file), "--ledger.owner", "owner", "--replay.output", str(out)]) == 0
            outputs.append(out.read_bytes())
        assert outputs[0] == outputs[1]

    def test_empty_reporter_does_not_crash(self, tmp_path):
        ops_file = tmp_path / "ops.json"
        ops_file.write_text(json.dumps([{"op": "register", "reporter": ""}]))
        out_file = tmp_path / "report.json"
        assert main([str(ops_file), "--replay.output", str(out_file)]) == 0
        report = json.loads(out_file.read_text())
        assert report["operations"][0]["error"].startswith("InvalidReporterId")

    def test_missing_file(self, tmp_path):
        assert main([str(tmp_path / "missing.json")]) == 1

    def test_invalid_json(self, tmp_path):
        ops_file = tmp_path / "ops.json"
        ops_file.write_text("{not json")
        assert main([str(ops_file)]) == 1
