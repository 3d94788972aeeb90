"""Ledger replay entrypoint.

Applies a JSON list of ledger operations to a fresh ledger driven by a
logical clock and prints the resulting state. Identical operation files
produce byte-identical output, which lets independent parties check a
published health score or reputation table.

Operation file format (bytes are hex strings):

  [
    {"op": "register", "reporter": "5F...", "caller": "owner"},
    {"op": "set_privacy", "caller": "5F...", "level": "medium"},
    {"op": "submit", "reporter": "5F...", "category": "average_block_time",
     "value": 6125,
     "proof": {"proof_hex": "01", "public_inputs": [6125],
               "verification_key_hex": "...", "circuit_id": 1},
     "data_sources": [{"source_type": "full_node", "source_id_hex": "aa"}]},
    {"op": "submit_batch", "reporter": "5F...", "items": [...]},
    {"op": "advance_clock", "millis": 3600000}
  ]
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Annotated, Any, Literal, Optional, Union

import bittensor as bt
from dotenv import load_dotenv
from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from polyvisor.base.config import LedgerSettings, add_args, build_ledger
from polyvisor.ledger.clock import LogicalClock
from polyvisor.ledger.errors import LedgerError, SubmissionResult
from polyvisor.ledger.ledger import MetricLedger
from polyvisor.ledger.models import (
    DataSource,
    MetricCategory,
    MetricSubmission,
    U128,
    PrivacyLevel,
    Proof,
    SourceType,
)


# ---------------------------------------------------------------------------
# Operation file schema
# ---------------------------------------------------------------------------


class ProofSpec(BaseModel):
    proof_hex: str = ""
    public_inputs: list[U128] = Field(default_factory=list)
    verification_key_hex: str = ""
    circuit_id: int = 0

    @field_validator("proof_hex", "verification_key_hex")
    @classmethod
    def _check_hex(cls, v: str) -> str:
        bytes.fromhex(v)
        return v

    def to_proof(self) -> Proof:
        return Proof(
            proof_bytes=bytes.fromhex(self.proof_hex),
            public_inputs=tuple(self.public_inputs),
            verification_key_bytes=bytes.fromhex(self.verification_key_hex),
            circuit_id=self.circuit_id,
        )


class SourceSpec(BaseModel):
    source_type: SourceType
    source_id_hex: str = ""
    timestamp: int = 0
    reliability_score: int = 100

    @field_validator("source_id_hex")
    @classmethod
    def _check_hex(cls, v: str) -> str:
        bytes.fromhex(v)
        return v

    def to_source(self) -> DataSource:
        return DataSource(
            source_type=self.source_type,
            source_id=bytes.fromhex(self.source_id_hex),
            timestamp=self.timestamp,
            reliability_score=self.reliability_score,
        )


class SubmissionSpec(BaseModel):
    category: MetricCategory
    value: U128
    proof: ProofSpec
    data_sources: list[SourceSpec] = Field(default_factory=list)

    def to_submission(self) -> MetricSubmission:
        return MetricSubmission(
            category=self.category,
            value=self.value,
            proof=self.proof.to_proof(),
            data_sources=[s.to_source() for s in self.data_sources],
        )


class RegisterOp(BaseModel):
    op: Literal["register"]
    reporter: str
    caller: Optional[str] = None


class SetPrivacyOp(BaseModel):
    op: Literal["set_privacy"]
    caller: str
    level: PrivacyLevel


class SubmitOp(SubmissionSpec):
    op: Literal["submit"]
    reporter: str


class SubmitBatchOp(BaseModel):
    op: Literal["submit_batch"]
    reporter: str
    items: list[SubmissionSpec] = Field(default_factory=list)


class AdvanceClockOp(BaseModel):
    op: Literal["advance_clock"]
    millis: int = Field(ge=0)


Operation = Annotated[
    Union[RegisterOp, SetPrivacyOp, SubmitOp, SubmitBatchOp, AdvanceClockOp],
    Field(discriminator="op"),
]

OPERATIONS_ADAPTER = TypeAdapter(list[Operation])


# ---------------------------------------------------------------------------
# Replay
# ---------------------------------------------------------------------------


def _result_dict(result: SubmissionResult) -> dict[str, Any]:
    return {
        "accepted": result.accepted,
        "error": result.error.value if result.error else None,
        "quality_score": result.quality_score,
        "proof_ref": result.proof_ref,
    }


def apply_operations(
    ledger: MetricLedger,
    clock: LogicalClock,
    operations: list[Any],
) -> list[dict[str, Any]]:
    """Apply parsed operations in order; returns one outcome per operation.

    Administrative errors are recorded in the outcome instead of stopping
    the replay.
    """
    outcomes: list[dict[str, Any]] = []
    for index, op in enumerate(operations):
        outcome: dict[str, Any] = {"index": index, "op": op.op}
        try:
            if isinstance(op, RegisterOp):
                outcome["added"] = ledger.register_reporter(op.reporter, caller=op.caller)
            elif isinstance(op, SetPrivacyOp):
                ledger.set_privacy_level(op.caller, op.level)
            elif isinstance(op, SubmitOp):
                s = op.to_submission()
                outcome.update(_result_dict(ledger.submit_metric(
                    op.reporter, s.category, s.value, s.proof, s.data_sources,
                )))
            elif isinstance(op, SubmitBatchOp):
                results = ledger.submit_metrics_batch(
                    op.reporter, [item.to_submission() for item in op.items],
                )
                outcome["results"] = [_result_dict(r) for r in results]
            elif isinstance(op, AdvanceClockOp):
                clock.advance(op.millis)
        except LedgerError as e:
            outcome["error"] = f"{type(e).__name__}: {e}"
        outcomes.append(outcome)
    return outcomes


def replay(operations: list[Any], settings: LedgerSettings) -> dict[str, Any]:
    """Run operations against a fresh ledger and report the final state."""
    clock = LogicalClock()
    ledger = build_ledger(settings, clock=clock)
    outcomes = apply_operations(ledger, clock, operations)
    return {
        "operations": outcomes,
        "health": ledger.get_health_score().model_dump(mode="json"),
        "reputation": {
            reporter: info.model_dump(mode="json")
            for reporter, info in ledger.reputations().items()
        },
        "clock": clock.now(),
    }


def main(argv: Optional[list[str]] = None) -> int:
    if os.environ.get("POLYVISOR_TEST_MODE") != "true":
        load_dotenv()

    parser = argparse.ArgumentParser(description="PolyVisor ledger replay")
    bt.logging.add_args(parser)
    add_args(parser)
    parser.add_argument("ops_file", type=str, help="JSON file with a list of operations")
    parser.add_argument("--replay.output", type=str, default=None, help="Write the report here instead of stdout")
    args = parser.parse_args(argv)

    if getattr(args, "logging.debug", False):
        bt.logging.set_debug(True)

    try:
        with open(args.ops_file) as f:
            raw = json.load(f)
        operations = OPERATIONS_ADAPTER.validate_python(raw)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        bt.logging.error({"replay": {"event": "load_failed", "file": args.ops_file, "error": str(e)}})
        return 1

    settings = LedgerSettings.from_config(args)
    bt.logging.info({"replay": {"event": "starting", "operations": len(operations)}})

    report = replay(operations, settings)
    rendered = json.dumps(report, indent=2, sort_keys=True)

    output = getattr(args, "replay.output", None)
    if output:
        with open(output, "w") as f:
            f.write(rendered + "\n")
    else:
        print(rendered)

    bt.logging.info({"replay": {
        "event": "finished",
        "overall_score": report["health"]["overall_score"],
        "status": report["health"]["status"],
    }})
    return 0


if __name__ == "__main__":
    sys.exit(main())
