# The MIT License (MIT)
# Copyright © 2023 Yuma Rao
# Copyright © 2023 Opentensor Foundation

# Permission is hereby granted, free of charge, to any person obtaining a copy of this software and associated
# documentation files (the “Software”), to deal in the Software without restriction, including without limitation
# the rights to use, copy, modify, merge, publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so, subject to the following conditions:

# The above copyright notice and this permission notice shall be included in all copies or substantial portions of
# the Software.

# THE SOFTWARE IS PROVIDED “AS IS”, WITHOUT WARRANTY OF ANY KIND, EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO
# THE WARRANTIES OF MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL
# THE AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN ACTION
# OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER
# DEALINGS IN THE SOFTWARE.

import os
import argparse
from typing import Any, Literal, Optional

import bittensor as bt
from pydantic import BaseModel, Field

from polyvisor.ledger.clock import BlockClock, Clock, LogicalClock
from polyvisor.ledger.ledger import DEFAULT_MAX_BATCH_SIZE, MetricLedger
from polyvisor.ledger.models import PrivacyLevel
from polyvisor.ledger.verifier import HotkeyAttestationEngine, ProofEngine, StructuralEngine


ENV_PREFIX = "POLYVISOR_LEDGER__"


class LedgerSettings(BaseModel):
    """Validated ledger settings (CLI defaults, overridden by env)."""

    owner: Optional[str] = None
    trusted_reporters: list[str] = Field(default_factory=list)
    default_privacy_level: PrivacyLevel = PrivacyLevel.HIGH
    max_batch_size: int = Field(default=DEFAULT_MAX_BATCH_SIZE, ge=1)
    clock: Literal["logical", "block"] = "logical"
    engine: Literal["structural", "hotkey"] = "structural"
    attestation_signers: list[str] = Field(default_factory=list)

    @classmethod
    def from_config(cls, config: Any) -> "LedgerSettings":
        """Read ledger.* options, then apply env overrides.

        Accepts a bt.Config (nested `ledger` namespace) or a plain argparse
        Namespace (flat "ledger.<name>" attributes). Environment variables
        have HIGHEST priority. List-valued settings are comma-separated in
        the environment.
        """
        ledger_ns = getattr(config, "ledger", None)
        values: dict[str, Any] = {}
        for name in cls.model_fields:
            if ledger_ns is not None:
                value = getattr(ledger_ns, name, None)
            else:
                value = getattr(config, f"ledger.{name}", None)
            if value is not None:
                values[name] = value

        for name, field in cls.model_fields.items():
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw is None:
                continue
            if field.annotation == list[str]:
                values[name] = [item.strip() for item in raw.split(",") if item.strip()]
            else:
                values[name] = raw

        return cls(**values)


def add_args(parser: argparse.ArgumentParser) -> None:
    """
    Adds ledger arguments to the parser.
    """

    parser.add_argument(
        "--ledger.owner",
        type=str,
        help="Administrator allowed to register reporters. Unset: authorization is external.",
        default=None,
    )

    parser.add_argument(
        "--ledger.trusted_reporters",
        type=str,
        action="append",
        help="Reporter trusted from startup. Repeatable.",
        default=None,
    )

    parser.add_argument(
        "--ledger.default_privacy_level",
        type=str,
        choices=[level.value for level in PrivacyLevel],
        help="Privacy level applied to callers that never set one.",
        default=PrivacyLevel.HIGH.value,
    )

    parser.add_argument(
        "--ledger.max_batch_size",
        type=int,
        help="Largest batch accepted by submit_metrics_batch.",
        default=DEFAULT_MAX_BATCH_SIZE,
    )

    parser.add_argument(
        "--ledger.clock",
        type=str,
        choices=["logical", "block"],
        help="Admission clock: deterministic counter or wall-clock milliseconds.",
        default="logical",
    )

    parser.add_argument(
        "--ledger.engine",
        type=str,
        choices=["structural", "hotkey"],
        help="Proof engine: structural checks only, or hotkey-signed attestations.",
        default="structural",
    )

    parser.add_argument(
        "--ledger.attestation_signers",
        type=str,
        action="append",
        help="SS58 hotkey allowed to sign proofs (hotkey engine). Repeatable.",
        default=None,
    )


def config() -> "bt.Config":
    """
    Returns the configuration object with logging and ledger arguments.
    """
    parser = argparse.ArgumentParser()
    bt.logging.add_args(parser)
    add_args(parser)
    return bt.Config(parser)


def build_clock(settings: LedgerSettings) -> Clock:
    if settings.clock == "block":
        return BlockClock()
    return LogicalClock()


def build_engine(settings: LedgerSettings) -> ProofEngine:
    if settings.engine == "hotkey":
        return HotkeyAttestationEngine(settings.attestation_signers)
    return StructuralEngine()


def build_ledger(settings: LedgerSettings, clock: Optional[Clock] = None) -> MetricLedger:
    """Construct a ledger from settings. An explicit clock wins over settings.clock."""
    bt.logging.info({
        "ledger_config": {
            "owner": settings.owner[:16] if settings.owner else None,
            "trusted_reporters": len(settings.trusted_reporters),
            "default_privacy_level": settings.default_privacy_level.value,
            "max_batch_size": settings.max_batch_size,
            "clock": settings.clock,
            "engine": settings.engine,
        }
    })
    return MetricLedger(
        clock=clock if clock is not None else build_clock(settings),
        engine=build_engine(settings),
        owner=settings.owner,
        trusted_reporters=settings.trusted_reporters,
        default_privacy_level=settings.default_privacy_level,
        max_batch_size=settings.max_batch_size,
    )
