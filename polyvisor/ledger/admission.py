"""Admission control: trusted reporter set and administrator checks.

Only reporters in the trusted set may submit metrics. The set is mutated
solely through register(); who may call register() is decided by an
injected Authorizer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol, runtime_checkable

import bittensor as bt

from .errors import InvalidReporterId


def short_id(reporter: str | None) -> str:
    """Truncate a reporter id for log readability."""
    if not reporter:
        return "none"
    return reporter[:16]


@dataclass
class EligibilityResult:
    """Result of an admission check."""

    eligible: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.eligible


@runtime_checkable
class Authorizer(Protocol):
    """Decides who may perform administrative operations."""

    def is_admin(self, caller: str | None) -> bool:
        ...


class OwnerAuthorizer:
    """Only the ledger owner is an administrator.

    With no owner configured, authorization is left to the surrounding
    runtime and every caller is accepted.
    """

    def __init__(self, owner: str | None = None):
        self.owner = owner

    def is_admin(self, caller: str | None) -> bool:
        if self.owner is None:
            return True
        return caller == self.owner


class AdmissionControl:
    """Trusted reporter membership."""

    def __init__(self, trusted: Iterable[str] = ()):
        self._trusted: set[str] = set(trusted)

    def is_trusted(self, reporter: str) -> bool:
        return reporter in self._trusted

    def check_admission(self, reporter: str) -> EligibilityResult:
        """Check whether a reporter may submit metrics."""
        def _reject(reason: str) -> EligibilityResult:
            bt.logging.warning({"admission": {"event": "rejected", "reporter": short_id(reporter), "reason": reason}})
            return EligibilityResult(eligible=False, reason=reason)

        if not reporter:
            return _reject("empty_reporter")
        if reporter not in self._trusted:
            return _reject("reporter_not_trusted")
        return EligibilityResult(eligible=True)

    def register(self, reporter: str) -> bool:
        """Add a reporter. Returns False if it was already trusted."""
        if not reporter:
            raise InvalidReporterId("reporter id must be non-empty")
        if reporter in self._trusted:
            return False
        self._trusted.add(reporter)
        bt.logging.info({"admission": {"event": "reporter_registered", "reporter": short_id(reporter)}})
        return True

    @property
    def reporters(self) -> list[str]:
        return sorted(self._trusted)

    def __len__(self) -> int:
        return len(self._trusted)


__all__ = ["AdmissionControl", "Authorizer", "EligibilityResult", "OwnerAuthorizer", "short_id"]
