"""Domain events emitted by the ledger for external observers.

The ledger never reads these back. Subscribers are called synchronously
in registration order; a failing subscriber is logged and skipped so it
cannot affect ledger state or other subscribers.
"""

from __future__ import annotations

from typing import Callable, Literal, Union

import bittensor as bt
from pydantic import BaseModel

from .models import MetricCategory, PrivacyLevel


class MetricSubmitted(BaseModel):
    kind: Literal["metric_submitted"] = "metric_submitted"
    category: MetricCategory
    value: int
    quality_score: int
    reporter: str
    timestamp: int


class PrivacyLevelUpdated(BaseModel):
    kind: Literal["privacy_level_updated"] = "privacy_level_updated"
    caller: str
    new_level: PrivacyLevel
    timestamp: int


class ReporterRegistered(BaseModel):
    kind: Literal["reporter_registered"] = "reporter_registered"
    reporter: str
    timestamp: int


LedgerEvent = Union[MetricSubmitted, PrivacyLevelUpdated, ReporterRegistered]
Subscriber = Callable[[LedgerEvent], None]


class EventBus:
    """Fan-out of ledger events to subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        try:
            self._subscribers.remove(callback)
        except ValueError:
            pass

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def emit(self, event: LedgerEvent) -> None:
        """Deliver an event to every subscriber.

        Subscriber failures are isolated - one crashing subscriber doesn't
        prevent delivery to the others.
        """
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                bt.logging.warning({"event_bus": {
                    "event": "subscriber_error",
                    "kind": event.kind,
                    "subscriber": getattr(callback, "__name__", repr(callback)),
                    "error": str(e),
                }})


__all__ = [
    "EventBus",
    "LedgerEvent",
    "MetricSubmitted",
    "PrivacyLevelUpdated",
    "ReporterRegistered",
    "Subscriber",
]
