"""Tests for the ledger event bus."""

from polyvisor.ledger.events import EventBus, MetricSubmitted, ReporterRegistered
from polyvisor.ledger.models import MetricCategory


def _event() -> MetricSubmitted:
    return MetricSubmitted(
        category=MetricCategory.GAS_USAGE,
        value=1,
        quality_score=100,
        reporter="r1",
        timestamp=0,
    )


class TestEventBus:

    def test_delivers_in_subscription_order(self):
        bus = EventBus()
        seen = []
        bus.subscribe(lambda e: seen.append(("a", e.kind)))
        bus.subscribe(lambda e: seen.append(("b", e.kind)))
        bus.emit(_event())
        assert seen == [("a", "metric_submitted"), ("b", "metric_submitted")]

    def test_failing_subscriber_isolated(self):
        bus = EventBus()
        seen = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe(broken)
        bus.subscribe(seen.append)
        bus.emit(_event())
        assert len(seen) == 1

    def test_unsubscribe(self):
        bus = EventBus()
        seen = []
        bus.subscribe(seen.append)
        bus.unsubscribe(seen.append)
        bus.unsubscribe(seen.append)
        bus.emit(_event())
        assert seen == []
        assert bus.subscriber_count == 0

    def test_event_kinds(self):
        assert _event().kind == "metric_submitted"
        assert ReporterRegistered(reporter="r1", timestamp=0).kind == "reporter_registered"
