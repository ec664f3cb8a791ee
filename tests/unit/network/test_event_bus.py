"""
tests/unit/network/test_event_bus.py

Tests for NetworkEventBus and EventLogger.
"""

from typing import List

import pytest

from page_network_observer.core.exceptions import EventDispatchError
from page_network_observer.network.events import (
    EventLogger,
    EventType,
    NetworkEventBus,
    RequestEvent,
    RequestFailedEvent,
    ResponseEvent,
)
from page_network_observer.network.views import (
    FailureRecord,
    RequestRecord,
    ResourceType,
    ResponseRecord,
)


def make_request(url: str = "http://localhost/empty.html") -> RequestRecord:
    return RequestRecord(
        request_id="req-1",
        url=url,
        method="GET",
        resource_type=ResourceType.DOCUMENT,
    )


class TestSubscribe:
    """
    Tests for subscribe, unsubscribe and dispatch order.
    """

    def test_handlers_run_in_registration_order(self, bus: NetworkEventBus) -> None:
        """Handlers for one type run in the order they subscribed."""
        calls: List[str] = []
        bus.subscribe(EventType.REQUEST, lambda e: calls.append("first"))
        bus.subscribe(EventType.REQUEST, lambda e: calls.append("second"))
        bus.subscribe(EventType.REQUEST, lambda e: calls.append("third"))

        bus.publish(RequestEvent(record=make_request()))

        assert calls == ["first", "second", "third"]

    def test_only_matching_type_is_called(self, bus: NetworkEventBus) -> None:
        """A response handler does not see request events."""
        calls: List[str] = []
        bus.subscribe(EventType.RESPONSE, lambda e: calls.append("response"))

        bus.publish(RequestEvent(record=make_request()))

        assert calls == []

    def test_duplicate_handler_invoked_once_per_subscription(self, bus: NetworkEventBus) -> None:
        """The same handler subscribed twice runs twice."""
        calls: List[str] = []

        def handler(event) -> None:
            calls.append(event.event_type.value)

        bus.subscribe(EventType.REQUEST, handler)
        bus.subscribe(EventType.REQUEST, handler)
        bus.publish(RequestEvent(record=make_request()))

        assert calls == ["request", "request"]

    def test_unsubscribe_is_idempotent(self, bus: NetworkEventBus) -> None:
        """Removing a handle twice is a no-op."""
        calls: List[str] = []
        handle = bus.subscribe(EventType.REQUEST, lambda e: calls.append("x"))

        bus.unsubscribe(handle)
        bus.unsubscribe(handle)
        bus.publish(RequestEvent(record=make_request()))

        assert calls == []
        assert bus.handler_count(EventType.REQUEST) == 0

    def test_unsubscribe_removes_only_that_handle(self, bus: NetworkEventBus) -> None:
        """Duplicate subscriptions are removed one at a time."""
        calls: List[str] = []

        def handler(event) -> None:
            calls.append("x")

        first = bus.subscribe(EventType.REQUEST, handler)
        bus.subscribe(EventType.REQUEST, handler)
        bus.unsubscribe(first)
        bus.publish(RequestEvent(record=make_request()))

        assert calls == ["x"]

    def test_string_event_types_are_accepted(self, bus: NetworkEventBus) -> None:
        """Event types may be given by their wire name."""
        calls: List[str] = []
        bus.subscribe("requestfinished", lambda e: calls.append("done"))

        assert bus.handler_count(EventType.REQUEST_FINISHED) == 1

    def test_global_handlers_run_after_specific_ones(self, bus: NetworkEventBus) -> None:
        """subscribe_all handlers see every event, after typed handlers."""
        calls: List[str] = []
        bus.subscribe_all(lambda e: calls.append(f"all:{e.event_type.value}"))
        bus.subscribe(EventType.REQUEST, lambda e: calls.append("request"))

        request = make_request()
        bus.publish(RequestEvent(record=request))
        bus.publish(ResponseEvent(response=ResponseRecord(request=request, status=200, url=request.url)))

        assert calls == ["request", "all:request", "all:response"]

    def test_clear_handlers(self, bus: NetworkEventBus) -> None:
        bus.subscribe(EventType.REQUEST, lambda e: None)
        bus.subscribe_all(lambda e: None)

        bus.clear_handlers()

        assert bus.handler_count() == 0


class TestReentrantDispatch:
    """
    Handlers may change subscriptions while an event is being dispatched.
    """

    def test_subscribe_during_dispatch_applies_to_next_event(self, bus: NetworkEventBus) -> None:
        """A handler added mid-dispatch does not see the current event."""
        calls: List[str] = []

        def late(event) -> None:
            calls.append("late")

        def adder(event) -> None:
            calls.append("adder")
            bus.subscribe(EventType.REQUEST, late)

        bus.subscribe(EventType.REQUEST, adder)
        bus.publish(RequestEvent(record=make_request()))
        assert calls == ["adder"]

        bus.publish(RequestEvent(record=make_request()))
        assert calls == ["adder", "adder", "late"]

    def test_unsubscribe_during_dispatch_keeps_snapshot(self, bus: NetworkEventBus) -> None:
        """Removing a later handler mid-dispatch still runs it for this event."""
        calls: List[str] = []
        handles = {}

        def remover(event) -> None:
            calls.append("remover")
            bus.unsubscribe(handles["victim"])

        bus.subscribe(EventType.REQUEST, remover)
        handles["victim"] = bus.subscribe(EventType.REQUEST, lambda e: calls.append("victim"))

        bus.publish(RequestEvent(record=make_request()))
        bus.publish(RequestEvent(record=make_request()))

        assert calls == ["remover", "victim", "remover"]


class TestHandlerErrors:
    """
    Handler exceptions are isolated per handler.
    """

    def test_failing_handler_does_not_stop_others(self, bus: NetworkEventBus) -> None:
        """Remaining handlers run and the failure is returned."""
        calls: List[str] = []

        def broken(event) -> None:
            raise ValueError("boom")

        broken_handle = bus.subscribe(EventType.REQUEST, broken)
        bus.subscribe(EventType.REQUEST, lambda e: calls.append("after"))

        failures = bus.publish(RequestEvent(record=make_request()))

        assert calls == ["after"]
        assert len(failures) == 1
        assert failures[0].handle is broken_handle
        assert isinstance(failures[0].error, ValueError)

    def test_raise_handler_errors_aggregates(self) -> None:
        """With raise_handler_errors, failures are raised after every handler ran."""
        bus = NetworkEventBus(raise_handler_errors=True)
        calls: List[str] = []

        def broken(event) -> None:
            raise RuntimeError("first")

        def also_broken(event) -> None:
            raise KeyError("second")

        bus.subscribe(EventType.REQUEST, broken)
        bus.subscribe(EventType.REQUEST, also_broken)
        bus.subscribe(EventType.REQUEST, lambda e: calls.append("ran"))

        with pytest.raises(EventDispatchError) as exc_info:
            bus.publish(RequestEvent(record=make_request()))

        assert calls == ["ran"]
        assert len(exc_info.value.failures) == 2
        assert "RuntimeError" in str(exc_info.value)


class TestEventLogger:
    """
    Tests for EventLogger.
    """

    def test_records_events(self, bus: NetworkEventBus) -> None:
        event_logger = EventLogger(bus)
        request = make_request()
        request._set_failure(FailureRecord(error_text="NS_ERROR_NET_RESET"))

        bus.publish(RequestEvent(record=request))
        bus.publish(ResponseEvent(response=ResponseRecord(request=request, status=404, url=request.url)))
        bus.publish(RequestFailedEvent(record=request))

        events = event_logger.get_events()
        assert [e["type"] for e in events] == ["request", "response", "requestfailed"]
        assert events[1]["status"] == 404
        assert events[2]["error_text"] == "NS_ERROR_NET_RESET"
        assert events[0]["resource_type"] == "document"

    def test_detach_and_clear(self, bus: NetworkEventBus) -> None:
        event_logger = EventLogger(bus)
        bus.publish(RequestEvent(record=make_request()))
        event_logger.clear()
        event_logger.detach()

        bus.publish(RequestEvent(record=make_request()))

        assert event_logger.get_events() == []
