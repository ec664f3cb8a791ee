"""Network event system with ordered, synchronous dispatch."""

import itertools
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from page_network_observer.core.exceptions import EventDispatchError
from page_network_observer.core.logging import log_network_event
from page_network_observer.network.views import RequestRecord, ResponseRecord

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of page network events."""
    REQUEST = "request"
    RESPONSE = "response"
    REQUEST_FINISHED = "requestfinished"
    REQUEST_FAILED = "requestfailed"


@dataclass
class NetworkEvent:
    """Base class for network events."""

    event_type: EventType = field(init=False)
    timestamp: datetime = field(default_factory=datetime.now, init=False)

    @property
    def request(self) -> RequestRecord:
        raise NotImplementedError


@dataclass
class RequestEvent(NetworkEvent):
    """A request was issued."""

    record: RequestRecord = None

    def __post_init__(self):
        self.event_type = EventType.REQUEST

    @property
    def request(self) -> RequestRecord:
        return self.record


@dataclass
class ResponseEvent(NetworkEvent):
    """Response headers were received."""

    response: ResponseRecord = None

    def __post_init__(self):
        self.event_type = EventType.RESPONSE

    @property
    def request(self) -> RequestRecord:
        return self.response.request


@dataclass
class RequestFinishedEvent(NetworkEvent):
    """The response body was fully received."""

    record: RequestRecord = None

    def __post_init__(self):
        self.event_type = EventType.REQUEST_FINISHED

    @property
    def request(self) -> RequestRecord:
        return self.record


@dataclass
class RequestFailedEvent(NetworkEvent):
    """The exchange failed. ``request.failure`` holds the engine's error text."""

    record: RequestRecord = None

    def __post_init__(self):
        self.event_type = EventType.REQUEST_FAILED

    @property
    def request(self) -> RequestRecord:
        return self.record


EventHandler = Callable[[NetworkEvent], Any]

_handle_ids = itertools.count(1)


@dataclass(frozen=True, eq=False)
class SubscriptionHandle:
    """Returned by subscribe(); pass it to unsubscribe()."""
    event_type: Optional[EventType]
    handler: EventHandler
    handle_id: int = field(default_factory=lambda: next(_handle_ids))


@dataclass
class HandlerFailure:
    """An exception raised by one handler during a dispatch."""
    handle: SubscriptionHandle
    event: NetworkEvent
    error: Exception


class NetworkEventBus:
    """
    Event bus for page network events.

    Handlers run synchronously on the publishing thread, in registration
    order, type-specific handlers before global ones. Each publish works on
    a snapshot of the subscribers so handlers may subscribe or unsubscribe
    while an event is being dispatched.
    """

    def __init__(self, raise_handler_errors: bool = False):
        self._handlers: Dict[EventType, List[SubscriptionHandle]] = {
            event_type: [] for event_type in EventType
        }
        self._global_handlers: List[SubscriptionHandle] = []
        self._lock = threading.RLock()
        self.raise_handler_errors = raise_handler_errors

    def subscribe(
        self,
        event_type: EventType,
        handler: EventHandler
    ) -> SubscriptionHandle:
        """Subscribe a handler to a specific event type."""
        handle = SubscriptionHandle(EventType(event_type), handler)
        with self._lock:
            self._handlers[handle.event_type].append(handle)
        return handle

    def subscribe_all(self, handler: EventHandler) -> SubscriptionHandle:
        """Subscribe a handler to all events."""
        handle = SubscriptionHandle(None, handler)
        with self._lock:
            self._global_handlers.append(handle)
        return handle

    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        """Remove a subscription. Unknown or already removed handles are ignored."""
        with self._lock:
            if handle.event_type is None:
                handlers = self._global_handlers
            else:
                handlers = self._handlers[handle.event_type]
            handlers[:] = [h for h in handlers if h is not handle]

    def publish(self, event: NetworkEvent) -> List[HandlerFailure]:
        """
        Dispatch an event to all subscribed handlers.

        A failing handler does not stop the remaining ones. Failures are
        logged and returned; with ``raise_handler_errors`` they are raised
        as one EventDispatchError once every handler has run.
        """
        with self._lock:
            snapshot = list(self._handlers[event.event_type]) + list(self._global_handlers)

        failures: List[HandlerFailure] = []
        for handle in snapshot:
            try:
                handle.handler(event)
            except Exception as e:
                logger.error(f"Event handler error on '{event.event_type.value}': {e}")
                failures.append(HandlerFailure(handle=handle, event=event, error=e))

        if failures and self.raise_handler_errors:
            raise EventDispatchError(failures)
        return failures

    def handler_count(self, event_type: Optional[EventType] = None) -> int:
        """Number of handlers that would receive an event of this type."""
        with self._lock:
            if event_type is None:
                return sum(len(h) for h in self._handlers.values()) + len(self._global_handlers)
            return len(self._handlers[EventType(event_type)]) + len(self._global_handlers)

    def clear_handlers(self) -> None:
        """Clear all event handlers."""
        with self._lock:
            for handlers in self._handlers.values():
                handlers.clear()
            self._global_handlers.clear()


class EventLogger:
    """Logs network events for debugging and tracing."""

    def __init__(self, event_bus: NetworkEventBus):
        self.event_bus = event_bus
        self.events: List[Dict[str, Any]] = []
        self._handle = event_bus.subscribe_all(self._log_event)

    def _log_event(self, event: NetworkEvent) -> None:
        request = event.request
        event_data = {
            "type": event.event_type.value,
            "timestamp": event.timestamp.isoformat(),
            "request_id": request.request_id,
            "method": request.method,
            "url": request.url,
            "resource_type": request.resource_type.value,
        }

        if isinstance(event, ResponseEvent):
            event_data["status"] = event.response.status
        elif isinstance(event, RequestFailedEvent) and request.failure:
            event_data["error_text"] = request.failure.error_text

        self.events.append(event_data)
        log_network_event(event.event_type.value, **{
            k: v for k, v in event_data.items() if k not in ("type", "timestamp")
        })

    def get_events(self) -> List[Dict[str, Any]]:
        """Get all logged events."""
        return self.events.copy()

    def detach(self) -> None:
        """Stop recording events."""
        self.event_bus.unsubscribe(self._handle)

    def clear(self) -> None:
        """Clear logged events."""
        self.events.clear()
