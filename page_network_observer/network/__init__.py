"""Network observation - request records, event bus, tracker and signals."""

from page_network_observer.network.views import (
    ResourceType,
    RequestRecord,
    ResponseRecord,
    FailureRecord,
)
from page_network_observer.network.events import (
    EventType,
    NetworkEvent,
    RequestEvent,
    ResponseEvent,
    RequestFinishedEvent,
    RequestFailedEvent,
    NetworkEventBus,
    SubscriptionHandle,
    HandlerFailure,
    EventLogger,
)
from page_network_observer.network.waiters import AwaitableSignal
from page_network_observer.network.tracker import NetworkTracker

__all__ = [
    "ResourceType",
    "RequestRecord",
    "ResponseRecord",
    "FailureRecord",
    "EventType",
    "NetworkEvent",
    "RequestEvent",
    "ResponseEvent",
    "RequestFinishedEvent",
    "RequestFailedEvent",
    "NetworkEventBus",
    "SubscriptionHandle",
    "HandlerFailure",
    "EventLogger",
    "AwaitableSignal",
    "NetworkTracker",
]
