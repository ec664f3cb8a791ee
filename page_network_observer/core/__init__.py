"""Core components - configuration, logging, and exceptions."""

from page_network_observer.core.config import Config, NetworkConfig, BrowserConfig
from page_network_observer.core.exceptions import (
    NetworkObserverError,
    TrackerError,
    NavigationError,
    UnknownRequestError,
    RecordStateError,
    SignalError,
    AlreadyConsumedError,
    PageClosedError,
    EventDispatchError,
    ReplayError,
    TimeoutError as SignalTimeoutError,
)
from page_network_observer.core.logging import setup_logging, get_logger

__all__ = [
    "Config",
    "NetworkConfig",
    "BrowserConfig",
    "NetworkObserverError",
    "TrackerError",
    "NavigationError",
    "UnknownRequestError",
    "RecordStateError",
    "SignalError",
    "AlreadyConsumedError",
    "PageClosedError",
    "EventDispatchError",
    "ReplayError",
    "SignalTimeoutError",
    "setup_logging",
    "get_logger",
]
