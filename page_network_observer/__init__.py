"""
Page Network Observer
=====================

Event-ordered observation of the network activity of a browser page.

An external collaborator (a Playwright page, a recorded signal log, a test
engine) reports raw lifecycle signals; the tracker turns them into request
records and publishes ``request``, ``response``, ``requestfinished`` and
``requestfailed`` events in order.

Main Components:
- NetworkPage: Frames, tracker, event bus and waits for one page
- NetworkTracker: Applies lifecycle signals to request records
- NetworkEventBus: Ordered, synchronous event dispatch
- AwaitableSignal: One-shot wait for the next event of a type

Quick Start:
    >>> from page_network_observer import NetworkPage, EventType
    >>> page = NetworkPage(navigator=my_navigator)
    >>> finished = page.expect_event(EventType.REQUEST_FINISHED)
    >>> response = page.navigate("http://localhost:8907/empty.html")
    >>> finished.value().request.url
"""

__version__ = "1.0.0"
__author__ = "Browser Automation Team"

# Lazy imports for better performance
_LAZY_IMPORTS = {
    "NetworkPage": ("page_network_observer.browser.page", "NetworkPage"),
    "Frame": ("page_network_observer.browser.views", "Frame"),
    "PlaywrightNetworkBridge": ("page_network_observer.browser.bridge", "PlaywrightNetworkBridge"),
    "NetworkTracker": ("page_network_observer.network.tracker", "NetworkTracker"),
    "NetworkEventBus": ("page_network_observer.network.events", "NetworkEventBus"),
    "EventType": ("page_network_observer.network.events", "EventType"),
    "AwaitableSignal": ("page_network_observer.network.waiters", "AwaitableSignal"),
    "RequestRecord": ("page_network_observer.network.views", "RequestRecord"),
    "ResponseRecord": ("page_network_observer.network.views", "ResponseRecord"),
    "FailureRecord": ("page_network_observer.network.views", "FailureRecord"),
    "Config": ("page_network_observer.core.config", "Config"),
}


def __getattr__(name: str):
    """Lazy import mechanism for main components."""
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        from importlib import import_module
        module = import_module(module_path)
        attr = getattr(module, attr_name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    "NetworkPage",
    "Frame",
    "PlaywrightNetworkBridge",
    "NetworkTracker",
    "NetworkEventBus",
    "EventType",
    "AwaitableSignal",
    "RequestRecord",
    "ResponseRecord",
    "FailureRecord",
    "Config",
    "__version__",
]
