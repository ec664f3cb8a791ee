"""Page-level network observation - frames, pages and the Playwright bridge."""

from page_network_observer.browser.views import Frame
from page_network_observer.browser.page import NetworkPage, Navigator
from page_network_observer.browser.bridge import PlaywrightNetworkBridge

__all__ = [
    "Frame",
    "NetworkPage",
    "Navigator",
    "PlaywrightNetworkBridge",
]
