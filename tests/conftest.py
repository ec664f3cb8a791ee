"""
tests/conftest.py

Configuration for pytest and a scripted engine that plays the role of the
browser: it serves a few pages from an in-memory route table and reports
every exchange to the page as raw lifecycle signals.
"""

from typing import Callable, Dict, Iterator, Optional

import pytest

from page_network_observer.browser.page import NetworkPage
from page_network_observer.core.config import NetworkConfig
from page_network_observer.network.events import NetworkEventBus
from page_network_observer.network.tracker import NetworkTracker

CLOSE_CONNECTION = "close-connection"


class ScriptedServer:
    """
    In-memory stand-in for a test HTTP server plus the browser engine that
    loads pages from it.

    Each route is a status code and optional subresources. A route set to
    CLOSE_CONNECTION drops the connection before sending headers.
    """

    PREFIX = "http://localhost:8907"
    EMPTY_PAGE = PREFIX + "/empty.html"
    EMPTY_RESPONSE_ERROR = "net::ERR_EMPTY_RESPONSE"

    def __init__(self):
        self._routes: Dict[str, object] = {
            "/empty.html": {"status": 200, "subresources": []},
            "/one-style.html": {
                "status": 200,
                "subresources": [("/one-style.css", "stylesheet")],
            },
            "/one-style.css": {"status": 200, "subresources": []},
        }
        self._redirects: Dict[str, str] = {}
        self.after_response: Optional[Callable[[NetworkPage, str], None]] = None

    def set_route(self, path: str, behavior: object) -> None:
        self._routes[path] = behavior

    def close_connection(self, path: str) -> None:
        """Make the route drop the connection before sending headers."""
        self._routes[path] = CLOSE_CONNECTION

    def set_redirect(self, from_path: str, to_path: str) -> None:
        self._redirects[from_path] = to_path

    def _path(self, url: str) -> str:
        return url[len(self.PREFIX):] if url.startswith(self.PREFIX) else url

    def _fetch(
        self,
        page: NetworkPage,
        frame_id: str,
        url: str,
        resource_type: str,
        redirected_from_id: Optional[str] = None,
    ) -> Optional[str]:
        """Run one exchange; returns the redirect target if there is one."""
        tracker = page.tracker
        record = tracker.on_request_started(
            url, "GET", resource_type,
            frame_id=frame_id,
            redirected_from_id=redirected_from_id,
        )
        path = self._path(url)

        if path in self._redirects:
            tracker.on_response_received(record.request_id, 302, status_text="Found")
            tracker.on_request_finished(record.request_id)
            return self._redirects[path]

        route = self._routes.get(path)
        if route == CLOSE_CONNECTION:
            tracker.on_request_failed(record.request_id, self.EMPTY_RESPONSE_ERROR)
            return None
        if route is None:
            tracker.on_response_received(record.request_id, 404, status_text="Not Found")
            tracker.on_request_finished(record.request_id)
            return None

        tracker.on_response_received(record.request_id, route["status"], status_text="OK")
        if resource_type == "document":
            page.frame_navigated(frame_id, url)
        if self.after_response is not None:
            self.after_response(page, record.request_id)
        if not record.is_finished:
            for sub_path, sub_type in route["subresources"]:
                self._fetch(page, frame_id, self.PREFIX + sub_path, sub_type)
            tracker.on_request_finished(record.request_id)
        return None

    def navigate(self, page: NetworkPage, frame_id: str, url: str) -> None:
        redirected_from_id = None
        while url is not None:
            before = len(page.tracker.requests())
            target = self._fetch(page, frame_id, url, "document", redirected_from_id)
            redirected_from_id = page.tracker.requests()[before].request_id
            url = self.PREFIX + target if target is not None else None


@pytest.fixture
def network_config() -> NetworkConfig:
    """Strict configuration so protocol violations surface in tests."""
    return NetworkConfig(strict_signals=True, signal_timeout=2000, raise_handler_errors=False)


@pytest.fixture
def server() -> ScriptedServer:
    return ScriptedServer()


@pytest.fixture
def page(server: ScriptedServer, network_config: NetworkConfig) -> Iterator[NetworkPage]:
    """A page whose navigations are served by the scripted server."""
    with NetworkPage(navigator=server, config=network_config) as page:
        yield page


@pytest.fixture
def bus() -> NetworkEventBus:
    return NetworkEventBus()


@pytest.fixture
def tracker(bus: NetworkEventBus) -> NetworkTracker:
    return NetworkTracker(bus, strict=True)
