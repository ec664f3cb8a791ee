"""Bridge from Playwright page events to raw lifecycle signals."""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple
from uuid import uuid4

from page_network_observer.browser.page import NetworkPage

logger = logging.getLogger(__name__)


class PlaywrightNetworkBridge:
    """
    Forwards the network and frame events of a Playwright page into a
    NetworkPage.

    Playwright hands out request and frame objects rather than ids, so the
    bridge assigns a stable id to each object it sees and keeps the object
    alive for as long as it is attached.
    """

    def __init__(self, page: NetworkPage, playwright_page: Any):
        self.page = page
        self.playwright_page = playwright_page
        self._request_ids: Dict[int, Tuple[Any, str]] = {}
        self._frame_ids: Dict[int, Tuple[Any, str]] = {}
        self._listeners: List[Tuple[str, Callable]] = []
        self._attached = False

    @property
    def is_attached(self) -> bool:
        return self._attached

    def attach(self) -> "PlaywrightNetworkBridge":
        """Start listening to the Playwright page."""
        if self._attached:
            return self

        main_frame = self.playwright_page.main_frame
        self._frame_ids[id(main_frame)] = (main_frame, self.page.main_frame.frame_id)

        self._listeners = [
            ("frameattached", self._on_frame_attached),
            ("framenavigated", self._on_frame_navigated),
            ("framedetached", self._on_frame_detached),
            ("request", self._on_request),
            ("response", self._on_response),
            ("requestfinished", self._on_request_finished),
            ("requestfailed", self._on_request_failed),
        ]
        for event_name, listener in self._listeners:
            self.playwright_page.on(event_name, listener)

        self._attached = True
        logger.debug(f"Bridge attached to page {self.page.page_id}")
        return self

    def detach(self) -> None:
        """Stop listening and forget the id mappings."""
        if not self._attached:
            return
        for event_name, listener in self._listeners:
            self.playwright_page.remove_listener(event_name, listener)
        self._listeners = []
        self._request_ids.clear()
        self._frame_ids.clear()
        self._attached = False
        logger.debug(f"Bridge detached from page {self.page.page_id}")

    # Id mapping

    def _frame_id(self, playwright_frame: Any) -> Optional[str]:
        if playwright_frame is None:
            return None
        entry = self._frame_ids.get(id(playwright_frame))
        if entry is not None:
            return entry[1]
        parent_id = self._frame_id(playwright_frame.parent_frame)
        frame_id = uuid4().hex
        self._frame_ids[id(playwright_frame)] = (playwright_frame, frame_id)
        self.page.attach_frame(frame_id, parent_id=parent_id, name=playwright_frame.name or "")
        return frame_id

    def _request_id(self, playwright_request: Any) -> Optional[str]:
        entry = self._request_ids.get(id(playwright_request))
        return entry[1] if entry else None

    def _request_frame_id(self, playwright_request: Any) -> Optional[str]:
        # Service worker requests have no frame; Playwright raises for them
        try:
            playwright_frame = playwright_request.frame
        except Exception as e:
            logger.debug(f"Request without frame {playwright_request.url}: {e}")
            return None
        return self._frame_id(playwright_frame)

    # Playwright listeners

    def _on_frame_attached(self, playwright_frame: Any) -> None:
        self._frame_id(playwright_frame)

    def _on_frame_navigated(self, playwright_frame: Any) -> None:
        frame_id = self._frame_id(playwright_frame)
        self.page.frame_navigated(frame_id, playwright_frame.url)

    def _on_frame_detached(self, playwright_frame: Any) -> None:
        entry = self._frame_ids.pop(id(playwright_frame), None)
        if entry is not None:
            self.page.detach_frame(entry[1])

    def _on_request(self, playwright_request: Any) -> None:
        redirected_from_id = None
        if playwright_request.redirected_from is not None:
            redirected_from_id = self._request_id(playwright_request.redirected_from)

        record = self.page.tracker.on_request_started(
            playwright_request.url,
            playwright_request.method,
            playwright_request.resource_type,
            frame_id=self._request_frame_id(playwright_request),
            redirected_from_id=redirected_from_id,
        )
        self._request_ids[id(playwright_request)] = (playwright_request, record.request_id)

    def _on_response(self, playwright_response: Any) -> None:
        request_id = self._request_id(playwright_response.request)
        if request_id is None:
            logger.debug(f"Response for untracked request {playwright_response.url}")
            return
        self.page.tracker.on_response_received(
            request_id,
            playwright_response.status,
            status_text=playwright_response.status_text,
            headers=playwright_response.headers,
        )

    def _on_request_finished(self, playwright_request: Any) -> None:
        request_id = self._request_id(playwright_request)
        if request_id is not None:
            self.page.tracker.on_request_finished(request_id)

    def _on_request_failed(self, playwright_request: Any) -> None:
        request_id = self._request_id(playwright_request)
        if request_id is not None:
            self.page.tracker.on_request_failed(request_id, playwright_request.failure or "")
