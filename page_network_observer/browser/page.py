"""Per-page network observation: frames, tracker, event bus and waits."""

import logging
import weakref
from typing import Any, Dict, List, Optional, Protocol
from uuid import uuid4

from page_network_observer.core.config import CONFIG, NetworkConfig
from page_network_observer.core.exceptions import NavigationError, PageClosedError
from page_network_observer.browser.views import Frame
from page_network_observer.network.events import (
    EventHandler,
    EventLogger,
    EventType,
    NetworkEventBus,
    SubscriptionHandle,
)
from page_network_observer.network.tracker import NetworkTracker
from page_network_observer.network.views import ResponseRecord
from page_network_observer.network.waiters import AwaitableSignal, EventPredicate

logger = logging.getLogger(__name__)


class Navigator(Protocol):
    """External collaborator that loads a URL into a frame.

    It reports what happens through the page's tracker and frame methods
    before returning.
    """

    def navigate(self, page: "NetworkPage", frame_id: str, url: str) -> None:
        ...


class NetworkPage:
    """
    Network view of a single page.

    Provides:
    - One event bus and one tracker per page
    - The frame tree the tracker resolves frame ids against
    - Listener registration and one-shot waits
    - Navigation through an injected navigator
    """

    def __init__(
        self,
        navigator: Optional[Navigator] = None,
        config: Optional[NetworkConfig] = None,
        main_frame_id: Optional[str] = None,
    ):
        """
        Initialize a page.

        Args:
            navigator: Collaborator used by navigate()
            config: Network configuration, defaults to the global one
            main_frame_id: Id of the main frame, generated when omitted
        """
        self.config = config or CONFIG.network
        self.page_id = str(uuid4())[:8]
        self._navigator = navigator

        self._bus = NetworkEventBus(raise_handler_errors=self.config.raise_handler_errors)
        self._event_logger = EventLogger(self._bus)
        self._frames: Dict[str, Frame] = {}
        self._main_frame = self.attach_frame(main_frame_id or uuid4().hex)
        self._tracker = NetworkTracker(
            self._bus,
            frame_resolver=self.frame,
            strict=self.config.strict_signals,
        )
        self._waiters: "weakref.WeakSet[AwaitableSignal]" = weakref.WeakSet()
        self._is_closed = False

    @property
    def bus(self) -> NetworkEventBus:
        """Get the event bus."""
        return self._bus

    @property
    def tracker(self) -> NetworkTracker:
        """Get the network tracker."""
        return self._tracker

    @property
    def main_frame(self) -> Frame:
        return self._main_frame

    @property
    def url(self) -> str:
        return self._main_frame.url

    @property
    def is_closed(self) -> bool:
        return self._is_closed

    def _ensure_open(self, operation: str) -> None:
        if self._is_closed:
            raise PageClosedError(operation)

    # Frames

    def frame(self, frame_id: Optional[str]) -> Optional[Frame]:
        """Look up a frame by id."""
        if frame_id is None:
            return None
        return self._frames.get(frame_id)

    def frames(self) -> List[Frame]:
        """All attached frames, main frame first."""
        return list(self._frames.values())

    def attach_frame(
        self,
        frame_id: str,
        parent_id: Optional[str] = None,
        name: str = "",
    ) -> Frame:
        """Register a frame. Frames without a known parent hang off the main frame."""
        existing = self._frames.get(frame_id)
        if existing is not None:
            return existing

        parent = self._frames.get(parent_id) if parent_id else None
        if parent is None and self._frames:
            parent = self._main_frame
        frame = Frame(frame_id=frame_id, name=name, parent=parent)
        if parent is not None:
            parent.child_frames.append(frame)
        self._frames[frame_id] = frame
        logger.debug(f"Frame attached: {frame_id}")
        return frame

    def detach_frame(self, frame_id: str) -> None:
        """Drop a frame and its children. The main frame cannot be detached."""
        frame = self._frames.get(frame_id)
        if frame is None or frame is self._main_frame:
            return
        for child in list(frame.child_frames):
            self.detach_frame(child.frame_id)
        if frame.parent is not None and frame in frame.parent.child_frames:
            frame.parent.child_frames.remove(frame)
        frame._detached = True
        del self._frames[frame_id]
        logger.debug(f"Frame detached: {frame_id}")

    def frame_navigated(self, frame_id: str, url: str) -> None:
        """Record the URL a frame committed to."""
        frame = self._frames.get(frame_id)
        if frame is None:
            logger.warning(f"Navigation for unknown frame {frame_id} ignored")
            return
        frame._url = url

    # Listeners

    def on(self, event_type: EventType, handler: EventHandler) -> SubscriptionHandle:
        """Subscribe to a network event of this page."""
        return self._bus.subscribe(event_type, handler)

    def remove_listener(self, handle: SubscriptionHandle) -> None:
        """Remove a listener. Removing it twice is a no-op."""
        self._bus.unsubscribe(handle)

    def expect_event(
        self,
        event_type: EventType,
        predicate: Optional[EventPredicate] = None,
        timeout: Optional[int] = None,
    ) -> AwaitableSignal:
        """
        Start waiting for the next event of a type.

        Call this before the action that triggers the event.
        """
        self._ensure_open(f"expect {EventType(event_type).value}")
        timeout = self.config.signal_timeout if timeout is None else timeout
        signal = AwaitableSignal.expect(self._bus, event_type, predicate=predicate, timeout=timeout)
        self._waiters.add(signal)
        return signal

    # Navigation

    def navigate(self, url: str) -> Optional[ResponseRecord]:
        """
        Load a URL into the main frame.

        Returns:
            Response of the last document request of the navigation's
            redirect chain, or None if no document request was made
            or the final request got no response.
        """
        self._ensure_open(f"navigate {url}")
        if self._navigator is None:
            raise NavigationError("No navigator attached to page", details=url)

        start = len(self._tracker.requests())
        logger.info(f"Navigating to: {url}")
        self._navigator.navigate(self, self._main_frame.frame_id, url)

        documents = [
            record for record in self._tracker.requests()[start:]
            if record.is_navigation_request
            and record.frame_id == self._main_frame.frame_id
        ]
        if not documents:
            return None
        return documents[0].redirect_chain()[-1].response

    def get_event_log(self) -> List[Dict[str, Any]]:
        """Get the event log."""
        return self._event_logger.get_events()

    def close(self) -> None:
        """Close the page: drop further signals and release pending waits."""
        if self._is_closed:
            return
        logger.info(f"Closing page {self.page_id}")
        self._is_closed = True
        self._tracker.close()
        for signal in list(self._waiters):
            signal.cancel(f"page {self.page_id} closed")
        self._bus.clear_handlers()

    def __enter__(self) -> "NetworkPage":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
