"""Data models for network exchanges observed on a page."""

import threading
import weakref
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Dict, FrozenSet, List, Optional

from page_network_observer.core.config import CONFIG
from page_network_observer.core.exceptions import (
    PageClosedError,
    RecordStateError,
    TimeoutError,
)

if TYPE_CHECKING:
    from page_network_observer.browser.views import Frame


class ResourceType(str, Enum):
    """Resource types as reported by the browser engine."""
    DOCUMENT = "document"
    STYLESHEET = "stylesheet"
    IMAGE = "image"
    MEDIA = "media"
    FONT = "font"
    SCRIPT = "script"
    TEXTTRACK = "texttrack"
    XHR = "xhr"
    FETCH = "fetch"
    EVENTSOURCE = "eventsource"
    WEBSOCKET = "websocket"
    MANIFEST = "manifest"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> "ResourceType":
        """Map an engine-reported resource type, falling back to OTHER."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class FailureRecord:
    """Why an exchange failed. The text is engine-specific and kept verbatim."""
    error_text: str


@dataclass(frozen=True, eq=False)
class ResponseRecord:
    """Response headers received for a request. Immutable once created."""
    request: "RequestRecord"
    status: int
    url: str
    status_text: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def ok(self) -> bool:
        """True for 2xx statuses."""
        return 200 <= self.status <= 299

    def finished(self, timeout: Optional[int] = None) -> Optional[str]:
        """
        Wait for the exchange to end.

        Returns None if the request finished, or the failure's error text.
        """
        self.request.wait_for_finished(timeout)
        if self.request.failure:
            return self.request.failure.error_text
        return None

    def __repr__(self) -> str:
        return f"<ResponseRecord status={self.status} url={self.url!r}>"


@dataclass(eq=False)
class RequestRecord:
    """
    Identity and state of one network exchange.

    The identity fields (``request_id``, ``url``, ``method``,
    ``resource_type``, ``frame_id``, ``timestamp``) are read-only.
    ``response`` and ``failure`` are each assigned at most once by the
    tracker; a response may be followed by a failure, in which case both
    stay populated.
    """
    request_id: str
    url: str
    method: str
    resource_type: ResourceType
    frame_id: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)
    _frame_ref: Optional["weakref.ReferenceType[Frame]"] = field(default=None, init=False, repr=False)
    _response: Optional[ResponseRecord] = field(default=None, init=False, repr=False)
    _failure: Optional[FailureRecord] = field(default=None, init=False, repr=False)
    _redirected_from: Optional["RequestRecord"] = field(default=None, init=False, repr=False)
    _redirected_to: Optional["RequestRecord"] = field(default=None, init=False, repr=False)
    _terminal: threading.Event = field(default_factory=threading.Event, init=False, repr=False)
    _finished: bool = field(default=False, init=False, repr=False)
    _closed: bool = field(default=False, init=False, repr=False)

    _READ_ONLY: ClassVar[FrozenSet[str]] = frozenset(
        {"request_id", "url", "method", "resource_type", "frame_id", "timestamp"}
    )

    def __setattr__(self, name: str, value: Any) -> None:
        if name in self._READ_ONLY and name in self.__dict__:
            raise AttributeError(f"RequestRecord.{name} is read-only")
        super().__setattr__(name, value)

    @property
    def response(self) -> Optional[ResponseRecord]:
        return self._response

    @property
    def failure(self) -> Optional[FailureRecord]:
        return self._failure

    @property
    def frame(self) -> Optional["Frame"]:
        """The owning frame, or None once it has been garbage-collected."""
        if self._frame_ref is None:
            return None
        return self._frame_ref()

    @property
    def redirected_from(self) -> Optional["RequestRecord"]:
        return self._redirected_from

    @property
    def redirected_to(self) -> Optional["RequestRecord"]:
        return self._redirected_to

    @property
    def is_navigation_request(self) -> bool:
        return self.resource_type == ResourceType.DOCUMENT

    @property
    def is_finished(self) -> bool:
        """True once requestfinished or requestfailed has been applied."""
        return self._finished

    def redirect_chain(self) -> List["RequestRecord"]:
        """All requests of this redirect chain, origin first."""
        origin = self
        while origin._redirected_from is not None:
            origin = origin._redirected_from
        chain = []
        current: Optional[RequestRecord] = origin
        while current is not None:
            chain.append(current)
            current = current._redirected_to
        return chain

    def wait_for_finished(self, timeout: Optional[int] = None) -> None:
        """Block until the exchange reaches a terminal event."""
        timeout = CONFIG.network.signal_timeout if timeout is None else timeout
        if not self._terminal.wait(timeout / 1000):
            raise TimeoutError(f"requestfinished {self.url}", timeout)
        if not self._finished and self._closed:
            raise PageClosedError(f"requestfinished {self.url}")

    # Mutators used by the tracker only

    def _bind_frame(self, frame: Optional["Frame"]) -> None:
        self._frame_ref = weakref.ref(frame) if frame is not None else None

    def _link_redirect(self, previous: "RequestRecord") -> None:
        if previous._redirected_to is not None:
            raise RecordStateError(
                previous.request_id,
                f"already redirected to {previous._redirected_to.request_id}"
            )
        previous._redirected_to = self
        self._redirected_from = previous

    def _set_response(self, response: ResponseRecord) -> None:
        if self._response is not None:
            raise RecordStateError(self.request_id, "response already received")
        if self._finished:
            raise RecordStateError(self.request_id, "response after terminal event")
        self._response = response

    def _set_failure(self, failure: FailureRecord) -> None:
        if self._failure is not None:
            raise RecordStateError(self.request_id, "failure already recorded")
        if self._finished:
            raise RecordStateError(self.request_id, "failure after terminal event")
        self._failure = failure

    def _mark_finished(self) -> None:
        if self._finished:
            raise RecordStateError(self.request_id, "exchange already terminated")
        self._finished = True
        self._terminal.set()

    def _mark_closed(self) -> None:
        self._closed = True
        self._terminal.set()

    def __repr__(self) -> str:
        return (
            f"<RequestRecord {self.method} {self.url!r} "
            f"type={self.resource_type.value} id={self.request_id}>"
        )
