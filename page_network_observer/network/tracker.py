"""Request lifecycle tracking for a single page."""

import logging
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from page_network_observer.core.config import CONFIG
from page_network_observer.core.exceptions import (
    RecordStateError,
    TrackerError,
    UnknownRequestError,
)
from page_network_observer.core.logging import log_protocol_violation
from page_network_observer.network.events import (
    NetworkEvent,
    NetworkEventBus,
    RequestEvent,
    RequestFailedEvent,
    RequestFinishedEvent,
    ResponseEvent,
)
from page_network_observer.network.views import (
    FailureRecord,
    RequestRecord,
    ResourceType,
    ResponseRecord,
)

logger = logging.getLogger(__name__)

FrameResolver = Callable[[Optional[str]], Optional[object]]


class NetworkTracker:
    """
    Applies raw lifecycle signals to the request records of one page.

    Every accepted signal updates exactly one record and publishes exactly
    one event on the bus. For a single exchange the order is always
    request, response (if any), then requestfinished or requestfailed.

    Signals that break that protocol (unknown ids, a second terminal
    signal, a second response) raise when ``strict`` is set and are logged
    and dropped otherwise. A new request is always recorded and published;
    problems with its id or redirect source are only logged.
    """

    def __init__(
        self,
        bus: NetworkEventBus,
        frame_resolver: Optional[FrameResolver] = None,
        strict: Optional[bool] = None,
    ):
        """
        Initialize the tracker.

        Args:
            bus: Bus that receives one event per accepted transition
            frame_resolver: Maps a frame id to its frame object
            strict: Raise protocol violations; defaults to NETWORK_STRICT_SIGNALS
        """
        self.bus = bus
        self.strict = CONFIG.network.strict_signals if strict is None else strict
        self._frame_resolver = frame_resolver or (lambda frame_id: None)
        self._records: Dict[str, RequestRecord] = {}
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _violation(self, signal: str, error: TrackerError) -> None:
        if self.strict:
            raise error
        log_protocol_violation(signal, error)

    def _lookup(self, request_id: str, signal: str) -> Optional[RequestRecord]:
        record = self._records.get(request_id)
        if record is None:
            self._violation(signal, UnknownRequestError(request_id, signal))
        return record

    def _accepting(self, signal: str) -> bool:
        if self._closed:
            logger.debug(f"Ignoring '{signal}' after page close")
            return False
        return True

    def _publish(self, event: NetworkEvent) -> None:
        failures = self.bus.publish(event)
        if failures:
            logger.warning(
                f"{len(failures)} handler(s) failed for '{event.event_type.value}' "
                f"on {event.request.url}"
            )

    def on_request_started(
        self,
        url: str,
        method: str,
        resource_type: str,
        frame_id: Optional[str] = None,
        redirected_from_id: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> RequestRecord:
        """
        Create a record for a new request and publish ``request``.

        Args:
            url: Request URL
            method: HTTP method
            resource_type: Engine resource type (document, stylesheet, ...)
            frame_id: Id of the frame that issued the request
            redirected_from_id: Id of the request this one continues after a redirect
            request_id: External id; a new one is generated when omitted

        Returns:
            The new record. A record is returned even if the signal is
            dropped after page close. A record whose id is already in use
            is published but not registered.
        """
        record = RequestRecord(
            request_id=request_id or uuid4().hex,
            url=url,
            method=method.upper(),
            resource_type=ResourceType.parse(resource_type),
            frame_id=frame_id,
        )
        record._bind_frame(self._frame_resolver(frame_id))

        if not self._accepting("request_started"):
            return record

        # request_started never fails: violations are logged and the record
        # is still published, unlinked
        duplicate = record.request_id in self._records
        if duplicate:
            log_protocol_violation(
                "request_started",
                RecordStateError(record.request_id, "request id already in use"),
            )

        if redirected_from_id is not None:
            previous = self._records.get(redirected_from_id)
            if previous is None:
                log_protocol_violation(
                    "request_started",
                    UnknownRequestError(redirected_from_id, "request_started"),
                )
            else:
                try:
                    record._link_redirect(previous)
                except RecordStateError as e:
                    log_protocol_violation("request_started", e)

        if not duplicate:
            self._records[record.request_id] = record
        logger.debug(f"Request started: {record.method} {record.url}")
        self._publish(RequestEvent(record=record))
        return record

    def on_response_received(
        self,
        request_id: str,
        status: int,
        status_text: str = "",
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        """Attach the response to its request and publish ``response``."""
        if not self._accepting("response_received"):
            return
        record = self._lookup(request_id, "response_received")
        if record is None:
            return

        response = ResponseRecord(
            request=record,
            status=int(status),
            url=record.url,
            status_text=status_text,
            headers=dict(headers or {}),
        )
        try:
            record._set_response(response)
        except RecordStateError as e:
            self._violation("response_received", e)
            return

        logger.debug(f"Response received: {response.status} {record.url}")
        self._publish(ResponseEvent(response=response))

    def on_request_finished(self, request_id: str) -> None:
        """Mark the exchange as finished and publish ``requestfinished``."""
        if not self._accepting("request_finished"):
            return
        record = self._lookup(request_id, "request_finished")
        if record is None:
            return

        try:
            record._mark_finished()
        except RecordStateError as e:
            self._violation("request_finished", e)
            return

        self._publish(RequestFinishedEvent(record=record))

    def on_request_failed(self, request_id: str, error_text: str) -> None:
        """Record the failure and publish ``requestfailed``."""
        if not self._accepting("request_failed"):
            return
        record = self._lookup(request_id, "request_failed")
        if record is None:
            return

        try:
            record._set_failure(FailureRecord(error_text=error_text))
            record._mark_finished()
        except RecordStateError as e:
            self._violation("request_failed", e)
            return

        logger.info(f"Request failed: {record.url} ({error_text})")
        self._publish(RequestFailedEvent(record=record))

    def get(self, request_id: str) -> Optional[RequestRecord]:
        """Get a record by id."""
        return self._records.get(request_id)

    def requests(self) -> List[RequestRecord]:
        """All records, in creation order."""
        return list(self._records.values())

    def in_flight(self) -> List[RequestRecord]:
        """Records that have not reached a terminal event yet."""
        return [r for r in self._records.values() if not r.is_finished]

    def close(self) -> None:
        """Stop accepting signals and release callers waiting on open exchanges."""
        if self._closed:
            return
        self._closed = True
        pending = self.in_flight()
        for record in pending:
            record._mark_closed()
        logger.info(f"Tracker closed with {len(pending)} request(s) in flight")
