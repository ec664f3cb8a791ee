"""One-shot waits on network events."""

import asyncio
import logging
import threading
from typing import Callable, Optional

from page_network_observer.core.config import CONFIG
from page_network_observer.core.exceptions import (
    AlreadyConsumedError,
    PageClosedError,
    TimeoutError,
)
from page_network_observer.network.events import (
    EventType,
    NetworkEvent,
    NetworkEventBus,
)

logger = logging.getLogger(__name__)

EventPredicate = Callable[[NetworkEvent], bool]


class AwaitableSignal:
    """
    Handle on the next occurrence of an event type.

    Create it with ``expect`` *before* triggering the action that causes the
    event, then call ``value()`` once to collect the event.

    Usage:
        signal = AwaitableSignal.expect(bus, EventType.REQUEST_FINISHED)
        page.navigate(url)
        event = signal.value()
    """

    def __init__(
        self,
        bus: NetworkEventBus,
        event_type: EventType,
        predicate: Optional[EventPredicate] = None,
        timeout: Optional[int] = None,
    ):
        self.event_type = EventType(event_type)
        self.predicate = predicate
        self.timeout = CONFIG.network.signal_timeout if timeout is None else timeout
        self._bus = bus
        self._fired = threading.Event()
        self._lock = threading.Lock()
        self._event: Optional[NetworkEvent] = None
        self._exception: Optional[Exception] = None
        self._consumed = False
        self._expired = False
        self._handle = bus.subscribe(self.event_type, self._on_event)

    @classmethod
    def expect(
        cls,
        bus: NetworkEventBus,
        event_type: EventType,
        predicate: Optional[EventPredicate] = None,
        timeout: Optional[int] = None,
    ) -> "AwaitableSignal":
        """Subscribe now and return a handle for the next matching event."""
        return cls(bus, event_type, predicate=predicate, timeout=timeout)

    def _on_event(self, event: NetworkEvent) -> None:
        if self._fired.is_set():
            return
        if self.predicate is not None and not self.predicate(event):
            return
        self._complete(event=event)

    def _complete(
        self,
        event: Optional[NetworkEvent] = None,
        exception: Optional[Exception] = None,
    ) -> None:
        with self._lock:
            if self._fired.is_set() or self._expired:
                return
            self._event = event
            self._exception = exception
            self._fired.set()
        self._bus.unsubscribe(self._handle)

    def cancel(self, reason: str = "cancelled") -> None:
        """Fail any pending or future wait with PageClosedError."""
        logger.debug(f"Cancelling signal for '{self.event_type.value}': {reason}")
        self._complete(exception=PageClosedError(self.event_type.value, details=reason))

    @property
    def done(self) -> bool:
        """True once the event fired, or the signal was cancelled."""
        return self._fired.is_set()

    def _consume(self) -> None:
        with self._lock:
            if self._consumed:
                raise AlreadyConsumedError(self.event_type.value)
            self._consumed = True

    def _result(self, fired: bool, timeout: int) -> NetworkEvent:
        if not fired:
            # The event may have landed between the wait timing out and here
            with self._lock:
                fired = self._fired.is_set()
                self._expired = not fired
            if not fired:
                self._bus.unsubscribe(self._handle)
                raise TimeoutError(f"expect {self.event_type.value}", timeout)
        if self._exception is not None:
            raise self._exception
        return self._event

    def value(self, timeout: Optional[int] = None) -> NetworkEvent:
        """
        Block until the event fires and return it.

        Args:
            timeout: Milliseconds to wait, defaults to the signal's timeout

        Raises:
            TimeoutError: the event did not fire in time
            AlreadyConsumedError: value() or wait() was already called
            PageClosedError: the signal was cancelled by page close
        """
        self._consume()
        timeout = self.timeout if timeout is None else timeout
        return self._result(self._fired.wait(timeout / 1000), timeout)

    async def wait(self, timeout: Optional[int] = None) -> NetworkEvent:
        """Async variant of value(); the event loop keeps dispatching meanwhile."""
        self._consume()
        timeout = self.timeout if timeout is None else timeout
        loop = asyncio.get_running_loop()
        fired = await loop.run_in_executor(None, self._fired.wait, timeout / 1000)
        return self._result(fired, timeout)

    def __repr__(self) -> str:
        state = "done" if self.done else "pending"
        return f"<AwaitableSignal {self.event_type.value} {state}>"
