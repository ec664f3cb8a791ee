"""Custom exceptions for the network observation core."""

from typing import List, Optional


class NetworkObserverError(Exception):
    """Base exception for all network observation errors."""

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        recoverable: bool = True
    ):
        self.message = message
        self.details = details
        self.recoverable = recoverable
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}\nDetails: {self.details}"
        return self.message


class TrackerError(NetworkObserverError):
    """Errors raised while applying lifecycle signals to the tracker."""
    pass


class UnknownRequestError(TrackerError):
    """A lifecycle signal referenced a request id with no open record."""

    def __init__(
        self,
        request_id: str,
        signal: str,
        **kwargs
    ):
        self.request_id = request_id
        self.signal = signal
        super().__init__(
            f"Signal '{signal}' references unknown request: {request_id}",
            **kwargs
        )


class RecordStateError(TrackerError):
    """A lifecycle signal tried to overwrite a slot that is already set."""

    def __init__(
        self,
        request_id: str,
        reason: str,
        **kwargs
    ):
        self.request_id = request_id
        self.reason = reason
        super().__init__(
            f"Invalid transition for request {request_id}: {reason}",
            recoverable=False,
            **kwargs
        )


class NavigationError(NetworkObserverError):
    """Errors during page navigation."""
    pass


class SignalError(NetworkObserverError):
    """Errors related to one-shot event signals."""
    pass


class AlreadyConsumedError(SignalError):
    """A one-shot signal was waited on more than once."""

    def __init__(self, event_type: str, **kwargs):
        self.event_type = event_type
        super().__init__(
            f"Signal for '{event_type}' has already been consumed",
            recoverable=False,
            **kwargs
        )


class PageClosedError(SignalError):
    """The page closed while a caller was still waiting on it."""

    def __init__(self, operation: str, **kwargs):
        self.operation = operation
        super().__init__(
            f"Page closed while waiting for '{operation}'",
            recoverable=False,
            **kwargs
        )


class TimeoutError(NetworkObserverError):
    """General timeout error."""

    def __init__(
        self,
        operation: str,
        timeout: int,
        **kwargs
    ):
        self.operation = operation
        self.timeout = timeout
        super().__init__(
            f"Operation '{operation}' timed out after {timeout}ms",
            recoverable=True,
            **kwargs
        )


class EventDispatchError(NetworkObserverError):
    """One or more handlers raised while an event was being published."""

    def __init__(self, failures: List["HandlerFailure"], **kwargs):  # noqa: F821
        self.failures = failures
        summary = "; ".join(
            f"{type(f.error).__name__}: {f.error}" for f in failures
        )
        super().__init__(
            f"{len(failures)} handler(s) failed during dispatch",
            details=summary or None,
            **kwargs
        )


class ReplayError(NetworkObserverError):
    """A recorded signal could not be parsed or applied."""

    def __init__(
        self,
        line_number: int,
        message: str,
        **kwargs
    ):
        self.line_number = line_number
        super().__init__(f"Line {line_number}: {message}", **kwargs)
