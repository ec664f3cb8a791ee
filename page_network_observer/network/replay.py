"""Replay of recorded raw lifecycle signals."""

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Dict, Iterable, Iterator, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from page_network_observer.core.exceptions import ReplayError

if TYPE_CHECKING:
    from page_network_observer.browser.page import NetworkPage

logger = logging.getLogger(__name__)


class RequestStartedSignal(BaseModel):
    """The engine issued a request."""
    kind: Literal["request_started"]
    request_id: str = Field(description="Engine request id")
    url: str
    method: str = Field(default="GET")
    resource_type: str = Field(default="other")
    frame_id: Optional[str] = Field(default=None, description="Issuing frame, main frame when omitted")
    redirected_from_id: Optional[str] = Field(default=None)


class ResponseReceivedSignal(BaseModel):
    """Response headers arrived."""
    kind: Literal["response_received"]
    request_id: str
    status: int
    status_text: str = Field(default="")
    headers: Dict[str, str] = Field(default_factory=dict)


class RequestFinishedSignal(BaseModel):
    """The response body was fully loaded."""
    kind: Literal["request_finished"]
    request_id: str


class RequestFailedSignal(BaseModel):
    """The exchange failed with an engine-specific error text."""
    kind: Literal["request_failed"]
    request_id: str
    error_text: str


class FrameNavigatedSignal(BaseModel):
    """A frame committed a navigation."""
    kind: Literal["frame_navigated"]
    frame_id: Optional[str] = Field(default=None, description="Main frame when omitted")
    url: str
    parent_id: Optional[str] = Field(default=None)
    name: str = Field(default="")


RawSignal = Annotated[
    Union[
        RequestStartedSignal,
        ResponseReceivedSignal,
        RequestFinishedSignal,
        RequestFailedSignal,
        FrameNavigatedSignal,
    ],
    Field(discriminator="kind"),
]

_signal_adapter = TypeAdapter(RawSignal)


def parse_signals(lines: Iterable[str]) -> Iterator[RawSignal]:
    """
    Parse newline-delimited JSON signals. Blank lines and lines starting
    with '#' are skipped.

    Raises:
        ReplayError: a line is not valid JSON or not a known signal
    """
    for line_number, line in enumerate(lines, start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            yield _signal_adapter.validate_python(json.loads(line))
        except json.JSONDecodeError as e:
            raise ReplayError(line_number, f"invalid JSON: {e.msg}")
        except ValidationError as e:
            raise ReplayError(line_number, "invalid signal", details=str(e))


def apply_signal(page: "NetworkPage", signal: RawSignal) -> None:
    """Feed one raw signal into a page."""
    tracker = page.tracker
    if isinstance(signal, RequestStartedSignal):
        tracker.on_request_started(
            signal.url,
            signal.method,
            signal.resource_type,
            frame_id=signal.frame_id or page.main_frame.frame_id,
            redirected_from_id=signal.redirected_from_id,
            request_id=signal.request_id,
        )
    elif isinstance(signal, ResponseReceivedSignal):
        tracker.on_response_received(
            signal.request_id,
            signal.status,
            status_text=signal.status_text,
            headers=signal.headers,
        )
    elif isinstance(signal, RequestFinishedSignal):
        tracker.on_request_finished(signal.request_id)
    elif isinstance(signal, RequestFailedSignal):
        tracker.on_request_failed(signal.request_id, signal.error_text)
    elif isinstance(signal, FrameNavigatedSignal):
        frame_id = signal.frame_id or page.main_frame.frame_id
        if page.frame(frame_id) is None:
            page.attach_frame(frame_id, parent_id=signal.parent_id, name=signal.name)
        page.frame_navigated(frame_id, signal.url)


def replay_file(page: "NetworkPage", path: Union[str, Path]) -> List[RawSignal]:
    """Replay every signal of a recording into the page, in order."""
    path = Path(path)
    logger.info(f"Replaying signals from {path}")
    with path.open("r", encoding="utf-8") as fh:
        signals = list(parse_signals(fh))
    for signal in signals:
        apply_signal(page, signal)
    logger.info(f"Replayed {len(signals)} signal(s)")
    return signals
