"""Data models for page frames."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(eq=False)
class Frame:
    """A frame of a page. Identity is the object itself."""
    frame_id: str
    name: str = ""
    parent: Optional["Frame"] = field(default=None, repr=False)
    _url: str = field(default="", repr=False)
    _detached: bool = field(default=False, init=False, repr=False)
    child_frames: List["Frame"] = field(default_factory=list, init=False, repr=False)

    @property
    def url(self) -> str:
        """URL of the last committed navigation."""
        return self._url

    @property
    def is_main_frame(self) -> bool:
        return self.parent is None

    @property
    def is_detached(self) -> bool:
        return self._detached

    def __repr__(self) -> str:
        return f"<Frame id={self.frame_id} url={self._url!r}>"
