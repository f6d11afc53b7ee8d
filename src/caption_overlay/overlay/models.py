"""Value types flowing through the overlay pipeline.

Everything here is immutable and built fresh for each render: caption
blocks become words and lines, lines become positioned draw units, and each
draw unit expands into typed draw commands. None of these types know the
FFmpeg syntax; ``serializer`` is the only module that does.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator


class CaptionRole(str, Enum):
    """Which of the two caption blocks a text belongs to."""

    FIRST = "first"
    SECOND = "second"


@dataclass(frozen=True)
class TimeInterval:
    """Playback-time window during which a draw is visible.

    Either bound may be open. ``start`` is inclusive, ``end`` exclusive.
    """

    start: float | None = None
    end: float | None = None

    def __post_init__(self) -> None:
        if self.start is None and self.end is None:
            raise ValueError("TimeInterval needs a start or an end")
        if self.start is not None and self.end is not None and self.end <= self.start:
            raise ValueError(f"TimeInterval end must be after start: {self.start} -> {self.end}")

    @classmethod
    def until(cls, end: float) -> "TimeInterval":
        return cls(end=end)

    @classmethod
    def since(cls, start: float) -> "TimeInterval":
        return cls(start=start)

    def contains(self, t: float) -> bool:
        if self.start is not None and t < self.start:
            return False
        if self.end is not None and t >= self.end:
            return False
        return True


@dataclass(frozen=True)
class CaptionBlock:
    """One caption block of a request.

    Attributes:
        raw_text: Caption as submitted; None or blank means no caption
        role: FIRST or SECOND, which decides highlighting
        visible_window: When the block is drawn
    """

    raw_text: str | None
    role: CaptionRole
    visible_window: TimeInterval


@dataclass(frozen=True)
class Word:
    text: str
    index: int  # 0-based position within its caption block


@dataclass(frozen=True)
class Line:
    words: tuple[Word, ...]
    index: int

    @property
    def text(self) -> str:
        return " ".join(word.text for word in self.words)

    def __len__(self) -> int:
        return len(self.text)

    def __iter__(self) -> Iterator[Word]:
        return iter(self.words)


@dataclass(frozen=True)
class HorizontalPosition:
    """Horizontal placement of a draw.

    With ``line_width`` unset the renderer centres the text on its own
    measured width. Otherwise a line of the estimated ``line_width`` pixels
    is centred on the frame and the draw starts ``offset`` pixels into it.
    """

    line_width: int | None = None
    offset: int = 0

    @property
    def is_centered(self) -> bool:
        return self.line_width is None


@dataclass(frozen=True)
class VerticalPosition:
    """Pixel offset of the draw's top edge from the frame's vertical middle."""

    offset: int = 0


@dataclass(frozen=True)
class Color:
    """A renderer color token with optional opacity.

    ``value`` is a named color (``white``), ``#RRGGBB`` or ``0xRRGGBB``.
    """

    value: str
    alpha: float | None = None

    def with_alpha(self, alpha: float) -> "Color":
        return Color(self.value, alpha)


@dataclass(frozen=True)
class DrawUnit:
    """One renderable text span: a whole line, or a single word.

    Attributes:
        text: Sanitized text to draw
        x: Horizontal placement
        y: Vertical placement
        font_size: Font size in pixels
        color: Solid fill color
        glow_color: Color of the translucent glow layers
        enable: Visibility window, None for always visible
    """

    text: str
    x: HorizontalPosition
    y: VerticalPosition
    font_size: int
    color: Color
    glow_color: Color
    enable: TimeInterval | None = None


@dataclass(frozen=True)
class DrawCommand:
    """A single drawtext invocation, fully specified."""

    text: str
    x: HorizontalPosition
    y: VerticalPosition
    font_size: int
    font_color: Color
    border_width: int
    border_color: Color
    enable: TimeInterval | None = None
