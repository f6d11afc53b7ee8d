"""Positioning of wrapped caption lines.

Blocks are centred vertically around an anchor offset from the frame
middle. Lines without a highlight are drawn whole and centred by the
renderer on their measured width. Lines with a highlight are split into
one draw per word so colors can differ; their horizontal positions come
from an estimated per-character width, since drawtext cannot report the
width of a neighbouring draw. That estimate assumes monospace glyphs and
drifts on proportional fonts.
"""

from __future__ import annotations

import math
from typing import Sequence

from caption_overlay.config import OverlayConfig
from caption_overlay.logging import get_logger
from caption_overlay.overlay.models import (
    Color,
    DrawUnit,
    HorizontalPosition,
    Line,
    TimeInterval,
    VerticalPosition,
)

logger = get_logger(__name__)


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class LayoutEngine:
    """Turns wrapped lines into positioned draw units."""

    def __init__(self, config: OverlayConfig):
        self.config = config
        self.neutral_glow = Color(config.neutral_glow_color)

    def line_offsets(
        self, line_count: int, font_size: int, base_vertical_offset: int
    ) -> list[int]:
        """Vertical offsets from frame middle for each line of a block.

        Line ``i`` sits at ``i * line_height - total_height / 2`` (rounded)
        plus ``base_vertical_offset``, centring the block on its anchor.
        """
        line_height = font_size * self.config.line_height_multiplier
        total_height = line_count * line_height
        return [
            round_half_up(i * line_height - total_height / 2) + base_vertical_offset
            for i in range(line_count)
        ]

    def layout(
        self,
        lines: Sequence[Line],
        highlights: frozenset[int],
        font_size: int,
        base_vertical_offset: int,
        font_color: Color,
        highlight_color: Color,
        enable: TimeInterval | None = None,
    ) -> list[DrawUnit]:
        """Position every line of a caption block.

        Args:
            lines: Wrapped lines of the block
            highlights: Block-level word indices drawn in ``highlight_color``
            font_size: Font size in pixels
            base_vertical_offset: Block anchor relative to frame middle
            font_color: Fill color for ordinary text
            highlight_color: Fill and glow color for highlighted words
            enable: Visibility window shared by every unit of the block

        Returns:
            Draw units in line order, words left to right; empty for no lines
        """
        units: list[DrawUnit] = []
        offsets = self.line_offsets(len(lines), font_size, base_vertical_offset)

        for line, y_offset in zip(lines, offsets):
            y = VerticalPosition(offset=y_offset)
            if any(word.index in highlights for word in line.words):
                units.extend(
                    self._layout_words(line, highlights, y, font_size, font_color, highlight_color, enable)
                )
            else:
                units.append(
                    DrawUnit(
                        text=line.text,
                        x=HorizontalPosition(),
                        y=y,
                        font_size=font_size,
                        color=font_color,
                        glow_color=self.neutral_glow,
                        enable=enable,
                    )
                )

        logger.debug(
            "Laid out caption block",
            extra={"lines": len(lines), "units": len(units), "highlights": sorted(highlights)},
        )
        return units

    def _layout_words(
        self,
        line: Line,
        highlights: frozenset[int],
        y: VerticalPosition,
        font_size: int,
        font_color: Color,
        highlight_color: Color,
        enable: TimeInterval | None,
    ) -> list[DrawUnit]:
        char_width = font_size * self.config.position_char_width_factor
        line_width = round_half_up(len(line.text) * char_width)

        units = []
        chars_before = 0
        for word in line.words:
            highlighted = word.index in highlights
            units.append(
                DrawUnit(
                    text=word.text,
                    x=HorizontalPosition(
                        line_width=line_width,
                        offset=round_half_up(chars_before * char_width),
                    ),
                    y=y,
                    font_size=font_size,
                    color=highlight_color if highlighted else font_color,
                    glow_color=highlight_color if highlighted else self.neutral_glow,
                    enable=enable,
                )
            )
            # The word plus the space that follows it
            chars_before += len(word.text) + 1

        return units
