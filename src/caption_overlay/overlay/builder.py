"""From request fields to a complete filter graph.

Each caption block goes through sanitize, split, highlight selection,
wrapping and layout; the watermark is a single centred unit. Nothing here
performs I/O, and identical inputs always yield an identical graph.
"""

from __future__ import annotations

from caption_overlay.config import DEFAULT_CONFIG, OverlayConfig
from caption_overlay.logging import get_logger
from caption_overlay.overlay.filtergraph import FilterGraph, assemble
from caption_overlay.overlay.glow import GlowCompositor
from caption_overlay.overlay.highlights import select_highlights
from caption_overlay.overlay.layout import LayoutEngine
from caption_overlay.overlay.models import (
    CaptionBlock,
    CaptionRole,
    Color,
    DrawUnit,
    HorizontalPosition,
    TimeInterval,
    VerticalPosition,
)
from caption_overlay.overlay.sanitizer import sanitize, sanitize_channel_name
from caption_overlay.overlay.wrapping import max_chars_per_line, split_words, wrap
from caption_overlay.request import OverlayRequest

logger = get_logger(__name__)


class OverlayBuilder:
    """Builds draw units and filter graphs for overlay requests.

    Example usage:
        builder = OverlayBuilder()
        request = build_request(first_caption="the quick brown fox jumps")
        graph = builder.build(request, frame_width=1080)
    """

    def __init__(self, config: OverlayConfig = DEFAULT_CONFIG):
        self.config = config
        self.layout_engine = LayoutEngine(config)
        self.caption_compositor = GlowCompositor(config.caption_glow)
        self.watermark_compositor = GlowCompositor(config.watermark_glow)

    def caption_blocks(self, request: OverlayRequest) -> tuple[CaptionBlock, CaptionBlock]:
        """The FIRST and SECOND blocks with their fixed visibility windows."""
        return (
            CaptionBlock(
                raw_text=request.first_caption,
                role=CaptionRole.FIRST,
                visible_window=TimeInterval.until(self.config.first_caption_end),
            ),
            CaptionBlock(
                raw_text=request.second_caption,
                role=CaptionRole.SECOND,
                visible_window=TimeInterval.since(self.config.second_caption_start),
            ),
        )

    def build_block(
        self,
        block: CaptionBlock,
        font_size: int,
        frame_width: int,
        font_color: Color,
        highlight_color: Color,
    ) -> list[DrawUnit]:
        """Lay out one caption block; a blank block yields no units."""
        words = split_words(sanitize(block.raw_text))
        if not words:
            return []

        # Highlights are chosen over the whole block, before wrapping
        highlights = select_highlights(len(words), block.role)
        budget = max_chars_per_line(frame_width, font_size, self.config)
        lines = wrap(words, budget)

        logger.debug(
            f"Wrapped {block.role.value} caption",
            extra={"words": len(words), "lines": len(lines), "max_chars": budget},
        )

        return self.layout_engine.layout(
            lines,
            highlights,
            font_size=font_size,
            base_vertical_offset=self.config.caption_vertical_offset,
            font_color=font_color,
            highlight_color=highlight_color,
            enable=block.visible_window,
        )

    def build_watermark(self, channel_name: str | None, font_color: Color) -> DrawUnit | None:
        """The always-visible channel watermark, or None for a blank name."""
        text = sanitize_channel_name(channel_name)
        if not text:
            return None
        return DrawUnit(
            text=text,
            x=HorizontalPosition(),
            y=VerticalPosition(offset=self.config.watermark_vertical_offset),
            font_size=self.config.watermark_font_size,
            color=font_color,
            glow_color=Color(self.config.neutral_glow_color),
        )

    def build(self, request: OverlayRequest, frame_width: int) -> FilterGraph:
        """Build the full graph: FIRST block, SECOND block, then watermark.

        Args:
            request: Validated request
            frame_width: Width of the video frame in pixels

        Returns:
            FilterGraph, empty when there is nothing to draw
        """
        font_color = Color(request.font_color)
        highlight_color = Color(request.highlight_color)
        first_block, second_block = self.caption_blocks(request)

        first_units = self.build_block(
            first_block, request.font_size, frame_width, font_color, highlight_color
        )
        second_units = self.build_block(
            second_block, request.font_size, frame_width, font_color, highlight_color
        )
        watermark = self.build_watermark(request.channel_name, font_color)

        graph = assemble(
            first_units,
            second_units,
            watermark,
            self.caption_compositor,
            self.watermark_compositor,
        )
        logger.info(
            "Built overlay filter graph",
            extra={
                "first_units": len(first_units),
                "second_units": len(second_units),
                "watermark": watermark is not None,
                "commands": len(graph),
            },
        )
        return graph
