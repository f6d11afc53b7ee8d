"""Caption and watermark overlay generation.

Turns caption text, a channel name and styling into an ordered sequence of
drawtext commands, and serializes them into an FFmpeg filter string.
"""

from caption_overlay.overlay.builder import OverlayBuilder
from caption_overlay.overlay.filtergraph import FilterGraph, assemble
from caption_overlay.overlay.glow import GlowCompositor
from caption_overlay.overlay.highlights import select_highlights
from caption_overlay.overlay.layout import LayoutEngine
from caption_overlay.overlay.models import (
    CaptionBlock,
    CaptionRole,
    Color,
    DrawCommand,
    DrawUnit,
    HorizontalPosition,
    Line,
    TimeInterval,
    VerticalPosition,
    Word,
)
from caption_overlay.overlay.sanitizer import sanitize, sanitize_channel_name
from caption_overlay.overlay.serializer import FilterGraphSerializer, escape_text
from caption_overlay.overlay.wrapping import max_chars_per_line, split_words, wrap

__all__ = [
    "OverlayBuilder",
    "FilterGraph",
    "assemble",
    "GlowCompositor",
    "select_highlights",
    "LayoutEngine",
    "CaptionBlock",
    "CaptionRole",
    "Color",
    "DrawCommand",
    "DrawUnit",
    "HorizontalPosition",
    "Line",
    "TimeInterval",
    "VerticalPosition",
    "Word",
    "sanitize",
    "sanitize_channel_name",
    "FilterGraphSerializer",
    "escape_text",
    "max_chars_per_line",
    "split_words",
    "wrap",
]
