"""FFmpeg filtergraph syntax for draw commands.

This is the only module that knows the drawtext option grammar. Text and
paths are escaped here, once, so nothing upstream interpolates raw strings
into the filtergraph.
"""

from __future__ import annotations

from caption_overlay.overlay.filtergraph import FilterGraph
from caption_overlay.overlay.models import (
    Color,
    DrawCommand,
    HorizontalPosition,
    TimeInterval,
    VerticalPosition,
)


def escape_text(text: str) -> str:
    """Escape a value that is placed inside single quotes in a drawtext option.

    Backslashes first, then quotes, option separators and ``%``. This covers
    filter option parsing only; drawtext's own text expansion is switched
    off per command, so the unescaped value is drawn verbatim.
    """
    text = text.replace("\\", "\\\\")
    text = text.replace("'", "'\\''")
    text = text.replace(":", "\\:")
    text = text.replace("%", "\\%")
    return text


def _number(value: float) -> str:
    return f"{value:g}"


def format_color(color: Color) -> str:
    if color.alpha is None:
        return color.value
    return f"{color.value}@{_number(color.alpha)}"


def format_x(position: HorizontalPosition) -> str:
    if position.is_centered:
        return "(w-tw)/2"
    expr = f"(w-{position.line_width})/2"
    if position.offset > 0:
        expr += f"+{position.offset}"
    return expr


def format_y(position: VerticalPosition) -> str:
    if position.offset >= 0:
        return f"(h/2)+{position.offset}"
    return f"(h/2){position.offset}"


def format_enable(window: TimeInterval) -> str:
    """Render a window as a predicate over the playback time ``t``."""
    if window.start is not None and window.end is not None:
        return f"gte(t,{_number(window.start)})*lt(t,{_number(window.end)})"
    if window.end is not None:
        return f"lt(t,{_number(window.end)})"
    return f"gte(t,{_number(window.start)})"


class FilterGraphSerializer:
    """Renders draw commands as a comma-separated ``-vf`` filter string.

    Args:
        font_file: Font passed to every drawtext; FFmpeg's default font
            is used when None
    """

    def __init__(self, font_file: str | None = None):
        self.font_file = font_file

    def serialize_command(self, command: DrawCommand) -> str:
        options = [
            f"text='{escape_text(command.text)}'",
            "expansion=none",
            f"fontsize={command.font_size}",
            f"fontcolor={format_color(command.font_color)}",
            f"x={format_x(command.x)}",
            f"y={format_y(command.y)}",
        ]
        if self.font_file:
            options.append(f"fontfile='{escape_text(self.font_file)}'")
        options.append(f"borderw={command.border_width}")
        options.append(f"bordercolor={format_color(command.border_color)}")
        if command.enable is not None:
            options.append(f"enable='{format_enable(command.enable)}'")
        return "drawtext=" + ":".join(options)

    def serialize(self, graph: FilterGraph) -> str:
        """Serialize the whole graph; an empty graph gives an empty string."""
        return ",".join(self.serialize_command(command) for command in graph)
