"""Glow effect built from stacked drawtext passes.

drawtext has no blur, so a soft glow is faked by drawing the same text
several times: wide, nearly transparent borders first, then narrower and
more opaque ones, and finally the solid fill with a thin border.
"""

from __future__ import annotations

from typing import Sequence

from caption_overlay.config import GlowLayer
from caption_overlay.overlay.models import DrawCommand, DrawUnit


class GlowCompositor:
    """Expands a draw unit into one command per glow layer."""

    def __init__(self, layers: Sequence[GlowLayer]):
        if not layers:
            raise ValueError("GlowCompositor needs at least one layer")
        self.layers = tuple(layers)

    def expand(self, unit: DrawUnit) -> list[DrawCommand]:
        """Build the layered commands for ``unit``, outermost glow first.

        Every layer but the last fills with the unit's glow color at the
        layer's opacity; the last fills with the unit's own color. Borders
        always use the glow color. Position, size and window are shared.
        """
        commands = []
        last = len(self.layers) - 1
        for i, layer in enumerate(self.layers):
            if i == last:
                font_color = unit.color
            else:
                font_color = unit.glow_color.with_alpha(layer.font_opacity)
            commands.append(
                DrawCommand(
                    text=unit.text,
                    x=unit.x,
                    y=unit.y,
                    font_size=unit.font_size,
                    font_color=font_color,
                    border_width=layer.border_width,
                    border_color=unit.glow_color.with_alpha(layer.border_opacity),
                    enable=unit.enable,
                )
            )
        return commands

    def expand_all(self, units: Sequence[DrawUnit]) -> list[DrawCommand]:
        return [command for unit in units for command in self.expand(unit)]
