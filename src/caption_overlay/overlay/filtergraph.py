"""Assembly of the complete drawtext command sequence."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence

from caption_overlay.overlay.glow import GlowCompositor
from caption_overlay.overlay.models import DrawCommand, DrawUnit


@dataclass(frozen=True)
class FilterGraph:
    """Ordered drawtext commands; later commands paint over earlier ones."""

    commands: tuple[DrawCommand, ...] = ()

    def __len__(self) -> int:
        return len(self.commands)

    def __iter__(self) -> Iterator[DrawCommand]:
        return iter(self.commands)

    @property
    def is_empty(self) -> bool:
        return not self.commands


def assemble(
    first_units: Sequence[DrawUnit],
    second_units: Sequence[DrawUnit],
    watermark_unit: DrawUnit | None,
    caption_compositor: GlowCompositor,
    watermark_compositor: GlowCompositor,
) -> FilterGraph:
    """Concatenate the glow-expanded commands of both blocks and the watermark.

    Order is fixed: FIRST block, SECOND block, watermark. Nothing is
    reordered, merged or dropped.
    """
    commands = caption_compositor.expand_all(first_units)
    commands += caption_compositor.expand_all(second_units)
    if watermark_unit is not None:
        commands += watermark_compositor.expand(watermark_unit)
    return FilterGraph(commands=tuple(commands))
