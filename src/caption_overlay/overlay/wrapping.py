"""Greedy line wrapping for caption blocks.

Lines are packed by character count against a budget derived from the
frame width, so no font metrics are needed here.
"""

from __future__ import annotations

import math
from typing import Iterable

from caption_overlay.config import OverlayConfig
from caption_overlay.overlay.models import Line, Word


def split_words(text: str) -> list[Word]:
    """Split sanitized text on whitespace into block-indexed words."""
    return [Word(text=token, index=i) for i, token in enumerate(text.split())]


def max_chars_per_line(frame_width: int, font_size: int, config: OverlayConfig) -> int:
    """Character budget for one caption line.

    ``floor(usable_width_fraction * frame_width / (font_size * wrap_char_width_factor))``.
    A non-positive font size gives a zero budget, which puts every word on
    its own line instead of failing.
    """
    avg_char_width = font_size * config.wrap_char_width_factor
    if avg_char_width <= 0:
        return 0
    return max(0, math.floor(config.usable_width_fraction * frame_width / avg_char_width))


def wrap(words: Iterable[Word], max_chars: int) -> list[Line]:
    """Pack words into lines left to right.

    A word joins the current line if the line, one separating space and the
    word still fit in ``max_chars``; otherwise it starts a new line. A word
    longer than the budget sits alone on its line, untruncated.

    Args:
        words: Words in block order
        max_chars: Maximum characters per line, separators included

    Returns:
        Lines in order, indexed from 0
    """
    groups: list[list[Word]] = []
    current: list[Word] = []
    current_length = 0

    for word in words:
        candidate = current_length + (1 if current else 0) + len(word.text)
        if candidate <= max_chars:
            current.append(word)
            current_length = candidate
        else:
            if current:
                groups.append(current)
            current = [word]
            current_length = len(word.text)

    if current:
        groups.append(current)

    return [Line(words=tuple(group), index=i) for i, group in enumerate(groups)]
