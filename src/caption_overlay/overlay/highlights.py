"""Which words of a caption block are drawn in the highlight color."""

from __future__ import annotations

from caption_overlay.overlay.models import CaptionRole


def select_highlights(word_count: int, role: CaptionRole) -> frozenset[int]:
    """Pick highlighted word indices for a block.

    The FIRST block ends on its last two words highlighted (the punchline),
    the SECOND block opens on its first word. Blocks too short for the rule
    get no highlight. Only the count matters, never the words themselves.
    """
    if role == CaptionRole.FIRST:
        if word_count >= 2:
            return frozenset({word_count - 2, word_count - 1})
        return frozenset()

    if word_count >= 1:
        return frozenset({0})
    return frozenset()
