"""Text clean-up applied before any caption reaches the filter graph.

drawtext's option syntax treats quotes, colons, commas and brackets as
structure, so they are removed or replaced up front. This is a denylist;
``serializer`` still escapes whatever survives (backslashes, percent signs).
"""

from __future__ import annotations

import re

_CONTROL = re.compile(r"[\x00-\x08\x0e-\x1f\x7f]")
_QUOTES = re.compile(r"['\"]")
_SEPARATORS = re.compile(r"[:,]")
_BRACKETS = re.compile(r"[\[\]]")
_WHITESPACE = re.compile(r"\s+")


def sanitize(raw: str | None) -> str:
    """Normalize caption or channel text into a drawtext-safe string.

    Control characters (NUL included), quotes and square brackets are
    dropped. Colons and commas become spaces, whitespace runs collapse to
    one space, and the result is trimmed.

    Args:
        raw: Text as submitted; None is treated as empty

    Returns:
        Sanitized text, possibly empty
    """
    if not raw:
        return ""

    text = _CONTROL.sub("", raw)
    text = _QUOTES.sub("", text)
    text = _SEPARATORS.sub(" ", text)
    text = _BRACKETS.sub("", text)
    text = _WHITESPACE.sub(" ", text)
    return text.strip()


def sanitize_channel_name(raw: str | None) -> str:
    """Sanitize a channel handle for the watermark.

    Leading ``@`` handle markers are dropped, so ``"@Channel: Name"``
    becomes ``"Channel Name"``.
    """
    return sanitize(sanitize(raw).lstrip("@"))
