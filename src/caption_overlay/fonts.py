"""Font file selection for drawtext."""

from __future__ import annotations

from pathlib import Path

from caption_overlay.logging import get_logger

logger = get_logger(__name__)

FONT_SUFFIXES = (".ttf", ".otf", ".ttc")


def resolve_font_file(fonts_dir: Path | str, fallback: str | None = None) -> str | None:
    """Pick the font to render with.

    The first font file (by name) in ``fonts_dir`` wins; otherwise
    ``fallback``; otherwise None, which leaves the choice to FFmpeg's
    fontconfig default.
    """
    fonts_dir = Path(fonts_dir)
    if fonts_dir.is_dir():
        fonts = sorted(
            p for p in fonts_dir.iterdir() if p.is_file() and p.suffix.lower() in FONT_SUFFIXES
        )
        if fonts:
            return str(fonts[0])

    if fallback:
        logger.info(f"No font in {fonts_dir}, using fallback", extra={"font": fallback})
        return fallback

    logger.warning(f"No font in {fonts_dir} and no fallback configured; using FFmpeg default")
    return None
