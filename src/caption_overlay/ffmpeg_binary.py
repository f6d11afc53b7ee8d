"""Locating the FFmpeg and FFprobe executables.

FFmpeg comes from an explicit path, the binary bundled with imageio-ffmpeg,
or the system PATH. imageio-ffmpeg ships no ffprobe, so ffprobe is looked
up next to its ffmpeg and then on PATH.
"""

from __future__ import annotations

import os
import platform
import shutil
import subprocess
from pathlib import Path
from typing import Callable, NamedTuple

from pydantic import BaseModel, Field

FFMPEG_ENV_VAR = "CAPTION_OVERLAY_FFMPEG"
FFPROBE_ENV_VAR = "CAPTION_OVERLAY_FFPROBE"


class FFmpegInfo(NamedTuple):
    """Information about FFmpeg installation."""

    path: str
    version: str
    available: bool
    source: str  # "custom", "imageio", "system", or "not_found"
    drawtext: bool = False  # Built with the drawtext filter (libfreetype)


class FFmpegConfig(BaseModel):
    """Where to find the FFmpeg binaries.

    Custom paths default to the ``CAPTION_OVERLAY_FFMPEG`` and
    ``CAPTION_OVERLAY_FFPROBE`` environment variables.
    """

    custom_ffmpeg_path: str | None = Field(
        default_factory=lambda: os.environ.get(FFMPEG_ENV_VAR),
        description="Custom path to FFmpeg executable",
    )
    custom_ffprobe_path: str | None = Field(
        default_factory=lambda: os.environ.get(FFPROBE_ENV_VAR),
        description="Custom path to FFprobe executable",
    )
    prefer_system: bool = Field(
        default=False,
        description="Prefer system FFmpeg over the imageio-ffmpeg bundle",
    )


def subprocess_flags() -> int:
    """Creation flags that keep FFmpeg from opening a console on Windows."""
    if platform.system() == "Windows":
        return subprocess.CREATE_NO_WINDOW
    return 0


def _get_ffmpeg_from_imageio() -> str | None:
    try:
        import imageio_ffmpeg
        return imageio_ffmpeg.get_ffmpeg_exe()
    except (ImportError, RuntimeError):
        return None


def _get_ffprobe_from_imageio() -> str | None:
    ffmpeg_path = _get_ffmpeg_from_imageio()
    if ffmpeg_path is None:
        return None

    name = "ffprobe.exe" if platform.system() == "Windows" else "ffprobe"
    candidate = Path(ffmpeg_path).parent / name
    if candidate.exists():
        return str(candidate)
    return None


def _existing(path: str | None) -> str | None:
    if path and Path(path).exists():
        return path
    return None


def _search(candidates: list[tuple[str, Callable[[], str | None]]]) -> tuple[str | None, str]:
    """Return the first ``(path, source)`` found among ordered lookups."""
    for source, lookup in candidates:
        path = lookup()
        if path:
            return path, source
    return None, "not_found"


def supports_drawtext(ffmpeg_path: str) -> bool:
    """Whether the FFmpeg at ``ffmpeg_path`` lists the drawtext filter.

    Static builds such as the one bundled with imageio-ffmpeg are compiled
    without libfreetype and cannot draw text.
    """
    try:
        result = subprocess.run(
            [ffmpeg_path, "-hide_banner", "-filters"],
            capture_output=True,
            text=True,
            timeout=10,
            creationflags=subprocess_flags(),
        )
    except (subprocess.TimeoutExpired, OSError, ValueError):
        return False

    if result.returncode != 0:
        return False

    # Rows look like " T.C drawtext          V->V       Draw text on top of ..."
    return any(line.split()[1:2] == ["drawtext"] for line in result.stdout.splitlines())


def _ffmpeg_candidates(config: FFmpegConfig) -> list[tuple[str, Callable[[], str | None]]]:
    system = ("system", lambda: shutil.which("ffmpeg"))
    bundled = ("imageio", _get_ffmpeg_from_imageio)
    custom = ("custom", lambda: _existing(config.custom_ffmpeg_path))
    if config.prefer_system:
        return [custom, system, bundled]
    return [custom, bundled, system]


def _ffprobe_candidates(config: FFmpegConfig) -> list[tuple[str, Callable[[], str | None]]]:
    system = ("system", lambda: shutil.which("ffprobe"))
    bundled = ("imageio", _get_ffprobe_from_imageio)
    custom = ("custom", lambda: _existing(config.custom_ffprobe_path))
    if config.prefer_system:
        return [custom, system, bundled]
    return [custom, bundled, system]


def _find_ffmpeg(config: FFmpegConfig) -> tuple[str | None, str, bool]:
    """First FFmpeg with drawtext as ``(path, source, True)``.

    When no candidate has drawtext, the first one found is returned with
    ``False`` so callers can still re-encode or report the problem.
    """
    fallback: tuple[str | None, str, bool] = (None, "not_found", False)
    for source, lookup in _ffmpeg_candidates(config):
        path = lookup()
        if not path:
            continue
        if supports_drawtext(path):
            return path, source, True
        if fallback[0] is None:
            fallback = (path, source, False)
    return fallback


def _get_ffmpeg_version(ffmpeg_path: str) -> str | None:
    """Parse the version from ``ffmpeg -version`` (e.g. ``6.0-full_build``)."""
    try:
        result = subprocess.run(
            [ffmpeg_path, "-version"],
            capture_output=True,
            text=True,
            timeout=10,
            creationflags=subprocess_flags(),
        )
    except (subprocess.TimeoutExpired, OSError):
        return None

    if result.returncode != 0:
        return None

    first_line = result.stdout.split("\n")[0]
    if "version" in first_line.lower():
        parts = first_line.split("version")
        if len(parts) > 1 and parts[1].strip():
            return parts[1].strip().split()[0]
    return first_line.strip()


def get_ffmpeg_path(config: FFmpegConfig | None = None) -> str | None:
    """Path to the FFmpeg executable, or None if not found.

    Order: custom path, imageio-ffmpeg, system PATH (system before
    imageio-ffmpeg when ``prefer_system`` is set). Binaries with the
    drawtext filter win over earlier ones without it.
    """
    path, _, _ = _find_ffmpeg(config or FFmpegConfig())
    return path


def get_ffprobe_path(config: FFmpegConfig | None = None) -> str | None:
    """Path to the FFprobe executable, or None if not found."""
    path, _ = _search(_ffprobe_candidates(config or FFmpegConfig()))
    return path


def get_ffmpeg_info(config: FFmpegConfig | None = None) -> FFmpegInfo:
    """Path, version and source of the FFmpeg that would be used."""
    path, source, drawtext = _find_ffmpeg(config or FFmpegConfig())
    if path is None:
        return FFmpegInfo(path="", version="", available=False, source="not_found")

    return FFmpegInfo(
        path=path,
        version=_get_ffmpeg_version(path) or "unknown",
        available=True,
        source=source,
        drawtext=drawtext,
    )


def verify_ffmpeg(config: FFmpegConfig | None = None) -> tuple[bool, str]:
    """Check that FFmpeg exists, runs and can draw text.

    Returns:
        Tuple of (success, message)
    """
    info = get_ffmpeg_info(config)
    if not info.available:
        return (False, "FFmpeg not found. Please install imageio-ffmpeg or add FFmpeg to PATH.")

    try:
        result = subprocess.run(
            [info.path, "-version"],
            capture_output=True,
            timeout=10,
            creationflags=subprocess_flags(),
        )
    except subprocess.TimeoutExpired:
        return (False, f"FFmpeg at {info.path} timed out during verification")
    except OSError as e:
        return (False, f"Failed to run FFmpeg at {info.path}: {e}")

    if result.returncode != 0:
        return (False, f"FFmpeg found at {info.path} but returned error code {result.returncode}")

    if not info.drawtext:
        return (
            False,
            f"FFmpeg {info.version} at {info.path} has no drawtext filter. "
            f"Point {FFMPEG_ENV_VAR} at a build with libfreetype.",
        )

    return (True, f"FFmpeg {info.version} available ({info.source}): {info.path}")


def check_ffprobe(config: FFmpegConfig | None = None) -> tuple[bool, str]:
    """Check whether FFprobe is available for frame-width probing.

    Returns:
        Tuple of (available, message)
    """
    path = get_ffprobe_path(config)
    if path is None:
        return (False, "FFprobe not found")

    try:
        result = subprocess.run(
            [path, "-version"],
            capture_output=True,
            timeout=10,
            creationflags=subprocess_flags(),
        )
    except subprocess.TimeoutExpired:
        return (False, f"FFprobe at {path} timed out")
    except OSError as e:
        return (False, f"Failed to run FFprobe at {path}: {e}")

    if result.returncode == 0:
        return (True, f"FFprobe available: {path}")
    return (False, f"FFprobe at {path} returned error code {result.returncode}")
