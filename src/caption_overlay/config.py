"""Configuration loading and management for caption-overlay.

All styling tunables (glow layers, line height, offsets, character width
heuristics, caption windows) live in one immutable ``OverlayConfig`` that is
handed to the layout engine, glow compositors and builder. Configurations
are read from and written to JSON files.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from caption_overlay.errors import ConfigurationError

CONFIG_ENV_VAR = "CAPTION_OVERLAY_CONFIG"


class GlowLayer(BaseModel):
    """One draw pass of the glow stack.

    The compositor uses ``font_opacity`` for the fill of every layer except
    the last, which always draws the unit's true color.
    """

    model_config = ConfigDict(frozen=True)

    font_opacity: float = Field(ge=0.0, le=1.0)
    border_width: int = Field(ge=0)
    border_opacity: float = Field(ge=0.0, le=1.0)


CAPTION_GLOW_LAYERS = (
    GlowLayer(font_opacity=0.08, border_width=20, border_opacity=0.05),
    GlowLayer(font_opacity=0.15, border_width=12, border_opacity=0.1),
    GlowLayer(font_opacity=0.3, border_width=6, border_opacity=0.2),
    GlowLayer(font_opacity=1.0, border_width=2, border_opacity=0.4),
)

WATERMARK_GLOW_LAYERS = (
    GlowLayer(font_opacity=0.08, border_width=10, border_opacity=0.05),
    GlowLayer(font_opacity=0.15, border_width=6, border_opacity=0.1),
    GlowLayer(font_opacity=0.3, border_width=3, border_opacity=0.2),
    GlowLayer(font_opacity=1.0, border_width=1, border_opacity=0.4),
)


class EncodingSettings(BaseModel):
    """FFmpeg encoding settings for the final re-encode."""

    model_config = ConfigDict(frozen=True)

    video_codec: str = "libx264"
    audio_codec: str = "aac"
    crf: int | None = Field(default=None, ge=0, le=51)
    preset: str | None = None  # e.g. "veryfast"; FFmpeg default when None
    timeout: int = Field(default=1800, gt=0, description="Seconds before FFmpeg is killed")
    extra_output_args: tuple[str, ...] = ()


class OverlayConfig(BaseModel):
    """Immutable styling and layout configuration for one render."""

    model_config = ConfigDict(frozen=True)

    # Frame width used when the input video cannot be probed
    default_frame_width: int = Field(default=1080, gt=0)

    # Line wrapping: budget = floor(fraction * width / (font_size * factor))
    usable_width_fraction: float = Field(default=0.8, gt=0.0, le=1.0)
    wrap_char_width_factor: float = Field(default=0.6, gt=0.0)

    # Per-word horizontal placement inside highlighted lines
    position_char_width_factor: float = Field(default=0.55, gt=0.0)

    line_height_multiplier: float = Field(default=1.1, ge=1.0)
    # Caption block anchor, pixels from frame middle (negative = above)
    caption_vertical_offset: int = -500

    # FIRST block shows while t < end, SECOND while t >= start
    first_caption_end: float = Field(default=7.5, gt=0.0)
    second_caption_start: float = Field(default=8.5, ge=0.0)

    watermark_font_size: int = Field(default=40, gt=0)
    watermark_vertical_offset: int = 400

    neutral_glow_color: str = "white"
    caption_glow: tuple[GlowLayer, ...] = Field(
        default=CAPTION_GLOW_LAYERS, min_length=4, max_length=4
    )
    watermark_glow: tuple[GlowLayer, ...] = Field(
        default=WATERMARK_GLOW_LAYERS, min_length=4, max_length=4
    )

    # Request defaults
    default_font_size: int = Field(default=80, gt=0)
    default_font_color: str = "white"
    default_highlight_color: str = "#98FBCB"

    # First font file in fonts_dir wins; fallback_font otherwise
    fonts_dir: Path = Path("fonts")
    fallback_font: str | None = None

    encoding: EncodingSettings = Field(default_factory=EncodingSettings)


DEFAULT_CONFIG = OverlayConfig()


def load_overlay_config(path: Path | str | None = None) -> OverlayConfig:
    """Load an overlay configuration.

    Resolution order: ``path``, then the file named by the
    ``CAPTION_OVERLAY_CONFIG`` environment variable, then built-in defaults.

    Args:
        path: Optional JSON config file

    Returns:
        OverlayConfig

    Raises:
        ConfigurationError: If the file is missing, not JSON, or has
            invalid values
    """
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if not env_path:
            return DEFAULT_CONFIG
        path = env_path

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigurationError(
            f"Overlay config not found: {config_path}",
            context={"path": str(config_path)},
        )

    try:
        with open(config_path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Overlay config is not valid JSON: {e}",
            context={"path": str(config_path)},
        ) from e

    try:
        return OverlayConfig(**data)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid overlay config: {e.error_count()} error(s)\n{e}",
            context={"path": str(config_path)},
        ) from e


def save_overlay_config(config: OverlayConfig, path: Path | str) -> Path:
    """Save configuration to JSON with an atomic write.

    Args:
        config: Configuration to save
        path: Destination file

    Returns:
        Path to the saved config file
    """
    config_path = Path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = config_path.with_name(config_path.name + ".tmp")

    with open(temp_path, "w", encoding="utf-8") as f:
        json.dump(config.model_dump(mode="json"), f, indent=2)

    temp_path.replace(config_path)
    return config_path
