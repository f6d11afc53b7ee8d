"""Overlay rendering: filter graph generation plus the FFmpeg pass.

Example usage:
    renderer = OverlayRenderer()
    request = build_request(
        first_caption="the quick brown fox jumps",
        second_caption="over the lazy dog",
        channel_name="@Channel",
    )
    renderer.render(
        video_path=Path("video.mp4"),
        audio_path=Path("voice.mp3"),
        output_path=Path("processed.mp4"),
        request=request,
    )
"""

from __future__ import annotations

import time
from pathlib import Path

from caption_overlay.config import DEFAULT_CONFIG, OverlayConfig
from caption_overlay.errors import ErrorContext, RenderError, ResourceError
from caption_overlay.ffmpeg import (
    EncodingError,
    FFmpegNotFoundError,
    FFmpegWrapper,
    InvalidVideoError,
)
from caption_overlay.ffmpeg_binary import FFmpegConfig
from caption_overlay.fonts import resolve_font_file
from caption_overlay.logging import (
    get_logger,
    log_operation_complete,
    log_operation_start,
)
from caption_overlay.overlay.builder import OverlayBuilder
from caption_overlay.overlay.filtergraph import FilterGraph
from caption_overlay.overlay.serializer import FilterGraphSerializer
from caption_overlay.request import OverlayRequest

logger = get_logger(__name__)


class OverlayRenderer:
    """Builds overlay filter graphs and renders them with FFmpeg.

    Graph building never touches FFmpeg; the wrapper is created on first
    use so graphs can be produced on machines without it.
    """

    def __init__(
        self,
        config: OverlayConfig = DEFAULT_CONFIG,
        ffmpeg_config: FFmpegConfig | None = None,
        ffmpeg_wrapper: FFmpegWrapper | None = None,
    ):
        self.config = config
        self.builder = OverlayBuilder(config)
        self._ffmpeg_config = ffmpeg_config
        self._ffmpeg_wrapper = ffmpeg_wrapper

    @property
    def ffmpeg(self) -> FFmpegWrapper:
        if self._ffmpeg_wrapper is None:
            try:
                self._ffmpeg_wrapper = FFmpegWrapper(self._ffmpeg_config)
            except FFmpegNotFoundError as e:
                raise ResourceError(str(e)) from e
        return self._ffmpeg_wrapper

    def build_filter_graph(self, request: OverlayRequest, frame_width: int | None = None) -> FilterGraph:
        """Typed drawtext commands for ``request`` at the given frame width."""
        return self.builder.build(request, frame_width or self.config.default_frame_width)

    def serializer(self) -> FilterGraphSerializer:
        font_file = resolve_font_file(self.config.fonts_dir, self.config.fallback_font)
        return FilterGraphSerializer(font_file=font_file)

    def filter_string(self, request: OverlayRequest, frame_width: int | None = None) -> str:
        """The ``-vf`` argument for ``request``; empty when nothing is drawn."""
        graph = self.build_filter_graph(request, frame_width)
        if graph.is_empty:
            return ""
        return self.serializer().serialize(graph)

    def resolve_frame_width(self, video_path: Path) -> int:
        """Width of the video's frames, or the configured default.

        The default is used when FFprobe is not installed or reports no
        usable width.
        """
        if not self.ffmpeg.can_probe:
            logger.warning(
                "FFprobe unavailable, assuming default frame width",
                extra={"frame_width": self.config.default_frame_width},
            )
            return self.config.default_frame_width

        try:
            info = self.ffmpeg.get_video_info(video_path)
        except InvalidVideoError as e:
            raise ResourceError(str(e), context={"video": str(video_path)}) from e

        if info.width <= 0:
            return self.config.default_frame_width
        return info.width

    def render(
        self,
        video_path: Path | str,
        audio_path: Path | str,
        output_path: Path | str,
        request: OverlayRequest,
        frame_width: int | None = None,
    ) -> Path:
        """Overlay captions and watermark, replacing the audio track.

        Args:
            video_path: Source video
            audio_path: Replacement audio
            output_path: Destination video
            request: Validated overlay request
            frame_width: Frame width override; probed from the video if None

        Returns:
            Path to the rendered video

        Raises:
            ResourceError: If an input file or FFmpeg is missing, or FFmpeg cannot draw text
            RenderError: If FFmpeg fails
        """
        video_path = Path(video_path)
        audio_path = Path(audio_path)
        output_path = Path(output_path)

        for label, path in (("video", video_path), ("audio", audio_path)):
            if not path.exists():
                raise ResourceError(f"{label.capitalize()} file not found: {path}", context={label: str(path)})

        width = frame_width or self.resolve_frame_width(video_path)
        filter_string = self.filter_string(request, width)
        if not filter_string:
            logger.info("Nothing to draw, re-encoding without drawtext")
        elif not self.ffmpeg.has_drawtext:
            raise ResourceError(
                "FFmpeg was built without the drawtext filter; "
                "set CAPTION_OVERLAY_FFMPEG to a build with libfreetype",
                context={"ffmpeg": self.ffmpeg.ffmpeg_path},
            )

        log_operation_start(logger, "overlay render", video=str(video_path), output=str(output_path))
        started = time.monotonic()

        with ErrorContext(
            "overlay render",
            cleanup=lambda: output_path.unlink(missing_ok=True),
            context={"video": str(video_path)},
        ):
            try:
                self.ffmpeg.overlay_with_audio(
                    video_path,
                    audio_path,
                    output_path,
                    filter_string,
                    self.config.encoding,
                )
            except EncodingError as e:
                raise RenderError(
                    f"Video processing failed: {e}",
                    context={"output": str(output_path)},
                    recoverable=e.timed_out,
                ) from e
            except FFmpegNotFoundError as e:
                raise ResourceError(str(e)) from e

        log_operation_complete(
            logger,
            "overlay render",
            duration=time.monotonic() - started,
            output=str(output_path),
        )
        return output_path
