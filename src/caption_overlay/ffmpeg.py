"""FFmpeg wrapper for overlay rendering.

Probes input videos and runs the single re-encode that burns in the
drawtext filter graph while swapping the audio track for a separate file.
"""

from __future__ import annotations

import json
import subprocess
from dataclasses import dataclass
from pathlib import Path

from caption_overlay.config import EncodingSettings
from caption_overlay.ffmpeg_binary import (
    FFmpegConfig,
    get_ffmpeg_path,
    get_ffprobe_path,
    subprocess_flags,
    supports_drawtext,
)
from caption_overlay.logging import get_logger

logger = get_logger(__name__)


class FFmpegError(Exception):
    """Base exception for FFmpeg-related errors."""

    pass


class FFmpegNotFoundError(FFmpegError):
    """Raised when FFmpeg executable is not found."""

    pass


class InvalidVideoError(FFmpegError):
    """Raised when the input video file is invalid or unreadable."""

    pass


class EncodingError(FFmpegError):
    """Raised when FFmpeg fails to produce the output video."""

    def __init__(self, message: str, timed_out: bool = False):
        super().__init__(message)
        self.timed_out = timed_out


@dataclass
class VideoInfo:
    """Information about a video file."""

    duration: float  # Total duration in seconds
    width: int
    height: int
    fps: float
    video_codec: str
    audio_codec: str | None
    has_audio: bool


def _parse_number(value, cast):
    """Parse an ffprobe field, treating "N/A" or a missing value as zero."""
    try:
        return cast(float(value))
    except (TypeError, ValueError):
        return cast(0)


class FFmpegWrapper:
    """Runs FFmpeg and FFprobe for the overlay renderer."""

    def __init__(self, config: FFmpegConfig | None = None) -> None:
        """Initialize FFmpeg wrapper.

        Args:
            config: Optional FFmpeg binary configuration.

        Raises:
            FFmpegNotFoundError: If FFmpeg is not available.
        """
        self._config = config or FFmpegConfig()
        self._ffmpeg_path = get_ffmpeg_path(self._config)
        self._ffprobe_path = get_ffprobe_path(self._config)
        self._drawtext: bool | None = None

        if self._ffmpeg_path is None:
            raise FFmpegNotFoundError(
                "FFmpeg not found. Please install imageio-ffmpeg or add FFmpeg to PATH."
            )

    @property
    def ffmpeg_path(self) -> str:
        return self._ffmpeg_path

    @property
    def ffprobe_path(self) -> str | None:
        return self._ffprobe_path

    @property
    def can_probe(self) -> bool:
        return self._ffprobe_path is not None

    @property
    def has_drawtext(self) -> bool:
        """Whether this FFmpeg build can draw text; checked once."""
        if self._drawtext is None:
            self._drawtext = supports_drawtext(self._ffmpeg_path)
        return self._drawtext

    def _run_ffmpeg(
        self,
        args: list[str],
        timeout: int = 300,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        """Run FFmpeg with the given arguments.

        Args:
            args: Command-line arguments (excluding ffmpeg executable).
            timeout: Timeout in seconds.
            check: Whether to raise on non-zero exit code.

        Raises:
            EncodingError: If FFmpeg fails and check=True, or times out.
            FFmpegNotFoundError: If the executable vanished.
        """
        cmd = [self._ffmpeg_path] + args
        logger.info("FFmpeg process started", extra={"command": subprocess.list2cmdline(cmd)})

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                creationflags=subprocess_flags(),
            )
        except subprocess.TimeoutExpired as e:
            raise EncodingError(f"FFmpeg timed out after {timeout} seconds", timed_out=True) from e
        except FileNotFoundError as e:
            raise FFmpegNotFoundError(f"FFmpeg not found at {self._ffmpeg_path}") from e
        except OSError as e:
            raise EncodingError(f"Failed to run FFmpeg: {e}") from e
        except ValueError as e:
            # e.g. an embedded NUL byte in the filter string or a path
            raise EncodingError(f"Invalid FFmpeg argument: {e}") from e

        if check and result.returncode != 0:
            error_msg = result.stderr or result.stdout or "Unknown error"
            raise EncodingError(f"FFmpeg failed: {error_msg}")

        return result

    def _run_ffprobe(
        self,
        args: list[str],
        timeout: int = 30,
    ) -> subprocess.CompletedProcess:
        if self._ffprobe_path is None:
            raise FFmpegNotFoundError(
                "FFprobe not found. Please install FFprobe to enable video inspection."
            )

        cmd = [self._ffprobe_path] + args

        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                creationflags=subprocess_flags(),
            )
        except subprocess.TimeoutExpired as e:
            raise InvalidVideoError(f"FFprobe timed out after {timeout} seconds") from e
        except FileNotFoundError as e:
            raise FFmpegNotFoundError(f"FFprobe not found at {self._ffprobe_path}") from e
        except OSError as e:
            raise InvalidVideoError(f"Failed to run FFprobe: {e}") from e
        except ValueError as e:
            raise InvalidVideoError(f"Invalid FFprobe argument: {e}") from e

    def get_video_info(self, video_path: str | Path) -> VideoInfo:
        """Get information about a video file.

        Args:
            video_path: Path to video file.

        Returns:
            VideoInfo with duration, dimensions, fps, and codecs.

        Raises:
            InvalidVideoError: If the file is not a valid video.
            FFmpegNotFoundError: If FFprobe is not available.
        """
        video_path = Path(video_path)

        if not video_path.exists():
            raise InvalidVideoError(f"Video file not found: {video_path}")

        result = self._run_ffprobe([
            "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            str(video_path),
        ])

        if result.returncode != 0:
            raise InvalidVideoError(
                f"Failed to read video file: {video_path}\n{result.stderr}"
            )

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise InvalidVideoError(f"Failed to parse video info: {e}") from e

        streams = data.get("streams", [])
        video_stream = next((s for s in streams if s.get("codec_type") == "video"), None)
        audio_stream = next((s for s in streams if s.get("codec_type") == "audio"), None)

        if video_stream is None:
            raise InvalidVideoError(f"No video stream found in: {video_path}")

        fps_str = video_stream.get("r_frame_rate", "0/1")
        try:
            num, den = fps_str.split("/")
            fps = float(num) / float(den) if float(den) != 0 else 0.0
        except (ValueError, ZeroDivisionError):
            fps = 0.0

        return VideoInfo(
            duration=_parse_number(data.get("format", {}).get("duration"), float),
            width=_parse_number(video_stream.get("width"), int),
            height=_parse_number(video_stream.get("height"), int),
            fps=fps,
            video_codec=video_stream.get("codec_name", "unknown"),
            audio_codec=audio_stream.get("codec_name") if audio_stream else None,
            has_audio=audio_stream is not None,
        )

    def validate_video(self, video_path: str | Path) -> tuple[bool, str]:
        """Validate that a file is a readable video.

        Returns:
            Tuple of (is_valid, message).
        """
        try:
            info = self.get_video_info(video_path)
        except (InvalidVideoError, FFmpegNotFoundError) as e:
            return False, str(e)

        if info.width <= 0 or info.height <= 0:
            return False, "Video has invalid dimensions"
        return True, f"Valid video: {info.width}x{info.height}, {info.duration:.2f}s"

    def build_overlay_args(
        self,
        video_path: Path,
        audio_path: Path,
        output_path: Path,
        filter_string: str,
        settings: EncodingSettings,
    ) -> list[str]:
        """Arguments for the overlay re-encode.

        Video comes from the first input, audio from the second, and the
        output stops at the shorter of the two. The ``-vf`` stage is left
        out entirely when there is nothing to draw.
        """
        args = ["-y", "-i", str(video_path), "-i", str(audio_path)]

        if filter_string:
            args.extend(["-vf", filter_string])

        args.extend(["-c:v", settings.video_codec])
        if settings.crf is not None:
            args.extend(["-crf", str(settings.crf)])
        if settings.preset:
            args.extend(["-preset", settings.preset])

        args.extend(["-c:a", settings.audio_codec])
        args.extend(["-map", "0:v:0", "-map", "1:a:0", "-shortest"])
        args.extend(settings.extra_output_args)
        args.append(str(output_path))
        return args

    def overlay_with_audio(
        self,
        video_path: str | Path,
        audio_path: str | Path,
        output_path: str | Path,
        filter_string: str,
        settings: EncodingSettings | None = None,
    ) -> Path:
        """Burn ``filter_string`` into the video and replace its audio.

        Args:
            video_path: Source video.
            audio_path: Replacement audio track.
            output_path: Destination file.
            filter_string: Serialized drawtext graph, possibly empty.
            settings: Encoding settings.

        Returns:
            Path to the rendered video.

        Raises:
            EncodingError: If FFmpeg fails or produces no output.
        """
        settings = settings or EncodingSettings()
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        args = self.build_overlay_args(
            Path(video_path), Path(audio_path), output_path, filter_string, settings
        )
        self._run_ffmpeg(args, timeout=settings.timeout)

        if not output_path.exists():
            raise EncodingError(f"Output file was not created: {output_path}")

        return output_path
