"""Tests for the FFmpeg wrapper and binary lookup."""

import json
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from caption_overlay.config import EncodingSettings
from caption_overlay.ffmpeg import (
    EncodingError,
    FFmpegNotFoundError,
    FFmpegWrapper,
    InvalidVideoError,
)
from caption_overlay.ffmpeg_binary import (
    FFmpegConfig,
    get_ffmpeg_info,
    get_ffmpeg_path,
    supports_drawtext,
    verify_ffmpeg,
)


@pytest.fixture
def wrapper():
    with patch("caption_overlay.ffmpeg.get_ffmpeg_path", return_value="/usr/bin/ffmpeg"), patch(
        "caption_overlay.ffmpeg.get_ffprobe_path", return_value="/usr/bin/ffprobe"
    ):
        yield FFmpegWrapper()


def _completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestFFmpegBinary:
    """Tests for locating FFmpeg."""

    @pytest.fixture(autouse=True)
    def drawtext(self):
        with patch("caption_overlay.ffmpeg_binary.supports_drawtext", return_value=True) as mock:
            yield mock

    def test_custom_path_wins(self, tmp_path):
        """Test an existing custom path is used first."""
        binary = tmp_path / "ffmpeg"
        binary.write_text("")

        assert get_ffmpeg_path(FFmpegConfig(custom_ffmpeg_path=str(binary))) == str(binary)

    def test_missing_custom_path_falls_through(self, tmp_path):
        """Test a custom path that does not exist is skipped."""
        config = FFmpegConfig(custom_ffmpeg_path=str(tmp_path / "nope"))

        with patch(
            "caption_overlay.ffmpeg_binary._get_ffmpeg_from_imageio", return_value="/bundled/ffmpeg"
        ):
            assert get_ffmpeg_path(config) == "/bundled/ffmpeg"

    def test_prefer_system(self):
        """Test PATH is searched before the bundle when preferred."""
        config = FFmpegConfig(custom_ffmpeg_path=None, prefer_system=True)

        with patch("caption_overlay.ffmpeg_binary.shutil.which", return_value="/usr/bin/ffmpeg"), patch(
            "caption_overlay.ffmpeg_binary._get_ffmpeg_from_imageio", return_value="/bundled/ffmpeg"
        ):
            assert get_ffmpeg_path(config) == "/usr/bin/ffmpeg"

    def test_env_var(self, monkeypatch):
        """Test the custom path defaults to the environment variable."""
        monkeypatch.setenv("CAPTION_OVERLAY_FFMPEG", "/opt/ffmpeg")

        assert FFmpegConfig().custom_ffmpeg_path == "/opt/ffmpeg"

    def test_not_found(self):
        """Test info when no FFmpeg exists anywhere."""
        config = FFmpegConfig(custom_ffmpeg_path=None)

        with patch("caption_overlay.ffmpeg_binary.shutil.which", return_value=None), patch(
            "caption_overlay.ffmpeg_binary._get_ffmpeg_from_imageio", return_value=None
        ):
            info = get_ffmpeg_info(config)
            ok, message = verify_ffmpeg(config)

        assert info.available is False
        assert info.source == "not_found"
        assert ok is False
        assert "not found" in message

    def test_version_parsed(self):
        """Test the version is read from ``ffmpeg -version``."""
        config = FFmpegConfig(custom_ffmpeg_path=None)
        output = "ffmpeg version 6.0-static Copyright (c) 2000-2023\n"

        with patch(
            "caption_overlay.ffmpeg_binary._get_ffmpeg_from_imageio", return_value="/bundled/ffmpeg"
        ), patch("caption_overlay.ffmpeg_binary.subprocess.run", return_value=_completed(stdout=output)):
            info = get_ffmpeg_info(config)

        assert info.version == "6.0-static"
        assert info.source == "imageio"

    def test_bundle_without_drawtext_skipped(self, drawtext):
        """Test a system FFmpeg with drawtext wins over the bundled static build."""
        drawtext.side_effect = lambda path: path == "/usr/bin/ffmpeg"
        config = FFmpegConfig(custom_ffmpeg_path=None)

        with patch("caption_overlay.ffmpeg_binary.shutil.which", return_value="/usr/bin/ffmpeg"), patch(
            "caption_overlay.ffmpeg_binary._get_ffmpeg_from_imageio", return_value="/bundled/ffmpeg"
        ), patch("caption_overlay.ffmpeg_binary._get_ffmpeg_version", return_value="6.1"):
            info = get_ffmpeg_info(config)

        assert info.path == "/usr/bin/ffmpeg"
        assert info.source == "system"
        assert info.drawtext is True

    def test_no_candidate_has_drawtext(self, drawtext):
        """Test the first binary is kept but verification reports the missing filter."""
        drawtext.return_value = False
        config = FFmpegConfig(custom_ffmpeg_path=None)
        output = "ffmpeg version 7.0.2-static https://johnvansickle.com/ffmpeg/\n"

        with patch("caption_overlay.ffmpeg_binary.shutil.which", return_value="/usr/bin/ffmpeg"), patch(
            "caption_overlay.ffmpeg_binary._get_ffmpeg_from_imageio", return_value="/bundled/ffmpeg"
        ), patch("caption_overlay.ffmpeg_binary.subprocess.run", return_value=_completed(stdout=output)):
            info = get_ffmpeg_info(config)
            ok, message = verify_ffmpeg(config)

        assert info.path == "/bundled/ffmpeg"
        assert info.available is True
        assert info.drawtext is False
        assert ok is False
        assert "drawtext" in message
        assert "7.0.2-static" in message


class TestSupportsDrawtext:
    """Tests for supports_drawtext()."""

    FILTERS = (
        "Filters:\n"
        "  T.. = Timeline support\n"
        "  ... = Source or sink filter\n"
        " ... abench            A->A       Benchmark part of a filtergraph.\n"
        " T.C drawbox           V->V       Draw a colored box on the input video.\n"
        " T.C drawtext          V->V       Draw text on top of video frames using libfreetype library.\n"
        " ... scale             V->V       Scale the input video size and/or convert the image format.\n"
    )

    def test_listed(self):
        """Test a build listing drawtext supports it."""
        with patch(
            "caption_overlay.ffmpeg_binary.subprocess.run", return_value=_completed(stdout=self.FILTERS)
        ) as mock_run:
            assert supports_drawtext("/usr/bin/ffmpeg") is True

        assert mock_run.call_args[0][0] == ["/usr/bin/ffmpeg", "-hide_banner", "-filters"]

    def test_not_listed(self):
        """Test a static build without libfreetype does not."""
        filters = self.FILTERS.replace(" T.C drawtext", " T.C drawgrid")

        with patch("caption_overlay.ffmpeg_binary.subprocess.run", return_value=_completed(stdout=filters)):
            assert supports_drawtext("/bundled/ffmpeg") is False

    def test_failed_run(self):
        """Test a binary that cannot run is treated as lacking drawtext."""
        with patch("caption_overlay.ffmpeg_binary.subprocess.run", side_effect=OSError("Exec format error")):
            assert supports_drawtext("/bundled/ffmpeg") is False

        with patch("caption_overlay.ffmpeg_binary.subprocess.run", return_value=_completed(returncode=1)):
            assert supports_drawtext("/bundled/ffmpeg") is False


class TestFFmpegWrapper:
    """Tests for FFmpegWrapper."""

    def test_requires_ffmpeg(self):
        """Test construction fails without FFmpeg."""
        with patch("caption_overlay.ffmpeg.get_ffmpeg_path", return_value=None), patch(
            "caption_overlay.ffmpeg.get_ffprobe_path", return_value=None
        ):
            with pytest.raises(FFmpegNotFoundError):
                FFmpegWrapper()

    def test_can_probe(self, wrapper):
        """Test probing depends on FFprobe."""
        assert wrapper.can_probe

    def test_has_drawtext_checked_once(self, wrapper):
        """Test the filter listing is read once per wrapper."""
        with patch("caption_overlay.ffmpeg.supports_drawtext", return_value=False) as mock_check:
            assert wrapper.has_drawtext is False
            assert wrapper.has_drawtext is False

        mock_check.assert_called_once_with("/usr/bin/ffmpeg")

    def test_build_overlay_args(self, wrapper):
        """Test the exact argument list for the re-encode."""
        args = wrapper.build_overlay_args(
            Path("in.mp4"), Path("voice.mp3"), Path("out.mp4"), "drawtext=text='a'", EncodingSettings()
        )

        assert args == [
            "-y",
            "-i", "in.mp4",
            "-i", "voice.mp3",
            "-vf", "drawtext=text='a'",
            "-c:v", "libx264",
            "-c:a", "aac",
            "-map", "0:v:0",
            "-map", "1:a:0",
            "-shortest",
            "out.mp4",
        ]

    def test_build_overlay_args_without_filter(self, wrapper):
        """Test the -vf stage is dropped for an empty graph."""
        args = wrapper.build_overlay_args(
            Path("in.mp4"), Path("voice.mp3"), Path("out.mp4"), "", EncodingSettings()
        )

        assert "-vf" not in args

    def test_build_overlay_args_encoding_settings(self, wrapper):
        """Test CRF, preset and extra arguments are passed through."""
        settings = EncodingSettings(crf=20, preset="veryfast", extra_output_args=("-movflags", "+faststart"))
        args = wrapper.build_overlay_args(Path("in.mp4"), Path("a.mp3"), Path("out.mp4"), "", settings)

        assert args[args.index("-crf") + 1] == "20"
        assert args[args.index("-preset") + 1] == "veryfast"
        assert args[-3:] == ["-movflags", "+faststart", "out.mp4"]

    def test_overlay_with_audio(self, wrapper, tmp_path):
        """Test the command runs and the output path is returned."""
        output = tmp_path / "out" / "processed.mp4"

        def fake_run(cmd, **kwargs):
            output.write_bytes(b"video")
            return _completed()

        with patch("caption_overlay.ffmpeg.subprocess.run", side_effect=fake_run) as mock_run:
            result = wrapper.overlay_with_audio("in.mp4", "a.mp3", output, "drawtext=text='a'")

        assert result == output
        cmd = mock_run.call_args[0][0]
        assert cmd[0] == "/usr/bin/ffmpeg"
        assert cmd[-1] == str(output)
        assert mock_run.call_args.kwargs["timeout"] == 1800

    def test_overlay_failure(self, wrapper, tmp_path):
        """Test a non-zero exit raises EncodingError with stderr."""
        with patch(
            "caption_overlay.ffmpeg.subprocess.run",
            return_value=_completed(returncode=1, stderr="No such filter"),
        ):
            with pytest.raises(EncodingError) as exc_info:
                wrapper.overlay_with_audio("in.mp4", "a.mp3", tmp_path / "out.mp4", "")

        assert "No such filter" in str(exc_info.value)
        assert exc_info.value.timed_out is False

    def test_overlay_timeout(self, wrapper, tmp_path):
        """Test a timeout is flagged on the error."""
        with patch(
            "caption_overlay.ffmpeg.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="ffmpeg", timeout=1),
        ):
            with pytest.raises(EncodingError) as exc_info:
                wrapper.overlay_with_audio("in.mp4", "a.mp3", tmp_path / "out.mp4", "")

        assert exc_info.value.timed_out is True

    def test_nul_byte_in_filter(self, wrapper, tmp_path):
        """Test arguments the OS rejects raise EncodingError."""
        with patch(
            "caption_overlay.ffmpeg.subprocess.run",
            side_effect=ValueError("embedded null byte"),
        ):
            with pytest.raises(EncodingError) as exc_info:
                wrapper.overlay_with_audio("in.mp4", "a.mp3", tmp_path / "out.mp4", "drawtext=text='a\x00b'")

        assert "null byte" in str(exc_info.value)
        assert exc_info.value.timed_out is False

    def test_missing_output(self, wrapper, tmp_path):
        """Test success without an output file is still an error."""
        with patch("caption_overlay.ffmpeg.subprocess.run", return_value=_completed()):
            with pytest.raises(EncodingError):
                wrapper.overlay_with_audio("in.mp4", "a.mp3", tmp_path / "out.mp4", "")


class TestGetVideoInfo:
    """Tests for FFmpegWrapper.get_video_info()."""

    def test_parses_probe_output(self, wrapper, tmp_path):
        """Test dimensions, fps and codecs are read."""
        video = tmp_path / "in.mp4"
        video.write_bytes(b"")
        probe = {
            "format": {"duration": "12.5"},
            "streams": [
                {"codec_type": "video", "width": 1080, "height": 1920,
                 "r_frame_rate": "30000/1001", "codec_name": "h264"},
                {"codec_type": "audio", "codec_name": "aac"},
            ],
        }

        with patch(
            "caption_overlay.ffmpeg.subprocess.run", return_value=_completed(stdout=json.dumps(probe))
        ):
            info = wrapper.get_video_info(video)

        assert info.width == 1080
        assert info.height == 1920
        assert info.duration == 12.5
        assert info.fps == pytest.approx(29.97, rel=1e-3)
        assert info.has_audio
        assert info.audio_codec == "aac"

    def test_unknown_values(self, wrapper, tmp_path):
        """Test "N/A" fields read as zero instead of failing."""
        video = tmp_path / "in.mkv"
        video.write_bytes(b"")
        probe = {
            "format": {"duration": "N/A"},
            "streams": [{"codec_type": "video", "width": "N/A", "r_frame_rate": "0/0", "codec_name": "h264"}],
        }

        with patch(
            "caption_overlay.ffmpeg.subprocess.run", return_value=_completed(stdout=json.dumps(probe))
        ):
            info = wrapper.get_video_info(video)

        assert info.duration == 0.0
        assert info.width == 0
        assert info.height == 0
        assert info.fps == 0.0
        assert info.has_audio is False

    def test_missing_file(self, wrapper, tmp_path):
        """Test a missing file is invalid."""
        with pytest.raises(InvalidVideoError):
            wrapper.get_video_info(tmp_path / "missing.mp4")

    def test_no_video_stream(self, wrapper, tmp_path):
        """Test audio-only files are invalid."""
        audio = tmp_path / "voice.mp4"
        audio.write_bytes(b"")
        probe = {"format": {}, "streams": [{"codec_type": "audio", "codec_name": "aac"}]}

        with patch(
            "caption_overlay.ffmpeg.subprocess.run", return_value=_completed(stdout=json.dumps(probe))
        ):
            with pytest.raises(InvalidVideoError):
                wrapper.get_video_info(audio)

    def test_validate_video(self, wrapper, tmp_path):
        """Test validation reports failures as messages."""
        ok, message = wrapper.validate_video(tmp_path / "missing.mp4")

        assert ok is False
        assert "not found" in message

    def test_probe_without_ffprobe(self, tmp_path):
        """Test probing needs FFprobe."""
        video = tmp_path / "in.mp4"
        video.write_bytes(b"")
        with patch("caption_overlay.ffmpeg.get_ffmpeg_path", return_value="/usr/bin/ffmpeg"), patch(
            "caption_overlay.ffmpeg.get_ffprobe_path", return_value=None
        ):
            wrapper = FFmpegWrapper()

        assert not wrapper.can_probe
        with pytest.raises(FFmpegNotFoundError):
            wrapper.get_video_info(video)
