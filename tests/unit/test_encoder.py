"""Tests for the encode stage."""

import io
import json
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from framecast.models.errors import EmptyFrameSequenceError, EncodeError
from framecast.models.render import EncodeOptions
from framecast.rendering.engine import VideoEncoder
from framecast.rendering.ffmpeg_builder import FFmpegCommandBuilder
from framecast.rendering.progress import FFmpegProgressMonitor

PROBE_OUTPUT = {
    "format": {"duration": "3.0", "size": "2048"},
    "streams": [
        {
            "codec_type": "video",
            "codec_name": "h264",
            "width": 64,
            "height": 36,
            "r_frame_rate": "30/1",
        },
        {"codec_type": "audio", "codec_name": "aac"},
    ],
}


def write_frames(frames_dir: Path, indices, pattern="frame-{:06d}.png") -> Path:
    frames_dir.mkdir(parents=True, exist_ok=True)
    for index in indices:
        (frames_dir / pattern.format(index)).write_bytes(b"frame")
    return frames_dir


def fake_popen(returncode=0, stderr="", output_path: Path | None = None):
    """Popen replacement that optionally creates the output file."""

    def factory(cmd, **kwargs):
        if output_path is not None and returncode == 0:
            output_path.write_bytes(b"\x00" * 2048)
        process = MagicMock()
        process.stderr = io.StringIO(stderr)
        process.returncode = returncode
        process.wait.return_value = returncode
        return process

    return factory


def probe_result(payload=PROBE_OUTPUT):
    return subprocess.CompletedProcess(args=[], returncode=0, stdout=json.dumps(payload), stderr="")


class TestFFmpegCommandBuilder:
    @pytest.fixture
    def builder(self):
        return FFmpegCommandBuilder()

    def test_command_without_audio(self, builder):
        cmd = builder.build_command(Path("/f"), "frame-%06d.png", 30, Path("/out.mp4"))
        assert cmd == [
            "ffmpeg",
            "-y",
            "-framerate",
            "30",
            "-i",
            "/f/frame-%06d.png",
            "-c:v",
            "libx264",
            "-pix_fmt",
            "yuv420p",
            "-crf",
            "23",
            "-preset",
            "medium",
            "-r",
            "30",
            "/out.mp4",
        ]

    def test_command_with_audio(self, builder):
        cmd = builder.build_command(
            Path("/f"), "frame-%06d.png", 24, Path("/out.mp4"), audio_path=Path("/a.wav")
        )
        audio_at = cmd.index("/a.wav")
        assert cmd[audio_at - 1] == "-i"
        assert cmd[audio_at + 1] == "-shortest"
        assert cmd[cmd.index("-c:a") + 1] == "aac"
        assert cmd[cmd.index("-b:a") + 1] == "192k"
        assert cmd[-3:] == ["-r", "24", "/out.mp4"]

    def test_start_number_and_extra_args(self, builder):
        cmd = builder.build_command(
            Path("/f"),
            "frame-%06d.png",
            30,
            Path("/out.mp4"),
            extra_args=["-movflags", "+faststart"],
            start_number=15,
        )
        assert cmd[cmd.index("-start_number") + 1] == "15"
        assert cmd.index("-start_number") < cmd.index("-i")
        assert cmd[-5:-3] == ["-movflags", "+faststart"]

    def test_frame_count_is_an_output_option(self, builder):
        cmd = builder.build_command(
            Path("/f"),
            "frame-%06d.png",
            30,
            Path("/out.mp4"),
            audio_path=Path("/a.wav"),
            start_number=5,
            frame_count=5,
        )
        assert cmd[cmd.index("-frames:v") + 1] == "5"
        # after both inputs so ffmpeg applies it to the output video stream
        assert cmd.index("-frames:v") > cmd.index("/a.wav")
        assert cmd.index("-frames:v") < cmd.index("/out.mp4")

    def test_optional_crf_and_preset(self):
        builder = FFmpegCommandBuilder(crf=None, preset=None)
        assert builder.build_video_args() == ["-c:v", "libx264", "-pix_fmt", "yuv420p"]


class TestFFmpegProgressMonitor:
    def test_parse_frames(self):
        callback_values = []
        monitor = FFmpegProgressMonitor(total_frames=90, callback=callback_values.append)
        progress = monitor.parse_line(
            "frame=   45 fps= 30 q=28.0 size=  256kB time=00:00:01.50 bitrate= 419.4kbits/s"
        )
        assert progress == pytest.approx(0.5)
        assert callback_values == [pytest.approx(0.5)]

    def test_parse_time_without_frame_total(self):
        monitor = FFmpegProgressMonitor(total_duration=10.0)
        assert monitor.parse_line("size= 1kB time=00:00:05.00 bitrate=1k") == pytest.approx(0.5)

    def test_parse_no_progress(self):
        monitor = FFmpegProgressMonitor(total_frames=10)
        assert monitor.parse_line("Input #0, image2, from 'frames'") is None

    def test_capped(self):
        monitor = FFmpegProgressMonitor(total_frames=10)
        assert monitor.parse_line("frame=   20") == 1.0


class TestVideoEncoder:
    @pytest.fixture
    def encoder(self, settings):
        settings.diagnostic_max_chars = 50
        return VideoEncoder(settings)

    def test_empty_directory_refused_before_spawn(self, encoder, tmp_dir):
        options = EncodeOptions(frames_dir=str(tmp_dir), fps=30, output_path=str(tmp_dir / "o.mp4"))
        with patch("framecast.rendering.engine.subprocess.Popen") as popen:
            with pytest.raises(EmptyFrameSequenceError):
                encoder.encode(options)
        popen.assert_not_called()

    def test_gap_refused(self, encoder, tmp_dir):
        frames = write_frames(tmp_dir / "frames", [0, 1, 3])
        options = EncodeOptions(frames_dir=str(frames), fps=30, output_path=str(tmp_dir / "o.mp4"))
        with patch("framecast.rendering.engine.subprocess.Popen") as popen:
            with pytest.raises(EncodeError, match="1 missing frames") as exc_info:
                encoder.encode(options)
        assert exc_info.value.details["missing_frames"] == [2]
        popen.assert_not_called()

    def test_missing_audio_refused(self, encoder, tmp_dir):
        frames = write_frames(tmp_dir / "frames", range(3))
        options = EncodeOptions(
            frames_dir=str(frames),
            fps=30,
            output_path=str(tmp_dir / "o.mp4"),
            audio_path=str(tmp_dir / "missing.wav"),
        )
        with pytest.raises(EncodeError, match="Audio file not found"):
            encoder.encode(options)

    def test_successful_encode(self, encoder, tmp_dir):
        frames = write_frames(tmp_dir / "frames", range(15, 105))
        audio = tmp_dir / "voice.wav"
        audio.write_bytes(b"RIFF")
        output = tmp_dir / "out" / "video.mp4"
        options = EncodeOptions(
            frames_dir=str(frames),
            fps=30,
            output_path=str(output),
            audio_path=str(audio),
        )
        progress = []
        with (
            patch(
                "framecast.rendering.engine.subprocess.Popen",
                side_effect=fake_popen(stderr="frame=   45\nframe=   90\n", output_path=output),
            ) as popen,
            patch("framecast.rendering.engine.subprocess.run", return_value=probe_result()),
        ):
            result = encoder.encode(options, progress.append)

        cmd = popen.call_args[0][0]
        assert cmd[cmd.index("-start_number") + 1] == "15"
        assert str(audio) in cmd
        assert progress == [0.5, 1.0, 1.0]
        assert result.output_path == str(output)
        assert result.duration == 3.0
        assert result.audio_codec == "aac"
        assert (result.width, result.height, result.fps) == (64, 36, 30.0)

    def test_ffmpeg_failure_truncates_stderr(self, encoder, tmp_dir):
        frames = write_frames(tmp_dir / "frames", range(3))
        output = tmp_dir / "o.mp4"
        stderr = "x" * 500 + "Invalid pixel format\n"
        options = EncodeOptions(frames_dir=str(frames), fps=30, output_path=str(output))
        with patch(
            "framecast.rendering.engine.subprocess.Popen",
            side_effect=fake_popen(returncode=1, stderr=stderr),
        ):
            with pytest.raises(EncodeError) as exc_info:
                encoder.encode(options)

        details = exc_info.value.details
        assert details["returncode"] == 1
        assert len(details["stderr"]) == 50
        assert details["stderr"].endswith("Invalid pixel format\n")
        assert "Invalid pixel format" in Path(details["debug_file"]).read_text()

    def test_ffmpeg_missing(self, encoder, tmp_dir):
        frames = write_frames(tmp_dir / "frames", range(3))
        options = EncodeOptions(frames_dir=str(frames), fps=30, output_path=str(tmp_dir / "o.mp4"))
        with patch("framecast.rendering.engine.subprocess.Popen", side_effect=FileNotFoundError):
            with pytest.raises(EncodeError, match="FFmpeg not found"):
                encoder.encode(options)

    def test_output_without_video_stream(self, encoder, tmp_dir):
        frames = write_frames(tmp_dir / "frames", range(3))
        output = tmp_dir / "o.mp4"
        options = EncodeOptions(frames_dir=str(frames), fps=30, output_path=str(output))
        with (
            patch(
                "framecast.rendering.engine.subprocess.Popen",
                side_effect=fake_popen(output_path=output),
            ),
            patch(
                "framecast.rendering.engine.subprocess.run",
                return_value=probe_result({"format": {"duration": "0.1"}, "streams": []}),
            ),
        ):
            with pytest.raises(EncodeError, match="no video stream"):
                encoder.encode(options)

    def test_frame_size_mismatch(self, encoder, tmp_dir):
        frames = write_frames(tmp_dir / "frames", range(3))
        options = EncodeOptions(
            frames_dir=str(frames),
            fps=30,
            output_path=str(tmp_dir / "o.mp4"),
            width=64,
            height=36,
        )
        with patch(
            "framecast.rendering.engine.cv2.imread",
            return_value=np.zeros((72, 128, 4), dtype=np.uint8),
        ):
            with pytest.raises(EncodeError, match="128x72 does not match expected 64x36"):
                encoder.encode(options)

    def test_unreadable_frame_skips_size_check(self, encoder, tmp_dir):
        frames = write_frames(tmp_dir / "frames", range(3))
        options = EncodeOptions(
            frames_dir=str(frames), fps=30, output_path=str(tmp_dir / "o.mp4"), width=64, height=36
        )
        with patch("framecast.rendering.engine.cv2.imread", return_value=None):
            encoder.check_frame_size(frames, options, 0)

    def test_selected_range_ignores_stale_frames(self, encoder, tmp_dir):
        # frames 0-19 are left over from an earlier render of the same job
        frames = write_frames(tmp_dir / "frames", range(20))
        output = tmp_dir / "o.mp4"
        options = EncodeOptions(
            frames_dir=str(frames),
            fps=30,
            output_path=str(output),
            start_frame=5,
            frame_count=5,
        )
        with (
            patch(
                "framecast.rendering.engine.subprocess.Popen",
                side_effect=fake_popen(output_path=output),
            ) as popen,
            patch("framecast.rendering.engine.subprocess.run", return_value=probe_result()),
        ):
            encoder.encode(options)

        cmd = popen.call_args[0][0]
        assert cmd[cmd.index("-start_number") + 1] == "5"
        assert cmd[cmd.index("-frames:v") + 1] == "5"

    def test_selected_range_missing_frame_refused(self, encoder, tmp_dir):
        frames = write_frames(tmp_dir / "frames", [0, 1, 2, 3, 5, 6])
        options = EncodeOptions(
            frames_dir=str(frames),
            fps=30,
            output_path=str(tmp_dir / "o.mp4"),
            start_frame=2,
            frame_count=4,
        )
        with patch("framecast.rendering.engine.subprocess.Popen") as popen:
            with pytest.raises(EncodeError, match="1 missing frames") as exc_info:
                encoder.encode(options)
        assert exc_info.value.details["missing_frames"] == [4]
        popen.assert_not_called()

    def test_selected_range_with_no_files_is_empty(self, encoder, tmp_dir):
        frames = write_frames(tmp_dir / "frames", range(3))
        options = EncodeOptions(
            frames_dir=str(frames),
            fps=30,
            output_path=str(tmp_dir / "o.mp4"),
            start_frame=10,
            frame_count=2,
        )
        with pytest.raises(EmptyFrameSequenceError):
            encoder.encode(options)

    def test_open_ended_range_runs_to_last_file(self, encoder, tmp_dir):
        frames = write_frames(tmp_dir / "frames", range(8))
        assert encoder.collect_frame_indices(frames, "frame-%06d.png", start_frame=6) == [6, 7]
