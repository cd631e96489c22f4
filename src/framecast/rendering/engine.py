"""Encode stage: assembles a rendered frame sequence (plus audio) into a video with FFmpeg."""

import json
import logging
import subprocess
from collections.abc import Callable
from pathlib import Path

import cv2

from framecast.config import Settings, get_settings
from framecast.models.errors import EmptyFrameSequenceError, EncodeError, truncate_diagnostic
from framecast.models.render import EncodeOptions, EncodeResult
from framecast.rendering.ffmpeg_builder import FFmpegCommandBuilder
from framecast.rendering.progress import FFmpegProgressMonitor
from framecast.rendering.workers import frame_glob, frame_index_from_name, format_frame_name

logger = logging.getLogger(__name__)


class VideoEncoder:
    """Encodes a numbered frame sequence into a single video file using FFmpeg."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.builder = FFmpegCommandBuilder(
            ffmpeg_path=self.settings.ffmpeg_path,
            video_codec=self.settings.output_video_codec,
            pix_fmt=self.settings.output_pix_fmt,
            crf=self.settings.output_crf,
            preset=self.settings.output_preset,
            audio_codec=self.settings.output_audio_codec,
            audio_bitrate=self.settings.output_audio_bitrate,
        )

    def encode(
        self,
        options: EncodeOptions,
        progress_callback: Callable[[float], None] | None = None,
    ) -> EncodeResult:
        """Encode ``options.frames_dir`` into ``options.output_path``.

        The frame sequence is checked before ffmpeg is spawned: it must be
        non-empty and contiguous. When ``options.start_frame`` is set, ffmpeg
        reads exactly the selected frames, so stale files from an earlier
        render in the same directory never reach the output.
        """
        frames_dir = Path(options.frames_dir)
        output_path = Path(options.output_path)
        indices = self.collect_frame_indices(
            frames_dir, options.frame_pattern, options.start_frame, options.frame_count
        )
        self.check_frame_size(frames_dir, options, indices[0])

        audio_path = Path(options.audio_path) if options.audio_path else None
        if audio_path is not None and not audio_path.exists():
            raise EncodeError(
                f"Audio file not found: {audio_path}", details={"audio_path": str(audio_path)}
            )

        output_path.parent.mkdir(parents=True, exist_ok=True)
        cmd = self.builder.build_command(
            frames_dir,
            options.frame_pattern,
            options.fps,
            output_path,
            audio_path=audio_path,
            extra_args=options.extra_args,
            start_number=indices[0],
            frame_count=len(indices) if options.start_frame is not None else None,
        )
        total_frames = options.total_frames or len(indices)
        monitor = FFmpegProgressMonitor(total_frames, progress_callback)

        logger.info("Encoding %d frames at %d fps into %s", len(indices), options.fps, output_path)
        self.run_ffmpeg(cmd, output_path, monitor)

        if progress_callback:
            progress_callback(1.0)

        result = self.validate_output(output_path, options)
        logger.info(
            "Encoded %s (%.2fs, %.1f MB)", output_path, result.duration, result.file_size_mb
        )
        return result

    def collect_frame_indices(
        self,
        frames_dir: Path,
        frame_pattern: str,
        start_frame: int | None = None,
        frame_count: int | None = None,
    ) -> list[int]:
        """Sorted indices of the frames to encode from ``frames_dir``.

        With ``start_frame`` set, only ``[start_frame, start_frame + frame_count)``
        is selected (up to the last file on disk when ``frame_count`` is None)
        and files outside it are ignored. Without it, every matching file is
        part of the sequence.

        Raises:
            EmptyFrameSequenceError: No file of the selection is on disk.
            EncodeError: The selection has missing frames.
        """
        found = set()
        if frames_dir.is_dir():
            for path in frames_dir.glob(frame_glob(frame_pattern)):
                index = frame_index_from_name(frame_pattern, path.name)
                if index is not None:
                    found.add(index)

        if start_frame is None:
            first = min(found) if found else 0
            last = max(found) if found else -1
        else:
            first = start_frame
            if frame_count is not None:
                last = start_frame + frame_count - 1
            else:
                last = max(found) if found else start_frame - 1
            outside = sum(1 for i in found if i < first or i > last)
            if outside:
                logger.warning(
                    "Ignoring %d frame files outside %d..%d in %s", outside, first, last, frames_dir
                )

        indices = sorted(i for i in found if first <= i <= last)
        if not indices:
            raise EmptyFrameSequenceError(
                f"No frames matching {frame_pattern} in {frames_dir}",
                details={
                    "frames_dir": str(frames_dir),
                    "frame_pattern": frame_pattern,
                    "start_frame": start_frame,
                },
            )
        expected = last - first + 1
        if expected != len(indices):
            missing = sorted(set(range(first, last + 1)) - set(indices))
            raise EncodeError(
                f"Frame sequence has {len(missing)} missing frames",
                details={"missing_frames": missing[:20], "frames_dir": str(frames_dir)},
            )
        return indices

    def check_frame_size(self, frames_dir: Path, options: EncodeOptions, first_index: int) -> None:
        """Compare the first frame's pixel size with the expected grid size."""
        if options.width is None or options.height is None:
            return
        first = frames_dir / format_frame_name(options.frame_pattern, first_index)
        image = cv2.imread(str(first), cv2.IMREAD_UNCHANGED)
        if image is None:
            logger.debug("Frame %s is not a readable raster image, skipping size check", first)
            return
        height, width = image.shape[:2]
        if (width, height) != (options.width, options.height):
            raise EncodeError(
                f"Frame size {width}x{height} does not match expected "
                f"{options.width}x{options.height}",
                details={"frame": str(first), "width": width, "height": height},
            )

    def run_ffmpeg(
        self, cmd: list[str], output_path: Path, monitor: FFmpegProgressMonitor
    ) -> None:
        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except FileNotFoundError:
            raise EncodeError(
                "FFmpeg not found. Please install FFmpeg.",
                details={"command": cmd[0]},
            )

        stderr_lines = []
        for line in process.stderr:
            stderr_lines.append(line)
            monitor.parse_line(line)
        process.wait()

        if process.returncode != 0:
            stderr_text = truncate_diagnostic(
                "".join(stderr_lines), self.settings.diagnostic_max_chars
            )
            # Dump full command to a debug file for inspection
            debug_path = output_path.parent / "ffmpeg_debug.txt"
            debug_path.write_text(
                "COMMAND:\n" + " ".join(cmd) + "\n\nSTDERR:\n" + "".join(stderr_lines)
            )
            logger.error("FFmpeg failed (code %d). Debug at: %s", process.returncode, debug_path)
            raise EncodeError(
                f"FFmpeg exited with code {process.returncode}",
                details={
                    "returncode": process.returncode,
                    "stderr": stderr_text,
                    "debug_file": str(debug_path),
                },
            )

    def validate_output(self, output_path: Path, options: EncodeOptions) -> EncodeResult:
        """Validate the encoded output using ffprobe."""
        if not output_path.exists():
            raise EncodeError("Output file was not created", details={"output": str(output_path)})

        try:
            result = subprocess.run(
                [
                    self.settings.ffprobe_path,
                    "-v",
                    "quiet",
                    "-print_format",
                    "json",
                    "-show_format",
                    "-show_streams",
                    str(output_path),
                ],
                capture_output=True,
                text=True,
                timeout=30,
            )
            probe = json.loads(result.stdout)
        except (OSError, subprocess.SubprocessError, json.JSONDecodeError) as e:
            raise EncodeError(
                f"Failed to validate output: {e}",
                details={"output": str(output_path)},
            )

        fmt = probe.get("format", {})
        duration = float(fmt.get("duration", 0))
        file_size = int(fmt.get("size", 0) or output_path.stat().st_size)

        video_codec = ""
        audio_codec = None
        width = options.width or self.settings.default_width
        height = options.height or self.settings.default_height
        fps = float(options.fps)

        for stream in probe.get("streams", []):
            if stream.get("codec_type") == "video":
                video_codec = stream.get("codec_name", "h264")
                width = int(stream.get("width", width))
                height = int(stream.get("height", height))
                r_fps = stream.get("r_frame_rate", f"{options.fps}/1")
                if "/" in str(r_fps):
                    num, den = r_fps.split("/")
                    fps = int(num) / int(den) if int(den) > 0 else fps
            elif stream.get("codec_type") == "audio":
                audio_codec = stream.get("codec_name", "aac")

        if not video_codec:
            raise EncodeError(
                "Encoded output has no video stream", details={"output": str(output_path)}
            )

        return EncodeResult(
            output_path=str(output_path),
            duration=duration,
            file_size_bytes=file_size,
            video_codec=video_codec,
            audio_codec=audio_codec,
            width=width,
            height=height,
            fps=fps,
        )
