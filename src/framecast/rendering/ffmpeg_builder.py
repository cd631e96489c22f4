"""FFmpeg command construction for image-sequence encodes."""

from pathlib import Path


class FFmpegCommandBuilder:
    """Builds FFmpeg argument lists for encoding a numbered frame sequence."""

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        video_codec: str = "libx264",
        pix_fmt: str = "yuv420p",
        crf: int | None = 23,
        preset: str | None = "medium",
        audio_codec: str = "aac",
        audio_bitrate: str = "192k",
    ):
        self.ffmpeg_path = ffmpeg_path
        self.video_codec = video_codec
        self.pix_fmt = pix_fmt
        self.crf = crf
        self.preset = preset
        self.audio_codec = audio_codec
        self.audio_bitrate = audio_bitrate

    def build_input_args(
        self,
        frames_dir: Path,
        frame_pattern: str,
        fps: int,
        audio_path: Path | None = None,
        start_number: int = 0,
    ) -> list[str]:
        """Image sequence input, then the optional audio input."""
        args = ["-framerate", str(fps)]
        if start_number:
            args.extend(["-start_number", str(start_number)])
        args.extend(["-i", str(frames_dir / frame_pattern)])
        if audio_path is not None:
            # Stop at the shorter of the two streams
            args.extend(["-i", str(audio_path), "-shortest"])
        return args

    def build_video_args(self, frame_count: int | None = None) -> list[str]:
        args = ["-c:v", self.video_codec, "-pix_fmt", self.pix_fmt]
        if frame_count is not None:
            args.extend(["-frames:v", str(frame_count)])
        if self.crf is not None:
            args.extend(["-crf", str(self.crf)])
        if self.preset:
            args.extend(["-preset", self.preset])
        return args

    def build_audio_args(self) -> list[str]:
        return ["-c:a", self.audio_codec, "-b:a", self.audio_bitrate]

    def build_command(
        self,
        frames_dir: Path,
        frame_pattern: str,
        fps: int,
        output_path: Path,
        audio_path: Path | None = None,
        extra_args: list[str] | None = None,
        start_number: int = 0,
        frame_count: int | None = None,
    ) -> list[str]:
        """Full argument list, binary first.

        Output rate is pinned to the input rate so ffmpeg never drops or
        duplicates frames.
        """
        cmd = [self.ffmpeg_path, "-y"]
        cmd.extend(
            self.build_input_args(frames_dir, frame_pattern, fps, audio_path, start_number)
        )
        cmd.extend(self.build_video_args(frame_count))
        if audio_path is not None:
            cmd.extend(self.build_audio_args())
        cmd.extend(extra_args or [])
        cmd.extend(["-r", str(fps), str(output_path)])
        return cmd
