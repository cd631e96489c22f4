"""FFmpeg progress monitoring."""

import re
from collections.abc import Callable

_FRAME = re.compile(r"frame=\s*(\d+)")
_TIME = re.compile(r"time=(\d+):(\d+):(\d+\.?\d*)")


class FFmpegProgressMonitor:
    """Monitor FFmpeg encoding progress from stderr output.

    Progress is measured in encoded frames when the total frame count is
    known, otherwise in encoded time against ``total_duration``.
    """

    def __init__(
        self,
        total_frames: int = 0,
        callback: Callable[[float], None] | None = None,
        total_duration: float = 0.0,
    ):
        self.total_frames = total_frames
        self.total_duration = total_duration
        self.callback = callback
        self.current_frame = 0
        self.current_time = 0.0

    def parse_line(self, line: str) -> float | None:
        """Parse an FFmpeg stderr line for frame= or time= progress."""
        frame_match = _FRAME.search(line)
        time_match = _TIME.search(line)
        if not frame_match and not time_match:
            return None
        if frame_match:
            self.current_frame = int(frame_match.group(1))
        if time_match:
            hours = int(time_match.group(1))
            minutes = int(time_match.group(2))
            seconds = float(time_match.group(3))
            self.current_time = hours * 3600 + minutes * 60 + seconds
        progress = self.progress
        if self.callback:
            self.callback(progress)
        return progress

    @property
    def progress(self) -> float:
        """Current progress as fraction [0, 1]."""
        if self.total_frames > 0:
            return min(1.0, self.current_frame / self.total_frames)
        if self.total_duration > 0:
            return min(1.0, self.current_time / self.total_duration)
        return 0.0
