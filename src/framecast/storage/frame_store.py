"""Per-job frame directory lifecycle."""

import logging
import shutil
import time
from collections.abc import Collection
from pathlib import Path

from framecast.config import get_settings

logger = logging.getLogger(__name__)

FRAMES_SUBDIR = "frames"


class FrameStore:
    """Manages per-job working directories holding rendered frame sequences.

    Frames stay on disk after a failed render; only an explicit cleanup
    removes them.
    """

    def __init__(self, base_dir: Path | None = None):
        self.base_dir = Path(base_dir or get_settings().work_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._job_dirs: dict[str, tuple[Path, float]] = {}

    def create_job_dir(self, job_id: str) -> Path:
        """Create the working directory for a job."""
        job_dir = self.base_dir / job_id
        job_dir.mkdir(parents=True, exist_ok=True)
        self._job_dirs[job_id] = (job_dir, time.time())
        return job_dir

    def get_job_dir(self, job_id: str) -> Path | None:
        if job_id in self._job_dirs:
            return self._job_dirs[job_id][0]
        job_dir = self.base_dir / job_id
        if job_dir.exists():
            return job_dir
        return None

    def frames_dir(self, job_id: str) -> Path:
        """Directory the job's frame sequence is written to, created on demand."""
        job_dir = self.get_job_dir(job_id) or self.create_job_dir(job_id)
        frames = job_dir / FRAMES_SUBDIR
        frames.mkdir(parents=True, exist_ok=True)
        return frames

    def cleanup_job(self, job_id: str) -> None:
        """Remove a job's working directory and everything in it."""
        job_dir, _created = self._job_dirs.pop(job_id, (self.base_dir / job_id, 0.0))
        if job_dir.exists():
            shutil.rmtree(job_dir, ignore_errors=True)
            logger.info("Cleaned up frames for job %s", job_id)

    def cleanup_expired(
        self, ttl_seconds: int | None = None, skip: Collection[str] = ()
    ) -> int:
        """Clean up job directories older than ``ttl_seconds``.

        Jobs in ``skip`` are kept whatever their age; a job still rendering
        is never swept.
        """
        ttl = ttl_seconds or get_settings().frame_ttl_seconds
        now = time.time()
        expired_jobs = [
            jid
            for jid, (_, created) in self._job_dirs.items()
            if now - created > ttl and jid not in skip
        ]
        for job_id in expired_jobs:
            self.cleanup_job(job_id)
        return len(expired_jobs)
