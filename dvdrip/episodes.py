"""
dvdrip episode durations
Uses ffprobe to drop ripped files that aren't single episodes
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from . import activity
from .tools import run_tool, tool_available

MIN_EPISODE_SECONDS = 600   # 10 min - shorter is intro/bonus material
MAX_EPISODE_SECONDS = 3900  # 65 min - longer is a merged "Play All" track


@dataclass
class RetentionReport:
    kept: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    skipped: bool = False  # True when ffprobe is unavailable


class DurationReader:
    """Wrapper for ffprobe duration queries"""

    def __init__(self, binary: str = "ffprobe"):
        self.binary = binary

    def available(self) -> bool:
        return tool_available(self.binary)

    def get_duration(self, path: str) -> Optional[float]:
        """Duration of a media file in seconds, or None if it can't be read"""
        result = run_tool([self.binary, "-v", "error", "-show_entries", "format=duration",
                           "-of", "default=noprint_wrappers=1:nokey=1", str(path)])
        if not result.ok:
            return None
        try:
            return float(result.first_line())
        except ValueError:
            return None


def is_episode_length(duration: float, min_seconds: int = MIN_EPISODE_SECONDS,
                      max_seconds: int = MAX_EPISODE_SECONDS) -> bool:
    """True if a duration (truncated to whole seconds) is within the band, both ends inclusive"""
    seconds = int(duration)
    return min_seconds <= seconds <= max_seconds


def filter_episodes(directory: str, durations: DurationReader,
                    min_seconds: int = MIN_EPISODE_SECONDS,
                    max_seconds: int = MAX_EPISODE_SECONDS) -> RetentionReport:
    """Delete MKV files in `directory` whose duration is outside the episode band.

    Best-effort: files that can't be read or deleted are kept.
    """
    report = RetentionReport()
    activity.log_info("Cleaning up extra-long 'Play All' tracks...")

    if not durations.available():
        activity.log_warning("ffprobe not found. Skipping automatic Play-All cleanup.")
        report.skipped = True
        return report

    for mkv in sorted(Path(directory).glob("*.mkv")):
        duration = durations.get_duration(str(mkv))
        if duration is None or is_episode_length(duration, min_seconds, max_seconds):
            report.kept.append(str(mkv))
            continue

        if int(duration) < min_seconds:
            reason = f"shorter than {min_seconds // 60} minutes ({duration / 60:.2f} min)"
        else:
            reason = f"longer than {max_seconds // 60} minutes ({duration / 60:.2f} min)"

        try:
            mkv.unlink()
        except OSError as e:
            activity.log_warning(f"Could not remove file {mkv.name}: {e}")
            report.kept.append(str(mkv))
            continue
        activity.file_removed(mkv.name, reason)
        report.removed.append(str(mkv))

    return report
