"""
dvdrip MakeMKV Wrapper
Queries disc info, selects titles and runs extractions with makemkvcon
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from . import activity
from .tools import ToolResult, run_tool

DEFAULT_TITLE = "0"
MOVIE_MIN_LENGTH = 3600  # 60 min
TV_MIN_LENGTH = 600      # 10 min

# Disc name: CINFO:2,0,"GUARDIANS_VOL_3"
DISC_TITLE_RE = re.compile(r'^CINFO:2,0,"(.+)"', re.MULTILINE)
# Title duration: TINFO:0,9,0,"1:45:30"
DURATION_RE = re.compile(r'^TINFO:(\d+),9,\d+,"([^"]*)"')


@dataclass
class DiscTitle:
    id: str
    duration_seconds: int


def parse_duration(value: str) -> Optional[int]:
    """Parse "h:mm:ss", "m:ss" or plain seconds. Returns None if unparseable."""
    parts = value.strip().split(":")
    try:
        numbers = [int(p) for p in parts]
    except ValueError:
        return None
    if any(n < 0 for n in numbers):
        return None
    if len(numbers) == 3:
        return numbers[0] * 3600 + numbers[1] * 60 + numbers[2]
    elif len(numbers) == 2:
        return numbers[0] * 60 + numbers[1]
    elif len(numbers) == 1:
        return numbers[0]
    return None


def parse_titles(info_output: str) -> List[DiscTitle]:
    """Parse title records from robot-mode `info` output, in disc order"""
    titles = []
    for line in info_output.splitlines():
        match = DURATION_RE.match(line.strip())
        if not match:
            continue
        duration = parse_duration(match.group(2))
        if duration is None:
            continue
        titles.append(DiscTitle(id=match.group(1), duration_seconds=duration))
    return titles


def parse_disc_title(info_output: str) -> str:
    """Extract the disc name field from robot-mode `info` output"""
    match = DISC_TITLE_RE.search(info_output)
    return match.group(1).strip() if match else ""


def select_longest_title(titles: List[DiscTitle], min_length: int = MOVIE_MIN_LENGTH) -> str:
    """Pick the id of the longest title at or above `min_length`.

    The first title seen wins a tie. Falls back to title "0" when nothing
    qualifies; the extraction floor then lets MakeMKV reject it.
    """
    best: Optional[DiscTitle] = None
    for title in titles:
        if title.duration_seconds < min_length:
            continue
        if best is None or title.duration_seconds > best.duration_seconds:
            best = title

    if best is None:
        activity.log_warning(f"No title of at least {min_length // 60} minutes found, falling back to title {DEFAULT_TITLE}")
        return DEFAULT_TITLE

    activity.log_info(f"TRACK SELECT: Selected title {best.id} ({best.duration_seconds // 60}m)")
    return best.id


class MakeMKV:
    """Wrapper for the makemkvcon command-line interface"""

    def __init__(self, binary: str = "makemkvcon"):
        self.binary = binary

    def _run_cmd(self, args: List[str]) -> ToolResult:
        return run_tool([self.binary] + args)

    def get_disc_info(self, drive: str) -> ToolResult:
        """Run `makemkvcon -r info <drive>` (robot mode)"""
        return self._run_cmd(["-r", "info", drive])

    def get_titles(self, drive: str) -> List[DiscTitle]:
        result = self.get_disc_info(drive)
        if not result.ok:
            activity.log_warning(f"makemkvcon info failed on {drive} (exit {result.returncode})")
            return []
        return parse_titles(result.stdout)

    def discover_disc_title(self, drive: str) -> str:
        """Read the disc name from the disc. Returns "" if it can't be found."""
        result = self.get_disc_info(drive)
        if not result.ok:
            activity.log_warning(f"makemkvcon info failed on {drive} (exit {result.returncode})")
            return ""
        return parse_disc_title(result.stdout)

    def rip_title(self, drive: str, title: str, output_dir: str,
                  min_length: int = MOVIE_MIN_LENGTH) -> ToolResult:
        """Extract one title ("0", "3", ...) or "all" titles into output_dir"""
        args = ["mkv", drive, title, output_dir, f"--minlength={min_length}"]
        activity.log_info(f"Running: {self.binary} {' '.join(args)}")
        return self._run_cmd(args)

    def rip_longest(self, drive: str, output_dir: str,
                    min_length: int = MOVIE_MIN_LENGTH) -> ToolResult:
        """Select the longest title on the disc and extract it"""
        title = select_longest_title(self.get_titles(drive), min_length)
        return self.rip_title(drive, title, output_dir, min_length)

    def rip_all(self, drive: str, output_dir: str,
                min_length: int = TV_MIN_LENGTH) -> ToolResult:
        """Extract every title at or above min_length"""
        return self.rip_title(drive, "all", output_dir, min_length)
