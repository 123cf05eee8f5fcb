"""
dvdrip Metadata Lookup
FileBot wrapper for name lookups and in-place renames
"""

from enum import Enum
from typing import List

from . import activity
from .tools import ToolResult, run_tool

MOVIE_DB = "TheMovieDB"
TV_DB = "TheTVDB"

MOVIE_FORMAT = "{n} ({y})"
SHOW_PATH_FORMAT = "{genre.toCamelCase()}/{n} ({y}) {tmdb-$id}"


def episode_format(season_number: int) -> str:
    """Rename format for episodes of one season: "Show - S01E03 - Title" """
    return "{n} - S%02dE{e.pad(2)} - {t}" % season_number


class RenameOutcome(Enum):
    RENAMED = "renamed"      # FileBot exited 0
    UNCERTAIN = "uncertain"  # FileBot exited non-zero; it may still have renamed some files
    FAILED = "failed"        # FileBot could not be run at all


class FileBot:
    """Wrapper for the filebot command-line interface"""

    def __init__(self, binary: str = "filebot"):
        self.binary = binary

    def _run_cmd(self, args: List[str]) -> ToolResult:
        return run_tool([self.binary] + args)

    def lookup(self, query: str, fmt: str, db: str = MOVIE_DB) -> str:
        """Look up `query` and return the first formatted line, or "" on no match.

        Read-only: this never touches files.
        """
        result = self._run_cmd(["-list", "--db", db, "--q", query, "--format", fmt])
        if not result.ok:
            activity.log_warning(f"Error fetching metadata for '{query}' (exit {result.returncode})")
            return ""
        return result.first_line()

    def rename(self, directory: str, fmt: str, db: str = MOVIE_DB) -> RenameOutcome:
        """Rename media files under `directory` recursively, in place"""
        result = self._run_cmd(["-rename", directory, "-r", "--db", db,
                                "--format", fmt, "--action", "move"])
        if result.stdout.strip():
            activity.log_info(f"FileBot output:\n{result.stdout.strip()}")

        if result.returncode == 127:
            return RenameOutcome.FAILED
        if not result.ok:
            activity.log_warning(f"FileBot exited with code {result.returncode}; files may be partially renamed")
            return RenameOutcome.UNCERTAIN
        return RenameOutcome.RENAMED
