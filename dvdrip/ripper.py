"""
dvdrip Ripping Engine
Runs the movie and TV rip workflows: naming, storage, extraction, cleanup, rename, eject
"""

import os
import re
import uuid
from pathlib import Path
from datetime import datetime
from typing import Optional, Dict, List, Tuple
from dataclasses import dataclass, field
from enum import Enum

from . import activity
from . import config as config_module
from .drives import format_drive, extract_device_path, eject_disc
from .errors import WorkflowError, ErrorCode, RipError, classify_makemkv_return_code
from .makemkv import MakeMKV
from .metadata import (FileBot, RenameOutcome, MOVIE_DB, TV_DB, MOVIE_FORMAT,
                       SHOW_PATH_FORMAT, episode_format)
from .episodes import DurationReader, filter_episodes
from .storage import resolve_best_disk, validate_category_name, GIB

MOVIE_STEPS = [
    "resolve-name", "validate-storage", "resolve-metadata", "build-path",
    "format-drive", "extract", "rename", "eject", "report",
]
TV_STEPS = [
    "parse-season-disc", "validate-storage", "resolve-metadata", "build-path",
    "format-drive", "extract", "retention-filter", "rename", "eject", "report",
]

_SEASON_DISC_RE = re.compile(r'^\s*(\d+)-(\d+)\s*$')


def sanitize_folder_name(name: str) -> str:
    """Sanitize a string for use as a folder name.

    Removes/replaces characters that cause issues with MakeMKV or filesystems.
    """
    # Replace colons with dashes (common in movie titles like "Star Wars: The Rise of Skywalker")
    name = name.replace(':', ' -')
    # Remove other problematic characters, including path separators
    name = re.sub(r'[<>"|?*/\\]', '', name)
    # Clean up multiple spaces
    name = re.sub(r'\s+', ' ', name).strip()
    return name


def is_usable_folder_name(name: str) -> bool:
    """False for names that don't name a folder of their own ("", ".", "..")"""
    return name not in ("", ".", "..")


def to_camel_case(name: str) -> str:
    """Strip everything but letters and digits, capitalizing each word.

    "Star Wars: A New Hope (1977)" -> "StarWarsANewHope1977"
    """
    words = re.findall(r'[^\W_]+', name)
    return "".join(word[0].upper() + word[1:] for word in words)


def season_folder(season_number: int) -> str:
    return f"Season {season_number:02d}"


def parse_season_disc(value: str) -> Tuple[int, int]:
    """Parse "season-disc" ("1-2" -> (1, 2)). Anything else is fatal."""
    match = _SEASON_DISC_RE.match(value or "")
    if not match:
        raise WorkflowError(
            ErrorCode.INVALID_SEASON_DISC,
            f"Invalid season-disc format: {value!r}. You must specify both season and disc "
            f"(e.g., '1-2' for season 1, disc 2)"
        )
    return int(match.group(1)), int(match.group(2))


def rename_mkv_files(directory: str, name: str) -> List[str]:
    """Rename the MKV files in `directory` to "<name>.mkv", "<name>1.mkv", ...

    Raises FileNotFoundError when there are no MKV files.
    """
    files = sorted(Path(directory).glob("*.mkv"))
    if not files:
        raise FileNotFoundError(f"No MKV files found in {directory}")
    if len(files) > 1:
        activity.log_warning("More than one file in the directory, manual rename may be required")

    renamed = []
    for i, src in enumerate(files):
        suffix = "" if i == 0 else str(i)
        dest = src.with_name(f"{name}{suffix}.mkv")
        if src != dest:
            src.rename(dest)
            activity.log_info(f"Renamed: {src.name} -> {dest.name}")
        renamed.append(str(dest))
    return renamed


class RipStatus(Enum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETE = "complete"
    ERROR = "error"
    CANCELLED = "cancelled"


class StepStatus(Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETE = "complete"
    WARNING = "warning"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass
class RipStep:
    status: str = "pending"
    detail: str = ""


@dataclass
class ResolvedTarget:
    final_name: str
    output_dir: str


@dataclass
class RipJob:
    """A single rip request and its progress"""
    device: str = "/dev/sr0"
    category: str = ""
    query: str = ""
    media_type: str = "movie"  # "movie" or "tv"
    movie_name: str = ""  # Explicit name (-m), takes priority over query
    season_disc: str = ""  # Raw "season-disc" argument for TV
    season_number: Optional[int] = None
    disc_number: Optional[int] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    status: RipStatus = RipStatus.QUEUED
    current_step: str = ""
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    target: Optional[ResolvedTarget] = None
    drive: str = ""
    rename_outcome: str = ""
    removed_files: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    error: Optional[RipError] = None
    cancel_requested: bool = False
    steps: Dict[str, RipStep] = field(default_factory=dict)

    @property
    def title(self) -> str:
        return self.movie_name or self.query or "Unknown disc"

    @property
    def finished(self) -> bool:
        return self.status in (RipStatus.COMPLETE, RipStatus.ERROR, RipStatus.CANCELLED)

    def to_dict(self):
        """Convert to dictionary for JSON serialization"""
        return {
            "id": self.id,
            "device": self.device,
            "category": self.category,
            "query": self.query,
            "movie_name": self.movie_name,
            "media_type": self.media_type,
            "season_number": self.season_number,
            "disc_number": self.disc_number,
            "status": self.status.value if isinstance(self.status, RipStatus) else self.status,
            "current_step": self.current_step,
            "created_at": self.created_at,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "final_name": self.target.final_name if self.target else "",
            "output_dir": self.target.output_dir if self.target else "",
            "drive": self.drive,
            "rename_outcome": self.rename_outcome,
            "removed_files": self.removed_files,
            "warnings": self.warnings,
            "error": self.error.to_dict() if self.error else None,
            "steps": {k: {"status": v.status, "detail": v.detail} for k, v in self.steps.items()}
        }


class RipEngine:
    """Runs rip workflows against one configuration"""

    def __init__(self, config: dict, makemkv: MakeMKV = None, filebot: FileBot = None,
                 durations: DurationReader = None, platform: str = None):
        self.config = config
        tools = config.get("tools", {})
        self.makemkv = makemkv or MakeMKV(tools.get("makemkvcon", "makemkvcon"))
        self.filebot = filebot or FileBot(tools.get("filebot", "filebot"))
        self.durations = durations or DurationReader(tools.get("ffprobe", "ffprobe"))
        self.eject_cmd = tools.get("eject", "eject")
        self.platform = platform

        ripping = config.get("ripping", {})
        self.movie_min_length = ripping.get("movie_min_length", 3600)
        self.tv_min_length = ripping.get("tv_min_episode_length", 600)
        self.tv_max_length = ripping.get("tv_max_episode_length", 3900)
        self.eject_when_done = ripping.get("eject_when_done", True)

        self.storage_path = config.get("paths", {}).get("storage", "/plex/storage")
        storage = config.get("storage", {})
        self.fstab = storage.get("fstab", "/etc/fstab")
        self.pool_fs_type = storage.get("pool_fs_type", "mergerfs")
        self.min_free_bytes = int(storage.get("min_free_gb", 5) * GIB)
        self.write_to_branch = storage.get("write_to_branch", False)

    # ---------- step bookkeeping ----------

    def _update_step(self, job: RipJob, step: str, status: str, detail: str = ""):
        """Update a step's status"""
        if step in job.steps:
            job.steps[step].status = status
            job.steps[step].detail = detail

    def _begin_step(self, job: RipJob, step: str):
        if job.cancel_requested:
            raise WorkflowError(ErrorCode.JOB_CANCELLED, f"Job {job.id} cancelled before {step}")
        job.current_step = step
        self._update_step(job, step, StepStatus.ACTIVE.value)

    def _complete_step(self, job: RipJob, step: str, detail: str = ""):
        self._update_step(job, step, StepStatus.COMPLETE.value, detail)

    def _warn_step(self, job: RipJob, step: str, message: str):
        job.warnings.append(message)
        activity.log_warning(message)
        self._update_step(job, step, StepStatus.WARNING.value, message)

    # ---------- entry point ----------

    def run(self, job: RipJob) -> RipJob:
        """Run the workflow for `job` to completion.

        Raises WorkflowError on any fatal condition, after recording it on the job.
        """
        job.steps = {name: RipStep() for name in (TV_STEPS if job.media_type == "tv" else MOVIE_STEPS)}
        job.status = RipStatus.RUNNING
        job.started_at = datetime.now().isoformat()
        activity.rip_started(job.title, job.media_type)

        try:
            if job.media_type == "tv":
                self._run_tv(job)
            else:
                self._run_movie(job)
        except WorkflowError as e:
            job.error = e.error
            job.completed_at = datetime.now().isoformat()
            if e.code == ErrorCode.JOB_CANCELLED:
                job.status = RipStatus.CANCELLED
                activity.job_cancelled(job.id)
            else:
                job.status = RipStatus.ERROR
                self._update_step(job, job.current_step, StepStatus.ERROR.value, e.error.message)
                activity.rip_failed(job.title, e.error.message)
            raise

        job.status = RipStatus.COMPLETE
        job.completed_at = datetime.now().isoformat()
        activity.rip_completed(job.target.final_name, job.target.output_dir)
        return job

    # ---------- shared steps ----------

    def validate_storage(self) -> str:
        """Check the storage root and, for a pooled root, that the pool has space.

        Returns the root to build output paths under.
        """
        root = self.storage_path
        config_module.verify_storage_path(root)

        pool = config_module.get_pool_disks(root, self.fstab, self.pool_fs_type)
        if not pool:
            return root

        activity.log_info(f"Storage pool at {root}: {', '.join(pool)}")
        disk = resolve_best_disk(pool, self.min_free_bytes)
        if self.write_to_branch:
            activity.log_info(f"Writing directly to pool member {disk}")
            return disk
        return root

    def _make_target(self, final_name: str, output_dir: str) -> ResolvedTarget:
        try:
            Path(output_dir).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WorkflowError(ErrorCode.OUTPUT_DIR_FAILED,
                                f"Error creating output directory {output_dir}", details=str(e))
        return ResolvedTarget(final_name=final_name, output_dir=output_dir)

    def _format_drive(self, job: RipJob):
        self._begin_step(job, "format-drive")
        job.drive = format_drive(job.device, self.platform)
        activity.log_info(f"Using device: {job.device} (MakeMKV: {job.drive})")
        self._complete_step(job, "format-drive", job.drive)

    def _check_extraction(self, result, what: str):
        if result.ok:
            return
        error = classify_makemkv_return_code(result.returncode)
        raise WorkflowError(
            ErrorCode.EXTRACTION_FAILED,
            f"MakeMKV extraction failed for {what}: {error.message}",
            details=(result.stderr or result.stdout).strip()[-500:] or error.details
        )

    def _eject(self, job: RipJob):
        self._begin_step(job, "eject")
        if not self.eject_when_done:
            self._update_step(job, "eject", StepStatus.SKIPPED.value, "Eject disabled")
            return
        device = extract_device_path(job.drive)
        if eject_disc(device, self.eject_cmd):
            self._complete_step(job, "eject", device)
        else:
            self._warn_step(job, "eject", f"Could not eject disc from {device}")

    # ---------- movie ----------

    def resolve_movie_name(self, job: RipJob) -> str:
        """Explicit name, then the query argument, then the disc's own title"""
        if job.movie_name.strip():
            activity.log_info(f"Using provided movie name: {job.movie_name.strip()}")
            return job.movie_name.strip()
        if job.query.strip():
            return job.query.strip()

        activity.log_info("Discovering movie name from disc...")
        name = self.makemkv.discover_disc_title(format_drive(job.device, self.platform))
        if not name:
            raise WorkflowError(ErrorCode.NAME_NOT_FOUND,
                                "Could not discover movie name from disc. Please provide it manually.")
        activity.log_info(f"Discovered movie name: {name}")
        return name

    def resolve_movie_metadata(self, job: RipJob, name: str) -> str:
        activity.log_info(f"Looking up movie info in TMDB for: {name}...")
        final_name = self.filebot.lookup(name, MOVIE_FORMAT, MOVIE_DB)
        if not final_name:
            self._metadata_miss(job, name, name)
            return name
        activity.log_info(f"Found: {final_name}")
        self._complete_step(job, "resolve-metadata", final_name)
        return final_name

    def _metadata_miss(self, job: RipJob, query: str, fallback: str):
        message = f"No metadata match for '{query}', naming is unverified"
        job.warnings.append(message)
        activity.metadata_miss(query, fallback)
        self._update_step(job, "resolve-metadata", StepStatus.WARNING.value, message)

    def _run_movie(self, job: RipJob):
        self._begin_step(job, "resolve-name")
        name = self.resolve_movie_name(job)
        if not job.category.strip():
            raise WorkflowError(ErrorCode.CATEGORY_MISSING, "Target category must be provided")
        try:
            category = validate_category_name(job.category)
        except ValueError as e:
            raise WorkflowError(ErrorCode.INVALID_CATEGORY, str(e))
        if not is_usable_folder_name(sanitize_folder_name(name)):
            raise WorkflowError(ErrorCode.INVALID_NAME, f"Movie name {name!r} can't be used as a folder name")
        self._complete_step(job, "resolve-name", name)

        self._begin_step(job, "validate-storage")
        root = self.validate_storage()
        self._complete_step(job, "validate-storage", root)

        self._begin_step(job, "resolve-metadata")
        final_name = self.resolve_movie_metadata(job, name)

        self._begin_step(job, "build-path")
        folder = sanitize_folder_name(final_name)
        if not is_usable_folder_name(folder):
            folder = sanitize_folder_name(name)
            self._warn_step(job, "build-path", f"Metadata name {final_name!r} is not a usable folder name, using {folder!r}")
        job.target = self._make_target(folder, os.path.join(root, category, folder))
        activity.log_info(f"Target: {job.target.output_dir}/{folder}.mkv")
        if job.steps["build-path"].status != StepStatus.WARNING.value:
            self._complete_step(job, "build-path", job.target.output_dir)

        self._format_drive(job)

        self._begin_step(job, "extract")
        result = self.makemkv.rip_longest(job.drive, job.target.output_dir, self.movie_min_length)
        self._check_extraction(result, job.target.final_name)
        self._complete_step(job, "extract")

        self._begin_step(job, "rename")
        activity.log_info("Renaming movie file with proper name from FileBot...")
        outcome = self.filebot.rename(job.target.output_dir, MOVIE_FORMAT, MOVIE_DB)
        job.rename_outcome = outcome.value
        if outcome == RenameOutcome.FAILED:
            try:
                rename_mkv_files(job.target.output_dir, job.target.final_name)
                self._complete_step(job, "rename", "Renamed locally")
            except OSError as e:
                self._warn_step(job, "rename", f"Rename failed: {e}")
        elif outcome == RenameOutcome.UNCERTAIN:
            self._warn_step(job, "rename", "FileBot rename reported an error; check file names")
        else:
            self._complete_step(job, "rename")

        self._eject(job)

        self._begin_step(job, "report")
        activity.log_info("-------------------------------------------------------")
        activity.log_success("RIP COMPLETE!")
        activity.log_info(f"Files are in: {job.target.output_dir}")
        self._complete_step(job, "report", job.target.output_dir)

    # ---------- tv ----------

    def resolve_show_path(self, job: RipJob) -> str:
        """Genre/Show (Year) {tmdb-id} from FileBot, or Unknown/<CamelCaseQuery>"""
        query = job.query.strip()
        activity.log_info(f"Looking up show info for: {query}...")
        show_path = self.filebot.lookup(query, SHOW_PATH_FORMAT, MOVIE_DB)
        if show_path:
            activity.log_info(f"Found: {show_path}")
            self._complete_step(job, "resolve-metadata", show_path)
            return show_path

        fallback = f"Unknown/{to_camel_case(query) or 'Untitled'}"
        self._metadata_miss(job, query, fallback)
        return fallback

    def _run_tv(self, job: RipJob):
        self._begin_step(job, "parse-season-disc")
        if not job.query.strip():
            raise WorkflowError(ErrorCode.NAME_NOT_FOUND, "A show name must be provided")
        job.season_number, job.disc_number = parse_season_disc(job.season_disc)
        self._complete_step(job, "parse-season-disc",
                            f"Season {job.season_number}, disc {job.disc_number}")

        self._begin_step(job, "validate-storage")
        root = self.validate_storage()
        self._complete_step(job, "validate-storage", root)

        self._begin_step(job, "resolve-metadata")
        show_path = self.resolve_show_path(job)

        self._begin_step(job, "build-path")
        parts = [sanitize_folder_name(p) for p in show_path.split("/")]
        parts = [p for p in parts if p and p not in (".", "..")]
        output_dir = os.path.join(root, *parts, season_folder(job.season_number))
        job.target = self._make_target(parts[-1] if parts else job.query, output_dir)
        self._complete_step(job, "build-path", output_dir)

        self._format_drive(job)

        self._begin_step(job, "extract")
        activity.log_info(f"Ripping to: {output_dir}")
        result = self.makemkv.rip_all(job.drive, output_dir, self.tv_min_length)
        self._check_extraction(result, f"{job.query} season {job.season_number} disc {job.disc_number}")
        self._complete_step(job, "extract")

        self._begin_step(job, "retention-filter")
        report = filter_episodes(output_dir, self.durations, self.tv_min_length, self.tv_max_length)
        job.removed_files = report.removed
        if report.skipped:
            self._warn_step(job, "retention-filter", "ffprobe not found, extra tracks were not removed")
        else:
            self._complete_step(job, "retention-filter",
                                f"Kept {len(report.kept)}, removed {len(report.removed)}")

        # The disc number does not offset episode numbering
        self._begin_step(job, "rename")
        activity.log_info("Renaming episodes with proper names from FileBot...")
        outcome = self.filebot.rename(output_dir, episode_format(job.season_number), TV_DB)
        job.rename_outcome = outcome.value
        if outcome == RenameOutcome.RENAMED:
            self._complete_step(job, "rename")
        else:
            self._warn_step(job, "rename", f"FileBot rename {outcome.value}; check episode names")

        self._eject(job)

        self._begin_step(job, "report")
        activity.log_info("-------------------------------------------------------")
        activity.log_success("RIP COMPLETE!")
        activity.log_info(f"Files are in: {output_dir}")
        activity.log_info(f"Step 1: Verify episodes match S{job.season_number:02d}E01, S{job.season_number:02d}E02, etc.")
        activity.log_info("Step 2: Verify file names are correct.")
        activity.log_info("Step 3: Scan library in Jellyfin/Plex Dashboard.")
        self._complete_step(job, "report", output_dir)
