"""
dvdrip Activity Logger
Logs user-facing rip events to the activity log file
"""

from datetime import datetime
from pathlib import Path
from typing import List

LOG_DIR = Path.home() / ".rip" / "logs"
ACTIVITY_LOG = LOG_DIR / "activity.log"

# CLI runs echo every event to the console as well
_echo = False


def configure(log_dir: str = None, echo: bool = None):
    """Point the activity log at a different directory and/or toggle console echo"""
    global LOG_DIR, ACTIVITY_LOG, _echo
    if log_dir:
        LOG_DIR = Path(log_dir).expanduser()
        ACTIVITY_LOG = LOG_DIR / "activity.log"
    if echo is not None:
        _echo = echo


def set_echo(enabled: bool):
    """Enable or disable echoing log lines to stdout"""
    configure(echo=enabled)


def log(message: str, level: str = "INFO"):
    """Log an activity event"""
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    level = level.upper()

    line = f"{timestamp} | {level} | {message}\n"

    if _echo:
        prefix = "" if level in ("INFO", "SUCCESS") else f"{level.capitalize()}: "
        print(f"{prefix}{message}")

    try:
        ACTIVITY_LOG.parent.mkdir(parents=True, exist_ok=True)
        with open(ACTIVITY_LOG, "a") as f:
            f.write(line)
    except Exception as e:
        print(f"Failed to write activity log: {e}")


def log_info(message: str):
    """Log an info event"""
    log(message, "INFO")


def log_success(message: str):
    """Log a success event"""
    log(message, "SUCCESS")


def log_error(message: str):
    """Log an error event"""
    log(message, "ERROR")


def log_warning(message: str):
    """Log a warning event"""
    log(message, "WARN")


# Convenience functions for specific events
def rip_started(title: str, mode: str = "movie"):
    log_info(f"Rip started: {title} ({mode})")


def rip_completed(title: str, output_dir: str):
    log_success(f"Rip complete: {title} -> {output_dir}")


def rip_failed(title: str, error: str):
    log_error(f"Rip failed: {title} - {error}")


def job_queued(job_id: str, title: str, device: str):
    log_info(f"Job {job_id} queued: {title} on {device}")


def job_cancelled(job_id: str):
    log_warning(f"Job {job_id} cancelled")


def metadata_miss(query: str, fallback: str):
    log_warning(f"No metadata match for '{query}', using '{fallback}' (naming is unverified)")


def file_removed(filename: str, reason: str):
    log_info(f"Removed {filename}: {reason}")


def disc_ejected(device: str):
    log_success(f"Disc ejected from {device}")


def service_started():
    log_info("dvdrip web service started")


def read_recent(limit: int = 100) -> List[str]:
    """Return the last `limit` log lines, newest first"""
    if limit <= 0:
        return []
    lines = []
    try:
        if ACTIVITY_LOG.exists():
            with open(ACTIVITY_LOG) as f:
                lines = f.readlines()[-limit:]
            lines = [line.strip() for line in lines if line.strip()]
            lines.reverse()
    except OSError:
        pass
    return lines
