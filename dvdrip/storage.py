"""
dvdrip Storage
Picks the pool disk with the most free space and manages category folders
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from . import activity
from .errors import StorageError, ErrorCode

GIB = 1024 ** 3
MIN_FREE_BYTES = 5 * GIB


@dataclass
class PoolDisk:
    mount_path: str
    available_bytes: int

    @property
    def available_gb(self) -> float:
        return self.available_bytes / GIB


def get_disk_space(path: str) -> PoolDisk:
    """Query free space for one mount path. Raises OSError if it can't be read."""
    stat = os.statvfs(path)
    return PoolDisk(mount_path=path, available_bytes=stat.f_frsize * stat.f_bavail)


def resolve_best_disk(pool: Sequence[str], min_free_bytes: int = MIN_FREE_BYTES) -> str:
    """Return the pool member with the most available space.

    Disks are scanned in order and only a strictly larger value replaces the
    current pick, so the first disk wins an exact tie. Disks whose stats
    can't be read are skipped with a warning.

    Raises StorageError when the pool is empty, when no disk could be read,
    or when the winner has less than `min_free_bytes` free.
    """
    if not pool:
        raise StorageError(ErrorCode.NO_CANDIDATES, "No disk paths provided")

    best: Optional[PoolDisk] = None
    for disk_path in pool:
        try:
            disk = get_disk_space(disk_path)
        except OSError as e:
            activity.log_warning(f"Could not stat {disk_path}: {e}")
            continue

        if best is None or disk.available_bytes > best.available_bytes:
            best = disk

    if best is None:
        raise StorageError(ErrorCode.NO_ACCESSIBLE_DISK,
                           "Could not determine disk with most space: no disk was accessible")

    activity.log_info(f"Disk with most space: {best.mount_path} ({best.available_gb:.2f} GB available)")

    if best.available_bytes < min_free_bytes:
        raise StorageError(
            ErrorCode.INSUFFICIENT_SPACE,
            f"Insufficient free space on {best.mount_path}: "
            f"{best.available_gb:.2f} GB available, {min_free_bytes / GIB:.0f} GB required"
        )

    return best.mount_path


# ============== Categories ==============
# A category is a top-level folder under the storage root


def list_categories(storage_path: str) -> List[str]:
    """Return category folder names under the storage root"""
    try:
        entries = sorted(os.scandir(storage_path), key=lambda e: e.name)
    except OSError as e:
        activity.log_error(f"Error reading storage directory: {e}")
        return []
    return [entry.name for entry in entries if entry.is_dir() and not entry.name.startswith('.')]


def validate_category_name(name: str) -> str:
    """Return the stripped category name, or raise ValueError if it isn't a single folder name"""
    name = name.strip()
    if not name or name in ('.', '..') or '/' in name or '\\' in name:
        raise ValueError(f"Invalid category name: {name!r}")
    return name


def _category_path(storage_path: str, name: str) -> Path:
    return Path(storage_path) / validate_category_name(name)


def create_category(storage_path: str, name: str) -> Path:
    path = _category_path(storage_path, name)
    path.mkdir(parents=True, exist_ok=True)
    return path


def rename_category(storage_path: str, old_name: str, new_name: str) -> Path:
    old_path = _category_path(storage_path, old_name)
    new_path = _category_path(storage_path, new_name)
    if new_path.exists():
        raise FileExistsError(f"Category already exists: {new_name}")
    old_path.rename(new_path)
    return new_path


def delete_category(storage_path: str, name: str):
    """Delete a category folder. Only empty folders are removed."""
    _category_path(storage_path, name).rmdir()
