"""
dvdrip Configuration Management
Handles loading and saving settings, storage path checks and pool discovery
"""

import copy
import os
import yaml
from pathlib import Path
from typing import List

from . import activity
from .errors import WorkflowError, ErrorCode

CONFIG_DIR = Path.home() / ".rip"
CONFIG_FILE = CONFIG_DIR / "settings.yaml"
DEFAULT_CONFIG = Path(__file__).parent / "default.yaml"

DEFAULTS = {
    'paths': {
        'storage': '/plex/storage',
    },
    'storage': {
        'fstab': '/etc/fstab',
        'pool_fs_type': 'mergerfs',
        'min_free_gb': 5,
        'write_to_branch': False,
    },
    'ripping': {
        'default_device': '/dev/sr0',
        'movie_min_length': 3600,       # 60 min
        'tv_min_episode_length': 600,   # 10 min
        'tv_max_episode_length': 3900,  # 65 min
        'eject_when_done': True,
    },
    'tools': {
        'makemkvcon': 'makemkvcon',
        'filebot': 'filebot',
        'ffprobe': 'ffprobe',
        'eject': 'eject',
    },
    'web': {
        'host': '0.0.0.0',
        'port': 8080,
    },
    'logging': {
        'dir': '~/.rip/logs',
    },
}


def deep_update(base: dict, updates: dict) -> dict:
    """Recursively merge `updates` into `base` in place"""
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            deep_update(base[key], value)
        else:
            base[key] = value
    return base


def load_config() -> dict:
    """Load configuration from file, or defaults if not exists"""
    cfg = copy.deepcopy(DEFAULTS)
    loaded = None
    if CONFIG_FILE.exists():
        with open(CONFIG_FILE) as f:
            loaded = yaml.safe_load(f)
    elif DEFAULT_CONFIG.exists():
        with open(DEFAULT_CONFIG) as f:
            loaded = yaml.safe_load(f)
    if loaded:
        deep_update(cfg, loaded)
    cfg['paths']['storage'] = os.path.expanduser(str(cfg['paths']['storage']))
    return cfg


def save_config(config: dict):
    """Save configuration to file"""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    with open(CONFIG_FILE, 'w') as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)


def create_default_config() -> bool:
    """Write the default settings file on first run. Returns True if created."""
    if CONFIG_FILE.exists():
        return False
    try:
        save_config(copy.deepcopy(DEFAULTS))
    except OSError as e:
        activity.log_warning(f"Could not create default config file at {CONFIG_FILE}: {e}")
        return False
    activity.log_info(f"Created default config file at: {CONFIG_FILE}")
    activity.log_info("Edit paths.storage in this file to choose where media is stored")
    return True


def verify_storage_path(storage_path: str):
    """Check the storage path exists, is a directory and is writable.

    Raises WorkflowError otherwise.
    """
    path = Path(storage_path)
    if not path.exists():
        raise WorkflowError(ErrorCode.STORAGE_MISSING,
                            f"Storage path does not exist: {storage_path}")
    if not path.is_dir():
        raise WorkflowError(ErrorCode.STORAGE_NOT_DIRECTORY,
                            f"Storage path is not a directory: {storage_path}")

    test_file = path / ".rip_test"
    try:
        test_file.write_text("test")
    except OSError as e:
        raise WorkflowError(ErrorCode.STORAGE_NOT_WRITABLE,
                            f"Storage path is not writable: {storage_path}", details=str(e))
    try:
        test_file.unlink()
    except OSError:
        pass


def get_pool_disks(mount_point: str, fstab_path: str = "/etc/fstab",
                   fs_type: str = "mergerfs") -> List[str]:
    """Return the member disks of the pool mounted at `mount_point`.

    Reads the mount table and matches entries by mount point and a
    filesystem-type substring. The source field holds the colon-delimited
    member list, e.g.:

        /mnt/disk1:/mnt/disk2 /plex/storage fuse.mergerfs defaults 0 0

    Returns an empty list when no pool is mounted there.
    """
    try:
        with open(fstab_path) as f:
            content = f.read()
    except OSError:
        return []

    target = os.path.normpath(mount_point)
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        parts = line.split()
        if len(parts) < 3:
            continue
        source, mount, entry_type = parts[0], parts[1], parts[2]
        if fs_type not in entry_type:
            continue
        if os.path.normpath(mount) != target:
            continue
        return [disk for disk in source.split(':') if disk]

    return []
