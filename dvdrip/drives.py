"""
dvdrip Drive Handling
Maps device paths to MakeMKV drive specifiers, finds drives and ejects discs
"""

import glob
import os
import re
import sys
from typing import List

from . import activity
from .tools import run_tool

# Platforms (substring of sys.platform) where MakeMKV addresses drives by raw device path
RAW_PATH_PLATFORMS = ("darwin",)

_DIGITS = re.compile(r'\d+')


def extract_drive_index(device: str) -> str:
    """Return the first run of digits in a device path ("/dev/sr1" -> "1").

    This is lexical: "/dev/disk2s1" yields "2". Returns "" when there are no digits.
    """
    match = _DIGITS.search(device)
    return match.group(0) if match else ""


def format_drive(device: str, platform: str = None) -> str:
    """Format a device path as a MakeMKV drive specifier.

    macOS drives are addressed by raw path ("dev:/dev/rdisk2"), everything
    else by index ("disc:0").
    """
    platform = platform or sys.platform
    if any(p in platform for p in RAW_PATH_PLATFORMS):
        return f"dev:{device}"
    return f"disc:{extract_drive_index(device) or '0'}"


def extract_device_path(drive_spec: str) -> str:
    """Map a drive specifier back to a device path for eject ("disc:0" -> "/dev/sr0")"""
    if drive_spec.startswith("dev:"):
        return drive_spec[len("dev:"):]
    return f"/dev/sr{extract_drive_index(drive_spec)}"


def find_optical_devices() -> List[str]:
    """Discover /dev/sr* (Linux) and /dev/rdisk* (macOS) devices"""
    devices = sorted(glob.glob("/dev/sr*"))
    devices.extend(sorted(glob.glob("/dev/rdisk*")))
    return devices


def eject_disc(device: str, eject_cmd: str = "eject") -> bool:
    """Eject the disc in `device`. Returns True on success."""
    activity.log_info(f"Ejecting disc from {device}")
    result = run_tool([eject_cmd, device], timeout=30)
    if result.ok:
        activity.disc_ejected(device)
        return True

    stderr = result.stderr.strip()
    if "not found" in stderr.lower() and not os.path.exists(device):
        activity.log_warning(f"Could not eject disc: device {device} not found")
    else:
        activity.log_warning(f"Could not eject disc: {stderr or f'exit code {result.returncode}'}")
    return False
