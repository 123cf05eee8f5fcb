"""
dvdrip MakeMKV Updater
Downloads, builds and installs the latest MakeMKV release
"""

import re
import requests
from pathlib import Path
from typing import Optional

from . import activity
from .tools import run_tool

DOWNLOAD_PAGE = "https://www.makemkv.com/download/"
WORK_DIR = Path("/tmp/makemkv")

_VERSION_RE = re.compile(r'makemkv-oss-(\d+\.\d+\.\d+)')


def get_latest_version() -> Optional[str]:
    """Scrape the latest MakeMKV version from the download page"""
    try:
        r = requests.get(DOWNLOAD_PAGE, timeout=15)
    except requests.exceptions.RequestException as e:
        activity.log_warning(f"Could not reach {DOWNLOAD_PAGE}: {e}")
        return None
    if r.status_code != 200:
        activity.log_warning(f"MakeMKV download page returned {r.status_code}")
        return None

    match = _VERSION_RE.search(r.text)
    return match.group(1) if match else None


def is_version_installed(version: str, binary: str = "makemkvcon") -> bool:
    result = run_tool([binary, "info", "disc:0"], timeout=60)
    return f"v{version}" in (result.stdout + result.stderr)


def download_file(url: str, dest: Path) -> bool:
    """Download `url` to `dest`. Existing files are kept."""
    if dest.exists():
        activity.log_info(f"File already exists: {dest}")
        return True
    try:
        with requests.get(url, stream=True, timeout=60) as r:
            r.raise_for_status()
            with open(dest, 'wb') as f:
                for chunk in r.iter_content(chunk_size=1024 * 1024):
                    f.write(chunk)
    except (requests.exceptions.RequestException, OSError) as e:
        activity.log_error(f"Download failed for {url}: {e}")
        dest.unlink(missing_ok=True)
        return False
    return True


def build_package(work_dir: Path, tar_file: Path, pkg_name: str) -> Optional[str]:
    """Extract, configure, make and install one package. Returns an error string or None."""
    result = run_tool(["tar", "xzf", str(tar_file), "-C", str(work_dir)])
    if not result.ok:
        return f"tar extraction failed: {result.stderr.strip()}"

    build_dir = None
    for entry in sorted(work_dir.iterdir()):
        if entry.is_dir() and entry.name.startswith(pkg_name):
            build_dir = entry
            break
    if build_dir is None:
        return f"could not find extracted directory for {pkg_name}"

    for args in (["./configure"], ["make"], ["sudo", "make", "install"]):
        result = run_tool(args, cwd=str(build_dir))
        if not result.ok:
            return f"{' '.join(args)} failed: {result.stderr.strip()[-300:]}"
    return None


def verify_installation(binary: str = "makemkvcon") -> Optional[str]:
    """Return makemkvcon's version banner, or None if it doesn't look right"""
    result = run_tool([binary, "info", "disc:0"], timeout=60)
    first = (result.stdout or result.stderr).strip().split("\n")[0]
    return first if "MakeMKV" in first else None


def update_makemkv(binary: str = "makemkvcon", work_dir: Path = WORK_DIR) -> dict:
    """Install the latest MakeMKV if it isn't already installed"""
    result = {'success': False, 'version': None, 'updated': False, 'error': None}

    activity.log_info("Checking for the latest MakeMKV version...")
    latest = get_latest_version()
    if not latest:
        result['error'] = f"Could not determine latest MakeMKV version. Please visit {DOWNLOAD_PAGE}"
        return result
    result['version'] = latest
    activity.log_info(f"Latest MakeMKV version: {latest}")

    if is_version_installed(latest, binary):
        activity.log_info(f"MakeMKV {latest} is already installed.")
        result['success'] = True
        return result

    work_dir.mkdir(parents=True, exist_ok=True)
    activity.log_info(f"Downloading MakeMKV {latest}...")
    for pkg in ("makemkv-oss", "makemkv-bin"):
        tar_file = work_dir / f"{pkg}-{latest}.tar.gz"
        if not download_file(f"{DOWNLOAD_PAGE}{pkg}-{latest}.tar.gz", tar_file):
            result['error'] = f"Error downloading {pkg}"
            return result

    for pkg in ("makemkv-oss", "makemkv-bin"):
        activity.log_info(f"Extracting and building {pkg}...")
        error = build_package(work_dir, work_dir / f"{pkg}-{latest}.tar.gz", pkg)
        if error:
            result['error'] = f"Error building {pkg}: {error}"
            return result

    banner = verify_installation(binary)
    if banner:
        activity.log_info(banner)
    else:
        activity.log_warning("makemkvcon verification failed: unexpected output")

    activity.log_success(f"MakeMKV updated successfully to version {latest}!")
    result['success'] = True
    result['updated'] = True
    return result
