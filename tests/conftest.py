"""
Pytest fixtures for dvdrip tests
"""

import copy
import sys
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from dvdrip import activity
from dvdrip import config
from dvdrip.makemkv import MakeMKV
from dvdrip.metadata import FileBot, RenameOutcome
from dvdrip.episodes import DurationReader
from dvdrip.tools import ToolResult


@pytest.fixture(autouse=True)
def isolated_activity_log(tmp_path, monkeypatch):
    """Keep activity log writes inside the test's temp dir"""
    monkeypatch.setattr(activity, 'LOG_DIR', tmp_path / 'logs')
    monkeypatch.setattr(activity, 'ACTIVITY_LOG', tmp_path / 'logs' / 'activity.log')
    monkeypatch.setattr(activity, '_echo', False)
    return tmp_path / 'logs' / 'activity.log'


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def storage_root(tmp_path):
    root = tmp_path / 'storage'
    root.mkdir()
    return root


@pytest.fixture
def sample_config(storage_root, tmp_path):
    """dvdrip configuration pointing at a temp storage root and an empty fstab"""
    cfg = copy.deepcopy(config.DEFAULTS)
    cfg['paths']['storage'] = str(storage_root)
    cfg['storage']['fstab'] = str(tmp_path / 'fstab')
    return cfg


@pytest.fixture
def ok_result():
    return ToolResult(args=[], returncode=0, stdout="", stderr="")


@pytest.fixture
def fake_makemkv(ok_result):
    mkv = MagicMock(spec=MakeMKV)
    mkv.rip_longest.return_value = ok_result
    mkv.rip_all.return_value = ok_result
    mkv.discover_disc_title.return_value = ""
    return mkv


@pytest.fixture
def fake_filebot():
    fb = MagicMock(spec=FileBot)
    fb.lookup.return_value = ""
    fb.rename.return_value = RenameOutcome.RENAMED
    return fb


@pytest.fixture
def fake_durations():
    durations = MagicMock(spec=DurationReader)
    durations.available.return_value = True
    durations.get_duration.return_value = 2700.0
    return durations


@pytest.fixture
def sample_disc_info():
    """Robot-mode `makemkvcon -r info` output for a movie disc"""
    return "\n".join([
        'MSG:1005,0,1,"MakeMKV v1.17.7 linux(x64-release) started","%1 started","MakeMKV v1.17.7 linux(x64-release)"',
        'DRV:0,2,999,1,"BD-RE HL-DT-ST","INCEPTION","/dev/sr0"',
        'CINFO:1,6209,"DVD disc"',
        'CINFO:2,0,"INCEPTION"',
        'TINFO:0,2,0,"Inception"',
        'TINFO:0,9,0,"0:02:00"',
        'TINFO:1,2,0,"Inception"',
        'TINFO:1,9,0,"1:23:20"',
        'TINFO:2,9,0,"1:20:00"',
    ])
