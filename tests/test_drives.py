"""
Tests for dvdrip drive handling
"""

from unittest.mock import patch

from dvdrip.drives import (
    extract_drive_index,
    format_drive,
    extract_device_path,
    find_optical_devices,
    eject_disc,
)
from dvdrip.tools import ToolResult


class TestFormatDrive:
    """Tests for device path to MakeMKV drive specifier"""

    def test_linux_uses_index(self):
        assert format_drive('/dev/sr0', platform='linux') == 'disc:0'
        assert format_drive('/dev/sr1', platform='linux') == 'disc:1'

    def test_first_digit_run_only(self):
        assert format_drive('/dev/disk2s1', platform='linux') == 'disc:2'

    def test_no_digits_defaults_to_zero(self):
        assert format_drive('/dev/cdrom', platform='linux') == 'disc:0'

    def test_macos_uses_raw_path(self):
        assert format_drive('/dev/rdisk2', platform='darwin') == 'dev:/dev/rdisk2'

    def test_extract_drive_index(self):
        assert extract_drive_index('/dev/sr12') == '12'
        assert extract_drive_index('/dev/cdrom') == ''


class TestExtractDevicePath:
    """Tests for mapping a drive specifier back to a device"""

    def test_index_specifier(self):
        assert extract_device_path('disc:0') == '/dev/sr0'
        assert extract_device_path('disc:3') == '/dev/sr3'

    def test_raw_path_specifier(self):
        assert extract_device_path('dev:/dev/rdisk2') == '/dev/rdisk2'

    def test_linux_round_trip(self):
        assert extract_device_path(format_drive('/dev/sr1', platform='linux')) == '/dev/sr1'


class TestFindOpticalDevices:
    """Tests for drive discovery"""

    def test_linux_devices_before_macos(self):
        found = {
            '/dev/sr*': ['/dev/sr1', '/dev/sr0'],
            '/dev/rdisk*': ['/dev/rdisk4'],
        }
        with patch('dvdrip.drives.glob.glob', side_effect=lambda pattern: found[pattern]):
            assert find_optical_devices() == ['/dev/sr0', '/dev/sr1', '/dev/rdisk4']

    def test_no_devices(self):
        with patch('dvdrip.drives.glob.glob', return_value=[]):
            assert find_optical_devices() == []


class TestEjectDisc:
    """Tests for ejecting a disc"""

    def test_success(self):
        with patch('dvdrip.drives.run_tool', return_value=ToolResult(returncode=0)) as mock_run:
            assert eject_disc('/dev/sr0') is True
        mock_run.assert_called_once_with(['eject', '/dev/sr0'], timeout=30)

    def test_custom_command(self):
        with patch('dvdrip.drives.run_tool', return_value=ToolResult(returncode=0)) as mock_run:
            eject_disc('/dev/rdisk2', eject_cmd='drutil')
        assert mock_run.call_args[0][0] == ['drutil', '/dev/rdisk2']

    def test_failure_is_reported_not_raised(self):
        failed = ToolResult(returncode=1, stderr="eject: unable to open /dev/sr0")
        with patch('dvdrip.drives.run_tool', return_value=failed):
            with patch('dvdrip.drives.activity.log_warning') as mock_warn:
                assert eject_disc('/dev/sr0') is False
        assert 'unable to open' in mock_warn.call_args[0][0]
