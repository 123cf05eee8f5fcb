"""
Tests for dvdrip activity logging module
"""

import re
from unittest.mock import patch

from dvdrip import activity


class TestLogFormatting:
    """Tests for log message formatting"""

    def test_log_creates_proper_format(self, isolated_activity_log):
        """Test log entries have correct format"""
        activity.log("Test message", "INFO")

        written = isolated_activity_log.read_text()
        # Check format: "YYYY-MM-DD HH:MM:SS | LEVEL | message\n"
        assert re.match(r'^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} \| INFO \| Test message\n$', written)

    def test_log_appends(self, isolated_activity_log):
        activity.log_info("one")
        activity.log_info("two")
        assert len(isolated_activity_log.read_text().splitlines()) == 2

    def test_level_uppercased(self, isolated_activity_log):
        activity.log("quiet", "warn")
        assert " | WARN | quiet" in isolated_activity_log.read_text()

    def test_log_info_uses_info_level(self):
        """Test log_info uses INFO level"""
        with patch.object(activity, 'log') as mock_log:
            activity.log_info("Test info")
            mock_log.assert_called_once_with("Test info", "INFO")

    def test_log_success_uses_success_level(self):
        """Test log_success uses SUCCESS level"""
        with patch.object(activity, 'log') as mock_log:
            activity.log_success("Test success")
            mock_log.assert_called_once_with("Test success", "SUCCESS")

    def test_log_error_uses_error_level(self):
        """Test log_error uses ERROR level"""
        with patch.object(activity, 'log') as mock_log:
            activity.log_error("Test error")
            mock_log.assert_called_once_with("Test error", "ERROR")

    def test_log_warning_uses_warn_level(self):
        """Test log_warning uses WARN level"""
        with patch.object(activity, 'log') as mock_log:
            activity.log_warning("Test warning")
            mock_log.assert_called_once_with("Test warning", "WARN")

    def test_write_failure_does_not_raise(self, monkeypatch, tmp_path, capsys):
        blocker = tmp_path / 'blocker'
        blocker.write_text('x')
        monkeypatch.setattr(activity, 'ACTIVITY_LOG', blocker / 'activity.log')
        activity.log_info("still fine")
        assert "Failed to write activity log" in capsys.readouterr().out


class TestEcho:
    """Tests for console echo"""

    def test_echo_prints_message(self, capsys):
        activity.set_echo(True)
        activity.log_info("Ripping to: /plex/storage")
        activity.log_warning("No metadata")
        out = capsys.readouterr().out
        assert "Ripping to: /plex/storage\n" in out
        assert "Warn: No metadata" in out

    def test_no_echo_by_default(self, capsys):
        activity.log_info("silent")
        assert capsys.readouterr().out == ""

    def test_configure_log_dir(self, monkeypatch, tmp_path):
        activity.configure(log_dir=str(tmp_path / 'custom'))
        activity.log_info("moved")
        assert (tmp_path / 'custom' / 'activity.log').exists()


class TestActivityEvents:
    """Tests for specific activity event functions"""

    def test_rip_started(self):
        with patch.object(activity, 'log_info') as mock_log:
            activity.rip_started("Inception", "movie")
            mock_log.assert_called_once_with("Rip started: Inception (movie)")

    def test_rip_completed(self):
        with patch.object(activity, 'log_success') as mock_log:
            activity.rip_completed("Inception (2010)", "/plex/SciFi/Inception (2010)")
            mock_log.assert_called_once_with("Rip complete: Inception (2010) -> /plex/SciFi/Inception (2010)")

    def test_rip_failed(self):
        with patch.object(activity, 'log_error') as mock_log:
            activity.rip_failed("Inception", "Disc read error")
            mock_log.assert_called_once_with("Rip failed: Inception - Disc read error")

    def test_job_queued(self):
        with patch.object(activity, 'log_info') as mock_log:
            activity.job_queued("abc12345", "Inception", "/dev/sr0")
            mock_log.assert_called_once_with("Job abc12345 queued: Inception on /dev/sr0")

    def test_metadata_miss(self):
        with patch.object(activity, 'log_warning') as mock_log:
            activity.metadata_miss("breaking bad", "Unknown/BreakingBad")
            assert "Unknown/BreakingBad" in mock_log.call_args[0][0]

    def test_disc_ejected(self):
        with patch.object(activity, 'log_success') as mock_log:
            activity.disc_ejected("/dev/sr0")
            mock_log.assert_called_once_with("Disc ejected from /dev/sr0")


class TestReadRecent:
    """Tests for reading the log back"""

    def test_missing_log(self):
        assert activity.read_recent() == []

    def test_zero_or_negative_limit(self):
        activity.log_info("event")
        assert activity.read_recent(limit=0) == []
        assert activity.read_recent(limit=-5) == []

    def test_newest_first_with_limit(self):
        for i in range(5):
            activity.log_info(f"event {i}")
        lines = activity.read_recent(limit=3)
        assert len(lines) == 3
        assert lines[0].endswith("event 4")
        assert lines[2].endswith("event 2")
