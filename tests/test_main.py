"""Tests for CLI argument handling in main.py."""
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from clipkeeper.main import main


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep `run` from reconfiguring the root logger during tests."""
    with patch("clipkeeper.main.configure_logging") as configure:
        yield configure


class TestRunArguments:
    """Tests for `clipkeeper run` option handling."""

    def test_help_exits_with_code_0(self):
        result = CliRunner().invoke(main, ["run", "--help"])
        assert result.exit_code == 0
        assert "--history-size" in result.output

    def test_text_only_and_content_types_are_exclusive(self):
        result = CliRunner().invoke(main, ["run", "--text-only", "--content-types", "image/png"])
        assert result.exit_code == 2
        assert "mutually exclusive" in result.output

    def test_invalid_history_size(self):
        result = CliRunner().invoke(main, ["run", "--history-size", "0"])
        assert result.exit_code == 2

    def test_invalid_content_type(self):
        result = CliRunner().invoke(main, ["run", "--content-types", "png"])
        assert result.exit_code == 2
        assert "not a content type" in result.output

    def test_options_build_config(self, tmp_path):
        with patch("clipkeeper.main._run_daemon") as run_daemon:
            result = CliRunner().invoke(main, [
                "run", "--history-size", "3", "--text-only", "--move-item-first",
                "--defer-push", "--push-delay", "0.2", "--data-dir", str(tmp_path),
                "--socket", str(tmp_path / "s.sock"),
            ])
        assert result.exit_code == 0, result.output
        config, socket, data_dir = run_daemon.call_args[0]
        assert config.history_size == 3
        assert config.content_types == ("text/plain",)
        assert config.move_item_first and config.defer_push
        assert config.push_delay == 0.2
        assert socket == str(tmp_path / "s.sock")
        assert data_dir == str(tmp_path)

    def test_environment_variables(self, tmp_path):
        env = {
            "CLIPKEEPER_HISTORY_SIZE": "7",
            "CLIPKEEPER_CONTENT_TYPES": "image/png,text/plain",
            "CLIPKEEPER_STRIP_TEXT": "1",
        }
        with patch("clipkeeper.main._run_daemon") as run_daemon:
            result = CliRunner().invoke(main, ["run"], env=env)
        assert result.exit_code == 0, result.output
        config = run_daemon.call_args[0][0]
        assert config.history_size == 7
        assert config.content_types == ("image/png", "text/plain")
        assert config.strip_text

    def test_missing_display_exits_1(self, tmp_path):
        result = CliRunner().invoke(
            main, ["run", "--socket", str(tmp_path / "s.sock"), "--data-dir", str(tmp_path)],
            env={"DISPLAY": ""},
        )
        assert result.exit_code == 1


class TestCtl:
    """Tests for `clipkeeper ctl` commands."""

    def test_list_prints_entries(self):
        response = {"ok": True, "entries": [
            {"handle": 2, "content_type": "text/plain", "favorite": False, "selected": True, "preview": "b"},
            {"handle": 1, "content_type": "text/plain", "favorite": True, "selected": False, "preview": "a"},
        ]}
        with patch("clipkeeper.control_client.send_command", AsyncMock(return_value=response)) as send:
            result = CliRunner().invoke(main, ["ctl", "--socket", "/tmp/x.sock", "list"])
        assert result.exit_code == 0
        assert result.output.splitlines() == ["*     2  b", " F    1  a"]
        send.assert_awaited_once_with("/tmp/x.sock", "list")

    def test_error_response_exits_1(self):
        response = {"ok": False, "error": "entry 9 not found"}
        with patch("clipkeeper.control_client.send_command", AsyncMock(return_value=response)):
            result = CliRunner().invoke(main, ["ctl", "select", "9"])
        assert result.exit_code == 1
        assert "entry 9 not found" in result.output

    def test_json_output(self):
        response = {"ok": True, "private": True, "changed": True}
        with patch("clipkeeper.control_client.send_command", AsyncMock(return_value=response)) as send:
            result = CliRunner().invoke(main, ["ctl", "--json", "private", "on"])
        assert result.exit_code == 0
        assert '"private": true' in result.output
        send.assert_awaited_once()
        assert send.await_args[0][1] == "private on"

    def test_daemon_not_running(self, tmp_path):
        result = CliRunner().invoke(main, ["ctl", "--socket", str(tmp_path / "none.sock"), "status"])
        assert result.exit_code == 1
        assert "not running" in result.output

    def test_handle_must_be_integer(self):
        result = CliRunner().invoke(main, ["ctl", "delete", "abc"])
        assert result.exit_code == 2


def test_verbose_and_log_file_passed_to_logging(no_logging_setup, tmp_path):
    log_file = str(tmp_path / "clipkeeper.log")
    with patch("clipkeeper.main._run_daemon"):
        result = CliRunner().invoke(main, ["run", "--verbose", "--log-file", log_file])
    assert result.exit_code == 0, result.output
    no_logging_setup.assert_called_once_with(True, log_file)


class TestCtlConfig:
    """Tests for `clipkeeper ctl config`."""

    def test_settings_sent_and_printed(self):
        response = {"ok": True, "config": {"history_size": 30, "content_types": ["text/plain", "image/png"]}}
        with patch("clipkeeper.control_client.send_command", AsyncMock(return_value=response)) as send:
            result = CliRunner().invoke(main, ["ctl", "config", "history_size=30", "move_item_first=on"])
        assert result.exit_code == 0, result.output
        assert send.await_args[0][1] == "config history_size=30 move_item_first=on"
        assert result.output.splitlines() == ["history_size: 30", "content_types: text/plain,image/png"]

    def test_without_arguments_shows_settings(self):
        response = {"ok": True, "config": {"history_size": 15}}
        with patch("clipkeeper.control_client.send_command", AsyncMock(return_value=response)) as send:
            result = CliRunner().invoke(main, ["ctl", "config"])
        assert result.exit_code == 0
        assert send.await_args[0][1] == "config"

    def test_rejected_setting_exits_1(self):
        response = {"ok": False, "error": "unknown setting 'colour'"}
        with patch("clipkeeper.control_client.send_command", AsyncMock(return_value=response)):
            result = CliRunner().invoke(main, ["ctl", "config", "colour=red"])
        assert result.exit_code == 1
        assert "unknown setting" in result.output
