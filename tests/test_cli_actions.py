"""Tests for post-match install/exec actions."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from cli_actions import (
    build_exec_command,
    build_install_command,
    interpolate,
    make_release_callback,
    run_actions,
    run_command,
    validate_exec_template,
)
from errors import ActionError
from watch.config import WatchConfig
from versioning.models import Release

RELEASE = Release(
    name="@scope/foo",
    version="2.0.0",
    time=datetime(2024, 3, 1, 8, 30, tzinfo=timezone.utc),
)


class TestInterpolate:

    def test_name_and_version(self):
        release = Release(name="foo", version="2.0.0", time=RELEASE.time)
        assert interpolate("echo %p %v", release) == "echo foo 2.0.0"

    def test_spec_and_time(self):
        assert interpolate("%s at %t", RELEASE) == "@scope/foo@2.0.0 at 2024-03-01T08:30:00.000Z"

    def test_literal_percent(self):
        assert interpolate("100%% of %p", RELEASE) == "100% of @scope/foo"

    def test_unknown_placeholder_kept(self):
        assert interpolate("%x %", RELEASE) == "%x %"


class TestBuildCommands:

    def test_exec_splits_before_substituting(self):
        release = Release(name="foo", version="1.0.0 beta", time=RELEASE.time)
        command = build_exec_command("notify --title 'got %p' %v", release)
        assert command == ["notify", "--title", "got foo", "1.0.0 beta"]

    def test_exec_rejects_empty_template(self):
        with pytest.raises(ValueError):
            build_exec_command("   ", RELEASE)

    def test_install_appends_spec(self):
        assert build_install_command(("npm", "install"), RELEASE) == ["npm", "install", "@scope/foo@2.0.0"]


class TestRunActions:

    def test_install_then_exec(self):
        config = WatchConfig(install=True, exec_template="echo %v")
        with patch("cli_actions.run_command", new=AsyncMock(return_value=0)) as run:
            asyncio.run(run_actions(RELEASE, config))
        assert [c.args[0] for c in run.await_args_list] == [
            ["npm", "install", "@scope/foo@2.0.0"],
            ["echo", "2.0.0"],
        ]

    def test_failure_raises_action_error(self):
        config = WatchConfig(exec_template="false")
        with patch("cli_actions.run_command", new=AsyncMock(return_value=2)):
            with pytest.raises(ActionError) as exc_info:
                asyncio.run(run_actions(RELEASE, config))
        assert exc_info.value.returncode == 2
        assert exc_info.value.command == ["false"]

    def test_install_failure_skips_exec(self):
        config = WatchConfig(install=True, exec_template="echo %v")
        with patch("cli_actions.run_command", new=AsyncMock(return_value=1)) as run:
            with pytest.raises(ActionError):
                asyncio.run(run_actions(RELEASE, config))
        assert run.await_count == 1

    def test_no_callback_without_actions(self):
        assert make_release_callback(WatchConfig()) is None
        assert make_release_callback(WatchConfig(exec_template="echo")) is not None


class TestRunCommand:

    def test_returns_exit_status(self):
        process = AsyncMock()
        process.wait.return_value = 3
        process.returncode = 3
        with patch("asyncio.create_subprocess_exec", new=AsyncMock(return_value=process)) as spawn:
            assert asyncio.run(run_command(["tool", "arg"])) == 3
        spawn.assert_awaited_once_with("tool", "arg")

    def test_missing_executable(self):
        with patch("asyncio.create_subprocess_exec", new=AsyncMock(side_effect=FileNotFoundError())):
            assert asyncio.run(run_command(["no-such-tool"])) == 127


class TestValidateExecTemplate:

    def test_valid_template(self):
        assert validate_exec_template("notify 'got %p' %v") is None

    def test_unbalanced_quotes(self):
        assert "No closing quotation" in validate_exec_template("echo 'x %v")

    def test_blank_template(self):
        assert validate_exec_template("  ") == "Empty exec template"
