"""Tests for the command runner (hostadmin/utils/commands.py)."""

import logging
from unittest.mock import MagicMock

import pytest

from hostadmin.exceptions import CommandError
from hostadmin.utils.commands import format_command, run_command

logger = logging.getLogger("hostadmin.test")


def test_success_returns_result(completed):
    runner = MagicMock(return_value=completed(stdout="ok\n"))

    result = run_command(["groupadd", "devs"], logger, runner=runner)

    assert result.stdout == "ok\n"
    args, kwargs = runner.call_args
    assert args[0] == ["groupadd", "devs"]
    assert kwargs["check"] is False
    assert kwargs["text"] is True


def test_non_zero_exit(completed):
    runner = MagicMock(return_value=completed(returncode=9, stdout="groupadd: group 'devs' already exists"))

    with pytest.raises(CommandError) as exc_info:
        run_command(["groupadd", "devs"], logger, runner=runner)

    assert exc_info.value.returncode == 9
    assert "already exists" in exc_info.value.output
    assert exc_info.value.command == "groupadd devs"


def test_missing_program():
    runner = MagicMock(side_effect=FileNotFoundError("useradd"))

    with pytest.raises(CommandError) as exc_info:
        run_command(["useradd", "bob"], logger, runner=runner)

    assert exc_info.value.returncode == 127


def test_input_and_secret_command_line(completed, caplog):
    caplog.set_level(logging.INFO, logger="hostadmin")
    runner = MagicMock(return_value=completed())

    run_command(["chpasswd"], logger, input_text="bob:s3cret\n", runner=runner, log_command=False)

    assert runner.call_args.kwargs["input"] == "bob:s3cret\n"
    assert "s3cret" not in caplog.text
    assert "$ chpasswd" not in caplog.text


def test_format_command_quotes():
    assert format_command(["tar", "-C", "/a b", "c"]) == "tar -C '/a b' c"
