"""Running operating-system commands."""

import logging
import shlex
import subprocess
from pathlib import Path
from typing import Callable, List, Optional

from ..exceptions import CommandError

Runner = Callable[..., subprocess.CompletedProcess]


def format_command(command: List[str]) -> str:
    """Render a command the way a user would type it in a shell."""
    return " ".join(shlex.quote(str(part)) for part in command)


def run_command(
    command: List[str],
    logger: logging.Logger,
    cwd: Optional[Path] = None,
    input_text: Optional[str] = None,
    runner: Runner = subprocess.run,
    log_command: bool = True,
) -> subprocess.CompletedProcess:
    """Run a command, log it and raise CommandError on a non-zero exit.

    Args:
        command: Program and arguments
        logger: Logger receiving the command line and its output
        cwd: Working directory
        input_text: Text written to the command's stdin
        runner: subprocess.run compatible callable
        log_command: Set to False when the arguments carry a secret

    Returns:
        The completed process

    Raises:
        CommandError: If the program is missing or exits non-zero
    """
    rendered = format_command(command)
    if log_command:
        logger.info("$ %s", rendered)

    try:
        result = runner(
            command,
            cwd=cwd,
            input=input_text,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            check=False,
        )
    except FileNotFoundError as e:
        raise CommandError(rendered, 127, str(e)) from e

    output = (result.stdout or "").strip()
    if output:
        logger.debug(output)

    if result.returncode != 0:
        logger.error("Command failed (%s): %s", result.returncode, rendered)
        raise CommandError(rendered, result.returncode, output)

    return result
