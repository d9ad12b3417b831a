"""External process helpers for git and the hosting provider CLIs."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from config import Config

from .errors import CloneError, SkliError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    output: str  # stdout and stderr combined

    @property
    def ok(self) -> bool:
        return self.returncode == 0


async def run_command(
    args: Sequence[str],
    cwd: str | Path | None = None,
    timeout: float | None = None,
    env: dict[str, str] | None = None,
) -> CommandResult:
    """Run an executable and capture its combined output.

    Never raises for a failing process; callers inspect ``returncode``.

    Args:
        args: Executable and its arguments
        cwd: Working directory (default: current directory)
        timeout: Seconds before the process is killed (default: Config.GIT_TIMEOUT,
            0 or less waits forever)
        env: Extra environment variables

    Returns:
        CommandResult with the exit code and decoded output
    """
    if timeout is None:
        timeout = Config.GIT_TIMEOUT
    logger.debug("Running %s (cwd=%s)", " ".join(args), cwd or os.getcwd())

    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            cwd=str(cwd) if cwd else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            env={**os.environ, **env} if env else None,
        )
    except FileNotFoundError:
        return CommandResult(127, f"{args[0]} command not found")

    try:
        if timeout and timeout > 0:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=timeout)
        else:
            stdout, _ = await process.communicate()
    except TimeoutError:
        process.kill()
        await process.communicate()
        logger.warning("%s timed out after %ss", " ".join(args), timeout)
        return CommandResult(-1, f"{args[0]} timed out after {timeout:g}s")

    output = stdout.decode(errors="replace") if stdout else ""
    if process.returncode != 0:
        logger.debug("%s exited with %s: %s", args[0], process.returncode, output.strip())
    return CommandResult(process.returncode if process.returncode is not None else -1, output)


async def run_git(
    cwd: str | Path | None,
    *args: str,
    error_cls: type[SkliError] = CloneError,
    message: str | None = None,
    repo_url: str | None = None,
) -> str:
    """Run ``git <args>`` and return its output, raising ``error_cls`` on failure."""
    # Never block on a credential prompt.
    result = await run_command(["git", *args], cwd=cwd, env={"GIT_TERMINAL_PROMPT": "0"})
    if not result.ok:
        raise error_cls(
            message or f"git {args[0]} failed",
            repo_url=repo_url,
            output=result.output,
        )
    return result.output
