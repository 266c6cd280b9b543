from __future__ import annotations

import logging
import os
import signal
import subprocess
from dataclasses import dataclass
from typing import Sequence

from services.compressor.domain.errors import ToolExecutionError, ToolTimeoutError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolResult:
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_tool(cmd: Sequence[str], *, timeout: float | None = None) -> ToolResult:
    """Run an external binary from an argument vector and capture its output.

    The child runs in its own session so that a timeout kills the whole
    process group, including any helpers it forked.
    """
    args = [str(part) for part in cmd]
    try:
        proc = subprocess.Popen(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=os.name == "posix",
        )
    except OSError as exc:
        raise ToolExecutionError(f"could not start {args[0]}: {exc}") from exc

    try:
        stdout, stderr = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        _kill(proc)
        proc.communicate()
        raise ToolTimeoutError(f"{args[0]} did not finish within {timeout} seconds")

    return ToolResult(
        returncode=proc.returncode,
        stdout=stdout.decode("utf-8", errors="ignore"),
        stderr=stderr.decode("utf-8", errors="ignore"),
    )


def _kill(proc: subprocess.Popen) -> None:
    if os.name == "posix":
        try:
            os.killpg(proc.pid, signal.SIGKILL)
            return
        except ProcessLookupError:
            return
        except PermissionError:
            logger.warning("Could not kill process group %s, killing child only", proc.pid)
    proc.kill()
