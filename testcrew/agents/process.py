"""Subprocess helper that kills the child's whole process group on cancellation."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import signal
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def _signal_group(proc: asyncio.subprocess.Process, sig: signal.Signals) -> None:
    try:
        os.killpg(proc.pid, sig)
    except ProcessLookupError:
        return
    except OSError:
        with contextlib.suppress(ProcessLookupError):
            proc.send_signal(sig)


async def terminate_process_group(
    proc: asyncio.subprocess.Process, grace_seconds: float = 5.0
) -> None:
    """SIGTERM the process group, then SIGKILL it if it outlives the grace period."""
    if proc.returncode is not None:
        return
    _signal_group(proc, signal.SIGTERM)
    try:
        await asyncio.wait_for(proc.wait(), timeout=grace_seconds)
        return
    except TimeoutError:
        pass
    logger.warning("Process %d ignored SIGTERM, sending SIGKILL", proc.pid)
    _signal_group(proc, signal.SIGKILL)
    with contextlib.suppress(TimeoutError):
        await asyncio.wait_for(proc.wait(), timeout=grace_seconds)


async def run_command(
    args: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    grace_seconds: float = 5.0,
) -> CommandResult:
    """Run ``args`` in its own session and capture stdout/stderr.

    If the awaiting task is cancelled (e.g. by a timeout), the child and every
    process it spawned are terminated before the cancellation propagates.
    Raises FileNotFoundError when the executable does not exist.
    """
    full_env = {**os.environ, **(env or {})}
    logger.debug("Running %s in %s", " ".join(args), cwd)
    proc = await asyncio.create_subprocess_exec(
        *args,
        cwd=str(cwd),
        env=full_env,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        start_new_session=True,
    )
    try:
        stdout, stderr = await proc.communicate()
    except asyncio.CancelledError:
        await asyncio.shield(terminate_process_group(proc, grace_seconds))
        raise
    return CommandResult(
        returncode=proc.returncode if proc.returncode is not None else -1,
        stdout=stdout.decode(errors="replace"),
        stderr=stderr.decode(errors="replace"),
    )
