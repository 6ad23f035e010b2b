from __future__ import annotations

"""Argument-vector subprocess execution with a hard timeout."""

import asyncio
from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class ProcessResult:
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def diagnostics(self, limit: int = 500) -> str:
        """Tail of stderr (or stdout when stderr is empty)."""

        text = (self.stderr or self.stdout).strip()
        return text[-limit:]


class ProcessTimeout(Exception):
    def __init__(self, argv0: str, timeout: float) -> None:
        super().__init__(f"{argv0} timed out after {timeout:g} seconds")
        self.timeout = timeout


async def run_process(argv: Sequence[str], *, timeout: float) -> ProcessResult:
    """Run `argv` without a shell; kill it when `timeout` elapses.

    Raises FileNotFoundError when the executable is missing and
    ProcessTimeout on timeout.
    """

    proc = await asyncio.create_subprocess_exec(
        *argv,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise ProcessTimeout(argv[0], timeout) from None
    return ProcessResult(
        returncode=proc.returncode if proc.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
