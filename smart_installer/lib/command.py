from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import List, Mapping, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str

    def output_tail(self, lines: int) -> List[str]:
        combined = (self.stdout or "") + (self.stderr or "")
        out = [ln for ln in combined.splitlines() if ln.strip()]
        return out[-lines:] if lines > 0 else []


class CommandTimeout(Exception):
    def __init__(self, argv: Sequence[str], timeout_s: float) -> None:
        super().__init__(f"Command timed out after {timeout_s:g}s: {fmt_argv(argv)}")
        self.argv = list(argv)
        self.timeout_s = timeout_s


class CommandRunner(Protocol):
    """Subprocess capability used by the install executor and the launcher."""

    def run(
        self,
        argv: Sequence[str],
        *,
        timeout: Optional[float],
        stream: bool = False,
        env: Mapping[str, str] | None = None,
    ) -> CmdResult:
        ...

    def spawn(self, argv: Sequence[str], *, env: Mapping[str, str] | None = None) -> int:
        ...


def fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def fmt_env(env: Mapping[str, str] | None) -> str:
    if not env:
        return ""
    return " ".join(f"{k}={shlex.quote(v)}" for k, v in sorted(env.items())) + " "


class SubprocessRunner:
    """Run real commands with consistent logging.

    - Always logs the command.
    - stream=True lets output go straight to the terminal (nothing captured).
    - Raises CommandTimeout when the timeout elapses; the child is killed by
      subprocess.run and not restarted.
    """

    def run(
        self,
        argv: Sequence[str],
        *,
        timeout: Optional[float],
        stream: bool = False,
        env: Mapping[str, str] | None = None,
    ) -> CmdResult:
        argv_list = list(argv)
        logger.info("CMD %s%s", fmt_env(env), fmt_argv(argv_list))

        pipe = None if stream else subprocess.PIPE
        try:
            p = subprocess.run(
                argv_list,
                text=True,
                stdout=pipe,
                stderr=pipe,
                stdin=None if stream else subprocess.DEVNULL,
                env=dict(os.environ, **(env or {})),
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandTimeout(argv_list, float(timeout or 0)) from e

        if p.stdout:
            logger.debug("STDOUT %s", p.stdout.strip())
        if p.stderr:
            logger.debug("STDERR %s", p.stderr.strip())

        return CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout or "", stderr=p.stderr or "")

    def spawn(self, argv: Sequence[str], *, env: Mapping[str, str] | None = None) -> int:
        argv_list = list(argv)
        logger.info("SPAWN %s%s", fmt_env(env), fmt_argv(argv_list))
        p = subprocess.Popen(
            argv_list,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            env=dict(os.environ, **(env or {})),
            start_new_session=True,
        )
        return p.pid
