"""
Shared test fixtures: throwaway bundles, fake os-release files, a fake
command runner and a controllable host (euid, tools on PATH, FUSE).
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

import pytest

from smart_installer.lib import pkg
from smart_installer.lib.command import CmdResult, CommandTimeout


class FakeRunner:
    """Records commands instead of running them."""

    def __init__(
        self,
        *,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        timeout: bool = False,
    ) -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.timeout = timeout
        self.calls: List[dict] = []
        self.spawned: List[dict] = []

    def run(self, argv, *, timeout, stream=False, env=None) -> CmdResult:
        self.calls.append({"argv": list(argv), "timeout": timeout, "stream": stream, "env": dict(env or {})})
        if self.timeout:
            raise CommandTimeout(argv, timeout or 0)
        return CmdResult(argv=list(argv), returncode=self.returncode, stdout=self.stdout, stderr=self.stderr)

    def spawn(self, argv, *, env=None) -> int:
        self.spawned.append({"argv": list(argv), "env": dict(env or {})})
        return 4242


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def make_bundle(tmp_path: Path) -> Callable[..., Path]:
    """Build a bundle directory.

    ``files`` maps artifact file names to contents. Every artifact gets a line
    in checksums/SHA256SUMS.txt unless listed in ``skip_checksums``.
    """

    def _make(
        files: Dict[str, bytes],
        *,
        skip_checksums: Iterable[str] = (),
        version: Optional[str] = None,
        name: str = "bundle",
    ) -> Path:
        root = tmp_path / name
        (root / "artifacts").mkdir(parents=True)
        (root / "checksums").mkdir()
        lines = []
        for fname, content in files.items():
            (root / "artifacts" / fname).write_bytes(content)
            if fname not in set(skip_checksums):
                lines.append(f"{hashlib.sha256(content).hexdigest()}  {fname}")
        (root / "checksums" / "SHA256SUMS.txt").write_text("\n".join(lines) + "\n", encoding="utf-8")
        if version is not None:
            (root / "VERSION.txt").write_text(version + "\n", encoding="utf-8")
        return root

    return _make


@pytest.fixture
def os_release(tmp_path: Path) -> Callable[[str], str]:
    """Write an os-release file and return its path."""

    def _write(text: str) -> str:
        p = tmp_path / "os-release"
        p.write_text(text, encoding="utf-8")
        return str(p)

    return _write


@pytest.fixture
def host(monkeypatch):
    """Control euid, which tools are on PATH, and FUSE availability."""

    class Host:
        def set(self, *, euid: int = 1000, tools: Iterable[str] = (), fuse: bool = True) -> None:
            available = set(tools)
            monkeypatch.setattr(pkg.os, "geteuid", lambda: euid)
            monkeypatch.setattr(
                pkg.shutil, "which", lambda name, *a, **kw: f"/usr/bin/{name}" if name in available else None
            )
            monkeypatch.setattr(pkg, "fuse_available", lambda: fuse)

    h = Host()
    h.set()
    return h
