from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple


class DistroFamily(str, Enum):
    DEBIAN = "debian"
    REDHAT = "redhat"
    UNKNOWN = "unknown"


class InstallStrategy(str, Enum):
    DEB = "deb"
    RPM = "rpm"
    APPIMAGE = "appimage"

    @property
    def privileged(self) -> bool:
        return self is not InstallStrategy.APPIMAGE


@dataclass(frozen=True)
class DistroInfo:
    id: str
    id_like: Tuple[str, ...]
    pretty_name: Optional[str]
    source: Optional[str]
    family: DistroFamily


@dataclass(frozen=True)
class Artifact:
    path: Path
    strategy: InstallStrategy
    expected_checksum: Optional[str] = None

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class RunConfig:
    """Resolved command-line options for one invocation."""

    dry_run: bool = False
    verbose: bool = False
    forced_strategy: Optional[InstallStrategy] = None
    launch_after_install: bool = True
    use_tui: bool = False
