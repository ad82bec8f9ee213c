from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from ..errors import BundleIOError
from ..models import Artifact, InstallStrategy
from .checksums import load_checksums

logger = logging.getLogger(__name__)

_SUFFIX_TO_STRATEGY = {
    ".deb": InstallStrategy.DEB,
    ".rpm": InstallStrategy.RPM,
    ".appimage": InstallStrategy.APPIMAGE,
}


def strategy_for_file(path: Path) -> Optional[InstallStrategy]:
    return _SUFFIX_TO_STRATEGY.get(path.suffix.lower())


@dataclass(frozen=True)
class Bundle:
    """An extracted installer bundle.

    Layout:
      <root>/artifacts/   one package file per strategy kind
      <root>/checksums/   SHA256SUMS.txt and/or <artifact>.sha256
      <root>/logs/        session logs (created on demand)
      <root>/tui/         optional text UI launcher
      <root>/VERSION.txt  optional
    """

    root: Path
    artifacts: tuple[Artifact, ...]
    version: Optional[str] = None

    @property
    def artifacts_dir(self) -> Path:
        return self.root / "artifacts"

    @property
    def checksums_dir(self) -> Path:
        return self.root / "checksums"

    @property
    def logs_dir(self) -> Path:
        return self.root / "logs"

    @property
    def tui_dir(self) -> Path:
        return self.root / "tui"

    @classmethod
    def load(cls, root: str | Path) -> "Bundle":
        root_path = Path(root).expanduser().absolute()
        artifacts_dir = root_path / "artifacts"
        if not artifacts_dir.is_dir():
            raise BundleIOError(f"bundle has no artifacts/ directory: {root_path}")

        sums = load_checksums(root_path / "checksums")

        found: List[Artifact] = []
        try:
            entries = sorted(artifacts_dir.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise BundleIOError(f"cannot list {artifacts_dir}: {e}") from e
        for p in entries:
            if not p.is_file():
                continue
            strategy = strategy_for_file(p)
            if strategy is None:
                logger.debug("Ignoring non-package file in artifacts/: %s", p.name)
                continue
            found.append(Artifact(path=p, strategy=strategy, expected_checksum=sums.get(p.name)))

        version = None
        version_file = root_path / "VERSION.txt"
        if version_file.is_file():
            try:
                version = version_file.read_text(encoding="utf-8").strip() or None
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Cannot read %s: %s", version_file, e)

        return cls(root=root_path, artifacts=tuple(found), version=version)

    def available(self) -> Dict[InstallStrategy, Artifact]:
        """Strategy kinds that resolve to exactly one artifact file."""

        by_kind: Dict[InstallStrategy, List[Artifact]] = {}
        for a in self.artifacts:
            by_kind.setdefault(a.strategy, []).append(a)

        out: Dict[InstallStrategy, Artifact] = {}
        for strategy, items in by_kind.items():
            if len(items) == 1:
                out[strategy] = items[0]
            else:
                logger.warning(
                    "Ambiguous %s artifacts (%s); treating %s as unavailable",
                    strategy.value,
                    ", ".join(a.name for a in items),
                    strategy.value,
                )
        return out
