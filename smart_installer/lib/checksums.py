from __future__ import annotations

import hashlib
import logging
import re
from pathlib import Path
from typing import Dict

from ..errors import BundleIOError, ChecksumMismatch, MissingChecksum
from ..models import Artifact

logger = logging.getLogger(__name__)

MANIFEST_NAME = "SHA256SUMS.txt"
_HEX64 = re.compile(r"^[0-9a-fA-F]{64}$")
_CHUNK = 1024 * 1024


def parse_manifest_text(text: str, *, default_name: str | None = None) -> Dict[str, str]:
    """Parse ``sha256sum`` output: ``<hex>  <name>`` (``*name`` = binary mode).

    A line holding only a digest is keyed by ``default_name`` when given.
    """

    sums: Dict[str, str] = {}
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split(None, 1)
        digest = parts[0]
        if not _HEX64.match(digest):
            logger.warning("Ignoring malformed checksum line %d: %r", lineno, raw)
            continue
        if len(parts) == 2:
            name = parts[1].strip().lstrip("*")
            name = Path(name).name
        elif default_name:
            name = default_name
        else:
            logger.warning("Ignoring checksum line %d without a file name", lineno)
            continue
        sums[name] = digest.lower()
    return sums


def load_checksums(checksums_dir: Path) -> Dict[str, str]:
    """Read every digest file under checksums/ into {artifact name: hex}."""

    if not checksums_dir.is_dir():
        logger.warning("No checksums directory at %s", checksums_dir)
        return {}

    sums: Dict[str, str] = {}
    try:
        files = sorted(p for p in checksums_dir.iterdir() if p.is_file())
    except OSError as e:
        raise BundleIOError(f"cannot list {checksums_dir}: {e}") from e
    for p in files:
        if p.name == MANIFEST_NAME:
            default = None
        elif p.suffix.lower() == ".sha256":
            default = p.stem
        else:
            continue
        try:
            text = p.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise BundleIOError(f"cannot read checksum file {p}: {e}") from e
        sums.update(parse_manifest_text(text, default_name=default))

    logger.debug("Loaded %d checksum entries from %s", len(sums), checksums_dir)
    return sums


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK), b""):
            h.update(chunk)
    return h.hexdigest()


def verify(artifact: Artifact) -> None:
    """Fail closed unless the artifact's SHA-256 matches its recorded digest."""

    if not artifact.expected_checksum:
        logger.error("Checksum missing: %s", artifact.path)
        raise MissingChecksum(str(artifact.path))

    try:
        actual = sha256_file(artifact.path)
    except OSError as e:
        logger.error("Checksum read failed: %s (%s)", artifact.path, e)
        raise BundleIOError(f"cannot read {artifact.path}: {e}") from e

    expected = artifact.expected_checksum.strip().lower()
    if actual != expected:
        logger.error("Checksum mismatch: %s expected=%s actual=%s", artifact.path, expected, actual)
        raise ChecksumMismatch(str(artifact.path), expected, actual)

    logger.info("Checksum OK: %s sha256=%s", artifact.name, actual)
