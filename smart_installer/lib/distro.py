from __future__ import annotations

import logging
import shlex
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence

from ..models import DistroFamily, DistroInfo

logger = logging.getLogger(__name__)

OS_RELEASE_PATHS = ("/etc/os-release", "/usr/lib/os-release")

DEBIAN_TOKENS = frozenset(
    {"debian", "ubuntu", "linuxmint", "mint", "pop", "elementary", "zorin", "kali", "raspbian", "neon"}
)
REDHAT_TOKENS = frozenset({"fedora", "rhel", "centos", "rocky", "almalinux", "alma", "ol"})


def parse_os_release(text: str) -> Dict[str, str]:
    """Parse os-release KEY=value lines (shell quoting rules)."""

    out: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, raw = line.partition("=")
        if not key.strip():
            continue
        try:
            parts = shlex.split(raw)
        except ValueError:
            # Unbalanced quotes; keep the raw value.
            parts = [raw.strip("\"'")]
        out[key.strip().upper()] = " ".join(parts)
    return out


def _read_os_release(paths: Sequence[str]) -> tuple[Dict[str, str], Optional[str]]:
    for path in paths:
        p = Path(path)
        try:
            text = p.read_text(encoding="utf-8", errors="ignore")
        except OSError:
            continue
        return parse_os_release(text), str(p)
    return {}, None


def classify(
    distro_id: str,
    id_like: Iterable[str],
    *,
    debian_tokens: Iterable[str] = DEBIAN_TOKENS,
    redhat_tokens: Iterable[str] = REDHAT_TOKENS,
) -> DistroFamily:
    candidates = [distro_id.lower(), *(t.lower() for t in id_like)]
    candidates = [c for c in candidates if c]
    deb = {t.lower() for t in debian_tokens}
    rh = {t.lower() for t in redhat_tokens}

    if any(c in deb for c in candidates):
        return DistroFamily.DEBIAN
    if any(c in rh for c in candidates):
        return DistroFamily.REDHAT
    return DistroFamily.UNKNOWN


def detect_distro(
    paths: Sequence[str] = OS_RELEASE_PATHS,
    *,
    debian_tokens: Iterable[str] = DEBIAN_TOKENS,
    redhat_tokens: Iterable[str] = REDHAT_TOKENS,
) -> DistroInfo:
    """Classify the host from os-release. Never raises."""

    fields, source = _read_os_release(paths)
    distro_id = fields.get("ID", "").strip()
    id_like = tuple(fields.get("ID_LIKE", "").split())

    family = classify(distro_id, id_like, debian_tokens=debian_tokens, redhat_tokens=redhat_tokens)
    info = DistroInfo(
        id=distro_id,
        id_like=id_like,
        pretty_name=fields.get("PRETTY_NAME") or None,
        source=source,
        family=family,
    )

    if source is None:
        logger.warning("No os-release file found (tried %s); family=%s", ", ".join(paths), family.value)
    else:
        logger.info(
            "Distro: id=%s id_like=%s name=%s family=%s (from %s)",
            distro_id or "<none>",
            ",".join(id_like) or "<none>",
            info.pretty_name or "<none>",
            family.value,
            source,
        )
    return info


def detect(paths: Sequence[str] = OS_RELEASE_PATHS) -> DistroFamily:
    return detect_distro(paths).family
