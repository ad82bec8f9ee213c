from __future__ import annotations

import logging
from typing import Mapping

from ..errors import NoArtifactAvailable
from ..models import Artifact, DistroFamily, InstallStrategy, RunConfig

logger = logging.getLogger(__name__)

DEFAULT_STRATEGY = {
    DistroFamily.DEBIAN: InstallStrategy.DEB,
    DistroFamily.REDHAT: InstallStrategy.RPM,
    DistroFamily.UNKNOWN: InstallStrategy.APPIMAGE,
}


def select(
    family: DistroFamily,
    run_config: RunConfig,
    available: Mapping[InstallStrategy, Artifact],
) -> InstallStrategy:
    """Pick the install strategy for this run.

    A forced strategy is used verbatim and never falls back. Otherwise the
    family default is used, falling back to AppImage when the bundle does not
    ship the family's package format.
    """

    shipped = ", ".join(sorted(s.value for s in available)) or "none"

    forced = run_config.forced_strategy
    if forced is not None:
        if forced not in available:
            logger.error("Forced strategy %s has no artifact in bundle (shipped: %s)", forced.value, shipped)
            raise NoArtifactAvailable(f"--force-{forced.value} requested but the bundle has no {forced.value} artifact")
        logger.info("Strategy: %s (forced by user)", forced.value)
        return forced

    preferred = DEFAULT_STRATEGY[family]
    if preferred in available:
        logger.info("Strategy: %s (default for %s family)", preferred.value, family.value)
        return preferred

    if InstallStrategy.APPIMAGE in available:
        logger.warning(
            "No %s artifact in bundle (shipped: %s); falling back to appimage",
            preferred.value,
            shipped,
        )
        return InstallStrategy.APPIMAGE

    logger.error("No usable artifact for %s family (shipped: %s)", family.value, shipped)
    raise NoArtifactAvailable(f"bundle has neither a {preferred.value} nor an appimage artifact")
