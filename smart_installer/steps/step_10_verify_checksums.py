from __future__ import annotations

import logging

from ..lib.checksums import verify
from ..pipeline import InstallCtx, RunState, Stage

logger = logging.getLogger(__name__)


class VerifyChecksumsStep:
    step_id = "10_verify_checksums"
    stage = Stage.VERIFYING

    def enabled(self, ctx: InstallCtx) -> bool:
        return True

    def run(self, ctx: InstallCtx, state: RunState) -> None:
        artifacts = ctx.bundle.artifacts
        if not artifacts:
            logger.warning("No package artifacts found in %s", ctx.bundle.artifacts_dir)
            return

        # Every shipped artifact is checked, not only the one we end up installing.
        for artifact in artifacts:
            verify(artifact)
        logger.info("Verified %d artifact(s)", len(artifacts))
