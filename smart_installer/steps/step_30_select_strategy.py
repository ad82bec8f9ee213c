from __future__ import annotations

import logging

from ..lib.strategy import select
from ..models import DistroFamily
from ..pipeline import InstallCtx, RunState, Stage

logger = logging.getLogger(__name__)


class SelectStrategyStep:
    step_id = "30_select_strategy"
    stage = Stage.SELECTING

    def enabled(self, ctx: InstallCtx) -> bool:
        return True

    def run(self, ctx: InstallCtx, state: RunState) -> None:
        available = ctx.bundle.available()
        strategy = select(state.family or DistroFamily.UNKNOWN, ctx.run_config, available)
        state.strategy = strategy
        state.artifact = available[strategy]
        logger.info("Selected artifact: %s", state.artifact.path)
