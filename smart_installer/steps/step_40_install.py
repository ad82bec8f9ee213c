from __future__ import annotations

from ..lib.pkg import execute
from ..pipeline import InstallCtx, RunState, Stage


class InstallStep:
    step_id = "40_install"
    stage = Stage.INSTALLING

    def enabled(self, ctx: InstallCtx) -> bool:
        return True

    def run(self, ctx: InstallCtx, state: RunState) -> None:
        if state.strategy is None or state.artifact is None:
            raise RuntimeError("install stage reached without a selected strategy")
        state.install_exit_code = execute(
            state.strategy,
            state.artifact,
            ctx.run_config,
            runner=ctx.runner,
            settings=ctx.settings,
        )
