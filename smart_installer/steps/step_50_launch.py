from __future__ import annotations

from ..lib.launch import launch
from ..pipeline import InstallCtx, RunState, Stage


class LaunchStep:
    step_id = "50_launch"
    stage = Stage.LAUNCHING

    def enabled(self, ctx: InstallCtx) -> bool:
        return ctx.run_config.launch_after_install

    def run(self, ctx: InstallCtx, state: RunState) -> None:
        if state.strategy is None or state.artifact is None:
            raise RuntimeError("launch stage reached without an installed artifact")
        launch(
            state.strategy,
            state.artifact,
            ctx.run_config,
            runner=ctx.runner,
            settings=ctx.settings,
            bundle=ctx.bundle,
        )
