from __future__ import annotations

from ..lib.distro import detect_distro
from ..pipeline import InstallCtx, RunState, Stage


class DetectDistroStep:
    step_id = "20_detect_distro"
    stage = Stage.DETECTING

    def enabled(self, ctx: InstallCtx) -> bool:
        return True

    def run(self, ctx: InstallCtx, state: RunState) -> None:
        state.distro = detect_distro(
            ctx.os_release_paths,
            debian_tokens=ctx.settings.debian_tokens,
            redhat_tokens=ctx.settings.redhat_tokens,
        )
