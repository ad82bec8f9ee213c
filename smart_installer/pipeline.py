from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol, Sequence, Tuple

from .config import InstallerConfig
from .errors import EXIT_OK, InstallerError
from .lib.bundle import Bundle
from .lib.command import CommandRunner
from .lib.distro import OS_RELEASE_PATHS
from .models import Artifact, DistroFamily, DistroInfo, InstallStrategy, RunConfig

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    START = "start"
    VERIFYING = "verifying"
    DETECTING = "detecting"
    SELECTING = "selecting"
    INSTALLING = "installing"
    LAUNCHING = "launching"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class InstallCtx:
    bundle: Bundle
    run_config: RunConfig
    settings: InstallerConfig
    runner: CommandRunner
    os_release_paths: Tuple[str, ...] = OS_RELEASE_PATHS


@dataclass
class RunState:
    distro: Optional[DistroInfo] = None
    strategy: Optional[InstallStrategy] = None
    artifact: Optional[Artifact] = None
    install_exit_code: Optional[int] = None

    @property
    def family(self) -> Optional[DistroFamily]:
        return self.distro.family if self.distro else None


class Step(Protocol):
    """One orchestrator stage; calls exactly one component."""

    step_id: str
    stage: Stage

    def enabled(self, ctx: InstallCtx) -> bool:
        ...

    def run(self, ctx: InstallCtx, state: RunState) -> None:
        ...


@dataclass(frozen=True)
class PipelineResult:
    state: RunState
    final: Stage
    transitions: List[Stage]
    skipped: List[Stage] = field(default_factory=list)
    error: Optional[InstallerError] = None
    failed_at: Optional[Stage] = None

    @property
    def exit_code(self) -> int:
        return self.error.exit_code if self.error is not None else EXIT_OK


def run_pipeline(*, ctx: InstallCtx, steps: Sequence[Step], state: Optional[RunState] = None) -> PipelineResult:
    """Run stages in order; the first InstallerError ends the run in FAILED.

    Any other exception propagates to the caller unchanged.
    """

    state = state if state is not None else RunState()
    transitions: List[Stage] = [Stage.START]
    skipped: List[Stage] = []
    current = Stage.START

    for step in steps:
        if not step.enabled(ctx):
            logger.info("Skipping stage %s", step.stage.value)
            skipped.append(step.stage)
            continue

        current = step.stage
        transitions.append(current)
        logger.info("stage=%s", current.value)
        try:
            step.run(ctx, state)
        except InstallerError as e:
            logger.error("Stage %s failed: %s: %s", current.value, type(e).__name__, e)
            transitions.append(Stage.FAILED)
            logger.info("stage=%s exit_code=%d", Stage.FAILED.value, e.exit_code)
            return PipelineResult(
                state=state,
                final=Stage.FAILED,
                transitions=transitions,
                skipped=skipped,
                error=e,
                failed_at=current,
            )

    transitions.append(Stage.DONE)
    logger.info("stage=%s exit_code=%d", Stage.DONE.value, EXIT_OK)
    return PipelineResult(state=state, final=Stage.DONE, transitions=transitions, skipped=skipped)
