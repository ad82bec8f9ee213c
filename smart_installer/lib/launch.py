from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Dict, List, Tuple

from ..config import InstallerConfig
from ..errors import LaunchFailure
from ..models import Artifact, InstallStrategy, RunConfig
from .bundle import Bundle
from .command import CommandRunner, fmt_argv, fmt_env
from .pkg import appimage_env, appimage_target

logger = logging.getLogger(__name__)


def _is_executable(p: Path) -> bool:
    return p.is_file() and os.access(p, os.X_OK)


def tui_command(bundle: Bundle, settings: InstallerConfig) -> List[str]:
    configured = settings.tui_command
    if configured:
        head = Path(configured[0])
        if not head.is_absolute() and (bundle.root / head).exists():
            return [str(bundle.root / head), *configured[1:]]
        return configured

    if bundle.tui_dir.is_dir():
        for p in sorted(bundle.tui_dir.iterdir(), key=lambda c: c.name):
            if _is_executable(p):
                return [str(p)]
    raise LaunchFailure(f"no executable TUI found under {bundle.tui_dir}")


def gui_command(strategy: InstallStrategy, artifact: Artifact, settings: InstallerConfig) -> Tuple[List[str], Dict[str, str]]:
    if strategy is InstallStrategy.APPIMAGE:
        return [str(appimage_target(artifact, settings))], appimage_env()
    return settings.gui_command, {}


def _resolvable(argv: List[str]) -> bool:
    head = argv[0]
    if os.sep in head:
        return _is_executable(Path(head))
    return shutil.which(head) is not None


def launch(
    strategy: InstallStrategy,
    artifact: Artifact,
    run_config: RunConfig,
    *,
    runner: CommandRunner,
    settings: InstallerConfig,
    bundle: Bundle,
) -> None:
    """Start the TUI in the foreground or the installed GUI detached."""

    if run_config.use_tui:
        argv, env, what = tui_command(bundle, settings), {}, "TUI"
    else:
        if strategy is not InstallStrategy.APPIMAGE and not settings.gui_configured:
            logger.warning("No GUI launcher configured (set app_name or launch.gui_command); not launching")
            return
        argv, env = gui_command(strategy, artifact, settings)
        what = "GUI"

    if run_config.dry_run:
        logger.info("Would launch %s: %s%s", what, fmt_env(env), fmt_argv(argv))
        return

    if not _resolvable(argv):
        raise LaunchFailure(f"{what} launcher not found: {argv[0]}")

    try:
        if run_config.use_tui:
            result = runner.run(argv, timeout=None, stream=True, env=env)
            if result.returncode != 0:
                logger.warning("TUI exited with code %d", result.returncode)
            else:
                logger.info("TUI exited")
        else:
            pid = runner.spawn(argv, env=env)
            logger.info("Launched GUI (pid=%d)", pid)
    except OSError as e:
        raise LaunchFailure(f"cannot start {what} {argv[0]}: {e}") from e
