from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..config import InstallerConfig
from ..errors import InstallFailure, InstallTimeout
from ..models import Artifact, InstallStrategy, RunConfig
from .command import CommandRunner, CommandTimeout, fmt_argv, fmt_env

logger = logging.getLogger(__name__)

EXTRACT_AND_RUN_ENV = "APPIMAGE_EXTRACT_AND_RUN"
_FUSE_LIB_DIRS = ("/lib", "/lib64", "/usr/lib", "/usr/lib64")


@dataclass(frozen=True)
class InstallPlan:
    argv: List[str]
    env: Dict[str, str] = field(default_factory=dict)
    # AppImage only: copy source -> target and mark executable before running.
    stage_from: Optional[Path] = None
    stage_to: Optional[Path] = None


def privilege_prefix() -> Optional[List[str]]:
    """Command prefix needed to run a package manager; None if no way to escalate."""

    if os.geteuid() == 0:
        return []
    for tool in ("sudo", "pkexec"):
        if shutil.which(tool):
            return [tool]
    return None


def fuse_available() -> bool:
    """AppImage type-2 runtimes mount themselves through FUSE 2."""

    if not Path("/dev/fuse").exists():
        return False
    for base in _FUSE_LIB_DIRS:
        d = Path(base)
        if not d.is_dir():
            continue
        if any(d.glob("libfuse.so.2*")) or any(d.glob("*-linux-gnu*/libfuse.so.2*")):
            return True
    return False


def appimage_env() -> Dict[str, str]:
    if fuse_available():
        return {}
    logger.info("FUSE not available; AppImage will run in extract-and-run mode")
    return {EXTRACT_AND_RUN_ENV: "1"}


def appimage_target(artifact: Artifact, settings: InstallerConfig) -> Path:
    return settings.appimage_install_dir / artifact.name


def _first_tool(candidates: Sequence[str]) -> Optional[str]:
    for tool in candidates:
        if shutil.which(tool):
            return tool
    return None


def _package_manager_argv(strategy: InstallStrategy, path: Path, *, dry_run: bool) -> List[str]:
    if strategy is InstallStrategy.DEB:
        tool = _first_tool(("apt-get", "dpkg"))
        if tool is None and dry_run:
            logger.warning("Neither apt-get nor dpkg found; a real run would fail")
            tool = "apt-get"
        if tool == "apt-get":
            return ["apt-get", "install", "-y", str(path)]
        if tool == "dpkg":
            return ["dpkg", "-i", str(path)]
        raise InstallFailure("no Debian package tool found (apt-get or dpkg)")

    tool = _first_tool(("dnf", "zypper", "rpm"))
    if tool is None and dry_run:
        logger.warning("None of dnf, zypper, rpm found; a real run would fail")
        tool = "dnf"
    if tool == "dnf":
        return ["dnf", "install", "-y", str(path)]
    if tool == "zypper":
        return ["zypper", "--non-interactive", "install", "--allow-unsigned-rpm", str(path)]
    if tool == "rpm":
        return ["rpm", "-Uvh", str(path)]
    raise InstallFailure("no RPM package tool found (dnf, zypper or rpm)")


def plan_install(
    strategy: InstallStrategy,
    artifact: Artifact,
    settings: InstallerConfig,
    *,
    dry_run: bool = False,
) -> InstallPlan:
    path = artifact.path.absolute()

    if strategy is InstallStrategy.APPIMAGE:
        target = appimage_target(artifact, settings)
        return InstallPlan(
            argv=[str(target), *settings.appimage_check_args],
            env=appimage_env(),
            stage_from=path,
            stage_to=target,
        )

    prefix = privilege_prefix()
    if prefix is None:
        if not dry_run:
            raise InstallFailure(
                "installing a system package needs root, but neither sudo nor pkexec is available",
                returncode=1,
            )
        logger.warning("Not root and no sudo/pkexec found; a real run would fail")
        prefix = []
    return InstallPlan(argv=[*prefix, *_package_manager_argv(strategy, path, dry_run=dry_run)])


def _stage_appimage(plan: InstallPlan) -> None:
    if plan.stage_from is None or plan.stage_to is None:
        raise RuntimeError("AppImage plan has no staging paths")
    try:
        plan.stage_to.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(plan.stage_from, plan.stage_to)
        plan.stage_to.chmod(0o755)
    except OSError as e:
        raise InstallFailure(f"cannot stage AppImage into {plan.stage_to}: {e}") from e
    logger.info("Staged AppImage %s -> %s", plan.stage_from, plan.stage_to)


def execute(
    strategy: InstallStrategy,
    artifact: Artifact,
    run_config: RunConfig,
    *,
    runner: CommandRunner,
    settings: InstallerConfig,
) -> int:
    """Install one artifact and return the mechanism's exit code (0).

    Raises InstallFailure on a non-zero exit and InstallTimeout when the
    configured timeout elapses. Nothing is retried.
    """

    plan = plan_install(strategy, artifact, settings, dry_run=run_config.dry_run)

    if run_config.dry_run:
        if plan.stage_to is not None:
            logger.info("Would copy %s -> %s", plan.stage_from, plan.stage_to)
            logger.info("Would chmod 0755 %s", plan.stage_to)
        if plan.argv and not (strategy is InstallStrategy.APPIMAGE and not settings.appimage_check_args):
            logger.info("Would run: %s%s", fmt_env(plan.env), fmt_argv(plan.argv))
        return 0

    if plan.stage_to is not None:
        _stage_appimage(plan)
        if not settings.appimage_check_args:
            logger.info("No AppImage check arguments configured; not running %s", plan.stage_to)
            return 0

    timeout = settings.install_timeout_s
    try:
        result = runner.run(plan.argv, timeout=timeout, stream=run_config.verbose, env=plan.env)
    except CommandTimeout as e:
        logger.error("Install timed out after %gs: %s", timeout, fmt_argv(plan.argv))
        raise InstallTimeout(f"{strategy.value} install timed out after {timeout:g}s", timeout_s=timeout) from e
    except OSError as e:
        logger.error("Cannot start %s: %s", plan.argv[0], e)
        raise InstallFailure(f"cannot start {plan.argv[0]}: {e}", returncode=127) from e

    if result.returncode != 0:
        tail = result.output_tail(settings.output_tail_lines)
        logger.error("Install failed (exit %d): %s", result.returncode, fmt_argv(plan.argv))
        for line in tail:
            logger.error("  | %s", line)
        raise InstallFailure(
            f"{strategy.value} install exited with code {result.returncode}",
            returncode=result.returncode,
            output_tail=tail,
        )

    logger.info("Installed %s via %s", artifact.name, strategy.value)
    return result.returncode
