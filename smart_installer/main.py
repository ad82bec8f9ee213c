from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import __version__
from .config import InstallerConfig, default_config_path, load_installer_config
from .errors import EXIT_BUNDLE_IO, EXIT_INTERRUPTED, BundleIOError, ConfigurationError, InstallerError
from .lib.bundle import Bundle
from .lib.command import CommandRunner, SubprocessRunner
from .lib.distro import OS_RELEASE_PATHS
from .logging_utils import LogSession
from .models import InstallStrategy, RunConfig
from .pipeline import InstallCtx, PipelineResult, RunState, Stage, run_pipeline
from .steps import DetectDistroStep, InstallStep, LaunchStep, SelectStrategyStep, VerifyChecksumsStep

logger = logging.getLogger(__name__)

EXIT_CODES_HELP = """\
exit codes:
  0    success
  2    configuration error (e.g. two --force-* flags)
  3    checksum failure (mismatch or missing checksum)
  4    no artifact available for the chosen strategy
  5    install mechanism failed
  6    install timed out
  7    launch failed (install succeeded)
  8    bundle could not be read
  130  interrupted
"""

_FORCE_FLAGS = {
    "force_deb": InstallStrategy.DEB,
    "force_rpm": InstallStrategy.RPM,
    "force_appimage": InstallStrategy.APPIMAGE,
}


def build_steps():
    return [
        VerifyChecksumsStep(),
        DetectDistroStep(),
        SelectStrategyStep(),
        InstallStep(),
        LaunchStep(),
    ]


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="smart-installer",
        description="Detect the Linux distribution and install the matching package from this bundle.",
        epilog=EXIT_CODES_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("--dry-run", action="store_true", help="Show what would be done without changing the system")
    p.add_argument("--verbose", action="store_true", help="Stream installer output live and log debug detail")
    p.add_argument("--force-deb", action="store_true", help="Install the .deb package regardless of distro")
    p.add_argument("--force-rpm", action="store_true", help="Install the .rpm package regardless of distro")
    p.add_argument("--force-appimage", action="store_true", help="Install the AppImage regardless of distro")
    p.add_argument("--no-launch", action="store_true", help="Do not start the application after installing")
    p.add_argument("--tui", action="store_true", help="Start the text UI instead of the GUI after installing")
    p.add_argument("--bundle", default=".", help="Bundle directory (default: current directory)")
    p.add_argument("--config", default=None, help="Settings file (default: <bundle>/installer.yaml if present)")
    p.add_argument("--timeout", type=float, default=None, help="Install timeout in seconds (default: 900)")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def run_config_from_args(args: argparse.Namespace) -> RunConfig:
    forced = [s for flag, s in _FORCE_FLAGS.items() if getattr(args, flag, False)]
    if len(forced) > 1:
        names = ", ".join(f"--force-{s.value}" for s in forced)
        raise ConfigurationError(f"conflicting flags: {names} (use at most one --force-* flag)")
    if args.timeout is not None and args.timeout <= 0:
        raise ConfigurationError("--timeout must be positive")

    return RunConfig(
        dry_run=bool(args.dry_run),
        verbose=bool(args.verbose),
        forced_strategy=forced[0] if forced else None,
        launch_after_install=not bool(args.no_launch),
        use_tui=bool(args.tui),
    )


def run(
    *,
    bundle_path: str | Path,
    run_config: RunConfig,
    settings: InstallerConfig,
    runner: Optional[CommandRunner] = None,
    os_release_paths: Sequence[str] = OS_RELEASE_PATHS,
) -> PipelineResult:
    """Run the install pipeline once against a bundle.

    Loading the bundle is part of the Start state; a BundleIOError there ends
    the run in Failed like any stage failure.
    """

    logger.info(
        "Run config: dry_run=%s verbose=%s forced=%s launch=%s tui=%s",
        run_config.dry_run,
        run_config.verbose,
        run_config.forced_strategy.value if run_config.forced_strategy else None,
        run_config.launch_after_install,
        run_config.use_tui,
    )
    if settings.source:
        logger.info("Settings loaded from %s", settings.source)

    try:
        bundle = Bundle.load(bundle_path)
    except BundleIOError as e:
        logger.error("Cannot load bundle: %s", e)
        logger.info("stage=%s exit_code=%d", Stage.FAILED.value, e.exit_code)
        return PipelineResult(
            state=RunState(),
            final=Stage.FAILED,
            transitions=[Stage.START, Stage.FAILED],
            error=e,
            failed_at=Stage.START,
        )

    logger.info(
        "Bundle: %s version=%s artifacts=%s",
        bundle.root,
        bundle.version or "unknown",
        ", ".join(a.name for a in bundle.artifacts) or "none",
    )

    ctx = InstallCtx(
        bundle=bundle,
        run_config=run_config,
        settings=settings,
        runner=runner or SubprocessRunner(),
        os_release_paths=tuple(os_release_paths),
    )
    return run_pipeline(ctx=ctx, steps=build_steps())


def _raise_interrupt(signum, frame):
    raise KeyboardInterrupt(f"signal {signum}")


def main(
    argv: Optional[list[str]] = None,
    *,
    runner: Optional[CommandRunner] = None,
    os_release_paths: Sequence[str] = OS_RELEASE_PATHS,
) -> int:
    p = build_parser()
    args = p.parse_args(argv)

    # Flag and settings problems are reported before any stage runs.
    try:
        run_config = run_config_from_args(args)
        bundle_root = Path(args.bundle).expanduser().absolute()
        config_path = args.config if args.config else default_config_path(bundle_root)
        settings = load_installer_config(config_path).with_timeout(args.timeout)
        settings.validate()
    except ConfigurationError as e:
        print(f"error: {e.user_message()}", file=sys.stderr)
        return e.exit_code

    if not bundle_root.is_dir():
        print(f"error: bundle directory not found: {bundle_root}", file=sys.stderr)
        return EXIT_BUNDLE_IO

    previous = signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        with LogSession(bundle_root / "logs", verbose=run_config.verbose) as session:
            try:
                result = run(
                    bundle_path=bundle_root,
                    run_config=run_config,
                    settings=settings,
                    runner=runner,
                    os_release_paths=os_release_paths,
                )
            except KeyboardInterrupt:
                session.log(logging.WARNING, "Interrupted; closing session")
                raise
            except Exception:
                logger.exception("Installer failed unexpectedly")
                raise

            if result.error is not None:
                _report_failure(result.error, session)
            elif run_config.dry_run:
                print("Dry run complete; nothing was changed.")
            return result.exit_code
    except KeyboardInterrupt:
        print("interrupted", file=sys.stderr)
        return EXIT_INTERRUPTED
    finally:
        signal.signal(signal.SIGTERM, previous)


def _report_failure(error: InstallerError, session: LogSession) -> None:
    print(f"error: {error.user_message()}", file=sys.stderr)
    if session.path is not None:
        print(f"Full log: {session.path}", file=sys.stderr)


if __name__ == "__main__":
    raise SystemExit(main())
