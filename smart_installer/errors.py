from __future__ import annotations

from typing import Optional, Sequence

# Process exit codes. Stable: scripts wrapping the installer depend on them.
EXIT_OK = 0
EXIT_CONFIG = 2
EXIT_CHECKSUM = 3
EXIT_NO_ARTIFACT = 4
EXIT_INSTALL_FAILED = 5
EXIT_TIMEOUT = 6
EXIT_LAUNCH_FAILED = 7
EXIT_BUNDLE_IO = 8
EXIT_INTERRUPTED = 130


class InstallerError(Exception):
    """Base class for every failure that ends a run.

    Each subclass carries the process exit code for its category and a short
    remedy hint shown to the user next to the message.
    """

    exit_code = 1
    hint = "see the session log for details"

    def __init__(self, message: str, *, hint: Optional[str] = None) -> None:
        super().__init__(message)
        if hint is not None:
            self.hint = hint

    def user_message(self) -> str:
        return f"{self} ({self.hint})"


class ConfigurationError(InstallerError):
    exit_code = EXIT_CONFIG
    hint = "check the command-line flags and installer.yaml"


class ChecksumError(InstallerError):
    exit_code = EXIT_CHECKSUM
    hint = "re-download the bundle"


class ChecksumMismatch(ChecksumError):
    def __init__(self, path: str, expected: str, actual: str) -> None:
        super().__init__(f"checksum mismatch for {path}: expected {expected}, got {actual}")
        self.path = path
        self.expected = expected
        self.actual = actual


class MissingChecksum(ChecksumError):
    def __init__(self, path: str) -> None:
        super().__init__(f"no recorded checksum for {path}")
        self.path = path


class NoArtifactAvailable(InstallerError):
    exit_code = EXIT_NO_ARTIFACT
    hint = "use --force-deb, --force-rpm or --force-appimage with a format this bundle ships"


class InstallFailure(InstallerError):
    exit_code = EXIT_INSTALL_FAILED
    hint = "inspect the output above, then re-run or try another --force-* strategy"

    def __init__(self, message: str, *, returncode: int = 1, output_tail: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.output_tail = list(output_tail)


class InstallTimeout(InstallerError):
    exit_code = EXIT_TIMEOUT
    hint = "check network access for package dependencies or raise --timeout"

    def __init__(self, message: str, *, timeout_s: float) -> None:
        super().__init__(message)
        self.timeout_s = timeout_s


class LaunchFailure(InstallerError):
    exit_code = EXIT_LAUNCH_FAILED
    hint = "the install succeeded; start the application manually or re-run with --no-launch"


class BundleIOError(InstallerError):
    exit_code = EXIT_BUNDLE_IO
    hint = "make sure the bundle was extracted completely and is readable"
