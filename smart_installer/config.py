from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import ConfigurationError
from .lib.distro import DEBIAN_TOKENS, REDHAT_TOKENS

CONFIG_FILENAME = "installer.yaml"
DEFAULT_APP_NAME = "app"
DEFAULT_INSTALL_TIMEOUT_S = 900.0
DEFAULT_OUTPUT_TAIL_LINES = 20
DEFAULT_APPIMAGE_DIR = "~/Applications"


def _str_list(value: Any, key: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, (str, int, float)) for v in value):
        return [str(v) for v in value]
    raise ConfigurationError(f"{key} must be a string or a list of strings")


@dataclass(frozen=True)
class InstallerConfig:
    raw: Dict[str, Any] = field(default_factory=dict)
    source: Optional[str] = None

    def _section(self, name: str) -> Dict[str, Any]:
        value = self.raw.get(name) or {}
        if not isinstance(value, dict):
            raise ConfigurationError(f"{name} must be a mapping")
        return value

    @property
    def app_name(self) -> str:
        return str(self.raw.get("app_name") or DEFAULT_APP_NAME)

    @property
    def install_timeout_s(self) -> float:
        value = self.raw.get("install_timeout_s", DEFAULT_INSTALL_TIMEOUT_S)
        try:
            timeout = float(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"install_timeout_s must be a number, got {value!r}") from e
        if timeout <= 0:
            raise ConfigurationError("install_timeout_s must be positive")
        return timeout

    @property
    def output_tail_lines(self) -> int:
        value = self.raw.get("output_tail_lines", DEFAULT_OUTPUT_TAIL_LINES)
        try:
            return max(0, int(value))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"output_tail_lines must be an integer, got {value!r}") from e

    @property
    def debian_tokens(self) -> frozenset[str]:
        extra = _str_list(self._section("distro").get("debian_tokens"), "distro.debian_tokens")
        return DEBIAN_TOKENS | {t.lower() for t in extra}

    @property
    def redhat_tokens(self) -> frozenset[str]:
        extra = _str_list(self._section("distro").get("redhat_tokens"), "distro.redhat_tokens")
        return REDHAT_TOKENS | {t.lower() for t in extra}

    @property
    def appimage_install_dir(self) -> Path:
        return Path(str(self._section("appimage").get("install_dir") or DEFAULT_APPIMAGE_DIR)).expanduser()

    @property
    def appimage_check_args(self) -> List[str]:
        section = self._section("appimage")
        if "check_args" not in section:
            return ["--appimage-version"]
        return _str_list(section.get("check_args"), "appimage.check_args")

    @property
    def gui_command(self) -> List[str]:
        return _str_list(self._section("launch").get("gui_command"), "launch.gui_command") or [self.app_name]

    @property
    def gui_configured(self) -> bool:
        return bool(self.raw.get("app_name")) or bool(self._section("launch").get("gui_command"))

    @property
    def tui_command(self) -> List[str]:
        return _str_list(self._section("launch").get("tui_command"), "launch.tui_command")

    def validate(self) -> None:
        """Read every setting once so a bad value fails before any stage runs."""
        _ = (
            self.install_timeout_s,
            self.output_tail_lines,
            self.debian_tokens,
            self.redhat_tokens,
            self.appimage_install_dir,
            self.appimage_check_args,
            self.gui_command,
            self.tui_command,
        )

    def with_timeout(self, timeout_s: Optional[float]) -> "InstallerConfig":
        if timeout_s is None:
            return self
        return InstallerConfig(raw={**self.raw, "install_timeout_s": timeout_s}, source=self.source)


def load_installer_config(path: Optional[str | Path]) -> InstallerConfig:
    """Load installer.yaml. A missing path means defaults."""

    if path is None:
        return InstallerConfig()

    p = Path(path)
    if not p.exists():
        raise ConfigurationError(f"config file not found: {p}")

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ConfigurationError("installer config must be YAML")

    try:
        import yaml  # type: ignore
    except ImportError as e:
        raise RuntimeError("PyYAML is required to read installer.yaml") from e

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"cannot read {p}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{p.name} must contain a mapping/object")

    return InstallerConfig(raw=raw, source=str(p))


def default_config_path(bundle_root: Path) -> Optional[Path]:
    p = bundle_root / CONFIG_FILENAME
    return p if p.is_file() else None
