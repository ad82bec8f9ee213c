from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

PACKAGE_LOGGER = "smart_installer"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


@dataclass(frozen=True)
class LogEvent:
    timestamp: datetime
    level: str
    message: str


class _EventCollector(logging.Handler):
    def __init__(self, events: List[LogEvent]) -> None:
        super().__init__(level=logging.DEBUG)
        self._events = events

    def emit(self, record: logging.LogRecord) -> None:
        self._events.append(
            LogEvent(
                timestamp=datetime.fromtimestamp(record.created),
                level=record.levelname,
                message=record.getMessage(),
            )
        )


def session_log_name(started_at: datetime) -> str:
    return f"install-{started_at:%Y%m%d-%H%M%S}.log"


class LogSession:
    """Append-only record of one installer run.

    Everything logged under the ``smart_installer`` package logger while the
    session is open goes to ``<logs_dir>/install-<start time>.log``, to the
    console, and into ``events``.

    Notes:
    - If the logs directory cannot be created or written, the session still
      opens, console-only, and ``path`` stays None.
    - ``close()`` is idempotent; use the session as a context manager so it
      runs on every exit path.
    """

    def __init__(
        self,
        logs_dir: str | Path,
        *,
        verbose: bool = False,
        also_console: bool = True,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.logs_dir = Path(logs_dir)
        self.verbose = verbose
        self.also_console = also_console
        self.events: List[LogEvent] = []
        self.path: Optional[Path] = None
        self.started_at: Optional[datetime] = None
        self._clock = clock
        self._handlers: List[logging.Handler] = []
        self._logger = logging.getLogger(PACKAGE_LOGGER)
        self._saved_level: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return bool(self._handlers)

    def _unique_path(self, started_at: datetime) -> Path:
        candidate = self.logs_dir / session_log_name(started_at)
        n = 1
        while candidate.exists():
            candidate = self.logs_dir / f"{candidate.stem.split('.')[0]}.{n}.log"
            n += 1
        return candidate

    def open(self) -> Optional[Path]:
        # Avoid duplicate handlers if open() is called twice.
        if self.is_open:
            return self.path

        self.started_at = self._clock()
        fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

        self._saved_level = self._logger.level
        self._logger.setLevel(logging.DEBUG)

        collector = _EventCollector(self.events)
        self._attach(collector)

        file_error: Optional[OSError] = None
        try:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            path = self._unique_path(self.started_at)
            file_handler = logging.FileHandler(path, encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(fmt)
            self._attach(file_handler)
            self.path = path
        except OSError as e:
            file_error = e
            self.path = None

        if self.also_console or file_error is not None:
            console = logging.StreamHandler()
            console.setLevel(logging.DEBUG if self.verbose else logging.INFO)
            console.setFormatter(fmt)
            self._attach(console)

        if file_error is not None:
            self._logger.warning(
                "Cannot write session log under %s (%s); logging to console only", self.logs_dir, file_error
            )
        self._logger.info("Session started (log=%s)", self.path or "<console>")
        return self.path

    def _attach(self, handler: logging.Handler) -> None:
        self._logger.addHandler(handler)
        self._handlers.append(handler)

    def log(self, level: int, message: str, *args: object) -> None:
        """Record one event; never raises."""
        try:
            self._logger.log(level, message, *args)
        except Exception as e:
            text = message % args if args else message
            sys.stderr.write(f"{logging.getLevelName(level)} {text} [log write failed: {e}]\n")

    def close(self) -> None:
        if not self.is_open:
            return
        self.log(logging.INFO, "Session closed")
        for h in self._handlers:
            try:
                h.flush()
                h.close()
            finally:
                self._logger.removeHandler(h)
        self._handlers = []
        if self._saved_level is not None:
            self._logger.setLevel(self._saved_level)

    def __enter__(self) -> "LogSession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
