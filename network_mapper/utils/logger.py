"""
Colored console logging for scans and topology runs.

Messages from concurrent host pipelines are written through one process-wide
lock so lines never interleave. Errors go to stderr, everything else to
stdout.
"""

import sys
import threading
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, TextIO
from colorama import Fore, Style, init

init(autoreset=True)


class LogLevel(Enum):
    """Enumeration for different log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


LEVEL_ORDER = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARNING: 2,
    LogLevel.ERROR: 3,
}

# Badge printed after the timestamp: (color, label)
LEVEL_BADGES = {
    LogLevel.DEBUG: (Fore.CYAN, "🔍 DEBUG  "),
    LogLevel.INFO: (Fore.GREEN, "ℹ️ INFO   "),
    LogLevel.WARNING: (Fore.YELLOW, "⚠️ WARNING"),
    LogLevel.ERROR: (Fore.RED, "❌ ERROR  "),
}

_global_min_level = LogLevel.INFO
_output_lock = threading.Lock()


def _format_details(details: Dict[str, Any]) -> str:
    if not details:
        return ""
    rendered = " | ".join(f"{key}={value}" for key, value in details.items())
    return f" {Style.DIM}({rendered}){Style.RESET_ALL}"


class Logger:
    """
    Named console logger.

    Attributes:
        name: Usually the module name of the component that owns the logger
        min_level: Per-logger threshold; falls back to the process-wide level
    """

    def __init__(self, name: str = "NetworkMapper", min_level: Optional[LogLevel] = None):
        self.name = name
        self.min_level = min_level
        self._progress_active = False

    @property
    def effective_level(self) -> LogLevel:
        return self.min_level or _global_min_level

    def _should_log(self, level: LogLevel) -> bool:
        return LEVEL_ORDER[level] >= LEVEL_ORDER[self.effective_level]

    def _emit(self, badge: str, message: str, details: Dict[str, Any],
              stream: Optional[TextIO] = None) -> None:
        timestamp = datetime.now().strftime("%H:%M:%S")
        line = f"{Style.DIM}[{timestamp}]{Style.RESET_ALL} {badge} {message}{_format_details(details)}"
        with _output_lock:
            print(line, file=stream or sys.stdout, flush=True)

    def _log(self, level: LogLevel, message: str, **kwargs) -> None:
        if not self._should_log(level):
            return

        color, label = LEVEL_BADGES[level]
        if level == LogLevel.DEBUG:
            message = f"{Style.DIM}{self.name}:{Style.RESET_ALL} {message}"
        self._emit(
            f"{color}{label}{Style.RESET_ALL}",
            message,
            kwargs,
            sys.stderr if level == LogLevel.ERROR else sys.stdout,
        )

    def debug(self, message: str, **kwargs) -> None:
        self._log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        self._log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, exception: Optional[Exception] = None, **kwargs) -> None:
        """
        Log an error, optionally with the exception that caused it.

        Args:
            message: Error message
            exception: Rendered as "Type: message" in the details
            **kwargs: Additional context information
        """
        if exception:
            kwargs["exception"] = f"{type(exception).__name__}: {exception}"
        self._log(LogLevel.ERROR, message, **kwargs)

    def success(self, message: str, **kwargs) -> None:
        """Log a completed operation at INFO level with highlighted styling."""
        if self._should_log(LogLevel.INFO):
            self._emit(
                f"{Fore.GREEN}✅ SUCCESS {Style.RESET_ALL}",
                f"{Style.BRIGHT}{message}{Style.RESET_ALL}",
                kwargs,
            )

    def section(self, title: str) -> None:
        if not self._should_log(LogLevel.INFO):
            return

        rule = "=" * 60
        with _output_lock:
            print(f"\n{Fore.BLUE}{Style.BRIGHT}{rule}\n  {title.upper()}\n{rule}{Style.RESET_ALL}\n")

    def progress_start(self, message: str) -> None:
        """
        Announce a long-running batch.

        The matching progress_end() prints its summary only if a batch was
        announced.
        """
        if not self._should_log(LogLevel.INFO):
            return

        self._emit(f"{Fore.BLUE}⏳ PROGRESS{Style.RESET_ALL}", f"{message}...", {})
        self._progress_active = True

    def progress_end(self, final_message: Optional[str] = None) -> None:
        if not self._progress_active:
            return

        self._progress_active = False
        if final_message:
            self.success(final_message)

    def table_header(self, headers: List[str], widths: List[int]) -> None:
        if not self._should_log(LogLevel.INFO):
            return

        cells = " | ".join(f"{header:<{width}}" for header, width in zip(headers, widths))
        rule = "-+-".join("-" * width for width in widths)
        with _output_lock:
            print(f"{Style.BRIGHT}{cells}{Style.RESET_ALL}")
            print(f"{Style.DIM}{rule}{Style.RESET_ALL}")

    def table_row(self, values: List[str], widths: List[int], highlight: bool = False) -> None:
        """
        Print one table row aligned to the header widths.

        Args:
            values: Cell values, converted with str()
            widths: Column widths matching table_header()
            highlight: Render the row in bright style (infrastructure devices)
        """
        if not self._should_log(LogLevel.INFO):
            return

        row = " | ".join(f"{str(value):<{width}}" for value, width in zip(values, widths))
        with _output_lock:
            print(f"{Style.BRIGHT}{row}{Style.RESET_ALL}" if highlight else row)


logger = Logger()


def set_log_level(level: LogLevel) -> None:
    """
    Set the process-wide minimum level.

    Loggers created with an explicit ``min_level`` keep their own threshold.
    """
    global _global_min_level
    _global_min_level = level


def get_logger(name: str = "NetworkMapper") -> Logger:
    return Logger(name)
