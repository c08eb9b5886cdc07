"""
Logging for ScopeFlow checks.

One `logger` instance is shared by the whole package. Errors always reach
stderr, since stdout carries the check report. While a check runs, a log file
is attached with `set_execution_context()`:

    from scopeflow.logger import logger

    logger.set_execution_context("alarms", "check", "/var/log/scopeflow", "DEBUG")
    logger.debug("goes to the log file")
    logger.clear_execution_context()

Values of sensitive keywords (see PROTECTED_KEYWORDS) are masked in every
record before any handler sees it.
"""

import logging
import re
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from scopeflow.constants import PROTECTED_KEYWORDS, SCOPEFLOW_DEFAULT_LOGGER

REDACTED = "***REDACTED***"

_SENSITIVE_VALUE = re.compile(
    rf"({'|'.join(re.escape(kw) for kw in PROTECTED_KEYWORDS)})(\s*[:=]\s*)(['\"]?)(\S+?)(\3)(?=\s|,|}}|\]|$)",
    re.IGNORECASE,
)


def sanitize_log_message(message: str) -> str:
    """Mask the value of every sensitive keyword, e.g. `password=***REDACTED***`."""
    if not isinstance(message, str):
        return message
    return _SENSITIVE_VALUE.sub(rf"\1\2\3{REDACTED}\5", message)


class RedactingFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = sanitize_log_message(record.getMessage())
        record.args = None
        return True


class CheckLogFormatter(logging.Formatter):
    """Log file format: microsecond timestamps and the function that logged."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s [%(levelname)s] [%(name)s] [%(funcName)s] - %(message)s")

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: N802
        created = datetime.fromtimestamp(record.created)  # noqa: DTZ006
        return created.strftime(datefmt) if datefmt else created.isoformat()


@dataclass
class ExecutionContext:
    """The check run the current log file belongs to."""

    execution_name: str
    execution_type: str
    log_file: Path
    started: datetime = field(default_factory=datetime.now)

    @property
    def elapsed(self) -> float:
        return (datetime.now() - self.started).total_seconds()


class ScopeFlowLogger:
    """
    Process-wide logger for ScopeFlow.

    Instantiating the class again returns the existing instance. The wrapped
    `logging.Logger` is named "scopeflow" and propagates, so test tooling and
    embedding applications can still attach their own handlers.
    """

    _instance: "ScopeFlowLogger | None" = None

    def __new__(cls) -> "ScopeFlowLogger":
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._setup()
            cls._instance = instance
        return cls._instance

    def _setup(self) -> None:
        self._logger = logging.getLogger("scopeflow")
        self._logger.setLevel(logging.DEBUG)
        self._logger.addFilter(RedactingFilter())

        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setLevel(logging.ERROR)
        stderr_handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        self._logger.addHandler(stderr_handler)

        self._file_handler: logging.FileHandler | None = None
        self._context: ExecutionContext | None = None

    def set_execution_context(
        self,
        execution_name: str,
        execution_type: str,
        log_dir: str | Path | None = None,
        log_level: str = "INFO",
    ) -> ExecutionContext:
        """
        Start logging a check run to its own file.

        A previous context is replaced. The file is named after the run type,
        its name and a timestamp, e.g. `check_alarms_20240101_120000_000001.log`.

        Args:
            execution_name: Name of the run (e.g. "alarms", "vms").
            execution_type: Kind of run (e.g. "check").
            log_dir: Directory for the log file, created when missing.
            log_level: Minimum level written to the file.

        Returns:
            The new execution context.
        """
        self._detach_file_handler()

        level = logging.getLevelName(log_level.upper())
        if not isinstance(level, int):
            level = logging.INFO

        directory = Path(log_dir or SCOPEFLOW_DEFAULT_LOGGER["directory"])
        directory.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        log_file = directory / f"{execution_type}_{execution_name}_{timestamp}.log"

        self._file_handler = logging.FileHandler(log_file, encoding="utf-8")
        self._file_handler.setLevel(level)
        self._file_handler.setFormatter(CheckLogFormatter())
        self._logger.addHandler(self._file_handler)
        self._logger.setLevel(level)

        self._context = ExecutionContext(execution_name, execution_type, log_file)
        self.info(f"Started {execution_type} execution: {execution_name}")
        return self._context

    def clear_execution_context(self) -> None:
        """Close the log file of the current run, if any."""
        if self._context:
            self.info(f"Completed execution in {self._context.elapsed:.2f} seconds")
        self._detach_file_handler()
        self._context = None
        self._logger.setLevel(logging.DEBUG)

    def get_execution_context(self) -> ExecutionContext | None:
        return self._context

    def _detach_file_handler(self) -> None:
        if self._file_handler:
            self._logger.removeHandler(self._file_handler)
            self._file_handler.close()
            self._file_handler = None

    # stacklevel=2 reports the caller as funcName instead of these wrappers
    def debug(self, message: str, *args: object, **kwargs) -> None:
        self._logger.debug(message, *args, stacklevel=2, **kwargs)

    def info(self, message: str, *args: object, **kwargs) -> None:
        self._logger.info(message, *args, stacklevel=2, **kwargs)

    def warning(self, message: str, *args: object, **kwargs) -> None:
        self._logger.warning(message, *args, stacklevel=2, **kwargs)

    def error(self, message: str, *args: object, **kwargs) -> None:
        self._logger.error(message, *args, stacklevel=2, **kwargs)

    def exception(self, message: str, *args: object, **kwargs) -> None:
        """Log an error along with the traceback of the exception being handled."""
        self._logger.exception(message, *args, stacklevel=2, **kwargs)


logger = ScopeFlowLogger()
