"""
tokenledger Logging System
==========================

Process-wide logging for the ledger. Console output goes through ``rich`` with
a highlighter tuned to ledger messages (addresses, event names, error kinds,
``[SYMBOL]`` tags); an optional rotating file handler keeps a plain copy.

Settings come from ``.env`` via ``tokenledger.constants`` (LOG_LEVEL,
LOG_FORMAT, LOG_DATE_FORMAT, LOG_CONSOLE_HIGHLIGHTING, LOG_FILE_OUTPUT).

Usage:
    >>> from tokenledger.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("[TST] Mint: 100 → 0x...")
"""

import logging
import logging.handlers
import re
import sys
import threading
import time
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.theme import Theme

from .constants import (
    LOG_LEVEL,
    LOG_FORMAT,
    LOG_DATE_FORMAT,
    LOG_MAX_FILE_SIZE,
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_HIGHLIGHTING,
    LOG_FILE_OUTPUT,
)


PROJECT_ROOT = Path(__file__).parent.parent
LOG_FILE_PATH = PROJECT_ROOT / "logs" / "tokenledger.log"

LEDGER_THEME = Theme(
    {
        "ledger.address":        "cyan",
        "ledger.error_kind":     "bold red",
        "ledger.event":          "bold magenta",
        "ledger.level_critical": "bold red reverse",
        "ledger.level_debug":    "bold dim",
        "ledger.level_error":    "bold red",
        "ledger.level_info":     "bold green",
        "ledger.level_warning":  "bold yellow",
        "ledger.logger_name":    "magenta",
        "ledger.symbol":         "bold yellow",
        "ledger.timestamp":      "bold cyan",
    }
)


class TerminalSafeFormatter(logging.Formatter):
    """
    Formatter that strips terminal control sequences.

    Token names, symbols and guard error messages are caller-supplied, so a
    name like ``"\\x1b[2J"`` must not reach the console as an escape code.
    """

    _ansi_escape_re = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]|\x1b[@-Z\\-_]")
    # C0 controls except tab and newline, plus DEL; carriage return included
    _control_chars_re = re.compile(r"[\x00-\x08\x0B-\x1F\x7F]")

    @classmethod
    def sanitize(cls, text: str) -> str:
        if not text:
            return text
        return cls._control_chars_re.sub("", cls._ansi_escape_re.sub("", text))

    def format(self, record: logging.LogRecord) -> str:
        return self.sanitize(super().format(record))


class LedgerLogHighlighter(RegexHighlighter):
    """Colors addresses, event names, error kinds and ``[SYMBOL]`` tags."""

    base_style = "ledger."
    highlights = [
        r"(?P<address>\b0x[0-9a-fA-F]{40}\b)",
        r"(?P<event>\b(Transfer|Approval|Paused|Unpaused)\b)",
        r"(?P<error_kind>\b(Overflow|Underflow|Insufficient\w+|Invalid\w+|ContractPaused|"
        r"CapExceeded|Unauthorized|Already(Paused|Unpaused)|UnsupportedOperation)\b)",
        r"(?P<level_critical>\bCRITICAL\b)",
        r"(?P<level_debug>\bDEBUG\b)",
        r"(?P<level_error>\bERROR\b)",
        r"(?P<level_info>\bINFO\b)",
        r"(?P<level_warning>\bWARNING\b)",
        r"\-\s+\w+\s+-\s+(?P<logger_name>[\w.]+)(?=\s-\s)",
        r"(?P<symbol>\[[A-Za-z0-9]+\])",
        r"(?P<timestamp>^(.*?)UTC)",
    ]


def _build_formatter() -> TerminalSafeFormatter:
    """
    Build the shared formatter from the .env settings.

    An unusable LOG_FORMAT or LOG_DATE_FORMAT falls back to its default
    instead of breaking every later log call.
    """
    fmt, datefmt = str(LOG_FORMAT), str(LOG_DATE_FORMAT)
    probe = logging.LogRecord("tokenledger", logging.INFO, "", 0, "check", (), None)
    try:
        logging.Formatter(fmt=fmt).format(probe)
    except (ValueError, KeyError, TypeError) as e:
        print(f"tokenledger.logger - bad LOG_FORMAT ({e}), using default", file=sys.stderr)
        fmt = str(LOG_FORMAT.default())
    try:
        time.strftime(datefmt)
    except ValueError as e:
        print(f"tokenledger.logger - bad LOG_DATE_FORMAT ({e}), using default", file=sys.stderr)
        datefmt = str(LOG_DATE_FORMAT.default())

    # Timestamps are UTC so logs from different hosts line up
    formatter = TerminalSafeFormatter(fmt=fmt, datefmt=datefmt + " UTC")
    formatter.converter = time.gmtime
    return formatter


class LogManager:
    """
    Singleton owner of the root logger configuration.

    The first ``configure()`` wins; later calls are no-ops so that importing
    any tokenledger module never resets handlers a host application added.
    """

    _instance: Optional["LogManager"] = None
    _lock: threading.Lock = threading.Lock()

    def __new__(cls) -> "LogManager":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._configured = False
        return cls._instance

    def configure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        file_output: Optional[bool] = None,
    ) -> None:
        """
        Install console and file handlers on the root logger.

        Args:
            log_level: Level name; defaults to LOG_LEVEL from .env
            log_file: Rotating log file path; defaults to logs/tokenledger.log
            console_output: Attach a console handler
            file_output: Attach the file handler; defaults to LOG_FILE_OUTPUT
        """
        with self._lock:
            if self._configured:
                return

            level = getattr(logging, str(log_level or LOG_LEVEL).upper(), logging.INFO)
            root_logger = logging.getLogger()
            root_logger.setLevel(level)
            root_logger.handlers.clear()
            formatter = _build_formatter()

            if console_output:
                if LOG_CONSOLE_HIGHLIGHTING:
                    handler = RichHandler(
                        console=Console(theme=LEDGER_THEME, highlight=False),
                        highlighter=LedgerLogHighlighter(),
                        keywords=[],
                        rich_tracebacks=True,
                        show_path=False,
                        show_time=False,
                        show_level=False,
                        markup=False,
                    )
                else:
                    handler = logging.StreamHandler(sys.stdout)
                handler.setLevel(level)
                handler.setFormatter(formatter)
                root_logger.addHandler(handler)

            if file_output is None:
                file_output = bool(LOG_FILE_OUTPUT)
            if file_output:
                path = log_file or LOG_FILE_PATH
                path.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.handlers.RotatingFileHandler(
                    filename=str(path),
                    maxBytes=LOG_MAX_FILE_SIZE,
                    backupCount=LOG_BACKUP_COUNT,
                    encoding="utf-8",
                )
                file_handler.setLevel(level)
                file_handler.setFormatter(formatter)
                root_logger.addHandler(file_handler)

            self._configured = True

    def get_logger(self, name: str) -> logging.Logger:
        if not self._configured:
            self.configure()
        return logging.getLogger(name)

    @property
    def is_configured(self) -> bool:
        return self._configured


_manager = LogManager()


def get_logger(name: str) -> logging.Logger:
    """Return a logger for *name*, configuring logging on first use."""
    return _manager.get_logger(name)


_manager.configure()
