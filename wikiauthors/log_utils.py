from __future__ import annotations

import logging
import os
import sys
from typing import Optional


# Define custom log levels for enhanced workflow visibility
STEP_LEVEL = 25  # Between INFO (20) and WARNING (30)
SUCCESS_LEVEL = 22  # Between INFO (20) and STEP (25)

# Register custom levels with the logging module
logging.addLevelName(STEP_LEVEL, "STEP")
logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")


class LogSource:
    """
    Constants for data sources to ensure consistent naming and coloring.
    """
    WIKIPEDIA = "Wikipedia"
    DATASET = "Dataset"
    SYSTEM = "System"


class LogCategory:
    """
    Constants for log categories to replace indentation with semantic tagging.
    """
    CATEGORY = "CATEGORY"
    MEMBER = "MEMBER"
    FETCH = "FETCH"
    MERGE = "MERGE"
    MATCH = "MATCH"
    QUERY = "QUERY"
    ACTION = "ACTION"
    SAVE = "SAVE"
    SKIP = "SKIP"
    ERROR = "ERROR"
    DEBUG = "DEBUG"
    PLAN = "PLAN"


class ColoredFormatter(logging.Formatter):
    """
    Custom formatter that adds ANSI color codes to log messages for terminal output,
    making different log levels, sources, and categories easily distinguishable.
    """

    # ANSI Color Codes
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD_CYAN = "\033[1;36m"
    BOLD_GREEN = "\033[1;32m"
    YELLOW = "\033[33m"
    RED = "\033[31m"
    BOLD_RED = "\033[1;31m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    GREEN = "\033[32m"
    DARK_GRAY = "\033[90m"
    BOLD_MAGENTA = "\033[1;35m"
    BOLD_BLUE = "\033[1;34m"
    RESET = "\033[0m"

    # Level colors
    LEVEL_COLORS = {
        "DEBUG": CYAN,
        "INFO": WHITE,
        "STEP": BOLD_CYAN,
        "SUCCESS": BOLD_GREEN,
        "WARNING": YELLOW,
        "ERROR": RED,
        "CRITICAL": BOLD_RED,
    }

    SOURCE_COLORS = {
        LogSource.WIKIPEDIA: BLUE,
        LogSource.DATASET: MAGENTA,
        LogSource.SYSTEM: WHITE,
    }

    CATEGORY_COLORS = {
        LogCategory.CATEGORY: BOLD_MAGENTA,
        LogCategory.MEMBER: BOLD_BLUE,
        LogCategory.FETCH: CYAN,
        LogCategory.MERGE: YELLOW,
        LogCategory.MATCH: BOLD_GREEN,
        LogCategory.QUERY: YELLOW,
        LogCategory.ACTION: BOLD_BLUE,
        LogCategory.SAVE: GREEN,
        LogCategory.SKIP: DARK_GRAY,
        LogCategory.ERROR: RED,
        LogCategory.DEBUG: DARK_GRAY,
        LogCategory.PLAN: MAGENTA,
    }

    def __init__(self, fmt: str, use_color: bool = True):
        super().__init__(fmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        """
        Format the log record with optional color codes based on the log level, source, and category.
        """
        # Save original values to restore later; other handlers see the same record
        original_msg = record.msg
        original_levelname = record.levelname

        source = getattr(record, "source", None)
        category = getattr(record, "category", None)

        parts = []
        if source:
            if self.use_color and source in self.SOURCE_COLORS:
                parts.append(f"{self.SOURCE_COLORS[source]}[{source}]{self.RESET}")
            else:
                parts.append(f"[{source}]")
        if category:
            if self.use_color and category in self.CATEGORY_COLORS:
                parts.append(f"{self.CATEGORY_COLORS[category]}[{category}]{self.RESET}")
            else:
                parts.append(f"[{category}]")
        if parts:
            record.msg = f"{' '.join(parts)} {record.msg}"

        if self.use_color and record.levelname in self.LEVEL_COLORS:
            record.levelname = f"{self.LEVEL_COLORS[record.levelname]}{record.levelname}{self.RESET}"

        formatted = super().format(record)

        record.msg = original_msg
        record.levelname = original_levelname

        return formatted


class CategoryAdapter(logging.LoggerAdapter):
    """
    Adapter that adds category support to log messages.
    """

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        """
        Pass source and category to extra dict.
        """
        extra = kwargs.get("extra", {})

        source = kwargs.pop("source", None)
        if source:
            extra["source"] = source

        category = kwargs.pop("category", None)
        if category:
            extra["category"] = category

        kwargs["extra"] = extra
        return msg, kwargs


class Logger:
    """
    Logger built on Python's standard logging module with support for colors,
    custom levels (STEP, SUCCESS), file mirroring, and categories.

    Console output goes to stderr so that stdout stays free for the dataset
    JSON when no output file is given.
    """

    LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(message)s"
    DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

    def __init__(self):
        self._logger = logging.getLogger("wikiauthors")
        self._logger.setLevel(logging.DEBUG)
        self._logger.propagate = False

        self._logger.handlers.clear()

        self._console_handler = logging.StreamHandler(sys.stderr)
        self._console_handler.setLevel(logging.INFO)

        use_color = sys.stderr.isatty()
        console_formatter = ColoredFormatter(self.LOG_FORMAT, use_color=use_color)
        console_formatter.datefmt = self.DATE_FORMAT
        self._console_handler.setFormatter(console_formatter)
        self._logger.addHandler(self._console_handler)

        self._file_handler: Optional[logging.FileHandler] = None

        self._adapter = CategoryAdapter(self._logger, {})

    def set_verbose(self, verbose: bool):
        """
        Show DEBUG messages on the console when verbose, INFO and above otherwise.
        """
        self._console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)

    def set_log_file(self, path: str):
        """
        Start mirroring all log messages, including DEBUG, to the specified file.
        """
        parent_dir = os.path.dirname(path)
        if parent_dir:
            try:
                os.makedirs(parent_dir, exist_ok=True)
            except OSError:
                pass

        self.close()
        try:
            handler = logging.FileHandler(path, mode="w", encoding="utf-8")
        except OSError as e:
            self._logger.error(f"Failed to open log file {path}: {e}")
            return

        handler.setLevel(logging.DEBUG)
        handler.setFormatter(ColoredFormatter(self.LOG_FORMAT, use_color=False))
        handler.formatter.datefmt = self.DATE_FORMAT
        self._logger.addHandler(handler)
        self._file_handler = handler

    def close(self):
        """
        Stop logging to file.
        """
        if self._file_handler:
            self._logger.removeHandler(self._file_handler)
            self._file_handler.close()
            self._file_handler = None

    def step(self, msg: str, source: Optional[str] = None, category: Optional[str] = None):
        """
        Log a top-level workflow step.
        """
        self._adapter.log(STEP_LEVEL, msg, source=source, category=category)

    def debug(self, msg: str, *, source: Optional[str] = None, category: Optional[str] = None):
        self._adapter.debug(msg, source=source, category=category)

    def info(self, msg: str, *, source: Optional[str] = None, category: Optional[str] = None):
        self._adapter.info(msg, source=source, category=category)

    def warn(self, msg: str, *, source: Optional[str] = None, category: Optional[str] = None):
        self._adapter.warning(msg, source=source, category=category)

    def error(self, msg: str, *, source: Optional[str] = None, category: Optional[str] = None):
        self._adapter.error(msg, source=source, category=category)

    def success(self, msg: str, *, source: Optional[str] = None, category: Optional[str] = None):
        """
        Log successful operations.
        """
        self._adapter.log(SUCCESS_LEVEL, msg, source=source, category=category)


# Global logger instance
logger = Logger()
