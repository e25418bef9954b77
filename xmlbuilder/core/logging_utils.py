"""
Logging utilities for xmlbuilder.

Everything logs through the "xmlbuilder" logger. The CLI configures it from
its common options; library users get a NullHandler until they configure
logging themselves.
"""

import json
import logging
import os
import sys
from typing import Any, Dict, Optional

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL
}

LOG_FORMATS = ("text", "json")

CONSOLE_FORMAT = '%(levelname)s: %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger("xmlbuilder")

# Format picked by the last configure_logging() or --log-format
_log_format = "text"


class JsonFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }
        if record.exc_info:
            entry['exception'] = {
                'type': record.exc_info[0].__name__,
                'value': str(record.exc_info[1]),
            }
        return json.dumps(entry)


def _is_console_handler(handler: logging.Handler) -> bool:
    return isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler)


def _make_formatter(log_format: str, for_file: bool, verbose: bool = False) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter()
    if for_file or verbose:
        return logging.Formatter(FILE_FORMAT)
    return logging.Formatter(CONSOLE_FORMAT)


def _open_log_file(path: str) -> logging.FileHandler:
    dir_path = os.path.dirname(os.path.abspath(path))
    if dir_path:
        os.makedirs(dir_path, exist_ok=True)
    return logging.FileHandler(path)


def configure_logging(
    level: str = "info",
    log_file: Optional[str] = None,
    quiet: bool = False,
    verbose: bool = False,
    log_format: str = "text"
) -> None:
    """
    Configure the xmlbuilder logger, replacing any handlers it has.

    Args:
        level: Log level (debug, info, warning, error, critical)
        log_file: Path to log file (optional)
        quiet: No console handler; the info level is raised to warning
        verbose: Debug level with timestamps on the console
        log_format: "text" or "json"
    """
    global _log_format
    _log_format = log_format

    if verbose:
        level = "debug"
    elif quiet and level == "info":
        level = "warning"

    log_level = LOG_LEVELS.get(level.lower(), logging.INFO)
    logger.setLevel(log_level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    # Diagnostics go to stderr so rendered XML on stdout stays clean
    if not quiet:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(_make_formatter(log_format, for_file=False, verbose=verbose))
        console_handler.setLevel(log_level)
        logger.addHandler(console_handler)

    if log_file:
        file_handler = _open_log_file(log_file)
        file_handler.setFormatter(_make_formatter(log_format, for_file=True))
        file_handler.setLevel(log_level)
        logger.addHandler(file_handler)

    logger.debug(f"Logging configured: level={level}, log_file={log_file}, quiet={quiet}, "
                 f"verbose={verbose}, log_format={log_format}")


def log(
    message: str,
    level: str = "info",
    data: Optional[Dict[str, Any]] = None
) -> None:
    """
    Log a message with optional structured data appended as key=value pairs.
    """
    log_level = LOG_LEVELS.get(level.lower(), logging.INFO)

    if data:
        data_str = " ".join(f"{k}={v}" for k, v in data.items())
        message = f"{message} - {data_str}"

    logger.log(log_level, message)


# Option callbacks for use with Typer CLI
def verbose_callback(value: bool) -> bool:
    """Typer callback for verbose flag"""
    if value:
        configure_logging(level="debug", verbose=True, log_format=_log_format)
    return value


def quiet_callback(value: bool) -> bool:
    """Typer callback for quiet flag"""
    if value:
        for handler in logger.handlers[:]:
            if _is_console_handler(handler):
                logger.removeHandler(handler)
    return value


def log_level_callback(value: str) -> str:
    """Typer callback to validate and set log level"""
    value = value.lower()
    if value not in LOG_LEVELS:
        valid_levels = ", ".join(LOG_LEVELS.keys())
        raise ValueError(f"Log level must be one of: {valid_levels}")

    logger.setLevel(LOG_LEVELS[value])
    for handler in logger.handlers:
        if _is_console_handler(handler):
            handler.setLevel(LOG_LEVELS[value])

    return value


def log_format_callback(value: str) -> str:
    """Typer callback that switches every handler to text or JSON output"""
    global _log_format
    value = value.lower()
    if value not in LOG_FORMATS:
        raise ValueError(f"Log format must be one of: {', '.join(LOG_FORMATS)}")
    _log_format = value

    for handler in logger.handlers:
        handler.setFormatter(_make_formatter(value, for_file=not _is_console_handler(handler)))

    return value


def log_file_callback(value: Optional[str]) -> Optional[str]:
    """Typer callback for log file"""
    if value:
        try:
            file_handler = _open_log_file(value)
        except OSError as e:
            raise ValueError(f"Cannot write to log file: {str(e)}")

        for handler in logger.handlers[:]:
            if isinstance(handler, logging.FileHandler):
                logger.removeHandler(handler)
                handler.close()

        file_handler.setFormatter(_make_formatter(_log_format, for_file=True))
        logger.addHandler(file_handler)

    return value
