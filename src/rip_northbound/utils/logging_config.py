"""Logging setup for the RIP northbound daemon.

Everything under the ``rip_northbound`` package logs to the console and to a
rotating file. Transaction and tool timings go to a separate perf log so
slow commits and oper walks can be picked out without the daemon chatter.

Environment Variables:
    RIPNB_LOG_LEVEL: console level, DEBUG/INFO/WARNING/ERROR (default: INFO)
    RIPNB_LOG_FILE: daemon log path (default: ~/.ripnb/ripnb.log)
    RIPNB_LOG_MAX_SIZE: max size of each log file in MB (default: 10)
    RIPNB_LOG_BACKUPS: rotated files to keep (default: 5)
"""
import functools
import logging
import os
import time
from contextlib import asynccontextmanager, contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Optional

PACKAGE_LOGGER = "rip_northbound"

# Timings, kept out of the daemon log
perf_logger = logging.getLogger(f"{PACKAGE_LOGGER}.perf")

LOG_FORMAT = "%(asctime)s.%(msecs)03d | %(name)-36s | %(levelname)-7s | %(message)s"
PERF_FORMAT = "%(asctime)s.%(msecs)03d | PERF | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_log_file() -> Path:
    default_path = Path.home() / ".ripnb" / "ripnb.log"
    return Path(os.environ.get("RIPNB_LOG_FILE", str(default_path)))


def _rotating(path: Path, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=int(os.environ.get("RIPNB_LOG_MAX_SIZE", "10")) * 1024 * 1024,
        backupCount=int(os.environ.get("RIPNB_LOG_BACKUPS", "5")),
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def setup_logging() -> None:
    """Attach console, file and perf handlers. Safe to call more than once."""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if package_logger.handlers:
        return

    level_name = os.environ.get("RIPNB_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    log_file = get_log_file()
    log_file.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)

    # File keeps DEBUG regardless of the console level
    package_logger.setLevel(logging.DEBUG)
    package_logger.addHandler(console)
    package_logger.addHandler(_rotating(log_file, formatter))

    perf_file = log_file.with_name(f"{log_file.stem}-perf{log_file.suffix}")
    perf_logger.setLevel(logging.DEBUG)
    perf_logger.addHandler(_rotating(perf_file, logging.Formatter(PERF_FORMAT, datefmt=DATE_FORMAT)))
    perf_logger.propagate = False

    package_logger.info(f"Logging initialized: level={level_name}, file={log_file}, perf={perf_file}")


def _log_timing(
    operation: str,
    label: Optional[str],
    start: float,
    error: Optional[Exception] = None,
    extra: str = "",
) -> None:
    elapsed = (time.perf_counter() - start) * 1000
    msg = f"{operation:20s} | {label or '-':15s} | {elapsed:8.2f}ms | "
    msg += f"FAIL: {error}" if error else "OK"
    if extra:
        msg += f" | {extra}"
    if error:
        perf_logger.warning(msg)
    else:
        perf_logger.info(msg)


def timed(operation: str, label: Optional[str] = None):
    """Decorator logging how long each call takes, e.g. ``@timed("transaction")``."""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _log_timing(operation, label, start, e)
                raise
            _log_timing(operation, label, start)
            return result
        return wrapper
    return decorator


def _format_extra(extra: dict[str, Any]) -> str:
    return " | ".join(f"{k}={v}" for k, v in extra.items())


@asynccontextmanager
async def timed_section(operation: str, label: Optional[str] = None, **extra):
    """Time an async section such as an MCP tool call."""
    start = time.perf_counter()
    try:
        yield
    except Exception as e:
        _log_timing(operation, label, start, e, _format_extra(extra))
        raise
    _log_timing(operation, label, start, extra=_format_extra(extra))


@contextmanager
def timed_section_sync(operation: str, label: Optional[str] = None, **extra):
    start = time.perf_counter()
    try:
        yield
    except Exception as e:
        _log_timing(operation, label, start, e, _format_extra(extra))
        raise
    _log_timing(operation, label, start, extra=_format_extra(extra))
