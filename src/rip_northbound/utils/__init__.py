"""Utility modules for logging, auditing and retries."""
from .retry import with_retry, is_transient_os_error
from .logging_config import (
    setup_logging,
    timed,
    timed_section,
    timed_section_sync,
    perf_logger,
)

__all__ = [
    "with_retry",
    "is_transient_os_error",
    "setup_logging",
    "timed",
    "timed_section",
    "timed_section_sync",
    "perf_logger",
]
