from __future__ import annotations

"""
Utilities for high-resolution performance instrumentation across the project.
"""

from .logger import (
    CSV_HEADER,
    PERF_TIMINGS_ENABLED,
    TimingLogger,
    configure_global_logger,
    get_timing_logger,
    read_timings_csv,
    shutdown_logger,
)
from .timers import record_span, time_block, time_section

__all__ = [
    "CSV_HEADER",
    "PERF_TIMINGS_ENABLED",
    "TimingLogger",
    "configure_global_logger",
    "get_timing_logger",
    "read_timings_csv",
    "shutdown_logger",
    "record_span",
    "time_block",
    "time_section",
]
