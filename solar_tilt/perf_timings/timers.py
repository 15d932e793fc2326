from __future__ import annotations

import contextlib
import functools
import time
from typing import Any, Callable, Optional

from .logger import PERF_TIMINGS_ENABLED, TimingLogger, get_timing_logger


def _resolve_value(value: Any, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
    if callable(value):
        return value(*args, **kwargs)
    return value


def _to_int(value: Any, default: int = -1) -> int:
    if callable(value):
        value = value()
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class _TimingBlock(contextlib.ContextDecorator):
    def __init__(
        self,
        section: str,
        *,
        step: Any = -1,
        individual_id: Any = -1,
        extra: Optional[Any] = None,
    ) -> None:
        self.section = section
        self.step = step
        self.individual_id = individual_id
        self.extra = extra
        self._start_ns: Optional[int] = None
        self._logger: Optional[TimingLogger] = None

    def __enter__(self) -> "_TimingBlock":
        if not PERF_TIMINGS_ENABLED:
            return self
        self._start_ns = time.perf_counter_ns()
        self._logger = get_timing_logger()
        return self

    def __exit__(self, exc_type, exc, exc_tb) -> bool:
        if not PERF_TIMINGS_ENABLED or self._logger is None or self._start_ns is None:
            return False
        end_ns = time.perf_counter_ns()
        payload = self.extra() if callable(self.extra) else self.extra
        self._logger.record(
            section=self.section,
            start_ns=self._start_ns,
            end_ns=end_ns,
            step=_to_int(self.step),
            individual_id=_to_int(self.individual_id),
            extra=payload,
        )
        return False


def time_block(
    section: str,
    *,
    step: Any = -1,
    individual_id: Any = -1,
    extra: Optional[Any] = None,
) -> _TimingBlock:
    """
    Context manager for ad-hoc timing blocks.
    """

    return _TimingBlock(
        section,
        step=step,
        individual_id=individual_id,
        extra=extra,
    )


def time_section(
    section: str,
    *,
    step: Any = -1,
    individual_id: Any = -1,
    extra: Optional[Any] = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorator that records execution time for the wrapped callable.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if not PERF_TIMINGS_ENABLED:
                return func(*args, **kwargs)

            with time_block(
                section,
                step=_resolve_value(step, args, kwargs),
                individual_id=_resolve_value(individual_id, args, kwargs),
                extra=_resolve_value(extra, args, kwargs),
            ):
                return func(*args, **kwargs)

        return wrapper

    return decorator


def record_span(
    section: str,
    start_ns: int,
    *,
    step: int = -1,
    individual_id: int = -1,
    extra: Optional[Any] = None,
) -> None:
    """
    Registra un intervalo que empezo en otro cuadro (p. ej. una evaluacion
    asincrona), cerrandolo ahora.
    """
    if not PERF_TIMINGS_ENABLED:
        return
    get_timing_logger().record(
        section=section,
        start_ns=start_ns,
        end_ns=time.perf_counter_ns(),
        step=step,
        individual_id=individual_id,
        extra=extra,
    )
