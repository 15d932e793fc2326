"""
Evaluadores del objetivo: simulaciones asincronas que avanzan por cuadros.

Cada pasada se pide con ``trigger`` y devuelve un ``Future`` que se resuelve
con el objetivo acumulado cuando la pasada termina, varios cuadros despues.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Generator, List, Optional, Sequence

from ..core.config import Config, ObjectiveType
from ..core.frames import FrameLoop
from ..perf_timings.timers import time_block
from .panels import PanelField
from .solar import hourly_energy

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

Series = List[Dict[str, Any]]
FrameWork = Generator[None, None, Series]


@dataclass
class _PendingPass:
    kind: ObjectiveType
    frames: FrameWork
    future: "Future[float]"
    handle: Optional[int] = None


class ObjectiveEvaluator:
    """
    Base de los evaluadores. Las subclases implementan ``_frames``: un generador
    que hace el trabajo de un cuadro por cada ``next`` y devuelve la serie
    ``[{..., "Total": valor}, ...]`` al agotarse.
    """

    def __init__(
        self,
        field: PanelField,
        frame_loop: FrameLoop,
        days_per_year: int = 6,
        logger: Optional[Any] = None,
    ) -> None:
        self.field = field
        self.frame_loop = frame_loop
        self.days_per_year = days_per_year
        self.logger = logger or logging.getLogger("solar_tilt_opt")
        self.evaluation_index = 0
        self.trigger_count = 0
        self._last_series: Series = []
        self._pending: Optional[_PendingPass] = None

    @property
    def busy(self) -> bool:
        return self._pending is not None

    @property
    def last_series(self) -> Series:
        return list(self._last_series)

    def trigger(self, kind: ObjectiveType) -> "Future[float]":
        if self._pending is not None:
            raise RuntimeError("An evaluation is already running; only one pass at a time is allowed.")
        kind = ObjectiveType(kind)
        future: "Future[float]" = Future()
        job = _PendingPass(kind=kind, frames=self._frames(kind), future=future)
        self._pending = job
        self.trigger_count += 1
        job.handle = self.frame_loop.request_frame(self._advance)
        return future

    def cancel_pending(self) -> bool:
        job = self._pending
        if job is None:
            return False
        self._pending = None
        self.frame_loop.cancel_frame(job.handle)
        job.frames.close()
        job.future.cancel()
        return True

    def read_accumulated_objective(self, kind: ObjectiveType) -> float:
        total = 0.0
        for datum in self._last_series:
            total += float(datum.get("Total", 0.0))
        if ObjectiveType(kind) == ObjectiveType.YEARLY_TOTAL_OUTPUT:
            total *= 12 / self.days_per_year
        return total

    def _advance(self) -> None:
        job = self._pending
        if job is None:
            return
        try:
            next(job.frames)
        except StopIteration as stop:
            self._pending = None
            self._last_series = list(stop.value or [])
            self.evaluation_index += 1
            job.future.set_result(self.read_accumulated_objective(job.kind))
        except Exception as exc:
            self._pending = None
            self.logger.error("Objective evaluation failed: %s", exc)
            job.future.set_exception(exc)
        else:
            job.handle = self.frame_loop.request_frame(self._advance)

    def _frames(self, kind: ObjectiveType) -> FrameWork:
        raise NotImplementedError


class PvYieldSimulator(ObjectiveEvaluator):
    """
    Produccion fotovoltaica diaria (una hora por cuadro) o anual (un dia
    muestreado por cuadro, el 22 de cada ``12 / days_per_year`` meses).
    """

    def __init__(
        self,
        field: PanelField,
        frame_loop: FrameLoop,
        day_of_year: int = 172,
        times_per_hour: int = 4,
        days_per_year: int = 6,
        logger: Optional[Any] = None,
    ) -> None:
        super().__init__(field, frame_loop, days_per_year=days_per_year, logger=logger)
        self.day_of_year = day_of_year
        self.times_per_hour = times_per_hour

    @classmethod
    def from_config(
        cls, field: PanelField, frame_loop: FrameLoop, cfg: Config, logger: Optional[Any] = None
    ) -> "PvYieldSimulator":
        return cls(
            field,
            frame_loop,
            day_of_year=cfg.day_of_year,
            times_per_hour=cfg.times_per_hour,
            days_per_year=cfg.days_per_year,
            logger=logger,
        )

    def _frames(self, kind: ObjectiveType) -> FrameWork:
        if kind == ObjectiveType.YEARLY_TOTAL_OUTPUT:
            return (yield from self._yearly())
        return (yield from self._daily())

    def _daily(self) -> FrameWork:
        series: Series = []
        for hour in range(24):
            with time_block("yield_frame", extra={"kind": "daily", "hour": hour}):
                energy = hourly_energy(
                    self.field.groups,
                    self.field.latitude,
                    self.day_of_year,
                    hour,
                    self.times_per_hour,
                )
            series.append({"Hour": hour, "Total": energy})
            yield
        return series

    def _yearly(self) -> FrameWork:
        series: Series = []
        month_interval = 12 // self.days_per_year
        for month in range(0, 12, month_interval):
            day = date(2023, month + 1, 22).timetuple().tm_yday
            with time_block("yield_frame", extra={"kind": "yearly", "month": month}):
                daily = sum(
                    hourly_energy(
                        self.field.groups, self.field.latitude, day, hour, self.times_per_hour
                    )
                    for hour in range(24)
                )
            series.append({"Month": MONTHS[month], "Total": daily * 30})
            yield
        return series


class CallableEvaluator(ObjectiveEvaluator):
    """
    Evalua una funcion de las inclinaciones actuales tras ``latency_frames``
    cuadros. Util para pruebas y para objetivos sinteticos.
    """

    def __init__(
        self,
        field: PanelField,
        frame_loop: FrameLoop,
        objective: Callable[[Sequence[float]], float],
        latency_frames: int = 1,
        days_per_year: int = 12,
        logger: Optional[Any] = None,
    ) -> None:
        super().__init__(field, frame_loop, days_per_year=days_per_year, logger=logger)
        self.objective = objective
        self.latency_frames = max(0, int(latency_frames))

    def _frames(self, kind: ObjectiveType) -> FrameWork:
        for _ in range(self.latency_frames):
            yield
        return [{"Total": float(self.objective(self.field.tilt_angles()))}]


if __name__ == "__main__":
    loop = FrameLoop()
    field = PanelField.rows(2)
    sim = PvYieldSimulator(field, loop)
    fut = sim.trigger(ObjectiveType.DAILY_TOTAL_OUTPUT)
    loop.run_until_idle()
    print("Produccion diaria (kWh):", round(fut.result(), 3))
