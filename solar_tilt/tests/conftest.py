from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence

import pytest

from solar_tilt.core.config import Config
from solar_tilt.core.frames import FrameLoop
from solar_tilt.logic.controller import EvolutionController
from solar_tilt.logic.encoding import encode
from solar_tilt.perf_timings import configure_global_logger, shutdown_logger
from solar_tilt.simulation.evaluator import CallableEvaluator
from solar_tilt.simulation.panels import PanelField


@pytest.fixture(autouse=True)
def _timings_to_tmp(tmp_path: Path):
    configure_global_logger(enabled=True, base_dir=tmp_path / "timings", buffer_size=8)
    yield
    shutdown_logger()


def peak_at(target: float) -> Callable[[Sequence[float]], float]:
    """Objetivo sintetico con maximo en ``position = target`` para cada fila."""

    def objective(angles: Sequence[float]) -> float:
        return -sum((encode(a) - target) ** 2 for a in angles)

    return objective


class Harness:
    def __init__(self, rows: int = 1, objective=None, latency_frames: int = 1) -> None:
        self.loop = FrameLoop()
        self.field = PanelField.rows(rows, tilt_angle=0.1)
        self.evaluator = CallableEvaluator(
            self.field, self.loop, objective or peak_at(0.7), latency_frames=latency_frames
        )
        self.completed = []
        self.messages = []
        self.controller = EvolutionController(
            self.field,
            self.evaluator,
            self.loop,
            on_completed=self.completed.append,
            on_message=lambda level, text: self.messages.append((level, text)),
        )

    def run(self, cfg: Config) -> None:
        assert self.controller.start_run(cfg)
        self.loop.run_until_idle(max_frames=100_000)


@pytest.fixture
def harness() -> Harness:
    return Harness()


@pytest.fixture
def make_harness() -> Callable[..., Harness]:
    return Harness


@pytest.fixture
def peak() -> Callable[[float], Callable[[Sequence[float]], float]]:
    return peak_at
