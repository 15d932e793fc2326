"""
Planificador de la evolucion: aplica cada individuo al modelo, pide la
evaluacion asincrona y avanza el nucleo evolutivo cuadro a cuadro.

Soporta pausa, reanudacion y aborto con reversion del diseno original.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future
from dataclasses import dataclass, field as dc_field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..core.config import Config, EvolutionMethod, ObjectiveType, SearchMethod
from ..core.frames import FrameLoop
from ..core.telemetry import MetricsLogger
from ..perf_timings.timers import record_span
from ..simulation.evaluator import ObjectiveEvaluator
from ..simulation.panels import FieldSnapshot, PanelField
from .encoding import apply_position, decode_position, encode_angles, position_to_string
from .ga import GeneticOptimizer
from .optimizer import EvolutionaryOptimizer, StepRecord
from .pso import ParticleSwarmOptimizer

CONVERGED_SUMMARY = "Convergence threshold has been reached"
BUDGET_SUMMARY = "Maximum number of steps has been reached"


class RunState(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    AWAITING_EVALUATION = "awaiting_evaluation"
    ADVANCING = "advancing"
    PAUSED = "paused"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass
class RunResult:
    positions: np.ndarray
    angles: Tuple[float, ...]
    angles_deg: Tuple[float, ...]
    fitness: float
    steps: int
    evaluations: int
    converged: bool
    summary: str
    history: List[StepRecord] = dc_field(default_factory=list)
    labels: List[Optional[str]] = dc_field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "positions": self.positions.tolist(),
            "angles": list(self.angles),
            "angles_deg": list(self.angles_deg),
            "fitness": self.fitness,
            "steps": self.steps,
            "evaluations": self.evaluations,
            "converged": self.converged,
            "summary": self.summary,
            "labels": self.labels,
            "history": [record.to_dict() for record in self.history],
        }


def build_optimizer(
    cfg: Config,
    dimension: int,
    initial_position: Optional[Sequence[float]] = None,
    logger: Optional[Any] = None,
) -> EvolutionaryOptimizer:
    if EvolutionMethod(cfg.evolution_method) == EvolutionMethod.GENETIC_ALGORITHM:
        return GeneticOptimizer(cfg, dimension, initial_position=initial_position, logger=logger)
    return ParticleSwarmOptimizer(cfg, dimension, initial_position=initial_position, logger=logger)


class EvolutionController:
    def __init__(
        self,
        field: PanelField,
        evaluator: ObjectiveEvaluator,
        frame_loop: FrameLoop,
        logger: Optional[Any] = None,
        on_completed: Optional[Callable[[RunResult], None]] = None,
        on_message: Optional[Callable[[str, str], None]] = None,
    ) -> None:
        self.field = field
        self.evaluator = evaluator
        self.frame_loop = frame_loop
        self.logger = logger or logging.getLogger("solar_tilt_opt")
        self.on_completed = on_completed
        self.on_message = on_message
        self.metrics = MetricsLogger()

        self.cfg: Optional[Config] = None
        self.optimizer: Optional[EvolutionaryOptimizer] = None
        self._state = RunState.IDLE
        self._in_progress = False
        self._paused = False
        self._held = False
        self._token = 0
        self._frame_handle: Optional[int] = None
        self._snapshot: Optional[FieldSnapshot] = None
        self._history: List[StepRecord] = []
        self._result: Optional[RunResult] = None

    # Estado observable ----------------------------------------------------
    @property
    def state(self) -> RunState:
        return self._state

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def outside_step_counter(self) -> int:
        return 0 if self.optimizer is None else self.optimizer.outside_step_counter

    @property
    def history(self) -> List[StepRecord]:
        return list(self._history)

    @property
    def result(self) -> Optional[RunResult]:
        return self._result

    def clear_history(self) -> None:
        if self._in_progress:
            raise RuntimeError("Cannot clear the history while a run is in progress.")
        self._history = []
        self._result = None

    # Comandos ---------------------------------------------------------------
    def start_run(self, cfg: Config) -> bool:
        if self._in_progress:
            raise RuntimeError("An optimization run is already in progress; abort it or let it finish.")
        cfg.validate()
        if len(self.field) == 0:
            self._message("error", "There are no panel groups to optimize.")
            return False

        self._state = RunState.INITIALIZING
        self.cfg = cfg
        self._snapshot = self.field.snapshot()
        initial = encode_angles(self.field.tilt_angles()) if cfg.seed_with_current_design else None
        self.optimizer = build_optimizer(cfg, len(self.field), initial_position=initial, logger=self.logger)
        self.optimizer.start_evolving()
        self._history = self.optimizer.history
        self._result = None
        self.metrics = MetricsLogger()
        self._paused = False
        self._held = False
        self._in_progress = True
        self._token += 1

        self.logger.info(
            "Starting optimization | method=%s | search=%s | objective=%s | size=%d | steps=%d | groups=%d",
            EvolutionMethod(cfg.evolution_method).value,
            SearchMethod(cfg.search_method).value,
            ObjectiveType(cfg.objective_type).value,
            cfg.size,
            cfg.step_budget,
            len(self.field),
        )
        self.metrics.mark_phase("start")
        self._schedule_evolve()
        return True

    def pause(self) -> bool:
        if not self._in_progress or self._paused:
            return False
        self._paused = True
        self.metrics.pauses += 1
        self.logger.info("Optimization paused at step %d.", self.outside_step_counter)
        return True

    def resume(self) -> bool:
        if not self._in_progress or not self._paused:
            return False
        self._paused = False
        self.logger.info("Optimization resumed at step %d.", self.outside_step_counter)
        # a held step runs unchanged; an evaluation in flight just keeps going
        if self._held:
            self._held = False
            self._state = RunState.ADVANCING
            self._schedule_evolve()
        return True

    def abort(self) -> bool:
        if not self._in_progress:
            return False
        self._abort_run("Optimization aborted; the original design has been restored.", logging.WARNING)
        self._message("warning", "Optimization aborted.")
        return True

    # Bucle por cuadros -----------------------------------------------------
    def _schedule_evolve(self) -> None:
        token = self._token
        self._frame_handle = self.frame_loop.request_frame(lambda: self._evolve(token))

    def _evolve(self, token: int) -> None:
        if token != self._token or self.optimizer is None:
            return
        self._frame_handle = None
        if self._paused:
            self._held = True
            self._state = RunState.PAUSED
            return
        optimizer = self.optimizer
        if optimizer.is_converged() or optimizer.is_budget_exhausted():
            self._complete()
            return

        index, position = optimizer.next_individual()
        apply_position(self.field, position)
        self._state = RunState.AWAITING_EVALUATION
        start_ns = time.perf_counter_ns()
        future = self.evaluator.trigger(self.cfg.objective_type)

        # done-callbacks swallow exceptions, so the real work runs on the next frame
        def _done(fut: "Future[float]") -> None:
            handle = self.frame_loop.request_frame(
                lambda: self._on_evaluated(fut, token, index, start_ns)
            )
            if token == self._token:
                self._frame_handle = handle

        future.add_done_callback(_done)

    def _on_evaluated(self, future: "Future[float]", token: int, index: int, start_ns: int) -> None:
        # late results from an aborted run
        if token != self._token or self.optimizer is None or future.cancelled():
            return
        self._frame_handle = None
        optimizer = self.optimizer
        error = future.exception()
        if error is not None:
            self.logger.error("Evaluation of individual %d failed: %s", index, error)
            self._abort_run("Optimization aborted after an evaluation failure; the original design has been restored.")
            self._message("error", f"Objective evaluation failed: {error}")
            return

        fitness = float(future.result())
        step = optimizer.outside_step_counter
        record_span(
            "individual_eval",
            start_ns,
            step=step,
            individual_id=index,
            extra={"fitness": fitness},
        )
        self._state = RunState.ADVANCING
        steps_before = len(optimizer.history)
        optimizer.record_fitness(index, fitness)
        self.metrics.eval_count += 1
        for record in optimizer.history[max(1, steps_before):]:
            self.metrics.steps = record.step
            self.metrics.record_step(record.to_dict())
        self._schedule_evolve()

    def _complete(self) -> None:
        optimizer = self.optimizer
        best_position, best_fitness = optimizer.fittest()
        if best_position is None:
            # every fitness was NaN or -inf: nothing to apply
            self._abort_run("No finite fitness was reported; the original design has been restored.")
            self._message("error", "The objective never returned a finite value; optimization aborted.")
            return
        angles = apply_position(self.field, best_position)
        converged = optimizer.is_converged()
        summary = CONVERGED_SUMMARY if converged else BUDGET_SUMMARY
        result = RunResult(
            positions=best_position,
            angles=angles,
            angles_deg=tuple(float(a) for a in np.degrees(angles)),
            fitness=float(best_fitness),
            steps=optimizer.outside_step_counter,
            evaluations=optimizer.compute_counter,
            converged=converged,
            summary=summary,
            history=list(optimizer.history),
            labels=self.field.labels,
        )
        self._result = result
        self._history = result.history
        self._in_progress = False
        self._paused = False
        self._held = False
        self._snapshot = None
        self._state = RunState.COMPLETED
        self.metrics.mark_phase("completed")
        self.logger.info(
            "%s | best=%s | steps=%d | evaluations=%d",
            summary,
            position_to_string(best_position, best_fitness),
            result.steps,
            result.evaluations,
        )
        self._message("info", f"{summary}. Best design: {position_to_string(best_position, best_fitness)}")
        if self.on_completed is not None:
            self.on_completed(result)

    def _abort_run(self, reason: str, level: int = logging.ERROR) -> None:
        self._token += 1
        self.frame_loop.cancel_frame(self._frame_handle)
        self._frame_handle = None
        self.evaluator.cancel_pending()
        if self._snapshot is not None:
            self.field.restore(self._snapshot)
        self._snapshot = None
        self.optimizer = None
        self._history = []
        self._result = None
        self._in_progress = False
        self._paused = False
        self._held = False
        self._state = RunState.ABORTED
        self.metrics.mark_phase("aborted")
        self.logger.log(level, reason)

    def _message(self, level: str, text: str) -> None:
        if self.on_message is not None:
            self.on_message(level, text)


if __name__ == "__main__":
    from ..core.frames import FrameLoop as _Loop
    from ..simulation.evaluator import CallableEvaluator

    loop = _Loop()
    panels = PanelField.rows(2)
    evaluator = CallableEvaluator(panels, loop, lambda a: -sum((x - 0.3) ** 2 for x in a))
    controller = EvolutionController(panels, evaluator, loop)
    controller.start_run(Config(swarm_size=4, maximum_steps=3))
    loop.run_until_idle()
    print("Resultado:", controller.result.summary if controller.result else None)
