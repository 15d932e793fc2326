"""
Interfaz comun de los nucleos de optimizacion (PSO y GA).

El planificador solo conoce esta interfaz: pide el siguiente individuo,
registra su fitness y consulta convergencia, presupuesto y el mejor hallado.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..core.config import Config, ConfigurationError, SearchMethod
from .encoding import decode_degrees, position_to_string


@dataclass
class StepRecord:
    """Mejor individuo y estado de la poblacion al cerrar un paso externo."""

    step: int
    best_position: Optional[np.ndarray]
    best_fitness: float
    positions: Optional[np.ndarray] = None
    fitness: Optional[np.ndarray] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step,
            "best_position": None if self.best_position is None else self.best_position.tolist(),
            "best_angles_deg": None
            if self.best_position is None
            else decode_degrees(self.best_position).tolist(),
            "best_fitness": self.best_fitness,
            "positions": None if self.positions is None else self.positions.tolist(),
            "fitness": None if self.fitness is None else self.fitness.tolist(),
        }


def fitness_spread(values: Sequence[float]) -> float:
    """Dispersion max - min; infinita si falta algun valor finito."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0 or not np.all(np.isfinite(arr)):
        return float("inf")
    return float(arr.max() - arr.min())


class EvolutionaryOptimizer:
    def __init__(
        self,
        cfg: Config,
        dimension: int,
        initial_position: Optional[Sequence[float]] = None,
        logger: Optional[Any] = None,
    ) -> None:
        if dimension < 1:
            raise ConfigurationError("At least one tilt variable is required.")
        self.cfg = cfg
        self.logger = logger or logging.getLogger("solar_tilt_opt")
        self.dimension = int(dimension)
        self.size = int(cfg.size)
        self.maximum_steps = int(cfg.step_budget)
        self.convergence_threshold = float(cfg.convergence_threshold)
        self.local_search_radius = float(cfg.local_search_radius)
        self.search_method = SearchMethod(cfg.search_method)
        self._rng = random.Random(cfg.seed)
        self._initial_position = (
            None
            if initial_position is None
            else np.clip(np.asarray(initial_position, dtype=float), 0.0, 1.0)
        )
        if self._initial_position is not None and self._initial_position.shape != (self.dimension,):
            raise ValueError(
                f"Initial position has shape {self._initial_position.shape}, expected ({self.dimension},)."
            )
        self.compute_counter = 0
        self.outside_step_counter = 0
        self.converged = False
        self.history: List[StepRecord] = []
        self._reset_step_buffers()

    # Interfaz del planificador -------------------------------------------
    def start_evolving(self) -> None:
        self.compute_counter = 0
        self.outside_step_counter = 0
        self.converged = False
        self.history = []
        self._reset_step_buffers()

    def next_individual(self) -> Tuple[int, np.ndarray]:
        index = self.compute_counter % self.size
        return index, self._position_of(index).copy()

    def record_fitness(self, index: int, fitness: float) -> bool:
        if self.converged:
            return True
        expected = self.compute_counter % self.size
        if index != expected:
            raise ValueError(f"Fitness recorded for individual {index}, expected {expected}.")
        fitness = float(fitness)
        position = self._position_of(index).copy()
        step = self.compute_counter // self.size
        # the first individual evaluated is the baseline (the fittest of step zero)
        if self.compute_counter == 0:
            self.history.append(StepRecord(step=0, best_position=position.copy(), best_fitness=fitness))
        self._step_positions[index] = position
        self._step_fitness[index] = fitness
        self.logger.debug(
            "Step %d, individual %d : %s", step + 1, index, position_to_string(position, fitness)
        )

        self._record(index, fitness)
        self.compute_counter += 1
        self.outside_step_counter = self.compute_counter // self.size
        end_of_step = self.compute_counter % self.size == 0
        self.converged = self._check_convergence(end_of_step)
        if end_of_step or self.converged:
            self._close_step(step + 1)
        if not self.converged and not self.is_budget_exhausted():
            self._advance(index, end_of_step)
        return self.converged

    def is_converged(self) -> bool:
        return self.converged

    def is_budget_exhausted(self) -> bool:
        return self.outside_step_counter >= self.maximum_steps

    def fittest(self) -> Tuple[Optional[np.ndarray], float]:
        raise NotImplementedError

    def population_positions(self) -> np.ndarray:
        return np.array([self._position_of(i) for i in range(self.size)], dtype=float)

    # Ganchos de cada algoritmo --------------------------------------------
    def _position_of(self, index: int) -> np.ndarray:
        raise NotImplementedError

    def _record(self, index: int, fitness: float) -> None:
        raise NotImplementedError

    def _check_convergence(self, end_of_step: bool) -> bool:
        raise NotImplementedError

    def _advance(self, index: int, end_of_step: bool) -> None:
        raise NotImplementedError

    # Auxiliares ------------------------------------------------------------
    def _reset_step_buffers(self) -> None:
        self._step_positions = np.full((self.size, self.dimension), np.nan)
        self._step_fitness = np.full(self.size, np.nan)

    def _close_step(self, step: int) -> None:
        best_position, best_fitness = self.fittest()
        self.history.append(
            StepRecord(
                step=step,
                best_position=None if best_position is None else best_position.copy(),
                best_fitness=best_fitness,
                positions=self._step_positions.copy(),
                fitness=self._step_fitness.copy(),
            )
        )
        self.logger.info(
            "Step %d complete | best=%s | spread=%.6f | evaluations=%d%s",
            step,
            position_to_string(best_position, best_fitness) if best_position is not None else "N/A",
            fitness_spread(self._step_fitness[np.isfinite(self._step_fitness)]),
            self.compute_counter,
            " | converged" if self.converged else "",
        )
        self._reset_step_buffers()

    def _random_position(self) -> np.ndarray:
        return np.array([self._rng.random() for _ in range(self.dimension)], dtype=float)

    def _sample_around(self, center: np.ndarray, radius: float) -> np.ndarray:
        return np.clip(
            np.array([c + self._rng.uniform(-radius, radius) for c in center], dtype=float),
            0.0,
            1.0,
        )
