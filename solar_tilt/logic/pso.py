"""
Optimizacion por enjambre de particulas (PSO) evaluada particula a particula.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

from ..core.config import Config, SearchMethod
from ..perf_timings.timers import time_block
from .encoding import position_to_string
from .optimizer import EvolutionaryOptimizer, fitness_spread


@dataclass
class Particle:
    position: np.ndarray
    velocity: np.ndarray
    fitness: float = float("nan")
    best_position: Optional[np.ndarray] = None
    best_fitness: float = -float("inf")


@dataclass
class Swarm:
    particles: List[Particle]
    best_position: Optional[np.ndarray] = None
    best_fitness: float = -float("inf")

    def fitness_values(self) -> np.ndarray:
        return np.array([p.fitness for p in self.particles], dtype=float)

    def offer(self, particle: Particle) -> bool:
        """Actualiza el mejor personal y el global; solo mejoras estrictas cuentan."""
        fitness = particle.fitness
        if not fitness > particle.best_fitness:
            return False
        particle.best_fitness = fitness
        particle.best_position = particle.position.copy()
        if fitness > self.best_fitness:
            self.best_fitness = fitness
            self.best_position = particle.position.copy()
            return True
        return False


class ParticleSwarmOptimizer(EvolutionaryOptimizer):
    def __init__(
        self,
        cfg: Config,
        dimension: int,
        initial_position: Optional[Sequence[float]] = None,
        logger: Optional[Any] = None,
    ) -> None:
        super().__init__(cfg, dimension, initial_position=initial_position, logger=logger)
        self.vmax = float(cfg.vmax)
        self.inertia = float(cfg.inertia)
        self.cognitive_coefficient = float(cfg.cognitive_coefficient)
        self.social_coefficient = float(cfg.social_coefficient)
        self.swarm = Swarm([self._new_particle() for _ in range(self.size)])
        # the first particle starts from the current design, if any
        if self._initial_position is not None:
            self.swarm.particles[0].position = self._initial_position.copy()
        if self.search_method == SearchMethod.GLOBAL_SEARCH_FITNESS_SHARING:
            self.logger.warning("Fitness sharing has no effect on PSO; using global search.")

    def _new_particle(self) -> Particle:
        position = self._random_position()
        velocity = np.array(
            [self._rng.uniform(-self.vmax, self.vmax) for _ in range(self.dimension)], dtype=float
        )
        return Particle(position=position, velocity=velocity)

    def fittest(self) -> Tuple[Optional[np.ndarray], float]:
        best = self.swarm.best_position
        return (None if best is None else best.copy()), self.swarm.best_fitness

    def _position_of(self, index: int) -> np.ndarray:
        return self.swarm.particles[index].position

    def _record(self, index: int, fitness: float) -> None:
        particle = self.swarm.particles[index]
        particle.fitness = fitness
        if self.swarm.offer(particle):
            self.logger.info(
                "Step %d | new global best from particle %d: %s",
                self.compute_counter // self.size + 1,
                index,
                position_to_string(particle.position, fitness),
            )

    def _check_convergence(self, end_of_step: bool) -> bool:
        # every particle needs a fitness before the spread means anything
        if self.compute_counter < self.size:
            return False
        return fitness_spread(self.swarm.fitness_values()) < self.convergence_threshold

    def _advance(self, index: int, end_of_step: bool) -> None:
        with time_block("pso_update", step=self.outside_step_counter, individual_id=index):
            self.move_particle(index)

    def move_particle(self, index: int) -> None:
        particle = self.swarm.particles[index]
        if self.search_method == SearchMethod.LOCAL_SEARCH_RANDOM_OPTIMIZATION:
            if self.swarm.best_position is not None:
                particle.position = self._sample_around(
                    self.swarm.best_position, self.local_search_radius
                )
            return
        x = particle.position
        pbest = particle.best_position if particle.best_position is not None else x
        gbest = self.swarm.best_position if self.swarm.best_position is not None else pbest
        r1 = self._rng.random()
        r2 = self._rng.random()
        velocity = (
            self.inertia * particle.velocity
            + self.cognitive_coefficient * r1 * (pbest - x)
            + self.social_coefficient * r2 * (gbest - x)
        )
        particle.velocity = np.clip(velocity, -self.vmax, self.vmax)
        particle.position = np.clip(x + particle.velocity, 0.0, 1.0)


if __name__ == "__main__":
    from ..core.config import Config

    pso = ParticleSwarmOptimizer(Config(swarm_size=4), dimension=2)
    print("Enjambre inicial:", pso.population_positions())
