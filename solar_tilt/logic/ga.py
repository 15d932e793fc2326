"""
Algoritmo genetico simple (SGA) evaluado individuo a individuo.

Al completar una generacion: seleccion elitista de sobrevivientes, eleccion
de padres por ruleta o torneo, cruce mezclado y mutacion de un gen.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

from ..core.config import Config, SearchMethod, SelectionMethod
from ..perf_timings.timers import time_block
from .encoding import position_to_string
from .optimizer import EvolutionaryOptimizer, fitness_spread


def _score(fitness: float) -> float:
    return fitness if math.isfinite(fitness) else -float("inf")


@dataclass
class Individual:
    chromosome: np.ndarray
    fitness: float = float("nan")

    def copy(self) -> "Individual":
        return Individual(chromosome=self.chromosome.copy(), fitness=self.fitness)

    def distance(self, other: "Individual") -> float:
        return float(np.linalg.norm(self.chromosome - other.chromosome))


class Population:
    def __init__(
        self,
        individuals: List[Individual],
        selection_method: SelectionMethod,
        rng: random.Random,
    ) -> None:
        self.individuals = individuals
        self.selection_method = SelectionMethod(selection_method)
        self._rng = rng
        self.survivors: List[Individual] = []

    def __len__(self) -> int:
        return len(self.individuals)

    def sort(self) -> None:
        """Ordena por fitness descendente; los no evaluados quedan al final."""
        self.individuals.sort(key=lambda ind: _score(ind.fitness), reverse=True)

    def niche_count(self, selected: Individual, sigma: float) -> float:
        count = 0.0
        for ind in self.individuals:
            r = selected.distance(ind)
            if r < sigma:
                count += 1.0 - r / sigma
        return count

    def select_survivors(self, selection_rate: float) -> int:
        """Elitismo: conserva los mejores (al menos dos, y deja lugar para un hijo)."""
        self.sort()
        n = len(self.individuals)
        count = min(max(2, int(math.floor(selection_rate * n))), n - 1)
        count = max(0, count)
        self.survivors = self.individuals[:count]
        return count

    def crossover(self, crossover_rate: float, sharing_radius: Optional[float] = None) -> None:
        """Llena los lugares no sobrevivientes con hijos de parejas de sobrevivientes."""
        k = len(self.survivors)
        n = len(self.individuals)
        if k < 2:
            return
        lowest = _score(self.individuals[k].fitness)
        if not math.isfinite(lowest):
            lowest = min(_score(s.fitness) for s in self.survivors)
        weights = []
        for s in self.survivors:
            w = _score(s.fitness) - lowest if math.isfinite(_score(s.fitness)) else 0.0
            if sharing_radius is not None:
                w /= max(1.0, self.niche_count(s, sharing_radius))
            weights.append(max(0.0, w))

        children: List[Individual] = []
        while len(children) < n - k:
            dad, mom = self._select_parents(weights)
            beta = self._rng.random()
            d = self.survivors[dad].chromosome
            m = self.survivors[mom].chromosome
            child1 = np.empty_like(d)
            child2 = np.empty_like(d)
            for i in range(len(d)):
                if self._rng.random() < crossover_rate:
                    child1[i] = beta * d[i] + (1 - beta) * m[i]
                    child2[i] = beta * m[i] + (1 - beta) * d[i]
                else:
                    child1[i] = beta * m[i] + (1 - beta) * d[i]
                    child2[i] = beta * d[i] + (1 - beta) * m[i]
            children.append(Individual(np.clip(child1, 0.0, 1.0)))
            children.append(Individual(np.clip(child2, 0.0, 1.0)))
        for offset, child in enumerate(children[: n - k]):
            self.individuals[k + offset] = child

    def mutate(self, mutation_rate: float) -> None:
        """Reemplaza un gen de ``m`` individuos distintos; el mejor nunca muta."""
        n = len(self.individuals)
        if mutation_rate <= 0.0 or n < 2:
            return
        m = int(math.floor(mutation_rate * (n - 1)))
        if m == 0:
            m = 1
        elif m >= n - 1:
            m = n - 2
        if m <= 0:
            return
        for k in self._rng.sample(range(1, n), m):
            mutant = self.individuals[k]
            gene = self._rng.randrange(len(mutant.chromosome))
            mutant.chromosome = mutant.chromosome.copy()
            mutant.chromosome[gene] = self._rng.random()
            mutant.fitness = float("nan")

    def replace_newborns(self, start: int, factory) -> None:
        for i in range(start, len(self.individuals)):
            self.individuals[i] = Individual(factory())

    def _select_parents(self, weights: Sequence[float]) -> Tuple[int, int]:
        if self.selection_method == SelectionMethod.TOURNAMENT:
            dad = self._duel(weights, exclude=None)
            mom = self._duel(weights, exclude=dad)
        else:
            dad = self._spin(weights, exclude=None)
            mom = self._spin(weights, exclude=dad)
        return dad, mom

    def _candidates(self, exclude: Optional[int]) -> List[int]:
        return [j for j in range(len(self.survivors)) if j != exclude]

    def _spin(self, weights: Sequence[float], exclude: Optional[int]) -> int:
        candidates = self._candidates(exclude)
        total = sum(weights[j] for j in candidates)
        if total <= 0.0:
            return self._rng.choice(candidates)
        position = self._rng.random() * total
        wheel = 0.0
        for j in candidates:
            wheel += weights[j]
            if wheel >= position:
                return j
        return candidates[-1]

    def _duel(self, weights: Sequence[float], exclude: Optional[int]) -> int:
        candidates = self._candidates(exclude)
        if len(candidates) == 1:
            return candidates[0]
        i, j = self._rng.sample(candidates, 2)
        return i if weights[i] > weights[j] else j


class GeneticOptimizer(EvolutionaryOptimizer):
    def __init__(
        self,
        cfg: Config,
        dimension: int,
        initial_position: Optional[Sequence[float]] = None,
        logger: Optional[Any] = None,
    ) -> None:
        super().__init__(cfg, dimension, initial_position=initial_position, logger=logger)
        self.selection_rate = float(cfg.selection_rate)
        self.crossover_rate = float(cfg.crossover_rate)
        self.mutation_rate = float(cfg.mutation_rate)
        self.sharing_radius = float(cfg.sharing_radius)
        self.population = Population(
            [Individual(self._random_position()) for _ in range(self.size)],
            cfg.selection_method,
            self._rng,
        )
        # the first born is the current design, if any
        if self._initial_position is not None:
            self.population.individuals[0].chromosome = self._initial_position.copy()
        self.best: Optional[Individual] = None
        self.generations_bred = 0

    def fittest(self) -> Tuple[Optional[np.ndarray], float]:
        if self.best is None:
            return None, -float("inf")
        return self.best.chromosome.copy(), self.best.fitness

    def _position_of(self, index: int) -> np.ndarray:
        return self.population.individuals[index].chromosome

    def _record(self, index: int, fitness: float) -> None:
        individual = self.population.individuals[index]
        individual.fitness = fitness
        if fitness > _score(self.best.fitness if self.best is not None else float("nan")):
            self.best = individual.copy()
            self.logger.info(
                "Generation %d | new fittest from individual %d: %s",
                self.compute_counter // self.size + 1,
                index,
                position_to_string(individual.chromosome, fitness),
            )

    def _check_convergence(self, end_of_step: bool) -> bool:
        if not end_of_step:
            return False
        return fitness_spread(self._step_fitness) < self.convergence_threshold

    def _advance(self, index: int, end_of_step: bool) -> None:
        if end_of_step:
            with time_block("ga_breed", step=self.outside_step_counter, extra={"size": self.size}):
                self.breed()

    def breed(self) -> None:
        population = self.population
        survivors = population.select_survivors(self.selection_rate)
        if self.search_method == SearchMethod.LOCAL_SEARCH_RANDOM_OPTIMIZATION:
            center = population.individuals[0].chromosome
            population.replace_newborns(
                max(1, survivors),
                lambda: self._sample_around(center, self.local_search_radius),
            )
        elif survivors < 2:
            population.replace_newborns(max(1, survivors), self._random_position)
        else:
            sharing = (
                self.sharing_radius
                if self.search_method == SearchMethod.GLOBAL_SEARCH_FITNESS_SHARING
                else None
            )
            population.crossover(self.crossover_rate, sharing_radius=sharing)
            if self.search_method == SearchMethod.GLOBAL_SEARCH_UNIFORM_SELECTION:
                population.mutate(self.mutation_rate)
        self.generations_bred += 1


if __name__ == "__main__":
    from ..core.config import Config, EvolutionMethod

    ga = GeneticOptimizer(Config(evolution_method=EvolutionMethod.GENETIC_ALGORITHM, population_size=4), 2)
    print("Poblacion inicial:", ga.population_positions())
