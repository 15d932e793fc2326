"""
Configuraciones base y utilidades de seeding para el optimizador de inclinacion.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum

import numpy as np


class ObjectiveType(str, Enum):
    DAILY_TOTAL_OUTPUT = "daily"
    YEARLY_TOTAL_OUTPUT = "yearly"


class EvolutionMethod(str, Enum):
    PARTICLE_SWARM_OPTIMIZATION = "pso"
    GENETIC_ALGORITHM = "ga"


class SearchMethod(str, Enum):
    GLOBAL_SEARCH_UNIFORM_SELECTION = "global"
    LOCAL_SEARCH_RANDOM_OPTIMIZATION = "local"
    GLOBAL_SEARCH_FITNESS_SHARING = "sharing"


class SelectionMethod(str, Enum):
    ROULETTE_WHEEL = "roulette"
    TOURNAMENT = "tournament"


class ConfigurationError(ValueError):
    """Parametros de ejecucion invalidos o modelo sin grupos optimizables."""


@dataclass(frozen=True)
class Config:
    """
    Parametros del objetivo, de la busqueda evolutiva y de ejecucion.

    Una instancia se captura al iniciar cada corrida; cambiarla exige
    iniciar una corrida nueva.
    """

    # Objetivo
    objective_type: ObjectiveType = ObjectiveType.DAILY_TOTAL_OUTPUT
    days_per_year: int = 6  # dias muestreados en la simulacion anual
    times_per_hour: int = 4
    day_of_year: int = 172
    latitude: float = 42.0  # grados

    # Busqueda evolutiva
    evolution_method: EvolutionMethod = EvolutionMethod.PARTICLE_SWARM_OPTIMIZATION
    search_method: SearchMethod = SearchMethod.GLOBAL_SEARCH_UNIFORM_SELECTION
    convergence_threshold: float = 0.01
    local_search_radius: float = 0.1
    seed_with_current_design: bool = True

    # PSO
    swarm_size: int = 20
    maximum_steps: int = 5
    vmax: float = 0.01
    inertia: float = 0.8
    cognitive_coefficient: float = 0.1
    social_coefficient: float = 0.1

    # GA
    population_size: int = 20
    maximum_generations: int = 5
    selection_method: SelectionMethod = SelectionMethod.ROULETTE_WHEEL
    selection_rate: float = 0.5
    crossover_rate: float = 0.5
    mutation_rate: float = 0.1
    sharing_radius: float = 0.1

    # Ejecucion
    seed: int = 42
    log_level: str = "INFO"
    artifacts_dir: str = "artifacts"
    save_plots: bool = False
    headless: bool = True

    @property
    def size(self) -> int:
        """Tamano del enjambre o de la poblacion segun el metodo."""
        if self.evolution_method == EvolutionMethod.GENETIC_ALGORITHM:
            return self.population_size
        return self.swarm_size

    @property
    def step_budget(self) -> int:
        if self.evolution_method == EvolutionMethod.GENETIC_ALGORITHM:
            return self.maximum_generations
        return self.maximum_steps

    def validate(self) -> None:
        if self.size < 1:
            raise ConfigurationError(f"Population size must be positive, got {self.size}.")
        if self.step_budget < 1:
            raise ConfigurationError(f"Step budget must be positive, got {self.step_budget}.")
        if self.convergence_threshold < 0.0:
            raise ConfigurationError("convergence_threshold must not be negative.")
        if self.vmax <= 0.0:
            raise ConfigurationError("vmax must be positive.")
        if not 0.0 <= self.local_search_radius <= 1.0:
            raise ConfigurationError("local_search_radius must lie in [0, 1].")
        for name in ("selection_rate", "crossover_rate", "mutation_rate"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must lie in [0, 1], got {value}.")
        if self.sharing_radius <= 0.0:
            raise ConfigurationError("sharing_radius must be positive.")
        if self.days_per_year < 1 or 12 % self.days_per_year != 0:
            raise ConfigurationError(
                f"days_per_year must divide 12 (1, 2, 3, 4, 6 or 12), got {self.days_per_year}."
            )
        if self.times_per_hour < 1:
            raise ConfigurationError("times_per_hour must be positive.")
        if not 1 <= self.day_of_year <= 365:
            raise ConfigurationError("day_of_year must lie in [1, 365].")
        if not -90.0 <= self.latitude <= 90.0:
            raise ConfigurationError("latitude must lie in [-90, 90].")


def set_global_seeds(seed: int) -> None:
    """Inicializa generadores pseudoaleatorios reproducibles."""
    random.seed(seed)
    np.random.seed(seed)


if __name__ == "__main__":
    cfg = Config()
    cfg.validate()
    set_global_seeds(cfg.seed)
    print("Config de prueba:", cfg)
