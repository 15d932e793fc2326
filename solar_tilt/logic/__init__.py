"""
Capa logica: codificacion, nucleos evolutivos (PSO y GA) y planificador.
"""

from .encoding import decode_position, encode_angles, position_to_string  # noqa: F401
from .optimizer import EvolutionaryOptimizer, StepRecord  # noqa: F401
from .pso import ParticleSwarmOptimizer  # noqa: F401
from .ga import GeneticOptimizer  # noqa: F401
from .controller import EvolutionController, RunResult, RunState, build_optimizer  # noqa: F401

__all__ = [
    "decode_position",
    "encode_angles",
    "position_to_string",
    "EvolutionaryOptimizer",
    "StepRecord",
    "ParticleSwarmOptimizer",
    "GeneticOptimizer",
    "EvolutionController",
    "RunResult",
    "RunState",
    "build_optimizer",
]


if __name__ == "__main__":
    from ..core.config import Config

    optimizer = build_optimizer(Config(swarm_size=3), dimension=2)
    print("Nucleo preparado:", type(optimizer).__name__, optimizer.population_positions().shape)
