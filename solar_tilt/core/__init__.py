"""
Componentes compartidos por todas las capas del sistema: configuraciones,
telemetria y bucle de cuadros.
"""

from .config import (  # noqa: F401
    Config,
    ConfigurationError,
    EvolutionMethod,
    ObjectiveType,
    SearchMethod,
    SelectionMethod,
    set_global_seeds,
)
from .frames import FrameLoop  # noqa: F401
from .telemetry import setup_logger, MetricsLogger, Reporter  # noqa: F401

__all__ = [
    "Config",
    "ConfigurationError",
    "EvolutionMethod",
    "ObjectiveType",
    "SearchMethod",
    "SelectionMethod",
    "set_global_seeds",
    "FrameLoop",
    "setup_logger",
    "MetricsLogger",
    "Reporter",
]


if __name__ == "__main__":
    logger = setup_logger()
    logger.info("Core module smoke test completado.")
