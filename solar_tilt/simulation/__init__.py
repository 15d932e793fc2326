"""
Capa de simulacion: modelo de paneles, geometria solar y evaluadores del objetivo.
"""

from .panels import FieldSnapshot, PanelField, PanelGroup  # noqa: F401
from .evaluator import CallableEvaluator, ObjectiveEvaluator, PvYieldSimulator  # noqa: F401

__all__ = [
    "FieldSnapshot",
    "PanelField",
    "PanelGroup",
    "CallableEvaluator",
    "ObjectiveEvaluator",
    "PvYieldSimulator",
]


if __name__ == "__main__":
    print("Componentes disponibles:", __all__)
