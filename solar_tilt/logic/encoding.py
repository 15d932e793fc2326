"""
Codificacion de individuos: valores normalizados en [0, 1] <-> inclinaciones en [-pi/2, pi/2].
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np

from ..simulation.panels import PanelField

HALF_PI = math.pi / 2


def encode(angle: float) -> float:
    return angle / HALF_PI / 2 + 0.5


def decode(value: float) -> float:
    return (2 * value - 1) * HALF_PI


def encode_angles(angles: Sequence[float]) -> np.ndarray:
    return np.asarray(angles, dtype=float) / HALF_PI / 2 + 0.5


def decode_position(position: Sequence[float]) -> np.ndarray:
    return (2 * np.asarray(position, dtype=float) - 1) * HALF_PI


def decode_degrees(position: Sequence[float]) -> np.ndarray:
    return np.degrees(decode_position(position))


def apply_position(field: PanelField, position: Sequence[float]) -> Tuple[float, ...]:
    """Aplica un individuo al modelo fisico, fila por fila; devuelve las inclinaciones."""
    if len(position) != len(field):
        raise ValueError(
            f"Individual has {len(position)} components but the field has {len(field)} panel groups."
        )
    angles = tuple(float(a) for a in decode_position(position))
    field.set_tilt_angles(angles)
    return angles


def position_to_string(position: Sequence[float], fitness: float, unit: str = "kWh") -> str:
    angles = ", ".join(f"{a:.3f}°" for a in decode_degrees(position))
    return f"F({angles}) = {fitness:.5f} {unit}"


if __name__ == "__main__":
    v = 0.7
    print("decode(0.7) =", decode(v), "| encode(decode(0.7)) =", encode(decode(v)))
