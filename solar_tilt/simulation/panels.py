"""
Modelo fisico minimo: grupos de paneles con inclinacion controlable.

Los grupos son valores inmutables; cambiar una inclinacion reemplaza el grupo.
Eso permite que una instantanea sea una simple tupla de grupos y que revertir
sea reemplazar la lista completa.
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class PanelGroup:
    id: str
    tilt_angle: float = 0.0  # radianes, positivo hacia el ecuador
    label: Optional[str] = None
    relative_azimuth: float = 0.0  # radianes respecto del eje de filas este-oeste
    area: float = 2.0  # m2
    efficiency: float = 0.2
    row: int = 0


@dataclass(frozen=True)
class FieldSnapshot:
    groups: Tuple[PanelGroup, ...]

    def tilt_angles(self) -> Tuple[float, ...]:
        return tuple(g.tilt_angle for g in self.groups)


class PanelField:
    """Conjunto de grupos de paneles sobre una base, ordenados por fila."""

    def __init__(self, groups: Iterable[PanelGroup] = (), latitude: float = 42.0) -> None:
        self.latitude = latitude
        self._groups: List[PanelGroup] = sorted(groups, key=lambda g: g.row)

    @property
    def groups(self) -> Tuple[PanelGroup, ...]:
        return tuple(self._groups)

    def __len__(self) -> int:
        return len(self._groups)

    @property
    def labels(self) -> List[Optional[str]]:
        return [g.label for g in self._groups]

    def tilt_angles(self) -> Tuple[float, ...]:
        return tuple(g.tilt_angle for g in self._groups)

    def set_tilt_angles(self, angles: Sequence[float]) -> None:
        if len(angles) != len(self._groups):
            raise ValueError(
                f"Expected {len(self._groups)} tilt angles, got {len(angles)}."
            )
        for angle in angles:
            if not -math.pi / 2 - 1e-12 <= float(angle) <= math.pi / 2 + 1e-12:
                raise ValueError(f"Tilt angle {angle} outside [-pi/2, pi/2].")
        self._groups = [
            dataclasses.replace(g, tilt_angle=float(a)) for g, a in zip(self._groups, angles)
        ]

    def snapshot(self) -> FieldSnapshot:
        return FieldSnapshot(groups=tuple(self._groups))

    def restore(self, snapshot: FieldSnapshot) -> None:
        self._groups = list(snapshot.groups)

    @classmethod
    def rows(
        cls,
        count: int,
        *,
        latitude: float = 42.0,
        tilt_angle: float = 0.0,
        area: float = 2.0,
        efficiency: float = 0.2,
    ) -> "PanelField":
        """Crea ``count`` filas identicas etiquetadas ``Row 1``, ``Row 2``..."""
        return cls(
            (
                PanelGroup(
                    id=f"row-{i + 1}",
                    tilt_angle=tilt_angle,
                    label=f"Row {i + 1}",
                    area=area,
                    efficiency=efficiency,
                    row=i,
                )
                for i in range(count)
            ),
            latitude=latitude,
        )


if __name__ == "__main__":
    field = PanelField.rows(3)
    snap = field.snapshot()
    field.set_tilt_angles([0.1, 0.2, 0.3])
    field.restore(snap)
    print("Inclinaciones restauradas:", field.tilt_angles())
