"""
Tabla de historial para graficar y vista rapida con Matplotlib.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ..logic.encoding import decode_degrees
from ..logic.optimizer import StepRecord


def _column_names(labels: Sequence[Optional[str]], dimension: int) -> List[str]:
    names = []
    for i in range(dimension):
        label = labels[i] if i < len(labels) else None
        names.append(label if label else f"Var{i + 1}")
    return names


def history_table(history: Sequence[StepRecord], labels: Sequence[Optional[str]] = ()) -> List[Dict[str, Any]]:
    """
    Una fila por paso: ``Step``, una columna por grupo de paneles (grados),
    ``Objective`` y ``Individual1..`` con el fitness de la poblacion del paso.
    """
    rows: List[Dict[str, Any]] = []
    for record in history:
        row: Dict[str, Any] = {"Step": record.step}
        if record.best_position is not None:
            degrees = decode_degrees(record.best_position)
            for name, value in zip(_column_names(labels, len(degrees)), degrees):
                row[name] = round(float(value), 3)
        row["Objective"] = record.best_fitness
        if record.fitness is not None:
            for k, value in enumerate(record.fitness):
                row[f"Individual{k + 1}"] = None if not np.isfinite(value) else float(value)
        rows.append(row)
    return rows


class Visualizer:
    def __init__(self, headless: bool = True, output_dir: Optional[str] = None) -> None:
        self.headless = headless
        self.output_dir = Path(output_dir) if output_dir else None

    def plot_history(
        self,
        history: Sequence[StepRecord],
        labels: Sequence[Optional[str]] = (),
        title: str = "Evolucion del objetivo",
        filename: str = "history.png",
    ) -> Optional[Path]:
        """
        Mejor objetivo por paso e inclinaciones del mejor individuo.
        En modo headless guarda un PNG si hay carpeta de salida.
        """
        import matplotlib

        if self.headless:
            matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        fig, (ax_obj, ax_tilt) = plt.subplots(1, 2, figsize=(12, 5))
        rows = history_table(history, labels)
        steps = [row["Step"] for row in rows]
        ax_obj.set_title("Objetivo (kWh)")
        ax_obj.set_xlabel("Paso")
        ax_obj.grid(True, alpha=0.3)
        ax_tilt.set_title("Inclinacion del mejor individuo (grados)")
        ax_tilt.set_xlabel("Paso")
        ax_tilt.grid(True, alpha=0.3)

        if not rows:
            for ax in (ax_obj, ax_tilt):
                ax.text(0.5, 0.5, "Sin datos", ha="center", va="center", transform=ax.transAxes)
        else:
            ax_obj.plot(steps, [row["Objective"] for row in rows], marker="o", label="Mejor")
            population = [
                (row["Step"], value)
                for row in rows
                for key, value in row.items()
                if key.startswith("Individual") and value is not None
            ]
            if population:
                xs, ys = zip(*population)
                ax_obj.scatter(xs, ys, s=10, alpha=0.4, color="gray", label="Poblacion")
            ax_obj.legend(loc="best")
            dimension = 0 if history[0].best_position is None else len(history[0].best_position)
            for name in _column_names(labels, dimension):
                ax_tilt.plot(steps, [row.get(name, np.nan) for row in rows], marker=".", label=name)
            if dimension:
                ax_tilt.legend(loc="best")

        fig.suptitle(title)
        fig.tight_layout()
        saved: Optional[Path] = None
        if self.output_dir is not None:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            saved = self.output_dir / filename
            fig.savefig(saved, dpi=150)
        if self.headless:
            plt.close(fig)
        else:
            plt.show()
        return saved


if __name__ == "__main__":
    demo = [
        StepRecord(0, np.array([0.5]), 10.0),
        StepRecord(1, np.array([0.6]), 12.0, fitness=np.array([11.0, 12.0])),
    ]
    print(history_table(demo, ["Row 1"]))
    Visualizer(headless=False).plot_history(demo, ["Row 1"])
