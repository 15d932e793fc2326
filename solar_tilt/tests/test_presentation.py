from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from solar_tilt.core.config import Config
from solar_tilt.logic.optimizer import StepRecord
from solar_tilt.presentation.visualization import Visualizer, history_table


def test_history_table_rows() -> None:
    history = [
        StepRecord(0, np.array([0.5, 1.0]), 10.0),
        StepRecord(1, np.array([0.75, 0.5]), 12.5, fitness=np.array([11.0, np.nan, 12.5])),
    ]
    rows = history_table(history, ["East", None])

    assert rows[0] == {"Step": 0, "East": 0.0, "Var2": 90.0, "Objective": 10.0}
    assert rows[1]["East"] == pytest.approx(45.0)
    assert rows[1]["Var2"] == pytest.approx(0.0)
    assert rows[1]["Individual1"] == 11.0
    assert rows[1]["Individual2"] is None
    assert rows[1]["Individual3"] == 12.5


def test_visualizer_saves_png_headless(tmp_path: Path, make_harness) -> None:
    harness = make_harness(rows=2)
    harness.run(Config(swarm_size=3, maximum_steps=2))
    result = harness.controller.result

    saved = Visualizer(headless=True, output_dir=str(tmp_path)).plot_history(
        result.history, result.labels
    )
    assert saved == tmp_path / "history.png"
    assert saved.stat().st_size > 0


def test_visualizer_handles_empty_history(tmp_path: Path) -> None:
    saved = Visualizer(headless=True, output_dir=str(tmp_path)).plot_history([], filename="empty.png")
    assert saved.exists()
