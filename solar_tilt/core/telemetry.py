"""
Herramientas de registro y telemetria compartidas por todos los modulos.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import Config

LOGGER_NAME = "solar_tilt_opt"


def setup_logger(level: str = "INFO") -> logging.Logger:
    """Configura un logger estandar reutilizable en toda la aplicacion."""
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        return logger

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    handler = logging.StreamHandler()
    fmt = "[%(asctime)s] %(levelname)s - %(message)s"
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    return logger


class MetricsLogger:
    """Registro ligero de metricas de una corrida."""

    def __init__(self) -> None:
        self.start_time = time.time()
        self.phases: Dict[str, float] = {}
        self.eval_count = 0
        self.steps = 0
        self.pauses = 0
        self.best_fitness_per_step: List[float] = []
        self.step_history: List[Dict[str, Any]] = []

    def mark_phase(self, name: str) -> None:
        self.phases[name] = time.time() - self.start_time

    def record_step(self, payload: Dict[str, Any]) -> None:
        """
        Registra informacion resumida de cada paso externo para analisis posterior.
        """
        self.step_history.append(payload)
        best = payload.get("best_fitness")
        self.best_fitness_per_step.append(float(best) if best is not None else float("nan"))

    def to_dict(self) -> Dict[str, Any]:
        total = max(time.time() - self.start_time, 1e-9)
        return {
            "wall_time_s": total,
            "phases": self.phases,
            "eval_count": self.eval_count,
            "steps": self.steps,
            "pauses": self.pauses,
            "best_fitness_per_step": self.best_fitness_per_step,
            "step_history": self.step_history,
        }


class Reporter:
    """Gestiona archivos de salida en la carpeta de artefactos."""

    def __init__(self, artifacts_dir: str, logger: Optional[logging.Logger] = None) -> None:
        self.dir = Path(artifacts_dir)
        self.dir.mkdir(parents=True, exist_ok=True)
        self.logger = logger or logging.getLogger(LOGGER_NAME)

    def save_json(self, name: str, payload: Any) -> Path:
        path = self.dir / name
        with path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, default=str)
        return path

    def save_config(self, cfg: Config) -> Path:
        return self.save_json("config.json", asdict(cfg))

    def save_metrics(self, metrics: MetricsLogger) -> Path:
        return self.save_json("metrics.json", metrics.to_dict())

    def save_results(self, results: Dict[str, Any]) -> Path:
        return self.save_json("results.json", results)

    def bootstrap(self, cfg: Config) -> None:
        self.save_config(cfg)
        if self.logger:
            self.logger.info("Saved config.json to %s", self.dir)


if __name__ == "__main__":
    log = setup_logger()
    metrics = MetricsLogger()
    metrics.mark_phase("demo")
    rep = Reporter("artifacts", logger=log)
    rep.bootstrap(Config())
    rep.save_metrics(metrics)
    log.info("Telemetria registrada correctamente.")
