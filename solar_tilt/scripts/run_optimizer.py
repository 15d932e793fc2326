#!/usr/bin/env python
"""
Corrida de referencia del optimizador de inclinacion.

Construye un campo de filas de paneles, el simulador de produccion y el
planificador; avanza el bucle de cuadros hasta terminar y guarda los
artefactos (config, metricas, historial y grafica opcional).
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from solar_tilt.core.config import (
    Config,
    ConfigurationError,
    EvolutionMethod,
    ObjectiveType,
    SearchMethod,
    SelectionMethod,
    set_global_seeds,
)
from solar_tilt.core.frames import FrameLoop
from solar_tilt.core.telemetry import Reporter, setup_logger
from solar_tilt.logic.controller import EvolutionController
from solar_tilt.perf_timings import get_timing_logger, shutdown_logger
from solar_tilt.presentation.visualization import Visualizer, history_table
from solar_tilt.simulation.evaluator import PvYieldSimulator
from solar_tilt.simulation.panels import PanelField


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Optimizacion evolutiva de la inclinacion de paneles solares")
    parser.add_argument("--rows", type=int, default=3, help="Numero de filas de paneles (default: 3).")
    parser.add_argument("--latitude", type=float, default=42.0, help="Latitud en grados (default: 42).")
    parser.add_argument(
        "--initial-tilt",
        type=float,
        default=0.0,
        help="Inclinacion inicial de todas las filas en radianes (default: 0).",
    )
    parser.add_argument(
        "--method",
        choices=[m.value for m in EvolutionMethod],
        default=EvolutionMethod.PARTICLE_SWARM_OPTIMIZATION.value,
    )
    parser.add_argument(
        "--search",
        choices=[m.value for m in SearchMethod],
        default=SearchMethod.GLOBAL_SEARCH_UNIFORM_SELECTION.value,
    )
    parser.add_argument(
        "--selection",
        choices=[m.value for m in SelectionMethod],
        default=SelectionMethod.ROULETTE_WHEEL.value,
    )
    parser.add_argument(
        "--objective",
        choices=[m.value for m in ObjectiveType],
        default=ObjectiveType.DAILY_TOTAL_OUTPUT.value,
    )
    parser.add_argument("--size", type=int, default=20, help="Tamano del enjambre o poblacion.")
    parser.add_argument("--steps", type=int, default=5, help="Pasos externos o generaciones.")
    parser.add_argument("--threshold", type=float, default=0.01, help="Umbral de convergencia.")
    parser.add_argument("--vmax", type=float, default=0.01)
    parser.add_argument("--days-per-year", type=int, default=6)
    parser.add_argument("--day-of-year", type=int, default=172)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--no-seed-design", action="store_true", help="No sembrar el individuo 0 con el diseno actual.")
    parser.add_argument("--artifacts-dir", default="artifacts")
    parser.add_argument("--save-plots", action="store_true")
    parser.add_argument("--show", action="store_true", help="Mostrar la grafica en pantalla.")
    parser.add_argument("--log-level", default="INFO", help="Nivel de logging (DEBUG, INFO, ...).")
    parser.add_argument("--max-frames", type=int, default=1_000_000)
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> Config:
    method = EvolutionMethod(args.method)
    return Config(
        objective_type=ObjectiveType(args.objective),
        days_per_year=args.days_per_year,
        day_of_year=args.day_of_year,
        latitude=args.latitude,
        evolution_method=method,
        search_method=SearchMethod(args.search),
        convergence_threshold=args.threshold,
        seed_with_current_design=not args.no_seed_design,
        swarm_size=args.size,
        maximum_steps=args.steps,
        vmax=args.vmax,
        population_size=args.size,
        maximum_generations=args.steps,
        selection_method=SelectionMethod(args.selection),
        seed=args.seed,
        log_level=args.log_level.upper(),
        artifacts_dir=args.artifacts_dir,
        save_plots=args.save_plots,
        headless=not args.show,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    cfg = build_config(args)
    logger = setup_logger(cfg.log_level)
    try:
        cfg.validate()
    except ConfigurationError as err:
        logger.error("Invalid configuration: %s", err)
        return 2
    set_global_seeds(cfg.seed)
    timings = get_timing_logger()

    reporter = Reporter(cfg.artifacts_dir, logger=logger)
    reporter.bootstrap(cfg)

    loop = FrameLoop(logger=logger)
    field = PanelField.rows(args.rows, latitude=cfg.latitude, tilt_angle=args.initial_tilt)
    simulator = PvYieldSimulator.from_config(field, loop, cfg, logger=logger)
    controller = EvolutionController(
        field,
        simulator,
        loop,
        logger=logger,
        on_message=lambda level, text: print(f"[{level}] {text}"),
    )
    try:
        if not controller.start_run(cfg):
            return 1
        frames = loop.run_until_idle(max_frames=args.max_frames)
        logger.info("Frame loop finished after %d frames | timings=%s", frames, timings.path)
    finally:
        shutdown_logger()

    result = controller.result
    reporter.save_metrics(controller.metrics)
    if result is None:
        logger.error("The run did not complete (state=%s).", controller.state.value)
        return 1

    reporter.save_results(
        {
            "result": result.to_dict(),
            "table": history_table(result.history, result.labels),
        }
    )
    if cfg.save_plots or not cfg.headless:
        Visualizer(headless=cfg.headless, output_dir=cfg.artifacts_dir).plot_history(
            result.history, result.labels
        )
    for label, degrees in zip(result.labels, result.angles_deg):
        print(f"{label}: {degrees:.3f}°")
    print(f"{result.summary}. Objective = {result.fitness:.5f} kWh")
    return 0


if __name__ == "__main__":
    sys.exit(main())
