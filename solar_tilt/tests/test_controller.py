from __future__ import annotations

import logging

import pytest

from solar_tilt.core.config import Config, ConfigurationError, EvolutionMethod
from solar_tilt.logic.controller import BUDGET_SUMMARY, CONVERGED_SUMMARY, RunState
from solar_tilt.simulation.panels import PanelField


def _spy_order(controller):
    seen = []
    optimizer = controller.optimizer
    original = optimizer.record_fitness

    def record(index, fitness):
        seen.append(index)
        return original(index, fitness)

    optimizer.record_fitness = record
    return seen


def _tick_until(harness, predicate, limit: int = 10_000) -> None:
    for _ in range(limit):
        if predicate():
            return
        harness.loop.tick()
    raise AssertionError("condition not reached")


@pytest.mark.parametrize("method", list(EvolutionMethod))
def test_individuals_are_evaluated_in_strict_order(make_harness, method) -> None:
    harness = make_harness(rows=2)
    cfg = Config(
        evolution_method=method,
        swarm_size=4,
        population_size=4,
        maximum_steps=3,
        maximum_generations=3,
        convergence_threshold=0.0,
    )
    assert harness.controller.start_run(cfg)
    seen = _spy_order(harness.controller)
    harness.loop.run_until_idle()

    assert seen == [k % 4 for k in range(12)]
    assert harness.evaluator.trigger_count == 12
    assert harness.evaluator.evaluation_index == 12
    result = harness.controller.result
    assert result.summary == BUDGET_SUMMARY
    assert not result.converged
    assert result.steps == 3


def test_run_stops_when_population_converges(make_harness) -> None:
    harness = make_harness(rows=2, objective=lambda angles: 5.0)
    harness.run(Config(swarm_size=5, maximum_steps=10))

    result = harness.controller.result
    assert result.converged
    assert result.summary == CONVERGED_SUMMARY
    assert result.evaluations == 5
    assert harness.evaluator.trigger_count == 5
    assert harness.controller.state == RunState.COMPLETED
    assert len(harness.completed) == 1 and harness.completed[0] is result


def test_completion_applies_best_design(make_harness) -> None:
    harness = make_harness(rows=3)
    harness.run(Config(swarm_size=4, maximum_steps=2))

    result = harness.controller.result
    assert harness.field.tilt_angles() == pytest.approx(result.angles)
    assert len(result.angles_deg) == 3
    assert result.labels == ["Row 1", "Row 2", "Row 3"]
    assert not harness.controller.in_progress
    assert harness.controller.history[0].step == 0
    assert harness.controller.metrics.eval_count == result.evaluations


def test_baseline_is_the_current_design(make_harness, peak) -> None:
    harness = make_harness(rows=1)
    expected = peak(0.7)(harness.field.tilt_angles())
    harness.run(Config(swarm_size=3, maximum_steps=1))
    baseline = harness.controller.history[0]
    assert baseline.best_fitness == pytest.approx(expected)


def test_abort_before_any_evaluation_restores_design(make_harness) -> None:
    harness = make_harness(rows=2)
    original = harness.field.snapshot()
    assert harness.controller.start_run(Config(swarm_size=4))
    assert harness.controller.abort()
    harness.loop.run_until_idle()

    assert harness.field.snapshot() == original
    assert harness.evaluator.trigger_count == 0
    assert harness.controller.state == RunState.ABORTED
    assert harness.controller.history == []
    assert not harness.controller.in_progress
    assert harness.completed == []


@pytest.mark.parametrize("k", [1, 3, 6])
def test_abort_after_evaluations_restores_design(make_harness, k) -> None:
    harness = make_harness(rows=3, latency_frames=2)
    original = harness.field.snapshot()
    assert harness.controller.start_run(
        Config(swarm_size=4, maximum_steps=5, seed_with_current_design=False)
    )
    _tick_until(harness, lambda: harness.evaluator.evaluation_index >= k)
    assert harness.field.snapshot() != original

    assert harness.controller.abort()
    harness.loop.run_until_idle()

    assert harness.field.snapshot() == original
    assert harness.evaluator.evaluation_index == k
    assert harness.controller.history == []
    assert harness.controller.result is None
    assert harness.completed == []
    assert not harness.evaluator.busy


def test_late_result_of_aborted_run_is_ignored(make_harness) -> None:
    harness = make_harness(rows=1, latency_frames=3)
    original = harness.field.snapshot()
    assert harness.controller.start_run(Config(swarm_size=3))
    _tick_until(harness, lambda: harness.evaluator.busy)
    harness.controller.abort()
    harness.loop.run_until_idle()

    assert harness.evaluator.evaluation_index == 0
    assert harness.field.snapshot() == original
    assert harness.controller.state == RunState.ABORTED


def test_pause_holds_and_resume_neither_repeats_nor_skips(make_harness) -> None:
    harness = make_harness(rows=2, latency_frames=2)
    cfg = Config(swarm_size=3, maximum_steps=2, convergence_threshold=0.0)
    assert harness.controller.start_run(cfg)
    seen = _spy_order(harness.controller)

    _tick_until(harness, lambda: harness.evaluator.busy)
    assert harness.controller.pause()
    assert not harness.controller.pause()
    harness.loop.run_until_idle()

    # the evaluation in flight finishes, then the next step is held
    assert harness.controller.state == RunState.PAUSED
    assert harness.controller.paused
    assert harness.controller.in_progress
    assert harness.evaluator.trigger_count == 1
    assert seen == [0]
    assert harness.loop.pending == 0

    assert harness.controller.resume()
    assert not harness.controller.resume()
    harness.loop.run_until_idle()

    assert seen == [0, 1, 2, 0, 1, 2]
    assert harness.evaluator.trigger_count == 6
    assert harness.controller.result.evaluations == 6
    assert harness.controller.metrics.pauses == 1


def test_pause_and_resume_within_the_same_frame(make_harness) -> None:
    harness = make_harness(rows=1)
    assert harness.controller.start_run(Config(swarm_size=2, maximum_steps=2, convergence_threshold=0.0))
    harness.loop.tick()
    harness.controller.pause()
    harness.controller.resume()
    harness.loop.run_until_idle()
    assert harness.evaluator.trigger_count == 4
    assert harness.controller.result.evaluations == 4


def test_start_while_running_or_paused_raises(make_harness) -> None:
    harness = make_harness(rows=1)
    cfg = Config(swarm_size=2)
    assert harness.controller.start_run(cfg)
    with pytest.raises(RuntimeError):
        harness.controller.start_run(cfg)
    harness.controller.pause()
    with pytest.raises(RuntimeError):
        harness.controller.start_run(cfg)
    harness.controller.abort()
    assert harness.controller.start_run(cfg)


def test_new_run_after_completion(make_harness) -> None:
    harness = make_harness(rows=1)
    harness.run(Config(swarm_size=2, maximum_steps=1))
    first = harness.controller.result
    harness.run(Config(swarm_size=2, maximum_steps=1, seed=7))
    assert harness.controller.result is not first
    assert len(harness.completed) == 2


def test_field_without_panel_groups_is_a_user_error(make_harness) -> None:
    harness = make_harness(rows=1)
    harness.controller.field = PanelField()
    assert harness.controller.start_run(Config()) is False
    assert harness.controller.state == RunState.IDLE
    assert not harness.controller.in_progress
    assert harness.messages and harness.messages[-1][0] == "error"


def test_invalid_parameters_raise_before_starting(make_harness) -> None:
    harness = make_harness(rows=1)
    with pytest.raises(ConfigurationError):
        harness.controller.start_run(Config(swarm_size=0))
    with pytest.raises(ValueError):
        harness.controller.start_run(Config(days_per_year=5))
    assert harness.controller.state == RunState.IDLE


def test_evaluator_failure_aborts_with_revert(make_harness) -> None:
    calls = []

    def flaky(angles):
        calls.append(tuple(angles))
        if len(calls) == 3:
            raise RuntimeError("sensor offline")
        return 1.0 + len(calls)

    harness = make_harness(rows=2, objective=flaky)
    original = harness.field.snapshot()
    assert harness.controller.start_run(Config(swarm_size=4))
    harness.loop.run_until_idle()

    assert harness.controller.state == RunState.ABORTED
    assert harness.field.snapshot() == original
    assert harness.completed == []
    assert harness.messages[-1][0] == "error"
    assert "sensor offline" in harness.messages[-1][1]


def test_clear_history_is_refused_during_a_run(make_harness) -> None:
    harness = make_harness(rows=1)
    harness.controller.start_run(Config(swarm_size=2))
    with pytest.raises(RuntimeError):
        harness.controller.clear_history()
    harness.loop.run_until_idle()
    harness.controller.clear_history()
    assert harness.controller.history == []


def test_convergence_in_the_middle_of_a_step_stops_immediately(make_harness) -> None:
    values = iter([0.0, 1.0, 1.0, 1.0, 1.0, 1.0, 1.0, 1.0])
    harness = make_harness(rows=2, objective=lambda angles: next(values))
    assert harness.controller.start_run(
        Config(swarm_size=5, maximum_steps=5, convergence_threshold=0.5)
    )
    seen = _spy_order(harness.controller)
    harness.loop.run_until_idle()

    result = harness.controller.result
    assert result.converged
    assert result.evaluations == 6
    assert seen == [0, 1, 2, 3, 4, 0]
    assert harness.evaluator.trigger_count == 6
    assert [record.step for record in result.history] == [0, 1, 2]


@pytest.mark.parametrize("method", list(EvolutionMethod))
@pytest.mark.parametrize("value", [float("nan"), -float("inf")])
def test_run_without_finite_fitness_aborts_with_revert(make_harness, method, value) -> None:
    harness = make_harness(rows=2, objective=lambda angles: value)
    original = harness.field.snapshot()
    assert harness.controller.start_run(
        Config(evolution_method=method, swarm_size=3, population_size=3, maximum_steps=1, maximum_generations=1)
    )
    harness.loop.run_until_idle()

    assert harness.controller.state == RunState.ABORTED
    assert not harness.controller.in_progress
    assert harness.field.snapshot() == original
    assert harness.completed == []
    assert harness.messages[-1][0] == "error"


def test_user_abort_is_not_logged_as_an_error(make_harness, caplog) -> None:
    harness = make_harness(rows=1)
    caplog.set_level(logging.INFO, logger="solar_tilt_opt")
    assert harness.controller.start_run(Config(swarm_size=2))
    harness.loop.tick()
    harness.controller.abort()

    aborts = [r for r in caplog.records if "aborted" in r.getMessage()]
    assert aborts
    assert all(r.levelno == logging.WARNING for r in aborts)
