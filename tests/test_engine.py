import numpy as np
import pytest

from speed_evo.engine import (
    EngineConfig, EvolutionEngine, InvalidConfiguration, TerminationReason,
)
from speed_evo.individual import SPEED_MAX, SPEED_MIN


def _speeds(engine):
    return [i.speed for i in engine.population]


@pytest.fixture
def engine():
    return EvolutionEngine(EngineConfig(mu=3, lam=5, seed=11))


def test_initial_population(engine):
    assert len(engine.population) == 8
    assert engine.generation == 0
    assert all(1 <= s < 5 for s in _speeds(engine))


def test_worked_example_mu2_lam2(scripted):
    rng = scripted(ints=[3, 1, 4, 2])
    eng = EvolutionEngine(EngineConfig(mu=2, lam=2), rng=rng)
    assert _speeds(eng) == [3, 1, 4, 2]

    # identity shuffle, then no perturbation for either copy
    rng.ints.extend([0, 1, 2, 3])
    rng.floats.extend([0.5, 0.5])
    report = eng.step()

    assert _speeds(eng) == [4, 3, 4, 3]
    assert report.generation == 1
    assert report.speeds == (4, 4, 3, 3)
    assert report.best_fitness == 4
    assert rng.ints == [] and rng.floats == []


def test_offspring_perturbation_does_not_touch_elites(scripted):
    rng = scripted(ints=[3, 1, 4, 2])
    eng = EvolutionEngine(EngineConfig(mu=2, lam=2), rng=rng)
    rng.ints.extend([0, 1, 2, 3, 1])
    rng.floats.extend([0.01, 0.9])
    eng.step()
    assert _speeds(eng) == [4, 3, 5, 3]


def test_population_size_settles_at_two_mu(engine):
    sizes = [len(engine.population)]
    for _ in range(4):
        engine.step()
        sizes.append(len(engine.population))
    assert sizes == [8, 6, 6, 6, 6]


def test_speeds_stay_in_bounds_under_heavy_mutation():
    eng = EvolutionEngine(EngineConfig(mu=10, lam=10, mutation_rate=1.0, seed=5))
    for _ in range(200):
        eng.step()
        assert all(SPEED_MIN <= s <= SPEED_MAX for s in _speeds(eng))


def test_report_entries_sorted_descending(engine):
    for _ in range(5):
        report = engine.step()
        fits = [f for _, f in report.entries]
        assert fits == sorted(fits, reverse=True)
        assert report.size == len(engine.population)


def test_custom_fitness_policy(scripted):
    rng = scripted(ints=[3, 1, 4, 2])
    eng = EvolutionEngine(EngineConfig(mu=2, lam=2), rng=rng, fitness_fn=lambda ind: -ind.speed)
    rng.ints.extend([0, 1, 2, 3])
    rng.floats.extend([0.5, 0.5])
    eng.step()
    assert _speeds(eng) == [1, 2, 1, 2]
    assert eng.best_fitness() == -1


def test_population_is_a_snapshot(engine):
    pop = engine.population
    assert isinstance(pop, tuple)
    engine.step()
    assert len(pop) == 8


def test_run_zero_generations_does_nothing(engine):
    loop = engine.run(max_generations=0, max_fitness=100)
    assert loop.finish() is TerminationReason.GENERATION_LIMIT
    assert loop.steps == 0
    assert engine.generation == 0


def test_run_zero_generations_and_low_ceiling_reports_generation_limit(engine):
    assert engine.run(0, 0).finish() is TerminationReason.GENERATION_LIMIT


def test_run_low_ceiling_stops_before_first_step(engine):
    loop = engine.run(max_generations=10, max_fitness=1)
    assert loop.finish() is TerminationReason.FITNESS_TARGET
    assert loop.steps == 0
    assert engine.generation == 0


def test_run_until_generation_cap(engine):
    loop = engine.run(max_generations=3, max_fitness=100)
    reports = list(loop)
    assert [r.generation for r in reports] == [1, 2, 3]
    assert loop.reason is TerminationReason.GENERATION_LIMIT
    assert engine.generation == 3


def test_run_until_fitness_target():
    eng = EvolutionEngine(EngineConfig(mu=5, lam=5, seed=2))
    loop = eng.run(max_generations=100_000, max_fitness=6)
    assert loop.finish() is TerminationReason.FITNESS_TARGET
    assert eng.best_fitness() >= 6
    assert eng.generation == loop.steps


def test_run_defaults_come_from_config():
    eng = EvolutionEngine(EngineConfig(mu=2, lam=2, max_generations=4, max_fitness=100, seed=1))
    assert eng.run().finish() is TerminationReason.GENERATION_LIMIT
    assert eng.generation == 4


def test_run_loop_is_cooperative(engine):
    loop = engine.run(max_generations=5, max_fitness=100)
    next(loop)
    assert engine.generation == 1
    assert not loop.done
    next(loop)
    assert engine.generation == 2


def test_restart_cancels_suspended_loop(engine):
    loop = engine.run(max_generations=10, max_fitness=100)
    next(loop)
    next(loop)
    engine.restart()
    assert next(loop, None) is None
    assert loop.reason is TerminationReason.CANCELLED
    assert engine.generation == 0
    assert len(engine.population) == 8
    assert len(engine.history) == 0


def test_restart_from_inside_a_sink(engine):
    def sink(report):
        if report.generation == 2:
            engine.restart()

    engine.add_sink(sink)
    loop = engine.run(max_generations=10, max_fitness=100)
    assert loop.finish() is TerminationReason.CANCELLED
    assert loop.steps == 2
    assert engine.generation == 0
    assert len(engine.population) == 8


def test_sinks_after_a_restarting_sink_skip_the_stale_report(engine):
    received = []

    def sink(report):
        if report.generation == 2:
            engine.restart()

    engine.add_sink(sink)
    engine.add_sink(received.append)
    engine.run(max_generations=10, max_fitness=100).finish()
    assert [r.generation for r in received] == [1]
    assert engine.generation == 0


def test_new_loop_after_restart_runs(engine):
    old = engine.run(10, 100)
    next(old)
    engine.restart()
    new = engine.run(2, 100)
    assert new.finish() is TerminationReason.GENERATION_LIMIT
    assert engine.generation == 2
    assert next(old, None) is None


def test_failing_sink_does_not_stop_evolution(engine):
    received = []

    def broken(report):
        raise OSError("disk full")

    engine.add_sink(broken)
    engine.add_sink(received.append)
    assert engine.run(3, 100).finish() is TerminationReason.GENERATION_LIMIT
    assert [r.generation for r in received] == [1, 2, 3]
    assert engine.sink_failures == 3


def test_same_seed_same_reports():
    def reports(seed):
        eng = EvolutionEngine(EngineConfig(mu=4, lam=6, seed=seed))
        return list(eng.run(20, 100))

    assert reports(13) == reports(13)


def test_injected_generator_matches_seeded_default():
    a = EvolutionEngine(EngineConfig(mu=4, lam=4, seed=9))
    b = EvolutionEngine(EngineConfig(mu=4, lam=4), rng=np.random.default_rng(9))
    assert list(a.run(10, 100)) == list(b.run(10, 100))


@pytest.mark.parametrize("kwargs", [
    {"mu": 0}, {"lam": 0}, {"mu": -1}, {"lam": -3}, {"mu": 2.5}, {"mu": True},
    {"max_generations": -1}, {"mutation_rate": 1.5}, {"history_len": -1},
])
def test_invalid_configuration(kwargs):
    with pytest.raises(InvalidConfiguration):
        EvolutionEngine(EngineConfig(**kwargs))


def test_invalid_initialize_keeps_state(engine):
    before = engine.population
    with pytest.raises(InvalidConfiguration):
        engine.initialize(0, 4, engine.rng)
    assert engine.population == before
    assert engine.mu == 3


def test_initialize_with_new_sizes(engine):
    engine.step()
    engine.initialize(2, 1, np.random.default_rng(0))
    assert len(engine.population) == 3
    assert engine.generation == 0
    engine.step()
    assert len(engine.population) == 4
