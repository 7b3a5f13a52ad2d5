"""
Evolution engine: owns one population and steps it through (mu+lambda)
generations: shuffle, sort by fitness, keep the elite, append perturbed copies.

The engine is driven from outside. ``run`` hands back a RunLoop that performs
one step per ``next()`` so a host can interleave generations with its own
ticks (frames, timers, a progress bar). ``restart`` bumps the epoch, which
makes any loop created before it stop on its next tick.
"""
import enum
import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Iterable, List, Optional, Tuple

import numpy as np

from .evo import (
    PERTURB_PROB, FitnessFn, elite_copies, fitness, highest_fitness,
    keep_elite, perturb, shuffle, sort_by_fitness,
)
from .individual import Individual, random_population
from .report import GenerationReport, snapshot

logger = logging.getLogger(__name__)

Sink = Callable[[GenerationReport], None]


class InvalidConfiguration(ValueError):
    pass


class TerminationReason(enum.Enum):
    GENERATION_LIMIT = "generation_limit"
    FITNESS_TARGET = "fitness_target"
    CANCELLED = "cancelled"


@dataclass
class EngineConfig:
    mu: int = 50
    lam: int = 50
    max_generations: int = 5
    max_fitness: int = 10
    mutation_rate: float = PERTURB_PROB
    seed: int = 7
    history_len: int = 1000

    def validate(self) -> "EngineConfig":
        check_sizes(self.mu, self.lam)
        if self.max_generations < 0:
            raise InvalidConfiguration(f"max_generations must be >= 0, got {self.max_generations}")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise InvalidConfiguration(f"mutation_rate must be in [0, 1], got {self.mutation_rate}")
        if self.history_len is not None and self.history_len < 0:
            raise InvalidConfiguration(f"history_len must be >= 0, got {self.history_len}")
        return self


def check_sizes(mu, lam) -> None:
    for name, v in (("mu", mu), ("lam", lam)):
        if isinstance(v, bool) or not isinstance(v, (int, np.integer)):
            raise InvalidConfiguration(f"{name} must be an integer, got {v!r}")
        if v <= 0:
            raise InvalidConfiguration(f"{name} must be positive, got {v}")


class EvolutionEngine:
    def __init__(self, cfg: Optional[EngineConfig] = None, rng=None,
                 fitness_fn: FitnessFn = fitness, sinks: Iterable[Sink] = ()):
        self.cfg = (cfg or EngineConfig()).validate()
        self.rng = rng if rng is not None else np.random.default_rng(self.cfg.seed)
        self.fitness_fn = fitness_fn
        self.sinks: List[Sink] = list(sinks)

        self.mu = self.cfg.mu
        self.lam = self.cfg.lam
        self.generation = 0
        self.epoch = 0
        self.sink_failures = 0
        self._pop: List[Individual] = []

        # rolling record of emitted reports (the viewer reads it)
        self.history: Deque[GenerationReport] = deque(maxlen=self.cfg.history_len)

        self.initialize(self.mu, self.lam, self.rng)

    # ---------- state ----------
    @property
    def population(self) -> Tuple[Individual, ...]:
        return tuple(self._pop)

    def best_fitness(self) -> float:
        return highest_fitness(self._pop, self.fitness_fn)

    def add_sink(self, sink: Sink) -> None:
        self.sinks.append(sink)

    # ---------- lifecycle ----------
    def initialize(self, mu: int, lam: int, rng) -> None:
        check_sizes(mu, lam)
        self.mu, self.lam, self.rng = int(mu), int(lam), rng
        self._pop = random_population(self.mu + self.lam, rng)
        self.generation = 0
        self.history.clear()
        self.epoch += 1

    def restart(self) -> None:
        logger.info("Restarting evolution (epoch %d)", self.epoch + 1)
        self.initialize(self.mu, self.lam, self.rng)

    # ---------- dynamics ----------
    def step(self) -> GenerationReport:
        logger.debug("Generation %d", self.generation)
        pop = list(self._pop)
        shuffle(pop, self.rng)
        sort_by_fitness(pop, self.fitness_fn)
        pop = keep_elite(pop, self.mu)
        offspring = [perturb(ind, self.rng, self.cfg.mutation_rate)
                     for ind in elite_copies(pop, self.mu)]
        pop.extend(offspring)

        self._pop = pop
        self.generation += 1
        logger.info("Highest fitness: %s", self.best_fitness())

        report = snapshot(self.generation, pop, self.fitness_fn)
        self.history.append(report)
        self._emit(report)
        return report

    def _emit(self, report: GenerationReport) -> None:
        epoch = self.epoch
        for sink in list(self.sinks):
            # a sink restarted the engine; the report belongs to a discarded population
            if self.epoch != epoch:
                break
            try:
                sink(report)
            except OSError as exc:
                self.sink_failures += 1
                logger.error("Could not write generation %d report: %s", report.generation, exc)

    def run(self, max_generations: Optional[int] = None,
            max_fitness: Optional[float] = None) -> "RunLoop":
        if max_generations is None:
            max_generations = self.cfg.max_generations
        if max_fitness is None:
            max_fitness = self.cfg.max_fitness
        return RunLoop(self, max_generations, max_fitness)


class RunLoop:
    """
    Cooperative driving loop. Each ``next()`` checks the stop condition, then
    performs exactly one step and returns its report. Once stopped, ``reason``
    says why.
    """
    def __init__(self, engine: EvolutionEngine, max_generations: int, max_fitness: float):
        self.engine = engine
        self.max_generations = max_generations
        self.max_fitness = max_fitness
        self.epoch = engine.epoch
        self.steps = 0
        self.reason: Optional[TerminationReason] = None

    def __iter__(self) -> "RunLoop":
        return self

    def __next__(self) -> GenerationReport:
        if self.reason is not None:
            raise StopIteration
        eng = self.engine
        if eng.epoch != self.epoch:
            return self._stop(TerminationReason.CANCELLED)
        if eng.generation >= self.max_generations:
            return self._stop(TerminationReason.GENERATION_LIMIT)
        if eng.best_fitness() >= self.max_fitness:
            return self._stop(TerminationReason.FITNESS_TARGET)
        if self.steps == 0:
            logger.info("Starting evolution with population size %d", len(eng.population))
        self.steps += 1
        return eng.step()

    def _stop(self, reason: TerminationReason):
        self.reason = reason
        logger.info("Evolution stopped after %d generation(s): %s", self.engine.generation, reason.value)
        raise StopIteration

    @property
    def done(self) -> bool:
        return self.reason is not None

    def cancel(self) -> None:
        if self.reason is None:
            self.reason = TerminationReason.CANCELLED

    def finish(self) -> TerminationReason:
        for _ in self:
            pass
        return self.reason
