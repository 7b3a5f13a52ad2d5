"""
Evolution helpers: fitness policy and the operators of one (mu+lambda) step.

Every operator takes the random source explicitly. The source only needs
``integers(low, high)`` and ``random()``, which ``np.random.Generator`` provides.
"""
from dataclasses import replace
from typing import Callable, List, Sequence

from .individual import Individual, clamp_speed

FitnessFn = Callable[[Individual], int]

PERTURB_PROB = 0.1


def fitness(ind: Individual) -> int:
    return ind.speed


def shuffle(pop: List[Individual], rng) -> None:
    """In-place Fisher-Yates: slot i swaps with a uniform index in [i, n)."""
    n = len(pop)
    for i in range(n):
        j = int(rng.integers(i, n))
        pop[i], pop[j] = pop[j], pop[i]


def sort_by_fitness(pop: List[Individual], fitness_fn: FitnessFn = fitness) -> None:
    # list.sort is stable, so ties keep the order the shuffle left them in
    pop.sort(key=fitness_fn, reverse=True)


def keep_elite(pop: List[Individual], mu: int) -> List[Individual]:
    if len(pop) > mu:
        return pop[:mu]
    return pop


def elite_copies(pop: Sequence[Individual], mu: int) -> List[Individual]:
    return [replace(ind) for ind in pop[:mu]]


def perturb(ind: Individual, rng, p: float = PERTURB_PROB) -> Individual:
    if rng.random() < p:
        delta = int(rng.integers(-1, 2))
        return replace(ind, speed=clamp_speed(ind.speed + delta))
    return ind


def highest_fitness(pop: Sequence[Individual], fitness_fn: FitnessFn = fitness) -> float:
    if not pop:
        return float("-inf")
    return max(fitness_fn(ind) for ind in pop)
