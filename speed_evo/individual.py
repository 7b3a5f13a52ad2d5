"""
Individuals: value-like beings carrying a single integer trait, speed.
"""
from dataclasses import dataclass
from typing import List

SPEED_MIN = 1
SPEED_MAX = 10

# initial speeds are drawn from [INIT_SPEED_LOW, INIT_SPEED_HIGH)
INIT_SPEED_LOW = 1
INIT_SPEED_HIGH = 5


def clamp_speed(speed: int) -> int:
    return max(SPEED_MIN, min(SPEED_MAX, int(speed)))


@dataclass(frozen=True)
class Individual:
    speed: int

    def __post_init__(self):
        if not SPEED_MIN <= self.speed <= SPEED_MAX:
            raise ValueError(f"speed {self.speed} outside [{SPEED_MIN}, {SPEED_MAX}]")


def random_individual(rng) -> Individual:
    return Individual(speed=int(rng.integers(INIT_SPEED_LOW, INIT_SPEED_HIGH)))


def random_population(size: int, rng) -> List[Individual]:
    return [random_individual(rng) for _ in range(size)]
