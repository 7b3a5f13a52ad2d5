"""
Generation reports: immutable population snapshots handed to sinks after each
step, plus the plain-text log sink.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence, Tuple, Union

from .evo import FitnessFn, fitness
from .individual import Individual


@dataclass(frozen=True)
class GenerationReport:
    generation: int
    entries: Tuple[Tuple[int, int], ...]  # (speed, fitness), best first

    @property
    def best_fitness(self) -> int:
        return self.entries[0][1] if self.entries else 0

    @property
    def size(self) -> int:
        return len(self.entries)

    @property
    def speeds(self) -> Tuple[int, ...]:
        return tuple(s for s, _ in self.entries)


def snapshot(generation: int, pop: Sequence[Individual],
             fitness_fn: FitnessFn = fitness) -> GenerationReport:
    scored = [(ind.speed, fitness_fn(ind)) for ind in pop]
    scored.sort(key=lambda e: e[1], reverse=True)
    return GenerationReport(generation=generation, entries=tuple(scored))


def format_report(report: GenerationReport) -> str:
    lines = [f"Generation: {report.generation}"]
    for i, (speed, fit) in enumerate(report.entries, start=1):
        lines.append(f"Individual {i}: speed = {speed}, fitness = {fit}")
    lines.append("")
    return "\n".join(lines) + "\n"


def format_reports(reports: Iterable[GenerationReport]) -> str:
    return "".join(format_report(r) for r in reports)


class LogFileSink:
    """
    Writes one text block per generation. The first successful write of a
    session truncates the file, later writes append. I/O errors propagate so
    the engine can record them.
    """
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._first = True

    def reset(self) -> None:
        self._first = True

    def __call__(self, report: GenerationReport) -> None:
        mode = "w" if self._first else "a"
        with self.path.open(mode, encoding="utf-8") as fh:
            fh.write(format_report(report))
        self._first = False
