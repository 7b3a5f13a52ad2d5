"""
Runner: hosts that drive an EvolutionEngine.

``Host`` is the per-tick driver (start once, tick every frame, flip the restart
flag to start over). ``evolve`` is the single headless entrypoint you can call
from a script or notebook.
"""
import logging
from pathlib import Path
from typing import Optional, Tuple, Union

from tqdm import tqdm

from .engine import EngineConfig, EvolutionEngine, RunLoop, TerminationReason
from .report import GenerationReport, LogFileSink

logger = logging.getLogger(__name__)


class Host:
    def __init__(self, cfg: Optional[EngineConfig] = None, rng=None,
                 log_path: Union[str, Path, None] = None):
        self.cfg = cfg or EngineConfig()
        self.engine = EvolutionEngine(self.cfg, rng=rng)
        self.log_sink = LogFileSink(log_path) if log_path is not None else None
        if self.log_sink is not None:
            self.engine.add_sink(self.log_sink)
        self.loop: Optional[RunLoop] = None
        self._restart = False

    def start(self) -> RunLoop:
        self.loop = self.engine.run(self.cfg.max_generations, self.cfg.max_fitness)
        return self.loop

    def tick(self) -> Optional[GenerationReport]:
        """Advance at most one generation; None once the loop has stopped."""
        if self.loop is None:
            return None
        return next(self.loop, None)

    @property
    def done(self) -> bool:
        return self.loop is None or self.loop.done

    @property
    def reason(self) -> Optional[TerminationReason]:
        return self.loop.reason if self.loop is not None else None

    # edge-triggered: setting True restarts once and the flag falls back to False
    @property
    def restart(self) -> bool:
        return self._restart

    @restart.setter
    def restart(self, value: bool) -> None:
        self._restart = bool(value)
        if not self._restart:
            return
        self._restart = False
        if self.loop is not None:
            self.loop.cancel()
        self.engine.restart()
        self.start()


def evolve(cfg: Optional[EngineConfig] = None, rng=None,
           log_path: Union[str, Path, None] = None,
           progress: bool = True) -> Tuple[EvolutionEngine, TerminationReason]:
    host = Host(cfg, rng=rng, log_path=log_path)
    loop = host.start()
    with tqdm(total=host.cfg.max_generations, desc="evolve", disable=not progress) as bar:
        for report in loop:
            bar.update(1)
            bar.set_postfix(best=report.best_fitness)
    logger.info("Finished at generation %d (%s)", host.engine.generation, loop.reason.value)
    return host.engine, loop.reason
