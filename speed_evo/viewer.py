"""
Viewer with:
- speed histogram of the current population (bars, speeds 1..10)
- best / mean speed history per generation
- HUD: generation, population size, best fitness, stop reason

Controls:
  R = restart (fresh population, new run)   |   Q = close
"""
import time
from dataclasses import replace
from typing import Optional, Sequence

import numpy as np
import matplotlib.pyplot as plt

from .engine import EngineConfig
from .individual import SPEED_MAX, SPEED_MIN
from .report import GenerationReport
from .runner import Host

SPEEDS = np.arange(SPEED_MIN, SPEED_MAX + 1)


def speed_counts(speeds: Sequence[int]) -> np.ndarray:
    """Number of individuals at each speed, SPEED_MIN..SPEED_MAX."""
    counts = np.bincount(np.asarray(speeds, dtype=np.int64), minlength=SPEED_MAX + 1)
    return counts[SPEED_MIN:SPEED_MAX + 1]


def plot_history(reports: Sequence[GenerationReport], ax=None):
    """Best and mean speed per generation. Returns the figure."""
    if ax is None:
        fig, ax = plt.subplots(figsize=(6, 3.5))
    else:
        fig = ax.figure
    gens = [r.generation for r in reports]
    best = [r.best_fitness for r in reports]
    mean = [float(np.mean(r.speeds)) if r.speeds else 0.0 for r in reports]
    ax.plot(gens, best, marker="o", label="best fitness")
    ax.plot(gens, mean, marker=".", linestyle="--", label="mean speed")
    ax.set_xlabel("generation")
    ax.set_ylabel("speed")
    ax.set_ylim(0, SPEED_MAX + 0.5)
    ax.legend(loc="lower right", fontsize=8)
    return fig


def run_live(cfg: Optional[EngineConfig] = None, fps: int = 4, seed: Optional[int] = None) -> None:
    cfg = cfg or EngineConfig(max_generations=200)
    if seed is not None:
        cfg = replace(cfg, seed=seed)
    host = Host(cfg)
    host.start()

    fig, (ax_hist, ax_line) = plt.subplots(1, 2, figsize=(10, 4))
    try: fig.canvas.manager.set_window_title("Speed Evo - Live")
    except AttributeError: pass

    bars = ax_hist.bar(SPEEDS, np.zeros(len(SPEEDS)), color="#26c6da")
    ax_hist.set_xticks(SPEEDS)
    ax_hist.set_xlabel("speed"); ax_hist.set_ylabel("individuals")
    ax_hist.set_ylim(0, cfg.mu + cfg.lam)
    hud = ax_hist.text(0.02, 0.97, "", transform=ax_hist.transAxes,
                       fontsize=8, va="top", family="monospace")

    line_best, = ax_line.plot([], [], marker="o", label="best fitness")
    line_mean, = ax_line.plot([], [], linestyle="--", label="mean speed")
    ax_line.set_xlabel("generation"); ax_line.set_ylim(0, SPEED_MAX + 0.5)
    ax_line.legend(loc="lower right", fontsize=8)

    def on_key(ev):
        if ev.key in ("r", "R"): host.restart = True
        elif ev.key in ("q", "Q"): plt.close(fig)

    fig.canvas.mpl_connect("key_press_event", on_key)

    delay = 1.0 / max(1, fps)
    while plt.fignum_exists(fig.number):
        host.tick()
        hist = list(host.engine.history)

        counts = speed_counts([ind.speed for ind in host.engine.population])
        for bar, c in zip(bars, counts):
            bar.set_height(c)

        gens = [r.generation for r in hist]
        line_best.set_data(gens, [r.best_fitness for r in hist])
        line_mean.set_data(gens, [float(np.mean(r.speeds)) for r in hist])
        ax_line.set_xlim(0, max(1, host.engine.generation))

        status = host.reason.value if host.done and host.reason else "running"
        hud.set_text(
            f"gen {host.engine.generation} | pop {len(host.engine.population)} "
            f"| best {host.engine.best_fitness()} | {status}"
        )

        plt.pause(0.001); time.sleep(delay)

    plt.close(fig)
