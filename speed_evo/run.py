"""
CLI entry: run an evolution to completion and print a short report.
"""
import argparse
import logging
from typing import List, Optional

from speed_evo.engine import EngineConfig, InvalidConfiguration
from speed_evo.runner import evolve


def build_parser() -> argparse.ArgumentParser:
    d = EngineConfig()
    p = argparse.ArgumentParser(prog="speed-evo", description="(mu+lambda) evolution of a single speed trait")
    p.add_argument("--mu", type=int, default=d.mu, help="elite count kept each generation")
    p.add_argument("--lam", type=int, default=d.lam, help="extra individuals in the initial pool")
    p.add_argument("--max-generations", type=int, default=d.max_generations)
    p.add_argument("--max-fitness", type=int, default=d.max_fitness)
    p.add_argument("--mutation-rate", type=float, default=d.mutation_rate)
    p.add_argument("--seed", type=int, default=d.seed)
    p.add_argument("--log-file", default=None, help="write one text block per generation here")
    p.add_argument("--plot", default=None, help="save a best/mean history plot to this path")
    p.add_argument("--no-progress", action="store_true")
    p.add_argument("--log-level", default="WARNING")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    cfg = EngineConfig(mu=args.mu, lam=args.lam, max_generations=args.max_generations,
                       max_fitness=args.max_fitness, mutation_rate=args.mutation_rate, seed=args.seed)
    try:
        engine, reason = evolve(cfg, log_path=args.log_file, progress=not args.no_progress)
    except InvalidConfiguration as exc:
        print(f"invalid configuration: {exc}")
        return 2

    print("Generations:", engine.generation)
    print("Stopped:", reason.value)
    print("Best fitness:", engine.best_fitness())
    print("Population size:", len(engine.population))

    if args.plot:
        import matplotlib
        matplotlib.use("Agg")
        from speed_evo.viewer import plot_history
        plot_history(list(engine.history)).savefig(args.plot)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
