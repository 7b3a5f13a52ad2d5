from speed_evo.engine import EngineConfig
from speed_evo.viewer import run_live

if __name__ == "__main__":
    # Watch the speed histogram climb toward the ceiling; press R to restart.
    run_live(EngineConfig(mu=50, lam=50, max_generations=200, max_fitness=10), fps=4, seed=21)
