import random
import threading

import numpy as np

from ttp_cosolver.cosolver import Cosolver, CosolverConfig
from ttp_cosolver.data import Instance
from ttp_cosolver.evaluation import evaluate_solver
from ttp_cosolver.solvers.annealing import AnnealingConfig


def random_instance(nb_cities: int = 30, items_per_city: int = 2, seed: int = 7) -> Instance:
    rng = np.random.default_rng(seed)
    coords = rng.integers(0, 1000, size=(nb_cities, 2))
    nb_items = (nb_cities - 1) * items_per_city
    weights = rng.integers(1, 100, size=nb_items)
    profits = weights + rng.integers(0, 50, size=nb_items)
    # TTP convention: no items at the starting city.
    availability = [2 + k % (nb_cities - 1) for k in range(nb_items)]
    return Instance(
        name=f"random-{nb_cities}",
        profits=profits,
        weights=weights,
        availability=availability,
        capacity=int(weights.sum() // 3),
        min_speed=0.1,
        max_speed=1.0,
        rent_rate=0.5,
        coords=coords,
        edge_weight_type="CEIL_2D",
    )


def main():
    instance = random_instance()
    cfg = CosolverConfig(
        construct="random_insertion",
        annealing=AnnealingConfig(alpha=0.8, trials=2000),
        debug=True,
    )
    cancel = threading.Event()
    timer = threading.Timer(30.0, cancel.set)
    timer.start()
    try:
        solution, fitness = evaluate_solver(Cosolver(cfg, rng=random.Random(1)), instance, cancel)
    finally:
        timer.cancel()
    print(f"ob={fitness.objective:.2f} picked={len(solution.picked)} tour={solution.tour}")


if __name__ == "__main__":
    main()
