from .base import Solution, Solver, Tour, evaluate_solution, rotate_to_start, tour_legs, tour_length
from .annealing import (
    AnnealingConfig,
    FlipMove,
    KnapsackAnnealer,
    accept,
    commit_flip,
    evaluate_flip,
    trial_count,
    trial_factor,
)
from .heuristics import (
    Constructive,
    christofides_like,
    insert_and_eliminate,
    item_scores,
    ls2opt,
    nearest_neighbor_tour,
    random_insertion,
)

__all__ = [
    "Solution",
    "Solver",
    "Tour",
    "evaluate_solution",
    "rotate_to_start",
    "tour_legs",
    "tour_length",
    "AnnealingConfig",
    "FlipMove",
    "KnapsackAnnealer",
    "accept",
    "commit_flip",
    "evaluate_flip",
    "trial_count",
    "trial_factor",
    "Constructive",
    "christofides_like",
    "insert_and_eliminate",
    "item_scores",
    "ls2opt",
    "nearest_neighbor_tour",
    "random_insertion",
]
