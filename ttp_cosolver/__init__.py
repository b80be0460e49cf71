"""
Co-evolutionary solver for the Travelling Thief Problem: 2-opt on the tour
alternating with simulated annealing on the knapsack.
"""

__all__ = [
    "cosolver",
    "data",
    "evaluation",
    "solvers",
]
