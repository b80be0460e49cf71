import math
import time
from dataclasses import dataclass
from threading import Event
from typing import Dict, List, Optional, Sequence, Tuple

import torch

from .data import Instance
from .solvers.base import Solution, Solver, tour_legs


@dataclass
class Fitness:
    objective: float
    profit: float
    travel_time: float
    runtime: float
    drift: float
    solver_name: str


def _legs_torch(instance: Instance, tour: Sequence[int]) -> torch.Tensor:
    if instance.matrix is not None:
        dist = torch.as_tensor(instance.matrix, dtype=torch.float64)
        idx = torch.tensor(tour, dtype=torch.long) - 1
        return dist[idx, idx.roll(-1)]
    return torch.tensor(tour_legs(instance, tour), dtype=torch.float64)


def objective_torch(instance: Instance, tour: Sequence[int], picking_plan: Sequence[int]) -> Tuple[float, float, float]:
    """Vectorised from-scratch (objective, profit, travel time) of a tour and plan."""
    plan = torch.tensor(picking_plan, dtype=torch.long)
    picked = plan != 0
    weights = torch.as_tensor(instance.weights, dtype=torch.float64)
    profits = torch.as_tensor(instance.profits, dtype=torch.float64)
    city_weight = torch.zeros(instance.nb_cities, dtype=torch.float64)
    city_weight.index_add_(0, plan[picked] - 1, weights[picked])
    idx = torch.tensor(tour, dtype=torch.long) - 1
    weight_acc = torch.cumsum(city_weight[idx], dim=0)
    speed = instance.max_speed - weight_acc * instance.speed_coef
    travel_time = (_legs_torch(instance, tour) / speed).sum().item()
    profit = profits[picked].sum().item()
    return profit - travel_time * instance.rent_rate, profit, travel_time


def evaluate_solver(
    solver: Solver,
    instance: Instance,
    cancel: Optional[Event] = None,
    tolerance: float = 1e-6,
) -> Tuple[Solution, Fitness]:
    start = time.perf_counter()
    solution = solver.solve(instance, cancel)
    runtime = time.perf_counter() - start
    objective, profit, travel_time = objective_torch(instance, solution.tour, solution.picking_plan)
    drift = abs(objective - solution.ob)
    if not math.isclose(objective, solution.ob, rel_tol=tolerance, abs_tol=tolerance):
        raise RuntimeError(
            f"{solver.__class__.__name__} reported ob={solution.ob} but recomputation gives {objective}"
        )
    return solution, Fitness(
        objective=objective,
        profit=profit,
        travel_time=travel_time,
        runtime=runtime,
        drift=drift,
        solver_name=solver.__class__.__name__,
    )


def aggregate_fitness(fitnesses: List[Fitness]) -> Dict[str, float]:
    if not fitnesses:
        return {"objective": float("-inf"), "runtime": 0.0, "drift": 0.0}
    objective = sum(f.objective for f in fitnesses) / len(fitnesses)
    runtime = sum(f.runtime for f in fitnesses) / len(fitnesses)
    drift = max(f.drift for f in fitnesses)
    return {"objective": objective, "runtime": runtime, "drift": drift}
