from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from threading import Event
from typing import List, Optional, Sequence

from ..data import Instance


Tour = List[int]


def tour_legs(instance: Instance, tour: Sequence[int]) -> List[float]:
    """Length of each leg of the closed tour; leg ``r`` leaves ``tour[r]``."""
    n = len(tour)
    return [instance.distance(tour[r] - 1, tour[(r + 1) % n] - 1) for r in range(n)]


def tour_length(instance: Instance, tour: Sequence[int]) -> float:
    return float(sum(tour_legs(instance, tour)))


def rotate_to_start(tour: Sequence[int], start: int = 1) -> Tour:
    idx = list(tour).index(start)
    return list(tour[idx:]) + list(tour[:idx])


@dataclass
class Solution:
    tour: Tour
    picking_plan: List[int]
    ob: float = 0.0
    fp: int = 0
    ft: float = 0.0
    wend: int = 0
    weight_acc: List[int] = field(default_factory=list)
    time_acc: List[float] = field(default_factory=list)
    map_ci: List[int] = field(default_factory=list)

    @classmethod
    def from_tour(cls, instance: Instance, tour: Sequence[int], picking_plan: Optional[Sequence[int]] = None) -> "Solution":
        plan = list(picking_plan) if picking_plan is not None else [0] * instance.nb_items
        return evaluate_solution(instance, cls(tour=list(tour), picking_plan=plan))

    def clone(self) -> "Solution":
        return Solution(
            tour=self.tour[:],
            picking_plan=self.picking_plan[:],
            ob=self.ob,
            fp=self.fp,
            ft=self.ft,
            wend=self.wend,
            weight_acc=self.weight_acc[:],
            time_acc=self.time_acc[:],
            map_ci=self.map_ci[:],
        )

    @property
    def picked(self) -> List[int]:
        return [k for k, city in enumerate(self.picking_plan) if city]


def evaluate_solution(instance: Instance, solution: Solution) -> Solution:
    """
    Recompute every derived field of ``solution`` from its tour and picking
    plan with a full traversal. Mutates and returns ``solution``.
    """
    n = instance.nb_cities
    tour = solution.tour
    city_weight = [0] * n
    fp = 0
    for k, city in enumerate(solution.picking_plan):
        if city:
            city_weight[city - 1] += instance.weight_of(k)
            fp += instance.profit_of(k)

    max_speed = instance.max_speed
    coef = instance.speed_coef
    weight_acc = [0] * n
    time_acc = [0.0] * n
    map_ci = [0] * n
    wc = 0
    ft = 0.0
    for r in range(n):
        city = tour[r]
        map_ci[city - 1] = r
        wc += city_weight[city - 1]
        ft += instance.distance(city - 1, tour[(r + 1) % n] - 1) / (max_speed - wc * coef)
        weight_acc[r] = wc
        time_acc[r] = ft

    solution.weight_acc = weight_acc
    solution.time_acc = time_acc
    solution.map_ci = map_ci
    solution.fp = fp
    solution.ft = ft
    solution.ob = fp - ft * instance.rent_rate
    solution.wend = instance.capacity - wc
    return solution


class Solver(ABC):
    name: str = "base"

    @abstractmethod
    def solve(self, instance: Instance, cancel: Optional[Event] = None) -> Solution:
        raise NotImplementedError
