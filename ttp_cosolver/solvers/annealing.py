"""
Simulated-annealing bit-flip search over the picking plan of a fixed tour.

A flip of item ``k`` only changes the carried weight from the tour position of
its availability city onward, so every trial re-times the tour suffix starting
there and reuses ``time_acc`` for the untouched prefix.
"""

import math
import random
from dataclasses import dataclass
from threading import Event
from typing import List, Optional, Sequence, Tuple

from ..data import Instance
from ..log import log
from .base import Solution, evaluate_solution, tour_legs


# (exclusive upper bound on nb_items, trials per item and temperature step)
TRIAL_FACTORS = [
    (500, 1000.0),
    (1000, 100.0),
    (5000, 50.0),
    (20000, 10.0),
    (100000, 1.0),
    (200000, 0.04),
]
LARGE_TRIAL_FACTOR = 0.03


def trial_factor(nb_items: int) -> float:
    for bound, factor in TRIAL_FACTORS:
        if nb_items < bound:
            return factor
    return LARGE_TRIAL_FACTOR


def trial_count(nb_items: int) -> int:
    # Half-up rounding.
    return int(math.floor(nb_items * trial_factor(nb_items) + 0.5))


@dataclass
class AnnealingConfig:
    start_temperature: float = 100.0
    floor_temperature: float = 1.0
    alpha: float = 0.95
    trials: Optional[int] = None  # overrides the per-size trial table
    debug: bool = False


@dataclass
class FlipMove:
    item: int
    delta_profit: int
    delta_weight: int
    origin: int
    fp: int
    ft: float
    ob: float


def evaluate_flip(instance: Instance, solution: Solution, item: int, legs: Sequence[float]) -> FlipMove:
    """Objective of ``solution`` with ``item`` toggled, without touching it."""
    if solution.picking_plan[item] == 0:
        delta_p, delta_w = instance.profit_of(item), instance.weight_of(item)
    else:
        delta_p, delta_w = -instance.profit_of(item), -instance.weight_of(item)
    fp = solution.fp + delta_p
    origin = solution.map_ci[instance.availability_of(item) - 1]
    ft = solution.time_acc[origin - 1] if origin > 0 else 0.0
    max_speed = instance.max_speed
    coef = instance.speed_coef
    weight_acc = solution.weight_acc
    for r in range(origin, len(legs)):
        ft += legs[r] / (max_speed - (weight_acc[r] + delta_w) * coef)
    return FlipMove(
        item=item,
        delta_profit=delta_p,
        delta_weight=delta_w,
        origin=origin,
        fp=fp,
        ft=ft,
        ob=fp - ft * instance.rent_rate,
    )


def commit_flip(instance: Instance, solution: Solution, move: FlipMove, legs: Sequence[float]) -> None:
    """Apply ``move`` to ``solution`` in place, rewriting the accumulation suffix."""
    plan = solution.picking_plan
    plan[move.item] = 0 if plan[move.item] else instance.availability_of(move.item)
    max_speed = instance.max_speed
    coef = instance.speed_coef
    weight_acc = solution.weight_acc
    time_acc = solution.time_acc
    ft = time_acc[move.origin - 1] if move.origin > 0 else 0.0
    for r in range(move.origin, len(legs)):
        wc = weight_acc[r] + move.delta_weight
        ft += legs[r] / (max_speed - wc * coef)
        weight_acc[r] = wc
        time_acc[r] = ft
    solution.fp = move.fp
    solution.ft = ft
    solution.ob = move.fp - ft * instance.rent_rate
    solution.wend = instance.capacity - weight_acc[-1]


def accept(gap: float, temperature: float, rng) -> bool:
    """Metropolis criterion; a uniform draw is only consumed for non-improving moves."""
    if gap > 0:
        return True
    return math.exp(gap / temperature) > rng.random()


class KnapsackAnnealer:
    """
    Anneals the picking plan of a solution whose tour stays fixed.

    ``rng`` only needs ``randrange`` and ``random``; pass a seeded
    ``random.Random`` (or a scripted stand-in) for reproducible runs.
    """

    def __init__(self, instance: Instance, config: Optional[AnnealingConfig] = None, rng=None):
        self.instance = instance
        self.cfg = config or AnnealingConfig()
        self.rng = rng or random.Random()
        # (temperature, current objective, best objective) per completed step
        self.trace: List[Tuple[float, float, float]] = []

    def run(self, solution: Solution, cancel: Optional[Event] = None) -> Solution:
        instance = self.instance
        nb_items = instance.nb_items
        current = solution.clone()
        best = solution.clone()
        self.trace = []
        if nb_items == 0:
            return evaluate_solution(instance, best)

        legs = tour_legs(instance, current.tour)
        trials = self.cfg.trials if self.cfg.trials is not None else trial_count(nb_items)
        if self.cfg.debug:
            log(f"KRP trial factor {trial_factor(nb_items)} ({trials} trials per step)")

        chain_energy = current.ob
        temperature = self.cfg.start_temperature
        step = 0
        while True:
            if cancel is not None and cancel.is_set():
                break
            step += 1
            for _ in range(trials):
                item = self.rng.randrange(nb_items)
                if current.picking_plan[item] == 0 and instance.weight_of(item) > current.wend:
                    continue
                move = evaluate_flip(instance, current, item, legs)
                if accept(move.ob - chain_energy, temperature, self.rng):
                    commit_flip(instance, current, move, legs)
                    chain_energy = current.ob

            if current.ob > best.ob:
                best = current.clone()
            self.trace.append((temperature, current.ob, best.ob))
            if self.cfg.debug:
                log(f"KRP {step}: T={temperature:.3f} ob={current.ob:.0f} best={best.ob:.0f}")

            temperature *= self.cfg.alpha
            if temperature <= self.cfg.floor_temperature:
                break

        # Incremental updates never re-derive the prefix; settle best from scratch.
        return evaluate_solution(instance, best)
