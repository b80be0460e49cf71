import random
from dataclasses import dataclass, field
from threading import Event
from typing import List, Optional

from .data import Instance
from .log import log
from .solvers.annealing import AnnealingConfig, KnapsackAnnealer
from .solvers.base import Solution, Solver
from .solvers.heuristics import Constructive, insert_and_eliminate, ls2opt


@dataclass
class CosolverConfig:
    construct: str = "nearest_neighbor"
    random_seed: int = 123
    two_opt_max_iter: int = 50
    insert_passes: int = 5
    annealing: AnnealingConfig = field(default_factory=AnnealingConfig)
    debug: bool = False


class Cosolver(Solver):
    """
    Alternates 2-opt on the tour (items fixed) with knapsack annealing
    (tour fixed) until a full round no longer raises the best objective.
    """

    name = "cosolver"

    def __init__(self, config: Optional[CosolverConfig] = None, rng: Optional[random.Random] = None):
        self.cfg = config or CosolverConfig()
        self.rng = rng or random.Random(self.cfg.random_seed)
        self.rounds = 0
        self.history: List[float] = []

    def initial_solution(self, instance: Instance) -> Solution:
        s0 = Constructive(instance, self.rng).generate(self.cfg.construct)
        return insert_and_eliminate(instance, s0, max_passes=self.cfg.insert_passes)

    def solve(self, instance: Instance, cancel: Optional[Event] = None) -> Solution:
        return self.cosolve(instance, self.initial_solution(instance), cancel)

    def cosolve(self, instance: Instance, solution: Solution, cancel: Optional[Event] = None) -> Solution:
        annealer = KnapsackAnnealer(instance, self.cfg.annealing, rng=self.rng)
        sol = solution.clone()
        global_best = sol.ob
        self.rounds = 0
        self.history = [global_best]
        improved = True
        while improved:
            if cancel is not None and cancel.is_set():
                break
            self.rounds += 1
            improved = False

            sol = ls2opt(instance, sol, max_iter=self.cfg.two_opt_max_iter)
            sol = annealer.run(sol, cancel)

            if sol.ob > global_best:
                global_best = sol.ob
                improved = True
            self.history.append(global_best)

            if self.cfg.debug:
                log(f"round {self.rounds}: ob={sol.ob:.2f} wend={sol.wend}")
        return sol
