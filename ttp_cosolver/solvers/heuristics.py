import random
from typing import List, Optional, Sequence

import networkx as nx

from ..data import Instance
from .annealing import commit_flip, evaluate_flip
from .base import Solution, Tour, evaluate_solution, rotate_to_start, tour_legs


def nearest_neighbor_tour(instance: Instance, start: int = 1) -> Tour:
    tour = [start]
    unvisited = set(range(1, instance.nb_cities + 1))
    unvisited.remove(start)
    current = start
    while unvisited:
        nxt = min(unvisited, key=lambda city: instance.distance(current - 1, city - 1))
        tour.append(nxt)
        unvisited.remove(nxt)
        current = nxt
    return tour


def random_insertion(instance: Instance, rng: random.Random) -> Tour:
    cities = list(range(1, instance.nb_cities + 1))
    rng.shuffle(cities)
    tour = cities[:3]
    for city in cities[3:]:
        best_pos = 0
        best_increase = float("inf")
        for i in range(len(tour)):
            a = tour[i]
            b = tour[(i + 1) % len(tour)]
            inc = (
                instance.distance(a - 1, city - 1)
                + instance.distance(city - 1, b - 1)
                - instance.distance(a - 1, b - 1)
            )
            if inc < best_increase:
                best_increase = inc
                best_pos = i + 1
        tour.insert(best_pos, city)
    return rotate_to_start(tour)


def christofides_like(instance: Instance) -> Tour:
    # MST + odd-degree matching + shortcut Euler circuit.
    graph = instance.graph()
    mst = nx.minimum_spanning_tree(graph)
    odd_nodes = [v for v in mst.nodes() if mst.degree(v) % 2 == 1]
    # Negated weights: maximum-cardinality max-weight == min-weight perfect matching.
    odd = nx.Graph()
    odd.add_weighted_edges_from((u, v, -w) for u, v, w in graph.subgraph(odd_nodes).edges(data="weight"))
    matching = nx.algorithms.matching.max_weight_matching(odd, maxcardinality=True)
    multigraph = nx.MultiGraph(mst)
    multigraph.add_edges_from(matching)
    path = []
    visited = set()
    for u, v in nx.eulerian_circuit(multigraph, source=1):
        for node in (u, v):
            if node not in visited:
                path.append(node)
                visited.add(node)
    return rotate_to_start(path)


def item_scores(instance: Instance, solution: Solution) -> List[float]:
    """profit / (weight * distance still to travel once the item is picked)."""
    legs = tour_legs(instance, solution.tour)
    remaining = [0.0] * len(legs)
    acc = 0.0
    for r in range(len(legs) - 1, -1, -1):
        acc += legs[r]
        remaining[r] = acc
    scores = []
    for k in range(instance.nb_items):
        dist_left = remaining[solution.map_ci[instance.availability_of(k) - 1]]
        denom = instance.weight_of(k) * dist_left
        scores.append(instance.profit_of(k) / denom if denom > 0 else float("inf"))
    return scores


class Constructive:
    TOUR_STRATEGIES = ("nearest_neighbor", "random_insertion", "christofides")

    def __init__(self, instance: Instance, rng: Optional[random.Random] = None):
        self.instance = instance
        self.rng = rng or random.Random()

    def build_tour(self, strategy: str) -> Tour:
        if strategy == "random_insertion":
            return random_insertion(self.instance, self.rng)
        if strategy == "christofides":
            return christofides_like(self.instance)
        return nearest_neighbor_tour(self.instance)

    def generate(self, strategy: str) -> Solution:
        """Build a tour with ``strategy`` and pack items greedily along it."""
        instance = self.instance
        sol = Solution.from_tour(instance, self.build_tour(strategy))
        scores = item_scores(instance, sol)
        legs = tour_legs(instance, sol.tour)
        for k in sorted(range(instance.nb_items), key=lambda k: scores[k], reverse=True):
            if instance.weight_of(k) > sol.wend:
                continue
            move = evaluate_flip(instance, sol, k, legs)
            if move.ob > sol.ob:
                commit_flip(instance, sol, move, legs)
        return evaluate_solution(instance, sol)


def insert_and_eliminate(instance: Instance, solution: Solution, max_passes: int = 5) -> Solution:
    """
    Sweep items by score and keep every single flip (insertion or removal)
    that strictly improves the objective, until a sweep changes nothing.
    """
    sol = solution.clone()
    legs = tour_legs(instance, sol.tour)
    scores = item_scores(instance, sol)
    order = sorted(range(instance.nb_items), key=lambda k: scores[k], reverse=True)
    for _ in range(max_passes):
        changed = False
        for k in order:
            if sol.picking_plan[k] == 0 and instance.weight_of(k) > sol.wend:
                continue
            move = evaluate_flip(instance, sol, k, legs)
            if move.ob > sol.ob:
                commit_flip(instance, sol, move, legs)
                changed = True
        if not changed:
            break
    return evaluate_solution(instance, sol)


def _objective_from(
    instance: Instance, solution: Solution, tour: Sequence[int], city_weight: Sequence[int], start: int
) -> float:
    # Positions before ``start`` are shared with ``solution.tour``.
    n = len(tour)
    wc = solution.weight_acc[start - 1] if start > 0 else 0
    ft = solution.time_acc[start - 1] if start > 0 else 0.0
    max_speed = instance.max_speed
    coef = instance.speed_coef
    for r in range(start, n):
        wc += city_weight[tour[r] - 1]
        ft += instance.distance(tour[r] - 1, tour[(r + 1) % n] - 1) / (max_speed - wc * coef)
    return solution.fp - ft * instance.rent_rate


def ls2opt(instance: Instance, solution: Solution, max_iter: int = 50) -> Solution:
    """
    First-improvement 2-opt on the tour with the picking plan held fixed.
    City ``tour[0]`` never moves.
    """
    best = solution.clone()
    n = len(best.tour)
    city_weight = [0] * instance.nb_cities
    for k, city in enumerate(best.picking_plan):
        if city:
            city_weight[city - 1] += instance.weight_of(k)
    improved = True
    it = 0
    while improved and it < max_iter:
        improved = False
        it += 1
        for i in range(1, n - 1):
            for j in range(i + 1, n):
                cand = best.tour[:]
                cand[i : j + 1] = reversed(cand[i : j + 1])
                ob = _objective_from(instance, best, cand, city_weight, i)
                if ob > best.ob + 1e-9:
                    best = Solution.from_tour(instance, cand, best.picking_plan)
                    improved = True
    return best
