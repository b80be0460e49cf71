import random
import threading

import numpy as np
import pytest

from ttp_cosolver.data import Instance
from ttp_cosolver.solvers.base import Solution


class ScriptedRandom:
    """Replays fixed item choices and uniform draws."""

    def __init__(self, items, draws=()):
        self.items = list(items)
        self.draws = list(draws)

    def randrange(self, n):
        item = self.items.pop(0)
        assert 0 <= item < n
        return item

    def random(self):
        return self.draws.pop(0)


class CountdownEvent(threading.Event):
    """Reports set after ``polls`` calls to ``is_set``."""

    def __init__(self, polls):
        super().__init__()
        self.polls = polls

    def is_set(self):
        self.polls -= 1
        return self.polls < 0


FIVE_CITY_MATRIX = [
    [0, 4, 6, 6, 4],
    [4, 0, 4, 6, 6],
    [6, 4, 0, 4, 6],
    [6, 6, 4, 0, 4],
    [4, 6, 6, 4, 0],
]


@pytest.fixture
def five_city():
    # Items: (profit, weight, city) = (10, 5, 2), (8, 4, 3), (6, 3, 4)
    return Instance(
        name="five-city",
        profits=[10, 8, 6],
        weights=[5, 4, 3],
        availability=[2, 3, 4],
        capacity=10,
        min_speed=1.0,
        max_speed=2.0,
        rent_rate=0.5,
        matrix=FIVE_CITY_MATRIX,
    )


@pytest.fixture
def five_city_empty(five_city):
    return Solution.from_tour(five_city, [1, 2, 3, 4, 5])


@pytest.fixture
def coord_instance():
    rng = np.random.default_rng(11)
    nb_cities = 12
    coords = rng.integers(0, 200, size=(nb_cities, 2))
    nb_items = 22
    weights = rng.integers(1, 40, size=nb_items)
    profits = weights + rng.integers(0, 30, size=nb_items)
    availability = [2 + k % (nb_cities - 1) for k in range(nb_items)]
    return Instance(
        name="coords-12",
        profits=profits,
        weights=weights,
        availability=availability,
        capacity=int(weights.sum() // 2),
        min_speed=0.1,
        max_speed=1.0,
        rent_rate=0.3,
        coords=coords,
    )


@pytest.fixture
def rng():
    return random.Random(2024)
