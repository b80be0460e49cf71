from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import networkx as nx
import numpy as np
import tsplib95
from tsplib95 import distances


HEADER_KEYS = {
    "PROBLEM NAME": "name",
    "KNAPSACK DATA TYPE": "knapsack_type",
    "DIMENSION": "dimension",
    "NUMBER OF ITEMS": "nb_items",
    "CAPACITY OF KNAPSACK": "capacity",
    "MIN SPEED": "min_speed",
    "MAX SPEED": "max_speed",
    "RENTING RATIO": "rent_rate",
    "EDGE_WEIGHT_TYPE": "edge_weight_type",
}
REQUIRED_KEYS = ("dimension", "nb_items", "capacity", "min_speed", "max_speed", "rent_rate")


@dataclass
class Instance:
    """
    A Travelling Thief instance. Cities are 0-based for ``distance`` and
    1-based everywhere else (tours, availability, picking plans).
    """

    name: str
    profits: np.ndarray
    weights: np.ndarray
    availability: np.ndarray
    capacity: int
    min_speed: float
    max_speed: float
    rent_rate: float
    coords: Optional[np.ndarray] = None
    matrix: Optional[np.ndarray] = None
    edge_weight_type: str = "CEIL_2D"
    knapsack_type: str = ""
    path: Optional[Path] = None

    def __post_init__(self):
        self.profits = np.asarray(self.profits, dtype=np.int64)
        self.weights = np.asarray(self.weights, dtype=np.int64)
        self.availability = np.asarray(self.availability, dtype=np.int64)
        if self.matrix is not None:
            self.matrix = np.asarray(self.matrix, dtype=float)
            if self.matrix.ndim != 2 or self.matrix.shape[0] != self.matrix.shape[1]:
                raise ValueError("Distance matrix must be square.")
            self._metric = None
        elif self.coords is not None:
            self.coords = np.asarray(self.coords, dtype=float)
            if self.edge_weight_type not in distances.TYPES:
                raise ValueError(f"Unsupported edge weight type: {self.edge_weight_type}")
            self._metric = distances.TYPES[self.edge_weight_type]
        else:
            raise ValueError("Instance needs either node coordinates or a distance matrix.")
        if not (len(self.profits) == len(self.weights) == len(self.availability)):
            raise ValueError("Item arrays must have the same length.")
        if self.capacity <= 0:
            raise ValueError("Knapsack capacity must be positive.")
        if not 0 < self.min_speed < self.max_speed:
            raise ValueError("Speeds must satisfy 0 < min_speed < max_speed.")
        if len(self.availability) and (
            self.availability.min() < 1 or self.availability.max() > self.nb_cities
        ):
            raise ValueError("Item availability must reference a city in 1..nb_cities.")
        # Plain ints keep the weight accumulation exact.
        self._profit_list = self.profits.tolist()
        self._weight_list = self.weights.tolist()
        self._avail_list = self.availability.tolist()

    @property
    def nb_cities(self) -> int:
        if self.matrix is not None:
            return self.matrix.shape[0]
        return self.coords.shape[0]

    @property
    def nb_items(self) -> int:
        return len(self._weight_list)

    @property
    def speed_coef(self) -> float:
        return (self.max_speed - self.min_speed) / self.capacity

    def distance(self, a: int, b: int) -> float:
        if self._metric is None:
            return float(self.matrix[a, b])
        return float(self._metric(tuple(self.coords[a]), tuple(self.coords[b])))

    def weight_of(self, item: int) -> int:
        return self._weight_list[item]

    def profit_of(self, item: int) -> int:
        return self._profit_list[item]

    def availability_of(self, item: int) -> int:
        return self._avail_list[item]

    def graph(self) -> nx.Graph:
        n = self.nb_cities
        graph = nx.Graph()
        graph.add_nodes_from(range(1, n + 1))
        for a in range(n):
            for b in range(a + 1, n):
                graph.add_edge(a + 1, b + 1, weight=self.distance(a, b))
        return graph


def _split_sections(text: str) -> Tuple[Dict[str, str], List[str], List[List[str]]]:
    header: Dict[str, str] = {}
    nodes: List[str] = []
    items: List[List[str]] = []
    section = "header"
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        upper = line.upper()
        if upper.startswith("NODE_COORD_SECTION"):
            section = "nodes"
            continue
        if upper.startswith("ITEMS SECTION"):
            section = "items"
            continue
        if upper.startswith("EOF"):
            break
        if section == "header":
            key, _, value = line.partition(":")
            field_name = HEADER_KEYS.get(key.strip().upper())
            if field_name:
                header[field_name] = value.strip()
        elif section == "nodes":
            nodes.append(line)
        else:
            items.append(line.split())
    return header, nodes, items


def parse_instance(text: str, path: Optional[Path] = None) -> Instance:
    header, node_lines, item_rows = _split_sections(text)
    missing = [k for k in REQUIRED_KEYS if k not in header]
    if missing:
        raise ValueError(f"TTP header is missing: {', '.join(missing)}")
    name = header.get("name") or (path.stem if path else "unnamed")
    edge_weight_type = header.get("edge_weight_type", "CEIL_2D").upper()
    dimension = int(header["dimension"])
    # The node section is plain TSPLIB; only the knapsack part needs custom parsing.
    # tsplib95 only recognises EOF as a terminator when it ends a line.
    tsp_text = "\n".join(
        [
            f"NAME: {name}",
            "TYPE: TSP",
            f"DIMENSION: {dimension}",
            f"EDGE_WEIGHT_TYPE: {edge_weight_type}",
            "NODE_COORD_SECTION",
            *node_lines,
            "EOF",
        ]
    ) + "\n"
    problem = tsplib95.parse(tsp_text)
    node_ids = sorted(problem.node_coords)
    if len(node_ids) != dimension:
        raise ValueError(f"Expected {dimension} nodes, found {len(node_ids)}.")
    coords = np.array([problem.node_coords[i] for i in node_ids], dtype=float)

    nb_items = int(header["nb_items"])
    if len(item_rows) != nb_items:
        raise ValueError(f"Expected {nb_items} items, found {len(item_rows)}.")
    profits = [int(row[1]) for row in item_rows]
    weights = [int(row[2]) for row in item_rows]
    availability = [int(row[3]) for row in item_rows]
    return Instance(
        name=name,
        profits=profits,
        weights=weights,
        availability=availability,
        capacity=int(float(header["capacity"])),
        min_speed=float(header["min_speed"]),
        max_speed=float(header["max_speed"]),
        rent_rate=float(header["rent_rate"]),
        coords=coords,
        edge_weight_type=edge_weight_type,
        knapsack_type=header.get("knapsack_type", ""),
        path=path,
    )


def _read_nb_items(path: Path) -> Optional[int]:
    with path.open("r") as f:
        for line in f:
            if line.upper().startswith("NUMBER OF ITEMS"):
                _, _, value = line.partition(":")
                value = value.strip()
                return int(value) if value.isdigit() else None
            if line.upper().startswith("NODE_COORD_SECTION"):
                return None
    return None


def load_instance(path: Path) -> Instance:
    path = Path(path)
    return parse_instance(path.read_text(), path=path)


def load_ttp_instances(
    root: Path, max_items: Optional[int] = None, max_instances: Optional[int] = None
) -> List[Instance]:
    ttp_files = sorted(Path(root).glob("*.ttp"))
    instances: List[Instance] = []
    for p in ttp_files:
        if max_items is not None:
            count = _read_nb_items(p)
            if count is not None and count > max_items:
                continue
        instances.append(load_instance(p))
        if max_instances is not None and len(instances) >= max_instances:
            break
    return instances
