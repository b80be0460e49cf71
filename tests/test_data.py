import numpy as np
import pytest

from ttp_cosolver.data import Instance, load_instance, load_ttp_instances, parse_instance
from ttp_cosolver.solvers.base import Solution


TINY_TTP = """PROBLEM NAME: \ttiny-TTP
KNAPSACK DATA TYPE: bounded strongly corr
DIMENSION:\t4
NUMBER OF ITEMS: \t3
CAPACITY OF KNAPSACK: \t10
MIN SPEED: \t0.1
MAX SPEED: \t1
RENTING RATIO: \t0.5
EDGE_WEIGHT_TYPE:\tCEIL_2D
NODE_COORD_SECTION\t(INDEX, X, Y): 
1\t0\t0
2\t3\t4
3\t3\t0
4\t1\t1
ITEMS SECTION\t(INDEX, PROFIT, WEIGHT, ASSIGNED NODE NUMBER): 
1\t20\t4\t2
2\t15\t3\t3
3\t9\t5\t4
"""


def write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text)
    return path


def test_parse_header_and_items():
    inst = parse_instance(TINY_TTP)
    assert inst.name == "tiny-TTP"
    assert inst.knapsack_type == "bounded strongly corr"
    assert inst.nb_cities == 4
    assert inst.nb_items == 3
    assert inst.capacity == 10
    assert inst.min_speed == 0.1
    assert inst.max_speed == 1.0
    assert inst.rent_rate == 0.5
    assert [inst.profit_of(k) for k in range(3)] == [20, 15, 9]
    assert [inst.weight_of(k) for k in range(3)] == [4, 3, 5]
    assert [inst.availability_of(k) for k in range(3)] == [2, 3, 4]
    assert inst.speed_coef == pytest.approx(0.09)


def test_ceil_2d_distances():
    inst = parse_instance(TINY_TTP)
    assert inst.distance(0, 1) == 5
    assert inst.distance(1, 2) == 4
    assert inst.distance(0, 3) == 2  # ceil(sqrt(2))
    assert inst.distance(2, 0) == inst.distance(0, 2) == 3


def test_graph_view():
    graph = parse_instance(TINY_TTP).graph()
    assert sorted(graph.nodes()) == [1, 2, 3, 4]
    assert graph.number_of_edges() == 6
    assert graph[1][2]["weight"] == 5


def test_load_instance_from_file(tmp_path):
    path = write(tmp_path, "tiny.ttp", TINY_TTP)
    inst = load_instance(path)
    assert inst.path == path
    assert inst.nb_items == 3


def test_load_ttp_instances_filters_by_items(tmp_path):
    write(tmp_path, "a.ttp", TINY_TTP)
    write(tmp_path, "b.ttp", TINY_TTP.replace("tiny-TTP", "other-TTP"))
    write(tmp_path, "notes.txt", "ignored")
    assert [i.name for i in load_ttp_instances(tmp_path)] == ["tiny-TTP", "other-TTP"]
    assert load_ttp_instances(tmp_path, max_items=2) == []
    assert len(load_ttp_instances(tmp_path, max_instances=1)) == 1


def test_trailing_eof_without_newline(tmp_path):
    path = write(tmp_path, "eof.ttp", TINY_TTP + "EOF")
    inst = load_instance(path)
    assert inst.nb_cities == 4
    assert [inst.profit_of(k) for k in range(3)] == [20, 15, 9]


def test_items_section_runs_to_end_of_file(tmp_path):
    path = write(tmp_path, "bare.ttp", TINY_TTP.rstrip("\n"))
    inst = load_instance(path)
    assert inst.nb_items == 3
    assert inst.availability_of(2) == 4


def test_loaded_file_objective(tmp_path):
    inst = load_instance(write(tmp_path, "tiny.ttp", TINY_TTP))
    # Item 1 (weight 4) picked at city 2; speed after it is 1 - 4 * 0.09 = 0.64.
    sol = Solution.from_tour(inst, [1, 2, 3, 4], [2, 0, 0])
    assert sol.ft == pytest.approx(5 + (4 + 3 + 2) / 0.64)
    assert sol.ob == pytest.approx(20 - 0.5 * 19.0625)
    assert sol.wend == 6


def test_missing_header_key_raises():
    text = TINY_TTP.replace("RENTING RATIO: \t0.5\n", "")
    with pytest.raises(ValueError, match="rent_rate"):
        parse_instance(text)


def test_item_count_mismatch_raises():
    text = TINY_TTP.replace("NUMBER OF ITEMS: \t3", "NUMBER OF ITEMS: \t4")
    with pytest.raises(ValueError, match="items"):
        parse_instance(text)


@pytest.mark.parametrize(
    "overrides",
    [
        {"capacity": 0},
        {"min_speed": 1.0, "max_speed": 1.0},
        {"availability": [1, 9]},
        {"weights": [1]},
        {"matrix": None},
        {"matrix": [[0, 1, 2]]},
    ],
)
def test_invalid_instance_raises(overrides):
    fields = dict(
        name="bad",
        profits=[1, 2],
        weights=[1, 2],
        availability=[2, 3],
        capacity=5,
        min_speed=0.1,
        max_speed=1.0,
        rent_rate=1.0,
        matrix=np.ones((3, 3)) - np.eye(3),
    )
    fields.update(overrides)
    with pytest.raises(ValueError):
        Instance(**fields)
