import pytest

from nodeweave.edit.hit_test import (
    HIT_CANVAS,
    HIT_EDGE,
    HIT_NODE,
    Hit,
    find_edge_at,
    find_node_at,
    hit_test,
    point_to_line_distance,
)


@pytest.fixture
def frame():
    return {
        'nodes': [
            {'id': '1', 'x': 100, 'y': 100, 'name': 'A', 'selected': False},
            {'id': '2', 'x': 400, 'y': 100, 'name': 'B', 'selected': False},
        ],
        'edges': [
            {'id': 'e1', 'x1': 100, 'y1': 100, 'x2': 400, 'y2': 100, 'selected': False},
        ],
    }


def test_point_to_line_distance_middle():
    dist, t = point_to_line_distance((5, 5), (0, 0), (10, 10))
    assert abs(t - 0.5) < 0.01
    assert dist < 0.1


def test_point_to_line_distance_past_end():
    dist, t = point_to_line_distance((20, 0), (0, 0), (10, 0))
    assert t == 1.0
    assert dist == pytest.approx(10)


def test_point_to_degenerate_segment():
    dist, t = point_to_line_distance((3, 4), (0, 0), (0, 0))
    assert (dist, t) == (5.0, 0.0)


def test_node_hit_within_radius(frame):
    assert find_node_at(frame, (130, 100)) == '1'
    assert find_node_at(frame, (141, 100)) is None


def test_closest_node_wins():
    frame = {'nodes': [
        {'id': 'a', 'x': 0, 'y': 0},
        {'id': 'b', 'x': 30, 'y': 0},
    ], 'edges': []}
    assert find_node_at(frame, (20, 0)) == 'b'


def test_edge_hit_within_tolerance(frame):
    assert find_edge_at(frame, (250, 106)) == 'e1'
    assert find_edge_at(frame, (250, 120)) is None


def test_node_wins_over_edge(frame):
    assert hit_test(frame, (120, 100)) == Hit(HIT_NODE, '1')


def test_edge_between_nodes(frame):
    assert hit_test(frame, (250, 100)) == Hit(HIT_EDGE, 'e1')


def test_empty_canvas(frame):
    assert hit_test(frame, (250, 400)) == Hit(HIT_CANVAS)
    assert hit_test({'nodes': [], 'edges': []}, (0, 0)).kind == HIT_CANVAS
