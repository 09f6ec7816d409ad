import graphviz

from nodeweave.export import build_dot, export_dot
from nodeweave.graph import GraphStore


def make_store():
    store = GraphStore()
    a = store.add_node("Alpha", (100, 200))
    b = store.add_node("Beta")
    store.add_edge(a, b)
    return store


def test_build_dot_returns_undirected_graph():
    dot = build_dot(make_store().snapshot)
    assert isinstance(dot, graphviz.Graph)
    assert "graph nodeweave {" in dot.source


def test_export_contains_nodes_edges_and_positions():
    source = export_dot(make_store().snapshot, canvas_height=800)
    assert 'label=Alpha' in source
    # y is flipped into Graphviz's bottom-up coordinate system
    assert 'pos="100.00,600.00!"' in source
    assert "1 -- 2" in source
    assert "id=e1" in source


def test_live_positions_override_stored_ones():
    source = export_dot(make_store().snapshot, {"2": (50, 50)}, canvas_height=100)
    assert 'pos="50.00,50.00!"' in source


def test_node_without_position_has_no_pos():
    store = GraphStore()
    store.add_node("Loose")
    assert "pos=" not in export_dot(store.snapshot)
