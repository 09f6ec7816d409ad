"""
Tests for render frames, ECharts options and pointer payload parsing.
"""

from types import SimpleNamespace

import pytest

from nodeweave.chart_builder import NODE_RADIUS, build_echart_options, pointer_from_event
from nodeweave.graph import GraphStore
from nodeweave.view import build_render_frame


@pytest.fixture
def store():
    store = GraphStore()
    a = store.add_node("A", (100, 100))
    b = store.add_node("B", (300, 100))
    store.add_node("Floating")
    store.add_edge(a, b)
    return store


class TestRenderFrame:

    def test_frame_uses_live_positions(self, store):
        frame = build_render_frame(store.snapshot, {"1": (110, 120)})
        nodes = {n['id']: n for n in frame['nodes']}
        assert (nodes['1']['x'], nodes['1']['y']) == (110, 120)
        # Falls back to the stored position
        assert (nodes['2']['x'], nodes['2']['y']) == (300.0, 100.0)

    def test_unplaced_nodes_are_skipped(self, store):
        frame = build_render_frame(store.snapshot, {})
        assert [n['id'] for n in frame['nodes']] == ['1', '2']

    def test_edges_carry_endpoint_coordinates(self, store):
        frame = build_render_frame(store.snapshot, {"1": (110, 120)})
        assert frame['edges'] == [{
            'id': 'e1',
            'x1': 110, 'y1': 120,
            'x2': 300.0, 'y2': 100.0,
            'selected': False,
        }]

    def test_selection_flags(self, store):
        frame = build_render_frame(store.snapshot, {}, selected_node_id='2', selected_edge_id='e1')
        assert [n['selected'] for n in frame['nodes']] == [False, True]
        assert frame['edges'][0]['selected'] is True

    def test_edge_to_unplaced_node_is_skipped(self, store):
        store.add_edge('1', '3')
        frame = build_render_frame(store.snapshot, {})
        assert [e['id'] for e in frame['edges']] == ['e1']


class TestEchartOptions:

    def test_axes_span_canvas(self, store):
        options = build_echart_options(build_render_frame(store.snapshot, {}), 1200, 800)
        assert options['xAxis']['max'] == 1200
        assert options['yAxis']['max'] == 800
        assert options['yAxis']['inverse'] is True
        assert options['animation'] is False

    def test_series_content(self, store):
        frame = build_render_frame(store.snapshot, {}, selected_node_id='1')
        lines, graph = build_echart_options(frame, 1200, 800)['series']

        assert lines['type'] == 'lines'
        assert lines['data'][0]['coords'] == [[100.0, 100.0], [300.0, 100.0]]
        assert lines['data'][0]['edge_id'] == 'e1'

        assert graph['type'] == 'graph'
        assert graph['layout'] == 'none'
        first = graph['data'][0]
        assert first['name'] == '1'
        assert first['value'] == [100.0, 100.0]
        assert first['symbolSize'] == NODE_RADIUS * 2
        assert first['label']['formatter'] == 'A'
        assert first['itemStyle']['borderWidth'] > graph['data'][1]['itemStyle']['borderWidth']

    def test_empty_frame(self):
        options = build_echart_options({'nodes': [], 'edges': []}, 400, 300)
        assert [s['data'] for s in options['series']] == [[], []]


class TestPointerFromEvent:

    def test_dict_with_offsets(self):
        assert pointer_from_event({'offsetX': 10, 'offsetY': 20.5}) == (10.0, 20.5)

    def test_event_object_args(self):
        event = SimpleNamespace(args={'offsetX': 3, 'offsetY': 4})
        assert pointer_from_event(event) == (3.0, 4.0)

    def test_plain_xy_and_list(self):
        assert pointer_from_event({'x': 1, 'y': 2}) == (1.0, 2.0)
        assert pointer_from_event([5, 6]) == (5.0, 6.0)

    @pytest.mark.parametrize("raw", [None, 'click', {}, {'offsetX': 'a', 'offsetY': 1}, [1]])
    def test_invalid_payloads(self, raw):
        assert pointer_from_event(raw) is None
