"""
ECharts options builder for NodeWeave.

Turns a render frame (see view.py) into ECharts options for ui.echart. The
graph series sits on a hidden cartesian grid whose axes span exactly the
canvas, so simulation coordinates map 1:1 to pixel offsets and the pointer
coordinates reported by the browser can be fed straight back to the
controller.
"""

from typing import Any, Dict, Optional, Tuple

from nodeweave.view import Frame

NODE_RADIUS = 40

_BACKGROUND_COLOR = '#fafafa'
_NODE_FILL = '#f5f5f5'
_NODE_BORDER = '#4CAF50'
_SELECTED_COLOR = '#ff9800'
_EDGE_COLOR = '#9e9e9e'
_LABEL_COLOR = '#333333'

# Mouse event keys requested from the browser for every chart event
POINTER_EVENT_KEYS = ['offsetX', 'offsetY']


def build_echart_options(frame: Frame, width: float, height: float) -> Dict[str, Any]:
    """
    Build ECharts options from a render frame.

    Args:
        frame: Frame dict with 'nodes' and 'edges' lists
        width: Canvas width in pixels
        height: Canvas height in pixels

    Returns:
        ECharts options dict ready for ui.echart()
    """
    e_nodes = []
    for n in frame['nodes']:
        selected = n['selected']
        e_nodes.append({
            'name': n['id'],
            'value': [n['x'], n['y']],
            'symbol': 'circle',
            'symbolSize': NODE_RADIUS * 2,
            'itemStyle': {
                'color': _NODE_FILL,
                'borderColor': _SELECTED_COLOR if selected else _NODE_BORDER,
                'borderWidth': 4 if selected else 2,
                'shadowBlur': 6,
                'shadowColor': _NODE_BORDER,
            },
            'label': {
                'show': True,
                'formatter': n['name'],
                'position': 'inside',
                'fontSize': 14,
                'color': _LABEL_COLOR,
            },
        })

    e_links = []
    for e in frame['edges']:
        selected = e['selected']
        e_links.append({
            # The frame already resolved endpoints; coords keep links in sync
            # with nodes even while ECharts animates.
            'edge_id': e['id'],
            'coords': [[e['x1'], e['y1']], [e['x2'], e['y2']]],
            'lineStyle': {
                'color': _SELECTED_COLOR if selected else _EDGE_COLOR,
                'width': 4 if selected else 2,
                'opacity': 1.0,
            },
        })

    axis = {'show': False, 'type': 'value', 'min': 0}
    return {
        'backgroundColor': _BACKGROUND_COLOR,
        'animation': False,
        'grid': {'left': 0, 'right': 0, 'top': 0, 'bottom': 0},
        'xAxis': {**axis, 'max': width},
        'yAxis': {**axis, 'max': height, 'inverse': True},
        'series': [
            {
                'type': 'lines',
                'coordinateSystem': 'cartesian2d',
                'silent': True,
                'z': 1,
                'data': e_links,
            },
            {
                'type': 'graph',
                'layout': 'none',
                'coordinateSystem': 'cartesian2d',
                'roam': False,
                'silent': True,
                'z': 2,
                'data': e_nodes,
                'links': [],
            },
        ],
    }


def pointer_from_event(raw_payload: Any) -> Optional[Tuple[float, float]]:
    """Normalize NiceGUI mouse event arguments into canvas coordinates."""
    raw = raw_payload.args if hasattr(raw_payload, 'args') else raw_payload

    if isinstance(raw, dict):
        x = raw.get('offsetX', raw.get('x'))
        y = raw.get('offsetY', raw.get('y'))
    elif isinstance(raw, (list, tuple)) and len(raw) >= 2:
        x, y = raw[0], raw[1]
    else:
        return None

    if not isinstance(x, (int, float)) or not isinstance(y, (int, float)):
        return None
    return (float(x), float(y))
