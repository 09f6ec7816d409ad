"""
Hit detection for pointer events on the canvas.

Resolves a pointer position against the last render frame. Nodes are drawn
above edges, so a node hit wins over an edge hit; anything else is the empty
canvas.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from nodeweave.edit.constants import EDGE_HOVER_TOLERANCE, NODE_CLICK_RADIUS
from nodeweave.view import Frame

HIT_NODE = 'node'
HIT_EDGE = 'edge'
HIT_CANVAS = 'canvas'

Point = Tuple[float, float]


@dataclass(frozen=True)
class Hit:
    kind: str
    target_id: Optional[str] = None


def point_to_line_distance(point: Point, line_start: Point, line_end: Point) -> Tuple[float, float]:
    """Distance from point to the segment, and the segment parameter t in [0, 1] of the closest point."""
    px, py = point
    x1, y1 = line_start
    x2, y2 = line_end
    dx, dy = x2 - x1, y2 - y1

    if dx == 0 and dy == 0:
        return math.hypot(px - x1, py - y1), 0.0

    t = max(0.0, min(1.0, ((px - x1) * dx + (py - y1) * dy) / (dx * dx + dy * dy)))
    closest_x, closest_y = x1 + t * dx, y1 + t * dy
    return math.hypot(px - closest_x, py - closest_y), t


def find_node_at(frame: Frame, point: Point, radius: float = NODE_CLICK_RADIUS) -> Optional[str]:
    closest = None
    closest_dist = float('inf')

    for node in frame['nodes']:
        dist = math.hypot(point[0] - node['x'], point[1] - node['y'])
        if dist <= radius and dist < closest_dist:
            closest_dist = dist
            closest = node['id']
    return closest


def find_edge_at(frame: Frame, point: Point, tolerance: float = EDGE_HOVER_TOLERANCE) -> Optional[str]:
    closest = None
    closest_dist = float('inf')

    for edge in frame['edges']:
        dist, _ = point_to_line_distance(point, (edge['x1'], edge['y1']), (edge['x2'], edge['y2']))
        if dist <= tolerance and dist < closest_dist:
            closest_dist = dist
            closest = edge['id']
    return closest


def hit_test(frame: Frame, point: Point) -> Hit:
    node_id = find_node_at(frame, point)
    if node_id is not None:
        return Hit(HIT_NODE, node_id)
    edge_id = find_edge_at(frame, point)
    if edge_id is not None:
        return Hit(HIT_EDGE, edge_id)
    return Hit(HIT_CANVAS)
