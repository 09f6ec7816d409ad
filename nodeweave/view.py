"""
Render frames for NodeWeave.

A frame is the payload handed to the renderer on every tick:
{
  'nodes': [{'id', 'x', 'y', 'name', 'selected'}, ...],
  'edges': [{'id', 'x1', 'y1', 'x2', 'y2', 'selected'}, ...]
}

Edges are resolved against the snapshot at build time; a node without a known
position is left out together with its edges.
"""

from typing import Any, Dict, List, Optional, Tuple

from nodeweave.graph import GraphSnapshot

Frame = Dict[str, List[Dict[str, Any]]]


def build_render_frame(
    snapshot: GraphSnapshot,
    positions: Dict[str, Tuple[float, float]],
    selected_node_id: Optional[str] = None,
    selected_edge_id: Optional[str] = None,
) -> Frame:
    placed: Dict[str, Tuple[float, float]] = {}
    nodes = []
    for node in snapshot.nodes:
        position = positions.get(node.id) or node.position
        if position is None:
            continue
        placed[node.id] = position
        nodes.append({
            'id': node.id,
            'x': position[0],
            'y': position[1],
            'name': node.name,
            'selected': node.id == selected_node_id,
        })

    edges = []
    for resolved in snapshot.resolved_edges():
        edge = resolved.edge
        if edge.source_id not in placed or edge.target_id not in placed:
            continue
        x1, y1 = placed[edge.source_id]
        x2, y2 = placed[edge.target_id]
        edges.append({
            'id': edge.id,
            'x1': x1, 'y1': y1,
            'x2': x2, 'y2': y2,
            'selected': edge.id == selected_edge_id,
        })

    return {'nodes': nodes, 'edges': edges}
