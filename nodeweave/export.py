"""
Graphviz DOT export for NodeWeave.

Produces an undirected DOT source with every node pinned at its current
layout position, so `neato -n` reproduces what the editor shows. Only the
`graphviz` Python package is needed to build the source; rendering it is
left to the Graphviz binaries.
"""

from typing import Dict, Optional, Tuple

from graphviz import Graph

from nodeweave.graph import GraphSnapshot

DEFAULT_DOT_FILENAME = "graph.dot"


def build_dot(snapshot: GraphSnapshot,
              positions: Optional[Dict[str, Tuple[float, float]]] = None,
              canvas_height: float = 800.0) -> Graph:
    dot = Graph(name="nodeweave", comment="NodeWeave export")
    dot.attr("node", shape="circle")

    for node in snapshot.nodes:
        attrs = {"label": node.name}
        position = (positions or {}).get(node.id) or node.position
        if position is not None:
            x, y = position
            attrs["pos"] = f"{x:.2f},{canvas_height - y:.2f}!"
        dot.node(node.id, **attrs)

    for edge in snapshot.edges:
        dot.edge(edge.source_id, edge.target_id, id=edge.id)

    return dot


def export_dot(snapshot: GraphSnapshot,
               positions: Optional[Dict[str, Tuple[float, float]]] = None,
               canvas_height: float = 800.0) -> str:
    """Return DOT source text for the snapshot."""
    return build_dot(snapshot, positions, canvas_height).source
