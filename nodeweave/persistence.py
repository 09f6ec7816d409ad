"""
Graph document codec for NodeWeave.

Document format (JSON):
{
  "nodes": [{"id": "1", "name": "Node 1", "x": 412.5, "y": 300.0}, ...],
  "edges": [{"id": "e1", "sourceId": "1", "targetId": "2"}, ...]
}

x/y are optional. Edges are written from their stored ids only; resolved
endpoint objects never reach the document.

This module exposes:
- save_document(snapshot, positions=None) -> str
- load_document(text) -> (nodes, edges)
- load_into(store, text) -> GraphSnapshot
- save_to_file(path, snapshot, positions=None) -> Path
- load_from_file(path) -> (nodes, edges)
"""

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from nodeweave.errors import ParseError
from nodeweave.graph import Edge, GraphSnapshot, GraphStore, Node

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "graph.json"

Positions = Dict[str, Tuple[float, float]]


def _node_entry(node: Node, positions: Optional[Positions]) -> Dict[str, Any]:
    entry: Dict[str, Any] = {"id": node.id, "name": node.name}
    position = positions.get(node.id) if positions else None
    if position is None:
        position = node.position
    if position is not None:
        entry["x"] = round(float(position[0]), 3)
        entry["y"] = round(float(position[1]), 3)
    return entry


def save_document(snapshot: GraphSnapshot, positions: Optional[Positions] = None) -> str:
    """
    Serialize a snapshot to an indented JSON document.

    `positions` (usually the live simulation positions) takes precedence over
    the x/y stored on each node.
    """
    document = {
        "nodes": [_node_entry(node, positions) for node in snapshot.nodes],
        "edges": [
            {"id": edge.id, "sourceId": edge.source_id, "targetId": edge.target_id}
            for edge in snapshot.edges
        ],
    }
    return json.dumps(document, indent=2, ensure_ascii=False)


def _require_str(entry: Dict[str, Any], key: str, where: str) -> str:
    value = entry.get(key)
    if not isinstance(value, str):
        raise ParseError(f"{where}: '{key}' must be a string")
    return value


def _optional_coord(entry: Dict[str, Any], key: str, where: str) -> Optional[float]:
    value = entry.get(key)
    if value is None:
        return None
    # bool is an int subclass; true/false are not coordinates
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(f"{where}: '{key}' must be a finite number")
    try:
        coord = float(value)
    except OverflowError as e:
        raise ParseError(f"{where}: '{key}' is out of range") from e
    if not math.isfinite(coord):
        raise ParseError(f"{where}: '{key}' must be a finite number")
    return coord


def _parse_nodes(raw_nodes: List[Any]) -> List[Node]:
    nodes = []
    seen = set()
    for i, entry in enumerate(raw_nodes):
        where = f"nodes[{i}]"
        if not isinstance(entry, dict):
            raise ParseError(f"{where}: expected an object")
        node_id = _require_str(entry, "id", where)
        if node_id in seen:
            raise ParseError(f"{where}: duplicate node id {node_id!r}")
        seen.add(node_id)
        x = _optional_coord(entry, "x", where)
        y = _optional_coord(entry, "y", where)
        if (x is None) != (y is None):
            x = y = None
        nodes.append(Node(id=node_id, name=_require_str(entry, "name", where), x=x, y=y))
    return nodes


def _parse_edges(raw_edges: List[Any], node_ids: set) -> List[Edge]:
    edges = []
    for i, entry in enumerate(raw_edges):
        where = f"edges[{i}]"
        if not isinstance(entry, dict):
            raise ParseError(f"{where}: expected an object")
        edge = Edge(
            id=_require_str(entry, "id", where),
            source_id=_require_str(entry, "sourceId", where),
            target_id=_require_str(entry, "targetId", where),
        )
        if edge.source_id not in node_ids or edge.target_id not in node_ids:
            logger.warning(f"Dropping edge {edge.id}: endpoint not in document")
            continue
        edges.append(edge)
    return edges


def load_document(text: Union[str, bytes]) -> Tuple[List[Node], List[Edge]]:
    """
    Parse a graph document.

    Raises ParseError when the text is not JSON or does not have the
    expected shape. Edges whose endpoints are missing are dropped, the rest
    of the document is kept.
    """
    try:
        data = json.loads(text)
    except ValueError as e:
        # JSONDecodeError, UnicodeDecodeError and oversized integer literals
        raise ParseError(f"Invalid JSON: {e}") from e
    except RecursionError as e:
        raise ParseError("Invalid JSON: nested too deeply") from e

    if not isinstance(data, dict):
        raise ParseError("Document root must be an object")
    raw_nodes = data.get("nodes", [])
    raw_edges = data.get("edges", [])
    if not isinstance(raw_nodes, list):
        raise ParseError("'nodes' must be a list")
    if not isinstance(raw_edges, list):
        raise ParseError("'edges' must be a list")

    nodes = _parse_nodes(raw_nodes)
    edges = _parse_edges(raw_edges, {node.id for node in nodes})
    return nodes, edges


def load_into(store: GraphStore, text: Union[str, bytes]) -> GraphSnapshot:
    """Parse a document and replace the store content. The store is untouched on ParseError."""
    nodes, edges = load_document(text)
    return store.replace(nodes, edges)


def save_to_file(path: Union[str, Path], snapshot: GraphSnapshot,
                 positions: Optional[Positions] = None) -> Path:
    path = Path(path)
    if path.is_dir():
        path = path / DEFAULT_FILENAME
    path.write_text(save_document(snapshot, positions), encoding="utf-8")
    logger.info(f"Saved graph to {path}")
    return path


def load_from_file(path: Union[str, Path]) -> Tuple[List[Node], List[Edge]]:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ParseError(f"Could not read {path}: {e}") from e
    return load_document(text)
