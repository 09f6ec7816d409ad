"""
Edit Actions Module

Executes graph mutations on behalf of the InteractionController. Each method
is a thin, logged wrapper around one GraphStore operation, plus the
drag-release proximity heuristic.
"""

import logging
import math
from typing import Dict, Optional, Tuple

from nodeweave.edit.constants import CONNECTION_RADIUS, NEW_NODE_LABEL
from nodeweave.graph import GraphStore

logger = logging.getLogger(__name__)


class EditActions:
    """
    Handles execution of editing actions against a GraphStore.
    """

    def __init__(self, store: GraphStore):
        self.store = store

    def create_node(self, position: Tuple[float, float]) -> str:
        """
        Create a node at the pointer position with a generated label.

        The label uses the current node count, so it can repeat after
        deletions; names are cosmetic and never used as identity.
        """
        label = NEW_NODE_LABEL.format(n=self.store.snapshot.node_count + 1)
        return self.store.add_node(label, position)

    def rename_node(self, node_id: str, new_name: str) -> bool:
        return self.store.rename_node(node_id, new_name)

    def delete_node(self, node_id: str) -> bool:
        """Delete a node and all edges touching it."""
        return self.store.remove_node(node_id)

    def delete_edge(self, edge_id: str) -> bool:
        return self.store.remove_edge(edge_id)

    def connect_nearest(self, node_id: str, positions: Dict[str, Tuple[float, float]],
                        threshold: float = CONNECTION_RADIUS) -> Optional[str]:
        """
        Connect node_id to its single nearest neighbour if that neighbour is
        closer than `threshold` and not already connected.

        Returns the new edge id, or None when nothing was created.
        """
        snapshot = self.store.snapshot
        origin = positions.get(node_id)
        if origin is None or not snapshot.has_node(node_id):
            return None

        nearest = None
        nearest_dist = float('inf')
        for other_id, (x, y) in positions.items():
            if other_id == node_id or not snapshot.has_node(other_id):
                continue
            dist = math.hypot(x - origin[0], y - origin[1])
            if dist < nearest_dist:
                nearest_dist = dist
                nearest = other_id

        if nearest is None or nearest_dist >= threshold:
            return None
        if snapshot.edge_between(node_id, nearest) is not None:
            logger.debug(f"Drop of {node_id} near {nearest}: already connected")
            return None

        edge_id = self.store.add_edge(node_id, nearest)
        if edge_id:
            logger.info(f"Connected {node_id} to nearest node {nearest} ({nearest_dist:.1f}px)")
        return edge_id
