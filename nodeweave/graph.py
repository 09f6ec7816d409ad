"""
Graph store for NodeWeave.

Nodes live in an id-keyed arena and edges only carry endpoint ids. Every
mutation builds a new immutable GraphSnapshot and swaps it in atomically, so a
simulation tick or a renderer never sees a half-applied change. Operations
that turn out to be no-ops keep the current snapshot object, which lets
consumers skip work with a plain `is` comparison.

An undirected networkx index (frozen) backs the unordered-pair uniqueness
check and incidence lookups.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Callable, Container, Dict, Iterable, List, Mapping, Optional, Tuple

import networkx as nx

from nodeweave.errors import DanglingReferenceError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Node:
    """A graph vertex. x/y is the initial position handed to the simulation."""
    id: str
    name: str
    x: Optional[float] = None
    y: Optional[float] = None

    @property
    def position(self) -> Optional[Tuple[float, float]]:
        if self.x is None or self.y is None:
            return None
        return (self.x, self.y)


@dataclass(frozen=True)
class Edge:
    """Connection between two distinct nodes, stored by id only."""
    id: str
    source_id: str
    target_id: str

    def touches(self, node_id: str) -> bool:
        return self.source_id == node_id or self.target_id == node_id


@dataclass(frozen=True)
class ResolvedEdge:
    """Read-time pairing of an edge with its endpoint nodes. Never stored."""
    edge: Edge
    source: Node
    target: Node


class GraphChange(Enum):
    NODE_ADDED = 'node_added'
    NODE_RENAMED = 'node_renamed'
    NODE_REMOVED = 'node_removed'
    EDGE_ADDED = 'edge_added'
    EDGE_REMOVED = 'edge_removed'
    REPLACED = 'replaced'

    @property
    def is_structural(self) -> bool:
        """True when the node or edge set changed and the layout must reheat."""
        return self is not GraphChange.NODE_RENAMED


class IdGenerator:
    """
    Monotonic counter ids, skipped forward past anything already taken.

    Ids handed out are never handed out again by the same generator, even if
    the entity they named has since been deleted.
    """

    def __init__(self, prefix: str = ""):
        self._prefix = prefix
        self._counter = 0

    def next_id(self, taken: Container[str]) -> str:
        while True:
            self._counter += 1
            candidate = f"{self._prefix}{self._counter}"
            if candidate not in taken:
                return candidate


class GraphSnapshot:
    """
    Immutable node/edge collections.

    Construction drops any edge that is a self-loop, references a node that
    is not present, or repeats an already-connected unordered pair, so a
    snapshot never exposes a dangling or duplicate edge.
    """

    __slots__ = ('_nodes', '_edges', '_index')

    def __init__(self, nodes: Optional[Mapping[str, Node]] = None,
                 edges: Optional[Mapping[str, Edge]] = None):
        node_map: Dict[str, Node] = dict(nodes or {})
        index = nx.Graph()
        index.add_nodes_from(node_map)

        edge_map: Dict[str, Edge] = {}
        for edge in (edges or {}).values():
            src, tgt = edge.source_id, edge.target_id
            if src == tgt or src not in node_map or tgt not in node_map:
                continue
            if index.has_edge(src, tgt) or edge.id in edge_map:
                continue
            index.add_edge(src, tgt, edge_id=edge.id)
            edge_map[edge.id] = edge

        self._nodes = MappingProxyType(node_map)
        self._edges = MappingProxyType(edge_map)
        self._index = nx.freeze(index)

    # --- Node access ---

    @property
    def nodes(self) -> List[Node]:
        return list(self._nodes.values())

    @property
    def node_ids(self):
        return self._nodes.keys()

    @property
    def node_map(self) -> Mapping[str, Node]:
        """Read-only id -> Node mapping."""
        return self._nodes

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    def node(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def degree(self, node_id: str) -> int:
        if node_id not in self._nodes:
            return 0
        return self._index.degree(node_id)

    # --- Edge access ---

    @property
    def edges(self) -> List[Edge]:
        return list(self._edges.values())

    @property
    def edge_ids(self):
        return self._edges.keys()

    @property
    def edge_map(self) -> Mapping[str, Edge]:
        """Read-only id -> Edge mapping."""
        return self._edges

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def edge(self, edge_id: str) -> Optional[Edge]:
        return self._edges.get(edge_id)

    def edge_between(self, a: str, b: str) -> Optional[Edge]:
        """Return the edge joining a and b in either direction, if any."""
        data = self._index.get_edge_data(a, b)
        if data is None:
            return None
        return self._edges[data['edge_id']]

    def incident_edges(self, node_id: str) -> List[Edge]:
        if node_id not in self._nodes:
            return []
        return [self._edges[data['edge_id']]
                for _, _, data in self._index.edges(node_id, data=True)]

    def resolve_edge(self, edge: Edge) -> ResolvedEdge:
        source = self._nodes.get(edge.source_id)
        if source is None:
            raise DanglingReferenceError(edge.id, edge.source_id)
        target = self._nodes.get(edge.target_id)
        if target is None:
            raise DanglingReferenceError(edge.id, edge.target_id)
        return ResolvedEdge(edge=edge, source=source, target=target)

    def resolved_edges(self) -> List[ResolvedEdge]:
        # Construction already filtered dangling edges, so resolution cannot fail here.
        return [self.resolve_edge(edge) for edge in self._edges.values()]

    def to_networkx(self) -> nx.Graph:
        """Frozen undirected view; node keys are node ids, edges carry `edge_id`."""
        return self._index

    # --- Derivation ---

    def evolve(self, nodes: Optional[Mapping[str, Node]] = None,
               edges: Optional[Mapping[str, Edge]] = None) -> 'GraphSnapshot':
        return GraphSnapshot(
            nodes=self._nodes if nodes is None else nodes,
            edges=self._edges if edges is None else edges,
        )

    def __repr__(self) -> str:
        return f"GraphSnapshot(nodes={len(self._nodes)}, edges={len(self._edges)})"


Listener = Callable[[GraphSnapshot, GraphChange], None]


class GraphStore:
    """
    Owns the current GraphSnapshot and enforces the edge rules (no self-loops, no dangling ends, one edge per pair).

    Listeners registered with subscribe() are called after every snapshot
    replacement with the new snapshot and the kind of change.
    """

    def __init__(self, snapshot: Optional[GraphSnapshot] = None):
        self._snapshot = snapshot if snapshot is not None else GraphSnapshot()
        self._node_ids = IdGenerator()
        self._edge_ids = IdGenerator("e")
        self._listeners: List[Listener] = []

    @property
    def snapshot(self) -> GraphSnapshot:
        return self._snapshot

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, snapshot: GraphSnapshot, change: GraphChange) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            listener(snapshot, change)

    # --- Nodes ---

    def add_node(self, name: str, position: Optional[Tuple[float, float]] = None) -> str:
        snap = self._snapshot
        node_id = self._node_ids.next_id(snap.node_ids)
        x, y = (float(position[0]), float(position[1])) if position is not None else (None, None)

        nodes = dict(snap.node_map)
        nodes[node_id] = Node(id=node_id, name=name, x=x, y=y)
        self._commit(snap.evolve(nodes=nodes), GraphChange.NODE_ADDED)
        logger.info(f"Created node {node_id} ({name!r})")
        return node_id

    def rename_node(self, node_id: str, new_name: str) -> bool:
        snap = self._snapshot
        node = snap.node(node_id)
        if node is None or node.name == new_name:
            return False

        nodes = dict(snap.node_map)
        nodes[node_id] = Node(id=node.id, name=new_name, x=node.x, y=node.y)
        self._commit(snap.evolve(nodes=nodes), GraphChange.NODE_RENAMED)
        logger.info(f"Renamed node {node_id}: {node.name!r} -> {new_name!r}")
        return True

    def remove_node(self, node_id: str) -> bool:
        """Remove a node together with every edge touching it."""
        snap = self._snapshot
        if not snap.has_node(node_id):
            return False

        nodes = {nid: n for nid, n in snap.node_map.items() if nid != node_id}
        edges = {eid: e for eid, e in snap.edge_map.items() if not e.touches(node_id)}
        dropped = snap.edge_count - len(edges)
        self._commit(snap.evolve(nodes=nodes, edges=edges), GraphChange.NODE_REMOVED)
        logger.info(f"Removed node {node_id} and {dropped} incident edge(s)")
        return True

    # --- Edges ---

    def _validate_edge(self, source_id: str, target_id: str) -> None:
        snap = self._snapshot
        if source_id == target_id:
            raise ValidationError(f"self-loop on {source_id}")
        for node_id in (source_id, target_id):
            if not snap.has_node(node_id):
                raise ValidationError(f"missing endpoint {node_id}")
        existing = snap.edge_between(source_id, target_id)
        if existing is not None:
            raise ValidationError(f"pair already connected by {existing.id}")

    def add_edge(self, source_id: str, target_id: str) -> Optional[str]:
        """Connect two nodes. Returns the new edge id, or None if rejected."""
        try:
            self._validate_edge(source_id, target_id)
        except ValidationError as e:
            logger.debug(f"Rejected edge {source_id} -> {target_id}: {e}")
            return None

        snap = self._snapshot
        edge_id = self._edge_ids.next_id(snap.edge_ids)
        edges = dict(snap.edge_map)
        edges[edge_id] = Edge(id=edge_id, source_id=source_id, target_id=target_id)
        self._commit(snap.evolve(edges=edges), GraphChange.EDGE_ADDED)
        logger.info(f"Created edge {edge_id}: {source_id} -> {target_id}")
        return edge_id

    def remove_edge(self, edge_id: str) -> bool:
        snap = self._snapshot
        if snap.edge(edge_id) is None:
            return False

        edges = {eid: e for eid, e in snap.edge_map.items() if eid != edge_id}
        self._commit(snap.evolve(edges=edges), GraphChange.EDGE_REMOVED)
        logger.info(f"Removed edge {edge_id}")
        return True

    # --- Bulk ---

    def replace(self, nodes: Iterable[Node], edges: Iterable[Edge]) -> GraphSnapshot:
        """
        Install entirely new content (no merge).

        Edges that are self-loops, duplicate a pair or an earlier edge id, or
        reference nodes outside `nodes` are dropped one by one; everything
        else is kept.
        """
        node_map = {node.id: node for node in nodes}
        edge_list = list(edges)
        edge_map: Dict[str, Edge] = {}
        for edge in edge_list:
            edge_map.setdefault(edge.id, edge)
        snapshot = GraphSnapshot(nodes=node_map, edges=edge_map)

        repeated_ids = len(edge_list) - len(edge_map)
        if repeated_ids:
            logger.warning(f"Dropped {repeated_ids} edge(s) repeating an earlier edge id while replacing graph")
        invalid = len(edge_map) - snapshot.edge_count
        if invalid:
            logger.warning(f"Dropped {invalid} invalid edge(s) while replacing graph")
        self._commit(snapshot, GraphChange.REPLACED)
        logger.info(f"Graph replaced: {snapshot.node_count} nodes, {snapshot.edge_count} edges")
        return snapshot

    def clear(self) -> None:
        self.replace([], [])
