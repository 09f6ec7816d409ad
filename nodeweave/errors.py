"""
Error types for NodeWeave.

None of these are fatal. Validation failures are swallowed by the store
(the operation becomes a no-op), parse failures are shown to the user as a
notification, and dangling references never leave a snapshot.
"""


class GraphError(Exception):
    """Base class for all NodeWeave errors."""


class ValidationError(GraphError):
    """An edge would be a self-loop, reference a missing node, or duplicate a pair."""


class ParseError(GraphError):
    """A graph document could not be read or does not have the expected shape."""


class DanglingReferenceError(GraphError):
    """An edge references a node that is not in the current node set."""

    def __init__(self, edge_id: str, node_id: str):
        super().__init__(f"Edge {edge_id} references missing node {node_id}")
        self.edge_id = edge_id
        self.node_id = node_id
