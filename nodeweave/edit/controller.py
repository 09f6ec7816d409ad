"""
Interaction Controller - single owner of selection and drag state.

Translates renderer gestures (which already carry the hit-test result) and
the Delete key into GraphStore mutations and simulation heat changes.

Modes:
- IDLE: nothing selected
- NODE_SELECTED / EDGE_SELECTED: one entity selected
- DRAGGING: a node is pinned under the pointer; the selection that was
  active before the drag is remembered and restored on release

A drag whose release event never arrives (focus loss, pointer leaving the
window) is aborted by the next click, double-click or pointer-down, or
explicitly through cancel_drag(), so no node stays pinned forever.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from nodeweave.edit.actions import EditActions
from nodeweave.edit.constants import CONNECTION_RADIUS, DELETE_KEY
from nodeweave.graph import GraphStore
from nodeweave.simulation import SimulationRunner

logger = logging.getLogger(__name__)


class Mode(Enum):
    IDLE = 'idle'
    NODE_SELECTED = 'node_selected'
    EDGE_SELECTED = 'edge_selected'
    DRAGGING = 'dragging'


@dataclass(frozen=True)
class InteractionState:
    """Immutable snapshot of the interaction state."""
    mode: Mode = Mode.IDLE
    node_id: Optional[str] = None
    edge_id: Optional[str] = None
    resume: Optional['InteractionState'] = None

    @property
    def selected_node_id(self) -> Optional[str]:
        if self.mode is Mode.DRAGGING:
            return self.resume.selected_node_id if self.resume else None
        return self.node_id if self.mode is Mode.NODE_SELECTED else None

    @property
    def selected_edge_id(self) -> Optional[str]:
        if self.mode is Mode.DRAGGING:
            return self.resume.selected_edge_id if self.resume else None
        return self.edge_id if self.mode is Mode.EDGE_SELECTED else None

    @property
    def dragging_node_id(self) -> Optional[str]:
        return self.node_id if self.mode is Mode.DRAGGING else None


IDLE = InteractionState()


class InteractionController:
    """State machine for canvas gestures and the Delete key."""

    def __init__(self, store: GraphStore, runner: SimulationRunner,
                 actions: Optional[EditActions] = None,
                 proximity_threshold: float = CONNECTION_RADIUS):
        self._store = store
        self._runner = runner
        self._actions = actions or EditActions(store)
        self._proximity_threshold = proximity_threshold
        self._state = IDLE
        self._on_state_change: Optional[Callable[[InteractionState], None]] = None

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def mode(self) -> Mode:
        return self._state.mode

    def set_on_state_change(self, callback: Callable[[InteractionState], None]):
        self._on_state_change = callback

    def _set_state(self, state: InteractionState) -> InteractionState:
        if state != self._state:
            self._state = state
            if self._on_state_change:
                self._on_state_change(state)
        return self._state

    # --- Clicks ---

    def click_canvas(self) -> InteractionState:
        self._abort_stale_drag()
        return self._set_state(IDLE)

    def click_node(self, node_id: str) -> InteractionState:
        self._abort_stale_drag()
        if not self._store.snapshot.has_node(node_id):
            return self._state
        return self._set_state(InteractionState(Mode.NODE_SELECTED, node_id=node_id))

    def click_edge(self, edge_id: str) -> InteractionState:
        self._abort_stale_drag()
        if self._store.snapshot.edge(edge_id) is None:
            return self._state
        return self._set_state(InteractionState(Mode.EDGE_SELECTED, edge_id=edge_id))

    def double_click_node(self, node_id: str, new_name: Optional[str]) -> bool:
        """
        Apply the answer of the rename prompt for node_id.

        `new_name` is None when the prompt was cancelled. Returns True if the
        node was renamed. The selection is left as it is.
        """
        self._abort_stale_drag()
        if new_name is None:
            return False
        return self._actions.rename_node(node_id, new_name)

    def double_click_canvas(self, x: float, y: float) -> str:
        """Create a node at the pointer. The selection is left as it is."""
        self._abort_stale_drag()
        return self._actions.create_node((x, y))

    # --- Keyboard ---

    def key_down(self, key: str) -> InteractionState:
        """Single keyboard entry point; only Delete does anything."""
        if key != DELETE_KEY:
            return self._state

        state = self._state
        if state.mode is Mode.NODE_SELECTED:
            self._actions.delete_node(state.node_id)
        elif state.mode is Mode.EDGE_SELECTED:
            self._actions.delete_edge(state.edge_id)
        else:
            return state
        return self._set_state(IDLE)

    # --- Dragging ---

    def drag_start(self, node_id: str) -> InteractionState:
        self._abort_stale_drag()
        position = self._runner.position_of(node_id)
        if position is None:
            return self._state

        self._runner.pin(node_id, *position)
        self._runner.begin_drag_heat()
        return self._set_state(InteractionState(Mode.DRAGGING, node_id=node_id, resume=self._state))

    def drag_move(self, x: float, y: float) -> InteractionState:
        if self._state.mode is Mode.DRAGGING:
            self._runner.pin(self._state.node_id, x, y)
        return self._state

    def drag_end(self, x: Optional[float] = None, y: Optional[float] = None) -> Optional[str]:
        """
        Release the dragged node and connect it to its nearest neighbour if
        close enough. Returns the id of the edge created, if any.
        """
        state = self._state
        if state.mode is not Mode.DRAGGING:
            return None

        node_id = state.node_id
        if x is not None and y is not None:
            self._runner.pin(node_id, x, y)
        self._runner.unpin(node_id)
        edge_id = self._actions.connect_nearest(node_id, self._runner.positions(), self._proximity_threshold)
        self._runner.end_drag_heat()
        self._set_state(self._restore(state.resume))
        return edge_id

    def cancel_drag(self) -> InteractionState:
        """Abort an active drag without running the connection heuristic."""
        self._abort_stale_drag()
        return self._state

    def _abort_stale_drag(self) -> None:
        state = self._state
        if state.mode is not Mode.DRAGGING:
            return
        logger.debug(f"Aborting drag of {state.node_id} without release")
        self._runner.unpin(state.node_id)
        self._runner.end_drag_heat()
        self._set_state(self._restore(state.resume))

    def _restore(self, previous: Optional[InteractionState]) -> InteractionState:
        """Return the pre-drag selection if what it selected still exists."""
        snapshot = self._store.snapshot
        if previous is None:
            return IDLE
        if previous.mode is Mode.NODE_SELECTED and snapshot.has_node(previous.node_id):
            return previous
        if previous.mode is Mode.EDGE_SELECTED and snapshot.edge(previous.edge_id) is not None:
            return previous
        return IDLE
