"""
Interaction layer for the NodeWeave canvas.

- InteractionController: selection/drag state machine
- EditActions: graph mutations issued by the controller
- hit_test: resolves pointer positions to nodes, edges or the canvas
- handlers: NiceGUI event handlers for app.py integration (imports nicegui)

Usage:
    from nodeweave.edit import InteractionController, EditActions
    from nodeweave.edit.handlers import setup_edit_handlers
"""

from nodeweave.edit.constants import (
    CONNECTION_RADIUS,
    DELETE_KEY,
    EDGE_HOVER_TOLERANCE,
    NODE_CLICK_RADIUS,
)
from nodeweave.edit.controller import InteractionController, InteractionState, Mode
from nodeweave.edit.actions import EditActions
from nodeweave.edit.hit_test import Hit, hit_test

__all__ = [
    'InteractionController',
    'InteractionState',
    'Mode',
    'EditActions',
    'Hit',
    'hit_test',
    'CONNECTION_RADIUS',
    'DELETE_KEY',
    'EDGE_HOVER_TOLERANCE',
    'NODE_CLICK_RADIUS',
]
