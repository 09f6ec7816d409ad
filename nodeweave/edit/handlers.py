"""
Edit Handlers - NiceGUI event handlers for the canvas.

Pointer events arrive as raw DOM mouse events from the chart element. This
module hit-tests them against the last rendered frame and forwards the
result to the InteractionController; it holds no graph logic of its own.
"""

from typing import Any, Callable, Dict

from nicegui import ui

from nodeweave.chart_builder import pointer_from_event
from nodeweave.edit.controller import InteractionController, Mode
from nodeweave.edit.hit_test import HIT_CANVAS, HIT_EDGE, HIT_NODE, hit_test
from nodeweave.graph import GraphStore


def open_rename_dialog(current_name: str, on_submit: Callable[[str], None]) -> None:
    """Prompt for a new node name; on_submit is only called on confirm."""
    with ui.dialog() as dialog, ui.card().classes('w-[360px]'):
        ui.label('Rename node').classes('text-lg font-bold')
        name_input = ui.input('Name', value=current_name).props('autofocus').classes('w-full')

        def confirm():
            dialog.close()
            on_submit(name_input.value or '')

        name_input.on('keydown.enter', confirm)
        with ui.row().classes('w-full justify-end'):
            ui.button('Cancel', on_click=dialog.close).props('flat')
            ui.button('Rename', on_click=confirm).props('color=primary')
    dialog.open()


def setup_edit_handlers(
    state: Dict[str, Any],
    store: GraphStore,
    controller: InteractionController,
    refresh_chart_ui: Callable[[], None],
):
    """
    Set up all canvas event handlers.

    Args:
        state: App state dictionary; state['frame'] holds the last rendered frame
        store: GraphStore instance
        controller: InteractionController instance
        refresh_chart_ui: Function to redraw the chart from the current state

    Returns:
        Dict with handler functions for binding to UI events
    """

    controller.set_on_state_change(lambda _: refresh_chart_ui())

    def _hit(event):
        point = pointer_from_event(event)
        if point is None:
            return None, None
        return point, hit_test(state['frame'], point)

    def handle_mouse_down(event):
        _, hit = _hit(event)
        if hit is not None and hit.kind == HIT_NODE:
            controller.drag_start(hit.target_id)

    def handle_mouse_move(event):
        if controller.mode is not Mode.DRAGGING:
            return
        point = pointer_from_event(event)
        if point is not None:
            controller.drag_move(*point)

    def handle_mouse_up(event):
        if controller.mode is not Mode.DRAGGING:
            return
        point = pointer_from_event(event)
        if point is None:
            controller.drag_end()
        else:
            controller.drag_end(*point)

    def handle_mouse_leave(event):
        controller.cancel_drag()

    def handle_click(event):
        _, hit = _hit(event)
        if hit is None:
            return
        if hit.kind == HIT_NODE:
            controller.click_node(hit.target_id)
        elif hit.kind == HIT_EDGE:
            controller.click_edge(hit.target_id)
        else:
            controller.click_canvas()

    def handle_double_click(event):
        point, hit = _hit(event)
        if hit is None:
            return
        if hit.kind == HIT_CANVAS:
            controller.double_click_canvas(*point)
        elif hit.kind == HIT_NODE:
            node_id = hit.target_id
            node = store.snapshot.node(node_id)
            if node is not None:
                open_rename_dialog(node.name, lambda name: controller.double_click_node(node_id, name))

    def handle_keyboard(e):
        """Forward key presses to the controller's single keyboard entry point."""
        if not e.action.keydown or e.action.repeat:
            return
        key = getattr(e.key, 'name', str(e.key))
        controller.key_down(key)

    return {
        'handle_mouse_down': handle_mouse_down,
        'handle_mouse_move': handle_mouse_move,
        'handle_mouse_up': handle_mouse_up,
        'handle_mouse_leave': handle_mouse_leave,
        'handle_click': handle_click,
        'handle_double_click': handle_double_click,
        'handle_keyboard': handle_keyboard,
    }
