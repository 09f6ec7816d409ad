"""
Main NiceGUI application for NodeWeave.

Wires GraphStore, SimulationRunner and InteractionController together,
renders every simulation frame with ui.echart, and provides the
save / load / export menu.
"""

import logging
import sys

from dotenv import load_dotenv

from nodeweave.paths import get_env_path
load_dotenv(get_env_path())

from nicegui import events, ui

from nodeweave.chart_builder import POINTER_EVENT_KEYS, build_echart_options
from nodeweave.config import get_settings
from nodeweave.edit import InteractionController
from nodeweave.edit.handlers import setup_edit_handlers
from nodeweave.errors import ParseError
from nodeweave.export import DEFAULT_DOT_FILENAME, export_dot
from nodeweave.graph import GraphStore
from nodeweave.persistence import DEFAULT_FILENAME, load_into, save_document
from nodeweave.simulation import ForceSimulator, SimulationRunner, SimulationSettings
from nodeweave.view import build_render_frame

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)


@ui.page('/')
def main_page():
    width, height = settings.canvas_width, settings.canvas_height

    store = GraphStore()
    simulator = ForceSimulator(SimulationSettings.from_editor_settings(settings))
    runner = SimulationRunner(
        store,
        simulator,
        timer_factory=lambda interval, callback: ui.timer(interval, callback),
        interval=settings.tick_interval,
    )
    controller = InteractionController(store, runner, proximity_threshold=settings.proximity_threshold)

    state = {
        'chart': None,
        'frame': {'nodes': [], 'edges': []},
    }

    def refresh_chart_ui(positions=None):
        if positions is None:
            positions = runner.positions()
        selection = controller.state
        state['frame'] = build_render_frame(
            store.snapshot,
            positions,
            selected_node_id=selection.selected_node_id,
            selected_edge_id=selection.selected_edge_id,
        )
        if state['chart'] is not None:
            state['chart'].options.clear()
            state['chart'].options.update(build_echart_options(state['frame'], width, height))
            state['chart'].update()

    runner.set_on_frame(refresh_chart_ui)
    ui.context.client.on_disconnect(runner.close)

    edit_handlers = setup_edit_handlers(state, store, controller, refresh_chart_ui)

    # Global keyboard handler (Delete only)
    ui.keyboard(on_key=edit_handlers['handle_keyboard'])

    # --- Actions ---

    def save_graph():
        document = save_document(store.snapshot, runner.positions())
        ui.download(document.encode('utf-8'), DEFAULT_FILENAME)
        logger.info(f"Saved graph ({store.snapshot.node_count} nodes) as {DEFAULT_FILENAME}")

    def export_graph():
        source = export_dot(store.snapshot, runner.positions(), canvas_height=height)
        ui.download(source.encode('utf-8'), DEFAULT_DOT_FILENAME)

    def handle_upload(e: events.UploadEventArguments):
        try:
            load_into(store, e.content.read())
        except ParseError as err:
            logger.warning(f"Failed to load {e.name}: {err}")
            ui.notify(f'Invalid graph file: {err}', type='negative', position='bottom')
            return
        finally:
            upload.reset()
        controller.click_canvas()
        ui.notify(f'Loaded {e.name}', type='positive', position='bottom', timeout=1000)

    # --- Layout Construction ---

    state['chart'] = ui.echart(build_echart_options(state['frame'], width, height))
    state['chart'].style(f'width: {width}px; height: {height}px;')

    chart = state['chart']
    chart.on('mousedown', edit_handlers['handle_mouse_down'], POINTER_EVENT_KEYS)
    chart.on('mousemove', edit_handlers['handle_mouse_move'], POINTER_EVENT_KEYS, throttle=0.02)
    chart.on('mouseup', edit_handlers['handle_mouse_up'], POINTER_EVENT_KEYS)
    chart.on('mouseleave', edit_handlers['handle_mouse_leave'])
    chart.on('click', edit_handlers['handle_click'], POINTER_EVENT_KEYS)
    chart.on('dblclick', edit_handlers['handle_double_click'], POINTER_EVENT_KEYS)

    with ui.element('div').classes('fixed top-5 left-5 z-10'):
        with ui.dropdown_button('Menu', icon='menu').props('color=positive'):
            ui.item('Save Graph', on_click=save_graph)
            ui.item('Load Graph', on_click=lambda: upload.run_method('pickFiles'))
            ui.item('Export DOT', on_click=export_graph)

    upload = ui.upload(on_upload=handle_upload, auto_upload=True).props('accept=.json').classes('hidden')

    refresh_chart_ui()


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title='NodeWeave',
        port=8081,
        reload=not getattr(sys, 'frozen', False),
    )
