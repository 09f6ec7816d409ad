"""
Force-directed layout for NodeWeave.

The simulator follows the familiar velocity-Verlet scheme used by d3-force:
forces add to each body's velocity (scaled by the decaying `alpha`), the
velocity is damped, and the position advances by the velocity. Alpha eases
toward `alpha_target` every tick, so the layout cools geometrically and stops
moving once alpha drops under `alpha_min`.

Forces, in application order:
- link: spring toward `link_distance` along every edge
- charge: pairwise repulsion, weight ~ strength * alpha / distance^2
- collision: pushes apart any pair closer than two collision radii
- centering: weak per-axis pull toward the canvas midpoint, plus a rigid
  shift that puts the centroid on the midpoint
Positions are clamped into the canvas (minus a margin) after integration.

All mutable simulation data lives in a SimulationState value that is passed
into every call; ForceSimulator itself only holds settings. SimulationRunner
owns one state, drives ticks from a cancellable timer, and reacts to store
changes.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from nodeweave.graph import GraphChange, GraphSnapshot, GraphStore, Node

logger = logging.getLogger(__name__)

Positions = Dict[str, Tuple[float, float]]

# Minimum separation used when two bodies sit exactly on top of each other
_JIGGLE = 1e-6
_GOLDEN_ANGLE = math.pi * (3 - math.sqrt(5))


@dataclass(frozen=True)
class SimulationSettings:
    width: float = 1200.0
    height: float = 800.0
    link_distance: float = 150.0
    charge_strength: float = -500.0
    charge_distance_min: float = 1.0
    collision_radius: float = 60.0
    collision_strength: float = 1.0
    center_strength: float = 0.1
    recenter: bool = True
    boundary_margin: float = 40.0
    alpha_min: float = 0.001
    alpha_decay: float = 1 - 0.001 ** (1 / 300)
    velocity_decay: float = 0.4
    drag_alpha: float = 0.3
    max_iterations: int = 600

    @classmethod
    def from_editor_settings(cls, settings: Any) -> 'SimulationSettings':
        return cls(
            width=float(settings.canvas_width),
            height=float(settings.canvas_height),
            link_distance=float(settings.link_distance),
            charge_strength=float(settings.charge_strength),
            collision_radius=float(settings.collision_radius),
            center_strength=float(settings.center_strength),
            boundary_margin=float(settings.boundary_margin),
            max_iterations=int(settings.max_iterations),
        )

    @property
    def center(self) -> Tuple[float, float]:
        return (self.width / 2, self.height / 2)

    def clamp(self, x: float, y: float) -> Tuple[float, float]:
        """Clamp a point into the canvas, keeping `boundary_margin` from every side."""
        return (self._clamp_axis(x, self.width), self._clamp_axis(y, self.height))

    def _clamp_axis(self, value: float, extent: float) -> float:
        low, high = self.boundary_margin, extent - self.boundary_margin
        if high < low:
            return extent / 2
        return max(low, min(high, value))


@dataclass
class Body:
    """Simulation record for one node. fx/fy is the pinned position, if any."""
    node_id: str
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    fx: Optional[float] = None
    fy: Optional[float] = None

    @property
    def pinned(self) -> bool:
        return self.fx is not None


@dataclass
class Link:
    source: Body
    target: Body
    strength: float
    bias: float


@dataclass
class SimulationState:
    alpha: float = 1.0
    alpha_target: float = 0.0
    ticks: int = 0
    bodies: Dict[str, Body] = field(default_factory=dict)
    links: List[Link] = field(default_factory=list)
    snapshot: Optional[GraphSnapshot] = None

    def positions(self) -> Positions:
        return {nid: (b.x, b.y) for nid, b in self.bodies.items()}


class ForceSimulator:
    """Stateless force layout step over an explicit SimulationState."""

    def __init__(self, settings: Optional[SimulationSettings] = None):
        self.settings = settings or SimulationSettings()

    def new_state(self) -> SimulationState:
        return SimulationState()

    # --- Synchronisation with the store ---

    def sync(self, state: SimulationState, snapshot: GraphSnapshot) -> None:
        """
        Align the state's bodies and links with a snapshot.

        Existing bodies keep their position and velocity; new nodes start at
        their stored position (clamped) or on a spiral around the centre.
        """
        if state.snapshot is snapshot:
            return

        bodies: Dict[str, Body] = {}
        for node in snapshot.nodes:
            body = state.bodies.get(node.id)
            if body is None:
                body = self._spawn(node, len(bodies))
            bodies[node.id] = body

        links = []
        for edge in snapshot.edges:
            source_degree = snapshot.degree(edge.source_id)
            target_degree = snapshot.degree(edge.target_id)
            links.append(Link(
                source=bodies[edge.source_id],
                target=bodies[edge.target_id],
                strength=1.0 / min(source_degree, target_degree),
                bias=source_degree / (source_degree + target_degree),
            ))

        state.bodies = bodies
        state.links = links
        state.snapshot = snapshot

    def _spawn(self, node: Node, index: int) -> Body:
        s = self.settings
        if node.position is not None:
            x, y = s.clamp(*node.position)
        else:
            cx, cy = s.center
            radius = 10 * math.sqrt(0.5 + index)
            angle = index * _GOLDEN_ANGLE
            x, y = s.clamp(cx + radius * math.cos(angle), cy + radius * math.sin(angle))
        return Body(node_id=node.id, x=x, y=y)

    # --- Heat control ---

    def reheat(self, state: SimulationState, alpha: float = 1.0) -> None:
        state.alpha = alpha
        state.ticks = 0

    def hold(self, state: SimulationState, target: float) -> None:
        """Set the alpha plateau; alpha is raised to it immediately if lower."""
        state.alpha_target = target
        if state.alpha < target:
            state.alpha = target
        state.ticks = 0

    def is_settled(self, state: SimulationState) -> bool:
        s = self.settings
        if state.alpha_target >= s.alpha_min:
            return False
        return state.alpha < s.alpha_min or state.ticks >= s.max_iterations

    # --- Pins ---

    def pin(self, state: SimulationState, node_id: str, x: float, y: float) -> Optional[Tuple[float, float]]:
        body = state.bodies.get(node_id)
        if body is None:
            return None
        body.fx, body.fy = self.settings.clamp(x, y)
        return (body.fx, body.fy)

    def unpin(self, state: SimulationState, node_id: str) -> None:
        """Release a pin. The body is left where it was pinned, at rest."""
        body = state.bodies.get(node_id)
        if body is None or body.fx is None:
            return
        body.x, body.y = body.fx, body.fy
        body.vx = body.vy = 0.0
        body.fx = body.fy = None

    # --- Stepping ---

    def tick(self, state: SimulationState, snapshot: GraphSnapshot) -> Positions:
        """Advance the layout by one step against `snapshot` and return all positions."""
        s = self.settings
        self.sync(state, snapshot)

        state.alpha += (state.alpha_target - state.alpha) * s.alpha_decay
        state.ticks += 1

        bodies = list(state.bodies.values())
        if len(bodies) > 1:
            alpha = state.alpha
            if state.links:
                self._apply_links(state.links, alpha)
            if s.charge_strength:
                self._apply_charge(bodies, alpha)
            if s.collision_radius > 0 and s.collision_strength:
                self._apply_collision(bodies)
            if s.recenter:
                self._recenter(bodies)
            if s.center_strength:
                self._apply_center_pull(bodies, alpha)

        for body in bodies:
            self._integrate(body)
            body.x, body.y = s.clamp(body.x, body.y)

        return state.positions()

    def _integrate(self, body: Body) -> None:
        damping = 1 - self.settings.velocity_decay
        if body.fx is None:
            body.vx *= damping
            body.x += body.vx
        else:
            body.x = body.fx
            body.vx = 0.0
        if body.fy is None:
            body.vy *= damping
            body.y += body.vy
        else:
            body.y = body.fy
            body.vy = 0.0

    def _apply_links(self, links: List[Link], alpha: float) -> None:
        distance = self.settings.link_distance
        for link in links:
            source, target = link.source, link.target
            x = target.x + target.vx - source.x - source.vx
            y = target.y + target.vy - source.y - source.vy
            if x == 0 and y == 0:
                x = _JIGGLE
            length = math.sqrt(x * x + y * y)
            k = (length - distance) / length * alpha * link.strength
            x *= k
            y *= k
            target.vx -= x * link.bias
            target.vy -= y * link.bias
            source.vx += x * (1 - link.bias)
            source.vy += y * (1 - link.bias)

    def _apply_charge(self, bodies: List[Body], alpha: float) -> None:
        strength = self.settings.charge_strength
        min_sq = self.settings.charge_distance_min ** 2
        for i, a in enumerate(bodies):
            for j in range(i + 1, len(bodies)):
                b = bodies[j]
                dx = b.x - a.x
                dy = b.y - a.y
                if dx == 0 and dy == 0:
                    dx = _JIGGLE * math.cos(j * _GOLDEN_ANGLE)
                    dy = _JIGGLE * math.sin(j * _GOLDEN_ANGLE)
                dist_sq = dx * dx + dy * dy
                if dist_sq < min_sq:
                    dist_sq = math.sqrt(min_sq * dist_sq)
                w = strength * alpha / dist_sq
                a.vx += dx * w
                a.vy += dy * w
                b.vx -= dx * w
                b.vy -= dy * w

    def _apply_collision(self, bodies: List[Body]) -> None:
        radius = self.settings.collision_radius
        strength = self.settings.collision_strength
        reach = 2 * radius
        for i, a in enumerate(bodies):
            ax = a.x + a.vx
            ay = a.y + a.vy
            for b in bodies[i + 1:]:
                x = ax - (b.x + b.vx)
                y = ay - (b.y + b.vy)
                dist_sq = x * x + y * y
                if dist_sq >= reach * reach:
                    continue
                if x == 0:
                    x = _JIGGLE
                    dist_sq += x * x
                if y == 0:
                    y = _JIGGLE
                    dist_sq += y * y
                dist = math.sqrt(dist_sq)
                k = (reach - dist) / dist * strength
                x *= k
                y *= k
                # Equal radii split the correction evenly.
                a.vx += x * 0.5
                a.vy += y * 0.5
                b.vx -= x * 0.5
                b.vy -= y * 0.5

    def _recenter(self, bodies: List[Body]) -> None:
        cx, cy = self.settings.center
        n = len(bodies)
        shift_x = sum(b.x for b in bodies) / n - cx
        shift_y = sum(b.y for b in bodies) / n - cy
        for body in bodies:
            body.x -= shift_x
            body.y -= shift_y

    def _apply_center_pull(self, bodies: List[Body], alpha: float) -> None:
        cx, cy = self.settings.center
        k = self.settings.center_strength * alpha
        for body in bodies:
            body.vx += (cx - body.x) * k
            body.vy += (cy - body.y) * k


class SimulationRunner:
    """
    Drives a ForceSimulator from a repeating timer.

    `timer_factory(interval, callback)` must return a handle with `cancel()`;
    the app passes NiceGUI's `ui.timer`. Without a factory the runner only
    ticks when `tick_once()` is called, which is how the tests drive it.

    The runner listens to the store: structural changes reheat the layout,
    a full replacement (document load) cancels the running loop and discards
    every body before starting over, so loaded positions are honoured.
    """

    def __init__(
        self,
        store: GraphStore,
        simulator: Optional[ForceSimulator] = None,
        timer_factory: Optional[Callable[[float, Callable[[], None]], Any]] = None,
        on_frame: Optional[Callable[[Positions], None]] = None,
        interval: float = 0.03,
    ):
        self._store = store
        self._simulator = simulator or ForceSimulator()
        self._state = self._simulator.new_state()
        self._timer_factory = timer_factory
        self._timer = None
        self._on_frame = on_frame
        self._interval = interval
        self._unsubscribe = store.subscribe(self._on_graph_change)

    @property
    def simulator(self) -> ForceSimulator:
        return self._simulator

    @property
    def settings(self) -> SimulationSettings:
        return self._simulator.settings

    @property
    def state(self) -> SimulationState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._timer is not None

    def set_on_frame(self, callback: Callable[[Positions], None]) -> None:
        self._on_frame = callback

    # --- Loop control ---

    def start(self) -> None:
        """Start ticking. Any loop already running is cancelled first."""
        self.stop()
        if self._timer_factory is None:
            return
        self._timer = self._timer_factory(self._interval, self.tick_once)
        logger.debug(f"Simulation loop started (alpha={self._state.alpha:.3f})")

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            logger.debug("Simulation loop stopped")

    def close(self) -> None:
        self.stop()
        self._unsubscribe()

    def tick_once(self) -> Positions:
        positions = self._simulator.tick(self._state, self._store.snapshot)
        if self._on_frame:
            self._on_frame(positions)
        if self._simulator.is_settled(self._state):
            self.stop()
        return positions

    def _ensure_running(self) -> None:
        if self._timer is None:
            self.start()

    # --- Heat ---

    def reheat(self, alpha: float = 1.0) -> None:
        self._simulator.reheat(self._state, alpha)
        self._ensure_running()

    def begin_drag_heat(self) -> None:
        self._simulator.hold(self._state, self._simulator.settings.drag_alpha)
        self._ensure_running()

    def end_drag_heat(self) -> None:
        self._simulator.hold(self._state, 0.0)
        self._ensure_running()

    def reset(self) -> None:
        """Stop the loop and forget every body, velocity and pin."""
        self.stop()
        self._state = self._simulator.new_state()

    # --- Positions and pins ---

    def positions(self) -> Positions:
        self._simulator.sync(self._state, self._store.snapshot)
        return self._state.positions()

    def position_of(self, node_id: str) -> Optional[Tuple[float, float]]:
        return self.positions().get(node_id)

    def pin(self, node_id: str, x: float, y: float) -> Optional[Tuple[float, float]]:
        self._simulator.sync(self._state, self._store.snapshot)
        return self._simulator.pin(self._state, node_id, x, y)

    def unpin(self, node_id: str) -> None:
        self._simulator.unpin(self._state, node_id)

    # --- Store events ---

    def _on_graph_change(self, snapshot: GraphSnapshot, change: GraphChange) -> None:
        if change is GraphChange.REPLACED:
            self.reset()
            self.reheat()
        elif change.is_structural:
            self.reheat()
        elif self._on_frame and not self.is_running:
            self._on_frame(self.positions())
