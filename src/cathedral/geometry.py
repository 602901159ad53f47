"""
Render boundary.

Nothing here draws pixels. ``snapshot`` freezes the per-frame attributes a
renderer needs, and ``render_form`` dispatches a cell's form onto a
``Renderer`` implementation.
"""

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from .entities import Cell, Form, Link, ShapeKind
from .utils import map_range

Vec3 = Tuple[float, float, float]
Point2 = Tuple[float, float]


class Renderer(Protocol):
    def sphere(self, radius: float) -> None: ...
    def box(self, size: float) -> None: ...
    def cone(self, radius: float, height: float) -> None: ...
    def extruded_polygon(self, points: List[Point2], height: float) -> None: ...


def cell_alpha(cell: Cell) -> float:
    """Display alpha fades with remaining life."""
    return map_range(cell.life, 0, 255, 0, cell.alpha)


def polygon_points(cell: Cell, frame: int) -> List[Point2]:
    pts: List[Point2] = []
    for k in range(cell.sides):
        ang = 2.0 * math.pi * k / cell.sides
        rad = cell.outer_radius
        if cell.kind is ShapeKind.STAR:
            rad = cell.outer_radius if k % 2 == 0 else cell.inner_radius
        elif cell.kind is ShapeKind.HYBRID:
            rad = cell.outer_radius * (0.62 + 0.38 * math.sin(ang * 3.0 + frame * 0.012))
        pts.append((rad * math.cos(ang), rad * math.sin(ang)))
    return pts


def _sphere(r: Renderer, cell: Cell, inner: bool, frame: int) -> None:
    r.sphere(cell.outer_radius * (0.55 if inner else 0.92))


def _cube(r: Renderer, cell: Cell, inner: bool, frame: int) -> None:
    r.box(cell.outer_radius * (0.82 if inner else 1.15))


def _pyramid(r: Renderer, cell: Cell, inner: bool, frame: int) -> None:
    r.cone(cell.outer_radius * (0.60 if inner else 0.90), cell.outer_radius * (0.90 if inner else 1.35))


def _poly(r: Renderer, cell: Cell, inner: bool, frame: int) -> None:
    r.extruded_polygon(polygon_points(cell, frame), cell.height)


FORM_RENDERERS: Dict[Form, Callable[[Renderer, Cell, bool, int], None]] = {
    Form.SPHERE: _sphere,
    Form.CUBE: _cube,
    Form.PYRAMID: _pyramid,
    Form.POLY: _poly,
}


def render_form(renderer: Renderer, cell: Cell, inner: bool = False, frame: int = 0) -> None:
    try:
        draw = FORM_RENDERERS[cell.form]
    except KeyError:
        raise ValueError(f"no renderer for form {cell.form!r}") from None
    draw(renderer, cell, inner, frame)


def link_control_point(link: Link, a: Vec3, b: Vec3, frame: int) -> Vec3:
    """Midpoint of the two endpoints, swayed by the link's twist rate."""
    amp_xy, amp_z = (26.0, 20.0) if link.autonomous else (14.0, 10.0)
    t = frame * link.twist
    return (
        (a[0] + b[0]) * 0.5 + math.sin(t) * amp_xy,
        (a[1] + b[1]) * 0.5 + math.cos(t) * amp_xy,
        (a[2] + b[2]) * 0.5 + math.sin(t * 0.6) * amp_z,
    )


def link_alpha(link: Link) -> float:
    return map_range(link.life, 0, 560, 0, 220 if link.autonomous else 165)


@dataclass(frozen=True)
class CellView:
    handle: int
    position: Vec3
    rotation: Vec3
    form: Form
    kind: ShapeKind
    outer_radius: float
    inner_radius: float
    sides: int
    height: float
    hue: float
    alpha: float


@dataclass(frozen=True)
class LinkView:
    a: Vec3
    control: Vec3
    b: Vec3
    hue: float
    alpha: float
    width: float
    autonomous: bool


@dataclass(frozen=True)
class ParticleView:
    position: Vec3
    hue: float
    alpha: float
    size: float


@dataclass(frozen=True)
class FrameSnapshot:
    """Immutable per-frame state handed to a renderer."""

    frame: int
    energy: float
    mood: str
    scene_yaw: float
    scene_pitch: float
    cells: Tuple[CellView, ...]
    links: Tuple[LinkView, ...]
    particles: Tuple[ParticleView, ...]


def _vec(v) -> Vec3:
    return (float(v[0]), float(v[1]), float(v[2]))


def snapshot(state, frame: Optional[int] = None) -> FrameSnapshot:
    """Freeze ``EngineState`` into render attributes. Links with a missing endpoint are skipped."""
    frame = state.frame if frame is None else frame
    cells = tuple(
        CellView(
            handle=c.handle,
            position=_vec(c.position),
            rotation=_vec(c.rotation),
            form=c.form,
            kind=c.kind,
            outer_radius=c.outer_radius,
            inner_radius=c.inner_radius,
            sides=c.sides,
            height=c.height,
            hue=c.hue,
            alpha=cell_alpha(c),
        )
        for c in state.cells
        if c.alive
    )
    links = []
    for link in state.links:
        ca, cb = state.cells.get(link.a), state.cells.get(link.b)
        if ca is None or cb is None:
            continue
        a, b = _vec(ca.position), _vec(cb.position)
        links.append(
            LinkView(
                a=a,
                control=link_control_point(link, a, b, frame),
                b=b,
                hue=link.hue,
                alpha=link_alpha(link),
                width=link.width,
                autonomous=link.autonomous,
            )
        )
    particles = tuple(
        ParticleView(position=_vec(p.position), hue=p.hue, alpha=p.life, size=p.size)
        for p in state.particles
    )
    return FrameSnapshot(
        frame=frame,
        energy=state.energy,
        mood=state.mood.current.value,
        scene_yaw=frame * (0.001 + state.energy * 0.0016),
        scene_pitch=math.sin(frame * 0.001) * 0.08,
        cells=cells,
        links=tuple(links),
        particles=particles,
    )
