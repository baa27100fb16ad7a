# loops.py
# Closed cut loops (circles, closed polylines), their nesting depth and the advisory cut order:
# deepest holes first, smaller before larger at the same depth.

import logging
import math
from dataclasses import dataclass, replace

from shapely.geometry import Point, Polygon
from shapely.ops import unary_union

from cutplan.utils.geometry import EntityKind, entity_bounds

CIRCLE = "circle"
POLY = "poly"
CONTAIN_TOLERANCE = 1e-6


@dataclass(frozen=True)
class Loop:
    id: int
    kind: str
    area: float
    rep: tuple
    bbox: tuple
    depth: int = 0
    center: tuple = None
    radius: float = 0.0
    points: tuple = ()

    def to_dict(self):
        data = {"id": self.id, "kind": self.kind, "area": self.area, "rep": list(self.rep),
                "bbox": dict(zip(("minX", "minY", "maxX", "maxY"), self.bbox)), "depth": self.depth}
        if self.kind == CIRCLE:
            data["cx"], data["cy"] = self.center
            data["r"] = self.radius
        return data


def signed_area(points):
    """Shoelace sum, positive for counter-clockwise outlines."""
    total = 0.0
    n = len(points)
    for i in range(n):
        x1, y1 = points[i]
        x2, y2 = points[(i + 1) % n]
        total += x1 * y2 - x2 * y1
    return total / 2


def point_in_polygon(points, x, y):
    """Even-odd ray cast."""
    inside = False
    j = len(points) - 1
    for i in range(len(points)):
        xi, yi = points[i]
        xj, yj = points[j]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def make_loop(entity):
    p = entity.params
    if entity.kind is EntityKind.CIRCLE:
        return Loop(entity.id, CIRCLE, math.pi * p.r ** 2, (p.cx, p.cy), entity_bounds(entity),
                    center=(p.cx, p.cy), radius=p.r)
    return Loop(entity.id, POLY, abs(signed_area(p.points)), p.points[0], entity_bounds(entity),
                points=p.points)


def contains(a, b):
    """True if loop a geometrically contains loop b."""
    if a.bbox[0] > b.bbox[0] or a.bbox[2] < b.bbox[2] or a.bbox[1] > b.bbox[1] or a.bbox[3] < b.bbox[3]:
        return False
    inner = b.center if b.kind == CIRCLE else b.rep
    if a.kind == POLY:
        return point_in_polygon(a.points, inner[0], inner[1])
    dist = math.dist(inner, a.center)
    if b.kind == CIRCLE:
        return dist + b.radius <= a.radius + CONTAIN_TOLERANCE
    return dist <= a.radius + CONTAIN_TOLERANCE


def find_loops(entities):
    """Loops in entity order, each with depth = number of other loops containing it."""
    loops = [make_loop(e) for e in entities if e.is_loop]
    resolved = []
    for i, loop in enumerate(loops):
        depth = sum(1 for j, other in enumerate(loops) if i != j and contains(other, loop))
        resolved.append(replace(loop, depth=depth))
    return resolved


def cut_order(loops):
    return [loop.id for loop in sorted(loops, key=lambda loop: (-loop.depth, loop.area))]


def loop_geometry(loop):
    if loop.kind == CIRCLE:
        return Point(loop.center).buffer(loop.radius, 64)
    if len(set(loop.points)) < 3:
        return Polygon()
    polygon = Polygon(loop.points)
    if not polygon.is_valid:
        polygon = polygon.buffer(0)
    return polygon


def net_area(loops):
    """Material area in mm^2: even depths add material, odd depths cut it away."""
    shape = Polygon()
    for depth in sorted({loop.depth for loop in loops}):
        level = unary_union([loop_geometry(loop) for loop in loops if loop.depth == depth])
        shape = shape.union(level) if depth % 2 == 0 else shape.difference(level)
    logging.debug(f"Net area over {len(loops)} loops: {shape.area:.2f} mm^2")
    return shape.area
