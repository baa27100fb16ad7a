# geometry.py
# Turns raw DXF records into normalized cut entities (kind, path length in meters, start point, typed params).
# Source coordinates are millimeters. Degenerate entities are dropped here and nowhere else.

import logging
import math
from dataclasses import dataclass
from enum import Enum

MM_PER_M = 1000.0


class EntityKind(str, Enum):
    LINE = "LINE"
    CIRCLE = "CIRCLE"
    ARC = "ARC"
    POLY = "POLY"


@dataclass(frozen=True)
class LineParams:
    x1: float
    y1: float
    x2: float
    y2: float


@dataclass(frozen=True)
class CircleParams:
    cx: float
    cy: float
    r: float


@dataclass(frozen=True)
class ArcParams:
    cx: float
    cy: float
    r: float
    a1: float
    a2: float

    @property
    def sweep(self):
        """Counter-clockwise sweep from a1 to a2 in radians, 0 <= sweep < 2*pi (exactly 360 is a full turn)."""
        delta = self.a2 - self.a1
        if delta == 360:
            return 2 * math.pi
        return math.radians(delta % 360)

    def point_at(self, angle_rad):
        return (self.cx + self.r * math.cos(angle_rad), self.cy + self.r * math.sin(angle_rad))

    @property
    def start_point(self):
        return self.point_at(math.radians(self.a1))

    @property
    def end_point(self):
        return self.point_at(math.radians(self.a1) + self.sweep)


@dataclass(frozen=True)
class PolyParams:
    points: tuple
    closed: bool


@dataclass(frozen=True)
class NormalizedEntity:
    id: int
    kind: EntityKind
    length_m: float
    start: tuple
    params: object

    @property
    def is_loop(self):
        """Circles and closed polylines are self-contained cut loops."""
        return self.kind is EntityKind.CIRCLE or (self.kind is EntityKind.POLY and self.params.closed)

    def to_dict(self):
        p = self.params
        if self.kind is EntityKind.POLY:
            raw = {"pts": [list(pt) for pt in p.points], "closed": p.closed}
        else:
            raw = dict(vars(p))
        return {"id": self.id, "type": self.kind.value, "length_m": self.length_m,
                "start": list(self.start), "raw": raw}


@dataclass(frozen=True)
class BoundingBox:
    w: float = 0.0
    h: float = 0.0
    min_x: float = 0.0
    min_y: float = 0.0

    def to_dict(self):
        return {"w": self.w, "h": self.h, "minX": self.min_x, "minY": self.min_y}


def _finite(*values):
    return all(v is not None and math.isfinite(v) for v in values)


def polyline_length(points, closed):
    length = sum(math.dist(points[i - 1], points[i]) for i in range(1, len(points)))
    if closed:
        length += math.dist(points[-1], points[0])
    return length


def normalize_one(raw):
    """Return (kind, length_mm, start, params) for a raw record, or None if it is degenerate."""
    if raw.kind == "LINE":
        if not _finite(raw.x1, raw.y1, raw.x2, raw.y2):
            return None
        params = LineParams(raw.x1, raw.y1, raw.x2, raw.y2)
        return EntityKind.LINE, math.hypot(raw.x2 - raw.x1, raw.y2 - raw.y1), (raw.x1, raw.y1), params

    if raw.kind == "CIRCLE":
        if not _finite(raw.cx, raw.cy, raw.r) or raw.r <= 0:
            return None
        params = CircleParams(raw.cx, raw.cy, raw.r)
        return EntityKind.CIRCLE, 2 * math.pi * raw.r, (raw.cx, raw.cy), params

    if raw.kind == "ARC":
        if not _finite(raw.cx, raw.cy, raw.r, raw.a1, raw.a2) or raw.r <= 0:
            return None
        params = ArcParams(raw.cx, raw.cy, raw.r, raw.a1, raw.a2)
        return EntityKind.ARC, raw.r * params.sweep, params.start_point, params

    if raw.kind in ("LWPOLYLINE", "POLYLINE"):
        points = tuple((x, y) for x, y in raw.vertices if _finite(x, y))
        if len(points) < 2:
            return None
        # exact equality on purpose: near-closed outlines stay open paths
        closed = raw.closed or (len(points) > 2 and points[0] == points[-1])
        params = PolyParams(points, closed)
        return EntityKind.POLY, polyline_length(points, closed), points[0], params

    return None


def normalize(raw_entities):
    """Normalize raw records; ids are dense in insertion order after filtering."""
    entities = []
    dropped = 0
    for raw in raw_entities:
        normalized = normalize_one(raw)
        if normalized is None:
            dropped += 1
            logging.debug(f"Dropping degenerate {raw.kind}: {raw}")
            continue
        kind, length_mm, start, params = normalized
        ends = (params.end_point,) if kind is EntityKind.ARC else ()
        if not (_finite(length_mm) and length_mm >= 0 and all(_finite(*pt) for pt in (start,) + ends)):
            dropped += 1
            logging.debug(f"Dropping {raw.kind} with overflowing geometry: {raw}")
            continue
        entities.append(NormalizedEntity(len(entities), kind, length_mm / MM_PER_M, start, params))
    if dropped:
        logging.info(f"Dropped {dropped} degenerate entities, kept {len(entities)}")
    return entities


def entity_bounds(entity):
    """(min_x, min_y, max_x, max_y) of an entity; arcs use their full circle."""
    p = entity.params
    if entity.kind is EntityKind.LINE:
        return min(p.x1, p.x2), min(p.y1, p.y2), max(p.x1, p.x2), max(p.y1, p.y2)
    if entity.kind in (EntityKind.CIRCLE, EntityKind.ARC):
        return p.cx - p.r, p.cy - p.r, p.cx + p.r, p.cy + p.r
    xs = [pt[0] for pt in p.points]
    ys = [pt[1] for pt in p.points]
    return min(xs), min(ys), max(xs), max(ys)


def bounding_box(entities):
    """Part footprint of a set of entities; all zeros when there is nothing to measure."""
    if not entities:
        return BoundingBox()
    bounds = [entity_bounds(e) for e in entities]
    min_x = min(b[0] for b in bounds)
    min_y = min(b[1] for b in bounds)
    max_x = max(b[2] for b in bounds)
    max_y = max(b[3] for b in bounds)
    if not _finite(min_x, min_y, max_x, max_y):
        return BoundingBox()
    return BoundingBox(max(0.0, max_x - min_x), max(0.0, max_y - min_y), min_x, min_y)
