# pierce.py
# Finds the physically separate toolpaths of a drawing. Open entities that share an endpoint
# (within EPS) form one path; every circle and closed polyline is a path of its own.
# Each path gets one pierce point, picked as the lowest (x, then y) candidate point.

import logging
import math
from collections import deque

from cutplan.utils.geometry import EntityKind

EPS = 0.8  # mm


def _cell(value, eps):
    scaled = value / eps + 0.5
    # coordinates past the float range all land in the infinite cell
    return math.floor(scaled) if math.isfinite(scaled) else scaled


def quantize(point, eps=EPS):
    # halves round up: -0.5 -> 0, 0.5 -> 1
    return _cell(point[0], eps), _cell(point[1], eps)


def endpoints(entity):
    """Both ends of an open entity; loops have none."""
    p = entity.params
    if entity.kind is EntityKind.LINE:
        return [(p.x1, p.y1), (p.x2, p.y2)]
    if entity.kind is EntityKind.ARC:
        return [p.start_point, p.end_point]
    if entity.kind is EntityKind.POLY and not p.closed:
        return [p.points[0], p.points[-1]]
    return []


def candidate_points(entity):
    p = entity.params
    if entity.kind is EntityKind.CIRCLE:
        return [(p.cx + p.r, p.cy)]
    if entity.kind is EntityKind.POLY and p.closed:
        return [p.points[0]]
    return endpoints(entity)


def build_adjacency(entities, eps=EPS):
    """Adjacency list over entity ids: open entities sharing a quantized endpoint are neighbours."""
    nodes = {}
    for entity in entities:
        if entity.is_loop:
            continue
        for point in endpoints(entity):
            nodes.setdefault(quantize(point, eps), set()).add(entity.id)
    adjacency = [set() for _ in entities]
    for ids in nodes.values():
        for entity_id in ids:
            adjacency[entity_id].update(ids)
            adjacency[entity_id].discard(entity_id)
    return [sorted(neighbours) for neighbours in adjacency]


def find_components(entities, eps=EPS):
    """Connected components by BFS, seeded in id order. Loops never traverse adjacency."""
    adjacency = build_adjacency(entities, eps)
    visited = [False] * len(entities)
    components = []
    for seed in range(len(entities)):
        if visited[seed]:
            continue
        visited[seed] = True
        queue = deque([seed])
        component = []
        while queue:
            k = queue.popleft()
            component.append(k)
            if entities[k].is_loop:
                continue
            for neighbour in adjacency[k]:
                if not visited[neighbour]:
                    visited[neighbour] = True
                    queue.append(neighbour)
        components.append(component)
    return components


def detect_pierces(entities, eps=EPS):
    """Return (pierce_points, pierce_count): one point per component, in discovery order."""
    components = find_components(entities, eps)
    pierce_points = []
    for component in components:
        candidates = [pt for entity_id in component for pt in candidate_points(entities[entity_id])]
        if candidates:
            pierce_points.append(min(candidates))
    logging.debug(f"Pierce detection: {len(components)} components from {len(entities)} entities")
    return pierce_points, len(components)
