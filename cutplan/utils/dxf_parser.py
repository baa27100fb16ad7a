# dxf_parser.py
# Parses DXF text into the cut data used for laser quoting: normalized entities and total cut length,
# pierce points (one per separate toolpath), closed loops with their nesting depth, and the cut order.

import logging
import time
from dataclasses import dataclass

from cutplan.utils.dxf_reader import MissingSectionError, extract_entities
from cutplan.utils.geometry import BoundingBox, bounding_box, normalize
from cutplan.utils.loops import cut_order, find_loops, net_area
from cutplan.utils.pierce import detect_pierces

__all__ = ["MissingSectionError", "ParseResult", "parse", "parse_file"]


@dataclass(frozen=True)
class ParseResult:
    entities: tuple
    total_length_m: float
    pierce_points: tuple
    pierce_count: int
    loops: tuple
    cut_order: tuple
    bbox: BoundingBox = BoundingBox()
    net_area_mm2: float = 0.0

    def entity_counts(self):
        counts = {}
        for entity in self.entities:
            counts[entity.kind.value] = counts.get(entity.kind.value, 0) + 1
        return counts

    def to_dict(self):
        return {
            "entities": [e.to_dict() for e in self.entities],
            "total_length_m": self.total_length_m,
            "pierce_points": [list(pt) for pt in self.pierce_points],
            "pierce_count": self.pierce_count,
            "loops": [loop.to_dict() for loop in self.loops],
            "cut_order": list(self.cut_order),
            "bbox": self.bbox.to_dict(),
            "net_area_mm2": self.net_area_mm2,
            "entity_count": self.entity_counts(),
        }


def parse(text):
    """Parse DXF text. Raises MissingSectionError when there is no ENTITIES section."""
    start_time = time.time()
    entities = tuple(normalize(extract_entities(text)))
    total_length = sum(e.length_m for e in entities)
    pierce_points, pierce_count = detect_pierces(entities)
    loops = tuple(find_loops(entities))
    result = ParseResult(
        entities=entities,
        total_length_m=total_length,
        pierce_points=tuple(pierce_points),
        pierce_count=pierce_count,
        loops=loops,
        cut_order=tuple(cut_order(loops)),
        bbox=bounding_box(entities),
        net_area_mm2=net_area(loops),
    )
    logging.info(f"Parsed {len(entities)} entities in {time.time() - start_time:.3f}s: "
                 f"length={total_length:.3f} m, pierces={pierce_count}, loops={len(loops)}, "
                 f"counts={result.entity_counts()}")
    return result


def parse_file(file_path, encoding="utf-8"):
    """Read a DXF file from disk and parse it. Undecodable bytes are replaced, not fatal."""
    with open(file_path, "r", encoding=encoding, errors="replace") as f:
        text = f.read()
    logging.info(f"Parsing {file_path} ({len(text)} chars)")
    return parse(text)
