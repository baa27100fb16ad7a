# dxf_reader.py
# Reads DXF group-code/value pairs and rebuilds the raw cut entities found in the ENTITIES section.
# Only LINE, CIRCLE, ARC, LWPOLYLINE and POLYLINE (with VERTEX/SEQEND) are kept; everything else is skipped.

import logging
import math
import re
from dataclasses import dataclass, field

LINE_SPLIT = re.compile(r"\r?\n")


class MissingSectionError(ValueError):
    """The drawing has no ENTITIES section, so there is no cuttable geometry."""


def iter_pairs(text):
    """Yield (code, value) pairs two lines at a time, skipping pairs with a non-integer code line."""
    lines = LINE_SPLIT.split(text or "")
    i = 0
    while i + 1 < len(lines):
        code_line = lines[i].strip()
        value = lines[i + 1].strip()
        i += 2
        try:
            code = int(code_line)
        except ValueError:
            logging.debug(f"Skipping malformed group code {code_line!r} at line {i - 1}")
            continue
        yield code, value


class PairStream:
    """Pair iterator that can push one pair back."""

    def __init__(self, text):
        self._pairs = iter_pairs(text)
        self._pending = None

    def __iter__(self):
        return self

    def __next__(self):
        if self._pending is not None:
            pair, self._pending = self._pending, None
            return pair
        return next(self._pairs)

    def push_back(self, pair):
        self._pending = pair


def to_float(value):
    try:
        return float(value)
    except ValueError:
        return math.nan


def to_int(value):
    try:
        return int(value)
    except ValueError:
        return 0


class _FieldRecord:
    # group code -> attribute name
    CODES = {}

    def feed(self, code, value):
        name = self.CODES.get(code)
        if name:
            setattr(self, name, to_float(value))


@dataclass
class RawLine(_FieldRecord):
    kind = "LINE"
    CODES = {10: "x1", 20: "y1", 11: "x2", 21: "y2"}
    x1: float = 0.0
    y1: float = 0.0
    x2: float = 0.0
    y2: float = 0.0


@dataclass
class RawCircle(_FieldRecord):
    kind = "CIRCLE"
    CODES = {10: "cx", 20: "cy", 40: "r"}
    cx: float = 0.0
    cy: float = 0.0
    r: float = 0.0


@dataclass
class RawArc(_FieldRecord):
    kind = "ARC"
    CODES = {10: "cx", 20: "cy", 40: "r", 50: "a1", 51: "a2"}
    cx: float = 0.0
    cy: float = 0.0
    r: float = 0.0
    a1: float = 0.0
    a2: float = 0.0


@dataclass
class RawPolyline:
    """LWPOLYLINE carries its vertices inline; POLYLINE gets them from VERTEX records."""
    kind: str = "LWPOLYLINE"
    vertices: list = field(default_factory=list)
    flags: int = 0

    @property
    def closed(self):
        return bool(self.flags & 1)

    def feed(self, code, value):
        if code == 70:
            self.flags = to_int(value)
        elif self.kind == "LWPOLYLINE":
            self.feed_vertex(code, value)

    def feed_vertex(self, code, value):
        if code == 10:
            self.vertices.append([to_float(value), None])
        elif code == 20 and self.vertices:
            self.vertices[-1][1] = to_float(value)


def new_record(name):
    if name == "LINE":
        return RawLine()
    if name == "CIRCLE":
        return RawCircle()
    if name == "ARC":
        return RawArc()
    if name in ("LWPOLYLINE", "POLYLINE"):
        return RawPolyline(kind=name)
    return None


def find_entities_section(stream):
    """Advance the stream past a SECTION header named ENTITIES. Returns False if there is none."""
    for code, value in stream:
        if code != 0 or value.upper() != "SECTION":
            continue
        name = None
        for pair in stream:
            if pair[0] == 2:
                name = pair[1].upper()
            elif pair[0] == 0:
                stream.push_back(pair)
                break
        if name == "ENTITIES":
            return True
    return False


def extract_entities(text):
    """Return the raw LINE/CIRCLE/ARC/polyline records of the ENTITIES section in completion order."""
    stream = PairStream(text)
    if not find_entities_section(stream):
        raise MissingSectionError("No ENTITIES section found in drawing")

    raw = []
    ignored = {}
    current = None
    open_polyline = None
    in_vertex = False
    for code, value in stream:
        if code != 0:
            if current is None:
                continue
            if in_vertex:
                current.feed_vertex(code, value)
            else:
                current.feed(code, value)
            continue

        name = value.upper()
        if name == "VERTEX" and open_polyline is not None:
            current, in_vertex = open_polyline, True
            continue
        if current is not None and current is not open_polyline:
            raw.append(current)
        current, in_vertex = None, False
        if name == "SEQEND" and open_polyline is not None:
            raw.append(open_polyline)
            open_polyline = None
            continue
        if open_polyline is not None:
            logging.warning(f"POLYLINE without SEQEND closed by {name} record")
            raw.append(open_polyline)
            open_polyline = None
        if name == "ENDSEC":
            break
        current = new_record(name)
        if current is None:
            ignored[name] = ignored.get(name, 0) + 1
        elif name == "POLYLINE":
            open_polyline = current

    if current is not None and current is not open_polyline:
        raw.append(current)
    if open_polyline is not None:
        logging.warning("POLYLINE without SEQEND at end of drawing")
        raw.append(open_polyline)
    if ignored:
        logging.info(f"Ignored unsupported entities: {ignored}")
    return raw
