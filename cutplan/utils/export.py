# export.py
# Export helpers for a parsed drawing: CSV summary, pierce markers or P# labels spliced into the
# uploaded DXF text, and a clean DXF of the normalized geometry written with ezdxf.

import csv
import io
import logging

import ezdxf

from cutplan.utils.geometry import EntityKind

MARKER_LAYER = "MARKERS"
LABEL_LAYER = "ANNOT"
CUT_LAYER = "CUT"


def create_csv(result):
    """Summary, pierce points and entities as one CSV document."""
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(["section", "key", "value"])
    writer.writerow(["summary", "entities", len(result.entities)])
    writer.writerow(["summary", "total_len_m", f"{result.total_length_m:.3f}"])
    writer.writerow(["summary", "pierces", result.pierce_count])
    writer.writerow([])
    writer.writerow(["pierce", "index", "x", "y"])
    for i, (x, y) in enumerate(result.pierce_points, start=1):
        writer.writerow(["pierce", i, f"{x:.3f}", f"{y:.3f}"])
    writer.writerow([])
    writer.writerow(["entity", "index", "type", "length"])
    for i, entity in enumerate(result.entities, start=1):
        writer.writerow(["entity", i, entity.kind.value, f"{entity.length_m:.3f}"])
    return out.getvalue()


def find_entities_end(lines):
    """Index of the '0' line of the ENDSEC closing the ENTITIES section, or -1."""
    for i in range(len(lines) - 1):
        if lines[i].strip() != "0" or lines[i + 1].strip().upper() != "SECTION":
            continue
        for j in range(i + 2, min(i + 12, len(lines) - 1), 2):
            if lines[j].strip() == "2" and lines[j + 1].strip().upper() == "ENTITIES":
                for k in range(j + 2, len(lines) - 1):
                    if lines[k].strip() == "0" and lines[k + 1].strip().upper() == "ENDSEC":
                        return k
                return -1
    return -1


def _splice(text, records, fallback_title, prefix, points):
    lines = text.splitlines()
    end = find_entities_end(lines)
    if end == -1:
        logging.warning(f"No ENTITIES section to annotate, appending {fallback_title} as comments")
        notes = [f"; {fallback_title}"]
        notes += [f"; {prefix}{i} X={x:.2f} Y={y:.2f}" for i, (x, y) in enumerate(points, start=1)]
        return text + "\n" + "\n".join(notes) + "\n"
    return "\n".join(lines[:end] + records + lines[end:]) + "\n"


def insert_markers(text, result, radius=0.5):
    """Add a small CIRCLE on the MARKERS layer at every pierce point."""
    points = list(result.pierce_points)
    if not points:
        return text
    radius = max(1e-6, float(radius or 0.5))
    records = []
    for x, y in points:
        records += ["0", "CIRCLE", "8", MARKER_LAYER, "10", repr(float(x)), "20", repr(float(y)),
                    "30", "0", "40", repr(radius)]
    return _splice(text, records, "MARKERS", "M", points)


def insert_labels(text, result, height=5.0):
    """Add a TEXT label P1, P2, ... on the ANNOT layer at every pierce point."""
    points = list(result.pierce_points)
    if not points:
        return text
    records = []
    for i, (x, y) in enumerate(points, start=1):
        records += ["0", "TEXT", "8", LABEL_LAYER, "10", repr(float(x)), "20", repr(float(y)),
                    "30", "0", "40", repr(float(height)), "1", f"P{i}", "50", "0"]
    return _splice(text, records, "PIERCE LABELS", "P", points)


def write_dxf(result, marker_radius=0.5, label_height=5.0, labels=True):
    """Fresh DXF (R2010) holding the normalized cut geometry plus pierce markers and labels."""
    doc = ezdxf.new("R2010")
    doc.layers.add(CUT_LAYER, color=7)
    doc.layers.add(MARKER_LAYER, color=1)
    doc.layers.add(LABEL_LAYER, color=3)
    msp = doc.modelspace()
    cut = {"layer": CUT_LAYER}
    for entity in result.entities:
        p = entity.params
        if entity.kind is EntityKind.LINE:
            msp.add_line((p.x1, p.y1), (p.x2, p.y2), dxfattribs=cut)
        elif entity.kind is EntityKind.CIRCLE:
            msp.add_circle((p.cx, p.cy), p.r, dxfattribs=cut)
        elif entity.kind is EntityKind.ARC:
            msp.add_arc((p.cx, p.cy), p.r, p.a1, p.a2, dxfattribs=cut)
        else:
            msp.add_lwpolyline(p.points, close=p.closed, dxfattribs=cut)
    for i, (x, y) in enumerate(result.pierce_points, start=1):
        msp.add_circle((x, y), marker_radius, dxfattribs={"layer": MARKER_LAYER})
        if labels:
            msp.add_text(f"P{i}", dxfattribs={"layer": LABEL_LAYER, "height": label_height, "insert": (x, y)})
    stream = io.StringIO()
    doc.write(stream)
    logging.info(f"Exported {len(result.entities)} entities and {len(result.pierce_points)} markers to DXF")
    return stream.getvalue()
