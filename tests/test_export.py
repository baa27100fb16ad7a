import io

import ezdxf

from cutplan.utils import dxf_parser
from cutplan.utils.export import create_csv, find_entities_end, insert_labels, insert_markers, write_dxf


def test_create_csv(line_and_circle_dxf):
    lines = create_csv(dxf_parser.parse(line_and_circle_dxf)).splitlines()
    assert lines[0] == "section,key,value"
    assert "summary,entities,2" in lines
    assert "summary,total_len_m,0.299" in lines
    assert "summary,pierces,2" in lines
    assert "pierce,1,0.000,0.000" in lines
    assert "pierce,2,75.000,50.000" in lines
    assert "entity,1,LINE,0.141" in lines
    assert "entity,2,CIRCLE,0.157" in lines


def test_find_entities_end(line_and_circle_dxf):
    lines = line_and_circle_dxf.splitlines()
    end = find_entities_end(lines)
    assert lines[end:end + 2] == ["0", "ENDSEC"]
    assert find_entities_end(["0", "EOF"]) == -1


def test_find_entities_end_skips_other_sections(plate_dxf):
    lines = plate_dxf.splitlines()
    end = find_entities_end(lines)
    before = [line.strip() for line in lines[:end]]
    assert "ENTITIES" in before
    assert "OBJECTS" not in before


def test_insert_markers(line_and_circle_dxf):
    result = dxf_parser.parse(line_and_circle_dxf)
    marked = insert_markers(line_and_circle_dxf, result)
    assert "MARKERS" in marked.splitlines()
    reparsed = dxf_parser.parse(marked)
    assert reparsed.entity_counts() == {"LINE": 1, "CIRCLE": 3}
    markers = [e for e in reparsed.entities if e.kind.value == "CIRCLE" and e.params.r == 0.5]
    assert [(m.params.cx, m.params.cy) for m in markers] == [(0, 0), (75, 50)]


def test_insert_markers_without_section(line_and_circle_dxf):
    result = dxf_parser.parse(line_and_circle_dxf)
    marked = insert_markers("0\nEOF\n", result)
    assert marked.startswith("0\nEOF\n")
    assert "; M2 X=75.00 Y=50.00" in marked.splitlines()


def test_insert_markers_no_pierces(make_dxf):
    text = make_dxf()
    assert insert_markers(text, dxf_parser.parse(text)) == text


def test_insert_labels(line_and_circle_dxf):
    result = dxf_parser.parse(line_and_circle_dxf)
    labelled = insert_labels(line_and_circle_dxf, result)
    lines = labelled.splitlines()
    assert "P1" in lines and "P2" in lines
    assert "ANNOT" in lines
    # TEXT records are not cut geometry
    assert len(dxf_parser.parse(labelled).entities) == 2


def test_insert_labels_without_section(rectangle_dxf):
    result = dxf_parser.parse(rectangle_dxf)
    labelled = insert_labels("999\nno sections\n", result)
    assert "; PIERCE LABELS" in labelled
    assert "; P1 X=0.00 Y=0.00" in labelled


def test_write_dxf_round_trip(plate_dxf):
    result = dxf_parser.parse(plate_dxf)
    doc = ezdxf.read(io.StringIO(write_dxf(result)))
    msp = doc.modelspace()
    assert len(msp.query('*[layer=="CUT"]')) == 3
    assert len(msp.query('CIRCLE[layer=="MARKERS"]')) == result.pierce_count
    labels = sorted(text.dxf.text for text in msp.query('TEXT[layer=="ANNOT"]'))
    assert labels == ["P1", "P2", "P3"]
    (outline,) = msp.query("LWPOLYLINE")
    assert outline.closed


def test_write_dxf_arcs_and_lines_without_labels(make_dxf):
    text = make_dxf(
        ["0", "LINE", "10", "0", "20", "0", "11", "10", "21", "0"],
        ["0", "ARC", "10", "10", "20", "5", "40", "5", "50", "270", "51", "90"],
    )
    result = dxf_parser.parse(text)
    doc = ezdxf.read(io.StringIO(write_dxf(result, labels=False)))
    msp = doc.modelspace()
    (arc,) = msp.query("ARC")
    assert arc.dxf.radius == 5
    assert len(msp.query("TEXT")) == 0
    reparsed = dxf_parser.parse(write_dxf(result, labels=False))
    assert reparsed.total_length_m > result.total_length_m
