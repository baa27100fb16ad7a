from flask import Blueprint, Response, current_app, jsonify, request
from flask_cors import cross_origin
import logging
import math
import os

from werkzeug.utils import secure_filename

from cutplan.config import parse_rotations
from cutplan.utils import costing, dxf_parser, export, nesting

main_bp = Blueprint('main', __name__)

EXPORT_TYPES = {
    "csv": ("text/csv", ".csv"),
    "markers": ("application/dxf", "_markers.dxf"),
    "labels": ("application/dxf", "_labels.dxf"),
    "dxf": ("application/dxf", "_clean.dxf"),
}


def _read_upload():
    """DXF text and a file name from the multipart `file` field, or the raw request body."""
    file = request.files.get('file')
    if file is not None and file.filename:
        if not file.filename.lower().endswith('.dxf'):
            logging.warning(f"Upload without .dxf extension: {file.filename}")
        return file.read().decode('utf-8', errors='replace'), secure_filename(file.filename) or 'drawing.dxf'
    body = request.get_data(as_text=True)
    if body and body.strip():
        return body, 'drawing.dxf'
    return None, None


def _number(source, key, default):
    """Float from a form or JSON mapping; blank or missing values give the default."""
    value = source.get(key)
    if value is None or value == '':
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid number for {key}: {value!r}")


def _parse_upload():
    text, filename = _read_upload()
    if text is None:
        return None, filename, (jsonify({"error": "No DXF file or body in the request"}), 400)
    try:
        result = dxf_parser.parse(text)
    except dxf_parser.MissingSectionError as e:
        logging.warning(f"Rejected {filename}: {e}")
        return None, filename, (jsonify({"error": "no cuttable geometry found"}), 422)
    return (text, result), filename, None


@main_bp.route('/health', methods=['GET'])
def health():
    return jsonify({"status": "ok"})


@main_bp.route('/parse', methods=['POST'])
@cross_origin()
def parse_dxf():
    parsed, filename, error = _parse_upload()
    if error:
        return error
    _, result = parsed
    logging.info(f"Parsed upload {filename}: {result.pierce_count} pierces, {result.total_length_m:.3f} m")
    return jsonify(result.to_dict())


@main_bp.route('/nest', methods=['POST'])
def nest_parts():
    data = request.get_json(silent=True) or {}
    sheet = current_app.config['CUTPLAN'].sheet
    try:
        rotations = parse_rotations(data['rotations']) if 'rotations' in data else \
            current_app.config['CUTPLAN'].nesting.rotations
        params = dict(
            sheet_w=_number(data, 'sheet_w', sheet.width),
            sheet_h=_number(data, 'sheet_h', sheet.height),
            margin=_number(data, 'margin', sheet.margin),
            gap=_number(data, 'gap', sheet.spacing),
            qty=_number(data, 'quantity', sheet.quantity),
            part_w=_number(data, 'part_w', 0),
            part_h=_number(data, 'part_h', 0),
        )
    except (TypeError, ValueError) as e:
        return jsonify({"error": str(e)}), 400
    result = nesting.nest(rotations=rotations, **params)
    response = result.to_dict()
    response["efficiency"] = nesting.efficiency(result)
    response["report"] = nesting.nesting_report(result)
    return jsonify(response)


@main_bp.route('/quote', methods=['POST'])
@cross_origin()
def quote():
    parsed, filename, error = _parse_upload()
    if error:
        return error
    _, result = parsed
    app_config = current_app.config['CUTPLAN']
    cutting, sheet = app_config.cutting, app_config.sheet
    form = request.form
    try:
        power = _number(form, 'power', cutting.power)
        thickness = _number(form, 'thickness', cutting.thickness)
        gas = form.get('gas') or cutting.gas
        quantity = _number(form, 'quantity', sheet.quantity)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    try:
        params = costing.calc_cut_params(power, thickness, gas, cutting)
    except costing.CuttingParamsError as e:
        return jsonify({"error": str(e), "max_thickness": costing.max_thickness(power, gas)}), 400

    if not result.entities:
        return jsonify({"error": "No valid geometry found"}), 400
    per_part = costing.estimate_cost(result.total_length_m, result.pierce_count, params, app_config.pricing)
    layout = nesting.nest(sheet.width, sheet.height, sheet.margin, sheet.spacing, quantity,
                          result.bbox.w, result.bbox.h, app_config.nesting.rotations)
    parts = quantity if math.isfinite(quantity) and quantity > 0 else 0
    logging.info(f"Quote for {filename}: {parts} pcs on {layout.sheets_needed} sheet(s), "
                 f"{per_part.total_cost:.2f} per part")
    return jsonify({
        "file": filename,
        "parse": {
            "total_length_m": result.total_length_m,
            "pierce_count": result.pierce_count,
            "bbox": result.bbox.to_dict(),
            "net_area_mm2": result.net_area_mm2,
            "entity_count": result.entity_counts(),
        },
        "cut_params": {"power": power, "gas": gas, "thickness": thickness, "speed": params.speed,
                       "pierce": params.pierce, "gas_cons": params.gas_cons},
        "per_part": per_part.to_dict(),
        "total": per_part.scaled(parts).to_dict(),
        "quantity": parts,
        "nesting": layout.to_dict(),
    })


@main_bp.route('/export/<fmt>', methods=['POST'])
def export_file(fmt):
    if fmt not in EXPORT_TYPES:
        return jsonify({"error": f"Unknown export format: {fmt}. Use one of {sorted(EXPORT_TYPES)}"}), 404
    parsed, filename, error = _parse_upload()
    if error:
        return error
    text, result = parsed
    if fmt == 'csv':
        body = export.create_csv(result)
    elif fmt == 'markers':
        body = export.insert_markers(text, result)
    elif fmt == 'labels':
        body = export.insert_labels(text, result)
    else:
        body = export.write_dxf(result)
    mimetype, suffix = EXPORT_TYPES[fmt]
    download = os.path.splitext(filename)[0] + suffix
    logging.info(f"Export {fmt} for {filename} as {download}")
    return Response(body, mimetype=mimetype, headers={"Content-Disposition": f"attachment; filename={download}"})
