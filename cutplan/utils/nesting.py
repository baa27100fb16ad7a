# nesting.py
# Rectangular grid nesting of one part footprint on a sheet, trying a few axis-aligned rotations.
# Bad input never raises; it just places nothing.

import logging
import math
from dataclasses import asdict, dataclass, field

DEFAULT_ROTATIONS = (0, 90)


@dataclass(frozen=True)
class Grid:
    columns: int = 0
    rows: int = 0
    placed_count: int = 0
    positions: tuple = ()
    work_w: float = 0.0
    work_h: float = 0.0


@dataclass(frozen=True)
class NestingResult:
    columns: int
    rows: int
    placed_count: int
    rotation_deg: int
    part_w: float
    part_h: float
    positions: tuple
    work_w: float
    work_h: float
    sheets_needed: int
    sheet_w: float
    sheet_h: float
    margin: float
    gap: float
    rotations_tried: tuple = field(default_factory=tuple)

    def to_dict(self):
        data = asdict(self)
        data["positions"] = [{"x": x, "y": y} for x, y in self.positions]
        data["rotations_tried"] = list(self.rotations_tried)
        return data


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _positive(value):
    return _is_number(value) and value > 0


def _non_negative(value):
    return value if _is_number(value) and value >= 0 else 0


def compute_grid(sheet_w, sheet_h, margin, gap, part_w, part_h, qty):
    """Row-major, top-left anchored grid of one orientation."""
    if not (_positive(sheet_w) and _positive(sheet_h) and _positive(part_w) and _positive(part_h)):
        return Grid()
    margin, gap, qty = _non_negative(margin), _non_negative(gap), _non_negative(qty)
    work_w = sheet_w - 2 * margin
    work_h = sheet_h - 2 * margin
    if work_w <= 0 or work_h <= 0:
        return Grid()

    columns = max(0, math.floor((work_w + gap) / (part_w + gap)))
    rows = max(0, math.floor((work_h + gap) / (part_h + gap)))
    placed = int(min(qty, columns * rows))
    positions = []
    for r in range(rows):
        for c in range(columns):
            if len(positions) >= placed:
                break
            positions.append((margin + c * (part_w + gap), margin + r * (part_h + gap)))
        if len(positions) >= placed:
            break
    return Grid(columns, rows, placed, tuple(positions), work_w, work_h)


def normalize_rotations(rotations):
    seen = []
    for rotation in rotations:
        if not _is_number(rotation):
            continue
        rotation = rotation % 360
        if rotation not in seen:
            seen.append(rotation)
    return tuple(seen)


def nest(sheet_w, sheet_h, margin, gap, qty, part_w, part_h, rotations=DEFAULT_ROTATIONS):
    """Pick the rotation placing the most parts (then the larger work area) and count the sheets."""
    tried = normalize_rotations(rotations)
    options = []
    for rotation in tried:
        swapped = rotation in (90, 270)
        w, h = (part_h, part_w) if swapped else (part_w, part_h)
        grid = compute_grid(sheet_w, sheet_h, margin, gap, w, h, qty)
        options.append((rotation, w, h, grid))
    # stable: the first rotation wins a full tie
    options.sort(key=lambda o: (-o[3].placed_count, -(o[3].work_w * o[3].work_h)))
    rotation, w, h, best = options[0] if options else (0, part_w, part_h, Grid())

    qty = _non_negative(qty)
    sheets = max(1, math.ceil(qty / max(best.placed_count, 1)))
    logging.info(f"Nesting {part_w}x{part_h} on {sheet_w}x{sheet_h}: {best.placed_count}/sheet "
                 f"at {rotation} deg, {sheets} sheet(s) for {qty}")
    return NestingResult(
        columns=best.columns, rows=best.rows, placed_count=best.placed_count, rotation_deg=rotation,
        part_w=w, part_h=h, positions=best.positions, work_w=best.work_w, work_h=best.work_h,
        sheets_needed=sheets, sheet_w=sheet_w, sheet_h=sheet_h,
        margin=_non_negative(margin), gap=_non_negative(gap), rotations_tried=tried,
    )


def efficiency(result):
    """Share of the sheet covered by placed part footprints, in percent."""
    sheet_area = result.sheet_w * result.sheet_h if _positive(result.sheet_w) and _positive(result.sheet_h) else 0
    if not sheet_area:
        return 0.0
    return result.placed_count * result.part_w * result.part_h / sheet_area * 100


def nesting_report(result):
    lines = [
        "=== NESTING REPORT ===",
        f"Sheet: {result.sheet_w} x {result.sheet_h} mm, margin {result.margin} mm, gap {result.gap} mm",
        f"Part rotation: {result.rotation_deg} deg",
        f"Per sheet: {result.placed_count} pcs (grid {result.columns} x {result.rows})",
        f"Sheets needed: {result.sheets_needed}",
        f"Area efficiency: {efficiency(result):.1f}%",
    ]
    return "\n".join(lines)
