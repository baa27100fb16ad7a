import argparse
import csv
import logging
import os
import sys

# Ensure project root is in sys.path
SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(SCRIPT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)
from cutplan.utils import dxf_parser

ENTITY_TYPES = ["LINE", "CIRCLE", "ARC", "POLY"]
FIELDS = ["file", "status", "total_length_m", "pierce_count", "loops", "bbox_w", "bbox_h", "net_area_mm2"] + ENTITY_TYPES


def summarize(path):
    """One CSV row for a DXF file; files without an ENTITIES section get status 'no geometry'."""
    row = {"file": os.path.basename(path)}
    try:
        result = dxf_parser.parse_file(path)
    except dxf_parser.MissingSectionError:
        row["status"] = "no geometry"
        return row
    except OSError as e:
        logging.error(f"Could not read {path}: {e}")
        row["status"] = "unreadable"
        return row
    counts = result.entity_counts()
    row.update({
        "status": "ok",
        "total_length_m": f"{result.total_length_m:.4f}",
        "pierce_count": result.pierce_count,
        "loops": len(result.loops),
        "bbox_w": f"{result.bbox.w:.2f}",
        "bbox_h": f"{result.bbox.h:.2f}",
        "net_area_mm2": f"{result.net_area_mm2:.1f}",
    })
    for etype in ENTITY_TYPES:
        row[etype] = counts.get(etype, 0)
    return row


def main(argv=None):
    parser = argparse.ArgumentParser(description="Parse every DXF in a directory and write a CSV summary.")
    parser.add_argument("directory", help="directory containing .dxf files")
    parser.add_argument("-o", "--output", default="dxf_summary.csv", help="CSV file to write")
    args = parser.parse_args(argv)

    files = sorted(f for f in os.listdir(args.directory) if f.lower().endswith('.dxf'))
    if not files:
        print(f"No DXF files found in {args.directory}")
        return 1

    results = [summarize(os.path.join(args.directory, fname)) for fname in files]
    with open(args.output, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=FIELDS)
        writer.writeheader()
        writer.writerows(results)
    print(f"Parsed {len(results)} files. Results written to {args.output}")
    # Also print a summary table
    print(f"\n{'File':40} {'Status':12} {'Length m':>10} {'Pierces':>8}")
    for row in results:
        print(f"{row['file'][:40]:40} {row['status']:12} {str(row.get('total_length_m', '')):>10} "
              f"{str(row.get('pierce_count', '')):>8}")
    return 0


if __name__ == '__main__':
    logging.basicConfig(level=logging.WARNING, format='%(asctime)s - %(levelname)s - %(message)s')
    sys.exit(main())
