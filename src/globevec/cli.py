# src/globevec/cli.py

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from globevec.vector import ShapeKind, ShapeSet
from globevec.io import (
    OGRVectorReader,
    parse_geojson,
    read_all,
    read_vector_file,
    serialize_geojson,
    write_ogr_file,
    write_vector_file
)

GEOJSON_SUFFIXES = {".geojson", ".json"}
VECFILE_SUFFIX = ".gvec"

def setup_logging(level: int = logging.INFO) -> None:
    """
    Configures the standard logging format and level for the command-line interface.

    Args:
        level (int): The logging threshold level.
    """
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

def load_shapes(path: Path) -> Tuple[Optional[ShapeSet], Optional[str]]:
    """
    Reads shapes from any supported input, dispatching on the file extension.

    Args:
        path (Path): A .gvec, .geojson/.json or any OGR-readable file.

    Returns:
        Tuple[Optional[ShapeSet], Optional[str]]: The shapes (None on failure) and the CRS, if known.
    """
    suffix = path.suffix.lower()

    if suffix == VECFILE_SUFFIX:
        return read_vector_file(path), None

    if suffix in GEOJSON_SUFFIXES:
        try:
            data = path.read_bytes()
        except OSError as e:
            logging.error(f"Could not read {path}: {e}")
            return None, None
        shapes = ShapeSet()
        ok, crs = parse_geojson(shapes, data)
        return (shapes if ok else None), crs

    with OGRVectorReader(path) as reader:
        crs = reader.crs
        return read_all(reader), crs

def save_shapes(path: Path, shapes: ShapeSet, crs: Optional[str] = None) -> bool:
    """
    Writes shapes to the format implied by the output extension.
    """
    suffix = path.suffix.lower()

    if suffix == VECFILE_SUFFIX:
        return write_vector_file(path, shapes)

    if suffix in GEOJSON_SUFFIXES:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(serialize_geojson(shapes, crs=crs))
        except OSError as e:
            logging.error(f"Could not write {path}: {e}")
            return False
        return True

    return write_ogr_file(path, shapes, crs=crs)

def summarize(shapes: ShapeSet) -> List[str]:
    lines = [f"{len(shapes)} shapes"]
    counts = shapes.counts()
    for kind in ShapeKind:
        if counts.get(kind):
            lines.append(f"  {kind.name.lower()}: {counts[kind]}")
    mbr = shapes.calc_geo_mbr()
    if mbr.valid:
        lines.append(f"  bounds: ll={mbr.ll} ur={mbr.ur}")
    else:
        lines.append("  bounds: (empty)")
    return lines

def subdivide_shapes(shapes: ShapeSet, tolerance: float) -> int:
    """
    Subdivides every AREAL and LINEAR shape in place.

    Returns:
        int: Number of shapes that had at least one edge split.
    """
    changed = 0
    for shape in shapes:
        if shape.kind in (ShapeKind.AREAL, ShapeKind.LINEAR):
            if shape.subdivide(tolerance):
                changed += 1
            shape.init_geo_mbr()
    return changed

def run_info(path: str) -> None:
    shapes, crs = load_shapes(Path(path))
    if shapes is None:
        logging.error(f"Failed to read vector data from {path}")
        sys.exit(1)

    logging.info(f"{path} (crs: {crs or 'unknown'})")
    for line in summarize(shapes):
        logging.info(line)

def run_convert(src: str, dst: str, tolerance: Optional[float] = None) -> None:
    shapes, crs = load_shapes(Path(src))
    if shapes is None:
        logging.error(f"Failed to read vector data from {src}")
        sys.exit(1)

    if tolerance is not None:
        if tolerance <= 0:
            logging.error(f"Subdivision tolerance must be positive, got {tolerance}")
            sys.exit(1)
        changed = subdivide_shapes(shapes, tolerance)
        logging.info(f"Subdivided {changed} shapes to a tolerance of {tolerance} degrees")

    if not save_shapes(Path(dst), shapes, crs=crs):
        logging.error(f"Failed to write vector data to {dst}")
        sys.exit(1)

    logging.info(f"Converted {len(shapes)} shapes: {src} -> {dst}")

def main(argv: Optional[List[str]] = None) -> None:
    """
    Parses command-line arguments and routes execution to the appropriate subcommand.
    """
    parser = argparse.ArgumentParser(
        prog="globevec",
        description="Inspect and convert globe vector data"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    info_parser = subparsers.add_parser(
        "info",
        help="Summarizes shape kinds and bounds of a vector file."
    )
    info_parser.add_argument("path", help="Input .gvec, .geojson or OGR-readable file.")

    convert_parser = subparsers.add_parser(
        "convert",
        help="Converts between .gvec, GeoJSON and OGR formats."
    )
    convert_parser.add_argument("src", help="Input file.")
    convert_parser.add_argument("dst", help="Output file; the format follows the extension.")
    convert_parser.add_argument(
        "--subdivide",
        type=float,
        default=None,
        metavar="TOL",
        help="Split areal and linear edges longer than TOL degrees before writing."
    )

    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    if args.command == "info":
        run_info(args.path)
    elif args.command == "convert":
        run_convert(args.src, args.dst, tolerance=args.subdivide)

if __name__ == "__main__":
    main()
