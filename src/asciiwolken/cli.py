"""asciiwolken CLI — inspect and convert ASCII point files."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from asciiwolken._version import __version__
from asciiwolken.core.fields import PointXYZ, describe_fields
from asciiwolken.errors import AsciiWolkenError
from asciiwolken.io.base import Reader


def _has_schema_options(args: argparse.Namespace) -> bool:
    return bool(args.schema or args.fields or args.sep or args.ext)


def _configure_reader(args: argparse.Namespace, path: str) -> Reader:
    """Build readers from the schema options and pick the one for `path`.

    With any schema option given, a non-binary input is read by the
    configured ASCII reader whatever its extension.
    """
    from asciiwolken.config import load_schema, parse_field_spec
    from asciiwolken.io.ascii import AsciiReader
    from asciiwolken.io.binary import BinaryReader
    from asciiwolken.io.registry import get_reader, register_reader

    if args.schema:
        config = load_schema(args.schema)
        ascii_reader = config.make_reader()
        fields = config.fields
    else:
        fields = parse_field_spec(args.fields) if args.fields else PointXYZ.point_fields()
        ascii_reader = AsciiReader(fields)
    if args.sep:
        ascii_reader.set_sep_chars(args.sep)
    if args.ext:
        ascii_reader.set_extension(args.ext)

    binary_reader = BinaryReader(fields)
    register_reader(ascii_reader)
    register_reader(binary_reader)

    if Path(path).suffix.lower() in binary_reader.extensions():
        return binary_reader
    if _has_schema_options(args):
        return ascii_reader
    return get_reader(path)


def cmd_info(args: argparse.Namespace) -> int:
    """Show info about a point cloud file."""
    path = args.file
    if not Path(path).exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        return 1

    reader = _configure_reader(args, path)

    print(f"File: {path}")
    print(f"Size: {Path(path).stat().st_size / 1024 / 1024:.1f} MB")

    if args.header_only:
        pc = reader.read_header(path, offset=args.offset)
    else:
        pc = reader.read(path, offset=args.offset)

    meta = pc.metadata
    print(f"Points: {pc.num_points:,}")
    print(f"Fields: {describe_fields(pc.fields)}")
    print(f"Point step: {pc.point_step} bytes")
    print(f"Origin: {' '.join(f'{v:g}' for v in meta.origin)}")
    print(f"Orientation (w x y z): {' '.join(f'{v:g}' for v in meta.orientation)}")
    if meta.source_format:
        print(f"Format: {meta.source_format}")
    print(f"Data offset: {meta.data_offset}")

    return 0


def cmd_convert(args: argparse.Namespace) -> int:
    """Convert between ASCII and binary point files."""
    from asciiwolken.io.registry import write

    input_path = args.input
    output_path = args.output

    if not Path(input_path).exists():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        return 1

    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(message)s")

    reader = _configure_reader(args, input_path)

    options = {}
    if args.delimiter is not None:
        options["delimiter"] = args.delimiter
    if args.precision is not None:
        options["precision"] = args.precision

    t0 = time.time()
    pc = reader.read(input_path, offset=args.offset)
    n = write(pc, output_path, **options)
    elapsed = time.time() - t0

    print(f"Converted {n:,} points: {input_path} -> {output_path} ({elapsed:.1f}s)")
    return 0


def _add_schema_options(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--schema", help="JSON schema file describing the fields")
    group.add_argument(
        "--fields", help="Field spec, e.g. 'x:float32,y:float32,z:float32'"
    )
    parser.add_argument("--sep", help="Separator characters (default: space, tab, comma)")
    parser.add_argument("--ext", help="Extension to read as ASCII (e.g. .pts)")
    parser.add_argument(
        "--offset", type=int, default=0, help="Bytes to skip before the data"
    )


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="asciiwolken",
        description="asciiwolken — ASCII point cloud reader",
    )
    parser.add_argument(
        "--version", action="version", version=f"asciiwolken {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # info
    info_parser = subparsers.add_parser("info", help="Show point cloud file info")
    info_parser.add_argument("file", help="Point cloud file path")
    info_parser.add_argument(
        "--header-only", action="store_true",
        help="Only count points, don't parse them",
    )
    _add_schema_options(info_parser)

    # convert
    conv_parser = subparsers.add_parser("convert", help="Convert between formats")
    conv_parser.add_argument("input", help="Input file path")
    conv_parser.add_argument("output", help="Output file path")
    conv_parser.add_argument("--delimiter", help="Output token separator (ASCII only)")
    conv_parser.add_argument(
        "--precision", type=int, help="Significant digits for floats (ASCII only)"
    )
    conv_parser.add_argument("-v", "--verbose", action="store_true")
    _add_schema_options(conv_parser)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "info": cmd_info,
        "convert": cmd_convert,
    }

    try:
        return commands[args.command](args)
    except (AsciiWolkenError, ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
