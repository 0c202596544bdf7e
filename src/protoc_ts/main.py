from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from protoc_ts.config import ConfigError, load_config
from protoc_ts.generator.ts_generator import convert_proto_to_ts
from protoc_ts.generator.zod_generator import convert_proto_to_zod
from protoc_ts.parser.errors import ProtoParseError

# target -> (converter, output suffix)
TARGETS = {
    "ts": (convert_proto_to_ts, ".ts"),
    "zod": (convert_proto_to_zod, ".zod.ts"),
}


def _find_proto_files(proto_path: str) -> List[str]:
    """List the .proto files directly inside proto_path."""
    return sorted(p.name for p in Path(proto_path).glob("*.proto"))


def run(
    proto_files: Optional[List[str]] = None,
    proto_path: Optional[str] = None,
    out: Optional[str] = None,
    config_path: Optional[str] = None,
    debug: bool = False,
    target: str = "ts",
) -> List[str]:
    """Main pipeline: parse each proto file and write one output file per input.

    ``target`` picks the output flavour: TypeScript declarations (``ts``)
    or zod schemas (``zod``, written as ``<name>.zod.ts``).

    Returns the list of generated file paths.
    """
    proto_path = proto_path or os.getcwd()
    out = out or os.getcwd()

    if not os.path.isdir(out):
        print(f'Output Path "{out}" is not a valid folder path.', file=sys.stderr)
        sys.exit(1)
    if not os.path.isdir(proto_path):
        print(f'Proto Path "{proto_path}" is not a valid folder path.', file=sys.stderr)
        sys.exit(1)

    convert, suffix = TARGETS[target]
    config = load_config(config_path)

    if not proto_files:
        proto_files = _find_proto_files(proto_path)
        if not proto_files:
            print(f"No .proto files found under {proto_path}")
            return []

    generated: List[str] = []
    for name in proto_files:
        file_path = os.path.join(proto_path, name)
        if not os.path.isfile(file_path):
            print(f'File "{file_path}" is not a valid proto file.')
            continue
        if Path(file_path).suffix != ".proto":
            print(f'Path "{file_path}" is not a valid proto path.')
            continue

        out_path = os.path.join(out, Path(file_path).name.split(".")[0] + suffix)
        try:
            convert(file_path, out_path, config=config, debug=debug)
        except ProtoParseError:
            print(f"Error while parsing file: {file_path}", file=sys.stderr)
            raise
        print(f"  Generated: {out_path}")
        generated.append(out_path)

    return generated


def main():
    parser = argparse.ArgumentParser(
        description="Protobuf to TypeScript declaration and zod schema generator",
    )
    parser.add_argument(
        "proto_files",
        nargs="*",
        help="Proto files to convert (default: every .proto file in --proto-path)",
    )
    parser.add_argument(
        "-p",
        "--proto-path",
        help="Folder holding the proto files (default: CWD)",
    )
    parser.add_argument(
        "-o",
        "--out",
        help="Output folder (default: CWD)",
    )
    parser.add_argument(
        "-c",
        "--config",
        help="JSON config file (default: CWD/p2t.json when present)",
    )
    parser.add_argument(
        "-t",
        "--target",
        choices=sorted(TARGETS),
        default="ts",
        help="Output flavour: TypeScript declarations or zod schemas (default: ts)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Also write the parsed document as <out>.debug.json",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        run(args.proto_files, args.proto_path, args.out, args.config, args.debug, args.target)
    except (ConfigError, ProtoParseError) as e:
        print(f"FATAL: {e}", file=sys.stderr)
        sys.exit(1)
