"""Command-line tool for documenting a binary layout."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml

from layout_tables.dump import format_document
from layout_tables.errors import LayoutError
from layout_tables.schema import LayoutSchema


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Document a binary layout from YAML or JSON type definitions"
    )
    parser.add_argument(
        "type_defs",
        type=Path,
        help="Path to the YAML or JSON file with the type definitions",
    )
    parser.add_argument(
        "entry_type",
        nargs="?",
        help="Name of the type to document (omit to list types)",
    )
    parser.add_argument(
        "-o", "--offsets",
        action="store_true",
        help="Show the relative offset of each struct field",
    )
    parser.add_argument(
        "--id",
        default=None,
        help="Root path id used to build anchors",
    )
    parser.add_argument(
        "-l", "--lang",
        default="en",
        help="Language code for labels and comments (default: en)",
    )
    parser.add_argument(
        "-j", "--json",
        action="store_true",
        help="Output the document tree as JSON",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log each resolution step",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.type_defs.exists():
        print(f"Error: Type definition file not found: {args.type_defs}", file=sys.stderr)
        return 1

    try:
        schema = LayoutSchema.load(args.type_defs)
    except (ValueError, yaml.YAMLError) as e:
        print(f"Error loading type definitions: {e}", file=sys.stderr)
        return 1

    if args.entry_type is None:
        for name in schema.registry.user_types():
            print(name)
        return 0

    try:
        document = schema.render(
            args.entry_type,
            show_offsets=args.offsets,
            root_id=args.id,
            lang=args.lang,
        )
    except LayoutError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(document.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(format_document(document))
    return 0


if __name__ == "__main__":
    sys.exit(main())
