#!/usr/bin/env python3

import argparse
import json
import logging
import sys
import time

from bibsel import __version__
from bibsel.errors import LibraryLoadError, SelectorError
from bibsel.graph import canonical_parent, from_yaml_file
from bibsel.sel_parser import SELECTOR_LANGUAGE_VERSION
from bibsel.selector import parse


def describe(entry):
    """Summarize an entry for JSON output."""
    info = {"key": entry.key, "type": entry.entry_type.value}
    if entry.title:
        info["title"] = str(entry.title)
    return info


def build_parser():
    parser = argparse.ArgumentParser(
        description="Select entries from a YAML bibliography with a selector."
    )
    parser.add_argument("selector", nargs="?", help='Selector, e.g. "article > proceedings"')
    parser.add_argument("library_file", nargs="?", help="Path to a YAML library file")
    parser.add_argument(
        "--bindings",
        action="store_true",
        help="Include the entries bound by named captures",
    )
    parser.add_argument(
        "--canonical",
        action="store_true",
        help="Include the canonical parent of every selected entry",
    )
    parser.add_argument(
        "--pretty-print",
        action="store_true",
        help="Emit all results in a single pretty-printed JSON array",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        help="Set logging level",
    )
    parser.add_argument(
        "--show-timing",
        action="store_true",
        help="Show timing information",
    )
    parser.add_argument("--version", action="store_true", help="Show version and exit")
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Write output to this file (UTF-8, LF line endings). If omitted, output goes to stdout.",
    )
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print("Version information:")
        print(f"  bibsel: {__version__}")
        print(f"  selector language: {SELECTOR_LANGUAGE_VERSION}")
        return 0

    if not args.selector or not args.library_file:
        parser.error("the following arguments are required: selector, library_file")

    logging.basicConfig(
        level=getattr(logging, args.log_level), format="[%(levelname)s] %(message)s"
    )
    logger = logging.getLogger("bsel")

    try:
        selector = parse(args.selector)
    except SelectorError as e:
        sys.stderr.write(f"Invalid selector: {e}\n{e.caret()}\n")
        return 2

    load_start = time.time()
    try:
        library = from_yaml_file(args.library_file)
    except (LibraryLoadError, OSError) as e:
        sys.stderr.write(f"Cannot load library {args.library_file}: {e}\n")
        return 2
    load_time = time.time() - load_start

    logger.info("Selecting %r from %s entries", selector.source, len(library))
    select_start = time.time()
    output = []
    for entry, bindings in selector.apply_all(library):
        item = describe(entry)
        if args.bindings:
            item["bindings"] = {name: describe(bound) for name, bound in bindings.items()}
        if args.canonical:
            parent = canonical_parent(entry)
            item["canonical"] = describe(parent) if parent is not None else None
        output.append(item)
    select_time = time.time() - select_start

    if args.show_timing:
        sys.stderr.write(f"Library loading time: {load_time:.3f}s\n")
        sys.stderr.write(f"Selection time: {select_time:.3f}s\n")

    sys.stderr.write(f"Selected {len(output)} of {len(library)} entries\n")

    if args.output:
        output_stream = open(args.output, "w", encoding="utf-8", newline="\n")
    else:
        output_stream = sys.stdout

    try:
        if args.pretty_print:
            json.dump(output, output_stream, indent=2)
            output_stream.write("\n")
        else:
            for item in output:
                output_stream.write(json.dumps(item))
                output_stream.write("\n")
    finally:
        if args.output and output_stream is not sys.stdout:
            output_stream.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
