"""transmission-compile — Twee story → dialogue graph JSON."""

import argparse
import logging
import sys
from pathlib import Path

from transmission.errors import GraphValidationError
from transmission.validator import validate_graph

from .core import NARRATOR_NAME, compile_story


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="transmission-compile",
        description="Compile a Twee 3 story into a dialogue graph JSON file",
    )
    parser.add_argument("input", type=Path, help="Twee source file")
    parser.add_argument("output", type=Path, nargs="?", default=None,
                        help="Output JSON file (default: input with .json suffix)")
    parser.add_argument("--narrator", default=NARRATOR_NAME,
                        help=f"Name that marks narrator lines (default: {NARRATOR_NAME})")
    parser.add_argument("--validate", action="store_true",
                        help="Validate the graph and fail on dangling references")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    output = args.output or args.input.with_suffix(".json")

    try:
        source = args.input.read_text(encoding="utf-8")
    except OSError as e:
        print(f"Error reading {args.input}: {e}", file=sys.stderr)
        return 1

    result = compile_story(source, narrator_name=args.narrator)
    print(f"Processing {result.passage_count} story passages")
    print(f"Start passage: {result.graph.start_node}")
    if result.variables:
        print(f"  - Discovered variables: {', '.join(result.variables)}")

    if args.validate:
        try:
            validate_graph(result.graph)
        except GraphValidationError as e:
            print(f"Validation failed: {e}", file=sys.stderr)
            return 1

    try:
        output.write_text(result.graph.to_json() + "\n", encoding="utf-8")
    except OSError as e:
        print(f"Error writing {output}: {e}", file=sys.stderr)
        return 1

    print(f"Wrote {output}")
    print(f"  - {result.node_count} nodes")
    print(f"  - Start node: {result.graph.start_node}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
