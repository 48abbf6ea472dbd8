"""Command-line tool that emits TypeScript store modules from a schema."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from typed_stores.config import EmitterOptions, load_options
from typed_stores.emitter import TypeScriptEmitter
from typed_stores.errors import EmitterError
from typed_stores.parsing import TypeParser
from typed_stores.store import StoreDeclarationBuilder
from typed_stores.writer import StoreWriter, emit_stores

logger = logging.getLogger(__name__)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="typed-stores",
        description="Generate TypeScript store classes for @store models in a schema",
    )
    parser.add_argument(
        "schema",
        type=Path,
        help="Path to the schema file",
    )
    parser.add_argument(
        "-o", "--output-dir",
        type=Path,
        default=None,
        help="Output directory (store modules go to <output-dir>/store)",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="TOML config file ([typed-stores] table, or [tool.typed-stores] in pyproject.toml)",
    )
    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the generated modules instead of writing files",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Fail on type kinds that have no TypeScript rendering",
    )
    parser.add_argument(
        "-k", "--keep-going",
        action="store_true",
        default=None,
        help="Continue with the next store after a store fails to emit",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = _build_arg_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.schema.exists():
        print(f"Error: Schema file not found: {args.schema}", file=sys.stderr)
        return 1

    try:
        options = load_options(args.config) if args.config is not None else EmitterOptions()
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1
    options = options.with_overrides(
        output_dir=args.output_dir,
        strict=args.strict,
        keep_going=args.keep_going,
    )

    try:
        registry = TypeParser().parse_file(args.schema)
    except (SyntaxError, ValueError) as e:
        print(f"Error parsing {args.schema}: {e}", file=sys.stderr)
        return 1

    registrations = registry.stores()
    if not registrations:
        logger.warning("No @store models found in %s", args.schema)
        return 0

    if args.stdout:
        builder = StoreDeclarationBuilder(TypeScriptEmitter(strict=options.strict))
        failed = False
        for registration in registrations:
            try:
                artifact = builder.build(registration)
            except EmitterError as e:
                if not options.keep_going:
                    print(f"Error: {e}", file=sys.stderr)
                    return 1
                logger.error("Skipping store %s: %s", registration.model.name, e)
                print(f"Error: {registration.model.name}: {e}", file=sys.stderr)
                failed = True
                continue
            print(f"// {artifact.name}{options.file_extension}")
            print(artifact.text)
        return 1 if failed else 0

    writer = StoreWriter.from_options(options)
    try:
        report = emit_stores(registry, writer, options)
    except EmitterError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error writing output: {e}", file=sys.stderr)
        return 1

    for name, error in report.failures:
        print(f"Error: {name}: {error}", file=sys.stderr)
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
