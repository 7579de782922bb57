# archmodel/cli.py
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from .constants import MODEL_DIR_DEFAULT
from .io import load_model
from .report import build_report
from .validate import validate_model
from .writer import dump_yaml, write_yaml


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="archmodel",
        description=(
            "Resolve an architecture model: relation FQNs, view membership and "
            "per-element styles."
        ),
    )
    parser.add_argument(
        "--model",
        type=Path,
        default=Path(MODEL_DIR_DEFAULT),
        help="Path to a split model directory or a single model YAML file.",
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Write the YAML report here instead of stdout.",
    )
    parser.add_argument(
        "--view",
        action="append",
        default=[],
        metavar="NAME",
        help="Only report this view (repeatable). Default: every view.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on validation warnings (e.g. dangling references). Errors always fail.",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entrypoint."""
    args = _build_parser().parse_args(argv)

    try:
        model = load_model(args.model)
    except (FileNotFoundError, TypeError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        raise SystemExit(2) from e

    errors, warnings = validate_model(model)
    for warning in warnings:
        print(f"warning: {warning}", file=sys.stderr)

    if errors or (args.strict and warnings):
        for error in errors:
            print(f"error: {error}", file=sys.stderr)
        raise SystemExit(2)

    try:
        report = build_report(model, args.view)
    except KeyError as e:
        print(f"error: {e.args[0]}", file=sys.stderr)
        raise SystemExit(2) from e

    if args.out is not None:
        write_yaml(args.out, report)
    else:
        sys.stdout.write(dump_yaml(report))


if __name__ == "__main__":
    main()
