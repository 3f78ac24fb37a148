"""CLI entrypoints for implgen commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError
from .logging import configure_logging
from .orchestrator import Orchestrator


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Root of the source tree to scan (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="implgen",
        description="Generate async stub implementations for classes marked with AddImplementation.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Write one companion module per marked class.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_path_argument(generate_parser)
    generate_parser.add_argument(
        "--out",
        default=None,
        help="Directory for generated units (defaults to output.dir from .implgen.yml).",
    )
    generate_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print generated units instead of writing them.",
    )
    generate_parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Regenerate every unit, ignoring the unit cache.",
    )

    list_parser = subparsers.add_parser(
        "list",
        help="List marked classes and the identifiers their units would get.",
    )
    _add_verbose_option(list_parser, suppress_default=True)
    _add_path_argument(list_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for implgen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    orchestrator = Orchestrator()

    if args.command == "generate":
        try:
            outcome = orchestrator.run_generate(
                args.path,
                output_dir=args.out,
                dry_run=bool(args.dry_run),
                use_cache=not args.no_cache,
            )
        except (FileNotFoundError, NotADirectoryError, ConfigError) as exc:
            parser.exit(1, f"{exc}\n")
        except Exception as exc:  # pragma: no cover - last-resort guard
            orchestrator.log_exception("implgen generate failed", exc)
            parser.exit(1, f"implgen generate failed: {exc}\nRun with --verbose for more details.\n")

        report = outcome.report
        if outcome.dry_run:
            for identifier, text in outcome.units:
                print(f"# ---- {identifier}")
                print(text, end="")
        else:
            print(f"Generated {len(report.units)} unit(s) in {_relativize(outcome.output_dir)}")
            if outcome.removed:
                print(f"Removed {len(outcome.removed)} stale unit(s)")
        for unit in report.failed:
            print(f"warning: {unit.identifier} contains {len(unit.diagnostics)} diagnostic(s)", file=sys.stderr)
        if report.cancelled:
            parser.exit(1, "Generation cancelled before all candidates were processed.\n")
    elif args.command == "list":
        try:
            listings = orchestrator.run_list(args.path)
        except (FileNotFoundError, NotADirectoryError, ConfigError) as exc:
            parser.exit(1, f"{exc}\n")
        if not listings:
            print("No marked classes found")
        for listing in listings:
            interfaces = ", ".join(listing.interfaces) or "(no interfaces)"
            print(f"{listing.qualified_name} -> {listing.identifier} [{interfaces}]")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path | None) -> str:
    if path is None:
        return "-"
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
