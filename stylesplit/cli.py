"""CLI entrypoints for stylesplit commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .errors import StyleSplitError
from .logging import configure_logging
from .orchestrator import Orchestrator
from .splitter import MODE_MARKERS, MODES


def _add_log_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    default: object = argparse.SUPPRESS if suppress_default else False
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=default,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=default,
        help="Only log warnings and errors.",
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stylesplit",
        description="Build a marked CSS bundle from modular sources and split it back.",
    )
    _add_log_options(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write DEBUG logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Flatten the entry manifest into a single bundle.",
    )
    _add_log_options(build_parser, suppress_default=True)
    _add_path_argument(build_parser)
    build_parser.add_argument(
        "--no-prune",
        action="store_true",
        help="Keep empty rules, headers and comments in the bundle.",
    )
    build_parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the bundle instead of writing it to the output directory.",
    )

    unbundle_parser = subparsers.add_parser(
        "unbundle",
        help="Route a bundle's rules back to source files.",
    )
    _add_log_options(unbundle_parser, suppress_default=True)
    _add_path_argument(unbundle_parser)
    unbundle_parser.add_argument(
        "--mode",
        choices=MODES,
        default=MODE_MARKERS,
        help="Use file markers (default) or selector anchors to route content.",
    )
    unbundle_parser.add_argument(
        "--input",
        default=None,
        help="Bundle to read instead of the configured input bundle.",
    )
    unbundle_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report the files that would change without writing them.",
    )

    sync_parser = subparsers.add_parser(
        "sync",
        help="Compare manifest imports with the source files on disk.",
    )
    _add_log_options(sync_parser, suppress_default=True)
    _add_path_argument(sync_parser)
    sync_parser.add_argument(
        "--fix",
        action="store_true",
        help="Append imports for files missing from the manifest.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for stylesplit commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(args.quiet),
        log_file=args.log_file,
    )

    orchestrator = Orchestrator()

    if args.command == "build":
        try:
            result = orchestrator.run_build(
                args.path,
                prune=False if args.no_prune else None,
                write=not args.stdout,
            )
        except FileNotFoundError as exc:
            parser.exit(1, f"{exc}\n")
        except StyleSplitError as exc:
            parser.exit(1, f"stylesplit build failed: {exc}\nRun with --verbose for more details.\n")
        if args.stdout:
            sys.stdout.write(result.content)
        else:
            print(f"Bundle written to {_relativize(result.path)} ({len(result.sources)} sources)")
    elif args.command == "unbundle":
        try:
            outcome = orchestrator.run_unbundle(
                args.path,
                mode=args.mode,
                bundle_path=args.input,
                dry_run=bool(args.dry_run),
            )
        except FileNotFoundError as exc:
            parser.exit(1, f"{exc}\n")
        except StyleSplitError as exc:
            parser.exit(1, f"stylesplit unbundle failed: {exc}\n")
        label = "Would update" if outcome.dry_run else "Updated"
        print(f"{label} {len(outcome.written)} file(s) ({outcome.anchor_files} anchors)")
        for path in outcome.written:
            print(f"  {_relativize(path)}")
        if outcome.quarantine_path is not None:
            print(f"Some CSS could not be routed; see {_relativize(outcome.quarantine_path)}")
    elif args.command == "sync":
        try:
            result = orchestrator.run_sync(args.path, fix=bool(args.fix))
        except StyleSplitError as exc:
            parser.exit(1, f"stylesplit sync failed: {exc}\n")
        if result.in_sync:
            print(f"Manifest is in sync ({len(result.valid)} imports OK)")
            return
        for item in result.missing:
            print(f"  + {item}")
        for item in result.orphaned:
            print(f"  - {item}")
        if result.missing and not args.fix:
            print("Run `stylesplit sync --fix` to add the missing imports.")
        if result.orphaned:
            print("Remove orphaned imports from the manifest manually.")
        print(
            f"Valid: {len(result.valid)}  Missing: {len(result.missing)}  Orphaned: {len(result.orphaned)}"
        )
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
