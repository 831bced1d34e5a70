"""CLI entrypoints for shimcheck commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError, load_config
from .logging import configure_logging
from .orchestrator import PreconditionError, ShimChecker
from .reporting import format_duplicates, format_summary

EXIT_PRECONDITION = 2


def _add_verbosity_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    group = parser.add_mutually_exclusive_group()
    for flags, help_text in (
        (("-v", "--verbose"), "Increase log verbosity for troubleshooting."),
        (("-q", "--quiet"), "Only log warnings and errors."),
    ):
        kwargs: dict[str, object] = {"action": "store_true", "help": help_text}
        kwargs["default"] = argparse.SUPPRESS if suppress_default else False
        group.add_argument(*flags, **kwargs)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shimcheck",
        description="Detect shim stubs that duplicate base or generated declarations.",
    )
    _add_verbosity_options(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write debug logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser(
        "check",
        help="Report shim declarations already provided by another layer.",
    )
    _add_verbosity_options(check_parser, suppress_default=True)
    check_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Project root holding .shimcheck.yml (defaults to current directory).",
    )
    check_parser.add_argument("--shim-dir", help="Directory of hand-written shim stubs.")
    check_parser.add_argument(
        "--generated-dir",
        dest="generated_dirs",
        action="append",
        help="Directory of generated stubs; repeat for several layers.",
    )
    check_parser.add_argument("--base-dir", help="Local copy of the canonical base stubs.")
    check_parser.add_argument(
        "--base-path-prefix",
        help="Path prefix of base stubs to replace with --base-url in reports.",
    )
    check_parser.add_argument(
        "--base-url",
        help="Published location of the base stubs (defaults to typeshed's stdlib).",
    )
    check_parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=None,
        help="Parse stub files with this many worker threads.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint for shimcheck commands; returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(getattr(args, "verbose", False)),
        quiet=bool(getattr(args, "quiet", False)),
        log_file=args.log_file,
    )

    if args.command != "check":  # pragma: no cover - argparse enforces choices
        parser.exit(EXIT_PRECONDITION, "Unknown command\n")

    try:
        config = load_config(Path(args.path)).with_overrides(
            shim_dir=args.shim_dir,
            generated_dirs=args.generated_dirs,
            base_dir=args.base_dir,
            base_path_prefix=args.base_path_prefix,
            base_url=args.base_url,
            jobs=args.jobs,
        )
        report = ShimChecker().run(config)
    except (ConfigError, PreconditionError) as exc:
        parser.exit(EXIT_PRECONDITION, f"shimcheck: {exc}\n")

    if report.has_duplicates:
        sys.stderr.write(
            format_duplicates(report, config.base_prefix, config.base.url)
        )
    sys.stdout.write(format_summary(report))
    return report.exit_code


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
