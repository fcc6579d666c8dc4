"""Command-line interface for refdir."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import orjson

from check.driver import RunResult, run
from parse.treesitter_tree import ParseError, parse_file
from report.diagnostics import Diagnostic
from rules.config import ConfigError, RefdirConfig, load_config
from rules.policy import (
    KIND_HELP,
    REF_KINDS,
    Direction,
    OrderPolicy,
    RefKind,
    parse_direction,
)
from scan.files import iter_targets

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="refdir",
        description="Report potential reference-to-declaration ordering issues",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        default=["."],
        help="Files or directories to check (default: .)",
    )
    parser.add_argument(
        "--root",
        default=".",
        help="Directory holding refdir.toml (default: .)",
    )
    parser.add_argument(
        "--verbose",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Print all details",
    )
    parser.add_argument(
        "--color",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Colorize terminal output",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit diagnostics as JSON",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log progress to stderr",
    )
    for kind in REF_KINDS:
        parser.add_argument(
            f"--{kind.value}-dir",
            dest=f"{kind.value}_dir",
            default=None,
            metavar="{down,up,ignore}",
            help=KIND_HELP[kind],
        )
    return parser


def _resolve_policy(args: argparse.Namespace, config: RefdirConfig) -> OrderPolicy:
    overrides: dict[RefKind, Direction] = {}
    for kind in REF_KINDS:
        value = getattr(args, f"{kind.value}_dir")
        if value is not None:
            try:
                overrides[kind] = parse_direction(value)
            except ConfigError as exc:
                msg = f"--{kind.value}-dir: {exc}"
                raise ConfigError(msg) from exc
    return config.order.to_policy().with_overrides(overrides)


def _display_path(path: Path) -> str:
    try:
        return path.resolve().relative_to(Path.cwd().resolve()).as_posix()
    except (OSError, ValueError):
        return path.as_posix()


def _write_error_line(diagnostic: Diagnostic) -> None:
    sys.stdout.write(f"{diagnostic.format()}\n")


def _check_paths(
    paths: list[Path],
    config: RefdirConfig,
    policy: OrderPolicy,
    *,
    verbose: bool,
    color: bool,
    as_json: bool,
) -> tuple[list[RunResult], bool]:
    results: list[RunResult] = []
    read_failed = False
    targets = iter_targets(
        paths,
        include_patterns=config.include,
        exclude_patterns=config.exclude,
        nested_gitignore=config.nested_gitignore,
    )
    for target in targets:
        display = _display_path(target)
        try:
            resolved = parse_file(target, display)
        except (OSError, ParseError) as exc:
            sys.stderr.write(f"{display}: error: {exc}\n")
            read_failed = True
            continue
        logger.debug("analyzing %s", display)
        if as_json:
            result = run(resolved, policy, verbose=verbose, color=False)
        else:
            result = run(
                resolved,
                policy,
                verbose=verbose,
                color=color,
                stream=sys.stdout,
                report=_write_error_line,
            )
        results.append(result)
    return results, read_failed


def _write_json(results: list[RunResult]) -> None:
    payload = {
        result.path: [
            d.to_record().model_dump(mode="json") for d in result.diagnostics
        ]
        for result in results
    }
    sys.stdout.write(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode("utf-8"))
    sys.stdout.write("\n")


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

    root = Path(args.root).expanduser().resolve()
    try:
        config = load_config(root)
        policy = _resolve_policy(args, config)
    except ConfigError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2

    verbose = config.verbose if args.verbose is None else args.verbose
    color = config.color if args.color is None else args.color

    paths = [Path(p).expanduser() for p in args.paths]
    missing = [p for p in paths if not p.exists()]
    if missing:
        for path in missing:
            sys.stderr.write(f"error: no such file or directory: {path}\n")
        return 2

    results, read_failed = _check_paths(
        paths,
        config,
        policy,
        verbose=verbose,
        color=color,
        as_json=args.json,
    )

    if args.json:
        _write_json(results)

    if read_failed or any(not result.ok for result in results):
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
