"""Command line entry point.

Usage:
    python -m dav1d_sys build
    python -m dav1d_sys resolve aarch64 ios
    python -m dav1d_sys crossfile
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from dav1d_sys.config import BuildConfig
from dav1d_sys.crossfiles import generate_descriptor
from dav1d_sys.errors import Dav1dSysError
from dav1d_sys.fetch import ensure_source_tree
from dav1d_sys.observability import StructuredLogger
from dav1d_sys.pipeline import run
from dav1d_sys.platforms import resolve
from dav1d_sys.process import SubprocessRunner


def cmd_build(args: argparse.Namespace) -> None:
    config = BuildConfig.from_env()
    result = run(config, logger=StructuredLogger())
    print(result.metadata.to_json(), end="")
    print(f"bindings: {result.bindings_path}", file=sys.stderr)


def cmd_resolve(args: argparse.Namespace) -> None:
    print(resolve(args.arch, args.os).value)


def cmd_crossfile(args: argparse.Namespace) -> None:
    config = BuildConfig.from_env()
    runner = SubprocessRunner(env=config.env())
    logger = StructuredLogger()
    source = ensure_source_tree(config.source_dir, repo=config.repo, runner=runner, logger=logger)
    descriptor = generate_descriptor(config.target, source, runner=runner, logger=logger)
    print(descriptor.path if descriptor is not None else "none")


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Build dav1d from source and generate bindings")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log pipeline progress")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("build", help="Probe or build dav1d, then generate binding declarations")

    resolve_p = sub.add_parser("resolve", help="Print the cross variant for a target")
    resolve_p.add_argument("arch")
    resolve_p.add_argument("os")

    sub.add_parser("crossfile", help="Fetch sources and write the cross file for the target")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    commands = {"build": cmd_build, "resolve": cmd_resolve, "crossfile": cmd_crossfile}
    try:
        commands[args.command](args)
    except Dav1dSysError as exc:
        print(f"error[{exc.code}]: {exc}", file=sys.stderr)
        return 1
    return 0
