"""
Command line entry: read a document on stdin, append the reply on stdout.

Usage:
  illume < chat.txt >> chat.txt
  illume -p openai < chat.txt
  illume --list-profiles
  illume -v          # log to stderr at info level, -vv for debug
"""

from __future__ import annotations

import argparse
import sys
from typing import TextIO

from illume.config.settings import settings
from illume.core.errors import IllumeError
from illume.core.pipeline import Pipeline
from illume.util.logger import logger, set_level


def render_error(exc: BaseException, out: TextIO) -> None:
    out.write(f"\n\n!error\n\n{exc}\n")
    out.flush()


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send a directive-annotated document to a language model API.")
    parser.add_argument(
        "-p",
        "--profile",
        default=None,
        help="Profile used when the document loads none (default: ILLUME_PROFILE or llama.cpp)",
    )
    parser.add_argument(
        "--list-profiles",
        action="store_true",
        help="Print the built-in profile names and exit.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Verbose logging on stderr (use -v or -vv)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None, stdin: TextIO | None = None, stdout: TextIO | None = None) -> int:
    args = _parse_args(argv)
    source = stdin or sys.stdin
    out = stdout or sys.stdout

    if args.verbose:
        set_level("debug" if args.verbose > 1 else "info")

    config = settings
    if args.profile:
        config = settings.model_copy(update={"profile": args.profile})
    pipeline = Pipeline(config=config)

    if args.list_profiles:
        for name in pipeline.profiles.names():
            out.write(f"{name}\n")
        return 0

    try:
        pipeline.run(source.read(), out)
    except (IllumeError, OSError) as exc:
        logger.error("request failed: %s", exc)
        render_error(exc, out)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
