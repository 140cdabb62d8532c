"""
Embeds local files into the conversation for `!context`.

`!context PATH` embeds one file; `!context DIR SUFFIX...` embeds every file
under DIR whose path ends with one of the suffixes. Each file is rendered as
a bold name followed by a fenced block.
"""

from __future__ import annotations

import os
from typing import Callable

from illume.core.errors import ContextNotFoundError, ParseError
from illume.util.logger import logger


def render_file(path: str, name: str) -> str:
    try:
        with open(path, encoding="utf-8", errors="replace") as fh:
            text = fh.read()
    except OSError as exc:
        raise ContextNotFoundError(f"{path}: {exc.strerror or exc}") from exc
    if text and not text.endswith("\n"):
        text += "\n"
    # TODO: nested ``` fences inside the file end the block early
    return f"**`{name}`**\n```\n{text}```\n\n"


def _name_offset(directory: str) -> int:
    cut = len(directory)
    while cut > 0 and directory[cut - 1] not in "/\\":
        cut -= 1
    return cut


def _walk_error(exc: OSError) -> None:
    raise ContextNotFoundError(f"{exc.filename}: {exc.strerror or exc}") from exc


def walk_files(directory: str, suffixes: list[str]) -> list[str]:
    if not os.path.isdir(directory):
        raise ContextNotFoundError(f"{directory}: not a directory")
    matched: list[str] = []
    for root, dirs, files in os.walk(directory, onerror=_walk_error):
        dirs.sort()
        for filename in sorted(files):
            path = os.path.join(root, filename)
            if any(path.endswith(suffix) for suffix in suffixes):
                matched.append(path)
    return matched


def add_context(args: str, emit: Callable[[str], None]) -> int:
    """Render the files named by a `!context` argument string into emit.

    Returns the number of files embedded.
    """
    fields = args.split()
    if not fields:
        raise ParseError("!context: wrong number of fields")
    if len(fields) == 1:
        emit(render_file(fields[0], fields[0]))
        return 1

    directory, suffixes = fields[0], fields[1:]
    cut = _name_offset(directory)
    paths = walk_files(directory, suffixes)
    for path in paths:
        emit(render_file(path, path[cut:]))
    logger.debug("context embedded dir=%s suffixes=%s files=%d", directory, suffixes, len(paths))
    return len(paths)
