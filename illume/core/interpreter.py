"""
Line-oriented directive interpreter.

Every line of a document is either a directive (first token starts with `!`)
or conversation content. Directives mutate the shared RequestState; content
accumulates in the conversation builder. Profiles are interpreted by the same
code one level deeper, which is what decides whether a body field write may
override an existing one.
"""

from __future__ import annotations

import json
import re
from typing import Any, Callable, Mapping

from illume.adapters.local_context import add_context
from illume.core.context import AUTHORIZATION, MODE_COMPLETION, MODE_FIM, MODE_INFILL, InterpretContext
from illume.core.errors import DirectiveError, IllumeError
from illume.util.logger import logger


MARKER = "!"
HEADER_PREFIX = "!>"
FIELD_PREFIX = "!:"
ROLES = ("system", "user", "assistant", "tool")
INFILL_ROLE = "infill"

_ENV_VAR_RE = re.compile(r"\$(\w+)|\$\{(\w+)\}")


class _Stop(Exception):
    """Raised by `!end` to stop interpreting the current document."""


Handler = Callable[[InterpretContext, str], None]


def split_command(line: str) -> tuple[str, str]:
    parts = line.split(None, 1)
    if not parts:
        return "", ""
    if len(parts) == 1:
        return parts[0], ""
    return parts[0], parts[1]


def parse_value(raw: str) -> Any:
    """Decode a body field value as JSON, falling back to the literal text."""

    def _reject_constant(name: str) -> Any:
        raise ValueError(name)

    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except ValueError:
        return raw


def expand_env(value: str, environ: Mapping[str, str]) -> str:
    """Expand `$NAME` and `${NAME}`; unknown names are left as written."""

    def _sub(match: re.Match[str]) -> str:
        name = match.group(1) or match.group(2)
        if name in environ:
            return environ[name]
        return match.group(0)

    return _ENV_VAR_RE.sub(_sub, value)


def apply_profile(ctx: InterpretContext, name: str) -> None:
    text = ctx.profiles.load(name)
    interpret(ctx.nested(), name, text)
    ctx.state.profile = name
    logger.info("profile applied name=%s depth=%d", name, ctx.depth + 1)


def _profile(ctx: InterpretContext, args: str) -> None:
    apply_profile(ctx, args.strip())


def _token(ctx: InterpretContext, args: str) -> None:
    ctx.state.set_token(args.strip())


def _debug(ctx: InterpretContext, args: str) -> None:
    ctx.state.debug = True


def _stats(ctx: InterpretContext, args: str) -> None:
    ctx.state.stats = True


def _completion(ctx: InterpretContext, args: str) -> None:
    ctx.state.mode = MODE_COMPLETION


def _context(ctx: InterpretContext, args: str) -> None:
    add_context(args, ctx.state.builder.extend)


def _note(ctx: InterpretContext, args: str) -> None:
    pass


def _begin(ctx: InterpretContext, args: str) -> None:
    ctx.state.builder.reset()


def _end(ctx: InterpretContext, args: str) -> None:
    raise _Stop()


def _infill(ctx: InterpretContext, args: str) -> None:
    template = args.strip()
    if template:
        ctx.state.fim_template = template
        ctx.state.fim_template_origin = ctx.location
        return
    ctx.state.mode = MODE_FIM if ctx.state.fim_template else MODE_INFILL
    ctx.state.builder.finalize(INFILL_ROLE)


def _role(role: str) -> Handler:
    def _switch(ctx: InterpretContext, args: str) -> None:
        ctx.state.builder.finalize(role)

    return _switch


def _header(ctx: InterpretContext, key: str, args: str) -> None:
    if ctx.depth > 0 and ctx.state.token and key.lower() == AUTHORIZATION:
        # profiles never replace the token
        logger.debug("profile authorization header skipped depth=%d", ctx.depth)
        return
    value = args.strip()
    if not value:
        ctx.state.headers.pop(key, None)
        return
    ctx.state.headers[key] = expand_env(value, ctx.environ)


def _field(ctx: InterpretContext, key: str, args: str) -> None:
    value = args.strip()
    if not value:
        applied = ctx.state.delete_field(key, ctx.depth)
    else:
        applied = ctx.state.set_field(key, parse_value(value), ctx.depth)
    if not applied:
        logger.debug("body field kept key=%s depth=%d", key, ctx.depth)


_COMMANDS: dict[str, Handler] = {
    "!profile": _profile,
    "!token": _token,
    "!debug": _debug,
    "!stats": _stats,
    "!completion": _completion,
    "!context": _context,
    "!note": _note,
    "!begin": _begin,
    "!end": _end,
    "!infill": _infill,
    **{f"{MARKER}{role}": _role(role) for role in ROLES},
}

_PREFIXES: dict[str, Callable[[InterpretContext, str, str], None]] = {
    HEADER_PREFIX: _header,
    FIELD_PREFIX: _field,
}


def _dispatch(ctx: InterpretContext, line: str) -> bool:
    """Run line as a directive. Returns False when it is content."""
    command, args = split_command(line)

    if command == "!api":
        if ctx.depth == 0 or not ctx.state.api:
            ctx.state.api = args.strip()
            ctx.state.api_origin = ctx.location
        return True

    handler = _COMMANDS.get(command)
    if handler is not None:
        handler(ctx, args)
        return True

    prefix = command[:2]
    prefix_handler = _PREFIXES.get(prefix)
    if prefix_handler is not None and len(command) > 2:
        prefix_handler(ctx, command[2:], args)
        return True
    return False


def _lines(text: str) -> list[str]:
    if not text:
        return []
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return lines


def interpret(ctx: InterpretContext, name: str, text: str) -> None:
    """Process every line of a document at ctx.depth.

    Errors are re-raised as DirectiveError prefixed with `name:line`.
    """
    builder = ctx.state.builder
    for lineno, line in enumerate(_lines(text), start=1):
        if line.startswith(MARKER * 2):
            builder.append(line[1:])
            continue
        if line.startswith(MARKER):
            ctx.location = (name, lineno)
            try:
                if _dispatch(ctx, line):
                    continue
            except _Stop:
                logger.debug("document ended early name=%s line=%d", name, lineno)
                return
            except IllumeError as exc:
                raise DirectiveError(name, lineno, exc) from exc
        builder.append(line)
