"""Turns interpreted state into the HTTP request to send."""

from __future__ import annotations

import json
from typing import Any

from illume.core.context import MODE_CHAT, MODE_COMPLETION, MODE_FIM, MODE_INFILL, InterpretContext, RequestState
from illume.core.errors import DirectiveError, IllumeError, ParseError
from illume.core.interpolate import interpolate
from illume.core.interpreter import INFILL_ROLE, apply_profile
from illume.core.models import Message, PreparedRequest
from illume.util.logger import logger


_SUFFIXES = {
    MODE_CHAT: "chat/completions",
    MODE_COMPLETION: "completions",
    MODE_INFILL: "infill",
    MODE_FIM: "completions",
}


def _unquote(url: str) -> str | None:
    if len(url) >= 2 and url[0] == '"' and url[-1] == '"':
        return url[1:-1]
    return None


def resolve_url(state: RequestState) -> str:
    """Interpolate the API URL and append the endpoint suffix for the mode.

    A URL written in double quotes is used as-is after interpolation.
    """
    if not state.api:
        raise ParseError("no API URL configured (use !api or a profile)")
    try:
        url = interpolate(state.api, state.body)
    except IllumeError as exc:
        document, line = state.api_origin
        raise DirectiveError(document, line, exc) from exc

    literal = _unquote(url)
    if literal is not None:
        return literal
    if not url.endswith("/"):
        url += "/"
    return url + _SUFFIXES[state.mode]


def split_infill(messages: list[Message]) -> tuple[str, str]:
    prefix = [m.content for m in messages if m.role != INFILL_ROLE]
    suffix = [m.content for m in messages if m.role == INFILL_ROLE]
    return "\n".join(prefix), "\n".join(suffix)


def build_body(state: RequestState) -> dict[str, Any]:
    body = dict(state.body)
    messages = state.builder.finalize("")

    if state.mode == MODE_CHAT:
        body["messages"] = [m.model_dump() for m in messages]
    elif state.mode == MODE_COMPLETION:
        body["prompt"] = messages[0].content if messages else ""
    elif state.mode == MODE_INFILL:
        prefix, suffix = split_infill(messages)
        body["input_prefix"] = prefix
        body["input_suffix"] = suffix
        # required by the endpoint even when unused
        body["prompt"] = ""
    elif state.mode == MODE_FIM:
        prefix, suffix = split_infill(messages)
        try:
            body["prompt"] = interpolate(state.fim_template, {"prefix": prefix, "suffix": suffix})
        except IllumeError as exc:
            document, line = state.fim_template_origin
            raise DirectiveError(document, line, exc) from exc

    body["stream"] = True
    return body


def assemble(ctx: InterpretContext, default_profile: str) -> PreparedRequest:
    """Finish interpretation and produce the request.

    The default profile is applied (at depth 1) only when the document did
    not load any profile itself. A template registered by that profile turns
    a generic infill request into a template one.
    """
    state = ctx.state
    if not state.profile and default_profile:
        apply_profile(ctx, default_profile)
    if state.mode == MODE_INFILL and state.fim_template:
        state.mode = MODE_FIM

    url = resolve_url(state)
    body = build_body(state)
    payload = json.dumps(body, ensure_ascii=False).encode("utf-8")
    logger.debug("request assembled mode=%s url=%s payload_bytes=%d", state.mode, url, len(payload))
    return PreparedRequest(method="POST", url=url, headers=dict(state.headers), body=payload)
