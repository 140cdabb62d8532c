"""`{key}` placeholder substitution for URLs and fill-in-middle templates."""

from __future__ import annotations

import json
from typing import Any, Mapping

from illume.core.errors import MissingKeyError, UnmatchedBraceError


def _render(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def interpolate(template: str, values: Mapping[str, Any]) -> str:
    """Replace every `{key}` in template with the matching value.

    Non-string values are JSON encoded. There is no escape for literal
    braces; a `}` without an opening `{` passes through unchanged.
    """
    parts: list[str] = []
    pos = 0
    while True:
        start = template.find("{", pos)
        if start < 0:
            parts.append(template[pos:])
            return "".join(parts)
        end = template.find("}", start + 1)
        if end < 0:
            raise UnmatchedBraceError(start)
        key = template[start + 1:end]
        if key not in values:
            raise MissingKeyError(key)
        parts.append(template[pos:start])
        parts.append(_render(values[key]))
        pos = end + 1
