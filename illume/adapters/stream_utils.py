"""
Streaming response decoding. Turns server-sent event lines from any of the
supported providers into one plain text stream.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Iterable, TextIO

from pydantic import ValidationError

from illume.core.models import StreamChunk
from illume.util.logger import logger


DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"
THINK_OPEN = "<think>\n"
THINK_CLOSE = "\n</think>\n\n"


def extract_sse_data_payload(line: str) -> str | None:
    if not line.startswith(DATA_PREFIX):
        return None
    return line[len(DATA_PREFIX):].rstrip("\r\n")


def decode_chunk(payload: str) -> StreamChunk:
    """Decode one data payload; anything malformed becomes an empty chunk."""
    try:
        return StreamChunk.model_validate_json(payload)
    except ValidationError:
        logger.debug("stream chunk ignored payload=%s", payload[:200])
        return StreamChunk()


@dataclass(slots=True)
class _ToolCall:
    id: str = ""
    name: str = ""
    arguments: str = ""

    def render(self) -> str:
        try:
            arguments = json.loads(self.arguments) if self.arguments else {}
        except json.JSONDecodeError:
            arguments = self.arguments
        call = {"name": self.name, "arguments": arguments}
        if self.id:
            call["id"] = self.id
        return f"<tool_call>\n{json.dumps(call, ensure_ascii=False)}\n</tool_call>\n"


class StreamNormalizer:
    """Writes the text of each stream event to out as soon as it arrives.

    Reasoning fragments are wrapped in <think>...</think>. Tool call
    fragments are collected and rendered when the stream ends, followed by
    a `!tool` directive for the tool's answer.
    """

    def __init__(self, out: TextIO) -> None:
        self.out = out
        self.events = 0
        self._thinking = False
        self._tool_calls: dict[int, _ToolCall] = {}

    def _write(self, text: str) -> None:
        self.out.write(text)

    def feed(self, line: str) -> bool:
        """Handle one line. Returns False once the end sentinel is seen."""
        payload = extract_sse_data_payload(line)
        if payload is None:
            return True
        if payload == DONE_SENTINEL:
            return False

        self.events += 1
        chunk = decode_chunk(payload)

        thinking = chunk.thinking
        if thinking:
            if not self._thinking:
                self._write(THINK_OPEN)
                self._thinking = True
            self._write(thinking)

        text = chunk.text
        if text:
            if self._thinking:
                self._write(THINK_CLOSE)
                self._thinking = False
            self._write(text)

        for delta in chunk.first_choice().delta.tool_calls:
            call = self._tool_calls.setdefault(delta.index, _ToolCall())
            call.id = call.id or delta.id
            call.name += delta.function.name
            call.arguments += delta.function.arguments

        self.out.flush()
        return True

    def finish(self) -> None:
        if self._thinking:
            self._write(THINK_CLOSE.rstrip("\n") + "\n")
            self._thinking = False
        if self._tool_calls:
            self._write("\n")
            for index in sorted(self._tool_calls):
                self._write(self._tool_calls[index].render())
            self._write("\n!tool\n\n")
            self._tool_calls = {}
        self.out.flush()

    def run(self, lines: Iterable[str]) -> int:
        """Consume lines until the sentinel or the end; returns the event count."""
        for line in lines:
            if not self.feed(line):
                break
        self.finish()
        return self.events
