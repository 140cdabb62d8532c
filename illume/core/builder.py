"""Role-tagged message accumulation."""

from __future__ import annotations

from illume.core.models import Message


DEFAULT_ROLE = "system"
TOOL_ROLE = "tool"
TOOL_RESPONSE_OPEN = "<tool_response>"
TOOL_RESPONSE_CLOSE = "</tool_response>"


class ConversationBuilder:
    """Collects content lines into the in-progress segment.

    A role switch closes the segment into a message under the previous
    role and opens a new one. Only the in-progress segment is mutable.
    """

    def __init__(self) -> None:
        self.messages: list[Message] = []
        self.role = ""
        self._segment: list[str] = []

    @property
    def segment(self) -> str:
        return "".join(self._segment)

    def append(self, line: str) -> None:
        self._segment.append(line)
        self._segment.append("\n")

    def extend(self, text: str) -> None:
        self._segment.append(text)

    def reset(self) -> None:
        self.messages = []
        self.role = ""
        self._segment = []

    def finalize(self, role: str) -> list[Message]:
        content = self.segment.strip("\n")
        if content and self.role == TOOL_ROLE:
            content = f"{TOOL_RESPONSE_OPEN}\n{content}\n{TOOL_RESPONSE_CLOSE}"
        if content:
            self.messages.append(Message(role=self.role or DEFAULT_ROLE, content=content))

        self._segment = []
        if role == TOOL_ROLE:
            # tool output has to follow an assistant turn
            self.messages.append(Message(role="assistant", content=""))
        self.role = role
        return list(self.messages)
