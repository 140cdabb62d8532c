"""Internal transport models."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


Role = Literal["system", "user", "assistant", "tool", "infill"]


def _none_as_empty(value: object) -> object:
    return "" if value is None else value


def _none_as_list(value: object) -> object:
    return [] if value is None else value


def _none_as_object(value: object) -> object:
    return {} if value is None else value


# providers send `null` for channels they are not using
Text = Annotated[str, BeforeValidator(_none_as_empty)]
Items = BeforeValidator(_none_as_list)
Object = BeforeValidator(_none_as_object)


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class PreparedRequest(BaseModel):
    method: str = "POST"
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    body: bytes = b""


# Streaming chunks. One schema covers every provider shape at once: OpenAI
# style chat deltas, flat completion text, and Anthropic style delta blocks.
# Whatever a provider does not send stays empty.


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore")


class FunctionDelta(_Lenient):
    name: Text = ""
    arguments: Text = ""


class ToolCallDelta(_Lenient):
    index: int = 0
    id: Text = ""
    function: Annotated[FunctionDelta, Object] = Field(default_factory=FunctionDelta)


class ChoiceDelta(_Lenient):
    content: Text = ""
    reasoning_content: Text = ""
    tool_calls: Annotated[list[ToolCallDelta], Items] = Field(default_factory=list)


class Choice(_Lenient):
    delta: Annotated[ChoiceDelta, Object] = Field(default_factory=ChoiceDelta)
    text: Text = ""


class BlockDelta(_Lenient):
    thinking: Text = ""
    text: Text = ""


class StreamChunk(_Lenient):
    choices: Annotated[list[Choice], Items] = Field(default_factory=list)
    content: Text = ""
    delta: Annotated[BlockDelta, Object] = Field(default_factory=BlockDelta)

    def first_choice(self) -> Choice:
        if self.choices:
            return self.choices[0]
        return Choice()

    @property
    def thinking(self) -> str:
        return self.delta.thinking or self.first_choice().delta.reasoning_content

    @property
    def text(self) -> str:
        choice = self.first_choice()
        return choice.delta.content + choice.text + self.content + self.delta.text
