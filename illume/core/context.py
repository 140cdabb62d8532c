"""Interpreter runtime state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping

from illume.core.builder import ConversationBuilder

if TYPE_CHECKING:
    from illume.profiles.profile_store import ProfileStore


MODE_CHAT = "chat"
MODE_COMPLETION = "completion"
MODE_INFILL = "infill"
MODE_FIM = "fim"

AUTHORIZATION = "authorization"


@dataclass(slots=True)
class RequestState:
    api: str = ""
    api_origin: tuple[str, int] = ("", 0)
    mode: str = MODE_CHAT
    body: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=lambda: {"content-type": "application/json"})
    # body keys written by the top-level document; profiles cannot touch them
    hard_keys: set[str] = field(default_factory=set)
    token: str = ""
    debug: bool = False
    stats: bool = False
    fim_template: str = ""
    fim_template_origin: tuple[str, int] = ("", 0)
    profile: str = ""
    builder: ConversationBuilder = field(default_factory=ConversationBuilder)

    def __post_init__(self) -> None:
        if self.token:
            self.set_token(self.token)

    def set_token(self, token: str) -> None:
        self.token = token
        for key in [k for k in self.headers if k.lower() == AUTHORIZATION]:
            del self.headers[key]
        if token:
            self.headers[AUTHORIZATION] = f"Bearer {token}"

    def set_field(self, key: str, value: Any, depth: int) -> bool:
        if depth > 0 and key in self.hard_keys:
            return False
        self.body[key] = value
        if depth == 0:
            self.hard_keys.add(key)
        return True

    def delete_field(self, key: str, depth: int) -> bool:
        if depth > 0 and key in self.hard_keys:
            return False
        self.body.pop(key, None)
        if depth == 0:
            self.hard_keys.add(key)
        return True


@dataclass(slots=True)
class InterpretContext:
    state: RequestState
    profiles: ProfileStore
    environ: Mapping[str, str] = field(default_factory=dict)
    depth: int = 0
    # document and line of the directive being run
    location: tuple[str, int] = ("", 0)

    def nested(self) -> InterpretContext:
        return InterpretContext(
            state=self.state,
            profiles=self.profiles,
            environ=self.environ,
            depth=self.depth + 1,
        )
