from __future__ import annotations

from enum import Enum
from typing import Any, Callable, MutableMapping, Optional, Protocol, Sequence

from .payloads import StoryMessage


class ErrorSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


ErrorHandler = Callable[[str, ErrorSeverity], None]


class InkChoicePort(Protocol):
    index: int
    text: str
    tags: Optional[list[str]]


class InkStatePort(Protocol):
    def to_json(self) -> str:
        ...

    def load_json(self, document: str) -> None:
        ...


class InkStoryPort(Protocol):
    can_continue: bool
    async_continue_complete: bool
    current_text: str
    current_tags: list[str]
    current_choices: Sequence[InkChoicePort]
    global_tags: Optional[list[str]]
    variables_state: MutableMapping[str, Any]
    has_error: bool
    state: InkStatePort
    on_error: Optional[ErrorHandler]

    def continue_async(self, millisecs_limit_async: float) -> None:
        ...

    def choose_choice_index(self, choice_index: int) -> None:
        ...


StoryFactory = Callable[[str], InkStoryPort]


class TranslatePort(Protocol):
    def __call__(self, key: str, **options: Any) -> str:
        ...


class MessageChannelPort(Protocol):
    async def send(self, message: StoryMessage) -> None:
        ...

    async def trigger_typing(self) -> None:
        ...


class MemberPort(Protocol):
    async def create_dm(self) -> MessageChannelPort:
        ...


class GuildPort(Protocol):
    id: str
    name: str
    preferred_locale: Optional[str]

    async def fetch_member(self, user_id: str) -> MemberPort | None:
        ...


class PlatformPort(Protocol):
    async def fetch_guild(self, guild_id: str) -> GuildPort | None:
        ...
