from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional, Union


class ButtonStyle(IntEnum):
    # Values match the Discord API component button styles.
    PRIMARY = 1
    SECONDARY = 2
    SUCCESS = 3
    DANGER = 4


class SpecialHandling(str, Enum):
    DELAY = "Delay"


@dataclass
class Embed:
    description: Optional[str] = None
    title: Optional[str] = None
    author_name: Optional[str] = None
    author_icon_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    image_url: Optional[str] = None
    colour: Optional[int] = None

    def total_length(self) -> int:
        return sum(len(part or "") for part in (self.description, self.title, self.author_name))


@dataclass
class Button:
    label: str
    custom_id: str
    style: ButtonStyle = ButtonStyle.SECONDARY


@dataclass
class StoryMessage:
    content: Optional[str] = None
    embeds: list[Embed] = field(default_factory=list)
    # Each inner list is one action row.
    components: list[list[Button]] = field(default_factory=list)


@dataclass(frozen=True)
class SpecialHandlingMessage:
    """Not sent to the platform; tells the sender to do something else instead."""

    special_handling: SpecialHandling


OutgoingMessage = Union[StoryMessage, SpecialHandlingMessage]


def is_special_handling_message(message: OutgoingMessage) -> bool:
    return isinstance(message, SpecialHandlingMessage)
