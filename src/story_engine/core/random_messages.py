from __future__ import annotations

import random
from typing import Any, Callable, Sequence

MessageCreator = Callable[..., str]
Picker = Callable[[Sequence[MessageCreator]], MessageCreator]


class RandomMessageProvider:
    """Pool of message creators; ``any`` renders one picked by ``picker``."""

    def __init__(self, picker: Picker = random.choice):
        self._registry: list[MessageCreator] = []
        self._picker = picker

    def add(self, message_creator: MessageCreator) -> "RandomMessageProvider":
        self._registry.append(message_creator)
        return self

    def with_picker(self, picker: Picker) -> "RandomMessageProvider":
        provider = RandomMessageProvider(picker)
        provider._registry = list(self._registry)
        return provider

    def any(self, *args: Any, **kwargs: Any) -> str:
        if not self._registry:
            raise LookupError("no messages registered")
        return self._picker(self._registry)(*args, **kwargs)


def translated(key: str) -> MessageCreator:
    def _create(translate: Callable[..., str]) -> str:
        return translate(key)

    return _create


def translated_pool(key_prefix: str, count: int, picker: Picker = random.choice) -> RandomMessageProvider:
    provider = RandomMessageProvider(picker)
    for number in range(1, count + 1):
        provider.add(translated(f"{key_prefix}{number}"))
    return provider


END_MESSAGES = translated_pool("reply.story-outro", 5)
SUGGESTION_MESSAGES = translated_pool("reply.suggestion", 5)
