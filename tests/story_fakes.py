"""Scripted stand-ins for the Ink interpreter and the chat platform."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional

from story_engine.core.errors import CannotSendDirectMessageError
from story_engine.core.ports import ErrorSeverity


class _Variables(dict):
    def __missing__(self, key):
        return "{" + key + "}"


@dataclass
class FakeChoice:
    index: int
    text: str
    tags: Optional[list[str]] = None
    target: str = ""


class FakeInkState:
    def __init__(self, story: "FakeInkStory"):
        self._story = story

    def to_json(self) -> str:
        story = self._story
        if story._node().get("unsaveable"):
            raise RuntimeError("state is not serializable")
        return json.dumps(
            {
                "node": story.node,
                "pos": story.pos,
                "vars": story.variables_state,
                "text": story.current_text,
                "tags": story.current_tags,
                "has_error": story.has_error,
            }
        )

    def load_json(self, document: str) -> None:
        data = json.loads(document)
        if not isinstance(data, dict) or data.get("node") not in self._story.nodes:
            raise ValueError("unknown story state")
        story = self._story
        story.node = data["node"]
        story.pos = int(data["pos"])
        story.variables_state = dict(data.get("vars") or {})
        story.current_text = data.get("text", "")
        story.current_tags = list(data.get("tags") or [])
        story.has_error = bool(data.get("has_error"))


class FakeInkStory:
    """Plays a story described as JSON nodes.

    ``{"global_tags": [...], "variables": {...}, "start": "intro", "nodes": {
    "intro": {"lines": [...], "choices": [{"text": ..., "tags": [...], "target": ...}],
    "warnings": [...], "errors": [...], "error_at": 0, "slow": true, "raise": "boom",
    "unsaveable": true}}}``
    """

    def __init__(self, document: dict[str, Any]):
        self.nodes: dict[str, dict[str, Any]] = document["nodes"]
        self.global_tags: Optional[list[str]] = list(document.get("global_tags") or [])
        self.variables_state: dict[str, Any] = dict(document.get("variables") or {})
        self.node: str = document.get("start", "start")
        self.pos = 0
        self.current_text = ""
        self.current_tags: list[str] = []
        self.has_error = False
        self.async_continue_complete = True
        self.on_error = None
        self.state = FakeInkState(self)
        self.continue_calls = 0

    @classmethod
    def from_content(cls, content: str) -> "FakeInkStory":
        document = json.loads(content)
        if "nodes" not in document:
            raise ValueError("not a compiled story")
        return cls(document)

    def _node(self) -> dict[str, Any]:
        return self.nodes[self.node]

    @property
    def can_continue(self) -> bool:
        return self.pos < len(self._node().get("lines", []))

    def continue_async(self, millisecs_limit_async: float) -> None:
        self.continue_calls += 1
        node = self._node()
        if node.get("raise"):
            raise RuntimeError(node["raise"])
        if node.get("slow"):
            self.async_continue_complete = False
            return
        self.async_continue_complete = True

        line_index = self.pos
        line = node["lines"][line_index]
        if isinstance(line, str):
            line = {"text": line}
        self.pos += 1
        self.current_text = line["text"].format_map(_Variables(self.variables_state))
        self.current_tags = list(line.get("tags") or [])

        if line_index == 0:
            for warning in node.get("warnings", []):
                self._emit(warning, ErrorSeverity.WARNING)
        if node.get("errors") and line_index == node.get("error_at", 0):
            self.has_error = True
            for error in node["errors"]:
                self._emit(error, ErrorSeverity.ERROR)

    def _emit(self, message: str, severity: ErrorSeverity) -> None:
        if self.on_error is not None:
            self.on_error(message, severity)

    @property
    def current_choices(self) -> list[FakeChoice]:
        if self.can_continue or self.has_error:
            return []
        return [
            FakeChoice(index=i, text=choice["text"], tags=choice.get("tags"), target=choice.get("target", ""))
            for i, choice in enumerate(self._node().get("choices", []))
        ]

    def choose_choice_index(self, choice_index: int) -> None:
        choices = self.current_choices
        if not 0 <= choice_index < len(choices):
            raise IndexError("choice out of range")
        self.node = choices[choice_index].target
        self.pos = 0


def story_content(nodes: dict[str, Any], start: str = "start", **extra: Any) -> str:
    document = {"start": start, "nodes": nodes}
    document.update(extra)
    return json.dumps(document)


TRANSLATIONS = {
    "choice-button-indexed-label": "{choice_index}. {choice_text}",
    "reply.too-many-choices": "Only {choice_limit} choices can be shown.",
    "replay-button-label": "Play again",
    "start-button-label": "Start",
    "commands.story.owner-report.intro": "There is a problem with {story_title} on {server_name}.",
    "commands.story.owner-report.type-InkError": "The story has an error:",
    "commands.story.owner-report.type-InkWarning": "The story has a warning:",
    "commands.story.owner-report.type-PotentialLoopDetected": "The story might be looping.",
    "commands.story.owner-report.type-MaximumChoiceNumberExceeded": "More than {choice_limit} choices:",
    "commands.story.owner-report.last-lines": "Last lines:",
    "commands.story.owner-report.no-repeat": "You will not be told again.",
    "commands.manage-stories.story-updated-and-stopped-notification": "{story_title} on {server_name} was stopped.",
    "commands.manage-stories.restart-button-label": "Restart",
}


def fake_translate(key: str, **options: Any) -> str:
    template = TRANSLATIONS.get(key)
    if template is None:
        return key
    return template.format(**options)


class FakeChannel:
    def __init__(self, send_error: Exception | None = None):
        self.sent = []
        self.typing_count = 0
        self.send_error = send_error

    async def send(self, message) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(message)

    async def trigger_typing(self) -> None:
        self.typing_count += 1


class FakeMember:
    def __init__(self, user_id: str, dm_error: Exception | None = None, send_error: Exception | None = None):
        self.user_id = user_id
        self.dm_error = dm_error
        self.channel = FakeChannel(send_error=send_error)

    async def create_dm(self) -> FakeChannel:
        if self.dm_error is not None:
            raise self.dm_error
        return self.channel


class FakeGuild:
    def __init__(self, guild_id: str, name: str = "Test Server", preferred_locale: str | None = "en-US"):
        self.id = guild_id
        self.name = name
        self.preferred_locale = preferred_locale
        self.members: dict[str, FakeMember] = {}

    def add_member(self, user_id: str, **kwargs: Any) -> FakeMember:
        member = FakeMember(user_id, **kwargs)
        self.members[user_id] = member
        return member

    async def fetch_member(self, user_id: str) -> FakeMember | None:
        return self.members.get(user_id)


class FakePlatform:
    def __init__(self):
        self.guilds: dict[str, FakeGuild] = {}
        self.fetch_error: Exception | None = None

    def add_guild(self, guild_id: str, **kwargs: Any) -> FakeGuild:
        guild = FakeGuild(guild_id, **kwargs)
        self.guilds[guild_id] = guild
        return guild

    async def fetch_guild(self, guild_id: str) -> FakeGuild | None:
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.guilds.get(guild_id)


def closed_dms_error() -> CannotSendDirectMessageError:
    return CannotSendDirectMessageError("Cannot send messages to this user")


@dataclass
class FakeStoryRecord:
    id: str = "story-1"
    guild_id: str = "guild-1"
    owner_id: str = "owner-1"
    title: str = "The Cave"
    author: str = "Someone"
    teaser: str = "Dark and deep."
    reported: set = field(default_factory=set)

    def has_issue_been_reported(self, report_type) -> bool:
        return report_type in self.reported
