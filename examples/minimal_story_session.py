from __future__ import annotations

import asyncio
import json

from story_engine import MessageContext, OwnerNotifier, StoryEngine, get_messages_to_send
from story_engine.core.payloads import SpecialHandlingMessage
from story_engine.core.types import StoryStatus
from story_engine.persistence.sqlalchemy import (
    SQLAlchemyUnitOfWork,
    build_engine,
    build_session_factory,
    create_schema,
)

STORY = {
    "global_tags": ["title: The Lighthouse", "author: Demo", "character: keeper, The Keeper"],
    "nodes": {
        "start": {
            "lines": ["The lamp has gone dark.", "keeper: Will you climb the stairs?"],
            "choices": [{"text": "Climb", "target": "top"}, {"text": "Go home", "target": "home"}],
        },
        "top": {"lines": ["You relight the lamp. Ships find their way home."]},
        "home": {"lines": ["The night passes without light."]},
    },
}


class DemoChoice:
    def __init__(self, index, text, target):
        self.index = index
        self.text = text
        self.tags = []
        self.target = target


class DemoState:
    def __init__(self, story):
        self._story = story

    def to_json(self):
        return json.dumps({"node": self._story.node, "pos": self._story.pos})

    def load_json(self, document):
        data = json.loads(document)
        self._story.node = data["node"]
        self._story.pos = data["pos"]


class DemoInkStory:
    """Plays the node script above instead of a compiled Ink story."""

    def __init__(self, content):
        document = json.loads(content)
        self.nodes = document["nodes"]
        self.global_tags = document.get("global_tags", [])
        self.variables_state = {}
        self.node = "start"
        self.pos = 0
        self.current_text = ""
        self.current_tags = []
        self.has_error = False
        self.async_continue_complete = True
        self.on_error = None
        self.state = DemoState(self)

    @property
    def can_continue(self):
        return self.pos < len(self.nodes[self.node]["lines"])

    def continue_async(self, millisecs_limit_async):
        self.current_text = self.nodes[self.node]["lines"][self.pos]
        self.pos += 1

    @property
    def current_choices(self):
        if self.can_continue:
            return []
        choices = self.nodes[self.node].get("choices", [])
        return [DemoChoice(i, choice["text"], choice["target"]) for i, choice in enumerate(choices)]

    def choose_choice_index(self, choice_index):
        self.node = self.current_choices[choice_index].target
        self.pos = 0


class ConsolePlatform:
    async def fetch_guild(self, guild_id):
        return None


def make_uow_factory():
    engine = build_engine("sqlite+pysqlite:///:memory:")
    create_schema(engine)
    session_factory = build_session_factory(engine)

    def _uow_factory():
        return SQLAlchemyUnitOfWork(session_factory)

    with _uow_factory() as uow:
        uow.stories.add(
            guild_id="guild-1",
            owner_id="owner-1",
            content_json=json.dumps(STORY),
            title="The Lighthouse",
            author="Demo",
            status=StoryStatus.PUBLISHED,
            story_id="story-1",
        )
        uow.commit()

    return _uow_factory


def print_messages(step_data, context):
    for message in get_messages_to_send(step_data, context):
        if isinstance(message, SpecialHandlingMessage):
            print("...")
            continue
        if message.content:
            print(message.content)
        for embed in message.embeds:
            print(f"[{embed.author_name or embed.title or ''}] {embed.description}")
        for row in message.components:
            print(" ".join(f"({button.custom_id}: {button.label})" for button in row))


async def main() -> None:
    uow_factory = make_uow_factory()
    notifier = OwnerNotifier(uow_factory, ConsolePlatform(), lambda key, **options: key)
    story_engine = StoryEngine(uow_factory, DemoInkStory, notifier)
    context = MessageContext(
        translate=lambda key, **options: key,
        choice_button_id=lambda index: f"choice:{index}",
        input_button_id=lambda index: f"input:{index}",
        start_button_id=lambda story_id: f"start:{story_id}",
    )

    step_data = await story_engine.start_story("player-1", "story-1", "guild-1")
    print_messages(step_data, context)

    step_data = await story_engine.continue_story("player-1", 0)
    print_messages(step_data, context)
    await notifier.wait_idle()


if __name__ == "__main__":
    asyncio.run(main())
