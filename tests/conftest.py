from __future__ import annotations

import pytest
from sqlalchemy import text

from story_engine.core.config import StoryEngineConfig
from story_engine.core.engine import StoryEngine
from story_engine.core.reporting import OwnerNotifier
from story_engine.core.types import StoryStatus
from story_engine.persistence.sqlalchemy.db import build_engine, build_session_factory, create_schema
from story_engine.persistence.sqlalchemy.uow import SQLAlchemyUnitOfWork
from story_fakes import FakeInkStory, FakePlatform, fake_translate, story_content


@pytest.fixture()
def session_factory():
    engine = build_engine("sqlite+pysqlite:///:memory:")
    create_schema(engine)
    sf = build_session_factory(engine)
    with sf() as session:
        session.execute(text("PRAGMA foreign_keys=ON"))
        session.commit()
    return sf


@pytest.fixture()
def uow_factory(session_factory):
    def _factory():
        return SQLAlchemyUnitOfWork(session_factory)

    return _factory


@pytest.fixture()
def add_story(uow_factory):
    def _add(nodes=None, story_id="story-1", guild_id="guild-1", owner_id="owner-1", content=None, **extra):
        if content is None:
            content = story_content(nodes or {"start": {"lines": ["The end."]}}, **extra)
        with uow_factory() as uow:
            uow.stories.add(
                guild_id=guild_id,
                owner_id=owner_id,
                content_json=content,
                title="The Cave",
                author="Someone",
                teaser="Dark and deep.",
                status=StoryStatus.PUBLISHED,
                story_id=story_id,
            )
            uow.commit()
        return story_id

    return _add


@pytest.fixture()
def platform():
    fake = FakePlatform()
    guild = fake.add_guild("guild-1", name="Test Server")
    guild.add_member("owner-1")
    return fake


@pytest.fixture()
def owner_channel(platform):
    return platform.guilds["guild-1"].members["owner-1"].channel


@pytest.fixture()
def config():
    return StoryEngineConfig()


@pytest.fixture()
def notifier(uow_factory, platform, config):
    return OwnerNotifier(uow_factory, platform, fake_translate, config=config)


@pytest.fixture()
def story_engine(uow_factory, notifier, config):
    return StoryEngine(uow_factory, FakeInkStory.from_content, notifier, config=config)
