from __future__ import annotations

from sqlalchemy import select

from story_engine.core.types import OwnerReportType, StoryStatus
from story_engine.persistence.sqlalchemy.models import Story, StoryPlay, StorySuggestion


def test_mark_issue_as_reported_is_compare_and_set(add_story, uow_factory):
    add_story()

    with uow_factory() as uow:
        assert uow.stories.mark_issue_as_reported("story-1", OwnerReportType.INK_ERROR)
        uow.commit()

    with uow_factory() as uow:
        assert not uow.stories.mark_issue_as_reported("story-1", OwnerReportType.INK_ERROR)
        assert uow.stories.mark_issue_as_reported("story-1", OwnerReportType.INK_WARNING)
        assert not uow.stories.mark_issue_as_reported("missing", OwnerReportType.INK_ERROR)
        uow.commit()

    with uow_factory() as uow:
        story = uow.stories.get_by_id("story-1")
        assert story.has_issue_been_reported(OwnerReportType.INK_ERROR)
        assert story.has_issue_been_reported(OwnerReportType.INK_WARNING)
        assert not story.has_issue_been_reported(OwnerReportType.POTENTIAL_LOOP_DETECTED)


def test_time_budget_counter_returns_new_value(add_story, uow_factory):
    add_story()

    with uow_factory() as uow:
        assert [uow.stories.increase_time_budget_exceeded_counter("story-1") for _ in range(3)] == [1, 2, 3]
        assert uow.stories.increase_time_budget_exceeded_counter("missing") is None
        uow.commit()

    with uow_factory() as uow:
        assert uow.stories.get_by_id("story-1").time_budget_exceeded_count == 3


def test_get_is_scoped_to_guild(add_story, uow_factory):
    add_story()

    with uow_factory() as uow:
        assert uow.stories.get("story-1", "guild-1").title == "The Cave"
        assert uow.stories.get("story-1", "guild-2") is None
        assert uow.stories.load_content("story-1").startswith("{")
        assert uow.stories.load_content("missing") is None


def test_set_status_with_expected_previous_status(add_story, uow_factory):
    add_story()

    with uow_factory() as uow:
        assert not uow.stories.set_status(
            "story-1", "guild-1", StoryStatus.UNLISTED, previous_expected_status=StoryStatus.DRAFT
        )
        assert uow.stories.set_status(
            "story-1", "guild-1", StoryStatus.UNLISTED, previous_expected_status=StoryStatus.PUBLISHED
        )
        uow.commit()

    with uow_factory() as uow:
        assert uow.stories.get_by_id("story-1").status == StoryStatus.UNLISTED.value


def test_replace_content_and_change_owner_clear_report_flags(add_story, uow_factory):
    add_story()

    def flag_everything():
        with uow_factory() as uow:
            for report_type in OwnerReportType:
                uow.stories.mark_issue_as_reported("story-1", report_type)
            uow.stories.increase_time_budget_exceeded_counter("story-1")
            uow.commit()

    flag_everything()
    with uow_factory() as uow:
        assert uow.stories.replace_content("story-1", "guild-1", '{"nodes": {}}')
        uow.commit()
    with uow_factory() as uow:
        story = uow.stories.get_by_id("story-1")
        assert not any(story.has_issue_been_reported(report_type) for report_type in OwnerReportType)
        assert story.time_budget_exceeded_count == 0
        assert uow.stories.load_content("story-1") == '{"nodes": {}}'

    flag_everything()
    with uow_factory() as uow:
        assert uow.stories.change_owner("story-1", "guild-1", "owner-2")
        assert not uow.stories.change_owner("story-1", "guild-2", "owner-3")
        uow.commit()
    with uow_factory() as uow:
        story = uow.stories.get_by_id("story-1")
        assert story.owner_id == "owner-2"
        assert not any(story.has_issue_been_reported(report_type) for report_type in OwnerReportType)


def test_one_play_per_user(add_story, uow_factory, session_factory):
    add_story()
    add_story(story_id="story-2")

    with uow_factory() as uow:
        assert uow.plays.start("player-1", "story-1")
        uow.commit()

    with uow_factory() as uow:
        assert not uow.plays.start("player-1", "story-2")
        assert uow.plays.start("player-2", "story-2")
        uow.commit()

    with session_factory() as session:
        plays = session.execute(select(StoryPlay).order_by(StoryPlay.user_id)).scalars().all()
        assert [(play.user_id, play.story_id) for play in plays] == [("player-1", "story-1"), ("player-2", "story-2")]


def test_play_state_lifecycle(add_story, uow_factory):
    add_story()

    with uow_factory() as uow:
        uow.plays.start("player-1", "story-1")
        uow.commit()

    with uow_factory() as uow:
        current = uow.plays.get_current("player-1")
        assert current.story.id == "story-1"
        assert current.state_json is None
        assert uow.plays.save_state("player-1", '{"node": "start"}')
        assert not uow.plays.save_state("player-2", "{}")
        uow.commit()

    with uow_factory() as uow:
        assert uow.plays.get_current("player-1").state_json == '{"node": "start"}'
        assert uow.plays.reset_state("player-1")
        uow.commit()

    with uow_factory() as uow:
        assert uow.plays.get_current("player-1").state_json is None
        assert uow.plays.clear("player-1")
        assert not uow.plays.clear("player-1")
        uow.commit()

    with uow_factory() as uow:
        assert uow.plays.get_current("player-1") is None
        assert not uow.plays.has_current("player-1")


def test_current_players_per_story(add_story, uow_factory):
    add_story()
    add_story(story_id="story-2")

    with uow_factory() as uow:
        for user_id, story_id in (("b", "story-1"), ("a", "story-1"), ("c", "story-2")):
            uow.plays.start(user_id, story_id)
        uow.commit()

    with uow_factory() as uow:
        assert sorted(uow.plays.current_players("story-1")) == ["a", "b"]
        assert uow.plays.clear("a")
        assert uow.plays.clear("b")
        uow.commit()

    with uow_factory() as uow:
        assert uow.plays.current_players("story-1") == []
        assert uow.plays.current_players("story-2") == ["c"]


def test_suggestions_add_edit_and_delete(add_story, uow_factory):
    add_story()
    add_story(story_id="story-2")
    add_story(story_id="story-3")

    with uow_factory() as uow:
        uow.suggestions.add_or_edit("story-1", "story-2", "First message")
        uow.suggestions.add_or_edit("story-1", "story-3")
        uow.commit()

    with uow_factory() as uow:
        uow.suggestions.add_or_edit("story-1", "story-2", "Edited message")
        uow.commit()

    with uow_factory() as uow:
        suggestions = uow.suggestions.for_story("story-1")
        assert sorted((s.suggested_story.id, s.message) for s in suggestions) == [
            ("story-2", "Edited message"),
            ("story-3", None),
        ]
        assert uow.suggestions.for_story("story-2") == []

        assert uow.suggestions.delete("story-1", "story-3")
        assert not uow.suggestions.delete("story-1", "story-3")
        uow.commit()

    with uow_factory() as uow:
        assert [s.suggested_story.id for s in uow.suggestions.for_story("story-1")] == ["story-2"]


def test_deleting_a_story_cascades(add_story, uow_factory, session_factory):
    add_story()
    add_story(story_id="story-2")

    with uow_factory() as uow:
        uow.plays.start("player-1", "story-1")
        uow.suggestions.add_or_edit("story-2", "story-1", "Go there")
        uow.commit()

    with session_factory() as session:
        session.delete(session.get(Story, "story-1"))
        session.commit()

    with session_factory() as session:
        assert session.execute(select(StoryPlay)).scalars().all() == []
        assert session.execute(select(StorySuggestion)).scalars().all() == []
