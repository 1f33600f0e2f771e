from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...core.types import CurrentStoryPlay, OwnerReportType, StoryStatus, SuggestionData
from .models import REPORTED_FLAG_COLUMNS, Story, StoryPlay, StorySuggestion


def _cleared_issue_flags() -> dict[str, object]:
    values: dict[str, object] = {column: False for column in REPORTED_FLAG_COLUMNS.values()}
    values["updated_at"] = datetime.utcnow()
    return values


class StoryRepo:
    def __init__(self, session: Session):
        self.session = session

    def get(self, story_id: str, guild_id: str) -> Story | None:
        stmt = select(Story).where(Story.id == story_id).where(Story.guild_id == guild_id).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()

    def get_by_id(self, story_id: str) -> Story | None:
        return self.session.get(Story, story_id)

    def load_content(self, story_id: str) -> Optional[str]:
        stmt = select(Story.content_json).where(Story.id == story_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def add(
        self,
        guild_id: str,
        owner_id: str,
        content_json: str,
        title: str = "",
        author: str = "",
        teaser: str = "",
        status: StoryStatus = StoryStatus.DRAFT,
        story_id: str | None = None,
    ) -> Story:
        row = Story(
            guild_id=guild_id,
            owner_id=owner_id,
            content_json=content_json,
            title=title,
            author=author,
            teaser=teaser,
            status=StoryStatus(status).value,
        )
        if story_id is not None:
            row.id = story_id
        self.session.add(row)
        self.session.flush()
        return row

    def set_status(
        self,
        story_id: str,
        guild_id: str,
        status: StoryStatus,
        previous_expected_status: StoryStatus | None = None,
    ) -> bool:
        stmt = (
            update(Story)
            .where(Story.id == story_id)
            .where(Story.guild_id == guild_id)
            .values(status=StoryStatus(status).value, updated_at=datetime.utcnow())
        )
        if previous_expected_status is not None:
            stmt = stmt.where(Story.status == StoryStatus(previous_expected_status).value)
        return (self.session.execute(stmt).rowcount or 0) == 1

    def mark_issue_as_reported(self, story_id: str, report_type: OwnerReportType) -> bool:
        """Claim the report flag. False if it was already set or the story is gone."""
        column = getattr(Story, REPORTED_FLAG_COLUMNS[OwnerReportType(report_type)])
        stmt = (
            update(Story)
            .where(Story.id == story_id)
            .where(column == False)  # noqa: E712
            .values({column: True, Story.updated_at: datetime.utcnow()})
        )
        return (self.session.execute(stmt).rowcount or 0) == 1

    def increase_time_budget_exceeded_counter(self, story_id: str) -> int | None:
        stmt = (
            update(Story)
            .where(Story.id == story_id)
            .values(
                time_budget_exceeded_count=Story.time_budget_exceeded_count + 1,
                updated_at=datetime.utcnow(),
            )
        )
        if (self.session.execute(stmt).rowcount or 0) != 1:
            return None
        count_stmt = select(Story.time_budget_exceeded_count).where(Story.id == story_id)
        return self.session.execute(count_stmt).scalar_one()

    def replace_content(self, story_id: str, guild_id: str, content_json: str) -> bool:
        values = _cleared_issue_flags()
        values["content_json"] = content_json
        values["time_budget_exceeded_count"] = 0
        stmt = update(Story).where(Story.id == story_id).where(Story.guild_id == guild_id).values(**values)
        return (self.session.execute(stmt).rowcount or 0) == 1

    def change_owner(self, story_id: str, guild_id: str, owner_id: str) -> bool:
        # The new owner has not seen any of the previous reports.
        values = _cleared_issue_flags()
        values["owner_id"] = owner_id
        stmt = update(Story).where(Story.id == story_id).where(Story.guild_id == guild_id).values(**values)
        return (self.session.execute(stmt).rowcount or 0) == 1


class StoryPlayRepo:
    def __init__(self, session: Session):
        self.session = session

    def get_current(self, user_id: str) -> CurrentStoryPlay | None:
        stmt = (
            select(StoryPlay, Story)
            .join(Story, Story.id == StoryPlay.story_id)
            .where(StoryPlay.user_id == user_id)
            .limit(1)
        )
        row = self.session.execute(stmt).first()
        if row is None:
            return None
        play, story = row
        return CurrentStoryPlay(story=story, state_json=play.state_json)

    def has_current(self, user_id: str) -> bool:
        stmt = select(StoryPlay.story_id).where(StoryPlay.user_id == user_id).limit(1)
        return self.session.execute(stmt).scalar_one_or_none() is not None

    def start(self, user_id: str, story_id: str) -> bool:
        """Insert a fresh play. False if the user already has one."""
        try:
            with self.session.begin_nested():
                self.session.add(StoryPlay(user_id=user_id, story_id=story_id, state_json=None))
                self.session.flush()
                return True
        except IntegrityError as exc:
            message = str(exc).lower()
            if "se_story_plays.user_id" in message or "se_story_plays_pkey" in message:
                return False
            raise

    def clear(self, user_id: str) -> bool:
        stmt = delete(StoryPlay).where(StoryPlay.user_id == user_id)
        return (self.session.execute(stmt).rowcount or 0) > 0

    def save_state(self, user_id: str, state_json: str) -> bool:
        stmt = (
            update(StoryPlay)
            .where(StoryPlay.user_id == user_id)
            .values(state_json=state_json, updated_at=datetime.utcnow())
        )
        return (self.session.execute(stmt).rowcount or 0) == 1

    def reset_state(self, user_id: str) -> bool:
        stmt = (
            update(StoryPlay)
            .where(StoryPlay.user_id == user_id)
            .values(state_json=None, updated_at=datetime.utcnow())
        )
        return (self.session.execute(stmt).rowcount or 0) == 1

    def current_players(self, story_id: str) -> list[str]:
        stmt = (
            select(StoryPlay.user_id)
            .where(StoryPlay.story_id == story_id)
            .order_by(StoryPlay.created_at, StoryPlay.user_id)
        )
        return list(self.session.execute(stmt).scalars().all())


class SuggestionRepo:
    def __init__(self, session: Session):
        self.session = session

    def add_or_edit(self, source_story_id: str, suggested_story_id: str, message: str | None = None) -> StorySuggestion:
        stmt = (
            select(StorySuggestion)
            .where(StorySuggestion.source_story_id == source_story_id)
            .where(StorySuggestion.suggested_story_id == suggested_story_id)
            .limit(1)
        )
        row = self.session.execute(stmt).scalar_one_or_none()
        if row is None:
            row = StorySuggestion(
                source_story_id=source_story_id,
                suggested_story_id=suggested_story_id,
                message=message,
            )
            self.session.add(row)
        else:
            row.message = message
        self.session.flush()
        return row

    def delete(self, source_story_id: str, suggested_story_id: str) -> bool:
        stmt = (
            delete(StorySuggestion)
            .where(StorySuggestion.source_story_id == source_story_id)
            .where(StorySuggestion.suggested_story_id == suggested_story_id)
        )
        return (self.session.execute(stmt).rowcount or 0) > 0

    def for_story(self, story_id: str) -> list[SuggestionData]:
        stmt = (
            select(Story, StorySuggestion.message)
            .join(StorySuggestion, StorySuggestion.suggested_story_id == Story.id)
            .where(StorySuggestion.source_story_id == story_id)
            .order_by(StorySuggestion.created_at)
        )
        return [
            SuggestionData(suggested_story=story, message=message)
            for story, message in self.session.execute(stmt).all()
        ]
