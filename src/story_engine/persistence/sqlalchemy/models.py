from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, deferred, mapped_column

from ...core.types import OwnerReportType, StoryStatus
from .base import Base, TimestampMixin


REPORTED_FLAG_COLUMNS = {
    OwnerReportType.INK_WARNING: "reported_ink_warning",
    OwnerReportType.INK_ERROR: "reported_ink_error",
    OwnerReportType.POTENTIAL_LOOP_DETECTED: "reported_potential_loop_detected",
    OwnerReportType.MAXIMUM_CHOICE_NUMBER_EXCEEDED: "reported_maximum_choice_number_exceeded",
}


class Story(TimestampMixin, Base):
    __tablename__ = "se_stories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    guild_id: Mapped[str] = mapped_column(String(64), nullable=False)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)

    title: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    author: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    teaser: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=StoryStatus.DRAFT.value)

    # Compiled story JSON, only loaded when an interpreter is created.
    content_json: Mapped[str] = deferred(mapped_column(Text, nullable=False, default=""))

    reported_ink_warning: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reported_ink_error: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reported_potential_loop_detected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reported_maximum_choice_number_exceeded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    time_budget_exceeded_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint(
            "status IN ('Draft','Testing','Published','Unlisted','ToBeDeleted')",
            name="story_status_valid",
        ),
        CheckConstraint("time_budget_exceeded_count >= 0", name="story_budget_counter_non_negative"),
    )

    def has_issue_been_reported(self, report_type: OwnerReportType) -> bool:
        return bool(getattr(self, REPORTED_FLAG_COLUMNS[OwnerReportType(report_type)]))


Index("ix_se_story_guild_status", Story.guild_id, Story.status)


class StoryPlay(TimestampMixin, Base):
    __tablename__ = "se_story_plays"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    story_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("se_stories.id", ondelete="CASCADE"),
        nullable=False,
    )
    # NULL until the first turn has been saved.
    state_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


Index("ix_se_story_play_story", StoryPlay.story_id)


class StorySuggestion(TimestampMixin, Base):
    __tablename__ = "se_story_suggestions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    source_story_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("se_stories.id", ondelete="CASCADE"),
        nullable=False,
    )
    suggested_story_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("se_stories.id", ondelete="CASCADE"),
        nullable=False,
    )
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("source_story_id", "suggested_story_id", name="uq_se_suggestion_source_target"),
        CheckConstraint("source_story_id <> suggested_story_id", name="suggestion_not_self"),
    )
