from __future__ import annotations

from typing import Any, Optional, Protocol

from ..core.types import CurrentStoryPlay, OwnerReportType, SuggestionData


class StoryRepo(Protocol):
    def get(self, story_id: str, guild_id: str): ...
    def get_by_id(self, story_id: str): ...
    def load_content(self, story_id: str) -> Optional[str]: ...
    def mark_issue_as_reported(self, story_id: str, report_type: OwnerReportType) -> bool: ...
    def increase_time_budget_exceeded_counter(self, story_id: str) -> int | None: ...
    def replace_content(self, story_id: str, guild_id: str, content_json: str) -> bool: ...
    def change_owner(self, story_id: str, guild_id: str, owner_id: str) -> bool: ...


class StoryPlayRepo(Protocol):
    def get_current(self, user_id: str) -> CurrentStoryPlay | None: ...
    def has_current(self, user_id: str) -> bool: ...
    def start(self, user_id: str, story_id: str) -> bool: ...
    def clear(self, user_id: str) -> bool: ...
    def save_state(self, user_id: str, state_json: str) -> bool: ...
    def reset_state(self, user_id: str) -> bool: ...
    def current_players(self, story_id: str) -> list[str]: ...


class SuggestionRepo(Protocol):
    def add_or_edit(self, source_story_id: str, suggested_story_id: str, message: str | None = None): ...
    def for_story(self, story_id: str) -> list[SuggestionData]: ...


class UnitOfWork(Protocol):
    stories: StoryRepo
    plays: StoryPlayRepo
    suggestions: SuggestionRepo

    def __enter__(self) -> "UnitOfWork": ...
    def __exit__(self, exc_type, exc, tb) -> Any: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...
