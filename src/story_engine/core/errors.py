from __future__ import annotations

from enum import Enum
from typing import Any


class StoryErrorType(str, Enum):
    STORY_NOT_FOUND = "StoryNotFound"
    ALREADY_PLAYING_DIFFERENT_STORY = "AlreadyPlayingDifferentStory"
    STORY_NOT_STARTABLE = "StoryNotStartable"
    STORY_NOT_CONTINUEABLE = "StoryNotContinueable"
    TEMPORARY_PROBLEM = "TemporaryProblem"
    INVALID_CHOICE = "InvalidChoice"
    COULD_NOT_SAVE_STATE = "CouldNotSaveState"
    TIME_BUDGET_EXCEEDED = "TimeBudgetExceeded"


class StoryEngineError(Exception):
    """Failure surfaced to command handlers.

    ``step_data`` is only set when a turn was computed but could not be
    persisted, so the caller can still show it to the player.
    """

    def __init__(self, story_error_type: StoryErrorType, message: str | None = None, step_data: Any = None):
        super().__init__(message or story_error_type.value)
        self.story_error_type = story_error_type
        self.step_data = step_data


class StoryContentError(Exception):
    """Story content or a saved state document could not be loaded by the interpreter."""


class PlatformError(Exception):
    pass


class CannotSendDirectMessageError(PlatformError):
    """The recipient has DMs closed or shares no guild with the bot anymore."""


class OpeningDirectMessagesTooFastError(PlatformError):
    """The platform rate-limited opening new DM channels."""
