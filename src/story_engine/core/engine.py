from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from .config import StoryEngineConfig
from .errors import StoryContentError, StoryEngineError, StoryErrorType
from .extract import parse_characters, parse_default_button_style, parse_metadata
from .limits import MAX_CHOICES_PER_MESSAGE
from .ports import InkStoryPort, StoryFactory
from .reporting import LoopDetector, OwnerNotifier
from .stepper import run_story_step
from .types import (
    EnhancedStepData,
    OwnerReportType,
    ReportEvent,
    StepData,
    StoryChoice,
    StoryLine,
    StoryProbe,
    SuggestionData,
    TurnOutcome,
)

VariableBindings = Union[Mapping[str, Any], Iterable[tuple[str, Any]]]


class StoryEngine:
    """Runs a user's play session of a story one step at a time.

    Every operation returns the step to show to the player or raises
    ``StoryEngineError``. Problems in the story itself are reported to the
    story owner through the notifier.
    """

    def __init__(
        self,
        uow_factory: Callable[[], Any],
        story_factory: StoryFactory,
        notifier: OwnerNotifier,
        loop_detector: LoopDetector | None = None,
        config: StoryEngineConfig | None = None,
        logger: logging.Logger | None = None,
    ):
        self._uow_factory = uow_factory
        self._story_factory = story_factory
        self._notifier = notifier
        self._config = config or StoryEngineConfig()
        self._logger = logger or logging.getLogger(__name__)
        self._loop_detector = loop_detector or LoopDetector(
            uow_factory,
            notifier,
            threshold=self._config.potential_loop_threshold,
            logger=self._logger,
        )

    async def start_story(self, user_id: str, story_id: str, guild_id: str) -> EnhancedStepData:
        try:
            with self._uow_factory() as uow:
                has_current_story = uow.plays.has_current(user_id)
        except Exception:
            self._logger.exception("Error while checking if user %s has a current story play", user_id)
            raise StoryEngineError(StoryErrorType.STORY_NOT_STARTABLE)
        if has_current_story:
            raise StoryEngineError(StoryErrorType.ALREADY_PLAYING_DIFFERENT_STORY)

        try:
            with self._uow_factory() as uow:
                story = uow.stories.get(story_id, guild_id)
                content = uow.stories.load_content(story.id) if story is not None else None
        except Exception:
            self._logger.exception("Error while loading story %s", story_id)
            raise StoryEngineError(StoryErrorType.STORY_NOT_STARTABLE)
        if story is None:
            raise StoryEngineError(StoryErrorType.STORY_NOT_FOUND)

        # Stories with a detected loop stay blocked until the owner replaces the content.
        if story.has_issue_been_reported(OwnerReportType.POTENTIAL_LOOP_DETECTED):
            raise StoryEngineError(StoryErrorType.STORY_NOT_STARTABLE)

        try:
            ink_story = self._parse_story(content)
        except StoryContentError as exc:
            # Content that loaded at upload time can break after an interpreter update.
            self._notifier.report(story, ReportEvent(OwnerReportType.INK_ERROR, details=str(exc)))
            raise StoryEngineError(StoryErrorType.STORY_NOT_STARTABLE)

        try:
            with self._uow_factory() as uow:
                started = uow.plays.start(user_id, story.id)
                uow.commit()
        except Exception:
            self._logger.exception("Error while saving current story play for user %s", user_id)
            raise StoryEngineError(StoryErrorType.STORY_NOT_STARTABLE)
        if not started:
            raise StoryEngineError(StoryErrorType.ALREADY_PLAYING_DIFFERENT_STORY)

        try:
            step_data = self._story_step(user_id, ink_story, story)
        except Exception:
            self._clear_play_best_effort(user_id)
            raise

        return self._enhance(step_data, ink_story, story)

    async def continue_story(
        self,
        user_id: str,
        choice_index: int,
        variable_bindings: Optional[VariableBindings] = None,
    ) -> EnhancedStepData:
        ink_story, story = self._load_for_player(user_id)

        try:
            for name, value in dict(variable_bindings or {}).items():
                ink_story.variables_state[name] = value
            ink_story.choose_choice_index(choice_index)
        except Exception:
            # Usually a button from an earlier step. The play is left as it is.
            raise StoryEngineError(StoryErrorType.INVALID_CHOICE)

        step_data = self._story_step(user_id, ink_story, story)
        return self._enhance(step_data, ink_story, story)

    async def restart_story(self, user_id: str) -> EnhancedStepData:
        try:
            with self._uow_factory() as uow:
                uow.plays.reset_state(user_id)
                uow.commit()
        except Exception:
            self._logger.exception("Error while resetting story play state for user %s", user_id)
            raise StoryEngineError(StoryErrorType.COULD_NOT_SAVE_STATE)

        ink_story, story = self._load_for_player(user_id)
        step_data = self._story_step(user_id, ink_story, story)
        return self._enhance(step_data, ink_story, story)

    async def get_current_story_state(self, user_id: str) -> EnhancedStepData:
        ink_story, story = self._load_for_player(user_id)

        if ink_story.has_error:
            # Already reported when the error happened.
            raise StoryEngineError(StoryErrorType.STORY_NOT_CONTINUEABLE)

        step_data = StepData(
            lines=[StoryLine(text=ink_story.current_text, tags=list(ink_story.current_tags or []))],
            choices=[StoryChoice.from_ink(choice) for choice in ink_story.current_choices],
        )
        enhanced = self._enhance(step_data, ink_story, story)
        enhanced.variables_state = dict(ink_story.variables_state)
        return enhanced

    async def probe_story(self, content: str) -> StoryProbe:
        """Run the first step of uploaded story content without any play session.

        Raises ``StoryContentError`` if the content cannot be loaded.
        """
        ink_story = self._parse_story(content)
        step_data = run_story_step(ink_story, self._config.time_budget_ms)
        if step_data.budget_exceeded:
            raise StoryEngineError(StoryErrorType.TIME_BUDGET_EXCEEDED)
        return StoryProbe(step_data=step_data, metadata=parse_metadata(ink_story))

    def _parse_story(self, content: Optional[str]) -> InkStoryPort:
        if not content:
            raise StoryContentError("story has no content")
        try:
            return self._story_factory(content)
        except Exception as exc:
            raise StoryContentError(str(exc)) from exc

    def _load_current_story(self, user_id: str) -> tuple[InkStoryPort, Any] | None:
        with self._uow_factory() as uow:
            current = uow.plays.get_current(user_id)
            content = uow.stories.load_content(current.story.id) if current is not None else None
        if current is None:
            return None

        try:
            ink_story = self._parse_story(content)
        except StoryContentError:
            self._clear_play_best_effort(user_id)
            raise

        if current.state_json is not None:
            try:
                ink_story.state.load_json(current.state_json)
            except Exception as exc:
                # A state that can't be loaded now never will be.
                self._clear_play_best_effort(user_id)
                raise StoryContentError(str(exc)) from exc

        return ink_story, current.story

    def _load_for_player(self, user_id: str) -> tuple[InkStoryPort, Any]:
        try:
            loaded = self._load_current_story(user_id)
        except StoryContentError:
            raise StoryEngineError(StoryErrorType.STORY_NOT_CONTINUEABLE)
        except Exception:
            self._logger.exception("Error while loading current story for user %s", user_id)
            raise StoryEngineError(StoryErrorType.TEMPORARY_PROBLEM)
        if loaded is None:
            raise StoryEngineError(StoryErrorType.STORY_NOT_FOUND)
        return loaded

    def _story_step(self, user_id: str, ink_story: InkStoryPort, story: Any) -> StepData:
        step_data: StepData | None = None
        failure = ""
        try:
            step_data = run_story_step(ink_story, self._config.time_budget_ms)
        except Exception as exc:
            self._logger.exception("Error while running story step. Story id: %s", story.id)
            failure = str(exc) or type(exc).__name__

        outcome = step_data.outcome if step_data is not None else TurnOutcome.ERROR
        loop_detected = False
        if outcome == TurnOutcome.BUDGET_EXCEEDED:
            loop_detected = self._loop_detector.detect(story, step_data.lines)
            if not loop_detected:
                raise StoryEngineError(StoryErrorType.TIME_BUDGET_EXCEEDED)

        if outcome == TurnOutcome.ERROR or loop_detected:
            if outcome == TurnOutcome.ERROR:
                details = "\n".join(step_data.errors) if step_data is not None else failure
                lines = step_data.lines if step_data is not None else []
                self._notifier.report(story, ReportEvent(OwnerReportType.INK_ERROR, details, lines))
            self._clear_play_best_effort(user_id)
            raise StoryEngineError(StoryErrorType.STORY_NOT_CONTINUEABLE)

        if step_data.warnings:
            # Only the owner hears about warnings, the player continues as normal.
            self._notifier.report(
                story,
                ReportEvent(OwnerReportType.INK_WARNING, "\n".join(step_data.warnings), step_data.lines),
            )

        if len(step_data.choices) > MAX_CHOICES_PER_MESSAGE:
            self._notifier.report(
                story,
                ReportEvent(
                    OwnerReportType.MAXIMUM_CHOICE_NUMBER_EXCEEDED,
                    "\n".join(choice.text for choice in step_data.choices),
                    step_data.lines,
                ),
            )

        if outcome == TurnOutcome.END:
            step_data.is_end = True
            self._clear_play_best_effort(user_id)
            step_data.suggestions = self._fetch_suggestions(story.id)
            return step_data

        try:
            state_json = ink_story.state.to_json()
            with self._uow_factory() as uow:
                uow.plays.save_state(user_id, state_json)
                uow.commit()
        except Exception:
            self._logger.exception("Error while saving story play state for user %s", user_id)
            raise StoryEngineError(
                StoryErrorType.COULD_NOT_SAVE_STATE,
                step_data=self._enhance(step_data, ink_story, story),
            )

        return step_data

    def _clear_play_best_effort(self, user_id: str) -> None:
        try:
            with self._uow_factory() as uow:
                uow.plays.clear(user_id)
                uow.commit()
        except Exception:
            self._logger.exception("Story play could not be cleared for user %s", user_id)

    def _fetch_suggestions(self, story_id: str) -> list[SuggestionData]:
        try:
            with self._uow_factory() as uow:
                return uow.suggestions.for_story(story_id)
        except Exception:
            self._logger.exception("Error while fetching suggestions for story %s. Ignoring.", story_id)
            return []

    def _enhance(self, step_data: StepData, ink_story: InkStoryPort, story: Any) -> EnhancedStepData:
        return EnhancedStepData.from_step_data(
            step_data,
            story_record=story,
            characters=parse_characters(ink_story),
            default_button_style=parse_default_button_style(ink_story),
        )
