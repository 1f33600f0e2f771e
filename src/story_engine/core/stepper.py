from __future__ import annotations

from .ports import ErrorSeverity, InkStoryPort
from .types import StepData, StoryChoice, StoryLine


def run_story_step(ink_story: InkStoryPort, time_budget_ms: float) -> StepData:
    """Continue ``ink_story`` until it waits for a choice, ends, fails or runs out of time.

    Errors and warnings reported by the interpreter during this call are
    collected on the returned step only.
    """
    step_data = StepData()

    def on_error(message: str, severity: ErrorSeverity) -> None:
        if severity == ErrorSeverity.WARNING:
            step_data.warnings.append(message)
        else:
            step_data.errors.append(message)

    ink_story.on_error = on_error

    while ink_story.can_continue:
        ink_story.continue_async(time_budget_ms)
        if not ink_story.async_continue_complete:
            step_data.budget_exceeded = True
            return step_data

        step_data.lines.append(StoryLine(text=ink_story.current_text, tags=list(ink_story.current_tags or [])))

        if step_data.errors:
            return step_data

    if step_data.errors:
        return step_data

    step_data.choices = [StoryChoice.from_ink(choice) for choice in ink_story.current_choices]
    step_data.is_end = not step_data.choices
    return step_data
