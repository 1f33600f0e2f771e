from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Literal, Optional

ChoiceButtonStyle = Literal["primary", "secondary", "success", "danger", ""]
CharacterImageSize = Literal["small", "medium", "large"]


class OwnerReportType(str, Enum):
    INK_WARNING = "InkWarning"
    INK_ERROR = "InkError"
    POTENTIAL_LOOP_DETECTED = "PotentialLoopDetected"
    MAXIMUM_CHOICE_NUMBER_EXCEEDED = "MaximumChoiceNumberExceeded"


class StoryStatus(str, Enum):
    DRAFT = "Draft"
    TESTING = "Testing"
    PUBLISHED = "Published"
    UNLISTED = "Unlisted"
    TO_BE_DELETED = "ToBeDeleted"


class TurnOutcome(str, Enum):
    ERROR = "error"
    BUDGET_EXCEEDED = "budget_exceeded"
    END = "end"
    CHOICES = "choices"


@dataclass
class StoryMetadata:
    title: str = ""
    author: str = ""
    teaser: str = ""


@dataclass
class StoryCharacter:
    id: str
    name: str
    image_url: Optional[str] = None
    colour: Optional[int] = None


@dataclass
class StoryLine:
    text: str
    tags: list[str] = field(default_factory=list)


@dataclass
class StoryChoice:
    index: int
    text: str
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_ink(cls, choice: Any) -> "StoryChoice":
        return cls(index=int(choice.index), text=str(choice.text or ""), tags=list(choice.tags or []))


@dataclass
class LineSpeech:
    text: str
    character: StoryCharacter
    character_image_size: CharacterImageSize = "small"


@dataclass
class ChoiceAction:
    input_type: Optional[str] = None
    variable_name: Optional[str] = None

    @property
    def is_input(self) -> bool:
        return self.input_type is not None and bool(self.variable_name)


@dataclass
class SuggestionData:
    suggested_story: Any
    message: Optional[str] = None


@dataclass
class ReportEvent:
    report_type: OwnerReportType
    details: str = ""
    last_lines: list[StoryLine] = field(default_factory=list)


@dataclass
class CurrentStoryPlay:
    story: Any
    state_json: Optional[str]


@dataclass
class StepData:
    lines: list[StoryLine] = field(default_factory=list)
    choices: list[StoryChoice] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    is_end: bool = False
    budget_exceeded: bool = False
    suggestions: list[SuggestionData] = field(default_factory=list)

    @property
    def outcome(self) -> TurnOutcome:
        if self.errors:
            return TurnOutcome.ERROR
        if self.budget_exceeded:
            return TurnOutcome.BUDGET_EXCEEDED
        if not self.choices:
            return TurnOutcome.END
        return TurnOutcome.CHOICES


@dataclass
class EnhancedStepData(StepData):
    story_record: Any = None
    characters: dict[str, StoryCharacter] = field(default_factory=dict)
    default_button_style: ChoiceButtonStyle = ""
    variables_state: Optional[dict[str, Any]] = None

    @classmethod
    def from_step_data(cls, step_data: StepData, **extra: Any) -> "EnhancedStepData":
        values = {f.name: getattr(step_data, f.name) for f in fields(StepData)}
        values.update(extra)
        return cls(**values)


@dataclass
class StoryProbe:
    step_data: StepData
    metadata: StoryMetadata
