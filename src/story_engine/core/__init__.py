from .config import StoryEngineConfig
from .engine import StoryEngine
from .errors import (
    CannotSendDirectMessageError,
    OpeningDirectMessagesTooFastError,
    PlatformError,
    StoryContentError,
    StoryEngineError,
    StoryErrorType,
)
from .messages import (
    MessageContext,
    build_story_embed,
    get_list_reply_messages,
    get_messages_to_send,
    send_story_step_data,
)
from .payloads import Button, ButtonStyle, Embed, SpecialHandling, SpecialHandlingMessage, StoryMessage
from .ports import (
    ErrorSeverity,
    GuildPort,
    InkStoryPort,
    MemberPort,
    MessageChannelPort,
    PlatformPort,
    StoryFactory,
    TranslatePort,
)
from .random_messages import RandomMessageProvider
from .reporting import LoopDetector, OwnerNotifier
from .stepper import run_story_step
from .text import split_text_at_whitespace
from .types import (
    EnhancedStepData,
    OwnerReportType,
    ReportEvent,
    StepData,
    StoryCharacter,
    StoryChoice,
    StoryLine,
    StoryMetadata,
    StoryProbe,
    StoryStatus,
    TurnOutcome,
)

__all__ = [
    "StoryEngine",
    "StoryEngineConfig",
    "StoryEngineError",
    "StoryErrorType",
    "StoryContentError",
    "PlatformError",
    "CannotSendDirectMessageError",
    "OpeningDirectMessagesTooFastError",
    "MessageContext",
    "build_story_embed",
    "get_messages_to_send",
    "get_list_reply_messages",
    "send_story_step_data",
    "Button",
    "ButtonStyle",
    "Embed",
    "SpecialHandling",
    "SpecialHandlingMessage",
    "StoryMessage",
    "ErrorSeverity",
    "InkStoryPort",
    "StoryFactory",
    "PlatformPort",
    "GuildPort",
    "MemberPort",
    "MessageChannelPort",
    "TranslatePort",
    "RandomMessageProvider",
    "OwnerNotifier",
    "LoopDetector",
    "run_story_step",
    "split_text_at_whitespace",
    "StepData",
    "EnhancedStepData",
    "StoryLine",
    "StoryChoice",
    "StoryCharacter",
    "StoryMetadata",
    "StoryProbe",
    "StoryStatus",
    "ReportEvent",
    "OwnerReportType",
    "TurnOutcome",
]
