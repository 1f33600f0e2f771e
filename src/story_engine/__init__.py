from .core.config import StoryEngineConfig
from .core.engine import StoryEngine
from .core.errors import StoryEngineError, StoryErrorType
from .core.messages import MessageContext, get_list_reply_messages, get_messages_to_send, send_story_step_data
from .core.reporting import LoopDetector, OwnerNotifier

__all__ = [
    "StoryEngine",
    "StoryEngineConfig",
    "StoryEngineError",
    "StoryErrorType",
    "OwnerNotifier",
    "LoopDetector",
    "MessageContext",
    "get_messages_to_send",
    "get_list_reply_messages",
    "send_story_step_data",
]
