from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class StoryEngineConfig:
    # Wall-clock limit for a single interpreter continue call.
    time_budget_ms: int = 300
    # Overruns above this count mark a story as potentially looping.
    potential_loop_threshold: int = 10
    max_last_lines_to_report: int = 5
    message_delay_seconds: float = 3.0
