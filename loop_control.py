# ABOUTME: End-of-document decision: restart at word 0 for another loop, or stop
from __future__ import annotations

from enum import Enum

from pacing import LoopPolicy

INFINITY_MARK = "∞"


class LoopAction(str, Enum):
    RESTART = "restart"
    STOP = "stop"


def decide(loop_policy: LoopPolicy, loop_count: int) -> LoopAction:
    """Called when the last word's wait elapses."""
    if not loop_policy.enabled:
        return LoopAction.STOP
    if loop_policy.max_loops == 0 or loop_count < loop_policy.max_loops:
        return LoopAction.RESTART
    return LoopAction.STOP


def loop_label(loop_policy: LoopPolicy, loop_count: int) -> str | None:
    """Cycle counter for display, e.g. "2 / 3" or "2 / ∞". None when looping is off."""
    if not loop_policy.enabled:
        return None
    total = INFINITY_MARK if loop_policy.max_loops == 0 else str(loop_policy.max_loops)
    return f"{loop_count} / {total}"
