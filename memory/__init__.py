"""Memory package for in-process session state."""

from memory.session_state import SessionStateMachine

__all__ = [
    "SessionStateMachine",
]
