"""Session state machine for one document session.

State is held in a single SessionState struct. Every change goes through a
named transition function that takes the current state plus an event payload
and returns the next state; no transition mutates its input. The
SessionStateMachine owns the current state and applies transitions.
"""

import uuid
from typing import Any, Callable, Dict, Optional

import msgspec
from msgspec.structs import replace

from docinsight.error_handling import InputInvalid, OperationInProgress
from docinsight.logging_config import get_session_logger
from docinsight.models import (
    ActiveDefinition,
    Anchor,
    Attachment,
    ChatMessage,
    SessionState,
)


ANSWER_FALLBACK = "Sorry, I encountered an error. Please try again."
DEFINITION_FALLBACK = "Failed to load definition. Please try again."

MISSING_INPUT = "Please enter some text or upload a file to summarize."
MISSING_QUESTION = "Please enter a question."
MISSING_SUMMARY = "Please generate a summary first."


def _append_message(state: SessionState, role: str, text: str) -> SessionState:
    message = ChatMessage(role=role, text=text, sequence_id=state.next_sequence_id)
    return replace(
        state,
        chat_history=[*state.chat_history, message],
        next_sequence_id=state.next_sequence_id + 1
    )


# Input source

def set_input(state: SessionState, text: str) -> SessionState:
    if state.busy.summarizing:
        raise OperationInProgress("The input cannot change while a summary is being generated.")
    return replace(
        state,
        input_text=text,
        selected_attachment=None,
        busy=replace(state.busy, processing_attachment=False)
    )


def set_attachment(state: SessionState, attachment: Attachment) -> SessionState:
    return replace(
        state,
        input_text="",
        selected_attachment=attachment,
        busy=replace(state.busy, processing_attachment=False)
    )


def clear_attachment(state: SessionState) -> SessionState:
    return replace(state, input_text="", selected_attachment=None)


def begin_file_intake(state: SessionState) -> SessionState:
    if state.busy.summarizing:
        raise OperationInProgress("The input cannot change while a summary is being generated.")
    if state.busy.processing_attachment:
        raise OperationInProgress("A file is already being processed.")
    return replace(
        state,
        input_text="",
        last_error="",
        busy=replace(state.busy, processing_attachment=True)
    )


def fail_file_intake(state: SessionState, message: str) -> SessionState:
    """Roll back a file selection, keeping no partial attachment."""
    return replace(
        state,
        input_text="",
        selected_attachment=None,
        last_error=message,
        busy=replace(state.busy, processing_attachment=False)
    )


# Summarize

def begin_summarize(state: SessionState) -> SessionState:
    if state.busy.summarizing:
        raise OperationInProgress("A summary is already being generated.")
    if state.busy.processing_attachment:
        raise InputInvalid("Please wait until the file has been processed.")
    if not state.input_text.strip() and state.selected_attachment is None:
        raise InputInvalid(MISSING_INPUT)
    return replace(
        state,
        summary="",
        chat_history=[],
        last_error="",
        busy=replace(state.busy, summarizing=True)
    )


def complete_summarize(state: SessionState, text: str) -> SessionState:
    return replace(
        state,
        summary=text,
        busy=replace(state.busy, summarizing=False)
    )


def fail_summarize(state: SessionState, message: str) -> SessionState:
    return replace(
        state,
        last_error=message,
        busy=replace(state.busy, summarizing=False)
    )


# Ask

def submit_question(state: SessionState, text: str) -> SessionState:
    question = (text or "").strip()
    if not question:
        raise InputInvalid(MISSING_QUESTION)
    if not state.summary:
        raise InputInvalid(MISSING_SUMMARY)
    if state.busy.answering:
        raise OperationInProgress("A question is already being answered.")

    state = _append_message(state, "user", question)
    return replace(
        state,
        last_error="",
        busy=replace(state.busy, answering=True)
    )


def complete_answer(state: SessionState, text: str) -> SessionState:
    state = _append_message(state, "assistant", text)
    return replace(state, busy=replace(state.busy, answering=False))


def fail_answer(state: SessionState, message: str = "") -> SessionState:
    """Close the exchange with a visible fallback reply."""
    state = _append_message(state, "assistant", ANSWER_FALLBACK)
    return replace(
        state,
        last_error=message or state.last_error,
        busy=replace(state.busy, answering=False)
    )


# Define

def open_definition(state: SessionState, term: str, anchor: Anchor) -> SessionState:
    active = state.active_definition
    if active is not None and active.term == term and active.definition_text:
        return replace(state, active_definition=None)
    return replace(
        state,
        active_definition=ActiveDefinition(term=term, anchor=anchor)
    )


def is_active_term(state: SessionState, term: str) -> bool:
    return state.active_definition is not None and state.active_definition.term == term


def complete_definition(state: SessionState, term: str, text: str) -> SessionState:
    if not is_active_term(state, term):
        return state
    return replace(
        state,
        active_definition=replace(state.active_definition, definition_text=text, loading=False)
    )


def fail_definition(state: SessionState, term: str) -> SessionState:
    return complete_definition(state, term, DEFINITION_FALLBACK)


def close_definition(state: SessionState) -> SessionState:
    return replace(state, active_definition=None)


def dismiss_definition(
    state: SessionState,
    inside_popover: bool = False,
    on_term: bool = False
) -> SessionState:
    """Close the popover for an interaction outside it and outside any term."""
    if state.active_definition is None or inside_popover or on_term:
        return state
    return replace(state, active_definition=None)


# Errors

def report_error(state: SessionState, message: str) -> SessionState:
    return replace(state, last_error=message)


def clear_error(state: SessionState) -> SessionState:
    return replace(state, last_error="")


class SessionStateMachine:
    """Owner of the current SessionState.

    All mutation happens through the named methods below, each of which
    applies the matching transition function and logs it.
    """

    def __init__(self, session_id: Optional[str] = None, state: Optional[SessionState] = None):
        self.session_id = session_id or str(uuid.uuid4())
        self._state = state or SessionState()
        self.logger = get_session_logger(self.session_id)

    @property
    def state(self) -> SessionState:
        return self._state

    def apply(self, transition: Callable[..., SessionState], *args: Any) -> SessionState:
        """Apply a transition; precondition errors leave the state untouched."""
        self._state = transition(self._state, *args)
        self.logger.debug(f"Session transition: {transition.__name__}")
        return self._state

    def set_input(self, text: str) -> SessionState:
        return self.apply(set_input, text)

    def set_attachment(self, attachment: Attachment) -> SessionState:
        return self.apply(set_attachment, attachment)

    def clear_attachment(self) -> SessionState:
        return self.apply(clear_attachment)

    def begin_file_intake(self) -> SessionState:
        return self.apply(begin_file_intake)

    def fail_file_intake(self, message: str) -> SessionState:
        return self.apply(fail_file_intake, message)

    def begin_summarize(self) -> SessionState:
        return self.apply(begin_summarize)

    def complete_summarize(self, text: str) -> SessionState:
        return self.apply(complete_summarize, text)

    def fail_summarize(self, message: str) -> SessionState:
        return self.apply(fail_summarize, message)

    def submit_question(self, text: str) -> SessionState:
        return self.apply(submit_question, text)

    def complete_answer(self, text: str) -> SessionState:
        return self.apply(complete_answer, text)

    def fail_answer(self, message: str = "") -> SessionState:
        return self.apply(fail_answer, message)

    def open_definition(self, term: str, anchor: Anchor) -> SessionState:
        return self.apply(open_definition, term, anchor)

    def complete_definition(self, term: str, text: str) -> SessionState:
        if not is_active_term(self._state, term):
            self.logger.info("Discarding stale definition", term=term)
        return self.apply(complete_definition, term, text)

    def fail_definition(self, term: str) -> SessionState:
        if not is_active_term(self._state, term):
            self.logger.info("Discarding stale definition failure", term=term)
        return self.apply(fail_definition, term)

    def close_definition(self) -> SessionState:
        return self.apply(close_definition)

    def dismiss_definition(self, inside_popover: bool = False, on_term: bool = False) -> SessionState:
        return self.apply(dismiss_definition, inside_popover, on_term)

    def report_error(self, message: str) -> SessionState:
        return self.apply(report_error, message)

    def clear_error(self) -> SessionState:
        return self.apply(clear_error)

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready view of the state without attachment bytes."""
        state = self._state
        data = msgspec.to_builtins(replace(state, selected_attachment=None))
        if state.selected_attachment is not None:
            data["selected_attachment"] = {
                "filename": state.selected_attachment.filename,
                "mime_type": state.selected_attachment.mime_type,
                "size_bytes": state.selected_attachment.size_bytes,
            }
        data["session_id"] = self.session_id
        return data
