"""
DocInsight Orchestrator - sequences the three session operations.

Each operation follows the same shape:
    precondition check -> busy transition -> model call -> success/failure transition

Key Features:
- Explicit configuration and client injection (no module-global client)
- Every failure is converted to a session transition; none escape to callers
- Re-entrant starts of an operation kind are ignored while it is in flight
- Definition results for a term that is no longer active are discarded
"""

from typing import Any, Dict, Literal, Optional

from loguru import logger
from msgspec import Struct

from docinsight.agents import DefinitionAgent, QuestionAgent, SummaryAgent
from docinsight.config import AppConfig
from docinsight.error_handling import (
    DocInsightError,
    FileIntakeFailure,
    InputInvalid,
    OperationInProgress,
    user_message,
)
from docinsight.llm_client import GeminiClient, LanguageModelClient
from docinsight.logging_config import get_session_logger
from docinsight.models import Anchor, Attachment, RenderedDocument, SessionState
from memory.session_state import SessionStateMachine
from tools.document_renderer import DocumentRenderer
from tools.file_intake import FileIntake


SUMMARY_FALLBACK = "Failed to generate summary. Please check your API key and try again."
ANSWER_FALLBACK_ERROR = "Failed to answer question. Please check your API key and try again."
DEFINITION_FALLBACK_ERROR = "Failed to get word definition. Please try again."
FILE_FALLBACK = "Failed to process file. Please try again."


class OperationOutcome(Struct):
    """What happened to one requested operation."""
    operation: str
    status: Literal["ok", "failed", "invalid", "busy", "closed", "stale"]
    message: str = ""
    result: str = ""


class DocInsightOrchestrator:
    """
    Coordinates summarize, ask and define against one session.

    The orchestrator is the only writer of session state; the parsers and
    the renderer are pure and are handed plain text.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        client: Optional[LanguageModelClient] = None,
        state_machine: Optional[SessionStateMachine] = None
    ):
        """Initialize the orchestrator.

        Args:
            config: Application configuration (defaults to AppConfig())
            client: Language model client (defaults to a GeminiClient built
                from config.client)
            state_machine: Session owner (a fresh session if not provided)
        """
        self.config = config or AppConfig()
        self.client = client or GeminiClient(self.config.client)
        self.session = state_machine or SessionStateMachine()
        self.session_id = self.session.session_id

        self.intake = FileIntake(
            max_file_size_mb=self.config.intake.max_file_size_mb,
            max_pdf_pages=self.config.intake.max_pdf_pages
        )
        self.summary_agent = SummaryAgent(self.client)
        self.question_agent = QuestionAgent(self.client)
        self.definition_agent = DefinitionAgent(self.client)
        self.renderer = DocumentRenderer(on_term_activated=self.define)

        logger.info(
            "DocInsightOrchestrator initialized",
            session_id=self.session_id,
            client=type(self.client).__name__
        )

    @property
    def state(self) -> SessionState:
        return self.session.state

    def _log(self, operation: str):
        return get_session_logger(self.session_id, operation)

    def _invalid(self, operation: str, error: InputInvalid) -> OperationOutcome:
        message = user_message(error, "Invalid request.")
        self.session.report_error(message)
        self._log(operation).warning("Precondition failed", error=message)
        return OperationOutcome(operation=operation, status="invalid", message=message)

    def _busy(self, operation: str, error: OperationInProgress) -> OperationOutcome:
        self._log(operation).warning("Ignoring request while in flight", error=str(error))
        return OperationOutcome(operation=operation, status="busy", message=str(error))

    # Input source

    def set_input(self, text: str) -> OperationOutcome:
        """Use pasted text as the document, dropping any attachment."""
        try:
            self.session.set_input(text)
        except OperationInProgress as e:
            return self._busy("input", e)
        return OperationOutcome(operation="input", status="ok")

    def select_file(
        self,
        filename: str,
        content: bytes,
        declared_mime: Optional[str] = None
    ) -> OperationOutcome:
        """Load a selected file as input text or as the PDF attachment.

        A file rejected for its type or size leaves the current input alone;
        one that fails to read is rolled back completely. Either way the error
        is stored on the session.
        """
        log = self._log("file")
        try:
            mime_type = self.intake.check(filename, content, declared_mime)
        except FileIntakeFailure as e:
            message = user_message(e, FILE_FALLBACK)
            self.session.report_error(message)
            log.warning("File rejected", filename=filename, error=message)
            return OperationOutcome(operation="file", status="invalid", message=message)

        try:
            self.session.begin_file_intake()
        except OperationInProgress as e:
            return self._busy("file", e)

        log.info("Processing selected file", filename=filename, size_bytes=len(content))
        try:
            loaded = self.intake.load(filename, content, mime_type)
        except FileIntakeFailure as e:
            message = user_message(e, FILE_FALLBACK)
            self.session.fail_file_intake(message)
            log.warning("File unreadable", filename=filename, error=message)
            return OperationOutcome(operation="file", status="invalid", message=message)
        except Exception as e:
            self.session.fail_file_intake(FILE_FALLBACK)
            log.error("File intake failed", filename=filename, error=str(e), error_type=type(e).__name__)
            return OperationOutcome(operation="file", status="failed", message=FILE_FALLBACK)

        if isinstance(loaded, Attachment):
            self.session.set_attachment(loaded)
            return OperationOutcome(operation="file", status="ok", result=loaded.filename)

        self.session.set_input(loaded)
        return OperationOutcome(operation="file", status="ok", result=filename)

    def clear_attachment(self) -> OperationOutcome:
        self.session.clear_attachment()
        return OperationOutcome(operation="file", status="ok")

    # Summarize

    async def summarize(self) -> OperationOutcome:
        """Summarize the attachment if one is selected, else the input text."""
        log = self._log("summarize")
        try:
            self.session.begin_summarize()
        except OperationInProgress as e:
            return self._busy("summarize", e)
        except InputInvalid as e:
            return self._invalid("summarize", e)

        attachment = self.state.selected_attachment
        text = None if attachment is not None else self.state.input_text

        try:
            summary = await self.summary_agent.run(
                text=text,
                attachment=attachment,
                session_id=self.session_id
            )
        except DocInsightError as e:
            message = user_message(e, SUMMARY_FALLBACK)
            self.session.fail_summarize(message)
            return OperationOutcome(operation="summarize", status="failed", message=message)
        except Exception:
            log.exception("Unexpected summarize failure")
            self.session.fail_summarize(SUMMARY_FALLBACK)
            return OperationOutcome(operation="summarize", status="failed", message=SUMMARY_FALLBACK)

        self.session.complete_summarize(summary)
        log.info("Summary stored", summary_length=len(summary))
        return OperationOutcome(operation="summarize", status="ok", result=summary)

    # Ask

    async def ask(self, question: str) -> OperationOutcome:
        """Ask a follow-up question grounded in the current summary."""
        log = self._log("ask")
        try:
            self.session.submit_question(question)
        except OperationInProgress as e:
            return self._busy("ask", e)
        except InputInvalid as e:
            return self._invalid("ask", e)

        summary = self.state.summary
        asked = question.strip()

        try:
            answer = await self.question_agent.run(
                summary=summary,
                question=asked,
                session_id=self.session_id
            )
        except Exception as e:
            if isinstance(e, DocInsightError):
                message = user_message(e, ANSWER_FALLBACK_ERROR)
            else:
                log.exception("Unexpected ask failure")
                message = ANSWER_FALLBACK_ERROR
            self.session.fail_answer(message)
            return OperationOutcome(operation="ask", status="failed", message=message)

        self.session.complete_answer(answer)
        return OperationOutcome(operation="ask", status="ok", result=answer)

    # Define

    async def define(self, term: str, anchor: Optional[Anchor] = None) -> OperationOutcome:
        """Open (or toggle closed) the definition popover for a term.

        A superseded lookup still runs to completion; its result is dropped
        if another term became active in the meantime.
        """
        log = self._log("define")
        term = (term or "").strip()
        if not term:
            return self._invalid("define", InputInvalid("No word selected."))

        self.session.open_definition(term, anchor or Anchor())
        if self.state.active_definition is None:
            log.debug("Definition popover toggled closed", term=term)
            return OperationOutcome(operation="define", status="closed")

        try:
            definition = await self.definition_agent.run(term=term, session_id=self.session_id)
        except Exception as e:
            if not isinstance(e, DocInsightError):
                log.exception("Unexpected define failure")
            stale = not self._is_active(term)
            self.session.fail_definition(term)
            return OperationOutcome(
                operation="define",
                status="stale" if stale else "failed",
                message=user_message(e, DEFINITION_FALLBACK_ERROR)
            )

        stale = not self._is_active(term)
        self.session.complete_definition(term, definition)
        return OperationOutcome(
            operation="define",
            status="stale" if stale else "ok",
            result=definition
        )

    def _is_active(self, term: str) -> bool:
        active = self.state.active_definition
        return active is not None and active.term == term

    def close_definition(self) -> OperationOutcome:
        self.session.close_definition()
        return OperationOutcome(operation="define", status="closed")

    def dismiss_definition(self, inside_popover: bool = False, on_term: bool = False) -> OperationOutcome:
        """Handle an interaction anywhere in the page."""
        self.session.dismiss_definition(inside_popover, on_term)
        status = "closed" if self.state.active_definition is None else "ok"
        return OperationOutcome(operation="define", status=status)

    # Rendering

    def render_summary(self) -> RenderedDocument:
        """Render the current summary; term activations call define."""
        return self.renderer.render_text(self.state.summary)

    async def activate_term(self, span_id: str, anchor: Optional[Anchor] = None) -> OperationOutcome:
        """Activate a complex-term span of the last rendered summary."""
        try:
            return await self.renderer.activate(span_id, anchor)
        except InputInvalid as e:
            return self._invalid("define", e)

    def snapshot(self) -> Dict[str, Any]:
        return self.session.snapshot()


def create_orchestrator(
    config: Optional[AppConfig] = None,
    client: Optional[LanguageModelClient] = None
) -> DocInsightOrchestrator:
    """Factory function to create an orchestrator for a new session.

    Args:
        config: Application configuration (loaded from the environment if
            not provided)
        client: Optional language model client override

    Returns:
        Configured DocInsightOrchestrator instance
    """
    if config is None:
        from docinsight.config import load_config
        config = load_config()
    return DocInsightOrchestrator(config=config, client=client)
