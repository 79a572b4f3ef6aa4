"""
Data Models - msgspec Structs for the document session and render pipeline.

These models define the structures passed between the parsers, the renderer,
the session state machine and the HTTP layer. Using msgspec provides:
- Fast JSON serialization of session snapshots and rendered documents
- Type validation at runtime
- Cheap copies via msgspec.structs.replace for state transitions
"""

from datetime import datetime
from typing import List, Literal, Optional
from msgspec import Struct, field


class InlineSpan(Struct):
    """Inline run of text with a single markup kind."""
    kind: Literal["plain", "bold", "complex"]
    text: str


class Block(Struct):
    """Structural unit of a model response: a paragraph or a bullet list."""
    kind: Literal["paragraph", "list"]
    text: str = ""  # raw paragraph text, internal newlines preserved
    items: List[str] = []


class Anchor(Struct):
    """Screen position where a complex term was activated."""
    x: float = 0.0
    y: float = 0.0


class Attachment(Struct):
    """Binary document handed to the model as inline data."""
    filename: str
    mime_type: str
    data: bytes

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class ChatMessage(Struct):
    """One entry of the follow-up dialogue."""
    role: Literal["user", "assistant"]
    text: str
    sequence_id: int
    created_at: datetime = field(default_factory=datetime.now)


class BusyFlags(Struct):
    """Independent in-flight markers, one per operation kind."""
    summarizing: bool = False
    answering: bool = False
    processing_attachment: bool = False


class ActiveDefinition(Struct):
    """The single open word-definition popover."""
    term: str
    anchor: Anchor
    definition_text: str = ""
    loading: bool = True


class SessionState(Struct, kw_only=True):
    """Complete state of one document session, replaced on every transition."""
    input_text: str = ""
    selected_attachment: Optional[Attachment] = None
    summary: str = ""
    chat_history: List[ChatMessage] = []
    busy: BusyFlags = field(default_factory=BusyFlags)
    last_error: str = ""
    active_definition: Optional[ActiveDefinition] = None
    next_sequence_id: int = 1


class RenderedSpan(Struct):
    """Inline span with its display treatment.

    Complex-term spans are interactive and carry a span_id that the renderer
    resolves back to the term when the span is activated.
    """
    kind: Literal["plain", "bold", "complex"]
    text: str
    treatment: Literal["plain", "emphasis", "complex-term"]
    interactive: bool = False
    span_id: Optional[str] = None


class RenderedBlock(Struct):
    """Rendered paragraph (spans) or list (one span sequence per item)."""
    kind: Literal["paragraph", "list"]
    spans: List[RenderedSpan] = []
    items: List[List[RenderedSpan]] = []


class RenderedDocument(Struct):
    """Ordered rendered blocks of one response."""
    blocks: List[RenderedBlock] = []

    def plain_text(self) -> str:
        """Text content of the document, one block per line group."""
        parts = []
        for block in self.blocks:
            if block.kind == "paragraph":
                parts.append("".join(span.text for span in block.spans))
            else:
                parts.append("\n".join(
                    "".join(span.text for span in item) for item in block.items
                ))
        return "\n".join(parts)

    def complex_terms(self) -> List[str]:
        """Terms of all interactive spans in document order."""
        terms = []
        for block in self.blocks:
            sequences = [block.spans] if block.kind == "paragraph" else block.items
            for spans in sequences:
                terms.extend(span.text for span in spans if span.interactive)
        return terms
