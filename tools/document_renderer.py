"""Document renderer turning parsed blocks into a displayable structure.

Plain spans render unstyled, bold spans as emphasis, and complex-term spans
as interactive elements. Activating a complex-term span reports the term and
its anchor to the bound callback; the renderer itself never touches session
state.
"""

from typing import Any, Callable, Dict, List, Optional, Union

from loguru import logger

from docinsight.error_handling import InputInvalid
from docinsight.models import (
    Anchor,
    Block,
    InlineSpan,
    RenderedBlock,
    RenderedDocument,
    RenderedSpan,
)
from tools.block_parser import parse_blocks
from tools.markup_parser import parse_inline


TREATMENTS = {
    "plain": "plain",
    "bold": "emphasis",
    "complex": "complex-term",
}

TermCallback = Callable[[str, Anchor], Any]


class DocumentRenderer:
    """Renderer for summary text with clickable complex terms."""

    def __init__(self, on_term_activated: Optional[TermCallback] = None):
        """Initialize the renderer.

        Args:
            on_term_activated: Called with (term, anchor) when a complex-term
                span is activated. Its return value is passed through, so an
                async callback yields an awaitable.
        """
        self.on_term_activated = on_term_activated
        self._terms: Dict[str, str] = {}
        self._counter = 0

    def render(self, blocks: List[Block]) -> RenderedDocument:
        """Render parsed blocks.

        Span ids are assigned per render pass; ids from an earlier pass are
        no longer resolvable afterwards.
        """
        self._terms = {}
        self._counter = 0

        rendered = []
        for block in blocks:
            if block.kind == "list":
                rendered.append(RenderedBlock(
                    kind="list",
                    items=[self._render_spans(parse_inline(item)) for item in block.items]
                ))
            else:
                rendered.append(RenderedBlock(
                    kind="paragraph",
                    spans=self._render_spans(parse_inline(block.text))
                ))

        logger.debug(
            "Rendered document",
            blocks=len(rendered),
            complex_terms=len(self._terms)
        )
        return RenderedDocument(blocks=rendered)

    def render_text(self, text: str) -> RenderedDocument:
        """Parse and render a raw response in one step."""
        return self.render(parse_blocks(text or ""))

    def _render_spans(self, spans: List[InlineSpan]) -> List[RenderedSpan]:
        rendered = []
        for span in spans:
            if span.kind == "complex":
                self._counter += 1
                span_id = f"term-{self._counter}"
                self._terms[span_id] = span.text
                rendered.append(RenderedSpan(
                    kind="complex",
                    text=span.text,
                    treatment="complex-term",
                    interactive=True,
                    span_id=span_id
                ))
            else:
                rendered.append(RenderedSpan(
                    kind=span.kind,
                    text=span.text,
                    treatment=TREATMENTS[span.kind]
                ))
        return rendered

    def activate(self, span: Union[RenderedSpan, str], anchor: Optional[Anchor] = None) -> Any:
        """Activate a complex-term span.

        Args:
            span: Rendered span or its span_id
            anchor: Screen position of the span

        Returns:
            Whatever the bound callback returns

        Raises:
            InputInvalid: If the span is not an interactive term of the
                current render pass
        """
        span_id = span if isinstance(span, str) else span.span_id
        if span_id is None or span_id not in self._terms:
            raise InputInvalid("Only highlighted terms can be looked up.")

        term = self._terms[span_id]
        anchor = anchor or Anchor()
        logger.debug("Complex term activated", term=term, span_id=span_id)

        if self.on_term_activated is None:
            return None
        return self.on_term_activated(term, anchor)
