"""Inline markup parser for model responses.

Recognizes the two inline conventions the summary prompt asks for:

    [COMPLEX:term]   technical term, rendered interactively
    **text**         bold emphasis

Everything else is plain text. Malformed markup is never an error; it is
emitted verbatim as plain text.
"""

from typing import List

from docinsight.models import InlineSpan


COMPLEX_OPEN = "[COMPLEX:"
COMPLEX_CLOSE = "]"
BOLD_MARK = "**"


def _match_complex(text: str, start: int) -> int:
    """Return the index of the closing bracket of a complex marker, or -1."""
    body_start = start + len(COMPLEX_OPEN)
    close = text.find(COMPLEX_CLOSE, body_start)
    if close <= body_start:
        return -1
    return close


def _match_bold(text: str, start: int) -> int:
    """Return the index of the closing ``**`` of a bold marker, or -1.

    The bold body may not contain ``*`` and may not swallow a complex marker,
    so ``**[COMPLEX:x]**`` keeps its term.
    """
    body_start = start + len(BOLD_MARK)
    index = body_start
    while index < len(text) and text[index] != "*":
        if text.startswith(COMPLEX_OPEN, index) and _match_complex(text, index) != -1:
            return -1
        index += 1
    if index == body_start or not text.startswith(BOLD_MARK, index):
        return -1
    return index


def parse_inline(text: str) -> List[InlineSpan]:
    """Split one string into plain, bold and complex-term spans.

    Args:
        text: Raw text, possibly containing inline markup

    Returns:
        Ordered spans; empty list for empty input
    """
    spans: List[InlineSpan] = []
    plain: List[str] = []

    def flush_plain():
        if plain:
            spans.append(InlineSpan(kind="plain", text="".join(plain)))
            plain.clear()

    index = 0
    while index < len(text):
        if text.startswith(COMPLEX_OPEN, index):
            close = _match_complex(text, index)
            if close != -1:
                flush_plain()
                spans.append(InlineSpan(
                    kind="complex",
                    text=text[index + len(COMPLEX_OPEN):close]
                ))
                index = close + len(COMPLEX_CLOSE)
                continue

        elif text.startswith(BOLD_MARK, index):
            close = _match_bold(text, index)
            if close != -1:
                flush_plain()
                spans.append(InlineSpan(
                    kind="bold",
                    text=text[index + len(BOLD_MARK):close]
                ))
                index = close + len(BOLD_MARK)
                continue

        plain.append(text[index])
        index += 1

    flush_plain()
    return spans


def strip_markup(text: str) -> str:
    """Text of the string with all recognized markup removed."""
    return "".join(span.text for span in parse_inline(text))
