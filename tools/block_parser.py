"""Line-based block splitter for model responses.

Groups consecutive bullet lines into lists and everything else into
paragraphs, keeping the source order.
"""

import re
from typing import List

from docinsight.models import Block


# optional indent, "-" or "*", one space, then non-blank content
BULLET_PATTERN = re.compile(r"^\s*[-*] \s*(\S.*)$")


def bullet_item(line: str):
    """Return the item text of a bullet line, or None for other lines."""
    match = BULLET_PATTERN.match(line)
    if not match:
        return None
    return match.group(1).strip()


def parse_blocks(text: str) -> List[Block]:
    """Split raw text into paragraph and bullet-list blocks.

    Args:
        text: Raw response text

    Returns:
        Blocks in source order; empty list for blank input
    """
    blocks: List[Block] = []
    list_items: List[str] = []
    paragraph_lines: List[str] = []

    def flush_paragraph():
        if paragraph_lines:
            blocks.append(Block(kind="paragraph", text="\n".join(paragraph_lines)))
            paragraph_lines.clear()

    def flush_list():
        if list_items:
            blocks.append(Block(kind="list", items=list(list_items)))
            list_items.clear()

    if not text or not text.strip():
        return blocks

    for line in text.split("\n"):
        item = bullet_item(line)
        if item is not None:
            flush_paragraph()
            list_items.append(item)
            continue

        flush_list()
        # leading blank lines never open a paragraph
        if line.strip() or paragraph_lines:
            paragraph_lines.append(line)

    flush_paragraph()
    flush_list()
    return blocks
