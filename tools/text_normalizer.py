"""Decoding and cleanup of uploaded text documents.

A loaded text file should reach the summary prompt exactly like pasted text:
decoded to str, NFC-normalized, without invisible characters and with plain
``\\n`` line endings.
"""

import re
import unicodedata
from typing import Iterable
from loguru import logger

from docinsight.error_handling import FileIntakeFailure, handle_errors
from docinsight.logging_config import log_tool_execution


BOMS = (b"\xff\xfe", b"\xfe\xff")

INVISIBLE_CHARACTERS = str.maketrans({
    "\u00a0": " ",   # no-break space
    "\u00ad": None,  # soft hyphen
    "\ufeff": None,  # stray byte order mark
    "\u200b": None,  # zero-width space
})

LINE_ENDINGS = re.compile(r"\r\n?")
BLANK_RUN = re.compile(r"\n{4,}")


class TextNormalizer:
    """Turns uploaded bytes into prompt-ready text."""

    def __init__(self, encodings: Iterable[str] = ("utf-8-sig", "utf-16")):
        """
        Args:
            encodings: Codecs tried in order; UTF-8 with replacement
                characters is the last resort
        """
        self.encodings = tuple(encodings)

    @log_tool_execution("text_decoder")
    def decode(self, data: bytes) -> str:
        for encoding in self.encodings:
            # without a BOM, utf-16 would accept nearly any even-length input
            if encoding == "utf-16" and not data.startswith(BOMS):
                continue
            try:
                return data.decode(encoding)
            except UnicodeDecodeError:
                continue

        logger.warning("No codec matched, decoding lossily", size_bytes=len(data))
        return data.decode("utf-8", errors="replace")

    @log_tool_execution("text_normalizer")
    @handle_errors(FileIntakeFailure)
    def normalize(self, text: str) -> str:
        """Clean decoded text.

        Args:
            text: Decoded file content

        Returns:
            NFC text with invisible characters removed, ``\\n`` line endings
            and at most two consecutive blank lines
        """
        if not text:
            return ""

        cleaned = unicodedata.normalize("NFC", text).translate(INVISIBLE_CHARACTERS)
        cleaned = LINE_ENDINGS.sub("\n", cleaned)
        cleaned = BLANK_RUN.sub("\n\n\n", cleaned)

        logger.debug("Text normalized", original_length=len(text), length=len(cleaned))
        return cleaned
