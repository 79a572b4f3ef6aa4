"""PDF checks for document attachments.

The PDF itself goes to the model as inline data; nothing is extracted
locally. pdfplumber is used only to make sure the bytes open as a PDF and stay
within the page limit before they are attached.
"""

import io
from typing import Any, Dict

import pdfplumber
from loguru import logger
from pdfminer.pdfparser import PDFSyntaxError

from docinsight.error_handling import FileIntakeFailure, handle_errors
from docinsight.logging_config import log_tool_execution


PDF_MAGIC = b"%PDF"


class PDFReader:
    """Gatekeeper for PDF attachments."""

    def __init__(self, max_pages: int = 30):
        self.max_pages = max_pages

    @log_tool_execution("pdf_inspector")
    @handle_errors(FileIntakeFailure)
    def inspect_bytes(self, file_bytes: bytes, filename: str = "document.pdf") -> Dict[str, Any]:
        """Open the PDF and report its page count and document info.

        Args:
            file_bytes: Uploaded content
            filename: Name used in log records

        Returns:
            ``{"page_count": int, "metadata": {"title", "author", "creation_date"}}``

        Raises:
            FileIntakeFailure: If the bytes are not a readable PDF or have
                more pages than allowed
        """
        if not file_bytes.startswith(PDF_MAGIC):
            raise FileIntakeFailure("File does not appear to be a valid PDF.")

        try:
            with pdfplumber.open(io.BytesIO(file_bytes)) as document:
                pages = len(document.pages)
                info = dict(document.metadata or {})
        except PDFSyntaxError as e:
            raise FileIntakeFailure(f"Invalid PDF format: {e}") from e

        if pages > self.max_pages:
            logger.warning("PDF over page limit", filename=filename, pages=pages, limit=self.max_pages)
            raise FileIntakeFailure(f"PDF exceeds maximum page limit ({self.max_pages} pages).")

        logger.debug("PDF opened", filename=filename, pages=pages)
        return {
            "page_count": pages,
            "metadata": {
                "title": str(info.get("Title", "")),
                "author": str(info.get("Author", "")),
                "creation_date": str(info.get("CreationDate", "")),
            },
        }
