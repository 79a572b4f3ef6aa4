"""File intake for documents selected by the user.

Validates the selected file and turns it into either input text (text-like
files) or a PDF attachment that is passed to the model as inline data.
"""

from typing import Any, Dict, List, Optional, Union
from loguru import logger

from docinsight.error_handling import FileIntakeFailure
from docinsight.logging_config import log_tool_execution
from docinsight.models import Attachment
from tools.pdf_reader import PDFReader
from tools.text_normalizer import TextNormalizer


MEGABYTE = 1024 * 1024

PDF_MIME_TYPE = "application/pdf"

TEXT_MIME_TYPES = [
    "text/plain",
    "text/markdown",
    "text/html",
    "application/json",
    "text/csv",
]

EXTENSION_MIME_TYPES = {
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".json": "application/json",
    ".csv": "text/csv",
    ".html": "text/html",
    ".pdf": PDF_MIME_TYPE,
}

UNSUPPORTED_FILE_MESSAGE = (
    "Please select a text file (.txt, .md, .json, .csv, .html) or PDF file (.pdf) "
    "or paste your text directly."
)


def file_extension(filename: str) -> Optional[str]:
    if "." not in filename:
        return None
    return "." + filename.rsplit(".", 1)[1].lower()


class FileValidator:
    """Validator for selected document files."""

    def __init__(
        self,
        max_size_mb: int = 10,
        allowed_extensions: Optional[List[str]] = None
    ):
        """
        Args:
            max_size_mb: Upload limit in megabytes
            allowed_extensions: Lower-case extensions (with dot) that may be
                selected; defaults to every extension with a known media type
        """
        self.max_size_mb = max_size_mb
        self.max_size_bytes = max_size_mb * MEGABYTE
        self.allowed_extensions = allowed_extensions or list(EXTENSION_MIME_TYPES)

    def resolve_mime_type(self, filename: str, declared_mime: Optional[str] = None) -> Optional[str]:
        """Media type of the file; either a PDF type or a .pdf name means PDF."""
        ext = file_extension(filename)
        declared = (declared_mime or "").split(";", 1)[0].strip().lower()

        if declared == PDF_MIME_TYPE or (ext == ".pdf" and ".pdf" in self.allowed_extensions):
            return PDF_MIME_TYPE
        if declared in TEXT_MIME_TYPES:
            return declared

        if ext in self.allowed_extensions:
            return EXTENSION_MIME_TYPES.get(ext)
        return None

    @log_tool_execution("file_validator")
    def validate_file(
        self,
        filename: str,
        file_size: int,
        declared_mime: Optional[str] = None
    ) -> Dict[str, Any]:
        """Check type and size of a selected file before reading it.

        Returns:
            ``valid``, the user-facing ``errors``, the resolved ``mime_type``
            (None when unsupported) and ``file_size_mb``
        """
        mime_type = self.resolve_mime_type(filename, declared_mime)
        size_mb = file_size / MEGABYTE

        errors = []
        if mime_type is None:
            errors.append(UNSUPPORTED_FILE_MESSAGE)
        if file_size == 0:
            errors.append("File is empty")
        elif file_size > self.max_size_bytes:
            errors.append(
                f"The file is {size_mb:.2f} MB, which exceeds maximum allowed size of {self.max_size_mb} MB."
            )

        if errors:
            logger.warning("Selected file rejected", filename=filename, mime_type=mime_type, errors=errors)

        return {
            "valid": not errors,
            "errors": errors,
            "mime_type": mime_type,
            "file_size_mb": size_mb,
        }


class FileIntake:
    """Turns a selected file into input text or a PDF attachment."""

    def __init__(self, max_file_size_mb: int = 10, max_pdf_pages: int = 30):
        self.validator = FileValidator(max_size_mb=max_file_size_mb)
        self.pdf_reader = PDFReader(max_pages=max_pdf_pages)
        self.normalizer = TextNormalizer()

    def check(self, filename: str, content: bytes, declared_mime: Optional[str] = None) -> str:
        """Validate a selected file without reading it.

        Returns:
            Resolved media type

        Raises:
            FileIntakeFailure: If the type is unsupported or the size is out of range
        """
        result = self.validator.validate_file(filename, len(content), declared_mime)
        if not result["valid"]:
            raise FileIntakeFailure(" ".join(result["errors"]))
        return result["mime_type"]

    def load(self, filename: str, content: bytes, mime_type: str) -> Union[str, Attachment]:
        """Turn an already checked file into input text or an attachment.

        Raises:
            FileIntakeFailure: If the content cannot be read
        """
        if mime_type == PDF_MIME_TYPE:
            info = self.pdf_reader.inspect_bytes(content, filename)
            logger.info(
                "PDF attached",
                filename=filename,
                pages=info["page_count"],
                title=info["metadata"]["title"],
                author=info["metadata"]["author"],
                size_bytes=len(content)
            )
            return Attachment(filename=filename, mime_type=PDF_MIME_TYPE, data=content)

        text = self.normalizer.normalize(self.normalizer.decode(content))
        logger.info("Loaded text file", filename=filename, text_length=len(text))
        return text

    def read(
        self,
        filename: str,
        content: bytes,
        declared_mime: Optional[str] = None
    ) -> Union[str, Attachment]:
        """Check and load a selected file.

        Args:
            filename: Original filename
            content: File content
            declared_mime: Media type reported by the client, if any

        Returns:
            Normalized text for text files, an Attachment for PDFs

        Raises:
            FileIntakeFailure: If the file is rejected or unreadable
        """
        return self.load(filename, content, self.check(filename, content, declared_mime))
