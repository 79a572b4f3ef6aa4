"""
Tests for file intake, text normalization and PDF inspection.

Tests cover:
- Media type resolution from declared type and extension
- Size and emptiness checks
- Text decoding and normalization
- PDF acceptance as attachment and rejection of broken PDFs
"""

from unittest.mock import MagicMock, patch

import pytest
from loguru import logger

from docinsight.error_handling import FileIntakeFailure
from docinsight.models import Attachment
from tools.file_intake import (
    PDF_MIME_TYPE,
    UNSUPPORTED_FILE_MESSAGE,
    FileIntake,
    FileValidator,
    file_extension,
)
from tools.pdf_reader import PDFReader
from tools.text_normalizer import TextNormalizer


class TestFileValidator:
    """Validation of selected files."""

    @pytest.mark.parametrize("filename,declared,expected", [
        ("notes.txt", None, "text/plain"),
        ("README.MD", None, "text/markdown"),
        ("data.json", "", "application/json"),
        ("upload", "text/csv; charset=utf-8", "text/csv"),
        ("paper.pdf", "application/octet-stream", PDF_MIME_TYPE),
        ("scan", "application/pdf", PDF_MIME_TYPE),
        ("photo.png", "image/png", None),
        ("archive", None, None),
    ])
    def test_resolve_mime_type(self, filename, declared, expected):
        assert FileValidator().resolve_mime_type(filename, declared) == expected

    def test_unsupported_file_message(self):
        result = FileValidator().validate_file("photo.png", 100)
        assert not result["valid"]
        assert result["errors"] == [UNSUPPORTED_FILE_MESSAGE]

    def test_size_limit(self):
        result = FileValidator(max_size_mb=1).validate_file("big.txt", 2 * 1024 * 1024)
        assert not result["valid"]
        assert "exceeds maximum allowed size" in result["errors"][0]

    def test_empty_file(self):
        result = FileValidator().validate_file("empty.txt", 0)
        assert result["errors"] == ["File is empty"]

    def test_file_extension(self):
        assert file_extension("a.b.TXT") == ".txt"
        assert file_extension("Makefile") is None


class TestTextNormalizer:
    """Decoding and cleanup of text files."""

    def test_strips_utf8_bom(self):
        assert TextNormalizer().decode("\ufeffhello".encode("utf-8")) == "hello"

    def test_utf16_with_bom(self):
        assert TextNormalizer().decode("h\xe9llo".encode("utf-16")) == "h\xe9llo"

    def test_undecodable_bytes_replaced(self):
        assert TextNormalizer().decode(b"caf\xe9") == "caf\ufffd"

    def test_extra_codec_before_replacement(self):
        normalizer = TextNormalizer(encodings=("utf-8-sig", "cp1252"))
        assert normalizer.decode(b"caf\xe9") == "caf\xe9"

    def test_normalize_whitespace_and_line_endings(self):
        text = "a\u00a0b\r\nc\u200bd\re\n\n\n\n\nf"
        assert TextNormalizer().normalize(text) == "a b\ncd\ne\n\n\nf"

    def test_normalize_composes_characters(self):
        assert TextNormalizer().normalize("cafe\u0301") == "caf\xe9"

    def test_empty_text(self):
        assert TextNormalizer().normalize("") == ""


class TestPDFReader:
    """PDF inspection before attaching."""

    def test_rejects_non_pdf_bytes(self):
        with pytest.raises(FileIntakeFailure, match="valid PDF"):
            PDFReader().inspect_bytes(b"plain text", "fake.pdf")

    def test_page_limit(self):
        fake_pdf = MagicMock()
        fake_pdf.pages = [object()] * 5
        fake_pdf.metadata = {}
        fake_pdf.__enter__.return_value = fake_pdf

        with patch("tools.pdf_reader.pdfplumber.open", return_value=fake_pdf):
            with pytest.raises(FileIntakeFailure, match="page limit"):
                PDFReader(max_pages=3).inspect_bytes(b"%PDF-1.7 ...", "long.pdf")

    def test_reports_metadata(self):
        fake_pdf = MagicMock()
        fake_pdf.pages = [object()] * 2
        fake_pdf.metadata = {"Title": "Cells", "Author": "A. Biologist"}
        fake_pdf.__enter__.return_value = fake_pdf

        with patch("tools.pdf_reader.pdfplumber.open", return_value=fake_pdf):
            info = PDFReader().inspect_bytes(b"%PDF-1.7 ...", "cells.pdf")

        assert info["page_count"] == 2
        assert info["metadata"]["title"] == "Cells"
        assert info["metadata"]["author"] == "A. Biologist"

    def test_unreadable_pdf_wrapped(self):
        with patch("tools.pdf_reader.pdfplumber.open", side_effect=ValueError("broken xref")):
            with pytest.raises(FileIntakeFailure, match="broken xref"):
                PDFReader().inspect_bytes(b"%PDF-1.7 ...", "broken.pdf")


class TestFileIntake:
    """Files become input text or an attachment."""

    def test_text_file(self):
        text = FileIntake().read("notes.txt", b"line one\r\nline two")
        assert text == "line one\nline two"

    def test_pdf_becomes_attachment(self):
        fake_pdf = MagicMock()
        fake_pdf.pages = [object()]
        fake_pdf.metadata = {}
        fake_pdf.__enter__.return_value = fake_pdf
        content = b"%PDF-1.4 minimal"

        with patch("tools.pdf_reader.pdfplumber.open", return_value=fake_pdf):
            loaded = FileIntake().read("paper.pdf", content, "application/pdf")

        assert loaded == Attachment(filename="paper.pdf", mime_type=PDF_MIME_TYPE, data=content)

    def test_rejected_file_raises(self):
        with pytest.raises(FileIntakeFailure, match="Please select a text file"):
            FileIntake().read("slides.pptx", b"PK\x03\x04")

    def test_pdf_metadata_logged(self):
        fake_pdf = MagicMock()
        fake_pdf.pages = [object(), object()]
        fake_pdf.metadata = {"Title": "Cells", "Author": "A. Biologist"}
        fake_pdf.__enter__.return_value = fake_pdf
        records = []
        sink_id = logger.add(lambda message: records.append(message.record), level="INFO")

        try:
            with patch("tools.pdf_reader.pdfplumber.open", return_value=fake_pdf):
                FileIntake().load("cells.pdf", b"%PDF-1.7 ...", PDF_MIME_TYPE)
        finally:
            logger.remove(sink_id)

        attached = [r for r in records if r["message"] == "PDF attached"]
        assert attached[0]["extra"]["title"] == "Cells"
        assert attached[0]["extra"]["pages"] == 2

    def test_check_rejects_without_reading(self):
        intake = FileIntake()
        with patch.object(intake.normalizer, "decode") as decode:
            with pytest.raises(FileIntakeFailure, match="File is empty"):
                intake.check("notes.txt", b"")
        decode.assert_not_called()
