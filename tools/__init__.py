"""Tools package for parsing, rendering and file intake utilities."""

from tools.markup_parser import parse_inline, strip_markup
from tools.block_parser import parse_blocks
from tools.document_renderer import DocumentRenderer
from tools.text_normalizer import TextNormalizer
from tools.pdf_reader import PDFReader
from tools.file_intake import FileIntake, FileValidator

__all__ = [
    "parse_inline",
    "strip_markup",
    "parse_blocks",
    "DocumentRenderer",
    "TextNormalizer",
    "PDFReader",
    "FileIntake",
    "FileValidator",
]
