"""
Tests for PDF text extraction
"""
import pytest
from unittest.mock import patch

from services.pdf_processor import PDFProcessor, is_pdf_file, is_text_file
from utils.exceptions import TextExtractionError, ErrorCode


class TestFileClassification:
    """Test MIME type and extension checks"""

    @pytest.mark.parametrize("filename,content_type,expected", [
        ("contract.pdf", None, True),
        ("CONTRACT.PDF", "application/octet-stream", True),
        ("scan", "application/pdf", True),
        ("notes.txt", "text/plain", False),
        (None, None, False),
    ])
    def test_is_pdf_file(self, filename, content_type, expected):
        assert is_pdf_file(filename, content_type) is expected

    @pytest.mark.parametrize("filename,content_type,expected", [
        ("notes.txt", None, True),
        ("notes", "text/plain", True),
        ("notes.md", "text/markdown", False),
    ])
    def test_is_text_file(self, filename, content_type, expected):
        assert is_text_file(filename, content_type) is expected


class TestPDFProcessor:
    """Test cases for PDFProcessor"""

    def test_extracts_text(self, sample_pdf):
        text = PDFProcessor().extract_text(sample_pdf, "safe.pdf")

        assert "SIMPLE AGREEMENT FOR FUTURE EQUITY" in text
        assert "Section 1 Events" in text

    def test_page_limit(self, make_pdf):
        content = make_pdf([["First page"], ["Second page"], ["Third page"]])

        text = PDFProcessor(max_pages=2).extract_text(content)

        assert "Second page" in text
        assert "Third page" not in text

    def test_empty_content(self):
        with pytest.raises(TextExtractionError) as exc_info:
            PDFProcessor().extract_text(b"", "empty.pdf")
        assert exc_info.value.error_code == ErrorCode.TEXT_EXTRACTION_FAILED

    def test_not_a_pdf(self):
        with pytest.raises(TextExtractionError):
            PDFProcessor().extract_text(b"this is not a pdf", "fake.pdf")

    def test_pdf_without_text(self, make_pdf):
        content = make_pdf([[]])
        with pytest.raises(TextExtractionError):
            PDFProcessor().extract_text(content, "blank.pdf")

    def test_falls_back_to_pypdf2(self, sample_pdf):
        processor = PDFProcessor()
        with patch.object(processor, "_extract_with_pdfplumber", side_effect=RuntimeError("broken")):
            text = processor.extract_text(sample_pdf)

        assert "Acme Robotics Inc." in text

    def test_clean_text(self):
        processor = PDFProcessor()
        cleaned = processor._clean_text("Acme\x00   Robotics\t\tInc.\n\n\n\nSection 1")

        assert "\x00" not in cleaned
        assert "Acme Robotics Inc." in cleaned
        assert "\n\n\n" not in cleaned
