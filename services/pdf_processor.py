"""
PDF text extraction service
"""
import io
import logging
import re
from typing import Optional
import PyPDF2
import pdfplumber

from config import settings
from utils.exceptions import TextExtractionError
from utils.error_handlers import log_processing_step

logger = logging.getLogger(__name__)


PDF_MIME_TYPE = "application/pdf"
TEXT_MIME_TYPE = "text/plain"


def is_pdf_file(filename: Optional[str], content_type: Optional[str]) -> bool:
    """A file is a PDF when its declared MIME type or its extension says so"""
    return content_type == PDF_MIME_TYPE or (filename or "").lower().endswith(".pdf")


def is_text_file(filename: Optional[str], content_type: Optional[str]) -> bool:
    """A file is plain text when its declared MIME type or its extension says so"""
    return content_type == TEXT_MIME_TYPE or (filename or "").lower().endswith(".txt")


class PDFProcessor:
    """
    Service for extracting text from PDF content.
    Only the first ``max_pages`` pages are read; pdfplumber is tried first and
    PyPDF2 is used as a fallback.
    """

    def __init__(self, max_pages: Optional[int] = None):
        """
        Initialize the PDF processor

        Args:
            max_pages: Maximum number of pages to read (if None, will use settings.pdf_max_pages)
        """
        self.max_pages = max_pages or settings.pdf_max_pages

    def extract_text(self, content: bytes, filename: str = "document.pdf") -> str:
        """
        Extract text content from PDF bytes.

        Args:
            content: Raw PDF file content
            filename: Name used in log messages and errors

        Returns:
            Extracted text content, pages separated by blank lines

        Raises:
            TextExtractionError: If no text could be extracted
        """
        if not content:
            raise TextExtractionError("PDF file is empty", filename=filename)

        log_processing_step("pdf_extraction", {"filename": filename, "bytes": len(content)})

        # Try pdfplumber first (better for complex layouts)
        try:
            text = self._extract_with_pdfplumber(content)
            if text.strip():
                logger.info(f"Successfully extracted text using pdfplumber from {filename}")
                return text
        except Exception as e:
            logger.warning(f"pdfplumber extraction failed for {filename}: {e}")

        # Fallback to PyPDF2
        try:
            text = self._extract_with_pypdf2(content)
            if text.strip():
                logger.info(f"Successfully extracted text using PyPDF2 from {filename}")
                return text
        except Exception as e:
            logger.warning(f"PyPDF2 extraction failed for {filename}: {e}")

        raise TextExtractionError(
            f"Failed to extract text from {filename} using all available methods",
            filename=filename
        )

    def _extract_with_pdfplumber(self, content: bytes) -> str:
        """Extract text using pdfplumber library"""
        text_parts = []

        with pdfplumber.open(io.BytesIO(content)) as pdf:
            if len(pdf.pages) == 0:
                raise TextExtractionError("PDF contains no pages")

            for page_num, page in enumerate(pdf.pages[:self.max_pages], 1):
                try:
                    page_text = page.extract_text()
                    if page_text:
                        cleaned_text = self._clean_text(page_text)
                        if cleaned_text:
                            text_parts.append(cleaned_text)
                except Exception as e:
                    logger.warning(f"Failed to extract text from page {page_num}: {e}")
                    continue

        return '\n\n'.join(text_parts)

    def _extract_with_pypdf2(self, content: bytes) -> str:
        """Extract text using PyPDF2 library"""
        text_parts = []

        pdf_reader = PyPDF2.PdfReader(io.BytesIO(content))

        if len(pdf_reader.pages) == 0:
            raise TextExtractionError("PDF contains no pages")

        for page_num, page in enumerate(pdf_reader.pages, 1):
            if page_num > self.max_pages:
                break
            try:
                page_text = page.extract_text()
                if page_text:
                    cleaned_text = self._clean_text(page_text)
                    if cleaned_text:
                        text_parts.append(cleaned_text)
            except Exception as e:
                logger.warning(f"Failed to extract text from page {page_num}: {e}")
                continue

        return '\n\n'.join(text_parts)

    def _clean_text(self, text: str) -> str:
        """
        Clean extracted text by removing control characters and runs of spaces.

        Args:
            text: Raw extracted text

        Returns:
            Cleaned text
        """
        if not text:
            return ""

        # Remove control characters left by some PDF producers
        text = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', text)

        text = re.sub(r'[ \t]+', ' ', text)
        text = re.sub(r'\n\s*\n+', '\n\n', text)

        return text.strip()
