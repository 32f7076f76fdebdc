"""
Upload proxy service: turns uploaded files into labelled text blocks
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import List, Optional

from config import settings
from services.pdf_processor import PDFProcessor, is_pdf_file, is_text_file
from utils.error_handlers import log_performance_metric
from utils.logging import log_security_event

logger = logging.getLogger(__name__)


KIND_TEXT = "text"
KIND_PDF = "pdf"
KIND_UNSUPPORTED = "unsupported"


@dataclass
class UploadedFile:
    """An uploaded file read into memory"""
    filename: str
    content_type: Optional[str]
    content: bytes


@dataclass
class ExtractionOutcome:
    """Labelled text produced for one file"""
    filename: str
    kind: str
    text: str
    success: bool
    error: Optional[str] = None


def classify_file(filename: str, content_type: Optional[str]) -> str:
    """Classify a file as text, pdf or unsupported by MIME type or extension"""
    if is_text_file(filename, content_type):
        return KIND_TEXT
    if is_pdf_file(filename, content_type):
        return KIND_PDF
    return KIND_UNSUPPORTED


class UploadService:
    """Service extracting text from a batch of uploaded files"""

    def __init__(self, pdf_processor: PDFProcessor, max_file_size: Optional[int] = None):
        self.pdf_processor = pdf_processor
        self.max_file_size = max_file_size or settings.max_file_size_mb * 1024 * 1024

    async def extract_all(self, files: List[UploadedFile], client_ip: Optional[str] = None) -> List[ExtractionOutcome]:
        """
        Extract every file concurrently.

        Completion order is not guaranteed; the returned list follows the input
        order. A failure in one file is reported inline and never affects the
        other files.
        """
        start_time = time.time()
        outcomes = await asyncio.gather(*(self._extract_one(f, client_ip) for f in files))

        duration_ms = int((time.time() - start_time) * 1000)
        log_performance_metric("upload_extraction", duration_ms, {
            "files": len(files),
            "failed": sum(1 for o in outcomes if not o.success)
        })
        return list(outcomes)

    async def _extract_one(self, upload: UploadedFile, client_ip: Optional[str]) -> ExtractionOutcome:
        name = upload.filename
        kind = classify_file(name, upload.content_type)

        if len(upload.content) > self.max_file_size:
            log_security_event(
                "oversized_upload",
                f"Rejected upload '{name}' of {len(upload.content)} bytes",
                severity="low",
                client_ip=client_ip,
                additional_data={"file_size": len(upload.content), "max_size": self.max_file_size}
            )
            return ExtractionOutcome(name, kind, f"[File: {name} - File too large]", False, "File too large")

        if kind == KIND_TEXT:
            text = upload.content.decode("utf-8", errors="replace")
            return ExtractionOutcome(name, kind, f"[Text File: {name}]\n{text}", True)

        if kind == KIND_PDF:
            try:
                text = await asyncio.to_thread(self.pdf_processor.extract_text, upload.content, name)
            except Exception as e:
                logger.warning(f"Error parsing PDF {name}: {e}")
                return ExtractionOutcome(name, kind, f"[PDF: {name} - Error parsing file]", False, str(e))
            return ExtractionOutcome(name, kind, f"[PDF: {name}]\n{text}", True)

        logger.info(f"Skipping unsupported file {name} ({upload.content_type})")
        return ExtractionOutcome(name, kind, f"[File: {name} - Unsupported file type]", False, "Unsupported file type")
