"""
Tests for the upload proxy service
"""
import asyncio
import time
import pytest
from unittest.mock import Mock, patch

from services.pdf_processor import PDFProcessor
from services.upload_service import UploadService, UploadedFile, classify_file
from utils.exceptions import TextExtractionError


def extract(service, files):
    return asyncio.run(service.extract_all(files))


@pytest.fixture
def upload_service():
    return UploadService(PDFProcessor())


class TestClassifyFile:

    @pytest.mark.parametrize("filename,content_type,expected", [
        ("notes.txt", "text/plain", "text"),
        ("notes.txt", "application/octet-stream", "text"),
        ("safe.pdf", "application/pdf", "pdf"),
        ("upload", "application/pdf", "pdf"),
        ("photo.png", "image/png", "unsupported"),
        ("archive.zip", None, "unsupported"),
    ])
    def test_classification(self, filename, content_type, expected):
        assert classify_file(filename, content_type) == expected


class TestUploadService:
    """Test cases for UploadService"""

    def test_text_file(self, upload_service):
        outcomes = extract(upload_service, [UploadedFile("notes.txt", "text/plain", b"Board meeting notes")])

        assert outcomes[0].text == "[Text File: notes.txt]\nBoard meeting notes"
        assert outcomes[0].success
        assert outcomes[0].kind == "text"

    def test_text_file_with_invalid_utf8(self, upload_service):
        outcomes = extract(upload_service, [UploadedFile("notes.txt", "text/plain", b"caf\xe9")])

        assert outcomes[0].success
        assert outcomes[0].text.startswith("[Text File: notes.txt]\ncaf")
        assert "�" in outcomes[0].text

    def test_pdf_file(self, upload_service, sample_pdf):
        outcomes = extract(upload_service, [UploadedFile("safe.pdf", "application/pdf", sample_pdf)])

        assert outcomes[0].text.startswith("[PDF: safe.pdf]\n")
        assert "Acme Robotics Inc." in outcomes[0].text

    def test_broken_pdf(self, upload_service):
        outcomes = extract(upload_service, [UploadedFile("broken.pdf", "application/pdf", b"%PDF-garbage")])

        assert outcomes[0].text == "[PDF: broken.pdf - Error parsing file]"
        assert not outcomes[0].success
        assert outcomes[0].error

    def test_unsupported_file_does_not_affect_batch(self, upload_service, sample_pdf):
        files = [
            UploadedFile("notes.txt", "text/plain", b"first"),
            UploadedFile("photo.png", "image/png", b"\x89PNG"),
            UploadedFile("safe.pdf", "application/pdf", sample_pdf),
        ]

        outcomes = extract(upload_service, files)

        assert len(outcomes) == 3
        assert outcomes[0].text == "[Text File: notes.txt]\nfirst"
        assert outcomes[1].text == "[File: photo.png - Unsupported file type]"
        assert outcomes[2].text.startswith("[PDF: safe.pdf]\n")
        assert [o.success for o in outcomes] == [True, False, True]

    def test_results_follow_input_order(self):
        processor = Mock()

        def slow_first(content, filename):
            if filename == "a.pdf":
                time.sleep(0.05)
            return f"text of {filename}"

        processor.extract_text.side_effect = slow_first
        service = UploadService(processor)

        outcomes = extract(service, [
            UploadedFile("a.pdf", "application/pdf", b"a"),
            UploadedFile("b.pdf", "application/pdf", b"b"),
        ])

        assert [o.filename for o in outcomes] == ["a.pdf", "b.pdf"]
        assert outcomes[0].text == "[PDF: a.pdf]\ntext of a.pdf"

    def test_extraction_error_is_inline(self):
        processor = Mock()
        processor.extract_text.side_effect = TextExtractionError("no text", filename="scan.pdf")
        service = UploadService(processor)

        outcomes = extract(service, [UploadedFile("scan.pdf", "application/pdf", b"%PDF")])

        assert outcomes[0].text == "[PDF: scan.pdf - Error parsing file]"

    def test_oversized_file(self):
        service = UploadService(PDFProcessor(), max_file_size=10)

        with patch("services.upload_service.log_security_event") as security_log:
            outcomes = extract(service, [
                UploadedFile("big.txt", "text/plain", b"x" * 11),
                UploadedFile("small.txt", "text/plain", b"ok"),
            ])

        assert outcomes[0].text == "[File: big.txt - File too large]"
        assert outcomes[1].text == "[Text File: small.txt]\nok"
        security_log.assert_called_once()
