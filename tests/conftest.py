"""
Shared fixtures for the test suite
"""
import io
import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas


def build_pdf(pages, pagesize=letter) -> bytes:
    """Build a PDF with one page per entry, each page drawing its lines of text"""
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=pagesize)
    for lines in pages:
        y = pagesize[1] - 72
        for line in lines:
            pdf.drawString(72, y, line)
            y -= 14
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def sample_pdf():
    return build_pdf([
        ["SIMPLE AGREEMENT FOR FUTURE EQUITY", "Acme Robotics Inc."],
        ["Section 1 Events"]
    ])
