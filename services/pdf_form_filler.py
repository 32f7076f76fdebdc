"""
Template form filler for SAFE documents

Fills an existing SAFE template either through its interactive form fields
or, when the template has no form, by overlaying text at recorded positions.
Which field names and positions to use is described by an explicit,
versioned ``TemplateFieldMapping`` for each template revision.
"""
import io
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

import requests
from PyPDF2 import PdfReader, PdfWriter
from PyPDF2.errors import PdfReadError
from PyPDF2.generic import NameObject
from reportlab.pdfgen import canvas

from config import settings
from models.safe import SafeFormData
from services.pdf_generator import format_currency, format_date
from utils.exceptions import (
    ErrorCode, PDFGenerationError, TemplateMismatchError, ValidationError, create_file_too_large_error
)
from utils.error_handlers import log_performance_metric, log_processing_step
from utils.logging import log_security_event

logger = logging.getLogger(__name__)


CHECKED_VALUES = ("true", "checked")
OVERLAY_FONT = "Helvetica"
PAGE_SIZE_TOLERANCE = 1.0
TEMPLATE_DOWNLOAD_TIMEOUT = 30
TEMPLATE_DOWNLOAD_CHUNK = 64 * 1024
TEMPLATE_URL_SCHEMES = ("http", "https")


@dataclass(frozen=True)
class OverlayPosition:
    """Where to draw one value on the first page, measured from the top-left corner"""
    field: str
    x: float
    y_from_top: float
    size: float = 10


@dataclass(frozen=True)
class TemplateFieldMapping:
    """Form field names and overlay layout of one template revision"""
    template_id: str
    version: str
    page_count: int
    page_size: Tuple[float, float]
    fields: Dict[str, Tuple[str, ...]]
    overlay: Tuple[OverlayPosition, ...]

    def field_names(self) -> List[str]:
        return [name for candidates in self.fields.values() for name in candidates]

    def layout_matches(self, page_count: int, page_size: Tuple[float, float]) -> bool:
        width, height = page_size
        return (
            page_count == self.page_count
            and abs(width - self.page_size[0]) <= PAGE_SIZE_TOLERANCE
            and abs(height - self.page_size[1]) <= PAGE_SIZE_TOLERANCE
        )


YC_SAFE_POST_MONEY = TemplateFieldMapping(
    template_id="yc-safe-post-money",
    version="1.2",
    page_count=6,
    page_size=(612, 792),
    fields={
        "company_name": ("company_name", "companyName", "Company Name", "company"),
        "investor_name": ("investor_name", "investorName", "Investor Name", "investor"),
        "purchase_amount": ("purchase_amount", "purchaseAmount", "Purchase Amount", "amount"),
        "valuation_cap": ("valuation_cap", "valuationCap", "Valuation Cap", "cap"),
        "company_state": ("state", "State", "incorporation_state"),
        "date": ("date", "Date", "signature_date"),
        "title": ("title", "Title", "signatory_title"),
    },
    overlay=(
        OverlayPosition("company_name", 100, 150),
        OverlayPosition("investor_name", 100, 200),
        OverlayPosition("purchase_amount", 100, 250),
        OverlayPosition("valuation_cap", 100, 300),
    ),
)


def format_field_values(data: SafeFormData) -> Dict[str, str]:
    """Display values for each mapped SAFE field"""
    return {
        "company_name": data.company_name,
        "investor_name": data.investor_name,
        "purchase_amount": format_currency(data.purchase_amount),
        "valuation_cap": format_currency(data.valuation_cap),
        "company_state": data.company_state,
        "date": format_date(data.date),
        "title": data.title,
    }


class PDFFormFiller:
    """Fills SAFE templates according to a TemplateFieldMapping"""

    def __init__(
        self,
        mapping: TemplateFieldMapping = YC_SAFE_POST_MONEY,
        allowed_hosts: Optional[Iterable[str]] = None,
        max_bytes: Optional[int] = None
    ):
        self.mapping = mapping
        self.reader: Optional[PdfReader] = None
        if allowed_hosts is None:
            allowed_hosts = settings.template_url_allowed_hosts.split(",")
        self.allowed_hosts = frozenset(h.strip().lower() for h in allowed_hosts if h.strip())
        self.max_bytes = max_bytes if max_bytes is not None else settings.max_file_size_mb * 1024 * 1024

    def load(self, pdf_bytes: bytes) -> None:
        """
        Load a template from PDF bytes

        Raises:
            PDFGenerationError: If the content is not a readable PDF
        """
        try:
            self.reader = PdfReader(io.BytesIO(pdf_bytes))
            page_count = len(self.reader.pages)
            field_names = self.get_form_field_names()
        except (PdfReadError, ValueError, KeyError) as e:
            self.reader = None
            raise PDFGenerationError(
                message="Template could not be read as a PDF",
                document_type=self.mapping.template_id,
                stage="load",
                error_code=ErrorCode.PDF_FILL_FAILED,
                original_exception=e
            )

        log_processing_step("template_loaded", {
            "template_id": self.mapping.template_id,
            "pages": page_count,
            "fields": field_names
        })

    def check_template_url(self, url: str) -> None:
        """
        Refuse template URLs outside the configured download hosts

        Raises:
            ValidationError: If the scheme is not http(s) or the host is not allowed
        """
        parsed = urlparse(url)
        host = (parsed.hostname or "").lower()
        if parsed.scheme in TEMPLATE_URL_SCHEMES and host in self.allowed_hosts:
            return

        log_security_event(
            "template_url_rejected",
            f"Refused template download from '{host or url}'",
            severity="medium",
            additional_data={"url": url[:200]}
        )
        raise ValidationError(
            message="Template URL host is not allowed",
            field_name="template_url",
            field_value=url,
            validation_rule="allowed_host"
        )

    def load_from_url(self, url: str) -> None:
        """
        Download a template from an allowed host and load it

        The body is streamed and the download stops as soon as it exceeds
        ``max_bytes``.

        Raises:
            ValidationError: If the URL is not on the allowlist
            FileHandlingError: If the template is larger than ``max_bytes``
            PDFGenerationError: If the download fails or the content is not a PDF
        """
        self.check_template_url(url)

        try:
            response = requests.get(url, timeout=TEMPLATE_DOWNLOAD_TIMEOUT, stream=True, allow_redirects=False)
            try:
                response.raise_for_status()
                if response.is_redirect:
                    raise PDFGenerationError(
                        message="Template URL redirects elsewhere",
                        document_type=self.mapping.template_id,
                        stage="download",
                        error_code=ErrorCode.PDF_FILL_FAILED
                    )
                content = self._read_capped(url, response)
            finally:
                response.close()
        except requests.exceptions.RequestException as e:
            raise PDFGenerationError(
                message=f"Failed to fetch template: {e}",
                document_type=self.mapping.template_id,
                stage="download",
                error_code=ErrorCode.PDF_FILL_FAILED,
                original_exception=e
            )
        self.load(content)

    def _read_capped(self, url: str, response: requests.Response) -> bytes:
        declared = response.headers.get("Content-Length")
        if declared and declared.isdigit() and int(declared) > self.max_bytes:
            raise create_file_too_large_error(url, int(declared), self.max_bytes)

        buffer = bytearray()
        for chunk in response.iter_content(chunk_size=TEMPLATE_DOWNLOAD_CHUNK):
            buffer.extend(chunk)
            if len(buffer) > self.max_bytes:
                raise create_file_too_large_error(url, len(buffer), self.max_bytes)
        return bytes(buffer)

    def _require_reader(self) -> PdfReader:
        if self.reader is None:
            raise PDFGenerationError(
                message="Template not loaded",
                document_type=self.mapping.template_id,
                stage="load",
                error_code=ErrorCode.PDF_FILL_FAILED
            )
        return self.reader

    def _form_fields(self) -> Dict[str, Any]:
        return self._require_reader().get_fields() or {}

    def get_form_field_names(self) -> List[str]:
        return list(self._form_fields().keys())

    def inspect(self) -> Dict[str, Any]:
        """Describe the loaded template's form"""
        names = self.get_form_field_names()
        return {
            "fieldCount": len(names),
            "fieldNames": names,
            "hasForm": len(names) > 0
        }

    def fill(self, data: SafeFormData) -> bytes:
        """
        Fill the loaded template

        Args:
            data: SAFE values

        Returns:
            Filled PDF content

        Raises:
            TemplateMismatchError: If the template does not match the mapping
            PDFGenerationError: If filling fails for any other reason
        """
        start_time = time.time()
        reader = self._require_reader()
        values = format_field_values(data)
        fields = self._form_fields()

        try:
            writer = PdfWriter()
            writer.clone_reader_document_root(reader)

            if fields:
                filled = self._fill_form_fields(writer, fields, values)
                method = "form"
            else:
                self._check_overlay_layout(reader)
                self._draw_overlay(writer, values)
                filled = [position.field for position in self.mapping.overlay]
                method = "overlay"

            buffer = io.BytesIO()
            writer.write(buffer)
        except TemplateMismatchError:
            raise
        except Exception as e:
            logger.error(f"Failed to fill template {self.mapping.template_id}: {e}")
            raise PDFGenerationError(
                message="Failed to fill the SAFE template. Please try again.",
                document_type=self.mapping.template_id,
                stage="fill",
                error_code=ErrorCode.PDF_FILL_FAILED,
                original_exception=e
            )

        duration_ms = int((time.time() - start_time) * 1000)
        log_performance_metric("template_fill", duration_ms, {"method": method, "filled": filled})
        return buffer.getvalue()

    def _fill_form_fields(self, writer: PdfWriter, fields: Dict[str, Any], values: Dict[str, str]) -> List[str]:
        text_values: Dict[str, str] = {}
        checkbox_names: List[str] = []

        for field, candidates in self.mapping.fields.items():
            value = values[field]
            for name in candidates:
                if name not in fields:
                    continue
                field_type = fields[name].get("/FT")
                if field_type == "/Tx":
                    text_values[name] = value
                elif field_type == "/Btn" and value.strip().lower() in CHECKED_VALUES:
                    checkbox_names.append(name)

        matched = [name for name in self.mapping.field_names() if name in fields]
        if not matched:
            raise TemplateMismatchError(
                message=(
                    f"Template form fields do not match mapping "
                    f"{self.mapping.template_id} v{self.mapping.version}"
                ),
                template_id=self.mapping.template_id,
                version=self.mapping.version,
                expected={"field_names": self.mapping.field_names()},
                actual={"field_names": list(fields.keys())}
            )

        for page in writer.pages:
            if "/Annots" not in page:
                continue
            if text_values:
                writer.update_page_form_field_values(page, text_values)
            for annotation_ref in page["/Annots"]:
                annotation = annotation_ref.get_object()
                if annotation.get("/T") in checkbox_names:
                    on_state = self._checkbox_on_state(annotation)
                    annotation[NameObject("/V")] = NameObject(on_state)
                    annotation[NameObject("/AS")] = NameObject(on_state)

        return [*text_values.keys(), *checkbox_names]

    @staticmethod
    def _checkbox_on_state(annotation: Any) -> str:
        """Name of the checked appearance state, ``/Yes`` unless the widget says otherwise"""
        appearances = annotation.get("/AP", {}).get_object() if "/AP" in annotation else {}
        normal = appearances.get("/N")
        if normal is not None:
            for state in normal.get_object().keys():
                if state != "/Off":
                    return state
        return "/Yes"

    def _check_overlay_layout(self, reader: PdfReader) -> None:
        first_page = reader.pages[0]
        page_size = (float(first_page.mediabox.width), float(first_page.mediabox.height))
        page_count = len(reader.pages)

        if not self.mapping.layout_matches(page_count, page_size):
            raise TemplateMismatchError(
                message=(
                    f"Template layout does not match mapping "
                    f"{self.mapping.template_id} v{self.mapping.version}; overlay positions would be wrong"
                ),
                template_id=self.mapping.template_id,
                version=self.mapping.version,
                expected={"page_count": self.mapping.page_count, "page_size": list(self.mapping.page_size)},
                actual={"page_count": page_count, "page_size": list(page_size)}
            )

    def _draw_overlay(self, writer: PdfWriter, values: Dict[str, str]) -> None:
        first_page = writer.pages[0]
        width = float(first_page.mediabox.width)
        height = float(first_page.mediabox.height)

        buffer = io.BytesIO()
        overlay = canvas.Canvas(buffer, pagesize=(width, height))
        for position in self.mapping.overlay:
            overlay.setFont(OVERLAY_FONT, position.size)
            overlay.drawString(position.x, height - position.y_from_top, values[position.field])
        overlay.showPage()
        overlay.save()

        first_page.merge_page(PdfReader(io.BytesIO(buffer.getvalue())).pages[0])

