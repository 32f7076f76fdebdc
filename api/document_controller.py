"""
Document panel, template catalog and SAFE generator controller for the Juri legal assistant REST API
"""
import logging
import time
from datetime import date
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, BackgroundTasks, File, Form, Query, UploadFile, status
from fastapi.responses import Response
from pydantic import ValidationError as PydanticValidationError
from starlette.concurrency import run_in_threadpool

from config import settings
from models.api import DocumentRegistrationResponse, StepValidationResponse
from models.catalog import DocumentTemplate
from models.document import Document
from models.safe import SafeFormData, WIZARD_STEPS
from services.pdf_form_filler import PDFFormFiller
from services.pdf_generator import build_filename
from services.pdf_processor import PDF_MIME_TYPE, is_pdf_file
from services.template_catalog import ALL_CATEGORIES, list_categories, require_generator, search_templates
from services.upload_service import UploadedFile
from utils.exceptions import (
    ValidationError, create_file_too_large_error, create_invalid_file_type_error, create_not_found_error
)

logger = logging.getLogger(__name__)

# Create router for document endpoints
router = APIRouter(prefix="/documents", tags=["documents"])

# Import dependencies
from api.dependencies import DocumentServiceDep, PDFGeneratorDep


def _pdf_response(content: bytes, filename: str, inline: bool = False) -> Response:
    disposition = "inline" if inline else "attachment"
    return Response(
        content=content,
        media_type=PDF_MIME_TYPE,
        headers={"Content-Disposition": f'{disposition}; filename="{filename}"'}
    )


async def _read_template(template: UploadFile) -> bytes:
    """Read an uploaded template, enforcing type and size limits"""
    if not is_pdf_file(template.filename, template.content_type):
        raise create_invalid_file_type_error(template.filename or "unknown", [".pdf"])

    content = await template.read()
    max_size = settings.max_file_size_mb * 1024 * 1024
    if len(content) > max_size:
        raise create_file_too_large_error(template.filename, len(content), max_size)
    return content


async def _generate_safe(data: SafeFormData, generator) -> Response:
    data.validate_for_submission()
    content = await run_in_threadpool(generator.create_document, data)
    return _pdf_response(content, build_filename(data))


@router.post(
    "",
    response_model=DocumentRegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add documents to the document panel",
    description="Register uploaded PDFs as processing documents; summaries are produced in the background"
)
async def register_documents(
    background_tasks: BackgroundTasks,
    files: Optional[List[UploadFile]] = File(None, description="PDF files to add"),
    document_service: DocumentServiceDep = None
) -> DocumentRegistrationResponse:
    """
    Register uploaded PDFs in the document panel.

    Each PDF is added immediately with status ``processing``. Text extraction
    and summarization run after the response is sent; the document then moves
    to ``completed`` with a summary, or to ``error`` when no text could be read.
    Files that are not PDFs are skipped and listed in the response.

    Raises:
        ValidationError: If no files were provided (400)
    """
    if not files:
        raise ValidationError(message="No files provided", field_name="files")

    uploads = []
    for file in files:
        uploads.append(UploadedFile(
            filename=file.filename or "unnamed",
            content_type=file.content_type,
            content=await file.read()
        ))

    result = document_service.register_uploads(uploads)
    for document_id, upload in result.pending:
        background_tasks.add_task(document_service.process_document, document_id, upload)

    logger.info(f"Registered {len(result.documents)} documents, skipped {len(result.skipped)}")

    return DocumentRegistrationResponse(
        message=f"Registered {len(result.documents)} documents for processing",
        documents=result.documents,
        skipped=result.skipped
    )


@router.get(
    "",
    response_model=List[Document],
    summary="List documents",
    description="Documents in the panel, in the order they were added"
)
async def list_documents(document_service: DocumentServiceDep = None) -> List[Document]:
    return document_service.list_documents()


@router.get(
    "/templates",
    response_model=List[DocumentTemplate],
    response_model_by_alias=True,
    summary="Search document templates",
    description="Filter the template catalog by search term and category"
)
async def get_templates(
    search: str = Query("", description="Case-insensitive search over title and description"),
    category: str = Query(ALL_CATEGORIES, description="Category to filter by, or 'all'")
) -> List[DocumentTemplate]:
    return search_templates(search, category)


@router.get(
    "/templates/categories",
    response_model=List[str],
    summary="List template categories"
)
async def get_template_categories() -> List[str]:
    return list_categories()


@router.post(
    "/templates/{template_id}/generate",
    summary="Generate a document from a template",
    description="Generate the PDF for a catalog template; only templates marked available can be generated",
    responses={200: {"content": {PDF_MIME_TYPE: {}}}}
)
async def generate_from_template(
    template_id: str,
    data: SafeFormData,
    generator: PDFGeneratorDep = None
) -> Response:
    """
    Generate a catalog document.

    Raises:
        NotFoundError: If the template does not exist (404)
        TemplateNotAvailableError: If the template has no generator yet (501)
        ValidationError: If the form values are incomplete (400)
    """
    require_generator(template_id)
    return await _generate_safe(data, generator)


@router.post(
    "/safe",
    summary="Generate a SAFE",
    description="Render a complete four-page post-money valuation cap SAFE",
    responses={200: {"content": {PDF_MIME_TYPE: {}}}}
)
async def generate_safe(data: SafeFormData, generator: PDFGeneratorDep = None) -> Response:
    """
    Generate a SAFE PDF from the wizard values.

    The company name, investor name, purchase amount and valuation cap must be
    present and the two amounts must be positive numbers. The PDF is returned
    as an attachment named after the company and date.
    """
    return await _generate_safe(data, generator)


@router.get(
    "/safe/preview",
    summary="Preview a SAFE",
    description="Render a SAFE filled with sample values",
    responses={200: {"content": {PDF_MIME_TYPE: {}}}}
)
async def preview_safe(generator: PDFGeneratorDep = None) -> Response:
    content = await run_in_threadpool(generator.create_preview_document)
    return _pdf_response(content, f"YC-SAFE-Preview-{date.today().isoformat()}.pdf")


@router.post(
    "/safe/live-preview",
    summary="Live preview of the SAFE header page",
    description="Render the first page of the SAFE for the values entered so far",
    responses={200: {"content": {PDF_MIME_TYPE: {}}}}
)
async def live_preview_safe(data: SafeFormData, generator: PDFGeneratorDep = None) -> Response:
    # Blank values are rendered as placeholders, so no validation here
    content = await run_in_threadpool(generator.create_live_preview_document, data)
    return _pdf_response(content, "YC-SAFE-Live-Preview.pdf", inline=True)


@router.post(
    "/safe/steps/{step_index}/validate",
    response_model=StepValidationResponse,
    summary="Validate a SAFE wizard step"
)
async def validate_safe_step(step_index: int, data: SafeFormData) -> StepValidationResponse:
    """
    Check whether one wizard step is complete.

    Raises:
        NotFoundError: If the step index does not name a wizard step (404)
    """
    try:
        invalid_fields = data.validate_step(step_index)
    except ValueError:
        raise create_not_found_error("wizard step", str(step_index))

    return StepValidationResponse(
        step=step_index,
        step_id=WIZARD_STEPS[step_index].id,
        valid=not invalid_fields,
        invalid_fields=invalid_fields
    )


@router.post(
    "/safe/fill",
    summary="Fill an official SAFE template",
    description="Fill the form fields of an uploaded or downloaded SAFE template with the wizard values",
    responses={200: {"content": {PDF_MIME_TYPE: {}}}}
)
async def fill_safe_template(
    form_data: str = Form(..., description="SAFE values as a JSON object with camelCase keys"),
    template: Optional[UploadFile] = File(None, description="SAFE template PDF"),
    template_url: Optional[str] = Form(None, description="URL to download the template from")
) -> Response:
    """
    Fill a SAFE template.

    Templates with form fields are filled by field name; templates without a
    form get the values drawn at fixed positions, provided the template has
    the page count and page size the positions were measured on.

    Raises:
        ValidationError: If the form values are not valid JSON, no template was given
            or template_url is not on the download allowlist (400)
        FileHandlingError: If the template exceeds the upload size limit (413)
        TemplateMismatchError: If the template does not match the field mapping (422)
        PDFGenerationError: If the template could not be read or filled (500)
    """
    try:
        data = SafeFormData.model_validate_json(form_data)
    except PydanticValidationError as e:
        raise ValidationError(
            message="form_data must be a JSON object of SAFE values",
            field_name="form_data",
            validation_rule="json",
            original_exception=e
        )

    filler = PDFFormFiller()
    if template is not None:
        content = await _read_template(template)
        await run_in_threadpool(filler.load, content)
    elif template_url:
        await run_in_threadpool(filler.load_from_url, template_url)
    else:
        raise ValidationError(message="Template file or template_url is required", field_name="template")

    filled = await run_in_threadpool(filler.fill, data)
    return _pdf_response(filled, build_filename(data, prefix="YC-SAFE-Filled"))


@router.post(
    "/inspect",
    summary="Inspect a PDF form",
    description="List the form fields of an uploaded PDF"
)
async def inspect_template(
    template: UploadFile = File(..., description="PDF to inspect")
) -> Dict[str, Any]:
    """Report the field count and field names of a template's form"""
    start_time = time.time()

    content = await _read_template(template)
    filler = PDFFormFiller()
    await run_in_threadpool(filler.load, content)
    result = filler.inspect()

    logger.info(f"Inspected {template.filename}: {result['fieldCount']} fields "
                f"in {int((time.time() - start_time) * 1000)}ms")
    return result


@router.get(
    "/{document_id}",
    response_model=Document,
    summary="Get a document"
)
async def get_document(document_id: str, document_service: DocumentServiceDep = None) -> Document:
    """
    Raises:
        NotFoundError: If no document has this id (404)
    """
    return document_service.get_document(document_id)
