"""
Upload proxy controller for the Juri legal assistant REST API
"""
import logging
import time
from typing import List, Optional
from fastapi import APIRouter, File, Request, UploadFile, status

from models.api import FileExtractionResult, UploadResponse
from services.upload_service import UploadedFile
from utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

# Create router for upload endpoints
router = APIRouter(prefix="/api", tags=["upload"])

# Import dependencies
from api.dependencies import UploadServiceDep


@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_200_OK,
    summary="Extract text from uploaded files",
    description="Upload text and PDF files and get their contents back as labelled text blocks"
)
async def upload_files(
    request: Request,
    files: Optional[List[UploadFile]] = File(None, description="Text or PDF files"),
    upload_service: UploadServiceDep = None
) -> UploadResponse:
    """
    Extract text from each uploaded file.

    Every file yields exactly one entry in ``fileContents``, in upload order:
    its text under a ``[Text File: name]`` or ``[PDF: name]`` label, or an
    inline marker when it could not be read. One bad file never fails the batch.
    """
    if not files:
        raise ValidationError(message="No files provided", field_name="files")

    uploads = []
    for file in files:
        content = await file.read()
        uploads.append(UploadedFile(
            filename=file.filename or "unnamed",
            content_type=file.content_type,
            content=content
        ))

    client_ip = request.client.host if request.client else None
    logger.info(f"Extracting text from {len(uploads)} uploaded files")

    outcomes = await upload_service.extract_all(uploads, client_ip=client_ip)

    return UploadResponse(
        file_contents=[outcome.text for outcome in outcomes],
        count=len(outcomes),
        timestamp=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        results=[
            FileExtractionResult(
                filename=outcome.filename,
                kind=outcome.kind,
                success=outcome.success,
                error=outcome.error
            )
            for outcome in outcomes
        ]
    )
