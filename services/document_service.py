"""
Document panel service for the Juri legal assistant

Uploaded PDFs are registered in the application state as ``processing``
documents. Processing happens afterwards: the text is extracted and
summarized through the chat proxy, then the document is marked
``completed`` (or ``error`` when no text could be extracted).
"""
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from config import settings
from models.document import Document, DocumentStatus
from services.app_store import Action, ActionType, AppStore, DocumentPatch, DocumentUpdate
from services.chat_service import ChatService
from services.pdf_processor import PDFProcessor, is_pdf_file
from services.upload_service import UploadedFile
from utils.exceptions import JuriException, NotFoundError, create_not_found_error
from utils.error_handlers import log_processing_step, log_performance_metric

logger = logging.getLogger(__name__)


DEFAULT_FILLED_DATA: Dict[str, str] = {
    "companyName": "Your Company Inc.",
    "investorName": "[To be filled]",
    "purchaseAmount": "[To be filled]",
    "valuationCap": "[To be filled]",
    "state": "Delaware"
}

SUMMARY_SYSTEM_PROMPT = """You summarize legal documents for startup founders.
Write two or three sentences naming the document type, the parties and the key terms.
Do not give advice."""

# Upper bound on the document text sent for summarization
SUMMARY_INPUT_CHARS = 8000


@dataclass
class RegistrationResult:
    """Outcome of registering a batch of uploads"""
    documents: List[Document] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    pending: List[Tuple[str, UploadedFile]] = field(default_factory=list)


class DocumentService:
    """
    Service for the document panel.

    Registers uploads, processes them into summaries and serves the
    documents held in the application state.
    """

    def __init__(
        self,
        store: AppStore,
        chat_service: ChatService,
        pdf_processor: Optional[PDFProcessor] = None,
        summary_excerpt_chars: Optional[int] = None
    ):
        """
        Initialize the document service

        Args:
            store: Application state store holding the documents
            chat_service: Chat proxy used for summaries
            pdf_processor: PDF text extractor
            summary_excerpt_chars: Length of the excerpt used when no summary could be generated
        """
        self.store = store
        self.chat_service = chat_service
        self.pdf_processor = pdf_processor or PDFProcessor()
        self.summary_excerpt_chars = summary_excerpt_chars or settings.summary_excerpt_chars

    def register_uploads(self, files: List[UploadedFile]) -> RegistrationResult:
        """
        Add each uploaded PDF to the state as a ``processing`` document

        Args:
            files: Uploaded files; anything that is not a PDF is skipped

        Returns:
            RegistrationResult with the new documents, the skipped file names
            and the (document id, file) pairs still to be processed
        """
        result = RegistrationResult()

        for upload in files:
            if not is_pdf_file(upload.filename, upload.content_type):
                logger.info(f"Skipping non-PDF upload {upload.filename}")
                result.skipped.append(upload.filename)
                continue

            document = Document(
                name=upload.filename,
                type="PDF",
                mime_type=upload.content_type,
                status=DocumentStatus.PROCESSING
            )
            self.store.dispatch(Action(ActionType.ADD_DOCUMENT, document))
            result.documents.append(document)
            result.pending.append((document.id, upload))

        log_processing_step("documents_registered", {
            "registered": len(result.documents),
            "skipped": len(result.skipped)
        })
        return result

    def process_document(self, document_id: str, upload: UploadedFile) -> Optional[Document]:
        """
        Extract, summarize and complete one registered document

        Failures are recorded on the document as ``error`` status; nothing is raised.
        Returns None when the document was removed while it was being processed.
        """
        start_time = time.time()

        try:
            text = self.pdf_processor.extract_text(upload.content, upload.filename)
        except JuriException as e:
            logger.warning(f"Document {document_id} failed processing: {e}")
            return self._update(document_id, DocumentPatch(status=DocumentStatus.ERROR))

        summary = self.summarize(text)
        document = self._update(document_id, DocumentPatch(
            status=DocumentStatus.COMPLETED,
            summary=summary,
            filled_data=dict(DEFAULT_FILLED_DATA)
        ))

        duration_ms = int((time.time() - start_time) * 1000)
        log_performance_metric("document_processing", duration_ms, {
            "document_id": document_id,
            "characters": len(text)
        })
        return document

    def summarize(self, text: str) -> str:
        """Summary of a document's text, or its leading excerpt when no backend answered"""
        result = self.chat_service.ask(
            f"Summarize this document:\n\n{text[:SUMMARY_INPUT_CHARS]}",
            SUMMARY_SYSTEM_PROMPT
        )
        summary = result.content.strip()
        if result.is_fallback or not summary:
            return self._excerpt(text)
        return summary

    def _excerpt(self, text: str) -> str:
        flattened = re.sub(r'\s+', ' ', text).strip()
        if len(flattened) <= self.summary_excerpt_chars:
            return flattened
        return flattened[:self.summary_excerpt_chars].rstrip() + "..."

    def _update(self, document_id: str, patch: DocumentPatch) -> Optional[Document]:
        self.store.dispatch(Action(ActionType.UPDATE_DOCUMENT, DocumentUpdate(id=document_id, updates=patch)))
        try:
            return self.get_document(document_id)
        except NotFoundError:
            logger.warning(f"Document {document_id} was removed before processing finished")
            return None

    def list_documents(self) -> List[Document]:
        return list(self.store.state.documents)

    def get_document(self, document_id: str) -> Document:
        document = self.store.get_document(document_id)
        if document is None:
            raise create_not_found_error("document", document_id)
        return document
