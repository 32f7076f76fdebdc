"""
Dependency injection for the Juri legal assistant API
"""
import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from services.app_store import AppStore
from services.chat_service import ChatService
from services.document_service import DocumentService
from services.pdf_generator import SafePDFGenerator
from services.pdf_processor import PDFProcessor
from services.question_service import QuestionService
from services.simulation_service import SimulationService
from services.upload_service import UploadService

logger = logging.getLogger(__name__)


@lru_cache()
def get_app_store():
    """
    Get application state store (cached singleton)
    """
    return AppStore()


@lru_cache()
def get_chat_service():
    """
    Get chat service instance (cached singleton)
    """
    return ChatService()


@lru_cache()
def get_pdf_processor():
    """
    Get PDF processor instance (cached singleton)
    """
    return PDFProcessor()


@lru_cache()
def get_upload_service():
    """
    Get upload service instance (cached singleton)
    """
    return UploadService(get_pdf_processor())


@lru_cache()
def get_document_service():
    """
    Get document service instance (cached singleton)
    """
    return DocumentService(get_app_store(), get_chat_service(), get_pdf_processor())


@lru_cache()
def get_question_service():
    """
    Get question service instance (cached singleton)
    """
    return QuestionService(get_app_store(), get_chat_service())


@lru_cache()
def get_pdf_generator():
    return SafePDFGenerator()


@lru_cache()
def get_simulation_service():
    """
    Get simulation service instance (cached singleton)
    """
    return SimulationService()


# Type annotations for dependency injection
AppStoreDep = Annotated[AppStore, Depends(get_app_store)]
ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]
UploadServiceDep = Annotated[UploadService, Depends(get_upload_service)]
DocumentServiceDep = Annotated[DocumentService, Depends(get_document_service)]
QuestionServiceDep = Annotated[QuestionService, Depends(get_question_service)]
PDFGeneratorDep = Annotated[SafePDFGenerator, Depends(get_pdf_generator)]
SimulationServiceDep = Annotated[SimulationService, Depends(get_simulation_service)]
