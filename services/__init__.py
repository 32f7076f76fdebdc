"""
Service layer for the Juri legal assistant
"""
from .app_store import AppStore, AppState, Action, ActionType, ActiveTab, app_reducer, parse_action, search
from .chat_service import ChatService, ChatResult, parse_chat_request
from .pdf_processor import PDFProcessor
from .upload_service import UploadService, UploadedFile, ExtractionOutcome
from .document_service import DocumentService, RegistrationResult
from .question_service import QuestionService
from .pdf_generator import SafePDFGenerator, wrap_text
from .pdf_form_filler import PDFFormFiller, TemplateFieldMapping, YC_SAFE_POST_MONEY
from .simulation_service import SimulationService

__all__ = [
    'AppStore', 'AppState', 'Action', 'ActionType', 'ActiveTab', 'app_reducer', 'parse_action', 'search',
    'ChatService', 'ChatResult', 'parse_chat_request',
    'PDFProcessor',
    'UploadService', 'UploadedFile', 'ExtractionOutcome',
    'DocumentService', 'RegistrationResult',
    'QuestionService',
    'SafePDFGenerator', 'wrap_text',
    'PDFFormFiller', 'TemplateFieldMapping', 'YC_SAFE_POST_MONEY',
    'SimulationService'
]
