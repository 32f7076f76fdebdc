"""
Data models for the Juri legal assistant
"""

from .document import Document, DocumentStatus, QASession, DEFAULT_QA_CATEGORY
from .safe import SafeFormData, WizardStep, WIZARD_STEPS
from .chat import ChatMessage, ChatRequest
from .catalog import (
    DocumentTemplate,
    SimulationOutcomes,
    SimulationScenario,
    SimulationStatus,
    SimulationRun
)
from .api import (
    FileExtractionResult,
    UploadResponse,
    QuestionRequest,
    DocumentRegistrationResponse,
    TabRequest,
    StepValidationResponse,
    ErrorResponse
)

__all__ = [
    # Document models
    "Document",
    "DocumentStatus",
    "QASession",
    "DEFAULT_QA_CATEGORY",

    # SAFE models
    "SafeFormData",
    "WizardStep",
    "WIZARD_STEPS",

    # Chat models
    "ChatMessage",
    "ChatRequest",

    # Catalog models
    "DocumentTemplate",
    "SimulationOutcomes",
    "SimulationScenario",
    "SimulationStatus",
    "SimulationRun",

    # API models
    "FileExtractionResult",
    "UploadResponse",
    "QuestionRequest",
    "DocumentRegistrationResponse",
    "TabRequest",
    "StepValidationResponse",
    "ErrorResponse"
]
