"""
API request and response models for the Juri legal assistant
"""
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict

from .document import Document


class FileExtractionResult(BaseModel):
    """Outcome of extracting text from one uploaded file"""
    filename: str = Field(..., description="Name of the uploaded file")
    kind: str = Field(..., pattern="^(text|pdf|unsupported)$", description="How the file was classified")
    success: bool = Field(..., description="Whether text was extracted")
    error: Optional[str] = Field(None, description="Why extraction failed, if it did")


class UploadResponse(BaseModel):
    """Response model for the upload proxy"""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "fileContents": ["[Text File: notes.txt]\nMeeting notes..."],
                "count": 1,
                "timestamp": "2024-01-15T10:30:00Z",
                "results": [{"filename": "notes.txt", "kind": "text", "success": True, "error": None}]
            }
        }
    )

    file_contents: List[str] = Field(..., alias="fileContents", description="Extracted text or marker per file, in upload order")
    count: int = Field(..., ge=0, description="Number of files processed")
    timestamp: str = Field(..., description="When the upload was processed")
    results: List[FileExtractionResult] = Field(default_factory=list, description="Per-file extraction outcome")


class QuestionRequest(BaseModel):
    """Request model for question answering"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "question": "What does pro rata mean in a SAFE?",
                "category": "Fundraising",
                "files": ["term-sheet.pdf"]
            }
        }
    )

    question: str = Field(..., max_length=4000, description="The question to answer")
    category: Optional[str] = Field(None, max_length=100, description="Topic category of the question")
    files: Optional[List[str]] = Field(None, description="Names of files attached to the question")


class DocumentRegistrationResponse(BaseModel):
    """Response model for document panel uploads"""
    message: str = Field(..., description="Summary of the registration")
    documents: List[Document] = Field(default_factory=list, description="Documents registered for processing")
    skipped: List[str] = Field(default_factory=list, description="Files that were not PDFs and were skipped")


class TabRequest(BaseModel):
    """Request model for switching the active panel"""
    tab: str = Field(..., description="Panel to activate")


class StepValidationResponse(BaseModel):
    """Result of validating one SAFE wizard step"""
    step: int = Field(..., ge=0, description="Zero-based step index")
    step_id: str = Field(..., description="Wizard step identifier")
    valid: bool = Field(..., description="Whether the step is complete")
    invalid_fields: List[str] = Field(default_factory=list, description="Fields that are missing or invalid")


class ErrorResponse(BaseModel):
    """Standard error response model"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": {
                    "code": "VALIDATION_ERROR",
                    "message": "Messages array is required",
                    "details": {
                        "field_name": "messages"
                    },
                    "timestamp": "2024-01-15T10:30:00Z"
                }
            }
        }
    )

    error: Dict = Field(..., description="Error details")
