"""
Document and Q&A session models for the Juri legal assistant
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict
import uuid


DEFAULT_QA_CATEGORY = "General Legal"


class DocumentStatus(str, Enum):
    """Status of document processing"""
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class Document(BaseModel):
    """Document uploaded to the document panel"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "name": "safe-agreement.pdf",
                "type": "PDF",
                "mime_type": "application/pdf",
                "upload_date": "2024-01-15T10:30:00Z",
                "status": "completed",
                "summary": "Y Combinator Simple Agreement for Future Equity (SAFE)...",
                "filled_data": {"companyName": "Your Company Inc."}
            }
        }
    )

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique document identifier")
    name: str = Field(..., min_length=1, max_length=255, description="Original filename of the uploaded document")
    type: str = Field("PDF", description="Display type of the document")
    mime_type: Optional[str] = Field(None, description="Declared MIME type of the upload")
    upload_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="When the document was uploaded")
    status: DocumentStatus = Field(default=DocumentStatus.PROCESSING, description="Current processing status")
    summary: Optional[str] = Field(None, description="Summary produced once processing completes")
    filled_data: Optional[Dict[str, str]] = Field(None, description="Extracted or default form values")
    blob_url: Optional[str] = Field(None, description="Location of the document content, if any")


class QASession(BaseModel):
    """A question asked by the user and the answer it received"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "qa-1705314600000",
                "question": "What does pro rata mean in a SAFE?",
                "answer": "Pro rata rights let an investor...",
                "timestamp": "2024-01-15T10:30:00Z",
                "category": "General Legal",
                "files": ["term-sheet.pdf"]
            }
        }
    )

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique session identifier")
    question: str = Field(..., description="The question text")
    answer: str = Field(..., description="The answer text")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="When the question was asked")
    category: str = Field(DEFAULT_QA_CATEGORY, description="Topic category of the question")
    files: Optional[List[str]] = Field(None, description="Names of files attached to the question")
