"""
Chat completion request models
"""
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field, ConfigDict


class ChatMessage(BaseModel):
    """A single chat message, forwarded to the backend as given"""
    model_config = ConfigDict(extra="allow")

    role: str = Field(..., min_length=1, description="Message author role (system, user or assistant)")
    content: Optional[Union[str, List[Dict[str, Any]]]] = Field(
        None, description="Message text, content parts, or null for tool-calling assistant turns"
    )


class ChatRequest(BaseModel):
    """Body accepted by the chat proxy"""
    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "example": {
                "messages": [
                    {"role": "user", "content": "How do I issue founder stock?"}
                ],
                "temperature": 0.7,
                "max_tokens": 2048
            }
        }
    )

    messages: List[ChatMessage] = Field(..., min_length=1, description="Conversation so far")
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: Optional[int] = Field(None, gt=0, description="Maximum tokens to generate")
