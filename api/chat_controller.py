"""
Chat proxy controller for the Juri legal assistant REST API
"""
import logging
import time
from fastapi import APIRouter, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from services.chat_service import parse_chat_request
from utils.exceptions import JuriException, ValidationError

logger = logging.getLogger(__name__)

# Create router for chat endpoints
router = APIRouter(prefix="/api", tags=["chat"])

# Import dependencies
from api.dependencies import ChatServiceDep


@router.post(
    "/chat",
    status_code=status.HTTP_200_OK,
    summary="Chat completion proxy",
    description="Forward a conversation to the chat backend, falling back to the hosted completion API"
)
async def chat(request: Request, chat_service: ChatServiceDep = None) -> JSONResponse:
    """
    Produce a chat completion.

    The body is ``{messages, temperature?, max_tokens?}``. The completion JSON
    is returned as produced by the backend; the ``X-Chat-Provider`` header
    names the backend that answered (``primary``, ``hosted`` or ``fallback``).

    Raises:
        ValidationError: If ``messages`` is missing, empty or not an array (400)
    """
    try:
        try:
            body = await request.json()
        except ValueError:
            raise ValidationError(
                message="Request body must be valid JSON",
                validation_rule="json"
            )

        chat_request = parse_chat_request(body)
        messages = [message.model_dump(exclude_unset=True) for message in chat_request.messages]

        result = await run_in_threadpool(
            chat_service.complete,
            messages,
            chat_request.temperature,
            chat_request.max_tokens
        )

        return JSONResponse(
            content=jsonable_encoder(result.payload),
            headers={"X-Chat-Provider": result.provider}
        )

    except JuriException:
        raise

    except Exception as e:
        logger.error(f"Unexpected error in chat proxy: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": {
                    "code": "INTERNAL_SERVER_ERROR",
                    "message": "An unexpected error occurred while processing the chat request",
                    "details": {"error_type": type(e).__name__},
                    "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
                }
            }
        )
