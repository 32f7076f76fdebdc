"""
Legal Q&A controller for the Juri legal assistant REST API
"""
import logging
import time
from typing import Dict, List
from fastapi import APIRouter, HTTPException, status
from starlette.concurrency import run_in_threadpool

from models.api import QuestionRequest
from models.document import QASession
from utils.exceptions import JuriException

logger = logging.getLogger(__name__)

# Create router for question endpoints
router = APIRouter(prefix="/qa", tags=["questions"])

# Import dependencies
from api.dependencies import QuestionServiceDep


@router.post(
    "",
    response_model=QASession,
    status_code=status.HTTP_200_OK,
    summary="Ask a legal question",
    description="Submit a question; the answer is recorded in the Q&A history"
)
async def ask_question(
    request: QuestionRequest,
    question_service: QuestionServiceDep = None
) -> QASession:
    """
    Answer a legal question.

    The question is sent through the chat proxy with the legal assistant
    prompt. When no chat backend answers, the session still records the
    fallback apology as its answer.

    Args:
        request: QuestionRequest containing the question, category and attached file names

    Returns:
        The recorded QASession

    Raises:
        ValidationError: If the question is blank (400)
    """
    try:
        session = await run_in_threadpool(question_service.answer_question, request)
        logger.info(f"Question answered, session {session.id}")
        return session

    except JuriException:
        raise

    except Exception as e:
        logger.error(f"Unexpected error in question answering: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": {
                    "code": "INTERNAL_SERVER_ERROR",
                    "message": "An unexpected error occurred while processing your question",
                    "details": {"error_type": type(e).__name__},
                    "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
                }
            }
        )


@router.get(
    "",
    response_model=List[QASession],
    summary="Q&A history",
    description="Recorded Q&A sessions, oldest first"
)
async def list_sessions(question_service: QuestionServiceDep = None) -> List[QASession]:
    return question_service.list_sessions()


@router.get(
    "/examples",
    response_model=List[str],
    summary="Example questions"
)
async def get_example_questions(question_service: QuestionServiceDep = None) -> List[str]:
    return question_service.get_example_questions()


@router.delete(
    "/{session_id}",
    summary="Delete a Q&A session"
)
async def delete_session(session_id: str, question_service: QuestionServiceDep = None) -> Dict[str, str]:
    """
    Remove one session from the history.

    Raises:
        NotFoundError: If no session has this id (404)
    """
    question_service.delete_session(session_id)
    return {"message": "Q&A session deleted", "id": session_id}
