"""
Legal Q&A service for the Juri legal assistant
"""
import logging
import time
from typing import List, Optional

from models.api import QuestionRequest
from models.document import DEFAULT_QA_CATEGORY, QASession
from services.app_store import Action, ActionType, AppStore
from services.chat_service import ChatService
from utils.exceptions import ValidationError, create_not_found_error
from utils.error_handlers import log_processing_step, log_performance_metric

logger = logging.getLogger(__name__)


LEGAL_SYSTEM_PROMPT = """You are Juri, a legal assistant for startup founders.
Follow these guidelines:
1. Answer in plain English that a first-time founder can follow
2. Focus on startup topics such as incorporation, equity, vesting, fundraising instruments and IP
3. Point out when an answer depends on jurisdiction or specific facts
4. Recommend consulting a qualified startup attorney for decisions with legal consequences
5. Be concise but complete"""

EXAMPLE_QUESTIONS = [
    "How do I issue founder stock?",
    "What does pro rata mean in a SAFE?",
    "What are the key terms in a Series A?",
    "How do I structure equity for co-founders?",
    "What is a vesting schedule?",
    "What should I include in an NDA?"
]


class QuestionService:
    """Service answering legal questions and keeping the Q&A history"""

    def __init__(self, store: AppStore, chat_service: ChatService):
        """
        Initialize the question service

        Args:
            store: Application state store holding the Q&A history
            chat_service: Chat proxy used to answer questions
        """
        self.store = store
        self.chat_service = chat_service

    def answer_question(self, request: QuestionRequest) -> QASession:
        """
        Answer a question and record it in the Q&A history

        Args:
            request: Question text, optional category and attached file names

        Returns:
            The recorded QASession
        """
        start_time = time.time()

        if not request.question or not request.question.strip():
            raise ValidationError(
                message="Question cannot be empty",
                field_name="question",
                field_value=request.question
            )

        question = request.question.strip()
        logger.info(f"Processing question: {question[:100]}...")

        self.store.dispatch(Action(ActionType.SET_LOADING, True))
        try:
            log_processing_step("qa_completion", {"files": len(request.files or [])})
            result = self.chat_service.ask(self._build_prompt(question, request.files), LEGAL_SYSTEM_PROMPT)
        finally:
            self.store.dispatch(Action(ActionType.SET_LOADING, False))

        session = QASession(
            question=question,
            answer=result.content,
            category=(request.category or "").strip() or DEFAULT_QA_CATEGORY,
            files=request.files or None
        )
        self.store.dispatch(Action(ActionType.ADD_QA_SESSION, session))

        processing_time = int((time.time() - start_time) * 1000)
        log_performance_metric("question_answering", processing_time, {"provider": result.provider})
        return session

    def _build_prompt(self, question: str, files: Optional[List[str]] = None) -> str:
        if not files:
            return question
        return f"{question}\n\nAttached files: {', '.join(files)}"

    def list_sessions(self) -> List[QASession]:
        return list(self.store.state.qa_sessions)

    def delete_session(self, session_id: str) -> None:
        """Remove exactly one session from the history"""
        if self.store.get_qa_session(session_id) is None:
            raise create_not_found_error("Q&A session", session_id)
        self.store.dispatch(Action(ActionType.DELETE_QA_SESSION, session_id))
        logger.info(f"Deleted Q&A session {session_id}")

    def get_example_questions(self) -> List[str]:
        return list(EXAMPLE_QUESTIONS)
