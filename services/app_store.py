"""
Application state store for the Juri legal assistant

State lives in a single immutable ``AppState`` value. Every change is an
``Action`` applied by the pure ``app_reducer``; ``AppStore`` holds the current
value and applies actions one at a time.
"""
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from models.document import Document, DocumentStatus, QASession
from utils.exceptions import InvalidActionError

logger = logging.getLogger(__name__)


class ActiveTab(str, Enum):
    """Panels of the application shell"""
    QA = "qa"
    DOCUMENTS = "documents"
    GENERATOR = "generator"
    SIMULATION = "simulation"


class AppState(BaseModel):
    """Snapshot of the application state"""
    model_config = ConfigDict(frozen=True)

    documents: List[Document] = Field(default_factory=list)
    qa_sessions: List[QASession] = Field(default_factory=list)
    current_document: Optional[Document] = None
    is_loading: bool = False
    active_tab: ActiveTab = ActiveTab.QA


class ActionType(str, Enum):
    """Enumerated state transitions"""
    SET_DOCUMENTS = "SET_DOCUMENTS"
    ADD_DOCUMENT = "ADD_DOCUMENT"
    UPDATE_DOCUMENT = "UPDATE_DOCUMENT"
    SET_CURRENT_DOCUMENT = "SET_CURRENT_DOCUMENT"
    ADD_QA_SESSION = "ADD_QA_SESSION"
    SET_QA_SESSIONS = "SET_QA_SESSIONS"
    DELETE_QA_SESSION = "DELETE_QA_SESSION"
    SET_LOADING = "SET_LOADING"
    SET_ACTIVE_TAB = "SET_ACTIVE_TAB"


class DocumentPatch(BaseModel):
    """Fields of a document that UPDATE_DOCUMENT may change"""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    type: Optional[str] = None
    mime_type: Optional[str] = None
    status: Optional[DocumentStatus] = None
    summary: Optional[str] = None
    filled_data: Optional[Dict[str, str]] = None
    blob_url: Optional[str] = None


class DocumentUpdate(BaseModel):
    """Payload of UPDATE_DOCUMENT"""
    id: str
    updates: DocumentPatch


@dataclass(frozen=True)
class Action:
    """A state transition and its payload"""
    type: ActionType
    payload: Any = None


PAYLOAD_ADAPTERS: Dict[ActionType, TypeAdapter] = {
    ActionType.SET_DOCUMENTS: TypeAdapter(List[Document]),
    ActionType.ADD_DOCUMENT: TypeAdapter(Document),
    ActionType.UPDATE_DOCUMENT: TypeAdapter(DocumentUpdate),
    ActionType.SET_CURRENT_DOCUMENT: TypeAdapter(Optional[Document]),
    ActionType.ADD_QA_SESSION: TypeAdapter(QASession),
    ActionType.SET_QA_SESSIONS: TypeAdapter(List[QASession]),
    ActionType.DELETE_QA_SESSION: TypeAdapter(str),
    ActionType.SET_LOADING: TypeAdapter(bool),
    ActionType.SET_ACTIVE_TAB: TypeAdapter(ActiveTab),
}


def parse_action(raw: Any) -> Action:
    """
    Validate a raw ``{type, payload}`` mapping into an Action

    Raises:
        InvalidActionError: If the type is unknown or the payload is malformed
    """
    if not isinstance(raw, dict) or "type" not in raw:
        raise InvalidActionError("Action must be an object with a 'type' field")

    raw_type = raw["type"]
    try:
        action_type = ActionType(raw_type)
    except ValueError:
        raise InvalidActionError(f"Unknown action type: {raw_type}", action_type=str(raw_type))

    try:
        payload = PAYLOAD_ADAPTERS[action_type].validate_python(raw.get("payload"))
    except PydanticValidationError as e:
        raise InvalidActionError(
            f"Invalid payload for {action_type.value}",
            action_type=action_type.value,
            original_exception=e
        )

    return Action(action_type, payload)


def _update_document(document: Document, patch: DocumentPatch) -> Document:
    return document.model_copy(update=patch.model_dump(exclude_unset=True))


def app_reducer(state: AppState, action: Action) -> AppState:
    """Return the state that results from applying ``action`` to ``state``"""
    action_type = action.type
    payload = action.payload

    if action_type == ActionType.SET_DOCUMENTS:
        return state.model_copy(update={"documents": list(payload)})
    elif action_type == ActionType.ADD_DOCUMENT:
        return state.model_copy(update={"documents": [*state.documents, payload]})
    elif action_type == ActionType.UPDATE_DOCUMENT:
        documents = [
            _update_document(doc, payload.updates) if doc.id == payload.id else doc
            for doc in state.documents
        ]
        return state.model_copy(update={"documents": documents})
    elif action_type == ActionType.SET_CURRENT_DOCUMENT:
        return state.model_copy(update={"current_document": payload})
    elif action_type == ActionType.ADD_QA_SESSION:
        return state.model_copy(update={"qa_sessions": [*state.qa_sessions, payload]})
    elif action_type == ActionType.SET_QA_SESSIONS:
        return state.model_copy(update={"qa_sessions": list(payload)})
    elif action_type == ActionType.DELETE_QA_SESSION:
        sessions = [session for session in state.qa_sessions if session.id != payload]
        return state.model_copy(update={"qa_sessions": sessions})
    elif action_type == ActionType.SET_LOADING:
        return state.model_copy(update={"is_loading": payload})
    elif action_type == ActionType.SET_ACTIVE_TAB:
        return state.model_copy(update={"active_tab": ActiveTab(payload)})

    return state


def search(state: AppState, query: str) -> Dict[str, list]:
    """
    Case-insensitive substring search over documents and Q&A sessions

    Args:
        state: State to search
        query: Search term; a blank term matches everything

    Returns:
        Dictionary with the matching ``documents`` and ``qa_sessions``
    """
    term = query.strip().lower()

    documents = [
        doc for doc in state.documents
        if term in doc.name.lower() or term in doc.type.lower()
    ]
    sessions = [
        session for session in state.qa_sessions
        if term in session.question.lower() or term in session.category.lower()
    ]
    return {"documents": documents, "qa_sessions": sessions}


class AppStore:
    """Holder of the current AppState; actions are applied one at a time"""

    def __init__(self, initial_state: Optional[AppState] = None):
        self._state = initial_state or AppState()
        self._lock = threading.Lock()

    @property
    def state(self) -> AppState:
        return self._state

    def dispatch(self, action: Action) -> AppState:
        """Apply an action and return the new state"""
        with self._lock:
            self._state = app_reducer(self._state, action)
            logger.debug(f"Applied action {action.type.value}")
            return self._state

    def reset(self) -> AppState:
        """Return to the initial state"""
        with self._lock:
            self._state = AppState()
            logger.info("Application state reset")
            return self._state

    def get_document(self, document_id: str) -> Optional[Document]:
        return next((doc for doc in self._state.documents if doc.id == document_id), None)

    def get_qa_session(self, session_id: str) -> Optional[QASession]:
        return next((s for s in self._state.qa_sessions if s.id == session_id), None)
