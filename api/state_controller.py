"""
Application state controller for the Juri legal assistant REST API
"""
import logging
from typing import Any, Dict, List
from fastapi import APIRouter, Body, Query
from pydantic import BaseModel

from models.api import TabRequest
from models.document import Document, QASession
from services.app_store import AppState, parse_action, search

logger = logging.getLogger(__name__)

# Create router for state endpoints
router = APIRouter(prefix="/state", tags=["state"])

# Import dependencies
from api.dependencies import AppStoreDep


class SearchResponse(BaseModel):
    documents: List[Document]
    qa_sessions: List[QASession]


@router.get(
    "",
    response_model=AppState,
    summary="Current application state"
)
async def get_state(store: AppStoreDep = None) -> AppState:
    return store.state


@router.post(
    "/actions",
    response_model=AppState,
    summary="Dispatch an action",
    description="Apply a {type, payload} action to the application state and return the new state"
)
async def dispatch_action(
    action: Dict[str, Any] = Body(..., examples=[{"type": "SET_LOADING", "payload": True}]),
    store: AppStoreDep = None
) -> AppState:
    """
    Apply one action.

    Supported types are SET_DOCUMENTS, ADD_DOCUMENT, UPDATE_DOCUMENT,
    SET_CURRENT_DOCUMENT, ADD_QA_SESSION, SET_QA_SESSIONS, DELETE_QA_SESSION,
    SET_LOADING and SET_ACTIVE_TAB.

    Raises:
        InvalidActionError: If the type is unknown or the payload does not fit it (400)
    """
    parsed = parse_action(action)
    logger.info(f"Dispatching {parsed.type.value}")
    return store.dispatch(parsed)


@router.put(
    "/tab",
    response_model=AppState,
    summary="Switch the active panel"
)
async def set_active_tab(request: TabRequest, store: AppStoreDep = None) -> AppState:
    return store.dispatch(parse_action({"type": "SET_ACTIVE_TAB", "payload": request.tab}))


@router.get(
    "/search",
    response_model=SearchResponse,
    summary="Search documents and Q&A sessions"
)
async def search_state(
    q: str = Query("", description="Case-insensitive search term"),
    store: AppStoreDep = None
) -> Dict[str, list]:
    return search(store.state, q)


@router.post(
    "/reset",
    response_model=AppState,
    summary="Reset the application state"
)
async def reset_state(store: AppStoreDep = None) -> AppState:
    return store.reset()
