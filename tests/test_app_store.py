"""
Tests for the application state store
"""
import pytest
import threading
from hypothesis import given, strategies as st

from models.document import Document, DocumentStatus, QASession
from services.app_store import (
    AppStore, AppState, Action, ActionType, ActiveTab, DocumentPatch, DocumentUpdate,
    app_reducer, parse_action, search
)
from utils.exceptions import InvalidActionError, ErrorCode


def make_session(question="What is a SAFE?", category="General Legal"):
    return QASession(question=question, answer="An answer", category=category)


@pytest.fixture
def populated_state():
    return AppState(
        documents=[Document(name="safe-agreement.pdf"), Document(name="nda.pdf")],
        qa_sessions=[
            make_session("How do I issue founder stock?", "Equity"),
            make_session("What is a vesting schedule?", "Equity"),
            make_session("What should I include in an NDA?", "Contracts"),
        ]
    )


class TestAppReducer:
    """Test cases for the pure reducer"""

    def test_initial_state(self):
        state = AppState()
        assert state.documents == []
        assert state.qa_sessions == []
        assert state.current_document is None
        assert state.is_loading is False
        assert state.active_tab == ActiveTab.QA

    def test_reducer_does_not_mutate_input(self, populated_state):
        before = populated_state.model_dump()

        app_reducer(populated_state, Action(ActionType.SET_LOADING, True))
        app_reducer(populated_state, Action(ActionType.ADD_DOCUMENT, Document(name="new.pdf")))

        assert populated_state.model_dump() == before

    def test_set_documents(self, populated_state):
        replacement = [Document(name="only.pdf")]
        state = app_reducer(populated_state, Action(ActionType.SET_DOCUMENTS, replacement))
        assert [d.name for d in state.documents] == ["only.pdf"]

    def test_add_document_appends(self, populated_state):
        state = app_reducer(populated_state, Action(ActionType.ADD_DOCUMENT, Document(name="new.pdf")))
        assert [d.name for d in state.documents] == ["safe-agreement.pdf", "nda.pdf", "new.pdf"]

    def test_update_document_merges_into_matching_only(self, populated_state):
        target, other = populated_state.documents
        update = DocumentUpdate(id=target.id, updates=DocumentPatch(status=DocumentStatus.COMPLETED, summary="Done"))

        state = app_reducer(populated_state, Action(ActionType.UPDATE_DOCUMENT, update))

        updated = state.documents[0]
        assert updated.status == DocumentStatus.COMPLETED
        assert updated.summary == "Done"
        assert updated.name == target.name
        assert updated.id == target.id
        assert state.documents[1] == other

    def test_update_unknown_document_is_noop(self, populated_state):
        update = DocumentUpdate(id="missing", updates=DocumentPatch(summary="x"))
        state = app_reducer(populated_state, Action(ActionType.UPDATE_DOCUMENT, update))
        assert state.documents == populated_state.documents

    def test_set_current_document(self, populated_state):
        doc = populated_state.documents[1]
        state = app_reducer(populated_state, Action(ActionType.SET_CURRENT_DOCUMENT, doc))
        assert state.current_document == doc

        state = app_reducer(state, Action(ActionType.SET_CURRENT_DOCUMENT, None))
        assert state.current_document is None

    def test_add_qa_session_appends(self, populated_state):
        session = make_session("New question")
        state = app_reducer(populated_state, Action(ActionType.ADD_QA_SESSION, session))
        assert state.qa_sessions[-1] == session
        assert len(state.qa_sessions) == 4

    def test_set_qa_sessions(self, populated_state):
        state = app_reducer(populated_state, Action(ActionType.SET_QA_SESSIONS, []))
        assert state.qa_sessions == []

    def test_delete_qa_session(self, populated_state):
        first, second, third = populated_state.qa_sessions

        state = app_reducer(populated_state, Action(ActionType.DELETE_QA_SESSION, second.id))

        assert state.qa_sessions == [first, third]

    @given(st.integers(min_value=1, max_value=12), st.data())
    def test_delete_removes_exactly_one_and_keeps_order(self, count, data):
        sessions = [make_session(f"Question {i}") for i in range(count)]
        state = AppState(qa_sessions=sessions)
        index = data.draw(st.integers(min_value=0, max_value=count - 1))

        new_state = app_reducer(state, Action(ActionType.DELETE_QA_SESSION, sessions[index].id))

        assert new_state.qa_sessions == sessions[:index] + sessions[index + 1:]

    def test_delete_unknown_session_is_noop(self, populated_state):
        state = app_reducer(populated_state, Action(ActionType.DELETE_QA_SESSION, "missing"))
        assert state.qa_sessions == populated_state.qa_sessions

    def test_set_loading_and_tab(self):
        state = app_reducer(AppState(), Action(ActionType.SET_LOADING, True))
        state = app_reducer(state, Action(ActionType.SET_ACTIVE_TAB, ActiveTab.GENERATOR))

        assert state.is_loading is True
        assert state.active_tab == ActiveTab.GENERATOR


class TestParseAction:
    """Test validation of raw actions"""

    def test_parse_set_loading(self):
        action = parse_action({"type": "SET_LOADING", "payload": True})
        assert action == Action(ActionType.SET_LOADING, True)

    def test_parse_update_document(self):
        action = parse_action({
            "type": "UPDATE_DOCUMENT",
            "payload": {"id": "doc-1", "updates": {"status": "completed"}}
        })
        assert action.payload.id == "doc-1"
        assert action.payload.updates.status == DocumentStatus.COMPLETED

    def test_parse_add_qa_session(self):
        action = parse_action({"type": "ADD_QA_SESSION", "payload": {"question": "Q", "answer": "A"}})
        assert isinstance(action.payload, QASession)

    @pytest.mark.parametrize("raw", [
        {"type": "EXPLODE"},
        {"payload": True},
        "SET_LOADING",
        {"type": "SET_ACTIVE_TAB", "payload": "settings"},
        {"type": "UPDATE_DOCUMENT", "payload": {"id": "x", "updates": {"color": "red"}}},
        {"type": "ADD_DOCUMENT", "payload": {"type": "PDF"}},
    ])
    def test_invalid_actions(self, raw):
        with pytest.raises(InvalidActionError) as exc_info:
            parse_action(raw)
        assert exc_info.value.error_code == ErrorCode.INVALID_ACTION


class TestSearch:

    def test_case_insensitive_substring(self, populated_state):
        result = search(populated_state, "NDA")

        assert [d.name for d in result["documents"]] == ["nda.pdf"]
        assert [s.question for s in result["qa_sessions"]] == ["What should I include in an NDA?"]

    def test_matches_category_and_type(self, populated_state):
        result = search(populated_state, "equity")
        assert len(result["qa_sessions"]) == 2

        result = search(populated_state, "pdf")
        assert len(result["documents"]) == 2

    def test_blank_query_matches_everything(self, populated_state):
        result = search(populated_state, "  ")
        assert len(result["documents"]) == 2
        assert len(result["qa_sessions"]) == 3


class TestAppStore:
    """Test cases for AppStore"""

    def test_dispatch_and_reset(self):
        store = AppStore()
        store.dispatch(Action(ActionType.ADD_DOCUMENT, Document(name="a.pdf")))

        assert len(store.state.documents) == 1
        assert store.get_document(store.state.documents[0].id).name == "a.pdf"

        store.reset()
        assert store.state == AppState()

    def test_lookup_helpers(self):
        session = make_session()
        store = AppStore(AppState(qa_sessions=[session]))

        assert store.get_qa_session(session.id) == session
        assert store.get_qa_session("missing") is None
        assert store.get_document("missing") is None

    def test_concurrent_dispatch_loses_no_updates(self):
        store = AppStore()

        def add_sessions():
            for i in range(50):
                store.dispatch(Action(ActionType.ADD_QA_SESSION, make_session(f"Q{i}")))

        threads = [threading.Thread(target=add_sessions) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(store.state.qa_sessions) == 200
