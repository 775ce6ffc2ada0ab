from __future__ import annotations

import logging
from typing import Callable

import httpx

from ..errors import InputError, RequestInFlightError, TasteFinderError
from ..llm.config import LLMConfig
from ..llm.groq_client import complete
from ..search.client import search_restaurants
from ..search.config import SearchConfig
from ..search.models import QueryParams
from .config import get_session_config
from .extraction import Extractor, display_text, get_extractor, to_query_params
from .models import (
    GREETING,
    ChatMessage,
    ConversationPhase,
    Role,
    SearchFormRequest,
    SearchStatus,
    SessionState,
)
from .session_store import SessionStore

logger = logging.getLogger(__name__)

HISTORY_TURNS = get_session_config().history_turns
APOLOGY = "Sorry, I encountered an error. Please try again."
FORM_INPUT_ERROR = "Please enter both food preference and location"
SEARCH_ERROR_PREFIX = "Failed to fetch restaurants. Please try again."
SEARCH_BUSY_ERROR = "A search is already in progress. Please try again once it finishes."

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def conversation_for_completion(
    messages: list[ChatMessage],
    max_turns: int = HISTORY_TURNS,
) -> list[dict[str, str]]:
    """Transcript turns to send upstream, without the opening greeting."""
    turns = list(messages)
    if turns and turns[0].role == Role.assistant and turns[0].content == GREETING:
        turns = turns[1:]
    turns = turns[-max_turns:] if max_turns > 0 else turns[-1:]
    return [{"role": t.role.value, "content": t.content} for t in turns]


def _error_text(exc: TasteFinderError) -> str:
    if exc.details:
        return f"{exc.message}: {exc.details}"
    return exc.message


def _fail_turn(error: str) -> Callable[[SessionState], None]:
    """Close a turn that produced no usable reply."""

    def _failed(state: SessionState) -> None:
        state.messages.append(ChatMessage(role=Role.assistant, content=APOLOGY))
        state.phase = ConversationPhase.failed
        state.error = error

    return _failed


def _apply_if_current(
    store: SessionStore,
    session_id: str,
    epoch: int,
    fn: Callable[[SessionState], None],
) -> tuple[SessionState, bool]:
    """Run ``fn`` on the stored state unless the session restarted since ``epoch``."""
    applied = False

    def _guarded(state: SessionState) -> None:
        nonlocal applied
        if state.epoch != epoch:
            return
        fn(state)
        applied = True

    state = store.update(session_id, _guarded)
    if not applied:
        logger.warning("Discarding completion for session %s: restarted while in flight", session_id)
    return state, applied


# ---------------------------------------------------------------------------
# Search orchestration
# ---------------------------------------------------------------------------


def _run_search(
    store: SessionStore,
    session_id: str,
    query: QueryParams,
    search_config: SearchConfig,
    http_client: httpx.Client | None,
    epoch: int | None,
) -> SessionState:
    """
    Execute a search that has already been marked ``searching`` and fold the
    outcome into the session. ``epoch`` is set for chat-triggered searches;
    the conversation phase is only touched if the session has not restarted.
    """

    def _owns_phase(state: SessionState) -> bool:
        return epoch is not None and state.epoch == epoch

    try:
        restaurants = search_restaurants(query, search_config, client=http_client)
    except TasteFinderError as exc:
        logger.warning("Search failed for session %s: %s", session_id, exc.message)

        def _failed(state: SessionState) -> None:
            state.search_status = SearchStatus.search_failed
            state.error = f"{SEARCH_ERROR_PREFIX} {_error_text(exc)}"
            if _owns_phase(state):
                state.phase = ConversationPhase.failed

        return store.update(session_id, _failed)
    except Exception:
        logger.warning("Search crashed for session %s", session_id, exc_info=True)

        def _crashed(state: SessionState) -> None:
            state.search_status = SearchStatus.search_failed
            state.error = SEARCH_ERROR_PREFIX
            if _owns_phase(state):
                state.phase = ConversationPhase.failed

        store.update(session_id, _crashed)
        raise

    def _ready(state: SessionState) -> None:
        state.restaurants = restaurants
        state.search_status = SearchStatus.results_ready
        if _owns_phase(state):
            state.phase = ConversationPhase.idle
            state.chat_open = False

    return store.update(session_id, _ready)


def search_form(
    store: SessionStore,
    session_id: str,
    form: SearchFormRequest,
    search_config: SearchConfig,
    http_client: httpx.Client | None = None,
) -> SessionState:
    """Two-field form search. Missing fields are reported inline."""
    if not form.food.strip() or not form.location.strip():

        def _missing(state: SessionState) -> None:
            state.error = FORM_INPUT_ERROR

        return store.update(session_id, _missing)

    try:
        query = QueryParams.model_validate(form.model_dump())
    except ValueError as exc:
        raise InputError("Invalid search parameters", details=str(exc)) from exc

    def _begin(state: SessionState) -> None:
        if state.search_status == SearchStatus.searching:
            raise RequestInFlightError("A search is already in progress")
        state.search_status = SearchStatus.searching
        state.has_searched = True
        state.error = None
        state.food = query.food
        state.location = query.location

    store.update(session_id, _begin)
    return _run_search(store, session_id, query, search_config, http_client, epoch=None)


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------


def send_message(
    store: SessionStore,
    session_id: str,
    text: str,
    llm_config: LLMConfig,
    search_config: SearchConfig,
    extractor: Extractor | None = None,
    http_client: httpx.Client | None = None,
) -> SessionState:
    """
    Handle one chat turn: ask the model, extract a query from its reply and
    search when the reply names both a food and a location.
    """
    text = text.strip()
    if not text:
        raise InputError("Message text is required")

    def _begin(state: SessionState) -> None:
        if state.in_flight:
            raise RequestInFlightError("A request is already in progress for this session")
        state.phase = ConversationPhase.awaiting_completion
        state.error = None
        state.messages.append(ChatMessage(role=Role.user, content=text))

    state = store.update(session_id, _begin)
    epoch = state.epoch

    try:
        raw = complete(conversation_for_completion(state.messages), llm_config)
        extracted = (extractor or get_extractor())(raw)
        reply = display_text(raw, extracted)
        query = to_query_params(extracted) if extracted is not None else None
    except TasteFinderError as exc:
        logger.warning("Completion failed for session %s: %s", session_id, exc.message)
        state, _ = _apply_if_current(store, session_id, epoch, _fail_turn(_error_text(exc)))
        return state
    except Exception:
        logger.warning("Handling a reply crashed for session %s", session_id, exc_info=True)
        _apply_if_current(store, session_id, epoch, _fail_turn(APOLOGY))
        raise

    search_busy = False

    def _reply(state: SessionState) -> None:
        nonlocal search_busy
        state.messages.append(ChatMessage(role=Role.assistant, content=reply))
        if query is None:
            state.phase = ConversationPhase.idle
            return
        if state.search_status == SearchStatus.searching:
            search_busy = True
            state.phase = ConversationPhase.idle
            state.error = SEARCH_BUSY_ERROR
            return
        state.phase = ConversationPhase.awaiting_search
        state.search_status = SearchStatus.searching
        state.has_searched = True
        state.food = query.food
        state.location = query.location

    state, applied = _apply_if_current(store, session_id, epoch, _reply)
    if search_busy:
        logger.warning("Search already running for session %s; not starting another", session_id)
    if not applied or query is None or search_busy:
        return state

    return _run_search(store, session_id, query, search_config, http_client, epoch=epoch)


def restart(store: SessionStore, session_id: str) -> SessionState:
    """Reset the transcript to the greeting. Results are kept."""

    def _reset(state: SessionState) -> None:
        state.messages = [ChatMessage(role=Role.assistant, content=GREETING)]
        state.phase = ConversationPhase.idle
        state.error = None
        state.epoch += 1

    return store.update(session_id, _reset)


def toggle_chat(store: SessionStore, session_id: str) -> SessionState:
    def _toggle(state: SessionState) -> None:
        state.chat_open = not state.chat_open

    return store.update(session_id, _toggle)
