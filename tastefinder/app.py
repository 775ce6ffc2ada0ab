from __future__ import annotations

from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from starlette.middleware.sessions import SessionMiddleware

from .chat.config import get_session_config
from .chat.extraction import get_extractor
from .chat.flow import restart, search_form, send_message, toggle_chat
from .chat.models import (
    ChatMessage,
    CompletionChoice,
    CompletionRequest,
    CompletionResponse,
    MessageRequest,
    Role,
    SearchFormRequest,
    SessionView,
)
from .chat.session_store import SessionStore, get_session_store
from .errors import InputError, TasteFinderError
from .llm.config import LLMConfig, get_llm_config
from .llm.groq_client import complete
from .search.client import search_businesses
from .search.config import SearchConfig, get_search_config
from .search.models import QueryParams

app = FastAPI(title="Taste Finder API", version="1.0.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=get_session_config().secret,
)

_STATIC_DIR = Path(__file__).resolve().parent / "static"


def get_session_id(request: Request) -> str:
    session_id = request.session.get("session_id")
    if not session_id:
        session_id = SessionStore.new_id()
        request.session["session_id"] = session_id
    return session_id


# ── Error rendering ──────────────────────────────────────────────────────


@app.exception_handler(TasteFinderError)
async def handle_app_error(request: Request, exc: TasteFinderError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Provider proxies ─────────────────────────────────────────────────────


@app.post("/api/chat", response_model=CompletionResponse)
def chat_completion(
    body: CompletionRequest,
    llm_config: LLMConfig = Depends(get_llm_config),
) -> CompletionResponse:
    conversation = [{"role": m.role.value, "content": m.content} for m in body.messages]
    content = complete(conversation, llm_config)
    return CompletionResponse(
        choices=[CompletionChoice(message=ChatMessage(role=Role.assistant, content=content))]
    )


@app.get("/api/restaurants")
def restaurants(
    food: str | None = None,
    location: str | None = None,
    price: str | None = None,
    open_now: str | None = None,
    radius: float | None = None,
    search_config: SearchConfig = Depends(get_search_config),
) -> dict:
    if not (food or "").strip() or not (location or "").strip():
        raise InputError("Food preference and location are required")
    try:
        query = QueryParams(
            food=food,
            location=location,
            price=price or None,
            open_now=True if open_now == "true" else None,
            radius=radius or None,
        )
    except ValidationError as exc:
        raise InputError("Invalid search parameters", details=str(exc)) from exc
    return search_businesses(query, search_config)


# ── Session ──────────────────────────────────────────────────────────────


@app.get("/session", response_model=SessionView)
def session_view(
    session_id: str = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
) -> SessionView:
    return SessionView.from_state(store.get(session_id))


@app.post("/session/messages", response_model=SessionView)
def session_message(
    body: MessageRequest,
    session_id: str = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
    llm_config: LLMConfig = Depends(get_llm_config),
    search_config: SearchConfig = Depends(get_search_config),
) -> SessionView:
    state = send_message(
        store,
        session_id,
        body.text,
        llm_config,
        search_config,
        extractor=get_extractor(),
    )
    return SessionView.from_state(state)


@app.post("/session/search", response_model=SessionView)
def session_search(
    body: SearchFormRequest,
    session_id: str = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
    search_config: SearchConfig = Depends(get_search_config),
) -> SessionView:
    return SessionView.from_state(search_form(store, session_id, body, search_config))


@app.post("/session/restart", response_model=SessionView)
def session_restart(
    session_id: str = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
) -> SessionView:
    return SessionView.from_state(restart(store, session_id))


@app.post("/session/chat-mode", response_model=SessionView)
def session_chat_mode(
    session_id: str = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
) -> SessionView:
    return SessionView.from_state(toggle_chat(store, session_id))


# ── Static UI ────────────────────────────────────────────────────────────


app.mount("/static", StaticFiles(directory=str(_STATIC_DIR)), name="static")


@app.get("/")
def root():
    return FileResponse(str(_STATIC_DIR / "index.html"))
