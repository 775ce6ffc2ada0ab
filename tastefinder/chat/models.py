from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..search.models import Restaurant

GREETING = (
    "Hi! I can help you find restaurants. Try something like "
    "'Find me spicy food in Chicago' or 'Italian restaurants in New York open now'"
)


class Role(str, Enum):
    user = "user"
    assistant = "assistant"
    system = "system"


class ChatMessage(BaseModel):
    role: Role
    content: str


class ConversationPhase(str, Enum):
    idle = "idle"
    awaiting_completion = "awaiting_completion"
    awaiting_search = "awaiting_search"
    failed = "failed"


class SearchStatus(str, Enum):
    searching = "searching"
    results_ready = "results_ready"
    search_failed = "search_failed"


class ExtractedQuery(BaseModel):
    """Whatever the model put in its JSON object. Nothing is required."""

    model_config = ConfigDict(extra="allow")

    food: Any = None
    location: Any = None
    price: Any = None
    open_now: Any = None
    radius: Any = None
    message: Any = None

    @property
    def triggers_search(self) -> bool:
        return (
            isinstance(self.food, str) and bool(self.food.strip())
            and isinstance(self.location, str) and bool(self.location.strip())
        )


class SessionState(BaseModel):
    messages: list[ChatMessage] = Field(
        default_factory=lambda: [ChatMessage(role=Role.assistant, content=GREETING)]
    )
    phase: ConversationPhase = ConversationPhase.idle
    search_status: SearchStatus | None = None
    restaurants: list[Restaurant] = Field(default_factory=list)
    has_searched: bool = False
    error: str | None = None
    food: str = ""
    location: str = ""
    chat_open: bool = False
    epoch: int = 0

    @property
    def in_flight(self) -> bool:
        return self.phase in (ConversationPhase.awaiting_completion, ConversationPhase.awaiting_search)


# ── Request / response bodies ────────────────────────────────────────────


class CompletionRequest(BaseModel):
    messages: list[ChatMessage] = Field(..., min_length=1)


class CompletionChoice(BaseModel):
    message: ChatMessage


class CompletionResponse(BaseModel):
    choices: list[CompletionChoice]


class MessageRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=1000)


class SearchFormRequest(BaseModel):
    food: str = ""
    location: str = ""
    price: str | None = None
    open_now: bool | None = None
    radius: int | None = None


class SessionView(BaseModel):
    messages: list[ChatMessage]
    phase: ConversationPhase
    search_status: SearchStatus | None
    restaurants: list[Restaurant]
    has_searched: bool
    no_results: bool
    error: str | None
    food: str
    location: str
    chat_open: bool

    @classmethod
    def from_state(cls, state: SessionState) -> SessionView:
        return cls(
            messages=state.messages,
            phase=state.phase,
            search_status=state.search_status,
            restaurants=state.restaurants,
            has_searched=state.has_searched,
            no_results=state.search_status == SearchStatus.results_ready and not state.restaurants,
            error=state.error,
            food=state.food,
            location=state.location,
            chat_open=state.chat_open,
        )
