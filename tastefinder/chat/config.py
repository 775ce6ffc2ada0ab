from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class SessionConfig:
    secret: str = "taste-finder-secret-change-in-production"
    ttl_seconds: int = 3600
    history_turns: int = 6
    extraction_strategy: str = "brace"

    @classmethod
    def from_env(cls) -> SessionConfig:
        return cls(
            secret=os.getenv("SESSION_SECRET", cls.secret),
            ttl_seconds=int(os.getenv("SESSION_TTL_SECONDS", str(cls.ttl_seconds))),
            history_turns=int(os.getenv("CHAT_HISTORY_TURNS", str(cls.history_turns))),
            extraction_strategy=os.getenv("EXTRACTION_STRATEGY", cls.extraction_strategy),
        )


def get_session_config() -> SessionConfig:
    return SessionConfig.from_env()
