from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class SearchConfig:
    api_key: str = ""
    base_url: str = "https://api.yelp.com/v3"
    limit: int = 5
    sort_by: str = "rating"
    timeout: float | None = None

    @property
    def search_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/businesses/search"

    @classmethod
    def from_env(cls) -> SearchConfig:
        return cls(
            api_key=os.getenv("YELP_API_KEY", ""),
            base_url=os.getenv("YELP_API_URL", cls.base_url),
        )


def get_search_config() -> SearchConfig:
    return SearchConfig.from_env()
