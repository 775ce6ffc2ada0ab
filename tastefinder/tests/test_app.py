from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import groq
import httpx
import pytest
from fastapi.testclient import TestClient

from tastefinder.app import app
from tastefinder.chat.models import GREETING
from tastefinder.chat.session_store import SessionStore, get_session_store
from tastefinder.errors import SearchFailedError
from tastefinder.llm.config import LLMConfig, get_llm_config
from tastefinder.search.config import SearchConfig, get_search_config
from tastefinder.search.models import Restaurant

client = TestClient(app)


@pytest.fixture(autouse=True)
def _configured():
    store = SessionStore()
    app.dependency_overrides[get_llm_config] = lambda: LLMConfig(api_key="groq-test-key")
    app.dependency_overrides[get_search_config] = lambda: SearchConfig(api_key="yelp-test-key")
    app.dependency_overrides[get_session_store] = lambda: store
    yield store
    app.dependency_overrides.clear()


def _groq_reply(content: str) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    return response


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_root_serves_ui():
    resp = client.get("/")
    assert resp.status_code == 200
    assert "Taste Finder" in resp.text


# ── Completion proxy ─────────────────────────────────────────────────────


class TestChatProxy:
    def test_empty_messages_rejected(self):
        resp = client.post("/api/chat", json={"messages": []})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid request"

    def test_missing_body_rejected(self):
        resp = client.post("/api/chat")
        assert resp.status_code == 400

    def test_missing_key(self):
        app.dependency_overrides[get_llm_config] = lambda: LLMConfig(api_key="")
        resp = client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
        assert resp.status_code == 500
        assert "error" in resp.json()

    @patch("tastefinder.llm.groq_client.Groq")
    def test_relays_first_choice(self, mock_groq_cls):
        mock_groq_cls.return_value.chat.completions.create.return_value = _groq_reply("Hello there!")

        resp = client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})

        assert resp.status_code == 200
        assert resp.json() == {"choices": [{"message": {"role": "assistant", "content": "Hello there!"}}]}

    @patch("tastefinder.llm.groq_client.Groq")
    def test_provider_failure_is_bad_gateway(self, mock_groq_cls):
        request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
        mock_groq_cls.return_value.chat.completions.create.side_effect = groq.APIStatusError(
            "Invalid API Key", response=httpx.Response(401, request=request), body=None
        )

        resp = client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})

        assert resp.status_code == 502
        body = resp.json()
        assert body["details"] == "Invalid API Key"
        assert body["upstream_status"] == 401


# ── Search proxy ─────────────────────────────────────────────────────────


class TestRestaurantsProxy:
    @pytest.mark.parametrize(
        "params",
        [{}, {"food": "pizza"}, {"location": "Chicago"}, {"food": " ", "location": "Chicago"}],
    )
    def test_required_fields(self, params):
        resp = client.get("/api/restaurants", params=params)
        assert resp.status_code == 400
        assert resp.json()["error"] == "Food preference and location are required"

    def test_invalid_price(self):
        resp = client.get("/api/restaurants", params={"food": "pizza", "location": "Chicago", "price": "cheap"})
        assert resp.status_code == 400

    def test_missing_key(self):
        app.dependency_overrides[get_search_config] = lambda: SearchConfig(api_key="")
        resp = client.get("/api/restaurants", params={"food": "pizza", "location": "Chicago"})
        assert resp.status_code == 500

    @patch("tastefinder.app.search_businesses")
    def test_relays_payload(self, mock_search):
        mock_search.return_value = {"businesses": [], "total": 0}

        resp = client.get(
            "/api/restaurants",
            params={"food": "sushi", "location": "LA", "price": "$$$", "open_now": "true"},
        )

        assert resp.status_code == 200
        assert resp.json() == {"businesses": [], "total": 0}
        query = mock_search.call_args.args[0]
        assert query.price == "$$$"
        assert query.open_now is True

    @pytest.mark.parametrize("raw, expected", [("true", True), ("yes", None), ("1", None), ("false", None)])
    @patch("tastefinder.app.search_businesses", return_value={"businesses": []})
    def test_open_now_only_literal_true(self, mock_search, raw, expected):
        resp = client.get("/api/restaurants", params={"food": "pizza", "location": "Chicago", "open_now": raw})
        assert resp.status_code == 200
        assert mock_search.call_args.args[0].open_now is expected

    @patch("tastefinder.app.search_businesses", return_value={"businesses": []})
    def test_fractional_radius_accepted(self, mock_search):
        resp = client.get("/api/restaurants", params={"food": "pizza", "location": "Chicago", "radius": "1000.0"})
        assert resp.status_code == 200
        assert mock_search.call_args.args[0].radius == 1000.0

    @patch("tastefinder.app.search_businesses")
    def test_provider_failure(self, mock_search):
        mock_search.side_effect = SearchFailedError(
            "Yelp API responded with status: 500", details="oops", upstream_status=500
        )
        resp = client.get("/api/restaurants", params={"food": "pizza", "location": "Chicago"})
        assert resp.status_code == 502
        assert resp.json()["upstream_status"] == 500


# ── Session ──────────────────────────────────────────────────────────────


class TestSession:
    def test_fresh_session(self):
        c = TestClient(app)
        view = c.get("/session").json()
        assert view["messages"] == [{"role": "assistant", "content": GREETING}]
        assert view["phase"] == "idle"
        assert view["restaurants"] == []
        assert view["no_results"] is False

    def test_cookie_keeps_session(self, _configured):
        c = TestClient(app)
        c.post("/session/chat-mode")
        assert c.get("/session").json()["chat_open"] is True
        assert len(_configured) == 1

    def test_separate_clients_separate_sessions(self, _configured):
        TestClient(app).post("/session/chat-mode")
        assert TestClient(app).get("/session").json()["chat_open"] is False
        assert len(_configured) == 2

    @patch("tastefinder.chat.flow.search_restaurants")
    @patch("tastefinder.chat.flow.complete")
    def test_message_triggers_search(self, mock_complete, mock_search, business):
        mock_complete.return_value = json.dumps({"food": "pizza", "location": "Chicago", "message": "On it!"})
        mock_search.return_value = [Restaurant.model_validate(business)]
        c = TestClient(app)

        resp = c.post("/session/messages", json={"text": "pizza in Chicago"})

        assert resp.status_code == 200
        view = resp.json()
        assert [m["content"] for m in view["messages"]] == [GREETING, "pizza in Chicago", "On it!"]
        assert view["search_status"] == "results_ready"
        assert view["restaurants"][0]["name"] == "Lou Malnati's Pizzeria"
        assert (view["food"], view["location"]) == ("pizza", "Chicago")

    def test_empty_message_rejected(self):
        resp = TestClient(app).post("/session/messages", json={"text": ""})
        assert resp.status_code == 400

    @patch("tastefinder.chat.flow.complete")
    def test_restart(self, mock_complete):
        mock_complete.return_value = "What would you like to eat?"
        c = TestClient(app)
        c.post("/session/messages", json={"text": "hi"})

        view = c.post("/session/restart").json()

        assert view["messages"] == [{"role": "assistant", "content": GREETING}]
        assert view["phase"] == "idle"

    def test_form_missing_fields_inline(self):
        resp = TestClient(app).post("/session/search", json={"food": "pizza", "location": ""})
        assert resp.status_code == 200
        assert resp.json()["error"] == "Please enter both food preference and location"

    @patch("tastefinder.chat.flow.search_restaurants", return_value=[])
    def test_form_search_no_results(self, mock_search):
        view = TestClient(app).post("/session/search", json={"food": "pizza", "location": "Atlantis"}).json()
        assert view["has_searched"] is True
        assert view["no_results"] is True
        mock_search.assert_called_once()
