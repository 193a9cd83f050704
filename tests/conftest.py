from __future__ import annotations

from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

from nezarai import config, gcal, llm_provider, plans
from nezarai.app import app
from nezarai.ratelimit import rate_limiter


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
  monkeypatch.setattr(config, "DATA_DIR", tmp_path)
  monkeypatch.setattr(config, "USER_DATA_DIR", tmp_path / "users")
  monkeypatch.setattr(config, "ACCOUNTS_FILE", tmp_path / "accounts.json")
  monkeypatch.setattr(gcal, "GOOGLE_TOKEN_DIR", tmp_path / "gcal_tokens")
  rate_limiter._requests.clear()
  uses = {code: entry.uses for code, entry in plans.activation_codes.items()}
  yield tmp_path
  for code, count in uses.items():
    plans.activation_codes[code].uses = count
  rate_limiter._requests.clear()


@pytest.fixture
def client():
  return TestClient(app)


@pytest.fixture
def fake_llm(monkeypatch):
  calls: List[Dict[str, Any]] = []
  chunks = {"value": ["Halo", " dunia"], "error": None}

  async def _stream_chat(**kwargs):
    calls.append(kwargs)
    for piece in chunks["value"]:
      yield piece
    if chunks["error"] is not None:
      raise chunks["error"]

  async def _generate_text(**kwargs):
    calls.append(kwargs)
    return "  Prompt yang lebih jelas  "

  monkeypatch.setattr(llm_provider, "ensure_available", lambda model: "gemini")
  monkeypatch.setattr(llm_provider, "stream_chat", _stream_chat)
  monkeypatch.setattr(llm_provider, "generate_text", _generate_text)
  return {"calls": calls, "chunks": chunks}


@pytest.fixture
def user_client(client):
  resp = client.post("/api/auth/register", json={
      "username": "nezar",
      "email": "Nezar@Example.com",
      "password": "rahasia123",
  })
  assert resp.status_code == 200
  client.headers[config.SESSION_HEADER_NAME] = resp.json()["token"]
  return client
