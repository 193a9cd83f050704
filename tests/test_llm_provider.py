from __future__ import annotations

import asyncio
import base64

import pytest

from nezarai import config, llm_provider


def test_provider_selection(monkeypatch):
  monkeypatch.setattr(config, "LLM_PROVIDER", "auto")
  monkeypatch.setattr(config, "GEMINI_API_KEY", "g-key")
  monkeypatch.setattr(config, "OPENAI_API_KEY", None)
  assert llm_provider.provider_for_model("gemini-2.5-flash") == "gemini"
  assert llm_provider.provider_for_model("gpt-4o-mini") == "openai"

  monkeypatch.setattr(config, "GEMINI_API_KEY", "")
  monkeypatch.setattr(config, "OPENAI_API_KEY", "o-key")
  assert llm_provider.provider_for_model("gemini-2.5-flash") == "openai"

  monkeypatch.setattr(config, "LLM_PROVIDER", "gemini")
  assert llm_provider.provider_for_model("gpt-4o-mini") == "gemini"


def test_missing_key_raises(monkeypatch):
  monkeypatch.setattr(config, "LLM_PROVIDER", "gemini")
  monkeypatch.setattr(config, "GEMINI_API_KEY", "")
  with pytest.raises(llm_provider.LLMUnavailable):
    llm_provider.ensure_available("gemini-2.0-flash-lite")


def test_split_data_url():
  raw = base64.b64encode(b"\x89PNG").decode()
  assert llm_provider.split_data_url(f"data:image/png;base64,{raw}") == ("image/png", b"\x89PNG")
  assert llm_provider.split_data_url(raw) == ("image/jpeg", b"\x89PNG")


def test_openai_message_conversion():
  messages = [
      {"role": "user", "content": "Halo"},
      {"role": "assistant", "content": "Hai"},
      {"role": "user", "content": [
          {"type": "text", "text": "Apa ini?"},
          {"type": "image", "image": "data:image/png;base64,AAAA"},
      ]},
  ]
  out = llm_provider._openai_messages("SYS", messages)
  assert out[0] == {"role": "system", "content": "SYS"}
  assert out[2] == {"role": "assistant", "content": "Hai"}
  assert out[3]["content"][1] == {"type": "image_url",
                                  "image_url": {"url": "data:image/png;base64,AAAA"}}


def test_gemini_contents_roles():
  contents = llm_provider._gemini_contents([
      {"role": "user", "content": "Halo"},
      {"role": "assistant", "content": "Hai"},
      {"role": "user", "content": ""},
  ])
  assert [c.role for c in contents] == ["user", "model"]


def test_iterate_in_thread_relays_items_and_errors():
  def _ok():
    yield "a"
    yield "b"

  def _bad():
    yield "a"
    raise RuntimeError("boom")

  async def _collect(factory):
    return [piece async for piece in llm_provider._iterate_in_thread(factory)]

  assert asyncio.run(_collect(_ok)) == ["a", "b"]
  with pytest.raises(RuntimeError):
    asyncio.run(_collect(_bad))
