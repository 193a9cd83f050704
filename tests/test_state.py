from __future__ import annotations

import json

import pytest

from nezarai import config, state

OWNER = "user:abc"


def test_conversation_lifecycle():
  conv = state.create_conversation(OWNER, "  Belajar Python  ", [{"role": "user", "content": "Halo"}])
  assert conv["title"] == "Belajar Python"
  assert state.get_conversation(OWNER, conv["id"])["messages"][0]["content"] == "Halo"

  updated = state.update_conversation(OWNER, conv["id"], [{"role": "user", "content": "Lagi"}])
  assert updated["messages"] == [{"role": "user", "content": "Lagi"}]
  assert updated["title"] == "Belajar Python"

  renamed = state.rename_conversation(OWNER, conv["id"], "Judul Baru")
  assert renamed["title"] == "Judul Baru"

  assert state.delete_conversation(OWNER, conv["id"]) is True
  assert state.delete_conversation(OWNER, conv["id"]) is False
  assert state.get_conversation(OWNER, conv["id"]) is None


def test_title_is_capped():
  conv = state.create_conversation(OWNER, "x" * 500)
  assert len(conv["title"]) == config.CONVERSATION_TITLE_MAX_CHARS


def test_update_caps_title():
  conv = state.create_conversation(OWNER, "Awal")
  updated = state.update_conversation(OWNER, conv["id"], [], "y" * 150)
  assert len(updated["title"]) == config.CONVERSATION_TITLE_MAX_CHARS
  stored = state.get_conversation(OWNER, conv["id"])
  assert len(stored["title"]) == config.CONVERSATION_TITLE_MAX_CHARS


def test_rename_rejects_empty_title():
  conv = state.create_conversation(OWNER, "Awal")
  with pytest.raises(ValueError):
    state.rename_conversation(OWNER, conv["id"], "   ")


def test_missing_conversation_returns_none():
  assert state.update_conversation(OWNER, "nope", []) is None
  assert state.rename_conversation(OWNER, "nope", "Judul") is None


def test_list_is_most_recent_first():
  state.import_conversations(OWNER, [
      {"id": "a", "title": "Lama", "updatedAt": "2026-10-01T08:00:00Z"},
      {"id": "b", "title": "Baru", "updatedAt": "2026-10-15T08:00:00Z"},
      {"id": "c", "title": "Tengah", "updatedAt": "2026-10-10T08:00:00Z"},
  ])
  assert [c["id"] for c in state.list_conversations(OWNER)] == ["b", "c", "a"]


def test_owners_are_isolated():
  state.create_conversation(OWNER, "Punyaku")
  assert state.list_conversations("user:other") == []


def test_user_document_file_naming():
  state.create_conversation(OWNER, "Simpan")
  files = list(config.USER_DATA_DIR.glob("user_*.json"))
  assert len(files) == 1
  data = json.loads(files[0].read_text(encoding="utf-8"))
  assert data["conversations"][0]["title"] == "Simpan"


def test_import_skips_existing_ids():
  conv = state.create_conversation(OWNER, "Ada")
  payload = [
      {"id": conv["id"], "title": "Duplikat", "messages": [],
       "createdAt": "2026-01-01T00:00:00Z", "updatedAt": "2026-01-01T00:00:00Z"},
      {"id": "imported-1", "title": "Impor", "messages": [],
       "createdAt": "2026-01-01T00:00:00Z", "updatedAt": "2026-01-01T00:00:00Z"},
      "bukan dict",
  ]
  received, added = state.import_conversations(OWNER, json.dumps(payload))
  assert (received, added) == (3, 1)
  titles = {c["title"] for c in state.list_conversations(OWNER)}
  assert titles == {"Ada", "Impor"}


def test_import_rejects_non_list():
  with pytest.raises(ValueError):
    state.import_conversations(OWNER, {"id": "x"})


def test_clear_conversations():
  state.create_conversation(OWNER, "a")
  state.create_conversation(OWNER, "b")
  assert state.clear_conversations(OWNER) == 2
  assert state.export_conversations(OWNER) == []


def test_plan_state_roundtrip():
  assert state.get_plan_state(OWNER)["planId"] == "noob"
  state.set_plan_state(OWNER, "pro", "PRO-NEZARAI-2024")
  assert state.get_plan_state(OWNER)["activationCode"] == "PRO-NEZARAI-2024"
  assert state.reset_plan_state(OWNER) == {"planId": "noob"}


def test_pin_limit_follows_plan():
  with pytest.raises(state.PinLimitReached):
    state.add_pinned_context(OWNER, "Saya suka Python")

  state.set_plan_state(OWNER, "pro")
  for i in range(3):
    state.add_pinned_context(OWNER, f"fakta {i}")
  with pytest.raises(state.PinLimitReached):
    state.add_pinned_context(OWNER, "fakta 4")
  assert len(state.list_pinned_context(OWNER)) == 3


def test_pin_remove_and_clear():
  state.set_plan_state(OWNER, "pro")
  item = state.add_pinned_context(OWNER, "  Bahasa favorit: Go  ")
  assert item["content"] == "Bahasa favorit: Go"
  assert state.remove_pinned_context(OWNER, item["id"]) is True
  assert state.remove_pinned_context(OWNER, item["id"]) is False
  state.add_pinned_context(OWNER, "lain")
  state.clear_pinned_context(OWNER)
  assert state.list_pinned_context(OWNER) == []


def test_empty_pin_rejected():
  state.set_plan_state(OWNER, "pro")
  with pytest.raises(ValueError):
    state.add_pinned_context(OWNER, "   ")
