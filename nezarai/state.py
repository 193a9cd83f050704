from __future__ import annotations

from threading import RLock
from typing import Any, Dict, List, Optional, Tuple
import copy
import json
import pathlib

from . import config
from .plans import DEFAULT_PLAN_ID, can_pin_context, get_plan
from .utils import _log_debug, generate_id, hash_key, now_iso, parse_iso_timestamp

# NOTE: every read-modify-write of a user document goes through this module.
_lock = RLock()


class PinLimitReached(ValueError):
    """The current plan does not allow another pinned context item."""


def _user_path(owner: str) -> pathlib.Path:
    return config.USER_DATA_DIR / f"user_{hash_key(owner)}.json"


def _empty_document() -> Dict[str, Any]:
    return {
        "conversations": [],
        "pinned_context": [],
        "plan": {"planId": DEFAULT_PLAN_ID},
    }


def _load(owner: str) -> Dict[str, Any]:
    path = _user_path(owner)
    if not path.exists():
        return _empty_document()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        _log_debug(f"[STATE] load failed owner={hash_key(owner)[:8]}: {exc}")
        return _empty_document()
    if not isinstance(data, dict):
        return _empty_document()
    doc = _empty_document()
    if isinstance(data.get("conversations"), list):
        doc["conversations"] = [c for c in data["conversations"] if isinstance(c, dict)]
    if isinstance(data.get("pinned_context"), list):
        doc["pinned_context"] = [p for p in data["pinned_context"] if isinstance(p, dict)]
    if isinstance(data.get("plan"), dict):
        doc["plan"] = data["plan"]
    return doc


def _save(owner: str, doc: Dict[str, Any]) -> None:
    path = _user_path(owner)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(doc, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp.replace(path)


def _sort_conversations(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(items,
                  key=lambda c: parse_iso_timestamp(c.get("updatedAt")),
                  reverse=True)


def _find(items: List[Dict[str, Any]], item_id: str) -> Optional[Dict[str, Any]]:
    for item in items:
        if item.get("id") == item_id:
            return item
    return None


# -------------------------
# Conversations
# -------------------------
def list_conversations(owner: str) -> List[Dict[str, Any]]:
    with _lock:
        return _sort_conversations(_load(owner)["conversations"])


def get_conversation(owner: str, conversation_id: str) -> Optional[Dict[str, Any]]:
    with _lock:
        found = _find(_load(owner)["conversations"], conversation_id)
        return copy.deepcopy(found) if found else None


def create_conversation(owner: str,
                        title: str,
                        messages: Optional[List[Dict[str, Any]]] = None,
                        persona_id: Optional[str] = None) -> Dict[str, Any]:
    now = now_iso()
    conversation = {
        "id": generate_id(),
        "title": (title or "").strip()[:config.CONVERSATION_TITLE_MAX_CHARS],
        "messages": list(messages or []),
        "createdAt": now,
        "updatedAt": now,
        "personaId": persona_id,
    }
    with _lock:
        doc = _load(owner)
        doc["conversations"].insert(0, conversation)
        _save(owner, doc)
    return conversation


def update_conversation(owner: str,
                        conversation_id: str,
                        messages: List[Dict[str, Any]],
                        title: Optional[str] = None) -> Optional[Dict[str, Any]]:
    with _lock:
        doc = _load(owner)
        conversation = _find(doc["conversations"], conversation_id)
        if conversation is None:
            return None
        conversation["messages"] = list(messages)
        if title:
            conversation["title"] = title.strip()[:config.CONVERSATION_TITLE_MAX_CHARS]
        conversation["updatedAt"] = now_iso()
        _save(owner, doc)
        return conversation


def rename_conversation(owner: str, conversation_id: str,
                        new_title: str) -> Optional[Dict[str, Any]]:
    title = (new_title or "").strip()
    if not title:
        raise ValueError("Judul tidak boleh kosong")
    with _lock:
        doc = _load(owner)
        conversation = _find(doc["conversations"], conversation_id)
        if conversation is None:
            return None
        conversation["title"] = title[:config.CONVERSATION_TITLE_MAX_CHARS]
        conversation["updatedAt"] = now_iso()
        _save(owner, doc)
        return conversation


def delete_conversation(owner: str, conversation_id: str) -> bool:
    with _lock:
        doc = _load(owner)
        before = len(doc["conversations"])
        doc["conversations"] = [
            c for c in doc["conversations"] if c.get("id") != conversation_id
        ]
        if len(doc["conversations"]) == before:
            return False
        _save(owner, doc)
        return True


def clear_conversations(owner: str) -> int:
    with _lock:
        doc = _load(owner)
        removed = len(doc["conversations"])
        doc["conversations"] = []
        _save(owner, doc)
        return removed


def export_conversations(owner: str) -> List[Dict[str, Any]]:
    return list_conversations(owner)


def import_conversations(owner: str, payload: Any) -> Tuple[int, int]:
    """Merge exported conversations; returns (count received, count added)."""
    if isinstance(payload, str):
        payload = json.loads(payload)
    if not isinstance(payload, list):
        raise ValueError("Format file tidak valid")
    with _lock:
        doc = _load(owner)
        existing_ids = {c.get("id") for c in doc["conversations"]}
        added: List[Dict[str, Any]] = []
        for item in payload:
            if not isinstance(item, dict) or not item.get("id"):
                continue
            if item["id"] in existing_ids:
                continue
            existing_ids.add(item["id"])
            added.append(item)
        doc["conversations"] = _sort_conversations(added + doc["conversations"])
        _save(owner, doc)
    return len(payload), len(added)


# -------------------------
# Plan state
# -------------------------
def get_plan_state(owner: str) -> Dict[str, Any]:
    with _lock:
        plan_state = _load(owner)["plan"]
    plan_state.setdefault("planId", DEFAULT_PLAN_ID)
    return plan_state


def set_plan_state(owner: str, plan_id: str,
                   activation_code: Optional[str] = None) -> Dict[str, Any]:
    plan_state = {
        "planId": plan_id,
        "activatedAt": now_iso(),
        "activationCode": activation_code,
    }
    with _lock:
        doc = _load(owner)
        doc["plan"] = plan_state
        _save(owner, doc)
    return plan_state


def reset_plan_state(owner: str) -> Dict[str, Any]:
    with _lock:
        doc = _load(owner)
        doc["plan"] = {"planId": DEFAULT_PLAN_ID}
        _save(owner, doc)
        return doc["plan"]


# -------------------------
# Pinned context
# -------------------------
def list_pinned_context(owner: str) -> List[Dict[str, Any]]:
    with _lock:
        return _load(owner)["pinned_context"]


def add_pinned_context(owner: str, content: str) -> Dict[str, Any]:
    text = (content or "").strip()
    if not text:
        raise ValueError("Konteks tidak boleh kosong")
    with _lock:
        doc = _load(owner)
        plan = get_plan(doc["plan"].get("planId"))
        if not can_pin_context(plan, len(doc["pinned_context"])):
            raise PinLimitReached(
                f"Batas context pin untuk plan {plan.name} sudah tercapai")
        item = {"id": generate_id(), "content": text}
        doc["pinned_context"].append(item)
        _save(owner, doc)
    return item


def remove_pinned_context(owner: str, item_id: str) -> bool:
    with _lock:
        doc = _load(owner)
        before = len(doc["pinned_context"])
        doc["pinned_context"] = [p for p in doc["pinned_context"] if p.get("id") != item_id]
        if len(doc["pinned_context"]) == before:
            return False
        _save(owner, doc)
        return True


def clear_pinned_context(owner: str) -> None:
    with _lock:
        doc = _load(owner)
        doc["pinned_context"] = []
        _save(owner, doc)
