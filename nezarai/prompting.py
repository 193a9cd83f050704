from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .config import ALLOWED_CHAT_MODELS, DEFAULT_CHAT_MODEL, WEB_SEARCH_MODEL
from .personas import Persona

PINNED_CONTEXT_HEADER = "KONTEKS USER (selalu ingat ini):"

FOLLOW_UP_INSTRUCTION = """

PENTING: Di akhir setiap respons, SELALU tambahkan section follow-up suggestions dalam format berikut:
---SUGGESTIONS---
["Pertanyaan lanjutan 1?", "Pertanyaan lanjutan 2?", "Pertanyaan lanjutan 3?"]
---END_SUGGESTIONS---

Berikan 3 pertanyaan lanjutan yang relevan dan membantu user explore topik lebih dalam.
Pertanyaan harus spesifik, actionable, dan sesuai dengan konteks percakapan."""

SUGGESTIONS_RE = re.compile(
    r"---SUGGESTIONS---\s*\n?\s*(\[[\s\S]*?\])\s*\n?\s*---END_SUGGESTIONS---")
SUGGESTIONS_BLOCK_RE = re.compile(r"---SUGGESTIONS---[\s\S]*?---END_SUGGESTIONS---")

DEFAULT_IMAGE_PROMPT = "Jelaskan gambar ini"
FILE_SEPARATOR = "\n\n---\n\n"

ENHANCE_SYSTEM_PROMPT = """Kamu adalah ahli prompt engineering. Tugasmu adalah memperbaiki dan memperkaya prompt user agar lebih jelas, spesifik, dan efektif untuk mendapatkan respons AI yang lebih baik.

Aturan:
1. Pertahankan intent/maksud asli user
2. Tambahkan konteks yang relevan jika kurang
3. Buat lebih spesifik dan actionable
4. Gunakan bahasa yang sama dengan input (Indonesia/English)
5. Jangan terlalu panjang, maksimal 2-3 kalimat
6. Jangan tambahkan instruksi format output kecuali relevan
7. Jika prompt sudah bagus, kembalikan dengan perbaikan minor saja

PENTING: Kembalikan HANYA prompt yang sudah di-enhance, tanpa penjelasan atau komentar apapun."""


def _pin_content(item: Any) -> str:
  if isinstance(item, str):
    return item.strip()
  if isinstance(item, dict):
    return str(item.get("content") or "").strip()
  return str(getattr(item, "content", "") or "").strip()


def format_pinned_context(items: Optional[Iterable[Any]]) -> str:
  contents = [c for c in (_pin_content(i) for i in (items or [])) if c]
  if not contents:
    return ""
  lines = "\n".join(f"- {c}" for c in contents)
  return f"\n\n{PINNED_CONTEXT_HEADER}\n{lines}"


def build_system_prompt(persona: Persona, pinned_context: Optional[str] = None) -> str:
  return f"{persona.system_prompt}{pinned_context or ''}{FOLLOW_UP_INSTRUCTION}"


def parse_follow_up_suggestions(content: str) -> Tuple[str, List[str]]:
  match = SUGGESTIONS_RE.search(content or "")
  if not match:
    return content, []
  try:
    suggestions = json.loads(match.group(1))
  except json.JSONDecodeError:
    return content, []
  if not isinstance(suggestions, list):
    return content, []
  clean = SUGGESTIONS_BLOCK_RE.sub("", content, count=1).strip()
  return clean, [str(s) for s in suggestions]


def resolve_chat_model(model_id: Optional[str], use_web_search: bool = False) -> str:
  if use_web_search:
    return WEB_SEARCH_MODEL
  if model_id in ALLOWED_CHAT_MODELS:
    return model_id
  return DEFAULT_CHAT_MODEL


def build_user_content(text: str,
                       images: Optional[List[str]] = None,
                       file_contents: Optional[List[str]] = None
                       ) -> Union[str, List[Dict[str, str]]]:
  display = text or ""
  joined = "\n\n".join(c for c in (file_contents or []) if c)
  if joined:
    display = f"{display}{FILE_SEPARATOR}{joined}" if display else joined

  if images:
    parts: List[Dict[str, str]] = [{"type": "text", "text": text or DEFAULT_IMAGE_PROMPT}]
    parts.extend({"type": "image", "image": img} for img in images)
    return parts
  return display


def build_enhance_prompt(prompt: str) -> str:
  return f'Enhance prompt berikut:\n\n"{prompt}"'
