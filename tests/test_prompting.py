from __future__ import annotations

from nezarai.personas import DEFAULT_PERSONA, get_persona_by_id
from nezarai.prompting import (
    FOLLOW_UP_INSTRUCTION,
    build_system_prompt,
    build_user_content,
    format_pinned_context,
    parse_follow_up_suggestions,
    resolve_chat_model,
)


def test_pinned_context_format():
  assert format_pinned_context([]) == ""
  assert format_pinned_context(["Saya developer Python", {"content": "Pakai bahasa santai"}]) == (
      "\n\nKONTEKS USER (selalu ingat ini):\n- Saya developer Python\n- Pakai bahasa santai")


def test_blank_pins_are_skipped():
  assert format_pinned_context(["  ", {"content": ""}]) == ""


def test_system_prompt_order():
  persona = get_persona_by_id("tutor")
  pinned = format_pinned_context(["Saya pemula"])
  prompt = build_system_prompt(persona, pinned)
  assert prompt.startswith(persona.system_prompt)
  assert prompt.index("KONTEKS USER") < prompt.index("---SUGGESTIONS---")
  assert prompt.endswith(FOLLOW_UP_INSTRUCTION)


def test_unknown_persona_uses_default():
  assert get_persona_by_id("pirate") is DEFAULT_PERSONA
  assert get_persona_by_id(None).id == "assistant"


def test_parse_suggestions():
  content = ('Jawaban utama.\n\n---SUGGESTIONS---\n'
             '["Apa itu X?", "Bagaimana Y?", "Kenapa Z?"]\n---END_SUGGESTIONS---')
  clean, suggestions = parse_follow_up_suggestions(content)
  assert clean == "Jawaban utama."
  assert suggestions == ["Apa itu X?", "Bagaimana Y?", "Kenapa Z?"]


def test_malformed_suggestions_left_alone():
  content = "Teks\n---SUGGESTIONS---\n[bukan json]\n---END_SUGGESTIONS---"
  assert parse_follow_up_suggestions(content) == (content, [])


def test_resolve_chat_model():
  assert resolve_chat_model("gemini-2.5-pro") == "gemini-2.5-pro"
  assert resolve_chat_model("gpt-99") == "gemini-2.0-flash-lite"
  assert resolve_chat_model(None) == "gemini-2.0-flash-lite"
  assert resolve_chat_model("gemini-2.5-pro", use_web_search=True) == "gemini-2.0-flash"


def test_user_content_with_files():
  content = build_user_content("Review ini", file_contents=["[File: a.py]\n```py\nx = 1\n```"])
  assert content == "Review ini\n\n---\n\n[File: a.py]\n```py\nx = 1\n```"


def test_user_content_with_images_defaults_text():
  parts = build_user_content("", images=["data:image/png;base64,AAAA"])
  assert parts[0] == {"type": "text", "text": "Jelaskan gambar ini"}
  assert parts[1] == {"type": "image", "image": "data:image/png;base64,AAAA"}
