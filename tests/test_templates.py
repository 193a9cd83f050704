from __future__ import annotations

from nezarai.templates import (
    PROMPT_TEMPLATES,
    TEMPLATE_CATEGORIES,
    fill_template,
    get_template,
    get_templates_by_category,
    list_placeholders,
)


def test_every_template_has_known_category():
  known = {c["id"] for c in TEMPLATE_CATEGORIES}
  assert len(PROMPT_TEMPLATES) == 15
  assert all(t.category in known for t in PROMPT_TEMPLATES)


def test_category_filter():
  coding = get_templates_by_category("coding")
  assert coding
  assert all(t.category == "coding" for t in coding)
  assert get_templates_by_category("cooking") == []


def test_get_template_missing():
  assert get_template("does-not-exist") is None


def test_fill_template_keeps_unknown_placeholders():
  prompt = "Jelaskan [TOPIK] untuk [LEVEL] dengan [TOPIK] contoh"
  assert list_placeholders(prompt) == ["TOPIK", "LEVEL"]
  assert fill_template(prompt, {"topik": "rekursi"}) == (
      "Jelaskan rekursi untuk [LEVEL] dengan rekursi contoh")
