from __future__ import annotations

from typing import Any

import requests

from nezarai import youtube
from nezarai.youtube import build_summary_prompt, build_video_context, extract_video_id


class FakeResponse:
  def __init__(self, status_code: int = 200, payload: Any = None):
    self.status_code = status_code
    self._payload = payload

  @property
  def ok(self) -> bool:
    return self.status_code < 400

  def json(self) -> Any:
    return self._payload


def test_extract_video_id_variants():
  assert extract_video_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=10") == "dQw4w9WgXcQ"
  assert extract_video_id("https://youtu.be/dQw4w9WgXcQ?si=abc") == "dQw4w9WgXcQ"
  assert extract_video_id("https://www.youtube.com/embed/dQw4w9WgXcQ") == "dQw4w9WgXcQ"
  assert extract_video_id("dQw4w9WgXcQ") == "dQw4w9WgXcQ"
  assert extract_video_id("https://vimeo.com/123") is None


def test_metadata_not_found(monkeypatch):
  monkeypatch.setattr(youtube.requests, "get", lambda *a, **k: FakeResponse(404))
  assert youtube.get_video_metadata("dQw4w9WgXcQ") is None


def test_metadata_network_error(monkeypatch):
  def _boom(*args, **kwargs):
    raise requests.Timeout("slow")

  monkeypatch.setattr(youtube.requests, "get", _boom)
  assert youtube.get_video_metadata("dQw4w9WgXcQ") is None
  assert youtube.get_video_description("dQw4w9WgXcQ") is None


def test_description_lookup(monkeypatch):
  payload = {"items": [{"snippet": {"description": "Deskripsi video"}}]}
  monkeypatch.setattr(youtube.requests, "get", lambda *a, **k: FakeResponse(200, payload))
  assert youtube.get_video_description("dQw4w9WgXcQ") == "Deskripsi video"


def test_prompt_language_and_action():
  meta = {"title": "Belajar Python", "author_name": "Kelas Kode", "thumbnail_url": "t.jpg"}
  context = build_video_context("dQw4w9WgXcQ", meta)
  assert "- Judul: Belajar Python" in context
  assert "- URL: https://www.youtube.com/watch?v=dQw4w9WgXcQ" in context

  summary = build_summary_prompt("summarize", context, "id")
  assert "## 📋 Ringkasan" in summary
  assert "Gunakan bahasa Indonesia" in summary
  assert "Gunakan bahasa Inggris" in build_summary_prompt("keypoints", context, "en")
  assert "## 📚 Penjelasan Topik" in build_summary_prompt("explain", context)


def test_metadata_payload():
  meta = {"title": "T", "author_name": "A", "author_url": "https://yt/a", "thumbnail_url": "th"}
  assert youtube.metadata_payload("dQw4w9WgXcQ", meta) == {
      "videoId": "dQw4w9WgXcQ",
      "title": "T",
      "author": "A",
      "authorUrl": "https://yt/a",
      "thumbnail": "th",
      "embedUrl": "https://www.youtube.com/embed/dQw4w9WgXcQ",
  }
