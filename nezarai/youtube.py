from __future__ import annotations

import re
from typing import Any, Dict, Optional

import requests

from .config import HTTP_TIMEOUT_SECONDS, YOUTUBE_DESCRIPTION_URL, YOUTUBE_OEMBED_URL
from .utils import _log_debug

_VIDEO_ID_PATTERNS = [
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/|youtube\.com/v/)([^&\n?#]+)"),
    re.compile(r"^([a-zA-Z0-9_-]{11})$"),
]

SUMMARY_ACTIONS = ("summarize", "keypoints", "explain")

SYSTEM_PROMPT = """Kamu adalah AI assistant yang ahli dalam menganalisis dan meringkas konten video YouTube.
Kamu memiliki pengetahuan luas tentang berbagai topik dan creator YouTube.
Berikan analisis yang insightful dan informatif berdasarkan judul, channel, dan konteks video.
Jika kamu tidak yakin tentang sesuatu, katakan dengan jujur tapi tetap berikan analisis terbaik."""


def extract_video_id(url: str) -> Optional[str]:
  value = (url or "").strip()
  for pattern in _VIDEO_ID_PATTERNS:
    match = pattern.search(value)
    if match:
      return match.group(1)
  return None


def watch_url(video_id: str) -> str:
  return f"https://www.youtube.com/watch?v={video_id}"


def embed_url(video_id: str) -> str:
  return f"https://www.youtube.com/embed/{video_id}"


def get_video_metadata(video_id: str) -> Optional[Dict[str, Any]]:
  try:
    resp = requests.get(YOUTUBE_OEMBED_URL,
                        params={"url": watch_url(video_id), "format": "json"},
                        timeout=HTTP_TIMEOUT_SECONDS)
  except requests.RequestException as exc:
    _log_debug(f"[YOUTUBE] oembed failed id={video_id}: {exc}")
    return None
  if not resp.ok:
    _log_debug(f"[YOUTUBE] oembed {resp.status_code} id={video_id}")
    return None
  try:
    data = resp.json()
  except ValueError:
    return None
  return data if isinstance(data, dict) else None


def get_video_description(video_id: str) -> Optional[str]:
  try:
    resp = requests.get(YOUTUBE_DESCRIPTION_URL,
                        params={"part": "snippet", "id": video_id},
                        timeout=HTTP_TIMEOUT_SECONDS)
    if not resp.ok:
      return None
    data = resp.json()
  except (requests.RequestException, ValueError) as exc:
    _log_debug(f"[YOUTUBE] description lookup failed id={video_id}: {exc}")
    return None
  items = data.get("items") if isinstance(data, dict) else None
  if not items or not isinstance(items[0], dict):
    return None
  snippet = items[0].get("snippet") or {}
  return snippet.get("description") or None


def build_video_context(video_id: str, metadata: Dict[str, Any],
                        description: Optional[str] = None) -> str:
  context = f"""
VIDEO YOUTUBE:
- Judul: {metadata.get('title')}
- Channel: {metadata.get('author_name')}
- URL: {watch_url(video_id)}
- Thumbnail: {metadata.get('thumbnail_url')}
"""
  if description:
    context += f"- Deskripsi:\n{description}\n"
  return context


def _language_name(language: Optional[str]) -> str:
  return "Indonesia" if (language or "id") == "id" else "Inggris"


def build_summary_prompt(action: str, context: str, language: Optional[str] = "id") -> str:
  lang = _language_name(language)
  if action == "keypoints":
    return f"""Dari video YouTube berikut, ekstrak poin-poin kunci:

{context}

Format jawaban HARUS seperti ini:

## 📌 Poin-Poin Kunci

### 1. [Judul Poin]
[Penjelasan singkat 1-2 kalimat]

### 2. [Judul Poin]
[Penjelasan singkat 1-2 kalimat]

### 3. [Judul Poin]
[Penjelasan singkat 1-2 kalimat]

[Lanjutkan sampai 5-7 poin]

## 🎬 Kesimpulan
[Satu paragraf kesimpulan utama dari video]

Gunakan bahasa {lang}. Buat poin-poin yang actionable dan mudah diingat."""

  if action == "explain":
    return f"""Jelaskan topik dari video YouTube berikut secara mendalam:

{context}

Format jawaban HARUS seperti ini:

## 📚 Penjelasan Topik

### Apa itu?
[Definisi atau penjelasan dasar topik]

### Mengapa Penting?
[Jelaskan relevansi dan pentingnya topik ini]

### Poin-Poin Penting
1. **[Poin]**: [Penjelasan]
2. **[Poin]**: [Penjelasan]
3. **[Poin]**: [Penjelasan]

### Contoh atau Aplikasi
[Berikan contoh konkret jika relevan]

### Tips atau Saran
[Berikan tips praktis terkait topik]

Gunakan bahasa {lang}. Jelaskan seolah-olah kamu expert di bidang ini."""

  return f"""Analisis video YouTube berikut dan berikan ringkasan yang terstruktur:

{context}

Format jawaban HARUS seperti ini:

## 📋 Ringkasan
[Berikan ringkasan singkat 2-3 kalimat tentang apa yang dibahas dalam video]

## 🎯 Poin Utama
- **Poin 1**: [Penjelasan singkat]
- **Poin 2**: [Penjelasan singkat]
- **Poin 3**: [Penjelasan singkat]
- **Poin 4**: [Penjelasan singkat jika ada]
- **Poin 5**: [Penjelasan singkat jika ada]

## 👤 Tentang Channel
[Info tentang creator/channel jika kamu tahu, atau skip jika tidak yakin]

## 💡 Insight Tambahan
[Konteks atau informasi relevan lainnya yang berguna]

Gunakan bahasa {lang} yang mudah dipahami. Jangan menambah section lain selain yang diminta."""


def metadata_payload(video_id: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
  return {
      "videoId": video_id,
      "title": metadata.get("title"),
      "author": metadata.get("author_name"),
      "authorUrl": metadata.get("author_url"),
      "thumbnail": metadata.get("thumbnail_url"),
      "embedUrl": embed_url(video_id),
  }
