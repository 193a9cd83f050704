"""Text extraction for chat attachments.

Uploaded files are turned into plain text that is appended to the outgoing
prompt. Only text-like formats are decoded; PDFs get a short placeholder note
because their text is not extracted server-side.
"""
from __future__ import annotations

import base64
import binascii
from typing import Optional

from pydantic import BaseModel

from .config import MAX_FILE_SIZE

SUPPORTED_FILE_TYPES = {
    # Text files
    "text/plain": {"extension": ".txt", "name": "Text"},
    "text/markdown": {"extension": ".md", "name": "Markdown"},
    "text/csv": {"extension": ".csv", "name": "CSV"},
    # Code files
    "text/javascript": {"extension": ".js", "name": "JavaScript"},
    "application/javascript": {"extension": ".js", "name": "JavaScript"},
    "text/typescript": {"extension": ".ts", "name": "TypeScript"},
    "application/typescript": {"extension": ".ts", "name": "TypeScript"},
    "text/html": {"extension": ".html", "name": "HTML"},
    "text/css": {"extension": ".css", "name": "CSS"},
    "application/json": {"extension": ".json", "name": "JSON"},
    "application/xml": {"extension": ".xml", "name": "XML"},
    "text/xml": {"extension": ".xml", "name": "XML"},
    # Documents
    "application/pdf": {"extension": ".pdf", "name": "PDF"},
}

SUPPORTED_EXTENSIONS = [
    ".txt", ".md", ".csv", ".json", ".xml",
    ".js", ".jsx", ".ts", ".tsx", ".html", ".css",
    ".py", ".java", ".cpp", ".c", ".h", ".hpp",
    ".rb", ".go", ".rs", ".php", ".sql",
    ".yaml", ".yml", ".toml", ".ini", ".env",
    ".sh", ".bat", ".ps1",
    ".pdf",
]

FILE_ICONS = {
    "pdf": "file-text",
    "txt": "file-text",
    "md": "file-text",
    "json": "braces",
    "csv": "table",
    "xml": "braces",
    "html": "globe",
    "css": "palette",
    "js": "zap",
    "jsx": "atom",
    "ts": "gem",
    "tsx": "atom",
    "py": "snake",
    "java": "coffee",
    "cpp": "cog",
    "c": "cog",
    "go": "gopher",
    "rs": "crab",
    "rb": "gem",
    "php": "elephant",
    "sql": "database",
    "yaml": "braces",
    "yml": "braces",
    "sh": "terminal",
    "bat": "terminal",
}


class ProcessedFile(BaseModel):
  name: str
  type: str
  size: int
  content: str = ""
  error: Optional[str] = None


def _extension(name: str) -> str:
  if "." not in (name or ""):
    return ""
  return name.rsplit(".", 1)[-1].lower()


def is_file_supported(name: str, mime_type: Optional[str]) -> bool:
  if mime_type and mime_type in SUPPORTED_FILE_TYPES:
    return True
  return f".{_extension(name)}" in SUPPORTED_EXTENSIONS


def _is_pdf(name: str, mime_type: Optional[str]) -> bool:
  return mime_type == "application/pdf" or (name or "").lower().endswith(".pdf")


def format_file_size(num_bytes: int) -> str:
  if num_bytes < 1024:
    return f"{num_bytes} B"
  if num_bytes < 1024 * 1024:
    return f"{num_bytes / 1024:.1f} KB"
  return f"{num_bytes / (1024 * 1024):.1f} MB"


def file_icon(name: str) -> str:
  return FILE_ICONS.get(_extension(name), "paperclip")


def _pdf_placeholder(name: str, size: int) -> str:
  return (f"[Dokumen PDF: {name}]\n\n"
          f"Ukuran: {size / 1024:.2f} KB\n\n"
          "Catatan: Untuk analisis PDF yang lebih mendalam, konten teks tidak dapat "
          "diekstrak secara penuh. Silakan copy-paste teks penting dari PDF jika diperlukan.")


def process_file(name: str, mime_type: Optional[str], data: bytes) -> ProcessedFile:
  result = ProcessedFile(name=name, type=mime_type or "", size=len(data))

  if result.size > MAX_FILE_SIZE:
    result.error = f"File terlalu besar. Maksimal {MAX_FILE_SIZE // (1024 * 1024)}MB"
    return result

  if not is_file_supported(name, mime_type):
    result.error = "Tipe file tidak didukung"
    return result

  if _is_pdf(name, mime_type):
    result.content = _pdf_placeholder(name, result.size)
    return result

  try:
    text = data.decode("utf-8")
  except UnicodeDecodeError:
    result.error = "Gagal membaca file"
    return result

  ext = _extension(name)
  result.content = f"[File: {name}]\n```{ext}\n{text}\n```"
  return result


def decode_base64_payload(raw: str) -> bytes:
  """Accept plain base64 or a ``data:...;base64,`` URL."""
  payload = (raw or "").strip()
  if payload.startswith("data:") and "," in payload:
    payload = payload.split(",", 1)[1]
  try:
    return base64.b64decode(payload, validate=True)
  except (binascii.Error, ValueError) as exc:
    raise ValueError("invalid base64 payload") from exc
