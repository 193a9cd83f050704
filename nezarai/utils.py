from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional
import hashlib
import secrets

from fastapi import HTTPException

from .config import (
    LLM_DEBUG,
    JAKARTA,
    MAX_IMAGE_ATTACHMENTS,
    MAX_IMAGE_DATA_URL_CHARS,
    IMAGE_TOO_LARGE_MESSAGE,
)

ALLOWED_IMAGE_PREFIXES = (
    "data:image/png;base64,",
    "data:image/jpeg;base64,",
    "data:image/webp;base64,",
    "data:image/gif;base64,",
)


def _log_debug(message: str) -> None:
    if LLM_DEBUG:
        print(message, flush=True)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def now_local() -> datetime:
    return datetime.now(JAKARTA)


def generate_id() -> str:
    return secrets.token_hex(8)


def hash_key(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def parse_iso_timestamp(value: Optional[str]) -> datetime:
    """Parse ISO-8601 (with optional trailing Z); unparsable values sort oldest."""
    if isinstance(value, str) and value.strip():
        candidate = value.strip()
        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(candidate)
        except ValueError:
            dt = None
        if dt is not None:
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            return dt
    return datetime.min.replace(tzinfo=timezone.utc)


def _validate_image_payload(images: Optional[List[str]]) -> List[str]:
    if not images:
        return []

    cleaned: List[str] = []
    for raw in images:
        if not isinstance(raw, str):
            continue
        data = raw.strip()
        if not data:
            continue
        if not any(data.startswith(prefix) for prefix in ALLOWED_IMAGE_PREFIXES):
            raise HTTPException(status_code=400,
                                detail="Gambar harus berformat data:image/...;base64.")
        if len(data) > MAX_IMAGE_DATA_URL_CHARS:
            raise HTTPException(status_code=400, detail=IMAGE_TOO_LARGE_MESSAGE)
        cleaned.append(data)
        if len(cleaned) >= MAX_IMAGE_ATTACHMENTS:
            break
    return cleaned
