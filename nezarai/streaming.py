"""Response framing for streamed model output.

The chat UI consumes the AI SDK "data stream" protocol: one part per line,
``<code>:<json>\\n``. Only the parts this service emits are modelled here:

- ``0`` text delta (JSON string)
- ``3`` error message (JSON string)
- ``d`` finish message (JSON object with ``finishReason``)
"""
from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Dict, Optional

from fastapi.responses import StreamingResponse

logger = logging.getLogger(__name__)

DATA_STREAM_HEADERS = {
    "X-Vercel-AI-Data-Stream": "v1",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}
STREAM_ERROR_MESSAGE = "Terjadi kesalahan saat memproses permintaan"


def format_stream_part(code: str, value: Any) -> str:
  return f"{code}:{json.dumps(value, ensure_ascii=False)}\n"


def text_part(text: str) -> str:
  return format_stream_part("0", text)


def error_part(message: str) -> str:
  return format_stream_part("3", message)


def finish_part(reason: str = "stop", usage: Optional[Dict[str, Any]] = None) -> str:
  payload: Dict[str, Any] = {"finishReason": reason}
  if usage is not None:
    payload["usage"] = usage
  return format_stream_part("d", payload)


async def frame_data_stream(chunks: AsyncIterator[str],
                            label: str = "stream") -> AsyncIterator[str]:
  try:
    async for piece in chunks:
      if piece:
        yield text_part(piece)
  except Exception:
    logger.exception("%s failed mid-stream", label)
    yield error_part(STREAM_ERROR_MESSAGE)
    yield finish_part("error")
    return
  yield finish_part("stop")


def data_stream_response(chunks: AsyncIterator[str], label: str = "stream") -> StreamingResponse:
  return StreamingResponse(
      frame_data_stream(chunks, label=label),
      media_type="text/plain; charset=utf-8",
      headers=DATA_STREAM_HEADERS,
  )
