from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from typing import Any, AsyncIterator, Callable, Dict, Iterator, List, Optional, Tuple

from google import genai
from google.genai import types as genai_types
from openai import AsyncOpenAI

from . import config
from .utils import _log_debug

logger = logging.getLogger(__name__)

_gemini_client: Any = None
_gemini_api_key_cached: str = ""
_openai_client: Optional[AsyncOpenAI] = None

_STREAM_DONE = object()


class LLMUnavailable(RuntimeError):
  """No provider key configured for the requested model."""


def _print_raw_output(*, kind: str, provider: str, model: str, raw_output: str) -> None:
  if not config.LLM_DEBUG:
    return
  print(f"[LLM RAW] kind={kind} provider={provider} model={model}", flush=True)
  print(raw_output if raw_output else "(empty)", flush=True)
  print("[LLM RAW END]", flush=True)


def provider_for_model(model: str) -> str:
  if config.LLM_PROVIDER in ("openai", "gemini"):
    return config.LLM_PROVIDER
  model_name = str(model or "").strip().lower()
  if model_name.startswith("gemini") or model_name.startswith("models/gemini"):
    if config.GEMINI_API_KEY or not config.OPENAI_API_KEY:
      return "gemini"
    return "openai"
  return "openai"


def _canonical_gemini_model(model: str) -> str:
  model_name = str(model or "").strip()
  if not model_name:
    return f"models/{config.DEFAULT_CHAT_MODEL}"
  if model_name.startswith("models/"):
    return model_name
  return f"models/{model_name}"


def _openai_model_for(model: str) -> str:
  if str(model or "").lower().startswith(("gemini", "models/gemini")):
    return config.OPENAI_FALLBACK_MODEL
  return model


def _gemini_client_or_raise() -> Any:
  global _gemini_client, _gemini_api_key_cached
  api_key = config.GEMINI_API_KEY
  if not api_key:
    raise LLMUnavailable("GEMINI_API_KEY is not set")
  if _gemini_client is None or _gemini_api_key_cached != api_key:
    _gemini_client = genai.Client(api_key=api_key)
    _gemini_api_key_cached = api_key
  return _gemini_client


def _openai_client_or_raise() -> AsyncOpenAI:
  global _openai_client
  if not config.OPENAI_API_KEY:
    raise LLMUnavailable("OPENAI_API_KEY is not set")
  if _openai_client is None:
    _openai_client = AsyncOpenAI(api_key=config.OPENAI_API_KEY)
  return _openai_client


# -------------------------
# Message conversion
# -------------------------
def split_data_url(value: str) -> Tuple[str, bytes]:
  raw = (value or "").strip()
  mime_type = "image/jpeg"
  if raw.startswith("data:") and "," in raw:
    header, raw = raw.split(",", 1)
    mime_type = header[5:].split(";", 1)[0] or mime_type
  try:
    return mime_type, base64.b64decode(raw)
  except (binascii.Error, ValueError) as exc:
    raise ValueError("invalid image payload") from exc


def _as_data_url(value: str) -> str:
  if value.startswith("data:"):
    return value
  return f"data:image/jpeg;base64,{value}"


def _iter_parts(content: Any) -> Iterator[Dict[str, Any]]:
  if isinstance(content, str):
    yield {"type": "text", "text": content}
    return
  if isinstance(content, list):
    for item in content:
      if isinstance(item, str):
        yield {"type": "text", "text": item}
      elif isinstance(item, dict):
        yield item


def _gemini_contents(messages: List[Dict[str, Any]]) -> List[Any]:
  contents: List[Any] = []
  for msg in messages:
    role = "model" if msg.get("role") == "assistant" else "user"
    parts: List[Any] = []
    for part in _iter_parts(msg.get("content")):
      if part.get("type") == "image" and isinstance(part.get("image"), str):
        mime_type, data = split_data_url(part["image"])
        parts.append(genai_types.Part.from_bytes(data=data, mime_type=mime_type))
      else:
        text = part.get("text")
        if isinstance(text, str) and text:
          parts.append(genai_types.Part.from_text(text=text))
    if parts:
      contents.append(genai_types.Content(role=role, parts=parts))
  return contents


def _openai_messages(system_prompt: Optional[str],
                     messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
  out: List[Dict[str, Any]] = []
  if system_prompt:
    out.append({"role": "system", "content": system_prompt})
  for msg in messages:
    role = "assistant" if msg.get("role") == "assistant" else "user"
    content = msg.get("content")
    if isinstance(content, str):
      out.append({"role": role, "content": content})
      continue
    parts: List[Dict[str, Any]] = []
    for part in _iter_parts(content):
      if part.get("type") == "image" and isinstance(part.get("image"), str):
        parts.append({"type": "image_url",
                      "image_url": {"url": _as_data_url(part["image"])}})
      elif isinstance(part.get("text"), str):
        parts.append({"type": "text", "text": part["text"]})
    out.append({"role": role, "content": parts})
  return out


def _gemini_config(system_prompt: Optional[str],
                   use_search_grounding: bool = False,
                   max_output_tokens: Optional[int] = None) -> Any:
  kwargs: Dict[str, Any] = {}
  if system_prompt:
    kwargs["system_instruction"] = system_prompt
  if use_search_grounding:
    kwargs["tools"] = [genai_types.Tool(google_search=genai_types.GoogleSearch())]
  if isinstance(max_output_tokens, int) and max_output_tokens > 0:
    kwargs["max_output_tokens"] = max_output_tokens
  return genai_types.GenerateContentConfig(**kwargs) if kwargs else None


def _gemini_chunk_text(chunk: Any) -> str:
  text = getattr(chunk, "text", None)
  if isinstance(text, str):
    return text
  candidates = getattr(chunk, "candidates", None)
  if not isinstance(candidates, list):
    return ""
  collected: List[str] = []
  for candidate in candidates:
    content = getattr(candidate, "content", None)
    parts = getattr(content, "parts", None) if content is not None else None
    if not isinstance(parts, list):
      continue
    for part in parts:
      text_val = getattr(part, "text", None)
      if isinstance(text_val, str):
        collected.append(text_val)
  return "".join(collected)


def _extract_stream_delta_text(delta_content: Any) -> str:
  if isinstance(delta_content, str):
    return delta_content
  if isinstance(delta_content, list):
    chunks: List[str] = []
    for item in delta_content:
      text_val = item.get("text") if isinstance(item, dict) else getattr(item, "text", None)
      if isinstance(text_val, str):
        chunks.append(text_val)
    return "".join(chunks)
  return ""


# -------------------------
# Streaming
# -------------------------
async def _iterate_in_thread(factory: Callable[[], Iterator[str]]) -> AsyncIterator[str]:
  """Drive a blocking iterator in a worker thread and yield its items here."""
  loop = asyncio.get_running_loop()
  queue: asyncio.Queue = asyncio.Queue()

  def _run() -> None:
    try:
      for piece in factory():
        loop.call_soon_threadsafe(queue.put_nowait, piece)
    except Exception as exc:
      loop.call_soon_threadsafe(queue.put_nowait, exc)
    finally:
      loop.call_soon_threadsafe(queue.put_nowait, _STREAM_DONE)

  worker = asyncio.ensure_future(asyncio.to_thread(_run))
  while True:
    item = await queue.get()
    if item is _STREAM_DONE:
      break
    if isinstance(item, Exception):
      raise item
    yield item
  await worker


def _gemini_stream_sync(model: str,
                        system_prompt: Optional[str],
                        messages: List[Dict[str, Any]],
                        use_search_grounding: bool) -> Iterator[str]:
  client = _gemini_client_or_raise()
  stream = client.models.generate_content_stream(
      model=_canonical_gemini_model(model),
      contents=_gemini_contents(messages),
      config=_gemini_config(system_prompt, use_search_grounding),
  )
  for chunk in stream:
    piece = _gemini_chunk_text(chunk)
    if piece:
      yield piece


async def _openai_stream(model: str,
                         system_prompt: Optional[str],
                         messages: List[Dict[str, Any]]) -> AsyncIterator[str]:
  client = _openai_client_or_raise()
  stream = await client.chat.completions.create(
      model=_openai_model_for(model),
      messages=_openai_messages(system_prompt, messages),
      stream=True,
  )
  async for event in stream:
    choices = getattr(event, "choices", None)
    if not choices:
      continue
    delta = getattr(choices[0], "delta", None)
    if delta is None:
      continue
    piece = _extract_stream_delta_text(getattr(delta, "content", None))
    if piece:
      yield piece


def ensure_available(model: str) -> str:
  provider = provider_for_model(model)
  if provider == "gemini":
    _gemini_client_or_raise()
  else:
    _openai_client_or_raise()
  return provider


async def stream_chat(*,
                      model: str,
                      system_prompt: Optional[str],
                      messages: List[Dict[str, Any]],
                      use_search_grounding: bool = False) -> AsyncIterator[str]:
  provider = provider_for_model(model)
  _log_debug(f"[LLM] stream provider={provider} model={model} "
             f"messages={len(messages)} grounding={use_search_grounding}")
  collected: List[str] = []
  if provider == "gemini":
    _gemini_client_or_raise()
    source = _iterate_in_thread(lambda: _gemini_stream_sync(
        model, system_prompt, messages, use_search_grounding))
  else:
    if use_search_grounding:
      logger.info("search grounding is not available for provider=%s", provider)
    source = _openai_stream(model, system_prompt, messages)
  async for piece in source:
    collected.append(piece)
    yield piece
  _print_raw_output(kind="stream", provider=provider, model=model,
                    raw_output="".join(collected))


def _gemini_text_sync(model: str, system_prompt: Optional[str], prompt: str) -> str:
  client = _gemini_client_or_raise()
  response = client.models.generate_content(
      model=_canonical_gemini_model(model),
      contents=prompt,
      config=_gemini_config(system_prompt),
  )
  return _gemini_chunk_text(response).strip()


async def generate_text(*, model: str, system_prompt: Optional[str], prompt: str) -> str:
  provider = provider_for_model(model)
  if provider == "gemini":
    _gemini_client_or_raise()
    text = await asyncio.to_thread(_gemini_text_sync, model, system_prompt, prompt)
  else:
    client = _openai_client_or_raise()
    completion = await client.chat.completions.create(
        model=_openai_model_for(model),
        messages=_openai_messages(system_prompt, [{"role": "user", "content": prompt}]),
    )
    text = _extract_stream_delta_text(completion.choices[0].message.content).strip()
  _print_raw_output(kind="text", provider=provider, model=model, raw_output=text)
  return text
