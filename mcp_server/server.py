from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional, Tuple

import requests
from mcp.server.fastmcp import FastMCP

BACKEND_BASE_URL = os.getenv("BACKEND_BASE_URL", "http://localhost:8000").rstrip("/")
BACKEND_API_BASE = os.getenv("BACKEND_API_BASE", "/api").rstrip("/")
DEFAULT_GCAL_SESSION_ID = os.getenv("GCAL_SESSION_ID", "").strip()
DEFAULT_SESSION_TOKEN = os.getenv("NEZARAI_SESSION_TOKEN", "").strip()
REQUEST_TIMEOUT = float(os.getenv("MCP_BACKEND_TIMEOUT", "15"))
DEBUG_MODE = os.getenv("MCP_DEBUG", "0").strip() in ("1", "true", "True", "yes")
LOG_REQUESTS = os.getenv("MCP_LOG_REQUESTS", "0").strip() in ("1", "true", "True", "yes")

mcp = FastMCP("nezarai")


def _log_tool_call(tool_name: str, input_data: Dict[str, Any], output_data: Dict[str, Any]) -> None:
  """Print tool input/output to the terminal when MCP_DEBUG is on."""
  if not DEBUG_MODE:
    return
  print(f"\n{'='*80}")
  print(f"Tool: {tool_name}")
  print(f"{'='*80}")
  print("input:")
  print(json.dumps(input_data, indent=2, ensure_ascii=False))
  print("\noutput:")
  print(json.dumps(output_data, indent=2, ensure_ascii=False))
  print(f"{'='*80}\n")


class RequestLoggerMiddleware:
  def __init__(self, app: Any):
    self.app = app

  async def __call__(self, scope: Dict[str, Any], receive: Any, send: Any) -> None:
    if scope.get("type") == "http" and LOG_REQUESTS:
      headers = self._decode_headers(scope.get("headers") or [])
      for secret in ("authorization", "cookie"):
        if secret in headers:
          headers[secret] = "(redacted)"
      print(f"[MCP] {scope.get('method', '')} {scope.get('path', '')} "
            f"{json.dumps(headers, ensure_ascii=False)}", flush=True)
    await self.app(scope, receive, send)

  def _decode_headers(self, raw_headers: List[Tuple[bytes, bytes]]) -> Dict[str, str]:
    return {k.decode("latin-1").lower(): v.decode("latin-1") for k, v in raw_headers}


def _api_path(path: str) -> str:
  return f"{BACKEND_API_BASE}/{path.lstrip('/')}"


def _headers(session_token: Optional[str], gcal_session_id: Optional[str]) -> Dict[str, str]:
  headers: Dict[str, str] = {}
  token = (session_token or DEFAULT_SESSION_TOKEN).strip()
  if token:
    headers["X-Session-Token"] = token
  sid = (gcal_session_id or DEFAULT_GCAL_SESSION_ID).strip()
  if sid:
    headers["Cookie"] = f"gcal_session={sid}"
  return headers


def _request(method: str,
             path: str,
             params: Optional[Dict[str, Any]] = None,
             payload: Optional[Any] = None,
             session_token: Optional[str] = None,
             gcal_session_id: Optional[str] = None) -> Dict[str, Any]:
  url = f"{BACKEND_BASE_URL}{path}"
  try:
    resp = requests.request(method,
                            url,
                            params=params,
                            json=payload,
                            headers=_headers(session_token, gcal_session_id),
                            timeout=REQUEST_TIMEOUT)
  except requests.RequestException as exc:
    return {
        "ok": False,
        "code": "request_failed",
        "message": f"Backend request failed: {exc}",
    }

  try:
    data = resp.json()
  except ValueError:
    data = {"raw": resp.text}

  if resp.status_code >= 400:
    return {
        "ok": False,
        "code": "backend_error",
        "status": resp.status_code,
        "error": data,
    }
  return {"ok": True, "data": data}


def _drop_none(params: Dict[str, Any]) -> Dict[str, Any]:
  return {k: v for k, v in params.items() if v is not None}


@mcp.tool(name="personas.list")
def personas_list() -> Dict[str, Any]:
  result = _request("GET", _api_path("/personas"))
  _log_tool_call("personas.list", {}, result)
  return result


@mcp.tool(name="templates.list")
def templates_list(category: Optional[str] = None) -> Dict[str, Any]:
  params = _drop_none({"category": category})
  result = _request("GET", _api_path("/templates"), params=params)
  _log_tool_call("templates.list", params, result)
  return result


@mcp.tool(name="schedule.parse")
def schedule_parse(text: str) -> Dict[str, Any]:
  if not text or not text.strip():
    result = {
        "ok": False,
        "code": "invalid_request",
        "message": "text is required.",
    }
    _log_tool_call("schedule.parse", {"text": text}, result)
    return result
  result = _request("POST", _api_path("/calendar/parse"), payload={"text": text})
  _log_tool_call("schedule.parse", {"text": text}, result)
  return result


@mcp.tool(name="youtube.metadata")
def youtube_metadata(url: str) -> Dict[str, Any]:
  result = _request("GET", _api_path("/youtube"), params={"url": url})
  _log_tool_call("youtube.metadata", {"url": url}, result)
  return result


@mcp.tool(name="github.metadata")
def github_metadata(url: str) -> Dict[str, Any]:
  result = _request("GET", _api_path("/github"), params={"url": url})
  _log_tool_call("github.metadata", {"url": url}, result)
  return result


@mcp.tool(name="calendar.list_events")
def calendar_list_events(time_min: Optional[str] = None,
                         time_max: Optional[str] = None,
                         max_results: Optional[int] = None,
                         query: Optional[str] = None,
                         session_id: Optional[str] = None) -> Dict[str, Any]:
  params = _drop_none({
      "timeMin": time_min,
      "timeMax": time_max,
      "maxResults": max_results,
      "q": query,
  })
  result = _request("GET", _api_path("/calendar"), params=params,
                    gcal_session_id=session_id)
  _log_tool_call("calendar.list_events", params, result)
  return result


@mcp.tool(name="calendar.suggest_free_slots")
def calendar_suggest_free_slots(session_id: Optional[str] = None) -> Dict[str, Any]:
  listed = _request("GET", _api_path("/calendar"), gcal_session_id=session_id)
  if not listed.get("ok"):
    _log_tool_call("calendar.suggest_free_slots", {}, listed)
    return listed
  events = (listed.get("data") or {}).get("events") or []
  result = _request("POST", _api_path("/calendar/suggestions"), payload={"events": events})
  _log_tool_call("calendar.suggest_free_slots", {"events": len(events)}, result)
  return result


if __name__ == "__main__":
  import uvicorn

  host = os.getenv("MCP_HOST", "0.0.0.0")
  port = int(os.getenv("MCP_PORT", "8001"))
  app = mcp.streamable_http_app()
  if LOG_REQUESTS:
    app = RequestLoggerMiddleware(app)
  uvicorn.run(app, host=host, port=port)
