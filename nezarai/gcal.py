from __future__ import annotations

import json
import pathlib
import secrets
import time
import urllib.parse
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import requests
from fastapi import Request, Response

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request as GoogleRequest
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .config import (
    GOOGLE_CLIENT_ID,
    GOOGLE_CLIENT_SECRET,
    GOOGLE_REDIRECT_URI,
    GOOGLE_CALENDAR_ID,
    GCAL_SCOPES,
    GCAL_DEFAULT_REMINDERS,
    GOOGLE_TOKEN_DIR,
    GCAL_SESSION_COOKIE_NAME,
    SESSION_COOKIE_MAX_AGE_SECONDS,
    OAUTH_STATE_MAX_AGE_SECONDS,
    COOKIE_SECURE,
    FRONTEND_BASE_URL,
    DEFAULT_TIMEZONE,
    JAKARTA,
    HTTP_TIMEOUT_SECONDS,
)
from .utils import _log_debug, hash_key

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"

oauth_state_store: Dict[str, Dict[str, Any]] = {}


class CalendarAuthError(RuntimeError):
  """The Google access token is missing, expired or was rejected."""


# -------------------------
# Session / cookie helpers
# -------------------------
def is_gcal_configured() -> bool:
  return bool(GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET)


def _normalize_session_id(raw: Optional[str]) -> Optional[str]:
  if not isinstance(raw, str):
    return None
  value = raw.strip()
  if not value or len(value) > 512:
    return None
  return value


def _get_session_id(request: Request) -> Optional[str]:
  return _normalize_session_id(request.cookies.get(GCAL_SESSION_COOKIE_NAME))


def _new_session_id() -> str:
  return secrets.token_urlsafe(32)


def _new_oauth_state() -> str:
  return secrets.token_urlsafe(16)


def _store_oauth_state(state_value: str,
                       session_id: str,
                       redirect_uri: Optional[str] = None) -> None:
  if not state_value or not session_id:
    return
  entry: Dict[str, Any] = {
      "session_id": session_id,
      "created_at": time.time(),
  }
  if redirect_uri:
    entry["redirect_uri"] = redirect_uri
  oauth_state_store[state_value] = entry


def _pop_oauth_state(state_value: Optional[str]) -> Optional[Dict[str, Any]]:
  if not state_value:
    return None
  entry = oauth_state_store.pop(state_value, None)
  if not entry:
    return None
  created_at = entry.get("created_at")
  if created_at and (time.time() - float(created_at)) > OAUTH_STATE_MAX_AGE_SECONDS:
    return None
  return entry


def _set_cookie(response: Response,
                name: str,
                value: str,
                max_age: Optional[int] = None) -> None:
  samesite_value = "none" if COOKIE_SECURE else "lax"
  response.set_cookie(name,
                      value,
                      httponly=True,
                      samesite=samesite_value,
                      secure=COOKIE_SECURE,
                      max_age=max_age,
                      path="/")


def _delete_cookie(response: Response, name: str) -> None:
  response.delete_cookie(name, path="/")


def _set_session_cookie(response: Response, session_id: str) -> None:
  _set_cookie(response,
              GCAL_SESSION_COOKIE_NAME,
              session_id,
              max_age=SESSION_COOKIE_MAX_AGE_SECONDS)


def _frontend_url(path: str) -> str:
  if not FRONTEND_BASE_URL:
    return path
  if not path.startswith("/"):
    path = f"/{path}"
  return f"{FRONTEND_BASE_URL}{path}"


def _request_base_url(request: Request) -> str:
  forwarded_proto = request.headers.get("x-forwarded-proto")
  forwarded_host = request.headers.get("x-forwarded-host")
  proto = forwarded_proto or request.url.scheme
  host = forwarded_host or request.headers.get("host") or request.url.netloc
  return f"{proto}://{host}"


def _resolve_google_redirect_uri(request: Request) -> str:
  if GOOGLE_REDIRECT_URI:
    return GOOGLE_REDIRECT_URI
  return f"{_request_base_url(request)}/auth/google/callback"


# -------------------------
# Token store
# -------------------------
def _session_token_path(session_id: str) -> pathlib.Path:
  return GOOGLE_TOKEN_DIR / f"token_{hash_key(session_id)}.json"


def load_gcal_token_for_session(session_id: Optional[str]) -> Optional[Dict[str, Any]]:
  if not session_id:
    return None
  path = _session_token_path(session_id)
  if not path.exists():
    return None
  try:
    with path.open("r", encoding="utf-8") as f:
      data = json.load(f)
  except (OSError, ValueError) as exc:
    _log_debug(f"[GCAL] token file unreadable: {exc}")
    return None
  return data if isinstance(data, dict) else None


def load_gcal_token_for_request(request: Request) -> Optional[Dict[str, Any]]:
  return load_gcal_token_for_session(_get_session_id(request))


def save_gcal_token_for_session(session_id: str, data: Dict[str, Any]) -> None:
  if not session_id:
    return
  GOOGLE_TOKEN_DIR.mkdir(parents=True, exist_ok=True)
  path = _session_token_path(session_id)
  path.write_text(json.dumps(data, ensure_ascii=False, indent=2),
                  encoding="utf-8")


def clear_gcal_token_for_session(session_id: Optional[str]) -> None:
  if not session_id:
    return
  path = _session_token_path(session_id)
  if path.exists():
    path.unlink()


# -------------------------
# OAuth flow
# -------------------------
def build_login_url(redirect_uri: str, state_value: str, prompt: Optional[str] = None) -> str:
  params = {
      "client_id": GOOGLE_CLIENT_ID,
      "redirect_uri": redirect_uri,
      "response_type": "code",
      "scope": " ".join(GCAL_SCOPES),
      "access_type": "offline",
      "state": state_value,
  }
  if prompt:
    params["prompt"] = prompt
  return f"{GOOGLE_AUTH_URL}?{urllib.parse.urlencode(params)}"


def exchange_code_for_token(code: str, redirect_uri: str,
                            previous: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
  resp = requests.post(GOOGLE_TOKEN_URL,
                       data={
                           "code": code,
                           "client_id": GOOGLE_CLIENT_ID,
                           "client_secret": GOOGLE_CLIENT_SECRET,
                           "redirect_uri": redirect_uri,
                           "grant_type": "authorization_code",
                       },
                       timeout=HTTP_TIMEOUT_SECONDS)
  if not resp.ok:
    _log_debug(f"[GCAL] token exchange failed: {resp.status_code} {resp.text}")
    raise CalendarAuthError(f"Token exchange failed: {resp.status_code}")

  token_json = resp.json()
  access_token = token_json.get("access_token")
  refresh_token = token_json.get("refresh_token") or (previous or {}).get("refresh_token")
  if not access_token:
    raise CalendarAuthError("access_token missing from token response")

  expiry_dt = datetime.now(timezone.utc) + timedelta(
      seconds=int(token_json.get("expires_in") or 0))
  return {
      "token": access_token,
      "refresh_token": refresh_token,
      "token_uri": GOOGLE_TOKEN_URL,
      "client_id": GOOGLE_CLIENT_ID,
      "client_secret": GOOGLE_CLIENT_SECRET,
      "scopes": GCAL_SCOPES,
      # google-auth compares against a naive UTC expiry
      "expiry": expiry_dt.replace(tzinfo=None).isoformat() + "Z",
  }


def get_google_userinfo(access_token: str) -> Optional[Dict[str, Any]]:
  try:
    response = requests.get(GOOGLE_USERINFO_URL,
                            headers={"Authorization": f"Bearer {access_token}"},
                            timeout=5)
  except requests.RequestException:
    return None
  if not response.ok:
    return None
  try:
    payload = response.json()
  except ValueError:
    return None
  return payload if isinstance(payload, dict) else None


# -------------------------
# Credentials / service
# -------------------------
def _bearer_token(request: Request) -> Optional[str]:
  header = request.headers.get("authorization") or ""
  if not header.startswith("Bearer "):
    return None
  token = header[len("Bearer "):].strip()
  return token or None


def _session_credentials(session_id: str) -> Optional[Credentials]:
  token_data = load_gcal_token_for_session(session_id)
  if not token_data:
    return None
  if not token_data.get("refresh_token"):
    return Credentials(token=token_data.get("token"))
  creds = Credentials.from_authorized_user_info(token_data, GCAL_SCOPES)
  if creds.expired and creds.refresh_token:
    try:
      creds.refresh(GoogleRequest())
    except RefreshError as exc:
      raise CalendarAuthError("Token expired. Please re-authenticate.") from exc
    save_gcal_token_for_session(session_id, json.loads(creds.to_json()))
  return creds


def credentials_for_request(request: Request) -> Optional[Credentials]:
  token = _bearer_token(request)
  if token:
    return Credentials(token=token)
  session_id = _get_session_id(request)
  if not session_id:
    return None
  return _session_credentials(session_id)


def get_calendar_service(creds: Credentials):
  return build("calendar", "v3", credentials=creds, cache_discovery=False)


def is_unauthorized(exc: Exception) -> bool:
  if isinstance(exc, (CalendarAuthError, RefreshError)):
    return True
  if isinstance(exc, HttpError):
    return getattr(exc.resp, "status", None) == 401
  return False


# -------------------------
# Event helpers
# -------------------------
def to_utc_iso(value: str) -> str:
  """Normalize an ISO timestamp to UTC; naive values are read as local time."""
  candidate = (value or "").strip()
  if candidate.endswith("Z"):
    candidate = candidate[:-1] + "+00:00"
  dt = datetime.fromisoformat(candidate)
  if dt.tzinfo is None:
    dt = dt.replace(tzinfo=JAKARTA)
  return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _time_block(value: Any) -> Dict[str, Any]:
  data = value if isinstance(value, dict) else {}
  return {
      "dateTime": data.get("dateTime"),
      "date": data.get("date"),
      "timeZone": data.get("timeZone"),
  }


def format_event(event: Dict[str, Any]) -> Dict[str, Any]:
  attendees = event.get("attendees")
  return {
      "id": event.get("id"),
      "summary": event.get("summary"),
      "description": event.get("description"),
      "location": event.get("location"),
      "start": _time_block(event.get("start")),
      "end": _time_block(event.get("end")),
      "colorId": event.get("colorId"),
      "htmlLink": event.get("htmlLink"),
      "title": event.get("summary"),
      "link": event.get("htmlLink"),
      "status": event.get("status"),
      "attendees": [{
          "email": a.get("email"),
          "name": a.get("displayName"),
          "status": a.get("responseStatus"),
      } for a in attendees if isinstance(a, dict)] if isinstance(attendees, list) else None,
  }


def format_written_event(event: Dict[str, Any]) -> Dict[str, Any]:
  return {
      "id": event.get("id"),
      "title": event.get("summary"),
      "link": event.get("htmlLink"),
      "start": (event.get("start") or {}).get("dateTime"),
      "end": (event.get("end") or {}).get("dateTime"),
  }


def format_patched_event(event: Dict[str, Any]) -> Dict[str, Any]:
  return {
      "id": event.get("id"),
      "summary": event.get("summary"),
      "description": event.get("description"),
      "location": event.get("location"),
      "start": event.get("start"),
      "end": event.get("end"),
      "htmlLink": event.get("htmlLink"),
  }


def list_events(service,
                time_min: str,
                time_max: str,
                max_results: int,
                query: Optional[str] = None) -> List[Dict[str, Any]]:
  kwargs: Dict[str, Any] = {
      "calendarId": GOOGLE_CALENDAR_ID,
      "timeMin": time_min,
      "timeMax": time_max,
      "maxResults": max_results,
      "singleEvents": True,
      "orderBy": "startTime",
  }
  if query:
    kwargs["q"] = query
  result = service.events().list(**kwargs).execute()
  return [format_event(item) for item in result.get("items", []) or []]


def build_event_body(summary: str,
                     start: str,
                     end: Optional[str] = None,
                     description: Optional[str] = None,
                     location: Optional[str] = None,
                     attendees: Optional[List[str]] = None,
                     start_tz: Optional[str] = None,
                     end_tz: Optional[str] = None) -> Dict[str, Any]:
  start_utc = to_utc_iso(start)
  if end:
    end_utc = to_utc_iso(end)
  else:
    start_dt = datetime.fromisoformat(start_utc.replace("Z", "+00:00"))
    end_utc = (start_dt + timedelta(hours=1)).isoformat().replace("+00:00", "Z")
  return {
      "summary": summary,
      "description": description or "",
      "location": location or "",
      "start": {"dateTime": start_utc, "timeZone": start_tz or DEFAULT_TIMEZONE},
      "end": {"dateTime": end_utc, "timeZone": end_tz or DEFAULT_TIMEZONE},
      "attendees": [{"email": email} for email in (attendees or [])],
      "reminders": {
          "useDefault": False,
          "overrides": [dict(r) for r in GCAL_DEFAULT_REMINDERS],
      },
  }


def create_event(service, body: Dict[str, Any]) -> Dict[str, Any]:
  send_updates = "all" if body.get("attendees") else "none"
  _log_debug(f"[GCAL] insert summary={body.get('summary')} sendUpdates={send_updates}")
  return service.events().insert(calendarId=GOOGLE_CALENDAR_ID,
                                 body=body,
                                 sendUpdates=send_updates).execute()


def build_patch_body(summary: Optional[str] = None,
                     description: Optional[str] = None,
                     location: Optional[str] = None,
                     start: Optional[Dict[str, Any]] = None,
                     end: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
  body: Dict[str, Any] = {}
  if summary:
    body["summary"] = summary
  if description is not None:
    body["description"] = description
  if location is not None:
    body["location"] = location
  if start and start.get("dateTime"):
    body["start"] = {"dateTime": to_utc_iso(start["dateTime"]),
                     "timeZone": start.get("timeZone") or DEFAULT_TIMEZONE}
  if end and end.get("dateTime"):
    body["end"] = {"dateTime": to_utc_iso(end["dateTime"]),
                   "timeZone": end.get("timeZone") or DEFAULT_TIMEZONE}
  return body


def update_event(service, event_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
  return service.events().patch(calendarId=GOOGLE_CALENDAR_ID,
                                eventId=event_id,
                                body=body).execute()


def delete_event(service, event_id: str) -> None:
  if not event_id:
    raise ValueError("event_id is empty")
  service.events().delete(calendarId=GOOGLE_CALENDAR_ID, eventId=event_id).execute()
