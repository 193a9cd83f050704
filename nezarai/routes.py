from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from . import auth, gcal, github, llm_provider, state, youtube
from .config import (
    ENFORCE_RATE_LIMIT,
    ENHANCE_PROMPT_MODEL,
    GITHUB_MODEL,
    YOUTUBE_MODEL,
    GCAL_DEFAULT_MAX_RESULTS,
    GCAL_DEFAULT_WINDOW_DAYS,
    GCAL_SESSION_COOKIE_NAME,
    OAUTH_STATE_COOKIE_NAME,
    OAUTH_STATE_MAX_AGE_SECONDS,
    SESSION_COOKIE_NAME,
    SESSION_COOKIE_MAX_AGE_SECONDS,
    MODEL_TIERS,
)
from .files import ProcessedFile, decode_base64_payload, process_file
from .models import (
    ActivatePlanRequest,
    CalendarEventCreate,
    CalendarEventUpdate,
    ChatRequest,
    ConversationCreate,
    ConversationRename,
    ConversationUpdate,
    EnhancePromptRequest,
    EventListPayload,
    FileProcessRequest,
    GitHubRequest,
    LoginRequest,
    PinnedContextCreate,
    ProfileUpdate,
    RegisterRequest,
    ScheduleParseRequest,
    YouTubeRequest,
)
from .personas import PERSONAS, get_persona_by_id
from .plans import (
    PLANS,
    Plan,
    can_upload_files,
    can_use_model,
    get_plan,
    model_tier_for,
    redeem_activation_code,
)
from .prompting import (
    ENHANCE_SYSTEM_PROMPT,
    build_enhance_prompt,
    build_system_prompt,
    build_user_content,
    format_pinned_context,
    resolve_chat_model,
)
from .ratelimit import rate_limiter
from .schedule_parser import format_week_digest, parse_schedule, suggest_free_slots, week_start_for
from .streaming import STREAM_ERROR_MESSAGE, data_stream_response
from .templates import PROMPT_TEMPLATES, TEMPLATE_CATEGORIES, fill_template, get_template, get_templates_by_category, list_placeholders
from .utils import _log_debug, _validate_image_payload, now_local

router = APIRouter()
logger = logging.getLogger(__name__)


# -------------------------
# Request identity / gating
# -------------------------
def _require_user(request: Request) -> Dict[str, Any]:
  user = auth.current_user(request)
  if user is None:
    raise HTTPException(status_code=401, detail="Silakan login terlebih dahulu")
  return user


def _owner_key(user: Dict[str, Any]) -> str:
  return f"user:{user['id']}"


def _rate_key(request: Request, user: Optional[Dict[str, Any]]) -> str:
  if user is not None:
    return _owner_key(user)
  client = request.client.host if request.client else "unknown"
  return f"ip:{client}"


def _plan_for(user: Optional[Dict[str, Any]]) -> Plan:
  if user is None:
    return get_plan(None)
  return get_plan(state.get_plan_state(_owner_key(user)).get("planId"))


def _enforce_rate_limit(request: Request, user: Optional[Dict[str, Any]], plan: Plan) -> None:
  if not ENFORCE_RATE_LIMIT:
    return
  decision = rate_limiter.hit(_rate_key(request, user), plan.requests_per_minute)
  if decision.allowed:
    return
  raise HTTPException(
      status_code=429,
      detail=f"Plan {plan.name} - Tunggu {decision.wait_time} detik atau upgrade plan",
      headers={"Retry-After": str(decision.wait_time)},
  )


def _ensure_llm(model: str) -> None:
  try:
    llm_provider.ensure_available(model)
  except llm_provider.LLMUnavailable as exc:
    logger.error("LLM unavailable for model=%s: %s", model, exc)
    raise HTTPException(status_code=500, detail=STREAM_ERROR_MESSAGE) from exc


# -------------------------
# Catalog endpoints
# -------------------------
@router.get("/api/personas")
def list_personas(full: bool = Query(False)):
  return {"personas": [p.public_dict(include_prompt=full) for p in PERSONAS]}


@router.get("/api/templates")
def list_templates(category: Optional[str] = Query(None)):
  items = get_templates_by_category(category) if category else PROMPT_TEMPLATES
  return {
      "categories": TEMPLATE_CATEGORIES,
      "templates": [t.model_dump() for t in items],
  }


@router.get("/api/templates/{template_id}")
def template_detail(template_id: str):
  template = get_template(template_id)
  if template is None:
    raise HTTPException(status_code=404, detail="Template tidak ditemukan")
  data = template.model_dump()
  data["placeholders"] = list_placeholders(template.prompt)
  return data


@router.post("/api/templates/{template_id}/fill")
def template_fill(template_id: str, values: Dict[str, str] = Body(default_factory=dict)):
  template = get_template(template_id)
  if template is None:
    raise HTTPException(status_code=404, detail="Template tidak ditemukan")
  return {"prompt": fill_template(template.prompt, values)}


@router.get("/api/plans")
def list_plans():
  return {"plans": [p.model_dump() for p in PLANS.values()], "modelTiers": MODEL_TIERS}


@router.get("/api/plan")
def current_plan(request: Request):
  user = auth.current_user(request)
  plan = _plan_for(user)
  plan_state = state.get_plan_state(_owner_key(user)) if user else {"planId": plan.id}
  return {
      "plan": plan.model_dump(),
      "state": plan_state,
      "remaining": rate_limiter.remaining(_rate_key(request, user), plan.requests_per_minute),
      "total": "unlimited" if plan.requests_per_minute == -1 else plan.requests_per_minute,
  }


@router.post("/api/plan/activate")
def activate_plan(request: Request, payload: ActivatePlanRequest):
  user = _require_user(request)
  result = redeem_activation_code(payload.code)
  if not result.valid or not result.plan_id:
    raise HTTPException(status_code=400, detail=result.error or "Kode aktivasi tidak valid")
  plan_state = state.set_plan_state(_owner_key(user), result.plan_id,
                                    payload.code.strip().upper())
  logger.info("plan activated user=%s plan=%s", user["id"], result.plan_id)
  return {"success": True, "state": plan_state, "plan": get_plan(result.plan_id).model_dump()}


@router.post("/api/plan/reset")
def reset_plan(request: Request):
  user = _require_user(request)
  plan_state = state.reset_plan_state(_owner_key(user))
  rate_limiter.reset(_owner_key(user))
  return {"success": True, "state": plan_state}


# -------------------------
# Chat / LLM endpoints
# -------------------------
def _message_payload(msg) -> Dict[str, Any]:
  content: Any = msg.content
  images = _validate_image_payload(msg.images)
  if isinstance(content, str) and (images or msg.file_contents):
    content = build_user_content(content, images, msg.file_contents)
  return {"role": msg.role, "content": content}


@router.post("/api/chat")
async def chat(request: Request, payload: ChatRequest):
  if not payload.messages:
    raise HTTPException(status_code=400, detail="Pesan tidak boleh kosong")

  user = auth.current_user(request)
  plan = _plan_for(user)
  model = resolve_chat_model(payload.model_id, payload.use_web_search)
  tier = model_tier_for(model)
  if tier is not None and not can_use_model(plan, tier):
    raise HTTPException(status_code=403,
                        detail=f"Model ini tidak tersedia untuk plan {plan.name}")
  _enforce_rate_limit(request, user, plan)

  persona = get_persona_by_id(payload.persona_id)
  if isinstance(payload.pinned_context, str):
    pinned = payload.pinned_context
  elif payload.pinned_context is not None:
    pinned = format_pinned_context(payload.pinned_context)
  elif user is not None:
    pinned = format_pinned_context(state.list_pinned_context(_owner_key(user)))
  else:
    pinned = ""

  messages = [_message_payload(m) for m in payload.messages]
  _log_debug(f"[CHAT] persona={persona.id} model={model} messages={len(messages)} "
             f"search={payload.use_web_search}")
  _ensure_llm(model)
  return data_stream_response(
      llm_provider.stream_chat(model=model,
                               system_prompt=build_system_prompt(persona, pinned),
                               messages=messages,
                               use_search_grounding=payload.use_web_search),
      label="chat",
  )


@router.post("/api/enhance-prompt")
async def enhance_prompt(request: Request, payload: EnhancePromptRequest):
  if not payload.prompt or not isinstance(payload.prompt, str):
    raise HTTPException(status_code=400, detail="Prompt is required")
  user = auth.current_user(request)
  _enforce_rate_limit(request, user, _plan_for(user))
  try:
    enhanced = await llm_provider.generate_text(model=ENHANCE_PROMPT_MODEL,
                                                system_prompt=ENHANCE_SYSTEM_PROMPT,
                                                prompt=build_enhance_prompt(payload.prompt))
  except Exception as exc:
    logger.exception("enhance prompt failed")
    raise HTTPException(status_code=500, detail="Failed to enhance prompt") from exc
  return {"enhanced": enhanced.strip()}


# -------------------------
# GitHub
# -------------------------
@router.post("/api/github")
async def github_analyze(request: Request, payload: GitHubRequest):
  if not payload.url:
    raise HTTPException(status_code=400, detail="URL GitHub diperlukan")
  ref = github.parse_github_url(payload.url)
  if ref is None:
    raise HTTPException(
        status_code=400,
        detail="URL GitHub tidak valid. Format: github.com/owner/repo atau owner/repo")
  user = auth.current_user(request)
  _enforce_rate_limit(request, user, _plan_for(user))

  bundle = await github.fetch_repo_bundle(ref)
  if not bundle["info"]:
    raise HTTPException(status_code=404,
                        detail="Repository tidak ditemukan atau tidak dapat diakses")

  context = github.build_repo_context(bundle)
  action = payload.action if payload.action in github.ANALYSIS_ACTIONS else "analyze"
  prompt = github.build_analysis_prompt(action, context, bundle["info"], payload.question)
  _ensure_llm(GITHUB_MODEL)
  return data_stream_response(
      llm_provider.stream_chat(model=GITHUB_MODEL,
                               system_prompt=github.SYSTEM_PROMPT,
                               messages=[{"role": "user", "content": prompt}]),
      label="github",
  )


@router.get("/api/github")
async def github_metadata(url: Optional[str] = Query(None)):
  if not url:
    raise HTTPException(status_code=400, detail="URL parameter required")
  ref = github.parse_github_url(url)
  if ref is None:
    raise HTTPException(status_code=400, detail="Invalid GitHub URL")
  summary = await github.fetch_repo_summary(ref)
  if not summary["info"]:
    raise HTTPException(status_code=404, detail="Repository not found")
  return github.summarize_repo(summary["info"], summary["languages"])


# -------------------------
# YouTube
# -------------------------
@router.post("/api/youtube")
async def youtube_summarize(request: Request, payload: YouTubeRequest):
  if not payload.url:
    raise HTTPException(status_code=400, detail="URL YouTube diperlukan")
  video_id = youtube.extract_video_id(payload.url)
  if not video_id:
    raise HTTPException(status_code=400, detail="URL YouTube tidak valid")
  user = auth.current_user(request)
  _enforce_rate_limit(request, user, _plan_for(user))

  metadata = await asyncio.to_thread(youtube.get_video_metadata, video_id)
  if not metadata:
    raise HTTPException(status_code=404, detail="Video tidak ditemukan atau tidak tersedia")
  description = await asyncio.to_thread(youtube.get_video_description, video_id)

  context = youtube.build_video_context(video_id, metadata, description)
  action = payload.action if payload.action in youtube.SUMMARY_ACTIONS else "summarize"
  prompt = youtube.build_summary_prompt(action, context, payload.language)
  _ensure_llm(YOUTUBE_MODEL)
  return data_stream_response(
      llm_provider.stream_chat(model=YOUTUBE_MODEL,
                               system_prompt=youtube.SYSTEM_PROMPT,
                               messages=[{"role": "user", "content": prompt}]),
      label="youtube",
  )


@router.get("/api/youtube")
async def youtube_metadata(url: Optional[str] = Query(None)):
  if not url:
    raise HTTPException(status_code=400, detail="URL parameter required")
  video_id = youtube.extract_video_id(url)
  if not video_id:
    raise HTTPException(status_code=400, detail="Invalid YouTube URL")
  metadata = await asyncio.to_thread(youtube.get_video_metadata, video_id)
  if not metadata:
    raise HTTPException(status_code=404, detail="Video not found")
  return youtube.metadata_payload(video_id, metadata)


# -------------------------
# Google Calendar
# -------------------------
def _calendar_service(request: Request):
  try:
    creds = gcal.credentials_for_request(request)
  except gcal.CalendarAuthError as exc:
    raise HTTPException(status_code=401, detail="Token expired. Please re-authenticate.") from exc
  if creds is None:
    raise HTTPException(status_code=401, detail="Unauthorized")
  return gcal.get_calendar_service(creds)


def _calendar_failure(exc: Exception, fallback: str) -> HTTPException:
  if gcal.is_unauthorized(exc):
    return HTTPException(status_code=401, detail="Token expired. Please re-authenticate.")
  logger.exception("calendar request failed")
  return HTTPException(status_code=500, detail=str(exc) or fallback)


def _utc_iso(dt: datetime) -> str:
  return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/api/calendar")
def calendar_list(request: Request,
                  time_min: Optional[str] = Query(None, alias="timeMin"),
                  time_max: Optional[str] = Query(None, alias="timeMax"),
                  max_results: int = Query(GCAL_DEFAULT_MAX_RESULTS, alias="maxResults"),
                  q: Optional[str] = Query(None)):
  service = _calendar_service(request)
  now = datetime.now(timezone.utc)
  try:
    events = gcal.list_events(service,
                              time_min or _utc_iso(now),
                              time_max or _utc_iso(now + timedelta(days=GCAL_DEFAULT_WINDOW_DAYS)),
                              max_results,
                              q)
  except Exception as exc:
    raise _calendar_failure(exc, "Failed to fetch events") from exc
  return {"success": True, "events": events, "total": len(events)}


@router.post("/api/calendar")
def calendar_create(request: Request, payload: CalendarEventCreate):
  title = payload.summary or payload.title
  start = (payload.start.date_time if payload.start else None) or payload.start_time
  end = (payload.end.date_time if payload.end else None) or payload.end_time
  if not title or not start:
    raise HTTPException(status_code=400, detail="Title and start time are required")
  try:
    body = gcal.build_event_body(title, start, end,
                                 description=payload.description,
                                 location=payload.location,
                                 attendees=payload.attendees,
                                 start_tz=payload.start.time_zone if payload.start else None,
                                 end_tz=payload.end.time_zone if payload.end else None)
  except ValueError as exc:
    raise HTTPException(status_code=400, detail="Format tanggal tidak valid") from exc

  service = _calendar_service(request)
  try:
    created = gcal.create_event(service, body)
  except Exception as exc:
    raise _calendar_failure(exc, "Failed to create event") from exc
  return {"success": True, "event": gcal.format_written_event(created)}


@router.put("/api/calendar")
def calendar_update(request: Request, payload: CalendarEventUpdate):
  if not payload.event_id:
    raise HTTPException(status_code=400, detail="Event ID is required")
  try:
    body = gcal.build_patch_body(
        summary=payload.summary,
        description=payload.description,
        location=payload.location,
        start=payload.start.model_dump(by_alias=True) if payload.start else None,
        end=payload.end.model_dump(by_alias=True) if payload.end else None,
    )
  except ValueError as exc:
    raise HTTPException(status_code=400, detail="Format tanggal tidak valid") from exc

  service = _calendar_service(request)
  try:
    updated = gcal.update_event(service, payload.event_id, body)
  except Exception as exc:
    raise _calendar_failure(exc, "Failed to update event") from exc
  return {"success": True, "event": gcal.format_patched_event(updated)}


@router.delete("/api/calendar")
def calendar_delete(request: Request, event_id: Optional[str] = Query(None, alias="eventId")):
  if not event_id:
    raise HTTPException(status_code=400, detail="Event ID is required")
  service = _calendar_service(request)
  try:
    gcal.delete_event(service, event_id)
  except Exception as exc:
    raise _calendar_failure(exc, "Failed to delete event") from exc
  return {"success": True, "message": "Event deleted"}


@router.post("/api/calendar/parse")
def calendar_parse(payload: ScheduleParseRequest):
  if not payload.text.strip():
    raise HTTPException(status_code=400, detail="Teks jadwal diperlukan")
  try:
    draft = parse_schedule(payload.text, now_local())
  except ValueError as exc:
    raise HTTPException(status_code=400, detail="Gagal memproses input AI") from exc
  return {
      "date": draft.date,
      "startTime": draft.start_time,
      "endTime": draft.end_time,
      "summary": draft.summary,
      "description": draft.description,
      "suggestions": draft.suggestions,
  }


@router.post("/api/calendar/suggestions")
def calendar_suggestions(payload: EventListPayload):
  return {"suggestions": suggest_free_slots(payload.events, now_local())}


@router.post("/api/calendar/digest")
def calendar_digest(payload: EventListPayload):
  if payload.week_start:
    try:
      week_start = date.fromisoformat(payload.week_start)
    except ValueError as exc:
      raise HTTPException(status_code=400, detail="weekStart harus YYYY-MM-DD") from exc
  else:
    week_start = week_start_for(now_local().date())
  return {"digest": format_week_digest(payload.events, week_start)}


# -------------------------
# Google OAuth endpoints
# -------------------------
@router.get("/auth/google/login")
def google_login(request: Request):
  if not gcal.is_gcal_configured():
    raise HTTPException(
        status_code=500,
        detail="Google OAuth environment variables (GOOGLE_CLIENT_ID/SECRET) are not configured.",
    )
  redirect_uri = gcal._resolve_google_redirect_uri(request)
  session_id = gcal._get_session_id(request) or gcal._new_session_id()
  state_value = gcal._new_oauth_state()
  existing_token = gcal.load_gcal_token_for_session(session_id) or {}
  prompt = request.query_params.get("prompt")
  if not prompt and (request.query_params.get("force") == "1"
                     or not existing_token.get("refresh_token")):
    prompt = "consent"

  url = gcal.build_login_url(redirect_uri, state_value, prompt)
  _log_debug(f"[GCAL] login redirect url={url}")
  resp = RedirectResponse(url)
  gcal._set_session_cookie(resp, session_id)
  gcal._set_cookie(resp, OAUTH_STATE_COOKIE_NAME, state_value,
                   max_age=OAUTH_STATE_MAX_AGE_SECONDS)
  gcal._store_oauth_state(state_value, session_id, redirect_uri)
  return resp


@router.get("/auth/google/callback")
def google_callback(request: Request):
  code = request.query_params.get("code")
  error = request.query_params.get("error")
  state_value = request.query_params.get("state")
  if error:
    _log_debug(f"[GCAL] callback error={error}")
    return JSONResponse({"ok": False, "error": error})
  if not code:
    raise HTTPException(status_code=400, detail="Missing code.")

  expected_state = request.cookies.get(OAUTH_STATE_COOKIE_NAME)
  oauth_entry = gcal._pop_oauth_state(state_value)
  if not state_value or (oauth_entry is None and state_value != expected_state):
    raise HTTPException(status_code=400, detail="State verification failed.")

  session_id = (oauth_entry or {}).get("session_id") or gcal._get_session_id(request)
  if not session_id:
    raise HTTPException(status_code=400, detail="Session is missing.")
  redirect_uri = (oauth_entry or {}).get("redirect_uri") or gcal._resolve_google_redirect_uri(request)

  try:
    token_data = gcal.exchange_code_for_token(code, redirect_uri,
                                              gcal.load_gcal_token_for_session(session_id))
  except gcal.CalendarAuthError as exc:
    raise HTTPException(status_code=502, detail=str(exc)) from exc

  gcal.save_gcal_token_for_session(session_id, token_data)
  _log_debug("[GCAL] token exchange success")
  resp = RedirectResponse(gcal._frontend_url("/chat"))
  gcal._set_session_cookie(resp, session_id)
  gcal._delete_cookie(resp, OAUTH_STATE_COOKIE_NAME)
  return resp


@router.get("/auth/google/status")
def google_status(request: Request):
  token_data = gcal.load_gcal_token_for_request(request)
  userinfo = None
  if token_data and token_data.get("token"):
    userinfo = gcal.get_google_userinfo(token_data["token"])
  return {
      "configured": gcal.is_gcal_configured(),
      "has_token": token_data is not None,
      "email": (userinfo or {}).get("email"),
      "photo_url": (userinfo or {}).get("picture"),
  }


@router.post("/auth/google/logout")
def google_logout(request: Request, response: Response):
  gcal.clear_gcal_token_for_session(gcal._get_session_id(request))
  gcal._delete_cookie(response, GCAL_SESSION_COOKIE_NAME)
  return {"ok": True}


# -------------------------
# Conversations / pinned context
# -------------------------
@router.get("/api/conversations")
def conversations_list(request: Request):
  user = _require_user(request)
  return {"conversations": state.list_conversations(_owner_key(user))}


@router.post("/api/conversations")
def conversations_create(request: Request, payload: ConversationCreate):
  user = _require_user(request)
  return state.create_conversation(_owner_key(user), payload.title, payload.messages,
                                   payload.persona_id)


@router.delete("/api/conversations")
def conversations_clear(request: Request):
  user = _require_user(request)
  return {"success": True, "removed": state.clear_conversations(_owner_key(user))}


@router.get("/api/conversations/export")
def conversations_export(request: Request):
  user = _require_user(request)
  filename = f"nezarai-chats-{now_local().date().isoformat()}.json"
  return JSONResponse(state.export_conversations(_owner_key(user)),
                      headers={"Content-Disposition": f'attachment; filename="{filename}"'})


@router.post("/api/conversations/import")
def conversations_import(request: Request, payload: Any = Body(...)):
  user = _require_user(request)
  try:
    count, added = state.import_conversations(_owner_key(user), payload)
  except ValueError as exc:
    raise HTTPException(status_code=400, detail="Format file tidak valid") from exc
  return {"success": True, "count": count, "added": added}


@router.get("/api/conversations/{conversation_id}")
def conversations_get(request: Request, conversation_id: str):
  user = _require_user(request)
  conversation = state.get_conversation(_owner_key(user), conversation_id)
  if conversation is None:
    raise HTTPException(status_code=404, detail="Percakapan tidak ditemukan")
  return conversation


@router.put("/api/conversations/{conversation_id}")
def conversations_update(request: Request, conversation_id: str, payload: ConversationUpdate):
  user = _require_user(request)
  conversation = state.update_conversation(_owner_key(user), conversation_id,
                                           payload.messages, payload.title)
  if conversation is None:
    raise HTTPException(status_code=404, detail="Percakapan tidak ditemukan")
  return conversation


@router.patch("/api/conversations/{conversation_id}")
def conversations_rename(request: Request, conversation_id: str, payload: ConversationRename):
  user = _require_user(request)
  try:
    conversation = state.rename_conversation(_owner_key(user), conversation_id, payload.title)
  except ValueError as exc:
    raise HTTPException(status_code=400, detail=str(exc)) from exc
  if conversation is None:
    raise HTTPException(status_code=404, detail="Percakapan tidak ditemukan")
  return conversation


@router.delete("/api/conversations/{conversation_id}")
def conversations_delete(request: Request, conversation_id: str):
  user = _require_user(request)
  if not state.delete_conversation(_owner_key(user), conversation_id):
    raise HTTPException(status_code=404, detail="Percakapan tidak ditemukan")
  return {"success": True}


@router.get("/api/pinned-context")
def pinned_list(request: Request):
  user = _require_user(request)
  items = state.list_pinned_context(_owner_key(user))
  return {"items": items, "formatted": format_pinned_context(items)}


@router.post("/api/pinned-context")
def pinned_add(request: Request, payload: PinnedContextCreate):
  user = _require_user(request)
  try:
    return state.add_pinned_context(_owner_key(user), payload.content)
  except state.PinLimitReached as exc:
    raise HTTPException(status_code=403, detail=str(exc)) from exc
  except ValueError as exc:
    raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.delete("/api/pinned-context")
def pinned_clear(request: Request):
  user = _require_user(request)
  state.clear_pinned_context(_owner_key(user))
  return {"success": True}


@router.delete("/api/pinned-context/{item_id}")
def pinned_remove(request: Request, item_id: str):
  user = _require_user(request)
  if not state.remove_pinned_context(_owner_key(user), item_id):
    raise HTTPException(status_code=404, detail="Konteks tidak ditemukan")
  return {"success": True}


# -------------------------
# Local auth
# -------------------------
def _login_response(user: Dict[str, Any], token: str) -> JSONResponse:
  resp = JSONResponse({"success": True, "user": user, "token": token})
  gcal._set_cookie(resp, SESSION_COOKIE_NAME, token, max_age=SESSION_COOKIE_MAX_AGE_SECONDS)
  return resp


@router.post("/api/auth/register")
def auth_register(payload: RegisterRequest):
  try:
    user, token = auth.register(payload.username, payload.email, payload.password)
  except auth.AuthError as exc:
    raise HTTPException(status_code=400, detail=str(exc)) from exc
  logger.info("user registered id=%s", user["id"])
  return _login_response(user, token)


@router.post("/api/auth/login")
def auth_login(payload: LoginRequest):
  try:
    user, token = auth.login(payload.email, payload.password)
  except auth.AuthError as exc:
    raise HTTPException(status_code=401, detail=str(exc)) from exc
  return _login_response(user, token)


@router.post("/api/auth/logout")
def auth_logout(request: Request, response: Response):
  auth.logout(auth.session_token(request))
  gcal._delete_cookie(response, SESSION_COOKIE_NAME)
  return {"success": True}


@router.get("/api/auth/me")
def auth_me(request: Request):
  user = _require_user(request)
  return {"user": auth.public_user(user)}


@router.patch("/api/auth/me")
def auth_update_profile(request: Request, payload: ProfileUpdate):
  user = _require_user(request)
  try:
    updated = auth.update_profile(user["id"], payload.username, payload.avatar)
  except auth.AuthError as exc:
    raise HTTPException(status_code=400, detail=str(exc)) from exc
  return {"success": True, "user": updated}


# -------------------------
# File attachments
# -------------------------
@router.post("/api/files/process")
def files_process(request: Request, payload: FileProcessRequest):
  plan = _plan_for(auth.current_user(request))
  if not can_upload_files(plan, len(payload.files) - 1):
    raise HTTPException(
        status_code=403,
        detail=f"Plan {plan.name} hanya bisa upload {plan.max_file_uploads} file per chat")

  results: List[ProcessedFile] = []
  for upload in payload.files:
    try:
      data = decode_base64_payload(upload.data)
    except ValueError:
      results.append(ProcessedFile(name=upload.name, type=upload.type or "", size=0,
                                   error="Gagal membaca file"))
      continue
    results.append(process_file(upload.name, upload.type, data))
  return {"files": [r.model_dump() for r in results]}
