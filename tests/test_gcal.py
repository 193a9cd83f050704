from __future__ import annotations

import urllib.parse

import httplib2
import pytest
from googleapiclient.errors import HttpError

from nezarai import gcal


def test_to_utc_iso_reads_naive_as_jakarta():
  assert gcal.to_utc_iso("2026-10-20T14:00:00") == "2026-10-20T07:00:00Z"
  assert gcal.to_utc_iso("2026-10-20T14:00:00Z") == "2026-10-20T14:00:00Z"
  assert gcal.to_utc_iso("2026-10-20T14:00:00+09:00") == "2026-10-20T05:00:00Z"
  with pytest.raises(ValueError):
    gcal.to_utc_iso("besok")


def test_event_body_defaults():
  body = gcal.build_event_body("Standup", "2026-10-20T09:00:00")
  assert body["start"]["dateTime"] == "2026-10-20T02:00:00Z"
  assert body["end"]["dateTime"] == "2026-10-20T03:00:00Z"
  assert body["start"]["timeZone"] == "Asia/Jakarta"
  assert body["attendees"] == []
  assert body["reminders"]["useDefault"] is False


def test_patch_body_only_sets_given_fields():
  body = gcal.build_patch_body(summary="Baru", start={"dateTime": "2026-10-20T10:00:00"})
  assert set(body) == {"summary", "start"}
  assert body["start"]["dateTime"] == "2026-10-20T03:00:00Z"


def test_format_event_without_attendees():
  event = gcal.format_event({"id": "e1", "summary": "Fokus", "start": {"date": "2026-10-20"}})
  assert event["title"] == "Fokus"
  assert event["start"] == {"dateTime": None, "date": "2026-10-20", "timeZone": None}
  assert event["attendees"] is None


def test_is_unauthorized():
  resp = httplib2.Response({"status": 401})
  assert gcal.is_unauthorized(HttpError(resp, b"{}"))
  assert not gcal.is_unauthorized(HttpError(httplib2.Response({"status": 500}), b"{}"))
  assert gcal.is_unauthorized(gcal.CalendarAuthError("expired"))
  assert not gcal.is_unauthorized(ValueError("x"))


def test_token_store_roundtrip():
  assert gcal.load_gcal_token_for_session("sess") is None
  gcal.save_gcal_token_for_session("sess", {"token": "abc"})
  assert gcal.load_gcal_token_for_session("sess") == {"token": "abc"}
  gcal.clear_gcal_token_for_session("sess")
  assert gcal.load_gcal_token_for_session("sess") is None


def test_oauth_state_is_single_use():
  gcal._store_oauth_state("st", "sess", "http://localhost/auth/google/callback")
  entry = gcal._pop_oauth_state("st")
  assert entry["session_id"] == "sess"
  assert gcal._pop_oauth_state("st") is None


def test_login_url_params():
  url = gcal.build_login_url("http://localhost/cb", "st", "consent")
  query = urllib.parse.parse_qs(urllib.parse.urlparse(url).query)
  assert query["access_type"] == ["offline"]
  assert query["prompt"] == ["consent"]
  assert query["state"] == ["st"]
