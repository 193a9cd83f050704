"""Indonesian natural-language scheduling helpers.

``parse_schedule`` turns phrases like "Review code hari Rabu jam 3 sore 2 jam"
into a draft event. ``suggest_free_slots`` and ``format_week_digest`` work on
events in the shape returned by :func:`nezarai.gcal.format_event`.
"""
from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel

from .config import JAKARTA

# Index matches JavaScript Date.getDay(): Sunday is 0.
DAY_NAMES = ["minggu", "senin", "selasa", "rabu", "kamis", "jumat", "sabtu"]
DAY_LABELS = ["Minggu", "Senin", "Selasa", "Rabu", "Kamis", "Jumat", "Sabtu"]
MONTH_LABELS = ["Januari", "Februari", "Maret", "April", "Mei", "Juni", "Juli",
                "Agustus", "September", "Oktober", "November", "Desember"]
MONTH_SHORT = ["Jan", "Feb", "Mar", "Apr", "Mei", "Jun", "Jul", "Agu", "Sep",
               "Okt", "Nov", "Des"]

WORK_HOURS = [9, 10, 11, 13, 14, 15, 16, 17]
MAX_SLOT_SUGGESTIONS = 3
DEFAULT_START = "09:00"
DEFAULT_END = "10:00"
FALLBACK_TITLE = "Event Baru"
ALL_DAY_LABEL = "Sepanjang hari"

_JAM_RE = re.compile(r"jam\s*(\d{1,2})(?:[.:](\d{2}))?(?:\s*(pagi|siang|sore|malam))?", re.I)
_DURATION_RE = re.compile(r"(\d+)\s*jam", re.I)
_STRIP_DAY_RE = re.compile(r"besok|lusa|minggu|senin|selasa|rabu|kamis|jumat|sabtu", re.I)
_STRIP_TIME_RE = re.compile(r"jam\s*\d{1,2}[.:]\d{2}|\bjam\s*\d{1,2}", re.I)
_STRIP_PERIOD_RE = re.compile(r"pagi|siang|sore|malam", re.I)
_STRIP_DURATION_RE = re.compile(r"\d+\s*jam", re.I)


class ScheduleDraft(BaseModel):
  date: str
  start_time: str
  end_time: str
  summary: str
  description: str
  suggestions: List[str]


def js_weekday(d: date) -> int:
  return (d.weekday() + 1) % 7


def format_long_date(d: date) -> str:
  return f"{DAY_LABELS[js_weekday(d)]}, {d.day} {MONTH_LABELS[d.month - 1]} {d.year}"


def format_short_date(d: date) -> str:
  return f"{DAY_LABELS[js_weekday(d)]}, {d.day} {MONTH_SHORT[d.month - 1]}"


def format_numeric_date(d: date) -> str:
  return f"{d.day}/{d.month}/{d.year}"


def _hhmm(hour: int, minute: int) -> str:
  return f"{hour:02d}:{minute:02d}"


def _resolve_date(prompt: str, today: date) -> date:
  event_date = today
  if "besok" in prompt:
    event_date = today + timedelta(days=1)
  elif "lusa" in prompt:
    event_date = today + timedelta(days=2)

  current = js_weekday(today)
  for index, name in enumerate(DAY_NAMES):
    if name in prompt:
      days_until = index - current
      if days_until <= 0:
        days_until += 7
      event_date = today + timedelta(days=days_until)
      break
  return event_date


def _resolve_times(prompt: str) -> Tuple[str, str]:
  jam = _JAM_RE.search(prompt)
  if not jam:
    return DEFAULT_START, DEFAULT_END

  hour = int(jam.group(1))
  minute = int(jam.group(2)) if jam.group(2) else 0
  period = (jam.group(3) or "").lower()
  if period in ("sore", "malam"):
    if hour < 12:
      hour += 12
  elif period == "pagi" and hour == 12:
    hour = 0

  start_time = _hhmm(hour, minute)
  end_time = _hhmm(hour + 1, minute)

  duration = _DURATION_RE.search(prompt)
  if duration:
    end_time = _hhmm(hour + int(duration.group(1)), minute)
  return start_time, end_time


def _clean_title(text: str) -> str:
  title = _STRIP_DAY_RE.sub("", text)
  title = _STRIP_TIME_RE.sub("", title)
  title = _STRIP_PERIOD_RE.sub("", title)
  title = _STRIP_DURATION_RE.sub("", title)
  title = re.sub(r"\s+", " ", title).strip()
  if len(title) < 3:
    return FALLBACK_TITLE
  return title


def parse_schedule(text: str, now: Optional[datetime] = None) -> ScheduleDraft:
  if not text or not text.strip():
    raise ValueError("text is empty")
  now = now or datetime.now(JAKARTA)
  prompt = text.lower()

  event_date = _resolve_date(prompt, now.date())
  start_time, end_time = _resolve_times(prompt)
  summary = _clean_title(text)

  return ScheduleDraft(
      date=event_date.isoformat(),
      start_time=start_time,
      end_time=end_time,
      summary=summary,
      description=f'Dibuat dari AI: "{text}"',
      suggestions=[
          f"📅 Tanggal: {format_long_date(event_date)}",
          f"⏰ Waktu: {start_time} - {end_time}",
          f"📝 Judul: {summary}",
      ],
  )


# -------------------------
# Event time helpers
# -------------------------
def _parse_event_time(block: Any) -> Optional[datetime]:
  if not isinstance(block, dict):
    return None
  value = block.get("dateTime")
  if isinstance(value, str) and value:
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
      dt = dt.replace(tzinfo=JAKARTA)
    return dt
  value = block.get("date")
  if isinstance(value, str) and value:
    return datetime.combine(date.fromisoformat(value), time.min, tzinfo=JAKARTA)
  return None


def _busy_ranges(events: Iterable[Dict[str, Any]]) -> List[Tuple[datetime, datetime]]:
  ranges: List[Tuple[datetime, datetime]] = []
  for event in events:
    try:
      start = _parse_event_time(event.get("start"))
      end = _parse_event_time(event.get("end"))
    except ValueError:
      continue
    if start and end:
      ranges.append((start, end))
  return ranges


def suggest_free_slots(events: Iterable[Dict[str, Any]],
                       now: Optional[datetime] = None) -> List[str]:
  now = now or datetime.now(JAKARTA)
  local_now = now.astimezone(JAKARTA) if now.tzinfo else now.replace(tzinfo=JAKARTA)
  busy = _busy_ranges(events)
  today = local_now.date()

  suggestions: List[str] = []
  for hour in WORK_HOURS:
    slot_start = datetime.combine(today, time(hour), tzinfo=JAKARTA)
    slot_end = slot_start + timedelta(hours=1)
    is_busy = any(slot_start < b_end and slot_end > b_start for b_start, b_end in busy)
    if not is_busy and slot_start > local_now:
      suggestions.append(f"Hari ini {hour}:00 - {hour + 1}:00")
      if len(suggestions) >= MAX_SLOT_SUGGESTIONS:
        break
  return suggestions


def week_start_for(d: date) -> date:
  """Monday of the week containing ``d``."""
  return d - timedelta(days=d.weekday())


def _event_day(event: Dict[str, Any]) -> str:
  start = event.get("start") if isinstance(event.get("start"), dict) else {}
  date_time = start.get("dateTime")
  if isinstance(date_time, str) and date_time:
    return date_time.split("T")[0]
  return start.get("date") or ""


def _event_time_label(event: Dict[str, Any]) -> str:
  start = event.get("start") if isinstance(event.get("start"), dict) else {}
  if not start.get("dateTime"):
    return ALL_DAY_LABEL
  try:
    dt = _parse_event_time(start)
  except ValueError:
    return str(start["dateTime"])
  return dt.astimezone(JAKARTA).strftime("%H.%M")


def format_week_digest(events: List[Dict[str, Any]], week_start: date) -> str:
  week_end = week_start + timedelta(days=6)
  text = "📅 **Jadwal Minggu Ini**\n"
  text += f"{format_numeric_date(week_start)} - {format_numeric_date(week_end)}\n\n"

  if not events:
    return text + "_Tidak ada event minggu ini_"

  grouped: Dict[str, List[Dict[str, Any]]] = {}
  for event in events:
    grouped.setdefault(_event_day(event), []).append(event)

  for day in sorted(grouped):
    try:
      heading = format_short_date(date.fromisoformat(day))
    except ValueError:
      heading = day or "-"
    text += f"**{heading}**\n"
    for event in grouped[day]:
      text += f"- {_event_time_label(event)}: {event.get('summary') or event.get('title')}\n"
    text += "\n"
  return text
