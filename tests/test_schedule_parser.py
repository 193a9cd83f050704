from __future__ import annotations

from datetime import date, datetime

import pytest

from nezarai.config import JAKARTA
from nezarai.schedule_parser import (
    format_week_digest,
    parse_schedule,
    suggest_free_slots,
    week_start_for,
)

# Saturday
NOW = datetime(2026, 10, 17, 8, 0, tzinfo=JAKARTA)


def test_besok_with_afternoon_time():
  draft = parse_schedule("Meeting dengan client besok jam 2 sore", NOW)
  assert draft.date == "2026-10-18"
  assert draft.start_time == "14:00"
  assert draft.end_time == "15:00"
  assert draft.summary == "Meeting dengan client"
  assert draft.description == 'Dibuat dari AI: "Meeting dengan client besok jam 2 sore"'


def test_weekday_with_duration():
  draft = parse_schedule("Review code hari Rabu jam 3 sore 2 jam", NOW)
  assert draft.date == "2026-10-21"
  assert draft.start_time == "15:00"
  assert draft.end_time == "17:00"
  assert draft.summary == "Review code hari"


def test_same_weekday_moves_to_next_week():
  draft = parse_schedule("Olahraga sabtu", NOW)
  assert draft.date == "2026-10-24"


def test_lusa_and_minutes():
  draft = parse_schedule("Presentasi lusa jam 9.30 pagi", NOW)
  assert draft.date == "2026-10-19"
  assert (draft.start_time, draft.end_time) == ("09:30", "10:30")
  assert draft.summary == "Presentasi"


def test_twelve_pagi_is_midnight():
  draft = parse_schedule("Deploy server jam 12 pagi", NOW)
  assert draft.start_time == "00:00"
  assert draft.end_time == "01:00"


def test_noon_stays_noon():
  draft = parse_schedule("Lunch dengan tim jam 12 siang", NOW)
  assert draft.date == "2026-10-17"
  assert draft.start_time == "12:00"
  assert draft.summary == "Lunch dengan tim"


def test_duration_ignored_without_start_time():
  draft = parse_schedule("Rapat 2 jam besok", NOW)
  assert (draft.start_time, draft.end_time) == ("09:00", "10:00")


def test_short_title_falls_back():
  draft = parse_schedule("besok", NOW)
  assert draft.summary == "Event Baru"
  assert draft.suggestions[0] == "📅 Tanggal: Minggu, 18 Oktober 2026"
  assert draft.suggestions[1] == "⏰ Waktu: 09:00 - 10:00"


def test_empty_text_rejected():
  with pytest.raises(ValueError):
    parse_schedule("   ", NOW)


def test_free_slots_skip_busy_and_past_hours():
  now = datetime(2026, 10, 17, 10, 30, tzinfo=JAKARTA)
  events = [{
      "start": {"dateTime": "2026-10-17T13:00:00+07:00"},
      "end": {"dateTime": "2026-10-17T14:00:00+07:00"},
  }]
  assert suggest_free_slots(events, now) == [
      "Hari ini 11:00 - 12:00",
      "Hari ini 14:00 - 15:00",
      "Hari ini 15:00 - 16:00",
  ]


def test_all_day_event_blocks_today():
  events = [{"start": {"date": "2026-10-17"}, "end": {"date": "2026-10-18"}}]
  assert suggest_free_slots(events, NOW) == []


def test_week_digest_empty():
  text = format_week_digest([], date(2026, 10, 12))
  assert text.startswith("📅 **Jadwal Minggu Ini**\n12/10/2026 - 18/10/2026")
  assert text.endswith("_Tidak ada event minggu ini_")


def test_week_digest_groups_by_day():
  events = [
      {"summary": "Libur", "start": {"date": "2026-10-14"}, "end": {"date": "2026-10-15"}},
      {"summary": "Standup", "start": {"dateTime": "2026-10-13T09:00:00+07:00"},
       "end": {"dateTime": "2026-10-13T09:15:00+07:00"}},
  ]
  text = format_week_digest(events, date(2026, 10, 12))
  assert "**Selasa, 13 Okt**\n- 09.00: Standup\n" in text
  assert "**Rabu, 14 Okt**\n- Sepanjang hari: Libur\n" in text
  assert text.index("Standup") < text.index("Libur")


def test_week_start_is_monday():
  assert week_start_for(date(2026, 10, 18)) == date(2026, 10, 12)
