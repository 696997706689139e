"""
Calendar export for accepted proposals: a Google Calendar template link and
an iCalendar (.ics) payload.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlencode
import re

from tennismate.models.match_proposal import MatchProposal

GOOGLE_CALENDAR_URL = "https://calendar.google.com/calendar/render"
DEFAULT_DURATION = timedelta(hours=1)


@dataclass(frozen=True)
class CalendarEvent:
    title: str
    start: datetime
    end: Optional[datetime] = None
    description: str = ""
    location: str = ""
    uid: Optional[str] = None

    @property
    def effective_end(self) -> datetime:
        return self.end or self.start + DEFAULT_DURATION


def format_utc(value: datetime) -> str:
    """Compact UTC stamp, e.g. 20250301T180000Z. Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def _escape_text(value: str) -> str:
    # RFC 5545 TEXT escaping
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def create_google_calendar_url(event: CalendarEvent) -> str:
    params = {
        "action": "TEMPLATE",
        "text": event.title,
        "details": event.description or "",
        "location": event.location or "",
        "dates": f"{format_utc(event.start)}/{format_utc(event.effective_end)}",
    }
    return f"{GOOGLE_CALENDAR_URL}?{urlencode(params)}"


def build_ics(event: CalendarEvent) -> str:
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//TennisMate//Match Proposal//EN",
        "BEGIN:VEVENT",
    ]
    if event.uid:
        lines.append(f"UID:{event.uid}")
    lines += [
        f"DTSTAMP:{format_utc(datetime.now(timezone.utc))}",
        f"DTSTART:{format_utc(event.start)}",
        f"DTEND:{format_utc(event.effective_end)}",
        f"SUMMARY:{_escape_text(event.title)}",
        f"DESCRIPTION:{_escape_text(event.description or '')}",
        f"LOCATION:{_escape_text(event.location or '')}",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return "\r\n".join(lines) + "\r\n"


def ics_filename(event: CalendarEvent) -> str:
    return re.sub(r"\s+", "_", event.title.strip()) + ".ics"


def event_for_proposal(proposal: MatchProposal, counterpart_name: str) -> CalendarEvent:
    return CalendarEvent(
        title=f"Tennis with {counterpart_name}",
        start=proposal.scheduled_at,
        description=f"TennisMate session with {counterpart_name}",
        location=proposal.court_name or "",
        uid=f"{proposal.id}@tennismate",
    )
