"""
Event draft extraction and date-time normalization

Tool-call arguments from the model are turned into an EventDraft whose
date-times always carry an explicit UTC offset. This is the only place the
offset rule lives; both the tool handler and the calendar client go through it.
"""
import json
import logging
import re
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Union

from dateutil import parser as date_parser
from dateutil import tz

from config.settings import Config, format_utc_offset
from src.errors import InvalidDateError, ValidationError

logger = logging.getLogger(__name__)

OFFSET_SUFFIX = re.compile(r"(Z|[+-]\d{2}:\d{2})$")
ISO_LOCAL_DATE_TIME = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2}(\.\d+)?)?$")


class EventDraft:
    """Scheduling fields extracted from a create_calendar_event tool call"""

    def __init__(self, attendee_name: str, meeting_title: str,
                 start_date_time: str, end_date_time: str):
        self.attendee_name = attendee_name
        self.meeting_title = meeting_title
        self.start_date_time = start_date_time
        self.end_date_time = end_date_time

    @property
    def start(self) -> datetime:
        return date_parser.parse(self.start_date_time)

    @property
    def end(self) -> datetime:
        return date_parser.parse(self.end_date_time)

    def to_event_input(self, time_zone: str = None) -> Dict[str, Any]:
        """Payload shape accepted by the calendar client and POST /api/calendar"""
        event = {
            "summary": self.meeting_title,
            "startDateTime": self.start_date_time,
            "endDateTime": self.end_date_time,
            "attendeeName": self.attendee_name,
        }
        if time_zone:
            event["timeZone"] = time_zone
        return event

    def to_dict(self) -> Dict[str, str]:
        return {
            "attendee_name": self.attendee_name,
            "meeting_title": self.meeting_title,
            "start_date_time": self.start_date_time,
            "end_date_time": self.end_date_time,
        }

    def __repr__(self):
        return (f"EventDraft(title={self.meeting_title!r}, "
                f"start={self.start_date_time!r}, end={self.end_date_time!r})")


def has_utc_offset(value: str) -> bool:
    return bool(OFFSET_SUFFIX.search(value.strip()))


def parse_date_time(value: Optional[str]) -> datetime:
    """Parse an ISO-ish date-time string, raising InvalidDateError on failure"""
    if not value or not isinstance(value, str):
        raise InvalidDateError(f"Invalid start date: {value}")

    try:
        return date_parser.parse(value.strip())
    except (ValueError, OverflowError) as e:
        raise InvalidDateError(f"Invalid start date: {value}") from e


def localize(moment: datetime) -> datetime:
    """Attach the local zone (offset in effect on that date) to a naive datetime"""
    if moment.tzinfo is not None:
        return moment
    return moment.replace(tzinfo=tz.tzlocal())


def ensure_utc_offset(value: str) -> str:
    """
    Append the local UTC offset (as +HH:MM) when the string carries none.

    Strings that already end in Z or +HH:MM are returned untouched. The
    offset is the one in effect at the parsed date, so DST is respected.
    """
    if not value:
        return value

    raw = value.strip()
    if has_utc_offset(raw):
        return raw

    parsed = parse_date_time(raw)
    if parsed.tzinfo is not None:
        # e.g. "+0530" style suffix; re-render in the colon form
        return _format_like(parsed, use_zulu=False)

    if not ISO_LOCAL_DATE_TIME.match(raw):
        # date-only or free-form text such as "March 15 2025 3pm"
        return _format_like(localize(parsed), use_zulu=False)

    return f"{raw}{format_utc_offset(localize(parsed))}"


def _format_like(moment: datetime, use_zulu: bool) -> str:
    rendered = moment.isoformat()
    if use_zulu and moment.utcoffset() == timedelta(0):
        rendered = rendered[:-len("+00:00")] + "Z"
    return rendered


def default_end(start_date_time: str) -> str:
    """Start plus the default duration, in the same offset form as the start"""
    normalized = ensure_utc_offset(start_date_time)
    duration = timedelta(minutes=Config.DEFAULT_MEETING_DURATION_MINUTES)
    return _format_like(date_parser.parse(normalized) + duration,
                        use_zulu=normalized.endswith("Z"))


def _coerce_arguments(arguments: Union[str, Dict[str, Any], None]) -> Dict[str, Any]:
    if arguments is None:
        return {}
    if isinstance(arguments, dict):
        return arguments
    try:
        parsed = json.loads(arguments)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Malformed tool arguments: {e}") from e
    if not isinstance(parsed, dict):
        raise ValidationError("Tool arguments must be a JSON object")
    return parsed


def normalize_event_draft(arguments: Union[str, Dict[str, Any]]) -> EventDraft:
    """
    Validate and normalize create_calendar_event arguments.

    1. start_date_time must parse, else InvalidDateError
    2. a start without Z / +HH:MM gets the local offset appended
    3. a missing end becomes start + 1 hour, same offset form as the start
    4. a missing title becomes "Meeting with {attendee_name}"
    """
    args = _coerce_arguments(arguments)

    attendee_name = (args.get("attendee_name") or "").strip()
    raw_start = args.get("start_date_time")

    parse_date_time(raw_start)
    start_date_time = ensure_utc_offset(raw_start)

    raw_end = args.get("end_date_time")
    if raw_end:
        try:
            end_date_time = ensure_utc_offset(raw_end)
        except InvalidDateError as e:
            raise InvalidDateError(f"Invalid end date: {raw_end}") from e
    else:
        end_date_time = default_end(start_date_time)

    meeting_title = (args.get("meeting_title") or "").strip()
    if not meeting_title:
        meeting_title = f"Meeting with {attendee_name}"

    draft = EventDraft(
        attendee_name=attendee_name,
        meeting_title=meeting_title,
        start_date_time=start_date_time,
        end_date_time=end_date_time,
    )
    logger.info(f"📝 Normalized draft: {draft}")
    return draft
