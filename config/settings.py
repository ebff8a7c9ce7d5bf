"""
Configuration settings for the Voice Scheduling Assistant
"""
import os
from datetime import datetime
from typing import Dict, Any

from src.errors import ConfigurationError


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def format_utc_offset(moment: datetime) -> str:
    """Render the UTC offset of an aware datetime as +HH:MM / -HH:MM"""
    offset = moment.utcoffset()
    total_minutes = int(offset.total_seconds() // 60) if offset is not None else 0
    sign = "+" if total_minutes >= 0 else "-"
    hours, minutes = divmod(abs(total_minutes), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"


class Config:
    # Chat completion provider (OpenAI-compatible endpoint, Groq by default)
    GROQ_API_KEY = os.getenv("GROQ_API_KEY", "")
    CHAT_BASE_URL = os.getenv("CHAT_BASE_URL", "https://api.groq.com/openai/v1")
    CHAT_MODEL = os.getenv("CHAT_MODEL", "llama-3.3-70b-versatile")
    LLM_TIMEOUT = _env_float("LLM_TIMEOUT", 30.0)
    LLM_MAX_RETRIES = _env_int("LLM_MAX_RETRIES", 2)  # SDK default

    # Short spoken replies
    MAX_TOKENS = _env_int("MAX_TOKENS", 300)
    TEMPERATURE = _env_float("TEMPERATURE", 0.7)

    # OpenAI realtime voice sessions
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
    REALTIME_SESSIONS_URL = "https://api.openai.com/v1/realtime/sessions"
    REALTIME_MODEL = os.getenv("REALTIME_MODEL", "gpt-4o-realtime-preview-2024-12-17")
    REALTIME_VOICE = os.getenv("REALTIME_VOICE", "verse")
    REALTIME_TRANSCRIPTION_MODEL = os.getenv("REALTIME_TRANSCRIPTION_MODEL", "gpt-4o-mini-transcribe")
    REALTIME_TIMEOUT = 15

    # Google OAuth / Calendar
    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID", "")
    GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET", "")
    GOOGLE_REDIRECT_URI = os.getenv("GOOGLE_REDIRECT_URI", "http://localhost:5000/api/auth/callback")
    GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
    GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
    GOOGLE_SCOPES = ["https://www.googleapis.com/auth/calendar.events"]
    CALENDAR_ID = "primary"

    # Where the OAuth callback sends the browser back to
    BASE_URL = os.getenv("BASE_URL", "http://localhost:3000")

    # Scheduling defaults
    DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE") or os.getenv("TZ") or ""
    FALLBACK_TIMEZONE = "UTC"
    DEFAULT_MEETING_DURATION_MINUTES = 60
    DEFAULT_MEETING_SUMMARY = "Meeting"

    # Session storage
    TOKEN_STORAGE_KEY = "calendar_tokens"

    # Speech I/O
    SPEECH_RESTART_DELAY = 0.3  # seconds
    GREETING_TRIGGER = "Hello"
    FALLBACK_REPLY = "I'm sorry, I didn't understand that."

    # API Configuration
    API_HOST = os.getenv("API_HOST", "0.0.0.0")
    API_PORT = _env_int("API_PORT", 5000)
    API_CLIENT_TIMEOUT = 60  # seconds

    SYSTEM_PROMPT = """You are a friendly and professional voice scheduling assistant. Your goal is to help users schedule calendar events.

Follow this conversation flow:
1. Greet the user warmly and ask for their name.
2. Once you have their name, ask what date and time they'd like to schedule a meeting.
3. Optionally ask if they have a title or topic for the meeting.
4. Confirm all the details back to the user (name, date/time, meeting title).
5. Once confirmed, call the "create_calendar_event" function with the collected information.
6. After the event is created, inform the user of the success.

Important guidelines:
- Be conversational and natural, this is a voice interaction. Keep responses short (1-2 sentences).
- Parse dates and times flexibly (e.g., "next Tuesday at 3pm", "tomorrow morning", "January 5th at 2:30").
- If the user doesn't provide a meeting title, use "Meeting with [name]" as default.
- Default meeting duration is 1 hour unless specified otherwise.
- Always confirm details before creating the event.
- CRITICAL: When calling create_calendar_event, all datetimes MUST be in full ISO 8601 with timezone offset, e.g. "2026-02-27T15:00:00{tz_offset}". NEVER omit the timezone offset.
- The end_date_time must always be AFTER the start_date_time (default: 1 hour later).
- Current date/time: {now} (timezone: {tz_name}, offset: {tz_offset})."""

    REALTIME_INSTRUCTIONS = """You are a friendly and professional voice scheduling assistant. Your goal is to help users schedule calendar events.

Follow this conversation flow:
1. Greet the user warmly and ask for their name.
2. Once you have their name, ask what date and time they'd like to schedule a meeting.
3. Optionally ask if they have a title or topic for the meeting.
4. Confirm all the details back to the user (name, date/time, meeting title).
5. Once confirmed, call the "create_calendar_event" function with the collected information.
6. After the event is created, inform the user of the success and provide the event link if available.

Important guidelines:
- Be conversational and natural, this is a voice interaction.
- Parse dates and times flexibly (e.g., "next Tuesday at 3pm", "tomorrow morning", "January 5th at 2:30").
- If the user doesn't provide a meeting title, use "Meeting with [name]" as default.
- Default meeting duration is 1 hour unless specified otherwise.
- Always confirm details before creating the event.
- Convert all times to ISO 8601 format when calling the function.
- Keep responses concise since this is voice."""

    @classmethod
    def build_system_prompt(cls, now: datetime = None) -> str:
        """Fill the system prompt with the current local time and offset"""
        now = (now or datetime.now()).astimezone()
        tz_offset = format_utc_offset(now)
        tz_name = cls.DEFAULT_TIMEZONE or now.tzname() or cls.FALLBACK_TIMEZONE
        return cls.SYSTEM_PROMPT.format(
            now=now.isoformat(timespec="seconds"),
            tz_name=tz_name,
            tz_offset=tz_offset,
        )

    @classmethod
    def has_chat_credentials(cls) -> bool:
        return bool(cls.GROQ_API_KEY)

    @classmethod
    def resolve_timezone(cls, explicit: str = None) -> str:
        """Explicit zone, else the configured system default, else UTC"""
        return explicit or cls.DEFAULT_TIMEZONE or cls.FALLBACK_TIMEZONE

    @classmethod
    def google_client_config(cls) -> Dict[str, Any]:
        """Client config in the shape google_auth_oauthlib expects"""
        if not cls.GOOGLE_CLIENT_ID or not cls.GOOGLE_CLIENT_SECRET:
            raise ConfigurationError(
                "GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET not configured"
            )

        return {
            "web": {
                "client_id": cls.GOOGLE_CLIENT_ID,
                "client_secret": cls.GOOGLE_CLIENT_SECRET,
                "redirect_uris": [cls.GOOGLE_REDIRECT_URI],
                "auth_uri": cls.GOOGLE_AUTH_URI,
                "token_uri": cls.GOOGLE_TOKEN_URI,
            }
        }
