"""
Google Calendar integration for the Voice Scheduling Assistant
"""
import logging
from typing import Dict, Any, Optional

from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from config.settings import Config
from src.calendar.event_draft import default_end, ensure_utc_offset
from src.errors import AuthError, UpstreamError, ValidationError
from src.session.credentials import CredentialPair

logger = logging.getLogger(__name__)


def build_event_body(event: Dict[str, Any], time_zone: str) -> Dict[str, Any]:
    """Translate the event input into the Calendar v3 insert body"""
    attendee = event.get("attendeeName") or "Guest"
    start_date_time = ensure_utc_offset(event.get("startDateTime"))
    end_date_time = event.get("endDateTime")
    end_date_time = ensure_utc_offset(end_date_time) if end_date_time else default_end(start_date_time)
    return {
        "summary": event.get("summary") or Config.DEFAULT_MEETING_SUMMARY,
        "description": event.get("description") or f"Meeting scheduled with {attendee}",
        "start": {
            "dateTime": start_date_time,
            "timeZone": time_zone,
        },
        "end": {
            "dateTime": end_date_time,
            "timeZone": time_zone,
        },
    }


def check_event_request(event: Optional[Dict[str, Any]],
                        credentials: Optional[CredentialPair]):
    """Auth first, then required fields; raises before any network call"""
    if credentials is None or not credentials.access_token:
        raise AuthError("Not authenticated. Please connect Google Calendar first.")
    if not event or not event.get("startDateTime"):
        raise ValidationError("Missing required event details (startDateTime).")


class CalendarManager:
    """Creates events on the user's primary Google Calendar"""

    def __init__(self):
        self.config = Config()

    def _get_credentials(self, credentials: CredentialPair) -> Credentials:
        """Wrap the session's token pair for the Google client"""
        return Credentials(
            token=credentials.access_token,
            refresh_token=credentials.refresh_token,
            token_uri=self.config.GOOGLE_TOKEN_URI,
            client_id=self.config.GOOGLE_CLIENT_ID or None,
            client_secret=self.config.GOOGLE_CLIENT_SECRET or None,
            scopes=self.config.GOOGLE_SCOPES,
        )

    def _build_calendar_service(self, credentials: CredentialPair):
        """Build Google Calendar service for the session's tokens"""
        return build("calendar", "v3", credentials=self._get_credentials(credentials),
                     cache_discovery=False)

    def create_calendar_event(self, event: Dict[str, Any],
                              credentials: Optional[CredentialPair]) -> Dict[str, str]:
        """
        Insert one event and return {"eventId", "htmlLink"}.

        Raises AuthError without a token, ValidationError without a start,
        and UpstreamError for any provider failure. No retries.
        """
        check_event_request(event, credentials)

        time_zone = self.config.resolve_timezone(event.get("timeZone"))
        body = build_event_body(event, time_zone)

        logger.info(f"📅 Creating event: {body['summary']}")
        logger.info(f"   Time: {body['start']['dateTime']} to {body['end']['dateTime']} ({time_zone})")

        try:
            calendar_service = self._build_calendar_service(credentials)
            created_event = calendar_service.events().insert(
                calendarId=self.config.CALENDAR_ID,
                body=body,
            ).execute()
        except HttpError as e:
            status = e.resp.status
            message = e.reason or str(e)
            logger.error(f"HTTP error creating event: {status} - {message}")
            raise UpstreamError(message, status_code=500, body=str(e)) from e
        except GoogleAuthError as e:
            # expired or revoked tokens surface here; there is no in-session refresh
            logger.error(f"Calendar auth error creating event: {e}")
            raise UpstreamError(str(e) or type(e).__name__, status_code=500, body=repr(e)) from e

        result = {
            "eventId": created_event.get("id", ""),
            "htmlLink": created_event.get("htmlLink", ""),
        }
        logger.info(f"✅ Event created: {result['htmlLink']}")
        return result
