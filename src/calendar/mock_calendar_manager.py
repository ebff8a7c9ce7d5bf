"""
Mock Calendar Manager for testing without Google Calendar access
"""
import logging
from typing import Dict, Any, List, Optional

from config.settings import Config
from src.calendar.calendar_manager import build_event_body, check_event_request
from src.session.credentials import CredentialPair

logger = logging.getLogger(__name__)


class MockCalendarManager:
    """Same contract as CalendarManager, events kept in memory"""

    LINK_TEMPLATE = "https://calendar.google.com/event?eid={event_id}"

    def __init__(self):
        self.config = Config()
        self.created_events: List[Dict[str, Any]] = []

    def create_calendar_event(self, event: Dict[str, Any],
                              credentials: Optional[CredentialPair]) -> Dict[str, str]:
        check_event_request(event, credentials)

        time_zone = self.config.resolve_timezone(event.get("timeZone"))
        body = build_event_body(event, time_zone)

        event_id = f"mock_event_{len(self.created_events) + 1}"
        body["id"] = event_id
        body["htmlLink"] = self.LINK_TEMPLATE.format(event_id=event_id)
        self.created_events.append(body)

        logger.info(f"📋 MOCK: Created {body['summary']} at {body['start']['dateTime']}")
        return {"eventId": event_id, "htmlLink": body["htmlLink"]}
