"""
HTTP client for a running Voice Scheduler API server

Lets a console session use the server's chat and calendar routes instead
of calling the providers directly. Exposes the same complete() and
create_calendar_event() surface as ChatClient and CalendarManager.
"""
import logging
import time
from typing import Dict, Any, List

import requests

from config.settings import Config
from src.ai_agent.llm_client import ChatReply
from src.calendar.calendar_manager import check_event_request
from src.errors import (
    AuthError,
    ConfigurationError,
    EmptyResponseError,
    InvalidDateError,
    UpstreamError,
    ValidationError,
    VoiceSchedulerError,
)
from src.session.credentials import CredentialPair

logger = logging.getLogger(__name__)

ERROR_TYPES = {
    cls.__name__: cls
    for cls in (AuthError, ConfigurationError, EmptyResponseError,
                InvalidDateError, UpstreamError, ValidationError)
}


class VoiceSchedulerAPIClient:
    """Talks to /api/chat and /api/calendar over HTTP"""

    def __init__(self, base_url: str = None, timeout: float = None):
        self.config = Config()
        self.base_url = (base_url or f"http://localhost:{self.config.API_PORT}").rstrip("/")
        self.timeout = timeout or self.config.API_CLIENT_TIMEOUT
        self.session = requests.Session()
        self.session.headers.update({'Content-Type': 'application/json'})

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        start_time = time.time()
        try:
            response = self.session.post(f"{self.base_url}{path}", json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logger.error(f"Request to {path} timed out")
            raise UpstreamError(f"Request to {path} timed out", status_code=504) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Request to {path} failed: {e}")
            raise UpstreamError(f"Request to {path} failed: {e}") from e

        logger.debug(f"POST {path} -> {response.status_code} ({time.time() - start_time:.2f}s)")

        if not response.ok:
            raise self._error_from_response(response)
        return response.json()

    @staticmethod
    def _error_from_response(response: requests.Response) -> VoiceSchedulerError:
        try:
            data = response.json()
        except ValueError:
            data = {}

        message = data.get("error") or f"HTTP {response.status_code}"
        error_class = ERROR_TYPES.get(data.get("errorType"))

        if error_class is UpstreamError or error_class is None:
            return UpstreamError(message, status_code=response.status_code, body=response.text)
        return error_class(message, status_code=response.status_code)

    def health(self) -> Dict[str, Any]:
        try:
            response = self.session.get(f"{self.base_url}/health", timeout=5)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise UpstreamError(f"Health check failed: {e}") from e
        return response.json()

    def complete(self, history: List[Dict[str, Any]]) -> ChatReply:
        data = self._post("/api/chat", {"messages": history})
        return ChatReply.from_api_dict(data)

    def create_calendar_event(self, event: Dict[str, Any], credentials: CredentialPair) -> Dict[str, str]:
        # fail locally before sending tokens anywhere
        check_event_request(event, credentials)

        data = self._post("/api/calendar", {"event": event, "tokens": credentials.to_dict()})
        return {"eventId": data.get("eventId"), "htmlLink": data.get("htmlLink")}
