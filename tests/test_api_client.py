"""Tests for the HTTP client that talks to a running API server."""

from unittest.mock import MagicMock

import pytest
import requests

from src.api.api_client import VoiceSchedulerAPIClient
from src.errors import AuthError, UpstreamError, ValidationError
from src.session.credentials import CredentialPair


def response(status_code, payload):
    resp = MagicMock(ok=200 <= status_code < 300, status_code=status_code, text=str(payload))
    resp.json.return_value = payload
    return resp


@pytest.fixture
def client():
    api = VoiceSchedulerAPIClient("http://localhost:5000/")
    api.session = MagicMock()
    return api


class TestVoiceSchedulerAPIClient:

    def test_complete_parses_function_call(self, client):
        client.session.post.return_value = response(200, {
            "type": "function_call",
            "functionName": "create_calendar_event",
            "arguments": "{}",
            "message": {"role": "assistant", "content": None,
                        "tool_calls": [{"id": "call_7", "type": "function",
                                        "function": {"name": "create_calendar_event", "arguments": "{}"}}]},
        })

        reply = client.complete([{"role": "user", "content": "Book it"}])

        assert reply.is_tool_call
        assert reply.tool_call_id == "call_7"
        url = client.session.post.call_args.args[0]
        assert url == "http://localhost:5000/api/chat"

    def test_error_type_is_mapped_back(self, client):
        client.session.post.return_value = response(400, {
            "error": "Missing required event details (startDateTime).",
            "errorType": "ValidationError",
        })

        with pytest.raises(ValidationError) as exc_info:
            client.complete([])
        assert exc_info.value.status_code == 400

    def test_unknown_error_body_is_upstream_error(self, client):
        client.session.post.return_value = response(502, {"error": "Bad gateway"})

        with pytest.raises(UpstreamError) as exc_info:
            client.complete([])
        assert exc_info.value.status_code == 502

    def test_connection_failure_is_upstream_error(self, client):
        client.session.post.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(UpstreamError):
            client.complete([])

    def test_calendar_checks_auth_locally(self, client):
        with pytest.raises(AuthError):
            client.create_calendar_event({"startDateTime": "2025-03-15T15:00:00-05:00"}, None)
        client.session.post.assert_not_called()

    def test_calendar_sends_tokens(self, client):
        client.session.post.return_value = response(200, {
            "success": True,
            "eventId": "evt_1",
            "htmlLink": "https://calendar.google.com/event?eid=evt_1",
        })
        event = {"startDateTime": "2025-03-15T15:00:00-05:00"}

        result = client.create_calendar_event(event, CredentialPair("a", "r"))

        assert result == {"eventId": "evt_1", "htmlLink": "https://calendar.google.com/event?eid=evt_1"}
        payload = client.session.post.call_args.kwargs["json"]
        assert payload == {"event": event, "tokens": {"access_token": "a", "refresh_token": "r"}}
