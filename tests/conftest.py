"""Shared fixtures for the Voice Scheduling Assistant tests.

The local zone is pinned to a fixed UTC-5 (no DST) before any project
module is imported, so offset-appending is deterministic.
"""

import os
import time

os.environ["TZ"] = "Etc/GMT+5"
time.tzset()

import pytest

from src.ai_agent.mock_llm_client import MockChatClient, tool_call_reply
from src.calendar.mock_calendar_manager import MockCalendarManager
from src.session.credentials import CredentialPair, CredentialStore, SessionStorage
from src.session.turn_controller import TurnController


JOHN_ARGUMENTS = {
    "attendee_name": "John",
    "start_date_time": "2025-03-15T15:00:00",
}


@pytest.fixture
def credentials():
    """A session credential store already holding a token pair."""
    store = CredentialStore(SessionStorage())
    store.set(CredentialPair("access-123", "refresh-456"))
    return store


@pytest.fixture
def calendar():
    return MockCalendarManager()


@pytest.fixture
def john_tool_call():
    return tool_call_reply(dict(JOHN_ARGUMENTS))


@pytest.fixture
def make_controller(calendar, credentials):
    """Build a TurnController around a scripted chat client."""

    def _make(replies, speech=None, store=None):
        chat = MockChatClient(replies)
        controller = TurnController(
            chat,
            calendar,
            speech=speech,
            credentials=store if store is not None else credentials,
            session_id="test",
        )
        return controller, chat

    return _make
