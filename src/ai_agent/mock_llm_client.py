"""
Scripted chat client for tests and offline console sessions
"""
import json
import logging
from copy import deepcopy
from typing import Any, Dict, Iterable, List, Union

from src.ai_agent.llm_client import ChatReply
from src.ai_agent.tools import CREATE_CALENDAR_EVENT
from src.errors import EmptyResponseError

logger = logging.getLogger(__name__)


def tool_call_reply(arguments: Dict[str, Any], tool_call_id: str = "call_1",
                    name: str = CREATE_CALENDAR_EVENT) -> ChatReply:
    """Build a tool-call reply shaped like the provider's assistant message"""
    encoded = json.dumps(arguments)
    raw_message = {
        "role": "assistant",
        "content": None,
        "tool_calls": [{
            "id": tool_call_id,
            "type": "function",
            "function": {"name": name, "arguments": encoded},
        }],
    }
    return ChatReply.tool_call(name=name, arguments=encoded,
                               tool_call_id=tool_call_id, raw_assistant_message=raw_message)


def text_reply(content: str) -> ChatReply:
    return ChatReply.text(content, {"role": "assistant", "content": content})


class MockChatClient:
    """Replays scripted replies in order and records every history it was sent"""

    DEFAULT_SCRIPT = [
        "Hi there! I'm your scheduling assistant. What's your name?",
        "Nice to meet you. When would you like to schedule the meeting?",
    ]

    def __init__(self, replies: Iterable[Union[str, ChatReply, Exception]] = None):
        self.model_name = "mock-chat"
        self.replies: List[Union[str, ChatReply, Exception]] = list(
            replies if replies is not None else self.DEFAULT_SCRIPT
        )
        self.calls: List[List[Dict[str, Any]]] = []
        logger.info(f"Initialized mock chat client with {len(self.replies)} scripted replies")

    def complete(self, history: List[Dict[str, Any]]) -> ChatReply:
        self.calls.append(deepcopy(history))
        logger.info(f"🤖 MOCK: completion #{len(self.calls)} over {len(history)} messages")

        if not self.replies:
            raise EmptyResponseError("No response from model")

        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, str):
            return text_reply(reply)
        return reply
