"""
Validation utilities for the Voice Scheduling Assistant
"""
import re
from typing import Dict, Any, List


class RequestValidator:
    """Validator for incoming API payloads"""

    VALID_ROLES = ("user", "assistant", "tool")

    @staticmethod
    def validate_calendar_payload(request_data: Any) -> List[str]:
        """Structural checks for POST /api/calendar (auth/field rules live in the calendar client)"""
        errors = []

        if not isinstance(request_data, dict):
            return ["Request body must be a JSON object"]

        event = request_data.get("event")
        if event is not None and not isinstance(event, dict):
            errors.append("'event' must be an object")

        tokens = request_data.get("tokens")
        if tokens is not None and not isinstance(tokens, dict):
            errors.append("'tokens' must be an object")

        return errors

    @staticmethod
    def validate_chat_payload(request_data: Any) -> List[str]:
        """Validate POST /api/chat body and return list of errors"""
        errors = []

        if not isinstance(request_data, dict):
            return ["Request body must be a JSON object"]

        messages = request_data.get("messages")
        if not isinstance(messages, list):
            return ["'messages' must be a list"]

        for i, message in enumerate(messages):
            if not isinstance(message, dict):
                errors.append(f"Message {i} must be an object")
                continue

            role = message.get("role")
            if role not in RequestValidator.VALID_ROLES:
                errors.append(f"Message {i} has invalid role: {role}")

            if role == "tool":
                if not message.get("tool_call_id"):
                    errors.append(f"Tool message {i} missing 'tool_call_id'")
                if i == 0 or not RequestValidator._requested_tool_call(messages[i - 1], message.get("tool_call_id")):
                    errors.append(f"Tool message {i} must follow the assistant message that requested it")

        return errors

    @staticmethod
    def _requested_tool_call(previous: Any, tool_call_id: str) -> bool:
        if not isinstance(previous, dict) or previous.get("role") != "assistant":
            return False
        tool_calls = previous.get("tool_calls") or []
        return any(isinstance(call, dict) and call.get("id") == tool_call_id for call in tool_calls)


class DataSanitizer:
    """Sanitize and clean input data"""

    @staticmethod
    def sanitize_transcript(text: str) -> str:
        """Collapse recognizer whitespace"""
        if not text:
            return ""
        return re.sub(r'\s+', ' ', text.strip())

    @staticmethod
    def sanitize_messages(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Keep only the fields the chat endpoint accepts"""
        allowed = ("role", "content", "tool_call_id", "tool_calls", "name")
        return [{k: v for k, v in message.items() if k in allowed} for message in messages]
