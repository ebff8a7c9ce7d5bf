"""
Tool definitions offered to the model for function calling
"""
from typing import Any, Dict, List

CREATE_CALENDAR_EVENT = "create_calendar_event"

_DESCRIPTION = (
    "Creates a calendar event with the specified details. "
    "Call this after the user confirms their meeting details."
)

_PARAMETERS = {
    "type": "object",
    "properties": {
        "attendee_name": {
            "type": "string",
            "description": "The name of the person scheduling the meeting",
        },
        "meeting_title": {
            "type": "string",
            "description": (
                "The title/topic of the meeting. "
                "Defaults to 'Meeting with [name]' if not provided"
            ),
        },
        "start_date_time": {
            "type": "string",
            "description": "The start date and time in ISO 8601 format (e.g., 2025-03-15T14:00:00)",
        },
        "end_date_time": {
            "type": "string",
            "description": (
                "The end date and time in ISO 8601 format. "
                "Defaults to 1 hour after start if not specified"
            ),
        },
    },
    "required": ["attendee_name", "start_date_time"],
}


def get_chat_tools() -> List[Dict[str, Any]]:
    """Chat-completions function calling definitions (exactly one tool)"""
    return [
        {
            "type": "function",
            "function": {
                "name": CREATE_CALENDAR_EVENT,
                "description": _DESCRIPTION,
                "parameters": _PARAMETERS,
            },
        }
    ]


def get_realtime_tools() -> List[Dict[str, Any]]:
    """Same tool in the flat shape the realtime sessions API expects"""
    return [
        {
            "type": "function",
            "name": CREATE_CALENDAR_EVENT,
            "description": _DESCRIPTION,
            "parameters": _PARAMETERS,
        }
    ]
