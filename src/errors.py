"""
Error taxonomy for the Voice Scheduling Assistant

Every error carries the HTTP-equivalent status the API layer answers with.
The turn controller recovers all of them at the turn boundary.
"""
from typing import Dict, Optional


class VoiceSchedulerError(Exception):
    """Base class for all recoverable assistant errors"""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, str]:
        return {"error": self.message, "errorType": type(self).__name__}


class ConfigurationError(VoiceSchedulerError):
    """A required API key or client setting is missing"""

    status_code = 500


class AuthError(VoiceSchedulerError):
    """No calendar credentials for this session"""

    status_code = 401


class ValidationError(VoiceSchedulerError):
    """A required scheduling field is missing"""

    status_code = 400


class InvalidDateError(VoiceSchedulerError):
    """The model produced a date-time that cannot be parsed"""

    status_code = 400


class EmptyResponseError(VoiceSchedulerError):
    """The provider answered without any usable choice"""

    status_code = 500


class UpstreamError(VoiceSchedulerError):
    """A provider answered with a non-success status"""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message, status_code or 500)
        self.body = body
