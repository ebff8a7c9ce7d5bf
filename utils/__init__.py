"""
Utility modules for the Voice Scheduling Assistant
"""

from .logger import VoiceSchedulerLogger
from .validators import RequestValidator, DataSanitizer

__all__ = ['VoiceSchedulerLogger', 'RequestValidator', 'DataSanitizer']
