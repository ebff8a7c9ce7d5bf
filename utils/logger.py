"""
Logging utilities for the Voice Scheduling Assistant
"""
import logging
import sys
from datetime import datetime
import json


class VoiceSchedulerLogger:
    """Custom logger for the Voice Scheduling Assistant"""

    @staticmethod
    def setup_logging(log_level: str = "INFO", log_file: str = None):
        """Setup logging configuration"""

        # Create formatter
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        # Setup root logger
        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, log_level.upper()))

        # Clear existing handlers
        root_logger.handlers.clear()

        # Console handler
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        # File handler (if specified)
        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        # Suppress some noisy loggers
        for noisy in ('urllib3', 'googleapiclient', 'httpx', 'openai'):
            logging.getLogger(noisy).setLevel(logging.WARNING)

        return root_logger

    @staticmethod
    def log_turn_summary(session_id: str, user_text: str, reply_kind: str,
                         event_link: str, processing_time: float):
        """Log one completed turn for debugging"""
        logger = logging.getLogger(__name__)

        log_entry = {
            "timestamp": datetime.now().isoformat(),
            "session_id": session_id,
            "processing_time_seconds": round(processing_time, 3),
            "user_text": (user_text or "")[:100],
            "reply_kind": reply_kind,
            "event_link": event_link,
        }

        logger.info(f"Turn processed: {json.dumps(log_entry, indent=2)}")
