"""
Flask API server for the Voice Scheduling Assistant
"""
import logging
import signal
import sys
import time
from datetime import datetime
from urllib.parse import urljoin

import requests
from flask import Flask, request, jsonify, redirect
from flask_cors import CORS

from config.settings import Config
from src.ai_agent.llm_client import ChatClient
from src.ai_agent.tools import get_realtime_tools
from src.calendar.calendar_manager import CalendarManager
from src.calendar.oauth import OAuthManager
from src.errors import ConfigurationError, VoiceSchedulerError
from src.session.credentials import CredentialPair
from utils.validators import RequestValidator, DataSanitizer

logger = logging.getLogger(__name__)


class VoiceSchedulerAPI:
    """
    HTTP routes backing the voice assistant front-end: OAuth, chat turns,
    calendar inserts and realtime voice sessions
    """

    def __init__(self, chat_client=None, calendar_client=None, oauth_manager=None):
        self.config = Config()
        self.app = Flask(__name__)
        CORS(self.app)  # Enable CORS for cross-origin requests

        self.chat_client = chat_client or ChatClient()
        self.calendar_client = calendar_client or CalendarManager()
        self.oauth_manager = oauth_manager or OAuthManager()

        self.start_time = time.time()

        self._setup_routes()

    def _error_response(self, error: VoiceSchedulerError):
        return jsonify(error.to_dict()), error.status_code

    def _setup_routes(self):
        """Setup Flask routes"""

        @self.app.route('/health', methods=['GET'])
        def health_check():
            """Health check endpoint"""
            return jsonify({
                "status": "healthy",
                "timestamp": datetime.now().isoformat(),
                "chat_configured": self.config.has_chat_credentials(),
                "uptime": time.time() - self.start_time,
            })

        @self.app.route('/api/auth', methods=['GET'])
        def auth_url():
            """Google consent URL for calendar access"""
            try:
                return jsonify({"url": self.oauth_manager.get_auth_url()})
            except ConfigurationError as e:
                logger.error(f"OAuth not configured: {e.message}")
                return self._error_response(e)

        @self.app.route('/api/auth/callback', methods=['GET'])
        def auth_callback():
            """Exchange the authorization code and hand the tokens to the front-end"""
            code = request.args.get('code')
            if not code:
                return redirect(urljoin(request.url_root, "/?error=no_code"))

            try:
                tokens = self.oauth_manager.exchange_code(code)
            except Exception as e:
                logger.error(f"OAuth callback error: {e}")
                return redirect(urljoin(request.url_root, "/?error=auth_failed"))

            return redirect(self.oauth_manager.build_redirect_url(tokens))

        @self.app.route('/api/calendar', methods=['POST'])
        def create_event():
            """Insert one calendar event with the caller's tokens"""
            data = request.get_json(silent=True) or {}

            errors = RequestValidator.validate_calendar_payload(data)
            if errors:
                return jsonify({"error": "; ".join(errors)}), 400

            event = data.get("event") or {}
            credentials = CredentialPair.from_dict(data.get("tokens"))

            try:
                result = self.calendar_client.create_calendar_event(event, credentials)
            except VoiceSchedulerError as e:
                logger.error(f"Calendar event creation error: {e.message}")
                return self._error_response(e)

            return jsonify({
                "success": True,
                "eventId": result["eventId"],
                "htmlLink": result["htmlLink"],
            })

        @self.app.route('/api/chat', methods=['POST'])
        def chat():
            """One chat completion over the caller's transcript"""
            data = request.get_json(silent=True)

            errors = RequestValidator.validate_chat_payload(data)
            if errors:
                return jsonify({"error": "; ".join(errors)}), 400

            messages = DataSanitizer.sanitize_messages(data["messages"])
            try:
                reply = self.chat_client.complete(messages)
            except VoiceSchedulerError as e:
                logger.error(f"Chat API error: {e.message}")
                return self._error_response(e)

            return jsonify(reply.to_api_dict())

        @self.app.route('/api/realtime/session', methods=['POST'])
        def realtime_session():
            """Create an ephemeral realtime voice session with the scheduling tool"""
            if not self.config.OPENAI_API_KEY:
                return jsonify({"error": "OPENAI_API_KEY not configured"}), 500

            try:
                response = requests.post(
                    self.config.REALTIME_SESSIONS_URL,
                    json=self._realtime_session_body(),
                    timeout=self.config.REALTIME_TIMEOUT,
                    headers={
                        'Authorization': f"Bearer {self.config.OPENAI_API_KEY}",
                        'Content-Type': 'application/json',
                    },
                )
            except requests.exceptions.RequestException as e:
                logger.error(f"Session creation error: {e}")
                return jsonify({"error": "Internal server error"}), 500

            if not response.ok:
                logger.error(f"OpenAI session creation failed: {response.text}")
                return jsonify({"error": f"Failed to create session: {response.status_code}"}), response.status_code

            return jsonify(response.json())

        @self.app.errorhandler(404)
        def not_found(error):
            return jsonify({"error": "Endpoint not found"}), 404

        @self.app.errorhandler(500)
        def internal_error(error):
            return jsonify({"error": "Internal server error"}), 500

    def _realtime_session_body(self):
        return {
            "model": self.config.REALTIME_MODEL,
            "modalities": ["text", "audio"],
            "voice": self.config.REALTIME_VOICE,
            "instructions": self.config.REALTIME_INSTRUCTIONS,
            "tools": get_realtime_tools(),
            "tool_choice": "auto",
            "input_audio_transcription": {
                "model": self.config.REALTIME_TRANSCRIPTION_MODEL,
            },
            "turn_detection": {
                "type": "server_vad",
                "threshold": 0.5,
                "prefix_padding_ms": 300,
                "silence_duration_ms": 500,
            },
        }

    def _setup_signal_handlers(self):
        """Setup graceful shutdown handlers"""
        def signal_handler(signum, frame):
            logger.info(f"Received signal {signum}, shutting down gracefully...")
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def run(self, host=None, port=None, debug=False):
        """Run the Flask server"""
        host = host or self.config.API_HOST
        port = port or self.config.API_PORT

        self._setup_signal_handlers()
        self.start_time = time.time()

        logger.info(f"Starting Voice Scheduler API server on {host}:{port}")
        logger.info(f"Chat provider configured: {self.config.has_chat_credentials()}")

        self.app.run(
            host=host,
            port=port,
            debug=debug,
            threaded=True,  # Enable threading for concurrent requests
            use_reloader=False  # Disable reloader in production
        )


def create_app(chat_client=None, calendar_client=None, oauth_manager=None) -> Flask:
    """Factory function to create Flask app"""
    api = VoiceSchedulerAPI(chat_client, calendar_client, oauth_manager)
    return api.app
