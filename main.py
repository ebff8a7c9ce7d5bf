#!/usr/bin/env python3
"""
Main entry point for the Voice Scheduling Assistant

Runs the HTTP API, prints the Google consent URL, or starts a console
voice session that schedules meetings through the same turn loop the
browser front-end drives.
"""

import sys
import logging
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

# Add the project directory to the Python path
sys.path.insert(0, str(Path(__file__).parent))

# Config reads the environment at import time
load_dotenv(find_dotenv(usecwd=True))

from config.settings import Config
from utils.logger import VoiceSchedulerLogger


def run_server(host=None, port=None, debug=False):
    """Run the Flask API server"""
    from src.api.flask_server import VoiceSchedulerAPI

    logger = logging.getLogger(__name__)
    logger.info("Starting Voice Scheduling Assistant API...")

    try:
        api = VoiceSchedulerAPI()
        api.run(host=host, port=port, debug=debug)
    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
    except Exception as e:
        logger.error(f"Server error: {e}")
        raise


def print_auth_url():
    """Print the consent URL; the callback route finishes the exchange"""
    from src.calendar.oauth import OAuthManager

    url = OAuthManager().get_auth_url()
    print("Open this URL to connect Google Calendar:")
    print(url)
    return url


def build_clients(api_url=None, mock=False):
    """Pick chat and calendar clients: scripted, over HTTP, or in-process"""
    if mock:
        from src.ai_agent.mock_llm_client import MockChatClient
        from src.calendar.mock_calendar_manager import MockCalendarManager
        return MockChatClient(), MockCalendarManager()

    if api_url:
        from src.api.api_client import VoiceSchedulerAPIClient
        client = VoiceSchedulerAPIClient(api_url)
        return client, client

    from src.ai_agent.llm_client import ChatClient
    from src.calendar.calendar_manager import CalendarManager
    return ChatClient(), CalendarManager()


def run_talk(redirect_url=None, session_file=None, api_url=None, mock=False):
    """Run one console voice session until input closes"""
    from src.session.console_speech import ConsoleRecognizer, ConsoleSynthesizer
    from src.session.credentials import CredentialPair, CredentialStore, SessionStorage
    from src.session.speech_adapter import SpeechAdapter
    from src.session.turn_controller import TurnController

    logger = logging.getLogger(__name__)

    credentials = CredentialStore(SessionStorage(session_file))
    if credentials.load(redirect_url) is None:
        logger.warning("Google Calendar not connected; run 'auth' first to create events")

    chat_client, calendar_client = build_clients(api_url=api_url, mock=mock)
    if mock and not credentials.is_authenticated:
        credentials.set(CredentialPair("mock-access-token"))

    speech = SpeechAdapter(ConsoleRecognizer(), ConsoleSynthesizer())
    controller = TurnController(chat_client, calendar_client, speech=speech, credentials=credentials)

    try:
        controller.run()
    except KeyboardInterrupt:
        controller.disconnect()

    for message in controller.messages:
        if message.role == "system":
            print(message.content)
    if controller.created_event_link:
        print(f"Event link: {controller.created_event_link}")
    return controller


def main():
    """Main CLI entry point"""
    import argparse

    parser = argparse.ArgumentParser(description='Voice Scheduling Assistant')
    parser.add_argument('--log-level', default='INFO', help='Logging level')
    parser.add_argument('--log-file', help='Also write logs to this file')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Server command
    server_parser = subparsers.add_parser('server', help='Run the HTTP API server')
    server_parser.add_argument('--host', default=Config.API_HOST, help='Host to bind to')
    server_parser.add_argument('--port', type=int, default=Config.API_PORT, help='Port to bind to')
    server_parser.add_argument('--debug', action='store_true', help='Enable Flask debug mode')

    # Auth command
    subparsers.add_parser('auth', help='Print the Google Calendar consent URL')

    # Talk command
    talk_parser = subparsers.add_parser('talk', help='Run a console voice session')
    talk_parser.add_argument('--redirect-url', help='OAuth redirect URL carrying the tokens')
    talk_parser.add_argument('--session-file', help='JSON file used as session storage')
    talk_parser.add_argument('--api-url', help='Use a running API server instead of in-process clients')
    talk_parser.add_argument('--mock', action='store_true', help='Scripted chat and in-memory calendar')

    args = parser.parse_args()

    VoiceSchedulerLogger.setup_logging(log_level=args.log_level, log_file=args.log_file)

    if args.command == 'server':
        run_server(host=args.host, port=args.port, debug=args.debug)

    elif args.command == 'auth':
        print_auth_url()

    elif args.command == 'talk':
        run_talk(
            redirect_url=args.redirect_url,
            session_file=args.session_file,
            api_url=args.api_url,
            mock=args.mock,
        )

    else:
        parser.print_help()


if __name__ == '__main__':
    main()
