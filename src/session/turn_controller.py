"""
Turn controller - orchestrates one voice session

listen -> (final transcript) -> processing_initial -> [tool call ->
calendar -> processing_followup] -> speaking -> listen ...

The controller owns the session's transcript, credentials and speech
adapter. Only one turn is processed at a time; transcripts that arrive
while a turn is in flight are dropped.
"""
import json
import logging
import threading
import time
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from config.settings import Config
from src.ai_agent.llm_client import ChatReply
from src.ai_agent.tools import CREATE_CALENDAR_EVENT
from src.calendar.event_draft import normalize_event_draft
from src.errors import VoiceSchedulerError
from src.session.credentials import CredentialStore
from src.session.speech_adapter import SpeechAdapter, TranscriptSegment
from utils.logger import VoiceSchedulerLogger
from utils.validators import DataSanitizer

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ListeningState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    PROCESSING = "processing"
    SPEAKING = "speaking"


class ProcessingStep(str, Enum):
    INITIAL = "processing_initial"
    FOLLOWUP = "processing_followup"


class DisplayMessage:
    """Entry of the visible conversation log"""

    def __init__(self, role: str, content: str, timestamp: datetime = None):
        self.role = role
        self.content = content
        self.timestamp = timestamp or datetime.now()

    def to_dict(self) -> Dict[str, str]:
        return {
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }

    def __repr__(self):
        return f"DisplayMessage({self.role}, {self.content!r})"


class TurnController:
    """Drives the listen / think / act / speak loop for one session"""

    def __init__(self, chat_client, calendar_client,
                 speech: Optional[SpeechAdapter] = None,
                 credentials: Optional[CredentialStore] = None,
                 time_zone: str = None,
                 session_id: str = None):
        self.config = Config()
        self.chat_client = chat_client
        self.calendar_client = calendar_client
        self.speech = speech
        self.credentials = credentials or CredentialStore()
        self.time_zone = self.config.resolve_timezone(time_zone)
        self.session_id = session_id or uuid.uuid4().hex[:8]

        self.status = SessionStatus.DISCONNECTED
        self.listening_state = ListeningState.IDLE
        self.processing_step: Optional[ProcessingStep] = None
        self.history: List[Dict[str, Any]] = []
        self.messages: List[DisplayMessage] = []
        self.interim_transcript = ""
        self.created_event_link: Optional[str] = None

        self._processing = threading.Lock()
        self._generation = 0
        self._pending_greeting: Optional[int] = None

        if self.speech is not None:
            self.speech.on_warning = lambda warning: self.add_message("system", warning)

    # ── State helpers ──

    @property
    def is_connected(self) -> bool:
        return self.status == SessionStatus.CONNECTED

    @property
    def is_processing(self) -> bool:
        return self._processing.locked()

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self.is_connected

    def add_message(self, role: str, content: str):
        self.messages.append(DisplayMessage(role, content))
        logger.info(f"[{self.session_id}] {role}: {content}")

    def _reset(self):
        self.history = []
        self.messages = []
        self.interim_transcript = ""
        self.created_event_link = None
        self.processing_step = None

    # ── Session lifecycle ──

    def connect(self):
        """Start the conversation; the assistant speaks first"""
        if self.status != SessionStatus.DISCONNECTED:
            return

        self._generation += 1
        self.status = SessionStatus.CONNECTING
        self._reset()
        self._pending_greeting = None

        try:
            if self.speech is not None:
                self.speech.start()

            self.status = SessionStatus.CONNECTED
            self.listening_state = ListeningState.PROCESSING
            self.add_message("system", "🎤 Connected! The assistant will greet you shortly...")

            if not self.handle_final_transcript(self.config.GREETING_TRIGGER, display=False):
                # a turn from the previous connection still holds the guard
                logger.warning(f"[{self.session_id}] Previous turn still in flight, greeting deferred")
                self._pending_greeting = self._generation
        except Exception as e:
            logger.exception(f"[{self.session_id}] Connect failed")
            self.add_message("system", f"❌ {str(e) or 'Connection failed'}")
            self.disconnect()

    def disconnect(self):
        """
        Stop listening and speaking immediately.

        In-flight chat or calendar requests are not cancelled; their results
        are dropped because the session generation no longer matches.
        """
        self._generation += 1
        self.status = SessionStatus.DISCONNECTED
        self._pending_greeting = None
        self.listening_state = ListeningState.IDLE
        self.processing_step = None
        self.interim_transcript = ""
        self.history = []

        if self.speech is not None:
            self.speech.stop()
        logger.info(f"[{self.session_id}] Disconnected")

    def run(self):
        """Connect, then consume speech segments until the input or session ends"""
        if self.speech is None:
            raise ValueError("run() needs a speech adapter")

        self.connect()
        try:
            for segment in self.speech.segments():
                if not self.is_connected:
                    break
                self.handle_segment(segment)
        finally:
            if self.is_connected:
                self.disconnect()

    # ── Speech events ──

    def handle_segment(self, segment: TranscriptSegment):
        if segment.is_final:
            self.handle_final_transcript(segment.text)
        else:
            self.handle_interim_transcript(segment.text)

    def handle_interim_transcript(self, text: str):
        """Interim results only refresh the draft, they never start a turn"""
        if self.is_connected and not self.is_processing:
            self.interim_transcript = DataSanitizer.sanitize_transcript(text)

    def handle_final_transcript(self, text: str, display: bool = True) -> bool:
        """
        Run one turn for a finalized transcript.

        Returns False when the transcript was dropped: empty text, session
        not connected, or another turn still processing.
        """
        text = DataSanitizer.sanitize_transcript(text)
        if not text or not self.is_connected:
            return False

        if not self._processing.acquire(blocking=False):
            logger.info(f"[{self.session_id}] Turn in progress, ignoring transcript: {text!r}")
            return False

        generation = self._generation
        start_time = time.time()
        reply_kind = "error"
        try:
            self.interim_transcript = ""
            self.history.append({"role": "user", "content": text})
            if display:
                self.add_message("user", text)

            reply_kind = self._run_turn(generation)
        finally:
            self.processing_step = None
            self._processing.release()
            if self._is_current(generation):
                self.listening_state = ListeningState.LISTENING

        VoiceSchedulerLogger.log_turn_summary(
            session_id=self.session_id,
            user_text=text,
            reply_kind=reply_kind,
            event_link=self.created_event_link,
            processing_time=time.time() - start_time,
        )

        if self._pending_greeting is not None and self._pending_greeting == self._generation and self.is_connected:
            self._pending_greeting = None
            self.handle_final_transcript(self.config.GREETING_TRIGGER, display=False)
        return True

    # ── Turn processing ──

    def _run_turn(self, generation: int) -> str:
        """Process, then speak. Assistant errors are surfaced, never fatal"""
        try:
            reply_text, reply_kind = self._process(generation)
        except VoiceSchedulerError as e:
            if self._is_current(generation):
                logger.warning(f"[{self.session_id}] Turn failed: {e.message}")
                self.add_message("system", f"⚠️ {e.message}")
            return "error"
        except Exception as e:
            logger.exception(f"[{self.session_id}] Unexpected turn failure")
            if self._is_current(generation):
                self.add_message("system", f"⚠️ {str(e) or type(e).__name__}")
            return "error"

        if reply_text is None:
            logger.info(f"[{self.session_id}] Session changed mid-turn, dropping reply")
            return "dropped"

        self._speak(reply_text, generation)
        return reply_kind

    def _process(self, generation: int):
        """
        Two bounded steps: processing_initial and, after a tool call,
        exactly one processing_followup. Returns (reply_text, reply_kind),
        reply_text None when the session changed underneath.
        """
        self.listening_state = ListeningState.PROCESSING
        self.processing_step = ProcessingStep.INITIAL
        reply_kind = "text"

        reply = self.chat_client.complete(list(self.history))
        if not self._is_current(generation):
            return None, "dropped"

        if reply.is_tool_call:
            reply_kind = "tool_call"
            tool_result = self._handle_tool_call(reply)
            if not self._is_current(generation):
                return None, "dropped"

            self.history.append(reply.raw_assistant_message)
            self.history.append({
                "role": "tool",
                "content": tool_result,
                "tool_call_id": reply.tool_call_id,
            })

            self.processing_step = ProcessingStep.FOLLOWUP
            reply = self.chat_client.complete(list(self.history))
            if not self._is_current(generation):
                return None, "dropped"

            if reply.is_tool_call:
                logger.warning(f"[{self.session_id}] Follow-up requested another tool call "
                               f"({reply.name}); not executing it")
                reply = ChatReply.text("")

        reply_text = reply.content or self.config.FALLBACK_REPLY
        self.history.append({"role": "assistant", "content": reply_text})
        self.add_message("assistant", reply_text)
        return reply_text, reply_kind

    def _handle_tool_call(self, reply: ChatReply) -> str:
        """Execute create_calendar_event; the JSON result goes back to the model"""
        if reply.name != CREATE_CALENDAR_EVENT:
            logger.warning(f"[{self.session_id}] Unknown tool requested: {reply.name}")
            return json.dumps({"success": False, "error": f"Unknown tool: {reply.name}"})

        try:
            draft = normalize_event_draft(reply.arguments)
            self.add_message(
                "system",
                f'📅 Creating event: "{draft.meeting_title}" on {draft.start.strftime("%Y-%m-%d %H:%M %z")}',
            )

            result = self.calendar_client.create_calendar_event(
                draft.to_event_input(self.time_zone), self.credentials.credentials
            )
        except VoiceSchedulerError as e:
            logger.warning(f"[{self.session_id}] Event creation failed: {e.message}")
            self.add_message("system", f"❌ Failed: {e.message}")
            return json.dumps({"success": False, "error": e.message})
        except Exception:
            logger.exception(f"[{self.session_id}] Calendar error")
            return json.dumps({"success": False, "error": "Failed to create event."})

        self.created_event_link = result.get("htmlLink")
        self.add_message("system", "✅ Event created successfully!")
        return json.dumps({
            "success": True,
            "eventId": result.get("eventId"),
            "htmlLink": result.get("htmlLink"),
        })

    def _speak(self, text: str, generation: int):
        if self.speech is None or not self._is_current(generation):
            return
        self.listening_state = ListeningState.SPEAKING
        self.speech.speak(text)

    def snapshot(self) -> Dict[str, Any]:
        """Serializable view of the session for UIs and debugging"""
        return {
            "session_id": self.session_id,
            "status": self.status.value,
            "listening_state": self.listening_state.value,
            "interim_transcript": self.interim_transcript,
            "created_event_link": self.created_event_link,
            "authenticated": self.credentials.is_authenticated,
            "messages": [message.to_dict() for message in self.messages],
        }
