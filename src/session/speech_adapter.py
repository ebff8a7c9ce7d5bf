"""
Speech I/O adapter

Wraps a speech-to-text recognizer and a text-to-speech synthesizer behind a
lazy, restartable stream of transcript segments and an exclusive speak().
The engines themselves are pluggable backends.
"""
import logging
import threading
import time
from typing import Callable, Iterator, Optional, Protocol

from config.settings import Config

logger = logging.getLogger(__name__)

# Recognizer terminations that just mean "start again"
BENIGN_ERRORS = frozenset({"no-speech", "aborted"})

UNSUPPORTED_WARNING = (
    "⚠️ Speech recognition is not supported by this speech backend. "
    "Please use a backend with a microphone recognizer."
)


class TranscriptSegment:
    """One recognition result; final segments will not be revised"""

    __slots__ = ("text", "is_final")

    def __init__(self, text: str, is_final: bool):
        self.text = text
        self.is_final = is_final

    def __eq__(self, other):
        if not isinstance(other, TranscriptSegment):
            return NotImplemented
        return (self.text, self.is_final) == (other.text, other.is_final)

    def __repr__(self):
        kind = "final" if self.is_final else "interim"
        return f"TranscriptSegment({kind}, {self.text!r})"


class RecognitionError(Exception):
    """Recognizer stopped with an error code such as 'no-speech' or 'network'"""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code

    @property
    def is_benign(self) -> bool:
        return self.code in BENIGN_ERRORS


class InputClosed(Exception):
    """The audio/text source is gone for good; the session should end"""


class SynthesisError(Exception):
    """The synthesizer failed to play an utterance"""


class SpeechRecognizer(Protocol):
    """Converts live input into transcript segments."""

    available: bool

    def listen(self) -> Iterator[TranscriptSegment]:
        """Run one recognition pass, yielding interim and final segments."""

    def abort(self) -> None:
        """Stop the current pass as soon as possible."""


class SpeechSynthesizer(Protocol):
    """Speaks text responses."""

    def speak(self, text: str) -> None:
        """Play the utterance, returning once it has finished or been cancelled."""

    def cancel(self) -> None:
        """Cut off any utterance in progress."""


class SpeechAdapter:
    """Session-owned speech I/O: restartable recognition plus exclusive playback"""

    def __init__(self, recognizer: SpeechRecognizer,
                 synthesizer: Optional[SpeechSynthesizer] = None,
                 on_warning: Callable[[str], None] = None,
                 restart_delay: float = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.recognizer = recognizer
        self.synthesizer = synthesizer
        self.on_warning = on_warning
        self.restart_delay = Config.SPEECH_RESTART_DELAY if restart_delay is None else restart_delay
        self._sleep = sleep
        self._active = threading.Event()
        self._speech_lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self._active.is_set()

    def _warn(self, message: str):
        logger.warning(message)
        if self.on_warning:
            self.on_warning(message)

    def start(self):
        self._active.set()

    def stop(self):
        """Abort recognition and cancel playback"""
        self._active.clear()
        try:
            self.recognizer.abort()
        finally:
            if self.synthesizer is not None:
                self.synthesizer.cancel()

    def segments(self) -> Iterator[TranscriptSegment]:
        """
        Yield transcript segments for as long as the adapter is active.

        Each recognizer pass that ends, or fails with a benign error, is
        restarted after restart_delay. Other errors are surfaced through
        on_warning and listening carries on.
        """
        if not getattr(self.recognizer, "available", True):
            self._warn(UNSUPPORTED_WARNING)
            return

        while self.active:
            try:
                for segment in self.recognizer.listen():
                    if not self.active:
                        return
                    yield segment
            except RecognitionError as e:
                if e.is_benign:
                    logger.debug(f"[STT] benign termination: {e.code}")
                else:
                    self._warn(f"⚠️ Microphone error: {e.code}")
            except InputClosed:
                logger.info("[STT] input closed")
                self._active.clear()
                return

            if self.active and self.restart_delay:
                self._sleep(self.restart_delay)

    def speak(self, text: str):
        """Speak text, cancelling whatever is currently being spoken"""
        if self.synthesizer is None:
            return

        self.synthesizer.cancel()
        with self._speech_lock:
            try:
                self.synthesizer.speak(text)
            except SynthesisError as e:
                logger.warning(f"[TTS] {e}")
