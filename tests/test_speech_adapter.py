"""Tests for the restartable recognition stream and exclusive playback."""

import io

import pytest

from src.session.console_speech import ConsoleRecognizer
from src.session.speech_adapter import (
    UNSUPPORTED_WARNING,
    InputClosed,
    RecognitionError,
    SpeechAdapter,
    SynthesisError,
    TranscriptSegment,
)


class ScriptedRecognizer:
    """Each listen() pass replays one scripted item: segments or an exception."""

    available = True

    def __init__(self, passes):
        self.passes = list(passes)
        self.aborted = 0

    def listen(self):
        item = self.passes.pop(0)
        if isinstance(item, Exception):
            raise item
        yield from item

    def abort(self):
        self.aborted += 1


class RecordingSynthesizer:
    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail

    def speak(self, text):
        self.calls.append(("speak", text))
        if self.fail:
            raise SynthesisError("device busy")

    def cancel(self):
        self.calls.append(("cancel", None))


@pytest.fixture
def sleeps():
    return []


def make_adapter(recognizer, sleeps, synthesizer=None, warnings=None):
    adapter = SpeechAdapter(
        recognizer,
        synthesizer,
        on_warning=warnings.append if warnings is not None else None,
        sleep=sleeps.append,
    )
    adapter.start()
    return adapter


class TestSegments:
    """Recognition restarts until the input closes."""

    def test_restarts_after_benign_errors_and_passes(self, sleeps):
        warnings = []
        recognizer = ScriptedRecognizer([
            RecognitionError("no-speech"),
            [TranscriptSegment("hel", False), TranscriptSegment("hello", True)],
            RecognitionError("aborted"),
            InputClosed(),
        ])
        adapter = make_adapter(recognizer, sleeps, warnings=warnings)

        segments = list(adapter.segments())

        assert segments == [TranscriptSegment("hel", False), TranscriptSegment("hello", True)]
        assert warnings == []
        assert sleeps == [0.3, 0.3, 0.3]
        assert not adapter.active

    def test_other_errors_warn_and_keep_listening(self, sleeps):
        warnings = []
        recognizer = ScriptedRecognizer([
            RecognitionError("network"),
            [TranscriptSegment("still here", True)],
            InputClosed(),
        ])
        adapter = make_adapter(recognizer, sleeps, warnings=warnings)

        segments = list(adapter.segments())

        assert warnings == ["⚠️ Microphone error: network"]
        assert segments == [TranscriptSegment("still here", True)]

    def test_unavailable_backend_warns_once(self, sleeps):
        warnings = []
        recognizer = ScriptedRecognizer([])
        recognizer.available = False
        adapter = make_adapter(recognizer, sleeps, warnings=warnings)

        assert list(adapter.segments()) == []
        assert warnings == [UNSUPPORTED_WARNING]

    def test_stop_ends_stream(self, sleeps):
        recognizer = ScriptedRecognizer([[TranscriptSegment("one", True), TranscriptSegment("two", True)]])
        synthesizer = RecordingSynthesizer()
        adapter = make_adapter(recognizer, sleeps, synthesizer=synthesizer)

        stream = adapter.segments()
        assert next(stream) == TranscriptSegment("one", True)
        adapter.stop()

        assert list(stream) == []
        assert recognizer.aborted == 1
        assert synthesizer.calls == [("cancel", None)]


class TestSpeak:
    """Playback cancels whatever is in progress first."""

    def test_cancel_then_speak(self, sleeps):
        synthesizer = RecordingSynthesizer()
        adapter = make_adapter(ScriptedRecognizer([]), sleeps, synthesizer=synthesizer)

        adapter.speak("first")
        adapter.speak("second")

        assert synthesizer.calls == [
            ("cancel", None), ("speak", "first"),
            ("cancel", None), ("speak", "second"),
        ]

    def test_synthesis_errors_are_not_fatal(self, sleeps):
        adapter = make_adapter(ScriptedRecognizer([]), sleeps, synthesizer=RecordingSynthesizer(fail=True))
        adapter.speak("hello")

    def test_no_synthesizer_is_silent(self, sleeps):
        adapter = make_adapter(ScriptedRecognizer([]), sleeps)
        adapter.speak("hello")


class TestConsoleRecognizer:
    """Typed lines stand in for the microphone."""

    def test_line_kinds(self, sleeps):
        output = io.StringIO()
        recognizer = ConsoleRecognizer(stream=io.StringIO("draft...\n\nfinal  text\n"), output=output)
        adapter = make_adapter(recognizer, sleeps)

        segments = list(adapter.segments())

        assert segments == [TranscriptSegment("draft", False), TranscriptSegment("final  text", True)]
        assert output.getvalue().count("You: ") == 4

    def test_abort_reports_aborted(self):
        recognizer = ConsoleRecognizer(stream=io.StringIO("late line\n"), output=io.StringIO())
        passes = recognizer.listen()
        recognizer.abort()
        # abort before the pass starts is cleared when listening begins
        assert next(passes) == TranscriptSegment("late line", True)
