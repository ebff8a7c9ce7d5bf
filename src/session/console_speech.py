"""
Console speech backends: typed lines stand in for the microphone, printed
lines for the speaker.
"""
import sys
import threading
from typing import Iterator, TextIO

from src.session.speech_adapter import InputClosed, RecognitionError, TranscriptSegment

INTERIM_MARKER = "..."


class ConsoleRecognizer:
    """
    Reads one line per recognition pass.

    A blank line is a 'no-speech' timeout, a line ending in '...' is an
    interim draft, anything else is a final transcript. EOF closes the input.
    """

    available = True

    def __init__(self, stream: TextIO = None, output: TextIO = None, prompt: str = "You: "):
        self.stream = stream or sys.stdin
        self.output = output or sys.stdout
        self.prompt = prompt
        self._aborted = threading.Event()

    def listen(self) -> Iterator[TranscriptSegment]:
        self._aborted.clear()
        self.output.write(self.prompt)
        self.output.flush()

        # readline cannot be interrupted; abort takes effect once it returns
        line = self.stream.readline()
        if self._aborted.is_set():
            raise RecognitionError("aborted")
        if line == "":
            raise InputClosed()

        text = line.strip()
        if not text:
            raise RecognitionError("no-speech")

        if text.endswith(INTERIM_MARKER):
            yield TranscriptSegment(text[:-len(INTERIM_MARKER)].strip(), is_final=False)
        else:
            yield TranscriptSegment(text, is_final=True)

    def abort(self):
        self._aborted.set()


class ConsoleSynthesizer:
    """Prints utterances instead of playing them"""

    def __init__(self, output: TextIO = None, speaker: str = "Assistant"):
        self.output = output or sys.stdout
        self.speaker = speaker

    def speak(self, text: str):
        self.output.write(f"{self.speaker}: {text}\n")
        self.output.flush()

    def cancel(self):
        # printing is instantaneous, nothing is ever in progress
        pass
