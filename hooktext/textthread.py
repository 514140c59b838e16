"""Text threads: collect the text one hook produces and hand it out in sentences."""

from __future__ import annotations

import codecs
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

from .hookcode import HookParam, HookType

SHIFT_JIS = 932
UTF8_CODEPAGE = 65001
FLUSH_INTERVAL_SECONDS = 0.01
MIN_REPEAT_LENGTH = 6
INVALID_CODEPAGE_MESSAGE = "Textractor: invalid codepage"

Output = Callable[["TextThread", str], Optional[str]]


@dataclass(frozen=True)
class ThreadParam:
    process_id: int = 0
    addr: int = 0
    ctx: int = 0
    ctx2: int = 0


@dataclass
class ThreadSettings:
    filter_repetition: bool = False
    flush_delay: int = 500
    max_buffer_size: int = 3000
    max_history_size: int = 10_000_000
    default_codepage: int = SHIFT_JIS


def _milliseconds() -> int:
    return time.monotonic_ns() // 1_000_000


def _codec_name(codepage: int) -> str:
    name = "utf-8" if codepage == UTF8_CODEPAGE else f"cp{codepage}"
    return codecs.lookup(name).name


def _is_lead_byte(codepage: int, byte: int) -> bool:
    if codepage == UTF8_CODEPAGE:
        return False
    try:
        decoder = codecs.getincrementaldecoder(_codec_name(codepage))()
        return decoder.decode(bytes([byte]), final=False) == ""
    except (LookupError, UnicodeDecodeError):
        return False


def remove_repetition(text: str) -> Optional[str]:
    """If text ends with a phrase of more than six characters repeated three times,
    return that phrase (reduced the same way); otherwise None."""
    found = False
    while True:
        size = len(text)
        for length in range(size // 3, MIN_REPEAT_LENGTH, -1):
            last = text[size - length:]
            if text[size - 3 * length:size - 2 * length] == last == text[size - 2 * length:size - length]:
                text = last
                found = True
                break
        else:
            break
    return text if found else None


class TextThread:
    """Buffers a hook's text, splits it into sentences and keeps their history.

    ``output`` receives each sentence and returns the text to store, or None
    to drop it. ``on_error`` receives messages about text that cannot be read.
    """

    def __init__(
        self,
        tp: ThreadParam,
        hp: HookParam,
        handle: int = 0,
        name: Optional[str] = None,
        output: Optional[Output] = None,
        settings: Optional[ThreadSettings] = None,
        on_error: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.tp = tp
        self.hp = hp
        self.handle = handle
        self.name = hp.name if name is None else name
        self.settings = ThreadSettings() if settings is None else settings
        self._output = output
        self._on_error = on_error

        self._buffer = ""
        self._lead_byte: Optional[int] = None
        self._repeating_chars: set[str] = set()
        self._last_push_time = 0
        self._buffer_lock = threading.Lock()

        self._queue: list[str] = []
        self._queue_lock = threading.Lock()

        self._storage = ""
        self._storage_lock = threading.Lock()

        self._stop_event: Optional[threading.Event] = None
        self._timer: Optional[threading.Thread] = None

    def start(self) -> None:
        """Flush periodically in a background thread."""
        if self._timer is not None:
            return
        stop_event = threading.Event()
        self._stop_event = stop_event

        def run() -> None:
            while not stop_event.wait(FLUSH_INTERVAL_SECONDS):
                self.flush()

        self._timer = threading.Thread(target=run, name=f"text-thread-{self.handle}", daemon=True)
        self._timer.start()

    def stop(self) -> None:
        """Stop periodic flushing and wait for a running flush to finish."""
        timer, stop_event = self._timer, self._stop_event
        self._timer = self._stop_event = None
        if stop_event is not None:
            stop_event.set()
        if timer is not None and timer is not threading.current_thread():
            timer.join()

    def add_sentence(self, sentence: str) -> None:
        with self._queue_lock:
            self._queue.append(sentence)

    def push_bytes(self, data: bytes) -> None:
        """Append raw hook output, decoded according to the hook's type."""
        data = bytes(data)
        codepage = self.hp.codepage or self.settings.default_codepage
        kind = self.hp.type
        failed = False
        with self._buffer_lock:
            if len(data) == 1:
                # double-byte characters may arrive one byte at a time
                if self._lead_byte is not None:
                    data = bytes([self._lead_byte]) + data
                    self._lead_byte = None
                elif _is_lead_byte(codepage, data[0]):
                    self._lead_byte = data[0]
                    data = b""

            if kind & HookType.HEX_DUMP:
                words = (data[i:i + 2].ljust(2, b"\0") for i in range(0, len(data), 2))
                self._buffer += "".join(f"{int.from_bytes(word, 'little'):04X} " for word in words)
            elif kind & HookType.USING_UNICODE:
                self._buffer += data[:len(data) // 2 * 2].decode("utf-16-le", "surrogatepass")
            else:
                try:
                    self._buffer += data.decode(_codec_name(codepage), errors="replace")
                except LookupError:
                    failed = True
            if kind & HookType.FULL_STRING:
                self._buffer += "\n"
            self._last_push_time = _milliseconds()

            if self.settings.filter_repetition:
                if all(ch in self._repeating_chars for ch in self._buffer):
                    self._buffer = ""
                repeated = remove_repetition(self._buffer)
                if repeated is not None:
                    # the whole sentence has been received once already
                    self._repeating_chars = set(repeated)
                    self.add_sentence(repeated)
                    self._buffer = ""

            if self.settings.flush_delay == 0 and kind & HookType.FULL_STRING:
                self.add_sentence(self._buffer)
                self._buffer = ""
        if failed and self._on_error is not None:
            self._on_error(INVALID_CODEPAGE_MESSAGE)

    def push_text(self, text: str) -> None:
        """Append already decoded text."""
        with self._buffer_lock:
            self._last_push_time = _milliseconds()
            self._buffer += text

    def flush(self) -> None:
        """Output queued sentences and turn a stale or oversized buffer into a sentence."""
        with self._storage_lock:
            excess = len(self._storage) - self.settings.max_history_size
            if excess > 0:
                self._storage = self._storage[excess:]

        with self._queue_lock:
            sentences, self._queue = self._queue, []
        for sentence in sentences:
            sentence = sentence.replace("\0", "")
            result = sentence if self._output is None else self._output(self, sentence)
            if result is not None:
                with self._storage_lock:
                    self._storage += result

        with self._buffer_lock:
            if not self._buffer:
                return
            stale = _milliseconds() - self._last_push_time > self.settings.flush_delay
            if len(self._buffer) > self.settings.max_buffer_size or stale:
                self.add_sentence(self._buffer)
                self._buffer = ""

    def storage(self) -> str:
        """All text output so far, limited to the history size."""
        with self._storage_lock:
            return self._storage