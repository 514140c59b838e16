"""The host: owns every text thread and routes text from hooked processes into them."""

from __future__ import annotations

import itertools
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from .hookcode import HookParam
from .textthread import Output, TextThread, ThreadParam, ThreadSettings

_ALL_BITS = 2**64 - 1

CONSOLE = ThreadParam(0, _ALL_BITS, _ALL_BITS, _ALL_BITS)
CLIPBOARD = ThreadParam(0, 0, _ALL_BITS, _ALL_BITS)
CONSOLE_NAME = "Console"
CLIPBOARD_NAME = "Clipboard"

ProcessHandler = Callable[[int], Any]
ThreadHandler = Callable[[TextThread], Any]


@dataclass
class _ProcessRecord:
    hooks: dict[int, HookParam] = field(default_factory=dict)


def _ignore(*_: Any) -> None:
    return None


class Host:
    """Keeps the console, clipboard and per-hook text threads.

    Threads are started when created and stopped when removed; use the host
    as a context manager to stop all of them on exit.
    """

    def __init__(
        self,
        on_connect: Optional[ProcessHandler] = None,
        on_disconnect: Optional[ProcessHandler] = None,
        on_create: Optional[ThreadHandler] = None,
        on_destroy: Optional[ThreadHandler] = None,
        output: Optional[Output] = None,
        settings: Optional[ThreadSettings] = None,
    ) -> None:
        self._on_connect = on_connect or _ignore
        self._on_disconnect = on_disconnect or _ignore
        self._on_create = on_create or _ignore
        self._on_destroy = on_destroy or _ignore
        self._output = output
        self.settings = ThreadSettings() if settings is None else settings
        self._handles = itertools.count()
        self._lock = threading.RLock()
        self._threads: dict[ThreadParam, TextThread] = {}
        self._processes: dict[int, _ProcessRecord] = {}

        for tp, name in ((CONSOLE, CONSOLE_NAME), (CLIPBOARD, CLIPBOARD_NAME)):
            with self._lock:
                thread = self._new_thread(tp, HookParam(), name)
            self._created(thread)

    def __enter__(self) -> "Host":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        with self._lock:
            threads = list(self._threads.values())
        for thread in threads:
            thread.stop()

    def _new_thread(self, tp: ThreadParam, hp: HookParam, name: Optional[str] = None) -> TextThread:
        thread = TextThread(
            tp,
            hp,
            handle=next(self._handles),
            name=name,
            output=self._output,
            settings=self.settings,
            on_error=self.add_console_output,
        )
        self._threads[tp] = thread
        return thread

    def _created(self, thread: TextThread) -> None:
        self._on_create(thread)
        thread.start()

    def _remove_threads(self, remove_if: Callable[[ThreadParam], bool]) -> list[TextThread]:
        with self._lock:
            doomed = [thread for tp, thread in self._threads.items() if remove_if(tp)]
        for thread in doomed:
            thread.stop()
            self._on_destroy(thread)
            with self._lock:
                self._threads.pop(thread.tp, None)
        return doomed

    def get_thread(self, tp: ThreadParam) -> TextThread:
        """Return the thread for ``tp``; KeyError if there is none."""
        with self._lock:
            return self._threads[tp]

    def find_thread(self, handle: int) -> Optional[TextThread]:
        """Return the thread with the given handle, or None."""
        with self._lock:
            return next((t for t in self._threads.values() if t.handle == handle), None)

    def threads(self) -> list[TextThread]:
        with self._lock:
            return sorted(self._threads.values(), key=lambda thread: thread.handle)

    def add_console_output(self, text: str) -> None:
        self.get_thread(CONSOLE).add_sentence(text)

    def add_clipboard_text(self, text: str) -> None:
        self.get_thread(CLIPBOARD).add_sentence(text)

    def connect_process(self, process_id: int, hooks: Optional[Mapping[int, HookParam]] = None) -> None:
        """Register a process and the hooks it has, keyed by address."""
        with self._lock:
            record = self._processes.setdefault(process_id, _ProcessRecord())
            record.hooks.update(hooks or {})
        self._on_connect(process_id)

    def disconnect_process(self, process_id: int) -> None:
        """Remove a process and all its threads; KeyError if it is not connected."""
        with self._lock:
            if process_id not in self._processes:
                raise KeyError(process_id)
        self._remove_threads(lambda tp: tp.process_id == process_id)
        self._on_disconnect(process_id)
        with self._lock:
            self._processes.pop(process_id, None)

    def receive_text(self, tp: ThreadParam, data: bytes) -> Optional[TextThread]:
        """Push raw hook output into the thread for ``tp``, creating it if needed.

        Text from a process that is not connected is ignored and None returned.
        """
        created = False
        with self._lock:
            thread = self._threads.get(tp)
            if thread is None:
                record = self._processes.get(tp.process_id)
                if record is None:
                    return None
                thread = self._new_thread(tp, record.hooks.get(tp.addr, HookParam()))
                created = True
        if created:
            self._created(thread)
        thread.push_bytes(data)
        return thread

    def remove_hook(self, process_id: int, address: int) -> list[TextThread]:
        """Remove a hook and the threads it fed; KeyError if the process is not connected."""
        with self._lock:
            self._processes[process_id].hooks.pop(address, None)
        return self._remove_threads(lambda tp: tp.process_id == process_id and tp.addr == address)