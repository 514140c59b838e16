"""Small sentence extensions: extra newlines, thread linking and a regex filter."""

from __future__ import annotations

import os
import re
import threading
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Optional, Union

from .blockmarkup import parse_blocks
from .replacer import decode_script

REGEX_SAVE_FILE = "SavedRegexFilters.txt"


def extra_newlines(sentence: str, info: Mapping[str, int]) -> Optional[str]:
    """Append a newline to every sentence not from the console."""
    if info["text number"] == 0:
        return None
    return sentence + "\n"


class ThreadLinker:
    """Copy text from one thread into others.

    A link with source None applies to every thread except the console and
    the clipboard. The sentence info must carry callables under 'add text'
    and 'add sentence' that take a thread number and the text.
    """

    def __init__(self, separate_sentences: bool = False) -> None:
        self.separate_sentences = separate_sentences
        self._lock = threading.Lock()
        self._links: dict[int, set[int]] = {}
        self._universal: set[int] = set()

    def link(self, source: Optional[int], target: int) -> bool:
        """Add a link; return False if it already existed."""
        with self._lock:
            targets = self._universal if source is None else self._links.setdefault(source, set())
            if target in targets:
                return False
            targets.add(target)
            return True

    def unlink(self, source: Optional[int], target: int) -> bool:
        """Remove a link; return False if there was none."""
        with self._lock:
            targets = self._universal if source is None else self._links.get(source, set())
            if target not in targets:
                return False
            targets.discard(target)
            return True

    def links(self) -> list[tuple[Optional[int], int]]:
        with self._lock:
            return [(None, target) for target in sorted(self._universal)] + [
                (source, target)
                for source in sorted(self._links)
                for target in sorted(self._links[source])
            ]

    def process(self, sentence: str, info: Mapping[str, Any]) -> None:
        number = info["text number"]
        action = info["add sentence" if self.separate_sentences else "add text"]
        with self._lock:
            targets = sorted(self._links.get(number, ()))
            if number > 1:
                targets += sorted(self._universal)
        for target in targets:
            action(target, sentence)
        return None


def _first_group(match: re.Match) -> str:
    if match.re.groups < 1:
        return ""
    return match.group(1) or ""


class RegexFilter:
    """Replace each regex match by its first group, with filters saved per process.

    ``process_name`` maps a process id to its executable path, or None.
    """

    def __init__(
        self,
        save_file: Union[str, os.PathLike] = REGEX_SAVE_FILE,
        process_name: Optional[Callable[[int], Optional[str]]] = None,
    ) -> None:
        self.save_file = Path(save_file)
        self._process_name = process_name or (lambda process_id: None)
        self._lock = threading.RLock()
        self._regex: Optional[re.Pattern] = None
        self.pattern = ""

    def set_regex(self, pattern: str) -> None:
        """Use a new filter; an empty pattern turns filtering off.

        Raises ValueError for an invalid pattern and keeps the old one.
        """
        with self._lock:
            if not pattern:
                self._regex = None
            else:
                try:
                    compiled = re.compile(pattern)
                except re.error as error:
                    raise ValueError(f"invalid regex: {pattern!r}") from error
                self._regex = compiled
            self.pattern = pattern

    def save(self, process_id: int) -> None:
        """Append the current filter to the save file under the process's name."""
        name = self._process_name(process_id) or f"Error getting name of process 0x{process_id:X}"
        record = f"\ufeff|PROCESS|{name}|FILTER|{self.pattern}|END|\r\n"
        with open(self.save_file, "ab") as file:
            file.write(record.encode("utf-16-le"))

    def load_saved(self, process_name: str) -> Optional[str]:
        """Use the last filter saved for the process; return it, or None if there is none."""
        try:
            data = self.save_file.read_bytes()
        except OSError:
            return None
        saved = [
            pattern
            for name, pattern in parse_blocks(decode_script(data), ("|PROCESS|", "|FILTER|"))
            if name == process_name
        ]
        if not saved:
            return None
        self.set_regex(saved[-1])
        return saved[-1]

    def process(self, sentence: str, info: Mapping[str, int]) -> Optional[str]:
        if info["text number"] == 0:
            return None
        with self._lock:
            if self._regex is None:
                name = self._process_name(info["process id"])
                if name:
                    try:
                        self.load_saved(name)
                    except ValueError:
                        pass
            regex = self._regex
        if regex is None:
            return sentence
        return regex.sub(_first_group, sentence)