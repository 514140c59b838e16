"""Sentence extensions: the info passed to them and the chain that runs them."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import NoReturn, Optional, Union

Processor = Callable[[str, "SentenceInfo"], Optional[str]]


class SentenceInfo(Mapping):
    """Read-only named integer properties of a sentence."""

    def __init__(self, info: Mapping[str, int]) -> None:
        self._info = dict(info)

    def __getitem__(self, name: str) -> int:
        return self._info[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._info)

    def __len__(self) -> int:
        return len(self._info)


class Skip(Exception):
    """Raised by an extension to discard the current sentence."""


def skip() -> NoReturn:
    """Discard the sentence currently being processed."""
    raise Skip


def run_extension(
    process: Processor,
    sentence: str,
    info: Union[SentenceInfo, Mapping[str, int]],
) -> str:
    """Run one extension and return the sentence it leaves behind.

    The extension returns a new sentence, or None to leave it unchanged;
    raising Skip empties it.
    """
    if not isinstance(info, SentenceInfo):
        info = SentenceInfo(info)
    try:
        result = process(sentence, info)
    except Skip:
        return ""
    return sentence if result is None else result


@dataclass(frozen=True)
class _Extension:
    name: str
    process: Processor


class ExtensionChain:
    """An ordered, thread-safe list of extensions that sentences pass through."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._extensions: list[_Extension] = []

    def add(self, name: str, process: Processor) -> None:
        with self._lock:
            self._extensions.append(_Extension(name, process))

    def remove(self, index: int) -> None:
        with self._lock:
            del self._extensions[index]

    def reorder(self, names: Sequence[str]) -> None:
        """Keep only the named extensions, in the given order."""
        with self._lock:
            reordered = []
            for name in names:
                found = next((e for e in self._extensions if e.name == name), None)
                if found is None:
                    raise KeyError(name)
                reordered.append(found)
            self._extensions = reordered

    def names(self) -> list[str]:
        with self._lock:
            return [extension.name for extension in self._extensions]

    def dispatch(self, sentence: str, info: Union[SentenceInfo, Mapping[str, int]]) -> str:
        """Pass the sentence through every extension; an empty result means drop it."""
        if not isinstance(info, SentenceInfo):
            info = SentenceInfo(info)
        with self._lock:
            extensions = list(self._extensions)
        for extension in extensions:
            sentence = run_extension(extension.process, sentence, info)
            if not sentence:
                break
        return sentence