"""Filters that drop characters, phrases and sentences a game repeats."""

from __future__ import annotations

import re
import threading
import time
from collections import Counter
from collections.abc import Mapping
from itertools import groupby
from typing import Optional

ERASED = "\uf246"  # private use area, marks characters to drop
TIMEOUT_SECONDS = 30.0
DEFAULT_SENTENCE_CACHE_SIZE = 30

_CACHE_SIZE_NAME = re.compile(r"Remove\s*([+-]?\d+)")


def remove_repeated_characters(sentence: str, info: Mapping[str, int]) -> Optional[str]:
    """Collapse characters that are each repeated the same number of times.

    The most common run length is taken as the repeat count; runs whose
    length is a multiple of it are shortened by that factor.
    """
    if info["text number"] == 0:
        return None
    run_counts = Counter(sum(1 for _ in run) for _, run in groupby(sentence))
    repeat = max(range(len(sentence) + 1), key=lambda length: (run_counts[length], length))
    if repeat < 2:
        return None

    out = []
    i = 0
    while i < len(sentence):
        ch = sentence[i]
        out.append(ch)
        end = i
        while end < len(sentence) and sentence[end] == ch:
            end += 1
        i += repeat if (end - i) % repeat == 0 else 1
    return "".join(out)


def generate_suffix_array(text: str) -> list[int]:
    """Return the start positions of all suffixes, largest suffix first."""
    return sorted(range(len(text)), key=lambda start: text[start:], reverse=True)


def remove_repeated_phrases(sentence: str, info: Mapping[str, int]) -> Optional[str]:
    """Erase regions built only from a repeated substring longer than six characters.

    If a substring disappears entirely, it is restored where it last occurred
    in the input sentence.
    """
    if info["text number"] == 0:
        return None
    deadline = time.monotonic() + TIMEOUT_SECONDS
    suffixes = generate_suffix_array(sentence)
    chars = list(sentence)
    size = len(chars)

    for first, second in zip(suffixes, suffixes[1:]):
        if time.monotonic() >= deadline:
            break
        common = 0
        for a, b in zip(chars[first:], chars[second:]):
            if a == ERASED or a != b:
                break
            common += 1
        if common <= 6:
            continue

        substring = "".join(chars[first:first + common])
        members = set(substring)
        region = 0
        for j in range(size + 1):
            ch = chars[j] if j < size else "\0"
            if ch in members:
                region += 1
            elif region >= common * 2:
                chars[j - region:j] = ERASED * region
                region = 0
            else:
                region = 0

        if substring not in "".join(chars):
            position = max(first, second)
            chars[position:position + common] = substring
    return "".join(ch for ch in chars if ch != ERASED)


def remove_repeated_prefixes(sentence: str, info: Mapping[str, int]) -> Optional[str]:
    """Repeatedly drop a leading phrase that occurs again later in the sentence."""
    if info["text number"] == 0:
        return None
    deadline = time.monotonic() + TIMEOUT_SECONDS
    size = len(sentence)
    skip = count = 0
    end = size
    while end > skip and time.monotonic() < deadline:
        junk_length = end - skip
        if sentence.find(sentence[skip:end], end) >= 0:
            if count and junk_length < min(skip // count, 4):
                break
            skip += junk_length
            count += 1
            end = size
        end -= 1
    if count and skip // count >= 3:
        return sentence[skip:]
    return None


def cache_size_from_filename(name: str) -> int:
    """Read N from an extension file named 'Remove N Repeated Sentences'."""
    base = name.replace("/", "\\").rsplit("\\", 1)[-1]
    match = _CACHE_SIZE_NAME.match(base)
    return int(match.group(1)) if match else DEFAULT_SENTENCE_CACHE_SIZE


class RepeatedSentenceFilter:
    """Drop sentences already seen among the recent ones of the same text thread."""

    def __init__(self, cache_size: int = DEFAULT_SENTENCE_CACHE_SIZE) -> None:
        self.cache_size = cache_size
        self._lock = threading.Lock()
        self._recent: dict[int, list[str]] = {}

    def process(self, sentence: str, info: Mapping[str, int]) -> Optional[str]:
        number = info["text number"]
        if number == 0:
            return None
        with self._lock:
            recent = self._recent.setdefault(number, [])
            duplicate = sentence in recent
            if duplicate:
                recent.remove(sentence)
            recent.append(sentence)
            if len(recent) > self.cache_size:
                del recent[0]
        return "" if duplicate else None