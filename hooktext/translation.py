"""Translation extension: filtering, caching and rate limiting around a translator."""

from __future__ import annotations

import heapq
import os
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional, Union

from .blockmarkup import parse_blocks
from .replacer import decode_script

SENTENCE_TOO_LARGE_TO_TRANS = "Sentence too large to translate"
TRANSLATION_ERROR = "Error while translating"
TOO_MANY_TRANS_REQUESTS = "Too many translation requests: refuse to make more"
SEPARATOR = "\u200b \n"

Translate = Callable[[str, "TranslationParam"], tuple[bool, str]]


@dataclass
class TranslationParam:
    translate_to: str = "English"
    translate_from: str = "?"
    auth_key: str = ""


@dataclass
class TranslationSettings:
    translate_selected_only: bool = True
    use_rate_limiter: bool = True
    rate_limit_selected: bool = False
    use_cache: bool = True
    use_filter: bool = True
    token_count: int = 30
    rate_limit_timespan: int = 60000
    max_sentence_size: int = 2500


def _milliseconds() -> int:
    return time.monotonic_ns() // 1_000_000


class RateLimiter:
    """Allow at most ``token_count`` requests in any ``timespan_ms`` window."""

    def __init__(
        self,
        token_count: int,
        timespan_ms: int,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.token_count = token_count
        self.timespan_ms = timespan_ms
        self._clock = clock or _milliseconds
        self._tokens: list[int] = []
        self._lock = threading.Lock()

    def request(self) -> bool:
        """Take a token if one is available."""
        with self._lock:
            current = self._clock()
            while self._tokens and self._tokens[0] <= current - self.timespan_ms:
                heapq.heappop(self._tokens)
            available = len(self._tokens) < self.token_count
            if available:
                heapq.heappush(self._tokens, current)
            return available


def cache_file_name(provider: str, language: str) -> str:
    return f"{provider} Cache ({language}).txt"


def load_cache(path: Union[str, os.PathLike]) -> dict[str, str]:
    """Read saved translations; a missing file gives an empty cache."""
    try:
        data = Path(path).read_bytes()
    except OSError:
        return {}
    cache: dict[str, str] = {}
    for sentence, translation in parse_blocks(decode_script(data), ("|SENTENCE|", "|TRANSLATION|")):
        cache.setdefault(sentence, translation)
    return cache


def save_cache(path: Union[str, os.PathLike], cache: Mapping[str, str]) -> None:
    """Write translations as UTF-16LE |SENTENCE|...|TRANSLATION|...|END| blocks."""
    text = "\ufeff" + "".join(
        f"|SENTENCE|{sentence}|TRANSLATION|{translation}|END|\r\n"
        for sentence, translation in cache.items()
    )
    Path(path).write_bytes(text.encode("utf-16-le", "surrogatepass"))


def _filter(text: str) -> str:
    return "".join(ch for ch in text.strip() if ch >= " " or ch == "\n")


class Translator:
    """Append a translation to each sentence.

    ``translate`` returns whether the result may be cached and the
    translation. The cache for the target language is loaded from the
    working directory and saved there when used as a context manager.
    """

    def __init__(
        self,
        provider: str,
        translate: Translate,
        settings: Optional[TranslationSettings] = None,
        param: Optional[TranslationParam] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.provider = provider
        self.settings = TranslationSettings() if settings is None else settings
        self._translate = translate
        self._param = TranslationParam() if param is None else param
        self._limiter = RateLimiter(self.settings.token_count, self.settings.rate_limit_timespan, clock)
        self._lock = threading.Lock()
        self.cache = load_cache(self.cache_path)

    @property
    def cache_path(self) -> Path:
        return Path(cache_file_name(self.provider, self._param.translate_to))

    def __enter__(self) -> "Translator":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        with self._lock:
            cache = dict(self.cache)
        save_cache(self.cache_path, cache)

    def process(self, sentence: str, info: Mapping[str, int]) -> Optional[str]:
        if info["text number"] == 0:
            return None
        settings = self.settings
        selected = bool(info["current select"])

        if settings.use_filter:
            sentence = _filter(sentence)
        if not sentence:
            return ""

        translation = ""
        cacheable = False
        if len(sentence) > settings.max_sentence_size:
            translation = SENTENCE_TOO_LARGE_TO_TRANS
        if settings.use_cache:
            with self._lock:
                translation = self.cache.get(sentence, translation)

        if not translation and (not settings.translate_selected_only or selected):
            self._limiter.token_count = settings.token_count
            self._limiter.timespan_ms = settings.rate_limit_timespan
            if (
                self._limiter.request()
                or not settings.use_rate_limiter
                or (not settings.rate_limit_selected and selected)
            ):
                cacheable, translation = self._translate(sentence, replace(self._param))
            else:
                translation = TOO_MANY_TRANS_REQUESTS
        if cacheable:
            with self._lock:
                self.cache[sentence] = translation

        if settings.use_filter:
            translation = translation.strip()
        translation = translation.replace("\r\n", "\u200b\n")
        if not translation:
            translation = TRANSLATION_ERROR
        return sentence + SEPARATOR + translation