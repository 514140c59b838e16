"""Text replacement extensions driven by saved replacement scripts."""

from __future__ import annotations

import os
import re
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from .blockmarkup import parse_blocks

REPLACE_SAVE_FILE = "SavedReplacements.txt"
REGEX_REPLACE_SAVE_FILE = "SavedRegexReplacements.txt"
WILDCARD = "^"
_DIGITS = "0123456789"


def decode_script(data: bytes) -> str:
    """Decode a UTF-16LE script file, dropping a leading byte order mark."""
    if len(data) % 2:
        data = data[:-1]
    text = data.decode("utf-16-le", errors="replace")
    return text[1:] if text.startswith("\ufeff") else text


def _ignored(ch: str) -> bool:
    return ord(ch) <= 0x20 or ch.isspace()


@dataclass(eq=False)
class _Node:
    children: dict[str, "_Node"] = field(default_factory=dict)
    value: Optional[str] = None


class ReplacementTrie:
    """Longest-match replacer built from |ORIG|...|BECOMES|...|END| blocks.

    Whitespace is ignored when matching, and '^' in an original matches any
    single character.
    """

    def __init__(self, script: str = "") -> None:
        self._root = _Node()
        for original, replacement in parse_blocks(script, ("|ORIG|", "|BECOMES|")):
            node = self._root
            for ch in original:
                if not _ignored(ch):
                    node = node.children.setdefault(ch, _Node())
            if node is not self._root:
                node.value = replacement

    def replace(self, sentence: str) -> str:
        out = []
        i = 0
        size = len(sentence)
        while i < size:
            replacement = sentence[i]
            length = 1
            node: Optional[_Node] = self._root
            j = i
            while node is not None:
                if node.value is not None:
                    replacement = node.value
                    length = j - i
                if j >= size:
                    break
                ch = sentence[j]
                if not _ignored(ch):
                    child = node.children.get(ch)
                    node = child if child is not None else node.children.get(WILDCARD)
                j += 1
            out.append(replacement)
            i += length
        return "".join(out)

    def __bool__(self) -> bool:
        return bool(self._root.children)


def _expand_format(template: str, match: re.Match) -> str:
    """Expand $-style references ($1, $&, $`, $', $$) in a replacement."""
    out = []
    i = 0
    size = len(template)
    groups = match.re.groups
    while i < size:
        ch = template[i]
        if ch != "$" or i + 1 >= size:
            out.append(ch)
            i += 1
            continue
        following = template[i + 1]
        if following == "$":
            out.append("$")
            i += 2
        elif following == "&":
            out.append(match.group(0))
            i += 2
        elif following == "`":
            out.append(match.string[:match.start()])
            i += 2
        elif following == "'":
            out.append(match.string[match.end():])
            i += 2
        elif following in _DIGITS:
            number, width = int(following), 2
            if i + 2 < size and template[i + 2] in _DIGITS and int(template[i + 1:i + 3]) <= groups:
                number, width = int(template[i + 1:i + 3]), 3
            out.append((match.group(number) or "") if number <= groups else "")
            i += width
        else:
            out.append(ch)
            i += 1
    return "".join(out)


@dataclass(frozen=True)
class RegexReplacement:
    pattern: re.Pattern
    replacement: str
    replace_all: bool = True

    def apply(self, sentence: str) -> str:
        return self.pattern.sub(
            lambda match: _expand_format(self.replacement, match),
            sentence,
            count=0 if self.replace_all else 1,
        )


def parse_regex_replacements(script: str) -> list[RegexReplacement]:
    """Read |REGEX|...|BECOMES|...|MODIFIER|...|END| blocks; invalid regexes are skipped.

    Modifier 'i' ignores case, 'g' replaces every match instead of the first.
    """
    replacements = []
    for regex, replacement, modifier in parse_blocks(script, ("|REGEX|", "|BECOMES|", "|MODIFIER|")):
        try:
            pattern = re.compile(regex, re.IGNORECASE if "i" in modifier else 0)
        except re.error:
            continue
        replacements.append(RegexReplacement(pattern, replacement, "g" in modifier))
    return replacements


class _WatchedScript:
    """A script file that is reread only when its modification time changes."""

    def __init__(self, path: Union[str, os.PathLike]) -> None:
        self.path = Path(path)
        self._mtime: Optional[int] = None

    def changed(self) -> Optional[str]:
        try:
            mtime = os.stat(self.path).st_mtime_ns
            if mtime == self._mtime:
                return None
            data = self.path.read_bytes()
        except OSError:
            self._mtime = None
            return None
        self._mtime = mtime
        return decode_script(data)


class ReplacerExtension:
    """Apply the replacements saved in a script file to every sentence."""

    def __init__(self, path: Union[str, os.PathLike] = REPLACE_SAVE_FILE) -> None:
        self._script = _WatchedScript(path)
        self._lock = threading.Lock()
        self._trie = ReplacementTrie()
        self.update()

    def update(self) -> bool:
        """Reload the script if it changed; return whether it was reloaded."""
        with self._lock:
            script = self._script.changed()
            if script is None:
                return False
            self._trie = ReplacementTrie(script)
            return True

    def process(self, sentence: str, info: Mapping[str, int]) -> str:
        self.update()
        with self._lock:
            trie = self._trie
        return trie.replace(sentence)


class RegexReplacerExtension:
    """Apply the regex replacements saved in a script file, in order."""

    def __init__(self, path: Union[str, os.PathLike] = REGEX_REPLACE_SAVE_FILE) -> None:
        self._script = _WatchedScript(path)
        self._lock = threading.Lock()
        self._replacements: list[RegexReplacement] = []
        self.update()

    def update(self) -> bool:
        """Reload the script if it changed; return whether it was reloaded."""
        with self._lock:
            script = self._script.changed()
            if script is None:
                return False
            self._replacements = parse_regex_replacements(script)
            return True

    def process(self, sentence: str, info: Mapping[str, int]) -> str:
        self.update()
        with self._lock:
            replacements = list(self._replacements)
        for replacement in replacements:
            sentence = replacement.apply(sentence)
        return sentence