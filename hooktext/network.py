"""Small JSON reader, escaping helpers and a plain HTTP request function."""

from __future__ import annotations

import http.client
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union

DEFAULT_AGENT = "Mozilla/5.0 hooktext"
REQUEST_TIMEOUT = 30.0

_WHITESPACE = " \n\r\t"
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_SIMPLE_ESCAPES = {"b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t"}
_NUMBER_CHARS = frozenset("0123456789-+eE.")
_NUMBER_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_HTML_ENTITIES = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&apos;", "'"),
    ("&#39;", "'"),
    ("&#x27;", "'"),
    ("&#X27;", "'"),
    ("&quot;", '"'),
    ("&amp;", "&"),
)
_JSON_ESCAPES = {"\n": "\\n", "\t": "\\t", "\r": "\\r", "\\": "\\\\", '"': '\\"'}


class JsonParseError(ValueError):
    """Raised when text cannot be read as JSON."""


class _Parser:
    def __init__(self, text: str, max_depth: int) -> None:
        self.text = text
        self.pos = 0
        self.max_depth = max_depth

    def fail(self, why: str) -> None:
        raise JsonParseError(f"{why} at position {self.pos}")

    def peek(self) -> str:
        text = self.text
        while self.pos < len(text) and text[self.pos] in _WHITESPACE:
            self.pos += 1
        if self.pos >= len(text):
            self.fail("unexpected end of input")
        return text[self.pos]

    def value(self, depth: int) -> Any:
        if depth > self.max_depth:
            self.fail("nesting too deep")
        ch = self.peek()
        for literal, result in (("null", None), ("true", True), ("false", False)):
            if ch == literal[0]:
                if not self.text.startswith(literal, self.pos):
                    self.fail("invalid literal")
                self.pos += len(literal)
                return result
        if ch == "-" or "0" <= ch <= "9":
            return self.number()
        if ch == '"':
            return self.string()
        if ch == "[":
            return self.array(depth)
        if ch == "{":
            return self.object(depth)
        self.fail("unexpected character")

    def number(self) -> float:
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] in _NUMBER_CHARS:
            self.pos += 1
        match = _NUMBER_PREFIX.match(self.text, start, self.pos)
        return float(match.group()) if match else 0.0

    def string(self) -> str:
        text = self.text
        out = []
        self.pos += 1
        while self.pos < len(text):
            ch = text[self.pos]
            if ch == '"':
                self.pos += 1
                return "".join(out)
            if ch != "\\":
                out.append(ch)
                self.pos += 1
                continue
            if self.pos + 1 >= len(text):
                self.pos = len(text)
                break
            escaped = text[self.pos + 1]
            digits = text[self.pos + 2:self.pos + 6]
            if escaped == "u" and len(digits) == 4 and all(c in _HEX_DIGITS for c in digits):
                out.append(chr(int(digits, 16)))
                self.pos += 6
                continue
            out.append(_SIMPLE_ESCAPES.get(escaped, escaped))
            self.pos += 2
        return "".join(out)

    def array(self, depth: int) -> list:
        items = []
        while True:
            self.pos += 1
            if self.peek() == "]":
                self.pos += 1
                return items
            items.append(self.value(depth + 1))
            ch = self.peek()
            if ch == "]":
                self.pos += 1
                return items
            if ch != ",":
                self.fail("expected ',' or ']'")

    def object(self, depth: int) -> dict:
        members = {}
        while True:
            self.pos += 1
            ch = self.peek()
            if ch == "}":
                self.pos += 1
                return members
            if ch != '"':
                self.fail("expected key")
            key = self.string()
            if self.peek() != ":":
                self.fail("expected ':'")
            self.pos += 1
            members[key] = self.value(depth + 1)
            ch = self.peek()
            if ch == "}":
                self.pos += 1
                return members
            if ch != ",":
                self.fail("expected ',' or '}'")


def parse_json(text: str, max_depth: int = 25) -> Any:
    """Parse one JSON value from the start of ``text``; trailing text is ignored."""
    return _Parser(text, max_depth).value(0)


def json_get(value: Any, *args: Union[str, int]) -> Any:
    """Follow keys and indices into parsed JSON; None if any step is missing."""
    for key in args:
        if isinstance(key, str):
            if not isinstance(value, dict) or key not in value:
                return None
        elif not isinstance(value, list) or not 0 <= key < len(value):
            return None
        value = value[key]
    return value


def json_escape(text: str) -> str:
    """Escape text for a JSON string literal, dropping other control characters."""
    return "".join(
        _JSON_ESCAPES.get(ch, ch)
        for ch in text
        if ch in _JSON_ESCAPES or not (ord(ch) < 0x20 or ord(ch) == 0x7F)
    )


def html_unescape(text: str) -> str:
    """Replace the common HTML character entities with their characters."""
    out = []
    i = 0
    while i < len(text):
        if text[i] == "&":
            for entity, replacement in _HTML_ENTITIES:
                if text.startswith(entity, i):
                    out.append(replacement)
                    i += len(entity)
                    break
            else:
                out.append("&")
                i += 1
        else:
            out.append(text[i])
            i += 1
    return "".join(out)


def url_escape(text: Union[str, bytes]) -> str:
    """Percent-encode every byte of the UTF-8 form of ``text``."""
    data = text.encode("utf-8") if isinstance(text, str) else text
    return "".join(f"%{byte:02X}" for byte in data)


@dataclass(frozen=True)
class HttpResponse:
    status: int
    reason: str
    headers: dict[str, str]
    text: str


def http_request(
    server: str,
    action: str,
    path: str,
    body: Union[str, bytes] = "",
    headers: Optional[Mapping[str, str]] = None,
    port: Optional[int] = None,
    secure: bool = True,
    agent: str = DEFAULT_AGENT,
) -> HttpResponse:
    """Send one HTTP request and return the decoded response.

    Connection failures raise OSError.
    """
    if port is None:
        port = 443 if secure else 80
    connection_class = http.client.HTTPSConnection if secure else http.client.HTTPConnection
    connection = connection_class(server, port, timeout=REQUEST_TIMEOUT)
    try:
        request_headers = {"User-Agent": agent}
        request_headers.update(headers or {})
        payload = body.encode("utf-8") if isinstance(body, str) else body
        connection.request(action, path, body=payload or None, headers=request_headers)
        response = connection.getresponse()
        data = response.read()
        return HttpResponse(
            status=response.status,
            reason=response.reason,
            headers=dict(response.getheaders()),
            text=data.decode("utf-8", errors="replace"),
        )
    finally:
        connection.close()