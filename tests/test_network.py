import html
import json
import socket
import threading
import urllib.parse
from http.server import BaseHTTPRequestHandler, HTTPServer

import pytest

from hooktext.network import (
    JsonParseError,
    html_unescape,
    http_request,
    json_escape,
    json_get,
    parse_json,
    url_escape,
)

SAMPLE = '[{"string":"hello world","boolean":false,"number":1.67e+4,"null":null,"array":[]},"hello world"]'


def test_source_sample_parses():
    assert parse_json(SAMPLE) == json.loads(SAMPLE)


@pytest.mark.parametrize(
    "document",
    [
        '{"a": [1, 2.5, -3e2], "b": {"c": null}}',
        '  "with \\"quotes\\" and \\\\ slash\\n"  ',
        '"\\u3053\\u3093\\u306b\\u3061\\u306f"',
        "true",
        "[ ]",
        "{}",
    ],
)
def test_matches_standard_parser(document):
    assert parse_json(document) == json.loads(document)


def test_trailing_text_ignored():
    assert parse_json("[1] garbage") == json.loads("[1]")


@pytest.mark.parametrize("document", ["", "   ", "nul", "[1 2]", '{"a" 1}', "{1:2}", "[", "?"])
def test_invalid_documents(document):
    with pytest.raises(JsonParseError):
        parse_json(document)


def test_depth_limit():
    deep_ok = "[" * 26 + "]" * 26
    assert parse_json(deep_ok) == json.loads(deep_ok)
    with pytest.raises(JsonParseError):
        parse_json("[" * 27 + "]" * 27)


def test_json_get():
    data = parse_json('{"result":{"value":"x","list":[10,20]}}')
    assert json_get(data, "result", "value") == "x"
    assert json_get(data, "result", "list", 1) == 20
    assert json_get(data, "result", "missing") is None
    assert json_get(data, "result", "list", 5) is None
    assert json_get(data, 0) is None


@pytest.mark.parametrize("text", ["plain", 'say "hi"\n\tback\\slash\r', "こんにちは"])
def test_json_escape_round_trip(text):
    assert json.loads('"' + json_escape(text) + '"') == text


def test_json_escape_drops_control_characters():
    assert json_escape("a\x01b\x7fc") == "abc"


@pytest.mark.parametrize("text", ["&lt;b&gt;", "&apos;&#39;&#x27;&quot;", "&amp;lt;", "a &amp; b"])
def test_html_unescape_matches_standard(text):
    assert html_unescape(text) == html.unescape(text)


def test_html_unescape_leaves_unknown_entities():
    assert html_unescape("&nbsp; &") == "&nbsp; &"


@pytest.mark.parametrize("text", ["hello world", "a/b?c=d", "こんにちは"])
def test_url_escape_round_trip(text):
    escaped = url_escape(text)
    assert urllib.parse.unquote(escaped) == text
    assert len(escaped) == 3 * len(text.encode("utf-8"))


def test_url_escape_pinned():
    assert url_escape("a") == "%61"


class _EchoHandler(BaseHTTPRequestHandler):
    def do_POST(self):
        length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(length).decode("utf-8")
        reply = json.dumps(
            {"path": self.path, "body": body, "agent": self.headers.get("User-Agent")}
        ).encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Length", str(len(reply)))
        self.end_headers()
        self.wfile.write(reply)

    def log_message(self, *args):
        pass


@pytest.fixture
def echo_server():
    server = HTTPServer(("127.0.0.1", 0), _EchoHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server.server_address[1]
    server.shutdown()
    server.server_close()


def test_http_request_round_trip(echo_server):
    response = http_request(
        "127.0.0.1", "POST", "/json/list", body='{"a":1}', port=echo_server, secure=False, agent="test-agent"
    )
    assert response.status == 200
    reply = parse_json(response.text)
    assert json_get(reply, "path") == "/json/list"
    assert json_get(reply, "body") == '{"a":1}'
    assert json_get(reply, "agent") == "test-agent"


def test_http_request_connection_refused():
    probe = socket.socket()
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    with pytest.raises(OSError):
        http_request("127.0.0.1", "GET", "/", port=port, secure=False)