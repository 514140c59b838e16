import pytest

from hooktext.translation import (
    SENTENCE_TOO_LARGE_TO_TRANS,
    TOO_MANY_TRANS_REQUESTS,
    TRANSLATION_ERROR,
    RateLimiter,
    TranslationParam,
    TranslationSettings,
    Translator,
    cache_file_name,
    load_cache,
    save_cache,
)

SELECTED = {"text number": 1, "current select": 1}
NOT_SELECTED = {"text number": 1, "current select": 0}


@pytest.fixture(autouse=True)
def _workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


class FakeTranslate:
    def __init__(self, result=None):
        self.calls = []
        self.result = result

    def __call__(self, text, param):
        self.calls.append((text, param))
        if self.result is not None:
            return True, self.result
        return True, text.upper()


def test_rate_limiter():
    now = [0]
    limiter = RateLimiter(2, 1000, clock=lambda: now[0])
    assert [limiter.request(), limiter.request(), limiter.request()] == [True, True, False]
    now[0] = 1000
    assert limiter.request() is True


def test_cache_file_name():
    assert cache_file_name("Provider", "English") == "Provider Cache (English).txt"


def test_cache_round_trip(tmp_path):
    path = tmp_path / "cache.txt"
    cache = {"こんにちは": "hello", "a|b": "c"}
    save_cache(path, cache)
    assert load_cache(path) == cache


def test_load_missing_cache(tmp_path):
    assert load_cache(tmp_path / "missing.txt") == {}


def test_console_is_ignored():
    translate = FakeTranslate()
    translator = Translator("Test", translate)
    assert translator.process("hi", {"text number": 0, "current select": 1}) is None
    assert translate.calls == []


def test_translation_appended():
    translate = FakeTranslate()
    translator = Translator("Test", translate)
    assert translator.process("hello", SELECTED) == "hello\u200b \nHELLO"
    assert translate.calls[0][1] == TranslationParam()


def test_cache_avoids_second_request():
    translate = FakeTranslate()
    translator = Translator("Test", translate)
    translator.process("hello", SELECTED)
    second = translator.process("hello", SELECTED)
    assert len(translate.calls) == 1
    assert second.endswith("HELLO")
    assert translator.cache == {"hello": "HELLO"}


def test_saved_cache_is_loaded():
    save_cache(cache_file_name("Test", "English"), {"hi": "from cache"})
    translate = FakeTranslate()
    translator = Translator("Test", translate)
    assert translator.process("hi", SELECTED) == "hi\u200b \nfrom cache"
    assert translate.calls == []


def test_context_manager_saves_cache():
    with Translator("Test", FakeTranslate()) as translator:
        translator.process("word", SELECTED)
    assert load_cache(cache_file_name("Test", "English")) == {"word": "WORD"}


def test_sentence_too_large():
    translate = FakeTranslate()
    translator = Translator("Test", translate, TranslationSettings(max_sentence_size=3))
    assert translator.process("abcd", SELECTED) == "abcd\u200b \n" + SENTENCE_TOO_LARGE_TO_TRANS
    assert translate.calls == []


def test_unselected_thread_not_translated():
    translate = FakeTranslate()
    translator = Translator("Test", translate)
    assert translator.process("abc", NOT_SELECTED) == "abc\u200b \n" + TRANSLATION_ERROR
    assert translate.calls == []


def test_rate_limited():
    settings = TranslationSettings(token_count=1, rate_limit_selected=True, use_cache=False)
    translator = Translator("Test", FakeTranslate(), settings, clock=lambda: 0)
    translator.process("a", SELECTED)
    assert translator.process("b", SELECTED) == "b\u200b \n" + TOO_MANY_TRANS_REQUESTS


def test_selected_thread_bypasses_limiter():
    settings = TranslationSettings(token_count=0, use_cache=False)
    translate = FakeTranslate()
    translator = Translator("Test", translate, settings, clock=lambda: 0)
    assert translator.process("b", SELECTED) == "b\u200b \nB"


def test_filter_removes_control_characters():
    translator = Translator("Test", FakeTranslate())
    assert translator.process("  a\x01b  ", SELECTED) == "ab\u200b \nAB"
    assert translator.process("   ", SELECTED) == ""


def test_carriage_return_newline_in_translation():
    translator = Translator("Test", FakeTranslate("x\r\ny"))
    assert translator.process("q", SELECTED).endswith("x\u200b\ny")