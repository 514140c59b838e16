import os

from hooktext.extension import SentenceInfo
from hooktext.replacer import (
    RegexReplacerExtension,
    ReplacementTrie,
    ReplacerExtension,
    decode_script,
    parse_regex_replacements,
)

INFO = SentenceInfo({"text number": 1})

SCRIPT = (
    "\n|ORIG|さよなら|BECOMES|goodbye |END|Ignore this text\n"
    "And this text ツ\u3000\u3000\n"
    "|ORIG|バカ|BECOMES|idiot|END|\n"
    "|ORIG|こんにちは |BECOMES| hello|END||ORIG|delet^this|BECOMES||END|"
)
ORIGINAL = "Don't replace this\u3000\n さよなら バカ こんにちは delete this"
REPLACED = "Don't replace thisgoodbye idiot hello"


def write_script(path, text, mtime_ns=None):
    path.write_bytes(("\ufeff" + text).encode("utf-16-le"))
    if mtime_ns is not None:
        os.utime(path, ns=(mtime_ns, mtime_ns))


def test_trie_source_case():
    assert ReplacementTrie(SCRIPT).replace(ORIGINAL) == REPLACED


def test_trie_from_utf16_bytes():
    trie = ReplacementTrie(decode_script(SCRIPT.encode("utf-16-le")))
    assert trie.replace(ORIGINAL) == REPLACED


def test_decode_script_strips_bom_and_odd_byte():
    data = ("\ufeff" + "バカ").encode("utf-16-le") + b"\x00"
    assert decode_script(data) == "バカ"


def test_trie_emptiness():
    assert not ReplacementTrie("")
    assert not ReplacementTrie("no blocks here")
    assert ReplacementTrie("|ORIG|バカ|BECOMES|idiot|END|")


def test_trie_without_match_keeps_sentence():
    trie = ReplacementTrie(SCRIPT)
    assert trie.replace("nothing to do") == "nothing to do"


def test_regex_first_only_and_global():
    first = parse_regex_replacements("|REGEX|a|BECOMES|b|MODIFIER||END|")
    every = parse_regex_replacements("|REGEX|a|BECOMES|b|MODIFIER|g|END|")
    assert first[0].apply("aaa") == "baa"
    assert every[0].apply("aaa") == "bbb"


def test_regex_ignore_case():
    [replacement] = parse_regex_replacements("|REGEX|a|BECOMES|b|MODIFIER|gi|END|")
    assert replacement.apply("AaA") == "bbb"


def test_regex_group_reference():
    [replacement] = parse_regex_replacements("|REGEX|(x)y|BECOMES|$1$1|MODIFIER|g|END|")
    assert replacement.apply("xy") == "xx"


def test_invalid_regex_is_skipped():
    replacements = parse_regex_replacements(
        "|REGEX|(|BECOMES|z|MODIFIER||END||REGEX|a|BECOMES|b|MODIFIER|g|END|"
    )
    assert len(replacements) == 1
    assert replacements[0].pattern.pattern == "a"


def test_replacer_extension_reads_and_reloads(tmp_path):
    path = tmp_path / "SavedReplacements.txt"
    write_script(path, "|ORIG|バカ|BECOMES|idiot|END|", 1_000_000_000)
    extension = ReplacerExtension(path)
    assert extension.process("バカ", INFO) == "idiot"

    write_script(path, "|ORIG|さよなら|BECOMES|goodbye |END|", 2_000_000_000)
    assert extension.process("さよなら", INFO) == "goodbye "
    assert extension.update() is False


def test_replacer_extension_missing_file(tmp_path):
    extension = ReplacerExtension(tmp_path / "missing.txt")
    assert extension.process("バカ", INFO) == "バカ"


def test_regex_replacer_extension(tmp_path):
    path = tmp_path / "SavedRegexReplacements.txt"
    write_script(path, "|REGEX|a|BECOMES|b|MODIFIER|g|END|", 1_000_000_000)
    extension = RegexReplacerExtension(path)
    assert extension.process("aaa", INFO) == "bbb"

    write_script(path, "", 2_000_000_000)
    assert extension.process("aaa", INFO) == "aaa"