# hooktext

`hooktext` is a library for working with text captured from running
programs, such as the dialogue of a game. It parses and generates
text-hook codes, collects captured bytes into sentences (one
`TextThread` per hook) and passes sentences through filters that clean
them up, rewrite them or translate them.

It uses only the standard library.

## Hook codes

A hook code is a short string that says where text is read from and how
it is encoded. Codes start with `H` or `R`, for example
`HQN936#-C*C:C*1C@4AA:gdi.dll:GetTextOutA` or `RS65001#@44`. A leading
`/` is accepted and anything after a further `/` is ignored.

```python
from hooktext.hookcode import parse_hook_code, generate_hook_code, hex_string

hp = parse_hook_code("HB4@0")
print(generate_hook_code(hp))   # "HB4@0"
print(hex_string(-12))          # "-C"
```

`parse_hook_code` returns a `HookParam` with its `HookType` flags set.
An invalid code, such as `/HWG@33` or `/RW@44`, raises `ValueError`.
`generate_hook_code` writes addresses exactly as they are stored in the
`HookParam`; it does not look into a running process to make them
relative to a module.

## Text threads and the host

A `TextThread` (in `hooktext.textthread`) buffers text for one
`ThreadParam`. `push_bytes` decodes raw bytes according to the hook's
type and codepage (falling back to the default codepage, Shift-JIS),
pairing double-byte characters that arrive one byte at a time;
`push_text` appends text that is already decoded. `flush` hands queued
sentences to an output callback, which returns the text to keep in
`storage()` or `None` to drop it, and turns a buffer that is too large
or has not grown within the flush delay into a sentence. `start` runs
`flush` every 10 ms in a background thread; `stop` ends it.

Buffer size, flush delay, history size, default codepage and repetition
filtering are set with `ThreadSettings`. With repetition filtering on,
text that ends in a phrase of more than six characters repeated three
times is reduced to that phrase (see `remove_repetition`).

`Host` (in `hooktext.host`) keeps the threads in one place. It always
has a console thread, written to with `add_console_output`, and a
clipboard thread, written to with `add_clipboard_text`. Register a
process and its hooks with `connect_process`; `receive_text` then
pushes bytes into the thread for a `ThreadParam`, creating and starting
the thread the first time. `remove_hook` and `disconnect_process`
remove threads again. Use the host as a context manager to stop every
thread on exit.

## Sentence filters

A filter is a callable that takes a sentence and its `SentenceInfo` (a
read-only mapping of names such as `"text number"`, `"process id"` and
`"current select"`) and returns the new sentence, or `None` to leave it
as it is. A filter may call `skip()` to empty the sentence.
`ExtensionChain` (in `hooktext.extension`) runs named filters in order
and stops at the first empty result; `run_extension` runs a single one.

| Module | What it provides |
| --- | --- |
| `hooktext.repetition` | `remove_repeated_characters`, `remove_repeated_phrases`, `remove_repeated_prefixes`, `RepeatedSentenceFilter`, `cache_size_from_filename` |
| `hooktext.replacer` | `ReplacementTrie` for `\|ORIG\|…\|BECOMES\|…\|END\|` scripts, `parse_regex_replacements` for `\|REGEX\|…\|BECOMES\|…\|MODIFIER\|…\|END\|` scripts, and the file-backed `ReplacerExtension` and `RegexReplacerExtension`, which reread their script whenever it changes |
| `hooktext.simplefilters` | `extra_newlines`, `ThreadLinker`, `RegexFilter` (with filters saved per process) |
| `hooktext.translation` | `Translator`, which adds garbage filtering, a per-language cache and rate limiting (`RateLimiter`) to any translate function |
| `hooktext.languages` | `Provider` language tables (`DEEPL`, `PAPAGO`, `SYSTRAN`) and page address builders `deepl_url`, `papago_url`, `systran_url` |

Replacing text with a script:

```python
from hooktext.replacer import ReplacementTrie

trie = ReplacementTrie("|ORIG|バカ|BECOMES|idiot|END|")
print(trie.replace("バカ"))  # "idiot"
```

Whitespace is ignored on the matching side of a script and in the
sentence, and `^` on the matching side stands for any one character.
The longest match wins.

Translating:

```python
from hooktext.translation import Translator

def translate(text, param):
    return True, text.upper()   # (may be cached, translation)

with Translator("Demo", translate) as translator:
    print(translator.process("hello", {"text number": 1, "current select": 1}))
```

The result is the sentence, a zero-width space, a space, a newline and
the translation. The cache is read from and, on leaving the `with`
block, written to `Demo Cache (English).txt` in the working directory.

## Block markup files

Saved replacements, filters and translation caches use the same markup:
fields open with a delimiter such as `|ORIG|` and each entry ends with
`|END|`. Text between entries is ignored. Use `BlockMarkupReader` for a
stream or `parse_blocks` for a string (both in `hooktext.blockmarkup`).
Script files are UTF-16LE; `decode_script` reads them.

## Utilities

`hooktext.network` provides a small JSON parser (`parse_json`, raising
`JsonParseError`, with `json_get` for safe nested lookups),
`json_escape`, `html_unescape`, `url_escape` (percent-encodes every
UTF-8 byte) and a minimal `http_request` that returns an
`HttpResponse`.

## What it does not do

`hooktext` has no command-line program and no windows. It does not
attach to processes, install hooks or read their memory: the bytes a
hook captures must be handed to `Host.receive_text` by the caller. It
does not watch the system clipboard, load filters from files, or drive
a web browser; `hooktext.languages` only builds the page addresses a
browser would open.