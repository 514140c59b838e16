"""Hook codes, text threads and sentence filters for captured program text."""

__version__ = "0.1.0"

__all__ = [
    "blockmarkup",
    "extension",
    "network",
    "repetition",
    "replacer",
    "simplefilters",
    "hookcode",
    "textthread",
    "translation",
    "languages",
    "host",
]