"""Language tables and page addresses for the browser-driven translation providers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .network import url_escape
from .translation import TranslationParam

AUTO_DETECT = "?"

DEEPL_URL = "https://www.deepl.com/en/translator#en/en/"
PAPAGO_URL = "https://papago.naver.com/?sk={source}&tk={target}&st={text}"
SYSTRAN_URL = "https://translate.systran.net/?source={source}&target={target}&input={text}"


@dataclass(frozen=True)
class Provider:
    """A translation provider: its name, languages and their codes."""

    name: str
    languages_to: tuple[str, ...]
    languages_from: tuple[str, ...]
    codes: Mapping[str, str] = field(default_factory=dict)

    def code(self, language: str) -> str:
        """Return the provider's code for a language; KeyError if unsupported."""
        try:
            return self.codes[language]
        except KeyError:
            raise KeyError(f"{self.name} does not support language {language!r}") from None


def _frozen(codes: dict[str, str]) -> Mapping[str, str]:
    return MappingProxyType(codes)


DEEPL = Provider(
    name="DevTools DeepL Translate",
    languages_to=(
        "Bulgarian", "Chinese (Simplified)", "Czech", "Danish", "Dutch",
        "English (American)", "English (British)", "Estonian", "Finnish",
        "French", "German", "Greek", "Hungarian", "Italian", "Japanese",
        "Latvian", "Lithuanian", "Polish", "Portuguese", "Portuguese (Brazilian)",
        "Romanian", "Russian", "Slovak", "Slovenian", "Spanish", "Swedish",
    ),
    languages_from=(
        "Bulgarian", "Chinese", "Czech", "Danish", "Dutch", "English",
        "Estonian", "Finnish", "French", "German", "Greek", "Hungarian",
        "Italian", "Japanese", "Latvian", "Lithuanian", "Polish", "Portuguese",
        "Romanian", "Russian", "Slovak", "Slovenian", "Spanish", "Swedish",
    ),
    codes=_frozen({
        "Bulgarian": "Bulgarian",
        "Chinese": "Chinese",
        "Chinese (Simplified)": "Chinese (simplified)",
        "Czech": "Czech",
        "Danish": "Danish",
        "Dutch": "Dutch",
        "English": "English",
        "English (American)": "English (American)",
        "English (British)": "English (British)",
        "Estonian": "Estonian",
        "Finnish": "Finnish",
        "French": "French",
        "German": "German",
        "Greek": "Greek",
        "Hungarian": "Hungarian",
        "Italian": "Italian",
        "Japanese": "Japanese",
        "Latvian": "Latvian",
        "Lithuanian": "Lithuanian",
        "Polish": "Polish",
        "Portuguese": "Portuguese",
        "Portuguese (Brazilian)": "Portuguese (Brazilian)",
        "Romanian": "Romanian",
        "Russian": "Russian",
        "Slovak": "Slovak",
        "Slovenian": "Slovenian",
        "Spanish": "Spanish",
        "Swedish": "Swedish",
        AUTO_DETECT: "Detect language",
    }),
)

_PAPAGO_LANGUAGES = (
    "Chinese (Simplified)", "Chinese (Traditional)", "English", "French",
    "German", "Hindi", "Indonesian", "Italian", "Japanese", "Korean",
    "Portuguese", "Russian", "Spanish", "Thai", "Vietnamese",
)

PAPAGO = Provider(
    name="DevTools Papago Translate",
    languages_to=_PAPAGO_LANGUAGES,
    languages_from=_PAPAGO_LANGUAGES,
    codes=_frozen({
        "Chinese (Simplified)": "zh-CN",
        "Chinese (Traditional)": "zt-TW",
        "English": "en",
        "French": "fr",
        "German": "de",
        "Hindi": "hi",
        "Indonesian": "id",
        "Italian": "it",
        "Japanese": "ja",
        "Korean": "ko",
        "Portuguese": "pt",
        "Russian": "ru",
        "Spanish": "es",
        "Thai": "th",
        "Vietnamese": "vi",
        AUTO_DETECT: "auto",
    }),
)

_SYSTRAN_CODES = {
    "Albanian": "sq",
    "Arabic": "ar",
    "Bengali": "bn",
    "Bulgarian": "bg",
    "Burmese": "my",
    "Catalan": "ca",
    "Chinese (Simplified)": "zh",
    "Chinese (Traditional)": "zt",
    "Croatian": "hr",
    "Czech": "cs",
    "Danish": "da",
    "Dutch": "nl",
    "English": "en",
    "Estonian": "et",
    "Finnish": "fi",
    "French": "fr",
    "German": "de",
    "Greek": "el",
    "Hebrew": "he",
    "Hindi": "hi",
    "Hungarian": "hu",
    "Indonesian": "id",
    "Italian": "it",
    "Japanese": "ja",
    "Korean": "ko",
    "Latvian": "lv",
    "Lithuanian": "lt",
    "Malay": "ms",
    "Norwegian": "no",
    "Pashto": "ps",
    "Persian": "fa",
    "Polish": "pl",
    "Portuguese": "pt",
    "Romanian": "ro",
    "Russian": "ru",
    "Serbian": "sr",
    "Slovak": "sk",
    "Slovenian": "sl",
    "Somali": "so",
    "Spanish": "es",
    "Swedish": "sv",
    "Tagalog": "tl",
    "Tamil": "ta",
    "Thai": "th",
    "Turkish": "tr",
    "Ukrainian": "uk",
    "Urdu": "ur",
    "Vietnamese": "vi",
}
_SYSTRAN_LANGUAGES = tuple(_SYSTRAN_CODES)

SYSTRAN = Provider(
    name="DevTools Systran Translate",
    languages_to=_SYSTRAN_LANGUAGES,
    languages_from=_SYSTRAN_LANGUAGES,
    codes=_frozen({**_SYSTRAN_CODES, AUTO_DETECT: "autodetect"}),
)

PROVIDERS = (DEEPL, PAPAGO, SYSTRAN)


def deepl_url(text: str) -> str:
    """Page address that opens DeepL with ``text`` as input.

    Slashes are escaped first, as DeepL breaks on them.
    """
    return DEEPL_URL + url_escape(text.replace("/", "\\/"))


def papago_url(text: str, param: TranslationParam) -> str:
    """Page address that opens Papago translating ``text``."""
    return PAPAGO_URL.format(
        source=PAPAGO.code(param.translate_from),
        target=PAPAGO.code(param.translate_to),
        text=url_escape(text),
    )


def systran_url(text: str, param: TranslationParam) -> str:
    """Page address that opens Systran translating ``text``."""
    return SYSTRAN_URL.format(
        source=SYSTRAN.code(param.translate_from),
        target=SYSTRAN.code(param.translate_to),
        text=url_escape(text),
    )