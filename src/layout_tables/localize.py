"""Default label strings and the plain prose renderer."""

from __future__ import annotations

from typing import Any, Callable, Mapping

# (lang, key) -> display string
LocalizeFn = Callable[[str, str], str]
# (lang, text) -> rendered prose
ProseFn = Callable[[str, str], Any]

FALLBACK_LANG = "en"

DEFAULT_LOCALIZATIONS: dict[str, dict[str, str]] = {
    "field": {"en": "Field", "es": "Campo"},
    "type": {"en": "Type", "es": "Tipo"},
    "flag": {"en": "Flag", "es": "Bandera"},
    "mask": {"en": "Mask", "es": "Máscara"},
    "value": {"en": "Value", "es": "Valor"},
    "option": {"en": "Option", "es": "Opción"},
    "comments": {"en": "Comments", "es": "Comentarios"},
    "offset": {"en": "Offset (relative)"},
    "label_cache_only": {"en": "Cache only"},
    "label_mcc": {"en": "MCC"},
}


class Localizer:
    """Looks up display strings by key and language.

    Falls back to English, then to the key itself, so an unknown label
    still shows up as something readable.
    """

    def __init__(self, strings: Mapping[str, Mapping[str, str]] | None = None) -> None:
        self.strings: dict[str, dict[str, str]] = {
            key: dict(by_lang) for key, by_lang in DEFAULT_LOCALIZATIONS.items()
        }
        if strings:
            for key, by_lang in strings.items():
                self.strings.setdefault(key, {}).update(by_lang)

    def __call__(self, lang: str, key: str) -> str:
        by_lang = self.strings.get(key)
        if not by_lang:
            return key
        if lang in by_lang:
            return by_lang[lang]
        return by_lang.get(FALLBACK_LANG, key)


def plain_prose(lang: str, text: str) -> str:
    """Render comment text as-is, without markup."""
    return text.strip()
