"""
UI translations

Translations are nested dicts per language code, already loaded by the caller.
Keys are looked up by dotted path ("header.cart"); a missing key renders as
itself.
"""
import logging
from typing import Any, Dict, Mapping, Optional

from storefront.storage import Storage
from storefront.subject import Subject

logger = logging.getLogger(__name__)

PREFERRED_LANGUAGE_KEY = "preferredLanguage"
LANGUAGE_NAMES = {"en": "English", "fr": "Français", "es": "Español"}


class Translator:
    def __init__(self, storage: Storage, translations: Mapping[str, Dict[str, Any]], default_lang: str = "en"):
        self.storage = storage
        self.translations = dict(translations)
        self.default_lang = default_lang
        self.lang_stream: Subject[str] = Subject(default_lang)

    @property
    def current_lang(self) -> str:
        return self.lang_stream.value

    @property
    def supported_languages(self):
        return [{"code": code, "name": LANGUAGE_NAMES.get(code, code)} for code in self.translations]

    def use(self, lang: str) -> None:
        if lang not in self.translations:
            raise ValueError(f"Unsupported language: {lang}")
        self.storage.set(PREFERRED_LANGUAGE_KEY, lang)
        self.lang_stream.next(lang)

    def restore(self, browser_lang: Optional[str] = None) -> str:
        saved = self.storage.get(PREFERRED_LANGUAGE_KEY)
        if saved in self.translations:
            lang = saved
        elif browser_lang and browser_lang[:2].lower() in self.translations:
            lang = browser_lang[:2].lower()
        else:
            lang = self.default_lang
        self.use(lang)
        return lang

    def get(self, key: str, lang: Optional[str] = None) -> str:
        value: Any = self.translations.get(lang or self.current_lang)
        for part in key.split("."):
            if not isinstance(value, dict):
                value = None
                break
            value = value.get(part)
        if not isinstance(value, str) or not value:
            logger.debug("Missing translation for %r", key)
            return key
        return value
