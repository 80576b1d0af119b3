"""
Repository Browser Translation Sets — i18n lookup for generated repository names.

A translation set is a mapping {key: {lang: text}}. Resolution chain:
1. Requested language (or the context's preferred_language)
2. "en"
3. "[Untranslated {key}]" placeholder

translate() never raises.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from repobrowser.engine.errors import ConfigurationError

logger = logging.getLogger("repobrowser.engine.translation")

DEFAULT_TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "appName": {
        "en": "Repository Browser",
        "de": "Repository-Browser",
        "fr": "Navigateur de dépôt",
    },
}


class TranslationSet:
    """
    Multi-language labels.

    Usage:
        labels = TranslationSet("labels", {"appName": {"en": "Updates"}})
        labels.translate("appName")               # → "Updates"
        labels.translate("missing")               # → "[Untranslated missing]"
    """

    def __init__(
        self,
        name: str,
        data: Optional[Dict[str, Dict[str, str]]] = None,
        default_language: str = "en",
    ):
        self.name = name
        self._data: Dict[str, Dict[str, str]] = dict(data or {})
        self.default_language = default_language

    def translate(self, key: str, lang: Optional[str] = None, **params: Any) -> str:
        lang = lang or self.default_language

        key_translations = self._data.get(key)
        if not key_translations:
            return f"[Untranslated {key}]"

        text = key_translations.get(lang)
        if text is None:
            text = key_translations.get("en")
        if text is None:
            return f"[Untranslated {key}]"

        if params:
            try:
                text = text.format(**params)
            except (KeyError, IndexError, ValueError):
                pass  # Return unformatted if params don't match

        return text

    def for_language(self, lang: str):
        """Bind a language, returning a one-argument translate callable."""
        return lambda key: self.translate(key, lang=lang)

    def keys(self):
        return self._data.keys()

    def __repr__(self) -> str:
        return f"<TranslationSet(name='{self.name}', keys={len(self._data)})>"


def load_translation_set(
    path: Optional[str] = None,
    default_language: str = "en",
) -> TranslationSet:
    """
    Load a translation set from YAML, merged over the built-in defaults.

    Raises:
        ConfigurationError: If the file is unreadable or not a {key: {lang: text}} mapping.
    """
    data: Dict[str, Dict[str, str]] = {k: dict(v) for k, v in DEFAULT_TRANSLATIONS.items()}
    if path is None:
        return TranslationSet("default", data, default_language)

    file_path = Path(path)
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot load translations: {e}", path=str(file_path)) from e

    if not isinstance(raw, dict) or not all(isinstance(v, dict) for v in raw.values()):
        raise ConfigurationError(
            "Translation file must map keys to {lang: text} mappings",
            path=str(file_path),
        )

    for key, langs in raw.items():
        data.setdefault(str(key), {}).update({str(k): str(v) for k, v in langs.items()})

    logger.info(f"Loaded {len(raw)} translation keys from {file_path}")
    return TranslationSet(file_path.stem, data, default_language)
