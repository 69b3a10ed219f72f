"""
PreferenceStore: per-user (source, target) language pair in a JSON file.

Loaded once at construction; every mutation rewrites the whole file. A failed
write is logged and the in-memory map stays authoritative.
"""
from __future__ import annotations

import json
import logging
import os
import threading

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {
    "ja": "Japanese",
    "ko": "Korean",
    "en": "English",
}


def language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code, code)


class LanguagePreference(BaseModel):
    source_lang: str  # language the user speaks
    target_lang: str  # language their speech is translated into

    @property
    def source_name(self) -> str:
        return language_name(self.source_lang)

    @property
    def target_name(self) -> str:
        return language_name(self.target_lang)


class PreferenceStore:
    def __init__(self, path: str) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._prefs: dict[str, LanguagePreference] = self._load(path)

    @staticmethod
    def _load(path: str) -> dict[str, LanguagePreference]:
        if not os.path.exists(path):
            return {}
        try:
            with open(path, encoding="utf-8") as f:
                raw = json.load(f)
            return {str(uid): LanguagePreference.model_validate(v) for uid, v in raw.items()}
        except (OSError, ValueError, AttributeError, ValidationError) as e:
            logger.warning("Could not load preferences %s: %s", path, e)
            return {}

    def _save(self) -> None:
        # caller holds the lock
        payload = {uid: p.model_dump() for uid, p in self._prefs.items()}
        try:
            parent = os.path.dirname(self._path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
        except OSError as e:
            logger.warning("Failed to save preferences %s: %s", self._path, e)

    def get(self, user_id: str) -> LanguagePreference | None:
        with self._lock:
            return self._prefs.get(str(user_id))

    def set(self, user_id: str, source_lang: str, target_lang: str) -> LanguagePreference:
        pref = LanguagePreference(source_lang=source_lang, target_lang=target_lang)
        with self._lock:
            self._prefs[str(user_id)] = pref
            self._save()
        return pref

    def remove(self, user_id: str) -> bool:
        with self._lock:
            removed = self._prefs.pop(str(user_id), None) is not None
            if removed:
                self._save()
        return removed

    def list_all(self) -> list[tuple[str, LanguagePreference]]:
        with self._lock:
            return list(self._prefs.items())
