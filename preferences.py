from __future__ import annotations

import json
import os

from training import DEFAULT_TARGET_LANG, LANGUAGES

PREF_TARGET_LANG = "target_lang"
PREF_TEXT_SIZE = "text_size"
TEXT_SIZES = ("normal", "large")

DEFAULT_PREFERENCES = {
    PREF_TARGET_LANG: DEFAULT_TARGET_LANG,
    PREF_TEXT_SIZE: "normal",
}


def _clean(prefs: dict) -> dict:
    cleaned = dict(DEFAULT_PREFERENCES)
    if prefs.get(PREF_TARGET_LANG) in LANGUAGES:
        cleaned[PREF_TARGET_LANG] = prefs[PREF_TARGET_LANG]
    if prefs.get(PREF_TEXT_SIZE) in TEXT_SIZES:
        cleaned[PREF_TEXT_SIZE] = prefs[PREF_TEXT_SIZE]
    return cleaned


def load_preferences(path: str) -> dict:
    if not os.path.exists(path):
        return dict(DEFAULT_PREFERENCES)
    with open(path, "r", encoding="utf-8", errors="replace") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError("invalid preferences data")
    return _clean(data)


def save_preferences(path: str, prefs: dict) -> None:
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(_clean(prefs), handle, ensure_ascii=False, indent=2)
