from __future__ import annotations

import json
import os
from datetime import datetime

import yaml

from training import (
    ORIGIN_PERSONAL,
    ORIGIN_SHARED,
    SOURCE_LANG,
    normalize_domain,
    normalize_spaces,
    wrong_count_of,
)

SHARED_TERMS_PATH = os.path.join(os.path.dirname(__file__), "data", "shared_terms.yaml")

TERM_FIELDS = ("id", "domain", "source_lang", "target_lang", "source_text", "target_text",
               "notes", "difficulty")


def _slugify(text: str) -> str:
    out = []
    for ch in text.lower():
        if ch.isalnum():
            out.append(ch)
        elif ch in (" ", "-", "_"):
            out.append("_")
    slug = "".join(out).strip("_")
    return slug or "term"


def _load_yaml_terms(path: str) -> list[dict]:
    with open(path, "r", encoding="utf-8", errors="replace") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"invalid yaml structure: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("invalid yaml structure")
    terms = data.get("terms", [])
    if not isinstance(terms, list):
        raise ValueError("invalid terms list")
    return [term for term in terms if isinstance(term, dict)]


def _load_json(path: str, default):
    if not os.path.exists(path):
        return default
    with open(path, "r", encoding="utf-8", errors="replace") as handle:
        return json.load(handle)


def _save_json(path: str, data) -> None:
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(data, handle, ensure_ascii=False, indent=2)


class TermStore:
    """File-backed term repository.

    The shared pack is a read-only YAML file. Personal terms live in a YAML
    file in the user's data directory; miss counters for both kinds live in a
    JSON progress file keyed by term id.
    """

    def __init__(self, data_dir: str, shared_path: str = SHARED_TERMS_PATH):
        self.data_dir = data_dir
        self.shared_path = shared_path
        self.personal_path = os.path.join(data_dir, "my_terms.yaml")
        self.progress_path = os.path.join(data_dir, "progress.json")
        self.progress_error = ""

    def _load_progress(self) -> dict:
        progress = _load_json(self.progress_path, {})
        if not isinstance(progress, dict):
            raise ValueError("invalid progress data")
        return progress

    def _read_progress(self) -> dict:
        # an unreadable progress file only loses miss counters, never terms
        try:
            progress = self._load_progress()
        except ValueError as exc:
            self.progress_error = f"progress unreadable: {exc}"
            return {}
        self.progress_error = ""
        return progress

    def _load_personal(self) -> list[dict]:
        if not os.path.exists(self.personal_path):
            return []
        return _load_yaml_terms(self.personal_path)

    def _save_personal(self, terms: list[dict]) -> None:
        os.makedirs(self.data_dir, exist_ok=True)
        with open(self.personal_path, "w", encoding="utf-8") as handle:
            yaml.safe_dump({"terms": terms}, handle, sort_keys=False, allow_unicode=True)

    def _with_progress(self, term: dict, progress: dict, origin: str) -> dict:
        item = {field: term.get(field) for field in TERM_FIELDS}
        item["domain"] = normalize_domain(term.get("domain"))
        item["source_lang"] = term.get("source_lang") or SOURCE_LANG
        if origin == ORIGIN_PERSONAL:
            item["owner"] = term.get("owner")
        else:
            item["notes"] = None
        item["origin"] = origin
        item["wrong_count"] = wrong_count_of(progress.get(str(item["id"]), {}))
        return item

    def fetch_shared_terms(self, target_lang: str) -> list[dict]:
        progress = self._read_progress()
        terms = []
        for term in _load_yaml_terms(self.shared_path):
            if (term.get("source_lang") or SOURCE_LANG) != SOURCE_LANG:
                continue
            if term.get("target_lang") != target_lang:
                continue
            terms.append(self._with_progress(term, progress, ORIGIN_SHARED))
        return terms

    def fetch_personal_terms(self, target_lang: str, owner_id: str) -> list[dict]:
        progress = self._read_progress()
        terms = []
        for term in self._load_personal():
            if term.get("owner") != owner_id:
                continue
            if (term.get("source_lang") or SOURCE_LANG) != SOURCE_LANG:
                continue
            if term.get("target_lang") != target_lang:
                continue
            terms.append(self._with_progress(term, progress, ORIGIN_PERSONAL))
        return terms

    def save_term(self, term: dict) -> dict:
        if term.get("origin") == ORIGIN_SHARED:
            raise ValueError("shared terms are read-only")
        source_text = normalize_spaces(term.get("source_text") or "")
        target_text = normalize_spaces(term.get("target_text") or "")
        if not source_text or not target_text:
            raise ValueError("source and target text are required")
        target_lang = term.get("target_lang")
        if not target_lang:
            raise ValueError("target language is required")
        notes = (term.get("notes") or "").strip() or None

        terms = self._load_personal()
        record = {
            "id": term.get("id"),
            "owner": term.get("owner"),
            "domain": normalize_domain(term.get("domain")),
            "source_lang": SOURCE_LANG,
            "target_lang": target_lang,
            "source_text": source_text,
            "target_text": target_text,
            "notes": notes,
        }
        existing = next((t for t in terms if record["id"] and t.get("id") == record["id"]), None)
        if existing is not None:
            record["created"] = existing.get("created")
            terms[terms.index(existing)] = record
        else:
            record["id"] = self._new_id(terms, source_text, target_lang)
            record["created"] = datetime.now().isoformat(timespec="seconds")
            terms.append(record)
        self._save_personal(terms)
        return self._with_progress(record, self._read_progress(), ORIGIN_PERSONAL)

    def _new_id(self, terms: list[dict], source_text: str, target_lang: str) -> str:
        taken = {t.get("id") for t in terms}
        base = f"my_{_slugify(source_text)}"
        idx = 1
        while f"{base}_{idx:03d}_{target_lang}" in taken:
            idx += 1
        return f"{base}_{idx:03d}_{target_lang}"

    def delete_term(self, term_id: str) -> None:
        if not term_id:
            return
        terms = self._load_personal()
        kept = [term for term in terms if term.get("id") != term_id]
        if len(kept) == len(terms):
            return
        self._save_personal(kept)
        progress = self._read_progress()
        if term_id in progress:
            progress.pop(term_id, None)
            _save_json(self.progress_path, progress)

    def increment_wrong_count(self, term_id: str) -> None:
        if not term_id:
            return
        progress = self._read_progress()
        entry = progress.setdefault(str(term_id), {})
        entry["wrong_count"] = wrong_count_of(entry) + 1
        entry["last_miss"] = datetime.now().isoformat(timespec="seconds")
        os.makedirs(self.data_dir, exist_ok=True)
        _save_json(self.progress_path, progress)
