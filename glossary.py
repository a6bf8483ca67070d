from __future__ import annotations

from typing import Iterable

from training import (
    DOMAINS,
    ORIGIN_PERSONAL,
    merge_term_pools,
    term_key,
)

DOMAIN_FILTER_ALL = "all"


def domain_label(value) -> str:
    return DOMAINS.get(value, "Unassigned") if isinstance(value, str) else "Unassigned"


def _matches_query(term: dict, query: str) -> bool:
    for field in ("source_text", "target_text", "notes"):
        if query in (term.get(field) or "").lower():
            return True
    return False


def build_glossary(shared: Iterable[dict] | None, personal: Iterable[dict] | None, *, target_lang: str,
                   domain_filter: str = DOMAIN_FILTER_ALL, query: str = "") -> list[dict]:
    """My terms first, then pack terms that no personal term overrides."""
    entries = merge_term_pools(shared, personal, target_lang=target_lang)
    if domain_filter != DOMAIN_FILTER_ALL:
        entries = [term for term in entries if term.get("domain") == domain_filter]
    query = (query or "").strip().lower()
    if query:
        entries = [term for term in entries if _matches_query(term, query)]
    return entries


def copy_shared_to_personal(store, shared_term: dict, *, owner_id: str, personal: Iterable[dict]) -> dict | None:
    """Save a pack term as a personal term; ``None`` if one with the same key exists."""
    target_lang = shared_term.get("target_lang")
    key = term_key(shared_term, target_lang)
    if any(term_key(term, target_lang) == key for term in personal):
        return None
    return store.save_term({
        "owner": owner_id,
        "domain": shared_term.get("domain"),
        "target_lang": target_lang,
        "source_text": shared_term.get("source_text") or "",
        "target_text": shared_term.get("target_text") or "",
        "notes": None,
        "origin": ORIGIN_PERSONAL,
    })
