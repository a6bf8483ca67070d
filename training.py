from __future__ import annotations

import bisect
import itertools
import random
from typing import Iterable

SOURCE_LANG = "en"

LANGUAGES = {
    "tr": "Turkish (TR)",
    "fr": "French (FR)",
    "es": "Spanish (ES)",
    "pt": "Portuguese (PT)",
    "hi": "Hindi (HI)",
    "ar": "Arabic (AR)",
}
DEFAULT_TARGET_LANG = "tr"

DOMAINS = {
    "court": "Court",
    "immigration": "Immigration",
    "family": "Family",
}

ORIGIN_SHARED = "shared"
ORIGIN_PERSONAL = "personal"

MODE_NORMAL = "normal"
MODE_HARD = "hard"
MODES = (MODE_NORMAL, MODE_HARD)

HARD_DIFFICULTY_THRESHOLD = 3


def normalize_spaces(text: str) -> str:
    if not isinstance(text, str):
        return ""
    return " ".join(text.strip().split())


def _key_part(value) -> str:
    if value is None:
        return ""
    return normalize_spaces(str(value)).lower()


def term_key(term: dict, target_lang: str | None = None) -> tuple[str, str, str]:
    """Identity of a term for override detection: (domain, source text, target language)."""
    return (
        _key_part(term.get("domain")),
        _key_part(term.get("source_text")),
        _key_part(term.get("target_lang") or target_lang),
    )


def normalize_domain(value) -> str | None:
    domain = _key_part(value)
    return domain if domain in DOMAINS else None


def wrong_count_of(term: dict) -> int:
    try:
        return max(0, int(term.get("wrong_count") or 0))
    except (TypeError, ValueError):
        return 0


def merge_term_pools(shared: Iterable[dict] | None, personal: Iterable[dict] | None, *,
                     target_lang: str | None = None) -> list[dict]:
    personal_items = [dict(term, origin=ORIGIN_PERSONAL) for term in personal or []]
    shared_items = [dict(term, origin=ORIGIN_SHARED) for term in shared or []]
    personal_keys = {term_key(term, target_lang) for term in personal_items}
    return personal_items + [term for term in shared_items if term_key(term, target_lang) not in personal_keys]


def is_hard_term(term: dict) -> bool:
    if term.get("wrong_count") is not None:
        return wrong_count_of(term) > 0
    try:
        return int(term.get("difficulty") or 0) >= HARD_DIFFICULTY_THRESHOLD
    except (TypeError, ValueError):
        return False


def filter_pool(pool: list[dict], mode: str) -> list[dict]:
    if mode != MODE_HARD:
        return list(pool)
    hard = [term for term in pool if is_hard_term(term)]
    # Hard Words never leaves the learner without a card
    return hard or list(pool)


def term_weight(term: dict) -> int:
    return wrong_count_of(term) + 1


def pick_weighted(pool: list[dict], rng: random.Random | None = None) -> dict | None:
    """Pick a term with probability proportional to ``wrong_count + 1``.

    Equivalent to repeating every term ``weight`` times and choosing uniformly,
    without building the repeated list.
    """
    if not pool:
        return None
    rng = rng or random
    cumulative = list(itertools.accumulate(term_weight(term) for term in pool))
    ticket = rng.randrange(cumulative[-1])
    return pool[bisect.bisect_right(cumulative, ticket)]
