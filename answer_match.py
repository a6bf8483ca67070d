from __future__ import annotations

import re
import unicodedata

BRACKET_PATTERNS = (
    re.compile(r"\([^)]*\)"),
    re.compile(r"\[[^\]]*\]"),
    re.compile(r"\{[^}]*\}"),
)
BRACKET_CONTENT_PATTERN = re.compile(r"\(([^)]*)\)|\[([^\]]*)\]|\{([^}]*)\}")

# "veya" and "ya da" are Turkish for "or"
ALTERNATIVE_SPLITTERS = re.compile(r"/|;|,|\||\bveya\b|\bya da\b", re.IGNORECASE)

APOSTROPHE_CHARS = "'‘’‛ʼʻ`´′\"“”„"
DASH_CHARS = "-‐‑‒–—―−"

_APOSTROPHE_TABLE = str.maketrans({ch: "'" for ch in APOSTROPHE_CHARS})
_DASH_TABLE = str.maketrans({ch: " " for ch in DASH_CHARS})
_NOT_ALLOWED = re.compile(r"[^a-z0-9 ]")


def strip_bracketed(text: str) -> str:
    if not isinstance(text, str):
        return ""
    for pattern in BRACKET_PATTERNS:
        text = pattern.sub(" ", text)
    return text


def fold_diacritics(text: str) -> str:
    if not isinstance(text, str):
        return ""
    # dotless i has no decomposition
    text = text.replace("ı", "i")
    return "".join(ch for ch in unicodedata.normalize("NFD", text) if unicodedata.category(ch) != "Mn")


def normalize_answer(text: str) -> str:
    """Canonical comparison form of an answer or reference translation.

    Bracketed notes are removed before accents are folded, the result is
    lowercase ASCII letters, digits and single spaces. Apostrophes are
    optional ("isti'naf" == "istinaf") and hyphens count as spaces
    ("al-sulh" == "al sulh"). Calling it twice gives the same result.
    """
    if not isinstance(text, str):
        return ""
    text = fold_diacritics(strip_bracketed(text)).lower()
    text = text.translate(_APOSTROPHE_TABLE).translate(_DASH_TABLE)
    text = text.replace("'", "")
    text = _NOT_ALLOWED.sub(" ", text)
    return " ".join(text.split())


def _bracket_contents(text: str) -> list[str]:
    contents = []
    for match in BRACKET_CONTENT_PATTERN.finditer(text):
        inside = next((group for group in match.groups() if group is not None), "")
        if inside.strip():
            contents.append(inside)
    return contents


def _split_alternatives(text: str) -> list[str]:
    return [part.strip() for part in ALTERNATIVE_SPLITTERS.split(text) if part and part.strip()]


def extract_alternatives(reference: str) -> list[str]:
    """Accepted spellings encoded in a reference translation.

    "adjournment / postponement (of hearing)" yields
    ["adjournment", "postponement", "of hearing", <full string>] minus
    duplicates by normalized form. Bracketed notes count as alternatives.
    """
    if not isinstance(reference, str):
        return []
    raw = reference.strip()
    if not raw:
        return []

    candidates = _split_alternatives(strip_bracketed(raw))
    for inside in _bracket_contents(raw):
        candidates.extend(_split_alternatives(inside))
    candidates.append(raw)

    seen = set()
    alternatives = []
    for candidate in candidates:
        norm = normalize_answer(candidate)
        if not norm or norm in seen:
            continue
        seen.add(norm)
        alternatives.append(candidate)
    return alternatives or [raw]


def evaluate_answer(given: str, reference: str) -> dict:
    given_norm = normalize_answer(given)
    if not given_norm:
        return {"correct": False, "matched_alternative": None}
    for alternative in extract_alternatives(reference):
        if normalize_answer(alternative) == given_norm:
            return {"correct": True, "matched_alternative": alternative}
    return {"correct": False, "matched_alternative": None}
