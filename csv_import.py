from __future__ import annotations

import csv
import io

from training import normalize_domain, normalize_spaces

SOURCE_COLUMNS = ("source_text", "term_en")


def _target_columns(target_lang: str) -> tuple[str, ...]:
    return ("target_text", f"term_{target_lang}")


def _first_value(row: dict, columns: tuple[str, ...]) -> str:
    for column in columns:
        value = normalize_spaces(row.get(column) or "")
        if value:
            return value
    return ""


def parse_terms_csv(text: str, *, target_lang: str) -> list[dict]:
    """Rows of a glossary CSV (domain, source_text/term_en, target_text/term_<lang>, notes).

    Rows missing the English or the target text are skipped.
    """
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    if reader.fieldnames:
        reader.fieldnames = [name.strip().lower() for name in reader.fieldnames]
    rows = []
    for row in reader:
        source_text = _first_value(row, SOURCE_COLUMNS)
        target_text = _first_value(row, _target_columns(target_lang))
        if not source_text or not target_text:
            continue
        rows.append({
            "domain": normalize_domain(row.get("domain")),
            "target_lang": target_lang,
            "source_text": source_text,
            "target_text": target_text,
            "notes": (row.get("notes") or "").strip() or None,
        })
    return rows


def import_terms_csv(store, text: str, *, target_lang: str, owner_id: str) -> int:
    rows = parse_terms_csv(text, target_lang=target_lang)
    for row in rows:
        row["owner"] = owner_id
        store.save_term(row)
    return len(rows)
