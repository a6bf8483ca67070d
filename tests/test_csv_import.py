import csv_import
import term_store


CSV_TEXT = (
    "\ufeffDomain,term_en,term_tr,notes\n"
    "Court,bail,kefalet,\n"
    "Family,custody,velayet,sole custody\n"
    "Tax,levy,vergi,\n"
    ",missing translation,,\n"
    "court,,sanık,\n"
)


def test_parse_terms_csv_skips_incomplete_rows():
    rows = csv_import.parse_terms_csv(CSV_TEXT, target_lang="tr")
    assert [r["source_text"] for r in rows] == ["bail", "custody", "levy"]
    assert [r["domain"] for r in rows] == ["court", "family", None]
    assert rows[0]["notes"] is None
    assert rows[1]["notes"] == "sole custody"
    assert all(r["target_lang"] == "tr" for r in rows)


def test_parse_terms_csv_generic_columns():
    text = "domain,source_text,target_text\nimmigration,asylum claim,pedido de asilo\n"
    rows = csv_import.parse_terms_csv(text, target_lang="pt")
    assert rows == [{
        "domain": "immigration",
        "target_lang": "pt",
        "source_text": "asylum claim",
        "target_text": "pedido de asilo",
        "notes": None,
    }]


def test_parse_terms_csv_other_language_column_is_ignored():
    rows = csv_import.parse_terms_csv("term_en,term_fr\nbail,caution\n", target_lang="tr")
    assert rows == []


def test_import_terms_csv_saves_personal_terms(tmp_path):
    store = term_store.TermStore(str(tmp_path))
    count = csv_import.import_terms_csv(store, CSV_TEXT, target_lang="tr", owner_id="u1")
    assert count == 3
    saved = store.fetch_personal_terms("tr", "u1")
    assert [t["source_text"] for t in saved] == ["bail", "custody", "levy"]
