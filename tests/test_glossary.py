import pytest
import yaml

import glossary
import term_store


def _term(term_id, source, target, *, domain="court", notes=None):
    return {"id": term_id, "domain": domain, "target_lang": "tr",
            "source_text": source, "target_text": target, "notes": notes}


SHARED = [
    _term("s1", "bail", "kefalet"),
    _term("s2", "custody", "velayet", domain="family"),
    _term("s3", "asylum claim", "sığınma başvurusu", domain="immigration"),
]
PERSONAL = [_term("p1", "Bail", "kefaletle serbest bırakma", notes="bail hearing context")]


def test_build_glossary_lists_my_terms_first():
    entries = glossary.build_glossary(SHARED, PERSONAL, target_lang="tr")
    assert [t["id"] for t in entries] == ["p1", "s2", "s3"]


def test_build_glossary_domain_filter():
    entries = glossary.build_glossary(SHARED, PERSONAL, target_lang="tr", domain_filter="family")
    assert [t["id"] for t in entries] == ["s2"]


def test_build_glossary_search_covers_notes_and_translations():
    assert [t["id"] for t in glossary.build_glossary(SHARED, PERSONAL, target_lang="tr",
                                                     query="CONTEXT")] == ["p1"]
    assert [t["id"] for t in glossary.build_glossary(SHARED, PERSONAL, target_lang="tr",
                                                     query=" velay ")] == ["s2"]


def test_domain_label():
    assert glossary.domain_label("immigration") == "Immigration"
    assert glossary.domain_label(None) == "Unassigned"
    assert glossary.domain_label("tax") == "Unassigned"


@pytest.fixture
def store(tmp_path):
    pack = tmp_path / "shared_terms.yaml"
    with open(pack, "w", encoding="utf-8") as handle:
        yaml.safe_dump({"terms": [{"id": "s1", "domain": "court", "target_lang": "tr",
                                   "source_text": "bail", "target_text": "kefalet"}]}, handle)
    return term_store.TermStore(str(tmp_path / "user"), shared_path=str(pack))


def test_copy_shared_to_personal(store):
    shared = store.fetch_shared_terms("tr")[0]
    saved = glossary.copy_shared_to_personal(store, shared, owner_id="u1", personal=[])
    assert saved["origin"] == "personal"
    assert saved["target_text"] == "kefalet"
    personal = store.fetch_personal_terms("tr", "u1")
    assert glossary.copy_shared_to_personal(store, shared, owner_id="u1", personal=personal) is None
    assert len(store.fetch_personal_terms("tr", "u1")) == 1
