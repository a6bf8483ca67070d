import copy

import pytest

import session as practice
import term_store


class FakeStore:
    def __init__(self, shared=None, personal=None):
        self.shared = shared or []
        self.personal = personal or []
        self.fail_shared = False
        self.fail_personal = False
        self.fail_increment = False
        self.increments = []

    def fetch_shared_terms(self, target_lang):
        if self.fail_shared:
            raise OSError("shared pack unavailable")
        return [copy.deepcopy(t) for t in self.shared if t["target_lang"] == target_lang]

    def fetch_personal_terms(self, target_lang, owner_id):
        if self.fail_personal:
            raise ValueError("invalid terms list")
        return [copy.deepcopy(t) for t in self.personal
                if t["target_lang"] == target_lang and t.get("owner") == owner_id]

    def increment_wrong_count(self, term_id):
        if self.fail_increment:
            raise OSError("disk full")
        self.increments.append(term_id)


def _make_term(term_id: str, *, source: str, target: str, lang: str = "tr", wrong_count: int = 0,
               owner=None) -> dict:
    term = {
        "id": term_id,
        "domain": "court",
        "source_lang": "en",
        "target_lang": lang,
        "source_text": source,
        "target_text": target,
        "wrong_count": wrong_count,
    }
    if owner:
        term["owner"] = owner
    return term


def _make_session(store, **kwargs) -> practice.PracticeSession:
    kwargs.setdefault("owner_id", "u1")
    return practice.PracticeSession(store, **kwargs)


def test_load_selects_initial_term():
    store = FakeStore(shared=[_make_term("s1", source="defendant", target="sanık")])
    session = _make_session(store)
    assert session.state == practice.STATE_IDLE
    session.load()
    assert session.state == practice.STATE_READY
    assert session.get_current_term()["id"] == "s1"
    assert [t["id"] for t in session.get_pool()] == ["s1"]


def test_correct_answer_scores_and_extends_streak():
    store = FakeStore(shared=[_make_term("s1", source="defendant", target="sanık")])
    session = _make_session(store)
    session.load()
    result = session.submit_answer("Sanik")
    assert result == {"correct": True, "matched_alternative": "sanık"}
    assert session.score == 1
    assert session.streak == 1
    assert session.state == practice.STATE_ANSWERED
    assert store.increments == []


def test_miss_resets_streak_and_counts_wrong_answer():
    store = FakeStore(shared=[_make_term("s1", source="defendant", target="sanık")])
    session = _make_session(store)
    session.load()
    session.submit_answer("sanık")
    session.advance()
    result = session.submit_answer("tanık")
    assert result["correct"] is False
    assert session.streak == 0
    assert session.score == 1
    assert session.get_current_term()["wrong_count"] == 1
    assert store.increments == ["s1"]


def test_submit_twice_does_not_score_twice():
    store = FakeStore(shared=[_make_term("s1", source="defendant", target="sanık")])
    session = _make_session(store)
    session.load()
    first = session.submit_answer("sanik")
    second = session.submit_answer("sanik")
    assert first == second
    assert session.score == 1


def test_submit_without_term_is_rejected():
    session = _make_session(FakeStore())
    assert session.submit_answer("sanik") == {"correct": False, "matched_alternative": None}
    session.load()
    assert session.is_empty is True
    assert session.load_error is False
    assert session.submit_answer("sanik")["correct"] is False
    assert session.score == 0


def test_points_per_correct_and_auto_advance():
    store = FakeStore(shared=[_make_term("s1", source="defendant", target="sanık")])
    session = _make_session(store, points_per_correct=10, auto_advance=True)
    session.load()
    session.submit_answer("sanik")
    assert session.score == 10
    assert session.state == practice.STATE_READY
    assert session.last_answer["result"]["correct"] is True


def test_personal_term_overrides_shared_in_pool():
    store = FakeStore(
        shared=[_make_term("s1", source="Bail", target="kefalet")],
        personal=[_make_term("p1", source="bail ", target="kefaletle serbest bırakma", owner="u1")],
    )
    session = _make_session(store)
    session.load()
    assert [t["id"] for t in session.get_pool()] == ["p1"]
    assert session.submit_answer("kefalet")["correct"] is False


def test_one_failed_source_still_fills_pool():
    store = FakeStore(
        shared=[_make_term("s1", source="defendant", target="sanık")],
        personal=[_make_term("p1", source="custody", target="velayet", owner="u1")],
    )
    store.fail_shared = True
    session = _make_session(store)
    session.load()
    assert [t["id"] for t in session.get_pool()] == ["p1"]
    assert session.failed_sources == ["shared"]
    assert session.load_error is False
    assert len(session.error_log) == 1
    assert "shared terms load failed" in session.error_log[0]


def test_both_sources_failing_is_a_load_error():
    store = FakeStore()
    store.fail_shared = True
    store.fail_personal = True
    session = _make_session(store)
    session.load()
    assert session.state == practice.STATE_READY
    assert session.get_current_term() is None
    assert session.load_error is True


def test_wrong_count_write_failure_is_logged():
    store = FakeStore(shared=[_make_term("s1", source="defendant", target="sanık")])
    store.fail_increment = True
    session = _make_session(store)
    session.load()
    assert session.submit_answer("wrong")["correct"] is False
    assert session.get_current_term()["wrong_count"] == 1
    assert "wrong count update failed" in session.error_log[0]


def test_stale_fetch_for_previous_language_is_discarded():
    store = FakeStore(shared=[
        _make_term("tr1", source="custody", target="velayet", lang="tr"),
        _make_term("fr1", source="custody", target="garde", lang="fr"),
    ])
    tickets = []
    changes = []
    session = _make_session(store, scheduler=tickets.append, on_target_lang_change=changes.append)
    session.load()
    session.set_target_language("fr")
    assert changes == ["fr"]
    assert session.state == practice.STATE_LOADING
    stale, fresh = tickets
    fresh_result = session.fetch(fresh)
    assert session.deliver(fresh, fresh_result) is True
    assert session.deliver(stale, session.fetch(stale)) is False
    assert [t["id"] for t in session.get_pool()] == ["fr1"]
    assert session.get_current_term()["id"] == "fr1"


def test_stale_fetch_arriving_first_is_discarded():
    store = FakeStore(shared=[
        _make_term("tr1", source="custody", target="velayet", lang="tr"),
        _make_term("fr1", source="custody", target="garde", lang="fr"),
    ])
    tickets = []
    session = _make_session(store, scheduler=tickets.append)
    session.load()
    session.set_target_language("fr")
    stale, fresh = tickets
    assert session.deliver(stale, session.fetch(stale)) is False
    assert session.state == practice.STATE_LOADING
    assert session.get_pool() == []
    assert session.deliver(fresh, session.fetch(fresh)) is True
    assert session.get_current_term()["id"] == "fr1"


def test_hard_mode_without_misses_uses_full_pool():
    store = FakeStore(shared=[
        _make_term("s1", source="defendant", target="sanık"),
        _make_term("s2", source="custody", target="velayet"),
    ])
    session = _make_session(store, mode="hard")
    session.load()
    assert session.get_current_term() is not None
    assert len(session.get_pool()) == 2


def test_hard_mode_restricts_to_missed_terms():
    store = FakeStore(shared=[
        _make_term("s1", source="defendant", target="sanık"),
        _make_term("s2", source="custody", target="velayet", wrong_count=3),
    ])
    session = _make_session(store)
    session.load()
    session.set_mode("hard")
    assert [t["id"] for t in session.get_pool()] == ["s2"]
    assert session.get_current_term()["id"] == "s2"


def test_invalid_mode_and_language():
    session = _make_session(FakeStore())
    with pytest.raises(ValueError):
        session.set_mode("insane")
    with pytest.raises(ValueError):
        session.set_target_language("de")
    with pytest.raises(ValueError):
        _make_session(FakeStore(), mode="insane")


def test_unknown_initial_language_falls_back_to_default():
    session = _make_session(FakeStore(), target_lang="xx")
    assert session.target_lang == "tr"


def test_miss_on_term_with_unreadable_wrong_count_counts_from_zero():
    term = _make_term("s1", source="defendant", target="sanık")
    term["wrong_count"] = "bad"
    session = _make_session(FakeStore(shared=[term]))
    session.load()
    session.submit_answer("wrong")
    assert session.get_current_term()["wrong_count"] == 1
    assert session.last_answer["term"]["wrong_count"] == 1


def test_corrupt_progress_file_is_not_a_load_error(tmp_path):
    store = term_store.TermStore(str(tmp_path / "user"))
    (tmp_path / "user").mkdir()
    (tmp_path / "user" / "progress.json").write_text("{truncated", encoding="utf-8")
    session = _make_session(store)
    session.load()
    assert session.load_error is False
    assert session.failed_sources == []
    assert session.get_pool()
