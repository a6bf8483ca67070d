from __future__ import annotations

import random
import traceback
from datetime import datetime
from typing import Callable

from answer_match import evaluate_answer
from training import (
    DEFAULT_TARGET_LANG,
    LANGUAGES,
    MODE_NORMAL,
    MODES,
    filter_pool,
    merge_term_pools,
    pick_weighted,
    wrong_count_of,
)

STATE_IDLE = "idle"
STATE_LOADING = "loading"
STATE_READY = "ready"
STATE_ANSWERED = "answered"

POINTS_PER_CORRECT = 1


class PracticeSession:
    """Practice loop over the merged shared + personal pool.

    Loading is split into ``request_load`` (issue a ticket), ``fetch`` (talk to
    the store, may run off the UI thread) and ``deliver`` (apply the result on
    the UI thread). A ticket is stale once the language or mode changes again,
    and stale results are dropped.
    """

    def __init__(
        self,
        store,
        *,
        owner_id: str,
        target_lang: str = DEFAULT_TARGET_LANG,
        mode: str = MODE_NORMAL,
        on_target_lang_change: Callable[[str], None] | None = None,
        scheduler: Callable[[dict], None] | None = None,
        auto_advance: bool = False,
        points_per_correct: int = POINTS_PER_CORRECT,
        rng: random.Random | None = None,
    ):
        if target_lang not in LANGUAGES:
            target_lang = DEFAULT_TARGET_LANG
        if mode not in MODES:
            raise ValueError(f"unknown mode: {mode}")
        self.store = store
        self.owner_id = owner_id
        self.target_lang = target_lang
        self.mode = mode
        self.auto_advance = auto_advance
        self.points_per_correct = points_per_correct
        self._on_target_lang_change = on_target_lang_change
        self._scheduler = scheduler
        self._rng = rng or random.Random()

        self.state = STATE_IDLE
        self.score = 0
        self.streak = 0
        self.load_error = False
        self.failed_sources: list[str] = []
        self.last_answer: dict | None = None
        self.error_log: list[str] = []
        self.last_exception = ""

        self._generation = 0
        self._merged: list[dict] = []
        self._pool: list[dict] = []
        self._current: dict | None = None

    def _log_error(self, label: str, exc: Exception | None = None) -> None:
        msg = f"[{datetime.now().isoformat(timespec='seconds')}] {label}"
        if exc is not None:
            msg += f": {exc}"
        self.error_log.append(msg)
        if exc is not None:
            self.last_exception = traceback.format_exc()

    def get_pool(self) -> list[dict]:
        return list(self._pool)

    def get_current_term(self) -> dict | None:
        return self._current

    @property
    def is_empty(self) -> bool:
        return self.state == STATE_READY and self._current is None

    def request_load(self) -> dict:
        self._generation += 1
        self.state = STATE_LOADING
        self._current = None
        self.last_answer = None
        return {"generation": self._generation, "target_lang": self.target_lang, "mode": self.mode}

    def fetch(self, ticket: dict) -> dict:
        """Query both collections; a failing source becomes an empty list."""
        result = {"shared": [], "personal": [], "errors": []}
        lang = ticket["target_lang"]
        try:
            result["shared"] = self.store.fetch_shared_terms(lang)
        except Exception as exc:
            self._log_error(f"shared terms load failed ({lang})", exc)
            result["errors"].append("shared")
        try:
            result["personal"] = self.store.fetch_personal_terms(lang, self.owner_id)
        except Exception as exc:
            self._log_error(f"personal terms load failed ({lang})", exc)
            result["errors"].append("personal")
        return result

    def deliver(self, ticket: dict, result: dict) -> bool:
        if ticket.get("generation") != self._generation:
            return False
        errors = list(result.get("errors") or [])
        self._merged = merge_term_pools(result.get("shared"), result.get("personal"),
                                        target_lang=ticket["target_lang"])
        self._pool = filter_pool(self._merged, self.mode)
        self.failed_sources = errors
        self.load_error = "shared" in errors and "personal" in errors
        self._current = pick_weighted(self._pool, self._rng)
        self.state = STATE_READY
        return True

    def load(self) -> dict:
        ticket = self.request_load()
        if self._scheduler is not None:
            self._scheduler(ticket)
        else:
            self.deliver(ticket, self.fetch(ticket))
        return ticket

    def submit_answer(self, text: str) -> dict:
        if self.state == STATE_ANSWERED and self.last_answer is not None:
            return self.last_answer["result"]
        term = self._current
        if self.state != STATE_READY or term is None:
            return {"correct": False, "matched_alternative": None}

        result = evaluate_answer(text, term.get("target_text") or "")
        if result["correct"]:
            self.score += self.points_per_correct
            self.streak += 1
        else:
            self.streak = 0
            term["wrong_count"] = wrong_count_of(term) + 1
            try:
                self.store.increment_wrong_count(term.get("id"))
            except Exception as exc:
                self._log_error("wrong count update failed", exc)

        self.last_answer = {"term": term, "given": text, "result": result}
        self.state = STATE_ANSWERED
        if result["correct"] and self.auto_advance:
            self.advance()
        return result

    def advance(self) -> dict | None:
        if self.state not in (STATE_READY, STATE_ANSWERED):
            return self._current
        self._pool = filter_pool(self._merged, self.mode)
        self._current = pick_weighted(self._pool, self._rng)
        self.state = STATE_READY
        return self._current

    def set_mode(self, mode: str) -> dict:
        if mode not in MODES:
            raise ValueError(f"unknown mode: {mode}")
        self.mode = mode
        return self.load()

    def set_target_language(self, lang: str) -> dict:
        if lang not in LANGUAGES:
            raise ValueError(f"unknown target language: {lang}")
        self.target_lang = lang
        if self._on_target_lang_change is not None:
            self._on_target_lang_change(lang)
        return self.load()
