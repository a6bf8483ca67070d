# Copyright (C) 2026 Arnd Brandes.
# Dieses Programm kann durch jedermann gemaess den Bestimmungen der Deutschen Freien Software Lizenz genutzt werden.

from __future__ import annotations

import json
import os
import threading
import traceback
from datetime import datetime, timedelta

from kivy.app import App
from kivy.clock import Clock
from kivy.core.window import Window
from kivy.uix.boxlayout import BoxLayout
from kivy.uix.button import Button
from kivy.uix.label import Label
from kivy.uix.popup import Popup
from kivy.uix.screenmanager import ScreenManager, Screen
from kivy.uix.scrollview import ScrollView
from kivy.uix.spinner import Spinner
from kivy.uix.textinput import TextInput
from kivy.uix.togglebutton import ToggleButton
from kivy.graphics import Color, RoundedRectangle, Line
from kivy.utils import platform as kivy_platform

from csv_import import import_terms_csv
from glossary import DOMAIN_FILTER_ALL, build_glossary, copy_shared_to_personal, domain_label
from preferences import (
    DEFAULT_PREFERENCES,
    PREF_TARGET_LANG,
    PREF_TEXT_SIZE,
    TEXT_SIZES,
    load_preferences,
    save_preferences,
)
from session import STATE_ANSWERED, STATE_LOADING, PracticeSession
from term_store import TermStore
from training import DOMAINS, LANGUAGES, MODE_HARD, MODE_NORMAL, ORIGIN_PERSONAL

try:
    from plyer import notification  # type: ignore
except Exception:
    notification = None

try:
    from plyer import filechooser  # type: ignore
except Exception:
    filechooser = None

__version__ = "0.1"

IS_ANDROID = (kivy_platform == "android")

LOCAL_OWNER_ID = "local"
REMINDER_AFTER = timedelta(hours=24)

INPUT_HEIGHT = 72
BUTTON_HEIGHT = 64
INPUT_FONT_SIZE = 26
BUTTON_FONT_SIZE = 26
SPINNER_FONT_SIZE = 26
LABEL_FONT_SIZE = 24
PROMPT_FONT_SIZE = 40
LARGE_TEXT_SCALE = 1.2
TEXT_COLOR = (0.12, 0.1, 0.08, 1)
SURFACE_BG = (0.98, 0.96, 0.93, 1)
CARD_BG = (0.94, 0.92, 0.88, 1)
CARD_BORDER = (0.72, 0.68, 0.63, 1)
INPUT_BG = (1, 1, 1, 1)
BUTTON_BG = (0.86, 0.83, 0.78, 1)
CARD_HEIGHT = 96


def _styled_text_input(**kwargs) -> TextInput:
    kwargs.setdefault("font_size", INPUT_FONT_SIZE)
    kwargs.setdefault("foreground_color", TEXT_COLOR)
    kwargs.setdefault("background_color", INPUT_BG)
    return TextInput(**kwargs)


def _read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8", errors="replace") as handle:
        return handle.read()


def _load_json(path: str, default):
    if not os.path.exists(path):
        return default
    with open(path, "r", encoding="utf-8", errors="replace") as handle:
        return json.load(handle)


def _save_json(path: str, data) -> None:
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(data, handle, ensure_ascii=False, indent=2)


def _info(title: str, text: str) -> None:
    Popup(title=title, content=Label(text=text), size_hint=(0.7, 0.3)).open()


class TopBar(BoxLayout):
    def __init__(self, app, title: str, **kwargs):
        super().__init__(orientation="horizontal", size_hint_y=None, height=BUTTON_HEIGHT, **kwargs)
        self.app = app
        self.add_widget(Button(text="≡", size_hint_x=None, width=BUTTON_HEIGHT,
                               on_release=self.app.open_menu))
        self.add_widget(Label(text=title, font_size=LABEL_FONT_SIZE + 4, color=TEXT_COLOR))


class TermRow(BoxLayout):
    def __init__(self, term: dict, on_edit, on_delete, on_copy, **kwargs):
        super().__init__(orientation="horizontal", size_hint_y=None, height=CARD_HEIGHT,
                         padding=8, spacing=6, **kwargs)
        with self.canvas.before:
            Color(*CARD_BG)
            self._bg = RoundedRectangle(radius=[10], pos=self.pos, size=self.size)
            Color(*CARD_BORDER)
            self._border = Line(rounded_rectangle=[self.x, self.y, self.width, self.height, 10])
        self.bind(pos=self._update_canvas, size=self._update_canvas)

        personal = term.get("origin") == ORIGIN_PERSONAL
        tag = "My term" if personal else "Pack"
        text = f"{term.get('source_text', '')} — {term.get('target_text', '')}\n" \
               f"[size=18]{domain_label(term.get('domain'))} · {tag}[/size]"
        if term.get("notes"):
            text += f"\n[size=18]{term['notes']}[/size]"
        label = Label(text=text, markup=True, halign="left", valign="middle",
                      font_size=LABEL_FONT_SIZE, color=TEXT_COLOR)
        label.bind(size=lambda lbl, *_: setattr(lbl, "text_size", lbl.size))
        self.add_widget(label)
        if personal:
            self.add_widget(Button(text="Edit", size_hint_x=None, width=110,
                                   on_release=lambda *_: on_edit(term)))
            self.add_widget(Button(text="Delete", size_hint_x=None, width=120,
                                   on_release=lambda *_: on_delete(term)))
        else:
            self.add_widget(Button(text="Save", size_hint_x=None, width=110,
                                   on_release=lambda *_: on_copy(term)))

    def _update_canvas(self, *_):
        self._bg.pos = self.pos
        self._bg.size = self.size
        self._border.rounded_rectangle = [self.x, self.y, self.width, self.height, 10]


class MenuScreen(Screen):
    def __init__(self, app, **kwargs):
        super().__init__(**kwargs)
        layout = BoxLayout(orientation="vertical")
        layout.add_widget(TopBar(app, "iSpeak Terms"))
        body = BoxLayout(orientation="vertical", padding=16, spacing=12)
        body.add_widget(Button(text="Practice", on_release=lambda *_: app.show_practice()))
        body.add_widget(Button(text="Glossary", on_release=lambda *_: app.show_glossary()))
        body.add_widget(Button(text="Settings", on_release=lambda *_: app.show_settings()))
        layout.add_widget(body)
        self.add_widget(layout)


class PracticeScreen(Screen):
    def __init__(self, app, **kwargs):
        super().__init__(**kwargs)
        self.app = app
        layout = BoxLayout(orientation="vertical")
        layout.add_widget(TopBar(app, "Practice"))
        body = BoxLayout(orientation="vertical", padding=16, spacing=10)

        top_row = BoxLayout(size_hint_y=None, height=BUTTON_HEIGHT, spacing=8)
        self.lang_spinner = Spinner(text=LANGUAGES[app.session.target_lang],
                                    values=list(LANGUAGES.values()), font_size=SPINNER_FONT_SIZE)
        self.lang_spinner.bind(text=lambda _spinner, text: self._change_language(text))
        top_row.add_widget(self.lang_spinner)
        self.mode_normal = ToggleButton(text="Normal", group="mode",
                                        state="down" if app.session.mode == MODE_NORMAL else "normal")
        self.mode_hard = ToggleButton(text="Hard Words", group="mode",
                                      state="down" if app.session.mode == MODE_HARD else "normal")
        self.mode_normal.bind(state=lambda btn, state: self._toggle_mode(state, MODE_NORMAL))
        self.mode_hard.bind(state=lambda btn, state: self._toggle_mode(state, MODE_HARD))
        top_row.add_widget(self.mode_normal)
        top_row.add_widget(self.mode_hard)
        body.add_widget(top_row)

        self.score_label = Label(text="", size_hint_y=None, height=32)
        body.add_widget(self.score_label)
        self.meta_label = Label(text="", size_hint_y=None, height=32)
        body.add_widget(self.meta_label)
        self.prompt_label = Label(text="", font_size=PROMPT_FONT_SIZE, bold=True)
        body.add_widget(self.prompt_label)
        self.answer_input = _styled_text_input(multiline=False, size_hint_y=None, height=INPUT_HEIGHT)
        self.answer_input.bind(on_text_validate=lambda *_: self.check_or_next())
        body.add_widget(self.answer_input)
        self.feedback_label = Label(text="", markup=True)
        body.add_widget(self.feedback_label)

        btn_row = BoxLayout(size_hint_y=None, height=BUTTON_HEIGHT, spacing=8)
        self.check_button = Button(text="Check", on_release=lambda *_: self.check_or_next())
        btn_row.add_widget(self.check_button)
        btn_row.add_widget(Button(text="Next", on_release=lambda *_: self.next_term()))
        btn_row.add_widget(Button(text="Back", on_release=lambda *_: self.app.show_menu()))
        body.add_widget(btn_row)
        layout.add_widget(body)
        self.add_widget(layout)

    def on_pre_enter(self, *args):
        self.app.reload_practice()

    def _change_language(self, label: str) -> None:
        lang = next((code for code, text in LANGUAGES.items() if text == label), None)
        if lang and lang != self.app.session.target_lang:
            self.app.session.set_target_language(lang)
            self.refresh()

    def _toggle_mode(self, state: str, mode: str) -> None:
        if state == "down" and mode != self.app.session.mode:
            self.app.session.set_mode(mode)
            self.refresh()

    def check_or_next(self) -> None:
        if self.app.session.state == STATE_ANSWERED:
            self.next_term()
        else:
            self.app.submit_answer(self.answer_input.text)

    def next_term(self) -> None:
        self.app.session.advance()
        self.answer_input.text = ""
        self.feedback_label.text = ""
        self.refresh()

    def show_feedback(self, result: dict, expected: str) -> None:
        if result["correct"]:
            self.feedback_label.text = "[color=0a7d28]Correct[/color]"
        else:
            self.feedback_label.text = f"[color=b00020]Incorrect[/color]  expected: {expected}"

    def refresh(self) -> None:
        session = self.app.session
        self.lang_spinner.text = LANGUAGES[session.target_lang]
        self.score_label.text = f"Score: {session.score}    Streak: {session.streak}"
        term = session.get_current_term()
        if session.state == STATE_LOADING:
            self.prompt_label.text = "Loading..."
            self.meta_label.text = ""
        elif term is None:
            self.prompt_label.text = "Could not load terms" if session.load_error else "No terms found"
            self.meta_label.text = ""
        else:
            self.prompt_label.text = term.get("source_text", "")
            self.meta_label.text = f"Domain: {domain_label(term.get('domain'))} · " \
                                   f"Difficulty: {term.get('difficulty') or 1} · Misses: {term.get('wrong_count', 0)}"
        self.check_button.text = "Next" if session.state == STATE_ANSWERED else "Check"
        self.answer_input.hint_text = f"Type the {LANGUAGES[session.target_lang]} translation..."


class GlossaryScreen(Screen):
    def __init__(self, app, **kwargs):
        super().__init__(**kwargs)
        self.app = app
        self.domain_filter = DOMAIN_FILTER_ALL
        layout = BoxLayout(orientation="vertical")
        layout.add_widget(TopBar(app, "Glossary"))
        body = BoxLayout(orientation="vertical", padding=16, spacing=10)

        filter_row = BoxLayout(size_hint_y=None, height=INPUT_HEIGHT, spacing=8)
        self.lang_spinner = Spinner(text=LANGUAGES[app.session.target_lang],
                                    values=list(LANGUAGES.values()), font_size=SPINNER_FONT_SIZE)
        self.lang_spinner.bind(text=lambda _spinner, text: self._change_language(text))
        filter_row.add_widget(self.lang_spinner)
        self.domain_spinner = Spinner(text="All domains", values=["All domains"] + list(DOMAINS.values()),
                                      font_size=SPINNER_FONT_SIZE)
        self.domain_spinner.bind(text=lambda _spinner, text: self._set_domain(text))
        filter_row.add_widget(self.domain_spinner)
        self.search_input = _styled_text_input(multiline=False, hint_text="Search")
        self.search_input.bind(text=lambda *_: self.refresh())
        filter_row.add_widget(self.search_input)
        body.add_widget(filter_row)

        self.terms_layout = BoxLayout(orientation="vertical", spacing=6, size_hint_y=None)
        self.terms_layout.bind(minimum_height=self.terms_layout.setter("height"))
        scroll = ScrollView(size_hint=(1, 1))
        scroll.add_widget(self.terms_layout)
        body.add_widget(scroll)

        btn_row = BoxLayout(size_hint_y=None, height=BUTTON_HEIGHT, spacing=8)
        btn_row.add_widget(Button(text="New", on_release=lambda *_: self._open_term_editor()))
        btn_row.add_widget(Button(text="Import CSV", on_release=lambda *_: self.app.import_csv_prompt()))
        btn_row.add_widget(Button(text="Back", on_release=lambda *_: self.app.show_menu()))
        body.add_widget(btn_row)
        layout.add_widget(body)
        self.add_widget(layout)

    def on_pre_enter(self, *args):
        self.refresh()

    def _change_language(self, label: str) -> None:
        lang = next((code for code, text in LANGUAGES.items() if text == label), None)
        if lang and lang != self.app.session.target_lang:
            self.app.session.set_target_language(lang)
            self.refresh()

    def _set_domain(self, label: str) -> None:
        self.domain_filter = next((code for code, text in DOMAINS.items() if text == label), DOMAIN_FILTER_ALL)
        self.refresh()

    def refresh(self) -> None:
        self.terms_layout.clear_widgets()
        self.lang_spinner.text = LANGUAGES[self.app.session.target_lang]
        entries = self.app.glossary_entries(self.domain_filter, self.search_input.text)
        for term in entries:
            self.terms_layout.add_widget(TermRow(term, self._open_term_editor, self._confirm_delete,
                                                 self.app.copy_to_my_terms))

    def _open_term_editor(self, term: dict | None = None) -> None:
        title = "Edit term" if term else "New term"
        box = BoxLayout(orientation="vertical", spacing=8, padding=8)
        domain_spinner = Spinner(text=DOMAINS["court"], values=list(DOMAINS.values()),
                                 size_hint_y=None, height=INPUT_HEIGHT, font_size=SPINNER_FONT_SIZE)
        box.add_widget(domain_spinner)
        box.add_widget(Label(text="English", font_size=LABEL_FONT_SIZE))
        source_input = _styled_text_input(multiline=False, size_hint_y=None, height=INPUT_HEIGHT)
        box.add_widget(source_input)
        box.add_widget(Label(text=LANGUAGES[self.app.session.target_lang], font_size=LABEL_FONT_SIZE))
        target_input = _styled_text_input(multiline=False, size_hint_y=None, height=INPUT_HEIGHT)
        box.add_widget(target_input)
        box.add_widget(Label(text="Notes", font_size=LABEL_FONT_SIZE))
        notes_input = _styled_text_input(multiline=False, size_hint_y=None, height=INPUT_HEIGHT)
        box.add_widget(notes_input)

        if term:
            domain_spinner.text = DOMAINS.get(term.get("domain"), DOMAINS["court"])
            source_input.text = term.get("source_text", "")
            target_input.text = term.get("target_text", "")
            notes_input.text = term.get("notes") or ""

        def do_save(_):
            domain = next((code for code, text in DOMAINS.items() if text == domain_spinner.text), None)
            if not source_input.text.strip() or not target_input.text.strip():
                _info("Glossary", "English and translation are required.")
                return
            saved = self.app.save_my_term({
                "id": term.get("id") if term else None,
                "domain": domain,
                "source_text": source_input.text,
                "target_text": target_input.text,
                "notes": notes_input.text,
            })
            if saved:
                popup.dismiss()
                self.refresh()

        btn_row = BoxLayout(size_hint_y=None, height=BUTTON_HEIGHT, spacing=8)
        btn_row.add_widget(Button(text="Save", on_release=do_save))
        btn_row.add_widget(Button(text="Cancel", on_release=lambda *_: popup.dismiss()))
        box.add_widget(btn_row)
        popup = Popup(title=title, content=box, size_hint=(0.95, 0.9))
        popup.open()

    def _confirm_delete(self, term: dict) -> None:
        box = BoxLayout(orientation="vertical", spacing=8, padding=8)
        box.add_widget(Label(text="Delete this term?", font_size=LABEL_FONT_SIZE))

        def do_delete(_):
            self.app.delete_my_term(term.get("id", ""))
            popup.dismiss()
            self.refresh()

        btn_row = BoxLayout(size_hint_y=None, height=BUTTON_HEIGHT, spacing=8)
        btn_row.add_widget(Button(text="Delete", on_release=do_delete))
        btn_row.add_widget(Button(text="Cancel", on_release=lambda *_: popup.dismiss()))
        box.add_widget(btn_row)
        popup = Popup(title="Glossary", content=box, size_hint=(0.7, 0.3))
        popup.open()


class SettingsScreen(Screen):
    def __init__(self, app, **kwargs):
        super().__init__(**kwargs)
        self.app = app
        layout = BoxLayout(orientation="vertical")
        layout.add_widget(TopBar(app, "Settings"))
        body = BoxLayout(orientation="vertical", padding=16, spacing=12)
        body.add_widget(Label(text="Text size"))
        size_row = BoxLayout(size_hint_y=None, height=BUTTON_HEIGHT, spacing=8)
        for size in TEXT_SIZES:
            btn = ToggleButton(text=size.capitalize(), group="text_size",
                               state="down" if app.preferences[PREF_TEXT_SIZE] == size else "normal")
            btn.bind(state=lambda _btn, state, size=size: self._toggle_size(state, size))
            size_row.add_widget(btn)
        body.add_widget(size_row)
        body.add_widget(Label(text="Text size changes apply after restart."))
        body.add_widget(Button(text="Back", size_hint_y=None, height=BUTTON_HEIGHT,
                               on_release=lambda *_: app.show_menu()))
        layout.add_widget(body)
        self.add_widget(layout)

    def _toggle_size(self, state: str, size: str) -> None:
        if state == "down":
            self.app.set_text_size(size)


class TermTrainerApp(App):
    def build(self):
        self.title = "iSpeak Terms"
        self._error_log = []
        self._last_exception = ""

        self.data_dir = self.user_data_dir
        os.makedirs(self.data_dir, exist_ok=True)
        self.prefs_path = os.path.join(self.data_dir, "preferences.json")
        self.log_path = os.path.join(self.data_dir, "practice_log.json")
        self.preferences = self._load_preferences()
        self.practice_log = self._load_practice_log()
        self.store = TermStore(self.data_dir)

        self._apply_text_size()
        if IS_ANDROID:
            Window.softinput_mode = "resize"
        Window.clearcolor = SURFACE_BG

        self.session = PracticeSession(
            self.store,
            owner_id=LOCAL_OWNER_ID,
            target_lang=self.preferences[PREF_TARGET_LANG],
            on_target_lang_change=self._remember_target_lang,
            scheduler=self._schedule_fetch,
        )

        self._check_notification()

        self.sm = ScreenManager()
        self.screen_menu = MenuScreen(self, name="menu")
        self.screen_practice = PracticeScreen(self, name="practice")
        self.screen_glossary = GlossaryScreen(self, name="glossary")
        self.screen_settings = SettingsScreen(self, name="settings")
        self.sm.add_widget(self.screen_menu)
        self.sm.add_widget(self.screen_practice)
        self.sm.add_widget(self.screen_glossary)
        self.sm.add_widget(self.screen_settings)
        self.sm.current = "menu"
        return self.sm

    def _log_error(self, label: str, exc: Exception | None = None) -> None:
        msg = f"[{datetime.now().isoformat(timespec='seconds')}] {label}"
        if exc is not None:
            msg += f": {exc}"
        self._error_log.append(msg)
        if exc is not None:
            self._last_exception = traceback.format_exc()

    def _load_preferences(self) -> dict:
        try:
            return load_preferences(self.prefs_path)
        except Exception as exc:
            self._log_error("preferences load failed", exc)
            return dict(DEFAULT_PREFERENCES)

    def _save_preferences(self) -> None:
        try:
            save_preferences(self.prefs_path, self.preferences)
        except Exception as exc:
            self._log_error("preferences save failed", exc)

    def _remember_target_lang(self, lang: str) -> None:
        self.preferences[PREF_TARGET_LANG] = lang
        self._save_preferences()

    def set_text_size(self, size: str) -> None:
        self.preferences[PREF_TEXT_SIZE] = size
        self._save_preferences()

    def _apply_text_size(self) -> None:
        scale = LARGE_TEXT_SCALE if self.preferences[PREF_TEXT_SIZE] == "large" else 1
        Button.font_size = int(BUTTON_FONT_SIZE * scale)
        ToggleButton.font_size = int(BUTTON_FONT_SIZE * scale)
        Spinner.font_size = int(SPINNER_FONT_SIZE * scale)
        Label.font_size = int(LABEL_FONT_SIZE * scale)
        Label.color = TEXT_COLOR
        Button.color = TEXT_COLOR
        Button.background_normal = ""
        Button.background_color = BUTTON_BG
        Spinner.color = TEXT_COLOR
        Spinner.background_normal = ""
        Spinner.background_color = BUTTON_BG

    def _load_practice_log(self) -> list:
        try:
            log = _load_json(self.log_path, [])
            return log if isinstance(log, list) else []
        except Exception as exc:
            self._log_error("practice log load failed", exc)
            return []

    def _append_practice_log(self, term: dict, correct: bool) -> None:
        self.practice_log.append({
            "time": datetime.now().isoformat(timespec="seconds"),
            "target_lang": self.session.target_lang,
            "term_id": term.get("id"),
            "correct": bool(correct),
        })
        try:
            _save_json(self.log_path, self.practice_log)
        except Exception as exc:
            self._log_error("practice log save failed", exc)

    def show_practice(self) -> None:
        self.sm.current = "practice"

    def show_glossary(self) -> None:
        self.sm.current = "glossary"

    def show_settings(self) -> None:
        self.sm.current = "settings"

    def show_menu(self) -> None:
        self.sm.current = "menu"

    def open_menu(self, *_):
        layout = BoxLayout(orientation="vertical", spacing=6, padding=10)
        layout.add_widget(Button(text="Debug report", size_hint_y=None, height=BUTTON_HEIGHT,
                                 on_release=lambda *_: self._show_debug_report()))
        layout.add_widget(Button(text="Close", size_hint_y=None, height=BUTTON_HEIGHT,
                                 on_release=lambda *_: popup.dismiss()))
        popup = Popup(title="Menu", content=layout, size_hint=(0.8, 0.4))
        popup.open()

    def _show_debug_report(self) -> None:
        lines = ["iSpeak Terms Debug Report", f"Version: {__version__}", f"Platform: {kivy_platform}"]
        errors = self._error_log + self.session.error_log
        if self.store.progress_error:
            errors = errors + [self.store.progress_error]
        if errors:
            lines.append("Errors:")
            lines.extend(errors)
        last_exception = self._last_exception or self.session.last_exception
        if last_exception:
            lines.append("\nLast exception:\n" + last_exception)
        box = BoxLayout(orientation="vertical", spacing=6, padding=6)
        box.add_widget(_styled_text_input(text="\n".join(lines), readonly=True))
        box.add_widget(Button(text="Close", size_hint_y=None, height=BUTTON_HEIGHT,
                              on_release=lambda *_: popup.dismiss()))
        popup = Popup(title="Debug report", content=box, size_hint=(0.95, 0.95))
        popup.open()

    def _check_notification(self) -> None:
        if notification is None:
            return
        try:
            last = self._last_practice_time()
            if last is None:
                return
            if datetime.now() - last > REMINDER_AFTER:
                notification.notify(
                    title="iSpeak Terms",
                    message="Your last practice was more than 24 hours ago.",
                    timeout=5,
                )
        except Exception as exc:
            self._log_error("notification failed", exc)

    def _last_practice_time(self):
        if not self.practice_log:
            return None
        try:
            return datetime.fromisoformat(self.practice_log[-1].get("time"))
        except (TypeError, ValueError, AttributeError):
            return None

    def _schedule_fetch(self, ticket: dict) -> None:
        def worker():
            result = self.session.fetch(ticket)
            Clock.schedule_once(lambda _dt: self._deliver(ticket, result), 0)

        threading.Thread(target=worker, daemon=True).start()

    def _deliver(self, ticket: dict, result: dict) -> None:
        if self.session.deliver(ticket, result):
            self.screen_practice.refresh()

    def reload_practice(self) -> None:
        self.session.load()
        self.screen_practice.answer_input.text = ""
        self.screen_practice.feedback_label.text = ""
        self.screen_practice.refresh()

    def submit_answer(self, text: str) -> None:
        term = self.session.get_current_term()
        if term is None:
            return
        result = self.session.submit_answer(text)
        self._append_practice_log(term, result["correct"])
        self.screen_practice.show_feedback(result, term.get("target_text", ""))
        self.screen_practice.refresh()

    def _fetch_glossary_terms(self) -> tuple[list, list]:
        lang = self.session.target_lang
        shared, personal = [], []
        try:
            shared = self.store.fetch_shared_terms(lang)
        except Exception as exc:
            self._log_error("shared terms load failed", exc)
        try:
            personal = self.store.fetch_personal_terms(lang, LOCAL_OWNER_ID)
        except Exception as exc:
            self._log_error("personal terms load failed", exc)
        return shared, personal

    def glossary_entries(self, domain_filter: str, query: str) -> list:
        shared, personal = self._fetch_glossary_terms()
        return build_glossary(shared, personal, target_lang=self.session.target_lang,
                              domain_filter=domain_filter, query=query)

    def save_my_term(self, fields: dict) -> bool:
        term = dict(fields, owner=LOCAL_OWNER_ID, target_lang=self.session.target_lang)
        try:
            self.store.save_term(term)
            return True
        except Exception as exc:
            self._log_error("term save failed", exc)
            _info("Glossary", f"Error: {exc}")
            return False

    def delete_my_term(self, term_id: str) -> None:
        try:
            self.store.delete_term(term_id)
        except Exception as exc:
            self._log_error("term delete failed", exc)
            _info("Glossary", f"Error: {exc}")

    def copy_to_my_terms(self, shared_term: dict) -> None:
        _shared, personal = self._fetch_glossary_terms()
        try:
            saved = copy_shared_to_personal(self.store, shared_term, owner_id=LOCAL_OWNER_ID, personal=personal)
        except Exception as exc:
            self._log_error("copy to my terms failed", exc)
            _info("Glossary", f"Error: {exc}")
            return
        _info("Glossary", "Saved to My terms." if saved else "Already in My terms.")
        self.screen_glossary.refresh()

    def import_csv_prompt(self) -> None:
        if filechooser is not None and hasattr(filechooser, "open_file"):
            try:
                paths = filechooser.open_file(title="Import CSV", path=os.path.expanduser("~"),
                                              filters=[("CSV", "*.csv")], multiple=False)
                if paths:
                    self._import_csv(paths[0])
                return
            except Exception as exc:
                self._log_error("filechooser open failed", exc)

        box = BoxLayout(orientation="vertical", spacing=6, padding=8)
        box.add_widget(Label(text="Path to CSV file (domain, term_en, target_text, notes)"))
        path_input = _styled_text_input(multiline=False, text="")
        box.add_widget(path_input)

        def do_import(_):
            popup.dismiss()
            self._import_csv(path_input.text.strip())

        btn_row = BoxLayout(size_hint_y=None, height=BUTTON_HEIGHT, spacing=8)
        btn_row.add_widget(Button(text="Import", on_release=do_import))
        btn_row.add_widget(Button(text="Cancel", on_release=lambda *_: popup.dismiss()))
        box.add_widget(btn_row)
        popup = Popup(title="Import CSV", content=box, size_hint=(0.9, 0.5))
        popup.open()

    def _import_csv(self, path: str) -> None:
        try:
            count = import_terms_csv(self.store, _read_text(path), target_lang=self.session.target_lang,
                                     owner_id=LOCAL_OWNER_ID)
        except Exception as exc:
            self._log_error("csv import failed", exc)
            _info("Import CSV", f"Import failed: {exc}")
            return
        _info("Import CSV", f"Imported {count} terms." if count else "No valid rows found.")
        self.screen_glossary.refresh()


if __name__ == "__main__":
    TermTrainerApp().run()
