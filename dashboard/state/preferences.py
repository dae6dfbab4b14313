"""Per-browser view preferences, kept in the page's query string.

Loaded once when the dashboard mounts and written back whenever the user
changes them; nothing is stored server-side.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import MutableMapping

from dashboard.constants import DAY_RANGE_OPTIONS, DEFAULT_DAYS_TO_SHOW, TAB_OPTIONS

TAB_PARAM = "tab"
DAYS_PARAM = "days"


@dataclass
class Preferences:
    active_tab: str = TAB_OPTIONS[0]
    days_to_show: int = DEFAULT_DAYS_TO_SHOW

    @classmethod
    def load(cls, store: MutableMapping) -> "Preferences":
        prefs = cls()
        tab = store.get(TAB_PARAM)
        if tab in TAB_OPTIONS:
            prefs.active_tab = tab
        try:
            days = int(store.get(DAYS_PARAM) or 0)
        except (TypeError, ValueError):
            days = 0
        if days in DAY_RANGE_OPTIONS:
            prefs.days_to_show = days
        return prefs

    def save(self, store: MutableMapping) -> None:
        if store.get(TAB_PARAM) != self.active_tab:
            store[TAB_PARAM] = self.active_tab
        if str(store.get(DAYS_PARAM) or "") != str(self.days_to_show):
            store[DAYS_PARAM] = str(self.days_to_show)
