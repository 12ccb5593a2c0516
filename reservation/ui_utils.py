"""
UI Utilities for the Reservation Console.
Streamlit adapters for the navigation, calendar and toast capabilities.
"""

import itertools
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Sequence

import pandas as pd
import streamlit as st
from streamlit_timeline import timeline

from .calendar import CalendarEvent, CalendarOptions
from .navigation import ListenerMixin
from .toast import ToastChannel

HISTORY_KEY = "nav_history"
PATH_PARAM = "path"

_surface_ids = itertools.count(1)


# =============================================================================
# Navigation
# =============================================================================

class QueryParamNavigator(ListenerMixin):
    """
    Browser-backed navigator: the path lives in the `?path=` query parameter,
    so reloads and shared links land on the same view.
    """

    def __init__(self, default_path: str = "/"):
        super().__init__()
        self.default_path = default_path
        if HISTORY_KEY not in st.session_state:
            st.session_state[HISTORY_KEY] = [self.current_path()]

    def current_path(self) -> str:
        return st.query_params.get(PATH_PARAM, self.default_path)

    def _set(self, path: str) -> None:
        st.query_params[PATH_PARAM] = path
        self._notify(path)

    def push(self, path: str) -> None:
        st.session_state[HISTORY_KEY].append(path)
        self._set(path)

    def replace(self, path: str) -> None:
        history = st.session_state[HISTORY_KEY]
        if history:
            history[-1] = path
        else:
            history.append(path)
        self._set(path)

    def back(self) -> None:
        history = st.session_state[HISTORY_KEY]
        if len(history) > 1:
            history.pop()
            self._set(history[-1])


# =============================================================================
# Calendar surface
# =============================================================================

def _timeline_date(value: datetime) -> dict:
    local = value.astimezone()
    return {
        "year": str(local.year), "month": str(local.month), "day": str(local.day),
        "hour": str(local.hour), "minute": str(local.minute), "second": str(local.second),
    }


class StreamlitCalendarSurface:
    """
    Week-at-a-time calendar: a timeline of every event plus a selectable
    table of the focused week. Selecting a table row counts as an event click.
    """

    def __init__(self, options: CalendarOptions):
        self.options = options
        self.surface_id = next(_surface_ids)
        self.events: List[CalendarEvent] = []
        self.focus: date = date.today()
        self._handler: Optional[Callable[[str], None]] = None
        self._selection_version = 0
        self._last_clicked: Optional[str] = None
        self.destroyed = False

    # CalendarSurface ---------------------------------------------------------

    def render(self, events: Sequence[CalendarEvent]) -> None:
        self.events = sorted(events, key=lambda e: e.start)

    def destroy(self) -> None:
        self.events = []
        self._handler = None
        self.destroyed = True

    def on_event_click(self, handler: Callable[[str], None]) -> None:
        self._handler = handler

    def scroll_to(self, instant: datetime) -> None:
        self.focus = instant.astimezone().date()

    # Streamlit ---------------------------------------------------------------

    def clear_selection(self) -> None:
        self._selection_version += 1
        self._last_clicked = None

    def week_frame(self) -> pd.DataFrame:
        week_start = self.focus - timedelta(days=self.focus.weekday())
        week_end = week_start + timedelta(days=7)
        rows = [
            {
                "id": e.id,
                "Day": e.start.astimezone().strftime("%a %d %b"),
                "Start": e.start.astimezone().strftime("%H:%M"),
                "End": e.end.astimezone().strftime("%H:%M"),
                "With": e.title,
                "Examination": e.description,
            }
            for e in self.events
            if week_start <= e.start.astimezone().date() < week_end
        ]
        return pd.DataFrame(rows, columns=["id", "Day", "Start", "End", "With", "Examination"])

    def draw(self) -> None:
        if self.destroyed:
            return
        key = f"calendar_{self.surface_id}"

        hours = self.options.business_hours
        if hours is not None:
            st.caption(f"Office hours Mon-Fri {hours.open} - {hours.close}")

        prev_col, today_col, next_col, title_col = st.columns([1, 1, 1, 5])
        with prev_col:
            if st.button("Prev", key=f"{key}_prev", use_container_width=True):
                self.focus -= timedelta(days=7)
        with today_col:
            if st.button("Today", key=f"{key}_today", use_container_width=True):
                self.focus = date.today()
        with next_col:
            if st.button("Next", key=f"{key}_next", use_container_width=True):
                self.focus += timedelta(days=7)
        with title_col:
            week_start = self.focus - timedelta(days=self.focus.weekday())
            st.markdown(f"**Week of {week_start.strftime('%d %B %Y')}**")

        frame = self.week_frame()
        if frame.empty:
            st.info("No reservations this week.")
        else:
            picked = st.dataframe(
                frame.drop(columns=["id"]),
                use_container_width=True,
                hide_index=True,
                on_select="rerun",
                selection_mode="single-row",
                key=f"{key}_table_{self._selection_version}",
            )
            rows = picked.selection.rows
            if rows:
                event_id = frame.iloc[rows[0]]["id"]
                if event_id != self._last_clicked and self._handler is not None:
                    self._last_clicked = event_id
                    self._handler(event_id)

        if self.events:
            with st.expander("Timeline", expanded=False):
                timeline(
                    {
                        "events": [
                            {
                                "start_date": _timeline_date(e.start),
                                "end_date": _timeline_date(e.end),
                                "text": {"headline": e.title, "text": e.description},
                                "unique_id": f"reservation-{e.id}",
                            }
                            for e in self.events
                        ]
                    },
                    height=300,
                )


# =============================================================================
# Toast
# =============================================================================

def render_toast(channel: ToastChannel, key: str = "toast") -> None:
    """
    Hand the current toast to Streamlit's self-dismissing `st.toast`.

    Each toast is handed over once; Streamlit removes it after the channel's
    duration without waiting for another rerun.
    """
    toast = channel.current
    if toast is None or st.session_state.get(key) == channel.sequence:
        return
    st.session_state[key] = channel.sequence
    body = f"**{toast.message}**"
    if toast.description:
        body += f"  \n{toast.description}"
    icon = ":material/check_circle:" if toast.variant == "success" else ":material/error:"
    st.toast(body, icon=icon, duration=max(1, round(channel.duration_ms / 1000)))
