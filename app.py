"""
Ambulance Reservation Console

Operators pick (or create) an ambulance or patient to act as, then browse
that entity's reservations on a calendar, open a reservation's detail panel,
or, as a patient, search for free examination slots and book one.

Run with: streamlit run app.py
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

import pandas as pd
import streamlit as st

from reservation.booking import SlotSearchFlow
from reservation.calendar import ReservationCalendar
from reservation.config import load_settings
from reservation.detail import DELETE_PROMPT, ReservationDetail
from reservation.events import Outcome, ReservationDeleted, ReservationUpdated
from reservation.gateway import ReservationGateway
from reservation.models import EXAMINATION_TYPES, SEX_TYPES, entity_kind, examination_label, format_instant
from reservation.profiles import AmbulanceForm, PatientForm, ProfileForm
from reservation.routes import RouteMatch, create_form_path, reservation_create_path, root_path
from reservation.shell import ReservationShell
from reservation.toast import ToastChannel
from reservation.ui_utils import QueryParamNavigator, StreamlitCalendarSurface, render_toast

logger = logging.getLogger(__name__)


# =============================================================================
# Page config
# =============================================================================

st.set_page_config(
    page_title="Ambulance Reservation System",
    page_icon="🚑",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown(
    """
<style>
.block-container { padding-top: 2.5rem !important; max-width: 1400px; }

.console-header {
  display: flex;
  align-items: center;
  justify-content: space-between;
  padding: 0.6rem 1rem;
  border-radius: 10px;
  background: linear-gradient(90deg, #0f172a 0%, #1e293b 100%);
  color: white;
  margin-bottom: 1rem;
}
.console-header h1 { font-size: 1.3rem; margin: 0; color: white; }
.console-header small { opacity: 0.7; }

.badge {
  display: inline-block;
  padding: 3px 10px;
  border-radius: 12px;
  font-weight: 700;
  font-size: 0.75rem;
  text-transform: uppercase;
}
.badge-ambulance { background: rgba(16, 185, 129, 0.2); color: #6ee7b7; border: 1px solid #10b981; }
.badge-patient { background: rgba(59, 130, 246, 0.2); color: #93c5fd; border: 1px solid #3b82f6; }

.exam-tag {
  background: rgba(59, 130, 246, 0.15);
  color: #60a5fa;
  padding: 2px 8px;
  border-radius: 12px;
  margin: 2px 4px 2px 0;
  display: inline-block;
  font-size: 0.8em;
}
</style>
""",
    unsafe_allow_html=True,
)


# =============================================================================
# Session bootstrap
# =============================================================================

def alert(message: str) -> None:
    st.session_state.setdefault("alerts", []).append(message)


def get_shell() -> ReservationShell:
    if "shell" not in st.session_state:
        settings = load_settings()
        logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
        gateway = ReservationGateway(settings.api_base, timeout=settings.request_timeout)
        shell = ReservationShell(
            gateway,
            QueryParamNavigator(root_path(settings.base_url)),
            alert=alert,
            toasts=ToastChannel(settings.toast_duration_ms),
            base_url=settings.base_url,
        )
        with st.spinner("Loading ambulances and patients..."):
            shell.start()
        st.session_state.shell = shell
    return st.session_state.shell


def drop_component(name: str) -> None:
    component = st.session_state.pop(name, None)
    if isinstance(component, ReservationCalendar):
        component.unmount()


# =============================================================================
# Header and sidebar
# =============================================================================

def render_alerts() -> None:
    alerts = st.session_state.get("alerts", [])
    if not alerts:
        return
    for message in alerts:
        st.error(message)
    if st.button("Dismiss", key="alerts_dismiss"):
        st.session_state.alerts = []
        st.rerun()


def render_header(shell: ReservationShell) -> None:
    identity = shell.header_identity()
    badge = ""
    if identity:
        name, label = identity
        badge = f'<div><strong>{name}</strong> <span class="badge badge-{label.lower()}">{label}</span></div>'
    st.markdown(
        f"""
<div class="console-header">
  <div>
    <h1>Ambulance Reservation System</h1>
    <small>Examination booking console</small>
  </div>
  {badge}
</div>
""",
        unsafe_allow_html=True,
    )


def render_sidebar(shell: ReservationShell, route: RouteMatch) -> None:
    with st.sidebar:
        st.markdown("### Session")

        if not shell.selection.is_empty:
            if st.button("Reservations", use_container_width=True):
                shell.push(shell.home_path())
                st.rerun()
            if route.view not in ("create_ambulance", "create_patient"):
                if st.button("My Profile", use_container_width=True):
                    shell.push(shell.profile_path())
                    st.rerun()
        else:
            if st.button("Home", use_container_width=True):
                shell.push(shell.home_path())
                st.rerun()

        st.markdown("---")
        st.caption("**Act as**")
        for entity, acting in shell.switcher_entries():
            kind = entity_kind(entity)
            if st.button(
                f"{entity.display_name} ({kind})",
                key=f"switch_{kind}_{entity.id}",
                disabled=acting,
                use_container_width=True,
            ):
                shell.selection_state.select(entity)
                st.rerun()

        st.markdown("---")
        st.caption("**Create**")
        if st.button("Create Ambulance", use_container_width=True):
            shell.push(create_form_path("ambulance", shell.base_url))
            st.rerun()
        if st.button("Create Patient", use_container_width=True):
            shell.push(create_form_path("patient", shell.base_url))
            st.rerun()


# =============================================================================
# Views
# =============================================================================

def render_entity_picker(shell: ReservationShell) -> None:
    directory = shell.directory
    if directory.is_empty:
        st.warning(
            "**There are no ambulances or patients to select.**  \n"
            "Please create an ambulance or patient to continue."
        )

    left, right = st.columns(2, gap="large")
    with left:
        st.markdown("### Select Ambulance")
        for ambulance in directory.ambulances:
            tags = "".join(f'<span class="exam-tag">{t}</span>' for t in ambulance.medical_examinations)
            if st.button(ambulance.name, key=f"pick_ambulance_{ambulance.id}", use_container_width=True):
                shell.select_ambulance(ambulance)
                st.rerun()
            st.markdown(tags, unsafe_allow_html=True)
    with right:
        st.markdown("### Select Patient")
        for patient in directory.patients:
            if st.button(
                f"{patient.display_name} · {patient.birthday}",
                key=f"pick_patient_{patient.id}",
                use_container_width=True,
            ):
                shell.select_patient(patient)
                st.rerun()


def get_profile_form(shell: ReservationShell, kind: str, entity_id: Optional[str]) -> ProfileForm:
    key = (kind, entity_id)
    if st.session_state.get("profile_form_key") != key:
        emit = shell.handle
        form_class = AmbulanceForm if kind == "ambulance" else PatientForm
        form = form_class(shell.gateway, emit, entity_id)
        form.load()
        st.session_state.profile_form = form
        st.session_state.profile_form_key = key
    return st.session_state.profile_form


def render_profile(shell: ReservationShell, kind: str, entity_id: Optional[str]) -> None:
    form = get_profile_form(shell, kind, entity_id)
    title = "Profile" if form.is_profile else f"Create {kind.title()}"
    st.subheader(title)

    values: Dict[str, Any] = {}
    prefix = f"profile_{kind}_{entity_id or 'new'}"
    with st.form(prefix):
        if kind == "ambulance":
            values["name"] = st.text_input("Name", form.entry["name"], disabled=form.is_locked("name"))
            values["address"] = st.text_input("Address", form.entry["address"], disabled=form.is_locked("address"))
            values["medical_examinations"] = st.multiselect(
                "Medical examinations",
                options=list(EXAMINATION_TYPES),
                default=form.entry["medical_examinations"],
                format_func=examination_label,
            )
            col1, col2 = st.columns(2)
            with col1:
                values["open"] = st.text_input("Open (HH:MM)", form.entry["open"])
            with col2:
                values["close"] = st.text_input("Close (HH:MM)", form.entry["close"])
        else:
            values["first_name"] = st.text_input(
                "First name", form.entry["first_name"], disabled=form.is_locked("first_name")
            )
            values["last_name"] = st.text_input(
                "Last name", form.entry["last_name"], disabled=form.is_locked("last_name")
            )
            values["birthday"] = st.text_input(
                "Birthday (YYYY-MM-DD)", form.entry["birthday"], disabled=form.is_locked("birthday")
            )
            sexes = list(SEX_TYPES)
            values["sex"] = st.selectbox(
                "Sex",
                options=sexes,
                index=sexes.index(form.entry["sex"]) if form.entry["sex"] in sexes else None,
                format_func=SEX_TYPES.get,
                disabled=form.is_locked("sex"),
            )
            values["bio"] = st.text_area("Bio", form.entry["bio"])

        submitted = st.form_submit_button(
            "Update" if form.is_profile else "Create", type="primary", disabled=form.is_loading
        )

    if submitted:
        for name, value in values.items():
            form.set_field(name, value)
        with st.spinner("Saving..."):
            saved = form.submit()
        if saved is not None:
            st.session_state.pop("profile_form_key", None)
            st.rerun()

    for name, error in form.errors.items():
        if error:
            st.caption(f":red[{error}]")
    if form.global_error:
        st.error(form.global_error)

    if form.is_profile:
        if st.button(f"Delete {kind.title()}", type="secondary", disabled=form.is_loading):
            form.request_delete()
        if form.is_delete_dialog_open:
            st.warning(f"Do you want to remove this {kind}? This action cannot be undone.")
            yes, no = st.columns(2)
            with yes:
                if st.button(f"Yes, Delete {kind.title()}", type="primary"):
                    if form.confirm_delete():
                        st.session_state.pop("profile_form_key", None)
                        drop_component("calendar")
                        st.rerun()
            with no:
                if st.button("Cancel"):
                    form.cancel_delete()
                    st.rerun()


def get_calendar(shell: ReservationShell) -> ReservationCalendar:
    calendar = st.session_state.get("calendar")
    if calendar is None:
        calendar = ReservationCalendar(
            shell.gateway,
            StreamlitCalendarSurface,
            emit=shell.handle,
        )
        with st.spinner("Loading reservations..."):
            calendar.mount(shell.selection)
        st.session_state.calendar = calendar
    else:
        calendar.set_acting(shell.selection)
    return calendar


def render_detail_panel(detail: ReservationDetail, on_close=None) -> None:
    reservation = detail.reservation
    if reservation is None:
        if detail.global_error:
            st.error(detail.global_error)
            if st.button("Retry", key="detail_retry"):
                with st.spinner("Loading reservation..."):
                    detail.reload()
                st.rerun()
        else:
            st.info("Loading reservation...")
        return

    counterpart = reservation.ambulance.name if detail.acting_kind == "patient" else reservation.patient.display_name
    st.markdown(f"#### {examination_label(reservation.examination_type)} · {counterpart}")
    st.markdown(f"{format_instant(reservation.start)} → {format_instant(reservation.end)}")

    message = st.text_area(
        "Message",
        detail.message,
        placeholder="Enter a message for the reservation",
        disabled=not detail.can_edit or detail.is_loading,
        key=f"detail_message_{reservation.id}",
    )
    if message != detail.message:
        detail.set_message(message)

    if detail.global_error:
        st.error(detail.global_error)

    col1, col2, col3 = st.columns(3)
    with col1:
        if st.button("Delete Reservation", disabled=detail.is_loading, key="detail_delete"):
            detail.request_delete()
    with col2:
        if detail.can_edit and st.button(
            "Update Reservation", type="primary", disabled=not detail.can_submit, key="detail_update"
        ):
            with st.spinner("Updating..."):
                detail.submit()
            st.rerun()
    with col3:
        if on_close is not None and st.button("Close", key="detail_close"):
            on_close()
            st.rerun()

    if detail.is_delete_dialog_open:
        st.warning(f"**{DELETE_PROMPT}**  \nThis action cannot be undone.")
        yes, no = st.columns(2)
        with yes:
            if st.button("Yes, Delete Reservation", type="primary", disabled=detail.is_loading):
                with st.spinner("Deleting..."):
                    detail.confirm_delete()
                st.rerun()
        with no:
            if st.button("Cancel", key="detail_cancel_delete"):
                detail.cancel_delete()
                st.rerun()


def render_reservations(shell: ReservationShell) -> None:
    calendar = get_calendar(shell)
    if shell.created_reservation is not None:
        calendar.show_created(shell.created_reservation)

    header, action = st.columns([4, 1])
    with header:
        st.subheader("Reservations")
    with action:
        patient = shell.selection.patient
        if patient is not None and st.button("Create Reservation", type="primary", use_container_width=True):
            shell.push(reservation_create_path(patient.id, shell.base_url))
            st.rerun()

    if calendar.global_error:
        st.error(calendar.global_error)

    panel_open = calendar.selected_reservation_id is not None
    cal_col, detail_col = st.columns([3, 2]) if panel_open else (st.container(), None)
    with cal_col:
        calendar.surface.draw()

    if calendar.selected_reservation_id is not None and detail_col is not None:
        detail = st.session_state.get("detail")
        if detail is None or detail.acting_kind != shell.selection.kind:
            detail = ReservationDetail(shell.gateway, shell.selection.kind, emit=calendar.apply_detail_outcome)
            st.session_state.detail = detail
        detail.set_reservation_id(calendar.selected_reservation_id)

        def close() -> None:
            calendar.close_detail()
            calendar.surface.clear_selection()

        with detail_col:
            render_detail_panel(detail, on_close=close)
    elif calendar.selected_reservation_id is not None:
        # Panel just opened from a click inside this run
        st.rerun()


def render_reservation_detail_route(shell: ReservationShell, route: RouteMatch) -> None:
    acting_kind = shell.detail_acting_kind(route)
    detail = st.session_state.get("route_detail")
    if detail is None or detail.acting_kind != acting_kind:

        def emit(outcome: Outcome) -> None:
            shell.handle(outcome)
            if isinstance(outcome, (ReservationDeleted, ReservationUpdated)):
                shell.push(shell.home_path())

        detail = ReservationDetail(shell.gateway, acting_kind, emit=emit)
        st.session_state.route_detail = detail
    detail.set_reservation_id(route.reservation_id)
    st.subheader("Reservation")
    render_detail_panel(detail)


def get_booking(shell: ReservationShell) -> SlotSearchFlow:
    patient = shell.selection.patient
    flow = st.session_state.get("booking")
    if flow is None:
        flow = SlotSearchFlow(shell.gateway, patient, emit=shell.handle)
        st.session_state.booking = flow
    else:
        flow.set_patient(patient)
    return flow


def render_reservation_create(shell: ReservationShell) -> None:
    flow = get_booking(shell)

    if st.button("← Back", disabled=flow.is_loading):
        shell.push(shell.home_path())
        st.rerun()
    st.subheader("Request Reservation")

    with st.form("slot_search"):
        current = flow.entry.get("date")
        picked_date = st.date_input(
            "Date",
            value=pd.Timestamp(current).date() if current else date.today(),
            disabled=flow.is_loading,
        )
        types = list(EXAMINATION_TYPES)
        chosen = flow.entry.get("examination_type")
        picked_type = st.selectbox(
            "Examination Type",
            options=types,
            index=types.index(chosen) if chosen in types else None,
            placeholder="Select one",
            format_func=examination_label,
            disabled=flow.is_loading,
        )
        submitted = st.form_submit_button("Send Request", type="primary", disabled=flow.is_loading)

    if submitted:
        flow.set_field("date", picked_date.isoformat() if picked_date else None)
        flow.set_field("examination_type", picked_type)
        if flow.can_submit:
            with st.spinner("Searching available slots..."):
                flow.search()

    for name, error in flow.errors.items():
        if error:
            st.caption(f":red[{error}]")
    if flow.global_error:
        st.error(flow.global_error)

    if flow.no_availability:
        st.info("No availability for the selected day and examination. Try another date.")

    for index, examination in enumerate(flow.examinations):
        with st.container(border=True):
            info, action = st.columns([4, 1])
            with info:
                st.markdown(
                    f"**{examination.ambulance.name}** · {examination_label(examination.examination_type)}  \n"
                    f"{format_instant(examination.start)} → {format_instant(examination.end)}  \n"
                    f"{examination.ambulance.address}"
                )
            with action:
                if st.button("Book", key=f"book_{index}", disabled=not flow.can_commit):
                    with st.spinner("Booking..."):
                        reservation = flow.commit(examination)
                    if reservation is not None:
                        drop_component("booking")
                    st.rerun()


# =============================================================================
# Main App
# =============================================================================

def main():
    shell = get_shell()
    route = shell.route()

    render_header(shell)
    render_toast(shell.toasts)
    render_alerts()
    render_sidebar(shell, route)

    # Components are owned by their view; leaving the view releases them
    if route.view != "reservations":
        drop_component("calendar")
        drop_component("detail")
    if route.view != "reservation_create":
        drop_component("booking")
    if route.view != "reservation_detail":
        drop_component("route_detail")
    if route.view not in ("create_ambulance", "create_patient", "ambulance_profile", "patient_profile"):
        st.session_state.pop("profile_form_key", None)

    if route.view == "entity_picker":
        render_entity_picker(shell)
    elif route.view in ("create_ambulance", "create_patient"):
        render_profile(shell, route.kind, None)
    elif route.view in ("ambulance_profile", "patient_profile"):
        render_profile(shell, route.kind, route.entity_id)
    elif route.view == "reservations":
        render_reservations(shell)
    elif route.view == "reservation_create":
        render_reservation_create(shell)
    elif route.view == "reservation_detail":
        render_reservation_detail_route(shell, route)


if __name__ == "__main__":
    main()
