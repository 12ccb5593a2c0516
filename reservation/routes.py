"""
Router / View Resolver
Maps the current path plus the acting selection to exactly one view.

Resolution is a pure function: the same (path, selection, base) always gives
the same RouteMatch. Matching is exact and trailing-slash strict.

Route table (relative to the optional base prefix):
    /                                         entity picker, or redirect to the
                                              acting entity's reservations
    /{kind}                                   creation form
    /{kind}/{id}                              profile view/edit
    /{kind}/{id}/reservations                 calendar (needs matching selection)
    /patient/{id}/reservations/create         slot search + booking (patient only)
    /{kind}/{id}/reservations/{reservationId} reservation detail (deep link)
    anything else                             redirect to /
"""

import re
from dataclasses import dataclass
from typing import Literal, Optional

from .navigation import with_base
from .selection import Selection

View = Literal[
    "entity_picker",
    "create_ambulance",
    "create_patient",
    "ambulance_profile",
    "patient_profile",
    "reservations",
    "reservation_create",
    "reservation_detail",
    "redirect",
]

_KIND = r"(ambulance|patient)"
_ID = r"([^/]+)"

CREATE_FORM = re.compile(rf"^/{_KIND}$")
PROFILE = re.compile(rf"^/{_KIND}/{_ID}$")
RESERVATIONS = re.compile(rf"^/{_KIND}/{_ID}/reservations$")
RESERVATION_CREATE = re.compile(rf"^/patient/{_ID}/reservations/create$")
RESERVATION_DETAIL = re.compile(rf"^/{_KIND}/{_ID}/reservations/{_ID}$")


@dataclass(frozen=True)
class RouteMatch:
    """
    Result of resolving a path.

    Attributes:
        view: Which view to mount ("redirect" when the path must change)
        kind: Entity kind named by the route, if any
        entity_id: Entity the view is scoped to
        reservation_id: Reservation named by a detail route
        redirect: Target path (base included) when view == "redirect"
    """
    view: View
    kind: Optional[str] = None
    entity_id: Optional[str] = None
    reservation_id: Optional[str] = None
    redirect: Optional[str] = None


# =============================================================================
# PATH BUILDERS
# =============================================================================

def root_path(base_url: str = "") -> str:
    return with_base(base_url, "/")


def create_form_path(kind: str, base_url: str = "") -> str:
    return with_base(base_url, f"/{kind}")


def profile_path(kind: str, entity_id: str, base_url: str = "") -> str:
    return with_base(base_url, f"/{kind}/{entity_id}")


def reservations_path(kind: str, entity_id: str, base_url: str = "") -> str:
    return with_base(base_url, f"/{kind}/{entity_id}/reservations")


def reservation_create_path(patient_id: str, base_url: str = "") -> str:
    return with_base(base_url, f"/patient/{patient_id}/reservations/create")


def reservation_detail_path(kind: str, entity_id: str, reservation_id: str, base_url: str = "") -> str:
    return with_base(base_url, f"/{kind}/{entity_id}/reservations/{reservation_id}")


def home_path(selection: Selection, base_url: str = "") -> str:
    """Canonical landing path: the acting entity's calendar, or the picker."""
    if selection.is_empty:
        return root_path(base_url)
    return reservations_path(selection.kind, selection.entity_id, base_url)


# =============================================================================
# RESOLUTION
# =============================================================================

def _strip_base(path: str, base_url: str) -> Optional[str]:
    base = base_url.rstrip("/")
    if not base:
        return path
    if path.startswith(base + "/"):
        return path[len(base):]
    return None


def resolve(path: str, selection: Selection, base_url: str = "") -> RouteMatch:
    """
    Resolve a path to the view that should be mounted.

    Args:
        path: Current path, base prefix included
        selection: Acting selection
        base_url: Deployment base prefix ("" when served at the root)

    Returns:
        RouteMatch; view == "redirect" carries the path to navigate to
    """
    to_root = RouteMatch("redirect", redirect=root_path(base_url))

    relative = _strip_base(path, base_url)
    if relative is None:
        return to_root

    if relative == "/":
        if selection.is_empty:
            return RouteMatch("entity_picker")
        return RouteMatch("redirect", redirect=home_path(selection, base_url))

    match = CREATE_FORM.match(relative)
    if match:
        return RouteMatch(f"create_{match.group(1)}", kind=match.group(1))

    match = PROFILE.match(relative)
    if match:
        kind, entity_id = match.groups()
        if selection.kind == kind:
            entity_id = selection.entity_id
        return RouteMatch(f"{kind}_profile", kind=kind, entity_id=entity_id)

    match = RESERVATIONS.match(relative)
    if match:
        kind = match.group(1)
        if selection.kind != kind:
            return to_root
        return RouteMatch("reservations", kind=kind, entity_id=selection.entity_id)

    match = RESERVATION_CREATE.match(relative)
    if match:
        if selection.kind != "patient":
            return to_root
        return RouteMatch("reservation_create", kind="patient", entity_id=selection.entity_id)

    match = RESERVATION_DETAIL.match(relative)
    if match:
        kind, entity_id, reservation_id = match.groups()
        if reservation_id == "create":
            return to_root
        return RouteMatch(
            "reservation_detail", kind=kind, entity_id=entity_id, reservation_id=reservation_id
        )

    return to_root


def entity_reference(path: str, base_url: str = "") -> Optional[tuple]:
    """(kind, id) named by an entity-scoped path, used to hydrate deep links."""
    relative = _strip_base(path, base_url)
    if relative is None:
        return None
    match = re.match(rf"^/{_KIND}/{_ID}(?:/|$)", relative)
    if not match:
        return None
    return match.group(1), match.group(2)
