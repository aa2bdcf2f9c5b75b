"""
Static role checks.

There is no permission model beyond the three fixed roles: admins and
course advisers manage groups and assignments, only admins manage
accounts, and every role may sit on a panel.
"""

from typing import Iterable

from panelgrade.errors import AuthorizationError
from panelgrade.models import GradeSheet, User, UserRole

PANEL_ELIGIBLE_ROLES = frozenset({UserRole.ADMIN, UserRole.COURSE_ADVISER, UserRole.PANEL})


def require_manager(actor: User, action: str) -> None:
    """
    Allow admins and course advisers only.

    Raises:
        AuthorizationError: If the actor has the Panel role.
    """
    if not actor.is_manager:
        raise AuthorizationError(f"{actor.name} ({actor.role.value}) may not {action}")


def require_admin(actor: User, action: str) -> None:
    """
    Allow admins only.

    Raises:
        AuthorizationError: If the actor is not an admin.
    """
    if actor.role != UserRole.ADMIN:
        raise AuthorizationError(f"{actor.name} ({actor.role.value}) may not {action}")


def panel_candidates(users: Iterable[User]) -> list[User]:
    """Users who can be assigned to a panel slot."""
    return [u for u in users if u.role in PANEL_ELIGIBLE_ROLES]


def visible_sheets(user: User, sheets: Iterable[GradeSheet]) -> list[GradeSheet]:
    """Managers see every sheet; panel users see the ones they grade."""
    if user.is_manager:
        return list(sheets)
    return [s for s in sheets if user.id in (s.panel1_id, s.panel2_id)]
