"""
Role policy for admin principals.

Pure predicates over (role, request, principal): no I/O, no session state.
The principal is passed explicitly into every service call; endpoints build
it from the bearer token via core.dependencies.get_current_principal.

Request edits are authorized up front by `authorize_patch`, which turns the
raw change set into a role-tagged patch. RequestService only accepts those
tagged patches, so a field the role may not touch never reaches it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Union

from core.exceptions import ForbiddenError
from db.enums import AdminRole


@dataclass(frozen=True)
class Principal:
    """Authenticated admin acting on the system."""

    id: int
    role: AdminRole
    username: str = ""

    @property
    def is_system_admin(self) -> bool:
        return self.role == AdminRole.SYSTEM_ADMIN


# Fields a volunteer may change on a request it may edit
VOLUNTEER_FIELDS: FrozenSet[str] = frozenset(
    {"status", "notes", "scheduled_date", "scheduled_time"}
)

# Every field an admin edit may touch
EDITABLE_FIELDS: FrozenSet[str] = VOLUNTEER_FIELDS | frozenset(
    {
        "full_name",
        "phone",
        "email",
        "address",
        "problem_description",
        "urgency_level",
        "assigned_admin_id",
    }
)


def can_edit_field(role: AdminRole, field_name: str) -> bool:
    """Whether `role` may change `field_name` on a request."""
    if field_name not in EDITABLE_FIELDS:
        return False
    if role == AdminRole.SYSTEM_ADMIN:
        return True
    return field_name in VOLUNTEER_FIELDS


def can_take(role: AdminRole, request: Any, principal_id: int) -> bool:
    """
    Whether a principal may take (self-assign) `request`.

    True when the request is unassigned, when the principal is a system
    admin (reassignment), or when it is already assigned to this principal.
    """
    assigned_admin_id = request.assigned_admin_id
    if assigned_admin_id is None:
        return True
    if role == AdminRole.SYSTEM_ADMIN:
        return True
    return assigned_admin_id == principal_id


def can_reassign(role: AdminRole) -> bool:
    return role == AdminRole.SYSTEM_ADMIN


def can_manage_slots(role: AdminRole) -> bool:
    return role == AdminRole.SYSTEM_ADMIN


def can_manage_admins(role: AdminRole) -> bool:
    return role == AdminRole.SYSTEM_ADMIN


def can_edit_request(principal: Principal, assigned_admin_id: Optional[int]) -> bool:
    """Volunteers edit only unassigned requests or their own."""
    if principal.is_system_admin:
        return True
    return assigned_admin_id is None or assigned_admin_id == principal.id


def forbidden_fields(principal: Principal, changes: Dict[str, Any]) -> List[str]:
    """
    Names of every field in `changes` the principal may not set.

    A volunteer may send `assigned_admin_id` only to assign the request to
    itself.
    """
    offending = []
    for name, value in changes.items():
        if can_edit_field(principal.role, name):
            continue
        if name == "assigned_admin_id" and value == principal.id:
            continue
        offending.append(name)
    return sorted(offending)


@dataclass(frozen=True)
class VolunteerPatch:
    """Change set limited to volunteer-editable fields (plus self-assignment)."""

    principal: Principal
    changes: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SystemAdminPatch:
    """Change set over any editable field."""

    principal: Principal
    changes: Dict[str, Any] = field(default_factory=dict)


RequestPatch = Union[VolunteerPatch, SystemAdminPatch]


def authorize_patch(principal: Principal, changes: Dict[str, Any]) -> RequestPatch:
    """
    Check a change set against the principal's role.

    The whole patch is rejected if any field is disallowed; nothing is
    partially applied.

    Raises:
        ForbiddenError: code "fields_forbidden", `fields` lists every offending name
    """
    offending = forbidden_fields(principal, changes)
    if offending:
        raise ForbiddenError("fields_forbidden", fields=offending)

    if principal.is_system_admin:
        return SystemAdminPatch(principal=principal, changes=dict(changes))
    return VolunteerPatch(principal=principal, changes=dict(changes))
