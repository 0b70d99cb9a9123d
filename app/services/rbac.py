"""Role-based access control for organization members."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class Role(str, Enum):
    """Member role, ordered ``owner > admin > member``."""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"

    @property
    def rank(self) -> int:
        """Return the role's position in the hierarchy."""
        return _ROLE_RANKS[self]


_ROLE_RANKS = {Role.OWNER: 3, Role.ADMIN: 2, Role.MEMBER: 1}


@dataclass(frozen=True, slots=True)
class Permission:
    """Actions a role may perform inside its organization."""

    can_view: bool
    can_edit: bool
    can_delete: bool
    can_invite: bool
    can_manage_members: bool
    can_manage_teams: bool
    can_manage_settings: bool


ROLE_PERMISSIONS: Mapping[Role, Permission] = MappingProxyType(
    {
        Role.OWNER: Permission(
            can_view=True,
            can_edit=True,
            can_delete=True,
            can_invite=True,
            can_manage_members=True,
            can_manage_teams=True,
            can_manage_settings=True,
        ),
        Role.ADMIN: Permission(
            can_view=True,
            can_edit=True,
            can_delete=True,
            can_invite=True,
            can_manage_members=True,
            can_manage_teams=True,
            can_manage_settings=False,
        ),
        Role.MEMBER: Permission(
            can_view=True,
            can_edit=False,
            can_delete=False,
            can_invite=False,
            can_manage_members=False,
            can_manage_teams=False,
            can_manage_settings=False,
        ),
    }
)

_OWNERSHIP_ACTIONS = frozenset({"can_edit", "can_delete"})


def permissions_for(role: Role | str) -> Permission:
    """Return the permission set for ``role``."""
    return ROLE_PERMISSIONS[Role(role)]


def can_perform(
    role: Role | str, action: str, is_resource_owner: bool = False
) -> bool:
    """Return whether ``role`` may perform ``action``.

    Members may edit and delete resources they created even though their role
    does not grant it in general.

    Parameters
    ----------
    role : Role | str
        Acting member's role.
    action : str
        ``Permission`` field name, e.g. ``"can_edit"``.
    is_resource_owner : bool, default=False
        Whether the actor created the resource.

    Returns
    -------
    bool
        Whether the action is allowed.
    """
    role = Role(role)
    if role is Role.MEMBER and is_resource_owner and action in _OWNERSHIP_ACTIONS:
        return True
    return getattr(permissions_for(role), action)


def has_higher_or_equal_role(role_a: Role | str, role_b: Role | str) -> bool:
    """Return whether ``role_a`` ranks at least as high as ``role_b``."""
    return Role(role_a).rank >= Role(role_b).rank


def can_assign_role(actor_role: Role | str, target_role: Role | str) -> bool:
    """Return whether ``actor_role`` may hand out ``target_role``.

    Only owners and admins assign roles, and only owners grant ownership.
    """
    actor_role = Role(actor_role)
    if actor_role is Role.MEMBER:
        return False
    if Role(target_role) is Role.OWNER and actor_role is not Role.OWNER:
        return False
    return True


def can_change_role(
    actor_role: Role | str, current_role: Role | str, new_role: Role | str
) -> bool:
    """Return whether ``actor_role`` may move a member between roles.

    Parameters
    ----------
    actor_role : Role | str
        Role of the member making the change.
    current_role : Role | str
        Target member's existing role.
    new_role : Role | str
        Requested role.

    Returns
    -------
    bool
        Whether the change is allowed. Downgrades need an actor that strictly
        outranks the member being downgraded.
    """
    if not can_assign_role(actor_role, new_role):
        return False
    if Role(new_role).rank < Role(current_role).rank:
        return Role(actor_role).rank > Role(current_role).rank
    return True
