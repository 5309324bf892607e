# SPDX-License-Identifier: Apache-2.0

"""
Permission domain logic for role-based access control.

The registry uses a closed set of four roles and a static role -> permission
table. The table is built once at import time and never changes at runtime;
adding a role or granting an action is a code change.

All functions are pure. Absence of a permission is reported as False (or an
AuthorizationResult with allowed=False), never as an exception.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Tuple, Union

from models.enums import PermissionAction, UserRole


CRUD = frozenset(action.value for action in PermissionAction)
ACTION_ORDER = tuple(action.value for action in PermissionAction)


@dataclass(frozen=True)
class Permission:
    """A functional area and the actions granted on it."""
    resource: str
    actions: frozenset

    def allows(self, action: str) -> bool:
        return action in self.actions


@dataclass
class AuthorizationResult:
    """Result of an authorization check."""
    allowed: bool
    reason: Optional[str] = None
    missing_permissions: List[str] = field(default_factory=list)


def _grant(resource: str, *actions: str) -> Permission:
    return Permission(resource=resource, actions=frozenset(actions))


ROLE_PERMISSIONS: Mapping[UserRole, Tuple[Permission, ...]] = MappingProxyType({
    UserRole.OPERATOR: (
        _grant("vehicles", *CRUD),
        _grant("drivers", *CRUD),
        _grant("documents", *CRUD),
        _grant("fines", *CRUD),
        _grant("users", *CRUD),
        _grant("reports", *CRUD),
        _grant("search", "read"),
    ),
    UserRole.AGENT: (
        _grant("vehicles", "read"),
        _grant("drivers", "read"),
        _grant("documents", "read"),
        _grant("fines", "create", "read", "update"),
        _grant("search", "read"),
    ),
    UserRole.CITIZEN: (
        _grant("vehicles", "create", "read", "update"),
        _grant("documents", "create", "read", "update"),
        _grant("fines", "read"),
        _grant("profile", "read", "update"),
    ),
    UserRole.COMPANY: (
        _grant("vehicles", "create", "read", "update"),
        _grant("drivers", "create", "read", "update"),
        _grant("documents", "create", "read", "update"),
        _grant("fines", "read"),
        _grant("fleet", "create", "read", "update"),
        _grant("reports", "read"),
    ),
})


def _resolve_role(role: Union[UserRole, str, None]) -> Optional[UserRole]:
    """Map a role tag to the enum, or None for anything outside the closed set."""
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except (ValueError, TypeError):
        return None


def get_role_permissions(role: Union[UserRole, str, None]) -> Tuple[Permission, ...]:
    """
    Get the ordered permission entries for a role.

    Args:
        role: Role enum or its string value

    Returns:
        Tuple of Permission entries, empty for unknown roles
    """
    resolved = _resolve_role(role)
    if resolved is None:
        return ()
    return ROLE_PERMISSIONS.get(resolved, ())


def has_permission(role: Union[UserRole, str, None], resource: str, action: str) -> bool:
    """
    Check whether a role may perform an action on a resource.

    Args:
        role: Role enum or its string value
        resource: Functional area (e.g. "vehicles")
        action: One of create/read/update/delete

    Returns:
        True if the role's entry for the resource lists the action
    """
    for permission in get_role_permissions(role):
        if permission.resource == resource:
            return permission.allows(action)
    return False


def get_allowed_actions(role: Union[UserRole, str, None], resource: str) -> frozenset:
    """Get the set of actions a role holds on a resource."""
    for permission in get_role_permissions(role):
        if permission.resource == resource:
            return permission.actions
    return frozenset()


def permission_strings(role: Union[UserRole, str, None]) -> List[str]:
    """
    Flatten a role's permissions into "resource:action" strings.

    Args:
        role: Role enum or its string value

    Returns:
        Permission strings in table order, actions in CRUD order
    """
    return [
        f"{permission.resource}:{action}"
        for permission in get_role_permissions(role)
        for action in ACTION_ORDER
        if action in permission.actions
    ]


def check_permission(role: Union[UserRole, str, None], resource: str, action: str) -> AuthorizationResult:
    """
    Check a permission and explain a denial.

    Args:
        role: Role enum or its string value
        resource: Functional area
        action: Requested action

    Returns:
        AuthorizationResult indicating if the action is allowed
    """
    if has_permission(role, resource, action):
        return AuthorizationResult(allowed=True)

    required = f"{resource}:{action}"
    return AuthorizationResult(
        allowed=False,
        reason=f"Missing required permission: {required}",
        missing_permissions=[required]
    )


def validate_permission_table(
    table: Mapping[UserRole, Iterable[Permission]]
) -> Tuple[bool, Optional[str]]:
    """
    Validate that a permission table lists each resource once per role
    and only grants known actions.

    Args:
        table: Role -> permissions mapping

    Returns:
        Tuple of (is_valid, error_message)
    """
    for role, permissions in table.items():
        seen = set()
        for permission in permissions:
            if permission.resource in seen:
                return False, f"Duplicate resource '{permission.resource}' for role '{role.value}'"
            seen.add(permission.resource)

            unknown = set(permission.actions) - CRUD
            if unknown:
                return False, (
                    f"Unknown actions {sorted(unknown)} on '{permission.resource}' "
                    f"for role '{role.value}'"
                )

    return True, None
