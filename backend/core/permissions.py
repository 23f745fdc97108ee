# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Role-based access control tables.

Permissions are derived from the role alone – nothing here touches the
database.  The four roles are ordered by privilege:

    demandeur (requester)  <  agent  <  manager  ≈  admin

``manager`` and ``admin`` carry identical permission sets.

Every lookup accepts either a :class:`Role` or a raw string; anything that is
not one of the four roles resolves to the empty set, so an unknown role can
never be granted a permission or a route.
"""

from enum import Enum
from typing import Iterable, Union


class Role(str, Enum):
    DEMANDEUR = "demandeur"
    AGENT = "agent"
    MANAGER = "manager"
    ADMIN = "admin"


class Permission(str, Enum):
    # tickets
    TICKETS_VIEW_OWN = "tickets:view_own"
    TICKETS_VIEW_ALL = "tickets:view_all"
    TICKETS_CREATE = "tickets:create"
    TICKETS_UPDATE = "tickets:update"
    TICKETS_DELETE = "tickets:delete"
    TICKETS_ASSIGN = "tickets:assign"
    # dashboard
    DASHBOARD_VIEW = "dashboard:view"
    DASHBOARD_SLA = "dashboard:sla"
    DASHBOARD_AGENTS = "dashboard:agents"
    # knowledge base
    KB_VIEW = "kb:view"
    KB_CREATE = "kb:create"
    KB_UPDATE = "kb:update"
    KB_DELETE = "kb:delete"
    # users
    USERS_VIEW = "users:view"
    USERS_CREATE = "users:create"
    USERS_UPDATE = "users:update"
    USERS_DELETE = "users:delete"
    # categories
    CATEGORIES_VIEW = "categories:view"
    CATEGORIES_CREATE = "categories:create"
    CATEGORIES_UPDATE = "categories:update"
    CATEGORIES_DELETE = "categories:delete"
    # SLA
    SLA_VIEW = "sla:view"
    SLA_CREATE = "sla:create"
    SLA_UPDATE = "sla:update"
    SLA_DELETE = "sla:delete"
    # reporting
    ANALYTICS_VIEW = "analytics:view"
    AUDIT_VIEW = "audit:view"


RoleLike = Union[Role, str]
PermissionLike = Union[Permission, str]

# -- Role → permissions ----------------------------------------------------

_P = Permission

_DEMANDEUR_PERMISSIONS = frozenset({
    _P.TICKETS_VIEW_OWN,
    _P.TICKETS_CREATE,
    _P.DASHBOARD_VIEW,
    _P.KB_VIEW,
})

# Read-only everywhere except tickets
_AGENT_PERMISSIONS = frozenset({
    _P.TICKETS_VIEW_ALL,
    _P.TICKETS_CREATE,
    _P.TICKETS_UPDATE,
    _P.TICKETS_DELETE,
    _P.TICKETS_ASSIGN,
    _P.DASHBOARD_VIEW,
    _P.KB_VIEW,
    _P.CATEGORIES_VIEW,
    _P.SLA_VIEW,
    _P.USERS_VIEW,
    _P.ANALYTICS_VIEW,
})

# Everything except "view own", which is subsumed by "view all"
_FULL_PERMISSIONS = frozenset(p for p in Permission if p is not _P.TICKETS_VIEW_OWN)

ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.DEMANDEUR: _DEMANDEUR_PERMISSIONS,
    Role.AGENT: _AGENT_PERMISSIONS,
    Role.MANAGER: _FULL_PERMISSIONS,
    Role.ADMIN: _FULL_PERMISSIONS,
}

# -- Role → page route prefixes -------------------------------------------

_BASE_ROUTES = (
    "/dashboard",
    "/tickets",
    "/my-tickets",
    "/knowledge-base",
    "/notifications",
    "/settings",
    "/chat",
)

ROLE_ROUTES: dict[Role, tuple[str, ...]] = {
    Role.DEMANDEUR: _BASE_ROUTES,
    Role.AGENT: _BASE_ROUTES + ("/team", "/reports"),
    Role.MANAGER: _BASE_ROUTES + ("/team", "/reports", "/admin"),
    Role.ADMIN: _BASE_ROUTES + ("/team", "/reports", "/admin"),
}

# Landing page every role may visit
DEFAULT_ROUTE = "/dashboard"


def _as_role(role: RoleLike) -> Role | None:
    if isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        return None


def permissions_for(role: RoleLike) -> frozenset[Permission]:
    """Full permission set of *role*; empty for anything unrecognised."""
    resolved = _as_role(role)
    if resolved is None:
        return frozenset()
    return ROLE_PERMISSIONS[resolved]


def has_permission(role: RoleLike, permission: PermissionLike) -> bool:
    """Exact membership test against the static table."""
    try:
        wanted = Permission(permission)
    except ValueError:
        return False
    return wanted in permissions_for(role)


def has_all_permissions(role: RoleLike, permissions: Iterable[PermissionLike]) -> bool:
    return all(has_permission(role, p) for p in permissions)


def path_matches(path: str, prefix: str) -> bool:
    """``/admin`` matches ``/admin`` and ``/admin/users`` but not ``/admin-other``."""
    return path == prefix or path.startswith(prefix + "/")


def has_route_access(role: RoleLike, path: str) -> bool:
    resolved = _as_role(role)
    if resolved is None:
        return False
    return any(path_matches(path, prefix) for prefix in ROLE_ROUTES[resolved])


def has_role(role: RoleLike, allowed: Iterable[RoleLike]) -> bool:
    resolved = _as_role(role)
    if resolved is None:
        return False
    return any(_as_role(r) is resolved for r in allowed)


def can_view_all_tickets(role: RoleLike) -> bool:
    return has_permission(role, Permission.TICKETS_VIEW_ALL)


def can_view_performance_metrics(role: RoleLike) -> bool:
    """SLA and agent performance panels are shown together or not at all."""
    return has_permission(role, Permission.DASHBOARD_SLA) and has_permission(
        role, Permission.DASHBOARD_AGENTS
    )
