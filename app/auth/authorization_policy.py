"""
Authorization Policy
--------------------
Two independent checks:

1. A static route table, evaluated for every request before it reaches a
   handler. Each rule maps HTTP methods and an ant-style path pattern to a
   requirement. ``*`` matches exactly one path segment, a trailing ``/**``
   matches any remainder including none. The first matching rule wins; routes
   no rule matches require an authenticated caller.

2. Target checks for user administration, which depend on the record being
   acted on and so cannot live in the route table.
"""

import re
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Pattern, Tuple

from app.auth.principal import Principal
from app.auth.roles import PRIVILEGED_ROLES, PermissionName, RoleName
from app.core.exceptions import AccessDenied, Unauthenticated
from app.models.users_models import User


# ============================================================================
# REQUIREMENTS
# ============================================================================


@dataclass(frozen=True)
class Requirement:
    kind: str
    values: Tuple[str, ...] = ()

    @property
    def is_public(self) -> bool:
        return self.kind == "public"

    def is_satisfied_by(self, principal: Principal) -> bool:
        if self.kind in ("public", "authenticated"):
            return True
        if self.kind == "role":
            return principal.has_any_role(self.values)
        if self.kind == "authority":
            return all(principal.has_authority(value) for value in self.values)
        raise ValueError(f"Unknown requirement kind: {self.kind}")

    def __str__(self) -> str:
        if self.values:
            return f"{self.kind}({', '.join(self.values)})"
        return self.kind


def public() -> Requirement:
    return Requirement("public")


def authenticated() -> Requirement:
    return Requirement("authenticated")


def has_role(role: RoleName) -> Requirement:
    return Requirement("role", (RoleName(role).value,))


def has_any_role(*roles: RoleName) -> Requirement:
    return Requirement("role", tuple(RoleName(role).value for role in roles))


def has_authority(permission: PermissionName) -> Requirement:
    return Requirement("authority", (PermissionName(permission).value,))


# ============================================================================
# ROUTE RULES
# ============================================================================


def compile_path_pattern(pattern: str) -> Pattern:
    """Translate an ant-style path pattern into an anchored regex."""
    segments = [segment for segment in pattern.strip("/").split("/") if segment]
    regex = ""
    for index, segment in enumerate(segments):
        if segment == "**":
            if index != len(segments) - 1:
                raise ValueError(f"'**' is only supported as the last segment: {pattern}")
            regex += "(?:/.*)?"
        elif segment == "*":
            regex += "/[^/]+"
        else:
            regex += "/" + re.escape(segment)
    return re.compile(f"^{regex or '/'}$")


def normalize_path(path: str) -> str:
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


@dataclass(frozen=True)
class RouteRule:
    methods: Optional[FrozenSet[str]]
    pattern: str
    requirement: Requirement
    regex: Pattern

    def matches(self, method: str, path: str) -> bool:
        if self.methods is not None and method.upper() not in self.methods:
            return False
        return self.regex.match(path) is not None


def rule(methods: Optional[Iterable[str]], pattern: str, requirement: Requirement) -> RouteRule:
    return RouteRule(
        methods=frozenset(m.upper() for m in methods) if methods is not None else None,
        pattern=pattern,
        requirement=requirement,
        regex=compile_path_pattern(pattern),
    )


READ_METHODS = ("GET", "HEAD")
ANY_METHOD = None

AUTHORIZATION_RULES: List[RouteRule] = [
    # Public
    rule(READ_METHODS, "/", public()),
    rule(READ_METHODS, "/health/**", public()),
    rule(READ_METHODS, "/api/docs/**", public()),
    rule(READ_METHODS, "/api/redoc", public()),
    rule(READ_METHODS, "/api/openapi.json", public()),
    rule(["POST"], "/auth/login", public()),
    rule(["POST"], "/auth/sign-up", public()),
    rule(READ_METHODS, "/books/search-google", public()),
    rule(READ_METHODS, "/books/google-api/*", public()),
    # Self-service
    rule(ANY_METHOD, "/user/**", authenticated()),
    # Administration
    rule(["DELETE"], "/admin/users/*/permanent", has_role(RoleName.SUPER_ADMIN)),
    rule(ANY_METHOD, "/admin/roles/**", has_role(RoleName.SUPER_ADMIN)),
    rule(
        ANY_METHOD,
        "/admin/users/**",
        has_any_role(RoleName.ADMIN, RoleName.SUPER_ADMIN),
    ),
    # Library
    rule(READ_METHODS, "/books/**", has_authority(PermissionName.READ_BOOK)),
    rule(["POST"], "/books/**", has_authority(PermissionName.ADD_BOOK)),
    rule(["PUT", "PATCH"], "/books/**", has_authority(PermissionName.EDIT_BOOK)),
    rule(["DELETE"], "/books/**", has_authority(PermissionName.DELETE_BOOK)),
    rule(READ_METHODS, "/wishlist-books/**", has_authority(PermissionName.READ_BOOK)),
    rule(["POST"], "/wishlist-books/**", has_authority(PermissionName.ADD_BOOK)),
    rule(["PUT", "PATCH"], "/wishlist-books/**", has_authority(PermissionName.EDIT_BOOK)),
    rule(["DELETE"], "/wishlist-books/**", has_authority(PermissionName.DELETE_BOOK)),
]

DEFAULT_REQUIREMENT = authenticated()


def resolve_requirement(
    method: str, path: str, rules: Optional[List[RouteRule]] = None
) -> Requirement:
    """Requirement of the first rule matching the request, or DEFAULT_REQUIREMENT."""
    path = normalize_path(path)
    for route_rule in AUTHORIZATION_RULES if rules is None else rules:
        if route_rule.matches(method, path):
            return route_rule.requirement
    return DEFAULT_REQUIREMENT


def authorize_request(
    method: str,
    path: str,
    principal: Optional[Principal],
    rules: Optional[List[RouteRule]] = None,
) -> Requirement:
    """
    Check a request against the route table.

    Returns:
        The requirement that was applied

    Raises:
        Unauthenticated: Non-public route and no principal
        AccessDenied: Principal lacks the required role or authority
    """
    requirement = resolve_requirement(method, path, rules)
    if requirement.is_public:
        return requirement
    if principal is None:
        raise Unauthenticated()
    if not requirement.is_satisfied_by(principal):
        raise AccessDenied()
    return requirement


# ============================================================================
# TARGET CHECKS
# ============================================================================


def ensure_can_manage(actor: Principal, target: User) -> None:
    """
    Allow ``actor`` to administer ``target``.

    SUPER_ADMIN may act on anyone. ADMIN may act only on users holding
    neither ADMIN nor SUPER_ADMIN. Anyone else is refused.

    Raises:
        AccessDenied: When the rule is violated
    """
    if actor.has_role(RoleName.SUPER_ADMIN):
        return
    if not actor.has_role(RoleName.ADMIN):
        raise AccessDenied("User does not have admin privileges")
    if any(target.has_role(role) for role in PRIVILEGED_ROLES):
        raise AccessDenied("ADMIN users cannot modify other ADMIN or SUPER_ADMIN users")


def ensure_can_assign_roles(actor: Principal, roles: Iterable[RoleName]) -> None:
    """Only SUPER_ADMIN may hand out ADMIN or SUPER_ADMIN."""
    if actor.has_role(RoleName.SUPER_ADMIN):
        return
    if not actor.has_role(RoleName.ADMIN):
        raise AccessDenied("User does not have admin privileges")
    if any(RoleName(role) in PRIVILEGED_ROLES for role in roles):
        raise AccessDenied("ADMIN users cannot assign ADMIN or SUPER_ADMIN roles")
