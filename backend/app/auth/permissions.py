"""Granular permission system for Containa RBAC.

Design:
  - Each built-in user role has a set of DEFAULT permissions (defined here).
  - A tenant-defined role (TenantRole.permissions) grants or revokes on top
    of the built-in defaults.
  - `User.custom_permissions` applies final per-user overrides.
  - `resolve_permissions(...)` computes the effective set, which is embedded
    in the JWT so most checks are token-only (no DB roundtrip).

Permission naming: `<resource>.<action>`
  Resources: containers, inventory, freight, reports, settings
  Actions:   read, write, delete (settings: entities, roles, users)
"""

from __future__ import annotations


# ── All known permissions ───────────────────────────────────

ALL_PERMISSIONS: set[str] = {
    # Container bookings, container details, stock allocations
    "containers.read",
    "containers.write",
    "containers.delete",

    # Warehouse stock: LPNs, put-away, pickups
    "inventory.read",
    "inventory.write",
    "inventory.delete",

    # Inbound / outbound jobs
    "freight.read",
    "freight.write",
    "freight.delete",

    # Reports & dashboards
    "reports.read",

    # Settings
    "settings.entities",      # customers, warehouses, SKUs, storage units, fleet, freight
    "settings.roles",         # tenant roles
    "settings.users",         # tenant users
}


# ── Role → default permissions ──────────────────────────────

ROLE_DEFAULTS: dict[str, set[str]] = {
    "superadmin": ALL_PERMISSIONS.copy(),

    "tenant_admin": ALL_PERMISSIONS.copy(),

    "operator": {
        "containers.read", "containers.write",
        "inventory.read", "inventory.write",
        "freight.read", "freight.write",
        "reports.read",
    },

    "viewer": {
        "containers.read",
        "inventory.read",
        "freight.read",
        "reports.read",
    },
}


# ── System roles seeded for every approved tenant ───────────

SYSTEM_ROLES: dict[str, dict[str, bool]] = {
    "Admin": {perm: True for perm in ALL_PERMISSIONS},
    "Operator": {perm: True for perm in ROLE_DEFAULTS["operator"]},
    "Viewer": {perm: True for perm in ROLE_DEFAULTS["viewer"]},
}


# ── Resolution ──────────────────────────────────────────────

def _apply(base: set[str], overrides: dict[str, bool] | None) -> None:
    if not overrides:
        return
    for perm, granted in overrides.items():
        if perm not in ALL_PERMISSIONS:
            continue  # ignore unknown permissions
        if granted:
            base.add(perm)
        else:
            base.discard(perm)


def resolve_permissions(
    role: str,
    role_permissions: dict[str, bool] | None = None,
    custom_overrides: dict[str, bool] | None = None,
) -> list[str]:
    """Compute effective permissions for a user.

    1. Start with the built-in role's defaults.
    2. Apply the tenant role's permission map.
    3. Apply the user's custom overrides: {perm: True} adds, {perm: False} removes.
    4. Return a sorted list (for stable JWT claims).
    """
    base = ROLE_DEFAULTS.get(role, set()).copy()
    _apply(base, role_permissions)
    _apply(base, custom_overrides)
    return sorted(base)


def has_permission(user_permissions: list[str] | set[str] | frozenset[str], required: str) -> bool:
    """Check whether a permission set satisfies a requirement."""
    return required in user_permissions
