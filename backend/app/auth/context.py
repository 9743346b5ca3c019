"""Explicit per-request authorization context.

Routers build an AuthContext from the verified JWT and pass it into every
service call. Services never look at the request or the user row directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from app.middleware.exceptions import TenantContextError

SUPERADMIN = "superadmin"


@dataclass(frozen=True)
class AuthContext:
    user_id: str
    role: str
    tenant_id: str | None
    permissions: frozenset[str] = field(default_factory=frozenset)
    user_name: str = ""

    @property
    def is_superadmin(self) -> bool:
        return self.role == SUPERADMIN

    def require_tenant(self) -> str:
        """Return the caller's tenant id, or raise when the caller has none."""
        if not self.tenant_id:
            raise TenantContextError(
                "This operation requires a tenant-scoped user"
            )
        return self.tenant_id

    def has(self, permission: str) -> bool:
        return self.is_superadmin or permission in self.permissions
