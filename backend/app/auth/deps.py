"""FastAPI dependencies for authentication and authorization.

Dependencies:
  get_current_user         → decode JWT, load user from DB, return User
  get_auth_context         → explicit AuthContext built from the token claims
  require_permission(...)  → AuthContext for users holding ALL listed permissions
  require_superadmin       → AuthContext for platform superadmins only
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.auth.jwt import decode_token
from app.auth.permissions import has_permission
from app.database import get_db
from app.models.public.user import User, UserRole

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


# ── Core user dependency ────────────────────────────────────

async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Decode the JWT, load the user, and return it.

    Stashes the decoded payload on the user object as `_token_payload` so
    downstream deps can read claims without re-decoding.
    """
    payload = decode_token(token)
    user_id: str | None = payload.get("sub")
    if not user_id or payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    # A token must not claim a tenant the user no longer belongs to
    claimed_tenant = payload.get("tenant_id")
    if claimed_tenant and user.role != UserRole.SUPERADMIN.value and claimed_tenant != user.tenant_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token tenant does not match user",
        )

    user._token_payload = payload  # type: ignore[attr-defined]
    return user


async def get_auth_context(
    user: User = Depends(get_current_user),
) -> AuthContext:
    """Build the explicit AuthContext passed into every service call."""
    payload: dict = getattr(user, "_token_payload", {})
    return AuthContext(
        user_id=user.id,
        role=user.role,
        tenant_id=payload.get("tenant_id") or user.tenant_id,
        permissions=frozenset(payload.get("permissions", [])),
        user_name=user.full_name,
    )


# ── Permission-based access control ─────────────────────────

def require_permission(*perms: str):
    """Dependency factory — restrict to users who hold ALL listed permissions.

    Reads permissions from the JWT claims (embedded at sign-in), so this is
    a zero-DB-hit check on top of loading the user.

    Usage:
        @router.get("/records/{record_id}")
        async def get_record(ctx: AuthContext = Depends(require_permission("inventory.read"))):
            ...
    """
    async def _check(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if ctx.is_superadmin:
            return ctx
        missing = [p for p in perms if not has_permission(ctx.permissions, p)]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permissions: {', '.join(missing)}",
            )
        return ctx

    return _check


async def require_superadmin(
    ctx: AuthContext = Depends(get_auth_context),
) -> AuthContext:
    """Restrict endpoint to platform superadmins only."""
    if not ctx.is_superadmin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Superadmin access required",
        )
    return ctx
