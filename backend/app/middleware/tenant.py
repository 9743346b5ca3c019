"""Tenant middleware — resolves the tenant id from the JWT on every request.

Flow:
  1. Extract Bearer token from Authorization header
  2. Decode JWT → get `tenant_id` claim
  3. Set the ContextVar so infrastructure code (cache keys, logs) can read it
  4. After the response, clear the ContextVar

Business logic never reads the ContextVar; it receives an explicit
AuthContext from `app.auth.deps.get_auth_context`.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.auth.jwt import decode_token
from app.middleware.exceptions import create_error_response
from app.tenancy import clear_tenant_context, set_current_tenant

# Routes that never require auth — don't reject expired tokens here
_PUBLIC_PREFIXES = ("/api/tenants", "/docs", "/openapi.json", "/health")


class TenantMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        auth_header = request.headers.get("authorization", "")
        path = request.url.path

        if auth_header.startswith("Bearer "):
            payload = decode_token(auth_header[7:])

            if not payload:
                # Token present but expired/malformed: answer 401 before the
                # route produces a confusing tenant-context error.
                clear_tenant_context()
                if not any(path.startswith(p) for p in _PUBLIC_PREFIXES):
                    return create_error_response(
                        status_code=401,
                        message="Token expired or invalid",
                        error_code="HTTP_401",
                        headers={"WWW-Authenticate": "Bearer"},
                    )
            elif payload.get("tenant_id"):
                set_current_tenant(payload["tenant_id"])
            else:
                clear_tenant_context()
        else:
            clear_tenant_context()

        try:
            response = await call_next(request)
        finally:
            clear_tenant_context()

        return response
