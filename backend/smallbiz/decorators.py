# Overview: Request, tenant and capability decorators for API routes.

import logging
from functools import wraps

from flask import request, jsonify, g

from .permissions import can
from .services import session_service
from .services.tenant_service import TENANT_HEADER, TenantResolutionError, resolve_tenant

logger = logging.getLogger(__name__)


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user')


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1]


def require_auth(f):
    """
    Require a valid bearer session.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.session_context: The full SessionContext object

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired or revoked token
    - User account or tenant deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_tenant(f):
    """
    Resolve X-Tenant-ID to an active tenant and bind it to the request.

    MULTI-TENANT: Sets g.tenant. Handlers pass g.tenant.id explicitly into
    services; nothing below the route layer reads g.

    Returns:
    - 400 tenant_id_missing when the header is absent
    - 403 tenant_invalid when unknown or inactive
    - 403 when the authenticated user belongs to a different tenant
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            tenant = resolve_tenant(request.headers.get(TENANT_HEADER))
        except TenantResolutionError as e:
            return jsonify({"error": str(e), "code": e.code}), e.status_code

        if _is_authenticated() and g.current_user.tenant_id != tenant.id:
            logger.warning(
                "User %s (tenant %s) attempted to act for tenant %s",
                g.current_user.id, g.current_user.tenant_id, tenant.id,
            )
            return jsonify({"error": "Unauthorized access to this tenant", "code": "tenant_mismatch"}), 403

        g.tenant = tenant
        return f(*args, **kwargs)

    return decorated_function


def require_capability(capability: str):
    """Require a capability that does not depend on a specific resource."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not can(g.current_user.role, capability):
                return jsonify({
                    "error": "Permission denied",
                    "required_capability": capability,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
