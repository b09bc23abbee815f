# Overview: Actor-context and role decorators for API routes.

"""
Authentication is done upstream. The gateway forwards the resolved actor as
headers, and these decorators turn them into Flask g attributes:

- g.actor_role: canonical role name ("SuperAdmin", "Admin", "Agent", ...)
- g.org_id: the actor's organization (None for SuperAdmin)
- g.actor_id: opaque user id for audit (optional)
"""

import hmac
from functools import wraps

from flask import current_app, g, jsonify, request

from .roles import ROLE_SUPERADMIN, canonical_role


ROLE_HEADER = "X-Actor-Role"
ORG_HEADER = "X-Organization-Id"
ACTOR_HEADER = "X-Actor-Id"


def _gateway_token_ok() -> bool:
    expected = current_app.config.get("GATEWAY_TOKEN")
    if not expected:
        return True
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return False
    return hmac.compare_digest(auth_header.split(" ", 1)[1], expected)


def is_superadmin() -> bool:
    return getattr(g, "actor_role", None) == ROLE_SUPERADMIN


def require_actor(f):
    """
    Require a gateway-authenticated actor and establish tenant context.

    Returns 401 if:
    - GATEWAY_TOKEN is configured and the bearer token does not match
    - X-Actor-Role is missing
    - X-Organization-Id is missing or not an integer for a non-SuperAdmin actor
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _gateway_token_ok():
            return jsonify({"error": "Authentication required"}), 401

        role = canonical_role(request.headers.get(ROLE_HEADER))
        if not role:
            return jsonify({"error": "Authentication required"}), 401

        raw_org = request.headers.get(ORG_HEADER)
        org_id = None
        if raw_org:
            try:
                org_id = int(raw_org)
            except ValueError:
                return jsonify({"error": "Invalid organization context"}), 401

        if org_id is None and role != ROLE_SUPERADMIN:
            return jsonify({"error": "Invalid session: missing tenant context"}), 401

        g.actor_role = role
        g.org_id = org_id
        g.actor_id = request.headers.get(ACTOR_HEADER)

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles):
    """Require the actor to hold one of the given roles."""
    allowed = {canonical_role(r) for r in roles}

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(g, "actor_role"):
                return jsonify({"error": "Authentication required"}), 401

            if g.actor_role not in allowed:
                return jsonify({
                    "error": "Permission denied",
                    "required_roles": sorted(allowed),
                    "message": f"Requires one of: {', '.join(sorted(allowed))}",
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_gateway(f):
    """Service-to-service calls (login evaluation): only the gateway token is checked."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _gateway_token_ok():
            return jsonify({"error": "Authentication required"}), 401
        return f(*args, **kwargs)
    return decorated_function
