from __future__ import annotations
from functools import wraps
from flask import request, g, abort, current_app

from models.user import Role
from utils.exceptions import InvalidToken


def _bearer_token() -> str:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        abort(401, description="Missing or invalid Authorization header")
    token = auth.split(" ", 1)[1].strip()
    if not token:
        abort(401, description="Missing or invalid Authorization header")
    return token


def jwt_required():
    """
    Verify the access token (signature + expiry only, no DB lookup) and expose
    its claims as g.current_user_id / g.current_role.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            signer = current_app.extensions["token_signer"]
            # InvalidToken / TokenExpired propagate to the 401 handler
            claims = signer.verify_access(_bearer_token())
            g.current_user_id = claims.user_id
            g.current_role = claims.role
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def _role_allows(role: Role, required: frozenset) -> bool:
    if role is Role.ADMIN:
        return Role.ADMIN in required
    if role is Role.CUSTOMER:
        return Role.CUSTOMER in required
    raise InvalidToken("Invalid token: unknown role")


def roles_required(*required_roles: Role):
    """
    Allow access if the token's role is one of required_roles; 403 otherwise.
    """
    req = frozenset(Role.parse(r) for r in required_roles)

    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            if not _role_allows(g.current_role, req):
                abort(403, description="Insufficient role")
            return fn(*args, **kwargs)

        return wrapper

    return decorator
