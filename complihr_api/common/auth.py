# complihr_api/common/auth.py
from __future__ import annotations

from functools import wraps
from typing import Iterable, Set

from flask_jwt_extended import jwt_required, get_jwt, get_jwt_identity

from complihr_api.common.http import fail


# ---------- helpers ----------

def _claim_set(claims: dict, key: str) -> Set[str]:
    raw = claims.get(key) or []
    if isinstance(raw, str):
        raw = [raw]
    return {str(x).strip().lower() for x in raw if str(x).strip()}


def _has_any_role(user_roles: Set[str], required: Iterable[str]) -> bool:
    if "admin" in user_roles:
        return True
    return any(r.lower() in user_roles for r in required)


def current_roles() -> Set[str]:
    """Roles carried by the current access token ('roles' claim)."""
    return _claim_set(get_jwt() or {}, "roles")


# ---------- decorators ----------

def requires_roles(*codes: str):
    """
    Require that the current user has AT LEAST ONE of the given role codes.
    - Roles are read from the JWT 'roles' claim (tokens are issued by the
      identity service, this API never looks users up).
    - 'admin' role always passes.
    """
    def outer(fn):
        @wraps(fn)
        @jwt_required()
        def inner(*args, **kwargs):
            if get_jwt_identity() is None:
                return fail("Unauthorized", status=401)

            roles = current_roles()
            if not codes or _has_any_role(roles, codes):
                return fn(*args, **kwargs)

            return fail("Forbidden", status=403)
        return inner
    return outer
