"""
Bearer-token authentication and the authorization checks used by routes.

A request carries at most one identity:
- the platform super admin (token type "admin")
- a merchant user (token type "merchant"), re-checked as active in the DB

A missing, malformed or expired token yields no authentication; whether
that is acceptable is decided by the route via the require_* helpers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from fastapi import Request

from apps.backend.db import get_supabase
from apps.backend.services.auth.tokens import TokenError, decode_token
from apps.backend.services.core_service import ForbiddenError, UnauthorizedError
from apps.backend.services.merchant_users.merchant_user_repository import MerchantUserRepository
from apps.backend.utils.settings import settings

log = logging.getLogger("epunch.auth")

ROLE_ADMIN = "admin"
ROLE_STAFF = "staff"
ROLES = (ROLE_ADMIN, ROLE_STAFF)


@dataclass(frozen=True)
class MerchantUserAuthentication:
    id: str
    merchant_id: str
    login: str
    role: str


@dataclass(frozen=True)
class Authentication:
    super_admin: bool = False
    admin_login: Optional[str] = None
    merchant_user: Optional[MerchantUserAuthentication] = None


def _bearer_token(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization")
    if not auth or not auth.lower().startswith("bearer "):
        return None
    token = auth.split(" ", 1)[1].strip()
    return token or None


async def _merchant_user_from_claims(claims: dict) -> Optional[MerchantUserAuthentication]:
    user_id = claims.get("userId")
    merchant_id = claims.get("merchantId")
    if not user_id or not merchant_id:
        return None

    sb = get_supabase()
    if not sb:
        log.warning("Merchant token presented but Supabase is not configured")
        return None

    row = await MerchantUserRepository(sb).find_active_by_id(str(user_id))
    if not row or str(row["merchant_id"]) != str(merchant_id):
        return None

    return MerchantUserAuthentication(
        id=str(row["id"]),
        merchant_id=str(row["merchant_id"]),
        login=row["login"],
        role=row.get("role") or ROLE_STAFF,
    )


async def authenticate(request: Request) -> Optional[Authentication]:
    if hasattr(request.state, "authentication"):
        return request.state.authentication

    authentication: Optional[Authentication] = None
    token = _bearer_token(request)
    if token:
        try:
            claims = decode_token(token, settings.JWT_SECRET)
        except TokenError as e:
            log.info("Ignoring bearer token: %s", e)
            claims = None

        if claims and claims.get("type") == "admin" and claims.get("superAdmin"):
            authentication = Authentication(super_admin=True, admin_login=claims.get("login"))
        elif claims and claims.get("type") == "merchant":
            merchant_user = await _merchant_user_from_claims(claims)
            if merchant_user:
                authentication = Authentication(merchant_user=merchant_user)

    request.state.authentication = authentication
    return authentication


# -------------------------
# Checks
# -------------------------

def require_authenticated(auth: Optional[Authentication]) -> Authentication:
    if auth is None:
        raise UnauthorizedError("Authentication required")
    return auth


def require_super_admin(auth: Optional[Authentication]) -> Authentication:
    auth = require_authenticated(auth)
    if not auth.super_admin:
        raise ForbiddenError("Super admin required")
    return auth


def require_merchant_user(
    auth: Optional[Authentication], roles: Optional[Iterable[str]] = None
) -> Authentication:
    auth = require_authenticated(auth)
    if auth.super_admin:
        return auth
    if not auth.merchant_user:
        raise ForbiddenError("Merchant user required")
    if roles and auth.merchant_user.role not in set(roles):
        raise ForbiddenError("Insufficient permissions")
    return auth


def ensure_merchant_access(
    auth: Optional[Authentication], merchant_id: str, roles: Optional[Iterable[str]] = None
) -> Authentication:
    auth = require_merchant_user(auth, roles)
    if auth.super_admin:
        return auth
    if str(auth.merchant_user.merchant_id) != str(merchant_id):
        raise ForbiddenError("The resource does not belong to the merchant")
    return auth


def acting_merchant_id(auth: Authentication, requested: Optional[str] = None) -> str:
    """Merchant a write applies to: the caller's own, or the requested one for super admins."""
    if auth.merchant_user:
        if requested and str(requested) != auth.merchant_user.merchant_id:
            raise ForbiddenError("The resource does not belong to the merchant")
        return auth.merchant_user.merchant_id
    if not requested:
        raise ForbiddenError("Merchant user required")
    return str(requested)


def merchant_scope(auth: Authentication) -> Optional[str]:
    """The caller's merchant for ownership checks, or None for a super admin."""
    return auth.merchant_user.merchant_id if auth.merchant_user else None
