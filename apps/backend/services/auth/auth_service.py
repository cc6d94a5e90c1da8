from __future__ import annotations

import hmac
import logging
from typing import Any, Dict

from apps.backend.services.auth.passwords import verify_password
from apps.backend.services.auth.tokens import encode_token
from apps.backend.services.core_service import UnauthorizedError
from apps.backend.services.mappers import merchant_user_to_dto
from apps.backend.services.merchant_users.merchant_user_repository import MerchantUserRepository
from apps.backend.services.merchants.merchant_repository import MerchantRepository
from apps.backend.utils.settings import settings

log = logging.getLogger("epunch.auth")


def login_admin(login: str, password: str) -> Dict[str, str]:
    login_ok = hmac.compare_digest(login.encode(), settings.ADMIN_LOGIN.encode())
    password_ok = hmac.compare_digest(password.encode(), settings.ADMIN_PASSWORD.encode())
    if not (login_ok and password_ok):
        log.warning("Invalid admin credentials for login: %s", login)
        raise UnauthorizedError("Invalid credentials")

    token = encode_token(
        {"sub": "admin-user", "type": "admin", "login": login, "superAdmin": True},
        settings.JWT_SECRET,
        settings.JWT_EXPIRES_IN,
    )
    log.info("Admin authenticated: %s", login)
    return {"token": token}


async def login_merchant_user(
    merchants: MerchantRepository,
    users: MerchantUserRepository,
    *,
    merchant_slug: str,
    login: str,
    password: str,
) -> Dict[str, Any]:
    merchant = await merchants.find_by_slug(merchant_slug.strip().lower())
    if not merchant:
        log.warning("Merchant login for unknown slug: %s", merchant_slug)
        raise UnauthorizedError("Invalid credentials")

    user = await users.find_active_by_login(merchant["id"], login.strip())
    if not user or not verify_password(password, user.get("password_hash") or ""):
        log.warning("Invalid merchant credentials for %s@%s", login, merchant_slug)
        raise UnauthorizedError("Invalid credentials")

    token = encode_token(
        {
            "sub": str(user["id"]),
            "type": "merchant",
            "userId": str(user["id"]),
            "merchantId": str(merchant["id"]),
            "role": user.get("role"),
            "login": user["login"],
        },
        settings.JWT_SECRET,
        settings.JWT_EXPIRES_IN,
    )
    log.info("Merchant user %s authenticated for merchant %s", user["id"], merchant["id"])
    return {"token": token, "user": merchant_user_to_dto(user)}
