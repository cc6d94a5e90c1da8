from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from apps.backend.services.auth.passwords import hash_password
from apps.backend.services.core_service import ConflictError, NotFoundError
from apps.backend.services.mappers import merchant_user_to_dto
from apps.backend.services.merchant_users.merchant_user_repository import MerchantUserRepository
from apps.backend.services.merchants.merchant_repository import MerchantRepository

log = logging.getLogger("epunch.merchant_users")


class MerchantUserService:
    def __init__(self, repo: MerchantUserRepository, merchants: MerchantRepository) -> None:
        self.repo = repo
        self.merchants = merchants

    async def _ensure_merchant(self, merchant_id: str) -> None:
        if not await self.merchants.find_by_id(merchant_id):
            raise NotFoundError(f"Merchant with ID {merchant_id} not found")

    async def _ensure_login_free(self, merchant_id: str, login: str, exclude_id: Optional[str] = None) -> None:
        existing = await self.repo.find_active_by_login(merchant_id, login)
        if existing and str(existing["id"]) != str(exclude_id):
            raise ConflictError(f"Login '{login}' is already in use")

    async def list_users(self, merchant_id: str) -> List[Dict[str, Any]]:
        await self._ensure_merchant(merchant_id)
        rows = await self.repo.list_active_by_merchant(merchant_id)
        return [merchant_user_to_dto(r) for r in rows]

    async def get_user(self, merchant_id: str, user_id: str) -> Dict[str, Any]:
        row = await self.repo.find_active_by_id(user_id)
        if not row or str(row["merchant_id"]) != str(merchant_id):
            raise NotFoundError(f"Merchant user {user_id} not found")
        return merchant_user_to_dto(row)

    async def create_user(self, merchant_id: str, login: str, password: str, role: str) -> Dict[str, Any]:
        await self._ensure_merchant(merchant_id)
        login = login.strip()
        await self._ensure_login_free(merchant_id, login)

        row = await self.repo.create(merchant_id, login, hash_password(password), role)
        log.info("Created merchant user %s (%s) for merchant %s", row["id"], role, merchant_id)
        return merchant_user_to_dto(row)

    async def update_user(
        self,
        merchant_id: str,
        user_id: str,
        *,
        login: Optional[str] = None,
        password: Optional[str] = None,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Dict[str, Any]:
        current = await self.repo.find_active_by_id(user_id)
        if not current or str(current["merchant_id"]) != str(merchant_id):
            raise NotFoundError(f"Merchant user {user_id} not found")

        changes: Dict[str, Any] = {}
        if login is not None:
            login = login.strip()
            await self._ensure_login_free(merchant_id, login, exclude_id=user_id)
            changes["login"] = login
        if password is not None:
            changes["password_hash"] = hash_password(password)
        if role is not None:
            changes["role"] = role
        if is_active is not None:
            changes["is_active"] = is_active

        if not changes:
            return merchant_user_to_dto(current)

        row = await self.repo.update(merchant_id, user_id, changes)
        if not row:
            raise NotFoundError(f"Merchant user {user_id} not found")
        log.info("Updated merchant user %s fields=%s", user_id, sorted(k for k in changes if k != "password_hash"))
        return merchant_user_to_dto(row)

    async def delete_user(self, merchant_id: str, user_id: str) -> Dict[str, Any]:
        if not await self.repo.soft_delete(merchant_id, user_id):
            raise NotFoundError(f"Merchant user {user_id} not found")
        log.info("Deactivated merchant user %s of merchant %s", user_id, merchant_id)
        return {"id": user_id, "deleted": True}
