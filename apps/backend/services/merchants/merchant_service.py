from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from apps.backend.services.auth.passwords import hash_password
from apps.backend.services.core_service import BadRequestError, ConflictError, NotFoundError
from apps.backend.services.mappers import merchant_to_dto
from apps.backend.services.merchant_users.merchant_user_repository import MerchantUserRepository
from apps.backend.services.merchants.merchant_repository import MerchantRepository

log = logging.getLogger("epunch.merchants")


class MerchantService:
    """Merchant tenant lifecycle. No HTTP here."""

    def __init__(self, repo: MerchantRepository, users: MerchantUserRepository) -> None:
        self.repo = repo
        self.users = users

    async def get_merchant_row(self, merchant_id: str) -> Dict[str, Any]:
        merchant = await self.repo.find_by_id(merchant_id)
        if not merchant:
            raise NotFoundError(f"Merchant with ID {merchant_id} not found")
        return merchant

    async def get_merchant(self, merchant_id: str) -> Dict[str, Any]:
        return merchant_to_dto(await self.get_merchant_row(merchant_id))

    async def get_merchant_by_slug(self, slug: str) -> Dict[str, Any]:
        merchant = await self.repo.find_by_slug(slug.strip().lower())
        if not merchant:
            raise NotFoundError(f"Merchant with slug {slug} not found")
        return merchant_to_dto(merchant)

    async def list_merchants(self) -> List[Dict[str, Any]]:
        return [merchant_to_dto(m) for m in await self.repo.list_all()]

    async def create_merchant(
        self,
        *,
        name: str,
        slug: str,
        address: Optional[str] = None,
        logo_url: Optional[str] = None,
        login: Optional[str] = None,
        password: Optional[str] = None,
    ) -> Dict[str, Any]:
        if bool(login) != bool(password):
            raise BadRequestError("login and password must be provided together")

        slug = slug.strip().lower()
        if await self.repo.find_by_slug(slug):
            raise ConflictError(f"Merchant slug '{slug}' is already taken")

        merchant = await self.repo.create(
            {"name": name, "slug": slug, "address": address, "logo_url": logo_url}
        )
        log.info("Created merchant %s (%s)", merchant["id"], slug)

        if login and password:
            await self.users.create(merchant["id"], login, hash_password(password), "admin")
            log.info("Created initial admin user '%s' for merchant %s", login, merchant["id"])

        return merchant_to_dto(merchant)

    async def update_merchant(self, merchant_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        merchant = await self.get_merchant_row(merchant_id)

        if "slug" in changes:
            slug = changes["slug"].strip().lower()
            other = await self.repo.find_by_slug(slug)
            if other and str(other["id"]) != str(merchant["id"]):
                raise ConflictError(f"Merchant slug '{slug}' is already taken")
            changes["slug"] = slug

        if not changes:
            return merchant_to_dto(merchant)

        updated = await self.repo.update(merchant_id, changes)
        if not updated:
            raise NotFoundError(f"Merchant with ID {merchant_id} not found")
        log.info("Updated merchant %s fields=%s", merchant_id, sorted(changes))
        return merchant_to_dto(updated)

    async def delete_merchant(self, merchant_id: str) -> Dict[str, Any]:
        if not await self.repo.delete(merchant_id):
            raise NotFoundError(f"Merchant with ID {merchant_id} not found")
        log.info("Deleted merchant %s", merchant_id)
        return {"id": merchant_id, "deleted": True}
