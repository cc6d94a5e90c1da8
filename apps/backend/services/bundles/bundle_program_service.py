from __future__ import annotations

import logging
from typing import Any, Dict, List

from apps.backend.services.bundles.bundle_program_repository import BundleProgramRepository
from apps.backend.services.core_service import NotFoundError
from apps.backend.services.mappers import bundle_program_to_dto
from apps.backend.services.merchants.merchant_repository import MerchantRepository

log = logging.getLogger("epunch.bundles")


class BundleProgramService:
    """Prepaid bundle offers (e.g. "10 coffees") defined by a merchant."""

    def __init__(self, repo: BundleProgramRepository, merchants: MerchantRepository) -> None:
        self.repo = repo
        self.merchants = merchants

    async def _ensure_merchant(self, merchant_id: str) -> None:
        if not await self.merchants.find_by_id(merchant_id):
            raise NotFoundError(f"Merchant with ID {merchant_id} not found")

    async def list_merchant_programs(self, merchant_id: str) -> List[Dict[str, Any]]:
        await self._ensure_merchant(merchant_id)
        rows = await self.repo.list_by_merchant(merchant_id)
        log.info("Found %d bundle programs for merchant %s", len(rows), merchant_id)
        return [bundle_program_to_dto(r) for r in rows]

    async def get_program_row(self, program_id: str) -> Dict[str, Any]:
        row = await self.repo.find_by_id(program_id)
        if not row:
            raise NotFoundError(f"Bundle program with ID {program_id} not found")
        return row

    async def get_program(self, program_id: str) -> Dict[str, Any]:
        return bundle_program_to_dto(await self.get_program_row(program_id))

    async def create_program(self, merchant_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        await self._ensure_merchant(merchant_id)
        row = await self.repo.create(merchant_id, data)
        log.info("Created bundle program %s for merchant %s", row["id"], merchant_id)
        return bundle_program_to_dto(row)

    async def update_program(self, merchant_id: str, program_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        await self._ensure_merchant(merchant_id)
        if not changes:
            return await self.get_program(program_id)
        row = await self.repo.update(merchant_id, program_id, changes)
        if not row:
            raise NotFoundError(f"Bundle program with ID {program_id} not found for merchant {merchant_id}")
        log.info("Updated bundle program %s fields=%s", program_id, sorted(changes))
        return bundle_program_to_dto(row)

    async def delete_program(self, merchant_id: str, program_id: str) -> Dict[str, Any]:
        await self._ensure_merchant(merchant_id)
        if not await self.repo.soft_delete(merchant_id, program_id):
            raise NotFoundError(f"Bundle program with ID {program_id} not found for merchant {merchant_id}")
        log.info("Deleted bundle program %s of merchant %s", program_id, merchant_id)
        return {"id": program_id, "deleted": True}
