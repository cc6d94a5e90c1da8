"""
Loyalty Program Service
=======================

Merchant-owned punch-card programs: how many punches a card needs and what
the reward is. Punching itself lives in services/punches.

No HTTP here. Routes should call this.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from apps.backend.services.core_service import NotFoundError
from apps.backend.services.loyalty.loyalty_repository import LoyaltyRepository
from apps.backend.services.mappers import loyalty_program_to_dto
from apps.backend.services.merchants.merchant_repository import MerchantRepository

log = logging.getLogger("epunch.loyalty")

MIN_REQUIRED_PUNCHES = 1
MAX_REQUIRED_PUNCHES = 10


class LoyaltyService:
    def __init__(self, repo: LoyaltyRepository, merchants: MerchantRepository) -> None:
        self.repo = repo
        self.merchants = merchants

    async def _merchant(self, merchant_id: str) -> Dict[str, Any]:
        merchant = await self.merchants.find_by_id(merchant_id)
        if not merchant:
            raise NotFoundError(f"Merchant with ID {merchant_id} not found")
        return merchant

    async def list_merchant_programs(self, merchant_id: str, include_inactive: bool = False) -> List[Dict[str, Any]]:
        merchant = await self._merchant(merchant_id)
        rows = await self.repo.list_programs(merchant_id, include_inactive=include_inactive)
        log.info("Found %d loyalty programs for merchant %s", len(rows), merchant_id)
        return [loyalty_program_to_dto(r, merchant) for r in rows]

    async def get_program(self, program_id: str) -> Dict[str, Any]:
        program = await self.repo.find_program(program_id)
        if not program:
            raise NotFoundError(f"Loyalty program with ID {program_id} not found")
        merchant = await self.merchants.find_by_id(program["merchant_id"])
        if not merchant:
            raise NotFoundError(f"Merchant not found for loyalty program {program_id}")
        return loyalty_program_to_dto(program, merchant)

    async def get_merchant_program(self, merchant_id: str, program_id: str) -> Dict[str, Any]:
        dto = await self.get_program(program_id)
        if str(dto["merchantId"]) != str(merchant_id):
            raise NotFoundError(f"Loyalty program {program_id} not found for merchant {merchant_id}")
        return dto

    async def create_program(self, merchant_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        merchant = await self._merchant(merchant_id)
        row = await self.repo.create_program(merchant_id, data)
        log.info(
            "Created loyalty program %s for merchant %s (required_punches=%s)",
            row["id"], merchant_id, row["required_punches"],
        )
        return loyalty_program_to_dto(row, merchant)

    async def update_program(self, merchant_id: str, program_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        merchant = await self._merchant(merchant_id)
        if not changes:
            return await self.get_merchant_program(merchant_id, program_id)

        row = await self.repo.update_program(merchant_id, program_id, changes)
        if not row:
            raise NotFoundError(f"Loyalty program {program_id} not found for merchant {merchant_id}")
        log.info("Updated loyalty program %s fields=%s", program_id, sorted(changes))
        return loyalty_program_to_dto(row, merchant)

    async def delete_program(self, merchant_id: str, program_id: str) -> Dict[str, Any]:
        await self._merchant(merchant_id)
        if not await self.repo.soft_delete_program(merchant_id, program_id):
            raise NotFoundError(f"Loyalty program {program_id} not found for merchant {merchant_id}")
        log.info("Deleted loyalty program %s of merchant %s", program_id, merchant_id)
        return {"id": program_id, "deleted": True}
