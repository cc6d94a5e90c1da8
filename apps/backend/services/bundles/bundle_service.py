"""
Bundle Service
==============

A bundle is a prepaid quantity of one item a customer bought from a bundle
program. Merchants hand it out, then draw it down as the customer collects.

Rules:
- remaining_quantity never leaves [0, original_quantity]
- expired bundles cannot be changed
- every non-zero change is written to bundle_usage and pushed to the
  customer as BUNDLE_USED
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

from apps.backend.services.bundles.bundle_program_repository import BundleProgramRepository
from apps.backend.services.bundles.bundle_repository import BundleRepository
from apps.backend.services.core_service import BadRequestError, ForbiddenError, NotFoundError
from apps.backend.services.events.event_hub import BUNDLE_CREATED, BUNDLE_USED, hub
from apps.backend.services.mappers import bundle_to_dto
from apps.backend.services.merchants.merchant_repository import MerchantRepository
from apps.backend.services.users.user_repository import UserRepository
from apps.backend.utils.timestamps import parse_ts, utcnow

log = logging.getLogger("epunch.bundles")


class BundleService:
    def __init__(
        self,
        bundles: BundleRepository,
        programs: BundleProgramRepository,
        merchants: MerchantRepository,
        users: UserRepository,
        events=hub,
    ) -> None:
        self.bundles = bundles
        self.programs = programs
        self.merchants = merchants
        self.users = users
        self.events = events

    async def _load(self, bundle_id: str) -> Tuple[Dict[str, Any], Dict[str, Any], Dict[str, Any]]:
        bundle = await self.bundles.find_by_id(bundle_id)
        if not bundle:
            raise NotFoundError(f"Bundle with ID {bundle_id} not found")
        program = await self.programs.find_by_id(bundle["bundle_program_id"], include_deleted=True)
        if not program:
            raise NotFoundError(f"Bundle program for bundle {bundle_id} not found")
        merchant = await self.merchants.find_by_id(program["merchant_id"])
        if not merchant:
            raise NotFoundError(f"Merchant for bundle {bundle_id} not found")
        return bundle, program, merchant

    @staticmethod
    def _check_merchant(program: Dict[str, Any], merchant_id: Optional[str]) -> None:
        # None = super admin
        if merchant_id is not None and str(program["merchant_id"]) != str(merchant_id):
            raise ForbiddenError("The bundle does not belong to the merchant")

    @staticmethod
    def _check_not_expired(bundle: Dict[str, Any]) -> None:
        expires_at = parse_ts(bundle.get("expires_at"))
        if expires_at is not None and expires_at < utcnow():
            raise BadRequestError("Bundle has expired")

    async def get_bundle(self, bundle_id: str, merchant_id: Optional[str] = None) -> Dict[str, Any]:
        bundle, program, merchant = await self._load(bundle_id)
        self._check_merchant(program, merchant_id)
        return bundle_to_dto(bundle, program, merchant)

    async def list_user_bundles(self, user_id: str) -> List[Dict[str, Any]]:
        rows = await self.bundles.list_user_bundles(user_id)
        programs = await self.programs.find_by_ids(b["bundle_program_id"] for b in rows)
        merchants = await self.merchants.find_by_ids(p["merchant_id"] for p in programs.values())

        out: List[Dict[str, Any]] = []
        for bundle in rows:
            program = programs.get(str(bundle["bundle_program_id"]))
            if not program or program.get("is_deleted"):
                continue
            merchant = merchants.get(str(program["merchant_id"]))
            if not merchant:
                continue
            out.append(bundle_to_dto(bundle, program, merchant))
        log.info("Found %d bundles for user %s", len(out), user_id)
        return out

    async def create_bundle(
        self,
        user_id: str,
        program_id: str,
        quantity: int,
        validity_days: Optional[int] = None,
        merchant_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        program = await self.programs.find_by_id(program_id)
        if not program:
            raise NotFoundError(f"Bundle program with ID {program_id} not found")
        self._check_merchant(program, merchant_id)
        if not program.get("is_active", True):
            raise BadRequestError(f"Bundle program {program_id} is not active")
        if quantity < 1:
            raise BadRequestError("Quantity must be at least 1")

        await self.users.get_or_create_anonymous(user_id)

        expires_at = None
        if validity_days:
            expires_at = (utcnow() + timedelta(days=int(validity_days))).isoformat()

        row = await self.bundles.create(user_id, program_id, int(quantity), expires_at)
        merchant = await self.merchants.find_by_id(program["merchant_id"])
        dto = bundle_to_dto(row, program, merchant or {})

        log.info("Created bundle %s (%d x %s) for user %s", row["id"], quantity, program["item_name"], user_id)
        await self.events.emit({"type": BUNDLE_CREATED, "userId": str(user_id), "bundle": dto})
        return dto

    async def _apply_change(
        self, bundle: Dict[str, Any], program: Dict[str, Any], merchant: Dict[str, Any], new_remaining: int
    ) -> Dict[str, Any]:
        quantity_used = int(bundle["remaining_quantity"]) - new_remaining
        changes: Dict[str, Any] = {"remaining_quantity": new_remaining}
        if quantity_used > 0:
            changes["last_used_at"] = utcnow().isoformat()

        updated = await self.bundles.update(bundle["id"], changes) or {**bundle, **changes}
        dto = bundle_to_dto(updated, program, merchant)

        if quantity_used != 0:
            await self.bundles.record_usage(bundle["id"], quantity_used)
            await self.events.emit({
                "type": BUNDLE_USED,
                "userId": str(bundle["user_id"]),
                "bundle": dto,
                "quantityUsed": quantity_used,
            })
        log.info(
            "Bundle %s remaining %s -> %d", bundle["id"], bundle["remaining_quantity"], new_remaining
        )
        return dto

    async def update_bundle(
        self, bundle_id: str, remaining_quantity: int, merchant_id: Optional[str] = None
    ) -> Dict[str, Any]:
        bundle, program, merchant = await self._load(bundle_id)
        self._check_merchant(program, merchant_id)

        original = int(bundle["original_quantity"])
        if remaining_quantity < 0:
            raise BadRequestError("Remaining quantity cannot be negative")
        if remaining_quantity > original:
            raise BadRequestError(
                f"Remaining quantity cannot exceed original quantity. "
                f"Original: {original}, Requested: {remaining_quantity}"
            )
        self._check_not_expired(bundle)

        return await self._apply_change(bundle, program, merchant, int(remaining_quantity))

    async def use_bundle(
        self, bundle_id: str, quantity_used: int = 1, merchant_id: Optional[str] = None
    ) -> Dict[str, Any]:
        bundle, program, merchant = await self._load(bundle_id)
        self._check_merchant(program, merchant_id)

        if quantity_used < 1:
            raise BadRequestError("Quantity used must be at least 1")
        self._check_not_expired(bundle)
        remaining = int(bundle["remaining_quantity"])
        if quantity_used > remaining:
            raise BadRequestError(f"Insufficient quantity. Remaining: {remaining}, Requested: {quantity_used}")

        return await self._apply_change(bundle, program, merchant, remaining - quantity_used)
