"""
Punch Service
=============

Responsibilities:
- Record a punch for a (user, loyalty program) pair
- Roll a card over to REWARD_READY when it fills up and open a fresh one
- Redeem finished cards
- Read cards for the customer app

Design:
- No HTTP here. Routes handle auth, this enforces business rules.
- Customers are anonymous until they register: the first punch creates
  their user row with the id their device generated.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from apps.backend.services.core_service import BadRequestError, ForbiddenError, NotFoundError
from apps.backend.services.events.event_hub import PUNCH_ADDED, REWARD_CLAIMED, hub
from apps.backend.services.loyalty.loyalty_repository import LoyaltyRepository
from apps.backend.services.mappers import punch_card_to_dto
from apps.backend.services.merchants.merchant_repository import MerchantRepository
from apps.backend.services.punches.punch_card_repository import (
    STATUS_ACTIVE,
    STATUS_REWARD_READY,
    STATUS_REWARD_REDEEMED,
    PunchCardRepository,
)
from apps.backend.services.styles.style_service import StyleService
from apps.backend.services.users.user_repository import UserRepository

log = logging.getLogger("epunch.punches")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class PunchService:
    def __init__(
        self,
        cards: PunchCardRepository,
        programs: LoyaltyRepository,
        merchants: MerchantRepository,
        users: UserRepository,
        styles: StyleService,
        events=hub,
    ) -> None:
        self.cards = cards
        self.programs = programs
        self.merchants = merchants
        self.users = users
        self.styles = styles
        self.events = events

    async def _card_dto(self, card: Dict[str, Any], program: Dict[str, Any], merchant: Dict[str, Any]) -> Dict[str, Any]:
        styles = await self.styles.resolve(merchant["id"], program["id"])
        return punch_card_to_dto(card, program, merchant, styles)

    async def _load_card(self, card_id: str):
        card = await self.cards.find_card(card_id)
        if not card:
            raise NotFoundError(f"Punch card with ID {card_id} not found")
        program = await self.programs.find_program(card["loyalty_program_id"], include_deleted=True)
        if not program:
            raise NotFoundError(f"Loyalty program for punch card {card_id} not found")
        merchant = await self.merchants.find_by_id(program["merchant_id"])
        if not merchant:
            raise NotFoundError(f"Merchant for punch card {card_id} not found")
        return card, program, merchant

    async def record_punch(self, user_id: str, program_id: str, merchant_id: Optional[str] = None) -> Dict[str, Any]:
        """
        merchant_id is the acting merchant user's merchant; None means a
        super admin who may punch for any program.
        """
        await self.users.get_or_create_anonymous(user_id)

        program = await self.programs.find_program(program_id, include_deleted=True)
        if not program or program.get("is_deleted"):
            raise BadRequestError(f"Loyalty program {program_id} not found")
        if not program.get("is_active", True):
            raise BadRequestError(f"Loyalty program {program_id} is not active")
        if merchant_id is not None and str(program["merchant_id"]) != str(merchant_id):
            raise ForbiddenError("The loyalty program does not belong to the merchant")

        merchant = await self.merchants.find_by_id(program["merchant_id"])
        if not merchant:
            raise NotFoundError(f"Merchant for loyalty program {program_id} not found")

        card = await self.cards.find_latest_card(user_id, program_id, STATUS_ACTIVE)
        if not card:
            card = await self.cards.create_card(user_id, program_id)
            log.info("Opened punch card %s for user %s program %s", card["id"], user_id, program_id)

        required = int(program["required_punches"])
        current = int(card.get("current_punches") or 0) + 1
        now = _now()
        changes: Dict[str, Any] = {"current_punches": current, "last_punch_at": now}

        reward_achieved = current >= required
        if reward_achieved:
            changes["status"] = STATUS_REWARD_READY
            changes["completed_at"] = now

        await self.cards.create_punch(card["id"])
        card = await self.cards.update_card(card["id"], changes)

        new_card = None
        if reward_achieved:
            new_card = await self.cards.create_card(user_id, program_id)
            log.info("Punch card %s is reward ready; opened %s", card["id"], new_card["id"])

        card_dto = await self._card_dto(card, program, merchant)
        new_card_dto = await self._card_dto(new_card, program, merchant) if new_card else None

        log.info("Punch recorded card=%s punches=%d/%d", card["id"], current, required)
        await self.events.emit({
            "type": PUNCH_ADDED,
            "userId": str(user_id),
            "punchCard": card_dto,
            "newCard": new_card_dto,
        })

        return {
            "rewardAchieved": reward_achieved,
            "currentPunches": current,
            "requiredPunches": required,
            "punchCard": card_dto,
            "newPunchCard": new_card_dto,
        }

    async def redeem(self, card_id: str, merchant_id: Optional[str] = None) -> Dict[str, Any]:
        card, program, merchant = await self._load_card(card_id)
        if merchant_id is not None and str(program["merchant_id"]) != str(merchant_id):
            raise ForbiddenError("The punch card does not belong to the merchant")
        if card["status"] != STATUS_REWARD_READY:
            raise BadRequestError(f"Punch card {card_id} is not ready for redemption (status {card['status']})")

        card = await self.cards.update_card(card_id, {"status": STATUS_REWARD_REDEEMED, "redeemed_at": _now()})
        dto = await self._card_dto(card, program, merchant)
        log.info("Redeemed punch card %s", card_id)

        await self.events.emit({"type": REWARD_CLAIMED, "userId": str(card["user_id"]), "card": dto})
        return dto

    async def get_card(self, card_id: str) -> Dict[str, Any]:
        card, program, merchant = await self._load_card(card_id)
        return await self._card_dto(card, program, merchant)

    async def list_user_cards(self, user_id: str) -> List[Dict[str, Any]]:
        cards = await self.cards.list_user_cards(user_id)
        if not cards:
            return []

        programs = await self.programs.find_programs_by_ids(c["loyalty_program_id"] for c in cards)
        merchants = await self.merchants.find_by_ids(p["merchant_id"] for p in programs.values())
        styles = await self.styles.resolve_many(
            (str(p["merchant_id"]), str(p["id"])) for p in programs.values()
        )

        out: List[Dict[str, Any]] = []
        for card in cards:
            program = programs.get(str(card["loyalty_program_id"]))
            merchant = merchants.get(str(program["merchant_id"])) if program else None
            if not program or not merchant:
                log.warning("Skipping punch card %s with dangling program or merchant", card["id"])
                continue
            key = (str(program["merchant_id"]), str(program["id"]))
            out.append(punch_card_to_dto(card, program, merchant, styles.get(key)))
        return out
