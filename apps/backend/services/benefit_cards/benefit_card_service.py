from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from apps.backend.services.benefit_cards.benefit_card_repository import BenefitCardRepository
from apps.backend.services.core_service import ForbiddenError, NotFoundError
from apps.backend.services.events.event_hub import BENEFIT_CARD_CREATED, hub
from apps.backend.services.mappers import benefit_card_to_dto
from apps.backend.services.merchants.merchant_repository import MerchantRepository
from apps.backend.services.styles.style_service import StyleService
from apps.backend.services.users.user_repository import UserRepository

log = logging.getLogger("epunch.benefit_cards")


class BenefitCardService:
    """One-off perks (a free item, a discount) a merchant grants a customer."""

    def __init__(
        self,
        cards: BenefitCardRepository,
        merchants: MerchantRepository,
        users: UserRepository,
        styles: StyleService,
        events=hub,
    ) -> None:
        self.cards = cards
        self.merchants = merchants
        self.users = users
        self.styles = styles
        self.events = events

    async def _to_dto(self, card: Dict[str, Any]) -> Dict[str, Any]:
        merchant = await self.merchants.find_by_id(card["merchant_id"])
        if not merchant:
            raise NotFoundError(f"Merchant for benefit card {card['id']} not found")
        styles = await self.styles.get_merchant_default(merchant["id"])
        return benefit_card_to_dto(card, merchant, styles)

    async def get_card(self, card_id: str, merchant_id: Optional[str] = None) -> Dict[str, Any]:
        card = await self.cards.find_by_id(card_id)
        if not card:
            raise NotFoundError(f"Benefit card with ID {card_id} not found")
        if merchant_id is not None and str(card["merchant_id"]) != str(merchant_id):
            raise ForbiddenError("The benefit card does not belong to the merchant")
        return await self._to_dto(card)

    async def list_user_cards(self, user_id: str) -> List[Dict[str, Any]]:
        rows = await self.cards.list_user_cards(user_id)
        merchants = await self.merchants.find_by_ids(r["merchant_id"] for r in rows)
        styles = await self.styles.resolve_many((str(m), None) for m in merchants)

        out = []
        for row in rows:
            merchant = merchants.get(str(row["merchant_id"]))
            if not merchant:
                continue
            out.append(benefit_card_to_dto(row, merchant, styles.get((str(row["merchant_id"]), None))))
        log.info("Found %d benefit cards for user %s", len(out), user_id)
        return out

    async def create_card(
        self,
        user_id: str,
        merchant_id: str,
        item_name: str,
        expires_at: Union[str, datetime, None] = None,
    ) -> Dict[str, Any]:
        if not await self.merchants.find_by_id(merchant_id):
            raise NotFoundError(f"Merchant with ID {merchant_id} not found")
        await self.users.get_or_create_anonymous(user_id)

        if isinstance(expires_at, datetime):
            expires_at = expires_at.isoformat()

        row = await self.cards.create(user_id, merchant_id, item_name, expires_at)
        dto = await self._to_dto(row)

        log.info("Created benefit card %s (%s) for user %s", row["id"], item_name, user_id)
        await self.events.emit({"type": BENEFIT_CARD_CREATED, "userId": str(user_id), "benefitCard": dto})
        return dto
