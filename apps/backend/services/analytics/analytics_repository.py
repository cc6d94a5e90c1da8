"""
Analytics snapshot loader.

PostgREST has no GROUP BY, so analytics pull the merchant's rows once and
aggregate in Python (see analytics_service). Bulk reads are paged with
`.range()` and id filters are sent in chunks (core_service.fetch_all,
core_service.chunked), so totals are not cut off at PostgREST's max-rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from apps.backend.services.loyalty.loyalty_repository import LoyaltyRepository
from apps.backend.services.punches.punch_card_repository import PunchCardRepository
from apps.backend.services.users.user_repository import UserRepository


@dataclass
class MerchantActivity:
    programs: List[Dict[str, Any]] = field(default_factory=list)
    cards: List[Dict[str, Any]] = field(default_factory=list)
    punches: List[Dict[str, Any]] = field(default_factory=list)
    users: Dict[str, Dict[str, Any]] = field(default_factory=dict)


class AnalyticsRepository:
    def __init__(self, supabase_client: Any) -> None:
        self.programs = LoyaltyRepository(supabase_client)
        self.cards = PunchCardRepository(supabase_client)
        self.users = UserRepository(supabase_client)

    async def load(self, merchant_id: str, program_id: Optional[str] = None) -> MerchantActivity:
        programs = await self.programs.list_all_programs(merchant_id)
        if program_id:
            programs = [p for p in programs if str(p["id"]) == str(program_id)]

        cards = await self.cards.list_cards_for_programs(p["id"] for p in programs)
        punches = await self.cards.list_punches_for_cards(c["id"] for c in cards)
        users = await self.users.find_by_ids(c["user_id"] for c in cards)
        return MerchantActivity(programs=programs, cards=cards, punches=punches, users=users)
