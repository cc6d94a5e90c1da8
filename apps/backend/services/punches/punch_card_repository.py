"""
Punch card repository (Supabase adapter).

Tables:
1) public.punch_card
   - id uuid primary key default gen_random_uuid()
   - user_id uuid references "user"(id)
   - loyalty_program_id uuid references loyalty_program(id)
   - current_punches int default 0
   - status text default 'ACTIVE'  ('ACTIVE' | 'REWARD_READY' | 'REWARD_REDEEMED')
   - created_at timestamptz default now()
   - last_punch_at timestamptz null
   - completed_at timestamptz null   (set when the card reaches REWARD_READY)
   - redeemed_at timestamptz null    (set when the card reaches REWARD_REDEEMED)

2) public.punch
   - id uuid primary key default gen_random_uuid()
   - punch_card_id uuid references punch_card(id)
   - created_at timestamptz default now()
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from apps.backend.services.core_service import chunked, fetch_all, first

STATUS_ACTIVE = "ACTIVE"
STATUS_REWARD_READY = "REWARD_READY"
STATUS_REWARD_REDEEMED = "REWARD_REDEEMED"


class PunchCardRepository:
    def __init__(
        self,
        supabase_client: Any,
        *,
        table_cards: str = "punch_card",
        table_punches: str = "punch",
    ) -> None:
        self.sb = supabase_client
        self.table_cards = table_cards
        self.table_punches = table_punches

    async def find_card(self, card_id: str) -> Optional[Dict[str, Any]]:
        r = self.sb.table(self.table_cards).select("*").eq("id", card_id).limit(1).execute()
        return first(r.data)

    async def find_latest_card(self, user_id: str, program_id: str, status: str) -> Optional[Dict[str, Any]]:
        r = (
            self.sb.table(self.table_cards)
            .select("*")
            .eq("user_id", user_id)
            .eq("loyalty_program_id", program_id)
            .eq("status", status)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        return first(r.data)

    async def list_user_cards(self, user_id: str) -> List[Dict[str, Any]]:
        r = (
            self.sb.table(self.table_cards)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return r.data or []

    async def list_cards_for_programs(self, program_ids: Iterable[str]) -> List[Dict[str, Any]]:
        ids = sorted({str(p) for p in program_ids if p})
        if not ids:
            return []
        rows: List[Dict[str, Any]] = []
        for batch in chunked(ids):
            rows.extend(fetch_all(
                lambda batch=batch: self.sb.table(self.table_cards)
                .select("*")
                .in_("loyalty_program_id", batch)
                .order("id")
            ))
        return rows

    async def create_card(self, user_id: str, program_id: str) -> Dict[str, Any]:
        payload = {
            "user_id": user_id,
            "loyalty_program_id": program_id,
            "current_punches": 0,
            "status": STATUS_ACTIVE,
        }
        r = self.sb.table(self.table_cards).insert(payload).execute()
        return r.data[0]

    async def update_card(self, card_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        r = self.sb.table(self.table_cards).update(changes).eq("id", card_id).execute()
        return r.data[0]

    async def create_punch(self, card_id: str) -> Dict[str, Any]:
        r = self.sb.table(self.table_punches).insert({"punch_card_id": card_id}).execute()
        return r.data[0]

    async def list_punches_for_cards(self, card_ids: Iterable[str]) -> List[Dict[str, Any]]:
        ids = sorted({str(c) for c in card_ids if c})
        if not ids:
            return []
        rows: List[Dict[str, Any]] = []
        for batch in chunked(ids):
            rows.extend(fetch_all(
                lambda batch=batch: self.sb.table(self.table_punches)
                .select("*")
                .in_("punch_card_id", batch)
                .order("id")
            ))
        return rows
