"""
Benefit card repository (Supabase adapter).

Table public.benefit_card:
  - id uuid primary key default gen_random_uuid()
  - user_id uuid references "user"(id)
  - merchant_id uuid references merchant(id)
  - item_name text not null
  - expires_at timestamptz null
  - created_at timestamptz default now()
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from apps.backend.services.core_service import first


class BenefitCardRepository:
    def __init__(self, supabase_client: Any, *, table: str = "benefit_card") -> None:
        self.sb = supabase_client
        self.table = table

    async def find_by_id(self, card_id: str) -> Optional[Dict[str, Any]]:
        r = self.sb.table(self.table).select("*").eq("id", card_id).limit(1).execute()
        return first(r.data)

    async def list_user_cards(self, user_id: str) -> List[Dict[str, Any]]:
        r = (
            self.sb.table(self.table)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return r.data or []

    async def create(self, user_id: str, merchant_id: str, item_name: str, expires_at: Optional[str]) -> Dict[str, Any]:
        payload = {
            "user_id": user_id,
            "merchant_id": merchant_id,
            "item_name": item_name,
            "expires_at": expires_at,
        }
        r = self.sb.table(self.table).insert(payload).execute()
        return r.data[0]
