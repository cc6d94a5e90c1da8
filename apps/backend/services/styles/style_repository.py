"""
Punch card style repository (Supabase adapter).

Table public.punch_card_style:
  - id uuid primary key default gen_random_uuid()
  - merchant_id uuid references merchant(id)
  - loyalty_program_id uuid null   (null = merchant default style)
  - primary_color text null
  - secondary_color text null
  - logo_url text null
  - background_image_url text null
  - punch_icons jsonb null
  - created_at timestamptz default now()
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from apps.backend.services.core_service import first

STYLE_COLUMNS = ("primary_color", "secondary_color", "logo_url", "background_image_url", "punch_icons")


class StyleRepository:
    def __init__(self, supabase_client: Any, *, table: str = "punch_card_style") -> None:
        self.sb = supabase_client
        self.table = table

    async def find_merchant_default(self, merchant_id: str) -> Optional[Dict[str, Any]]:
        r = (
            self.sb.table(self.table)
            .select("*")
            .eq("merchant_id", merchant_id)
            .is_("loyalty_program_id", "null")
            .limit(1)
            .execute()
        )
        return first(r.data)

    async def find_program_style(self, merchant_id: str, program_id: str) -> Optional[Dict[str, Any]]:
        r = (
            self.sb.table(self.table)
            .select("*")
            .eq("merchant_id", merchant_id)
            .eq("loyalty_program_id", program_id)
            .limit(1)
            .execute()
        )
        return first(r.data)

    async def find_by_merchants(self, merchant_ids: Iterable[str]) -> list:
        ids = sorted({str(m) for m in merchant_ids if m})
        if not ids:
            return []
        r = self.sb.table(self.table).select("*").in_("merchant_id", ids).execute()
        return r.data or []

    async def save_merchant_default(self, merchant_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        existing = await self.find_merchant_default(merchant_id)
        if existing:
            r = (
                self.sb.table(self.table)
                .update(values)
                .eq("merchant_id", merchant_id)
                .is_("loyalty_program_id", "null")
                .execute()
            )
            return r.data[0]
        payload = {"merchant_id": merchant_id, "loyalty_program_id": None}
        payload.update(values)
        r = self.sb.table(self.table).insert(payload).execute()
        return r.data[0]

    async def save_program_style(self, merchant_id: str, program_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        existing = await self.find_program_style(merchant_id, program_id)
        if existing:
            r = (
                self.sb.table(self.table)
                .update(values)
                .eq("merchant_id", merchant_id)
                .eq("loyalty_program_id", program_id)
                .execute()
            )
            return r.data[0]
        payload = {"merchant_id": merchant_id, "loyalty_program_id": program_id}
        payload.update(values)
        r = self.sb.table(self.table).insert(payload).execute()
        return r.data[0]
