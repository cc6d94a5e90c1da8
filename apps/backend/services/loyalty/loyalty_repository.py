"""
Loyalty Program Repository (Supabase adapter)
=============================================

Table public.loyalty_program:
  - id uuid primary key default gen_random_uuid()
  - merchant_id uuid references merchant(id)
  - name text not null
  - description text null
  - required_punches int not null  (1..10)
  - reward_description text not null
  - is_active boolean default true
  - is_deleted boolean default false
  - created_at timestamptz default now()
  - updated_at timestamptz default now()

Deleted programs stay in the table (punch cards keep pointing at them) but
are hidden from every merchant-facing read.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from apps.backend.services.core_service import fetch_all, first


class LoyaltyRepository:
    def __init__(self, supabase_client: Any, *, table_programs: str = "loyalty_program") -> None:
        self.sb = supabase_client
        self.table_programs = table_programs

    async def find_program(self, program_id: str, include_deleted: bool = False) -> Optional[Dict[str, Any]]:
        q = self.sb.table(self.table_programs).select("*").eq("id", program_id)
        if not include_deleted:
            q = q.eq("is_deleted", False)
        r = q.limit(1).execute()
        return first(r.data)

    async def find_programs_by_ids(self, program_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        ids = sorted({str(p) for p in program_ids if p})
        if not ids:
            return {}
        r = self.sb.table(self.table_programs).select("*").in_("id", ids).execute()
        return {str(row["id"]): row for row in (r.data or [])}

    async def list_programs(self, merchant_id: str, include_inactive: bool = False) -> List[Dict[str, Any]]:
        q = (
            self.sb.table(self.table_programs)
            .select("*")
            .eq("merchant_id", merchant_id)
            .eq("is_deleted", False)
        )
        if not include_inactive:
            q = q.eq("is_active", True)
        r = q.order("created_at", desc=True).execute()
        return r.data or []

    async def list_all_programs(self, merchant_id: str) -> List[Dict[str, Any]]:
        """Every program of the merchant, deleted ones included (analytics)."""
        return fetch_all(
            lambda: self.sb.table(self.table_programs).select("*").eq("merchant_id", merchant_id).order("id")
        )

    async def create_program(self, merchant_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = {
            "merchant_id": merchant_id,
            "name": data["name"],
            "description": data.get("description"),
            "required_punches": int(data["required_punches"]),
            "reward_description": data["reward_description"],
            "is_active": bool(data.get("is_active", True)),
            "is_deleted": False,
        }
        r = self.sb.table(self.table_programs).insert(payload).execute()
        return r.data[0]

    async def update_program(self, merchant_id: str, program_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        payload = dict(changes)
        payload["updated_at"] = datetime.now(timezone.utc).isoformat()
        r = (
            self.sb.table(self.table_programs)
            .update(payload)
            .eq("id", program_id)
            .eq("merchant_id", merchant_id)
            .eq("is_deleted", False)
            .execute()
        )
        return first(r.data)

    async def soft_delete_program(self, merchant_id: str, program_id: str) -> bool:
        return bool(await self.update_program(merchant_id, program_id, {"is_deleted": True, "is_active": False}))
