"""
Merchant repository (Supabase adapter).

Table public.merchant:
  - id uuid primary key default gen_random_uuid()
  - name text not null
  - address text null
  - slug text unique not null
  - logo_url text null
  - created_at timestamptz default now()
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from apps.backend.services.core_service import first


class MerchantRepository:
    def __init__(self, supabase_client: Any, *, table: str = "merchant") -> None:
        self.sb = supabase_client
        self.table = table

    async def find_by_id(self, merchant_id: str) -> Optional[Dict[str, Any]]:
        r = self.sb.table(self.table).select("*").eq("id", merchant_id).limit(1).execute()
        return first(r.data)

    async def find_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        r = self.sb.table(self.table).select("*").eq("slug", slug).limit(1).execute()
        return first(r.data)

    async def find_by_ids(self, merchant_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        ids = sorted({str(m) for m in merchant_ids if m})
        if not ids:
            return {}
        r = self.sb.table(self.table).select("*").in_("id", ids).execute()
        return {str(row["id"]): row for row in (r.data or [])}

    async def list_all(self) -> List[Dict[str, Any]]:
        r = self.sb.table(self.table).select("*").order("created_at", desc=True).execute()
        return r.data or []

    async def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        r = self.sb.table(self.table).insert(payload).execute()
        return r.data[0]

    async def update(self, merchant_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        r = self.sb.table(self.table).update(changes).eq("id", merchant_id).execute()
        return first(r.data)

    async def delete(self, merchant_id: str) -> bool:
        r = self.sb.table(self.table).delete().eq("id", merchant_id).execute()
        return bool(r.data)
