"""
Bundle program repository (Supabase adapter).

Table public.bundle_program:
  - id uuid primary key default gen_random_uuid()
  - merchant_id uuid references merchant(id)
  - name text not null            (1..255)
  - item_name text not null       (1..100)
  - description text null
  - quantity_presets jsonb        ([{"quantity": int, "validityDays": int|null}])
  - is_active boolean default true
  - is_deleted boolean default false
  - created_at / updated_at / deleted_at timestamptz
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from apps.backend.services.core_service import first


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class BundleProgramRepository:
    def __init__(self, supabase_client: Any, *, table: str = "bundle_program") -> None:
        self.sb = supabase_client
        self.table = table

    async def find_by_id(self, program_id: str, include_deleted: bool = False) -> Optional[Dict[str, Any]]:
        q = self.sb.table(self.table).select("*").eq("id", program_id)
        if not include_deleted:
            q = q.eq("is_deleted", False)
        r = q.limit(1).execute()
        return first(r.data)

    async def find_by_ids(self, program_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        ids = sorted({str(p) for p in program_ids if p})
        if not ids:
            return {}
        r = self.sb.table(self.table).select("*").in_("id", ids).execute()
        return {str(row["id"]): row for row in (r.data or [])}

    async def list_by_merchant(self, merchant_id: str) -> List[Dict[str, Any]]:
        r = (
            self.sb.table(self.table)
            .select("*")
            .eq("merchant_id", merchant_id)
            .eq("is_deleted", False)
            .order("created_at", desc=True)
            .execute()
        )
        return r.data or []

    async def create(self, merchant_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = {
            "merchant_id": merchant_id,
            "name": data["name"],
            "item_name": data["item_name"],
            "description": data.get("description"),
            "quantity_presets": data.get("quantity_presets") or [],
            "is_active": bool(data.get("is_active", True)),
            "is_deleted": False,
        }
        r = self.sb.table(self.table).insert(payload).execute()
        return r.data[0]

    async def update(self, merchant_id: str, program_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        payload = dict(changes)
        payload["updated_at"] = _now()
        r = (
            self.sb.table(self.table)
            .update(payload)
            .eq("id", program_id)
            .eq("merchant_id", merchant_id)
            .eq("is_deleted", False)
            .execute()
        )
        return first(r.data)

    async def soft_delete(self, merchant_id: str, program_id: str) -> bool:
        row = await self.update(merchant_id, program_id, {"is_deleted": True, "deleted_at": _now()})
        return bool(row)
