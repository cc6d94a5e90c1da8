"""
Bundle repository (Supabase adapter).

Tables:
1) public.bundle
   - id uuid primary key default gen_random_uuid()
   - user_id uuid references "user"(id)
   - bundle_program_id uuid references bundle_program(id)
   - original_quantity int not null
   - remaining_quantity int not null   (0..original_quantity)
   - expires_at timestamptz null
   - created_at timestamptz default now()
   - last_used_at timestamptz null

2) public.bundle_usage
   - id uuid primary key default gen_random_uuid()
   - bundle_id uuid references bundle(id)
   - quantity_used int not null   (negative when a merchant tops a bundle back up)
   - created_at timestamptz default now()
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from apps.backend.services.core_service import first


class BundleRepository:
    def __init__(
        self,
        supabase_client: Any,
        *,
        table_bundles: str = "bundle",
        table_usage: str = "bundle_usage",
    ) -> None:
        self.sb = supabase_client
        self.table_bundles = table_bundles
        self.table_usage = table_usage

    async def find_by_id(self, bundle_id: str) -> Optional[Dict[str, Any]]:
        r = self.sb.table(self.table_bundles).select("*").eq("id", bundle_id).limit(1).execute()
        return first(r.data)

    async def list_user_bundles(self, user_id: str) -> List[Dict[str, Any]]:
        r = (
            self.sb.table(self.table_bundles)
            .select("*")
            .eq("user_id", user_id)
            .gt("remaining_quantity", 0)
            .order("created_at", desc=True)
            .execute()
        )
        return r.data or []

    async def create(
        self, user_id: str, program_id: str, quantity: int, expires_at: Optional[str]
    ) -> Dict[str, Any]:
        payload = {
            "user_id": user_id,
            "bundle_program_id": program_id,
            "original_quantity": quantity,
            "remaining_quantity": quantity,
            "expires_at": expires_at,
        }
        r = self.sb.table(self.table_bundles).insert(payload).execute()
        return r.data[0]

    async def update(self, bundle_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        r = self.sb.table(self.table_bundles).update(changes).eq("id", bundle_id).execute()
        return first(r.data)

    async def record_usage(self, bundle_id: str, quantity_used: int) -> Dict[str, Any]:
        r = (
            self.sb.table(self.table_usage)
            .insert({"bundle_id": bundle_id, "quantity_used": quantity_used})
            .execute()
        )
        return r.data[0]
