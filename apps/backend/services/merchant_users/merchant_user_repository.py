"""
Merchant user repository (Supabase adapter).

Table public.merchant_user:
  - id uuid primary key default gen_random_uuid()
  - merchant_id uuid references merchant(id)
  - login text not null
  - password_hash text not null
  - role text not null ('admin' | 'staff')
  - is_active boolean default true
  - created_at timestamptz default now()
  - updated_at timestamptz default now()

Deletion is soft: is_active = false. Inactive rows are invisible to every read.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from apps.backend.services.core_service import first


class MerchantUserRepository:
    def __init__(self, supabase_client: Any, *, table: str = "merchant_user") -> None:
        self.sb = supabase_client
        self.table = table

    async def find_active_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        r = (
            self.sb.table(self.table)
            .select("*")
            .eq("id", user_id)
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        return first(r.data)

    async def find_active_by_login(self, merchant_id: str, login: str) -> Optional[Dict[str, Any]]:
        r = (
            self.sb.table(self.table)
            .select("*")
            .eq("merchant_id", merchant_id)
            .eq("login", login)
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        return first(r.data)

    async def list_active_by_merchant(self, merchant_id: str) -> List[Dict[str, Any]]:
        r = (
            self.sb.table(self.table)
            .select("*")
            .eq("merchant_id", merchant_id)
            .eq("is_active", True)
            .order("created_at", desc=True)
            .execute()
        )
        return r.data or []

    async def create(self, merchant_id: str, login: str, password_hash: str, role: str) -> Dict[str, Any]:
        payload = {
            "merchant_id": merchant_id,
            "login": login,
            "password_hash": password_hash,
            "role": role,
            "is_active": True,
        }
        r = self.sb.table(self.table).insert(payload).execute()
        return r.data[0]

    async def update(self, merchant_id: str, user_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        payload = dict(changes)
        payload["updated_at"] = datetime.now(timezone.utc).isoformat()
        r = (
            self.sb.table(self.table)
            .update(payload)
            .eq("id", user_id)
            .eq("merchant_id", merchant_id)
            .eq("is_active", True)
            .execute()
        )
        return first(r.data)

    async def soft_delete(self, merchant_id: str, user_id: str) -> bool:
        r = (
            self.sb.table(self.table)
            .update({"is_active": False, "updated_at": datetime.now(timezone.utc).isoformat()})
            .eq("id", user_id)
            .eq("merchant_id", merchant_id)
            .eq("is_active", True)
            .execute()
        )
        return bool(r.data)
