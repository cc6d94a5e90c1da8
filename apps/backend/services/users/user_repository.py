"""
End-user repository (Supabase adapter).

Table public."user":
  - id uuid primary key
  - external_id text null   (set once the user registers; null = anonymous)
  - email text null
  - super_admin boolean default false
  - created_at timestamptz default now()

Anonymous users are created lazily with the id their device generated.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional

from apps.backend.services.core_service import chunked, fetch_all, first

log = logging.getLogger("epunch.users")


class UserRepository:
    def __init__(self, supabase_client: Any, *, table: str = "user") -> None:
        self.sb = supabase_client
        self.table = table

    async def find_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        r = self.sb.table(self.table).select("*").eq("id", user_id).limit(1).execute()
        return first(r.data)

    async def find_by_ids(self, user_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        ids = sorted({str(u) for u in user_ids if u})
        if not ids:
            return {}
        found: Dict[str, Dict[str, Any]] = {}
        for batch in chunked(ids):
            rows = fetch_all(lambda batch=batch: self.sb.table(self.table).select("*").in_("id", batch).order("id"))
            found.update((str(row["id"]), row) for row in rows)
        return found

    async def get_or_create_anonymous(self, user_id: str) -> Dict[str, Any]:
        user = await self.find_by_id(user_id)
        if user:
            return user
        r = self.sb.table(self.table).insert({"id": user_id}).execute()
        log.info("Created anonymous user %s", user_id)
        return r.data[0]
