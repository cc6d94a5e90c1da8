"""
Development helpers: database probe and test-data SQL scripts.

The scripts live in the database as Supabase RPC functions
(execute_test_data_script, reset_test_data). Routes only expose this when
DEV_ROUTES_ENABLED is set.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from apps.backend.services.core_service import CoreError
from apps.backend.utils.timestamps import utcnow

log = logging.getLogger("epunch.dev")

GENERATE_RPC = "execute_test_data_script"
RESET_RPC = "reset_test_data"


class DevService:
    def __init__(self, supabase_client: Any) -> None:
        self.sb = supabase_client

    def status(self) -> Dict[str, Any]:
        try:
            r = self.sb.table("user").select("id").limit(5).execute()
        except Exception as e:
            log.warning("Dev status probe failed: %s", e)
            return {"status": "error", "message": "Supabase connection error", "details": str(e)}

        rows = r.data or []
        return {
            "status": "success",
            "message": "Development API is active",
            "dbConnection": "ok",
            "userSample": [u["id"] for u in rows],
            "userCount": len(rows),
            "timestamp": utcnow().isoformat(),
        }

    def _rpc(self, name: str, done: str) -> Dict[str, Any]:
        try:
            self.sb.rpc(name, {}).execute()
        except Exception as e:
            log.error("RPC %s failed: %s", name, e)
            raise CoreError(f"{name} failed: {e}", 502) from e
        log.info("RPC %s completed", name)
        return {"status": "success", "message": done, "timestamp": utcnow().isoformat()}

    def generate_test_data(self) -> Dict[str, Any]:
        return self._rpc(GENERATE_RPC, "Test data generated successfully")

    def reset_test_data(self) -> Dict[str, Any]:
        return self._rpc(RESET_RPC, "Test data reset successfully")
