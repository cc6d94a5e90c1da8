# apps/backend/utils/keepalive.py

import logging
import os

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler

log = logging.getLogger("epunch.keepalive")

# --------------------------------------------------------
# Supabase REST Keepalive
# Free-tier projects pause after a week without REST activity.
# --------------------------------------------------------

JOB_ID = "supabase_rest_keepalive"


async def supabase_rest_ping() -> bool:
    """
    Performs a real Supabase REST request that counts as activity.
    Returns True when Supabase answered below 400.
    """
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    if not url or not key:
        log.warning("[KEEPALIVE] Supabase env vars missing, skipping ping")
        return False

    headers = {
        "apikey": key,
        "Authorization": f"Bearer {key}",
    }

    try:
        async with httpx.AsyncClient(timeout=10) as client:
            # no table dependency
            res = await client.get(f"{url.rstrip('/')}/rest/v1/", headers=headers)
    except httpx.HTTPError as e:
        log.error("[KEEPALIVE] Supabase REST error: %s", e)
        return False

    if res.status_code < 400:
        log.info("[KEEPALIVE] Supabase REST ping OK")
        return True
    log.warning("[KEEPALIVE] Supabase REST ping failed (%s)", res.status_code)
    return False


def start_keepalive_tasks(scheduler: AsyncIOScheduler, interval_seconds: int = 300) -> None:
    scheduler.add_job(
        supabase_rest_ping,
        "interval",
        seconds=interval_seconds,
        id=JOB_ID,
        replace_existing=True,
    )
    log.info("[KEEPALIVE] Scheduled Supabase REST ping every %ss", interval_seconds)
