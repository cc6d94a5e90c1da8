import logging
import os
from typing import Optional

from supabase import create_client, Client

log = logging.getLogger("epunch.db")

_client: Optional[Client] = None


def get_supabase() -> Optional[Client]:
    global _client
    if _client is not None:
        return _client

    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    if not (url and key):
        return None
    try:
        _client = create_client(url, key)
    except Exception as e:
        log.error("Failed to create Supabase client: %s", e)
        return None
    return _client
