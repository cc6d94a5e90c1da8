import os
import platform
import sys
from typing import Any, Dict

from apps.backend import flags
from apps.backend.services.icons.icons_repository import icon_index
from apps.backend.services.events.event_hub import hub
from apps.backend.utils.settings import settings


def system_snapshot() -> Dict[str, Any]:
    return {
        "python_version": sys.version,
        "platform": platform.platform(),
        "pid": os.getpid(),
        "version": settings.EPUNCH_VERSION,
        "env": {
            "ENVIRONMENT": settings.ENVIRONMENT,
            "DEV_ROUTES_ENABLED": flags.enabled("DEV_ROUTES_ENABLED"),
            "KEEPALIVE_ENABLED": flags.enabled("KEEPALIVE_ENABLED"),
            "SUPABASE_CONFIGURED": bool(os.getenv("SUPABASE_URL") and os.getenv("SUPABASE_SERVICE_ROLE_KEY")),
        },
        "icons": {"built": icon_index.built, "count": len(icon_index)},
        "websocket_users": len(hub.connected_users()),
    }
