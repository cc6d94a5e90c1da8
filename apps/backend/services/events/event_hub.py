"""
In-process app event fan-out to connected user sockets.

Services emit plain dict events carrying a "type" and a "userId"; the hub
pushes them to every websocket registered for that user. Delivery is
best-effort: nothing is queued for users that are offline.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Set

log = logging.getLogger("epunch.events")

PUNCH_ADDED = "PUNCH_ADDED"
REWARD_CLAIMED = "REWARD_CLAIMED"
BUNDLE_CREATED = "BUNDLE_CREATED"
BUNDLE_USED = "BUNDLE_USED"
BENEFIT_CARD_CREATED = "BENEFIT_CARD_CREATED"


class EventHub:
    def __init__(self) -> None:
        self._user_sockets: Dict[str, Set[Any]] = {}

    def register(self, user_id: str, socket: Any) -> None:
        self._user_sockets.setdefault(str(user_id), set()).add(socket)
        log.info("Registered socket for user %s (%d open)", user_id, len(self._user_sockets[str(user_id)]))

    def unregister(self, socket: Any) -> None:
        for user_id in list(self._user_sockets):
            sockets = self._user_sockets[user_id]
            if socket in sockets:
                sockets.discard(socket)
                if not sockets:
                    del self._user_sockets[user_id]
                log.info("Removed socket from user %s", user_id)

    def connected_users(self) -> Set[str]:
        return set(self._user_sockets)

    async def emit(self, event: Dict[str, Any]) -> int:
        """Returns the number of sockets the event reached."""
        user_id = str(event.get("userId") or "")
        sockets = list(self._user_sockets.get(user_id, ()))
        if not sockets:
            log.info("No connected sockets for user %s, skipping event %s", user_id, event.get("type"))
            return 0

        delivered = 0
        for socket in sockets:
            try:
                await socket.send_json({"event": "app_event", "data": event})
                delivered += 1
            except Exception as e:
                log.warning("Dropping socket for user %s after send failure: %s", user_id, e)
                self.unregister(socket)

        log.info("Delivered %s to %d socket(s) for user %s", event.get("type"), delivered, user_id)
        return delivered


hub = EventHub()
