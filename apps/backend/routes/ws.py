import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from apps.backend.services.events.event_hub import hub

log = logging.getLogger("epunch.ws")

router = APIRouter(tags=["events"])


@router.websocket("/ws")
async def app_events_socket(websocket: WebSocket):
    """
    Customer app push channel. The client registers with its user id and
    then only listens; app events arrive as {"event": "app_event", ...}.
    """
    await websocket.accept()
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                await websocket.send_json({"event": "error", "data": {"message": "Invalid JSON"}})
                continue
            if not isinstance(message, dict) or message.get("event") != "register_user":
                log.debug("Ignoring websocket message: %s", message)
                continue

            user_id = message.get("userId")
            if not user_id:
                await websocket.send_json({"event": "error", "data": {"message": "userId is required"}})
                continue

            hub.register(str(user_id), websocket)
            await websocket.send_json({"event": "registration_confirmed", "data": {"userId": str(user_id)}})
    except WebSocketDisconnect:
        log.info("Websocket disconnected")
    finally:
        hub.unregister(websocket)
