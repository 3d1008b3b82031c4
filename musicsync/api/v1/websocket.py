from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from musicsync.core.exceptions import OriginRejected
from musicsync.core.logging import get_connection_logger, get_logger
from musicsync.dependencies import get_event_router, get_websocket_manager
from musicsync.schemas.commands import parse_command
from musicsync.services.event_router import EventRouter
from musicsync.services.websocket_manager import WebSocketManager
from musicsync.utils.formatters import format_pong

logger = get_logger("api.websocket")
router = APIRouter()


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    manager: WebSocketManager = Depends(get_websocket_manager),
    event_router: EventRouter = Depends(get_event_router),
):
    """
    Event connection of one participant.

    Clients send ``{"type": ..., "data": {...}}`` frames:
    - create-room / join-room
    - send-message / typing
    - add-song / select-song / music-control

    and receive the room events those produce. The text frame ``ping`` is
    answered with a ``pong`` event.
    """
    origin = websocket.headers.get("origin")
    try:
        manager.check_origin(origin)
    except OriginRejected as e:
        logger.warning(f"WebSocket connection rejected: origin {e.origin} not allowed")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=e.message)
        return

    connection_id = await manager.connect(websocket)
    log = get_connection_logger("api.websocket", connection_id)
    log.info(f"Connected - {manager.get_connection_count()} total")

    try:
        while True:
            data = await websocket.receive_text()

            if data == "ping":
                await manager.send(connection_id, format_pong().model_dump())
                continue

            try:
                command = parse_command(data)
            except ValidationError as e:
                log.warning(f"Ignoring malformed event: {e}")
                continue

            log.debug(f"Received {command.type}")
            await event_router.dispatch(connection_id, command)

    except WebSocketDisconnect:
        log.info("Disconnected")

    except Exception as e:
        log.error(f"WebSocket error: {e}", exc_info=True)
        try:
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR, reason=str(e))
        except RuntimeError:
            # Already closed
            pass

    finally:
        await event_router.disconnect(connection_id)
        await manager.disconnect(connection_id)
        log.debug(f"Cleaned up - {manager.get_connection_count()} remaining")
