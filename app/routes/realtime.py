"""
WebSocket endpoint for real-time issue events ("new_issue").
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.services.realtime import get_broadcaster

router = APIRouter(tags=["Realtime"])


@router.websocket("/ws")
async def issue_events(websocket: WebSocket):
    broadcaster = get_broadcaster()
    await broadcaster.connect(websocket)
    try:
        # Clients only listen; incoming messages are ignored.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await broadcaster.disconnect(websocket)
