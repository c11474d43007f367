# app/api/v1/endpoints/realtime.py
from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status

from core.constants import REALTIME_TABLES
from core.dependencies import get_change_feed
from core.permissions import get_current_admin
from services.realtime import ChangeFeed

router = APIRouter()
logger = logging.getLogger(__name__)


@router.websocket("/{table}")
async def realtime_feed(
        websocket: WebSocket,
        table: str,
        token: Optional[str] = Query(None),
        feed: ChangeFeed = Depends(get_change_feed)
):
    """Stream row changes to an admin dashboard"""
    if table not in REALTIME_TABLES:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    try:
        admin = await get_current_admin(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    queue = feed.subscribe(table)
    logger.info(f"{admin.email} subscribed to {table}")
    try:
        while True:
            event = await queue.get()
            await websocket.send_json(event)
    except WebSocketDisconnect:
        logger.info(f"{admin.email} unsubscribed from {table}")
    finally:
        feed.unsubscribe(table, queue)
