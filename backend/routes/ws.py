"""
WebSocket endpoint for live previews.

Accepts connections at /ws/preview. Each connection owns one PreviewController;
documents and state changes are queued by the controller and pumped to the
client in order.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from backend.config import settings
from backend.models.preview import SandboxErrorMessage, SourceMessage, document_message, state_message
from backend.routes.preview import harness_options
from livepreview.lifecycle import AsyncioScheduler, PreviewController
from livepreview.types import PreviewStatus, RenderDocument

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])


class QueueSandbox:
    """Sandbox that forwards each document to the client as a preview.document message."""

    def __init__(self, outbox: asyncio.Queue[dict[str, Any]]) -> None:
        self._outbox = outbox

    def load(self, document: RenderDocument) -> None:
        self._outbox.put_nowait(document_message(document.token, document.component_name, document.html))


async def _pump(websocket: WebSocket, outbox: asyncio.Queue[dict[str, Any]]) -> None:
    try:
        while True:
            payload = await outbox.get()
            await websocket.send_text(json.dumps(payload))
    except (WebSocketDisconnect, RuntimeError) as e:
        # the socket went away while messages were still queued
        logger.info("ws: pump stopped, %d message(s) undelivered: %s", outbox.qsize(), e)


async def _send_error(websocket: WebSocket, error: str) -> None:
    await websocket.send_text(json.dumps({"type": "preview.error", "error": error}))


@router.websocket("/ws/preview")
async def preview_websocket(websocket: WebSocket) -> None:
    """
    Drive a live preview over WebSocket.

    Protocol:
      Client → Server:  {"type": "source", "code": "...", "filename": "App.tsx"}
                        {"type": "retry"}
                        {"type": "sandbox.error", "token": 3, "message": "...", "stack": "..."}
      Server → Client:  {"type": "preview.document", "token", "component", "html"}
                        {"type": "preview.state", "state", "error", "token", "component"}
                        {"type": "preview.error", "error"}  (rejected client message)
    """
    await websocket.accept()
    logger.info("ws: preview connection accepted")

    outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
    controller = PreviewController(
        QueueSandbox(outbox),
        grace_period=settings.PREVIEW_GRACE_PERIOD_SECONDS,
        scheduler=AsyncioScheduler(asyncio.get_running_loop()),
        options=harness_options(),
    )

    def on_status(status: PreviewStatus) -> None:
        outbox.put_nowait(state_message(status.to_dict()))

    controller.subscribe(on_status)
    pump = asyncio.create_task(_pump(websocket, outbox))

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("ws: malformed message from client: %r", raw[:200])
                continue
            if not isinstance(msg, dict):
                logger.warning("ws: non-object message from client: %r", raw[:200])
                continue

            msg_type = msg.get("type")

            # ── source ───────────────────────────────────────────────
            if msg_type == "source":
                try:
                    source = SourceMessage.model_validate(msg)
                except ValidationError as e:
                    await _send_error(websocket, f"invalid source message: {e.errors()[0]['msg']}")
                    continue
                if source.code and len(source.code.encode("utf-8")) > settings.PREVIEW_MAX_CODE_BYTES:
                    await _send_error(websocket, f"Code exceeds {settings.PREVIEW_MAX_CODE_BYTES} bytes.")
                    continue
                controller.set_source(source.code, source.filename, source.class_name)
                continue

            # ── retry ────────────────────────────────────────────────
            if msg_type == "retry":
                controller.retry()
                continue

            # ── sandbox.error ────────────────────────────────────────
            if msg_type == "sandbox.error":
                try:
                    report = SandboxErrorMessage.model_validate(msg)
                except ValidationError as e:
                    await _send_error(websocket, f"invalid sandbox.error message: {e.errors()[0]['msg']}")
                    continue
                controller.report_sandbox_error(report.message, report.stack, report.token)
                continue

            logger.debug("ws: ignoring message type %r", msg_type)

    except WebSocketDisconnect:
        logger.info("ws: preview connection closed")
    finally:
        controller.close()
        pump.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await pump
