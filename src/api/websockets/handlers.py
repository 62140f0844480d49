"""WebSocket handler pushing every published snapshot to the client."""

import asyncio

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect

from api.dependencies import get_metrics_service
from metrics.errors import NotReadyError


async def _forward(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        snapshot = await queue.get()
        await websocket.send_json(snapshot.to_wire())


async def _until_disconnect(websocket: WebSocket) -> None:
    # clients never send anything meaningful; only the close matters
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


def register(app: FastAPI) -> None:
    @app.websocket("/ws/metrics")
    async def metrics_stream(websocket: WebSocket) -> None:
        await websocket.accept()

        try:
            service = get_metrics_service()
        except HTTPException as exc:
            await websocket.send_json({"error": exc.detail, "code": "not_ready"})
            await websocket.close(code=1011)
            return

        queue = service.cache.subscribe()
        try:
            try:
                await websocket.send_json(service.snapshot().to_wire())
            except NotReadyError:
                pass  # first push arrives with the first published snapshot

            # a disconnect is noticed while idle, not on the next send
            forward = asyncio.create_task(_forward(websocket, queue))
            closed = asyncio.create_task(_until_disconnect(websocket))
            try:
                done, _ = await asyncio.wait({forward, closed}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for task in (forward, closed):
                    task.cancel()
                await asyncio.gather(forward, closed, return_exceptions=True)
            if forward in done and closed not in done:
                forward.result()
        except WebSocketDisconnect:
            pass
        finally:
            service.cache.unsubscribe(queue)
