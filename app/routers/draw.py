import asyncio
import logging
from typing import Any, AsyncIterator, Callable, Dict, Tuple

from fastapi import APIRouter, Body, HTTPException
from fastapi.responses import StreamingResponse

from app.core.state import get_machine
from app.domain.schemas import (
    DrawCancelResponse,
    DrawRequest,
    DrawResult,
    DrawSnapshot,
    DrawStartResponse,
    WsInfo,
)
from app.services.draw_machine import DrawMachine
from app.utils.sse import sse_format
from fastapi import WebSocket, WebSocketDisconnect


router = APIRouter()
log = logging.getLogger(__name__)

TERMINAL_EVENTS = ("draw:finished", "draw:cancelled")


def _subscribe(machine: DrawMachine) -> Tuple[asyncio.Queue, Callable[[], None]]:
    queue: asyncio.Queue = asyncio.Queue()
    unsubscribe = machine.subscribe(lambda name, evt: queue.put_nowait((name, evt)))
    return queue, unsubscribe


async def _follow(queue: asyncio.Queue) -> AsyncIterator[Tuple[str, Dict[str, Any]]]:
    """Yield phase events until the current (or next) draw finishes or is cancelled."""
    while True:
        name, evt = await queue.get()
        yield name, evt
        if name in TERMINAL_EVENTS:
            break


def _final_payload(machine: DrawMachine, name: str, evt: Dict[str, Any]) -> Dict[str, Any]:
    if name == "draw:cancelled":
        return {"status": "cancelled", "session_id": evt["data"].get("session_id")}
    result = machine.last_result
    return {
        "status": "completed",
        "result": result.model_dump(mode="json", by_alias=True) if result else None,
    }


@router.post(
    "/draw/start",
    response_model=DrawStartResponse,
    tags=["Draw"],
    summary="Start a draw",
    description=(
        "Starts countdown, cycling and sequential reveal for the given candidates. "
        "A running draw is cancelled first. An empty pool is ignored."
    ),
)
async def start_draw(
    req: DrawRequest = Body(
        ...,
        examples=[
            {
                "candidates": [
                    {"id": "g1", "name": "Ada", "department": "Support", "supervisor": "Lin", "totalTickets": 12},
                    {"id": "g2", "name": "Grace", "department": "Sales", "supervisor": "Kim", "totalTickets": 4},
                ],
                "winner_count": 1,
            }
        ],
    )
):
    machine = get_machine()
    session = machine.start(req.candidates, req.winner_count)
    if session is None:
        return DrawStartResponse(session_id=None, started=False, phase=machine.phase.value)
    return DrawStartResponse(session_id=session.session_id, started=True, phase=machine.phase.value)


@router.post(
    "/draw/cancel",
    response_model=DrawCancelResponse,
    tags=["Draw"],
    summary="Cancel the running draw",
    description="Stops every pending timer of the active draw. No winners are announced.",
)
async def cancel_draw():
    return DrawCancelResponse(cancelled=get_machine().cancel())


@router.get(
    "/draw/state",
    response_model=DrawSnapshot,
    tags=["Draw"],
    summary="Current draw state",
)
async def draw_state():
    return get_machine().snapshot()


@router.get(
    "/draw/result",
    response_model=DrawResult,
    tags=["Draw"],
    summary="Last completed draw",
)
async def draw_result():
    result = get_machine().last_result
    if result is None:
        raise HTTPException(404, "no completed draw")
    return result


@router.get(
    "/draw/stream",
    tags=["Draw"],
    summary="SSE stream of draw phases",
    description=(
        "Server-sent events (text/event-stream): state, draw:countdown, draw:cycling, draw:cycle, "
        "draw:reveal, draw:complete, draw:finished or draw:cancelled, then final."
    ),
    responses={
        200: {
            "content": {"text/event-stream": {"example": "event: draw:countdown\ndata: {\"stage\":\"draw:countdown\"}\n\n"}},
            "description": "Server-sent event stream",
        }
    },
)
async def draw_stream():
    machine = get_machine()

    async def event_gen():
        queue, unsubscribe = _subscribe(machine)
        try:
            yield sse_format("state", machine.snapshot().model_dump(mode="json", by_alias=True))
            async for name, evt in _follow(queue):
                yield sse_format(name, evt)
                if name in TERMINAL_EVENTS:
                    yield sse_format("final", _final_payload(machine, name, evt))
        finally:
            unsubscribe()

    return StreamingResponse(event_gen(), media_type="text/event-stream")


@router.websocket("/draw/ws")
async def draw_ws(websocket: WebSocket):
    await websocket.accept()
    machine = get_machine()
    # subscribe before the ack so no event between ack and first read is lost
    queue, unsubscribe = _subscribe(machine)
    try:
        await websocket.send_json({"event": "ready", "data": machine.snapshot().model_dump(mode="json", by_alias=True)})
        async for name, evt in _follow(queue):
            await websocket.send_json({"event": name, "data": evt})
            if name in TERMINAL_EVENTS:
                await websocket.send_json({"event": "final", "data": _final_payload(machine, name, evt)})
    except WebSocketDisconnect:
        log.debug("draw websocket client disconnected")
    finally:
        unsubscribe()


@router.get(
    "/draw/ws-info",
    response_model=WsInfo,
    tags=["Draw"],
    summary="WebSocket stream of draw phases (documentation)",
    description=(
        "Connect to ws://<host>/draw/ws. Messages are JSON objects {event, data}; "
        "the first one is event=ready with the current state."
    ),
)
async def draw_ws_info():
    return WsInfo(
        url="/draw/ws",
        event_format="{event: string, data: object}",
        example_message={
            "event": "draw:reveal",
            "data": {"time": 8.05, "stage": "draw:reveal", "data": {"phase": "revealing", "reveal_index": 0}},
        },
        note="The last message has event=final.",
    )
