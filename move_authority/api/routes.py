from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
import redis

from move_authority.api.deps import get_redis, get_server_now, get_settings
from move_authority.api.models import (
    MoveSubmitRequest,
    MoveSubmitResponse,
    PlayerListResponse,
    PlayerMovementRecord,
    SessionStartRequest,
)
from move_authority.lock import PlayerBusyError
from move_authority.record_store import get_record, list_player_ids
from move_authority.settings import Settings
from move_authority.streams import read_observations
from move_authority.submission import end_session, start_session, submit_move
from move_authority.websocket_hub import hub

router = APIRouter()


@router.websocket("/ws/player/{player_id}")
async def player_corrections_ws(websocket: WebSocket, player_id: str) -> None:
    await hub.connect(player_id, websocket)

    try:
        # Keep the socket open; client can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(player_id, websocket)
    except Exception:
        await hub.disconnect(player_id, websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/players/{player_id}/moves", response_model=MoveSubmitResponse)
async def submit_move_route(
    player_id: str,
    payload: MoveSubmitRequest,
    r: redis.Redis = Depends(get_redis),
    server_now: int = Depends(get_server_now),
    settings: Settings = Depends(get_settings),
) -> MoveSubmitResponse:
    """Validate one client movement report.

    Every validation verdict is a 200; `accepted`/`silent_drop`/`kind` say what happened.
    """

    try:
        result = submit_move(
            r=r,
            player_id=player_id,
            state=payload.state,
            report=payload.report,
            server_now=server_now,
            settings=settings,
        )
    except PlayerBusyError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    decision = result.decision
    if decision.corrected and result.record is not None:
        await hub.send(
            player_id,
            {
                "type": "movement_corrected",
                "player_id": player_id,
                "reason": decision.outcome.reason,
                "kind": decision.outcome.kind.value if decision.outcome.kind is not None else "",
                "state": result.record.state.value,
                "origin": result.record.origin.model_dump(),
                "timestamp": result.record.timestamp,
            },
        )

    return MoveSubmitResponse(
        accepted=decision.accepted,
        silent_drop=decision.outcome.silent_drop,
        kind=decision.outcome.kind.value if decision.outcome.kind is not None else None,
        reason=decision.outcome.reason,
        record=result.record,
    )


@router.get("/players", response_model=PlayerListResponse)
async def list_players_route(r: redis.Redis = Depends(get_redis)) -> PlayerListResponse:
    return PlayerListResponse(player_ids=list_player_ids(r=r))


@router.get("/players/{player_id}/movement", response_model=PlayerMovementRecord)
async def get_movement_route(player_id: str, r: redis.Redis = Depends(get_redis)) -> PlayerMovementRecord:
    record = get_record(r=r, player_id=player_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Player has no movement record")
    return record


@router.post("/players/{player_id}/session", response_model=PlayerMovementRecord, status_code=status.HTTP_201_CREATED)
async def start_session_route(
    player_id: str,
    payload: SessionStartRequest | None = None,
    r: redis.Redis = Depends(get_redis),
    server_now: int = Depends(get_server_now),
    settings: Settings = Depends(get_settings),
) -> PlayerMovementRecord:
    payload = payload or SessionStartRequest()
    try:
        return start_session(
            r=r,
            player_id=player_id,
            server_now=server_now,
            origin=payload.origin,
            yaw=payload.yaw,
            settings=settings,
        )
    except PlayerBusyError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e


@router.delete("/players/{player_id}/session", status_code=status.HTTP_204_NO_CONTENT)
async def end_session_route(
    player_id: str,
    r: redis.Redis = Depends(get_redis),
    settings: Settings = Depends(get_settings),
) -> None:
    try:
        removed = end_session(r=r, player_id=player_id, settings=settings)
    except PlayerBusyError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Player has no movement record")


@router.get("/players/{player_id}/observations")
async def get_observations_route(
    player_id: str,
    count: int = 20,
    r: redis.Redis = Depends(get_redis),
) -> dict[str, object]:
    """Debug endpoint: read a player's most recent movement observations."""

    if count < 1 or count > 200:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="count must be between 1 and 200")

    entries = read_observations(r=r, player_id=player_id, count=count)
    messages = [{"id": mid, "fields": fields} for mid, fields in entries]
    return {"player_id": player_id, "messages": messages}
