"""
Room HTTP endpoints. One verb per transition; every response is a view
projected for the requesting player.

Routes:
  POST /api/rooms                                  — Create room + register host
  POST /api/rooms/{room_code}/join                 — Join (or reconnect by device / name)
  POST /api/rooms/{room_code}/rejoin               — Reconnect by name
  GET  /api/rooms/{room_code}?player_id=           — Current view for a player
  POST /api/rooms/{room_code}/start                — Host: assign roles, deal hands
  POST /api/rooms/{room_code}/proceed              — Host: role reveal → murder selection
  POST /api/rooms/{room_code}/solution             — Murderer: choose evidence + method
  POST /api/rooms/{room_code}/tiles/{tile_id}/option — Scientist: mark a tile option
  POST /api/rooms/{room_code}/tiles/confirm        — Scientist: lock clues, open discussion
  POST /api/rooms/{room_code}/tiles/replace        — Scientist: swap one scene tile (round 2+)
  POST /api/rooms/{room_code}/accusations          — Player: one-shot accusation
  POST /api/rooms/{room_code}/rounds/next          — Scientist: next round / end game
  POST /api/rooms/{room_code}/reset                — Host: back to lobby
"""
import logging
from typing import Awaitable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from engine.game_master import Action
from engine.outcome import ErrorKind
from models.game import (
    AccuseRequest, CreateRoomRequest, JoinRoomRequest, PlayerActionRequest, RejoinRoomRequest,
    ReplaceTileRequest, RoomResponse, SelectSolutionRequest, SelectTileOptionRequest,
)
from services.game_service import CommandResult, GameService, get_game_service
from services.session_registry import SessionConflictError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["rooms"])

_STATUS_BY_ERROR = {
    ErrorKind.ROOM_NOT_FOUND: 404,
    ErrorKind.NOT_HOST: 403,
}


def _respond(result: CommandResult) -> RoomResponse:
    if not result.ok:
        raise HTTPException(
            status_code=_STATUS_BY_ERROR.get(result.error, 400),
            detail={"error": result.error.value, "message": result.message},
        )
    return RoomResponse(
        game=result.game,
        player_id=result.player_id,
        reconnected=result.reconnected,
        is_correct=result.is_correct,
    )


async def _guarded(label: str, pending: Awaitable[CommandResult]) -> RoomResponse:
    try:
        result = await pending
    except SessionConflictError as exc:
        logger.warning(f"[{exc.room_code}] {label}: write conflict ({exc})")
        raise HTTPException(
            status_code=409,
            detail={"error": "conflict", "message": "The game changed, please retry"},
        )
    return _respond(result)


async def _command(service: GameService, room_code: str, action: Action, player_id: str, **kwargs) -> RoomResponse:
    return await _guarded(action.value, service.command(room_code, action, player_id, **kwargs))


@router.post("/rooms", response_model=RoomResponse, status_code=201)
async def create_room(body: CreateRoomRequest, service: GameService = Depends(get_game_service)):
    """Create a new room and register the host as the first player."""
    return _respond(await service.create(body.host_name, body.device_id))


@router.post("/rooms/{room_code}/join", response_model=RoomResponse)
async def join_room(room_code: str, body: JoinRoomRequest, service: GameService = Depends(get_game_service)):
    """Add a player to the lobby, or reconnect a known device / name at any phase."""
    return await _guarded("join", service.join(room_code, body.player_name, body.device_id))


@router.post("/rooms/{room_code}/rejoin", response_model=RoomResponse)
async def rejoin_room(room_code: str, body: RejoinRoomRequest, service: GameService = Depends(get_game_service)):
    return await _guarded("rejoin", service.rejoin(room_code, body.player_name))


@router.get("/rooms/{room_code}", response_model=RoomResponse)
async def get_room(
    room_code: str,
    player_id: Optional[str] = Query(None, description="Viewer; omit for an anonymous view"),
    service: GameService = Depends(get_game_service),
):
    """Polling endpoint: current state as seen by `player_id`."""
    return _respond(await service.get(room_code, player_id))


@router.post("/rooms/{room_code}/start", response_model=RoomResponse)
async def start_game(room_code: str, body: PlayerActionRequest, service: GameService = Depends(get_game_service)):
    return await _command(service, room_code, Action.START, body.player_id)


@router.post("/rooms/{room_code}/proceed", response_model=RoomResponse)
async def proceed(room_code: str, body: PlayerActionRequest, service: GameService = Depends(get_game_service)):
    return await _command(service, room_code, Action.PROCEED, body.player_id)


@router.post("/rooms/{room_code}/solution", response_model=RoomResponse)
async def select_solution(room_code: str, body: SelectSolutionRequest, service: GameService = Depends(get_game_service)):
    return await _command(
        service, room_code, Action.SELECT_SOLUTION, body.player_id,
        evidence_id=body.evidence_id, method_id=body.method_id,
    )


@router.post("/rooms/{room_code}/tiles/confirm", response_model=RoomResponse)
async def confirm_clues(room_code: str, body: PlayerActionRequest, service: GameService = Depends(get_game_service)):
    return await _command(service, room_code, Action.CONFIRM_CLUES, body.player_id)


@router.post("/rooms/{room_code}/tiles/replace", response_model=RoomResponse)
async def replace_tile(room_code: str, body: ReplaceTileRequest, service: GameService = Depends(get_game_service)):
    return await _command(
        service, room_code, Action.REPLACE_TILE, body.player_id,
        old_tile_id=body.old_tile_id, new_tile_id=body.new_tile_id,
    )


@router.post("/rooms/{room_code}/tiles/{tile_id}/option", response_model=RoomResponse)
async def select_tile_option(
    room_code: str,
    tile_id: str,
    body: SelectTileOptionRequest,
    service: GameService = Depends(get_game_service),
):
    return await _command(
        service, room_code, Action.SELECT_TILE_OPTION, body.player_id,
        tile_id=tile_id, option_index=body.option_index,
    )


@router.post("/rooms/{room_code}/accusations", response_model=RoomResponse)
async def accuse(room_code: str, body: AccuseRequest, service: GameService = Depends(get_game_service)):
    """One accusation per player; the response carries `is_correct`."""
    return await _command(
        service, room_code, Action.ACCUSE, body.player_id,
        target_id=body.target_id, evidence_id=body.evidence_id, method_id=body.method_id,
    )


@router.post("/rooms/{room_code}/rounds/next", response_model=RoomResponse)
async def next_round(room_code: str, body: PlayerActionRequest, service: GameService = Depends(get_game_service)):
    return await _command(service, room_code, Action.NEXT_ROUND, body.player_id)


@router.post("/rooms/{room_code}/reset", response_model=RoomResponse)
async def reset(room_code: str, body: PlayerActionRequest, service: GameService = Depends(get_game_service)):
    return await _command(service, room_code, Action.RESET, body.player_id)
