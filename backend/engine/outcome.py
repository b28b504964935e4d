"""
Discriminated result of every engine transition.

A transition never raises for an expected rule violation. It returns either
  Outcome(session=<new session>)                      — success
  Outcome(session=<untouched session>, error=<kind>)  — rejection
so callers can persist on success and report `message` on failure.
"""
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict

from models.game import Session


class ErrorKind(str, Enum):
    ROOM_NOT_FOUND = "room_not_found"
    PLAYER_NOT_FOUND = "player_not_found"
    TARGET_NOT_FOUND = "target_not_found"
    INVALID_NAME = "invalid_name"
    NAME_REQUIRED = "name_required"
    GAME_IN_PROGRESS = "game_in_progress"
    REJOIN_IN_PROGRESS = "rejoin_in_progress"
    ROOM_FULL = "room_full"
    NOT_HOST = "not_host"
    WRONG_PHASE = "wrong_phase"
    TOO_FEW_PLAYERS = "too_few_players"
    TOO_MANY_PLAYERS = "too_many_players"
    NOT_MURDERER = "not_murderer"
    CARDS_NOT_OWNED = "cards_not_owned"
    NOT_SCIENTIST = "not_scientist"
    TILE_NOT_FOUND = "tile_not_found"
    INVALID_OPTION = "invalid_option"
    REPLACE_TOO_EARLY = "replace_too_early"
    ALREADY_REPLACED = "already_replaced"
    TILE_NOT_AVAILABLE = "tile_not_available"
    SCIENTIST_CANNOT_ACCUSE = "scientist_cannot_accuse"
    ACCUSATION_SPENT = "accusation_spent"
    CARDS_NOT_TARGETS = "cards_not_targets"


ERROR_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.ROOM_NOT_FOUND: "Game not found",
    ErrorKind.PLAYER_NOT_FOUND: "Player not found",
    ErrorKind.TARGET_NOT_FOUND: "Accused player not found",
    ErrorKind.INVALID_NAME: "Name must be at least 2 characters",
    ErrorKind.NAME_REQUIRED: "Name required",
    ErrorKind.GAME_IN_PROGRESS: "The game has already started",
    ErrorKind.REJOIN_IN_PROGRESS: "Player not found. The game is already in progress.",
    ErrorKind.ROOM_FULL: "The game is full (max 12)",
    ErrorKind.NOT_HOST: "Only the host can do that",
    ErrorKind.WRONG_PHASE: "Not allowed in this phase",
    ErrorKind.TOO_FEW_PLAYERS: "At least 4 players are needed",
    ErrorKind.TOO_MANY_PLAYERS: "Maximum 12 players",
    ErrorKind.NOT_MURDERER: "Only the murderer can choose the crime",
    ErrorKind.CARDS_NOT_OWNED: "You must choose cards from your own hand",
    ErrorKind.NOT_SCIENTIST: "Only the Forensic Scientist can do that",
    ErrorKind.TILE_NOT_FOUND: "Tile is not on the board",
    ErrorKind.INVALID_OPTION: "Invalid tile option",
    ErrorKind.REPLACE_TOO_EARLY: "Tiles can only be replaced from round 2 onwards",
    ErrorKind.ALREADY_REPLACED: "You already replaced a tile this round",
    ErrorKind.TILE_NOT_AVAILABLE: "Tile not available",
    ErrorKind.SCIENTIST_CANNOT_ACCUSE: "The Forensic Scientist cannot accuse",
    ErrorKind.ACCUSATION_SPENT: "You already used your accusation",
    ErrorKind.CARDS_NOT_TARGETS: "Those cards do not belong to that player",
}


class Outcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    session: Session
    error: Optional[ErrorKind] = None
    message: Optional[str] = None
    # Set by join/rejoin/create
    participant_id: Optional[str] = None
    reconnected: bool = False
    # Set by accuse
    is_correct: Optional[bool] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, session: Session, **extra) -> "Outcome":
        return cls(session=session, **extra)

    @classmethod
    def failure(cls, session: Session, kind: ErrorKind, message: Optional[str] = None) -> "Outcome":
        return cls(session=session, error=kind, message=message or ERROR_MESSAGES[kind])
