from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Tuple
from enum import Enum
from datetime import datetime, timezone
import uuid


def _utcnow() -> datetime:
    """Timezone-aware UTC datetime (replaces deprecated datetime.utcnow)."""
    return datetime.now(timezone.utc)


class Role(str, Enum):
    FORENSIC_SCIENTIST = "forensic_scientist"
    MURDERER = "murderer"
    ACCOMPLICE = "accomplice"
    WITNESS = "witness"
    INVESTIGATOR = "investigator"


class Phase(str, Enum):
    LOBBY = "lobby"
    ROLE_REVEAL = "role_reveal"
    MURDER_SELECTION = "murder_selection"
    CLUE_GIVING = "clue_giving"
    DISCUSSION = "discussion"
    FINISHED = "finished"


class Winner(str, Enum):
    INVESTIGATORS = "investigators"
    MURDERER = "murderer"


# Role counts keyed by participant count. Curated for balance, not derived.
ROLE_DISTRIBUTION: Dict[int, Dict[Role, int]] = {
    4: {Role.FORENSIC_SCIENTIST: 1, Role.MURDERER: 1, Role.ACCOMPLICE: 0, Role.WITNESS: 0, Role.INVESTIGATOR: 2},
    5: {Role.FORENSIC_SCIENTIST: 1, Role.MURDERER: 1, Role.ACCOMPLICE: 0, Role.WITNESS: 0, Role.INVESTIGATOR: 3},
    6: {Role.FORENSIC_SCIENTIST: 1, Role.MURDERER: 1, Role.ACCOMPLICE: 1, Role.WITNESS: 0, Role.INVESTIGATOR: 3},
    7: {Role.FORENSIC_SCIENTIST: 1, Role.MURDERER: 1, Role.ACCOMPLICE: 1, Role.WITNESS: 1, Role.INVESTIGATOR: 3},
    8: {Role.FORENSIC_SCIENTIST: 1, Role.MURDERER: 1, Role.ACCOMPLICE: 1, Role.WITNESS: 1, Role.INVESTIGATOR: 4},
    9: {Role.FORENSIC_SCIENTIST: 1, Role.MURDERER: 1, Role.ACCOMPLICE: 1, Role.WITNESS: 1, Role.INVESTIGATOR: 5},
    10: {Role.FORENSIC_SCIENTIST: 1, Role.MURDERER: 1, Role.ACCOMPLICE: 1, Role.WITNESS: 1, Role.INVESTIGATOR: 6},
    11: {Role.FORENSIC_SCIENTIST: 1, Role.MURDERER: 1, Role.ACCOMPLICE: 1, Role.WITNESS: 1, Role.INVESTIGATOR: 7},
    12: {Role.FORENSIC_SCIENTIST: 1, Role.MURDERER: 1, Role.ACCOMPLICE: 1, Role.WITNESS: 1, Role.INVESTIGATOR: 8},
}

# Roles that know the solution and never count toward the investigators' accusation pool
SOLUTION_ROLES = frozenset({Role.FORENSIC_SCIENTIST, Role.MURDERER, Role.ACCOMPLICE})
# Murderer and accomplice see each other
CONSPIRATOR_ROLES = frozenset({Role.MURDERER, Role.ACCOMPLICE})

ROLE_INFO: Dict[Role, Dict[str, str]] = {
    Role.FORENSIC_SCIENTIST: {
        "name": "Forensic Scientist",
        "description": "You know the crime but may only communicate through the scene tiles.",
    },
    Role.MURDERER: {
        "name": "Murderer",
        "description": "Choose your key evidence and method. Mislead the investigators to win.",
    },
    Role.ACCOMPLICE: {
        "name": "Accomplice",
        "description": "You know the crime. Help the murderer deflect suspicion without exposing yourself.",
    },
    Role.WITNESS: {
        "name": "Witness",
        "description": "You saw the murderer and the accomplice, but not the crime itself. Careful what you reveal.",
    },
    Role.INVESTIGATOR: {
        "name": "Investigator",
        "description": "Read the forensic clues and name the murderer, the key evidence and the method.",
    },
}


class _Value(BaseModel):
    """Immutable value: transitions build new instances with model_copy."""

    model_config = ConfigDict(frozen=True)


class EvidenceCard(_Value):
    id: str
    name: str
    category: str = ""


class MethodCard(_Value):
    id: str
    name: str
    category: str = ""


class ClueTile(_Value):
    id: str
    title: str
    options: Tuple[str, ...]
    selected_option: Optional[int] = None
    locked: bool = False


class Participant(_Value):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    device_id: Optional[str] = None  # opaque per-device token for silent reconnect
    avatar: str = ""
    role: Optional[Role] = None
    evidence_cards: Tuple[EvidenceCard, ...] = ()
    method_cards: Tuple[MethodCard, ...] = ()
    has_accused: bool = False
    is_host: bool = False
    joined_at: datetime = Field(default_factory=_utcnow)

    def holds_evidence(self, card_id: str) -> Optional[EvidenceCard]:
        return next((c for c in self.evidence_cards if c.id == card_id), None)

    def holds_method(self, card_id: str) -> Optional[MethodCard]:
        return next((c for c in self.method_cards if c.id == card_id), None)


class Solution(_Value):
    murderer_id: str
    evidence_id: str
    method_id: str


class Accusation(_Value):
    accuser_id: str
    accuser_name: str
    target_id: str
    target_name: str
    evidence_id: str
    evidence_name: str
    method_id: str
    method_name: str
    is_correct: bool
    timestamp: datetime = Field(default_factory=_utcnow)


class Round(_Value):
    number: int
    revealed_tile_ids: Tuple[str, ...] = ()
    # Swap made this round: the tile brought in and the tile it took off the board
    replaced_tile_id: Optional[str] = None
    displaced_tile_id: Optional[str] = None
    accusations: Tuple[Accusation, ...] = ()
    started_at: datetime = Field(default_factory=_utcnow)
    ended_at: Optional[datetime] = None


class Session(_Value):
    room_code: str
    phase: Phase = Phase.LOBBY
    participants: Tuple[Participant, ...] = ()
    solution: Optional[Solution] = None

    # Board: four replaceable scene tiles plus the two fixed tiles
    scene_tiles: Tuple[ClueTile, ...] = ()
    cause_of_death_tile: Optional[ClueTile] = None
    location_tile: Optional[ClueTile] = None
    tile_pool: Tuple[ClueTile, ...] = ()

    current_round: int = 0
    max_rounds: int = 3
    rounds: Tuple[Round, ...] = ()

    discussion_duration_seconds: int = 180
    # Advisory only: surfaced to clients, never enforced by a transition
    discussion_deadline: Optional[datetime] = None
    forensic_ready: bool = False

    winner: Optional[Winner] = None
    win_reason: Optional[str] = None
    accusations: Tuple[Accusation, ...] = ()

    # Bumped on every persisted write; used for compare-and-swap in the registry
    version: int = 0
    created_at: datetime = Field(default_factory=_utcnow)
    last_activity: datetime = Field(default_factory=_utcnow)

    @property
    def host(self) -> Optional[Participant]:
        return next((p for p in self.participants if p.is_host), None)

    @property
    def active_tiles(self) -> Tuple[ClueTile, ...]:
        fixed = tuple(t for t in (self.cause_of_death_tile, self.location_tile) if t is not None)
        return self.scene_tiles + fixed

    @property
    def latest_round(self) -> Optional[Round]:
        return self.rounds[-1] if self.rounds else None

    def participant(self, participant_id: Optional[str]) -> Optional[Participant]:
        if not participant_id:
            return None
        return next((p for p in self.participants if p.id == participant_id), None)

    def with_participant(self, updated: Participant) -> Tuple[Participant, ...]:
        return tuple(updated if p.id == updated.id else p for p in self.participants)

    def with_latest_round(self, updated: Round) -> Tuple[Round, ...]:
        return self.rounds[:-1] + (updated,)

    def touch(self, **updates) -> "Session":
        """Copy-on-write update that also refreshes last_activity."""
        updates["last_activity"] = _utcnow()
        return self.model_copy(update=updates)


# ── HTTP request models ───────────────────────────────────────────────────────

class CreateRoomRequest(BaseModel):
    host_name: str
    device_id: Optional[str] = None


class JoinRoomRequest(BaseModel):
    player_name: Optional[str] = None
    device_id: Optional[str] = None


class RejoinRoomRequest(BaseModel):
    player_name: str


class PlayerActionRequest(BaseModel):
    player_id: str


class SelectSolutionRequest(BaseModel):
    player_id: str
    evidence_id: str
    method_id: str


class SelectTileOptionRequest(BaseModel):
    player_id: str
    option_index: int


class ReplaceTileRequest(BaseModel):
    player_id: str
    old_tile_id: str
    new_tile_id: str


class AccuseRequest(BaseModel):
    player_id: str
    target_id: str
    evidence_id: str
    method_id: str


class RoomResponse(BaseModel):
    game: dict
    player_id: Optional[str] = None
    reconnected: bool = False
    is_correct: Optional[bool] = None
