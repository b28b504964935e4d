"""
Lobby Manager — room creation, admission and reconnection.

Reconnection is idempotent: a known device token or a known display name
(case-insensitive) returns the existing participant. A new participant is
only admitted while the room is still in the lobby and under capacity.
"""
import random
from typing import List, Optional

from config import settings
from data.catalog import all_tiles
from engine.outcome import ErrorKind, Outcome
from models.game import Participant, Phase, Session


# No 0/O or 1/I: codes are read aloud and typed on phones
ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

AVATARS: List[str] = [
    "🔍", "🔎", "🔬", "🧪", "💉", "🔪", "💀", "🦴",
    "🩸", "🧬", "📋", "🔦", "🎭", "🖤", "👁", "🌙",
]

MIN_NAME_LENGTH = 2


def generate_room_code(rng: Optional[random.Random] = None) -> str:
    rng = rng or random.Random()
    return "".join(rng.choice(ROOM_CODE_ALPHABET) for _ in range(settings.room_code_length))


def pick_avatar(used: List[str], rng: Optional[random.Random] = None) -> str:
    """Prefer an avatar nobody in the room has; repeat once the set runs out."""
    rng = rng or random.Random()
    available = [a for a in AVATARS if a not in used]
    return rng.choice(available or AVATARS)


def _clean_name(name: Optional[str]) -> str:
    return (name or "").strip()


def _find_by_name(session: Session, name: str) -> Optional[Participant]:
    wanted = name.lower()
    return next((p for p in session.participants if p.name.lower() == wanted), None)


def create_session(
    room_code: str,
    host_name: str,
    device_id: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> Outcome:
    """Build a fresh lobby with the host as its only participant."""
    name = _clean_name(host_name)
    placeholder = Session(room_code=room_code.upper())
    if len(name) < MIN_NAME_LENGTH:
        return Outcome.failure(placeholder, ErrorKind.INVALID_NAME)

    host = Participant(name=name, device_id=device_id, avatar=pick_avatar([], rng), is_host=True)
    session = Session(
        room_code=room_code.upper(),
        participants=(host,),
        tile_pool=tuple(all_tiles()),
        max_rounds=settings.max_rounds,
        discussion_duration_seconds=settings.discussion_duration_seconds,
    )
    return Outcome.success(session, participant_id=host.id)


def _admit(session: Session, name: str, device_id: Optional[str], rng: Optional[random.Random]) -> Outcome:
    if len(session.participants) >= settings.max_players:
        return Outcome.failure(
            session, ErrorKind.ROOM_FULL, f"The game is full (max {settings.max_players})"
        )
    player = Participant(
        name=name,
        device_id=device_id,
        avatar=pick_avatar([p.avatar for p in session.participants], rng),
    )
    updated = session.touch(participants=session.participants + (player,))
    return Outcome.success(updated, participant_id=player.id)


def join(
    session: Session,
    player_name: Optional[str] = None,
    device_id: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> Outcome:
    """
    Admission order:
      1. device token match  → silent reconnect
      2. name match          → existing participant
      3. lobby + capacity    → new participant
    """
    if device_id:
        existing = next((p for p in session.participants if p.device_id == device_id), None)
        if existing:
            return Outcome.success(session.touch(), participant_id=existing.id, reconnected=True)

    name = _clean_name(player_name)
    if name:
        existing = _find_by_name(session, name)
        if existing:
            return Outcome.success(session, participant_id=existing.id)

    if not name:
        return Outcome.failure(session, ErrorKind.NAME_REQUIRED)
    if session.phase != Phase.LOBBY:
        return Outcome.failure(session, ErrorKind.GAME_IN_PROGRESS)
    if len(name) < MIN_NAME_LENGTH:
        return Outcome.failure(session, ErrorKind.INVALID_NAME)
    return _admit(session, name, device_id, rng)


def rejoin(session: Session, player_name: str, rng: Optional[random.Random] = None) -> Outcome:
    """Reconnect by display name; falls back to a fresh join while in the lobby."""
    name = _clean_name(player_name)
    if not name:
        return Outcome.failure(session, ErrorKind.NAME_REQUIRED)

    existing = _find_by_name(session, name)
    if existing:
        return Outcome.success(session.touch(), participant_id=existing.id)

    if session.phase != Phase.LOBBY:
        return Outcome.failure(session, ErrorKind.REJOIN_IN_PROGRESS)
    if len(name) < MIN_NAME_LENGTH:
        return Outcome.failure(session, ErrorKind.INVALID_NAME)
    return _admit(session, name, None, rng)
