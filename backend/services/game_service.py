"""
Game Service — the command layer between HTTP and the engine.

Each command runs one read → compute → write cycle against the session
registry:
  1. take the room's lock (serializes commands per room within a process)
  2. load the session
  3. run the pure engine transition
  4. on success, bump the version and write back with compare-and-swap
     (guards against writers in other processes)
  5. project the result for the requesting viewer

Responses never carry an unredacted session.
"""
import asyncio
import logging
import random
import weakref
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel

from engine import lifecycle
from engine.game_master import Action, game_master
from engine.outcome import ERROR_MESSAGES, ErrorKind, Outcome
from engine.visibility import build_view
from models.game import Session
from services.session_registry import SessionConflictError, SessionRegistry, get_session_registry

logger = logging.getLogger(__name__)

ROOM_CODE_ATTEMPTS = 20


class CommandResult(BaseModel):
    ok: bool
    error: Optional[ErrorKind] = None
    message: Optional[str] = None
    game: Optional[Dict[str, Any]] = None
    player_id: Optional[str] = None
    reconnected: bool = False
    is_correct: Optional[bool] = None

    @classmethod
    def rejected(cls, kind: ErrorKind, message: Optional[str] = None) -> "CommandResult":
        return cls(ok=False, error=kind, message=message or ERROR_MESSAGES[kind])


class GameService:

    def __init__(self, registry: SessionRegistry, rng: Optional[random.Random] = None):
        self.registry = registry
        self.rng = rng
        # Freed once no command holds or awaits the lock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, room_code: str) -> asyncio.Lock:
        key = room_code.strip().upper()
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def _persist(self, previous: Optional[Session], session: Session) -> Session:
        # A room that does not exist yet counts as version 0
        base = previous.version if previous is not None else 0
        stored = session.model_copy(update={"version": base + 1})
        await self.registry.set(stored.room_code, stored, expected_version=base)
        return stored

    def _result(self, outcome: Outcome, session: Session, viewer_id: Optional[str]) -> CommandResult:
        return CommandResult(
            ok=True,
            game=build_view(session, viewer_id),
            player_id=outcome.participant_id,
            reconnected=outcome.reconnected,
            is_correct=outcome.is_correct,
        )

    async def _mutate(
        self,
        room_code: str,
        transition: Callable[[Session], Outcome],
        viewer_id: Optional[str],
        label: str,
    ) -> CommandResult:
        code = room_code.strip().upper()
        async with self._lock_for(code):
            session = await self.registry.get(code)
            if session is None:
                logger.info(f"[{code}] {label}: room not found")
                return CommandResult.rejected(ErrorKind.ROOM_NOT_FOUND)

            outcome = transition(session)
            if not outcome.ok:
                logger.info(f"[{code}] {label} rejected: {outcome.error.value}")
                return CommandResult(ok=False, error=outcome.error, message=outcome.message)

            current = session
            if outcome.session is not session:
                current = await self._persist(session, outcome.session)
            viewer = viewer_id or outcome.participant_id
            return self._result(outcome, current, viewer)

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def create(self, host_name: str, device_id: Optional[str] = None) -> CommandResult:
        for _ in range(ROOM_CODE_ATTEMPTS):
            code = lifecycle.generate_room_code(self.rng)
            if await self.registry.exists(code):
                continue

            outcome = lifecycle.create_session(code, host_name, device_id, self.rng)
            if not outcome.ok:
                return CommandResult(ok=False, error=outcome.error, message=outcome.message)

            try:
                async with self._lock_for(code):
                    stored = await self._persist(None, outcome.session)
            except SessionConflictError:
                # Another writer claimed the code between the check and the write
                logger.warning(f"[{code}] Room code taken concurrently, retrying")
                continue

            logger.info(f"[{code}] Room created by host {outcome.participant_id}")
            return self._result(outcome, stored, outcome.participant_id)

        raise RuntimeError("Could not allocate a free room code")

    async def join(self, room_code: str, player_name: Optional[str], device_id: Optional[str]) -> CommandResult:
        result = await self._mutate(
            room_code,
            lambda s: lifecycle.join(s, player_name, device_id, self.rng),
            None,
            "join",
        )
        if result.ok:
            action = "reconnected" if result.reconnected else "joined"
            logger.info(f"[{room_code.upper()}] Player {result.player_id} {action}")
        return result

    async def rejoin(self, room_code: str, player_name: str) -> CommandResult:
        return await self._mutate(
            room_code, lambda s: lifecycle.rejoin(s, player_name, self.rng), None, "rejoin"
        )

    async def get(self, room_code: str, viewer_id: Optional[str] = None) -> CommandResult:
        session = await self.registry.get(room_code)
        if session is None:
            return CommandResult.rejected(ErrorKind.ROOM_NOT_FOUND)
        return CommandResult(ok=True, game=build_view(session, viewer_id))

    # ── Game commands ─────────────────────────────────────────────────────────

    async def command(self, room_code: str, action: Action, player_id: str, **kwargs: Any) -> CommandResult:
        """Run a phase transition on behalf of `player_id` and answer with their view."""
        if action in (Action.START, Action.SELECT_SOLUTION):
            kwargs.setdefault("rng", self.rng)
        return await self._mutate(
            room_code,
            lambda s: game_master.apply(s, action, player_id, **kwargs),
            player_id,
            action.value,
        )


_game_service: Optional[GameService] = None


def get_game_service() -> GameService:
    """Lazy singleton. Use as a FastAPI dependency: Depends(get_game_service)"""
    global _game_service
    if _game_service is None:
        _game_service = GameService(get_session_registry())
    return _game_service
