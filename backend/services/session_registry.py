import asyncio
import logging
import os
import time
from datetime import timedelta
from typing import Callable, Dict, Optional, Tuple

from config import settings
from models.game import Session, _utcnow

logger = logging.getLogger(__name__)


class SessionConflictError(Exception):
    """A compare-and-swap write found a newer version than the one it was based on."""

    def __init__(self, room_code: str, expected: int, actual: Optional[int]):
        super().__init__(f"Room {room_code}: expected version {expected}, found {actual}")
        self.room_code = room_code
        self.expected = expected
        self.actual = actual


def _key(room_code: str) -> str:
    # Room codes are matched case-insensitively
    return room_code.strip().upper()


class SessionRegistry:
    """
    Keyed store of session snapshots with TTL expiry.

    get(code)                              -> Session | None
    set(code, session, expected_version)   -> None   (refreshes the TTL)
    delete(code)                           -> bool

    `expected_version` makes the write conditional: a missing or expired
    room counts as version 0, so expected_version=0 means "only if absent".
    """

    async def get(self, room_code: str) -> Optional[Session]:
        raise NotImplementedError

    async def set(self, room_code: str, session: Session, expected_version: Optional[int] = None) -> None:
        raise NotImplementedError

    async def delete(self, room_code: str) -> bool:
        raise NotImplementedError

    async def exists(self, room_code: str) -> bool:
        return await self.get(room_code) is not None


class InMemorySessionRegistry(SessionRegistry):
    """Process-local fallback for local development and tests."""

    def __init__(self, ttl_seconds: Optional[int] = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.session_ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[Session, float]] = {}

    def _live(self, key: str) -> Optional[Session]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        session, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return session

    async def get(self, room_code: str) -> Optional[Session]:
        return self._live(_key(room_code))

    async def set(self, room_code: str, session: Session, expected_version: Optional[int] = None) -> None:
        key = _key(room_code)
        current = self._live(key)
        actual = current.version if current is not None else 0
        if expected_version is not None and actual != expected_version:
            raise SessionConflictError(key, expected_version, actual)
        self._entries[key] = (session, self._clock() + self.ttl_seconds)

    async def delete(self, room_code: str) -> bool:
        return self._entries.pop(_key(room_code), None) is not None


class FirestoreSessionRegistry(SessionRegistry):
    """
    Async-friendly Firestore registry using run_in_executor to avoid
    blocking the event loop. One document per room; `expires_at` is the
    field a Firestore TTL policy should target. Expired documents that the
    TTL sweeper has not removed yet are treated as missing.
    """

    def __init__(self):
        if settings.firestore_emulator_host:
            os.environ["FIRESTORE_EMULATOR_HOST"] = settings.firestore_emulator_host
        # Lazy import so the registry can be instantiated before GCP creds exist
        from google.cloud import firestore
        self._firestore = firestore
        self.db = firestore.Client(project=settings.google_cloud_project or None)

    def _run(self, fn):
        """Run a sync Firestore call in the default thread pool."""
        loop = asyncio.get_running_loop()
        return loop.run_in_executor(None, fn)

    def _room_ref(self, room_code: str):
        return self.db.collection(settings.firestore_collection).document(_key(room_code))

    async def get(self, room_code: str) -> Optional[Session]:
        doc = await self._run(lambda: self._room_ref(room_code).get())
        if not doc.exists:
            return None
        data = doc.to_dict()
        expires_at = data.get("expires_at")
        if expires_at is not None and expires_at <= _utcnow():
            logger.info(f"[{_key(room_code)}] Session expired — awaiting TTL sweep")
            return None
        return Session.model_validate(data["session"])

    async def set(self, room_code: str, session: Session, expected_version: Optional[int] = None) -> None:
        ref = self._room_ref(room_code)
        payload = {
            "session": session.model_dump(mode="json"),
            "version": session.version,
            "expires_at": _utcnow() + timedelta(seconds=settings.session_ttl_seconds),
        }
        firestore = self._firestore

        @firestore.transactional
        def _write(transaction):
            if expected_version is not None:
                snapshot = ref.get(transaction=transaction)
                actual = 0
                if snapshot.exists:
                    data = snapshot.to_dict()
                    expires_at = data.get("expires_at")
                    if expires_at is None or expires_at > _utcnow():
                        actual = data.get("version")
                if actual != expected_version:
                    raise SessionConflictError(_key(room_code), expected_version, actual)
            transaction.set(ref, payload)

        await self._run(lambda: _write(self.db.transaction()))

    async def delete(self, room_code: str) -> bool:
        ref = self._room_ref(room_code)
        doc = await self._run(lambda: ref.get())
        if not doc.exists:
            return False
        await self._run(lambda: ref.delete())
        return True


_registry: Optional[SessionRegistry] = None


def get_session_registry() -> SessionRegistry:
    """Lazy singleton — Firestore when configured, in-memory otherwise.
    Initialised on first call, not at import time, so missing credentials
    cannot crash the app before FastAPI boots.
    """
    global _registry
    if _registry is None:
        if settings.use_firestore:
            _registry = FirestoreSessionRegistry()
            logger.info("Session registry: Firestore (%s)", settings.firestore_collection)
        else:
            _registry = InMemorySessionRegistry()
            logger.info("Session registry: in-memory (no Firestore project configured)")
    return _registry
