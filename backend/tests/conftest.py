"""
Shared fixtures for the engine, registry and HTTP tests.
"""
import os
import random
import sys
from typing import Callable, List

import pytest

# Add backend directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from engine import lifecycle
from engine.game_master import game_master
from models.game import Participant, Phase, Role, Session

NAMES = ["Alice", "Bruno", "Carmen", "Dmitri", "Elena", "Farid", "Greta", "Hugo", "Ines", "Jonas", "Kira", "Luis"]


def players_with(session: Session, role: Role) -> List[Participant]:
    return [p for p in session.participants if p.role == role]


def one_with(session: Session, role: Role) -> Participant:
    matches = players_with(session, role)
    assert len(matches) == 1, f"expected exactly one {role.value}, got {len(matches)}"
    return matches[0]


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def make_lobby(rng) -> Callable[[int], Session]:
    """Lobby with `n` participants; the first one is the host."""

    def _make(n: int) -> Session:
        outcome = lifecycle.create_session("ABC234", NAMES[0], device_id="device-0", rng=rng)
        session = outcome.session
        for i in range(1, n):
            outcome = lifecycle.join(session, NAMES[i], f"device-{i}", rng)
            assert outcome.ok, outcome.message
            session = outcome.session
        return session

    return _make


@pytest.fixture
def make_game(make_lobby, rng) -> Callable[..., Session]:
    """Drive a fresh game forward to `phase` (role_reveal … discussion)."""

    def _make(n: int = 4, phase: Phase = Phase.DISCUSSION) -> Session:
        session = make_lobby(n)
        host = session.host.id

        session = game_master.start(session, host, rng).session
        if phase == Phase.ROLE_REVEAL:
            return session

        session = game_master.proceed(session, host).session
        if phase == Phase.MURDER_SELECTION:
            return session

        murderer = one_with(session, Role.MURDERER)
        outcome = game_master.select_solution(
            session, murderer.id, murderer.evidence_cards[2].id, murderer.method_cards[0].id, rng
        )
        assert outcome.ok, outcome.message
        session = outcome.session
        if phase == Phase.CLUE_GIVING:
            return session

        scientist = one_with(session, Role.FORENSIC_SCIENTIST)
        outcome = game_master.confirm_clues(session, scientist.id)
        assert outcome.ok, outcome.message
        return outcome.session

    return _make
