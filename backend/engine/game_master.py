"""
Game Master — the phase state machine. Pure deterministic Python.

  lobby → role_reveal → murder_selection → clue_giving → discussion
                                               ↑              │
                                               └── next round ┤
                                                              └→ finished
  reset: any phase → lobby (host only)

Every transition is a guarded function (Session, args) -> Outcome. A failed
guard returns the untouched session and a reason; nothing is partially applied.
All mutations of the sub-engines (role assignment, clue board, accusations)
are reachable only through these transitions.
"""
import logging
import random
from datetime import timedelta
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Optional

from config import settings
from data.catalog import all_tiles
from engine.accusations import accusation_resolver, finish
from engine.clue_board import clue_board
from engine.outcome import ErrorKind, Outcome
from engine.role_assigner import role_assigner
from models.game import Participant, Phase, Role, Round, Session, Solution, Winner, _utcnow

logger = logging.getLogger(__name__)


class Action(str, Enum):
    START = "start"
    PROCEED = "proceed"
    SELECT_SOLUTION = "select_solution"
    SELECT_TILE_OPTION = "select_tile_option"
    REPLACE_TILE = "replace_tile"
    CONFIRM_CLUES = "confirm_clues"
    ACCUSE = "accuse"
    NEXT_ROUND = "next_round"
    RESET = "reset"


# Which actions each phase accepts. RESET is valid everywhere.
PHASE_ACTIONS: Dict[Phase, FrozenSet[Action]] = {
    Phase.LOBBY: frozenset({Action.START}),
    Phase.ROLE_REVEAL: frozenset({Action.PROCEED}),
    Phase.MURDER_SELECTION: frozenset({Action.SELECT_SOLUTION}),
    Phase.CLUE_GIVING: frozenset({Action.SELECT_TILE_OPTION, Action.REPLACE_TILE, Action.CONFIRM_CLUES}),
    Phase.DISCUSSION: frozenset({Action.ACCUSE, Action.NEXT_ROUND}),
    Phase.FINISHED: frozenset(),
}

WRONG_PHASE_MESSAGES: Dict[Action, str] = {
    Action.START: "The game has already started",
    Action.PROCEED: "Cannot continue in this phase",
    Action.SELECT_SOLUTION: "It is not time to choose the crime",
    Action.SELECT_TILE_OPTION: "It is not time to give clues",
    Action.REPLACE_TILE: "It is not time to replace tiles",
    Action.CONFIRM_CLUES: "It is not time to confirm clues",
    Action.ACCUSE: "It is not time to accuse",
    Action.NEXT_ROUND: "It is not time to advance the round",
    Action.RESET: "Cannot reset now",
}


class GameMaster:
    """
    Phase state machine for one session value.
    Holds no state of its own; every method returns a new Outcome.
    """

    def allows(self, session: Session, action: Action) -> bool:
        return action == Action.RESET or action in PHASE_ACTIONS[session.phase]

    def _phase_guard(self, session: Session, action: Action) -> Optional[Outcome]:
        if self.allows(session, action):
            return None
        return Outcome.failure(session, ErrorKind.WRONG_PHASE, WRONG_PHASE_MESSAGES[action])

    @staticmethod
    def _host_guard(session: Session, actor_id: str) -> Optional[Outcome]:
        actor = session.participant(actor_id)
        if actor is None:
            return Outcome.failure(session, ErrorKind.PLAYER_NOT_FOUND)
        if not actor.is_host:
            return Outcome.failure(session, ErrorKind.NOT_HOST)
        return None

    @staticmethod
    def _scientist_guard(session: Session, actor_id: str) -> Optional[Outcome]:
        actor = session.participant(actor_id)
        if actor is None or actor.role != Role.FORENSIC_SCIENTIST:
            return Outcome.failure(session, ErrorKind.NOT_SCIENTIST)
        return None

    # ── lobby → role_reveal ───────────────────────────────────────────────────

    def start(self, session: Session, actor_id: str, rng: Optional[random.Random] = None) -> Outcome:
        """Host starts the game: assign roles and deal hands."""
        rejected = self._host_guard(session, actor_id) or self._phase_guard(session, Action.START)
        if rejected:
            return rejected

        n = len(session.participants)
        if n < settings.min_players:
            return Outcome.failure(
                session, ErrorKind.TOO_FEW_PLAYERS, f"At least {settings.min_players} players are needed"
            )
        if n > settings.max_players:
            return Outcome.failure(
                session, ErrorKind.TOO_MANY_PLAYERS, f"Maximum {settings.max_players} players"
            )

        participants = role_assigner.assign(session.participants, rng)
        histogram = {r.value: c for r, c in role_assigner.role_counts(n).items()}
        logger.info(f"[{session.room_code}] Game started with {n} players: {histogram}")
        return Outcome.success(session.touch(phase=Phase.ROLE_REVEAL, participants=participants))

    # ── role_reveal → murder_selection ────────────────────────────────────────

    def proceed(self, session: Session, actor_id: str) -> Outcome:
        rejected = self._host_guard(session, actor_id) or self._phase_guard(session, Action.PROCEED)
        if rejected:
            return rejected
        return Outcome.success(session.touch(phase=Phase.MURDER_SELECTION))

    # ── murder_selection → clue_giving ────────────────────────────────────────

    def select_solution(
        self,
        session: Session,
        actor_id: str,
        evidence_id: str,
        method_id: str,
        rng: Optional[random.Random] = None,
    ) -> Outcome:
        """
        The murderer picks one evidence + one method card from their own hand.
        Writes the solution once, deals the opening board and opens round 1.
        """
        rejected = self._phase_guard(session, Action.SELECT_SOLUTION)
        if rejected:
            return rejected

        murderer = session.participant(actor_id)
        if murderer is None:
            return Outcome.failure(session, ErrorKind.PLAYER_NOT_FOUND)
        if murderer.role != Role.MURDERER:
            return Outcome.failure(session, ErrorKind.NOT_MURDERER)
        if not murderer.holds_evidence(evidence_id) or not murderer.holds_method(method_id):
            return Outcome.failure(session, ErrorKind.CARDS_NOT_OWNED)

        board = clue_board.deal_board(session, rng)
        first_round = Round(number=1, revealed_tile_ids=tuple(t.id for t in board["scene_tiles"]))
        logger.info(f"[{session.room_code}] Murderer chose the crime — round 1 begins")
        return Outcome.success(session.touch(
            phase=Phase.CLUE_GIVING,
            solution=Solution(murderer_id=murderer.id, evidence_id=evidence_id, method_id=method_id),
            current_round=1,
            rounds=(first_round,),
            forensic_ready=False,
            **board,
        ))

    # ── clue_giving ───────────────────────────────────────────────────────────

    def select_tile_option(self, session: Session, actor_id: str, tile_id: str, option_index: int) -> Outcome:
        """Set an option on an unlocked tile. Locked tiles are left as they are."""
        rejected = self._phase_guard(session, Action.SELECT_TILE_OPTION) or self._scientist_guard(session, actor_id)
        if rejected:
            return rejected
        return clue_board.select_option(session, tile_id, option_index)

    def replace_scene_tile(self, session: Session, actor_id: str, old_tile_id: str, new_tile_id: str) -> Outcome:
        """Swap a scene tile for a pool tile. Round 2 onwards, once per round."""
        rejected = self._phase_guard(session, Action.REPLACE_TILE)
        if rejected:
            return rejected
        if session.current_round < 2:
            return Outcome.failure(session, ErrorKind.REPLACE_TOO_EARLY)
        rejected = self._scientist_guard(session, actor_id)
        if rejected:
            return rejected
        return clue_board.replace(session, old_tile_id, new_tile_id)

    # ── clue_giving → discussion ──────────────────────────────────────────────

    def confirm_clues(self, session: Session, actor_id: str) -> Outcome:
        """Lock every active tile and open the (advisory) discussion deadline."""
        rejected = self._phase_guard(session, Action.CONFIRM_CLUES) or self._scientist_guard(session, actor_id)
        if rejected:
            return rejected

        deadline = _utcnow() + timedelta(seconds=session.discussion_duration_seconds)
        logger.info(f"[{session.room_code}] Round {session.current_round} clues confirmed")
        return Outcome.success(session.touch(
            phase=Phase.DISCUSSION,
            forensic_ready=True,
            discussion_deadline=deadline,
            **clue_board.lock_all(session),
        ))

    # ── discussion → clue_giving | finished ───────────────────────────────────

    def accuse(self, session: Session, actor_id: str, target_id: str, evidence_id: str, method_id: str) -> Outcome:
        rejected = self._phase_guard(session, Action.ACCUSE)
        if rejected:
            return rejected
        return accusation_resolver.accuse(session, actor_id, target_id, evidence_id, method_id)

    def next_round(self, session: Session, actor_id: str) -> Outcome:
        """
        Close the round. After the last round the murderer wins; otherwise open
        the next one with the existing tiles still locked.
        """
        rejected = self._phase_guard(session, Action.NEXT_ROUND) or self._scientist_guard(session, actor_id)
        if rejected:
            return rejected

        if session.current_round >= session.max_rounds:
            return Outcome.success(finish(
                session, Winner.MURDERER, "The rounds ran out without solving the crime",
                discussion_deadline=None,
            ))

        now = _utcnow()
        closed = session.latest_round.model_copy(update={"ended_at": now})
        number = session.current_round + 1
        logger.info(f"[{session.room_code}] Round {number} begins")
        return Outcome.success(session.touch(
            phase=Phase.CLUE_GIVING,
            current_round=number,
            rounds=session.with_latest_round(closed) + (Round(number=number, started_at=now),),
            forensic_ready=False,
            discussion_deadline=None,
            **clue_board.lock_all(session),
        ))

    # ── any → lobby ───────────────────────────────────────────────────────────

    def reset(self, session: Session, actor_id: str) -> Outcome:
        """Back to the lobby for another play-through, keeping everyone seated."""
        rejected = self._host_guard(session, actor_id)
        if rejected:
            return rejected

        participants = tuple(
            Participant(
                id=p.id,
                name=p.name,
                device_id=p.device_id,
                avatar=p.avatar,
                is_host=p.is_host,
                joined_at=p.joined_at,
            )
            for p in session.participants
        )
        logger.info(f"[{session.room_code}] Reset to lobby")
        return Outcome.success(session.touch(
            phase=Phase.LOBBY,
            participants=participants,
            solution=None,
            scene_tiles=(),
            cause_of_death_tile=None,
            location_tile=None,
            tile_pool=tuple(all_tiles()),
            current_round=0,
            rounds=(),
            discussion_deadline=None,
            forensic_ready=False,
            winner=None,
            win_reason=None,
            accusations=(),
        ))

    # ── dispatcher ────────────────────────────────────────────────────────────

    def handlers(self) -> Dict[Action, Callable[..., Outcome]]:
        return {
            Action.START: self.start,
            Action.PROCEED: self.proceed,
            Action.SELECT_SOLUTION: self.select_solution,
            Action.SELECT_TILE_OPTION: self.select_tile_option,
            Action.REPLACE_TILE: self.replace_scene_tile,
            Action.CONFIRM_CLUES: self.confirm_clues,
            Action.ACCUSE: self.accuse,
            Action.NEXT_ROUND: self.next_round,
            Action.RESET: self.reset,
        }

    def apply(self, session: Session, action: Action, actor_id: str, **kwargs: Any) -> Outcome:
        """Route a command verb to its transition."""
        return self.handlers()[action](session, actor_id, **kwargs)


# Module-level singleton
game_master = GameMaster()
