"""
Accusation Resolver — one-shot guesses at the solution.

Validation order (each rejection is distinct):
  phase → accuser exists → accuser is not the Forensic Scientist →
  accuser has not accused → target exists → both cards are in the target's hand

Cards only need to belong to the target, not to the solution, so a player
may bluff with real-but-wrong cards. Correctness is exact equality of all
three solution fields.

Resolution, once per valid accusation:
  1. correct                       → investigators win immediately
  2. every eligible player spent   → murderer wins
  3. otherwise                     → discussion continues
"""
import logging
from typing import Optional

from engine.outcome import ErrorKind, Outcome
from models.game import (
    Accusation, Participant, Phase, Role, Session, Solution, SOLUTION_ROLES, Winner, _utcnow,
)

logger = logging.getLogger(__name__)


def is_correct(solution: Optional[Solution], target_id: str, evidence_id: str, method_id: str) -> bool:
    return (
        solution is not None
        and solution.murderer_id == target_id
        and solution.evidence_id == evidence_id
        and solution.method_id == method_id
    )


def is_eligible_accuser(participant: Participant) -> bool:
    """Players whose failed accusations count toward the murderer's win."""
    return participant.role not in SOLUTION_ROLES


def finish(session: Session, winner: Winner, reason: str, **updates) -> Session:
    """Close the current round and end the game."""
    rounds = session.rounds
    latest = session.latest_round
    if latest is not None and latest.ended_at is None:
        rounds = session.with_latest_round(latest.model_copy(update={"ended_at": _utcnow()}))
    logger.info(f"[{session.room_code}] Game finished — winner={winner.value} ({reason})")
    return session.touch(phase=Phase.FINISHED, winner=winner, win_reason=reason, rounds=rounds, **updates)


class AccusationResolver:

    def accuse(
        self,
        session: Session,
        accuser_id: str,
        target_id: str,
        evidence_id: str,
        method_id: str,
    ) -> Outcome:
        if session.phase != Phase.DISCUSSION:
            return Outcome.failure(session, ErrorKind.WRONG_PHASE, "It is not time to accuse")

        accuser = session.participant(accuser_id)
        if accuser is None:
            return Outcome.failure(session, ErrorKind.PLAYER_NOT_FOUND)
        if accuser.role == Role.FORENSIC_SCIENTIST:
            return Outcome.failure(session, ErrorKind.SCIENTIST_CANNOT_ACCUSE)
        if accuser.has_accused:
            return Outcome.failure(session, ErrorKind.ACCUSATION_SPENT)

        target = session.participant(target_id)
        if target is None:
            return Outcome.failure(session, ErrorKind.TARGET_NOT_FOUND)
        evidence = target.holds_evidence(evidence_id)
        method = target.holds_method(method_id)
        if evidence is None or method is None:
            return Outcome.failure(session, ErrorKind.CARDS_NOT_TARGETS)

        correct = is_correct(session.solution, target_id, evidence_id, method_id)
        accusation = Accusation(
            accuser_id=accuser.id,
            accuser_name=accuser.name,
            target_id=target.id,
            target_name=target.name,
            evidence_id=evidence.id,
            evidence_name=evidence.name,
            method_id=method.id,
            method_name=method.name,
            is_correct=correct,
        )

        participants = session.with_participant(accuser.model_copy(update={"has_accused": True}))
        latest = session.latest_round
        rounds = session.with_latest_round(
            latest.model_copy(update={"accusations": latest.accusations + (accusation,)})
        )
        recorded = session.touch(
            participants=participants,
            rounds=rounds,
            accusations=session.accusations + (accusation,),
        )
        logger.info(
            f"[{session.room_code}] {accuser.name} accused {target.name} "
            f"({'correct' if correct else 'wrong'})"
        )

        if correct:
            updated = finish(
                recorded,
                Winner.INVESTIGATORS,
                f"{accuser.name} correctly identified the murderer and the crime",
            )
        elif all(p.has_accused for p in participants if is_eligible_accuser(p)):
            updated = finish(recorded, Winner.MURDERER, "All investigators failed their accusations")
        else:
            updated = recorded

        return Outcome.success(updated, is_correct=correct)


# Module-level singleton
accusation_resolver = AccusationResolver()
