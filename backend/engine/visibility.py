"""
Visibility Projector — the single place where per-viewer redaction happens.

Masking rules, earlier wins:
  1. The viewer's own record is always shown in full.
  2. Finished game: every role and the solution are revealed.
  3. Solution otherwise only for forensic scientist, murderer, accomplice.
  4. The unused tile pool only for the forensic scientist (no card counting).
     Active tiles are public.
  5. Other players' roles:
       murderer ↔ accomplice see each other;
       witness → sees murderer and accomplice (not the other way round);
       everything else is hidden.

Other players' device tokens are never shown. Dealt cards are face-up to the
whole table and are not redacted.
"""
from typing import Any, Dict, Optional

from config import settings
from engine.role_assigner import role_assigner
from models.game import (
    CONSPIRATOR_ROLES, Participant, Phase, Role, ROLE_INFO, ROLE_DISTRIBUTION, Session, SOLUTION_ROLES,
)


def _visible_role(viewer_role: Optional[Role], other: Participant) -> Optional[Role]:
    if viewer_role in CONSPIRATOR_ROLES and other.role in CONSPIRATOR_ROLES:
        return other.role
    if viewer_role == Role.WITNESS and other.role in CONSPIRATOR_ROLES:
        return other.role
    return None


def _project_participant(other: Participant, viewer: Optional[Participant], finished: bool) -> Participant:
    if viewer is not None and other.id == viewer.id:
        return other
    role = other.role if finished else _visible_role(viewer.role if viewer else None, other)
    return other.model_copy(update={"role": role, "device_id": None})


def project(session: Session, viewer_id: Optional[str] = None) -> Session:
    """Redacted copy of `session` as seen by `viewer_id` (None = anonymous)."""
    viewer = session.participant(viewer_id)
    viewer_role = viewer.role if viewer else None
    finished = session.phase == Phase.FINISHED

    can_see_solution = finished or viewer_role in SOLUTION_ROLES
    return session.model_copy(update={
        "participants": tuple(_project_participant(p, viewer, finished) for p in session.participants),
        "solution": session.solution if can_see_solution else None,
        "tile_pool": session.tile_pool if viewer_role == Role.FORENSIC_SCIENTIST else (),
    })


def lobby_summary(player_count: int) -> Dict[str, Any]:
    """Role breakdown that starting now would produce, shown to the lobby."""
    if player_count not in ROLE_DISTRIBUTION:
        return {
            "summary": "",
            "role_counts": {},
            "player_count_warning": (
                f"This game needs {settings.min_players}–{settings.max_players} players "
                f"(currently {player_count})."
            ),
        }

    counts = role_assigner.role_counts(player_count)
    parts = [
        f"{n} {ROLE_INFO[role]['name'].lower()}{'s' if n != 1 else ''}"
        for role, n in counts.items()
    ]
    return {
        "summary": f"In this game: {', '.join(parts)}.",
        "role_counts": {role.value: n for role, n in counts.items()},
        "player_count_warning": "",
    }


def build_view(session: Session, viewer_id: Optional[str] = None) -> Dict[str, Any]:
    """
    JSON-ready view for a response. Redaction is applied first; the
    version counter stays server-side.
    """
    redacted = project(session, viewer_id)
    view = redacted.model_dump(mode="json", exclude={"version"})

    viewer = session.participant(viewer_id)
    view["viewer_id"] = viewer.id if viewer else None
    view["role_info"] = ROLE_INFO[viewer.role] if viewer and viewer.role else None
    view["lobby_summary"] = (
        lobby_summary(len(session.participants)) if session.phase == Phase.LOBBY else None
    )
    return view
