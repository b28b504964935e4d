"""
Clue Board — the shared tiles the Forensic Scientist uses to hint at the crime.

Board layout after the murder is chosen:
  - 4 scene tiles drawn from the pool (replaceable, one per round from round 2)
  - the fixed cause-of-death tile and the fixed location tile (never replaced)

Lock rules:
  - confirm locks every active tile; a locked selection never changes
  - a replacement tile enters unlocked and unselected
  - a displaced tile goes back to the pool with selection and lock cleared
"""
import logging
import random
from typing import Any, Dict, Optional

from data.catalog import (
    all_tiles, fixed_cause_of_death_tile, fixed_location_tile, random_scene_tiles,
)
from engine.outcome import ErrorKind, Outcome
from models.game import ClueTile, Session

logger = logging.getLogger(__name__)

SCENE_TILES_ON_BOARD = 4
FIRST_REPLACEMENT_ROUND = 2


def _fresh(tile: ClueTile) -> ClueTile:
    return tile.model_copy(update={"selected_option": None, "locked": False})


class ClueBoard:

    def deal_board(self, session: Session, rng: Optional[random.Random] = None) -> Dict[str, Any]:
        """
        Draw the opening board from the session's pool.
        Returns the session field updates (tiles + shrunken pool).
        """
        pool_ids = {t.id for t in session.tile_pool}
        outside_pool = {t.id for t in all_tiles()} - pool_ids
        scene = [_fresh(t) for t in random_scene_tiles(SCENE_TILES_ON_BOARD, outside_pool, rng)]
        drawn = {t.id for t in scene}
        return {
            "scene_tiles": tuple(scene),
            "cause_of_death_tile": _fresh(fixed_cause_of_death_tile()),
            "location_tile": _fresh(fixed_location_tile()),
            "tile_pool": tuple(t for t in session.tile_pool if t.id not in drawn),
        }

    def select_option(self, session: Session, tile_id: str, option_index: int) -> Outcome:
        tile = next((t for t in session.active_tiles if t.id == tile_id), None)
        if tile is None:
            return Outcome.failure(session, ErrorKind.TILE_NOT_FOUND)
        if not 0 <= option_index < len(tile.options):
            return Outcome.failure(session, ErrorKind.INVALID_OPTION)
        if tile.locked:
            # Locked selections are final; report success without touching the board
            return Outcome.success(session)

        updated = tile.model_copy(update={"selected_option": option_index})
        return Outcome.success(session.touch(**self._put(session, updated)))

    def lock_all(self, session: Session) -> Dict[str, Any]:
        def lock(tile: Optional[ClueTile]) -> Optional[ClueTile]:
            return tile.model_copy(update={"locked": True}) if tile else None

        return {
            "scene_tiles": tuple(lock(t) for t in session.scene_tiles),
            "cause_of_death_tile": lock(session.cause_of_death_tile),
            "location_tile": lock(session.location_tile),
        }

    def replace(self, session: Session, old_tile_id: str, new_tile_id: str) -> Outcome:
        """Swap one active scene tile for a pool tile, at most once per round."""
        current = session.latest_round
        if session.current_round < FIRST_REPLACEMENT_ROUND or current is None:
            return Outcome.failure(session, ErrorKind.REPLACE_TOO_EARLY)
        if current.replaced_tile_id:
            return Outcome.failure(session, ErrorKind.ALREADY_REPLACED)

        incoming = next((t for t in session.tile_pool if t.id == new_tile_id), None)
        if incoming is None:
            return Outcome.failure(session, ErrorKind.TILE_NOT_AVAILABLE)
        outgoing = next((t for t in session.scene_tiles if t.id == old_tile_id), None)
        if outgoing is None:
            return Outcome.failure(session, ErrorKind.TILE_NOT_FOUND)

        scene = tuple(_fresh(incoming) if t.id == old_tile_id else t for t in session.scene_tiles)
        pool = tuple(t for t in session.tile_pool if t.id != new_tile_id) + (_fresh(outgoing),)
        round_log = current.model_copy(update={
            "replaced_tile_id": new_tile_id,
            "displaced_tile_id": old_tile_id,
            "revealed_tile_ids": current.revealed_tile_ids + (new_tile_id,),
        })
        logger.info(f"[{session.room_code}] Round {current.number}: tile {old_tile_id} → {new_tile_id}")
        return Outcome.success(session.touch(
            scene_tiles=scene,
            tile_pool=pool,
            rounds=session.with_latest_round(round_log),
        ))

    @staticmethod
    def _put(session: Session, tile: ClueTile) -> Dict[str, Any]:
        if session.cause_of_death_tile and session.cause_of_death_tile.id == tile.id:
            return {"cause_of_death_tile": tile}
        if session.location_tile and session.location_tile.id == tile.id:
            return {"location_tile": tile}
        return {"scene_tiles": tuple(tile if t.id == tile.id else t for t in session.scene_tiles)}


# Module-level singleton
clue_board = ClueBoard()
