"""
Role Assignment & Dealing — deterministic given a random source.

Responsibilities:
- Flatten ROLE_DISTRIBUTION for the head-count, shuffle, assign positionally
- Deal contiguous chunks of two independently shuffled decks (evidence, method)

Called by the game master when the host starts the game. Player-count bounds
are checked by the caller before this stage runs.
"""
import logging
import random
from typing import Dict, List, Optional, Tuple

from config import settings
from data.catalog import shuffled_evidence_deck, shuffled_method_deck
from models.game import Participant, Role, ROLE_DISTRIBUTION

logger = logging.getLogger(__name__)


class RoleAssigner:
    """
    Assigns roles and private hands to every participant.

    ROLE_DISTRIBUTION is keyed by participant count (4–12). Each participant
    receives `settings.cards_per_player` evidence and method cards; no card
    is dealt twice.
    """

    def build_role_list(self, player_count: int) -> List[Role]:
        """Role table for `player_count`, flattened in table order (unshuffled)."""
        if player_count not in ROLE_DISTRIBUTION:
            raise ValueError(
                f"No role distribution defined for {player_count} players. "
                f"Supported: {sorted(ROLE_DISTRIBUTION)}."
            )
        roles: List[Role] = []
        for role, count in ROLE_DISTRIBUTION[player_count].items():
            roles.extend([role] * count)
        return roles

    def role_counts(self, player_count: int) -> Dict[Role, int]:
        return {role: n for role, n in ROLE_DISTRIBUTION[player_count].items() if n}

    def assign_roles(
        self, participants: Tuple[Participant, ...], rng: Optional[random.Random] = None
    ) -> Tuple[Participant, ...]:
        rng = rng or random.Random()
        roles = self.build_role_list(len(participants))
        rng.shuffle(roles)
        return tuple(p.model_copy(update={"role": roles[i]}) for i, p in enumerate(participants))

    def deal_hands(
        self, participants: Tuple[Participant, ...], rng: Optional[random.Random] = None
    ) -> Tuple[Participant, ...]:
        rng = rng or random.Random()
        evidence = shuffled_evidence_deck(rng)
        methods = shuffled_method_deck(rng)
        per = settings.cards_per_player
        if len(participants) * per > min(len(evidence), len(methods)):
            raise ValueError(f"Decks too small to deal {per} cards to {len(participants)} players")

        return tuple(
            p.model_copy(update={
                "evidence_cards": tuple(evidence[i * per:(i + 1) * per]),
                "method_cards": tuple(methods[i * per:(i + 1) * per]),
            })
            for i, p in enumerate(participants)
        )

    def assign(
        self, participants: Tuple[Participant, ...], rng: Optional[random.Random] = None
    ) -> Tuple[Participant, ...]:
        """Roles then hands, in participant order."""
        rng = rng or random.Random()
        dealt = self.deal_hands(self.assign_roles(participants, rng), rng)
        logger.debug("Assigned roles: %s", [p.role.value for p in dealt])
        return dealt


# Module-level singleton
role_assigner = RoleAssigner()
