"""
Qualification and seeding.

Group winners always advance. Remaining bracket slots go to the best
runners-up across groups (wildcards). Group winners are seeded ahead of
every wildcard.
"""
import logging
from typing import Dict, List

from .errors import InsufficientQualifiers, InvalidBracketSize
from .formats import SUPPORTED_BRACKET_SIZES
from .models import Standing

logger = logging.getLogger(__name__)

POSITION_LABELS = {1: '1st', 2: '2nd', 3: '3rd'}


def position_label(position: int) -> str:
    return POSITION_LABELS.get(position, f"{position}th")


class Qualifier:
    def __init__(self, standing: Standing, group_name: str, group_position: int, seed=None):
        self.standing = standing
        self.group_name = group_name
        self.group_position = group_position
        self.seed = seed

    @property
    def pair_id(self):
        return self.standing.pair_id

    @property
    def pair(self):
        return self.standing.pair

    @property
    def source(self) -> str:
        return f"{position_label(self.group_position)} {self.group_name}"

    def to_dict(self) -> Dict:
        return {
            'pair_id': self.pair_id,
            'pair': self.pair.display_name if self.pair else None,
            'seed': self.seed,
            'source': self.source,
            'group_name': self.group_name,
            'group_position': self.group_position,
            'standing': self.standing.to_dict(),
        }

    def __repr__(self):
        return f"Qualifier(seed={self.seed}, pair_id={self.pair_id}, source={self.source})"


def _performance_key(standing: Standing):
    return (-standing.points, -standing.sets_diff, -standing.games_diff)


def rank_wildcards(candidates: List[Qualifier]) -> List[Qualifier]:
    """Order candidates from different groups by points, set and game differential."""
    return sorted(candidates, key=lambda q: _performance_key(q.standing))


def suggest_bracket_size(group_count: int) -> int:
    """Largest supported bracket that first and second places can fill."""
    available = 2 * group_count
    fitting = [size for size in SUPPORTED_BRACKET_SIZES if size <= available]
    return max(fitting) if fitting else 0


def resolve_qualifiers(standings_by_group: Dict[str, List[Standing]], bracket_size: int) -> List[Qualifier]:
    """
    Select bracket_size qualifiers from ranked group standings and seed them.

    standings_by_group maps group name to that group's ranked standings, in
    group order. Only first and second places are ever considered.
    """
    if bracket_size not in SUPPORTED_BRACKET_SIZES:
        raise InvalidBracketSize(
            f"Bracket size must be one of {', '.join(map(str, SUPPORTED_BRACKET_SIZES))}, got {bracket_size}"
        )

    first_places = []
    second_places = []
    for group_name, standings in standings_by_group.items():
        if len(standings) >= 1:
            first_places.append(Qualifier(standings[0], group_name, 1))
        if len(standings) >= 2:
            second_places.append(Qualifier(standings[1], group_name, 2))

    available = len(first_places) + len(second_places)
    if available < bracket_size:
        raise InsufficientQualifiers(
            f"Bracket of {bracket_size} needs {bracket_size} qualifiers, "
            f"only {available} first and second places available"
        )

    # Group winners from different groups are ordered the same way as wildcards
    first_places = rank_wildcards(first_places)
    if len(first_places) > bracket_size:
        logger.warning("%d group winners for a bracket of %d; dropping %s",
                       len(first_places), bracket_size,
                       [q.source for q in first_places[bracket_size:]])
        first_places = first_places[:bracket_size]

    wildcard_slots = bracket_size - len(first_places)
    wildcards = rank_wildcards(second_places)[:wildcard_slots]

    qualifiers = first_places + wildcards
    for seed, qualifier in enumerate(qualifiers, start=1):
        qualifier.seed = seed

    logger.info("Resolved %d qualifiers (%d group winners, %d wildcards)",
                len(qualifiers), len(first_places), len(wildcards))
    for qualifier in qualifiers:
        logger.debug("Seed %d: %s (%s, %d pts)", qualifier.seed, qualifier.pair_id,
                     qualifier.source, qualifier.standing.points)
    return qualifiers
