"""
Elimination formats: which knockout stages a category plays.
"""
from typing import Dict, List, Optional

from .models import (
    STAGE_FINAL,
    STAGE_QUARTERFINAL,
    STAGE_ROUND_OF_16,
    STAGE_ROUND_OF_32,
    STAGE_ROUND_OF_64,
    STAGE_SEMIFINAL,
    STAGE_THIRD_PLACE,
)

ROUND_STAGES = {
    2: STAGE_FINAL,
    4: STAGE_SEMIFINAL,
    8: STAGE_QUARTERFINAL,
    16: STAGE_ROUND_OF_16,
    32: STAGE_ROUND_OF_32,
    64: STAGE_ROUND_OF_64,
}

SUPPORTED_BRACKET_SIZES = tuple(sorted(ROUND_STAGES))

STAGE_NAMES = {
    STAGE_ROUND_OF_64: "Round of 64",
    STAGE_ROUND_OF_32: "Round of 32",
    STAGE_ROUND_OF_16: "Round of 16",
    STAGE_QUARTERFINAL: "Quarterfinal",
    STAGE_SEMIFINAL: "Semifinal",
    STAGE_FINAL: "Final",
    STAGE_THIRD_PLACE: "Third Place",
}


def get_stage_name(stage: str) -> str:
    return STAGE_NAMES.get(stage, stage)


def round_stages(bracket_size: int) -> List[str]:
    """Stages from the first round through the final."""
    stages = []
    teams_in_round = bracket_size
    while teams_in_round >= 2:
        stages.append(ROUND_STAGES[teams_in_round])
        teams_in_round //= 2
    return stages


class EliminationFormat:
    def __init__(self, id, name, description, bracket_size, third_place):
        self.id = id
        self.name = name
        self.description = description
        self.bracket_size = bracket_size
        # A third-place match needs two semifinal losers
        self.third_place = third_place and bracket_size >= 4

    @property
    def stages(self) -> List[str]:
        stages = round_stages(self.bracket_size)
        if self.third_place:
            stages.append(STAGE_THIRD_PLACE)
        return stages

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'bracket_size': self.bracket_size,
            'third_place': self.third_place,
            'stages': self.stages,
        }

    def __repr__(self):
        return f"EliminationFormat(id={self.id}, bracket_size={self.bracket_size}, third_place={self.third_place})"


ELIMINATION_FORMATS = [
    EliminationFormat('final_only', "Final only",
                      "2 pairs - final only", 2, False),
    EliminationFormat('semifinals_only', "Semifinals and final",
                      "4 pairs - semifinals and final, no third place", 4, False),
    EliminationFormat('semifinals', "Full semifinals",
                      "4 pairs - semifinals, final and third place", 4, True),
    EliminationFormat('quarterfinals_only', "Quarterfinals",
                      "8 pairs - quarterfinals, semifinals and final, no third place", 8, False),
    EliminationFormat('quarterfinals', "Full quarterfinals",
                      "8 pairs - quarterfinals, semifinals, final and third place", 8, True),
    EliminationFormat('round_of_16_only', "Round of 16",
                      "16 pairs - round of 16 through the final, no third place", 16, False),
    EliminationFormat('round_of_16', "Full round of 16",
                      "16 pairs - round of 16 through the final and third place", 16, True),
    EliminationFormat('round_of_32_only', "Round of 32",
                      "32 pairs - round of 32 through the final, no third place", 32, False),
    EliminationFormat('round_of_32', "Full round of 32",
                      "32 pairs - round of 32 through the final and third place", 32, True),
]


def get_format(format_id: str) -> Optional[EliminationFormat]:
    return next((f for f in ELIMINATION_FORMATS if f.id == format_id), None)


def format_for_size(bracket_size: int, third_place: bool = True) -> Optional[EliminationFormat]:
    """Registered format for a bracket size, or an ad-hoc one for sizes with no entry."""
    if bracket_size not in ROUND_STAGES:
        return None
    for fmt in ELIMINATION_FORMATS:
        if fmt.bracket_size == bracket_size and fmt.third_place == (third_place and bracket_size >= 4):
            return fmt
    suffix = '' if third_place else '_only'
    return EliminationFormat(f"{ROUND_STAGES[bracket_size]}{suffix}",
                             get_stage_name(ROUND_STAGES[bracket_size]),
                             f"{bracket_size} pairs", bracket_size, third_place)


def get_recommended_format(team_count: int) -> Optional[EliminationFormat]:
    """Smallest registered format that can hold team_count pairs."""
    suitable = [f for f in ELIMINATION_FORMATS if team_count <= f.bracket_size]
    if not suitable:
        return None
    return min(suitable, key=lambda f: f.bracket_size)
