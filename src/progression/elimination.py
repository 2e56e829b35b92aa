"""
Single elimination bracket generation and management.

The first round pairs seed k with seed N+1-k. Later rounds are placeholders
whose sides are filled by advance_winner as feeder matches complete; the
bracket slot topology never changes once built.
"""
import copy
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import (
    DuplicatePairInBracket,
    InvalidBracketSize,
    InvalidMatch,
    SelfMatchup,
    UnqualifiedPair,
)
from .formats import (
    ROUND_STAGES,
    SUPPORTED_BRACKET_SIZES,
    EliminationFormat,
    format_for_size,
    round_stages,
)
from .models import (
    STAGE_FINAL,
    STAGE_SEMIFINAL,
    STAGE_THIRD_PLACE,
    STATUS_PENDING,
    Match,
    Pair,
)

logger = logging.getLogger(__name__)


def get_stage_for_round(teams_in_round: int) -> str:
    """Stage name for a round with the given number of teams."""
    if teams_in_round not in ROUND_STAGES:
        raise InvalidBracketSize(f"No round is played with {teams_in_round} pairs")
    return ROUND_STAGES[teams_in_round]


def get_stage_sequence(bracket_size: int) -> List[str]:
    _check_bracket_size(bracket_size)
    return round_stages(bracket_size)


def is_supported_bracket_size(bracket_size: int) -> bool:
    return bracket_size in SUPPORTED_BRACKET_SIZES


def _check_bracket_size(bracket_size: int):
    if not is_supported_bracket_size(bracket_size):
        raise InvalidBracketSize(
            f"Bracket size must be one of {', '.join(map(str, SUPPORTED_BRACKET_SIZES))}, got {bracket_size}"
        )


def generate_seed_order(bracket_size: int) -> List[int]:
    """
    Seed numbers listed slot by slot, two slots per first-round match.

    Each half of the draw is built from the half-size order, so seeds 1 and
    2 sit in opposite halves and can only meet in the final. An 8-pair
    draw reads [1, 8, 4, 5, 2, 7, 3, 6].
    """
    _check_bracket_size(bracket_size)
    return _bracket_order(bracket_size)


def _bracket_order(bracket_size: int) -> List[int]:
    if bracket_size == 2:
        return [1, 2]

    upper_half = _bracket_order(bracket_size // 2)
    # Pair each upper seed with its complement
    result = []
    for seed in upper_half:
        result.extend([seed, bracket_size + 1 - seed])
    return result


def first_round_pairings(bracket_size: int) -> List[Tuple[int, int]]:
    """Seed pairings [(1, N), (2, N-1), ...] in seed order."""
    _check_bracket_size(bracket_size)
    return [(k, bracket_size + 1 - k) for k in range(1, bracket_size // 2 + 1)]


def _resolve_format(bracket_size: int, fmt: Optional[EliminationFormat], third_place: bool) -> EliminationFormat:
    _check_bracket_size(bracket_size)
    if fmt is None:
        return format_for_size(bracket_size, third_place)
    if fmt.bracket_size != bracket_size:
        raise InvalidBracketSize(
            f"Format {fmt.id} needs {fmt.bracket_size} pairs, got {bracket_size}"
        )
    return fmt


def _entry_pair_id(entry):
    if isinstance(entry, Pair):
        return entry.id
    return getattr(entry, 'pair_id', entry)


def _build_rounds(first_round: List[Tuple], fmt: EliminationFormat, category_id) -> Dict[str, List[Match]]:
    """first_round holds (pair_a_id, pair_b_id, seeds) in slot order."""
    stages = round_stages(fmt.bracket_size)
    rounds = {}

    rounds[stages[0]] = [
        Match(
            stage=stages[0],
            pair_a_id=pair_a_id,
            pair_b_id=pair_b_id,
            status=STATUS_PENDING,
            category_id=category_id,
            round_number=1,
            match_number=number,
            seeds=seeds,
        )
        for number, (pair_a_id, pair_b_id, seeds) in enumerate(first_round, start=1)
    ]

    matches_in_round = len(first_round)
    for round_number, stage in enumerate(stages[1:], start=2):
        matches_in_round //= 2
        rounds[stage] = [
            Match(stage=stage, category_id=category_id,
                  round_number=round_number, match_number=number)
            for number in range(1, matches_in_round + 1)
        ]

    if fmt.third_place:
        rounds[STAGE_THIRD_PLACE] = [
            Match(stage=STAGE_THIRD_PLACE, category_id=category_id,
                  round_number=len(stages), match_number=1)
        ]
    return rounds


def _bracket_result(fmt: EliminationFormat, rounds: Dict[str, List[Match]], seeded_pairs) -> Dict:
    return {
        'bracket_size': fmt.bracket_size,
        'format': fmt,
        'seeded_pairs': seeded_pairs,
        'rounds': rounds,
        'matches': [m for round_matches in rounds.values() for m in round_matches],
        'total_rounds': len(round_stages(fmt.bracket_size)),
    }


def build_bracket(qualifiers: Sequence, fmt: Optional[EliminationFormat] = None,
                  third_place: bool = True, category_id=None) -> Dict:
    """
    Build a seeded single elimination bracket.

    qualifiers is in seed order (seed 1 first): Qualifier objects, Pairs or
    plain pair ids. Only the first round gets concrete pairs.

    Returns dict with:
    - bracket_size, format, total_rounds
    - seeded_pairs: list of (pair_id, seed)
    - rounds: stage -> list of matches, in play order
    - matches: every match, flattened
    """
    bracket_size = len(qualifiers)
    fmt = _resolve_format(bracket_size, fmt, third_place)

    pair_ids = [_entry_pair_id(q) for q in qualifiers]
    seen = set()
    for pair_id in pair_ids:
        if pair_id in seen:
            raise DuplicatePairInBracket(f"Pair {pair_id} is seeded more than once")
        seen.add(pair_id)

    seed_to_pair = {seed: pair_id for seed, pair_id in enumerate(pair_ids, start=1)}
    order = _bracket_order(bracket_size)
    first_round = []
    for i in range(0, len(order), 2):
        seed_a, seed_b = order[i], order[i + 1]
        first_round.append((seed_to_pair[seed_a], seed_to_pair[seed_b], (seed_a, seed_b)))

    rounds = _build_rounds(first_round, fmt, category_id)
    logger.info("Built %s bracket: %s", fmt.id,
                ', '.join(f"{a}v{b}" for _, _, (a, b) in first_round))

    seeded_pairs = [(pair_id, seed) for seed, pair_id in seed_to_pair.items()]
    return _bracket_result(fmt, rounds, seeded_pairs)


def _place(match: Match, side: str, pair_id):
    attr = 'pair_a_id' if side == 'a' else 'pair_b_id'
    other = match.pair_b_id if side == 'a' else match.pair_a_id
    current = getattr(match, attr)
    if current == pair_id:
        return
    if current is not None:
        raise InvalidMatch(
            f"{match.stage} match {match.match_number} already has {current} on side {side.upper()}"
        )
    if other == pair_id:
        raise InvalidMatch(f"Pair {pair_id} cannot play itself in {match.stage}")
    setattr(match, attr, pair_id)


def advance_winner(matches: List[Match], completed_match: Match) -> List[Match]:
    """
    Feed the result of a completed bracket match into the next round.

    The winner of match m takes side A (odd m) or side B (even m) of match
    ceil(m / 2) in the next round. Semifinal losers fill the third-place
    match the same way. Returns a new list; the input is not modified.
    """
    updated = [copy.copy(m) for m in matches]

    winner = completed_match.winner_id
    if winner is None:
        logger.debug("Match %s has no winner yet; nothing to advance", completed_match.id)
        return updated
    if completed_match.stage in (STAGE_FINAL, STAGE_THIRD_PLACE):
        return updated
    if completed_match.round_number is None or completed_match.match_number is None:
        raise InvalidMatch(f"Match {completed_match.id} is not part of a bracket")

    number = completed_match.match_number
    side = 'a' if number % 2 == 1 else 'b'
    target = next((m for m in updated
                   if m.round_number == completed_match.round_number + 1
                   and m.match_number == (number + 1) // 2
                   and m.stage != STAGE_THIRD_PLACE), None)
    if target is not None:
        _place(target, side, winner)
        logger.info("%s advances to %s match %d", winner, target.stage, target.match_number)

    if completed_match.stage == STAGE_SEMIFINAL:
        third_place = next((m for m in updated if m.stage == STAGE_THIRD_PLACE), None)
        if third_place is not None:
            _place(third_place, side, completed_match.loser_id)

    return updated


def validate_bracket(matches: List[Match], bracket_size: int) -> Dict:
    """Check the number of matches per stage against the bracket size."""
    errors = []
    _check_bracket_size(bracket_size)
    stages = round_stages(bracket_size)

    stage_count = {}
    for match in matches:
        stage_count[match.stage] = stage_count.get(match.stage, 0) + 1

    for index, stage in enumerate(stages):
        expected = 2 ** (len(stages) - index - 1)
        actual = stage_count.get(stage, 0)
        if actual != expected:
            errors.append(f"{stage}: expected {expected} matches, found {actual}")

    if stage_count.get(STAGE_THIRD_PLACE, 0) > 1:
        errors.append(f"{STAGE_THIRD_PLACE}: expected at most 1 match, "
                      f"found {stage_count[STAGE_THIRD_PLACE]}")

    unexpected = set(stage_count) - set(stages) - {STAGE_THIRD_PLACE}
    for stage in sorted(unexpected):
        errors.append(f"{stage}: not part of a bracket of {bracket_size}")

    return {
        'is_valid': not errors,
        'errors': errors,
    }


def get_champion(matches: List[Match]):
    final = next((m for m in matches if m.stage == STAGE_FINAL), None)
    return final.winner_id if final else None


# Manual override: the operator picks first-round matchups by hand

def validate_manual_matchups(matchups: Sequence[Tuple], qualified_pair_ids=None) -> None:
    """Reject self matchups, repeated pairs and pairs outside the selection."""
    qualified = set(qualified_pair_ids) if qualified_pair_ids is not None else None
    used = set()
    for number, (pair_a_id, pair_b_id) in enumerate(matchups, start=1):
        if pair_a_id is None or pair_b_id is None:
            raise InvalidMatch(f"Matchup {number} is missing a pair")
        if pair_a_id == pair_b_id:
            raise SelfMatchup(f"Matchup {number} has pair {pair_a_id} on both sides")
        for pair_id in (pair_a_id, pair_b_id):
            if qualified is not None and pair_id not in qualified:
                raise UnqualifiedPair(f"Pair {pair_id} in matchup {number} is not among the selected qualifiers")
            if pair_id in used:
                raise DuplicatePairInBracket(f"Pair {pair_id} in matchup {number} is already in another matchup")
            used.add(pair_id)


def build_manual_bracket(matchups: Sequence[Tuple], qualified_pair_ids=None,
                         fmt: Optional[EliminationFormat] = None, third_place: bool = True,
                         category_id=None) -> Dict:
    """
    Build a bracket from hand-picked first-round matchups.

    Matchups are used in the given order as bracket slots; seeding is not
    enforced. The result has the same shape as build_bracket.
    """
    fmt = _resolve_format(len(matchups) * 2, fmt, third_place)
    validate_manual_matchups(matchups, qualified_pair_ids)

    first_round = [(pair_a_id, pair_b_id, None) for pair_a_id, pair_b_id in matchups]
    rounds = _build_rounds(first_round, fmt, category_id)
    logger.info("Built manual %s bracket with %d matchups", fmt.id, len(matchups))
    return _bracket_result(fmt, rounds, [])


def manual_bracket_structure(fmt: EliminationFormat) -> List[Dict]:
    """Empty slots for every match of a format, for an operator to fill in."""
    slots = []
    stages = round_stages(fmt.bracket_size)
    for index, stage in enumerate(stages):
        for position in range(1, 2 ** (len(stages) - index - 1) + 1):
            slots.append({'stage': stage, 'position': position, 'pair_a_id': None, 'pair_b_id': None})
    if fmt.third_place:
        slots.append({'stage': STAGE_THIRD_PLACE, 'position': 1, 'pair_a_id': None, 'pair_b_id': None})
    return slots


def get_unused_pairs(matchups: Sequence[Tuple], pair_ids: Sequence) -> List:
    used = {pair_id for matchup in matchups for pair_id in matchup if pair_id is not None}
    return [pair_id for pair_id in pair_ids if pair_id not in used]
