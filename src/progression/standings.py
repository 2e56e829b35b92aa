"""
Standings calculation.

Standings are recomputed from the match log on every call; nothing here is
cached. Group standings are ranked by the tie-break cascade:

    points -> set differential -> game differential -> head-to-head
    -> sets won -> games won -> roster order
"""
import logging
from functools import cmp_to_key
from typing import Dict, Iterable, List

from .models import (
    ELIMINATION_STAGES,
    STAGE_FINAL,
    STAGE_GROUP,
    STAGE_THIRD_PLACE,
    Group,
    Match,
    Pair,
    Score,
    Standing,
)

logger = logging.getLogger(__name__)

DEFAULT_POINTS_PER_WIN = 2
DEFAULT_POINTS_PER_LOSS = 0
ELIMINATION_POINTS_PER_WIN = 3

STATUS_CHAMPION = 'champion'
STATUS_RUNNER_UP = 'runner_up'
STATUS_THIRD_PLACE = 'third_place'
STATUS_ACTIVE = 'active'
STATUS_ELIMINATED = 'eliminated'

ELIMINATION_STATUS_ORDER = {
    STATUS_CHAMPION: 1,
    STATUS_RUNNER_UP: 2,
    STATUS_THIRD_PLACE: 3,
    STATUS_ACTIVE: 4,
    STATUS_ELIMINATED: 5,
}


def calculate_match_stats(score: Score) -> Dict:
    """Sets and games taken by each side of a single match."""
    a_sets, b_sets = score.sets_won()
    a_games, b_games = score.games()
    return {'a_sets': a_sets, 'b_sets': b_sets, 'a_games': a_games, 'b_games': b_games}


def counted_matches(matches: Iterable[Match]) -> List[Match]:
    """Completed matches whose winner can be derived from the score."""
    return [m for m in matches if m.is_completed and m.winner_id is not None]


def _head_to_head_table(matches: Iterable[Match]) -> Dict:
    wins = {}
    for match in counted_matches(matches):
        key = (match.winner_id, match.loser_id)
        wins[key] = wins.get(key, 0) + 1
    return wins


def head_to_head(pair_a_id, pair_b_id, matches: Iterable[Match]) -> int:
    """
    Direct-encounter balance between two pairs.

    Positive when pair A won more of their meetings, negative when pair B
    did, 0 when they split the series or never met.
    """
    table = _head_to_head_table(matches)
    return table.get((pair_a_id, pair_b_id), 0) - table.get((pair_b_id, pair_a_id), 0)


def _compare(a: Standing, b: Standing, h2h_table: Dict) -> int:
    if a.points != b.points:
        return b.points - a.points
    if a.sets_diff != b.sets_diff:
        return b.sets_diff - a.sets_diff
    if a.games_diff != b.games_diff:
        return b.games_diff - a.games_diff
    h2h = (h2h_table.get((a.pair_id, b.pair_id), 0)
           - h2h_table.get((b.pair_id, a.pair_id), 0))
    if h2h != 0:
        return -h2h
    if a.sets_for != b.sets_for:
        return b.sets_for - a.sets_for
    if a.games_for != b.games_for:
        return b.games_for - a.games_for
    return 0


def compare_standings(a: Standing, b: Standing, matches: Iterable[Match]) -> int:
    """cmp-style comparison: negative when a ranks above b."""
    return _compare(a, b, _head_to_head_table(matches))


def sort_standings(standings: List[Standing], matches: Iterable[Match]) -> List[Standing]:
    """Rank standings by the full cascade; equal entries keep their order."""
    table = _head_to_head_table(matches)
    return sorted(standings, key=cmp_to_key(lambda a, b: _compare(a, b, table)))


def _accumulate(stats: Dict[str, Standing], match: Match,
                points_per_win: int, points_per_loss: int) -> bool:
    a_stats = stats.get(match.pair_a_id)
    b_stats = stats.get(match.pair_b_id)
    if a_stats is None or b_stats is None:
        return False

    match_stats = calculate_match_stats(match.score)
    a_stats.sets_for += match_stats['a_sets']
    a_stats.sets_against += match_stats['b_sets']
    a_stats.games_for += match_stats['a_games']
    a_stats.games_against += match_stats['b_games']
    b_stats.sets_for += match_stats['b_sets']
    b_stats.sets_against += match_stats['a_sets']
    b_stats.games_for += match_stats['b_games']
    b_stats.games_against += match_stats['a_games']

    winner = stats[match.winner_id]
    loser = stats[match.loser_id]
    winner.wins += 1
    winner.points += points_per_win
    loser.losses += 1
    loser.points += points_per_loss
    return True


def calculate_standings(matches: List[Match], pairs: List[Pair],
                        points_per_win: int = DEFAULT_POINTS_PER_WIN,
                        points_per_loss: int = DEFAULT_POINTS_PER_LOSS) -> List[Standing]:
    """
    Rank pairs from the supplied matches.

    Every pair in the roster gets a standing, even with no matches played.
    Only completed matches with a derivable winner count, and only when both
    sides belong to the roster.
    """
    stats = {pair.id: Standing(pair.id, pair) for pair in pairs}

    finished = counted_matches(matches)
    counted = [m for m in finished if _accumulate(stats, m, points_per_win, points_per_loss)]

    if len(counted) < len(finished):
        logger.warning("Ignored %d completed matches involving pairs outside the roster",
                       len(finished) - len(counted))

    return sort_standings(list(stats.values()), counted)


def calculate_group_standings(groups: List[Group], matches: List[Match], pairs: List[Pair],
                              points_per_win: int = DEFAULT_POINTS_PER_WIN,
                              points_per_loss: int = DEFAULT_POINTS_PER_LOSS) -> Dict[str, List[Standing]]:
    """Ranked standings per group name, in group order."""
    pairs_by_id = {pair.id: pair for pair in pairs}
    standings = {}
    for group in groups:
        group_pairs = [pairs_by_id[pid] for pid in group.pair_ids if pid in pairs_by_id]
        group_matches = [m for m in matches if m.stage == STAGE_GROUP and m.group_id == group.id]
        standings[group.name] = calculate_standings(group_matches, group_pairs,
                                                    points_per_win, points_per_loss)
    return standings


def get_qualified_pairs(standings: List[Standing], positions=(1, 2)) -> List[Standing]:
    """Standings at the given 1-based positions, skipping positions that do not exist."""
    return [standings[p - 1] for p in positions if 1 <= p <= len(standings)]


def validate_standings_completeness(matches: List[Match], expected_matches: int) -> Dict:
    finished = sum(1 for m in matches if m.is_completed)
    pending = expected_matches - finished
    return {
        'is_complete': pending <= 0,
        'finished_matches': finished,
        'pending_matches': max(pending, 0),
        'completion_rate': finished / expected_matches * 100 if expected_matches > 0 else 0,
    }


def generate_group_stage_report(standings_by_group: Dict[str, List[Standing]], limit: int = 5) -> Dict:
    """
    Highlights across every group.

    - top_scorers: most points
    - best_attack: best game differential
    - best_defense: fewest games conceded per match (pairs that played only)
    """
    all_standings = [s for group in standings_by_group.values() for s in group]
    played = [s for s in all_standings if s.matches_played > 0]

    return {
        'total_groups': len(standings_by_group),
        'total_pairs': len(all_standings),
        'average_pairs_per_group': (len(all_standings) / len(standings_by_group)
                                    if standings_by_group else 0),
        'top_scorers': sorted(all_standings, key=lambda s: -s.points)[:limit],
        'best_attack': sorted(all_standings, key=lambda s: -s.games_diff)[:limit],
        'best_defense': sorted(played, key=lambda s: s.games_against / s.matches_played)[:limit],
    }


def _record_stage(standing: Standing, stage: str):
    """Keep the furthest stage a pair has played."""
    if (standing.current_stage is None
            or ELIMINATION_STAGES.index(stage) > ELIMINATION_STAGES.index(standing.current_stage)):
        standing.current_stage = stage


def calculate_elimination_standings(matches: List[Match], qualifiers: List,
                                    points_per_win: int = ELIMINATION_POINTS_PER_WIN,
                                    points_per_loss: int = DEFAULT_POINTS_PER_LOSS) -> List[Standing]:
    """
    Knockout-stage standings for the pairs that reached the bracket.

    qualifiers is the seeded qualifier list (Qualifier objects or Pairs).
    Each standing carries an elimination_status: losers of any round except
    the third-place match are eliminated, the final decides champion and
    runner-up, and the third-place winner is marked third_place.
    """
    stats = {}
    order = {}
    for index, qualifier in enumerate(qualifiers):
        if isinstance(qualifier, Pair):
            pair_id, pair, source = qualifier.id, qualifier, None
        else:
            pair_id, pair, source = qualifier.pair_id, qualifier.pair, qualifier.source
        standing = Standing(pair_id, pair)
        standing.elimination_status = STATUS_ACTIVE
        standing.source = source
        stats[pair_id] = standing
        order[pair_id] = index

    finished = counted_matches(m for m in matches if m.stage in ELIMINATION_STAGES)
    counted = []
    for match in finished:
        if not _accumulate(stats, match, points_per_win, points_per_loss):
            continue
        counted.append(match)
        for pair_id in (match.pair_a_id, match.pair_b_id):
            _record_stage(stats[pair_id], match.stage)
        if match.stage != STAGE_THIRD_PLACE:
            stats[match.loser_id].elimination_status = STATUS_ELIMINATED

    for match in counted:
        if match.stage == STAGE_FINAL:
            stats[match.winner_id].elimination_status = STATUS_CHAMPION
            stats[match.loser_id].elimination_status = STATUS_RUNNER_UP
    for match in counted:
        if match.stage == STAGE_THIRD_PLACE:
            stats[match.winner_id].elimination_status = STATUS_THIRD_PLACE

    return sorted(stats.values(), key=lambda s: (
        ELIMINATION_STATUS_ORDER[s.elimination_status],
        -s.points,
        -s.wins,
        -s.sets_diff,
        -s.games_diff,
        order[s.pair_id],
    ))
