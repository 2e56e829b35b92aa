"""
Round-robin fixture generation and verification for group play.
"""
import logging
from itertools import combinations
from typing import Dict, List, Tuple

from .models import STAGE_GROUP, STATUS_PENDING, Group, Match, Pair

logger = logging.getLogger(__name__)


def generate_round_robin_matches(group: Group, pairs: List[Pair]) -> List[Match]:
    """
    Generate one pending match for every unordered pair of group members.

    Members are taken in the group's stored order, pairing member i with
    member j for every i < j. Members missing from the roster and repeated
    entries are skipped.
    """
    known_ids = {pair.id for pair in pairs}
    members = []
    for pair_id in group.pair_ids:
        if pair_id not in known_ids:
            logger.warning("%s lists unknown pair %s; skipping it", group.name, pair_id)
            continue
        if pair_id in members:
            logger.error("Pair %s appears twice in %s; keeping the first entry", pair_id, group.name)
            continue
        members.append(pair_id)

    matches = []
    if len(members) < 2:
        return matches

    for pair_a_id, pair_b_id in combinations(members, 2):
        matches.append(Match(
            stage=STAGE_GROUP,
            pair_a_id=pair_a_id,
            pair_b_id=pair_b_id,
            group_id=group.id,
            status=STATUS_PENDING,
            category_id=group.category_id,
        ))

    logger.info("Generated %d matches for %s", len(matches), group.name)
    return matches


def generate_all_group_matches(groups: List[Group], pairs: List[Pair]) -> List[Match]:
    matches = []
    for group in groups:
        matches.extend(generate_round_robin_matches(group, pairs))
    return matches


def calculate_total_matches(num_pairs: int) -> int:
    if num_pairs < 2:
        return 0
    return num_pairs * (num_pairs - 1) // 2


def calculate_rounds(num_pairs: int) -> int:
    """Rounds needed so nobody plays twice in a round (odd counts sit one out)."""
    if num_pairs < 2:
        return 0
    return num_pairs - 1 if num_pairs % 2 == 0 else num_pairs


def find_duplicate_matches(matches: List[Match]) -> List[Tuple[Match, Match]]:
    """Return (first, duplicate) for each matchup repeated within the same group."""
    seen = {}
    duplicates = []
    for match in matches:
        key = (match.group_id, frozenset((match.pair_a_id, match.pair_b_id)))
        if key in seen:
            duplicates.append((seen[key], match))
        else:
            seen[key] = match
    return duplicates


def validate_matches(matches: List[Match]) -> Dict:
    duplicates = find_duplicate_matches(matches)
    return {
        'is_valid': not duplicates,
        'duplicates': duplicates,
    }


def verify_group_completeness(group: Group, matches: List[Match]) -> Dict:
    """
    Check that every unordered pair of members has exactly one match in the group.

    Returns dict with:
    - is_complete: no missing matchups and no duplicates
    - missing_matches: list of (pair_a_id, pair_b_id) never scheduled
    - duplicates: list of (first, duplicate) matches
    """
    group_matches = [m for m in matches if m.group_id == group.id]
    played = {frozenset((m.pair_a_id, m.pair_b_id)) for m in group_matches}

    missing = [
        (a, b) for a, b in combinations(dict.fromkeys(group.pair_ids), 2)
        if frozenset((a, b)) not in played
    ]

    duplicates = find_duplicate_matches(group_matches)
    return {
        'is_complete': not missing and not duplicates,
        'missing_matches': missing,
        'duplicates': duplicates,
    }


def generate_match_stats(groups: List[Group], matches: List[Match]) -> Dict:
    matches_by_group = {group.id: 0 for group in groups}
    for match in matches:
        if match.group_id:
            matches_by_group[match.group_id] = matches_by_group.get(match.group_id, 0) + 1

    return {
        'total_groups': len(groups),
        'total_matches': len(matches),
        'matches_by_group': matches_by_group,
        'average_matches_per_group': len(matches) / len(groups) if groups else 0,
    }
