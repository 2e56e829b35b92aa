"""
Group generation.

Partitions a category's pairs into round-robin groups whose sizes stay within
the configured bounds, spreading seeds across groups.
"""
import logging
import math
import string
from typing import Dict, List, Optional

from .errors import InfeasibleConfiguration, InsufficientPairs, TournamentError
from .models import Group, Pair

logger = logging.getLogger(__name__)


def group_name(index: int) -> str:
    """Name for a 0-based group index: Group A..Group Z, then Group AA, Group AB..."""
    letters = ''
    index += 1
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        letters = string.ascii_uppercase[remainder] + letters
    return f"Group {letters}"


def check_group_configuration(total_pairs: int, min_group_size: int, max_group_size: int) -> None:
    """Raise if no partition of total_pairs fits the size bounds."""
    if min_group_size < 2 or max_group_size < 2:
        raise InfeasibleConfiguration(
            f"Group sizes must be at least 2 (min={min_group_size}, max={max_group_size})"
        )
    if min_group_size > max_group_size:
        raise InfeasibleConfiguration(
            f"Minimum group size {min_group_size} is larger than maximum {max_group_size}"
        )
    if total_pairs < min_group_size:
        raise InsufficientPairs(
            f"Not enough pairs. Minimum required: {min_group_size}, registered: {total_pairs}"
        )
    min_groups = math.ceil(total_pairs / max_group_size)
    max_groups = total_pairs // min_group_size
    if min_groups > max_groups:
        raise InfeasibleConfiguration(
            f"Cannot split {total_pairs} pairs into groups of {min_group_size}-{max_group_size}"
        )


def _balance_score(total_pairs: int, num_groups: int) -> float:
    """Sum of squared deviations of group sizes from the mean."""
    average = total_pairs / num_groups
    large_groups = total_pairs % num_groups
    small_groups = num_groups - large_groups
    return (large_groups * (math.ceil(average) - average) ** 2
            + small_groups * (math.floor(average) - average) ** 2)


def validate_group_configuration(total_pairs: int, min_group_size: int, max_group_size: int) -> Dict:
    """
    Check feasibility and suggest the most balanced group count.

    The suggestion is advisory; generate_groups does not use it.

    Returns dict with:
    - is_valid: whether any group count satisfies both bounds
    - message: reason when invalid
    - error: error class name when invalid
    - min_groups / max_groups: feasible range of group counts
    - suggested_groups: count minimising size imbalance
    """
    result = {
        'is_valid': False,
        'message': None,
        'error': None,
        'min_groups': 0,
        'max_groups': 0,
        'suggested_groups': None,
    }
    try:
        check_group_configuration(total_pairs, min_group_size, max_group_size)
    except TournamentError as e:
        result['message'] = e.message
        result['error'] = e.code
        return result

    min_groups = math.ceil(total_pairs / max_group_size)
    max_groups = total_pairs // min_group_size

    best_groups = min_groups
    best_balance = math.inf
    for num_groups in range(min_groups, max_groups + 1):
        balance = _balance_score(total_pairs, num_groups)
        if balance < best_balance:
            best_balance = balance
            best_groups = num_groups

    result.update({
        'is_valid': True,
        'min_groups': min_groups,
        'max_groups': max_groups,
        'suggested_groups': best_groups,
    })
    return result


def sort_pairs_by_seed(pairs: List[Pair]) -> List[Pair]:
    """Seeded pairs first by ascending seed; unseeded pairs keep roster order."""
    return sorted(pairs, key=lambda p: (p.seed is None, p.seed if p.seed is not None else 0))


def generate_groups(pairs: List[Pair], min_group_size: int, max_group_size: int,
                    category_id: Optional[str] = None, balance_by_seeds: bool = True) -> List[Group]:
    """
    Partition pairs into groups of min_group_size..max_group_size members.

    Pairs are dealt in seed order across ceil(n / max_group_size) groups, so
    seed 1 lands in Group A, seed 2 in Group B and so on, wrapping back to
    Group A. Groups that end up below the minimum are dissolved into groups
    with spare capacity and the survivors are renamed in order.
    """
    check_group_configuration(len(pairs), min_group_size, max_group_size)

    ordered = sort_pairs_by_seed(pairs) if balance_by_seeds else list(pairs)
    group_count = math.ceil(len(ordered) / max_group_size)
    groups = [Group(name=group_name(i), category_id=category_id) for i in range(group_count)]

    for index, pair in enumerate(ordered):
        groups[index % group_count].pair_ids.append(pair.id)

    logger.debug("Initial distribution for %d pairs: %s",
                 len(ordered), [g.size for g in groups])

    groups = _redistribute_small_groups(groups, min_group_size, max_group_size, category_id)

    for index, group in enumerate(groups):
        group.name = group_name(index)

    logger.info("Generated %d groups for %d pairs: %s",
                len(groups), len(ordered), [g.size for g in groups])
    return groups


def _redistribute_small_groups(groups: List[Group], min_group_size: int, max_group_size: int,
                               category_id: Optional[str]) -> List[Group]:
    small_groups = [g for g in groups if g.size < min_group_size]
    if not small_groups:
        return groups

    kept = [g for g in groups if g.size >= min_group_size]
    logger.info("Dissolving %d undersized groups: %s",
                len(small_groups), [g.name for g in small_groups])

    for dissolved in small_groups:
        for pair_id in dissolved.pair_ids:
            target = next((g for g in kept if g.size < max_group_size), None)
            if target is None:
                target = Group(name=group_name(len(kept)), category_id=category_id)
                kept.append(target)
            target.pair_ids.append(pair_id)

    return kept


def calculate_group_stats(groups: List[Group]) -> Dict:
    """Summary of a group distribution."""
    sizes = [g.size for g in groups]
    total_pairs = sum(sizes)
    return {
        'total_groups': len(groups),
        'total_pairs': total_pairs,
        'average_size': total_pairs / len(groups) if groups else 0,
        'min_size': min(sizes) if sizes else 0,
        'max_size': max(sizes) if sizes else 0,
        'distribution': sizes,
    }
