"""
Tests for qualifier selection and seeding.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from progression.errors import InsufficientQualifiers, InvalidBracketSize
from progression.models import Pair, Standing
from progression.qualification import (
    Qualifier,
    position_label,
    rank_wildcards,
    resolve_qualifiers,
    suggest_bracket_size,
)


def _standing(pair_id, points, sets_diff=0, games_diff=0):
    standing = Standing(pair_id, Pair(id=pair_id, player1=f"{pair_id}a", player2=f"{pair_id}b"))
    standing.points = points
    standing.sets_for = max(sets_diff, 0)
    standing.sets_against = max(-sets_diff, 0)
    standing.games_for = max(games_diff, 0)
    standing.games_against = max(-games_diff, 0)
    return standing


def _groups(count, size=4):
    """Ranked standings for groups A.. where the pair at position k has fewer points."""
    standings = {}
    for g in range(count):
        letter = chr(ord('A') + g)
        standings[f"Group {letter}"] = [
            _standing(f"{letter}{position}", points=(size - position) * 2)
            for position in range(1, size + 1)
        ]
    return standings


class TestLabels:
    """Tests for position labels."""

    def test_labels(self):
        """Test ordinal labels."""
        assert [position_label(p) for p in (1, 2, 3, 4)] == ["1st", "2nd", "3rd", "4th"]

    def test_source(self):
        """Test a qualifier describes where it came from."""
        qualifier = Qualifier(_standing("A1", 6), "Group A", 1)
        assert qualifier.source == "1st Group A"
        assert qualifier.to_dict()['pair'] == "A1a / A1b"


class TestSuggestBracketSize:
    """Tests for the default bracket size."""

    def test_sizes(self):
        """Test the largest bracket first and second places can fill."""
        assert suggest_bracket_size(1) == 2
        assert suggest_bracket_size(2) == 4
        assert suggest_bracket_size(3) == 4
        assert suggest_bracket_size(4) == 8
        assert suggest_bracket_size(0) == 0


class TestResolveQualifiers:
    """Tests for picking and seeding qualifiers."""

    def test_four_groups_bracket_of_eight(self):
        """Test winners take seeds 1-4 and runners-up 5-8."""
        qualifiers = resolve_qualifiers(_groups(4), 8)
        assert [q.group_position for q in qualifiers[:4]] == [1, 1, 1, 1]
        assert [q.group_position for q in qualifiers[4:]] == [2, 2, 2, 2]
        assert [q.seed for q in qualifiers] == list(range(1, 9))

    def test_winners_ranked_by_performance(self):
        """Test the strongest group winner gets seed 1."""
        standings = _groups(3)
        standings["Group C"][0].points = 10
        qualifiers = resolve_qualifiers(standings, 4)
        assert qualifiers[0].pair_id == "C1"
        assert qualifiers[0].seed == 1

    def test_wildcard_by_points_then_differentials(self):
        """Test the best runner-up takes the only wildcard slot."""
        standings = {
            "Group A": [_standing("A1", 6), _standing("A2", 4, sets_diff=1)],
            "Group B": [_standing("B1", 6), _standing("B2", 4, sets_diff=3)],
            "Group C": [_standing("C1", 6), _standing("C2", 2, sets_diff=5)],
        }
        qualifiers = resolve_qualifiers(standings, 4)
        assert [q.pair_id for q in qualifiers][3] == "B2"
        assert qualifiers[3].source == "2nd Group B"

    def test_game_differential_separates_wildcards(self):
        """Test game differential decides between runners-up level on sets."""
        standings = {
            "Group A": [_standing("A1", 6), _standing("A2", 4, sets_diff=1, games_diff=2)],
            "Group B": [_standing("B1", 6), _standing("B2", 4, sets_diff=1, games_diff=5)],
            "Group C": [_standing("C1", 6), _standing("C2", 4, sets_diff=1, games_diff=3)],
        }
        assert resolve_qualifiers(standings, 4)[3].pair_id == "B2"

    def test_third_places_never_qualify(self):
        """Test only first and second places are considered."""
        with pytest.raises(InsufficientQualifiers):
            resolve_qualifiers(_groups(2, size=4), 8)

    def test_unsupported_size(self):
        """Test brackets must be a supported power of two."""
        with pytest.raises(InvalidBracketSize):
            resolve_qualifiers(_groups(4), 6)

    def test_more_winners_than_slots(self):
        """Test surplus group winners are cut by performance."""
        standings = _groups(3)
        standings["Group B"][0].points = 0
        qualifiers = resolve_qualifiers(standings, 2)
        assert {q.pair_id for q in qualifiers} == {"A1", "C1"}

    def test_rank_wildcards_is_stable(self):
        """Test equal runners-up keep group order."""
        candidates = [Qualifier(_standing(pid, 4), f"Group {pid[0]}", 2) for pid in ("A2", "B2", "C2")]
        assert [q.pair_id for q in rank_wildcards(candidates)] == ["A2", "B2", "C2"]
