"""
Tests for round-robin match generation and completeness checks.
"""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from conftest import make_pairs
from progression.groups import generate_groups
from progression.models import STAGE_GROUP, STATUS_PENDING, Group, Match
from progression.round_robin import (
    calculate_rounds,
    calculate_total_matches,
    find_duplicate_matches,
    generate_all_group_matches,
    generate_match_stats,
    generate_round_robin_matches,
    validate_matches,
    verify_group_completeness,
)


def _group_of(count):
    pairs = make_pairs(count)
    return Group(name="Group A", pair_ids=[p.id for p in pairs], id="g1"), pairs


class TestGenerateRoundRobin:
    """Tests for per-group fixture generation."""

    def test_four_pairs_six_matches(self):
        """Test a 4-pair group plays 6 matches in member order."""
        group, pairs = _group_of(4)
        matches = generate_round_robin_matches(group, pairs)
        assert [(m.pair_a_id, m.pair_b_id) for m in matches] == [
            ("p1", "p2"), ("p1", "p3"), ("p1", "p4"),
            ("p2", "p3"), ("p2", "p4"), ("p3", "p4"),
        ]

    def test_matches_are_pending_group_matches(self):
        """Test generated matches start pending and belong to the group."""
        group, pairs = _group_of(3)
        for match in generate_round_robin_matches(group, pairs):
            assert match.stage == STAGE_GROUP
            assert match.status == STATUS_PENDING
            assert match.group_id == "g1"

    def test_match_count_formula(self):
        """Test n pairs generate n(n-1)/2 matches."""
        for count in range(0, 9):
            group, pairs = _group_of(count)
            assert len(generate_round_robin_matches(group, pairs)) == calculate_total_matches(count)

    def test_single_member_group(self):
        """Test a group of one has no matches."""
        group, pairs = _group_of(1)
        assert generate_round_robin_matches(group, pairs) == []

    def test_unknown_member_skipped(self):
        """Test members missing from the roster get no matches."""
        group, pairs = _group_of(3)
        group.pair_ids.append("ghost")
        matches = generate_round_robin_matches(group, pairs)
        assert len(matches) == 3
        assert not any(m.involves("ghost") for m in matches)

    def test_repeated_member_plays_each_opponent_once(self):
        """Test a group listing a pair twice still gets one match per matchup."""
        group, pairs = _group_of(3)
        group.pair_ids.append("p1")
        matches = generate_round_robin_matches(group, pairs)
        assert len(matches) == 3
        assert all(m.pair_a_id != m.pair_b_id for m in matches)
        assert find_duplicate_matches(matches) == []
        assert verify_group_completeness(group, matches)["is_complete"]

    def test_all_groups(self):
        """Test fixtures for every group of a 10-pair draw."""
        pairs = make_pairs(10)
        groups = generate_groups(pairs, 3, 6)
        matches = generate_all_group_matches(groups, pairs)
        assert len(matches) == 20
        assert validate_matches(matches)['is_valid']


class TestCompleteness:
    """Tests for round-robin completeness verification."""

    def test_generated_fixtures_are_complete(self):
        """Test generated matches cover every matchup once."""
        group, pairs = _group_of(4)
        result = verify_group_completeness(group, generate_round_robin_matches(group, pairs))
        assert result['is_complete']
        assert result['missing_matches'] == []
        assert result['duplicates'] == []

    def test_missing_match_detected(self):
        """Test removing one match breaks completeness."""
        group, pairs = _group_of(4)
        matches = generate_round_robin_matches(group, pairs)
        removed = matches.pop(2)
        result = verify_group_completeness(group, matches)
        assert not result['is_complete']
        assert result['missing_matches'] == [(removed.pair_a_id, removed.pair_b_id)]

    def test_reversed_duplicate_detected(self):
        """Test the same matchup with sides swapped counts as a duplicate."""
        group, pairs = _group_of(3)
        matches = generate_round_robin_matches(group, pairs)
        matches.append(Match(stage=STAGE_GROUP, pair_a_id="p2", pair_b_id="p1", group_id="g1"))
        result = verify_group_completeness(group, matches)
        assert not result['is_complete']
        assert len(result['duplicates']) == 1

    def test_other_group_matches_ignored(self):
        """Test matches from another group do not count."""
        group, pairs = _group_of(2)
        other = Match(stage=STAGE_GROUP, pair_a_id="p1", pair_b_id="p2", group_id="g2")
        assert not verify_group_completeness(group, [other])['is_complete']

    def test_duplicates_across_groups_allowed(self):
        """Test identical matchups in different groups are not duplicates."""
        matches = [
            Match(stage=STAGE_GROUP, pair_a_id="p1", pair_b_id="p2", group_id="g1"),
            Match(stage=STAGE_GROUP, pair_a_id="p1", pair_b_id="p2", group_id="g2"),
        ]
        assert find_duplicate_matches(matches) == []


class TestMatchStats:
    """Tests for fixture counts."""

    def test_rounds(self):
        """Test rounds for odd and even group sizes."""
        assert calculate_rounds(4) == 3
        assert calculate_rounds(5) == 5
        assert calculate_rounds(1) == 0

    def test_stats(self):
        """Test per-group match counts."""
        pairs = make_pairs(10)
        groups = generate_groups(pairs, 3, 6)
        stats = generate_match_stats(groups, generate_all_group_matches(groups, pairs))
        assert stats['total_matches'] == 20
        assert list(stats['matches_by_group'].values()) == [10, 10]
        assert stats['average_matches_per_group'] == 10
