"""
Tests for elimination formats.
"""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from progression.formats import (
    ELIMINATION_FORMATS,
    EliminationFormat,
    format_for_size,
    get_format,
    get_recommended_format,
    get_stage_name,
    round_stages,
)


class TestFormats:
    """Tests for the format registry."""

    def test_ids_are_unique(self):
        """Test no two formats share an id."""
        ids = [f.id for f in ELIMINATION_FORMATS]
        assert len(ids) == len(set(ids))

    def test_get_format(self):
        """Test lookup by id."""
        fmt = get_format('quarterfinals')
        assert fmt.bracket_size == 8
        assert fmt.third_place
        assert get_format('nope') is None

    def test_stages(self):
        """Test stages include third place only when enabled."""
        assert get_format('semifinals').stages == ['semifinal', 'final', 'third_place']
        assert get_format('semifinals_only').stages == ['semifinal', 'final']

    def test_final_only_has_no_third_place(self):
        """Test a two-pair format never plays for third."""
        assert not EliminationFormat('x', 'x', 'x', 2, True).third_place

    def test_format_for_size(self):
        """Test picking a registered format by size."""
        assert format_for_size(8).id == 'quarterfinals'
        assert format_for_size(8, third_place=False).id == 'quarterfinals_only'
        assert format_for_size(2).id == 'final_only'
        assert format_for_size(12) is None

    def test_format_for_size_64(self):
        """Test a bracket of 64 gets a format built on demand."""
        fmt = format_for_size(64)
        assert fmt.bracket_size == 64
        assert fmt.stages[0] == 'round_of_64'

    def test_recommended(self):
        """Test the smallest format that holds the pairs."""
        assert get_recommended_format(5).bracket_size == 8
        assert get_recommended_format(4).bracket_size == 4
        assert get_recommended_format(100) is None

    def test_to_dict(self):
        """Test serialised format."""
        data = get_format('round_of_16').to_dict()
        assert data['bracket_size'] == 16
        assert data['stages'][0] == 'round_of_16'


class TestStageNames:
    """Tests for display names."""

    def test_names(self):
        """Test readable stage names."""
        assert get_stage_name('quarterfinal') == "Quarterfinal"
        assert get_stage_name('third_place') == "Third Place"
        assert get_stage_name('unknown') == 'unknown'

    def test_round_stages(self):
        """Test stage sequence for 32 pairs."""
        assert round_stages(32) == ['round_of_32', 'round_of_16', 'quarterfinal', 'semifinal', 'final']
