"""
Tests for positional scarcity offsets.
"""

from autocoach.analysis.positional_scarcity import get_scarcity_offsets_for_team

OFFSETS = {"nhl": {"C": [1, 3, 5], "D": [2, 4], "G": []}}


class TestScarcityOffsetsForTeam:
    """Test cases for choosing a league's offsets."""

    def test_offset_by_slot_count(self):
        """The offset is picked by how many slots the league has."""
        result = get_scarcity_offsets_for_team("nhl", {"C": 2, "D": 1}, OFFSETS)
        assert result == {"C": 3, "D": 2}

    def test_more_slots_than_offsets(self):
        """Large slot counts use the last offset."""
        assert get_scarcity_offsets_for_team("nhl", {"D": 6}, OFFSETS) == {"D": 4}

    def test_positions_without_offsets(self):
        """Positions with no offsets or no slots are left out."""
        result = get_scarcity_offsets_for_team("nhl", {"G": 2, "C": 0, "BN": 4}, OFFSETS)
        assert result == {}

    def test_unknown_league(self):
        """Leagues without offsets get none."""
        assert get_scarcity_offsets_for_team("nfl", {"QB": 1}, OFFSETS) == {}

    def test_empty_collection(self):
        """No stored offsets means no offsets for any position."""
        assert get_scarcity_offsets_for_team("nhl", {"C": 1, "D": 2}, {}) == {}
