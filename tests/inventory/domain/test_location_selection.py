"""Tests for rank_locations — the pure location selection policy."""

from inventory.reservation.selection import Candidate, rank_locations


def _candidates():
    return [
        Candidate(location_id="loc-low", available=50, priority=1, name="Overflow"),
        Candidate(location_id="loc-high", available=10, priority=10, name="Main"),
        Candidate(location_id="loc-mid", available=3, priority=5, name="Store"),
    ]


class TestRankLocations:
    def test_orders_by_priority_descending(self):
        assert rank_locations(_candidates(), 2) == ["loc-high", "loc-mid", "loc-low"]

    def test_drops_locations_that_cannot_cover_quantity(self):
        assert rank_locations(_candidates(), 5) == ["loc-high", "loc-low"]

    def test_never_splits_a_line(self):
        assert rank_locations(_candidates(), 51) == []

    def test_preferred_location_goes_first_when_it_covers_quantity(self):
        assert rank_locations(_candidates(), 2, preferred_location_id="loc-low") == [
            "loc-low",
            "loc-high",
            "loc-mid",
        ]

    def test_preferred_location_without_stock_falls_back_to_priority(self):
        assert rank_locations(_candidates(), 5, preferred_location_id="loc-mid") == ["loc-high", "loc-low"]

    def test_unknown_preferred_location_is_ignored(self):
        assert rank_locations(_candidates(), 2, preferred_location_id="loc-x") == ["loc-high", "loc-mid", "loc-low"]

    def test_inactive_candidates_are_skipped(self):
        candidates = _candidates() + [Candidate(location_id="loc-closed", available=99, priority=99, is_active=False)]
        assert rank_locations(candidates, 2, preferred_location_id="loc-closed") == [
            "loc-high",
            "loc-mid",
            "loc-low",
        ]

    def test_equal_priority_breaks_ties_by_name_then_id(self):
        candidates = [
            Candidate(location_id="b", available=5, priority=1, name="Same"),
            Candidate(location_id="a", available=5, priority=1, name="Same"),
            Candidate(location_id="c", available=5, priority=1, name="Alpha"),
        ]
        assert rank_locations(candidates, 1) == ["c", "a", "b"]

    def test_is_deterministic(self):
        assert rank_locations(_candidates(), 1) == rank_locations(list(reversed(_candidates())), 1)
