"""
Unit tests for the shared single elimination helpers.
"""
import pytest
import random
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.elimination import (
    get_round_name,
    calculate_rounds,
    shuffle_array,
    pair_consecutive,
)


class TestBracketHelpers:
    """Tests for bracket helper functions."""

    def test_get_round_name_final(self):
        """Test round name for 2 teams (Final)."""
        assert get_round_name(2) == "Final"

    def test_get_round_name_semifinal(self):
        """Four teams play a Semifinal."""
        assert get_round_name(4) == "Semifinal"

    def test_get_round_name_quarterfinal(self):
        """Eight teams play a Quarterfinal."""
        assert get_round_name(8) == "Quarterfinal"

    def test_get_round_name_round_of_n(self):
        """Larger rounds are named by their team count."""
        assert get_round_name(16) == "Round of 16"
        assert get_round_name(128) == "Round of 128"

    def test_calculate_rounds(self):
        """128 entrants need 7 knockout rounds."""
        assert calculate_rounds(128) == 7
        assert calculate_rounds(2) == 1
        assert calculate_rounds(1) == 0


class TestShuffleArray:
    """Tests for shuffle_array."""

    def test_same_length(self):
        """Shuffling keeps the length."""
        items = list(range(128))
        assert len(shuffle_array(items)) == 128

    def test_contains_all_elements(self):
        """Shuffling neither drops nor duplicates items."""
        items = list(range(128))
        assert sorted(shuffle_array(items)) == items

    def test_does_not_modify_input(self):
        """The input list keeps its order."""
        items = list(range(128))
        original = list(items)
        shuffle_array(items)
        assert items == original

    def test_seeded_shuffle_is_reproducible(self):
        """The same seed gives the same order."""
        items = list(range(128))
        first = shuffle_array(items, random.Random(3))
        second = shuffle_array(items, random.Random(3))
        assert first == second
        assert first != items

    def test_accepts_tuples(self):
        """Any sequence can be shuffled."""
        assert sorted(shuffle_array((3, 1, 2), random.Random(0))) == [1, 2, 3]

    def test_empty_and_single(self):
        """Trivial inputs come back unchanged."""
        assert shuffle_array([]) == []
        assert shuffle_array(["only"]) == ["only"]


class TestPairConsecutive:
    """Tests for pair_consecutive."""

    def test_pairs_in_order(self):
        """Neighbours are paired left to right."""
        assert pair_consecutive([1, 2, 3, 4]) == [(1, 2), (3, 4)]

    def test_odd_item_dropped(self):
        """A trailing item without an opponent is dropped."""
        assert pair_consecutive([1, 2, 3]) == [(1, 2)]

    def test_empty(self):
        """No items give no pairs."""
        assert pair_consecutive([]) == []
