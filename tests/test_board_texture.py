"""Tests for board texture analysis."""

import pytest

from poker_ai.board_texture import analyze_board, is_connected, rank_index


class TestAnalyzeBoard:

    def test_empty_board(self):
        texture = analyze_board([])
        assert texture.num_cards == 0
        assert texture.is_postflop is False
        assert texture.describe() == "pre-flop"

    def test_partial_board_only_counts_cards(self):
        texture = analyze_board(["Ah", "Kd"])
        assert texture.num_cards == 2
        assert texture.category == "none"
        assert texture.wetness == 0

    def test_dry_rainbow_flop(self):
        texture = analyze_board(["Kh", "7d", "2s"])
        assert texture.rainbow is True
        assert texture.paired is False
        assert texture.connected is False
        assert texture.category == "dry"
        assert texture.wetness_score == 0

    def test_monotone_connected_flop_is_very_wet(self):
        texture = analyze_board(["9h", "8h", "7h"])
        assert texture.monotone is True
        assert texture.connected is True
        assert texture.wetness_score == 5
        assert texture.category == "very_wet"
        assert texture.describe() == "very_wet monotone, connected flop"

    def test_paired_board(self):
        texture = analyze_board(["Kh", "Kd", "4s"])
        assert texture.paired is True
        assert texture.double_paired is False
        assert texture.category == "semi_wet"

    def test_double_paired_turn(self):
        texture = analyze_board(["Kh", "Kd", "4s", "4c"])
        assert texture.double_paired is True
        assert texture.num_cards == 4

    def test_trips_on_board(self):
        texture = analyze_board(["7h", "7d", "7s"])
        assert texture.trips_on_board is True
        assert texture.paired is True

    def test_broadway_two_tone(self):
        texture = analyze_board(["Ah", "Kh", "2c"])
        assert texture.two_tone is True
        assert texture.high_card_count == 2
        # two-tone + broadway
        assert texture.wetness_score == 2

    def test_wetness_normalized(self):
        assert 0.0 <= analyze_board(["9h", "8h", "7h"]).wetness <= 1.0


class TestIsConnected:

    @pytest.mark.parametrize("ranks,expected", [
        (["9", "8", "7"], True),
        (["9", "7", "5"], True),
        (["K", "7", "2"], False),
        (["A", "2", "3"], True),
        (["A", "K", "Q"], True),
        (["9", "9", "8"], False),
    ])
    def test_windows(self, ranks, expected):
        assert is_connected([rank_index(r) for r in ranks]) is expected
