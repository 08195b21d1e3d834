"""Tests for hand strength estimation."""

import pytest

from poker_ai.hand_strength import (
    FLUSH_DRAW_POTENTIAL,
    GUTSHOT_POTENTIAL,
    OPEN_ENDED_POTENTIAL,
    TRASH_STRENGTH_CAP,
    canonical_strength,
    evaluate_hand,
    get_hand_tier,
    hand_to_canonical,
    range_digest,
    range_strength,
)


class TestCanonical:

    @pytest.mark.parametrize("cards,expected", [
        (('Ah', 'Kh'), 'AKs'),
        (('Kd', 'Ah'), 'AKo'),
        (('7c', '7d'), '77'),
        (('10h', '9h'), 'T9s'),
        (('2s', 'qs'), 'Q2s'),
    ])
    def test_hand_to_canonical(self, cards, expected):
        assert hand_to_canonical(*cards) == expected

    @pytest.mark.parametrize("hand,tier", [
        ('AA', 'premium'),
        ('TT', 'top10'),
        ('99', 'top20'),
        ('22', 'top35'),
        ('72o', 'trash'),
        ('', None),
    ])
    def test_tiers(self, hand, tier):
        assert get_hand_tier(hand) == tier

    def test_trash_is_capped(self):
        assert canonical_strength('72o') <= TRASH_STRENGTH_CAP
        assert canonical_strength('K2o') < canonical_strength('AA')

    def test_tiers_are_ordered(self):
        strengths = [canonical_strength(h) for h in ('AA', 'TT', '99', '22', '72o')]
        assert strengths == sorted(strengths, reverse=True)


class TestEvaluateHand:

    def test_no_cards(self):
        assert evaluate_hand(()).strength == 0.0

    def test_preflop_uses_tiers(self):
        hand = evaluate_hand(('Ah', 'Ad'))
        assert hand.category == 'premium'
        assert hand.strength == pytest.approx(0.92)
        assert hand.draw_potential == 0.0

    def test_top_pair(self):
        hand = evaluate_hand(('Ah', 'Kh'), ('Ad', '7c', '2s'))
        assert hand.category == 'Pair'
        assert hand.strength == pytest.approx(0.47)

    def test_overpair(self):
        hand = evaluate_hand(('Qh', 'Qd'), ('8c', '5d', '2s'))
        assert hand.strength == pytest.approx(0.55)

    def test_board_trips_discounted(self):
        hand = evaluate_hand(('Ah', 'Kd'), ('7c', '7d', '7s'))
        assert hand.category == 'Trips'
        assert hand.strength == pytest.approx(0.47)

    def test_flush_draw(self):
        hand = evaluate_hand(('Ah', 'Kh'), ('Qh', '7h', '2c'))
        assert hand.category == 'High Card'
        assert hand.draw_potential == FLUSH_DRAW_POTENTIAL
        assert hand.equity_estimate == pytest.approx(0.10 + FLUSH_DRAW_POTENTIAL / 2)

    def test_open_ended_draw(self):
        hand = evaluate_hand(('9h', '8d'), ('7c', '6s', '2h'))
        assert hand.draw_potential == OPEN_ENDED_POTENTIAL

    def test_gutshot(self):
        hand = evaluate_hand(('9h', '8d'), ('6c', '5s', 'Kh'))
        assert hand.draw_potential == GUTSHOT_POTENTIAL

    def test_no_draws_on_river(self):
        hand = evaluate_hand(('Ah', 'Kh'), ('Qh', '7h', '2c', '3d', '9s'))
        assert hand.draw_potential == 0.0

    def test_made_flush(self):
        hand = evaluate_hand(('Ah', 'Kh'), ('Qh', '7h', '2h'))
        assert hand.category == 'Flush'
        assert hand.strength == pytest.approx(0.85)

    def test_deterministic(self):
        assert evaluate_hand(('Ts', '9s'), ('8s', '7d', '2c')) == evaluate_hand(('Ts', '9s'), ('8s', '7d', '2c'))


class TestRanges:

    def test_empty_range_is_neutral(self):
        assert range_strength({}) == 0.5

    def test_weighted_range(self):
        assert range_strength({'AA': 1.0}) == pytest.approx(0.92)
        mixed = range_strength({'AA': 1.0, '72o': 1.0})
        assert canonical_strength('72o') < mixed < 0.92

    def test_digest_is_sorted_and_rounded(self):
        digest = range_digest({'KQs': 0.33333, 'AA': 1.0})
        assert list(digest) == ['AA', 'KQs']
        assert digest['KQs'] == 0.333
