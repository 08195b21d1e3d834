"""
Board texture analysis for postflop decisions.

Classifies the community cards so the decision engine can tell a dry board
(made hands hold up, bluffs get through) from a wet one (draws everywhere,
thin value gets punished).
"""

from collections import Counter
from dataclasses import dataclass
from typing import List, Sequence

# Ranks ordered from high to low
RANKS = ['A', 'K', 'Q', 'J', 'T', '9', '8', '7', '6', '5', '4', '3', '2']
BROADWAY_RANKS = {'A', 'K', 'Q', 'J', 'T'}

# Wetness points; the category is read off the summed score
WETNESS_MONOTONE = 3
WETNESS_TWO_TONE = 1
WETNESS_CONNECTED = 2
WETNESS_PAIRED = 1
WETNESS_BROADWAY = 1
MAX_WETNESS = WETNESS_MONOTONE + WETNESS_CONNECTED + WETNESS_PAIRED + WETNESS_BROADWAY


@dataclass(frozen=True)
class BoardTexture:
    num_cards: int = 0
    paired: bool = False
    double_paired: bool = False
    trips_on_board: bool = False
    monotone: bool = False
    two_tone: bool = False
    rainbow: bool = False
    connected: bool = False
    high_card_count: int = 0
    wetness_score: int = 0
    category: str = "none"   # "none", "dry", "semi_wet", "wet", "very_wet"

    @property
    def is_postflop(self) -> bool:
        return self.num_cards >= 3

    @property
    def wetness(self) -> float:
        """Wetness normalized to 0-1."""
        return self.wetness_score / MAX_WETNESS

    def describe(self) -> str:
        """Human-readable summary, e.g. 'wet two-tone, connected flop'."""
        if not self.is_postflop:
            return "pre-flop"

        features = []
        if self.monotone:
            features.append("monotone")
        elif self.two_tone:
            features.append("two-tone")
        elif self.rainbow:
            features.append("rainbow")

        if self.trips_on_board:
            features.append("trips on board")
        elif self.double_paired:
            features.append("double-paired")
        elif self.paired:
            features.append("paired")

        if self.connected:
            features.append("connected")

        street = {3: "flop", 4: "turn", 5: "river"}.get(self.num_cards, "board")
        return f"{self.category} {', '.join(features)} {street}".replace("  ", " ")


def rank_index(rank: str) -> int:
    """Index of a rank (A=0, K=1, ..., 2=12)."""
    return RANKS.index(rank)


def analyze_board(community_cards: Sequence[str]) -> BoardTexture:
    """Analyze community cards given as strings like ['Ah', 'Kd', '7s'].

    Fewer than three cards means there is no texture to speak of; only
    ``num_cards`` is filled in.
    """
    num_cards = len(community_cards)
    if num_cards < 3:
        return BoardTexture(num_cards=num_cards)

    ranks = [card[0] for card in community_cards]
    suits = [card[1] for card in community_cards]
    rank_counts = Counter(ranks)
    unique_suits = len(set(suits))

    pair_count = sum(1 for count in rank_counts.values() if count == 2)
    trips_on_board = any(count >= 3 for count in rank_counts.values())
    paired = pair_count >= 1 or trips_on_board

    monotone = unique_suits == 1
    two_tone = unique_suits == 2
    connected = is_connected(sorted(rank_index(r) for r in ranks))
    high_card_count = sum(1 for r in ranks if r in BROADWAY_RANKS)

    score = 0
    if monotone:
        score += WETNESS_MONOTONE
    elif two_tone:
        score += WETNESS_TWO_TONE
    if connected:
        score += WETNESS_CONNECTED
    if paired:
        score += WETNESS_PAIRED
    if high_card_count >= 2:
        score += WETNESS_BROADWAY

    return BoardTexture(
        num_cards=num_cards,
        paired=paired,
        double_paired=pair_count >= 2,
        trips_on_board=trips_on_board,
        monotone=monotone,
        two_tone=two_tone,
        rainbow=unique_suits >= 3,
        connected=connected,
        high_card_count=high_card_count,
        wetness_score=score,
        category=_category_for(score),
    )


def _category_for(score: int) -> str:
    if score == 0:
        return "dry"
    if score <= 2:
        return "semi_wet"
    if score <= 4:
        return "wet"
    return "very_wet"


def is_connected(rank_indices: List[int]) -> bool:
    """True if 3+ distinct ranks fit in a five-rank straight window.

    The wheel (A-2-3-4-5) counts as connected.
    """
    distinct = sorted(set(rank_indices))
    if len(distinct) < 3:
        return False

    for i in range(len(distinct) - 2):
        if distinct[i + 2] - distinct[i] <= 4:
            return True

    # Ace plays low: 5, 4, 3, 2 are indices 9-12
    if 0 in distinct and sum(1 for idx in distinct if idx >= 9) >= 2:
        return True
    return False
