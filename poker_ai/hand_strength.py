"""
Hand strength estimation for the decision engine.

Preflop strength comes from the standard tiers of the 169 starting hands.
Postflop strength is read from eval7's hand category, refined by whether the
hero's hole cards actually contribute to the made hand. Draw potential is
estimated from flush and straight outs.

Everything here is deterministic: the same cards always give the same numbers,
which the decision cache relies on.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence

import eval7

from .board_texture import RANKS, rank_index

PREMIUM_HANDS = {'AA', 'KK', 'QQ', 'JJ', 'AKs'}  # Top ~3%
TOP_10_HANDS = PREMIUM_HANDS | {'TT', 'AKo', 'AQs', 'AJs', 'KQs'}  # Top ~10%
TOP_20_HANDS = TOP_10_HANDS | {'99', '88', '77', 'ATs', 'AQo', 'AJo', 'KJs', 'KTs', 'QJs', 'QTs', 'JTs'}  # Top ~20%
TOP_35_HANDS = TOP_20_HANDS | {
    '66', '55', '44', '33', '22',  # Small pairs
    'A9s', 'A8s', 'A7s', 'A6s', 'A5s', 'A4s', 'A3s', 'A2s',  # Suited aces
    'KQo', 'K9s', 'K8s', 'Q9s', 'J9s', 'T9s', '98s', '87s', '76s', '65s', '54s',  # Suited connectors
}

TIER_STRENGTH = {
    'premium': 0.92,
    'top10': 0.80,
    'top20': 0.66,
    'top35': 0.52,
}
TRASH_STRENGTH_CAP = 0.40

# eval7 hand categories mapped onto a 0-1 strength scale
HANDTYPE_STRENGTH = {
    'High Card': 0.10,
    'Pair': 0.35,
    'Two Pair': 0.60,
    'Trips': 0.72,
    'Straight': 0.80,
    'Flush': 0.85,
    'Full House': 0.92,
    'Quads': 0.97,
    'Straight Flush': 1.00,
}

FLUSH_DRAW_POTENTIAL = 0.35
OPEN_ENDED_POTENTIAL = 0.30
GUTSHOT_POTENTIAL = 0.15

_RANK_VALUES = {rank: 14 - idx for idx, rank in enumerate(RANKS)}  # A=14 ... 2=2


@dataclass(frozen=True)
class HandStrength:
    strength: float               # 0-1 made-hand strength
    draw_potential: float = 0.0   # 0-1 chance-weighted improvement
    category: str = ""            # tier name preflop, eval7 hand type postflop
    canonical: str = ""

    @property
    def equity_estimate(self) -> float:
        return min(1.0, self.strength + self.draw_potential * 0.5)


def normalize_card(card: str) -> str:
    """'10h' -> 'Th', 'ah' -> 'Ah'."""
    if card.startswith('10'):
        card = 'T' + card[2:]
    return card[0].upper() + card[1:].lower()


def hand_to_canonical(card1: str, card2: str) -> str:
    """Two cards to canonical notation: ('Ah', 'Kh') -> 'AKs', ('Ah', 'Ad') -> 'AA'."""
    card1, card2 = normalize_card(card1), normalize_card(card2)
    rank1, suit1 = card1[0], card1[1]
    rank2, suit2 = card2[0], card2[1]

    if rank_index(rank1) > rank_index(rank2):
        rank1, rank2 = rank2, rank1
        suit1, suit2 = suit2, suit1

    if rank1 == rank2:
        return f"{rank1}{rank2}"
    elif suit1 == suit2:
        return f"{rank1}{rank2}s"
    else:
        return f"{rank1}{rank2}o"


def get_hand_tier(canonical: str) -> Optional[str]:
    """'premium', 'top10', 'top20', 'top35' or 'trash' (None for no hand)."""
    if not canonical:
        return None
    if canonical in PREMIUM_HANDS:
        return 'premium'
    if canonical in TOP_10_HANDS:
        return 'top10'
    if canonical in TOP_20_HANDS:
        return 'top20'
    if canonical in TOP_35_HANDS:
        return 'top35'
    return 'trash'


def canonical_strength(canonical: str) -> float:
    """Preflop strength of a canonical hand."""
    tier = get_hand_tier(canonical)
    if tier is None:
        return 0.0
    if tier != 'trash':
        return TIER_STRENGTH[tier]

    # Trash hands: pair/suited/connected bonuses plus high-card value
    high, low = _RANK_VALUES[canonical[0]], _RANK_VALUES[canonical[1]]
    strength = (high - 2) / 12 * 0.25
    if high == low:
        strength += 0.15
    if canonical.endswith('s'):
        strength += 0.05
    if high - low == 1:
        strength += 0.05
    return min(TRASH_STRENGTH_CAP, strength)


def evaluate_preflop(hole_cards: Sequence[str]) -> HandStrength:
    canonical = hand_to_canonical(hole_cards[0], hole_cards[1])
    return HandStrength(
        strength=canonical_strength(canonical),
        category=get_hand_tier(canonical),
        canonical=canonical,
    )


def evaluate_postflop(hole_cards: Sequence[str], board: Sequence[str]) -> HandStrength:
    hole = [normalize_card(c) for c in hole_cards]
    community = [normalize_card(c) for c in board]

    score = eval7.evaluate([eval7.Card(c) for c in hole + community])
    handtype = eval7.handtype(score)
    strength = HANDTYPE_STRENGTH.get(handtype, 0.10)

    if handtype == 'Pair':
        strength = _pair_strength(hole, community)
    elif handtype in ('Two Pair', 'Trips') and not _hole_cards_connect(hole, community):
        # The board is doing the work; everyone shares it
        strength -= 0.25

    draw = 0.0 if len(community) >= 5 else draw_potential(hole, community)
    return HandStrength(
        strength=max(0.0, min(1.0, strength)),
        draw_potential=draw,
        category=handtype,
        canonical=hand_to_canonical(hole[0], hole[1]),
    )


def evaluate_hand(hole_cards: Sequence[str], board: Sequence[str] = ()) -> HandStrength:
    """Strength of the hero's hand on the current street.

    Without hole cards there is nothing to evaluate and strength is 0.
    """
    if len(hole_cards) < 2:
        return HandStrength(strength=0.0)
    if len(board) < 3:
        return evaluate_preflop(hole_cards)
    return evaluate_postflop(hole_cards, board)


def _hole_cards_connect(hole: Sequence[str], board: Sequence[str]) -> bool:
    board_ranks = {c[0] for c in board}
    return hole[0][0] == hole[1][0] or any(c[0] in board_ranks for c in hole)


def _pair_strength(hole: Sequence[str], board: Sequence[str]) -> float:
    board_values = sorted((_RANK_VALUES[c[0]] for c in board), reverse=True)
    hole_values = [_RANK_VALUES[c[0]] for c in hole]

    if hole_values[0] == hole_values[1]:
        # Pocket pair: overpair beats the board, underpair is marginal
        return 0.55 if hole_values[0] > board_values[0] else 0.30
    if board_values[0] in hole_values:
        return 0.47  # top pair
    if any(v in board_values for v in hole_values):
        return 0.33  # middle or bottom pair
    return 0.15      # pair is on the board


def draw_potential(hole: Sequence[str], board: Sequence[str]) -> float:
    """Largest of flush-draw and straight-draw potential the hero holds."""
    potential = 0.0

    suits = Counter(c[1] for c in list(hole) + list(board))
    hole_suits = {c[1] for c in hole}
    if any(count == 4 and suit in hole_suits for suit, count in suits.items()):
        potential = FLUSH_DRAW_POTENTIAL

    outs = _straight_out_ranks(list(hole) + list(board))
    if outs and outs != _straight_out_ranks(board):
        straight = OPEN_ENDED_POTENTIAL if len(outs) >= 2 else GUTSHOT_POTENTIAL
        potential = max(potential, straight)

    return potential


def _rank_values_with_low_ace(cards: Sequence[str]) -> set:
    values = {_RANK_VALUES[c[0]] for c in cards}
    if 14 in values:
        values.add(1)
    return values


def _has_straight(values: set) -> bool:
    return any(all(v in values for v in range(low, low + 5)) for low in range(1, 11))


def _straight_out_ranks(cards: Sequence[str]) -> frozenset:
    """Rank values that would complete a straight that is not already made."""
    values = _rank_values_with_low_ace(cards)
    if _has_straight(values):
        return frozenset()

    outs = set()
    for candidate in range(2, 15):
        if candidate in values:
            continue
        extended = values | {candidate}
        if candidate == 14:
            extended.add(1)
        if _has_straight(extended):
            outs.add(candidate)
    return frozenset(outs)


def range_strength(hand_range: Mapping[str, float]) -> float:
    """Frequency-weighted preflop strength of a range like {'AA': 1.0, 'KQs': 0.5}.

    An empty range carries no information and scores a neutral 0.5.
    """
    total_weight = sum(max(0.0, freq) for freq in hand_range.values())
    if total_weight <= 0:
        return 0.5
    weighted = sum(canonical_strength(hand) * max(0.0, freq) for hand, freq in hand_range.items())
    return weighted / total_weight


def range_digest(hand_range: Mapping[str, float]) -> Dict[str, float]:
    """Stable, rounded view of a range for fingerprinting."""
    return {hand: round(freq, 3) for hand, freq in sorted(hand_range.items())}
