"""
Canonical archetype classification for poker players.

Single source of truth for archetype boundaries. Two scales:

1. **Personality parameters** (0-100 scale): tightness + aggression of an
   AIPersonality.
2. **Observed stats** (VPIP % / aggression factor): an OpponentModel.

Both scales produce the same 4-quadrant archetype names:
    tight-aggressive (TAG), loose-aggressive (LAG),
    tight-passive (Rock), loose-passive (Calling Station)
"""

# ── Personality Thresholds (0-100 scale) ───────────────────────────────
TIGHTNESS_TIGHT = 70      # tightness at or above this = tight
TIGHTNESS_LOOSE = 40      # tightness at or below this = loose
AGGRESSION_HIGH = 70      # aggression at or above this = aggressive
AGGRESSION_LOW = 40       # aggression at or below this = passive

BLUFF_OFTEN = 60
BLUFF_RARELY = 20


def classify_personality(tightness: float, aggression: float) -> str:
    """Classify personality parameters into a profile key.

    Returns one of: 'tight_aggressive', 'loose_aggressive', 'tight_passive',
    'loose_passive', or 'balanced'.
    """
    if tightness >= TIGHTNESS_TIGHT and aggression >= AGGRESSION_HIGH:
        return 'tight_aggressive'
    if tightness <= TIGHTNESS_LOOSE and aggression >= AGGRESSION_HIGH:
        return 'loose_aggressive'
    if tightness >= TIGHTNESS_TIGHT and aggression <= AGGRESSION_LOW:
        return 'tight_passive'
    if tightness <= TIGHTNESS_LOOSE and aggression <= AGGRESSION_LOW:
        return 'loose_passive'
    return 'balanced'


ARCHETYPE_LABELS = {
    'tight_aggressive': 'Tight-Aggressive (TAG)',
    'loose_aggressive': 'Loose-Aggressive (LAG)',
    'tight_passive': 'Tight-Passive',
    'loose_passive': 'Loose-Passive',
    'balanced': 'Balanced',
}


def bluff_label(bluff_frequency: float) -> str:
    if bluff_frequency >= BLUFF_OFTEN:
        return 'bluffs often'
    if bluff_frequency <= BLUFF_RARELY:
        return 'rarely bluffs'
    return 'bluffs selectively'


# ── Observed Stats Thresholds (VPIP % / Aggression Factor) ─────────────
# Used by: OpponentModel, DecisionEngine exploit adjustments
VPIP_VERY_TIGHT = 15.0     # VPIP below this = nit territory
VPIP_LOOSE = 35.0          # VPIP above this = loose player
AF_AGGRESSIVE = 2.5        # AF above this = aggressive player
FOLD_TO_CBET_HIGH = 70.0   # folds to continuation bets often
THREE_BET_HIGH = 12.0      # three-bets light


def classify_observed(vpip: float, aggression_factor: float) -> str:
    """Play style label from observed stats.

    Returns one of 'tight-aggressive', 'loose-aggressive', 'tight-passive',
    'loose-passive'.
    """
    is_tight = vpip < VPIP_LOOSE
    is_aggressive = aggression_factor > AF_AGGRESSIVE

    if is_tight and is_aggressive:
        return 'tight-aggressive'
    elif not is_tight and is_aggressive:
        return 'loose-aggressive'
    elif is_tight:
        return 'tight-passive'
    return 'loose-passive'
