"""
Opponent Modeling System.

Tracks a bounded statistical profile of each opponent. The update rule is
intentionally coarse: every aggressive action nudges the aggression factor
up by a fixed step and every fold nudges fold-to-cbet up. It is a cheap
running tendency signal, not a statistically rigorous estimator. Values
are always clamped, so no sequence of updates can push them out of range.
"""

import logging
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Optional, Tuple

from ..ai_resilience import InvalidObservationError
from ..archetypes import classify_observed
from ..config import AGG_FACTOR_MAX, AGG_FACTOR_MIN, RATE_MAX, RATE_MIN
from ..game_state import PLAYER_ACTIONS, ActionCategory, ActionType, Street
from .action_ledger import ActionRecord

logger = logging.getLogger(__name__)

# Bumped whenever the snapshot layout changes so old cache keys never match
SNAPSHOT_VERSION = 1

AGGRESSION_STEP = 0.1
FOLD_TO_CBET_STEP = 0.5

DEFAULT_VPIP = 25.0
DEFAULT_PFR = 20.0
DEFAULT_AGGRESSION_FACTOR = 2.0
DEFAULT_FOLD_TO_CBET = 60.0
DEFAULT_THREE_BET_FREQ = 8.0
DEFAULT_RECENT_ADJUSTMENT = 0.0

# Below this many observations the play style label is a guess
MIN_ACTIONS_FOR_STYLE_LABEL = 5

_RATE_FIELDS = ('vpip', 'pfr', 'fold_to_cbet', 'three_bet_freq')
_NUMERIC_FIELDS = ('vpip', 'pfr', 'aggression_factor', 'fold_to_cbet', 'three_bet_freq', 'recent_adjustment')

SNAPSHOT_PRECISION = 4


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class OpponentModel:
    """Statistical profile of one opponent. Rates are percentages (0-100)."""
    player_id: str
    vpip: float = DEFAULT_VPIP
    pfr: float = DEFAULT_PFR
    aggression_factor: float = DEFAULT_AGGRESSION_FACTOR
    fold_to_cbet: float = DEFAULT_FOLD_TO_CBET
    three_bet_freq: float = DEFAULT_THREE_BET_FREQ
    recent_adjustment: float = DEFAULT_RECENT_ADJUSTMENT
    actions_observed: int = 0

    def update(self, **kwargs) -> 'OpponentModel':
        return replace(self, **kwargs)

    def play_style_label(self) -> str:
        """'tight-aggressive', 'loose-aggressive', 'tight-passive',
        'loose-passive', or 'unknown' before enough actions were seen."""
        if self.actions_observed < MIN_ACTIONS_FOR_STYLE_LABEL:
            return 'unknown'
        return classify_observed(self.vpip, self.aggression_factor)

    def rounded(self) -> 'OpponentModel':
        """Copy with float noise removed; the engine decides on this view."""
        return self.update(**{
            name: round(getattr(self, name), SNAPSHOT_PRECISION) for name in _NUMERIC_FIELDS
        })

    def snapshot(self) -> Tuple:
        """Versioned flat numeric view used in decision fingerprints."""
        keyed = self.rounded()
        return (SNAPSHOT_VERSION,) + tuple(getattr(keyed, name) for name in _NUMERIC_FIELDS)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OpponentModel':
        return create_opponent_model(
            data['player_id'],
            **{k: v for k, v in data.items() if k != 'player_id'}
        )


@dataclass(frozen=True)
class ObservedAction:
    """A voluntary action by the modeled opponent.

    Only the six player action kinds are accepted; system markers and blind
    posts are rejected at construction.
    """
    kind: ActionType
    street: Street = Street.PREFLOP
    amount: Optional[int] = None

    def __post_init__(self):
        if self.kind not in PLAYER_ACTIONS:
            raise InvalidObservationError(f"Not an observable player action: {self.kind}")

    @classmethod
    def from_record(cls, record: ActionRecord) -> 'ObservedAction':
        if record.category != ActionCategory.PLAYER_ACTION:
            raise InvalidObservationError(
                f"Ledger record #{record.sequence_id} is a {record.category.value}, not a player action"
            )
        return cls(kind=record.action, street=record.street, amount=record.amount)


def create_opponent_model(player_id: str, **overrides) -> OpponentModel:
    """Default profile for an opponent, with any supplied fields overriding.

    Overrides are clamped into range like any other value.
    """
    model = OpponentModel(player_id=player_id)
    if not overrides:
        return model

    unknown = set(overrides) - set(OpponentModel.__dataclass_fields__)
    if unknown:
        raise TypeError(f"Unknown opponent model fields: {', '.join(sorted(unknown))}")

    values = dict(overrides)
    for name in _RATE_FIELDS:
        if name in values:
            values[name] = clamp(float(values[name]), RATE_MIN, RATE_MAX)
    if 'aggression_factor' in values:
        values['aggression_factor'] = clamp(float(values['aggression_factor']), AGG_FACTOR_MIN, AGG_FACTOR_MAX)
    return model.update(**values)


def update_opponent_model(model: OpponentModel, observed: ObservedAction) -> OpponentModel:
    """Return a new model reflecting one observed action."""
    changes: Dict[str, Any] = {'actions_observed': model.actions_observed + 1}

    if observed.kind in (ActionType.BET, ActionType.RAISE):
        changes['aggression_factor'] = clamp(
            model.aggression_factor + AGGRESSION_STEP, AGG_FACTOR_MIN, AGG_FACTOR_MAX
        )
    elif observed.kind == ActionType.FOLD:
        changes['fold_to_cbet'] = clamp(
            model.fold_to_cbet + FOLD_TO_CBET_STEP, RATE_MIN, RATE_MAX
        )

    updated = model.update(**changes)
    logger.debug(
        f"Opponent {model.player_id} observed {observed.kind.value} on {observed.street.value}: "
        f"af={updated.aggression_factor:.2f} fold_to_cbet={updated.fold_to_cbet:.1f}"
    )
    return updated
