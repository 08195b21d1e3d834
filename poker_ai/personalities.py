"""
AI personalities: named bundles of bias parameters that shape the engine's
decisions.

A personality is immutable. Validation happens when it is registered and an
out-of-range parameter is a hard rejection, never a clamp. Adaptive
personalities can be wrapped in a LearningPersonality, which keeps the
original as a frozen baseline and records every adjustment it makes.
"""

import hashlib
import json
import logging
import math
from collections import OrderedDict
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .ai_resilience import (
    InvalidPersonalityError,
    InvalidReferenceError,
    PersonalityValidationError,
    UnknownPersonalityError,
)
from .archetypes import ARCHETYPE_LABELS, bluff_label, classify_personality
from .config import (
    LEARNING_ADAPTABILITY_THRESHOLD,
    PERSONALITY_CATALOG_PATH,
    PERSONALITY_PARAM_MAX,
    PERSONALITY_PARAM_MIN,
)
from .game_state import Difficulty

logger = logging.getLogger(__name__)

BIAS_PARAMETERS = (
    'aggression',
    'tightness',
    'bluff_frequency',
    'adaptability',
    'preflop_aggression',
    'postflop_aggression',
    'river_call_down_freq',
    'risk_tolerance',
    'variance_preference',
)

BASELINE_PERSONALITY_ID = 'beginner-bob'

# Canonical personality per difficulty tier
DIFFICULTY_CANONICAL = {
    Difficulty.BEGINNER: 'beginner-bob',
    Difficulty.INTERMEDIATE: 'tight-aggressive-alice',
    Difficulty.ADVANCED: 'loose-aggressive-charlie',
}

# Personality strength is measured against this balanced profile
IDEAL_AGGRESSION = 65
IDEAL_TIGHTNESS = 60
IDEAL_BLUFF_FREQUENCY = 40
ADAPTABILITY_STRENGTH_BONUS = 20

# Personality aggression (0-100) to aggression factor scale
AGGRESSION_TO_AF_DIVISOR = 25


@dataclass(frozen=True)
class AIPersonality:
    """Immutable trait bundle. All bias parameters are on a 0-100 scale."""
    id: str
    name: str
    description: str = ""

    aggression: float = 50
    tightness: float = 50
    bluff_frequency: float = 30
    adaptability: float = 40

    # Street-specific behavior
    preflop_aggression: float = 50
    postflop_aggression: float = 50
    river_call_down_freq: float = 50

    # Risk appetite
    risk_tolerance: float = 50
    variance_preference: float = 50

    adaptive: bool = False
    difficulty: Optional[Difficulty] = None

    def update(self, **kwargs) -> 'AIPersonality':
        return replace(self, **kwargs)

    def bias_parameters(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in BIAS_PARAMETERS}

    def parameter_digest(self) -> str:
        """Short stable hash of everything a decision reads from the personality.

        Two personalities sharing an id but differing in any parameter (e.g.
        a learning variant and its baseline) get different digests. Values are
        hashed exactly, so no two digest-equal personalities can decide
        differently.
        """
        payload = json.dumps(
            [float(getattr(self, name)) for name in BIAS_PARAMETERS] + [self.adaptive, self.name]
        )
        return hashlib.sha1(payload.encode('utf-8')).hexdigest()[:12]

    def playing_style_description(self) -> str:
        return get_playing_style_description(self)

    def strength(self) -> float:
        return get_personality_strength(self)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['difficulty'] = self.difficulty.value if self.difficulty else None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AIPersonality':
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if values.get('difficulty') is not None:
            values['difficulty'] = Difficulty(values['difficulty'])
        return cls(**values)


BASELINE_PERSONALITY = AIPersonality(
    id=BASELINE_PERSONALITY_ID,
    name='Beginner Bob',
    description='A player who just learned the game. Plays cautious and passive.',
    aggression=25,
    tightness=70,
    bluff_frequency=10,
    adaptability=20,
    preflop_aggression=20,
    postflop_aggression=30,
    river_call_down_freq=40,
    risk_tolerance=30,
    variance_preference=25,
    difficulty=Difficulty.BEGINNER,
)


def validate_personality(personality: AIPersonality) -> List[str]:
    """List every violated constraint; an empty list means the personality is valid."""
    violations = []

    if not isinstance(personality.id, str) or not personality.id.strip():
        violations.append("id must be a non-empty string")
    if not isinstance(personality.name, str) or not personality.name.strip():
        violations.append("name must be a non-empty string")

    for name in BIAS_PARAMETERS:
        value = getattr(personality, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            violations.append(f"{name} must be a number, got {type(value).__name__}")
        elif math.isnan(value) or not PERSONALITY_PARAM_MIN <= value <= PERSONALITY_PARAM_MAX:
            violations.append(
                f"{name} must be within [{PERSONALITY_PARAM_MIN:g}, {PERSONALITY_PARAM_MAX:g}], got {value}"
            )

    if not isinstance(personality.adaptive, bool):
        violations.append("adaptive must be a bool")
    if personality.difficulty is not None and not isinstance(personality.difficulty, Difficulty):
        violations.append(f"unknown difficulty: {personality.difficulty!r}")

    return violations


def is_valid_personality(personality: AIPersonality) -> bool:
    return not validate_personality(personality)


def create_custom_personality(personality_id: str, name: str, description: str = "",
                              **parameters) -> AIPersonality:
    """Build a personality from the default profile plus any overridden parameters.

    Raises:
        PersonalityValidationError: If any supplied parameter is out of range
    """
    personality = AIPersonality(id=personality_id, name=name, description=description, **parameters)
    violations = validate_personality(personality)
    if violations:
        raise PersonalityValidationError(personality_id, violations)
    return personality


def get_playing_style_description(personality: AIPersonality) -> str:
    """E.g. 'Tight-Aggressive (TAG), bluffs selectively'."""
    style = ARCHETYPE_LABELS[classify_personality(personality.tightness, personality.aggression)]
    return f"{style}, {bluff_label(personality.bluff_frequency)}"


def get_personality_strength(personality: AIPersonality) -> float:
    """Rough 0-100 rating: closeness to a balanced profile plus an adaptability bonus."""
    distance = (
        abs(personality.aggression - IDEAL_AGGRESSION)
        + abs(personality.tightness - IDEAL_TIGHTNESS)
        + abs(personality.bluff_frequency - IDEAL_BLUFF_FREQUENCY)
    ) / 3
    balance_score = 100 - distance
    adaptability_bonus = personality.adaptability / 100 * ADAPTABILITY_STRENGTH_BONUS
    return max(0.0, min(100.0, balance_score + adaptability_bonus))


@dataclass(frozen=True)
class PlayerStats:
    """Summary of a human player's tendencies used to pick an opponent."""
    vpip: float
    pfr: float
    agg_factor: float

    @classmethod
    def from_opponent_model(cls, model) -> 'PlayerStats':
        return cls(vpip=model.vpip, pfr=model.pfr, agg_factor=model.aggression_factor)


def calculate_personality_match(player_stats: PlayerStats, personality: AIPersonality) -> float:
    """How closely a personality plays like the given stats (0-100, 100 = identical).

    Personality parameters are mapped onto the stat scales first: VPIP is the
    inverse of tightness, PFR follows preflop aggression and aggression is
    rescaled to an aggression factor.
    """
    ai_vpip = 100 - personality.tightness
    ai_pfr = personality.preflop_aggression
    ai_agg_factor = personality.aggression / AGGRESSION_TO_AF_DIVISOR

    vpip_diff = abs(player_stats.vpip - ai_vpip) / 50
    pfr_diff = abs(player_stats.pfr - ai_pfr) / 50
    agg_diff = abs(player_stats.agg_factor - ai_agg_factor) / 2

    match_score = 100 - ((vpip_diff + pfr_diff + agg_diff) / 3) * 100
    return max(0.0, min(100.0, match_score))


@dataclass(frozen=True)
class AdjustmentRecord:
    timestamp: datetime
    parameter: str
    old_value: float
    new_value: float
    reason: str


@dataclass(frozen=True)
class LearningPersonality:
    """An adaptive personality plus the history of how it has adjusted.

    ``baseline`` is never changed; ``personality`` is the current adjusted
    copy and ``adjustments`` only ever grows.
    """
    baseline: AIPersonality
    personality: AIPersonality
    adjustments: Tuple[AdjustmentRecord, ...] = field(default_factory=tuple)
    sessions_played: int = 0
    win_rate: float = 0.5

    @property
    def id(self) -> str:
        return self.personality.id

    def update(self, **kwargs) -> 'LearningPersonality':
        return replace(self, **kwargs)


def derive_learning(personality: AIPersonality, sessions_played: int = 0,
                    win_rate: float = 0.5) -> LearningPersonality:
    """Wrap an adaptive personality so it can learn.

    Raises:
        InvalidPersonalityError: If the personality is not adaptive
    """
    if not personality.adaptive:
        raise InvalidPersonalityError(f"Personality '{personality.id}' is not adaptive")
    return LearningPersonality(
        baseline=personality,
        personality=personality,
        sessions_played=sessions_played,
        win_rate=win_rate,
    )


def apply_learning_adjustments(learning: LearningPersonality, opponent_stats: PlayerStats,
                               max_learning_rate: float = 0.1) -> LearningPersonality:
    """Shift the current personality toward an exploitative line against the opponent.

    - Tight opponent (VPIP < 20): more aggression
    - Loose opponent (VPIP > 40): less aggression
    - Aggressive opponent (AF > 3): fewer river call-downs

    Personalities below the adaptability threshold are returned unchanged.
    """
    current = learning.personality
    if current.adaptability < LEARNING_ADAPTABILITY_THRESHOLD:
        return learning

    learning_rate = current.adaptability / 100 * max_learning_rate
    changes: List[Tuple[str, float, str]] = []

    if opponent_stats.vpip < 20:
        changes.append(('aggression', current.aggression + learning_rate * 20,
                        f"opponent is tight (VPIP {opponent_stats.vpip:.0f})"))
    elif opponent_stats.vpip > 40:
        changes.append(('aggression', current.aggression - learning_rate * 15,
                        f"opponent is loose (VPIP {opponent_stats.vpip:.0f})"))

    if opponent_stats.agg_factor > 3:
        changes.append(('river_call_down_freq', current.river_call_down_freq - learning_rate * 25,
                        f"opponent is aggressive (AF {opponent_stats.agg_factor:.1f})"))

    if not changes:
        return learning

    now = datetime.now()
    adjusted_values = {}
    records = []
    for parameter, target, reason in changes:
        old_value = getattr(current, parameter)
        new_value = max(PERSONALITY_PARAM_MIN, min(PERSONALITY_PARAM_MAX, target))
        adjusted_values[parameter] = new_value
        records.append(AdjustmentRecord(now, parameter, old_value, new_value, reason))
        logger.debug(f"Learning {current.id}: {parameter} {old_value:.2f} -> {new_value:.2f} ({reason})")

    return learning.update(
        personality=current.update(**adjusted_values),
        adjustments=learning.adjustments + tuple(records),
    )


def _coerce_difficulty(difficulty: Union[Difficulty, str]) -> Difficulty:
    if isinstance(difficulty, Difficulty):
        return difficulty
    try:
        return Difficulty(difficulty)
    except ValueError:
        raise InvalidReferenceError(f"Unknown difficulty: {difficulty}") from None


class PersonalityRegistry:
    """Catalog of valid personalities, kept in registration order."""

    def __init__(self):
        self._personalities: 'OrderedDict[str, AIPersonality]' = OrderedDict()

    def __contains__(self, personality_id: str) -> bool:
        return personality_id in self._personalities

    def __len__(self) -> int:
        return len(self._personalities)

    @staticmethod
    def validate(personality: AIPersonality) -> List[str]:
        return validate_personality(personality)

    @staticmethod
    def is_valid(personality: AIPersonality) -> bool:
        return is_valid_personality(personality)

    def register(self, personality: AIPersonality) -> None:
        """Insert or overwrite by id.

        Raises:
            PersonalityValidationError: If any parameter is invalid; the
                catalog is left untouched
        """
        violations = validate_personality(personality)
        if violations:
            logger.warning(f"Rejected personality {personality.id!r}: {'; '.join(violations)}")
            raise PersonalityValidationError(personality.id, violations)

        replaced = personality.id in self._personalities
        self._personalities[personality.id] = personality
        logger.info(f"{'Updated' if replaced else 'Registered'} personality {personality.id}")

    def get(self, personality_id: str) -> Optional[AIPersonality]:
        return self._personalities.get(personality_id)

    def require(self, personality_id: str) -> AIPersonality:
        personality = self._personalities.get(personality_id)
        if personality is None:
            raise UnknownPersonalityError(personality_id)
        return personality

    def list(self) -> List[AIPersonality]:
        return list(self._personalities.values())

    def remove(self, personality_id: str) -> bool:
        existed = self._personalities.pop(personality_id, None) is not None
        if existed:
            logger.info(f"Removed personality {personality_id}")
        return existed

    def recommend(self, player_stats: Optional[PlayerStats] = None,
                  difficulty: Optional[Union[Difficulty, str]] = None) -> AIPersonality:
        """Pick an opponent personality.

        With a difficulty tier, returns that tier's canonical personality
        (which must be registered). Otherwise the best-matching registered
        personality; the baseline when nothing scores above zero.

        Raises:
            InvalidReferenceError: Unknown difficulty, or the tier's
                canonical personality is not registered
        """
        if difficulty is not None:
            tier = _coerce_difficulty(difficulty)
            return self.require(DIFFICULTY_CANONICAL[tier])

        if player_stats is None:
            return self._personalities.get(BASELINE_PERSONALITY_ID, BASELINE_PERSONALITY)

        best: Optional[AIPersonality] = None
        best_score = 0.0
        for personality in self._personalities.values():
            score = calculate_personality_match(player_stats, personality)
            if score > best_score:
                best, best_score = personality, score

        if best is None:
            logger.debug("No personality matched the player stats, using baseline")
            return BASELINE_PERSONALITY
        return best

    @classmethod
    def from_catalog(cls, path: Optional[Union[str, Path]] = None) -> 'PersonalityRegistry':
        registry = cls()
        for personality in load_personality_catalog(path):
            registry.register(personality)
        return registry


def load_personality_catalog(path: Optional[Union[str, Path]] = None) -> List[AIPersonality]:
    """Read personalities from a JSON catalog, in file order.

    The file holds ``{"personalities": {"<id>": {...parameters...}}}``. A
    missing or unreadable file is logged and yields an empty list.
    """
    json_file = Path(path) if path else PERSONALITY_CATALOG_PATH
    if not json_file.exists():
        logger.warning(f"Personality catalog not found: {json_file}")
        return []

    try:
        with open(json_file, 'r') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Error reading personality catalog {json_file}: {e}")
        return []

    known = {f.name for f in fields(AIPersonality)}
    personalities = []
    for personality_id, config in data.get('personalities', {}).items():
        unknown = set(config) - known
        if unknown:
            logger.warning(f"Ignoring unknown fields for {personality_id}: {', '.join(sorted(unknown))}")
        personalities.append(AIPersonality.from_dict({**config, 'id': personality_id}))

    logger.debug(f"Loaded {len(personalities)} personalities from {json_file}")
    return personalities
