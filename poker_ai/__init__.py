"""
Poker AI opponent core: action ledger, opponent modeling, personalities and a
cached, latency-bounded decision engine behind the AIManager facade.
"""

from .ai_manager import AI_DIFFICULTY_LEVELS, AIManager, SystemStats, create_ai_manager, quick_ai_decision
from .ai_resilience import (
    AIError,
    CacheCorruptionError,
    DecisionTimeoutError,
    InvalidObservationError,
    InvalidPersonalityError,
    InvalidReferenceError,
    PersonalityValidationError,
    UnknownOpponentError,
    UnknownPersonalityError,
)
from .config import AITunables, load_tunables
from .decision_engine import Decision, DecisionContext, DecisionEngine, RecentAction
from .game_state import ActionCategory, ActionType, Difficulty, GameSituation, PlayerState, Street
from .memory import ActionLedger, ActionRecord, ObservedAction, OpponentModel
from .personalities import AIPersonality, LearningPersonality, PersonalityRegistry, PlayerStats

__all__ = [
    'AIManager',
    'AI_DIFFICULTY_LEVELS',
    'SystemStats',
    'create_ai_manager',
    'quick_ai_decision',

    'AIError',
    'CacheCorruptionError',
    'DecisionTimeoutError',
    'InvalidObservationError',
    'InvalidPersonalityError',
    'InvalidReferenceError',
    'PersonalityValidationError',
    'UnknownOpponentError',
    'UnknownPersonalityError',

    'AITunables',
    'load_tunables',

    'Decision',
    'DecisionContext',
    'DecisionEngine',
    'RecentAction',

    'ActionCategory',
    'ActionType',
    'Difficulty',
    'GameSituation',
    'PlayerState',
    'Street',

    'ActionLedger',
    'ActionRecord',
    'ObservedAction',
    'OpponentModel',

    'AIPersonality',
    'LearningPersonality',
    'PersonalityRegistry',
    'PlayerStats',
]
