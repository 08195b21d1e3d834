"""
AI Manager - the single entry point the game loop talks to.

Owns:
- the DecisionEngine (and through it the decision cache)
- the PersonalityRegistry, seeded from the static catalog
- the opponent-model map and learning variants
- the action ledger for the current hand

Every operation runs under one re-entrant lock, so a decision always sees a
consistent opponent-model snapshot and model updates never interleave.
"""

import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .ai_resilience import (
    AIFallbackStrategy,
    DecisionTimeoutError,
    FallbackActionSelector,
    InvalidReferenceError,
    UnknownOpponentError,
)
from .config import AITunables, load_tunables
from .decision_engine import (
    Decision,
    DecisionContext,
    DecisionEngine,
    RecentAction,
    recent_actions_from_records,
)
from .game_state import Difficulty, GameSituation
from .memory.action_ledger import ActionLedger, ActionRecord
from .memory.opponent_model import (
    ObservedAction,
    OpponentModel,
    create_opponent_model,
    update_opponent_model,
)
from .personalities import (
    AIPersonality,
    LearningPersonality,
    PersonalityRegistry,
    PlayerStats,
    apply_learning_adjustments,
    derive_learning,
)

logger = logging.getLogger(__name__)

AI_DIFFICULTY_LEVELS: Dict[Difficulty, Dict[str, Any]] = {
    Difficulty.BEGINNER: {
        'name': 'Beginner',
        'description': 'For players who are new to Texas Hold\'em',
        'recommended_personalities': ['beginner-bob'],
    },
    Difficulty.INTERMEDIATE: {
        'name': 'Intermediate',
        'description': 'For players who know the fundamentals',
        'recommended_personalities': ['tight-aggressive-alice'],
    },
    Difficulty.ADVANCED: {
        'name': 'Advanced',
        'description': 'For experienced players',
        'recommended_personalities': ['loose-aggressive-charlie', 'adaptive-diana'],
    },
}


@dataclass(frozen=True)
class SystemStats:
    total_personalities: int
    opponent_models: int
    learning_personalities: int
    decisions_computed: int
    fallbacks: int
    timeouts: int
    avg_decision_ms: float
    cache_size: int
    cache_hits: int
    cache_misses: int
    cache_hit_rate: float
    ledger_size: int


class AIManager:
    """Facade over the engine, personality registry and opponent models."""

    def __init__(self, tunables: Optional[AITunables] = None,
                 registry: Optional[PersonalityRegistry] = None,
                 catalog_path: Optional[Union[str, Path]] = None,
                 clock: Callable[[], float] = time.monotonic):
        """
        Args:
            tunables: Static configuration; loaded from env/config file when omitted
            registry: Pre-built registry; seeded from the catalog when omitted
            catalog_path: Personality catalog to seed from (defaults to the bundled one)
            clock: Monotonic clock in seconds, injectable for tests
        """
        self.tunables = tunables or load_tunables()
        self.registry = registry if registry is not None else PersonalityRegistry.from_catalog(catalog_path)
        self.engine = DecisionEngine(self.registry, self.tunables, clock=clock)
        self.ledger = ActionLedger(capacity=self.tunables.ledger_capacity)

        self._opponent_models: Dict[str, OpponentModel] = {}
        self._learning: Dict[str, LearningPersonality] = {}
        self._lock = threading.RLock()

        logger.info(f"AI manager ready with {len(self.registry)} personalities")

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def get_decision(self, context: DecisionContext) -> Decision:
        """Raises UnknownPersonalityError or DecisionTimeoutError; see DecisionEngine.decide."""
        with self._lock:
            return self.engine.decide(context)

    def get_decision_or_fallback(self, context: DecisionContext) -> Decision:
        """Like get_decision, but a timeout yields the safe check-or-fold action.

        Structural errors (unknown personality, unknown hero) still raise.
        """
        try:
            return self.get_decision(context)
        except DecisionTimeoutError as e:
            hero = context.hero
            fallback = FallbackActionSelector.select_action(
                context.situation.amount_to_call(context.hero_id),
                hero.stack if hero else 0,
                context.situation.pot,
                AIFallbackStrategy.SAFE,
            )
            logger.warning(f"Using {fallback.action.value} fallback for {context.hero_id}: {e}")
            return Decision(
                action=fallback.action,
                amount=fallback.amount,
                confidence=0.0,
                reasoning=f"Decision timed out: {fallback.reason}",
                gto_deviation=0.0,
                baseline_action=fallback.action,
                is_fallback=True,
            )

    def build_context(self, situation: GameSituation, hero_id: str, personality_id: str,
                      opponent_id: Optional[str] = None,
                      hand_range: Optional[Mapping[str, float]] = None,
                      recent_history: Optional[List[RecentAction]] = None) -> DecisionContext:
        """Assemble a DecisionContext from managed state.

        The personality's learning variant is used when one exists. Without
        an explicit history the last few ledger entries are used.

        Raises:
            UnknownPersonalityError: Personality not registered
            UnknownOpponentError: opponent_id given but never modeled
        """
        with self._lock:
            personality = self.get_personality(personality_id)
            learning = self._learning.get(personality_id)
            if learning is not None:
                personality = learning.personality

            opponent = self.get_opponent_model(opponent_id) if opponent_id else None

            if recent_history is None:
                recent = recent_actions_from_records(
                    self.ledger.get_recent(self.tunables.recent_history_window)
                )
            else:
                recent = tuple(recent_history)

            return DecisionContext(
                situation=situation,
                hero_id=hero_id,
                personality=personality,
                opponent_model=opponent,
                hand_range=dict(hand_range or {}),
                recent_history=recent,
            )

    def clear_cache(self) -> None:
        with self._lock:
            self.engine.clear_cache()
        logger.info("Decision cache cleared")

    # ------------------------------------------------------------------
    # Personalities
    # ------------------------------------------------------------------

    def register_personality(self, personality: AIPersonality) -> None:
        """Raises PersonalityValidationError and leaves the roster untouched on bad input."""
        with self._lock:
            self.registry.register(personality)
            # A stale learning variant would shadow the new parameters
            self._learning.pop(personality.id, None)

    def remove_personality(self, personality_id: str) -> bool:
        with self._lock:
            self._learning.pop(personality_id, None)
            return self.registry.remove(personality_id)

    def get_personality(self, personality_id: str) -> AIPersonality:
        with self._lock:
            return self.registry.require(personality_id)

    def list_personalities(self) -> List[AIPersonality]:
        with self._lock:
            return self.registry.list()

    def recommend_opponent(self, player_stats: Optional[PlayerStats] = None,
                           difficulty: Optional[Union[Difficulty, str]] = None) -> AIPersonality:
        with self._lock:
            return self.registry.recommend(player_stats, difficulty)

    def derive_learning_personality(self, personality_id: str) -> LearningPersonality:
        """Start (or restart) learning for an adaptive personality.

        Raises:
            UnknownPersonalityError: Not registered
            InvalidPersonalityError: Not adaptive
        """
        with self._lock:
            learning = derive_learning(self.registry.require(personality_id))
            self._learning[personality_id] = learning
            logger.info(f"Learning enabled for {personality_id}")
            return learning

    def get_learning_personality(self, personality_id: str) -> Optional[LearningPersonality]:
        with self._lock:
            return self._learning.get(personality_id)

    def apply_learning(self, personality_id: str, opponent_stats: PlayerStats,
                       hands_observed: Optional[int] = None) -> LearningPersonality:
        """Adjust a learning personality against an opponent's stats.

        Nothing changes until ``hands_observed`` reaches the learning minimum.

        Raises:
            InvalidReferenceError: No learning variant exists for the id
        """
        with self._lock:
            learning = self._learning.get(personality_id)
            if learning is None:
                raise InvalidReferenceError(f"No learning personality for: {personality_id}")

            if hands_observed is not None and hands_observed < self.tunables.min_hands_for_learning:
                logger.debug(
                    f"Skipping learning for {personality_id}: {hands_observed} hands observed, "
                    f"need {self.tunables.min_hands_for_learning}"
                )
                return learning

            adjusted = apply_learning_adjustments(learning, opponent_stats, self.tunables.max_learning_rate)
            self._learning[personality_id] = adjusted
            return adjusted

    # ------------------------------------------------------------------
    # Opponent models
    # ------------------------------------------------------------------

    def create_opponent_model(self, player_id: str, **overrides) -> OpponentModel:
        """Start (or reset) the model for an opponent."""
        with self._lock:
            model = create_opponent_model(player_id, **overrides)
            self._opponent_models[player_id] = model
            logger.debug(f"Created opponent model for {player_id}")
            return model

    def get_opponent_model(self, player_id: str) -> OpponentModel:
        with self._lock:
            model = self._opponent_models.get(player_id)
            if model is None:
                raise UnknownOpponentError(player_id)
            return model

    def has_opponent_model(self, player_id: str) -> bool:
        with self._lock:
            return player_id in self._opponent_models

    def update_opponent_model(self, player_id: str, observed: ObservedAction) -> OpponentModel:
        """Raises UnknownOpponentError when the opponent was never modeled."""
        with self._lock:
            model = update_opponent_model(self.get_opponent_model(player_id), observed)
            self._opponent_models[player_id] = model
            return model

    def observe_record(self, record: ActionRecord) -> OpponentModel:
        """Feed a ledger player action into its actor's model.

        An actor seen for the first time gets a default model.

        Raises:
            InvalidObservationError: The record is a marker or blind post
        """
        observed = ObservedAction.from_record(record)
        with self._lock:
            if record.player_id not in self._opponent_models:
                self.create_opponent_model(record.player_id)
            return self.update_opponent_model(record.player_id, observed)

    # ------------------------------------------------------------------
    # Hand lifecycle and stats
    # ------------------------------------------------------------------

    def new_hand(self) -> None:
        """Reset the ledger for the next hand."""
        with self._lock:
            self.ledger.clear()

    def get_system_stats(self) -> SystemStats:
        with self._lock:
            engine_stats = self.engine.stats()
            return SystemStats(
                total_personalities=len(self.registry),
                opponent_models=len(self._opponent_models),
                learning_personalities=len(self._learning),
                decisions_computed=engine_stats['decisions_computed'],
                fallbacks=engine_stats['fallbacks'],
                timeouts=engine_stats['timeouts'],
                avg_decision_ms=engine_stats['avg_compute_ms'],
                cache_size=engine_stats['cache_size'],
                cache_hits=engine_stats['cache_hits'],
                cache_misses=engine_stats['cache_misses'],
                cache_hit_rate=engine_stats['cache_hit_rate'],
                ledger_size=len(self.ledger),
            )


def create_ai_manager(tunables: Optional[AITunables] = None, **kwargs) -> AIManager:
    return AIManager(tunables=tunables, **kwargs)


def quick_ai_decision(situation: GameSituation, hero_id: str,
                      personality_id: str = 'adaptive-diana') -> Decision:
    """One-off decision with a fresh manager and a default opponent model."""
    manager = AIManager()
    manager.create_opponent_model('opponent-1')
    context = manager.build_context(situation, hero_id, personality_id, opponent_id='opponent-1')
    return manager.get_decision(context)
