"""
AI Resilience Module - Error taxonomy and fallback behaviors for AI players.

Every failure in the decision path is a typed AIError the caller can observe.
When a decision cannot be produced in time, FallbackActionSelector supplies
the deterministic safe action the game loop is expected to apply instead.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence

from .game_state import ActionType

logger = logging.getLogger(__name__)


class AIError(Exception):
    """Base exception for AI-related errors"""
    pass


class InvalidPersonalityError(AIError):
    """A personality cannot be used by the AI"""
    pass


class PersonalityValidationError(InvalidPersonalityError):
    """Raised when personality parameters are out of range or malformed"""

    def __init__(self, personality_id: str, violations: Sequence[str]):
        self.personality_id = personality_id
        self.violations: List[str] = list(violations)
        super().__init__(
            f"Invalid personality parameters for '{personality_id}': {'; '.join(self.violations)}"
        )


class InvalidReferenceError(AIError):
    """Raised when an unknown personality or opponent id is requested"""
    pass


class UnknownPersonalityError(InvalidReferenceError, InvalidPersonalityError):
    """Raised when a personality id is not in the registry"""

    def __init__(self, personality_id: str):
        self.personality_id = personality_id
        super().__init__(f"Invalid personality: {personality_id}")


class UnknownOpponentError(InvalidReferenceError):
    """Raised when no model exists for an opponent id"""

    def __init__(self, opponent_id: str):
        self.opponent_id = opponent_id
        super().__init__(f"No opponent model for: {opponent_id}")


class DecisionTimeoutError(AIError):
    """Raised when a decision exceeds its latency budget"""

    def __init__(self, budget_ms: float, elapsed_ms: float, stage: str = ""):
        self.budget_ms = budget_ms
        self.elapsed_ms = elapsed_ms
        self.stage = stage
        where = f" during {stage}" if stage else ""
        super().__init__(f"AI decision timeout after {elapsed_ms:.1f}ms{where} (budget {budget_ms:.0f}ms)")


class CacheCorruptionError(AIError):
    """A cache entry failed its own shape or expiry check"""
    pass


class InvalidObservationError(AIError):
    """Raised when a record cannot be turned into an observed opponent action"""
    pass


class LatencyBudget:
    """Deadline tracker for one decision computation.

    ``check`` is called between computation stages and raises once the budget
    is spent, so an overrunning computation stops before it can publish.
    """

    def __init__(self, budget_ms: float, clock: Callable[[], float] = time.monotonic):
        self.budget_ms = budget_ms
        self._clock = clock
        self.started_at = clock()

    @property
    def elapsed_ms(self) -> float:
        return (self._clock() - self.started_at) * 1000

    def check(self, stage: str = "") -> None:
        elapsed = self.elapsed_ms
        if elapsed > self.budget_ms:
            raise DecisionTimeoutError(self.budget_ms, elapsed, stage)


class AIFallbackStrategy(Enum):
    """Available fallback strategies when the engine cannot be trusted"""
    CONSERVATIVE = "conservative"  # Check, call when cheap, otherwise fold. Never raise
    SAFE = "safe"                  # Check when free, otherwise fold


@dataclass(frozen=True)
class FallbackAction:
    action: ActionType
    amount: Optional[int] = None
    reason: str = ""


class FallbackActionSelector:
    """
    Centralized fallback action selection logic.
    Used for low-confidence decisions and for timed-out requests.
    """

    # Conservative calls are only made when the price is at most this share of the pot
    CONSERVATIVE_MAX_CALL_POT_FRACTION = 0.5

    @staticmethod
    def select_action(
        amount_to_call: int,
        stack: int,
        pot: int,
        strategy: AIFallbackStrategy = AIFallbackStrategy.CONSERVATIVE,
    ) -> FallbackAction:
        if strategy == AIFallbackStrategy.CONSERVATIVE:
            return FallbackActionSelector._conservative(amount_to_call, stack, pot)
        return FallbackActionSelector._safe(amount_to_call)

    @staticmethod
    def _conservative(amount_to_call: int, stack: int, pot: int) -> FallbackAction:
        """Check when possible, call a cheap price, never raise"""
        if amount_to_call <= 0:
            return FallbackAction(ActionType.CHECK, reason="conservative check")
        cheap = amount_to_call <= pot * FallbackActionSelector.CONSERVATIVE_MAX_CALL_POT_FRACTION
        if cheap and amount_to_call < stack:
            return FallbackAction(ActionType.CALL, reason="conservative call at a good price")
        return FallbackAction(ActionType.FOLD, reason="conservative fold against a large bet")

    @staticmethod
    def _safe(amount_to_call: int) -> FallbackAction:
        if amount_to_call <= 0:
            return FallbackAction(ActionType.CHECK, reason="safe default check")
        return FallbackAction(ActionType.FOLD, reason="safe default fold")
