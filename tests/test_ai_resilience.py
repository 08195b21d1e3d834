"""
Tests for the AI error taxonomy and fallback behavior.
"""

import unittest

from poker_ai.ai_resilience import (
    AIError,
    AIFallbackStrategy,
    CacheCorruptionError,
    DecisionTimeoutError,
    FallbackActionSelector,
    InvalidObservationError,
    InvalidPersonalityError,
    InvalidReferenceError,
    LatencyBudget,
    PersonalityValidationError,
    UnknownOpponentError,
    UnknownPersonalityError,
)
from poker_ai.game_state import ActionType
from tests.conftest import FakeClock


class TestErrorTaxonomy(unittest.TestCase):

    def test_everything_is_an_ai_error(self):
        for error_cls in (InvalidPersonalityError, InvalidReferenceError, CacheCorruptionError,
                          InvalidObservationError):
            self.assertTrue(issubclass(error_cls, AIError))

    def test_unknown_personality_is_both(self):
        error = UnknownPersonalityError('ghost')
        self.assertIsInstance(error, InvalidReferenceError)
        self.assertIsInstance(error, InvalidPersonalityError)
        self.assertEqual(error.personality_id, 'ghost')
        self.assertIn('ghost', str(error))

    def test_unknown_opponent(self):
        error = UnknownOpponentError('villain')
        self.assertIsInstance(error, InvalidReferenceError)
        self.assertNotIsInstance(error, InvalidPersonalityError)

    def test_validation_error_carries_violations(self):
        error = PersonalityValidationError('wild', ['aggression too high', 'tightness too low'])
        self.assertEqual(error.violations, ['aggression too high', 'tightness too low'])
        self.assertIn('aggression too high', str(error))

    def test_timeout_carries_timing(self):
        error = DecisionTimeoutError(150, 210.5, 'analysis')
        self.assertEqual(error.budget_ms, 150)
        self.assertEqual(error.elapsed_ms, 210.5)
        self.assertIn('analysis', str(error))


class TestLatencyBudget(unittest.TestCase):

    def test_within_budget(self):
        clock = FakeClock()
        budget = LatencyBudget(150, clock=clock)
        clock.advance(0.1)
        budget.check('analysis')
        self.assertAlmostEqual(budget.elapsed_ms, 100)

    def test_exceeded(self):
        clock = FakeClock()
        budget = LatencyBudget(150, clock=clock)
        clock.advance(0.2)
        with self.assertRaises(DecisionTimeoutError) as ctx:
            budget.check('baseline')
        self.assertEqual(ctx.exception.stage, 'baseline')


class TestFallbackActionSelector(unittest.TestCase):

    def test_conservative_checks_when_free(self):
        action = FallbackActionSelector.select_action(0, 1000, 100)
        self.assertEqual(action.action, ActionType.CHECK)
        self.assertIsNone(action.amount)

    def test_conservative_calls_small_bet(self):
        action = FallbackActionSelector.select_action(40, 1000, 100)
        self.assertEqual(action.action, ActionType.CALL)

    def test_conservative_folds_to_large_raise(self):
        action = FallbackActionSelector.select_action(300, 1000, 100)
        self.assertEqual(action.action, ActionType.FOLD)

    def test_conservative_never_calls_off_stack(self):
        action = FallbackActionSelector.select_action(50, 50, 200)
        self.assertEqual(action.action, ActionType.FOLD)

    def test_safe_strategy(self):
        self.assertEqual(
            FallbackActionSelector.select_action(0, 1000, 100, AIFallbackStrategy.SAFE).action,
            ActionType.CHECK,
        )
        self.assertEqual(
            FallbackActionSelector.select_action(10, 1000, 100, AIFallbackStrategy.SAFE).action,
            ActionType.FOLD,
        )


if __name__ == '__main__':
    unittest.main()
