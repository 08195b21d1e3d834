"""
Shared pytest fixtures for the poker AI test suite.

unittest.TestCase classes use the plain helper functions directly:

    from tests.conftest import make_situation, FakeClock
"""
import os

import pytest

from poker_ai.ai_manager import AIManager
from poker_ai.config import AITunables, ENV_PREFIX
from poker_ai.game_state import GameSituation, PlayerState, Street
from poker_ai.personalities import PersonalityRegistry


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TickingClock(FakeClock):
    """Moves forward a fixed step on every read; used to force timeouts."""

    def __init__(self, step: float, start: float = 1000.0):
        super().__init__(start)
        self.step = step

    def __call__(self) -> float:
        current = self.now
        self.now += self.step
        return current


def make_situation(hero_cards=('Ah', 'Kh'), board=(), street=Street.PREFLOP,
                   pot=30, current_bet=20, hero_bet=0, hero_stack=1000,
                   villain_stack=1000, villain_bet=20, min_raise=20):
    """Heads-up table: the hero ('ai') is on the button facing the villain."""
    hero = PlayerState(id='ai', name='Diana', stack=hero_stack, position='BTN',
                       cards=tuple(hero_cards), current_bet=hero_bet)
    villain = PlayerState(id='human', name='Jeff', stack=villain_stack, position='BB',
                          current_bet=villain_bet)
    return GameSituation(
        players=(hero, villain),
        dealer_index=0,
        small_blind=10,
        big_blind=20,
        pot=pot,
        street=street,
        community_cards=tuple(board),
        current_bet=current_bet,
        min_raise=min_raise,
    )


@pytest.fixture(autouse=True)
def _isolate_tunable_env(monkeypatch):
    """Keep POKER_AI_* variables from the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tunables():
    return AITunables()


@pytest.fixture
def registry():
    return PersonalityRegistry.from_catalog()


@pytest.fixture
def manager(tunables, clock):
    return AIManager(tunables=tunables, clock=clock)


@pytest.fixture
def situation():
    return make_situation()
