"""
Game situation types shared by the ledger, opponent model and decision engine.

A GameSituation is an immutable snapshot handed to the AI on its turn. It is
built by the game loop; nothing in this package mutates it.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple


class ActionType(str, Enum):
    """Player actions plus the system markers written to the action ledger."""
    FOLD = "fold"
    CHECK = "check"
    CALL = "call"
    BET = "bet"
    RAISE = "raise"
    ALL_IN = "all_in"

    # System markers (never produced by a player)
    HAND_START = "hand_start"
    STREET_CHANGE = "street_change"
    HAND_END = "hand_end"

    @property
    def is_player_action(self) -> bool:
        return self in PLAYER_ACTIONS

    @property
    def is_aggressive(self) -> bool:
        return self in (ActionType.BET, ActionType.RAISE, ActionType.ALL_IN)

    @property
    def requires_amount(self) -> bool:
        return self in (ActionType.BET, ActionType.RAISE, ActionType.ALL_IN)


PLAYER_ACTIONS = frozenset({
    ActionType.FOLD,
    ActionType.CHECK,
    ActionType.CALL,
    ActionType.BET,
    ActionType.RAISE,
    ActionType.ALL_IN,
})


class Street(str, Enum):
    """Betting rounds."""
    PREFLOP = "preflop"
    FLOP = "flop"
    TURN = "turn"
    RIVER = "river"
    SHOWDOWN = "showdown"

    def __str__(self):
        return STREET_NAMES.get(self, self.value)


STREET_NAMES = {
    Street.PREFLOP: "Pre-Flop",
    Street.FLOP: "Flop",
    Street.TURN: "Turn",
    Street.RIVER: "River",
    Street.SHOWDOWN: "Showdown",
}


class ActionCategory(str, Enum):
    GAME_EVENT = "game_event"
    PLAYER_ACTION = "player_action"
    SYSTEM_ACTION = "system_action"


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


@dataclass(frozen=True)
class PlayerState:
    """A seat at the table as seen at decision time."""
    id: str
    name: str
    stack: int
    position: str = ""
    cards: Tuple[str, ...] = field(default_factory=tuple)  # e.g. ('Ah', 'Kd')
    folded: bool = False
    current_bet: int = 0

    def update(self, **kwargs) -> 'PlayerState':
        return replace(self, **kwargs)


@dataclass(frozen=True)
class GameSituation:
    """Immutable table snapshot used to build a decision context.

    ``current_bet`` is the highest street bet any player has made; the amount
    a player must add to continue is ``current_bet - player.current_bet``.
    """
    players: Tuple[PlayerState, ...]
    dealer_index: int
    small_blind: int
    big_blind: int
    pot: int
    street: Street = Street.PREFLOP
    community_cards: Tuple[str, ...] = field(default_factory=tuple)
    current_bet: int = 0
    min_raise: int = 0
    id: str = ""

    def update(self, **kwargs) -> 'GameSituation':
        return replace(self, **kwargs)

    def get_player(self, player_id: str) -> Optional[PlayerState]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def player_index(self, player_id: str) -> int:
        for idx, player in enumerate(self.players):
            if player.id == player_id:
                return idx
        return -1

    def amount_to_call(self, player_id: str) -> int:
        player = self.get_player(player_id)
        if player is None:
            return 0
        return max(0, self.current_bet - player.current_bet)

    @property
    def effective_min_raise(self) -> int:
        return max(self.min_raise, self.big_blind)
