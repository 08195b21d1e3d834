"""
Action Ledger.

Ordered, bounded audit trail of every game, player and system event within a
single hand. Records are immutable and sequenced; the ledger is cleared once
per new hand.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from ..game_state import ActionCategory, ActionType, PlayerState, Street

logger = logging.getLogger(__name__)

DEFAULT_LEDGER_CAPACITY = 100
DEFAULT_RECENT_COUNT = 8

SYSTEM_ACTOR_ID = 'system'
SYSTEM_ACTOR_NAME = 'System'


@dataclass(frozen=True)
class ActionRecord:
    """Single event within a hand (immutable)."""
    player_id: str
    player_name: str
    position: str
    action: ActionType
    street: Street
    pot_size_before: int
    pot_size_after: int
    stack_before: int
    stack_after: int
    category: ActionCategory
    sequence_id: int
    amount: Optional[int] = None
    description: str = ""
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def is_system(self) -> bool:
        return self.player_id == SYSTEM_ACTOR_ID

    @property
    def pot_delta(self) -> int:
        return self.pot_size_after - self.pot_size_before

    def to_dict(self) -> Dict[str, Any]:
        return {
            'player_id': self.player_id,
            'player_name': self.player_name,
            'position': self.position,
            'action': self.action.value,
            'amount': self.amount,
            'street': self.street.value,
            'pot_size_before': self.pot_size_before,
            'pot_size_after': self.pot_size_after,
            'stack_before': self.stack_before,
            'stack_after': self.stack_after,
            'category': self.category.value,
            'description': self.description,
            'timestamp': self.timestamp.isoformat(),
            'sequence_id': self.sequence_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ActionRecord':
        return cls(
            player_id=data['player_id'],
            player_name=data['player_name'],
            position=data.get('position', ''),
            action=ActionType(data['action']),
            amount=data.get('amount'),
            street=Street(data['street']),
            pot_size_before=data['pot_size_before'],
            pot_size_after=data['pot_size_after'],
            stack_before=data['stack_before'],
            stack_after=data['stack_after'],
            category=ActionCategory(data['category']),
            description=data.get('description', ''),
            timestamp=datetime.fromisoformat(data['timestamp']) if isinstance(data['timestamp'], str) else data['timestamp'],
            sequence_id=data['sequence_id'],
        )


def describe_action(player_name: str, action: ActionType, amount: int) -> str:
    """Human-readable text for a player action."""
    if action == ActionType.FOLD:
        return f"{player_name} folds"
    if action == ActionType.CHECK:
        return f"{player_name} checks"
    if action == ActionType.CALL:
        return f"{player_name} calls ${amount}"
    if action == ActionType.BET:
        return f"{player_name} bets ${amount}"
    if action == ActionType.RAISE:
        return f"{player_name} raises to ${amount}"
    if action == ActionType.ALL_IN:
        return f"{player_name} goes all-in for ${amount}"
    return f"{player_name} {action.value}"


class ActionLedger:
    """Records every event of the current hand as it plays out.

    Capacity is fixed; once exceeded the oldest records are dropped so the
    newest ``capacity`` entries remain, in order. Sequence numbers keep
    counting across evictions and restart at 0 only on ``clear()``.
    """

    def __init__(self, capacity: int = DEFAULT_LEDGER_CAPACITY):
        self.capacity = capacity
        self._records: List[ActionRecord] = []
        self._sequence_counter = 0

    def __len__(self) -> int:
        return len(self._records)

    @property
    def next_sequence_id(self) -> int:
        return self._sequence_counter

    def clear(self) -> None:
        """Drop all records and restart sequencing for a new hand."""
        self._records = []
        self._sequence_counter = 0

    def record_hand_start(self, players: Sequence[PlayerState], pot: int) -> ActionRecord:
        """Record the start of a new hand."""
        return self._add_record(
            player_id=SYSTEM_ACTOR_ID,
            player_name=SYSTEM_ACTOR_NAME,
            position='',
            action=ActionType.HAND_START,
            street=Street.PREFLOP,
            pot_size_before=pot,
            pot_size_after=pot,
            stack_before=0,
            stack_after=0,
            category=ActionCategory.GAME_EVENT,
            description=f"New hand started with {len(players)} players",
        )

    def record_blind_post(self, player: PlayerState, amount: int, blind_type: str,
                          pot_before: int, pot_after: int) -> ActionRecord:
        """Record a forced blind.

        ``player`` is the seat after posting; its stack no longer includes
        the blind.
        """
        blind_name = 'small' if blind_type == 'small' else 'big'
        return self._add_record(
            player_id=player.id,
            player_name=player.name,
            position=player.position,
            action=ActionType.BET,
            amount=amount,
            street=Street.PREFLOP,
            pot_size_before=pot_before,
            pot_size_after=pot_after,
            stack_before=player.stack + amount,
            stack_after=player.stack,
            category=ActionCategory.GAME_EVENT,
            description=f"{player.name} posts {blind_name} blind ${amount}",
        )

    def record_player_action(self, player: PlayerState, action: ActionType, amount: int,
                             street: Street, pot_before: int, pot_after: int,
                             stack_before: int) -> ActionRecord:
        """Record a voluntary action. ``player.stack`` is the stack after acting."""
        return self._add_record(
            player_id=player.id,
            player_name=player.name,
            position=player.position,
            action=action,
            amount=amount if amount and amount > 0 else None,
            street=street,
            pot_size_before=pot_before,
            pot_size_after=pot_after,
            stack_before=stack_before,
            stack_after=player.stack,
            category=ActionCategory.PLAYER_ACTION,
            description=describe_action(player.name, action, amount),
        )

    def record_street_progression(self, from_street: Street, to_street: Street,
                                  community_card_count: int, pot: int) -> ActionRecord:
        """Record the move from one betting round to the next."""
        return self._add_record(
            player_id=SYSTEM_ACTOR_ID,
            player_name=SYSTEM_ACTOR_NAME,
            position='',
            action=ActionType.STREET_CHANGE,
            street=to_street,
            pot_size_before=pot,
            pot_size_after=pot,
            stack_before=0,
            stack_after=0,
            category=ActionCategory.SYSTEM_ACTION,
            description=f"{from_street} -> {to_street}, {community_card_count} community cards",
        )

    def record_hand_end(self, winner_id: str, winner_name: str, amount: int,
                        reason: str) -> ActionRecord:
        """Record the end of the hand. ``reason`` is 'showdown' or 'fold'."""
        if reason == 'showdown':
            description = f"{winner_name} wins ${amount} at showdown"
        else:
            description = f"{winner_name} wins ${amount} after everyone else folded"
        return self._add_record(
            player_id=winner_id,
            player_name=winner_name,
            position='',
            action=ActionType.HAND_END,
            amount=amount,
            street=Street.SHOWDOWN,
            pot_size_before=amount,
            pot_size_after=amount,
            stack_before=0,
            stack_after=0,
            category=ActionCategory.GAME_EVENT,
            description=description,
        )

    def get_all(self) -> List[ActionRecord]:
        return list(self._records)

    def get_recent(self, count: int = DEFAULT_RECENT_COUNT) -> List[ActionRecord]:
        if count <= 0:
            return []
        return self._records[-count:]

    def get_by_street(self, street: Street) -> List[ActionRecord]:
        return [record for record in self._records if record.street == street]

    def export(self) -> List[Dict[str, Any]]:
        """All retained records as dicts, one per event, in sequence order."""
        return [record.to_dict() for record in self._records]

    def _add_record(self, **record_fields) -> ActionRecord:
        record = ActionRecord(
            sequence_id=self._sequence_counter,
            timestamp=datetime.now(),
            **record_fields,
        )
        self._sequence_counter += 1
        self._records.append(record)

        if len(self._records) > self.capacity:
            dropped = len(self._records) - self.capacity
            self._records = self._records[-self.capacity:]
            logger.debug(f"Ledger at capacity, evicted {dropped} oldest record(s)")

        return record
