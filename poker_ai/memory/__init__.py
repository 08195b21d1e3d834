"""
Per-hand memory for AI players.

- Action ledger (sequenced audit trail of the current hand)
- Opponent modeling (bounded tendency profiles)
"""

from .action_ledger import ActionRecord, ActionLedger, describe_action
from .opponent_model import (
    OpponentModel,
    ObservedAction,
    create_opponent_model,
    update_opponent_model,
)

__all__ = [
    # Ledger
    'ActionRecord',
    'ActionLedger',
    'describe_action',

    # Opponent modeling
    'OpponentModel',
    'ObservedAction',
    'create_opponent_model',
    'update_opponent_model',
]
