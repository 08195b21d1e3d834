"""
Centralized configuration for the poker AI.

Tunables are supplied once at startup as a static table. Values can be
overridden via:
  1. Explicit overrides passed to load_tunables()
  2. Environment variables POKER_AI_<FIELD> (a .env file is honored)
  3. A JSON file named by POKER_AI_CONFIG_FILE
  4. Hardcoded defaults below
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()

ENV_PREFIX = 'POKER_AI_'
CONFIG_FILE_ENV = 'POKER_AI_CONFIG_FILE'

# Default catalog shipped next to this module
PERSONALITY_CATALOG_PATH = Path(__file__).parent / 'personalities.json'

# Opponent model bounds
RATE_MIN = 0.0
RATE_MAX = 100.0
AGG_FACTOR_MIN = 0.0
AGG_FACTOR_MAX = 5.0

# Personality parameter bounds
PERSONALITY_PARAM_MIN = 0.0
PERSONALITY_PARAM_MAX = 100.0

# Learning only kicks in for personalities at least this adaptable
LEARNING_ADAPTABILITY_THRESHOLD = 50


@dataclass(frozen=True)
class AITunables:
    """Static tunables for the decision engine, cache, ledger and learning."""
    max_decision_time_ms: float = 150.0
    cache_ttl_seconds: float = 30.0
    max_cache_size: int = 1000
    max_gto_deviation: float = 0.5
    learning_gto_deviation: float = 0.3
    min_confidence: float = 0.3
    high_confidence: float = 0.8
    max_learning_rate: float = 0.1
    min_hands_for_learning: int = 50
    ledger_capacity: int = 100
    recent_history_window: int = 8

    def update(self, **kwargs) -> 'AITunables':
        return validate_tunables(replace(self, **kwargs))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def validate_tunables(tunables: AITunables) -> AITunables:
    """Raise ValueError if any tunable is outside its meaningful range."""
    problems = []
    if tunables.max_decision_time_ms <= 0:
        problems.append("max_decision_time_ms must be positive")
    if tunables.cache_ttl_seconds < 0:
        problems.append("cache_ttl_seconds must be >= 0")
    if tunables.max_cache_size < 1:
        problems.append("max_cache_size must be >= 1")
    for name in ('max_gto_deviation', 'learning_gto_deviation', 'min_confidence',
                 'high_confidence', 'max_learning_rate'):
        value = getattr(tunables, name)
        if not 0.0 <= value <= 1.0:
            problems.append(f"{name} must be within [0, 1], got {value}")
    if tunables.min_confidence > tunables.high_confidence:
        problems.append("min_confidence must not exceed high_confidence")
    if tunables.min_hands_for_learning < 0:
        problems.append("min_hands_for_learning must be >= 0")
    if tunables.ledger_capacity < 1:
        problems.append("ledger_capacity must be >= 1")
    if tunables.recent_history_window < 0:
        problems.append("recent_history_window must be >= 0")

    if problems:
        raise ValueError("Invalid AI tunables: " + "; ".join(problems))
    return tunables


def _coerce(name: str, raw: Any) -> Any:
    """Convert a raw config value to the declared type of a tunable."""
    field_type = {f.name: f.type for f in fields(AITunables)}[name]
    target = int if field_type in (int, 'int') else float
    try:
        return target(raw)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Tunable {name} expects {target.__name__}, got {raw!r}") from e


def _load_file_values(config_path: Optional[str]) -> Dict[str, Any]:
    if not config_path:
        return {}
    try:
        with open(config_path, 'r') as f:
            loaded = json.load(f)
        logger.debug(f"Loaded AI tunables from {config_path}")
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Failed to load AI tunables from {config_path}: {e}")
        return {}

    if not isinstance(loaded, dict):
        logger.warning(f"Ignoring AI tunables file {config_path}: expected a JSON object")
        return {}
    return loaded


def load_tunables(overrides: Optional[Dict[str, Any]] = None,
                  config_path: Optional[str] = None) -> AITunables:
    """Build the tunables table.

    Args:
        overrides: Values that win over every other source
        config_path: JSON file to read; defaults to $POKER_AI_CONFIG_FILE

    Raises:
        ValueError: If a value has the wrong type or is out of range,
            or an override names an unknown tunable
    """
    known = {f.name for f in fields(AITunables)}
    values: Dict[str, Any] = {}

    file_values = _load_file_values(config_path or os.environ.get(CONFIG_FILE_ENV))
    for name, raw in file_values.items():
        if name in known:
            values[name] = _coerce(name, raw)
        else:
            logger.warning(f"Ignoring unknown AI tunable in config file: {name}")

    for name in known:
        env_value = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if env_value is not None:
            values[name] = _coerce(name, env_value)

    for name, raw in (overrides or {}).items():
        if name not in known:
            raise ValueError(f"Unknown AI tunable: {name}")
        values[name] = _coerce(name, raw)

    return validate_tunables(AITunables(**values))
