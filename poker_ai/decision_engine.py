"""
Decision Engine

Turns a DecisionContext into a Decision:

    fingerprint -> cache hit?  -> return cached decision
                -> cache miss  -> analyse situation
                               -> baseline distribution over legal actions
                               -> personality bias + opponent exploitation
                               -> clip to the GTO-deviation ceiling
                               -> pick, size, score confidence
                               -> publish to cache

Everything is deterministic for identical inputs. The latency budget is
checked between stages and once more before publishing, so an overrunning
computation raises DecisionTimeoutError and never writes the cache.
"""

import hashlib
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from .ai_resilience import (
    AIFallbackStrategy,
    DecisionTimeoutError,
    FallbackActionSelector,
    InvalidReferenceError,
    LatencyBudget,
)
from .board_texture import BoardTexture, analyze_board
from .config import AITunables
from .decision_cache import DecisionCache
from .game_state import ActionCategory, ActionType, GameSituation, PlayerState, Street
from .hand_strength import HandStrength, evaluate_hand, range_digest, range_strength
from .memory.action_ledger import ActionRecord
from .memory.opponent_model import OpponentModel, create_opponent_model
from .archetypes import (
    AF_AGGRESSIVE,
    FOLD_TO_CBET_HIGH,
    THREE_BET_HIGH,
    VPIP_LOOSE,
    VPIP_VERY_TIGHT,
)
from .personalities import AIPersonality, PersonalityRegistry

logger = logging.getLogger(__name__)

# Bumped whenever the fingerprint layout or the strategy changes
FINGERPRINT_VERSION = 1

# Equal probabilities resolve toward the more conservative action
TIE_BREAK_ORDER = (
    ActionType.CHECK,
    ActionType.CALL,
    ActionType.FOLD,
    ActionType.BET,
    ActionType.RAISE,
    ActionType.ALL_IN,
)

# Amounts at or above this share of the stack are pushed all-in
ALL_IN_STACK_FRACTION = 0.95

STRONG_HAND = 0.8
WEAK_HAND = 0.3
BLUFF_HAND = 0.3
LOW_SPR = 3.0
COMMIT_SPR = 2.0
WET_BOARD = 0.5

# Recent aggression enters the strategy at this precision
AGGRESSION_BUCKET_DIGITS = 1


@dataclass(frozen=True)
class RecentAction:
    """Compact view of one ledger event for the decision context."""
    player_id: str
    action: ActionType
    street: Street
    amount: Optional[int] = None

    @classmethod
    def from_record(cls, record: ActionRecord) -> 'RecentAction':
        return cls(
            player_id=record.player_id,
            action=record.action,
            street=record.street,
            amount=record.amount,
        )


def recent_actions_from_records(records: List[ActionRecord]) -> Tuple[RecentAction, ...]:
    """Keep only voluntary player actions; markers and blinds say nothing about intent."""
    return tuple(
        RecentAction.from_record(r) for r in records
        if r.category == ActionCategory.PLAYER_ACTION
    )


@dataclass(frozen=True)
class DecisionContext:
    situation: GameSituation
    hero_id: str
    personality: AIPersonality
    opponent_model: Optional[OpponentModel] = None
    hand_range: Mapping[str, float] = field(default_factory=dict)
    recent_history: Tuple[RecentAction, ...] = field(default_factory=tuple)

    @property
    def hero(self) -> Optional[PlayerState]:
        return self.situation.get_player(self.hero_id)


@dataclass(frozen=True)
class AlternativeAction:
    action: ActionType
    probability: float
    amount: Optional[int] = None


@dataclass(frozen=True)
class Decision:
    """Engine output. ``amount`` is the chips the hero commits with this action."""
    action: ActionType
    amount: Optional[int]
    confidence: float
    reasoning: str
    gto_deviation: float
    baseline_action: ActionType
    alternative_actions: Tuple[AlternativeAction, ...] = field(default_factory=tuple)
    is_fallback: bool = False
    fingerprint: str = ""


@dataclass(frozen=True)
class SituationAnalysis:
    hand: HandStrength
    strength: float
    draw_potential: float
    position_strength: float      # 0 = first to act, 1 = on the button
    amount_to_call: int
    pot_odds: float               # price of calling as a share of the final pot
    spr: float
    board: BoardTexture
    recent_aggression: float      # share of recent opponent actions that were aggressive

    @property
    def facing_bet(self) -> bool:
        return self.amount_to_call > 0


# ============================================================================
# Fingerprint
# ============================================================================

def recent_aggression(history: Tuple[RecentAction, ...], hero_id: str) -> float:
    others = [a for a in history if a.player_id != hero_id and a.action.is_player_action]
    if not others:
        return 0.0
    return sum(1 for a in others if a.action.is_aggressive) / len(others)


def aggression_bucket(history: Tuple[RecentAction, ...], hero_id: str) -> float:
    """Recent aggression rounded to a tenth; the only form the engine reads."""
    return round(recent_aggression(history, hero_id), AGGRESSION_BUCKET_DIGITS)


def keyed_opponent(context: DecisionContext) -> OpponentModel:
    """The opponent view both the fingerprint and the strategy are built from."""
    return (context.opponent_model or create_opponent_model('unknown')).rounded()


def compute_fingerprint(context: DecisionContext) -> str:
    """Versioned cache key for an equivalence class of decision contexts.

    Covers every input the strategy reads, in the exact form it reads it.
    """
    situation = context.situation
    hero = context.hero
    opponent = keyed_opponent(context)

    payload = {
        'v': FINGERPRINT_VERSION,
        'street': situation.street.value,
        'hero': context.hero_id,
        'cards': list(hero.cards) if hero else [],
        'board': list(situation.community_cards),
        'pot': situation.pot,
        'to_call': situation.amount_to_call(context.hero_id),
        'current_bet': situation.current_bet,
        'min_raise': situation.effective_min_raise,
        'big_blind': situation.big_blind,
        'stacks': [(p.id, p.stack, p.current_bet, p.folded) for p in situation.players],
        'position': situation.player_index(context.hero_id) - situation.dealer_index,
        'range': range_digest(context.hand_range),
        'aggression': aggression_bucket(context.recent_history, context.hero_id),
        'personality': [context.personality.id, context.personality.parameter_digest()],
        'opponent': list(opponent.snapshot()),
        'opponent_style': opponent.play_style_label(),
    }
    encoded = json.dumps(payload, sort_keys=True, separators=(',', ':'))
    return hashlib.sha256(encoded.encode('utf-8')).hexdigest()


# ============================================================================
# Distribution helpers
# ============================================================================

def normalize(weights: Dict[ActionType, float]) -> Dict[ActionType, float]:
    cleaned = {a: max(0.0, w) for a, w in weights.items()}
    total = sum(cleaned.values())
    if total <= 0:
        return {a: 1.0 / len(cleaned) for a in cleaned}
    return {a: w / total for a, w in cleaned.items()}


def total_variation(p: Dict[ActionType, float], q: Dict[ActionType, float]) -> float:
    actions = set(p) | set(q)
    return 0.5 * sum(abs(p.get(a, 0.0) - q.get(a, 0.0)) for a in actions)


def clip_deviation(adjusted: Dict[ActionType, float], baseline: Dict[ActionType, float],
                   ceiling: float) -> Dict[ActionType, float]:
    """Pull ``adjusted`` back toward ``baseline`` until their distance is within ``ceiling``."""
    distance = total_variation(adjusted, baseline)
    if distance <= ceiling or distance == 0:
        return adjusted
    keep = ceiling / distance
    return {a: baseline[a] + (adjusted[a] - baseline[a]) * keep for a in baseline}


def pick_action(distribution: Dict[ActionType, float]) -> ActionType:
    return max(
        distribution,
        key=lambda a: (round(distribution[a], 9), -TIE_BREAK_ORDER.index(a)),
    )


def signed_deviation(action: ActionType, final: Dict[ActionType, float],
                     baseline: Dict[ActionType, float]) -> float:
    """Distance from the baseline, positive when ``action`` gained probability."""
    sign = 1.0 if final.get(action, 0.0) >= baseline.get(action, 0.0) else -1.0
    return max(-1.0, min(1.0, sign * total_variation(final, baseline)))


def ranked_alternatives(final: Dict[ActionType, float], amounts: Dict[ActionType, Optional[int]],
                        chosen: ActionType, limit: int = 2) -> Tuple[AlternativeAction, ...]:
    ranked = sorted(
        (a for a in final if a != chosen),
        key=lambda a: (-round(final[a], 9), TIE_BREAK_ORDER.index(a)),
    )
    return tuple(AlternativeAction(a, round(final[a], 4), amounts.get(a)) for a in ranked[:limit])


def _scale(multiplier: float, scale: float) -> float:
    """Strengthen or soften a multiplier around 1.0."""
    return 1.0 + (multiplier - 1.0) * scale


class DecisionEngine:
    """Deterministic, cached, latency-bounded decision maker.

    The registry is consulted only to confirm the personality id is known;
    the parameters used are those carried by the context, so a learning
    variant is honoured under its baseline id.
    """

    def __init__(self, registry: PersonalityRegistry, tunables: Optional[AITunables] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.registry = registry
        self.tunables = tunables or AITunables()
        self._clock = clock
        self.cache = DecisionCache(
            ttl_seconds=self.tunables.cache_ttl_seconds,
            max_size=self.tunables.max_cache_size,
            clock=clock,
        )
        self.decisions_computed = 0
        self.fallbacks = 0
        self.timeouts = 0
        self.total_compute_ms = 0.0

    def decide(self, context: DecisionContext) -> Decision:
        """Decision for the hero, served from cache when possible.

        Raises:
            UnknownPersonalityError: The personality id is not registered
            InvalidReferenceError: The hero is not seated in the situation
            DecisionTimeoutError: The latency budget ran out; nothing was cached
        """
        self.registry.require(context.personality.id)
        if context.hero is None:
            raise InvalidReferenceError(f"Hero {context.hero_id} is not seated at this table")

        budget = LatencyBudget(self.tunables.max_decision_time_ms, clock=self._clock)
        fingerprint = compute_fingerprint(context)

        cached = self.cache.get(fingerprint)
        if cached is not None:
            logger.debug(f"Cache hit for {context.hero_id} ({fingerprint[:12]})")
            return cached

        try:
            decision = self._compute(context, fingerprint, budget)
            budget.check("publish")
        except DecisionTimeoutError as e:
            self.timeouts += 1
            logger.warning(f"Decision for {context.hero_id} abandoned: {e}")
            raise

        self.cache.put(fingerprint, decision)
        self.decisions_computed += 1
        self.total_compute_ms += budget.elapsed_ms
        if decision.is_fallback:
            self.fallbacks += 1
        logger.debug(
            f"Decision for {context.hero_id}: {decision.action.value} {decision.amount or ''} "
            f"(confidence {decision.confidence:.2f}) in {budget.elapsed_ms:.1f}ms"
        )
        return decision

    def clear_cache(self) -> None:
        self.cache.clear()

    def stats(self) -> Dict[str, float]:
        avg = self.total_compute_ms / self.decisions_computed if self.decisions_computed else 0.0
        return {
            'decisions_computed': self.decisions_computed,
            'fallbacks': self.fallbacks,
            'timeouts': self.timeouts,
            'avg_compute_ms': avg,
            **{f'cache_{k}': v for k, v in self.cache.stats().items()},
        }

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _compute(self, context: DecisionContext, fingerprint: str,
                 budget: LatencyBudget) -> Decision:
        analysis = self.analyse(context)
        budget.check("analysis")

        legal = self.legal_actions(context, analysis)
        baseline = self.baseline_distribution(context, analysis, legal)
        budget.check("baseline")

        opponent = keyed_opponent(context)
        personality = context.personality
        biased = self._apply_personality(baseline, personality, analysis)
        exploited = self._apply_opponent(biased, opponent, analysis)
        ceiling = (self.tunables.learning_gto_deviation if personality.adaptive
                   else self.tunables.max_gto_deviation)
        final = clip_deviation(exploited, baseline, ceiling)
        budget.check("adjustment")

        picked = pick_action(final)
        baseline_action = pick_action(baseline)
        amounts = {a: self._size(a, context, analysis, opponent) for a in final}
        confidence = self._confidence(final, picked, analysis)

        if confidence < self.tunables.min_confidence:
            fallback = FallbackActionSelector.select_action(
                analysis.amount_to_call, context.hero.stack, context.situation.pot,
                AIFallbackStrategy.CONSERVATIVE,
            )
            logger.debug(
                f"Confidence {confidence:.2f} below {self.tunables.min_confidence}, "
                f"falling back to {fallback.action.value}"
            )
            return Decision(
                action=fallback.action,
                amount=fallback.amount,
                confidence=confidence,
                reasoning=f"Low confidence ({confidence:.2f}): {fallback.reason}",
                gto_deviation=signed_deviation(fallback.action, final, baseline),
                baseline_action=baseline_action,
                alternative_actions=ranked_alternatives(final, amounts, fallback.action),
                is_fallback=True,
                fingerprint=fingerprint,
            )

        action, amount = self._resolve_all_in(picked, amounts[picked], context)
        confident = confidence >= self.tunables.high_confidence
        return Decision(
            action=action,
            amount=amount,
            confidence=confidence,
            reasoning=self._reasoning(
                action, analysis, personality, opponent.play_style_label(), confident
            ),
            gto_deviation=signed_deviation(picked, final, baseline),
            baseline_action=baseline_action,
            alternative_actions=ranked_alternatives(final, amounts, picked),
            fingerprint=fingerprint,
        )

    def analyse(self, context: DecisionContext) -> SituationAnalysis:
        situation = context.situation
        hero = context.hero

        if len(hero.cards) >= 2:
            hand = evaluate_hand(hero.cards, situation.community_cards)
        else:
            hand_range = range_digest(context.hand_range)
            hand = HandStrength(strength=range_strength(hand_range), category='range')

        num_players = len(situation.players)
        hero_index = situation.player_index(context.hero_id)
        if num_players > 1:
            seats_after_dealer = (hero_index - situation.dealer_index - 1) % num_players
            position_strength = seats_after_dealer / (num_players - 1)
        else:
            position_strength = 1.0

        to_call = min(situation.amount_to_call(context.hero_id), hero.stack)
        pot_odds = to_call / (situation.pot + to_call) if to_call > 0 else 0.0
        spr = hero.stack / situation.pot if situation.pot > 0 else float(hero.stack)

        return SituationAnalysis(
            hand=hand,
            strength=hand.strength,
            draw_potential=hand.draw_potential,
            position_strength=position_strength,
            amount_to_call=to_call,
            pot_odds=pot_odds,
            spr=spr,
            board=analyze_board(situation.community_cards),
            recent_aggression=aggression_bucket(context.recent_history, context.hero_id),
        )

    @staticmethod
    def legal_actions(context: DecisionContext, analysis: SituationAnalysis) -> List[ActionType]:
        hero = context.hero
        to_call = context.situation.amount_to_call(context.hero_id)
        aggressive = ActionType.BET if context.situation.current_bet == 0 else ActionType.RAISE

        if hero.stack <= 0:
            return [ActionType.CHECK]
        if to_call <= 0:
            return [ActionType.CHECK, aggressive]
        if hero.stack <= to_call:
            return [ActionType.FOLD, ActionType.ALL_IN]
        return [ActionType.FOLD, ActionType.CALL, ActionType.RAISE]

    @staticmethod
    def baseline_distribution(context: DecisionContext, analysis: SituationAnalysis,
                              legal: List[ActionType]) -> Dict[ActionType, float]:
        """Personality-free strategy from hand strength, price, position and street."""
        strength = analysis.strength
        draw = analysis.draw_potential
        equity = analysis.hand.equity_estimate if len(context.hero.cards) >= 2 else strength
        street = context.situation.street

        fold_w = max(0.0, 1.0 - strength - draw)
        passive_w = strength * 0.6 + draw * 0.4
        aggressive_w = strength * (0.5 + 0.5 * analysis.position_strength)

        if street == Street.PREFLOP:
            aggressive_w *= 0.75
        elif street == Street.RIVER and analysis.facing_bet:
            passive_w *= 0.6

        if analysis.facing_bet:
            # Price check: continuing without the equity to justify it is penalized
            if equity >= analysis.pot_odds:
                passive_w *= 1.2
            else:
                passive_w *= 0.5
                fold_w += analysis.pot_odds - equity
            if strength < 0.5:
                fold_w *= 1.0 + 0.3 * analysis.recent_aggression

        if analysis.board.is_postflop:
            wetness = analysis.board.wetness
            if strength >= 0.6 and wetness > WET_BOARD:
                aggressive_w *= 1.15
            elif strength < 0.6:
                aggressive_w *= 1.0 - 0.2 * wetness

        if analysis.spr < COMMIT_SPR and strength >= 0.5:
            aggressive_w *= 1.2

        weights: Dict[ActionType, float] = {}
        for action in legal:
            if action == ActionType.FOLD:
                weights[action] = fold_w
            elif action == ActionType.CHECK:
                # Folding is never better than a free check
                weights[action] = passive_w + fold_w
            elif action == ActionType.CALL:
                weights[action] = passive_w
            elif action == ActionType.ALL_IN and ActionType.CALL not in legal:
                # All-in here is a call for the rest of the stack
                weights[action] = passive_w + aggressive_w * 0.5
            else:
                weights[action] = aggressive_w
        return normalize(weights)

    @staticmethod
    def _apply_personality(distribution: Dict[ActionType, float], personality: AIPersonality,
                           analysis: SituationAnalysis) -> Dict[ActionType, float]:
        adjusted = dict(distribution)
        aggression = personality.aggression / 100
        postflop = analysis.board.is_postflop
        street_aggression = (personality.postflop_aggression if postflop
                             else personality.preflop_aggression) / 100

        bet_multiplier = (1 + aggression * 0.5) * (1 + street_aggression * 0.3)
        raise_multiplier = (1 + aggression * 0.7) * (1 + street_aggression * 0.4)
        if analysis.strength < BLUFF_HAND:
            bet_multiplier *= 1 + personality.bluff_frequency / 100 * 0.4
        if analysis.spr < LOW_SPR:
            risk = 1 + (personality.risk_tolerance - 50) / 100 * 0.4
            bet_multiplier *= risk
            raise_multiplier *= risk

        for action in adjusted:
            if action == ActionType.BET:
                adjusted[action] *= bet_multiplier
            elif action in (ActionType.RAISE, ActionType.ALL_IN):
                adjusted[action] *= raise_multiplier
            elif action == ActionType.FOLD:
                adjusted[action] *= 1 + (personality.tightness - 50) / 100 * 0.6
            elif action == ActionType.CALL and analysis.board.num_cards >= 5:
                adjusted[action] *= 0.7 + personality.river_call_down_freq / 100 * 0.6

        return normalize(adjusted)

    @staticmethod
    def _apply_opponent(distribution: Dict[ActionType, float], opponent: OpponentModel,
                        analysis: SituationAnalysis) -> Dict[ActionType, float]:
        adjusted = dict(distribution)
        scale = 1.0 + max(-1.0, min(1.0, opponent.recent_adjustment))
        multipliers = {action: 1.0 for action in adjusted}

        def boost(action: ActionType, factor: float):
            if action in multipliers:
                multipliers[action] *= factor

        if opponent.vpip < VPIP_VERY_TIGHT:
            # Tight players give up too often; pressure them
            boost(ActionType.BET, 1.2)
            boost(ActionType.RAISE, 1.1)
        if opponent.vpip > VPIP_LOOSE:
            # Loose players call down; bluff less
            boost(ActionType.FOLD, 1.1)
            boost(ActionType.BET, 0.9)
        if opponent.aggression_factor > AF_AGGRESSIVE:
            if analysis.strength > 0.7:
                boost(ActionType.CALL, 1.3)
            else:
                boost(ActionType.FOLD, 1.2)
        if opponent.fold_to_cbet > FOLD_TO_CBET_HIGH:
            boost(ActionType.BET, 1.3)
        if opponent.three_bet_freq > THREE_BET_HIGH and analysis.strength > 0.6:
            boost(ActionType.RAISE, 1.15)

        for action, multiplier in multipliers.items():
            adjusted[action] *= _scale(multiplier, scale)
        return normalize(adjusted)

    # ------------------------------------------------------------------
    # Sizing, confidence, reasoning
    # ------------------------------------------------------------------

    def _size(self, action: ActionType, context: DecisionContext, analysis: SituationAnalysis,
              opponent: OpponentModel) -> Optional[int]:
        situation = context.situation
        hero = context.hero
        personality = context.personality

        if action == ActionType.ALL_IN:
            return hero.stack
        if action not in (ActionType.BET, ActionType.RAISE):
            return None

        fraction = 0.75
        if analysis.strength > STRONG_HAND:
            fraction = 1.0
        elif analysis.strength < WEAK_HAND:
            fraction = 0.5
        fraction *= 1 + (personality.aggression - 50) / 100 * 0.3
        fraction *= 1 + (personality.variance_preference - 50) / 100 * 0.2
        if opponent.fold_to_cbet > FOLD_TO_CBET_HIGH:
            fraction *= 1.15

        if action == ActionType.BET:
            amount = max(situation.big_blind, round(situation.pot * fraction))
        else:
            pot_after_call = situation.pot + analysis.amount_to_call
            increment = max(situation.effective_min_raise, round(pot_after_call * fraction))
            amount = analysis.amount_to_call + increment
        return min(int(amount), hero.stack)

    @staticmethod
    def _resolve_all_in(action: ActionType, amount: Optional[int],
                        context: DecisionContext) -> Tuple[ActionType, Optional[int]]:
        stack = context.hero.stack
        if amount is not None and action in (ActionType.BET, ActionType.RAISE):
            if amount >= stack * ALL_IN_STACK_FRACTION:
                return ActionType.ALL_IN, stack
        return action, amount

    @staticmethod
    def _confidence(distribution: Dict[ActionType, float], picked: ActionType,
                    analysis: SituationAnalysis) -> float:
        """How clearly the picked action beats the rest.

        Half the picked probability plus half its margin over the runner-up,
        so a near coin-flip between two actions scores about 0.25 while an
        uncontested action scores 1.0.
        """
        top = distribution[picked]
        runner_up = max((p for a, p in distribution.items() if a != picked), default=0.0)
        confidence = (top + (top - runner_up)) / 2
        if analysis.strength > STRONG_HAND or analysis.strength < 0.2:
            confidence *= 1.2
        confidence *= 1 + analysis.position_strength * 0.1
        return max(0.0, min(1.0, confidence))

    @staticmethod
    def _reasoning(action: ActionType, analysis: SituationAnalysis, personality: AIPersonality,
                   opponent_style: str, confident: bool = False) -> str:
        reasons = []
        if analysis.strength > STRONG_HAND:
            reasons.append("strong hand")
        elif analysis.strength < WEAK_HAND:
            reasons.append("weak hand")
        if analysis.draw_potential > 0:
            reasons.append("drawing")
        if analysis.position_strength > 0.7:
            reasons.append("good position")
        elif analysis.position_strength < 0.3:
            reasons.append("out of position")
        if analysis.facing_bet:
            reasons.append(f"pot odds {analysis.pot_odds:.0%}")
        if analysis.board.is_postflop:
            reasons.append(f"{analysis.board.category} board")
        if opponent_style != 'unknown':
            reasons.append(f"vs {opponent_style} opponent")
        verb = "confidently chooses" if confident else "chooses"
        return f"{personality.name} {verb} {action.value}: " + ", ".join(reasons or ["standard play"])
