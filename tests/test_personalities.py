"""Tests for personalities, the registry and learning variants."""

import json

import pytest

from poker_ai.ai_resilience import (
    InvalidPersonalityError,
    InvalidReferenceError,
    PersonalityValidationError,
    UnknownPersonalityError,
)
from poker_ai.game_state import Difficulty
from poker_ai.personalities import (
    BASELINE_PERSONALITY,
    AIPersonality,
    PersonalityRegistry,
    PlayerStats,
    apply_learning_adjustments,
    calculate_personality_match,
    create_custom_personality,
    derive_learning,
    get_personality_strength,
    get_playing_style_description,
    load_personality_catalog,
    validate_personality,
)

PRESET_IDS = ['beginner-bob', 'tight-aggressive-alice', 'loose-aggressive-charlie', 'adaptive-diana']


class TestCatalog:

    def test_bundled_catalog_order(self):
        assert [p.id for p in load_personality_catalog()] == PRESET_IDS

    def test_presets_are_valid(self, registry):
        for personality in registry.list():
            assert validate_personality(personality) == []

    def test_only_diana_is_adaptive(self, registry):
        assert [p.id for p in registry.list() if p.adaptive] == ['adaptive-diana']

    def test_difficulty_tags(self, registry):
        assert registry.get('beginner-bob').difficulty == Difficulty.BEGINNER
        assert registry.get('loose-aggressive-charlie').difficulty == Difficulty.ADVANCED

    def test_missing_catalog_is_empty(self, tmp_path):
        assert load_personality_catalog(tmp_path / 'nope.json') == []

    def test_custom_catalog(self, tmp_path):
        path = tmp_path / 'personalities.json'
        path.write_text(json.dumps({'personalities': {
            'rock': {'name': 'Rock', 'tightness': 95, 'aggression': 10, 'mood': 'grumpy'},
        }}))
        personalities = load_personality_catalog(path)
        assert len(personalities) == 1
        assert personalities[0].id == 'rock'
        assert personalities[0].tightness == 95
        assert personalities[0].bluff_frequency == 30


class TestValidation:

    def test_out_of_range_parameter(self):
        personality = AIPersonality(id='x', name='X', aggression=101)
        violations = validate_personality(personality)
        assert len(violations) == 1
        assert 'aggression' in violations[0]

    def test_negative_and_non_numeric(self):
        personality = AIPersonality(id='x', name='X', tightness=-1, bluff_frequency='high')
        assert len(validate_personality(personality)) == 2

    def test_nan_rejected(self):
        assert validate_personality(AIPersonality(id='x', name='X', risk_tolerance=float('nan')))

    def test_empty_id_rejected(self):
        assert validate_personality(AIPersonality(id='', name='X'))

    def test_bounds_inclusive(self):
        assert validate_personality(AIPersonality(id='x', name='X', aggression=0, tightness=100)) == []


class TestRegistry:

    def test_register_rejects_and_leaves_catalog_unchanged(self, registry):
        before = registry.list()
        bad = AIPersonality(id='wild', name='Wild', aggression=150)

        with pytest.raises(PersonalityValidationError) as exc_info:
            registry.register(bad)

        assert isinstance(exc_info.value, InvalidPersonalityError)
        assert exc_info.value.personality_id == 'wild'
        assert registry.list() == before
        assert 'wild' not in registry

    def test_invalid_overwrite_keeps_original(self, registry):
        original = registry.get('tight-aggressive-alice')
        with pytest.raises(PersonalityValidationError):
            registry.register(original.update(tightness=120))
        assert registry.get('tight-aggressive-alice') == original

    def test_register_overwrites_by_id(self, registry):
        updated = registry.get('beginner-bob').update(aggression=30)
        registry.register(updated)
        assert registry.get('beginner-bob').aggression == 30
        assert len(registry) == 4

    def test_remove(self, registry):
        assert registry.remove('beginner-bob') is True
        assert registry.remove('beginner-bob') is False
        assert registry.get('beginner-bob') is None

    def test_require_unknown(self, registry):
        with pytest.raises(UnknownPersonalityError) as exc_info:
            registry.require('nobody')
        assert isinstance(exc_info.value, InvalidReferenceError)


class TestRecommend:

    def test_difficulty_tiers(self, registry):
        assert registry.recommend(difficulty=Difficulty.BEGINNER).id == 'beginner-bob'
        assert registry.recommend(difficulty='intermediate').id == 'tight-aggressive-alice'
        assert registry.recommend(difficulty=Difficulty.ADVANCED).id == 'loose-aggressive-charlie'

    def test_difficulty_is_deterministic(self, registry):
        picks = {registry.recommend(difficulty='advanced').id for _ in range(20)}
        assert picks == {'loose-aggressive-charlie'}

    def test_unknown_difficulty(self, registry):
        with pytest.raises(InvalidReferenceError):
            registry.recommend(difficulty='expert')

    def test_empty_registry_returns_baseline(self):
        registry = PersonalityRegistry()
        assert registry.recommend(PlayerStats(vpip=30, pfr=20, agg_factor=2.0)) == BASELINE_PERSONALITY
        assert registry.recommend() == BASELINE_PERSONALITY

    def test_best_match_wins(self, registry):
        # Charlie plays like VPIP 65 / PFR 80 / AF 3.4
        stats = PlayerStats(vpip=65, pfr=80, agg_factor=3.4)
        assert registry.recommend(stats).id == 'loose-aggressive-charlie'

    def test_first_registered_wins_ties(self):
        registry = PersonalityRegistry()
        registry.register(AIPersonality(id='first', name='First'))
        registry.register(AIPersonality(id='second', name='Second'))
        assert registry.recommend(PlayerStats(vpip=50, pfr=50, agg_factor=2.0)).id == 'first'

    def test_all_zero_scores_return_baseline(self):
        registry = PersonalityRegistry()
        registry.register(AIPersonality(id='nit', name='Nit', tightness=100, preflop_aggression=0, aggression=0))
        stats = PlayerStats(vpip=100, pfr=100, agg_factor=5.0)
        assert registry.recommend(stats) == BASELINE_PERSONALITY


class TestScoring:

    def test_match_score(self, registry):
        alice = registry.get('tight-aggressive-alice')
        score = calculate_personality_match(PlayerStats(vpip=30, pfr=70, agg_factor=3.0), alice)
        assert score == pytest.approx(100 - 10 / 3)

    def test_perfect_match(self, registry):
        charlie = registry.get('loose-aggressive-charlie')
        assert calculate_personality_match(PlayerStats(65, 80, 3.4), charlie) == pytest.approx(100)

    def test_strength(self, registry):
        assert get_personality_strength(registry.get('tight-aggressive-alice')) == 100
        assert get_personality_strength(registry.get('beginner-bob')) == pytest.approx(77.333, abs=1e-3)

    def test_style_descriptions(self, registry):
        assert get_playing_style_description(registry.get('tight-aggressive-alice')) == \
            'Tight-Aggressive (TAG), bluffs selectively'
        assert registry.get('loose-aggressive-charlie').playing_style_description() == \
            'Loose-Aggressive (LAG), bluffs often'
        assert registry.get('beginner-bob').playing_style_description() == 'Tight-Passive, rarely bluffs'
        assert registry.get('adaptive-diana').playing_style_description() == 'Balanced, bluffs selectively'

    def test_custom_personality_defaults(self):
        custom = create_custom_personality('custom', 'Custom', 'test', aggression=80)
        assert custom.aggression == 80
        assert custom.tightness == 50
        assert custom.bluff_frequency == 30
        assert custom.adaptability == 40
        assert custom.adaptive is False

    def test_custom_personality_rejects_bad_values(self):
        with pytest.raises(PersonalityValidationError):
            create_custom_personality('custom', 'Custom', aggression=200)


class TestLearning:

    def test_derive_requires_adaptive(self, registry):
        with pytest.raises(InvalidPersonalityError):
            derive_learning(registry.get('tight-aggressive-alice'))

    def test_derive_keeps_baseline(self, registry):
        diana = registry.get('adaptive-diana')
        learning = derive_learning(diana)
        assert learning.baseline is diana
        assert learning.personality == diana
        assert learning.adjustments == ()
        assert learning.id == 'adaptive-diana'

    def test_tight_and_aggressive_opponent(self, registry):
        diana = registry.get('adaptive-diana')
        learning = derive_learning(diana)

        adjusted = apply_learning_adjustments(learning, PlayerStats(vpip=15, pfr=10, agg_factor=3.5))

        # learning rate = 95 / 100 * 0.1
        assert adjusted.personality.aggression == pytest.approx(55 + 0.095 * 20)
        assert adjusted.personality.river_call_down_freq == pytest.approx(45 - 0.095 * 25)
        assert [a.parameter for a in adjusted.adjustments] == ['aggression', 'river_call_down_freq']
        assert adjusted.adjustments[0].old_value == 55
        assert adjusted.baseline == diana
        assert learning.personality == diana

    def test_loose_opponent(self, registry):
        learning = derive_learning(registry.get('adaptive-diana'))
        adjusted = apply_learning_adjustments(learning, PlayerStats(vpip=50, pfr=10, agg_factor=1.0))
        assert adjusted.personality.aggression == pytest.approx(55 - 0.095 * 15)
        assert len(adjusted.adjustments) == 1

    def test_log_is_append_only(self, registry):
        learning = derive_learning(registry.get('adaptive-diana'))
        stats = PlayerStats(vpip=50, pfr=10, agg_factor=1.0)
        once = apply_learning_adjustments(learning, stats)
        twice = apply_learning_adjustments(once, stats)
        assert twice.adjustments[:1] == once.adjustments
        assert len(twice.adjustments) == 2

    def test_adjustments_clamped(self):
        maxed = create_custom_personality('max', 'Max', aggression=100, adaptability=100, adaptive=True)
        learning = derive_learning(maxed)
        for _ in range(10):
            learning = apply_learning_adjustments(learning, PlayerStats(vpip=5, pfr=5, agg_factor=1.0))
        assert learning.personality.aggression == 100

    def test_low_adaptability_unchanged(self):
        stubborn = create_custom_personality('stubborn', 'Stubborn', adaptability=30, adaptive=True)
        learning = derive_learning(stubborn)
        assert apply_learning_adjustments(learning, PlayerStats(vpip=5, pfr=5, agg_factor=4.0)) is learning

    def test_digest_changes_with_adjustments(self, registry):
        learning = derive_learning(registry.get('adaptive-diana'))
        adjusted = apply_learning_adjustments(learning, PlayerStats(vpip=10, pfr=5, agg_factor=1.0))
        assert adjusted.personality.parameter_digest() != learning.personality.parameter_digest()
