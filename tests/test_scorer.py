"""Tests for the weighted scorer: dual aggregation views, renormalization, guards."""

import random

import pytest

from engines.errors import ConfigurationError, NumericDegeneracyError
from engines.normalizer import normalize
from engines.scorer import benchmark_comparison, rating, score

# ─── Helpers ──────────────────────────────────────────────────────────────────


def _norm(name, value, weight, dimension, component=None):
    return {'name': name, 'normalizedValue': float(value), 'weight': weight,
            'dimension': dimension, 'component': component, 'dataQuality': 100}


def _mixed_set():
    return [
        _norm('a', 92, 0.6, 'infrastructure', 'absorptive'),
        _norm('b', 20, 0.4, 'infrastructure', 'adaptive'),
        _norm('c', 55, 0.5, 'social', 'adaptive'),
        _norm('d', 71, 0.5, 'social', 'transformative'),
        _norm('e', 33, 1.0, 'economic', 'absorptive'),
    ]


WEIGHT_CONFIGS = [
    {'basis': 'dimension', 'dimensions': {'infrastructure': 0.5, 'social': 0.3, 'economic': 0.2}},
    {'basis': 'component', 'components': {'absorptive': 0.35, 'adaptive': 0.40, 'transformative': 0.25}},
    # 'finance' has no indicators at all
    {'basis': 'component', 'components': {'absorptive': 0.3, 'adaptive': 0.3, 'transformative': 0.2,
                                          'finance': 0.2}},
    {'basis': 'dimension', 'dimensions': {'infrastructure': 0.4, 'social': 0.1, 'economic': 0.1,
                                          'institutional': 0.4}},
]


# ─── Weight consistency ─────────────────────────────────────────────────────


class TestWeightConsistency:
    @pytest.mark.parametrize('weights', WEIGHT_CONFIGS)
    def test_component_and_dimension_paths_agree(self, weights):
        result = score(_mixed_set(), weights)
        assert abs(result['overallByComponent'] - result['overallByDimension']) < 0.01
        assert 0 <= result['overall'] <= 100

    def test_randomized_sets_agree(self):
        rng = random.Random(7)
        comps, dims = ['c1', 'c2', 'c3', 'c4'], ['d1', 'd2', 'd3']
        for _ in range(25):
            inds = [_norm(f'i{k}', rng.uniform(0, 100), rng.uniform(0, 1), rng.choice(dims), rng.choice(comps))
                    for k in range(rng.randint(1, 12))]
            weights = {'basis': 'component', 'components': {c: 0.25 for c in comps}}
            result = score(inds, weights)
            assert abs(result['overallByComponent'] - result['overallByDimension']) < 0.01

    def test_empty_component_scores_zero(self):
        result = score(_mixed_set(), WEIGHT_CONFIGS[2])
        assert result['componentScores']['finance'] == 0.0
        assert result['componentWeights']['finance'] == 0.0
        assert 'finance' in result['emptyGroups']['components']

    def test_missing_group_weight_is_absorbed(self):
        result = score(_mixed_set(), WEIGHT_CONFIGS[3])
        assert sum(result['dimensionWeights'].values()) == pytest.approx(1.0)
        assert result['dimensionScores']['institutional'] == 0.0

    def test_implied_weights_are_convex(self):
        result = score(_mixed_set(), WEIGHT_CONFIGS[1])
        assert sum(result['componentWeights'].values()) == pytest.approx(1.0)
        assert sum(result['dimensionWeights'].values()) == pytest.approx(1.0)


# ─── Renormalization ────────────────────────────────────────────────────────


class TestRenormalization:
    def test_partial_infrastructure_set(self):
        raw = [
            {'name': 'Grid Reliability', 'rawValue': 92, 'weight': 0.3, 'category': 'infrastructure', 'benchmark': 85},
            {'name': 'Storage Capacity', 'rawValue': 20, 'weight': 0.25, 'category': 'infrastructure', 'benchmark': 15},
        ]
        result = score(normalize(raw), {'dimensions': {'infrastructure': 1.0}})
        expected = (92 * 0.3 + 20 * 0.25) / 0.55
        assert result['dimensionScores']['infrastructure'] == pytest.approx(expected, abs=1e-3)
        assert result['overall'] == pytest.approx(expected, abs=1e-3)
        assert 0 <= result['overall'] <= 100

    def test_shorthand_infers_dimension_basis(self):
        result = score([_norm('a', 50, 1, 'x')], {'dimensions': {'x': 1.0}})
        assert result['basis'] == 'dimension'


# ─── Guards ─────────────────────────────────────────────────────────────────


class TestGuards:
    def test_no_indicators_scores_zero(self):
        result = score([], {'basis': 'component', 'components': {'a': 1.0}})
        assert result['overall'] == 0.0
        assert result['componentScores'] == {'a': 0.0}

    def test_all_zero_weights_is_degenerate(self):
        with pytest.raises(NumericDegeneracyError):
            score([_norm('a', 50, 0.0, 'x', 'c')], {'basis': 'component', 'components': {'c': 1.0}})

    def test_unknown_basis(self):
        with pytest.raises(ConfigurationError):
            score([], {'basis': 'sector'})

    def test_overall_clamped(self):
        result = score([_norm('a', 100, 1, 'x', 'c')], {'basis': 'component', 'components': {'c': 1.0}})
        assert result['overall'] <= 100


class TestRatingAndBenchmarks:
    @pytest.mark.parametrize('value,expected', [(85, 'green'), (70, 'green'), (55, 'amber'), (12, 'red')])
    def test_rating(self, value, expected):
        assert rating(value) == expected

    def test_benchmark_comparison(self):
        out = benchmark_comparison(70)
        assert out['global']['difference'] == 5
        assert out['best_practice']['position'] == 'below'
