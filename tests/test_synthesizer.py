"""Tests for recommendation synthesis: ranking, capping, headroom bounds."""

import pytest

from engines.synthesizer import PRIORITY_RANK, group_priority, synthesize
from engines.config import DEFAULT_THRESHOLDS

# ─── Helpers ──────────────────────────────────────────────────────────────────


def _composite(components=None, dimensions=None, overall=50, empty_components=()):
    return {'overall': overall, 'componentScores': components or {}, 'dimensionScores': dimensions or {},
            'emptyGroups': {'components': list(empty_components), 'dimensions': []}}


def _stress(name, immediate):
    return {'scenario': name, 'type': name.replace('_', ' ').title(),
            'impact': {'immediateImpact': immediate}, 'recovery': {'cost': 1_000_000}}


def _trajectory(name, start, end, confidence=80):
    return {'scenario': name, 'baseline': start,
            'points': [{'timeOffset': 0, 'value': start, 'confidence': 95},
                       {'timeOffset': 10, 'value': end, 'confidence': confidence}]}


# ─── Group gaps ─────────────────────────────────────────────────────────────


class TestGroupRecommendations:
    @pytest.mark.parametrize('value,expected', [(10, 'critical'), (45, 'high'), (65, 'medium'), (75, None)])
    def test_priority_bands(self, value, expected):
        assert group_priority(value, DEFAULT_THRESHOLDS) == expected

    def test_impact_never_exceeds_headroom(self):
        recs = synthesize(_composite({'absorptive': 66.5, 'adaptive': 5.0}))
        by_target = {r['target']: r for r in recs}
        assert by_target['absorptive']['estimatedImpact'] == pytest.approx(3.5)
        assert by_target['adaptive']['estimatedImpact'] <= DEFAULT_THRESHOLDS['impactCap']
        for r in recs:
            assert r['estimatedImpact'] <= DEFAULT_THRESHOLDS['medium'] - r['score']

    def test_healthy_groups_produce_nothing(self):
        assert synthesize(_composite({'a': 90, 'b': 71})) == []

    def test_unassigned_group_skipped(self):
        assert synthesize(_composite({'unassigned': 0})) == []

    def test_empty_group_asks_for_coverage(self):
        recs = synthesize(_composite({'finance': 0.0}, empty_components=['finance']))
        assert recs[0]['description'] == 'Restore indicator coverage for finance'

    def test_low_data_quality_reduces_feasibility(self):
        comp = _composite({'adaptive': 30})
        good = synthesize(comp, indicators=[{'component': 'adaptive', 'dataQuality': 100}])[0]
        poor = synthesize(comp, indicators=[{'component': 'adaptive', 'dataQuality': 35}])[0]
        assert poor['feasibility'] == pytest.approx(good['feasibility'] / 2)

    def test_catalog_entry_used(self):
        catalog = {'adaptive': {'description': 'Fund adaptation plan', 'cost': 5, 'timeframe': 3}}
        rec = synthesize(_composite({'adaptive': 30}), catalog=catalog)[0]
        assert rec['description'] == 'Fund adaptation plan'
        assert rec['cost'] == 5 and rec['timeframe'] == 3


# ─── Ordering and capping ───────────────────────────────────────────────────


class TestOrdering:
    def test_capped_at_max_and_sorted(self):
        components = {f'c{k:02d}': 5 + k * 3 for k in range(20)}
        recs = synthesize(_composite(components))
        assert len(recs) == DEFAULT_THRESHOLDS['maxRecommendations'] == 15
        keys = [(PRIORITY_RANK[r['priority']], r['estimatedImpact']) for r in recs]
        assert keys == sorted(keys, reverse=True)

    def test_custom_cap(self):
        recs = synthesize(_composite({'a': 10, 'b': 20, 'c': 30}), thresholds={'maxRecommendations': 2})
        assert len(recs) == 2

    def test_ids_are_stable_slugs(self):
        recs = synthesize(_composite({'Grid Storage': 10}), domain='energy_flow')
        assert recs[0]['id'] == 'energy_flow-component-grid-storage'

    def test_deterministic(self):
        comp = _composite({'a': 10, 'b': 50}, {'x': 20})
        assert synthesize(comp) == synthesize(comp)


# ─── Stress, trajectories, distribution ─────────────────────────────────────


class TestOtherSources:
    def test_stress_above_threshold(self):
        recs = synthesize(_composite(overall=50), stress_tests=[_stress('pandemic', 90), _stress('cyber_attack', 50)])
        assert [r['target'] for r in recs] == ['pandemic']
        assert recs[0]['priority'] == 'critical'
        assert recs[0]['feasibility'] == pytest.approx(70.0)

    def test_declining_trajectory_flagged(self):
        recs = synthesize(_composite(), trajectories=[_trajectory('bau', 100, 80), _trajectory('good', 100, 120)])
        assert [r['target'] for r in recs] == ['bau']

    def test_lower_is_better_direction(self):
        trajs = [_trajectory('rising', 100, 130), _trajectory('falling', 100, 60)]
        recs = synthesize(_composite(), trajectories=trajs, desired_direction='lower')
        assert [r['target'] for r in recs] == ['rising']

    def test_low_equity_and_unconverged_search(self):
        dist = {'allocations': {'a': 1}, 'equityScore': 45.0, 'converged': False,
                'timeToImplement': 6, 'expectedResistance': 20}
        recs = synthesize(_composite(), distribution=dist)
        assert {r['target'] for r in recs} == {'equity', 'search'}
        equity = next(r for r in recs if r['target'] == 'equity')
        assert equity['estimatedImpact'] == pytest.approx(15.0)

    def test_bottleneck_upgrade(self):
        dist = {'kind': 'load_flow', 'allocations': {'solar': 1}, 'equityScore': None, 'converged': True,
                'bottlenecks': [{'id': 'solar', 'severity': 'critical', 'utilization': 97.5, 'impact': 80},
                                {'id': 'gas', 'severity': 'medium', 'utilization': 86.0, 'impact': 50}]}
        recs = synthesize(_composite(), distribution=dist)
        assert [r['target'] for r in recs] == ['solar']
        assert recs[0]['priority'] == 'critical'
