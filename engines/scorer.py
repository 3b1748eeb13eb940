"""
Sustainability Decision-Support — Weighted Scorer
Normalized indicators -> component scores, dimension scores, overall.

Two aggregation views over the same indicator values:
  component  : e.g. mitigation / adaptation / absorptive
  dimension  : cross-cutting, e.g. infrastructure / social / economic

One view is the weighting BASIS (its group weights come from config). Every
indicator gets an effective weight  e = W[group] * w / sum(w present in group),
so weights are re-normalized over whatever indicators were actually supplied.
Both views score groups with e and weight groups by their share of sum(e),
which makes each overall an exact convex combination of the same values.
"""
from collections import defaultdict

from engines.errors import ConfigurationError, NumericDegeneracyError

GROUP_KEYS = {'component': 'components', 'dimension': 'dimensions'}
UNASSIGNED = 'unassigned'

BENCHMARKS = {'global': 65, 'regional': 68, 'sector': 62, 'best_practice': 85}


def clamp(v, lo=0.0, hi=100.0):
    return max(lo, min(hi, v))


def resolve_basis(weights):
    basis = weights.get('basis')
    if basis is None:
        basis = 'dimension' if weights.get('dimensions') and not weights.get('components') else 'component'
    if basis not in GROUP_KEYS:
        raise ConfigurationError(f"Unknown weight basis '{basis}'")
    return basis


def _group_of(ind, view):
    return ind.get(view) or UNASSIGNED


def effective_weights(indicators, weights):
    basis = resolve_basis(weights)
    group_weights = weights.get(GROUP_KEYS[basis]) or {}
    totals = defaultdict(float)
    for ind in indicators:
        totals[_group_of(ind, basis)] += ind.get('weight', 1.0)
    eff = []
    for ind in indicators:
        g = _group_of(ind, basis)
        tot = totals[g]
        eff.append(group_weights.get(g, 0.0) * ind.get('weight', 1.0) / tot if tot > 0 else 0.0)
    return basis, eff


def _aggregate(indicators, eff, view, declared):
    num, den, plain = defaultdict(float), defaultdict(float), defaultdict(list)
    for ind, e in zip(indicators, eff):
        g = _group_of(ind, view)
        num[g] += e * ind['normalizedValue']
        den[g] += e
        plain[g].append(ind['normalizedValue'])

    total = sum(eff)
    scores, implied = {}, {}
    for g in plain:
        if den[g] > 0:
            scores[g] = clamp(num[g] / den[g])
        else:
            # group carries no weight in the basis view; still report its level
            scores[g] = clamp(sum(plain[g]) / len(plain[g]))
        implied[g] = den[g] / total if total > 0 else 0.0

    empty = [g for g in declared if g not in plain]
    for g in empty:
        scores[g] = 0.0
        implied[g] = 0.0

    overall = clamp(sum(implied[g] * scores[g] for g in scores))
    return scores, implied, overall, empty


def score(indicators, weights):
    """Aggregate normalized indicators into a CompositeScore dict.

    weights: {'basis': 'component'|'dimension', 'components': {...}, 'dimensions': {...}}.
    Groups named in either map but without indicators score 0.
    """
    indicators = list(indicators)
    basis, eff = effective_weights(indicators, weights)
    if indicators and sum(eff) <= 0:
        raise NumericDegeneracyError(
            f"All effective weights are zero for {len(indicators)} indicators (basis={basis})")

    comp_scores, comp_w, by_comp, comp_empty = _aggregate(
        indicators, eff, 'component', list(weights.get('components') or {}))
    dim_scores, dim_w, by_dim, dim_empty = _aggregate(
        indicators, eff, 'dimension', list(weights.get('dimensions') or {}))

    overall = by_comp if basis == 'component' else by_dim
    return {
        'componentScores': {k: round(v, 4) for k, v in comp_scores.items()},
        'dimensionScores': {k: round(v, 4) for k, v in dim_scores.items()},
        'componentWeights': {k: round(v, 6) for k, v in comp_w.items()},
        'dimensionWeights': {k: round(v, 6) for k, v in dim_w.items()},
        'overall': round(overall, 4),
        'overallByComponent': round(by_comp, 4),
        'overallByDimension': round(by_dim, 4),
        'basis': basis,
        'emptyGroups': {'components': comp_empty, 'dimensions': dim_empty},
        'indicatorCount': len(indicators),
    }


def rating(value):
    return 'green' if value >= 70 else 'amber' if value >= 40 else 'red'


def benchmark_comparison(overall, benchmarks=None):
    benchmarks = benchmarks or BENCHMARKS
    return {
        name: {'value': b, 'difference': round(overall - b, 2),
               'position': 'above' if overall >= b else 'below'}
        for name, b in benchmarks.items()
    }
