"""
Sustainability Decision-Support — Recommendation Synthesizer
Score gaps, stress results, trajectories and allocations -> ranked actions.

Group gaps    one action per component/dimension below the medium threshold;
              estimatedImpact never exceeds the headroom to that threshold.
Stress        mitigation when immediate impact breaches the stress threshold;
              feasibility follows the same resilience discount as the shock.
Ordering      priority (critical > high > medium > low), then impact; capped.
"""
import re

from engines.config import DEFAULT_THRESHOLDS
from engines.simulator import resilience_discount

PRIORITY_RANK = {'critical': 4, 'high': 3, 'medium': 2, 'low': 1}

DEFAULT_ACTION = {'cost': 1_000_000, 'timeframe': 12, 'feasibility': 70}
STRESS_IMPACT_CAP = 40
STRESS_TIMEFRAME = 12
TRAJECTORY_TOLERANCE = 0.05
EQUITY_TARGET = 60
EQUITY_IMPACT_CAP = 20
BOTTLENECK_COST = 2_000_000


def _slug(text):
    return re.sub(r'[^a-z0-9]+', '-', str(text).lower()).strip('-')


def group_priority(score, thresholds):
    if score < thresholds['critical']:
        return 'critical'
    if score < thresholds['high']:
        return 'high'
    if score < thresholds['medium']:
        return 'medium'
    return None


def _mean_quality(indicators, view, name):
    q = [i.get('dataQuality', 100) for i in indicators if i.get(view) == name]
    return sum(q) / len(q) if q else 100.0


def _rec(category, target, priority, description, rationale, impact, cost, timeframe, feasibility, **extra):
    rec = {
        'category': category, 'target': target, 'priority': priority,
        'description': description, 'rationale': rationale,
        'estimatedImpact': round(max(0.0, impact), 2),
        'cost': round(cost, 2), 'timeframe': timeframe,
        'feasibility': round(max(0.0, min(100.0, feasibility)), 1),
    }
    rec.update(extra)
    return rec


def _group_recommendations(composite, indicators, t, catalog):
    recs = []
    empty = composite.get('emptyGroups', {})
    for view, key, empty_key in (('component', 'componentScores', 'components'),
                                 ('dimension', 'dimensionScores', 'dimensions')):
        for name, s in composite.get(key, {}).items():
            if name == 'unassigned':
                continue
            priority = group_priority(s, t)
            if not priority:
                continue
            entry = {**DEFAULT_ACTION, **catalog.get(view, {}), **catalog.get(name, {})}
            cap = entry.get('impactCap', t['impactCap'])
            quality = _mean_quality(indicators, view, name)
            if name in empty.get(empty_key, []):
                description = f"Restore indicator coverage for {name}"
            else:
                description = entry.get('description', f"Strengthen {name} performance")
            recs.append(_rec(
                view, name, priority, description,
                f"{view.title()} '{name}' scores {s:.1f}, below the {t['medium']} target",
                min(cap, t['medium'] - s), entry['cost'], entry['timeframe'],
                entry['feasibility'] * min(1.0, quality / t['dataQuality']),
                score=round(s, 2), dataQuality=round(quality, 1)))
    return recs


def _stress_recommendations(stress_tests, composite, t):
    recs = []
    discount = resilience_discount(composite)
    for st in stress_tests:
        imm = st['impact']['immediateImpact']
        if imm <= t['stressCritical']:
            continue
        recs.append(_rec(
            'stress', st['scenario'], 'critical' if imm > 85 else 'high',
            f"Build resilience against {st['type'].lower()}",
            f"Immediate impact {imm:.1f} exceeds the {t['stressCritical']} stress threshold",
            min(STRESS_IMPACT_CAP, imm * 0.4), st['recovery']['cost'] * 0.3, STRESS_TIMEFRAME,
            100 * (0.4 + 0.6 * discount)))
    return recs


def _trajectory_recommendations(trajectories, t, desired_direction):
    recs = []
    for tr in trajectories:
        points = tr.get('points', [])
        start = tr.get('baseline', points[0]['value'] if points else 0)
        if len(points) < 2 or not start:
            continue
        end = points[-1]
        change = (end['value'] - start) / abs(start)
        worse = change < -TRAJECTORY_TOLERANCE if desired_direction == 'higher' else change > TRAJECTORY_TOLERANCE
        if not worse:
            continue
        recs.append(_rec(
            'trajectory', tr['scenario'], 'medium' if end['confidence'] >= 50 else 'low',
            f"Counter the '{tr['scenario']}' outlook",
            f"Projected {change * 100:+.1f}% by offset {end['timeOffset']} "
            f"(confidence {end['confidence']:.0f}%)",
            min(t['impactCap'], abs(change) * 100), DEFAULT_ACTION['cost'], DEFAULT_ACTION['timeframe'],
            end['confidence']))
    return recs


def _distribution_recommendations(distribution, t):
    if not distribution:
        return []
    recs = []
    equity = distribution.get('equityScore')
    if equity is not None and distribution.get('allocations') and 'kind' not in distribution \
            and equity < EQUITY_TARGET:
        recs.append(_rec(
            'distribution', 'equity', 'medium', 'Rebalance allocation toward computed fair shares',
            f"Equity score {equity:.1f} is below {EQUITY_TARGET}",
            min(EQUITY_IMPACT_CAP, EQUITY_TARGET - equity), 0.0,
            distribution.get('timeToImplement', 6), 100 - distribution.get('expectedResistance', 0)))
    for b in distribution.get('bottlenecks', []):
        if b['severity'] not in ('critical', 'high'):
            continue
        recs.append(_rec(
            'distribution', b['id'], b['severity'], f"Upgrade capacity at {b['id']} by 50%",
            f"Utilization {b['utilization']:.1f}% on a {b['severity']} bottleneck",
            min(t['impactCap'], b['impact'] * 0.8), BOTTLENECK_COST, 12, 75))
    if not distribution.get('converged', True):
        recs.append(_rec(
            'distribution', 'search', 'low', 'Extend the allocation search budget',
            'Search stopped at its generation budget before settling',
            0.0, 0.0, 0, 100))
    return recs


def synthesize(composite, trajectories=(), distribution=None, stress_tests=(), indicators=(),
               thresholds=None, catalog=None, desired_direction='higher', domain='engine'):
    """Build the ranked, capped recommendation list for one analysis."""
    t = {**DEFAULT_THRESHOLDS, **(thresholds or {})}
    catalog = catalog or {}
    recs = (_group_recommendations(composite, list(indicators), t, catalog)
            + _stress_recommendations(stress_tests, composite, t)
            + _trajectory_recommendations(trajectories, t, desired_direction)
            + _distribution_recommendations(distribution, t))

    recs.sort(key=lambda r: (-PRIORITY_RANK[r['priority']], -r['estimatedImpact'],
                             r['category'], str(r['target'])))
    recs = recs[:int(t['maxRecommendations'])]
    for r in recs:
        r['id'] = f"{domain}-{r['category']}-{_slug(r['target'])}"
    return recs
