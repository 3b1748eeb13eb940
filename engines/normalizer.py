"""
Sustainability Decision-Support — Indicator Normalizer
Raw heterogeneous measurements -> dimensionless [0,100] scores with trend metadata.

Scale:  linear min-max against the declared range, clamped (never rejected).
Trend:  pure function of (current value, previous values); no history -> stable.
"""
import math

from engines.errors import ConfigurationError

DEFAULT_RANGE = (0.0, 100.0)
TREND_WINDOW = 3

# Freshness of the indicator snapshot, keyed by max age in hours
FRESHNESS_BUCKETS = [(24, 100), (72, 90), (168, 75), (720, 60)]
STALE_FRESHNESS = 40


def clamp(v, lo=0.0, hi=100.0):
    return max(lo, min(hi, v))


def scale_value(raw, lo=0.0, hi=100.0, direction='higher'):
    if hi <= lo:
        raise ConfigurationError(f"Invalid range [{lo}, {hi}]")
    scaled = clamp((float(raw) - lo) / (hi - lo) * 100)
    return 100 - scaled if direction == 'lower' else scaled


def classify_trend(current, previous, tolerance=2.0):
    recent = [v for v in (previous or [])[-TREND_WINDOW:] if v is not None]
    if not recent:
        return 'stable'
    delta = current - sum(recent) / len(recent)
    if delta > tolerance:
        return 'improving'
    if delta < -tolerance:
        return 'declining'
    return 'stable'


def normalize(indicators, history=None, tolerance=2.0):
    """Normalize indicator records.

    Each record needs name, rawValue and benchmark; range, direction,
    weight, dimension/category, component and dataQuality are optional.
    history maps indicator name -> previous normalized values (oldest first).
    Returns new dicts; the input records are left untouched.
    """
    history = history or {}
    out = []
    for ind in indicators:
        name = ind.get('name')
        if ind.get('benchmark') is None:
            raise ConfigurationError(f"Indicator '{name}' has no declared benchmark")
        raw = ind.get('rawValue')
        if raw is None or (isinstance(raw, float) and math.isnan(raw)):
            raise ValueError(f"Indicator '{name}' has no raw value")
        lo, hi = ind.get('range') or DEFAULT_RANGE
        direction = ind.get('direction', 'higher')
        value = scale_value(raw, lo, hi, direction)
        bench = scale_value(ind['benchmark'], lo, hi, direction)
        out.append({
            'name': name,
            'dimension': ind.get('dimension', ind.get('category')),
            'component': ind.get('component'),
            'weight': float(ind.get('weight', 1.0)),
            'rawValue': raw,
            'benchmark': ind['benchmark'],
            'normalizedValue': round(value, 4),
            'normalizedBenchmark': round(bench, 4),
            'gap': round(bench - value, 4),
            'trend': classify_trend(value, history.get(name), tolerance),
            'dataQuality': ind.get('dataQuality', 100),
        })
    return out


def data_freshness(age_hours):
    if age_hours is None:
        return None
    for limit, score in FRESHNESS_BUCKETS:
        if age_hours < limit:
            return score
    return STALE_FRESHNESS
