"""
Sustainability Decision-Support — Scenario Simulator
Named parametric what-if trajectories, stress tests and trend projection.

  rate(t)   = clamp(initialChangeRate + acceleration*t, ±maxChangeRate)
  value(t)  = value(t-1) * (1 + rate(t))             t = 0..horizon
  conf(t)   = max(floor, conf0 * exp(-decay*t))

Stress tests depend on the Scorer: the resilience discount is read from the
current CompositeScore, so scoring must run before stress_test() is called.
"""
import math

from engines.errors import ConfigurationError

SCENARIOS = {
    # ── Emission / carbon trajectories ──
    'baseline': {
        'initialChangeRate': 0.01, 'acceleration': 0.0, 'maxChangeRate': 0.05,
        'probability': 0.20,
        'description': 'No additional climate policies beyond current implementation',
    },
    'current_policies': {
        'initialChangeRate': -0.01, 'acceleration': -0.001, 'maxChangeRate': 0.05,
        'probability': 0.40,
        'description': 'Implementation of announced climate policies',
    },
    'net_zero': {
        'initialChangeRate': -0.05, 'acceleration': -0.002, 'maxChangeRate': 1.0,
        'probability': 0.25,
        'description': 'Net-zero commitment with steady decarbonisation',
    },
    'ambitious': {
        'initialChangeRate': -0.08, 'acceleration': -0.003, 'maxChangeRate': 1.0,
        'probability': 0.15,
        'description': 'Accelerated action aligned with 1.5C pathways',
    },
    # ── Index outlooks (resilience / climate score) ──
    'business_as_usual': {
        'initialChangeRate': -0.005, 'acceleration': 0.0, 'maxChangeRate': 0.05,
        'probability': 0.50, 'valueFloor': 20.0,
        'description': 'Current trajectory without significant changes',
    },
    'strategic_investment': {
        'initialChangeRate': 0.03, 'acceleration': -0.002, 'maxChangeRate': 0.05,
        'probability': 0.30, 'valueCeiling': 95.0,
        'description': 'Targeted investments in critical areas',
    },
    'transformation': {
        'initialChangeRate': 0.04, 'acceleration': -0.002, 'maxChangeRate': 0.06,
        'probability': 0.20, 'valueCeiling': 90.0,
        'description': 'Comprehensive systemic transformation',
    },
}

CONFIDENCE_START = 95.0
CONFIDENCE_DECAY = 0.05
CONFIDENCE_FLOOR = 20.0
UNCERTAINTY_BAND = 0.10     # ±10% at t=0, widening 5% per step
UNCERTAINTY_GROWTH = 0.05
TREND_DRIFT = 0.5           # per-step drift when history is too short to fit

STRESS_SCENARIOS = {
    'extreme_weather':        {'type': 'Natural Disaster', 'magnitude': 85, 'duration': 3,
                               'vulnerabilities': ['Infrastructure exposure to weather extremes',
                                                   'Limited early warning systems']},
    'infrastructure_failure': {'type': 'System Failure', 'magnitude': 75, 'duration': 1,
                               'vulnerabilities': ['Single points of failure in critical systems',
                                                   'Insufficient backup capacity']},
    'economic_shock':         {'type': 'Economic Crisis', 'magnitude': 70, 'duration': 12,
                               'vulnerabilities': ['Economic concentration in vulnerable sectors',
                                                   'Limited financial reserves']},
    'energy_crisis':          {'type': 'Energy Supply Disruption', 'magnitude': 80, 'duration': 6,
                               'vulnerabilities': ['Dependence on imported fuels',
                                                   'Limited energy storage']},
    'pandemic':               {'type': 'Health Emergency', 'magnitude': 90, 'duration': 24,
                               'vulnerabilities': ['Health system capacity constraints',
                                                   'Workforce concentration in essential services']},
    'cyber_attack':           {'type': 'Cyber Security Incident', 'magnitude': 65, 'duration': 0.5,
                               'vulnerabilities': ['Legacy control systems',
                                                   'Limited incident response capability']},
    'default':                {'type': 'Generic Shock', 'magnitude': 50, 'duration': 2,
                               'vulnerabilities': []},
}

DEFAULT_ADAPTIVE_CAPACITY = 50.0
MAX_VULNERABILITIES = 5


def clamp(v, lo=0.0, hi=100.0):
    return max(lo, min(hi, v))


def confidence_at(t, start=CONFIDENCE_START, decay=CONFIDENCE_DECAY, floor=CONFIDENCE_FLOOR):
    return max(floor, start * math.exp(-decay * t))


def _band(value, t, uncertainty):
    half = abs(value) * uncertainty * (1 + UNCERTAINTY_GROWTH * t)
    return max(0.0, value - half), value + half


# ══════════════════════════════════════════════════════════════
#  TRAJECTORIES
# ══════════════════════════════════════════════════════════════

def simulate(baseline, horizon, scenario_name, scenarios=None,
             confidence_start=CONFIDENCE_START, decay=CONFIDENCE_DECAY,
             confidence_floor=CONFIDENCE_FLOOR, uncertainty=UNCERTAINTY_BAND):
    """Project baseline forward under one named scenario. Pure function of its inputs."""
    if horizon < 0:
        raise ValueError(f"horizon must be >= 0, got {horizon}")
    table = scenarios or SCENARIOS
    if scenario_name not in table:
        raise ConfigurationError(f"Unknown scenario '{scenario_name}'")
    sc = table[scenario_name]
    cap = sc.get('maxChangeRate')
    value = float(baseline)
    # bounds never pull a trajectory across its own starting point
    lo_v = min(sc.get('valueFloor', 0.0), max(0.0, value))
    hi_v = sc.get('valueCeiling')
    if hi_v is not None:
        hi_v = max(hi_v, value)

    points = []
    for t in range(horizon + 1):
        rate = sc['initialChangeRate'] + sc.get('acceleration', 0.0) * t
        if cap is not None:
            rate = max(-cap, min(cap, rate))
        value = max(lo_v, value * (1 + rate))
        if hi_v is not None:
            value = min(hi_v, value)
        lower, upper = _band(value, t, uncertainty)
        points.append({
            'timeOffset': t,
            'value': round(value, 4),
            'confidence': round(confidence_at(t, confidence_start, decay, confidence_floor), 4),
            'lower': round(lower, 4), 'upper': round(upper, 4),
        })

    peak = max(points, key=lambda p: p['value'])
    zero_at = next((p['timeOffset'] for p in points
                    if p['value'] <= abs(baseline) * 0.01), None) if baseline else None
    return {
        'scenario': scenario_name,
        'description': sc.get('description', ''),
        'probability': sc.get('probability'),
        'baseline': baseline,
        'points': points,
        'peak': peak['value'], 'peakOffset': peak['timeOffset'],
        'zeroCrossingOffset': zero_at,
        'cumulative': round(sum(p['value'] for p in points), 4),
    }


def simulate_many(baseline, horizon, scenario_names, scenarios=None, **kwargs):
    return [simulate(baseline, horizon, name, scenarios, **kwargs) for name in scenario_names]


def project_trend(values, horizon=12, lower=0.0, upper=100.0):
    """Least-squares line through the history (3+ points), else a gentle drift."""
    values = [v for v in values if v is not None]
    if not values:
        return {'method': 'none', 'slope': 0.0, 'points': []}
    last = values[-1]
    if len(values) >= 3:
        n = len(values)
        mx = (n - 1) / 2
        my = sum(values) / n
        den = sum((i - mx) ** 2 for i in range(n))
        slope = sum((i - mx) * (v - my) for i, v in enumerate(values)) / den
        method = 'linear'
    else:
        slope, method = TREND_DRIFT, 'drift'
    points = [{'timeOffset': t,
               'value': round(clamp(last + slope * t, lower, upper), 4),
               'confidence': round(confidence_at(t), 4)}
              for t in range(1, horizon + 1)]
    return {'method': method, 'slope': round(slope, 4), 'points': points}


# ══════════════════════════════════════════════════════════════
#  STRESS TESTS
# ══════════════════════════════════════════════════════════════

def resilience_discount(composite):
    return clamp(composite.get('overall', 0.0)) / 100


def stress_test(scenario_name, composite, indicators=(), adaptive_component='adaptive'):
    """Immediate / short / long-term impact of a shock, discounted by the current composite score."""
    sc = STRESS_SCENARIOS.get(scenario_name, STRESS_SCENARIOS['default'])
    discount = resilience_discount(composite)
    adaptive = composite.get('componentScores', {}).get(adaptive_component, DEFAULT_ADAPTIVE_CAPACITY)

    immediate = clamp(sc['magnitude'] * (1 - discount))
    short_term = immediate * 0.7
    long_term = max(0.0, immediate * 0.3 * (1 - adaptive / 100))

    weak = sorted((i for i in indicators if i['normalizedValue'] < 50), key=lambda i: i['normalizedValue'])
    vulnerabilities = [f"Weak {i['name']}" for i in weak[:3]] + list(sc['vulnerabilities'])
    strengths = [f"Strong {i['name']}" for i in indicators if i['normalizedValue'] > 75]
    if not strengths:
        strengths = ['Established institutional framework', 'Community engagement networks']

    return {
        'scenario': scenario_name,
        'type': sc['type'],
        'magnitude': sc['magnitude'],
        'duration': sc['duration'],
        'resilienceDiscount': round(discount, 4),
        'impact': {
            'immediateImpact': round(immediate, 2),
            'shortTermImpact': round(short_term, 2),
            'longTermImpact': round(long_term, 2),
        },
        'recovery': {
            'time': round(sc['duration'] * (1 + immediate / 100), 2),
            'cost': round(1_000_000 * (sc['magnitude'] / 50) * (1 + immediate / 50), 2),
            'probability': round(clamp(80 + discount * 30 - (sc['magnitude'] - 50) / 5, 20, 95), 2),
        },
        'vulnerabilities': vulnerabilities[:MAX_VULNERABILITIES],
        'strengths': strengths[:MAX_VULNERABILITIES],
    }


def run_stress_tests(scenario_names, composite, indicators=()):
    results = [stress_test(n, composite, indicators) for n in scenario_names]
    results.sort(key=lambda r: r['impact']['immediateImpact'], reverse=True)
    return results
