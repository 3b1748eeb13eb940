"""
Sustainability Decision-Support — Carbon Reduction Potential & Targets
Sector-weighted abatement potential for an absolute emissions baseline, and
progress of the scenario trajectories against near-term, mid-term and
net-zero reduction targets.
"""
import math

SECTOR_POTENTIAL = {'energy': 0.8, 'transport': 0.7, 'industry': 0.6,
                    'buildings': 0.9, 'agriculture': 0.3, 'waste': 0.8}
DEFAULT_POTENTIAL = 0.5
ECONOMIC_SHARE = 0.6
MAX_REDUCTION_SHARE = 0.95
TIMEFRAME_SHARES = {'short': ('economic', 0.3), 'medium': ('economic', 0.7), 'long': ('technical', 0.9)}
COST_STEPS = range(0, 201, 20)  # per tCO2e
COST_CURVE_CEILING = 0.8
COST_CURVE_SCALE = 50

# (name, year, reduction from baseline)
TARGETS = [('Near-term', 2030, 0.50), ('Mid-term', 2040, 0.75), ('Net Zero', 2050, 1.00)]
# a trajectory within 1% of the baseline counts as having reached zero
TARGET_TOLERANCE = 0.01


def reduction_potential(current, sector_weights):
    by_sector = {s: current * w * SECTOR_POTENTIAL.get(s, DEFAULT_POTENTIAL)
                 for s, w in sector_weights.items() if w > 0}
    technical = sum(by_sector.values())
    economic = technical * ECONOMIC_SHARE
    base = {'technical': technical, 'economic': economic}
    return {
        'technical': round(technical, 4),
        'economic': round(economic, 4),
        'maximum': round(min(technical, current * MAX_REDUCTION_SHARE), 4),
        'bySector': {s: round(v, 4) for s, v in by_sector.items()},
        'byTimeframe': {k: round(base[src] * share, 4) for k, (src, share) in TIMEFRAME_SHARES.items()},
        'byCost': [{'cost': c,
                    'potential': round(current * COST_CURVE_CEILING * (1 - math.exp(-c / COST_CURVE_SCALE)), 4)}
                   for c in COST_STEPS],
    }


def _value_at(trajectory, offset):
    for p in trajectory['points']:
        if p['timeOffset'] == offset:
            return p['value']
    return None


def emission_targets(current, trajectories, base_year):
    """One record per target; onTrack when any scenario is at or below the target by its year."""
    out = []
    for name, year, reduction in TARGETS:
        absolute = current * (1 - reduction)
        offset = max(0, year - base_year)
        projected = {}
        for t in trajectories:
            v = _value_at(t, offset)
            if v is not None:
                projected[t['scenario']] = v
        best = min(projected, key=projected.get) if projected else None
        on_track = best is not None and projected[best] <= absolute + current * TARGET_TOLERANCE
        out.append({
            'name': name,
            'targetYear': year,
            'reduction': reduction,
            'absoluteTarget': round(absolute, 4),
            'gap': round(max(0.0, current - absolute), 4),
            'yearsRemaining': offset,
            'bestScenario': best,
            'projectedValue': round(projected[best], 4) if best else None,
            'onTrack': on_track,
        })
    return out


def carbon_details(current, sector_weights, trajectories, base_year):
    return {
        'baseline': current,
        'baseYear': base_year,
        'reductionPotential': reduction_potential(current, sector_weights),
        'targets': emission_targets(current, trajectories, base_year),
    }
