"""
Sustainability Decision-Support — Configuration Schema
Versioned domain configuration, validated once when an engine is built.
Everything that can be wrong with weights, benchmarks, scenarios or
constraint sets is raised here, never mid-analysis.
"""
import copy
import logging

from engines.errors import ConfigurationError, NumericDegeneracyError
from engines.simulator import SCENARIOS, STRESS_SCENARIOS

SCHEMA_VERSION = 1
WEIGHT_TOLERANCE = 1e-6

DEFAULT_THRESHOLDS = {
    'critical': 40, 'high': 60, 'medium': 70,
    'stressCritical': 70,
    'maxRecommendations': 15,
    'impactCap': 25,
    'dataQuality': 70,
    'trendTolerance': 2.0,
}

ALLOCATION_MODES = ('closed_form', 'population', 'load_flow', 'matching')
DIRECTIONS = ('higher', 'lower')
BASIS_KEYS = {'component': 'components', 'dimension': 'dimensions'}
HISTORY_WINDOW_RANGE = (2, 50)


def _fail(msg):
    raise ConfigurationError(msg)


def _validate_indicator(decl, seen):
    name = decl.get('name')
    if not name:
        _fail('Indicator declaration without a name')
    if name in seen:
        _fail(f"Duplicate indicator '{name}'")
    seen.add(name)
    if decl.get('benchmark') is None:
        _fail(f"Indicator '{name}' has no declared benchmark")
    if not decl.get('component') or not decl.get('dimension'):
        _fail(f"Indicator '{name}' needs both a component and a dimension")
    weight = decl.get('weight')
    if not isinstance(weight, (int, float)) or weight < 0:
        _fail(f"Indicator '{name}' weight must be a non-negative number, got {weight!r}")
    lo, hi = decl.setdefault('range', [0.0, 100.0])
    if not lo < hi:
        _fail(f"Indicator '{name}' range [{lo}, {hi}] is empty")
    if decl.setdefault('direction', 'higher') not in DIRECTIONS:
        _fail(f"Indicator '{name}' direction must be one of {DIRECTIONS}")
    decl.setdefault('mandatory', True)
    dq = decl.setdefault('dataQuality', 100)
    if not 0 <= dq <= 100:
        _fail(f"Indicator '{name}' dataQuality {dq} outside [0, 100]")


def _validate_weights(cfg):
    weights = cfg.setdefault('weights', {})
    basis = weights.setdefault('basis', 'component')
    if basis not in BASIS_KEYS:
        _fail(f"Unknown weight basis '{basis}'")
    basis_key = BASIS_KEYS[basis]
    group_w = weights.get(basis_key) or {}
    if not group_w:
        _fail(f"Weight basis '{basis}' has no group weights")
    if any(w < 0 for w in group_w.values()):
        _fail(f"Negative {basis} weight in {group_w}")
    total = sum(group_w.values())
    if total <= 0:
        raise NumericDegeneracyError(f"All {basis} weights are zero")
    if abs(total - 1.0) > WEIGHT_TOLERANCE:
        _fail(f"{basis.title()} weights sum to {total:.6f}, expected 1.0")

    per_group = {}
    for decl in cfg['indicators']:
        g = decl[basis]
        if g not in group_w:
            _fail(f"Indicator '{decl['name']}' belongs to unweighted {basis} '{g}'")
        per_group[g] = per_group.get(g, 0.0) + decl['weight']
    for g, s in per_group.items():
        if s <= 0:
            raise NumericDegeneracyError(f"All indicator weights in {basis} '{g}' are zero")
        if abs(s - 1.0) > WEIGHT_TOLERANCE:
            _fail(f"Indicator weights in {basis} '{g}' sum to {s:.6f}, expected 1.0")

    # the other view's weights are implied by the basis; only its group names matter
    other = 'dimension' if basis == 'component' else 'component'
    configured = weights.get(BASIS_KEYS[other]) or {}
    if any(w for w in configured.values()):
        logging.warning(f"{cfg.get('domain', '?')}: {other} weights ignored under '{basis}' basis; "
                        f"{other} scores use implied weights")
    names = {d[other] for d in cfg['indicators']} | set(configured)
    weights[BASIS_KEYS[other]] = {n: 0.0 for n in sorted(names)}


def _validate_constraints(constraints):
    floors = 0.0
    for key, c in (constraints or {}).items():
        floor, ceiling = c.get('floor'), c.get('ceiling')
        for label, v in (('floor', floor), ('ceiling', ceiling)):
            if v is not None and not 0 <= v <= 1:
                _fail(f"Constraint '{key}' {label} {v} must be a fraction in [0, 1]")
        if floor is not None and ceiling is not None and floor > ceiling:
            _fail(f"Constraint '{key}' floor {floor} exceeds ceiling {ceiling}")
        floors += floor or 0.0
    if floors > 1.0 + WEIGHT_TOLERANCE:
        _fail(f"Constraint floors sum to {floors:.3f} of the total resource")


def validate_config(cfg):
    """Return a validated deep copy of a domain configuration."""
    cfg = copy.deepcopy(cfg)
    version = cfg.setdefault('schemaVersion', SCHEMA_VERSION)
    if version != SCHEMA_VERSION:
        _fail(f"Unsupported schema version {version} (supported: {SCHEMA_VERSION})")
    if not cfg.get('domain'):
        _fail('Configuration has no domain name')
    if not cfg.get('indicators'):
        _fail(f"Domain '{cfg['domain']}' declares no indicators")

    seen = set()
    for decl in cfg['indicators']:
        _validate_indicator(decl, seen)
    _validate_weights(cfg)

    scenario_table = {**SCENARIOS, **(cfg.get('scenarioDefinitions') or {})}
    for name in cfg.setdefault('scenarios', []):
        if name not in scenario_table:
            _fail(f"Unknown scenario '{name}'")
    for name in cfg.setdefault('stressScenarios', []):
        if name not in STRESS_SCENARIOS:
            _fail(f"Unknown stress scenario '{name}'")

    t = {**DEFAULT_THRESHOLDS, **(cfg.get('thresholds') or {})}
    if not t['critical'] < t['high'] < t['medium']:
        _fail(f"Thresholds must satisfy critical < high < medium, got {t}")
    if int(t['maxRecommendations']) < 1:
        _fail('maxRecommendations must be at least 1')
    cfg['thresholds'] = t

    alloc = cfg.setdefault('allocation', {})
    mode = alloc.get('mode')
    if mode is not None and mode not in ALLOCATION_MODES:
        _fail(f"Unknown allocation mode '{mode}'")
    _validate_constraints(alloc.get('constraints'))

    lo, hi = HISTORY_WINDOW_RANGE
    window = cfg.setdefault('historyWindow', 24)
    if not lo <= window <= hi:
        _fail(f"historyWindow {window} outside [{lo}, {hi}]")
    if cfg.setdefault('desiredDirection', 'higher') not in DIRECTIONS:
        _fail(f"desiredDirection must be one of {DIRECTIONS}")
    cfg.setdefault('catalog', {})
    cfg.setdefault('horizon', 10)
    return cfg


def merge_overrides(base, overrides):
    """Layer user overrides (weights, thresholds, per-indicator fields, allocation) onto a config."""
    cfg = copy.deepcopy(base)
    if not overrides:
        return cfg
    for key in ('scenarios', 'stressScenarios', 'horizon', 'desiredDirection', 'historyWindow'):
        if key in overrides:
            cfg[key] = copy.deepcopy(overrides[key])
    w = overrides.get('weights') or {}
    if w:
        weights = cfg.setdefault('weights', {})
        if 'basis' in w:
            weights['basis'] = w['basis']
        for key in ('components', 'dimensions'):
            if key in w:
                weights[key] = {**(weights.get(key) or {}), **w[key]}
    if overrides.get('thresholds'):
        cfg['thresholds'] = {**(cfg.get('thresholds') or {}), **overrides['thresholds']}
    if overrides.get('allocation'):
        cfg['allocation'] = {**(cfg.get('allocation') or {}), **overrides['allocation']}
    by_name = {d['name']: d for d in cfg.get('indicators', [])}
    for name, fields in (overrides.get('indicators') or {}).items():
        if name not in by_name:
            _fail(f"Override for unknown indicator '{name}'")
        by_name[name].update(fields)
    logging.info(f"Applied overrides to '{cfg.get('domain')}': {sorted(overrides)}")
    return cfg
