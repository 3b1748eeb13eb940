"""
Sustainability Decision-Support — Constrained Allocator
Distributes a fixed resource across entities under floor/ceiling constraints.

Closed form (profit / value distribution):
  1. floors first (mandatory minimums)
  2. remainder proportional to fair share among entities without a floor
  3. cap at ceilings; surplus spread evenly over entities with headroom
     (one sorted water-level pass, no iteration to convergence)
  4. total is exhausted exactly; floors > total -> InfeasibleConstraintsError

Population search (load flow, multi-way trade-offs):
  seeded tournament selection, single-point crossover, bounded additive
  mutation. Same seed + population + budget -> identical output.
"""
import logging
import random

from engines.errors import ConfigurationError, InfeasibleConstraintsError

EPS = 1e-9

# ── Fair-share model ──
EQUITY_WEIGHTS = {'contribution': 0.40, 'need': 0.25, 'impact': 0.20, 'sustainability': 0.15}
CONTRIBUTION_FACTORS = {'labor': 0.30, 'capital': 0.25, 'resources': 0.20, 'knowledge': 0.15, 'risk': 0.10}
IMPACT_FACTORS = {'economic': 0.40, 'social': 0.35, 'environmental': 0.25}

NEED_BY_TYPE = {'employees': 0.8, 'community': 0.7, 'suppliers': 0.6, 'environment': 0.9,
                'shareholders': 0.2, 'customers': 0.3}
SUSTAINABILITY_BY_TYPE = {'employees': 0.8, 'community': 0.9, 'environment': 1.0, 'suppliers': 0.6,
                          'shareholders': 0.4, 'customers': 0.5}
STAKEHOLDER_PRIORITIES = {'employees': 0.30, 'suppliers': 0.20, 'community': 0.20, 'environment': 0.15,
                          'shareholders': 0.10, 'customers': 0.05}
STAKEHOLDER_RISK = {'employees': 0.3, 'suppliers': 0.4, 'community': 0.2, 'environment': 0.1,
                    'shareholders': 0.6, 'customers': 0.5}
LONG_TERM_SUSTAINABILITY = {'employees': 85, 'suppliers': 70, 'community': 90, 'environment': 95,
                            'shareholders': 60, 'customers': 75}
CURRENT_SHARE_BY_TYPE = {'employees': 0.35, 'suppliers': 0.25, 'shareholders': 0.30,
                         'community': 0.05, 'environment': 0.03, 'customers': 0.02}
DEFAULT_NEED = 0.5
DEFAULT_SUSTAINABILITY = 0.5

DEFAULT_CONSTRAINTS = {
    'employees': {'floor': 0.40},
    'shareholders': {'ceiling': 0.35},
    'community': {'floor': 0.05},
    'environment': {'floor': 0.03},
}

MITIGATIONS = {
    'shareholders': ['Gradual implementation over multiple periods',
                     'Performance-linked compensation adjustments',
                     'Long-term value creation communication'],
    'employees': ['Skills development programs', 'Alternative benefit structures',
                  'Career advancement opportunities'],
    'suppliers': ['Volume guarantees', 'Payment term improvements', 'Partnership development programs'],
}

COMPLEXITY_MONTHS = {'low': 3, 'medium': 6, 'high': 12}

# ── Load-flow model ──
ENERGY_WEIGHTS = {'efficiency': 0.30, 'reliability': 0.25, 'cost': 0.25, 'emissions': 0.20}
MAX_NODE_LOAD = 0.95
BOTTLENECK_LEVELS = [(95, 'critical'), (90, 'high'), (85, 'medium')]


def clamp(v, lo=0.0, hi=1.0):
    return max(lo, min(hi, v))


# ══════════════════════════════════════════════════════════════
#  FAIR SHARE
# ══════════════════════════════════════════════════════════════

def _factor_score(values, factors):
    if values is None:
        return 0.0
    if isinstance(values, dict):
        return sum(float(values.get(k, 0.0)) * w for k, w in factors.items())
    return sum(float(v) * w for v, w in zip(values, factors.values()))


def fair_share_score(entity, weights=None):
    w = weights or EQUITY_WEIGHTS
    etype = entity.get('type')
    parts = {
        'contribution': _factor_score(entity.get('contribution'), CONTRIBUTION_FACTORS),
        'need': entity.get('need', NEED_BY_TYPE.get(etype, DEFAULT_NEED)),
        'impact': _factor_score(entity.get('impact'), IMPACT_FACTORS),
        'sustainability': entity.get('sustainability', SUSTAINABILITY_BY_TYPE.get(etype, DEFAULT_SUSTAINABILITY)),
    }
    return clamp(sum(parts[k] * w.get(k, 0.0) for k in parts))


def compute_fair_shares(entities, weights=None):
    """Fair share per entity id, normalized to sum to 1. Caller-supplied fairShare is ignored."""
    raw = {e['id']: fair_share_score(e, weights) for e in entities}
    total = sum(raw.values())
    if total <= 0:
        return {k: 1 / len(raw) for k in raw} if raw else {}
    return {k: v / total for k, v in raw.items()}


# ══════════════════════════════════════════════════════════════
#  CLOSED-FORM ALLOCATION
# ══════════════════════════════════════════════════════════════

def resolve_constraints(entities, constraints, total):
    """Constraint keys match an entity id, else apply to every entity of that type.
    Values are fractions of total. Returns {id: (floor_amount, ceiling_amount|None)}."""
    constraints = constraints or {}
    ids = {e['id'] for e in entities}
    types = {e.get('type') for e in entities}
    for key in constraints:
        if key not in ids and key not in types:
            raise ConfigurationError(f"Constraint '{key}' matches no entity id or type")

    bounds = {}
    for e in entities:
        c = constraints.get(e['id'], constraints.get(e.get('type'), {})) or {}
        floor, ceiling = c.get('floor'), c.get('ceiling')
        for label, v in (('floor', floor), ('ceiling', ceiling)):
            if v is not None and v < 0:
                raise ConfigurationError(f"Negative {label} for '{e['id']}'")
        bounds[e['id']] = (float(floor or 0.0) * total,
                           None if ceiling is None else float(ceiling) * total)
    return bounds


def _spread_evenly(alloc, ceilings, surplus):
    """Water-level fill: give every entity with headroom the same increment, capped at its headroom."""
    rooms = sorted(((ceilings[i] - alloc[i] if ceilings[i] is not None else float('inf'), i)
                    for i in alloc), key=lambda x: x[0])
    rooms = [(h, i) for h, i in rooms if h > EPS]
    remaining = surplus
    for pos, (room, i) in enumerate(rooms):
        share = remaining / (len(rooms) - pos)
        give = min(room, share)
        alloc[i] += give
        remaining -= give
    return remaining


def _closed_form(order, fair, floors, ceilings, total):
    if sum(floors.values()) > total + 1e-6:
        raise InfeasibleConstraintsError(
            f"Floors sum to {sum(floors.values()):,.2f}, exceeding total resource {total:,.2f}")
    for i in order:
        if ceilings[i] is not None and floors[i] > ceilings[i] + 1e-6:
            raise InfeasibleConstraintsError(f"Floor exceeds ceiling for '{i}'")
    if all(c is not None for c in ceilings.values()) and sum(ceilings.values()) < total - 1e-6:
        raise InfeasibleConstraintsError(
            f"Ceilings sum to {sum(ceilings.values()):,.2f}, below total resource {total:,.2f}")

    alloc = dict(floors)
    remainder = total - sum(floors.values())
    free = [i for i in order if floors[i] <= 0] or list(order)
    fs_total = sum(fair.get(i, 0.0) for i in free)
    for i in free:
        alloc[i] += remainder * (fair.get(i, 0.0) / fs_total if fs_total > 0 else 1 / len(free))

    surplus = 0.0
    for i in order:
        if ceilings[i] is not None and alloc[i] > ceilings[i]:
            surplus += alloc[i] - ceilings[i]
            alloc[i] = ceilings[i]
    if surplus > 0:
        _spread_evenly(alloc, ceilings, surplus)

    # float drift lands on whoever has the most room to absorb it
    drift = total - sum(alloc.values())
    if drift:
        if drift > 0:
            target = max(order, key=lambda i: float('inf') if ceilings[i] is None else ceilings[i] - alloc[i])
        else:
            target = max(order, key=lambda i: alloc[i] - floors[i])
        alloc[target] += drift
    return alloc


def allocate(entities, total_resource, constraints=None, fair_shares=None, weights=None):
    """Closed-form allocation. Returns {entity_id: amount} summing to total_resource."""
    if total_resource <= 0:
        raise ValueError(f"total_resource must be > 0, got {total_resource}")
    fair = fair_shares if fair_shares is not None else compute_fair_shares(entities, weights)
    bounds = resolve_constraints(entities, constraints, total_resource)
    order = [e['id'] for e in entities]
    return _closed_form(order, fair,
                        {i: bounds[i][0] for i in order},
                        {i: bounds[i][1] for i in order},
                        total_resource)


# ══════════════════════════════════════════════════════════════
#  POPULATION SEARCH
# ══════════════════════════════════════════════════════════════

def _tournament(rng, population, fitness, size):
    picks = [rng.randrange(len(population)) for _ in range(size)]
    return population[max(picks, key=lambda k: fitness[k])]


def _crossover(rng, a, b):
    if len(a) < 2:
        return list(a if rng.random() < 0.5 else b)
    point = rng.randint(1, len(a) - 1)
    return a[:point] + b[point:]


def _mutate(rng, genes, bounds, rate, scale):
    out = []
    for g, (lo, hi) in zip(genes, bounds):
        if rng.random() < rate:
            g = clamp(g + rng.uniform(-scale, scale) * (hi - lo), lo, hi)
        out.append(g)
    return out


def population_search(objective, bounds, population_size=50, generations=100, seed=0,
                      tournament_size=3, mutation_rate=0.1, mutation_scale=0.05,
                      patience=15, tolerance=1e-3):
    """Maximize objective(genes) over box bounds [(lo, hi), ...].

    Stops early once the best objective has not improved by more than
    tolerance (relative) for `patience` generations -> converged=True.
    Running out of generations returns the best found with converged=False.
    """
    if population_size < 2:
        raise ValueError("population_size must be at least 2")
    if not bounds:
        raise ValueError("bounds must not be empty")
    rng = random.Random(seed)

    population = [[rng.uniform(lo, hi) for lo, hi in bounds] for _ in range(population_size)]
    fitness = [objective(c) for c in population]
    top = max(range(population_size), key=lambda k: fitness[k])
    best, best_fit = list(population[top]), fitness[top]
    history = [best_fit]

    stale, converged, generations_run = 0, False, 0
    for gen in range(generations):
        children = []
        while len(children) < population_size:
            a = _tournament(rng, population, fitness, tournament_size)
            b = _tournament(rng, population, fitness, tournament_size)
            children.append(_mutate(rng, _crossover(rng, a, b), bounds, mutation_rate, mutation_scale))
        population = children
        fitness = [objective(c) for c in population]
        generations_run = gen + 1

        top = max(range(population_size), key=lambda k: fitness[k])
        improved = fitness[top] - best_fit > tolerance * max(1.0, abs(best_fit))
        if fitness[top] > best_fit:
            best, best_fit = list(population[top]), fitness[top]
        stale = 0 if improved else stale + 1
        history.append(best_fit)
        if patience and stale >= patience:
            converged = True
            break

    return {'solution': best, 'objective': best_fit, 'generationsRun': generations_run,
            'converged': converged, 'history': history}


# ══════════════════════════════════════════════════════════════
#  EQUITY METRICS
# ══════════════════════════════════════════════════════════════

def _current_amounts(entities, total):
    shares = {e['id']: e.get('currentShare', CURRENT_SHARE_BY_TYPE.get(e.get('type'))) for e in entities}
    if any(v is None for v in shares.values()):
        return {e['id']: total / len(entities) for e in entities}
    return {k: v * total for k, v in shares.items()}


def equity_score(entities, allocations, fair_shares, total):
    score, weight = 0.0, 0.0
    for e in entities:
        actual = allocations[e['id']] / total
        fair = fair_shares.get(e['id'], 0.0)
        p = STAKEHOLDER_PRIORITIES.get(e.get('type'), 0.1)
        score += (1 - abs(actual - fair) / max(actual, fair, 0.01)) * p
        weight += p
    return round(score / weight * 100, 2) if weight else 0.0


def implementation_complexity(current, proposed):
    changes = [abs(proposed[k] - current[k]) / max(current[k], EPS) for k in proposed]
    avg = sum(changes) / len(changes) if changes else 0.0
    return 'low' if avg < 0.1 else 'medium' if avg < 0.3 else 'high'


def expected_resistance(entities, current, proposed, total):
    loss = sum(max(0.0, current[e['id']] - proposed[e['id']]) for e in entities if e.get('type') == 'shareholders')
    gain = sum(max(0.0, proposed[e['id']] - current[e['id']]) for e in entities if e.get('type') == 'employees')
    return round(clamp((loss / total) * 100 - (gain / total) * 30, 0, 100), 2)


def _stakeholder_impacts(entities, current, proposed):
    out = []
    for e in entities:
        cur, new = current[e['id']], proposed[e['id']]
        change = new - cur
        out.append({
            'id': e['id'], 'type': e.get('type'),
            'currentAmount': round(cur, 2), 'proposedAmount': round(new, 2),
            'change': round(change, 2),
            'changePct': round(change / cur * 100, 2) if cur > 0 else 0.0,
            'longTermSustainability': LONG_TERM_SUSTAINABILITY.get(e.get('type'), 70),
            'mitigations': MITIGATIONS.get(e.get('type'), []) if change < 0 else [],
        })
    return out


def _distribution(entities, total, alloc, fair, constraints, mode, search=None, warnings=None):
    bounds = resolve_constraints(entities, constraints, total)
    current = _current_amounts(entities, total)
    complexity = implementation_complexity(current, alloc)
    resistance = expected_resistance(entities, current, alloc, total)
    bound_hit = {}
    for i, amount in alloc.items():
        lo, hi = bounds[i]
        bound_hit[i] = ('floor' if lo > 0 and abs(amount - lo) < 1e-6
                        else 'ceiling' if hi is not None and abs(amount - hi) < 1e-6 else None)
    types = {e['id']: e.get('type') for e in entities}
    dist = {
        'mode': mode,
        'totalResource': total,
        'allocations': alloc,
        'shares': {i: round(a / total, 6) for i, a in alloc.items()},
        'fairShares': {i: round(v, 6) for i, v in fair.items()},
        'bounds': bound_hit,
        'converged': True if search is None else search['converged'],
        'equityScore': equity_score(entities, alloc, fair, total),
        'implementationComplexity': complexity,
        'expectedResistance': resistance,
        'timeToImplement': round(COMPLEXITY_MONTHS[complexity] * (1 + resistance / 100), 1),
        'riskAdjustedReturns': {i: round(a * (1 - STAKEHOLDER_RISK.get(types[i], 0.3)), 2)
                                for i, a in alloc.items()},
        'stakeholderImpacts': _stakeholder_impacts(entities, current, alloc),
        'warnings': list(warnings or []),
    }
    if search is not None:
        dist['objective'] = round(search['objective'], 6)
        dist['generationsRun'] = search['generationsRun']
    return dist


def _empty_distribution(total, mode, message):
    logging.warning(message)
    return {'mode': mode, 'totalResource': total, 'allocations': {}, 'shares': {}, 'fairShares': {},
            'bounds': {}, 'converged': True, 'equityScore': 0.0, 'warnings': [message]}


def optimize(entities, total_resource, constraints=None, mode='closed_form', weights=None,
             objective=None, seed=0, population_size=50, generations=100, **search_kwargs):
    """Distribute total_resource across stakeholder entities.

    mode='closed_form'  deterministic floor -> proportional -> cap -> spread.
    mode='population'   searches per-entity priority weights, each decoded through
                        the closed form so every candidate is feasible; maximizes
                        objective(allocations) (default: equity score).
    """
    entities = list(entities)
    if not entities:
        return _empty_distribution(total_resource, mode, 'No entities supplied; nothing allocated')
    ids = [e['id'] for e in entities]
    if len(set(ids)) != len(ids):
        raise ConfigurationError('Entity ids must be unique')
    fair = compute_fair_shares(entities, weights)

    if mode == 'closed_form':
        alloc = allocate(entities, total_resource, constraints, fair)
        return _distribution(entities, total_resource, alloc, fair, constraints, mode)

    if mode != 'population':
        raise ConfigurationError(f"Unknown allocation mode '{mode}'")

    # fail fast on infeasible constraints before spending the search budget
    allocate(entities, total_resource, constraints, fair)
    score_fn = objective or (lambda a: equity_score(entities, a, fair, total_resource))

    def decode(genes):
        return allocate(entities, total_resource, constraints, dict(zip(ids, genes)))

    search = population_search(lambda g: score_fn(decode(g)), [(0.01, 1.0)] * len(ids),
                               population_size=population_size, generations=generations,
                               seed=seed, **search_kwargs)
    warnings = []
    if not search['converged']:
        msg = f"Population search used all {search['generationsRun']} generations without settling"
        logging.warning(msg)
        warnings.append(msg)
    alloc = decode(search['solution'])
    return _distribution(entities, total_resource, alloc, fair, constraints, mode, search, warnings)


# ══════════════════════════════════════════════════════════════
#  LOAD FLOW
# ══════════════════════════════════════════════════════════════

def detect_bottlenecks(nodes, loads):
    max_cap = max((n['capacity'] for n in nodes), default=0) or 1
    found = []
    for n in nodes:
        util = loads.get(n['id'], 0.0) / n['capacity'] * 100 if n['capacity'] > 0 else 0.0
        severity = next((s for limit, s in BOTTLENECK_LEVELS if util > limit), None)
        if not severity:
            continue
        found.append({
            'id': n['id'], 'severity': severity, 'utilization': round(util, 2),
            'impact': round(min(100.0, n.get('connections', 1) * 10 + n['capacity'] / max_cap * 50
                                + util / 100 * 40), 2),
        })
    found.sort(key=lambda b: b['impact'], reverse=True)
    return found


def optimize_load(nodes, demand, weights=None, seed=0, population_size=50, generations=100,
                  **search_kwargs):
    """Split demand across nodes trading efficiency, reliability, cost and emissions."""
    w = weights or ENERGY_WEIGHTS
    nodes = list(nodes)
    if not nodes:
        return _empty_distribution(demand, 'population', 'No network nodes supplied; load not distributed')
    if demand <= 0:
        raise ValueError(f"demand must be > 0, got {demand}")
    ids = [n['id'] for n in nodes]
    caps = {n['id']: n['capacity'] * MAX_NODE_LOAD for n in nodes}
    if sum(caps.values()) < demand - 1e-6:
        raise InfeasibleConstraintsError(
            f"Demand {demand:,.2f} exceeds usable network capacity {sum(caps.values()):,.2f}")
    max_cost = max((n.get('cost', 0.0) for n in nodes), default=0) or 1
    max_em = max((n.get('emissions', 0.0) for n in nodes), default=0) or 1
    floors = {i: 0.0 for i in ids}

    def decode(genes):
        return _closed_form(ids, dict(zip(ids, genes)), floors, caps, demand)

    def evaluate(loads):
        eff = sum(loads[n['id']] * n.get('efficiency', 1.0) for n in nodes) / demand
        cost = sum(loads[n['id']] * n.get('cost', 0.0) for n in nodes) / (demand * max_cost)
        em = sum(loads[n['id']] * n.get('emissions', 0.0) for n in nodes) / (demand * max_em)
        reliability = 1 - max(loads[n['id']] / n['capacity'] for n in nodes)
        return 100 * (w['efficiency'] * eff + w['reliability'] * reliability
                      + w['cost'] * (1 - cost) + w['emissions'] * (1 - em))

    search = population_search(lambda g: evaluate(decode(g)), [(0.01, 1.0)] * len(ids),
                               population_size=population_size, generations=generations,
                               seed=seed, **search_kwargs)
    loads = decode(search['solution'])
    current = {n['id']: n.get('currentLoad', loads[n['id']]) for n in nodes}
    warnings = []
    if not search['converged']:
        msg = f"Load search used all {search['generationsRun']} generations without settling"
        logging.warning(msg)
        warnings.append(msg)
    return {
        'mode': 'population',
        'kind': 'load_flow',
        'totalResource': demand,
        'allocations': loads,
        'shares': {i: round(v / demand, 6) for i, v in loads.items()},
        'utilization': {n['id']: round(loads[n['id']] / n['capacity'] * 100, 2) for n in nodes},
        'efficiency': round(sum(loads[n['id']] * n.get('efficiency', 1.0) for n in nodes) / demand * 100, 2),
        'bottlenecks': detect_bottlenecks(nodes, current),
        'objective': round(search['objective'], 6),
        'generationsRun': search['generationsRun'],
        'converged': search['converged'],
        'warnings': warnings,
    }
