"""
Sustainability Decision-Support — Engine Facade
One explicitly constructed engine per domain configuration:

  raw bundle -> normalize -> score -> {stress tests, trajectories, allocation}
             -> synthesize -> AnalysisReport

Configuration is validated in the constructor. Per-call data gaps become
report warnings; infeasible constraint sets propagate to the caller.
"""
import logging
from datetime import datetime, timezone

from engines import carbon, cultural, matcher
from engines.allocator import optimize, optimize_load, resolve_constraints
from engines.config import merge_overrides, validate_config
from engines.domains import get_domain_config
from engines.errors import ConfigurationError, InsufficientDataError
from engines.normalizer import data_freshness, normalize
from engines.scorer import benchmark_comparison, rating, score
from engines.simulator import SCENARIOS, project_trend, run_stress_tests, simulate_many
from engines.synthesizer import synthesize

LIVELIHOOD_INDICATORS = {
    'skills': 'Skills Match', 'experience': 'Experience Match', 'location': 'Location Match',
    'salary': 'Salary Match', 'sustainability': 'Sustainability Alignment', 'cultural': 'Cultural Fit',
}
BASELINE_REQUIRED = {'carbon'}


def _warning(kind, message, **extra):
    w = {'type': kind, 'message': message}
    w.update(extra)
    return w


def _history_from_snapshots(snapshots):
    values, overall = {}, []
    for snap in snapshots or []:
        if snap.get('overall') is not None:
            overall.append(snap['overall'])
        for name, v in (snap.get('indicators') or {}).items():
            values.setdefault(name, []).append(v)
    return values, overall


class DecisionEngine:
    def __init__(self, config, history=None):
        self.config = validate_config(config)
        self.domain = self.config['domain']
        self.history = history
        self.declared = {d['name']: d for d in self.config['indicators']}
        self.scenario_table = {**SCENARIOS, **(self.config.get('scenarioDefinitions') or {})}
        logging.info(f"Engine ready: domain={self.domain} indicators={len(self.declared)} "
                     f"basis={self.config['weights']['basis']}")

    # ── Inputs ──

    def _adapt(self, state, warnings):
        """Domain adapters turn domain records into raw indicators (+ details / distribution)."""
        adapter = self.config.get('adapter')
        raw = list(state.get('indicators') or [])
        details, distribution = None, None
        if adapter == 'cultural' and state.get('practice'):
            details = cultural.assess_practice(state['practice'])
            raw = cultural.practice_indicators(state['practice']) + raw
        elif adapter == 'livelihood' and state.get('worker'):
            jobs = state.get('jobs') or []
            if jobs:
                scored = [matcher.compatibility(state['worker'], j) for j in jobs]
                best = max(scored, key=lambda r: r['compatibilityScore'])
                raw = [{'name': LIVELIHOOD_INDICATORS[k], 'rawValue': v * 100}
                       for k, v in best['scores'].items()] + raw
                distribution = self._matching(state, jobs)
                details = {'bestMatch': best}
            else:
                warnings.append(_warning('InsufficientDataError', 'No jobs supplied for matching'))
        return raw, details, distribution

    def _matching(self, state, jobs):
        matches = matcher.match_jobs(state['worker'], jobs)
        dist = {'mode': 'matching', 'matches': matches, 'converged': True, 'warnings': []}
        if state.get('workers'):
            assignment = matcher.assign_workers(state['workers'], jobs, seed=state.get('seed', 0))
            dist['assignment'] = assignment
            dist['converged'] = assignment['converged']
        return dist

    def _records(self, raw, warnings):
        """Merge raw values with declarations; first value per name wins."""
        records, seen = [], set()
        for item in raw:
            name = item.get('name')
            if name not in self.declared:
                warnings.append(_warning('UnknownIndicator', f"Indicator '{name}' is not declared for {self.domain}"))
                continue
            if name in seen:
                continue
            value = item.get('rawValue', item.get('value'))
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                continue
            seen.add(name)
            rec = dict(self.declared[name])
            rec['rawValue'] = value
            if item.get('dataQuality') is not None:
                rec['dataQuality'] = item['dataQuality']
            records.append(rec)
        return records, seen

    def _check_mandatory(self, present, warnings):
        missing = [n for n, d in self.declared.items() if d['mandatory'] and n not in present]
        if not missing:
            return set()
        components = sorted({self.declared[n]['component'] for n in missing})
        err = InsufficientDataError(
            f"{len(missing)} mandatory indicator(s) missing for {self.domain}: {', '.join(missing)}",
            missing=missing, components=components)
        logging.warning(str(err))
        warnings.append(_warning('InsufficientDataError', str(err), missing=missing, components=components))
        return set(components)

    # ── Downstream ──

    def _trajectories(self, state, composite, warnings):
        names = state.get('scenarios', self.config['scenarios'])
        for n in names:
            if n not in self.scenario_table:
                raise ConfigurationError(f"Unknown scenario '{n}'")
        if not names:
            return []
        baseline = state.get('baseline')
        if baseline is None:
            if self.domain in BASELINE_REQUIRED:
                warnings.append(_warning('InsufficientDataError', 'No baseline supplied; trajectories skipped'))
                return []
            baseline = composite['overall']
        horizon = int(state.get('horizon', self.config['horizon']))
        return simulate_many(baseline, horizon, names, self.scenario_table)

    def _preset_constraints(self, entities, constraints, warnings):
        """Preset constraints apply only to the stakeholder groups actually present."""
        keys = {e['id'] for e in entities} | {e.get('type') for e in entities}
        unmatched = sorted(k for k in constraints or {} if k not in keys)
        if unmatched:
            logging.info(f"{self.domain}: preset constraints skipped, no matching entity: {unmatched}")
            warnings.append(_warning('Distribution', f"Preset constraint(s) {', '.join(unmatched)} match no entity; skipped",
                                     unmatched=unmatched))
        return {k: v for k, v in (constraints or {}).items() if k in keys}

    def _distribution(self, state, warnings):
        alloc = self.config['allocation']
        mode = alloc.get('mode')
        seed = state.get('seed', 0)
        amount = state.get('demand' if mode == 'load_flow' else 'totalResource', 0.0)
        if ('entities' in state or 'nodes' in state) and not amount > 0:
            warnings.append(_warning('InsufficientDataError', 'No positive resource total supplied; allocation skipped'))
            return None
        if mode in ('closed_form', 'population') and 'entities' in state:
            constraints = state.get('constraints')
            if constraints is None:
                constraints = self._preset_constraints(state['entities'], alloc.get('constraints'), warnings)
            dist = optimize(state['entities'], state.get('totalResource', 0.0), constraints,
                            mode=state.get('allocationMode', mode), seed=seed,
                            population_size=alloc.get('populationSize', 50),
                            generations=alloc.get('generations', 100))
        elif mode == 'load_flow' and 'nodes' in state:
            dist = optimize_load(state['nodes'], state.get('demand', 0.0), seed=seed,
                                 population_size=alloc.get('populationSize', 50),
                                 generations=alloc.get('generations', 100))
        else:
            return None
        for msg in dist.get('warnings', []):
            warnings.append(_warning('Distribution', msg))
        return dist

    # ── Facade ──

    def analyze(self, state):
        """Run the full pipeline over one domain state bundle and return an AnalysisReport dict."""
        state = state or {}
        domain_id = state.get('domainId') or self.domain
        warnings = []

        if state.get('entities') and state.get('constraints') is not None:
            # caller constraints must match the entities before any work is done
            resolve_constraints(state['entities'], state['constraints'], 1.0)

        raw, details, distribution = self._adapt(state, warnings)
        records, present = self._records(raw, warnings)
        affected = self._check_mandatory(present, warnings)

        if 'history' in state:
            previous, overall_series = _history_from_snapshots(state['history'])
        elif self.history is not None:
            previous, overall_series = self.history.previous(domain_id), self.history.overall_series(domain_id)
        else:
            previous, overall_series = {}, []

        indicators = normalize(records, previous, self.config['thresholds']['trendTolerance'])
        scored = [i for i in indicators if i['component'] not in affected]
        composite = score(scored, self.config['weights'])
        if not scored:
            warnings.append(_warning('InsufficientDataError', 'No usable indicators; scores default to 0'))

        stress = run_stress_tests(state.get('stressScenarios', self.config['stressScenarios']),
                                  composite, scored)
        trajectories = self._trajectories(state, composite, warnings)
        if self.config.get('adapter') == 'carbon' and state.get('baseline') is not None:
            details = carbon.carbon_details(
                state['baseline'], self.config['weights'].get('dimensions') or {}, trajectories,
                int(state.get('baseYear', datetime.now(timezone.utc).year)))
        if distribution is None:
            distribution = self._distribution(state, warnings)
        recommendations = synthesize(
            composite, trajectories, distribution, stress, indicators,
            thresholds=self.config['thresholds'], catalog=self.config['catalog'],
            desired_direction=self.config['desiredDirection'], domain=self.domain)

        overall = composite['overall']
        report = {
            'domain': self.domain,
            'domainId': domain_id,
            'schemaVersion': self.config['schemaVersion'],
            'compositeScore': composite,
            'rating': rating(overall),
            'indicators': indicators,
            'trajectories': trajectories,
            'projection': project_trend(overall_series + [overall], self.config['horizon']),
            'stressTests': stress,
            'recommendations': recommendations,
            'benchmarks': benchmark_comparison(overall, self.config['benchmarks']) if self.config.get('benchmarks') else {},
            'dataFreshness': data_freshness(state.get('dataAgeHours')),
            'details': details,
            'warnings': warnings,
            'generatedAt': datetime.now(timezone.utc).isoformat(),
        }
        if distribution is not None:
            report['distribution'] = distribution

        if self.history is not None:
            self.history.record(domain_id, {
                'overall': overall,
                'indicators': {i['name']: i['normalizedValue'] for i in indicators},
            }, window=self.config['historyWindow'])
        return report


def build_engine(domain, overrides=None, history=None):
    cfg = get_domain_config(domain)
    if overrides:
        cfg = merge_overrides(cfg, overrides)
    return DecisionEngine(cfg, history=history)


def analyze(domain, state, overrides=None, history=None):
    return build_engine(domain, overrides, history).analyze(state)
