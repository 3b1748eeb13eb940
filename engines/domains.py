"""
Sustainability Decision-Support — Domain Presets
One configuration per domain instantiation. Every preset reuses the same
normalizer / scorer / simulator / allocator / synthesizer; only indicators,
weights, scenarios, constraints and the action catalog differ.

Indicator weights sum to 1.0 inside each group of the weight BASIS.
"""
import copy

from engines.allocator import DEFAULT_CONSTRAINTS
from engines.config import SCHEMA_VERSION
from engines.errors import ConfigurationError


def _ind(name, component, dimension, weight, benchmark, **extra):
    d = {'name': name, 'component': component, 'dimension': dimension,
         'weight': weight, 'benchmark': benchmark}
    d.update(extra)
    return d


# ══════════════════════════════════════════════════════════════
#  CLIMATE SCORE
# ══════════════════════════════════════════════════════════════
CLIMATE = {
    'domain': 'climate',
    'label': 'Climate Score',
    'indicators': [
        _ind('Emission Reduction', 'mitigation', 'performance', 0.30, 70),
        _ind('Renewable Energy Share', 'mitigation', 'performance', 0.25, 60),
        _ind('Energy Efficiency', 'mitigation', 'performance', 0.25, 70),
        _ind('Carbon Intensity', 'mitigation', 'performance', 0.20, 200, range=[0, 800], direction='lower'),
        _ind('Climate Risk Assessment', 'adaptation', 'policy', 0.35, 75),
        _ind('Adaptation Planning', 'adaptation', 'policy', 0.35, 70),
        _ind('Early Warning Coverage', 'adaptation', 'capacity', 0.30, 80),
        _ind('Green Investment Share', 'finance', 'investment', 0.50, 50),
        _ind('Climate Finance Mobilized', 'finance', 'investment', 0.50, 60),
        _ind('Disclosure Quality', 'transparency', 'policy', 0.60, 80),
        _ind('Data Verification', 'transparency', 'policy', 0.40, 75),
        _ind('Clean Tech Adoption', 'technology', 'capacity', 0.60, 65),
        _ind('Innovation Investment', 'technology', 'investment', 0.40, 55, mandatory=False),
    ],
    'weights': {
        'basis': 'component',
        'components': {'mitigation': 0.35, 'adaptation': 0.25, 'finance': 0.20,
                       'transparency': 0.10, 'technology': 0.10},
    },
    'scenarios': ['business_as_usual', 'strategic_investment', 'transformation'],
    'stressScenarios': ['extreme_weather'],
    'horizon': 12,
    'historyWindow': 36,
    'benchmarks': {'global': 65, 'regional': 68, 'sector': 62, 'best_practice': 85},
    'catalog': {
        'mitigation': {'description': 'Accelerate emission reduction programs',
                       'cost': 5_000_000, 'timeframe': 36, 'feasibility': 70, 'impactCap': 25},
        'adaptation': {'description': 'Scale climate adaptation investments',
                       'cost': 3_000_000, 'timeframe': 24, 'feasibility': 75, 'impactCap': 20},
        'finance': {'description': 'Mobilize green finance instruments',
                    'cost': 500_000, 'timeframe': 6, 'feasibility': 85, 'impactCap': 20},
        'transparency': {'description': 'Improve climate disclosure and reporting',
                         'cost': 150_000, 'timeframe': 6, 'feasibility': 90, 'impactCap': 15},
        'technology': {'description': 'Deploy proven clean technologies',
                       'cost': 2_000_000, 'timeframe': 18, 'feasibility': 75, 'impactCap': 20},
    },
}

# ══════════════════════════════════════════════════════════════
#  RESILIENCE INDEX
# ══════════════════════════════════════════════════════════════
RESILIENCE = {
    'domain': 'resilience',
    'label': 'Resilience Index',
    'indicators': [
        # infrastructure
        _ind('Grid Reliability', 'absorptive', 'infrastructure', 0.30, 85),
        _ind('Energy Storage Capacity', 'adaptive', 'infrastructure', 0.25, 15, range=[0, 30]),
        _ind('Grid Redundancy', 'absorptive', 'infrastructure', 0.20, 60),
        _ind('Smart Grid Deployment', 'adaptive', 'infrastructure', 0.15, 40),
        _ind('Maintenance Quality', 'absorptive', 'infrastructure', 0.10, 70),
        # social
        _ind('Energy Access Equity', 'absorptive', 'social', 0.30, 85),
        _ind('Community Preparedness', 'absorptive', 'social', 0.25, 65),
        _ind('Social Cohesion', 'adaptive', 'social', 0.20, 70),
        _ind('Education and Awareness', 'adaptive', 'social', 0.15, 60),
        _ind('Vulnerable Population Support', 'absorptive', 'social', 0.10, 55),
        # economic
        _ind('Economic Diversification', 'transformative', 'economic', 0.30, 70),
        _ind('Financial Reserves', 'absorptive', 'economic', 0.25, 65),
        _ind('Insurance Coverage', 'absorptive', 'economic', 0.20, 60),
        _ind('Supply Chain Resilience', 'absorptive', 'economic', 0.15, 55),
        _ind('Green Economy Transition', 'transformative', 'economic', 0.10, 45),
        # environmental
        _ind('Ecosystem Health', 'absorptive', 'environmental', 0.30, 75),
        _ind('Natural Resource Security', 'absorptive', 'environmental', 0.25, 70),
        _ind('Climate Adaptation Capacity', 'transformative', 'environmental', 0.20, 60),
        _ind('Biodiversity Index', 'transformative', 'environmental', 0.15, 65),
        _ind('Environmental Monitoring', 'adaptive', 'environmental', 0.10, 70, mandatory=False),
        # institutional
        _ind('Governance Quality', 'transformative', 'institutional', 0.30, 70),
        _ind('Emergency Response Capacity', 'adaptive', 'institutional', 0.25, 75),
        _ind('Inter-agency Coordination', 'adaptive', 'institutional', 0.20, 65),
        _ind('Policy Coherence', 'adaptive', 'institutional', 0.15, 60),
        _ind('Stakeholder Engagement', 'transformative', 'institutional', 0.10, 55, mandatory=False),
    ],
    'weights': {
        'basis': 'dimension',
        'dimensions': {'infrastructure': 0.25, 'social': 0.20, 'economic': 0.20,
                       'environmental': 0.20, 'institutional': 0.15},
    },
    'scenarios': ['business_as_usual', 'strategic_investment', 'transformation'],
    'stressScenarios': ['extreme_weather', 'infrastructure_failure', 'economic_shock',
                        'energy_crisis', 'pandemic', 'cyber_attack'],
    'horizon': 10,
    'historyWindow': 24,
    'catalog': {
        'dimension': {'impactCap': 35, 'feasibility': 70},
        'infrastructure': {'description': 'Modernize and harden critical infrastructure',
                           'cost': 15_000_000, 'timeframe': 30},
        'social': {'description': 'Strengthen community preparedness and social networks',
                   'cost': 3_000_000, 'timeframe': 18},
        'economic': {'description': 'Diversify the economy and build financial buffers',
                     'cost': 8_000_000, 'timeframe': 36},
        'environmental': {'description': 'Restore ecosystems and natural buffers',
                          'cost': 5_000_000, 'timeframe': 48},
        'institutional': {'description': 'Improve governance and inter-agency coordination',
                          'cost': 2_000_000, 'timeframe': 24},
        'adaptive': {'description': 'Expand storage, smart grids and response capacity',
                     'cost': 2_000_000, 'timeframe': 18, 'feasibility': 80, 'impactCap': 25},
        'absorptive': {'description': 'Add redundancy, reserves and insurance cover',
                       'cost': 5_000_000, 'timeframe': 24, 'feasibility': 75, 'impactCap': 30},
        'transformative': {'description': 'Invest in long-term systemic transformation',
                           'cost': 10_000_000, 'timeframe': 36, 'feasibility': 60, 'impactCap': 20},
    },
}

# ══════════════════════════════════════════════════════════════
#  ENERGY FLOW
# ══════════════════════════════════════════════════════════════
ENERGY_FLOW = {
    'domain': 'energy_flow',
    'label': 'Energy Flow Optimization',
    'indicators': [
        _ind('Generation Efficiency', 'efficiency', 'operations', 0.50, 80),
        _ind('Distribution Losses', 'efficiency', 'network', 0.50, 6, range=[0, 20], direction='lower'),
        _ind('Grid Reliability', 'reliability', 'network', 0.60, 95),
        _ind('Peak Utilization', 'reliability', 'network', 0.40, 80, direction='lower'),
        _ind('Cost per MWh', 'cost', 'market', 1.00, 60, range=[20, 200], direction='lower'),
        _ind('Renewable Share', 'emissions', 'supply', 0.60, 50),
        _ind('Emission Intensity', 'emissions', 'supply', 0.40, 300, range=[0, 900], direction='lower'),
    ],
    'weights': {
        'basis': 'component',
        'components': {'efficiency': 0.30, 'reliability': 0.25, 'cost': 0.25, 'emissions': 0.20},
    },
    'scenarios': ['business_as_usual', 'strategic_investment'],
    'stressScenarios': ['energy_crisis', 'infrastructure_failure', 'cyber_attack'],
    'allocation': {'mode': 'load_flow', 'populationSize': 50, 'generations': 100},
    'horizon': 10,
    'catalog': {
        'efficiency': {'description': 'Redistribute load toward high-efficiency nodes',
                       'cost': 250_000, 'timeframe': 6, 'feasibility': 85},
        'reliability': {'description': 'Add grid-scale energy storage',
                        'cost': 1_500_000, 'timeframe': 18, 'feasibility': 70, 'impactCap': 15},
        'cost': {'description': 'Renegotiate supply contracts and shift peak demand',
                 'cost': 200_000, 'timeframe': 6, 'feasibility': 80},
        'emissions': {'description': 'Increase renewable dispatch priority',
                      'cost': 1_000_000, 'timeframe': 12, 'feasibility': 75},
    },
}

# ══════════════════════════════════════════════════════════════
#  CARBON TRAJECTORY
# ══════════════════════════════════════════════════════════════
CARBON = {
    'domain': 'carbon',
    'label': 'Carbon Trajectory',
    'adapter': 'carbon',
    'indicators': [
        _ind('Power Sector Reduction', 'decarbonisation', 'energy', 0.60, 45),
        _ind('Grid Carbon Intensity', 'intensity', 'energy', 0.40, 250, range=[0, 900], direction='lower'),
        _ind('Transport Emission Reduction', 'decarbonisation', 'transport', 0.60, 30),
        _ind('EV Share of New Sales', 'technology', 'transport', 0.40, 40),
        _ind('Industrial Emission Reduction', 'decarbonisation', 'industry', 1.00, 35),
        _ind('Building Retrofit Rate', 'technology', 'buildings', 1.00, 3, range=[0, 5]),
        _ind('Agricultural Emission Reduction', 'decarbonisation', 'agriculture', 1.00, 25),
        _ind('Waste Diversion Rate', 'circularity', 'waste', 1.00, 65, mandatory=False),
    ],
    'weights': {
        'basis': 'dimension',
        'dimensions': {'energy': 0.35, 'transport': 0.20, 'industry': 0.15,
                       'buildings': 0.12, 'agriculture': 0.10, 'waste': 0.08},
    },
    'scenarios': ['baseline', 'current_policies', 'net_zero', 'ambitious'],
    'desiredDirection': 'lower',
    'horizon': 26,
    'catalog': {
        'energy': {'description': 'Retire fossil generation and expand renewables',
                   'cost': 20_000_000, 'timeframe': 48},
        'transport': {'description': 'Electrify fleets and expand public transit',
                      'cost': 8_000_000, 'timeframe': 36},
        'industry': {'description': 'Fund process electrification and efficiency',
                     'cost': 10_000_000, 'timeframe': 36},
        'buildings': {'description': 'Scale deep retrofit programs',
                      'cost': 4_000_000, 'timeframe': 24},
        'agriculture': {'description': 'Support low-emission farming practices',
                        'cost': 2_000_000, 'timeframe': 24},
        'waste': {'description': 'Expand recycling and organics diversion',
                  'cost': 1_000_000, 'timeframe': 12},
    },
}

# ══════════════════════════════════════════════════════════════
#  LIVELIHOOD MATCHING
# ══════════════════════════════════════════════════════════════
LIVELIHOOD = {
    'domain': 'livelihood',
    'label': 'Sustainable Livelihood Matching',
    'adapter': 'livelihood',
    'indicators': [
        _ind('Skills Match', 'skills', 'capability', 1.0, 70),
        _ind('Experience Match', 'experience', 'capability', 1.0, 75),
        _ind('Location Match', 'location', 'opportunity', 1.0, 60),
        _ind('Salary Match', 'salary', 'opportunity', 1.0, 80),
        _ind('Sustainability Alignment', 'sustainability', 'alignment', 1.0, 60),
        _ind('Cultural Fit', 'cultural', 'alignment', 1.0, 60),
    ],
    'weights': {
        'basis': 'component',
        'components': {'skills': 0.30, 'location': 0.15, 'salary': 0.20,
                       'sustainability': 0.20, 'experience': 0.10, 'cultural': 0.05},
    },
    'scenarios': [],
    'allocation': {'mode': 'matching'},
    'catalog': {
        'skills': {'description': 'Enroll in targeted skill certifications',
                   'cost': 1_500, 'timeframe': 6, 'feasibility': 85},
        'location': {'description': 'Explore remote or hybrid roles, or relocation support',
                     'cost': 5_000, 'timeframe': 3, 'feasibility': 60},
        'salary': {'description': 'Target roles aligned with market salary expectations',
                   'cost': 0, 'timeframe': 1, 'feasibility': 80},
        'sustainability': {'description': 'Prioritize employers with strong sustainability ratings',
                           'cost': 0, 'timeframe': 1, 'feasibility': 85},
        'experience': {'description': 'Pursue mentorship or stretch assignments',
                       'cost': 1_000, 'timeframe': 12, 'feasibility': 70},
    },
}

# ══════════════════════════════════════════════════════════════
#  CULTURAL RISK
# ══════════════════════════════════════════════════════════════
CULTURAL = {
    'domain': 'cultural',
    'label': 'Cultural Preservation Risk',
    'adapter': 'cultural',
    'indicators': [
        _ind('Knowledge Holder Age', 'knowledge', 'holders', 5 / 9, 60, range=[50, 80], direction='lower'),
        _ind('Practitioner Count', 'knowledge', 'holders', 4 / 9, 10, range=[0, 20]),
        _ind('Documentation Level', 'knowledge', 'documentation', 1.0, 60),
        _ind('Modernization Pressure', 'viability', 'context', 3 / 7, 40, direction='lower'),
        _ind('Economic Viability', 'viability', 'context', 2 / 7, 50),
        _ind('Community Support', 'viability', 'context', 2 / 7, 60),
    ],
    'weights': {
        'basis': 'dimension',
        'dimensions': {'holders': 0.45, 'documentation': 0.20, 'context': 0.35},
    },
    'scenarios': ['business_as_usual'],
    'horizon': 10,
    'catalog': {
        'holders': {'description': 'Launch apprenticeships pairing elders with younger practitioners',
                    'cost': 50_000, 'timeframe': 24, 'feasibility': 75},
        'documentation': {'description': 'Fund audio, video and written documentation',
                          'cost': 25_000, 'timeframe': 12, 'feasibility': 85},
        'context': {'description': 'Build markets and community programs around the practice',
                    'cost': 40_000, 'timeframe': 18, 'feasibility': 65},
    },
}

# ══════════════════════════════════════════════════════════════
#  EQUITABLE DISTRIBUTION
# ══════════════════════════════════════════════════════════════
EQUITY = {
    'domain': 'equity',
    'label': 'Equitable Value Distribution',
    'indicators': [
        _ind('Pay Ratio', 'fairness', 'workforce', 0.40, 50, range=[10, 400], direction='lower'),
        _ind('Living Wage Coverage', 'fairness', 'workforce', 0.35, 95),
        _ind('Community Investment Share', 'fairness', 'community', 0.25, 2, range=[0, 5]),
        _ind('Data Availability', 'transparency', 'governance', 0.25, 80),
        _ind('Reporting Frequency', 'transparency', 'governance', 0.20, 75),
        _ind('Stakeholder Access', 'transparency', 'community', 0.20, 70),
        _ind('Verification Level', 'transparency', 'governance', 0.20, 70),
        _ind('Public Disclosure', 'transparency', 'governance', 0.15, 80),
        _ind('Supplier Payment Days', 'partnership', 'value_chain', 0.60, 30, range=[0, 120], direction='lower'),
        _ind('Local Sourcing Share', 'partnership', 'value_chain', 0.40, 40, mandatory=False),
    ],
    'weights': {
        'basis': 'component',
        'components': {'fairness': 0.45, 'transparency': 0.30, 'partnership': 0.25},
    },
    'scenarios': [],
    'allocation': {'mode': 'closed_form', 'constraints': DEFAULT_CONSTRAINTS},
    'catalog': {
        'fairness': {'description': 'Close pay gaps and extend living-wage coverage',
                     'cost': 750_000, 'timeframe': 12, 'feasibility': 70},
        'transparency': {'description': 'Publish verified distribution and impact reporting',
                         'cost': 120_000, 'timeframe': 6, 'feasibility': 90, 'impactCap': 15},
        'partnership': {'description': 'Shorten supplier payment terms and source locally',
                        'cost': 300_000, 'timeframe': 9, 'feasibility': 75},
    },
}

DOMAINS = {cfg['domain']: cfg for cfg in (CLIMATE, RESILIENCE, ENERGY_FLOW, CARBON, LIVELIHOOD, CULTURAL, EQUITY)}
for _cfg in DOMAINS.values():
    _cfg['schemaVersion'] = SCHEMA_VERSION


def get_domain_config(domain):
    if domain not in DOMAINS:
        raise ConfigurationError(f"Unknown domain '{domain}' (known: {', '.join(DOMAINS)})")
    return copy.deepcopy(DOMAINS[domain])


def list_domains():
    return [{'domain': k, 'label': v['label'], 'indicators': len(v['indicators']),
             'basis': v['weights']['basis'],
             'allocation': v.get('allocation', {}).get('mode')}
            for k, v in DOMAINS.items()]
