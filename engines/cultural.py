"""
Sustainability Decision-Support — Cultural Risk Assessment
Heritage practice records -> risk factors, urgency, extinction horizon,
preservation cost, and the raw indicators the cultural domain scores.
"""

URGENCY_WEIGHTS = {
    'knowledgeHolderAge': 0.25, 'practitionerCount': 0.20, 'documentationLevel': 0.20,
    'modernizationPressure': 0.15, 'economicViability': 0.10, 'communitySupport': 0.10,
}
PRESERVATION_WEIGHTS = {'urgency': 0.35, 'significance': 0.25, 'feasibility': 0.20, 'cost': 0.10, 'community': 0.10}
RISK_LEVELS = [(80, 'critical'), (60, 'high'), (40, 'medium')]
BASE_COST = {'low': 10000, 'medium': 25000, 'high': 50000, 'critical': 100000}
DOCUMENTATION_MEDIA = {'images': 0.2, 'videos': 0.3, 'texts': 0.3, 'audio': 0.2}
COMMERCIAL_KEYWORDS = ('craft', 'art', 'music')

# indicator name -> (risk factor, scale to raw value)
INDICATOR_FACTORS = {
    'Knowledge Holder Age': ('knowledgeHolderAge', 1),
    'Practitioner Count': ('practitionerCount', 1),
    'Documentation Level': ('documentationLevel', 100),
    'Modernization Pressure': ('modernizationPressure', 100),
    'Economic Viability': ('economicViability', 100),
    'Community Support': ('communitySupport', 100),
}


def _count(v):
    return len(v) if isinstance(v, (list, tuple)) else int(v or 0)


def risk_factors(practice):
    """Factors derived from the record; any supplied riskFactors take precedence key by key."""
    holders = practice.get('knowledgeHolders', [])
    ages = [h.get('age', 0) for h in holders]
    docs = practice.get('documentation') or {}
    skills = practice.get('associatedSkills', [])
    doc_level = sum(_count(docs.get(k)) * w for k, w in DOCUMENTATION_MEDIA.items()) / 10
    urban = 0.8 if 'urban' in practice.get('originRegion', '') else 0.3
    econ = 0.7 if practice.get('preservationStatus') == 'vulnerable' else 0.4
    commercial = sum(1 for s in skills if any(k in s for k in COMMERCIAL_KEYWORDS))
    efforts = _count(practice.get('conservationEfforts'))
    derived = {
        'knowledgeHolderAge': sum(ages) / len(ages) if ages else 0.0,
        'practitionerCount': len(holders),
        'documentationLevel': min(1.0, doc_level),
        'modernizationPressure': min(1.0, (urban + econ) / 2),
        'economicViability': min(1.0, commercial / 3),
        'communitySupport': min(1.0, (efforts * 0.3 + len(holders) * 0.1) / 2),
    }
    derived.update(practice.get('riskFactors') or {})
    return derived


def urgency_score(f):
    risks = {
        'knowledgeHolderAge': max(0.0, (f['knowledgeHolderAge'] - 50) / 30),
        'practitionerCount': max(0.0, 1 - f['practitionerCount'] / 20),
        'documentationLevel': 1 - f['documentationLevel'],
        'modernizationPressure': f['modernizationPressure'],
        'economicViability': 1 - f['economicViability'],
        'communitySupport': 1 - f['communitySupport'],
    }
    return max(0.0, min(100.0, sum(risks[k] * w for k, w in URGENCY_WEIGHTS.items()) * 100))


def risk_level(urgency):
    return next((lvl for limit, lvl in RISK_LEVELS if urgency >= limit), 'low')


def time_to_extinction(f):
    base = max(5, 85 - f['knowledgeHolderAge'])
    return base * min(2, f['practitionerCount'] / 10) * f['communitySupport'] * 2


def preservation_complexity(practice, f):
    docs = practice.get('documentation') or {}
    points = 0
    if len(practice.get('associatedSkills', [])) > 5:
        points += 1
    if f['practitionerCount'] < 3:
        points += 1
    if _count(docs.get('videos')) + _count(docs.get('texts')) == 0:
        points += 1
    return 'high' if points >= 2 else 'medium' if points == 1 else 'low'


def assess_practice(practice):
    f = risk_factors(practice)
    urgency = urgency_score(f)
    level = risk_level(urgency)
    cost = BASE_COST[level] * (1 + len(practice.get('associatedSkills', [])) * 0.1)
    assessment = {
        'practiceId': practice.get('id'),
        'name': practice.get('name'),
        'riskFactors': {k: round(v, 4) for k, v in f.items()},
        'urgencyScore': round(urgency, 2),
        'riskLevel': level,
        'timeToExtinction': round(time_to_extinction(f), 1),
        'preservationCost': round(cost, 2),
        'preservationComplexity': preservation_complexity(practice, f),
    }
    assessment['preservationPriority'] = preservation_priority(
        assessment, practice.get('significance', 0.5), practice.get('feasibility', 0.5))
    return assessment


def preservation_priority(assessment, significance=0.5, feasibility=0.5, community=None):
    """Ranking score in [0,100] for choosing which practices to fund first."""
    f = assessment['riskFactors']
    cost_score = 1 - min(1.0, assessment['preservationCost'] / BASE_COST['critical'] / 2)
    parts = {
        'urgency': assessment['urgencyScore'] / 100,
        'significance': significance,
        'feasibility': feasibility,
        'cost': cost_score,
        'community': f['communitySupport'] if community is None else community,
    }
    return round(sum(parts[k] * w for k, w in PRESERVATION_WEIGHTS.items()) * 100, 2)


def practice_indicators(practice):
    """Raw indicator records (name, rawValue) for one practice."""
    f = risk_factors(practice)
    return [{'name': name, 'rawValue': f[key] * scale}
            for name, (key, scale) in INDICATOR_FACTORS.items()]
