"""
Sustainability Decision-Support — Livelihood Matcher
Worker <-> sustainable-job compatibility (multi-criteria) and seeded
many-to-many assignment via the allocator's population search.
"""
import math

from engines.allocator import population_search

MATCH_WEIGHTS = {
    'skills': 0.30, 'location': 0.15, 'salary': 0.20,
    'sustainability': 0.20, 'experience': 0.10, 'cultural': 0.05,
}
SIMILARITY_THRESHOLD = 0.7
MIN_COMPATIBILITY = 0.6
MAX_MATCHES = 10

SKILL_EMBEDDINGS = {
    'renewable-energy':      [0.8, 0.6, 0.9, 0.7, 0.5],
    'solar-power':           [0.9, 0.7, 0.8, 0.6, 0.4],
    'wind-energy':           [0.8, 0.8, 0.7, 0.5, 0.6],
    'sustainability':        [0.7, 0.9, 0.8, 0.8, 0.7],
    'environmental-science': [0.6, 0.8, 0.9, 0.7, 0.8],
    'project-management':    [0.5, 0.4, 0.3, 0.9, 0.8],
    'data-analysis':         [0.4, 0.3, 0.5, 0.8, 0.9],
    'python':                [0.3, 0.2, 0.4, 0.7, 0.9],
    'javascript':            [0.2, 0.1, 0.3, 0.6, 0.8],
}
PREMIUM_SKILLS = ('renewable-energy', 'sustainability', 'environmental-science')

LOCATIONS = {
    'new-york': (40.7128, -74.0060),
    'san-francisco': (37.7749, -122.4194),
    'london': (51.5074, -0.1278),
    'berlin': (52.5200, 13.4050),
    'tokyo': (35.6762, 139.6503),
}
UNKNOWN_DISTANCE_KM = 1000
DISTANCE_BUCKETS = [(10, 0.9), (25, 0.8), (50, 0.6), (100, 0.4)]
FAR_LOCATION_SCORE = 0.2

EXPERIENCE_LEVELS = {'entry': 1, 'mid': 2, 'senior': 3, 'expert': 4}
BASE_SALARY = {'entry': 45000, 'mid': 65000, 'senior': 85000, 'expert': 110000}
REMOTE_POSSIBILITY = {'remote': 1.0, 'hybrid': 0.7}

MONTHS_PER_SKILL = 2
COST_PER_SKILL = 500


def _cosine(a, b):
    dot = sum(x * y for x, y in zip(a, b))
    mag = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / mag if mag else 0.0


def skill_similarity(a, b):
    a, b = a.lower(), b.lower()
    ea, eb = SKILL_EMBEDDINGS.get(a), SKILL_EMBEDDINGS.get(b)
    if ea is None or eb is None:
        return 1.0 if a == b else 0.0
    return _cosine(ea, eb)


def skills_match(worker_skills, job_skills):
    if not job_skills:
        return 1.0
    best = [max((skill_similarity(w, j) for w in worker_skills), default=0.0) for j in job_skills]
    exact = sum(1 for s in best if s >= SIMILARITY_THRESHOLD) / len(job_skills)
    semantic = sum(best) / len(job_skills)
    return exact * 0.7 + semantic * 0.3


def distance_km(loc_a, loc_b):
    a, b = LOCATIONS.get((loc_a or '').lower()), LOCATIONS.get((loc_b or '').lower())
    if not a or not b:
        return UNKNOWN_DISTANCE_KM
    lat1, lng1, lat2, lng2 = map(math.radians, (a[0], a[1], b[0], b[1]))
    h = math.sin((lat2 - lat1) / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin((lng2 - lng1) / 2) ** 2
    return 6371 * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def location_match(loc_a, loc_b):
    if (loc_a or '').lower() == (loc_b or '').lower():
        return 1.0
    d = distance_km(loc_a, loc_b)
    return next((s for limit, s in DISTANCE_BUCKETS if d <= limit), FAR_LOCATION_SCORE)


def expected_salary(worker):
    base = BASE_SALARY.get(worker.get('experienceLevel'), BASE_SALARY['entry'])
    premium = sum(1 for s in worker.get('skills', []) if s in PREMIUM_SKILLS)
    return base * (1 + premium * 0.1)


def _salary_mid(job):
    return (float(job.get('salaryMin', 0)) + float(job.get('salaryMax', 0))) / 2


def salary_match(worker, job):
    mid, expected = _salary_mid(job), expected_salary(worker)
    if mid <= 0:
        return 0.0
    return max(0.0, min(mid / expected, expected / mid))


def sustainability_match(worker, job):
    score = float(job.get('sustainabilityScore', 0))
    interests = worker.get('sustainabilityInterests', [])
    sector = job.get('sector', '')
    align = 0.0
    if 'renewable-energy' in interests and 'energy' in sector:
        align += 0.3
    if 'environmental' in interests and score > 0.8:
        align += 0.3
    if 'social-impact' in interests and job.get('companyRating', 0) > 4:
        align += 0.2
    if 'circular-economy' in interests and 'waste' in sector:
        align += 0.2
    return min(1.0, align + score * 0.3)


def required_level(job):
    mid = _salary_mid(job)
    return 4 if mid > 80000 else 3 if mid > 60000 else 2 if mid > 40000 else 1


def experience_match(worker, job):
    level = EXPERIENCE_LEVELS.get(worker.get('experienceLevel'), 1)
    return max(0.0, 1 - abs(level - required_level(job)) * 0.25)


def cultural_fit(worker, job):
    interests = worker.get('sustainabilityInterests', [])
    fit = 0.5
    if job.get('companySize') == 'startup' and 'innovation' in interests:
        fit += 0.3
    if job.get('companyRating', 0) > 4 and len(interests) > 2:
        fit += 0.2
    return min(1.0, fit)


def skill_gap(worker_skills, job_skills):
    missing = [j for j in job_skills
               if not any(skill_similarity(w, j) >= SIMILARITY_THRESHOLD for w in worker_skills)]
    return {
        'missingSkills': missing,
        'skillGapScore': round(1 - len(missing) / len(job_skills), 4) if job_skills else 1.0,
        'recommendedCourses': [f"{s}-certification" for s in missing],
        'timeToAcquire': len(missing) * MONTHS_PER_SKILL,
        'costToAcquire': len(missing) * COST_PER_SKILL,
    }


def _reason(total, skills, sustain):
    if total > 0.9:
        return 'Excellent match: skills and sustainability interests align closely'
    if total > 0.8:
        return 'Strong match with high potential for meaningful impact'
    if skills > 0.8:
        return 'Strong skills match for this role'
    if sustain > 0.8:
        return 'Strong sustainability alignment with this role'
    return 'Good potential match with room for growth'


def compatibility(worker, job, weights=None):
    w = weights or MATCH_WEIGHTS
    worker_skills = worker.get('skills', [])
    job_skills = job.get('skills', [])
    parts = {
        'skills': skills_match(worker_skills, job_skills),
        'location': location_match(worker.get('location'), job.get('location')),
        'salary': salary_match(worker, job),
        'sustainability': sustainability_match(worker, job),
        'experience': experience_match(worker, job),
        'cultural': cultural_fit(worker, job),
    }
    total = sum(parts[k] * w.get(k, 0.0) for k in parts)
    gap = skill_gap(worker_skills, job_skills)
    dist = distance_km(worker.get('location'), job.get('location'))
    suggestions = []
    if gap['missingSkills']:
        suggestions.append(f"Consider developing skills in: {', '.join(gap['missingSkills'][:3])}")
    if dist > 50 and REMOTE_POSSIBILITY.get(job.get('jobType'), 0.2) < 0.5 and parts['location'] < 1.0:
        suggestions.append('Consider relocation or negotiating remote work options')
    if gap['skillGapScore'] < 0.7:
        suggestions.append('Focus on skill development to increase match compatibility')
    return {
        'workerId': worker.get('id'), 'jobId': job.get('id'),
        'compatibilityScore': round(total, 4),
        'scores': {k: round(v, 4) for k, v in parts.items()},
        'skillGap': gap,
        'distanceKm': round(dist, 1),
        'relocationSupport': dist > 100 and parts['location'] < 1.0,
        'reason': _reason(total, parts['skills'], parts['sustainability']),
        'suggestions': suggestions,
    }


def match_jobs(worker, jobs, weights=None, limit=MAX_MATCHES, minimum=MIN_COMPATIBILITY):
    results = [compatibility(worker, j, weights) for j in jobs]
    results = [r for r in results if r['compatibilityScore'] >= minimum]
    results.sort(key=lambda r: (-r['compatibilityScore'], str(r['jobId'])))
    return results[:limit]


def assign_workers(workers, jobs, weights=None, minimum=MIN_COMPATIBILITY, seed=0,
                   population_size=40, generations=60, **search_kwargs):
    """Assign each worker to at most one job, respecting job openings (default 1).

    One gene per worker selects a job; over-subscribed jobs keep their most
    compatible candidates. Deterministic for a given seed.
    """
    workers, jobs = list(workers), list(jobs)
    if not workers or not jobs:
        return {'assignments': {w.get('id'): None for w in workers}, 'totalCompatibility': 0.0,
                'converged': True, 'generationsRun': 0}
    table = [[compatibility(w, j, weights)['compatibilityScore'] for j in jobs] for w in workers]

    def decode(genes):
        chosen = {}
        for wi, g in enumerate(genes):
            ji = min(int(g), len(jobs) - 1)
            if table[wi][ji] >= minimum:
                chosen.setdefault(ji, []).append(wi)
        result = {}
        for ji, cands in chosen.items():
            cands.sort(key=lambda wi: (-table[wi][ji], wi))
            for wi in cands[:jobs[ji].get('openings', 1)]:
                result[wi] = ji
        return result

    def objective(genes):
        return sum(table[wi][ji] for wi, ji in decode(genes).items())

    search = population_search(objective, [(0.0, float(len(jobs)))] * len(workers),
                               population_size=population_size, generations=generations,
                               seed=seed, **search_kwargs)
    best = decode(search['solution'])
    return {
        'assignments': {w.get('id'): (jobs[best[wi]].get('id') if wi in best else None)
                        for wi, w in enumerate(workers)},
        'scores': {workers[wi].get('id'): round(table[wi][ji], 4) for wi, ji in best.items()},
        'totalCompatibility': round(search['objective'], 4),
        'converged': search['converged'],
        'generationsRun': search['generationsRun'],
    }
