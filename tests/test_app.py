"""Tests for the Flask API surface."""

import io

import openpyxl
import pytest

import app as server
from engines.domains import DOMAINS

# ─── Helpers ──────────────────────────────────────────────────────────────────


@pytest.fixture
def client(tmp_path, monkeypatch):
    # no analyst override workbooks during tests
    monkeypatch.setattr('engines.data_loader.DATA_DIR', str(tmp_path))
    server.HISTORY.clear()
    server.app.config['TESTING'] = True
    with server.app.test_client() as c:
        yield c
    server.HISTORY.clear()


def _indicators(domain, scale=1.0):
    return [{'name': d['name'], 'rawValue': d['benchmark'] * scale} for d in DOMAINS[domain]['indicators']]


# ─── Domains ────────────────────────────────────────────────────────────────


class TestDomainRoutes:
    def test_list(self, client):
        data = client.get('/api/domains').get_json()
        assert len(data['domains']) == 7

    def test_config(self, client):
        data = client.get('/api/domains/resilience').get_json()
        assert data['weights']['basis'] == 'dimension'

    def test_unknown_domain(self, client):
        resp = client.get('/api/domains/astrology')
        assert resp.status_code == 404
        assert resp.get_json()['type'] == 'UnknownDomain'


# ─── Analysis ───────────────────────────────────────────────────────────────


class TestAnalyze:
    def test_analyze_records_history(self, client):
        resp = client.post('/api/analyze/climate', json={'indicators': _indicators('climate')})
        assert resp.status_code == 200
        report = resp.get_json()
        assert report['domain'] == 'climate'
        history = client.get('/api/history/climate').get_json()
        assert len(history['snapshots']) == 1

    def test_history_reports_domain_window(self, client):
        client.post('/api/analyze/climate', json={'indicators': _indicators('climate')})
        assert client.get('/api/history/climate').get_json()['window'] == 36

    def test_clear_history(self, client):
        client.post('/api/analyze/climate', json={'indicators': _indicators('climate')})
        client.post('/api/history/climate/clear')
        assert client.get('/api/history/climate').get_json()['snapshots'] == []

    def test_request_overrides(self, client):
        body = {'indicators': _indicators('climate', 0.2), 'overrides': {'thresholds': {'maxRecommendations': 2}}}
        report = client.post('/api/analyze/climate', json=body).get_json()
        assert len(report['recommendations']) == 2

    def test_bad_override_is_400(self, client):
        body = {'indicators': [], 'overrides': {'weights': {'components': {'mitigation': 0.9}}}}
        resp = client.post('/api/analyze/climate', json=body)
        assert resp.status_code == 400
        assert resp.get_json()['type'] == 'ConfigurationError'

    def test_infeasible_is_422(self, client):
        body = {'indicators': _indicators('equity'), 'totalResource': 100,
                'entities': [{'id': 'employees', 'type': 'employees'}, {'id': 'community', 'type': 'community'}],
                'constraints': {'employees': {'floor': 0.8}, 'community': {'floor': 0.3}}}
        resp = client.post('/api/analyze/equity', json=body)
        assert resp.status_code == 422
        assert resp.get_json()['type'] == 'InfeasibleConstraintsError'


# ─── Simulate / optimize ────────────────────────────────────────────────────


class TestSimulateOptimize:
    def test_simulate(self, client):
        data = client.post('/api/simulate', json={'baseline': 100, 'horizon': 5, 'scenarios': ['net_zero']}).get_json()
        assert len(data['trajectories']) == 1
        assert len(data['trajectories'][0]['points']) == 6

    def test_simulate_requires_baseline(self, client):
        assert client.post('/api/simulate', json={}).status_code == 400

    def test_optimize(self, client):
        body = {'entities': [{'id': 'a'}, {'id': 'b'}], 'totalResource': 1000,
                'constraints': {'a': {'floor': 0.7}}}
        data = client.post('/api/optimize', json=body).get_json()
        assert data['allocations']['a'] == pytest.approx(700)
        assert data['allocations']['b'] == pytest.approx(300)

    def test_optimize_non_positive_total(self, client):
        resp = client.post('/api/optimize', json={'entities': [{'id': 'a'}], 'totalResource': 0})
        assert resp.status_code == 400


# ─── Export ─────────────────────────────────────────────────────────────────


class TestExport:
    def test_workbook_sheets(self, client):
        body = {'indicators': _indicators('equity', 0.5), 'totalResource': 10000,
                'entities': [{'id': 'employees', 'type': 'employees'}, {'id': 'shareholders', 'type': 'shareholders'},
                             {'id': 'community', 'type': 'community'}, {'id': 'environment', 'type': 'environment'}]}
        resp = client.post('/api/export/equity', json=body)
        assert resp.status_code == 200
        wb = openpyxl.load_workbook(io.BytesIO(resp.data))
        assert wb.sheetnames == ['Summary', 'Indicators', 'Scores', 'Trajectories', 'Stress Tests',
                                 'Distribution', 'Recommendations', 'Warnings']
