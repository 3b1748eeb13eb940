"""Tests for the workbook loader, using workbooks built in tmp_path."""

import openpyxl
import pytest

from engines import data_loader
from engines.data_loader import (load_domain_overrides, load_domain_workbook, load_entities,
                                 load_indicator_snapshot, load_weight_overrides, read_xlsx_sheet)

# ─── Helpers ──────────────────────────────────────────────────────────────────


def _workbook(path, sheets):
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title)
        for row in rows:
            ws.append(row)
    wb.save(path)
    return str(path)


@pytest.fixture
def analysis_book(tmp_path):
    return _workbook(tmp_path / 'analysis.xlsx', {
        'Indicators': [
            ['Indicator', 'Value', 'Data Quality'],
            ['Grid Reliability', 92, 95],
            ['Energy Storage Capacity', '20', None],
            ['Social Cohesion', 'n/a', 80],
            [None, 10, 50],
        ],
        'Weights': [
            ['Type', 'Name', 'Weight', 'Benchmark'],
            ['Basis', 'Dimension', None, None],
            ['dimension', 'infrastructure', 0.4, None],
            ['dimension', 'social', 0.1, None],
            ['indicator', 'Grid Reliability', None, 90],
            ['sector', 'ignored', 1.0, None],
        ],
        'Stakeholders': [
            ['ID', 'Type', 'Current Share', 'Labor', 'Capital', 'Economic', 'Social'],
            ['emp', 'employees', 0.35, 0.8, 0.1, 0.6, 0.8],
            ['own', 'shareholders', None, 0.1, 0.9, 0.8, 0.2],
        ],
    })


# ─── Sheets ─────────────────────────────────────────────────────────────────


class TestReadSheet:
    def test_rows_keyed_by_header(self, analysis_book):
        rows = read_xlsx_sheet(analysis_book, 'Indicators')
        assert rows[0] == {'Indicator': 'Grid Reliability', 'Value': 92, 'Data Quality': 95}

    def test_missing_sheet_is_empty(self, analysis_book):
        assert read_xlsx_sheet(analysis_book, 'Nope') == []


class TestLoaders:
    def test_indicator_snapshot(self, analysis_book):
        inds = load_indicator_snapshot(analysis_book)
        assert [i['name'] for i in inds] == ['Grid Reliability', 'Energy Storage Capacity']
        assert inds[0]['dataQuality'] == 95.0
        assert inds[1]['rawValue'] == 20.0
        assert 'dataQuality' not in inds[1]

    def test_weight_overrides(self, analysis_book):
        ov = load_weight_overrides(analysis_book)
        assert ov['weights'] == {'basis': 'dimension', 'dimensions': {'infrastructure': 0.4, 'social': 0.1}}
        assert ov['indicators'] == {'Grid Reliability': {'benchmark': 90.0}}

    def test_entities(self, analysis_book):
        ents = load_entities(analysis_book)
        assert [e['id'] for e in ents] == ['emp', 'own']
        assert ents[0]['currentShare'] == 0.35
        assert ents[0]['contribution']['labor'] == 0.8
        assert ents[0]['impact']['environmental'] == 0.0
        assert 'currentShare' not in ents[1]

    def test_domain_workbook(self, analysis_book):
        book = load_domain_workbook(analysis_book)
        assert set(book) == {'indicators', 'entities', 'overrides'}

    def test_domain_overrides_absent(self, tmp_path, monkeypatch):
        monkeypatch.setattr(data_loader, 'DATA_DIR', str(tmp_path))
        assert load_domain_overrides('climate') == {}

    def test_domain_overrides_present(self, tmp_path, monkeypatch):
        (tmp_path / 'config').mkdir()
        _workbook(tmp_path / 'config' / 'climate.xlsx', {
            'Weights': [['Type', 'Name', 'Weight'], ['indicator', 'Disclosure Quality', 0.5]],
        })
        monkeypatch.setattr(data_loader, 'DATA_DIR', str(tmp_path))
        assert load_domain_overrides('climate') == {'indicators': {'Disclosure Quality': {'weight': 0.5}}}
