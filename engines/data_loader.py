"""
Sustainability Decision-Support — Workbook Loader
Reads indicator snapshots, weight overrides and stakeholder entities from
analyst-maintained .xlsx files. Missing workbooks fall back to presets;
the engine itself never touches storage.
"""
import os
import logging
import openpyxl

DATA_DIR = os.environ.get('ENGINE_DATA_DIR') or os.path.join(os.path.dirname(os.path.dirname(__file__)), 'data')

INDICATOR_COLUMNS = {
    'Indicator': 'name', 'Name': 'name',
    'Value': 'rawValue', 'Raw Value': 'rawValue',
    'Data Quality': 'dataQuality',
}
ENTITY_COLUMNS = {
    'ID': 'id', 'Type': 'type', 'Current Share': 'currentShare',
    'Need': 'need', 'Sustainability': 'sustainability',
}
CONTRIBUTION_COLUMNS = {'Labor': 'labor', 'Capital': 'capital', 'Resources': 'resources',
                        'Knowledge': 'knowledge', 'Risk': 'risk'}
IMPACT_COLUMNS = {'Economic': 'economic', 'Social': 'social', 'Environmental': 'environmental'}
WEIGHT_GROUPS = {'component': 'components', 'dimension': 'dimensions'}


def read_xlsx_sheet(filepath, sheet_name=None):
    wb = openpyxl.load_workbook(filepath, read_only=True, data_only=True)
    if sheet_name and sheet_name not in wb.sheetnames:
        wb.close()
        return []
    ws = wb[sheet_name] if sheet_name else wb.active
    rows = list(ws.iter_rows(values_only=True))
    wb.close()
    if len(rows) < 2:
        return []
    headers = [str(h).strip() if h else f'col_{i}' for i, h in enumerate(rows[0])]
    return [dict(zip(headers, row)) for row in rows[1:]]


def _number(val, label):
    if val is None or val == '':
        return None
    try:
        return float(val)
    except (TypeError, ValueError):
        logging.warning(f"Skipping non-numeric {label}: {val!r}")
        return None


def load_indicator_snapshot(path, sheet_name='Indicators'):
    """Rows of (Indicator, Value, Data Quality) -> raw indicator records."""
    out = []
    for row in read_xlsx_sheet(path, sheet_name):
        rec = {}
        for col, key in INDICATOR_COLUMNS.items():
            if row.get(col) is not None:
                rec[key] = row[col]
        name = str(rec.get('name') or '').strip()
        value = _number(rec.get('rawValue'), f"value for '{name}'")
        if not name or value is None:
            continue
        rec['name'], rec['rawValue'] = name, value
        if 'dataQuality' in rec:
            dq = _number(rec['dataQuality'], f"data quality for '{name}'")
            if dq is None:
                del rec['dataQuality']
            else:
                rec['dataQuality'] = dq
        out.append(rec)
    logging.info(f"Loaded {len(out)} indicator values from {os.path.basename(path)}")
    return out


def load_weight_overrides(path, sheet_name='Weights'):
    """Rows of (Type, Name, Weight[, Benchmark]) -> overrides for merge_overrides().
    Type is component, dimension or indicator; a Basis row selects the weight basis."""
    overrides = {'weights': {}, 'indicators': {}}
    for row in read_xlsx_sheet(path, sheet_name):
        kind = str(row.get('Type') or '').strip().lower()
        name = str(row.get('Name') or '').strip()
        if not kind or not name:
            continue
        if kind == 'basis':
            overrides['weights']['basis'] = name.lower()
            continue
        weight = _number(row.get('Weight'), f"weight for '{name}'")
        if kind in WEIGHT_GROUPS and weight is not None:
            overrides['weights'].setdefault(WEIGHT_GROUPS[kind], {})[name] = weight
        elif kind == 'indicator':
            fields = {}
            if weight is not None:
                fields['weight'] = weight
            bench = _number(row.get('Benchmark'), f"benchmark for '{name}'")
            if bench is not None:
                fields['benchmark'] = bench
            if fields:
                overrides['indicators'][name] = fields
        else:
            logging.warning(f"Ignoring weight row of unknown type '{kind}'")
    return {k: v for k, v in overrides.items() if v}


def load_entities(path, sheet_name='Stakeholders'):
    entities = []
    for row in read_xlsx_sheet(path, sheet_name):
        if not row.get('ID'):
            continue
        ent = {key: row[col] for col, key in ENTITY_COLUMNS.items() if row.get(col) is not None}
        ent['id'] = str(ent['id']).strip()
        ent['contribution'] = {key: _number(row.get(col), col) or 0.0 for col, key in CONTRIBUTION_COLUMNS.items()}
        ent['impact'] = {key: _number(row.get(col), col) or 0.0 for col, key in IMPACT_COLUMNS.items()}
        for key in ('currentShare', 'need', 'sustainability'):
            if key in ent:
                ent[key] = _number(ent[key], key)
                if ent[key] is None:
                    del ent[key]
        entities.append(ent)
    return entities


def load_domain_workbook(path):
    """One workbook per analysis: Indicators (+ optional Stakeholders / Weights) sheets."""
    return {
        'indicators': load_indicator_snapshot(path),
        'entities': load_entities(path),
        'overrides': load_weight_overrides(path),
    }


def load_domain_overrides(domain):
    """Weight overrides from data/config/<domain>.xlsx; none when the file is absent."""
    path = os.path.join(DATA_DIR, 'config', f'{domain}.xlsx')
    if not os.path.exists(path):
        return {}
    overrides = load_weight_overrides(path)
    logging.info(f"Loaded overrides for '{domain}' from {path}")
    return overrides
