"""
Sustainability Decision-Support — Flask API Server
Thin JSON surface over the engines. An engine is built per request from the
domain preset plus overrides; the rolling history is the only shared state.
"""
import io
import os
import logging
import traceback
from flask import Flask, jsonify, request, send_file
from engines.allocator import optimize
from engines.config import merge_overrides
from engines.data_loader import load_domain_overrides
from engines.domains import DOMAINS, get_domain_config, list_domains
from engines.engine import DecisionEngine
from engines.errors import (ConfigurationError, EngineError, InfeasibleConstraintsError,
                            NumericDegeneracyError)
from engines.history import HistoryCache
from engines.simulator import SCENARIOS, simulate_many

app = Flask(__name__)

HISTORY = HistoryCache(int(os.environ.get('ENGINE_HISTORY_WINDOW', 24)))

ERROR_STATUS = [
    (InfeasibleConstraintsError, 422),
    (ConfigurationError, 400),
    (NumericDegeneracyError, 400),
]


def _body():
    return request.get_json(force=True, silent=True) or {}


def _engine(domain, request_overrides=None):
    cfg = get_domain_config(domain)
    for ov in (load_domain_overrides(domain), request_overrides):
        if ov:
            cfg = merge_overrides(cfg, ov)
    return DecisionEngine(cfg, history=HISTORY)


def _unknown_domain(domain):
    return jsonify({'status': 'error', 'type': 'UnknownDomain',
                    'message': f"Unknown domain '{domain}'", 'known': list(DOMAINS)}), 404


@app.errorhandler(EngineError)
def _engine_error(e):
    status = next((s for cls, s in ERROR_STATUS if isinstance(e, cls)), 500)
    logging.warning(f"{type(e).__name__}: {e}")
    return jsonify({'status': 'error', 'type': type(e).__name__, 'message': str(e)}), status


@app.errorhandler(ValueError)
def _bad_input(e):
    return jsonify({'status': 'error', 'type': 'ValueError', 'message': str(e)}), 400


# ══════════════════════════════════════════════════════════════
#  ROUTES
# ══════════════════════════════════════════════════════════════

@app.route('/api/domains')
def api_domains():
    return jsonify({'domains': list_domains()})


@app.route('/api/domains/<domain>')
def api_domain_config(domain):
    if domain not in DOMAINS:
        return _unknown_domain(domain)
    return jsonify(get_domain_config(domain))


@app.route('/api/analyze/<domain>', methods=['POST'])
def api_analyze(domain):
    """Full analysis for one domain. Body is the domain state bundle,
    with an optional 'overrides' object (weights, thresholds, indicators)."""
    if domain not in DOMAINS:
        return _unknown_domain(domain)
    body = _body()
    report = _engine(domain, body.pop('overrides', None)).analyze(body)
    return jsonify(report)


@app.route('/api/simulate', methods=['POST'])
def api_simulate():
    body = _body()
    if 'baseline' not in body:
        return jsonify({'status': 'error', 'message': 'baseline is required'}), 400
    names = body.get('scenarios') or list(SCENARIOS)
    return jsonify({'trajectories': simulate_many(float(body['baseline']), int(body.get('horizon', 10)), names)})


@app.route('/api/optimize', methods=['POST'])
def api_optimize():
    body = _body()
    dist = optimize(body.get('entities', []), float(body.get('totalResource', 0)),
                    body.get('constraints'), mode=body.get('mode', 'closed_form'),
                    seed=int(body.get('seed', 0)),
                    population_size=int(body.get('populationSize', 50)),
                    generations=int(body.get('generations', 100)))
    return jsonify(dist)


@app.route('/api/history/<domain_id>')
def api_history(domain_id):
    return jsonify({'domainId': domain_id, 'window': HISTORY.window_of(domain_id),
                    'snapshots': HISTORY.snapshots(domain_id)})


@app.route('/api/history/<domain_id>/clear', methods=['POST'])
def api_history_clear(domain_id):
    HISTORY.clear(domain_id)
    return jsonify({'status': 'ok', 'domainId': domain_id})


@app.route('/api/export/<domain>', methods=['POST'])
def api_export(domain):
    """Run an analysis and export the report to Excel."""
    if domain not in DOMAINS:
        return _unknown_domain(domain)
    body = _body()
    report = _engine(domain, body.pop('overrides', None)).analyze(body)
    try:
        wb = build_report_workbook(report)
        buf = io.BytesIO()
        wb.save(buf)
        buf.seek(0)
        return send_file(buf, as_attachment=True, download_name=f'{domain}_analysis.xlsx',
                         mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet')
    except Exception as e:
        traceback.print_exc()
        return jsonify({'status': 'error', 'message': str(e)}), 500


# ══════════════════════════════════════════════════════════════
#  EXPORT
# ══════════════════════════════════════════════════════════════

def build_report_workbook(report):
    import openpyxl
    from openpyxl.styles import Font, PatternFill, Alignment, Border, Side

    wb = openpyxl.Workbook()
    hf = Font(bold=True, color='FFFFFF', size=11)
    hfill = PatternFill(start_color='1F4E3D', end_color='1F4E3D', fill_type='solid')
    tb = Border(left=Side(style='thin'), right=Side(style='thin'),
                top=Side(style='thin'), bottom=Side(style='thin'))

    def ws_write(ws, headers, rows):
        for c, h in enumerate(headers, 1):
            cell = ws.cell(row=1, column=c, value=h)
            cell.font = hf; cell.fill = hfill; cell.alignment = Alignment(horizontal='center'); cell.border = tb
        for r, row in enumerate(rows, 2):
            for c, val in enumerate(row, 1):
                cell = ws.cell(row=r, column=c, value=val); cell.border = tb
        for col in ws.columns:
            ml = max(len(str(cell.value or '')) for cell in col)
            ws.column_dimensions[col[0].column_letter].width = min(ml + 2, 50)

    comp = report['compositeScore']

    ws = wb.active; ws.title = 'Summary'
    ws_write(ws, ['Metric', 'Value'], [
        ['Domain', report['domain']],
        ['Domain ID', report['domainId']],
        ['Generated At', report['generatedAt']],
        ['Overall Score', comp['overall']],
        ['Rating', report['rating']],
        ['Weight Basis', comp['basis']],
        ['Indicators Scored', comp['indicatorCount']],
        ['Recommendations', len(report['recommendations'])],
        ['Warnings', len(report['warnings'])],
    ])

    ws_write(wb.create_sheet('Indicators'),
             ['Indicator', 'Component', 'Dimension', 'Raw', 'Normalized', 'Benchmark', 'Gap', 'Trend', 'Data Quality'],
             [[i['name'], i['component'], i['dimension'], i['rawValue'], i['normalizedValue'],
               i['normalizedBenchmark'], i['gap'], i['trend'], i['dataQuality']]
              for i in report['indicators']])

    ws_write(wb.create_sheet('Scores'), ['View', 'Group', 'Score', 'Weight'],
             [['component', k, v, comp['componentWeights'].get(k, 0)] for k, v in comp['componentScores'].items()]
             + [['dimension', k, v, comp['dimensionWeights'].get(k, 0)] for k, v in comp['dimensionScores'].items()])

    ws_write(wb.create_sheet('Trajectories'), ['Scenario', 'Offset', 'Value', 'Confidence', 'Lower', 'Upper'],
             [[t['scenario'], p['timeOffset'], p['value'], p['confidence'], p['lower'], p['upper']]
              for t in report['trajectories'] for p in t['points']])

    ws_write(wb.create_sheet('Stress Tests'),
             ['Scenario', 'Type', 'Immediate', 'Short Term', 'Long Term', 'Recovery (months)', 'Recovery Cost'],
             [[s['scenario'], s['type'], s['impact']['immediateImpact'], s['impact']['shortTermImpact'],
               s['impact']['longTermImpact'], s['recovery']['time'], s['recovery']['cost']]
              for s in report['stressTests']])

    dist = report.get('distribution') or {}
    if dist.get('allocations'):
        ws_write(wb.create_sheet('Distribution'), ['Entity', 'Allocation', 'Share', 'Fair Share'],
                 [[k, round(v, 2), dist['shares'].get(k), dist.get('fairShares', {}).get(k)]
                  for k, v in dist['allocations'].items()])

    ws_write(wb.create_sheet('Recommendations'),
             ['ID', 'Priority', 'Description', 'Impact', 'Cost', 'Timeframe', 'Feasibility', 'Rationale'],
             [[r['id'], r['priority'], r['description'], r['estimatedImpact'], r['cost'],
               r['timeframe'], r['feasibility'], r['rationale']]
              for r in report['recommendations']])

    ws_write(wb.create_sheet('Warnings'), ['Type', 'Message'],
             [[w['type'], w['message']] for w in report['warnings']])
    return wb


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(message)s')
    app.run(debug=False, host='0.0.0.0', port=int(os.environ.get('PORT', 5000)))
