#!/usr/bin/env python3
"""
Flask JSON API for the Ad Trace Analyzer
Accepts an uploaded artifact file and returns the analysis and audit results.
"""

from flask import Flask, request, jsonify
from werkzeug.utils import secure_filename
import os
import tempfile
from ad_trace_analyzer import AdTraceAnalyzer, AnalysisConfig
from ad_trace_analyzer.audits import run_audits
from ad_trace_analyzer.web import prepare_results

app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = 500 * 1024 * 1024
app.config['UPLOAD_FOLDER'] = tempfile.gettempdir()

ALLOWED_EXTENSIONS = {'json'}

def allowed_file(filename):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def config_from_form(form) -> AnalysisConfig:
    """
    Build an AnalysisConfig from optional form fields:
      - 'max_concurrent_requests': integer (default: 6)
      - 'use_captured_durations': 'true'|'false' (default: 'false')
      - 'critical_path_mode': 'gating'|'ancestry' (default: 'gating')
    Fields left out keep the AnalysisConfig defaults.
    Raises ValueError on invalid values.
    """
    values = {}
    if form.get('max_concurrent_requests'):
        values['max_concurrent_requests'] = int(form['max_concurrent_requests'])
    if form.get('use_captured_durations'):
        values['use_captured_durations'] = form['use_captured_durations'].lower() == 'true'
    if form.get('critical_path_mode'):
        values['critical_path_mode'] = form['critical_path_mode']
    return AnalysisConfig.from_dict(values)


@app.route('/api/analyze', methods=['POST'])
def analyze_api():
    """
    API endpoint to analyze an artifact file.
    Accepts: multipart/form-data with a 'file' field (artifact JSON) and the
    optional fields read by config_from_form.
    Returns: JSON with summary, audits and per-request timings
    """
    if 'file' not in request.files:
        return jsonify({'error': 'No file provided'}), 400

    file = request.files['file']

    if not file.filename:
        return jsonify({'error': 'No file selected'}), 400

    if not allowed_file(file.filename):
        return jsonify({'error': 'Invalid file type. Only JSON files are allowed.'}), 400

    try:
        config = config_from_form(request.form)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    filepath = None
    try:
        # One temp file per request, so equal upload names never collide
        with tempfile.NamedTemporaryFile(
            suffix='_' + secure_filename(file.filename),
            dir=app.config['UPLOAD_FOLDER'],
            delete=False
        ) as upload:
            filepath = upload.name
            file.save(upload)

        analyzer = AdTraceAnalyzer(config=config)
        artifacts, analysis = analyzer.process_artifact_file(filepath)
        audits = run_audits(artifacts, analyzer)

        return jsonify(prepare_results(analyzer, analysis, audits))

    except Exception as e:
        return jsonify({'error': str(e)}), 500

    finally:
        if filepath and os.path.exists(filepath):
            os.remove(filepath)


if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5001)
