"""Integration tests for the analyze API endpoint."""

import io
import json
import os
import sys

import pytest

# Import the Flask app
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from app import app, config_from_form
from ad_trace_analyzer import AdTraceAnalyzer, AnalysisConfig


@pytest.fixture
def client():
    """Create a test client for the Flask app."""
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


def upload(client, payload, filename='artifacts.json', **form):
    data = {'file': (io.BytesIO(json.dumps(payload).encode('utf-8')), filename)}
    data.update(form)
    return client.post('/api/analyze', data=data, content_type='multipart/form-data')


class TestAnalyzeApi:
    """Tests for POST /api/analyze."""

    def test_analyze_success(self, client, ad_page_artifacts):
        response = upload(client, ad_page_artifacts)

        assert response.status_code == 200
        data = response.get_json()
        assert data['summary']['total_requests'] == 5
        assert data['audits']['gpt-bids-parallel']['score'] == 0.0
        assert data['audits']['first-ad-paint']['display_value'] == '3.5 s'

    def test_config_fields(self, client, ad_page_artifacts):
        response = upload(client, ad_page_artifacts,
                          max_concurrent_requests='2',
                          use_captured_durations='true',
                          critical_path_mode='ancestry')

        assert response.status_code == 200
        config = response.get_json()['config']
        assert config['max_concurrent_requests'] == 2
        assert config['use_captured_durations'] is True
        assert config['critical_path_mode'] == 'ancestry'

    def test_no_file(self, client):
        response = client.post('/api/analyze', data={}, content_type='multipart/form-data')
        assert response.status_code == 400
        assert response.get_json()['error'] == 'No file provided'

    def test_wrong_extension(self, client, ad_page_artifacts):
        response = upload(client, ad_page_artifacts, filename='artifacts.txt')
        assert response.status_code == 400
        assert 'Invalid file type' in response.get_json()['error']

    def test_invalid_mode(self, client, ad_page_artifacts):
        response = upload(client, ad_page_artifacts, critical_path_mode='fastest')
        assert response.status_code == 400
        assert 'critical_path_mode' in response.get_json()['error']

    def test_invalid_concurrency(self, client, ad_page_artifacts):
        response = upload(client, ad_page_artifacts, max_concurrent_requests='many')
        assert response.status_code == 400

    def test_uploads_with_same_name_get_own_files(self, client, ad_page_artifacts, monkeypatch):
        """Test that every upload is analyzed from its own temp file, removed afterwards."""
        seen_paths = []
        original = AdTraceAnalyzer.process_artifact_file

        def recording(analyzer, file_path):
            seen_paths.append(file_path)
            assert os.path.exists(file_path)
            return original(analyzer, file_path)

        monkeypatch.setattr(AdTraceAnalyzer, 'process_artifact_file', recording)

        assert upload(client, ad_page_artifacts).status_code == 200
        assert upload(client, ad_page_artifacts).status_code == 200

        assert len(seen_paths) == 2
        assert seen_paths[0] != seen_paths[1]
        assert all(path.endswith('_artifacts.json') for path in seen_paths)
        assert not any(os.path.exists(path) for path in seen_paths)

    def test_invalid_json(self, client):
        data = {'file': (io.BytesIO(b'{"requests": [ not json'), 'artifacts.json')}
        response = client.post('/api/analyze', data=data, content_type='multipart/form-data')
        assert response.status_code == 500
        assert 'error' in response.get_json()


class TestConfigFromForm:
    """Tests for building the analysis config from form fields."""

    def test_missing_fields_keep_defaults(self):
        config = config_from_form({})
        assert config.to_dict() == AnalysisConfig().to_dict()

    def test_fields_override_defaults(self):
        config = config_from_form({'max_concurrent_requests': '3', 'use_captured_durations': 'TRUE'})
        assert config.max_concurrent_requests == 3
        assert config.use_captured_durations is True
        assert config.critical_path_mode == 'gating'

    def test_invalid_mode_raises(self):
        with pytest.raises(ValueError):
            config_from_form({'critical_path_mode': 'fastest'})

    def test_from_dict_ignores_unknown_keys(self):
        config = AnalysisConfig.from_dict({'rtt_ms': 50, 'theme': 'dark'})
        assert config.rtt_ms == 50
        assert config.max_concurrent_requests == 6
