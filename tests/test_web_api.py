"""
Tests for the web API endpoints.
"""

import base64
import json

import pytest

from circuit_narrator.catalog import ComponentCatalog
from circuit_narrator.inference import ModelCache
from circuit_narrator.speech import segment
from circuit_narrator.web.app import create_app


def post_json(client, url, payload):
    return client.post(url, data=json.dumps(payload), content_type='application/json')


@pytest.fixture
def broken_client():
    """Client for an app whose models can never be loaded."""
    def broken(progress_callback=None):
        raise OSError("Failed to resolve huggingface.co")

    app = create_app(model_cache=ModelCache(classifier_factory=broken, synthesizer_factory=broken))
    app.config['TESTING'] = True
    return app.test_client()


class TestHealthAndCatalog:
    """Test the read-only endpoints."""

    def test_health(self, client):
        response = client.get('/api/health')
        data = response.get_json()

        assert response.status_code == 200
        assert data['status'] == 'ok'
        assert data['models'] == {'classifier_loaded': False, 'synthesizer_loaded': False}

    def test_list_components(self, client):
        data = client.get('/api/components').get_json()

        assert data['success'] is True
        assert len(data['components']) == 16
        assert data['components'][0] == {'id': 'resistor', 'name': 'Resistor', 'category': 'passive'}

    def test_list_by_category(self, client):
        data = client.get('/api/components?category=ACTIVE').get_json()
        assert [c['id'] for c in data['components']] == ['transistor', 'relay']

    def test_invalid_category(self, client):
        response = client.get('/api/components?category=magic')
        assert response.status_code == 400
        assert response.get_json()['error_code'] == 'INVALID_INPUT'

    def test_component_details(self, client):
        data = client.get('/api/components/resistor').get_json()

        assert data['success'] is True
        assert data['component']['id'] == 'resistor'
        assert {'label': 'Power Rating', 'value': '0.25 W'} in data['component']['specs']

    def test_unknown_component(self, client):
        response = client.get('/api/components/flux-capacitor')
        data = response.get_json()

        assert response.status_code == 404
        assert data['success'] is False
        assert data['error_code'] == 'COMPONENT_NOT_FOUND'


class TestIdentifyEndpoint:
    """Test POST /api/identify."""

    def test_identifies_component(self, client, fake_classifier, png_data_url):
        fake_classifier.scores = {'a photo of a red LED': 0.5, 'a photo of a relay module': 0.1}
        response = post_json(client, '/api/identify', {'image': png_data_url})
        data = response.get_json()

        assert response.status_code == 200
        assert data['success'] is True
        assert data['componentId'] == 'led'
        assert data['confidence'] == 50
        assert len(data['matches']) == 1

    def test_top_n(self, client, fake_classifier, png_data_url):
        fake_classifier.scores = {'a photo of a red LED': 0.5, 'a photo of a relay module': 0.1}
        data = post_json(client, '/api/identify', {'image': png_data_url, 'top_n': 3}).get_json()
        assert [m['id'] for m in data['matches']] == ['led', 'relay']

    def test_no_confident_match_is_not_an_error_status(self, client, fake_classifier, png_data_url):
        fake_classifier.scores = {
            'a photo of a red LED': 0.030,
            'a photo of a diode electronic component': 0.028,
        }
        response = post_json(client, '/api/identify', {'image': png_data_url})
        data = response.get_json()

        assert response.status_code == 200
        assert data['success'] is False
        assert data['error_code'] == 'NO_CONFIDENT_MATCH'
        assert [s['id'] for s in data['topScores']] == ['led', 'diode']
        assert data['topScores'][0]['confidence'] == 3

    def test_null_margin_disables_margin_clause(self, client, fake_classifier, png_data_url):
        fake_classifier.scores = {'a photo of a red LED': 0.04}

        assert post_json(client, '/api/identify', {'image': png_data_url}).get_json()['success'] is True
        data = post_json(client, '/api/identify', {'image': png_data_url, 'min_margin': None}).get_json()
        assert data['success'] is False

    def test_no_classifier_output(self, client, fake_classifier, png_data_url):
        fake_classifier.scores = {}
        data = post_json(client, '/api/identify', {'image': png_data_url}).get_json()

        assert data['success'] is False
        assert data['error_code'] == 'NO_CLASSIFIER_OUTPUT'
        assert data['topScores'] == []

    def test_missing_image(self, client, fake_classifier):
        response = post_json(client, '/api/identify', {})

        assert response.status_code == 400
        assert response.get_json()['error_code'] == 'MISSING_DATA'
        assert fake_classifier.calls == []

    def test_invalid_json(self, client):
        response = client.post('/api/identify', data='not json', content_type='application/json')
        assert response.status_code == 400
        assert response.get_json()['error_code'] == 'INVALID_JSON'

    def test_malformed_image(self, client):
        payload = base64.b64encode(b'not an image at all').decode()
        response = post_json(client, '/api/identify', {'image': payload})
        assert response.status_code == 400
        assert response.get_json()['error_code'] == 'INVALID_INPUT'

    def test_oversized_image(self, client):
        payload = base64.b64encode(b'\0' * (2 * 1024 * 1024 + 1)).decode()
        response = post_json(client, '/api/identify', {'image': payload})
        assert response.status_code == 413
        assert response.get_json()['error_code'] == 'FILE_TOO_LARGE'

    def test_invalid_threshold(self, client, png_data_url):
        response = post_json(client, '/api/identify', {'image': png_data_url, 'min_confidence': 7})
        assert response.status_code == 400

    def test_model_unavailable(self, broken_client, png_data_url):
        response = post_json(broken_client, '/api/identify', {'image': png_data_url})
        data = response.get_json()

        assert response.status_code == 503
        assert data['error_code'] == 'MODEL_UNAVAILABLE'
        assert data['action_required'] == 'retry'

    def test_classifier_failure(self, client, fake_classifier, png_data_url):
        fake_classifier.error = ConnectionError("backend unreachable")
        response = post_json(client, '/api/identify', {'image': png_data_url})
        assert response.status_code == 503


class TestSpeakEndpoint:
    """Test POST /api/speak."""

    def test_returns_wav(self, client, fake_synthesizer):
        response = post_json(client, '/api/speak', {'text': 'Hello there. Bye.'})

        assert response.status_code == 200
        assert response.mimetype == 'audio/wav'
        assert response.data[:4] == b'RIFF'
        assert len(response.data) == 44 + 2 * 2 * fake_synthesizer.samples_per_sentence
        assert float(response.headers['X-Audio-Duration']) == pytest.approx(0.02)

    def test_component_voice_description(self, client, fake_synthesizer):
        response = post_json(client, '/api/speak', {'componentId': 'led'})

        led = ComponentCatalog().get('led')
        assert response.status_code == 200
        assert fake_synthesizer.calls == segment(led.voice_description)

    def test_empty_text(self, client):
        response = post_json(client, '/api/speak', {'text': '   '})
        assert response.status_code == 400
        assert response.get_json()['error_code'] == 'INVALID_INPUT'

    def test_text_is_truncated(self, client, fake_synthesizer):
        text = "Word. " * 400
        post_json(client, '/api/speak', {'text': text})
        assert sum(len(s) for s in fake_synthesizer.calls) <= 1000

    def test_sentence_failure_fails_request(self, client, fake_synthesizer):
        fake_synthesizer.fail_on = {'Two.'}
        response = post_json(client, '/api/speak', {'text': 'One. Two. Three.'})
        data = response.get_json()

        assert response.status_code == 502
        assert data['error_code'] == 'SYNTHESIS_FAILED'
        assert data['sentence_index'] == 2

    def test_model_unavailable(self, broken_client):
        response = post_json(broken_client, '/api/speak', {'text': 'Hello.'})
        assert response.status_code == 503


class TestSpeakStreamEndpoint:
    """Test POST /api/speak-stream."""

    def read_lines(self, response):
        return [json.loads(line) for line in response.get_data(as_text=True).splitlines() if line]

    def test_streams_each_sentence(self, client):
        response = post_json(client, '/api/speak-stream', {'text': 'One. Two. Three.'})
        lines = self.read_lines(response)

        assert response.status_code == 200
        assert response.mimetype == 'application/x-ndjson'
        assert [(line['index'], line['total']) for line in lines[:-1]] == [(0, 3), (1, 3), (2, 3)]
        assert base64.b64decode(lines[0]['audio'])[:4] == b'RIFF'
        assert lines[-1] == {'done': True, 'failed': []}

    def test_failed_sentences_are_skipped(self, client, fake_synthesizer):
        fake_synthesizer.fail_on = {'Two.'}
        lines = self.read_lines(post_json(client, '/api/speak-stream', {'text': 'One. Two. Three.'}))

        assert [line['index'] for line in lines[:-1]] == [0, 2]
        assert lines[-1] == {'done': True, 'failed': [1]}

    def test_empty_text_fails_before_streaming(self, client):
        response = post_json(client, '/api/speak-stream', {'text': ''})
        assert response.status_code == 400

    def test_model_unavailable_fails_before_streaming(self, broken_client):
        response = post_json(broken_client, '/api/speak-stream', {'text': 'Hello.'})
        assert response.status_code == 503
