"""
Pytest configuration and shared fixtures.

Inference collaborators are replaced with in-memory fakes injected into
the ModelCache, so no test downloads or runs a real model.
"""

import base64
import io
import threading
from typing import Callable, Dict, List, Optional

import numpy as np
import pytest
from hypothesis import settings, Verbosity
from PIL import Image

from circuit_narrator.errors import error_handler
from circuit_narrator.inference import ModelCache
from circuit_narrator.models import Prediction, Waveform


# Configure Hypothesis for property-based testing
settings.register_profile("narrator",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None
)
settings.load_profile("narrator")

# transformers exposes `pipeline` lazily; resolve it up front so that
# mock.patch("transformers.pipeline") is not overwritten by the lazy
# loader on first access.
import transformers  # noqa: E402
transformers.pipeline


def pytest_configure(config):
    config.addinivalue_line("markers", "property: Hypothesis property-based test")


class FakeClassifier:
    """Returns canned (label, score) pairs and records every call."""

    def __init__(self, scores: Optional[Dict[str, float]] = None, error: Exception = None):
        self.scores = scores or {}
        self.error = error
        self.calls: List[List[str]] = []

    def classify(self, image, candidate_labels: List[str]) -> List[Prediction]:
        self.calls.append(list(candidate_labels))
        if self.error is not None:
            raise self.error
        return [Prediction(label=label, score=score) for label, score in self.scores.items()]


class FakeSynthesizer:
    """
    Produces a short constant waveform per sentence.

    Sentences listed in `fail_on` raise RuntimeError instead.
    """

    def __init__(self, sample_rate: int = 16000, samples_per_sentence: int = 160,
                 fail_on: Optional[List[str]] = None):
        self.sample_rate = sample_rate
        self.samples_per_sentence = samples_per_sentence
        self.fail_on = set(fail_on or [])
        self.calls: List[str] = []

    def synthesize(self, text: str) -> Waveform:
        self.calls.append(text)
        if text in self.fail_on:
            raise RuntimeError(f"backend rejected: {text}")
        value = (len(self.calls) % 10) / 10.0
        samples = np.full(self.samples_per_sentence, value, dtype=np.float32)
        return Waveform(samples=samples, sample_rate=self.sample_rate)


def counting_factory(handle, calls: List[int], delay: Optional[threading.Event] = None) -> Callable:
    """Factory that records each construction and optionally blocks until released."""
    def factory(progress_callback=None):
        calls.append(1)
        if progress_callback:
            progress_callback(50)
        if delay is not None:
            delay.wait(5)
        return handle
    return factory


@pytest.fixture(autouse=True)
def clear_error_handler():
    """Keep the global error handler from leaking state between tests."""
    error_handler.clear_errors()
    yield
    error_handler.clear_errors()


@pytest.fixture
def fake_classifier():
    return FakeClassifier()


@pytest.fixture
def fake_synthesizer():
    return FakeSynthesizer()


@pytest.fixture
def model_cache(fake_classifier, fake_synthesizer):
    """ModelCache wired to the fake collaborators."""
    return ModelCache(
        classifier_factory=lambda progress_callback=None: fake_classifier,
        synthesizer_factory=lambda progress_callback=None: fake_synthesizer
    )


@pytest.fixture
def png_bytes():
    """A tiny valid PNG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), (200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_data_url(png_bytes):
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def app(model_cache):
    """Flask app wired to the fake collaborators."""
    from circuit_narrator.web.app import create_app
    app = create_app(model_cache=model_cache)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
