"""
Tests for the lazily constructed, shared model handles.
"""

import io
import threading
import time
from unittest import mock

import numpy as np
import pytest

from circuit_narrator.errors import ModelLoadTimeout, ModelUnavailable, OperationTimeout
from circuit_narrator.inference import LazyModel, ModelCache, call_with_timeout
from circuit_narrator.inference.backends import (
    TransformersClassifier, TransformersSynthesizer, flatten_predictions, progress_bar_class, resolve_device
)
from circuit_narrator.inference.model_cache import SerializedClassifier
from circuit_narrator.models import Prediction

from conftest import FakeClassifier, FakeSynthesizer, counting_factory


class TestLazyModel:
    """Test single-flight construction."""

    def test_constructs_once(self):
        calls = []
        model = LazyModel("thing", counting_factory("handle", calls))

        assert model.get() == "handle"
        assert model.get() == "handle"
        assert len(calls) == 1
        assert model.is_loaded

    def test_concurrent_first_callers_share_one_construction(self):
        calls = []
        release = threading.Event()
        model = LazyModel("thing", counting_factory("handle", calls, delay=release))

        results = []
        threads = [threading.Thread(target=lambda: results.append(model.get(timeout=5))) for _ in range(8)]
        for thread in threads:
            thread.start()
        time.sleep(0.05)
        release.set()
        for thread in threads:
            thread.join(5)

        assert results == ["handle"] * 8
        assert len(calls) == 1

    def test_timeout_keeps_construction_running(self):
        calls = []
        release = threading.Event()
        model = LazyModel("thing", counting_factory("handle", calls, delay=release))

        with pytest.raises(ModelLoadTimeout):
            model.get(timeout=0.05)

        release.set()
        assert model.get(timeout=5) == "handle"
        assert len(calls) == 1

    def test_load_timeout_is_model_unavailable(self):
        release = threading.Event()
        model = LazyModel("thing", counting_factory("handle", [], delay=release))

        with pytest.raises(ModelUnavailable):
            model.get(timeout=0.01)
        release.set()

    def test_failed_construction_can_be_retried(self):
        attempts = []

        def flaky(progress_callback=None):
            attempts.append(1)
            if len(attempts) == 1:
                raise OSError("connection reset")
            return "handle"

        model = LazyModel("thing", flaky)

        with pytest.raises(ModelUnavailable) as exc_info:
            model.get(timeout=5)
        assert exc_info.value.error_code == "MODEL_001"
        assert not model.is_loaded

        assert model.get(timeout=5) == "handle"
        assert len(attempts) == 2

    def test_factory_timeout_error_is_not_a_load_timeout(self):
        def slow_backend(progress_callback=None):
            raise TimeoutError("read timed out")

        with pytest.raises(ModelUnavailable) as exc_info:
            LazyModel("thing", slow_backend).get(timeout=5)
        assert not isinstance(exc_info.value, ModelLoadTimeout)

    def test_progress_is_forwarded(self):
        seen = []
        model = LazyModel("thing", counting_factory("handle", []))
        model.get(timeout=5, progress_callback=seen.append)
        assert seen == [50]

    def test_wrapper_applied_once(self):
        model = LazyModel("thing", counting_factory("handle", []), wrapper=lambda h: f"wrapped {h}")
        assert model.get() == "wrapped handle"
        assert model.get() == "wrapped handle"

    def test_reset_forces_reconstruction(self):
        calls = []
        model = LazyModel("thing", counting_factory("handle", calls))
        model.get()
        model.reset()
        model.get()
        assert len(calls) == 2


class TestModelCache:
    """Test the classifier/synthesizer cache."""

    def test_handles_are_shared(self, model_cache):
        assert model_cache.get_classifier() is model_cache.get_classifier()
        assert model_cache.get_synthesizer() is model_cache.get_synthesizer()

    def test_inference_is_serialized_by_default(self, model_cache):
        assert isinstance(model_cache.get_classifier(), SerializedClassifier)

    def test_unserialized_returns_raw_handle(self):
        classifier = FakeClassifier()
        cache = ModelCache(classifier_factory=lambda progress_callback=None: classifier,
                           synthesizer_factory=lambda progress_callback=None: FakeSynthesizer(),
                           serialize_inference=False)
        assert cache.get_classifier() is classifier

    def test_status_and_preload(self, model_cache):
        assert model_cache.status() == {'classifier_loaded': False, 'synthesizer_loaded': False}
        model_cache.preload(timeout=5)
        assert model_cache.status() == {'classifier_loaded': True, 'synthesizer_loaded': True}

    def test_preload_async_starts_loading(self):
        calls = []
        cache = ModelCache(classifier_factory=counting_factory(FakeClassifier(), calls),
                           synthesizer_factory=counting_factory(FakeSynthesizer(), calls))
        cache.preload_async()
        cache.get_classifier(timeout=5)
        cache.get_synthesizer(timeout=5)
        assert len(calls) == 2

    def test_serialized_classifier_passes_through(self):
        classifier = FakeClassifier({'a': 0.5})
        wrapped = SerializedClassifier(classifier)
        assert wrapped.classify("image", ['a']) == [Prediction('a', 0.5)]


class TestCallWithTimeout:
    """Test the overall deadline helper."""

    def test_returns_result(self):
        assert call_with_timeout("adding", 5, lambda a, b: a + b, 2, b=3) == 5

    def test_no_timeout_calls_directly(self):
        assert call_with_timeout("adding", None, lambda: threading.current_thread().name) == \
            threading.current_thread().name

    def test_times_out(self):
        release = threading.Event()
        with pytest.raises(OperationTimeout) as exc_info:
            call_with_timeout("identification", 0.05, release.wait, 5)
        release.set()
        assert exc_info.value.error_code == "TIMEOUT_001"

    def test_errors_propagate(self):
        def boom():
            raise ValueError("bad")

        with pytest.raises(ValueError):
            call_with_timeout("boom", 5, boom)

    def test_abandoned_calls_do_not_delay_later_calls(self):
        release = threading.Event()
        timed_out = []

        def abandon():
            try:
                call_with_timeout("slow", 0.05, release.wait, 5)
            except OperationTimeout:
                timed_out.append(1)

        callers = [threading.Thread(target=abandon) for _ in range(5)]
        for caller in callers:
            caller.start()
        for caller in callers:
            caller.join(2)

        try:
            assert len(timed_out) == 5
            assert call_with_timeout("instant", 0.5, lambda: "ok") == "ok"
        finally:
            release.set()

    def test_timeout_error_from_func_is_not_an_operation_timeout(self):
        def expired():
            raise TimeoutError("socket read timed out")

        with pytest.raises(TimeoutError) as exc_info:
            call_with_timeout("download", 5, expired)
        assert not isinstance(exc_info.value, OperationTimeout)


class TestFlattenPredictions:
    """Test normalization of pipeline output."""

    def test_flat_list(self):
        raw = [{'label': 'a', 'score': 0.7}, {'label': 'b', 'score': 0.3}]
        assert flatten_predictions(raw) == [Prediction('a', 0.7), Prediction('b', 0.3)]

    def test_nested_list_and_junk(self):
        raw = [[{'label': 'a', 'score': 0.7}], {'label': 'b', 'score': 'high'}, 'junk', {'label': 'c'}]
        assert flatten_predictions(raw) == [Prediction('a', 0.7)]

    def test_non_list(self):
        assert flatten_predictions(None) == []


class TestTransformersBackends:
    """Test the pipeline adapters without loading real models."""

    def test_classifier_adapts_pipeline_output(self):
        pipe = mock.MagicMock(return_value=[{'label': 'a photo of a relay module', 'score': 0.8}])
        classifier = TransformersClassifier(pipe)

        assert classifier.classify("image", ['a photo of a relay module']) == [
            Prediction('a photo of a relay module', 0.8)
        ]
        pipe.assert_called_once_with("image", candidate_labels=['a photo of a relay module'])

    def test_synthesizer_flattens_audio(self):
        pipe = mock.MagicMock(return_value={'audio': np.zeros((1, 320)), 'sampling_rate': 16000})
        waveform = TransformersSynthesizer(pipe).synthesize("Hello.")

        assert waveform.samples.shape == (320,)
        assert waveform.samples.dtype == np.float32
        assert waveform.sample_rate == 16000

    def test_default_factories_are_transformers_loaders(self):
        with mock.patch.object(TransformersClassifier, "load", return_value=FakeClassifier()) as load:
            cache = ModelCache(synthesizer_factory=lambda progress_callback=None: FakeSynthesizer())
            assert not load.called
            cache.get_classifier(timeout=5)

        load.assert_called_once()

    def test_explicit_device_skips_detection(self):
        assert resolve_device("cpu") == "cpu"

    def test_progress_bar_reports_percentages(self):
        seen = []
        bar = progress_bar_class(seen.append)(total=4, file=io.StringIO())
        bar.update(1)
        bar.update(1)
        bar.update(2)
        bar.close()

        assert seen == [25, 50, 100]

    def test_load_forwards_download_progress(self):
        seen = []

        def fake_download(model_name, allow_patterns=None, tqdm_class=None):
            bar = tqdm_class(total=2, file=io.StringIO())
            bar.update(1)
            bar.update(1)
            bar.close()
            return "/models/clip"

        with mock.patch("huggingface_hub.snapshot_download", side_effect=fake_download) as download, \
                mock.patch("transformers.pipeline") as pipeline:
            TransformersClassifier.load(progress_callback=seen.append, model_name="openai/clip", device="cpu")

        assert seen[0] == 0
        assert 50 in seen
        assert seen[-1] == 100
        assert download.call_args.args == ("openai/clip",)
        pipeline.assert_called_once_with("zero-shot-image-classification", model="/models/clip", device="cpu")

    def test_load_without_callback_skips_progress_bar(self):
        with mock.patch("huggingface_hub.snapshot_download", return_value="/models/mms") as download, \
                mock.patch("transformers.pipeline") as pipeline:
            TransformersSynthesizer.load(model_name="facebook/mms-tts-eng", device="cpu")

        assert 'tqdm_class' not in download.call_args.kwargs
        pipeline.assert_called_once_with("text-to-speech", model="/models/mms", device="cpu")
