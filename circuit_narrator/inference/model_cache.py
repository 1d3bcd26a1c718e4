"""
Lazily constructed, shared inference model handles.

Each model is built at most once per cache. Concurrent first callers
share one pending construction. A failed construction is forgotten so
the next call retries it; a caller that stops waiting leaves the
construction running for the next caller.
"""

import logging
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, List, Optional, Protocol

from ..config import Config
from ..errors import (
    ModelLoadTimeout, ModelUnavailable, NarratorError, OperationTimeout, error_handler
)
from ..models import Prediction, Waveform


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class Classifier(Protocol):
    """Zero-shot image classifier collaborator."""

    def classify(self, image: Any, candidate_labels: List[str]) -> List[Prediction]:
        ...


class Synthesizer(Protocol):
    """Text-to-speech collaborator."""

    def synthesize(self, text: str) -> Waveform:
        ...


class SerializedClassifier:
    """Classifier wrapper that lets one invocation run at a time."""

    def __init__(self, classifier: Classifier):
        self._classifier = classifier
        self._lock = threading.Lock()

    def classify(self, image: Any, candidate_labels: List[str]) -> List[Prediction]:
        with self._lock:
            return self._classifier.classify(image, candidate_labels)


class SerializedSynthesizer:
    """Synthesizer wrapper that lets one invocation run at a time."""

    def __init__(self, synthesizer: Synthesizer):
        self._synthesizer = synthesizer
        self._lock = threading.Lock()

    def synthesize(self, text: str) -> Waveform:
        with self._lock:
            return self._synthesizer.synthesize(text)


class LazyModel:
    """
    Single-flight holder for one expensive model handle.

    Construction runs on a dedicated thread and publishes its outcome
    through a shared Future, so every waiter (including the one that
    triggered the load) can apply its own timeout.
    """

    def __init__(self, name: str, factory: Callable[[Optional[ProgressCallback]], Any],
                 wrapper: Optional[Callable[[Any], Any]] = None):
        """
        Initialize a lazy model holder.

        Args:
            name: Model name used in logs and errors
            factory: Builds the handle; receives an optional download progress callback
            wrapper: Optional decorator applied once to the built handle
        """
        self.name = name
        self._factory = factory
        self._wrapper = wrapper
        self._lock = threading.Lock()
        self._future: Optional[Future] = None
        self._progress_callbacks: List[ProgressCallback] = []

    @property
    def is_loaded(self) -> bool:
        future = self._future
        return future is not None and future.done() and future.exception() is None

    def get(self, timeout: Optional[float] = None,
            progress_callback: Optional[ProgressCallback] = None) -> Any:
        """
        Return the model handle, constructing it on first use.

        Args:
            timeout: Seconds to wait for an in-flight construction (None waits forever)
            progress_callback: Receives download percentages while loading

        Raises:
            ModelLoadTimeout: If the handle was not ready within timeout
            ModelUnavailable: If construction failed
        """
        future = self.start(progress_callback)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError as e:
            if future.done():
                # the factory itself raised a TimeoutError
                raise ModelUnavailable(error_handler.handle_model_load_error(e, self.name)) from e
            logger.warning(f"Timed out after {timeout}s waiting for {self.name} to load")
            raise ModelLoadTimeout(error_handler.handle_model_load_timeout(self.name, timeout))
        except NarratorError:
            raise
        except Exception as e:
            raise ModelUnavailable(error_handler.handle_model_load_error(e, self.name)) from e

    def start(self, progress_callback: Optional[ProgressCallback] = None) -> Future:
        """Start construction if nothing is cached or in flight; return the shared future."""
        with self._lock:
            future = self._future
            if future is None:
                future = Future()
                self._future = future
                if progress_callback is not None:
                    self._progress_callbacks.append(progress_callback)
                thread = threading.Thread(
                    target=self._construct,
                    args=(future,),
                    name=f"load-{self.name}",
                    daemon=True
                )
                thread.start()
            elif progress_callback is not None and not future.done():
                self._progress_callbacks.append(progress_callback)
        return future

    def reset(self) -> None:
        """Forget the cached handle; the next call constructs a new one."""
        with self._lock:
            self._future = None

    def _report_progress(self, pct: int) -> None:
        for callback in list(self._progress_callbacks):
            try:
                callback(pct)
            except Exception as e:
                logger.debug(f"Progress callback for {self.name} failed: {e}")

    def _construct(self, future: Future) -> None:
        if not future.set_running_or_notify_cancel():
            return

        logger.info(f"Loading {self.name} (first use)...")
        try:
            handle = self._factory(self._report_progress)
            if self._wrapper is not None:
                handle = self._wrapper(handle)
        except Exception as e:
            logger.error(f"Failed to load {self.name}: {e}")
            with self._lock:
                if self._future is future:
                    self._future = None
                self._progress_callbacks.clear()
            future.set_exception(e)
            return

        with self._lock:
            self._progress_callbacks.clear()
        logger.info(f"{self.name} loaded successfully")
        future.set_result(handle)


class ModelCache:
    """
    Owns the classifier and synthesizer handles for one process or session.

    Constructed explicitly by the composition root (CLI or web app) and
    passed to the services that need it; tests inject in-memory factories.
    """

    def __init__(self,
                 classifier_factory: Optional[Callable[[Optional[ProgressCallback]], Classifier]] = None,
                 synthesizer_factory: Optional[Callable[[Optional[ProgressCallback]], Synthesizer]] = None,
                 serialize_inference: bool = Config.SERIALIZE_INFERENCE,
                 load_timeout: Optional[float] = Config.MODEL_LOAD_TIMEOUT):
        """
        Initialize the model cache.

        Args:
            classifier_factory: Builds the classifier; defaults to the transformers backend
            synthesizer_factory: Builds the synthesizer; defaults to the transformers backend
            serialize_inference: Wrap handles so invocations run one at a time
            load_timeout: Default wait for model construction (None waits forever)
        """
        if classifier_factory is None or synthesizer_factory is None:
            from .backends import TransformersClassifier, TransformersSynthesizer
            if classifier_factory is None:
                classifier_factory = TransformersClassifier.load
            if synthesizer_factory is None:
                synthesizer_factory = TransformersSynthesizer.load

        self.load_timeout = load_timeout
        self._classifier = LazyModel(
            "classifier",
            classifier_factory,
            SerializedClassifier if serialize_inference else None
        )
        self._synthesizer = LazyModel(
            "synthesizer",
            synthesizer_factory,
            SerializedSynthesizer if serialize_inference else None
        )

    def get_classifier(self, timeout: Optional[float] = None,
                       progress_callback: Optional[ProgressCallback] = None) -> Classifier:
        """Return the shared classifier, blocking until it is ready on first use."""
        return self._classifier.get(self._timeout(timeout), progress_callback)

    def get_synthesizer(self, timeout: Optional[float] = None,
                        progress_callback: Optional[ProgressCallback] = None) -> Synthesizer:
        """Return the shared synthesizer, blocking until it is ready on first use."""
        return self._synthesizer.get(self._timeout(timeout), progress_callback)

    def preload(self, classifier: bool = True, synthesizer: bool = True,
                timeout: Optional[float] = None) -> None:
        """Load the requested models up front."""
        if classifier:
            self.get_classifier(timeout)
        if synthesizer:
            self.get_synthesizer(timeout)

    def preload_async(self, classifier: bool = True, synthesizer: bool = True) -> None:
        """Start loading the requested models without waiting for them."""
        if classifier:
            self._classifier.start()
        if synthesizer:
            self._synthesizer.start()

    def status(self) -> dict:
        return {
            'classifier_loaded': self._classifier.is_loaded,
            'synthesizer_loaded': self._synthesizer.is_loaded,
        }

    def reset(self) -> None:
        """Drop both handles."""
        self._classifier.reset()
        self._synthesizer.reset()

    def _timeout(self, timeout: Optional[float]) -> Optional[float]:
        return self.load_timeout if timeout is None else timeout


def call_with_timeout(operation: str, timeout: Optional[float], func: Callable, *args, **kwargs):
    """
    Run func with an overall deadline.

    Each call runs on its own daemon thread, so the deadline only covers
    this call's work. After a timeout the work keeps running in the
    background and model construction started by it is never thrown away.

    Raises:
        OperationTimeout: If func did not finish within timeout seconds
    """
    if timeout is None:
        return func(*args, **kwargs)

    future: Future = Future()

    def run():
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(func(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)

    threading.Thread(target=run, name=f"call-{operation}", daemon=True).start()
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError:
        if future.done():
            # func itself raised a TimeoutError
            raise
        logger.warning(f"{operation} did not finish within {timeout}s")
        raise OperationTimeout(error_handler.handle_operation_timeout(operation, timeout))
