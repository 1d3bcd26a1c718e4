"""
Hugging Face transformers backends for the inference collaborators.

Both models are loaded through `transformers.pipeline`; heavy imports
happen inside the loaders so the rest of the package can be imported
(and tested) without torch installed.
"""

import logging
from typing import Any, Callable, Iterable, List, Optional

import numpy as np
from tqdm.auto import tqdm

from ..config import Config
from ..models import Prediction, Waveform


logger = logging.getLogger(__name__)

# weights in PyTorch formats plus configs, tokenizers and vocabularies
MODEL_FILE_PATTERNS = ["*.json", "*.txt", "*.model", "*.safetensors", "*.bin"]


def resolve_device(device: str = Config.DEVICE) -> str:
    """Map the configured device to a torch device string."""
    if device != "auto":
        return device
    import torch
    return "cuda" if torch.cuda.is_available() else "cpu"


def progress_bar_class(progress_callback: Callable[[int], None]) -> type:
    """
    Build a tqdm class that reports its completion percentage to progress_callback.

    huggingface_hub drives the bar once per downloaded file, so the
    percentage counts files rather than bytes.
    """
    class ForwardingProgress(tqdm):
        def update(self, n=1):
            displayed = super().update(n)
            if self.total:
                progress_callback(min(100, int(self.n * 100 / self.total)))
            return displayed

    return ForwardingProgress


def download_model(model_name: str, progress_callback: Optional[Callable[[int], None]] = None) -> str:
    """
    Fetch a model snapshot into the Hugging Face cache and return its local path.

    Files already cached are not downloaded again.
    """
    from huggingface_hub import snapshot_download

    kwargs = {'allow_patterns': MODEL_FILE_PATTERNS}
    if progress_callback:
        kwargs['tqdm_class'] = progress_bar_class(progress_callback)
    logger.info(f"Fetching {model_name}...")
    return snapshot_download(model_name, **kwargs)


def flatten_predictions(raw: Any) -> List[Prediction]:
    """
    Normalize pipeline output to a flat list of predictions.

    Zero-shot pipelines return a list of {'label', 'score'} dicts, or a
    nested list of them for batched input. Anything else is dropped.
    """
    predictions: List[Prediction] = []

    def _walk(items: Iterable[Any]) -> None:
        for item in items:
            if isinstance(item, (list, tuple)):
                _walk(item)
            elif isinstance(item, dict) and 'label' in item and 'score' in item:
                try:
                    predictions.append(Prediction(label=str(item['label']), score=float(item['score'])))
                except (TypeError, ValueError):
                    logger.debug(f"Dropping prediction with non-numeric score: {item!r}")

    if isinstance(raw, (list, tuple)):
        _walk(raw)
    return predictions


class TransformersClassifier:
    """Zero-shot image classifier backed by a CLIP pipeline."""

    def __init__(self, pipe):
        self._pipeline = pipe

    @classmethod
    def load(cls, progress_callback=None, model_name: str = Config.CLASSIFIER_MODEL,
             device: Optional[str] = None) -> "TransformersClassifier":
        from transformers import pipeline

        if progress_callback:
            progress_callback(0)
        local_path = download_model(model_name, progress_callback)
        pipe = pipeline(
            "zero-shot-image-classification",
            model=local_path,
            device=device or resolve_device()
        )
        if progress_callback:
            progress_callback(100)
        logger.info(f"Classifier ready: {model_name}")
        return cls(pipe)

    def classify(self, image: Any, candidate_labels: List[str]) -> List[Prediction]:
        raw = self._pipeline(image, candidate_labels=candidate_labels)
        return flatten_predictions(raw)


class TransformersSynthesizer:
    """Text-to-speech backed by an MMS/VITS pipeline."""

    def __init__(self, pipe):
        self._pipeline = pipe

    @classmethod
    def load(cls, progress_callback=None, model_name: str = Config.TTS_MODEL,
             device: Optional[str] = None) -> "TransformersSynthesizer":
        from transformers import pipeline

        if progress_callback:
            progress_callback(0)
        local_path = download_model(model_name, progress_callback)
        pipe = pipeline("text-to-speech", model=local_path, device=device or resolve_device())
        if progress_callback:
            progress_callback(100)
        logger.info(f"Synthesizer ready: {model_name}")
        return cls(pipe)

    def synthesize(self, text: str) -> Waveform:
        output = self._pipeline(text)
        samples = np.asarray(output["audio"], dtype=np.float32).reshape(-1)
        return Waveform(samples=samples, sample_rate=int(output["sampling_rate"]))
