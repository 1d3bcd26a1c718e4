"""
Sentence-by-sentence speech synthesis.

Text is segmented into sentence units and each unit is synthesized on
its own, in order. Two failure policies exist:

- `SpeechSynthesizer.synthesize` / `synthesize_to_file` fail fast: the
  first sentence that fails aborts the whole call with SynthesisError.
- `SpeechSynthesizer.stream` skips failed sentences, records a
  PartialSynthesisFailure for each and keeps going.
"""

import logging
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Union

import numpy as np

from ..config import Config
from ..errors import InvalidInput, PartialSynthesisFailure, SynthesisError, error_handler
from ..inference.model_cache import ModelCache, ProgressCallback, Synthesizer
from ..models import SentenceAudio, SynthesisResult, Waveform
from .segmenter import segment
from .wav_encoder import save_wav


logger = logging.getLogger(__name__)

SentenceCallback = Callable[[int, int], None]
FailureCallback = Callable[[PartialSynthesisFailure], None]


class SynthesisStream:
    """
    Iterable of per-sentence audio that tolerates individual failures.

    Failed sentences are skipped; the failures are collected in
    `failures` and passed to the optional failure callback.
    """

    def __init__(self, synthesizer: Synthesizer, sentences: List[str],
                 on_failure: Optional[FailureCallback] = None):
        self._synthesizer = synthesizer
        self.sentences = sentences
        self.total = len(sentences)
        self.failures: List[PartialSynthesisFailure] = []
        self._on_failure = on_failure

    def __iter__(self) -> Iterator[SentenceAudio]:
        for index, sentence in enumerate(self.sentences, start=1):
            try:
                waveform = _as_waveform(self._synthesizer.synthesize(sentence))
            except Exception as e:
                failure = PartialSynthesisFailure(
                    error_handler.handle_synthesis_error(e, index, self.total),
                    sentence_index=index,
                    sentence=sentence
                )
                logger.warning(f"Skipping sentence {index}/{self.total}: {e}")
                self.failures.append(failure)
                if self._on_failure:
                    self._on_failure(failure)
                continue

            yield SentenceAudio(index=index, total=self.total, sentence=sentence, waveform=waveform)

    @property
    def failed_indices(self) -> List[int]:
        return [failure.sentence_index for failure in self.failures]


class SpeechSynthesizer:
    """Turns text into speech using the shared synthesizer handle."""

    def __init__(self, model_cache: ModelCache, default_sample_rate: int = Config.DEFAULT_SAMPLE_RATE):
        """
        Initialize the speech synthesizer.

        Args:
            model_cache: Cache providing the synthesizer handle
            default_sample_rate: Rate reported when no sentence produced audio
        """
        self.model_cache = model_cache
        self.default_sample_rate = default_sample_rate

    def synthesize(self, text: str, on_sentence: Optional[SentenceCallback] = None,
                   max_length: Optional[int] = None, load_timeout: Optional[float] = None,
                   progress_callback: Optional[ProgressCallback] = None) -> SynthesisResult:
        """
        Synthesize text, failing on the first sentence that fails.

        Args:
            text: Text to speak
            on_sentence: Called with (index, total) before each sentence, 1-based
            max_length: Truncate text to this many characters first
            load_timeout: Seconds to wait for the synthesizer to load
            progress_callback: Receives model download percentages

        Returns:
            SynthesisResult with the concatenated waveform

        Raises:
            InvalidInput: If the text is empty
            ModelUnavailable: If the synthesizer cannot be loaded
            SynthesisError: If any sentence fails
        """
        sentences = self._prepare(text, max_length)
        synthesizer = self.model_cache.get_synthesizer(load_timeout, progress_callback)

        total = len(sentences)
        chunks: List[np.ndarray] = []
        sample_rate = self.default_sample_rate

        for index, sentence in enumerate(sentences, start=1):
            if on_sentence:
                on_sentence(index, total)
            try:
                waveform = _as_waveform(synthesizer.synthesize(sentence))
            except Exception as e:
                logger.error(f"Synthesis failed on sentence {index}/{total}: {e}")
                raise SynthesisError(
                    error_handler.handle_synthesis_error(e, index, total),
                    sentence_index=index
                ) from e

            chunks.append(waveform.samples)
            sample_rate = waveform.sample_rate

        samples = np.concatenate(chunks) if chunks else np.zeros(0, dtype=np.float32)
        result = SynthesisResult(
            waveform=Waveform(samples=samples, sample_rate=sample_rate),
            sentences=tuple(sentences)
        )
        logger.info(f"Synthesized {total} sentence(s), {result.duration_seconds:.2f}s at {sample_rate} Hz")
        return result

    def synthesize_to_file(self, text: str, output_path: Union[str, Path],
                           on_sentence: Optional[SentenceCallback] = None,
                           max_length: Optional[int] = None,
                           load_timeout: Optional[float] = None,
                           progress_callback: Optional[ProgressCallback] = None) -> SynthesisResult:
        """Synthesize text (fail-fast) and write it to output_path as WAV."""
        result = self.synthesize(text, on_sentence, max_length, load_timeout, progress_callback)
        path = save_wav(output_path, result.waveform.samples, result.sample_rate)
        result.output_path = str(path)
        return result

    def stream(self, text: str, on_failure: Optional[FailureCallback] = None,
               max_length: Optional[int] = None, load_timeout: Optional[float] = None,
               progress_callback: Optional[ProgressCallback] = None) -> SynthesisStream:
        """
        Prepare a per-sentence stream that skips sentences which fail.

        Input validation and model loading happen here, before anything
        is yielded, so those failures still raise.

        Raises:
            InvalidInput: If the text is empty
            ModelUnavailable: If the synthesizer cannot be loaded
        """
        sentences = self._prepare(text, max_length)
        synthesizer = self.model_cache.get_synthesizer(load_timeout, progress_callback)
        return SynthesisStream(synthesizer, sentences, on_failure)

    def _prepare(self, text: str, max_length: Optional[int]) -> List[str]:
        error = error_handler.validate_text(text)
        if error:
            raise InvalidInput(error)

        if max_length is not None and len(text) > max_length:
            logger.debug(f"Truncating text from {len(text)} to {max_length} characters")
            text = text[:max_length]

        sentences = segment(text)
        if not sentences:
            raise InvalidInput(error_handler.validate_text(""))
        return sentences


def _as_waveform(output: Waveform) -> Waveform:
    """Normalize synthesizer output to flat float32 samples with a usable sample rate."""
    sample_rate = int(output.sample_rate)
    error = error_handler.validate_sample_rate(sample_rate)
    if error:
        raise InvalidInput(error)
    return Waveform(
        samples=np.asarray(output.samples, dtype=np.float32).reshape(-1),
        sample_rate=sample_rate
    )
