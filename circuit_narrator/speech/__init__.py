"""
Speech pipeline: segmentation, synthesis and WAV encoding.
"""

from .segmenter import segment
from .synthesizer import SpeechSynthesizer, SynthesisStream
from .wav_encoder import encode_wav, save_wav, to_pcm16

__all__ = [
    'SpeechSynthesizer',
    'SynthesisStream',
    'encode_wav',
    'save_wav',
    'segment',
    'to_pcm16'
]
