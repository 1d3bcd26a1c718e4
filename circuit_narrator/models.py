"""
Core data models for the Circuit Narrator.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple
import numpy as np


class ComponentCategory(Enum):
    """Fixed set of catalog categories."""
    PASSIVE = "passive"
    ACTIVE = "active"
    INPUT = "input"
    OUTPUT = "output"


@dataclass(frozen=True)
class Component:
    """Immutable catalog entry for one electronic component."""
    id: str
    name: str
    category: ComponentCategory
    clip_label: str  # canonical classifier phrase
    description: str
    voice_description: str
    aliases: Tuple[str, ...] = ()
    specs: Tuple[Tuple[str, str], ...] = ()
    circuit_example: str = ""
    has_active_state: bool = False

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'category': self.category.value,
            'description': self.description,
            'voiceDescription': self.voice_description,
            'specs': [{'label': label, 'value': value} for label, value in self.specs],
            'circuitExample': self.circuit_example,
            'hasActiveState': self.has_active_state,
        }


@dataclass(frozen=True)
class Prediction:
    """One (label, score) pair as returned by the classifier collaborator."""
    label: str
    score: float


@dataclass(frozen=True)
class ClassificationScore:
    """Best score observed among one component's phrases for one image."""
    component_id: str
    score: float


@dataclass(frozen=True)
class ComponentMatch:
    """A ranked component with its integer percentage confidence."""
    component: Component
    score: float
    confidence: int  # 0-100

    def to_dict(self) -> dict:
        return {
            'id': self.component.id,
            'name': self.component.name,
            'category': self.component.category.value,
            'confidence': self.confidence,
        }


@dataclass
class Waveform:
    """Mono float samples in [-1, 1] with their sample rate."""
    samples: np.ndarray
    sample_rate: int

    @property
    def duration(self) -> float:
        return len(self.samples) / self.sample_rate


@dataclass
class SentenceAudio:
    """Audio produced for one sentence unit (1-based index)."""
    index: int
    total: int
    sentence: str
    waveform: Waveform


@dataclass
class SynthesisResult:
    """Concatenated speech for a whole text."""
    waveform: Waveform
    sentences: Tuple[str, ...] = field(default_factory=tuple)
    output_path: str = ""  # set when persisted to disk

    @property
    def sample_rate(self) -> int:
        return self.waveform.sample_rate

    @property
    def duration_seconds(self) -> float:
        return self.waveform.duration
