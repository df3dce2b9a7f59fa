"""
Data models for live scene detection.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol, Union
import time

import numpy as np


class Confidence(Enum):
    """Classifier confidence buckets."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_RANK[self]

    def __ge__(self, other):
        if not isinstance(other, Confidence):
            return NotImplemented
        return self.rank >= other.rank

    def __lt__(self, other):
        if not isinstance(other, Confidence):
            return NotImplemented
        return self.rank < other.rank

    @classmethod
    def from_value(cls, value: Union['Confidence', str, float, int]) -> 'Confidence':
        """
        Normalise a confidence given as a bucket name or a 0-1 score.

        Scores of 0.75 and above are high, 0.4 and above medium.
        """
        if isinstance(value, Confidence):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                raise ValueError(f"Unknown confidence level: {value!r}") from None
        score = float(value)
        if score >= 0.75:
            return cls.HIGH
        if score >= 0.4:
            return cls.MEDIUM
        return cls.LOW


_CONFIDENCE_RANK = {Confidence.LOW: 0, Confidence.MEDIUM: 1, Confidence.HIGH: 2}


class SamplerState(Enum):
    """Lifecycle of one sampling cycle."""
    IDLE = "idle"
    SAMPLING = "sampling"
    AWAITING_RESULT = "awaiting_result"


@dataclass
class ClassificationResult:
    """What a classification transport returns for one frame."""
    label: str
    confidence: Confidence = Confidence.MEDIUM

    def __post_init__(self):
        self.confidence = Confidence.from_value(self.confidence)


@dataclass(frozen=True)
class SceneObservation:
    """One classified frame. Superseded by the next sample, never persisted."""
    label: str
    confidence: Confidence
    timestamp: float = field(default_factory=time.time)


class ClassificationTransport(Protocol):
    """Anything that can turn encoded frame bytes into a scene label."""

    async def classify(self, frame: bytes) -> Optional[ClassificationResult]:
        ...


class FrameSource(Protocol):
    """Live video source the sampler reads from."""

    def has_frame(self) -> bool:
        ...

    def read_frame(self) -> np.ndarray:
        ...
