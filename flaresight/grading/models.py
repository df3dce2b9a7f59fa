"""
Data models for the grading system.
"""

from dataclasses import dataclass, field, fields, asdict
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple, Iterator, Any

from ..errors import UnknownParameterError


# Advisory slider ranges; values outside are accepted unchanged
PARAMETER_RANGES: Dict[str, Tuple[float, float]] = {
    'brightness': (50, 150),
    'contrast': (50, 150),
    'saturation': (0, 200),
    'shadows': (-50, 50),
    'highlights': (-50, 50),
    'tint': (-50, 50),
    'temperature': (-50, 50),
    'clarity': (-50, 50),
    'dehaze': (-50, 50),
    'vignette': (0, 100),
    'noise_reduction': (0, 100),
    'green_boost': (0, 100),
    'texture': (0, 100),
}


@dataclass
class GradingParameters:
    """
    Tunable colour grading knobs for the live camera preview.

    Multiplicative knobs are percentages where 100 means unchanged;
    additive knobs are offsets where 0 means unchanged. The default
    instance is the neutral grading used as the reset target.
    """
    brightness: float = 100.0       # 50-150 %
    contrast: float = 100.0         # 50-150 %
    saturation: float = 100.0       # 0-200 %
    shadows: float = 0.0            # -50 to +50
    highlights: float = 0.0         # -50 to +50
    tint: float = 0.0               # -50 to +50
    temperature: float = 0.0        # -50 to +50
    clarity: float = 0.0            # -50 to +50
    dehaze: float = 0.0             # -50 to +50
    vignette: float = 0.0           # 0-100
    noise_reduction: float = 0.0    # 0-100
    green_boost: float = 0.0        # 0-100
    texture: float = 0.0            # 0-100

    @classmethod
    def neutral(cls) -> 'GradingParameters':
        """Fresh neutral instance."""
        return cls()

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'GradingParameters':
        """
        Build parameters from a mapping, filling missing knobs with neutral values.

        Raises:
            UnknownParameterError: if the mapping names a knob that doesn't exist
        """
        validate_parameter_names(data.keys())
        return cls(**{name: float(value) for name, value in data.items()})

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    def copy(self) -> 'GradingParameters':
        return GradingParameters(**self.to_dict())

    def reset(self):
        """Return every knob to its neutral value in place."""
        for f in fields(self):
            setattr(self, f.name, f.default)

    def is_neutral(self) -> bool:
        return self == GradingParameters()


def validate_parameter_names(names) -> None:
    known = set(GradingParameters.field_names())
    for name in names:
        if name not in known:
            raise UnknownParameterError(name)


@dataclass(frozen=True)
class FilterPreset:
    """
    A named look: only the knobs it changes.

    The overlay is stored read-only so catalog entries can be shared
    process-wide.
    """
    preset_id: str
    display_name: str
    overlay: Mapping[str, float] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        validate_parameter_names(self.overlay.keys())
        object.__setattr__(self, 'overlay', MappingProxyType(dict(self.overlay)))


@dataclass(frozen=True)
class FilterOperation:
    """One elementary visual operation in a filter chain."""
    kind: str           # brightness, contrast, saturate, sepia, grayscale
    magnitude: float


@dataclass(frozen=True)
class FilterChain:
    """Ordered, immutable list of filter operations."""
    operations: Tuple[FilterOperation, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.operations

    def kinds(self) -> List[str]:
        return [op.kind for op in self.operations]

    def __iter__(self) -> Iterator[FilterOperation]:
        return iter(self.operations)

    def __len__(self) -> int:
        return len(self.operations)

    def __getitem__(self, index: int) -> FilterOperation:
        return self.operations[index]
