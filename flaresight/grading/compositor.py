"""
Grading compositor for FlareSight

Turns a set of grading parameters, optionally overlaid with a preset,
into an ordered chain of elementary filter operations that a renderer
(CSS filter string, shader, numpy) can realise.
"""

import logging
from typing import List, Optional, Union

from .models import GradingParameters, FilterPreset, FilterOperation, FilterChain
from .presets import require_preset
from ..errors import UnknownParameterError

logger = logging.getLogger(__name__)

PresetRef = Union[FilterPreset, str, None]


def _resolve_preset(preset: PresetRef) -> Optional[FilterPreset]:
    if preset is None or isinstance(preset, FilterPreset):
        return preset
    return require_preset(preset)


def merge(base: GradingParameters, preset: PresetRef = None) -> GradingParameters:
    """
    Shallow-merge a preset overlay onto base parameters.

    The base is never modified; the preset wins on every knob it lists.

    Args:
        base: Fully populated grading parameters
        preset: FilterPreset, catalog id, or None

    Returns:
        New GradingParameters holding the effective values
    """
    resolved = _resolve_preset(preset)
    effective = base.copy()
    if resolved is not None:
        for name, value in resolved.overlay.items():
            setattr(effective, name, value)
    return effective


def compose(base: GradingParameters, preset: PresetRef = None) -> FilterChain:
    """
    Build the filter chain for a grading.

    Operation order is fixed because the visual operations don't commute:
    brightness, contrast, saturate, sepia (warmth), contrast (clarity),
    grayscale. Only triggered operations are emitted.

    Args:
        base: Fully populated grading parameters
        preset: FilterPreset, catalog id, or None

    Returns:
        FilterChain, empty for the neutral grading
    """
    p = merge(base, preset)
    ops: List[FilterOperation] = []

    if p.brightness != 100:
        ops.append(FilterOperation('brightness', p.brightness))

    if p.contrast != 100:
        ops.append(FilterOperation('contrast', p.contrast))

    if p.saturation != 100:
        ops.append(FilterOperation('saturate', p.saturation))

    # Warmth approximated with sepia. Cooling (negative temperature) has no op.
    if p.temperature > 0:
        warmth = min(max(p.temperature / 100.0, 0.0), 1.0)
        ops.append(FilterOperation('sepia', warmth))

    # Clarity approximated with an extra contrast pass
    if p.clarity > 0:
        sharpness = 1 + p.clarity / 100.0
        ops.append(FilterOperation('contrast', sharpness * 100))

    if p.saturation == 0:
        ops.append(FilterOperation('grayscale', 1.0))

    return FilterChain(tuple(ops))


class GradingSession:
    """
    Caller-owned grading state for one camera session.

    Holds the user's manual adjustments and the active preset id. The
    preset is applied at composition time, so the manual parameters are
    never overwritten by a preset.
    """

    def __init__(self, parameters: Optional[GradingParameters] = None,
                 active_preset_id: Optional[str] = None):
        self.parameters = parameters if parameters is not None else GradingParameters.neutral()
        self.active_preset_id: Optional[str] = None
        if active_preset_id:
            self.set_active_preset(active_preset_id)

    def adjust(self, name: str, value: float):
        """Set one knob. Raises UnknownParameterError for unknown names."""
        if name not in GradingParameters.field_names():
            raise UnknownParameterError(name)
        setattr(self.parameters, name, float(value))

    def set_active_preset(self, preset_id: Optional[str]):
        """Activate a preset by id, or clear it with None."""
        if preset_id is not None:
            require_preset(preset_id)
        if preset_id != self.active_preset_id:
            logger.debug(f"Active preset: {self.active_preset_id} -> {preset_id}")
        self.active_preset_id = preset_id

    def clear_preset(self):
        self.set_active_preset(None)

    def reset(self):
        """Neutral parameters and no preset."""
        self.parameters.reset()
        self.active_preset_id = None

    @property
    def active_preset(self) -> Optional[FilterPreset]:
        if self.active_preset_id is None:
            return None
        return require_preset(self.active_preset_id)

    def effective(self) -> GradingParameters:
        return merge(self.parameters, self.active_preset)

    def filter_chain(self) -> FilterChain:
        return compose(self.parameters, self.active_preset)

    def css_filter(self) -> str:
        from ..rendering import to_css_filter
        return to_css_filter(self.filter_chain())
