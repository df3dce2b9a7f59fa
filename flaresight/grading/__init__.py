"""
Grading module for FlareSight

Preset catalog, grading parameters, and the compositor that turns them
into renderable filter chains.
"""

from .models import (
    GradingParameters,
    FilterPreset,
    FilterOperation,
    FilterChain,
    PARAMETER_RANGES
)
from .presets import (
    FilterPresetCatalog,
    get_preset,
    require_preset,
    list_presets,
    display_name
)
from .compositor import merge, compose, GradingSession

__all__ = [
    'GradingParameters',
    'FilterPreset',
    'FilterOperation',
    'FilterChain',
    'PARAMETER_RANGES',
    'FilterPresetCatalog',
    'get_preset',
    'require_preset',
    'list_presets',
    'display_name',
    'merge',
    'compose',
    'GradingSession'
]
