"""
Built-in filter preset catalog.

Hand-tuned looks for the live camera preview. Each preset only lists the
knobs it changes; everything else comes from the user's current grading.
"""

from typing import Dict, List, Optional

from .models import FilterPreset
from ..errors import PresetNotFoundError


class FilterPresetCatalog:
    """
    Read-only database of filter presets, keyed by preset id.

    Values are tuned by eye against phone camera output, not derived.
    """

    PRESETS = (
        FilterPreset(
            preset_id="cloud-pop",
            display_name="Cloud Pop",
            overlay={
                'contrast': 115,
                'saturation': 110,
                'highlights': 15,
                'clarity': 20,
                'dehaze': 10,
            }
        ),
        FilterPreset(
            preset_id="golden-hour-glow",
            display_name="Golden Hour",
            overlay={
                'brightness': 105,
                'saturation': 120,
                'temperature': 20,
                'highlights': 10,
                'shadows': -10,
            }
        ),
        FilterPreset(
            preset_id="moody-forest",
            display_name="Moody Forest",
            overlay={
                'brightness': 95,
                'contrast': 110,
                'saturation': 105,
                'shadows': -15,
                'green_boost': 25,
                'vignette': 15,
            }
        ),
        FilterPreset(
            preset_id="nature-boost",
            display_name="Nature Boost",
            overlay={
                'saturation': 125,
                'green_boost': 30,
                'clarity': 15,
                'texture': 10,
            }
        ),
        FilterPreset(
            preset_id="cinematic-teal-orange",
            display_name="Cinematic",
            overlay={
                'contrast': 115,
                'saturation': 110,
                'temperature': 15,
                'tint': -5,
                'shadows': -10,
            }
        ),
        FilterPreset(
            preset_id="soft-dreamy",
            display_name="Soft Dreamy",
            overlay={
                'brightness': 105,
                'contrast': 95,
                'saturation': 105,
                'highlights': 15,
                'clarity': -10,
            }
        ),
        FilterPreset(
            preset_id="night-clarity",
            display_name="Night Clarity",
            overlay={
                'brightness': 115,
                'shadows': 20,
                'highlights': -10,
                'noise_reduction': 20,
                'clarity': 10,
            }
        ),
        FilterPreset(
            preset_id="beam-enhancer",
            display_name="Beam Enhancer",
            overlay={
                'contrast': 120,
                'highlights': 20,
                'clarity': 25,
                'dehaze': -10,
            }
        ),
        FilterPreset(
            preset_id="warm-silhouette",
            display_name="Silhouette",
            overlay={
                'brightness': 95,
                'contrast': 125,
                'temperature': 25,
                'shadows': -30,
                'highlights': 15,
            }
        ),
        FilterPreset(
            preset_id="deep-shadows",
            display_name="Deep Shadows",
            overlay={
                'contrast': 125,
                'shadows': -25,
                'highlights': 10,
                'vignette': 20,
            }
        ),
        FilterPreset(
            preset_id="water-blue-boost",
            display_name="Water Blue",
            overlay={
                'saturation': 115,
                'tint': -15,
                'clarity': 15,
                'dehaze': 10,
            }
        ),
        FilterPreset(
            preset_id="hdr-sky-booster",
            display_name="HDR Sky",
            overlay={
                'contrast': 120,
                'saturation': 115,
                'highlights': 20,
                'shadows': 10,
                'clarity': 20,
                'dehaze': 15,
            }
        ),
    )

    _BY_ID: Dict[str, FilterPreset] = {preset.preset_id: preset for preset in PRESETS}

    @classmethod
    def get(cls, preset_id: str) -> Optional[FilterPreset]:
        return cls._BY_ID.get(preset_id)

    @classmethod
    def all(cls) -> List[FilterPreset]:
        return list(cls.PRESETS)

    @classmethod
    def ids(cls) -> List[str]:
        return [preset.preset_id for preset in cls.PRESETS]


def get_preset(preset_id: Optional[str]) -> Optional[FilterPreset]:
    """
    Look up a preset by id.

    Args:
        preset_id: Catalog id such as "golden-hour-glow"

    Returns:
        The preset, or None if the id is not in the catalog
    """
    if not preset_id:
        return None
    return FilterPresetCatalog.get(preset_id)


def require_preset(preset_id: str) -> FilterPreset:
    """Like get_preset() but raises PresetNotFoundError for unknown ids."""
    preset = get_preset(preset_id)
    if preset is None:
        raise PresetNotFoundError(preset_id)
    return preset


def list_presets() -> List[FilterPreset]:
    return FilterPresetCatalog.all()


def display_name(preset_id: str) -> Optional[str]:
    preset = get_preset(preset_id)
    return preset.display_name if preset else None
