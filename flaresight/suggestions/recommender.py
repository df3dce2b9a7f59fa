"""
Scene to preset recommendation.

Table driven: every known scene maps to exactly one preset and, optionally,
a message template. Labels are matched case-insensitively against each
scene's canonical name and its aliases.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Tuple

from ..detection.models import Confidence, SceneObservation
from ..grading.models import FilterPreset
from ..grading.presets import get_preset

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Try {preset}"


@dataclass(frozen=True)
class SceneSuggestion:
    """A scene-triggered recommendation to apply one preset."""
    scene_label: str
    preset_id: str
    message: str


@dataclass(frozen=True)
class SceneRule:
    """
    One row of the recommendation table.

    ``message`` may embed ``{preset}`` (the preset's display name) and
    ``{scene}`` (the observed label). It is only used when the canonical
    scene name is observed; aliases get the generic fallback message.
    """
    scene: str
    preset_id: str
    aliases: Tuple[str, ...] = ()
    message: Optional[str] = None


DEFAULT_RULES: Tuple[SceneRule, ...] = (
    SceneRule("Sky/Clouds", "cloud-pop",
              aliases=("Sky & Clouds", "Sky", "Clouds", "Clear Sky", "Dramatic Sky"),
              message="Suggested: {preset}"),
    SceneRule("Sun Rays", "beam-enhancer",
              aliases=("Light Beams",),
              message="Beam Enhancer: Detected Sun Rays"),
    SceneRule("Silhouette", "warm-silhouette",
              aliases=("Backlit",),
              message="Try Silhouette Mode"),
    SceneRule("Foliage/Trees", "nature-boost",
              aliases=("Forest", "Trees", "Foliage"),
              message="Nature Boost Available"),
    SceneRule("Wildlife", "cinematic-teal-orange",
              aliases=("Animal",),
              message="Suggested: {preset}"),
    SceneRule("Golden Hour", "golden-hour-glow",
              aliases=("Sunset", "Sunrise", "Dusk"),
              message="Golden Hour Recommended"),
    SceneRule("Low Light", "night-clarity",
              aliases=("Night", "Indoor Light", "Window Light"),
              message="Night Clarity Available"),
    SceneRule("Fog", "soft-dreamy",
              aliases=("Haze", "Mist")),
)


def normalize_label(label: str) -> str:
    """Case- and whitespace-insensitive key used to compare scene labels."""
    return " ".join(label.split()).casefold()


class SceneRecommender:
    """
    Maps scene observations to preset suggestions.

    Pure given its table: the same label always yields the same suggestion.
    """

    def __init__(self, rules: Optional[Iterable[SceneRule]] = None,
                 preset_lookup: Callable[[str], Optional[FilterPreset]] = get_preset,
                 min_confidence: Confidence = Confidence.MEDIUM):
        """
        Initialize recommender.

        Args:
            rules: Recommendation table (defaults to DEFAULT_RULES)
            preset_lookup: Resolves preset ids, returning None when unknown
            min_confidence: Observations below this confidence are ignored

        Raises:
            ValueError: if two rules claim the same label
        """
        self.rules = tuple(rules if rules is not None else DEFAULT_RULES)
        self.preset_lookup = preset_lookup
        self.min_confidence = Confidence.from_value(min_confidence)

        self._index: Dict[str, Tuple[SceneRule, bool]] = {}
        for rule in self.rules:
            self._register(rule.scene, rule, canonical=True)
            for alias in rule.aliases:
                self._register(alias, rule, canonical=False)

    def _register(self, label: str, rule: SceneRule, canonical: bool):
        key = normalize_label(label)
        existing = self._index.get(key)
        if existing is not None and existing[0] is not rule:
            raise ValueError(f"Scene label {label!r} is mapped by more than one rule")
        self._index[key] = (rule, canonical)

    def lookup(self, label: str) -> Optional[SceneRule]:
        entry = self._index.get(normalize_label(label))
        return entry[0] if entry else None

    def recommend(self, observation: Optional[SceneObservation]) -> Optional[SceneSuggestion]:
        """
        Derive a suggestion from the latest observation.

        Args:
            observation: Latest classifier output, or None

        Returns:
            SceneSuggestion, or None when the label is unknown, confidence is
            too low, or the rule points at a preset that doesn't exist
        """
        if observation is None or not observation.label:
            return None

        if observation.confidence < self.min_confidence:
            logger.debug(f"Ignoring {observation.label!r}: confidence "
                         f"{observation.confidence.value} below {self.min_confidence.value}")
            return None

        entry = self._index.get(normalize_label(observation.label))
        if entry is None:
            logger.debug(f"No preset mapped for scene {observation.label!r}")
            return None
        rule, canonical = entry

        preset = self.preset_lookup(rule.preset_id)
        if preset is None:
            # Fail closed rather than hand an unknown id to the compositor
            logger.warning(f"Scene rule {rule.scene!r} references unknown preset "
                           f"{rule.preset_id!r}; no suggestion")
            return None

        template = rule.message if canonical and rule.message else FALLBACK_MESSAGE
        message = template.format(preset=preset.display_name, scene=observation.label)

        return SceneSuggestion(scene_label=observation.label,
                               preset_id=preset.preset_id,
                               message=message)
