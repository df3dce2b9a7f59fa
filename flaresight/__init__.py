"""
FlareSight: scene-aware filter suggestions for live camera previews

Samples the preview at a slow cadence, classifies the scene, recommends a
matching colour-grading preset, and composes the active grading into a
renderable filter chain.
"""

__version__ = "0.1.0"

from .config import load_config
from .grading import GradingParameters, GradingSession, compose, get_preset
from .detection import SceneClassifierClient, SceneObservation, Confidence
from .suggestions import SceneRecommender, SuggestionPresenter, SceneSuggestion
from .pipeline import AdaptiveFilterPipeline
from .rendering import to_css_filter, apply_chain

__all__ = [
    "load_config",
    "GradingParameters",
    "GradingSession",
    "compose",
    "get_preset",
    "SceneClassifierClient",
    "SceneObservation",
    "Confidence",
    "SceneRecommender",
    "SuggestionPresenter",
    "SceneSuggestion",
    "AdaptiveFilterPipeline",
    "to_css_filter",
    "apply_chain",
]
