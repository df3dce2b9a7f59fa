"""
Scene suggestions for FlareSight

Maps detected scenes to preset recommendations and manages the visible
suggestion's lifecycle.
"""

from .recommender import (
    SceneSuggestion,
    SceneRule,
    SceneRecommender,
    DEFAULT_RULES,
    normalize_label
)
from .presenter import PresentationState, SuggestionPresenter

__all__ = [
    'SceneSuggestion',
    'SceneRule',
    'SceneRecommender',
    'DEFAULT_RULES',
    'normalize_label',
    'PresentationState',
    'SuggestionPresenter'
]
