"""
Adaptive filter pipeline.

Wires the scene classifier client, recommender, presenter and grading
session together through their subscribe interfaces:

    SceneClassifierClient -> SceneRecommender -> SuggestionPresenter -> GradingSession
"""

import logging
from typing import Any, Callable, Dict, Optional

from .config import DetectionConfig, SuggestionConfig
from .detection.client import SceneClassifierClient
from .detection.models import (
    ClassificationTransport, Confidence, FrameSource, SceneObservation
)
from .grading.compositor import GradingSession
from .grading.models import FilterChain
from .rendering import to_css_filter
from .suggestions.presenter import SuggestionPresenter
from .suggestions.recommender import SceneRecommender

logger = logging.getLogger(__name__)


class AdaptiveFilterPipeline:
    """
    Scene-aware filter suggestions for one live preview.

    The grading session is owned by the caller; the pipeline only touches it
    when the user applies a suggestion.
    """

    def __init__(self, frame_source: FrameSource, transport: ClassificationTransport,
                 session: Optional[GradingSession] = None,
                 config: Optional[Dict[str, Any]] = None,
                 recommender: Optional[SceneRecommender] = None,
                 clock: Optional[Callable[[], float]] = None):
        """
        Initialize pipeline.

        Args:
            frame_source: Live preview frames
            transport: Classification backend
            session: Grading session to apply presets to (created if omitted)
            config: Full configuration dictionary (see flaresight.config)
            recommender: Custom recommendation table
            clock: Monotonic clock shared by the client and presenter
        """
        detection_config = DetectionConfig.from_config(config)
        suggestion_config = SuggestionConfig.from_config(config)

        self.session = session or GradingSession()
        self.client = SceneClassifierClient(frame_source, transport,
                                            config=detection_config, clock=clock)
        self.recommender = recommender or SceneRecommender(
            min_confidence=Confidence.from_value(suggestion_config.min_confidence)
        )
        self.presenter = SuggestionPresenter(
            on_apply=self.session.set_active_preset,
            display_duration=suggestion_config.display_duration,
            clock=clock,
            suppress_dismissed=suggestion_config.suppress_dismissed,
        )
        self._unsubscribe = self.client.subscribe(self._on_observation)

    def _on_observation(self, observation: Optional[SceneObservation]):
        if observation is not None:
            self.presenter.note_scene(observation.label)
        suggestion = self.recommender.recommend(observation)
        self.presenter.offer(suggestion)

    def start(self):
        self.client.start()

    def stop(self):
        self.client.stop()
        self.presenter.close()

    async def aclose(self):
        await self.client.aclose()
        self.presenter.close()
        self._unsubscribe()

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    def apply_suggestion(self) -> Optional[str]:
        """Apply the visible suggestion's preset to the session."""
        return self.presenter.apply()

    def dismiss_suggestion(self) -> bool:
        return self.presenter.dismiss()

    def filter_chain(self) -> FilterChain:
        return self.session.filter_chain()

    def css_filter(self) -> str:
        return to_css_filter(self.filter_chain())
