"""
Suggestion presentation state machine.

Hidden -> Visible -> (Applied | Expired | Dismissed) -> Hidden

Applied, Expired and Dismissed are outcomes, not resting states: the
machine records the outcome and is Hidden again immediately. At most one
suggestion is visible at a time.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Callable, List, Optional

from .recommender import SceneSuggestion, normalize_label

logger = logging.getLogger(__name__)

StateCallback = Callable[['PresentationState', Optional[SceneSuggestion]], None]


class PresentationState(Enum):
    """Presentation states for a scene suggestion."""
    HIDDEN = "hidden"
    VISIBLE = "visible"
    APPLIED = "applied"
    EXPIRED = "expired"
    DISMISSED = "dismissed"


class SuggestionPresenter:
    """
    UI-facing owner of the currently visible suggestion.

    Expiry is checked against ``clock`` on every read, and when an event loop
    is running a timer also expires the suggestion without any reads.
    """

    def __init__(self, on_apply: Optional[Callable[[str], None]] = None,
                 display_duration: float = 3.0,
                 clock: Optional[Callable[[], float]] = None,
                 suppress_dismissed: bool = True):
        """
        Initialize presenter.

        Args:
            on_apply: Receives the preset id when the user accepts a suggestion
            display_duration: Seconds a suggestion stays visible
            clock: Monotonic clock in seconds (defaults to time.monotonic)
            suppress_dismissed: Don't re-show a just-dismissed scene until a
                different scene has been seen
        """
        self.on_apply = on_apply
        self.display_duration = display_duration
        self.suppress_dismissed = suppress_dismissed
        self._clock = clock or time.monotonic

        self._state = PresentationState.HIDDEN
        self._current: Optional[SceneSuggestion] = None
        self._shown_at: Optional[float] = None
        self._dismissed_key: Optional[str] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self.last_outcome: Optional[PresentationState] = None

        self._listeners: List[StateCallback] = []

    # ------------------------------------------------------------------

    @property
    def state(self) -> PresentationState:
        self.expire_if_due()
        return self._state

    @property
    def current(self) -> Optional[SceneSuggestion]:
        self.expire_if_due()
        return self._current

    @property
    def is_visible(self) -> bool:
        return self.state is PresentationState.VISIBLE

    def subscribe(self, callback: StateCallback) -> Callable[[], None]:
        """Listen for state changes; returns an unsubscribe function."""
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self, state: PresentationState, suggestion: Optional[SceneSuggestion]):
        for callback in list(self._listeners):
            try:
                callback(state, suggestion)
            except Exception as e:
                logger.error(f"Suggestion listener {callback!r} failed: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Transitions

    def note_scene(self, label: Optional[str]):
        """
        Tell the presenter which scene was last observed.

        A different scene lifts the suppression of a dismissed one, even if
        that scene produced no suggestion itself.
        """
        if not label or self._dismissed_key is None:
            return
        if normalize_label(label) != self._dismissed_key:
            self._dismissed_key = None

    def offer(self, suggestion: Optional[SceneSuggestion]) -> bool:
        """
        Offer the recommender's latest output.

        Args:
            suggestion: New suggestion, or None (leaves state unchanged)

        Returns:
            True if the suggestion became visible
        """
        self.expire_if_due()
        if suggestion is None:
            return False

        self.note_scene(suggestion.scene_label)
        key = normalize_label(suggestion.scene_label)
        if self.suppress_dismissed and key == self._dismissed_key:
            logger.debug(f"Suppressing dismissed scene {suggestion.scene_label!r}")
            return False

        if (self._state is PresentationState.VISIBLE
                and self._current is not None
                and normalize_label(self._current.scene_label) == key):
            return False

        self._show(suggestion)
        return True

    def _show(self, suggestion: SceneSuggestion):
        superseded = self._current if self._state is PresentationState.VISIBLE else None
        self._cancel_timer()
        self._current = suggestion
        self._shown_at = self._clock()
        self._state = PresentationState.VISIBLE
        self._schedule_expiry()

        if superseded is not None:
            logger.debug(f"Suggestion {superseded.scene_label!r} superseded by "
                         f"{suggestion.scene_label!r}")
        logger.info(f"Showing suggestion: {suggestion.message} ({suggestion.preset_id})")
        self._notify(PresentationState.VISIBLE, suggestion)

    def apply(self) -> Optional[str]:
        """
        Accept the visible suggestion.

        Returns:
            The applied preset id, or None if nothing was visible
        """
        if self.state is not PresentationState.VISIBLE:
            return None

        suggestion = self._current
        if self.on_apply is not None:
            self.on_apply(suggestion.preset_id)
        self._finish(PresentationState.APPLIED)
        return suggestion.preset_id

    def dismiss(self) -> bool:
        """Reject the visible suggestion. Returns False if nothing was visible."""
        if self.state is not PresentationState.VISIBLE:
            return False

        self._dismissed_key = normalize_label(self._current.scene_label)
        self._finish(PresentationState.DISMISSED)
        return True

    def expire_if_due(self) -> bool:
        """Expire the visible suggestion once it has been shown for display_duration."""
        if self._state is not PresentationState.VISIBLE or self._shown_at is None:
            return False
        if self._clock() - self._shown_at < self.display_duration:
            return False
        self._finish(PresentationState.EXPIRED)
        return True

    def _finish(self, outcome: PresentationState):
        suggestion = self._current
        self._cancel_timer()
        self._state = PresentationState.HIDDEN
        self._current = None
        self._shown_at = None
        self.last_outcome = outcome

        logger.debug(f"Suggestion {suggestion.scene_label!r} {outcome.value}")
        self._notify(outcome, suggestion)
        self._notify(PresentationState.HIDDEN, None)

    # ------------------------------------------------------------------
    # Timer

    def _schedule_expiry(self):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return  # no loop: expiry happens on the next read
        shown = self._current
        self._timer = loop.call_later(self.display_duration, self._on_timer, shown)

    def _on_timer(self, shown: SceneSuggestion):
        self._timer = None
        # The loop timer is authoritative even if the clock reads a hair short
        if self._state is PresentationState.VISIBLE and self._current is shown:
            self._finish(PresentationState.EXPIRED)

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def close(self):
        """Cancel any pending expiry timer."""
        self._cancel_timer()
