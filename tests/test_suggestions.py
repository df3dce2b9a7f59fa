"""
Tests for the scene recommender and the suggestion presenter.
"""

import asyncio

import pytest

from flaresight.detection import Confidence, SceneObservation
from flaresight.suggestions import (
    PresentationState, SceneRecommender, SceneRule, SceneSuggestion, SuggestionPresenter
)

from tests.helpers import FakeClock


def observe(label, confidence="high"):
    return SceneObservation(label=label, confidence=Confidence.from_value(confidence),
                            timestamp=0.0)


class TestSceneRecommender:
    """Test the table-driven scene to preset mapping."""

    @pytest.fixture
    def recommender(self):
        return SceneRecommender()

    def test_sunset_recommends_golden_hour(self, recommender):
        """Test Sunset maps to Golden Hour Glow."""
        suggestion = recommender.recommend(observe("Sunset", "high"))
        assert suggestion == SceneSuggestion(scene_label="Sunset",
                                             preset_id="golden-hour-glow",
                                             message="Try Golden Hour")
        assert "Golden Hour" in suggestion.message

    def test_canonical_labels_use_message_templates(self, recommender):
        """Test the message templates of the canonical labels."""
        assert recommender.recommend(observe("Golden Hour")).message == "Golden Hour Recommended"
        assert recommender.recommend(observe("Sky/Clouds")).message == "Suggested: Cloud Pop"
        assert recommender.recommend(observe("Low Light")).message == "Night Clarity Available"
        assert recommender.recommend(observe("Sun Rays")).preset_id == "beam-enhancer"

    def test_rule_without_template_uses_fallback(self, recommender):
        """Test the 'Try <preset>' fallback message."""
        suggestion = recommender.recommend(observe("Fog"))
        assert suggestion.preset_id == "soft-dreamy"
        assert suggestion.message == "Try Soft Dreamy"

    def test_label_matching_is_case_insensitive(self, recommender):
        """Test labels match regardless of case and spacing."""
        assert recommender.recommend(observe("  low   LIGHT ")).preset_id == "night-clarity"

    def test_unknown_label_yields_none(self, recommender):
        """Test unmapped labels yield no suggestion."""
        assert recommender.recommend(observe("Xyzzy")) is None

    def test_none_observation_yields_none(self, recommender):
        """Test a missing observation yields no suggestion."""
        assert recommender.recommend(None) is None

    def test_low_confidence_ignored(self, recommender):
        """Test observations below medium confidence are ignored."""
        assert recommender.recommend(observe("Sunset", "low")) is None
        assert recommender.recommend(observe("Sunset", "medium")) is not None

    def test_min_confidence_is_configurable(self):
        """Test the confidence threshold can be raised or lowered."""
        strict = SceneRecommender(min_confidence="high")
        assert strict.recommend(observe("Sunset", "medium")) is None
        lenient = SceneRecommender(min_confidence=Confidence.LOW)
        assert lenient.recommend(observe("Sunset", "low")) is not None

    def test_unknown_preset_fails_closed(self):
        """Test a rule pointing at a missing preset yields nothing."""
        recommender = SceneRecommender(rules=[SceneRule("Silhouette", "silhouette-glow")])
        assert recommender.recommend(observe("Silhouette")) is None

    def test_deterministic(self, recommender):
        """Test the same observation always gives the same suggestion."""
        assert recommender.recommend(observe("Forest")) == recommender.recommend(observe("Forest"))

    def test_duplicate_labels_rejected(self):
        """Test two rules may not claim the same label."""
        with pytest.raises(ValueError):
            SceneRecommender(rules=[SceneRule("Sky", "cloud-pop"),
                                    SceneRule("Clouds", "hdr-sky-booster", aliases=("sky",))])

    def test_default_rules_reference_real_presets(self, recommender):
        """Test every default rule resolves to a catalog preset."""
        for rule in recommender.rules:
            assert recommender.recommend(observe(rule.scene)) is not None


@pytest.fixture
def golden():
    return SceneSuggestion("Sunset", "golden-hour-glow", "Try Golden Hour")


@pytest.fixture
def forest():
    return SceneSuggestion("Forest", "nature-boost", "Try Nature Boost")


class TestSuggestionPresenter:
    """Test the presentation state machine."""

    def test_starts_hidden(self):
        """Test a new presenter shows nothing."""
        presenter = SuggestionPresenter(clock=FakeClock())
        assert presenter.state is PresentationState.HIDDEN
        assert presenter.current is None

    def test_offer_shows_suggestion(self, golden):
        """Test offering a suggestion makes it visible."""
        presenter = SuggestionPresenter(clock=FakeClock())
        assert presenter.offer(golden)
        assert presenter.state is PresentationState.VISIBLE
        assert presenter.current == golden

    def test_none_offer_changes_nothing(self, golden):
        """Test an empty offer leaves the state alone."""
        presenter = SuggestionPresenter(clock=FakeClock())
        assert not presenter.offer(None)
        assert presenter.state is PresentationState.HIDDEN

        presenter.offer(golden)
        assert not presenter.offer(None)
        assert presenter.current == golden

    def test_expires_at_display_duration(self, golden):
        """Test a suggestion hides itself after the display duration."""
        clock = FakeClock()
        presenter = SuggestionPresenter(display_duration=3.0, clock=clock)
        presenter.offer(golden)

        clock.advance(2.99)
        assert presenter.state is PresentationState.VISIBLE
        clock.advance(0.01)
        assert presenter.state is PresentationState.HIDDEN
        assert presenter.last_outcome is PresentationState.EXPIRED
        assert presenter.current is None

    def test_apply_hands_preset_over(self, golden):
        """Test applying passes the preset id to the callback."""
        applied = []
        presenter = SuggestionPresenter(on_apply=applied.append, clock=FakeClock())
        presenter.offer(golden)

        assert presenter.apply() == "golden-hour-glow"
        assert applied == ["golden-hour-glow"]
        assert presenter.state is PresentationState.HIDDEN
        assert presenter.last_outcome is PresentationState.APPLIED

    def test_apply_when_hidden_does_nothing(self):
        """Test applying with nothing visible is a no-op."""
        applied = []
        presenter = SuggestionPresenter(on_apply=applied.append, clock=FakeClock())
        assert presenter.apply() is None
        assert applied == []

    def test_apply_after_expiry_does_nothing(self, golden):
        """Test an expired suggestion can no longer be applied."""
        clock = FakeClock()
        applied = []
        presenter = SuggestionPresenter(on_apply=applied.append, clock=clock)
        presenter.offer(golden)
        clock.advance(3.0)
        assert presenter.apply() is None
        assert applied == []

    def test_new_label_supersedes_and_restarts_timer(self, golden, forest):
        """Test a different scene replaces the suggestion with a fresh timer."""
        clock = FakeClock()
        presenter = SuggestionPresenter(clock=clock)
        presenter.offer(golden)
        clock.advance(2.0)

        assert presenter.offer(forest)
        assert presenter.current == forest
        clock.advance(2.0)
        assert presenter.state is PresentationState.VISIBLE
        clock.advance(1.0)
        assert presenter.state is PresentationState.HIDDEN

    def test_same_label_does_not_restart_timer(self, golden):
        """Test re-offering the visible scene keeps the original deadline."""
        clock = FakeClock()
        presenter = SuggestionPresenter(clock=clock)
        presenter.offer(golden)
        clock.advance(2.0)
        assert not presenter.offer(golden)
        clock.advance(1.0)
        assert presenter.state is PresentationState.HIDDEN

    def test_case_variant_label_is_the_same_scene(self, golden):
        """Test a differently cased label counts as the visible scene."""
        clock = FakeClock()
        presenter = SuggestionPresenter(clock=clock)
        presenter.offer(golden)
        clock.advance(2.0)

        variant = SceneSuggestion(" SUNSET ", "golden-hour-glow", "Try Golden Hour")
        assert not presenter.offer(variant)
        clock.advance(1.0)
        assert presenter.state is PresentationState.HIDDEN

    def test_same_label_shows_again_after_expiry(self, golden):
        """Test the same scene can show again once expired."""
        clock = FakeClock()
        presenter = SuggestionPresenter(clock=clock)
        presenter.offer(golden)
        clock.advance(3.0)
        assert presenter.offer(golden)
        assert presenter.state is PresentationState.VISIBLE

    def test_dismiss_suppresses_same_label(self, golden, forest):
        """Test a dismissed scene stays hidden until another scene is seen."""
        presenter = SuggestionPresenter(clock=FakeClock())
        presenter.offer(golden)
        assert presenter.dismiss()
        assert presenter.state is PresentationState.HIDDEN
        assert presenter.last_outcome is PresentationState.DISMISSED

        assert not presenter.offer(golden)
        assert presenter.offer(forest)
        presenter.dismiss()
        # Forest was seen, so Sunset may come back
        assert presenter.offer(golden)

    def test_dismiss_suppresses_case_variant_label(self, golden):
        """Test suppression ignores case and spacing of the label."""
        presenter = SuggestionPresenter(clock=FakeClock())
        presenter.offer(golden)
        presenter.dismiss()

        presenter.note_scene("sunset")
        assert not presenter.offer(SceneSuggestion("sunset", "golden-hour-glow",
                                                   "Try Golden Hour"))
        assert presenter.state is PresentationState.HIDDEN

    def test_other_scene_lifts_suppression(self, golden):
        """Test seeing an unrelated scene lifts the suppression."""
        presenter = SuggestionPresenter(clock=FakeClock())
        presenter.offer(golden)
        presenter.dismiss()
        presenter.note_scene("Xyzzy")
        assert presenter.offer(golden)

    def test_suppression_can_be_disabled(self, golden):
        """Test suppress_dismissed=False reshows a dismissed scene."""
        presenter = SuggestionPresenter(clock=FakeClock(), suppress_dismissed=False)
        presenter.offer(golden)
        presenter.dismiss()
        assert presenter.offer(golden)

    def test_dismiss_when_hidden(self):
        """Test dismissing with nothing visible reports False."""
        assert not SuggestionPresenter(clock=FakeClock()).dismiss()

    def test_listeners_see_transitions(self, golden):
        """Test listeners receive every state change."""
        events = []
        presenter = SuggestionPresenter(clock=FakeClock())
        presenter.subscribe(lambda state, suggestion: events.append(state))
        presenter.offer(golden)
        presenter.apply()
        assert events == [PresentationState.VISIBLE, PresentationState.APPLIED,
                          PresentationState.HIDDEN]

    def test_timer_expires_without_reads(self, golden):
        """Test the loop timer expires a suggestion nobody reads."""
        events = []

        async def scenario():
            presenter = SuggestionPresenter(display_duration=0.02)
            presenter.subscribe(lambda state, suggestion: events.append(state))
            presenter.offer(golden)
            await asyncio.sleep(0.1)
            presenter.close()

        asyncio.run(scenario())
        assert events == [PresentationState.VISIBLE, PresentationState.EXPIRED,
                          PresentationState.HIDDEN]

    def test_close_cancels_timer(self, golden):
        """Test close() stops the expiry timer."""
        events = []

        async def scenario():
            presenter = SuggestionPresenter(display_duration=0.02)
            presenter.subscribe(lambda state, suggestion: events.append(state))
            presenter.offer(golden)
            presenter.close()
            await asyncio.sleep(0.05)

        asyncio.run(scenario())
        assert events == [PresentationState.VISIBLE]
