"""
Tests for grading parameters, the preset catalog, and the compositor.
"""

import pytest

from flaresight.errors import PresetNotFoundError, UnknownParameterError
from flaresight.grading import (
    PARAMETER_RANGES, GradingParameters, FilterPreset, FilterPresetCatalog, GradingSession,
    compose, merge, get_preset, require_preset, list_presets, display_name
)


class TestGradingParameters:
    """Test the grading parameter record."""

    def test_neutral_defaults(self):
        """Test the neutral parameter values."""
        params = GradingParameters.neutral()
        assert params.brightness == 100
        assert params.contrast == 100
        assert params.saturation == 100
        for name in ('shadows', 'highlights', 'tint', 'temperature', 'clarity',
                     'dehaze', 'vignette', 'noise_reduction', 'green_boost', 'texture'):
            assert getattr(params, name) == 0
        assert params.is_neutral()

    def test_from_dict_fills_missing_with_neutral(self):
        """Test missing knobs default to neutral."""
        params = GradingParameters.from_dict({'saturation': 0, 'temperature': -20})
        assert params.saturation == 0
        assert params.temperature == -20
        assert params.brightness == 100

    def test_from_dict_rejects_unknown_knob(self):
        """Test unknown knobs are rejected."""
        with pytest.raises(UnknownParameterError):
            GradingParameters.from_dict({'exposure': 1.0})

    def test_reset_in_place(self):
        """Test reset() restores neutral values in place."""
        params = GradingParameters(brightness=140, clarity=30)
        params.reset()
        assert params.is_neutral()

    def test_every_knob_has_a_range(self):
        """Test every knob has a UI range containing neutral."""
        assert set(PARAMETER_RANGES) == set(GradingParameters.field_names())
        neutral = GradingParameters.neutral().to_dict()
        for name, (low, high) in PARAMETER_RANGES.items():
            assert low <= neutral[name] <= high

    def test_out_of_range_values_not_clamped(self):
        """Test values outside the UI range are kept."""
        params = GradingParameters(brightness=400, temperature=-90)
        assert params.brightness == 400
        assert params.temperature == -90


class TestPresetCatalog:
    """Test the built-in preset catalog."""

    def test_catalog_has_twelve_looks(self):
        """Test the catalog holds twelve presets."""
        assert len(list_presets()) == 12
        assert len(set(FilterPresetCatalog.ids())) == 12

    def test_get_known_preset(self):
        """Test retrieving a preset by id."""
        preset = get_preset("golden-hour-glow")
        assert preset is not None
        assert preset.display_name == "Golden Hour"
        assert preset.overlay['temperature'] == 20

    def test_get_unknown_preset_is_none(self):
        """Test an unknown id returns None."""
        assert get_preset("xyzzy") is None
        assert get_preset(None) is None

    def test_require_unknown_preset_raises(self):
        """Test require_preset raises for unknown ids."""
        with pytest.raises(PresetNotFoundError):
            require_preset("xyzzy")

    def test_display_name(self):
        """Test display name lookup."""
        assert display_name("night-clarity") == "Night Clarity"
        assert display_name("nope") is None

    def test_overlays_only_use_known_knobs(self):
        """Test overlays only name grading knobs."""
        known = set(GradingParameters.field_names())
        for preset in list_presets():
            assert set(preset.overlay) <= known

    def test_overlay_is_read_only(self):
        """Test preset overlays can't be mutated."""
        preset = get_preset("cloud-pop")
        with pytest.raises(TypeError):
            preset.overlay['contrast'] = 50

    def test_preset_with_unknown_knob_rejected(self):
        """Test a preset overlay with an unknown knob is rejected."""
        with pytest.raises(UnknownParameterError):
            FilterPreset("bad", "Bad", {'sparkle': 10})


class TestCompositor:
    """Test merge and compose."""

    def test_neutral_without_preset_is_empty_chain(self):
        """Test neutral parameters compose to nothing."""
        chain = compose(GradingParameters.neutral())
        assert chain.is_empty
        assert len(chain) == 0

    def test_compose_never_mutates_base(self):
        """Test composing leaves the base parameters untouched."""
        base = GradingParameters(brightness=120, temperature=-10)
        snapshot = base.to_dict()
        for preset in list_presets():
            compose(base, preset)
            merge(base, preset)
        assert base.to_dict() == snapshot

    def test_merge_keeps_fields_absent_from_overlay(self):
        """Test merging keeps knobs the overlay omits."""
        base = GradingParameters(brightness=80, vignette=40, texture=5)
        preset = get_preset("golden-hour-glow")
        effective = merge(base, preset)

        assert effective.brightness == 105      # overlay wins
        assert effective.temperature == 20
        assert effective.vignette == 40         # retained from base
        assert effective.texture == 5
        assert effective is not base

    def test_preset_by_id(self):
        """Test a preset may be passed by id."""
        assert compose(GradingParameters(), "golden-hour-glow") == \
            compose(GradingParameters(), get_preset("golden-hour-glow"))

    def test_unknown_preset_id_raises(self):
        """Test an unknown preset id raises."""
        with pytest.raises(PresetNotFoundError):
            compose(GradingParameters(), "xyzzy")

    def test_full_desaturation(self):
        """Test zero saturation adds grayscale."""
        chain = compose(GradingParameters(saturation=0))
        kinds = chain.kinds()

        assert 'grayscale' in kinds
        assert 'saturate' in kinds
        assert kinds.index('saturate') < kinds.index('grayscale')
        assert 'brightness' not in kinds
        assert 'contrast' not in kinds
        assert chain[kinds.index('saturate')].magnitude == 0

    def test_operation_order_is_fixed(self):
        """Test operations come out in a fixed order."""
        params = GradingParameters(brightness=110, contrast=90, saturation=0,
                                   temperature=30, clarity=20)
        assert compose(params).kinds() == [
            'brightness', 'contrast', 'saturate', 'sepia', 'contrast', 'grayscale'
        ]

    def test_warmth_magnitude_and_clamp(self):
        """Test warmth maps to a clamped sepia amount."""
        assert compose(GradingParameters(temperature=25))[0].magnitude == pytest.approx(0.25)
        assert compose(GradingParameters(temperature=250))[0].magnitude == 1.0

    def test_negative_temperature_emits_nothing(self):
        """Test cool temperatures emit no operation."""
        assert compose(GradingParameters(temperature=-40)).is_empty

    def test_clarity_sharpening(self):
        """Test positive clarity adds contrast."""
        chain = compose(GradingParameters(clarity=20))
        assert chain.kinds() == ['contrast']
        assert chain[0].magnitude == pytest.approx(120)

    def test_negative_clarity_emits_nothing(self):
        """Test negative clarity emits no operation."""
        assert compose(GradingParameters(clarity=-10)).is_empty

    def test_unmodelled_knobs_emit_nothing(self):
        """Test knobs without a filter mapping are ignored."""
        params = GradingParameters(shadows=20, highlights=-10, tint=5, dehaze=10,
                                   vignette=30, noise_reduction=40, green_boost=25,
                                   texture=10)
        assert compose(params).is_empty

    def test_golden_hour_chain(self):
        """Test the Golden Hour Glow chain."""
        chain = compose(GradingParameters(), "golden-hour-glow")
        assert [(op.kind, op.magnitude) for op in chain] == [
            ('brightness', 105), ('saturate', 120), ('sepia', pytest.approx(0.2))
        ]


class TestGradingSession:
    """Test the caller-owned grading session."""

    def test_preset_does_not_overwrite_manual_parameters(self):
        """Test a preset overlays without overwriting manual knobs."""
        session = GradingSession()
        session.adjust('brightness', 130)
        session.set_active_preset('night-clarity')

        assert session.parameters.brightness == 130
        assert session.effective().brightness == 115

        session.clear_preset()
        assert session.effective().brightness == 130

    def test_unknown_preset_rejected(self):
        """Test selecting an unknown preset fails."""
        session = GradingSession()
        with pytest.raises(PresetNotFoundError):
            session.set_active_preset('xyzzy')
        assert session.active_preset_id is None

    def test_unknown_knob_rejected(self):
        """Test adjusting an unknown knob fails."""
        with pytest.raises(UnknownParameterError):
            GradingSession().adjust('sparkle', 3)

    def test_reset(self):
        """Test reset clears knobs and the active preset."""
        session = GradingSession(GradingParameters(contrast=140), 'cloud-pop')
        session.reset()
        assert session.parameters.is_neutral()
        assert session.active_preset_id is None
        assert session.filter_chain().is_empty
        assert session.css_filter() == ""

    def test_css_filter(self):
        """Test the session's CSS filter string."""
        session = GradingSession(active_preset_id='golden-hour-glow')
        assert session.css_filter() == "brightness(105%) saturate(120%) sepia(0.2)"
