"""
Tests for the staged engine and the one-shot pipeline.

Covers:
- End-to-end determinism
- Dirty-stage tracking and incremental regeneration
- Presets and glyph lookup through the engine
"""
from __future__ import annotations

import logging

import pytest

from murmuration.engine import DEFORM_KEYS, SHAPE_KEYS, MurmurationEngine, dirty_level, generate_scene


SMALL = {"count": 200, "subFlocks": 1}


class TestGenerateScene:
    """compose, deform and project in one call."""

    def test_bit_identical_runs(self):
        """Identical params give identical primitive lists."""
        params = dict(SMALL, subFlocks=2, twistEnabled=True, smoothEnabled=True)
        assert generate_scene(params) == generate_scene(params)

    def test_seed_changes_scene(self):
        """A different seed gives a different scene."""
        assert generate_scene(SMALL) != generate_scene(dict(SMALL, seed=7))

    def test_sorted_back_to_front(self):
        """The scene is ordered by ascending depth."""
        depths = [p.depth for p in generate_scene(dict(SMALL, projType="perspective"))]
        assert depths == sorted(depths)

    def test_engine_matches_one_shot(self):
        """The engine's first regeneration equals the pure pipeline."""
        params = dict(SMALL, waveEnabled=True)
        assert MurmurationEngine(params).regenerate() == generate_scene(params)


class TestDirtyLevels:
    """Which stage a parameter change invalidates."""

    def test_key_sets_disjoint(self):
        """No key belongs to two stages."""
        assert not SHAPE_KEYS & DEFORM_KEYS

    @pytest.mark.parametrize(
        "keys,level",
        [
            ({"count"}, "shape"),
            ({"seed", "camRotX"}, "shape"),
            ({"noiseAmp"}, "deform"),
            ({"twistAmount", "camZoom"}, "deform"),
            ({"camRotY"}, "camera"),
            ({"darkBandEnabled"}, "camera"),
            (set(), None),
        ],
    )
    def test_dirty_level(self, keys, level):
        """The earliest affected stage wins."""
        assert dirty_level(keys) == level


class TestEngine:
    """Incremental regeneration."""

    def test_starts_fully_dirty(self):
        """A new engine has every stage pending."""
        assert MurmurationEngine(SMALL).dirty == {"shape", "deform", "camera"}

    def test_regenerate_clears_dirty(self):
        """After regenerating nothing is pending."""
        engine = MurmurationEngine(SMALL)
        engine.regenerate()
        assert engine.dirty == frozenset()

    def test_camera_change_keeps_clouds(self):
        """Moving the camera reuses the cached clouds."""
        engine = MurmurationEngine(SMALL)
        engine.regenerate()
        base, deformed = engine.base_cloud, engine.deformed_cloud
        engine.set_params({"camRotY": 1.2})
        assert engine.dirty == {"camera"}
        engine.regenerate()
        assert engine.base_cloud is base
        assert engine.deformed_cloud is deformed

    def test_deform_change_keeps_base(self):
        """A deformer change resamples nothing."""
        engine = MurmurationEngine(SMALL)
        engine.regenerate()
        base = engine.base_cloud
        engine.set_params({"twistEnabled": True})
        assert engine.dirty == {"deform", "camera"}
        engine.regenerate()
        assert engine.base_cloud is base

    def test_unchanged_value_not_dirty(self):
        """Setting a parameter to its current value invalidates nothing."""
        engine = MurmurationEngine(SMALL)
        engine.regenerate()
        engine.set_params({"count": 200})
        assert engine.dirty == frozenset()

    def test_incremental_equals_fresh(self):
        """Incremental updates end in the same scene as a fresh run."""
        engine = MurmurationEngine(SMALL)
        engine.regenerate()
        engine.set_params({"noiseAmp": 5.0})
        engine.regenerate()
        engine.set_params({"camRotX": -0.4, "projType": "perspective"})
        result = engine.regenerate()
        assert result == generate_scene(engine.state)

    def test_ignores_non_mapping(self):
        """Non-mapping payloads are ignored."""
        engine = MurmurationEngine(SMALL)
        engine.regenerate()
        engine.set_params(["count", 5])  # type: ignore[arg-type]
        assert engine.dirty == frozenset()

    def test_mark_dirty_rejects_unknown_stage(self):
        """Only the three stages exist."""
        with pytest.raises(ValueError):
            MurmurationEngine().mark_dirty("render")

    def test_load_preset(self):
        """Loading a preset merges it and resamples."""
        engine = MurmurationEngine(SMALL)
        engine.regenerate()
        assert engine.load_preset("Ribbon")
        assert engine.state["shapeType"] == "torus"
        assert "shape" in engine.dirty

    def test_load_unknown_preset(self):
        """Unknown presets change nothing."""
        engine = MurmurationEngine(SMALL)
        engine.regenerate()
        assert not engine.load_preset("Nope")
        assert engine.dirty == frozenset()

    def test_glyphs_follow_primitives(self):
        """One glyph per primitive."""
        engine = MurmurationEngine(SMALL)
        assert len(engine.glyphs()) == len(engine.regenerate())

    def test_logs_stage_counts(self, caplog):
        """Each stage reports its size once at debug level."""
        engine = MurmurationEngine(SMALL)
        with caplog.at_level(logging.DEBUG, logger="murmuration.engine"):
            engine.regenerate()
            engine.set_params({"camRotZ": 0.2})
            engine.regenerate()
        messages = [r.getMessage() for r in caplog.records if r.name == "murmuration.engine"]
        assert sum(1 for m in messages if m.startswith("compose")) == 1
        assert sum(1 for m in messages if m.startswith("project")) == 1
