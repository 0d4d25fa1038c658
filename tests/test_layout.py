"""
Layout Engine Tests.

Tests for:
- Sector and band containment of every placed point
- Seeded (reproducible) and random modes
- Canvas size validation and legend output

Run with:
    pytest tests/test_layout.py -v
"""

import math

import pytest


def _snapshot(entries, now):
    from tech_radar.models.snapshot import RadarSnapshot

    return RadarSnapshot(
        version="2026.01.15",
        title="Tech Radar",
        date=now,
        technologies=entries,
        created_by="tester",
        created_at=now,
    )


@pytest.fixture
def populated_snapshot(make_entry, now):
    """Two entries for every quadrant/ring pair."""
    entries = []
    for quadrant in ("languages-frameworks", "tools", "platforms", "techniques"):
        for ring in ("adopt", "trial", "assess", "hold"):
            for n in range(2):
                entry = make_entry(name=f"{quadrant}-{ring}-{n}", quadrant=quadrant, ring=ring)
                entries.append(entry.model_copy(update={"id": f"{quadrant}-{ring}-{n}"}))
    return _snapshot(entries, now)


class TestPlacement:
    """Tests for point placement."""

    @pytest.mark.parametrize("width,height", [(1200, 800), (800, 1200), (200, 200), (4000, 3000)])
    def test_points_strictly_inside_sector_and_band(self, settings, populated_snapshot, width, height):
        """Test every point lies strictly inside its quadrant sector and ring band."""
        from tech_radar.services.layout import QUADRANT_ANGLES, LayoutEngine

        engine = LayoutEngine(settings)
        layout = engine.layout(populated_snapshot, width, height)
        bands = {legend.key: (legend.inner_radius, legend.radius) for legend in layout.rings}
        cx, cy = layout.metadata.center_x, layout.metadata.center_y

        placed = layout.all_technologies()
        assert len(placed) == 32
        for point in placed:
            dx, dy = point.x - cx, point.y - cy
            radius = math.hypot(dx, dy)
            angle = math.atan2(dy, dx) % (2 * math.pi)
            start, end = QUADRANT_ANGLES[point.quadrant]
            inner, outer = bands[point.ring]

            assert start < angle < end, point
            assert inner < radius < outer, point

    def test_points_grouped_by_quadrant(self, settings, populated_snapshot):
        from tech_radar.services.layout import LayoutEngine

        layout = LayoutEngine(settings).layout(populated_snapshot)

        assert [q.key.value for q in layout.quadrants] == [
            "languages-frameworks", "tools", "platforms", "techniques",
        ]
        for quadrant in layout.quadrants:
            assert len(quadrant.technologies) == 8
            assert {t.quadrant for t in quadrant.technologies} == {quadrant.key}

    def test_empty_snapshot(self, settings, now):
        from tech_radar.services.layout import LayoutEngine

        layout = LayoutEngine(settings).layout(_snapshot([], now))

        assert layout.all_technologies() == []
        assert len(layout.rings) == 4


class TestModes:
    """Tests for seeded and random placement."""

    def test_seeded_is_reproducible(self, settings, populated_snapshot):
        from tech_radar.models.enums import LayoutMode
        from tech_radar.services.layout import LayoutEngine

        first = LayoutEngine(settings, mode=LayoutMode.SEEDED).layout(populated_snapshot)
        second = LayoutEngine(settings, mode="seeded").layout(populated_snapshot)

        assert first.all_technologies() == second.all_technologies()

    def test_seed_depends_on_id(self):
        from tech_radar.services.layout import seed_for

        assert seed_for("a") == seed_for("a")
        assert seed_for("a") != seed_for("b")
        assert 0 <= seed_for("a") < 2 ** 64

    def test_random_mode_varies(self, settings, populated_snapshot):
        from tech_radar.services.layout import LayoutEngine

        engine = LayoutEngine(settings)
        first = [(p.x, p.y) for p in engine.layout(populated_snapshot).all_technologies()]
        second = [(p.x, p.y) for p in engine.layout(populated_snapshot).all_technologies()]

        assert first != second


class TestCanvas:
    """Tests for canvas validation and metadata."""

    @pytest.mark.parametrize("width,height", [(199, 800), (800, 150), (10, 10)])
    def test_small_canvas_rejected(self, settings, populated_snapshot, width, height):
        from tech_radar.errors import ValidationError
        from tech_radar.services.layout import LayoutEngine

        with pytest.raises(ValidationError) as exc_info:
            LayoutEngine(settings).layout(populated_snapshot, width, height)

        assert f"got {width}x{height}" in exc_info.value.message

    def test_default_canvas(self, settings, populated_snapshot):
        from tech_radar.services.layout import LayoutEngine

        layout = LayoutEngine(settings).layout(populated_snapshot)

        assert (layout.metadata.width, layout.metadata.height) == (1200, 800)

    def test_metadata_and_legend(self, settings, populated_snapshot):
        from tech_radar.services.layout import LayoutEngine

        layout = LayoutEngine(settings).layout(populated_snapshot, 1200, 800)

        assert layout.metadata.max_radius == 350
        assert layout.metadata.center_x == 600
        assert layout.metadata.center_y == 400
        assert layout.metadata.date == "2026-01-15"
        assert layout.metadata.version == "2026.01.15"
        assert [(r.key.value, r.radius, r.color) for r in layout.rings] == [
            ("adopt", 87.5, "#5cb85c"),
            ("trial", 175.0, "#f0ad4e"),
            ("assess", 262.5, "#5bc0de"),
            ("hold", 350.0, "#d9534f"),
        ]
        assert layout.rings[0].inner_radius == 0
