"""
Snapshot Engine Tests.

Tests for:
- Structural diff against the latest published snapshot
- Date-derived versions
- Summary counts
- One-way publication

Run with:
    pytest tests/test_snapshots.py -v
"""

from datetime import timedelta

import pytest


# ============================================================================
# Diff Tests
# ============================================================================

class TestDiffTechnologies:
    """Tests for diff_technologies."""

    def test_no_baseline_everything_added(self, entry_store, typescript, jquery, now):
        from tech_radar.services.snapshots import diff_technologies

        ts = entry_store.add(typescript, now=now)
        jq = entry_store.add(jquery, now=now)

        changes = diff_technologies(entry_store.list(), None)

        assert sorted(changes.added) == sorted([ts.id, jq.id])
        assert changes.moved == changes.removed == changes.updated == []

    def test_buckets(self, entry_store, transitions, snapshot_engine, make_entry, now):
        """Test added, moved, updated and removed buckets against the baseline."""
        from tech_radar.services.snapshots import diff_technologies

        moved = entry_store.add(make_entry(name="Moved"), now=now)
        edited = entry_store.add(make_entry(name="Edited"), now=now)
        untouched = entry_store.add(make_entry(name="Untouched"), now=now)
        baseline = snapshot_engine.create_snapshot("Q1", publish=True, now=now)

        transitions.move(moved.id, "adopt", "proven", now=now)
        transitions.update_details(edited.id, {"description": "changed"}, now=now)
        added = entry_store.add(make_entry(name="Added"), now=now)
        # dropping an entry leaves its id only in the baseline
        current = [e for e in entry_store.list() if e.id != untouched.id]

        changes = diff_technologies(current, baseline)

        assert changes.added == [added.id]
        assert [(m.technology_id, m.from_ring.value, m.to_ring.value) for m in changes.moved] == [
            (moved.id, "trial", "adopt")
        ]
        assert changes.updated == [edited.id]
        assert changes.removed == [untouched.id]

    def test_unchanged_entries_in_no_bucket(self, entry_store, snapshot_engine, typescript, now):
        """Test an entry equal to its baseline copy is not reported."""
        entry_store.add(typescript, now=now)
        snapshot_engine.create_snapshot("Q1", publish=True, now=now)

        second = snapshot_engine.create_snapshot("Q2", now=now + timedelta(days=1))

        assert second.changes.is_empty

    def test_unpublished_snapshot_is_not_baseline(self, entry_store, snapshot_engine, typescript, now):
        """Test diffs ignore snapshots that were never published."""
        ts = entry_store.add(typescript, now=now)
        snapshot_engine.create_snapshot("draft", now=now)

        second = snapshot_engine.create_snapshot("draft 2", now=now)

        assert second.changes.added == [ts.id]


# ============================================================================
# Versioning Tests
# ============================================================================

class TestVersioning:
    """Tests for date-derived snapshot versions."""

    def test_same_day_suffixes(self, snapshot_engine, now):
        """Test later snapshots on the same day get .2, .3."""
        versions = [snapshot_engine.create_snapshot(f"s{i}", now=now).version for i in range(3)]

        assert versions == ["2026.01.15", "2026.01.15.2", "2026.01.15.3"]

    def test_new_day_resets(self, snapshot_engine, now):
        snapshot_engine.create_snapshot("a", now=now)
        snapshot_engine.create_snapshot("b", now=now)

        assert snapshot_engine.create_snapshot("c", now=now + timedelta(days=1)).version == "2026.01.16"


# ============================================================================
# Summary Tests
# ============================================================================

class TestSummarize:
    """Tests for snapshot summary counts."""

    def test_counts(self, entry_store, transitions, make_entry, now):
        from tech_radar.services.snapshots import summarize

        entry_store.add(make_entry(name="Old"), now=now - timedelta(days=60))
        entry_store.add(make_entry(name="Go", quadrant="tools", ring="adopt"), now=now - timedelta(days=5))
        legacy = entry_store.add(make_entry(name="Legacy", quadrant="tools"), now=now)
        transitions.deprecate(legacy.id, "superseded", now=now)

        summary = summarize(entry_store.list(), now, new_window_days=30)

        assert summary.total_technologies == 3
        assert summary.by_quadrant == {
            "languages-frameworks": 1,
            "tools": 2,
            "platforms": 0,
            "techniques": 0,
        }
        assert summary.by_ring == {"adopt": 1, "trial": 1, "assess": 0, "hold": 1}
        assert summary.new_technologies == 2
        assert summary.deprecated_technologies == 1

    def test_empty(self, now):
        from tech_radar.services.snapshots import summarize

        summary = summarize([], now)

        assert summary.total_technologies == 0
        assert set(summary.by_ring.values()) == {0}


# ============================================================================
# Snapshot Lifecycle Tests
# ============================================================================

class TestSnapshotEngine:
    """Tests for SnapshotEngine create/publish/get."""

    def test_snapshot_is_a_copy(self, entry_store, transitions, snapshot_engine, typescript, now):
        """Test later store changes do not alter a stored snapshot."""
        ts = entry_store.add(typescript, now=now)
        snapshot = snapshot_engine.create_snapshot("Q1", actor="alice", now=now)

        transitions.move(ts.id, "hold", "abandoned", now=now)

        stored = snapshot_engine.get_snapshot(snapshot.id)
        assert stored.get_technology(ts.id).ring.value == "trial"
        assert stored.created_by == "alice"
        assert stored.summary.total_technologies == 1

    def test_publish_publishes_event(self, snapshot_engine, bus, now):
        from tech_radar.models.events import RadarPublished

        snapshot = snapshot_engine.create_snapshot("Q1", now=now)

        published = snapshot_engine.publish_snapshot(snapshot.id, now=now)

        assert published.is_published is True
        assert published.published_at == now
        assert bus.history(RadarPublished)[-1].snapshot_id == snapshot.id
        assert snapshot_engine.latest_published().id == snapshot.id

    def test_create_and_publish(self, snapshot_engine, now):
        snapshot = snapshot_engine.create_snapshot("Q1", publish=True, now=now)

        assert snapshot.is_published is True

    def test_publish_twice_conflicts(self, snapshot_engine, now):
        from tech_radar.errors import Conflict

        snapshot = snapshot_engine.create_snapshot("Q1", publish=True, now=now)

        with pytest.raises(Conflict):
            snapshot_engine.publish_snapshot(snapshot.id, now=now)

    def test_get_unknown(self, snapshot_engine):
        from tech_radar.errors import NotFound

        with pytest.raises(NotFound):
            snapshot_engine.get_snapshot("missing")

    def test_list_in_creation_order(self, snapshot_engine, now):
        first = snapshot_engine.create_snapshot("a", now=now)
        second = snapshot_engine.create_snapshot("b", now=now)

        assert [s.id for s in snapshot_engine.list_snapshots()] == [first.id, second.id]
