"""
API Version Manager Tests.

Tests for:
- Version label parsing per strategy
- Promotion, deprecation and advancement
- Usage metrics, listing and deprecation timelines

Run with:
    pytest tests/test_api_versions.py -v
"""

from datetime import timedelta

import pytest


# ============================================================================
# Parsing Tests
# ============================================================================

class TestParseVersion:
    """Tests for parse_version."""

    @pytest.mark.parametrize("label,strategy,expected", [
        ("2.1.0", "semantic", (2, 1, 0, None)),
        ("1.0.0-beta.1", "semantic", (1, 0, 0, "beta.1")),
        ("3.4.5+build.7", "semantic", (3, 4, 5, None)),
        ("2024.01.15", "date-based", (2024, 1, 15, None)),
        ("v3", "sequential", (3, 0, None, None)),
        ("12", "sequential", (12, 0, None, None)),
        ("1.2", "header-based", (1, 2, None, None)),
    ])
    def test_valid_labels(self, label, strategy, expected):
        from tech_radar.services.api_versions import parse_version

        assert tuple(parse_version(label, strategy)) == expected

    @pytest.mark.parametrize("label,strategy", [
        ("2.1", "semantic"),
        ("01.2.3", "semantic"),
        ("v2.1.0", "semantic"),
        ("2024-01-15", "date-based"),
        ("2024.02.30", "date-based"),
        ("version3", "sequential"),
        ("1.2.3", "header-based"),
    ])
    def test_invalid_labels(self, label, strategy):
        from tech_radar.errors import ValidationError
        from tech_radar.services.api_versions import parse_version

        with pytest.raises(ValidationError) as exc_info:
            parse_version(label, strategy)

        assert exc_info.value.details["reason"] == "INVALID_VERSION_FORMAT"

    def test_unknown_strategy(self):
        from tech_radar.errors import ValidationError
        from tech_radar.services.api_versions import parse_version

        with pytest.raises(ValidationError):
            parse_version("1.0.0", "calendar")


class TestHelpers:
    """Tests for severity and effort helpers."""

    @pytest.mark.parametrize("clients,severity", [
        (0, "info"), (10, "info"), (11, "warning"), (100, "warning"), (101, "critical"),
    ])
    def test_severity_thresholds(self, clients, severity):
        from tech_radar.services.api_versions import deprecation_severity

        assert deprecation_severity(clients).value == severity

    @pytest.mark.parametrize("count,effort", [(0, "low"), (1, "medium"), (3, "medium"), (4, "high")])
    def test_migration_effort(self, count, effort):
        from tech_radar.services.api_versions import migration_effort

        assert migration_effort([f"change {i}" for i in range(count)]).value == effort


# ============================================================================
# Lifecycle Tests
# ============================================================================

class TestCreateAndPromote:
    """Tests for create_api_version and promote."""

    def test_create(self, api_manager, now):
        created = api_manager.create_api_version(
            "orders", "2.1.0", "semantic", actor="alice", contact_email="orders@company.com", now=now,
        )

        assert created.status.value == "development"
        assert (created.major_version, created.minor_version, created.patch_version) == (2, 1, 0)
        assert created.release_date == now
        assert created.support.contact_email == "orders@company.com"
        assert created.version == 1

    def test_duplicate_label_conflicts(self, api_manager, now):
        from tech_radar.errors import Conflict

        api_manager.create_api_version("orders", "1.0.0", "semantic", now=now)

        with pytest.raises(Conflict):
            api_manager.create_api_version("orders", "1.0.0", "semantic", now=now)

        assert api_manager.create_api_version("billing", "1.0.0", "semantic", now=now)

    def test_blank_api_name(self, api_manager, now):
        from tech_radar.errors import ValidationError

        with pytest.raises(ValidationError):
            api_manager.create_api_version(" ", "1.0.0", "semantic", now=now)

    def test_promote_forward(self, api_manager, now):
        created = api_manager.create_api_version("orders", "1.0.0", "semantic", now=now)
        later = now + timedelta(days=30)

        beta = api_manager.promote(created.id, "beta", now=now)
        stable = api_manager.promote(created.id, "stable", now=later)

        assert beta.status.value == "beta"
        assert stable.status.value == "stable"
        assert stable.release_date == later
        assert stable.version == 3

    @pytest.mark.parametrize("target", ["development", "deprecated"])
    def test_promote_rejects_non_forward(self, api_manager, now, target):
        from tech_radar.errors import Conflict

        created = api_manager.create_api_version("orders", "1.0.0", "semantic", now=now)

        with pytest.raises(Conflict):
            api_manager.promote(created.id, target, now=now)


class TestDeprecateApiVersion:
    """Tests for deprecate_api_version."""

    def _with_clients(self, api_manager, now, clients, label="1.0.0"):
        created = api_manager.create_api_version(
            "orders", label, "semantic", contact_email="orders@company.com", now=now,
        )
        api_manager.update_usage(created.id, {"active_clients": clients}, now=now)
        return created

    def test_notice(self, api_manager, bus, now):
        from tech_radar.models.events import ApiVersionDeprecated

        created = self._with_clients(api_manager, now, 150)

        notice = api_manager.deprecate_api_version(
            created.id,
            "Superseded by 2.0.0",
            migration_guide="https://docs/orders/v2",
            breaking_changes=["renamed total", "dropped xml"],
            replacement_version="2.0.0",
            now=now,
        )

        assert notice.type.value == "api-version"
        assert notice.severity.value == "critical"
        assert notice.title == "API Deprecation: orders v1.0.0"
        assert notice.message == "API version 1.0.0 of orders has been deprecated. Superseded by 2.0.0"
        assert [r.target for r in notice.recipients] == ["architecture@company.com", "orders@company.com"]
        assert notice.migration.estimated_effort.value == "medium"
        assert bus.history(ApiVersionDeprecated)[-1].label == "1.0.0"

        stored = api_manager.get(created.id)
        assert stored.status.value == "deprecated"
        assert stored.support.support_level.value == "maintenance"
        assert stored.support.support_end_date == now + timedelta(days=180)
        assert stored.deprecation.breaking_changes == ["renamed total", "dropped xml"]

    def test_low_usage_is_info(self, api_manager, now):
        created = self._with_clients(api_manager, now, 3)

        notice = api_manager.deprecate_api_version(created.id, "unused", now=now)

        assert notice.severity.value == "info"
        assert notice.migration is None

    def test_deprecate_twice_conflicts(self, api_manager, now):
        from tech_radar.errors import Conflict

        created = self._with_clients(api_manager, now, 0)
        api_manager.deprecate_api_version(created.id, "old", now=now)

        with pytest.raises(Conflict):
            api_manager.deprecate_api_version(created.id, "old", now=now)

    def test_notice_store_failure_leaves_version_active(self, bus, settings, flaky_notice_repository, now):
        from tech_radar.services.api_versions import ApiVersionManager
        from tech_radar.services.scheduler import DeprecationScheduler
        from tech_radar.store.memory import InMemoryEntryRepository

        manager = ApiVersionManager(
            InMemoryEntryRepository("API version"),
            DeprecationScheduler(flaky_notice_repository, settings=settings),
            bus=bus,
            settings=settings,
        )
        created = self._with_clients(manager, now, 20)

        with pytest.raises(ConnectionError):
            manager.deprecate_api_version(created.id, "old", now=now)

        current = manager.get(created.id)
        assert current.status.value == "development"
        assert current.deprecation is None

        flaky_notice_repository.down = False
        notice = manager.deprecate_api_version(created.id, "old", now=now)

        assert manager.get(created.id).status.value == "deprecated"
        assert [n.id for n in flaky_notice_repository.list()] == [notice.id]

    def test_failed_commit_withdraws_notice(self, api_manager, scheduler, now):
        from unittest.mock import patch
        from tech_radar.errors import Conflict

        created = self._with_clients(api_manager, now, 20)

        with patch.object(api_manager.repository, "compare_and_swap", side_effect=Conflict("stale")):
            with pytest.raises(Conflict):
                api_manager.deprecate_api_version(created.id, "old", now=now)

        assert scheduler.list_notices(now=now) == []

    def test_advance(self, api_manager, now):
        """Test sunset drops support to security-only and removal to none."""
        created = self._with_clients(api_manager, now, 0)
        api_manager.deprecate_api_version(created.id, "old", now=now)

        sunset = api_manager.advance(created.id, now=now + timedelta(days=180))
        assert sunset.status.value == "sunset"
        assert sunset.support.support_level.value == "security-only"

        removed = api_manager.advance(created.id, now=now + timedelta(days=365))
        assert removed.status.value == "removed"
        assert removed.support.support_level.value == "none"
        assert [h.status.value for h in removed.deprecation.history] == ["deprecated", "sunset", "removed"]

        assert api_manager.advance(created.id, now=now + timedelta(days=365)) == removed


# ============================================================================
# Usage & Listing Tests
# ============================================================================

class TestUsage:
    """Tests for update_usage."""

    def test_partial_update_merges(self, api_manager, now):
        created = api_manager.create_api_version("orders", "1.0.0", "semantic", now=now)
        api_manager.update_usage(created.id, {"active_clients": 12, "requests_per_day": 5000}, now=now)
        later = now + timedelta(hours=1)

        updated = api_manager.update_usage(created.id, {"error_rate": 0.02}, now=later)

        assert updated.usage.active_clients == 12
        assert updated.usage.requests_per_day == 5000
        assert updated.usage.error_rate == 0.02
        assert updated.usage.last_used == later

    def test_out_of_range_rejected(self, api_manager, now):
        from tech_radar.errors import ValidationError

        created = api_manager.create_api_version("orders", "1.0.0", "semantic", now=now)

        with pytest.raises(ValidationError):
            api_manager.update_usage(created.id, {"error_rate": 2.0}, now=now)

        assert api_manager.get(created.id).version == 1


class TestListApiVersions:
    """Tests for list_api_versions."""

    def test_sorted_by_name_then_version(self, api_manager, now):
        for api_name, label in [("orders", "2.0.0"), ("billing", "1.0.0"), ("orders", "1.10.0"),
                                ("orders", "1.2.0"), ("orders", "2.0.0-rc.1")]:
            api_manager.create_api_version(api_name, label, "semantic", now=now)

        listed = [(v.api_name, v.label) for v in api_manager.list_api_versions()]

        assert listed == [
            ("billing", "1.0.0"),
            ("orders", "1.2.0"),
            ("orders", "1.10.0"),
            ("orders", "2.0.0-rc.1"),
            ("orders", "2.0.0"),
        ]

    def test_filters(self, api_manager, now):
        from tech_radar.models.enums import ApiLifecycleStatus

        old = api_manager.create_api_version("orders", "1.0.0", "semantic", now=now)
        current = api_manager.create_api_version("orders", "2.0.0", "semantic", now=now)
        api_manager.update_usage(old.id, {"active_clients": 4}, now=now)
        api_manager.deprecate_api_version(old.id, "replaced", now=now)
        api_manager.promote(current.id, "stable", now=now)

        assert [v.id for v in api_manager.list_api_versions(deprecated=True)] == [old.id]
        assert [v.id for v in api_manager.list_api_versions(deprecated=False)] == [current.id]
        assert [v.id for v in api_manager.list_api_versions(status=ApiLifecycleStatus.STABLE)] == [current.id]
        assert [v.id for v in api_manager.list_api_versions(active_only=True)] == [old.id]
        assert api_manager.list_api_versions(api_name="billing") == []


class TestDeprecationTimeline:
    """Tests for deprecation_timeline and recommendations."""

    def test_timeline(self, api_manager, now):
        old = api_manager.create_api_version("orders", "1.0.0", "semantic", now=now)
        api_manager.create_api_version("orders", "2.0.0", "semantic", now=now)
        api_manager.update_usage(old.id, {"active_clients": 7}, now=now)
        api_manager.deprecate_api_version(old.id, "replaced", now=now)

        timeline = api_manager.deprecation_timeline("orders", now=now)

        assert [(e.label, e.status.value, e.active_clients) for e in timeline.versions] == [
            ("1.0.0", "deprecated", 7),
            ("2.0.0", "development", 0),
        ]
        assert timeline.versions[0].removal_date == now + timedelta(days=365)
        assert timeline.versions[1].sunset_date is None
        assert timeline.recommendations == ["1 version(s) are deprecated and should be migrated"]

    def test_consolidation_and_age(self, api_manager, now):
        released = now - timedelta(days=800)
        for label in ("1.0.0", "1.1.0", "1.2.0", "1.3.0"):
            created = api_manager.create_api_version("orders", label, "semantic", now=released)
            api_manager.update_usage(created.id, {"active_clients": 2}, now=now)

        recommendations = api_manager.deprecation_timeline("orders", now=now).recommendations

        assert recommendations == [
            "Consider consolidating API versions to reduce maintenance overhead",
            "4 version(s) are over 2 years old and should be evaluated for deprecation",
        ]

    def test_unknown_api_is_empty(self, api_manager, now):
        timeline = api_manager.deprecation_timeline("nothing", now=now)

        assert timeline.versions == []
        assert timeline.recommendations == []
