"""
Pytest configuration and shared fixtures for tech radar tests.

This file provides:
- Settings and a fixed clock
- Repositories (in-memory, SQLite, fake Redis)
- Engines and the TechRadar facade
- Test data builders
"""

import fnmatch
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

# ============================================================================
# Settings & Clock
# ============================================================================

FIXED_NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """Fixed reference time."""
    return FIXED_NOW


@pytest.fixture
def settings():
    """Settings isolated from the environment and any .env file."""
    from tech_radar.config.settings import Settings

    return Settings(
        _env_file=None,
        deprecation_warning_recipients=["architecture@company.com"],
        team_email_domain="company.com",
    )


# ============================================================================
# Repository Fixtures
# ============================================================================

class FakeRedis:
    """Dict-backed stand-in for the subset of redis.Redis we use."""

    def __init__(self):
        self.values: Dict[str, str] = {}
        self.sorted_sets: Dict[str, Dict[str, float]] = {}

    def ping(self):
        return True

    def set(self, key, value):
        self.values[key] = value
        return True

    def get(self, key):
        return self.values.get(key)

    def exists(self, key):
        return int(key in self.values)

    def zadd(self, key, mapping):
        self.sorted_sets.setdefault(key, {}).update(mapping)
        return len(mapping)

    def zrange(self, key, start, end):
        members = sorted(self.sorted_sets.get(key, {}).items(), key=lambda item: (item[1], item[0]))
        names = [name for name, _ in members]
        return names[start:] if end == -1 else names[start:end + 1]

    def keys(self, pattern="*"):
        return [k for k in self.values if fnmatch.fnmatch(k, pattern)]

    def delete(self, *keys):
        return sum(1 for key in keys if self.values.pop(key, None) is not None)

    def zrem(self, key, *members):
        scores = self.sorted_sets.get(key, {})
        return sum(1 for member in members if scores.pop(member, None) is not None)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def session_factory(settings):
    """In-memory SQLite session factory shared across connections."""
    from sqlalchemy.pool import StaticPool
    from tech_radar.store.sql import create_session_factory

    return create_session_factory(
        "sqlite://",
        settings=settings,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


@pytest.fixture
def notice_repository():
    from tech_radar.store.memory import InMemoryNoticeRepository

    return InMemoryNoticeRepository()


@pytest.fixture
def flaky_notice_repository():
    """In-memory notice repository whose writes fail while `down` is set."""
    from tech_radar.store.memory import InMemoryNoticeRepository

    class FlakyNoticeRepository(InMemoryNoticeRepository):
        down = True

        def add(self, notice):
            if self.down:
                raise ConnectionError("notice store unavailable")
            return super().add(notice)

    return FlakyNoticeRepository()


# ============================================================================
# Engine Fixtures
# ============================================================================

@pytest.fixture
def bus():
    from tech_radar.events.bus import EventBus

    return EventBus(name="test")


@pytest.fixture
def scheduler(notice_repository, settings):
    from tech_radar.services.scheduler import DeprecationScheduler

    return DeprecationScheduler(notice_repository, settings=settings)


@pytest.fixture
def entry_store(bus, settings):
    from tech_radar.services.entry_store import EntryStore
    from tech_radar.store.memory import InMemoryEntryRepository

    return EntryStore(InMemoryEntryRepository("Technology"), bus=bus, settings=settings)


@pytest.fixture
def transitions(entry_store, scheduler, bus, settings):
    from tech_radar.services.transitions import TransitionEngine

    return TransitionEngine(entry_store, scheduler, bus=bus, settings=settings)


@pytest.fixture
def snapshot_engine(entry_store, bus, settings):
    from tech_radar.services.snapshots import SnapshotEngine
    from tech_radar.store.memory import InMemorySnapshotRepository

    return SnapshotEngine(entry_store, InMemorySnapshotRepository(), bus=bus, settings=settings)


@pytest.fixture
def api_manager(scheduler, bus, settings):
    from tech_radar.services.api_versions import ApiVersionManager
    from tech_radar.store.memory import InMemoryEntryRepository

    return ApiVersionManager(InMemoryEntryRepository("API version"), scheduler, bus=bus, settings=settings)


@pytest.fixture
def mock_incident_client():
    """Mock incident API client."""
    from tech_radar.clients.incident_client import IncidentClient

    client = MagicMock(spec=IncidentClient)
    client.create_incident.return_value = {"id": "incident-1"}
    return client


@pytest.fixture
def radar(settings, mock_incident_client):
    """TechRadar facade on in-memory repositories with a mocked incident API."""
    from tech_radar.radar import TechRadar

    radar = TechRadar(settings=settings, incident_client=mock_incident_client)
    yield radar
    radar.close()


# ============================================================================
# Test Data Fixtures
# ============================================================================

@pytest.fixture
def make_entry() -> Callable:
    """Builder for technology entries."""
    from tech_radar.models.technology import Assessment, BusinessImpact, TeamUsage, TechnologyEntry

    def _make(
        name: str = "TypeScript",
        ring: str = "trial",
        quadrant: str = "languages-frameworks",
        strategic_value: str = "medium",
        tags: Optional[List[str]] = None,
        teams: Optional[List[str]] = None,
        adoption_level: float = 40,
        description: Optional[str] = None,
        **scores,
    ) -> TechnologyEntry:
        assessment = {
            "maturity": 4,
            "community": 4,
            "documentation": 4,
            "performance": 4,
            "security": 4,
            "maintenance": 4,
            "learning_curve": 2,
        }
        assessment.update(scores)
        return TechnologyEntry(
            name=name,
            description=description if description is not None else f"{name} description",
            quadrant=quadrant,
            ring=ring,
            tags=tags or [],
            adoption_level=adoption_level,
            team_usage=[TeamUsage(team=team, projects=[f"{team}-app"]) for team in (teams or [])],
            assessment=Assessment(**assessment),
            business_impact=BusinessImpact(strategic_value=strategic_value),
        )

    return _make


@pytest.fixture
def typescript(make_entry):
    """TypeScript with an overall score of 4.3."""
    return make_entry(
        name="TypeScript",
        ring="trial",
        tags=["frontend", "language"],
        maturity=5,
        community=5,
    )


@pytest.fixture
def jquery(make_entry):
    return make_entry(
        name="jQuery",
        ring="adopt",
        strategic_value="high",
        tags=["frontend"],
        teams=["web", "marketing"],
        adoption_level=60,
    )
