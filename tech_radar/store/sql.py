"""
SQLAlchemy repositories for entries and snapshots.

Entities are stored as a JSON payload next to the indexed columns needed
for lookups. Compare-and-swap is a conditional UPDATE on (id, version);
zero affected rows means the write was stale.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Generator, Generic, List, Optional, Type

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, create_engine, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from tech_radar.config.settings import Settings, get_settings
from tech_radar.errors import Conflict, NotFound
from tech_radar.models.snapshot import RadarSnapshot
from tech_radar.store.base import EntryRepository, SnapshotRepository, T
from tech_radar.utils import utcnow

logger = logging.getLogger(__name__)

Base = declarative_base()


class EntityRecord(Base):
    __tablename__ = "tech_radar_entities"

    id = Column(String(64), primary_key=True)
    kind = Column(String(32), nullable=False, index=True)
    version = Column(Integer, nullable=False, index=True)
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class SnapshotRecord(Base):
    __tablename__ = "tech_radar_snapshots"

    id = Column(String(64), primary_key=True)
    sequence = Column(Integer, nullable=False, unique=True)
    version_label = Column(String(32), nullable=False, index=True)
    is_published = Column(Boolean, nullable=False, default=False, index=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


def create_session_factory(
    database_url: Optional[str] = None,
    settings: Optional[Settings] = None,
    **engine_kwargs,
) -> sessionmaker:
    """
    Create the engine, ensure the tables exist and return a session factory.

    Args:
        database_url: SQLAlchemy URL, defaults to settings.database_url
        settings: Settings override
        **engine_kwargs: Extra create_engine arguments (e.g. poolclass)
    """
    settings = settings or get_settings()
    engine = create_engine(
        database_url or settings.database_url,
        echo=settings.database_echo,
        **engine_kwargs,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)


class _SessionScoped:
    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    @contextmanager
    def _session_scope(self) -> Generator[Session, None, None]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


class SQLEntryRepository(_SessionScoped, EntryRepository[T], Generic[T]):
    """
    Entry repository for one entity kind (technologies or API versions).

    Args:
        session_factory: sessionmaker bound to the radar database
        model_cls: Pydantic model stored in this repository
        kind: Discriminator stored in the `kind` column
        entity_name: Name used in NotFound/Conflict messages
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        model_cls: Type[T],
        kind: str,
        entity_name: str = "Entity",
    ):
        super().__init__(session_factory)
        self.model_cls = model_cls
        self.kind = kind
        self.entity_name = entity_name

    def _to_model(self, record: EntityRecord) -> T:
        return self.model_cls.model_validate(record.payload)

    def get(self, entity_id: str) -> Optional[T]:
        with self._session_scope() as session:
            record = session.query(EntityRecord).filter(
                EntityRecord.id == entity_id,
                EntityRecord.kind == self.kind,
            ).first()
            return self._to_model(record) if record is not None else None

    def put(self, entity: T) -> T:
        with self._session_scope() as session:
            exists = session.query(EntityRecord.id).filter(EntityRecord.id == entity.id).first()
            if exists is not None:
                raise Conflict(
                    f"{self.entity_name} with ID {entity.id} already exists",
                    entity_id=entity.id,
                )
            session.add(EntityRecord(
                id=entity.id,
                kind=self.kind,
                version=entity.version,
                payload=entity.model_dump(mode="json"),
                created_at=entity.created_at or utcnow(),
                updated_at=entity.updated_at or utcnow(),
            ))
        logger.debug(f"Inserted {self.kind} {entity.id}")
        return entity.model_copy(deep=True)

    def list(self) -> List[T]:
        with self._session_scope() as session:
            records = session.query(EntityRecord).filter(
                EntityRecord.kind == self.kind,
            ).order_by(EntityRecord.created_at, EntityRecord.id).all()
            return [self._to_model(r) for r in records]

    def compare_and_swap(self, entity: T, expected_version: int) -> T:
        with self._session_scope() as session:
            updated = session.query(EntityRecord).filter(
                EntityRecord.id == entity.id,
                EntityRecord.kind == self.kind,
                EntityRecord.version == expected_version,
            ).update(
                {
                    EntityRecord.version: entity.version,
                    EntityRecord.payload: entity.model_dump(mode="json"),
                    EntityRecord.updated_at: entity.updated_at or utcnow(),
                },
                synchronize_session=False,
            )
            if updated == 0:
                current = session.query(EntityRecord.version).filter(
                    EntityRecord.id == entity.id,
                    EntityRecord.kind == self.kind,
                ).first()
                if current is None:
                    raise NotFound(self.entity_name, entity.id)
                logger.warning(
                    f"Stale write rejected for {self.kind} {entity.id}",
                    extra={"expected_version": expected_version, "actual_version": current[0]},
                )
                raise Conflict(
                    f"{self.entity_name} {entity.id} was modified concurrently",
                    entity_id=entity.id,
                    expected_version=expected_version,
                    actual_version=current[0],
                )
        return entity.model_copy(deep=True)


class SQLSnapshotRepository(_SessionScoped, SnapshotRepository):
    """Snapshot history; rows are never updated except for publication."""

    def _to_model(self, record: SnapshotRecord) -> RadarSnapshot:
        return RadarSnapshot.model_validate(record.payload)

    def add(self, snapshot: RadarSnapshot) -> RadarSnapshot:
        try:
            with self._session_scope() as session:
                if session.get(SnapshotRecord, snapshot.id) is not None:
                    raise Conflict(f"Snapshot with ID {snapshot.id} already exists", entity_id=snapshot.id)
                sequence = (session.query(func.max(SnapshotRecord.sequence)).scalar() or 0) + 1
                session.add(SnapshotRecord(
                    id=snapshot.id,
                    sequence=sequence,
                    version_label=snapshot.version,
                    is_published=snapshot.is_published,
                    published_at=snapshot.published_at,
                    payload=snapshot.model_dump(mode="json", by_alias=True),
                    created_at=snapshot.created_at,
                ))
        except IntegrityError as e:
            raise Conflict(
                f"Snapshot sequence taken by a concurrent writer: {snapshot.version}",
                entity_id=snapshot.id,
            ) from e
        logger.info(f"Stored snapshot {snapshot.version}", extra={"snapshot_id": snapshot.id})
        return snapshot.model_copy(deep=True)

    def get(self, snapshot_id: str) -> Optional[RadarSnapshot]:
        with self._session_scope() as session:
            record = session.get(SnapshotRecord, snapshot_id)
            return self._to_model(record) if record is not None else None

    def list(self) -> List[RadarSnapshot]:
        with self._session_scope() as session:
            records = session.query(SnapshotRecord).order_by(SnapshotRecord.sequence).all()
            return [self._to_model(r) for r in records]

    def latest_published(self) -> Optional[RadarSnapshot]:
        with self._session_scope() as session:
            record = session.query(SnapshotRecord).filter(
                SnapshotRecord.is_published.is_(True),
            ).order_by(SnapshotRecord.sequence.desc()).first()
            return self._to_model(record) if record is not None else None

    def mark_published(self, snapshot_id: str, published_at: datetime) -> RadarSnapshot:
        with self._session_scope() as session:
            record = session.get(SnapshotRecord, snapshot_id)
            if record is None:
                raise NotFound("Snapshot", snapshot_id)
            published = self._to_model(record).model_copy(
                update={"is_published": True, "published_at": published_at},
            )
            updated = session.query(SnapshotRecord).filter(
                SnapshotRecord.id == snapshot_id,
                SnapshotRecord.is_published.is_(False),
            ).update(
                {
                    SnapshotRecord.is_published: True,
                    SnapshotRecord.published_at: published_at,
                    SnapshotRecord.payload: published.model_dump(mode="json", by_alias=True),
                },
                synchronize_session=False,
            )
            if updated == 0:
                raise Conflict(f"Snapshot {snapshot_id} is already published", entity_id=snapshot_id)
        return published
