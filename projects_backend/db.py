"""
Record store abstraction for SQL databases and an in-memory test implementation.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, Optional, Protocol

from sqlalchemy import Column, DateTime, String, Text, create_engine, select
from sqlalchemy.orm import Session, declarative_base, sessionmaker

UPDATABLE_FIELDS = ("title", "description", "url", "image_path")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProjectStore(Protocol):
    """Interface for project persistence."""

    def insert(self, record: "ProjectRecord") -> "ProjectRecord":
        ...

    def find_all(self) -> list["ProjectRecord"]:
        ...

    def find_by_id(self, project_id: str) -> Optional["ProjectRecord"]:
        ...

    def update(self, project_id: str, changes: dict) -> Optional["ProjectRecord"]:
        ...

    def delete(self, project_id: str) -> Optional["ProjectRecord"]:
        ...

    def close(self) -> None:
        ...


@dataclass
class ProjectRecord:
    title: str
    description: str
    url: str
    image_path: str
    id: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)


def _checked_changes(changes: dict) -> dict:
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValueError(f"Fields cannot be updated: {sorted(unknown)}")
    return changes


class InMemoryProjectStore:
    """Simple in-memory record store for development and tests."""

    def __init__(self):
        self.projects: Dict[str, ProjectRecord] = {}
        self._lock = threading.Lock()

    def insert(self, record: ProjectRecord) -> ProjectRecord:
        stored = replace(record, id=uuid.uuid4().hex)
        with self._lock:
            self.projects[stored.id] = stored
        return replace(stored)

    def find_all(self) -> list[ProjectRecord]:
        with self._lock:
            records = [replace(r) for r in self.projects.values()]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def find_by_id(self, project_id: str) -> Optional[ProjectRecord]:
        with self._lock:
            record = self.projects.get(project_id)
        return replace(record) if record else None

    def update(self, project_id: str, changes: dict) -> Optional[ProjectRecord]:
        changes = _checked_changes(changes)
        with self._lock:
            record = self.projects.get(project_id)
            if not record:
                return None
            updated = replace(record, **changes)
            self.projects[project_id] = updated
        return replace(updated)

    def delete(self, project_id: str) -> Optional[ProjectRecord]:
        with self._lock:
            record = self.projects.pop(project_id, None)
        return replace(record) if record else None

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.projects.clear()

    def close(self) -> None:
        pass


class SqlProjectStore:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("database_url is required for SqlProjectStore")
        engine_kwargs = {"future": True}
        if database_url.startswith("sqlite") and ":memory:" in database_url:
            # A single shared connection keeps the in-memory database alive
            # across sessions and threads.
            from sqlalchemy.pool import StaticPool

            engine_kwargs.update(
                connect_args={"check_same_thread": False}, poolclass=StaticPool
            )
        self.engine = create_engine(database_url, **engine_kwargs)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def _to_record(self, row: "ProjectRow") -> ProjectRecord:
        created_at = row.created_at
        # SQLite drops tzinfo on the way back out.
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return ProjectRecord(
            id=row.id,
            title=row.title,
            description=row.description,
            url=row.url,
            image_path=row.image_path,
            created_at=created_at,
        )

    def insert(self, record: ProjectRecord) -> ProjectRecord:
        with self.Session() as session:
            row = ProjectRow(
                id=uuid.uuid4().hex,
                title=record.title,
                description=record.description,
                url=record.url,
                image_path=record.image_path,
                created_at=record.created_at,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_record(row)

    def find_all(self) -> list[ProjectRecord]:
        with self.Session() as session:
            stmt = select(ProjectRow).order_by(ProjectRow.created_at.desc())
            return [self._to_record(row) for row in session.execute(stmt).scalars()]

    def find_by_id(self, project_id: str) -> Optional[ProjectRecord]:
        with self.Session() as session:
            row = session.get(ProjectRow, project_id)
            if not row:
                return None
            return self._to_record(row)

    def update(self, project_id: str, changes: dict) -> Optional[ProjectRecord]:
        changes = _checked_changes(changes)
        with self.Session() as session:
            row = session.get(ProjectRow, project_id)
            if not row:
                return None
            for name, value in changes.items():
                setattr(row, name, value)
            session.commit()
            session.refresh(row)
            return self._to_record(row)

    def delete(self, project_id: str) -> Optional[ProjectRecord]:
        with self.Session() as session:
            row = session.get(ProjectRow, project_id)
            if not row:
                return None
            record = self._to_record(row)
            session.delete(row)
            session.commit()
            return record

    def close(self) -> None:
        self.engine.dispose()


Base = declarative_base()


class ProjectRow(Base):
    __tablename__ = "projects"

    id = Column(String(32), primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    url = Column(String, nullable=False)
    image_path = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
