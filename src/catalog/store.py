"""SQLite-backed application catalog."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from sqlalchemy import DateTime, String, Text, create_engine, select
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from model.application import ApplicationRequest


class ApplicationNotFound(KeyError):
    """No catalog entry has the requested id."""


class Base(DeclarativeBase):
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Application(Base):
    __tablename__ = "applications"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    url: Mapped[str] = mapped_column(String, nullable=False)
    icon: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)


def sqlite_url(path: str) -> str:
    """Build a SQLAlchemy URL for ``path``, creating its directory."""
    if path == ":memory:":
        return "sqlite://"
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{path}"


class CatalogStore:
    """CRUD over the ``applications`` table keyed by opaque string ids."""

    def __init__(self, url: str) -> None:
        """
        :param url: SQLAlchemy database URL, e.g. ``sqlite:///data/homelab.db``.
        """
        kwargs = {}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool
        self._engine = create_engine(url, **kwargs)
        self._session = sessionmaker(self._engine, expire_on_commit=False)
        Base.metadata.create_all(self._engine)

    def close(self) -> None:
        self._engine.dispose()

    def list(self) -> List[Application]:
        with self._session() as session:
            stmt = select(Application).order_by(Application.created_at.desc())
            return list(session.scalars(stmt))

    def get(self, app_id: str) -> Application:
        with self._session() as session:
            app = session.get(Application, app_id)
            if app is None:
                raise ApplicationNotFound(app_id)
            return app

    def create(self, req: ApplicationRequest) -> Application:
        now = _now()
        app = Application(
            id=str(uuid.uuid4()),
            name=req.name,
            description=req.description,
            url=req.url,
            icon=req.icon or None,
            created_at=now,
            updated_at=now,
        )
        with self._session.begin() as session:
            session.add(app)
        return app

    def update(self, app_id: str, req: ApplicationRequest) -> Application:
        with self._session.begin() as session:
            app = session.get(Application, app_id)
            if app is None:
                raise ApplicationNotFound(app_id)
            app.name = req.name
            app.description = req.description
            app.url = req.url
            app.icon = req.icon or None
            app.updated_at = _now()
        return app

    def delete(self, app_id: str) -> None:
        with self._session.begin() as session:
            app = session.get(Application, app_id)
            if app is None:
                raise ApplicationNotFound(app_id)
            session.delete(app)
