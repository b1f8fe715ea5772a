# app/models/runs.py
# History of import runs triggered through the API / CLI.
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import String, Integer, DateTime, Text, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapped, mapped_column

from app.db import Base, get_sessionmaker

logger = logging.getLogger("uvicorn.error")


class ImportRun(Base):
    __tablename__ = "import_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(String(32), index=True)  # categories, brands, products, techs, stocks
    status: Mapped[str] = mapped_column(String(16), default="done", index=True)
    created_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    error_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)  # json
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "status": self.status,
            "created_count": self.created_count,
            "error_count": self.error_count,
            "summary": json.loads(self.summary) if self.summary else None,
            "error": self.error,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


async def record_run(
    kind: str,
    *,
    started_at: datetime,
    summary: Dict[str, Any] | None = None,
    created_count: int = 0,
    error_count: int = 0,
    error: str | None = None,
) -> int | None:
    """Store one finished run. Never raises: history must not break a sync."""
    run = ImportRun(
        kind=kind,
        status="error" if error else "done",
        created_count=created_count,
        error_count=error_count,
        summary=json.dumps(summary, ensure_ascii=False, default=str) if summary is not None else None,
        error=error,
        started_at=started_at,
        finished_at=datetime.utcnow(),
    )
    try:
        async with get_sessionmaker()() as session:
            session.add(run)
            await session.commit()
            return run.id
    except SQLAlchemyError as e:
        logger.warning("[DB] could not record %s run: %s", kind, e)
        return None


async def list_runs(limit: int = 50, kind: str | None = None) -> List[Dict[str, Any]]:
    stmt = select(ImportRun).order_by(ImportRun.id.desc()).limit(limit)
    if kind:
        stmt = stmt.where(ImportRun.kind == kind)
    async with get_sessionmaker()() as session:
        rows = (await session.execute(stmt)).scalars().all()
    return [r.to_dict() for r in rows]
