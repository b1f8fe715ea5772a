import asyncio
from datetime import datetime

import pytest

import app.db as db
from app.config import settings
from app.models.runs import list_runs, record_run


@pytest.fixture
def sqlite_db(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'data' / 'runs.db'}")
    monkeypatch.setattr(db, "_engine", None)
    monkeypatch.setattr(db, "_sessionmaker", None)
    return tmp_path / "data" / "runs.db"


def test_record_and_list_runs(sqlite_db):
    async def scenario():
        await db.init_db()
        try:
            first = await record_run("categories", started_at=datetime.utcnow(), summary={"created": [1, 2]}, created_count=2)
            second = await record_run("stocks", started_at=datetime.utcnow(), error="feed down")
            return first, second, await list_runs(), await list_runs(kind="categories")
        finally:
            await db.dispose_db()

    first, second, runs, categories = asyncio.run(scenario())

    assert sqlite_db.exists()
    assert second > first
    assert [r["kind"] for r in runs] == ["stocks", "categories"]
    assert runs[0]["status"] == "error"
    assert runs[0]["error"] == "feed down"
    assert runs[1]["summary"] == {"created": [1, 2]}
    assert runs[1]["created_count"] == 2
    assert [r["id"] for r in categories] == [first]


def test_record_run_without_tables_returns_none(sqlite_db):
    async def scenario():
        try:
            return await record_run("brands", started_at=datetime.utcnow())
        finally:
            await db.dispose_db()

    assert asyncio.run(scenario()) is None
