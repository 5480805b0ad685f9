"""
Pytest configuration and shared fixtures.

- CSV row builder in the Food.com RAW_recipes.csv column order
- Temporary SQLite recipe store (async engine, NullPool so no connection
  outlives the event loop that opened it)
- In-memory stand-in for the Mongo saved_recipes collection
"""

import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from app.services.ingest.loader import ingest_lines

HEADER = "name,id,minutes,contributor_id,submitted,tags,nutrition,n_steps,steps,description,ingredients,n_ingredients"


def _q(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _pylist(items: List[str]) -> str:
    return "[" + ", ".join(f"'{x}'" for x in items) + "]"


def csv_row(
    name: str = "simple soup",
    ingredients: Optional[List[str]] = None,
    steps: Optional[List[str]] = None,
    minutes: Any = 30,
    nutrition: str = "[100.0, 10.0, 5.0, 5.0, 20.0, 2.0, 30.0]",
    tags: Optional[List[str]] = None,
    rid: int = 1,
) -> str:
    ingredients = ["water", "salt"] if ingredients is None else ingredients
    steps = ["boil", "serve"] if steps is None else steps
    tags = ["easy"] if tags is None else tags
    fields = [
        name,
        str(rid),
        str(minutes),
        "42",
        "2005-09-16",
        _q(_pylist(tags)),
        _q(nutrition),
        str(len(steps)),
        _q(_pylist(steps)),
        _q("a description, with a comma"),
        _q(_pylist(ingredients)),
        str(len(ingredients)),
    ]
    return ",".join(fields)


def recipes_csv(rows: List[str]) -> List[str]:
    return [HEADER + "\n"] + [r + "\n" for r in rows]


# 검색 테스트용 기본 데이터
SEED_ROWS = [
    csv_row("tomato basil pasta", ["diced tomatoes", "basil", "pasta", "tomato paste"],
            nutrition="[500.0, 20.0, 5.0, 5.0, 30.0, 2.0, 20.0]", rid=1),
    csv_row("caprese salad", ["tomato", "mozzarella", "basil"],
            nutrition="[300.0, 20.0, 5.0, 5.0, 30.0, 2.0, 5.0]", rid=2),
    csv_row("garlic bread", ["bread", "garlic", "butter"],
            nutrition="[250.0, 15.0, 5.0, 5.0, 10.0, 2.0, 10.0]", rid=3),
    csv_row("tomato soup", ["tomatoes", "onion", "stock"],
            nutrition="[150.0, 5.0, 5.0, 5.0, 5.0, 2.0, 5.0]", rid=4),
    csv_row("omelette", ["eggs", "milk", "cheese"],
            nutrition="[220.0, 15.0, 5.0, 5.0, 25.0, 2.0, 1.0]", rid=5),
]


def quiet(_msg: str) -> None:
    pass


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'recipes.db'}"


@pytest.fixture
async def engine(db_url):
    eng = create_async_engine(db_url, poolclass=NullPool)
    yield eng
    await eng.dispose()


@pytest.fixture
async def seeded_engine(engine):
    await ingest_lines(recipes_csv(SEED_ROWS), engine, echo=quiet)
    return engine


@pytest.fixture
def seeded_sync_engine(db_url):
    """Seeded store for TestClient tests (sync test functions, separate loop)."""
    eng = create_async_engine(db_url, poolclass=NullPool)
    asyncio.run(ingest_lines(recipes_csv(SEED_ROWS), eng, echo=quiet))
    yield eng
    asyncio.run(eng.dispose())


# =============================================================================
# Mongo stand-in
# =============================================================================

class _UpdateResult:
    def __init__(self, upserted_id=None):
        self.upserted_id = upserted_id


class _DeleteResult:
    def __init__(self, deleted_count: int):
        self.deleted_count = deleted_count


class FakeCursor:
    def __init__(self, docs: List[Dict[str, Any]]):
        self._docs = docs

    def sort(self, key: str, direction: int):
        self._docs = sorted(self._docs, key=lambda d: d[key], reverse=direction < 0)
        return self

    async def to_list(self, length: int):
        return self._docs[:length]


class FakeCollection:
    def __init__(self):
        self.docs: List[Dict[str, Any]] = []
        self._seq = 0

    def _match(self, doc, query):
        return all(doc.get(k) == v for k, v in query.items())

    async def update_one(self, query, update, upsert=False):
        for d in self.docs:
            if self._match(d, query):
                d.update(update.get("$set", {}))
                return _UpdateResult()
        if not upsert:
            return _UpdateResult()
        self._seq += 1
        doc = {**query, **update.get("$set", {}), **update.get("$setOnInsert", {})}
        # 같은 초에 여러 번 저장돼도 순서가 보이게
        doc["created_at"] = datetime(2024, 1, 1, 0, 0, self._seq)
        self.docs.append(doc)
        return _UpdateResult(upserted_id=self._seq)

    def find(self, query, projection=None):
        docs = [dict(d) for d in self.docs if self._match(d, query)]
        if projection and projection.get("_id") == 0:
            for d in docs:
                d.pop("_id", None)
        return FakeCursor(docs)

    async def delete_one(self, query):
        for i, d in enumerate(self.docs):
            if self._match(d, query):
                del self.docs[i]
                return _DeleteResult(1)
        return _DeleteResult(0)


class FakeDB(dict):
    def __missing__(self, name):
        self[name] = FakeCollection()
        return self[name]


@pytest.fixture
def fake_mongo():
    return FakeDB()
