# app/db/warehouse.py
# 레시피 저장소(SQL) 연결: 프로세스당 엔진 1개, 첫 사용 시 생성
# 쿼리마다 커넥션을 빌려 쓰고 반납한다 (async with connect())

from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List

from sqlalchemy import func, select
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.sql import Executable

from app.core.config import settings
from app.db.tables import recipes

log = logging.getLogger(__name__)

_engine: AsyncEngine | None = None


def create_engine_for(url: str, pool_size: int | None = None) -> AsyncEngine:
    # sqlite는 드라이버 기본 풀 사용, 그 외는 상한 고정 + ping
    u = make_url(url)
    opts: Dict[str, Any] = {}
    if u.get_backend_name() != "sqlite":
        opts.update(pool_size=pool_size or settings.DB_POOL_SIZE, max_overflow=0, pool_pre_ping=True)
    return create_async_engine(u, **opts)


def get_engine() -> AsyncEngine:
    # 라우터/검색에서 쓰는 핸들. 없으면 그때 만든다
    global _engine
    if _engine is None:
        _engine = create_engine_for(settings.DATABASE_URL)
        log.info("recipe store engine created (%s)", make_url(settings.DATABASE_URL).render_as_string(hide_password=True))
    return _engine


async def dispose_engine() -> None:
    # 앱 종료 시 풀 정리
    global _engine
    if _engine is not None:
        await _engine.dispose()
    _engine = None


@asynccontextmanager
async def connect(engine: AsyncEngine | None = None) -> AsyncIterator[AsyncConnection]:
    async with (engine or get_engine()).connect() as conn:
        yield conn


async def fetch_all(stmt: Executable, engine: AsyncEngine | None = None) -> List[Dict[str, Any]]:
    async with connect(engine) as conn:
        result = await conn.execute(stmt)
        return [dict(row) for row in result.mappings().all()]


async def count_recipes(engine: AsyncEngine | None = None) -> int:
    async with connect(engine) as conn:
        return int(await conn.scalar(select(func.count()).select_from(recipes)) or 0)


async def ping(engine: AsyncEngine | None = None) -> None:
    async with connect(engine) as conn:
        await conn.execute(select(1))
