# app/services/ingest/loader.py
# CSV 적재 파이프라인: 읽기 → 디코드 → 배치 누적 → 500개마다 벌크 INSERT
# - 실행마다 테이블을 DROP/CREATE (전체 교체, upsert 없음)
# - 배치 하나 = 트랜잭션 하나. 실패한 배치는 재시도하지 않고 실행 전체를 중단

from __future__ import annotations
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from app.core.config import settings
from app.db.tables import metadata, recipe_ingredients, recipes
from app.db.warehouse import count_recipes
from app.models.recipe import RecipeRecord
from app.services.ingest.decode import Rejection, decode_row, parse_csv_line

log = logging.getLogger(__name__)

FlushFn = Callable[[List[RecipeRecord]], Awaitable[None]]


class IngestError(Exception):
    """저장소 연결/쓰기 실패: 적재 실행 전체 중단"""


@dataclass
class IngestReport:
    accepted: int = 0
    skipped: int = 0
    verified: int = 0
    batches: int = 0
    headers: List[str] = field(default_factory=list)
    skip_reasons: Dict[str, int] = field(default_factory=dict)


class RecipeBatcher:
    """
    accepted 레코드를 batch_size만큼 모았다가 flush 한 번으로 넘긴다.
    close()에서 남은 것까지 flush → 총 flush 횟수 = ceil(accepted / batch_size)
    """

    def __init__(self, flush: FlushFn, batch_size: int = 500):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._flush = flush
        self.batch_size = batch_size
        self._buf: List[RecipeRecord] = []
        self.flushed = 0     # flush된 레코드 수
        self.batches = 0

    async def add(self, record: RecipeRecord) -> int:
        # 이번 호출로 flush된 개수 (없으면 0)
        self._buf.append(record)
        if len(self._buf) >= self.batch_size:
            return await self._drain()
        return 0

    async def close(self) -> int:
        if self._buf:
            return await self._drain()
        return 0

    async def _drain(self) -> int:
        batch, self._buf = self._buf, []
        await self._flush(batch)
        self.flushed += len(batch)
        self.batches += 1
        return len(batch)


async def reset_tables(conn: AsyncConnection) -> None:
    # 전체 교체: 기존 테이블 삭제 후 재생성
    await conn.run_sync(metadata.drop_all)
    await conn.run_sync(metadata.create_all)


async def insert_batch(conn: AsyncConnection, batch: List[RecipeRecord]) -> None:
    if not batch:
        return
    # RETURNING으로 부여된 ID를 입력 순서대로 받아 펼친 재료 행에 사용
    result = await conn.execute(
        recipes.insert().returning(recipes.c.ID, sort_by_parameter_order=True),
        [{**rec.to_row(), "TITLE_KEY": rec.title.lower()} for rec in batch],
    )
    ids = result.scalars().all()
    ing_rows = [
        {"RECIPE_ID": rid, "POSITION": pos, "INGREDIENT": ing.lower()}
        for rid, rec in zip(ids, batch)
        for pos, ing in enumerate(rec.ingredients)
    ]
    await conn.execute(recipe_ingredients.insert(), ing_rows)


def _crossed(total: int, step: int, every: int) -> bool:
    # total이 이번 step으로 every의 배수를 넘었는지
    return every > 0 and step > 0 and total // every > (total - step) // every


async def ingest_lines(
    lines: Iterable[str],
    engine: AsyncEngine,
    batch_size: Optional[int] = None,
    progress_every: Optional[int] = None,
    echo: Callable[[str], None] = print,
) -> IngestReport:
    """
    헤더 1줄 + 데이터 N줄을 받아 RECIPES를 새로 채운다.
    필드 파싱 실패는 기본값, 행 구조 문제는 skip, 저장소 오류는 IngestError.
    """
    batch_size = batch_size or settings.INGEST_BATCH_SIZE
    progress_every = settings.INGEST_PROGRESS_EVERY if progress_every is None else progress_every
    report = IngestReport()
    reasons: Counter = Counter()

    async def _flush(batch: List[RecipeRecord]) -> None:
        async with engine.begin() as conn:
            await insert_batch(conn, batch)

    batcher = RecipeBatcher(_flush, batch_size=batch_size)

    try:
        echo("Creating RECIPES table...")
        async with engine.begin() as conn:
            await reset_tables(conn)
        echo("Table created.")

        for raw in lines:
            line = raw.rstrip("\r\n")
            if not report.headers:
                report.headers = parse_csv_line(line)
                echo(f"CSV headers: {report.headers}")
                continue
            if not line.strip():
                continue

            out = decode_row(parse_csv_line(line))
            if isinstance(out, Rejection):
                report.skipped += 1
                reasons[out.reason] += 1
                continue

            n = await batcher.add(out)
            if _crossed(batcher.flushed, n, progress_every):
                echo(f"  Inserted {batcher.flushed} rows...")

        await batcher.close()
        report.accepted = batcher.flushed
        report.batches = batcher.batches
        report.skip_reasons = dict(reasons)
        echo(f"\nDone! Inserted {report.accepted} recipes (skipped {report.skipped} invalid rows).")

        report.verified = await count_recipes(engine)
        echo(f"Verification: {report.verified} rows in RECIPES table.")
    except SQLAlchemyError as e:
        log.error("ingest aborted after %d flushed rows: %s", batcher.flushed, e)
        raise IngestError(f"recipe store write failed after {batcher.flushed} rows: {e}") from e

    log.info("ingest done accepted=%d skipped=%d verified=%d reasons=%s",
             report.accepted, report.skipped, report.verified, report.skip_reasons)
    return report


async def ingest_csv(path: str, engine: AsyncEngine, **kwargs) -> IngestReport:
    # 한 줄씩 스트리밍 (필드 안 줄바꿈은 지원 안 함)
    with open(path, "r", encoding="utf-8", newline="") as fh:
        return await ingest_lines(fh, engine, **kwargs)
