# app/scripts/load_recipes.py
# Food.com RAW_recipes.csv → RECIPES 테이블 일회성 적재
#
# 준비:
#   1. https://www.kaggle.com/datasets/shuyangli94/food-com-recipes-and-user-interactions
#      에서 RAW_recipes.csv 다운로드 → data/RAW_recipes.csv
#   2. .env 에 DATABASE_URL 설정 (기본: sqlite+aiosqlite:///./recipes.db)
#   3. python -m app.scripts.load_recipes [--csv PATH] [--batch-size N]
#
# 실행마다 테이블을 DROP 후 다시 만든다 (두 번 돌려도 행 수 동일)
import argparse
import asyncio
import logging
import sys

from app.core.config import settings
from app.db.warehouse import create_engine_for
from app.services.ingest.loader import IngestError, IngestReport, ingest_csv


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Load Food.com recipes into the recipe store")
    p.add_argument("--csv", default=settings.INGEST_CSV_PATH, help="path to RAW_recipes.csv")
    p.add_argument("--batch-size", type=int, default=settings.INGEST_BATCH_SIZE)
    p.add_argument("--database-url", default=settings.DATABASE_URL)
    p.add_argument("-v", "--verbose", action="store_true")
    return p


async def run(csv_path: str, database_url: str, batch_size: int) -> IngestReport:
    engine = create_engine_for(database_url)
    try:
        print("Connecting to recipe store...")
        return await ingest_csv(csv_path, engine, batch_size=batch_size)
    finally:
        await engine.dispose()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(run(args.csv, args.database_url, args.batch_size))
    except FileNotFoundError as e:
        print(f"[ingest] CSV not found: {e.filename}", file=sys.stderr)
        return 2
    except IngestError as e:
        print(f"[ingest] Fatal error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
