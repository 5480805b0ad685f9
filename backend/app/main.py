# app/main.py
# FastAPI 앱 초기화 및 라우터 설정
# 라우터는 각 기능별로 분리하여 관리

from __future__ import annotations

import logging
from asyncio import sleep

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError
from sqlalchemy.exc import SQLAlchemyError

from app.api.routes_photo import router as photo_router       # 사진 → 재료
from app.api.routes_recipes import router as recipes_router   # 재료/프롬프트 → 레시피
from app.api.routes_saved import router as saved_router       # 북마크
from app.db.indexes import ensure_indexes
from app.db.init import close_db, get_db, init_db
from app.db.warehouse import dispose_engine, ping

log = logging.getLogger(__name__)

MONGO_RETRIES = 5

app = FastAPI(title="Fridge Recipes - API", version="0.1.0")

# CORS: 프론트 localhost:3000 허용 + 쿠키 전달
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 앱 시작/종료 이벤트 핸들러
@app.on_event("startup")
async def on_startup() -> None:
    # 레시피 저장소 엔진은 첫 쿼리 때 생성 (lazy)
    # 북마크 Mongo는 여기서 붙는다 (최대 5회, 1초 간격). 실패해도 검색은 동작
    db = None
    for i in range(MONGO_RETRIES):
        try:
            db = await init_db()
            log.info("[startup] mongo ready")
            break
        except PyMongoError as e:
            log.warning("[startup] mongo init retry %d: %s", i + 1, e)
            await sleep(1.0)
    if db is None:
        log.error("[startup] mongo init failed after retries; bookmarks disabled")
        return

    try:
        await ensure_indexes()
        log.info("[startup] indexes ensured")
    except PyMongoError as e:
        log.warning("[startup] ensure_indexes failed: %s", e)

@app.on_event("shutdown")
async def on_shutdown() -> None:
    await dispose_engine()
    await close_db()

@app.get("/")
async def root():
    return {"status": "ok"}

@app.get("/health")
async def health():
    ok = {"status": "ok", "recipes": "ok", "mongo": "skip"}
    try:
        await ping()
    except SQLAlchemyError as e:
        ok["recipes"] = f"error: {e}"
    try:
        await get_db().command("ping")
        ok["mongo"] = "ok"
    except RuntimeError:
        pass   # 미초기화
    except PyMongoError as e:
        ok["mongo"] = f"error: {e}"
    return ok

# 라우터 prefix는 각 파일 내에서 정의함 , 중복 prefix 금지
app.include_router(recipes_router)
app.include_router(photo_router)
app.include_router(saved_router)
