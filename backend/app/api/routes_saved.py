# app/api/routes_saved.py
# 레시피 북마크: anon_id 쿠키 기준, Mongo saved_recipes 컬렉션

from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pymongo.errors import PyMongoError

from app.core.deps import get_or_set_anon_id, read_anon_id
from app.db.indexes import SAVED_RECIPES
from app.db.init import get_db
from app.models.schemas import SavedRecipeIn, SavedRecipeOut, SavedRecipesOut

router = APIRouter(prefix="/saved-recipes", tags=["saved-recipes"])

LIST_LIMIT = 200


def bookmark_db():
    # Mongo 미연결이면 북마크만 503 (검색은 계속 동작)
    try:
        return get_db()
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.post("")
async def save_recipe(
    payload: SavedRecipeIn,
    anon_id: str = Depends(get_or_set_anon_id),
    db=Depends(bookmark_db),
):
    try:
        res = await db[SAVED_RECIPES].update_one(
            {"anon_id": anon_id, "recipe_id": payload.recipe_id},
            {
                "$set": {"title": payload.title},
                # 최초 저장 시각만 기록 (재저장해도 순서 유지)
                "$setOnInsert": {"created_at": datetime.now(timezone.utc)},
            },
            upsert=True,
        )
    except PyMongoError as e:
        raise HTTPException(status_code=500, detail=f"DB 저장 오류: {e}")
    return {"ok": True, "mode": "inserted" if res.upserted_id else "updated"}


@router.get("", response_model=SavedRecipesOut)
async def list_saved(request: Request, db=Depends(bookmark_db)):
    anon_id: Optional[str] = read_anon_id(request)
    if anon_id is None:
        return SavedRecipesOut(recipes=[])
    try:
        cur = db[SAVED_RECIPES].find({"anon_id": anon_id}, {"_id": 0}).sort("created_at", -1)
        docs = await cur.to_list(length=LIST_LIMIT)
    except PyMongoError as e:
        raise HTTPException(status_code=500, detail=f"DB 조회 오류: {e}")
    return SavedRecipesOut(recipes=[SavedRecipeOut(**d) for d in docs])


@router.delete("/{recipe_id}")
async def delete_saved(recipe_id: str, request: Request, db=Depends(bookmark_db)):
    anon_id = read_anon_id(request)
    if anon_id is None:
        raise HTTPException(status_code=404, detail="not saved")
    try:
        res = await db[SAVED_RECIPES].delete_one({"anon_id": anon_id, "recipe_id": recipe_id})
    except PyMongoError as e:
        raise HTTPException(status_code=500, detail=f"DB 삭제 오류: {e}")
    if not res.deleted_count:
        raise HTTPException(status_code=404, detail="not saved")
    return {"ok": True}
