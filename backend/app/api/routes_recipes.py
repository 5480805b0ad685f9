# app/api/routes_recipes.py
# 재료(사진 감지 결과) + 프롬프트 → 상위 3개 레시피 (+ 선택: Gemini 팁)
# 400: 재료/키워드 없음, 404: 매칭 없음, 500: 검색 실패: 프론트가 셋을 구분할 수 있게

from __future__ import annotations
import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncEngine

from app.db.warehouse import get_engine
from app.models.schemas import GenerateIn, GenerateOut, GenerateResult, RecipeOut, to_recipe_out
from app.services import enrich
from app.services.search.engine import (
    NoSearchCriteria,
    RecipeHit,
    RecipeStoreError,
    SearchResult,
    get_recipe,
    search_recipes,
)

log = logging.getLogger(__name__)

router = APIRouter(prefix="/recipes", tags=["recipes"])

NO_MATCHES = "No matching recipes found. Try different ingredients or a different prompt."


async def _annotated(hits: List[RecipeHit], detected: List[str]) -> List[RecipeOut]:
    if not enrich.enabled():
        return [to_recipe_out(h) for h in hits]
    notes = await asyncio.gather(*[enrich.annotate(h.title, h.ingredients, detected) for h in hits])
    return [to_recipe_out(h, ai) for h, ai in zip(hits, notes)]


async def run_search(ingredients: List[str], prompt: str, engine: AsyncEngine) -> SearchResult:
    # 라우터 공통: 도메인 예외 → HTTP 상태
    try:
        return await search_recipes(ingredients, prompt, engine=engine)
    except NoSearchCriteria as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RecipeStoreError:
        raise HTTPException(status_code=500, detail="Failed to query recipes")


async def respond(result: SearchResult) -> GenerateOut:
    if result.status == "no_matches":
        raise HTTPException(status_code=404, detail=NO_MATCHES)
    recipes = await _annotated(result.recipes, result.criteria.ingredients)
    return GenerateOut(result=GenerateResult(recipes=recipes))


@router.post("/generate", response_model=GenerateOut)
async def generate(body: GenerateIn, engine: AsyncEngine = Depends(get_engine)):
    result = await run_search(body.ingredients, body.prompt or "", engine)
    return await respond(result)


@router.get("/{rid}", response_model=RecipeOut)
async def get_recipe_full(rid: int, engine: AsyncEngine = Depends(get_engine)):
    try:
        hit = await get_recipe(rid, engine=engine)
    except RecipeStoreError:
        raise HTTPException(status_code=500, detail="Failed to query recipes")
    if hit is None:
        raise HTTPException(status_code=404, detail="recipe not found")
    return to_recipe_out(hit)
