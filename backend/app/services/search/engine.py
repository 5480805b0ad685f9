# app/services/search/engine.py
# 재료/프롬프트 → 상위 3개 레시피
# 1) 둘 다 비었으면 NoSearchCriteria (쿼리 안 함)
# 2) 재료 있음: 점수(맞은 재료 키워드 수) > 0, 프롬프트 있으면 제목 필터까지
#    → 0건이고 프롬프트가 있었으면 제목 필터 빼고 한 번 더 (degrade)
# 3) 프롬프트만: 제목 부분일치, 칼로리 오름차순
# 4) 결과 0건은 오류가 아니라 status="no_matches"

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.config import settings
from app.db.warehouse import fetch_all
from app.services.search.criteria import SearchCriteria, build_criteria
from app.services.search.query import MATCH_SCORE, by_id_query, scored_query, title_query

log = logging.getLogger(__name__)


class NoSearchCriteria(ValueError):
    """재료도 프롬프트 키워드도 없음: 호출측 입력 오류"""


class RecipeStoreError(RuntimeError):
    """검색 쿼리 자체가 실패 (저장소 연결/SQL 오류)"""


class RecipeHit(BaseModel):
    id: int
    title: str
    ingredients: List[str] = Field(default_factory=list)
    steps: List[str] = Field(default_factory=list)
    time_to_make: str = "Unknown"
    calories: int = 0
    protein_g: int = 0
    fat_g: int = 0
    carbs_g: int = 0
    match_score: Optional[int] = None   # 프롬프트 전용 검색은 점수 없음

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "RecipeHit":
        return cls(
            id=row["ID"],
            title=row["TITLE"] or "",
            ingredients=_as_list(row.get("INGREDIENTS")),
            steps=_as_list(row.get("STEPS")),
            time_to_make=row.get("TIME_TO_MAKE") or "Unknown",
            calories=round(row.get("CALORIES") or 0),
            protein_g=round(row.get("PROTEIN_G") or 0),
            fat_g=round(row.get("FAT_G") or 0),
            carbs_g=round(row.get("CARBS_G") or 0),
            match_score=row.get(MATCH_SCORE),
        )


def _as_list(v: Any) -> List[str]:
    # JSON 컬럼은 드라이버에 따라 list 또는 문자열로 올 수 있음
    if isinstance(v, list):
        return [str(x) for x in v]
    if isinstance(v, str):
        try:
            obj = json.loads(v)
        except ValueError:
            return []
        return [str(x) for x in obj] if isinstance(obj, list) else []
    return []


@dataclass
class SearchResult:
    criteria: SearchCriteria
    recipes: List[RecipeHit] = field(default_factory=list)
    degraded: bool = False   # 제목 필터를 빼고 재검색했는지
    queries: int = 0

    @property
    def status(self) -> str:
        return "ok" if self.recipes else "no_matches"


async def _run(stmt, engine: Optional[AsyncEngine]) -> List[RecipeHit]:
    try:
        rows = await fetch_all(stmt, engine)
    except SQLAlchemyError as e:
        log.exception("recipe query failed")
        raise RecipeStoreError(str(e)) from e
    return [RecipeHit.from_row(r) for r in rows]


async def search_criteria(
    criteria: SearchCriteria,
    engine: Optional[AsyncEngine] = None,
    limit: Optional[int] = None,
) -> SearchResult:
    if criteria.is_empty:
        raise NoSearchCriteria("Please provide ingredients or a search prompt")
    limit = limit or settings.SEARCH_LIMIT
    result = SearchResult(criteria=criteria)

    if criteria.ingredients:
        result.recipes = await _run(scored_query(criteria.ingredients, criteria.keywords, limit), engine)
        result.queries += 1
        if not result.recipes and criteria.keywords:
            # 재료는 맞는데 제목에 키워드가 없는 경우 복구
            result.recipes = await _run(scored_query(criteria.ingredients, [], limit), engine)
            result.queries += 1
            result.degraded = True
    else:
        result.recipes = await _run(title_query(criteria.keywords, limit), engine)
        result.queries += 1

    log.info("search ingredients=%s keywords=%s -> %d rows (degraded=%s)",
             criteria.ingredients, criteria.keywords, len(result.recipes), result.degraded)
    return result


async def search_recipes(
    ingredients: Optional[Iterable[object]],
    prompt: Optional[str],
    engine: Optional[AsyncEngine] = None,
    limit: Optional[int] = None,
) -> SearchResult:
    return await search_criteria(build_criteria(ingredients, prompt), engine=engine, limit=limit)


async def get_recipe(recipe_id: int, engine: Optional[AsyncEngine] = None) -> Optional[RecipeHit]:
    # 북마크 상세 조회용
    hits = await _run(by_id_query(recipe_id), engine)
    return hits[0] if hits else None
