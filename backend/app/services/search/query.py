# app/services/search/query.py
# 매칭 쿼리 빌더
# - 재료 키워드마다 "재료 줄 중 하나라도 부분일치하면 1" 을 MAX(CASE ...)로 만들고 전부 더함
# - 키워드는 항상 바인드 파라미터 (LIKE 와일드카드 %, _ 는 autoescape)
# - 비교 대상 컬럼(TITLE_KEY, INGREDIENT)은 적재 때 이미 소문자. DB lower()에 맡기지 않음 (sqlite는 ASCII만 접음)

from __future__ import annotations
from functools import reduce
from operator import add
from typing import List, Sequence

from sqlalchemy import Select, case, func, or_, select
from sqlalchemy.sql.elements import ColumnElement

from app.db.tables import RECIPE_CARD_COLUMNS, recipe_ingredients, recipes

MATCH_SCORE = "match_score"


def contains_folded(column: ColumnElement, keyword: str) -> ColumnElement:
    # col LIKE '%' || :kw || '%'  (col은 소문자로 저장된 컬럼)
    return column.contains(keyword.lower(), autoescape=True)


def keyword_hit(keyword: str) -> ColumnElement:
    # 키워드 하나당 최대 1점 (레시피 안에서 여러 줄 맞아도 1)
    return func.max(case((contains_folded(recipe_ingredients.c.INGREDIENT, keyword), 1), else_=0))


def match_score(keywords: Sequence[str]) -> ColumnElement:
    if not keywords:
        raise ValueError("match_score needs at least one keyword")
    return reduce(add, [keyword_hit(kw) for kw in keywords])


def title_matches(keywords: Sequence[str]) -> ColumnElement:
    # 제목에 키워드 중 하나라도 포함 (OR)
    if not keywords:
        raise ValueError("title_matches needs at least one keyword")
    return or_(*[contains_folded(recipes.c.TITLE_KEY, kw) for kw in keywords])


def scored_query(ingredients: List[str], keywords: List[str], limit: int) -> Select:
    score = match_score(ingredients)
    having = score > 0
    if keywords:
        # 집계 후 필터 (점수 조건 위에 얹음)
        having = having & title_matches(keywords)
    return (
        select(*RECIPE_CARD_COLUMNS, score.label(MATCH_SCORE))
        .select_from(recipes.join(recipe_ingredients, recipe_ingredients.c.RECIPE_ID == recipes.c.ID))
        .group_by(recipes.c.ID)
        .having(having)
        .order_by(score.desc(), recipes.c.CALORIES.asc(), recipes.c.ID.asc())
        .limit(limit)
    )


def title_query(keywords: List[str], limit: int) -> Select:
    return (
        select(*RECIPE_CARD_COLUMNS)
        .where(title_matches(keywords))
        .order_by(recipes.c.CALORIES.asc(), recipes.c.ID.asc())
        .limit(limit)
    )


def by_id_query(recipe_id: int) -> Select:
    return select(*RECIPE_CARD_COLUMNS).where(recipes.c.ID == recipe_id)
