"""Tests for search criteria, the match-score query builder and the retrieval engine."""
import pytest
from sqlalchemy.dialects import sqlite

from app.services.search import engine as search_engine
from app.services.search.criteria import build_criteria, normalize_ingredients, prompt_keywords
from app.services.search.engine import NoSearchCriteria, RecipeStoreError, get_recipe, search_recipes
from app.services.ingest.loader import ingest_lines
from app.services.search.query import match_score, scored_query, title_query
from conftest import csv_row, quiet, recipes_csv


def _titles(result):
    return [r.title for r in result.recipes]


class TestCriteria:
    def test_normalize_ingredients(self):
        assert normalize_ingredients([" Tomato ", "tomato", "", "Red  Onion", None]) == ["tomato", "red onion"]

    def test_prompt_keywords_drop_short_tokens(self):
        assert prompt_keywords("I want a Tomato SOUP") == ["want", "tomato", "soup"]

    def test_prompt_keywords_capped_at_five(self):
        assert prompt_keywords("one two three four five six seven") == ["one", "two", "three", "four", "five"]

    def test_empty_prompt(self):
        assert prompt_keywords("") == []
        assert prompt_keywords(None) == []

    def test_criteria_is_empty(self):
        assert build_criteria([], "a an").is_empty
        assert not build_criteria(["egg"], "").is_empty


class TestQueryBuilder:
    def _sql(self, stmt):
        return str(stmt.compile(dialect=sqlite.dialect()))

    def test_keywords_are_bound_not_inlined(self):
        stmt = scored_query(["tomato", "basil"], ["soup"], 3)
        sql = self._sql(stmt)
        assert "tomato" not in sql
        assert "basil" not in sql
        assert "soup" not in sql
        params = stmt.compile(dialect=sqlite.dialect()).params
        assert "tomato" in params.values()
        assert "soup" in params.values()

    def test_one_case_per_keyword(self):
        sql = self._sql(scored_query(["a1", "b2", "c3"], [], 3))
        assert sql.count("CASE WHEN") >= 3
        assert "GROUP BY" in sql
        assert "HAVING" in sql

    def test_title_filter_only_with_keywords(self):
        assert '"RECIPES"."TITLE_KEY"' not in self._sql(scored_query(["egg"], [], 3))
        assert '"RECIPES"."TITLE_KEY"' in self._sql(scored_query(["egg"], ["soup"], 3))

    def test_empty_keyword_lists_rejected(self):
        with pytest.raises(ValueError):
            match_score([])
        with pytest.raises(ValueError):
            title_query([], 3)


class TestSearchRecipes:
    async def test_substring_match(self, seeded_engine):
        result = await search_recipes(["tomato"], "", engine=seeded_engine)
        assert result.status == "ok"
        assert all(r.match_score >= 1 for r in result.recipes)
        # 같은 점수면 칼로리 낮은 순
        assert _titles(result) == ["tomato soup", "caprese salad", "tomato basil pasta"]

    async def test_single_recipe_store(self, engine):
        await ingest_lines(recipes_csv([csv_row("salsa", ["diced tomatoes", "onion"])]), engine, echo=quiet)
        result = await search_recipes(["tomato"], "", engine=engine)
        assert _titles(result) == ["salsa"]
        assert result.recipes[0].match_score >= 1

    async def test_keyword_counts_once_per_recipe(self, seeded_engine):
        # pasta has two tomato entries but still scores 1 for "tomato"
        result = await search_recipes(["tomato"], "", engine=seeded_engine)
        pasta = next(r for r in result.recipes if r.title == "tomato basil pasta")
        assert pasta.match_score == 1

    async def test_more_keywords_rank_higher(self, seeded_engine):
        result = await search_recipes(["tomato", "basil"], "", engine=seeded_engine)
        assert _titles(result) == ["caprese salad", "tomato basil pasta", "tomato soup"]
        assert [r.match_score for r in result.recipes] == [2, 2, 1]

    async def test_title_filter_applies(self, seeded_engine):
        result = await search_recipes(["tomato"], "hot soup", engine=seeded_engine)
        assert _titles(result) == ["tomato soup"]
        assert not result.degraded
        assert result.queries == 1

    async def test_degrades_when_title_filter_empties_result(self, seeded_engine):
        result = await search_recipes(["tomato"], "xyzzynonexistentword", engine=seeded_engine)
        assert result.degraded
        assert result.queries == 2
        assert _titles(result) == ["tomato soup", "caprese salad", "tomato basil pasta"]

    async def test_prompt_only_orders_by_calories(self, seeded_engine):
        result = await search_recipes([], "tomato", engine=seeded_engine)
        assert _titles(result) == ["tomato soup", "tomato basil pasta"]
        assert all(r.match_score is None for r in result.recipes)

    async def test_at_most_three(self, seeded_engine):
        result = await search_recipes(["a"], "", engine=seeded_engine)
        assert len(result.recipes) == 3

    async def test_no_matches_is_not_an_error(self, seeded_engine):
        result = await search_recipes(["chocolate"], "", engine=seeded_engine)
        assert result.status == "no_matches"
        assert result.recipes == []
        assert result.queries == 1

    async def test_no_matches_after_degradation(self, seeded_engine):
        result = await search_recipes(["chocolate"], "cake", engine=seeded_engine)
        assert result.status == "no_matches"
        assert result.queries == 2

    async def test_wildcards_are_literal(self, seeded_engine):
        result = await search_recipes(["%"], "", engine=seeded_engine)
        assert result.status == "no_matches"

    async def test_non_ascii_case_folding(self, engine):
        # sqlite lower()/LIKE는 ASCII만 접으므로 적재 때 접어 둔 값으로 비교
        rows = [csv_row("CRÈME BRÛLÉE", ["Crème Fraîche", "sugar"])]
        await ingest_lines(recipes_csv(rows), engine, echo=quiet)

        by_ingredient = await search_recipes(["CRÈME"], "", engine=engine)
        assert _titles(by_ingredient) == ["CRÈME BRÛLÉE"]
        assert by_ingredient.recipes[0].ingredients == ["Crème Fraîche", "sugar"]

        by_title = await search_recipes([], "brûlée", engine=engine)
        assert _titles(by_title) == ["CRÈME BRÛLÉE"]

    async def test_nutrition_and_time_returned(self, seeded_engine):
        result = await search_recipes(["mozzarella"], "", engine=seeded_engine)
        hit = result.recipes[0]
        assert hit.title == "caprese salad"
        assert (hit.calories, hit.fat_g, hit.protein_g, hit.carbs_g) == (300, 16, 15, 15)
        assert hit.time_to_make == "30 minutes"
        assert hit.ingredients == ["tomato", "mozzarella", "basil"]

    async def test_empty_criteria_issues_no_query(self, monkeypatch):
        async def boom(*args, **kwargs):
            raise AssertionError("query should not run")

        monkeypatch.setattr(search_engine, "fetch_all", boom)
        with pytest.raises(NoSearchCriteria):
            await search_recipes([], "", engine=None)
        with pytest.raises(NoSearchCriteria):
            await search_recipes(["  "], "to be", engine=None)

    async def test_store_failure_is_wrapped(self, engine):
        # empty database: RECIPES table does not exist
        with pytest.raises(RecipeStoreError):
            await search_recipes(["tomato"], "", engine=engine)


class TestGetRecipe:
    async def test_found_and_missing(self, seeded_engine):
        first = (await search_recipes([], "omelette", engine=seeded_engine)).recipes[0]
        assert (await get_recipe(first.id, engine=seeded_engine)).title == "omelette"
        assert await get_recipe(9999, engine=seeded_engine) is None
