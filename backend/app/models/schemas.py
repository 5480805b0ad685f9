# app/models/schemas.py
# API 입출력 스키마: 프론트 필드명 그대로 (recipeId 등 camelCase 허용)
from __future__ import annotations
from typing import List, Optional
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.services.search.engine import RecipeHit


class GenerateIn(BaseModel):
    prompt: Optional[str] = ""
    ingredients: List[str] = Field(default_factory=list)


class NutritionOut(BaseModel):
    calories: str     # "320 kcal"
    protein: str      # "12g"
    fat: str
    carbohydrates: str


class VariationsOut(BaseModel):
    healthier: Optional[str] = None
    faster: Optional[str] = None


class AiOut(BaseModel):
    tip: Optional[str] = None
    variations: VariationsOut = Field(default_factory=VariationsOut)


class RecipeOut(BaseModel):
    id: str
    title: str
    ingredients: List[str] = Field(default_factory=list)
    steps: List[str] = Field(default_factory=list)
    time_to_make: str = "Unknown"
    nutrition: NutritionOut
    ai: AiOut = Field(default_factory=AiOut)


class GenerateResult(BaseModel):
    recipes: List[RecipeOut]


class GenerateOut(BaseModel):
    result: GenerateResult


class DetectOut(BaseModel):
    ingredients: List[str] = Field(default_factory=list)


class SavedRecipeIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recipe_id: str = Field(..., alias="recipeId", min_length=1)
    title: Optional[str] = None


class SavedRecipeOut(BaseModel):
    recipe_id: str
    title: Optional[str] = None
    created_at: datetime


class SavedRecipesOut(BaseModel):
    recipes: List[SavedRecipeOut]


def to_recipe_out(hit: RecipeHit, ai: Optional[dict] = None) -> RecipeOut:
    return RecipeOut(
        id=str(hit.id),
        title=hit.title,
        ingredients=hit.ingredients,
        steps=hit.steps,
        time_to_make=hit.time_to_make or "Unknown",
        nutrition=NutritionOut(
            calories=f"{hit.calories} kcal",
            protein=f"{hit.protein_g}g",
            fat=f"{hit.fat_g}g",
            carbohydrates=f"{hit.carbs_g}g",
        ),
        ai=AiOut.model_validate(ai) if ai else AiOut(),
    )
