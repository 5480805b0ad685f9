# app/models/recipe.py
# 적재용 레시피 레코드: CSV 한 줄이 검증을 통과하면 정확히 한 번 생성된다
# id는 레코드에 없음: 저장소 INSERT 시점에 자동 부여

from __future__ import annotations
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

TITLE_MAX_LEN = 1000  # 아주 긴 제목은 잘라서 저장


def minutes_to_readable(minutes: Any) -> str:
    """분 → 사람이 읽는 문자열 ("45 minutes", "1 hour", "2h 15m", 0/파싱불가는 "Unknown")"""
    try:
        m = int(minutes)
    except (TypeError, ValueError):
        return "Unknown"
    if m <= 0:
        return "Unknown"
    if m < 60:
        return f"{m} minutes"
    hrs, rem = divmod(m, 60)
    if rem == 0:
        return "1 hour" if hrs == 1 else f"{hrs} hours"
    return f"{hrs}h {rem}m"


class Nutrition(BaseModel):
    model_config = ConfigDict(frozen=True)

    calories: int = Field(0, ge=0)    # kcal
    protein_g: int = Field(0, ge=0)
    fat_g: int = Field(0, ge=0)
    carbs_g: int = Field(0, ge=0)

    @classmethod
    def zero(cls) -> "Nutrition":
        return cls()


class RecipeRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    ingredients: List[str] = Field(..., min_length=1)
    steps: List[str] = Field(..., min_length=1)
    minutes: int = Field(0, ge=0)     # 0 = 모름
    nutrition: Nutrition = Field(default_factory=Nutrition.zero)
    tags: List[str] = Field(default_factory=list)
    n_ingredients: int = Field(0, ge=0)
    n_steps: int = Field(0, ge=0)

    @field_validator("title", mode="before")
    @classmethod
    def _v_clip_title(cls, v):
        return str(v or "")[:TITLE_MAX_LEN]

    @computed_field  # type: ignore[misc]
    @property
    def time_to_make(self) -> str:
        # 항상 minutes에서 파생 (따로 저장하지 않음)
        return minutes_to_readable(self.minutes)

    def to_row(self) -> Dict[str, Any]:
        # RECIPES 테이블 컬럼명 그대로
        return {
            "TITLE": self.title,
            "INGREDIENTS": list(self.ingredients),
            "STEPS": list(self.steps),
            "MINUTES": self.minutes,
            "TIME_TO_MAKE": self.time_to_make,
            "CALORIES": self.nutrition.calories,
            "PROTEIN_G": self.nutrition.protein_g,
            "FAT_G": self.nutrition.fat_g,
            "CARBS_G": self.nutrition.carbs_g,
            "TAGS": list(self.tags),
            "N_INGREDIENTS": self.n_ingredients,
            "N_STEPS": self.n_steps,
        }
