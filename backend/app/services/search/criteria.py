# app/services/search/criteria.py
# 검색 조건 정규화: 감지된 재료명 + 자유 입력 프롬프트 → 키워드 목록 (저장 안 함)

from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from app.core.config import settings

_WS_RE = re.compile(r"\s+")


def normalize_ingredients(items: Optional[Iterable[object]]) -> List[str]:
    # 소문자/trim, 빈 값 제거, 순서 유지 중복 제거
    out: List[str] = []
    for x in items or []:
        if not isinstance(x, str):
            continue
        s = _WS_RE.sub(" ", x).strip().lower()
        if s and s not in out:
            out.append(s)
    return out


def prompt_keywords(
    prompt: Optional[str],
    min_len: Optional[int] = None,
    max_count: Optional[int] = None,
) -> List[str]:
    # "Quick Tomato soup" → ["quick", "tomato", "soup"] (짧은 토큰 제외, 최대 5개)
    min_len = min_len or settings.PROMPT_MIN_TOKEN_LEN
    max_count = max_count or settings.PROMPT_MAX_KEYWORDS
    toks = [t for t in (prompt or "").lower().split() if len(t) >= min_len]
    return toks[:max_count]


@dataclass(frozen=True)
class SearchCriteria:
    ingredients: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.ingredients and not self.keywords


def build_criteria(ingredients: Optional[Iterable[object]], prompt: Optional[str]) -> SearchCriteria:
    return SearchCriteria(
        ingredients=normalize_ingredients(ingredients),
        keywords=prompt_keywords(prompt),
    )
