# app/services/ingest/decode.py
# Food.com RAW_recipes.csv 한 줄 → RecipeRecord 또는 Rejection
# - I/O 없음, 전부 순수 함수
# - 필드 단위 파싱 실패는 안전한 기본값으로 (행을 버리지 않음)
# - 행 단위 구조 문제(컬럼 부족/재료 없음/단계 없음)만 Rejection

from __future__ import annotations
import ast
import json
import math
import re
from typing import List, NamedTuple, Sequence, Union

from pydantic import ValidationError

from app.models.recipe import Nutrition, RecipeRecord, minutes_to_readable

__all__ = [
    "COLUMNS", "ListDecode", "Rejection",
    "parse_csv_line", "decode_list", "parse_nutrition", "parse_int",
    "minutes_to_readable", "decode_row",
]

# RAW_recipes.csv 컬럼 순서 (런타임 검증 안 함: 설정 가정)
COLUMNS = (
    "name", "id", "minutes", "contributor_id", "submitted", "tags",
    "nutrition", "n_steps", "steps", "description", "ingredients", "n_ingredients",
)
COL = {name: i for i, name in enumerate(COLUMNS)}

# PDV → g 환산용 1일 기준 섭취량
FAT_G_PER_PDV = 0.78      # 78g
PROTEIN_G_PER_PDV = 0.50  # 50g
CARBS_G_PER_PDV = 3.00    # 300g

# 저장소 Integer 컬럼 상한 (32bit). 넘는 값은 깨진 데이터로 보고 기본값 처리
STORE_INT_MAX = 2**31 - 1

_BRACKETS_RE = re.compile(r"^\[|\]$")
_EDGE_QUOTES_RE = re.compile(r"^['\"]|['\"]$")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


class ListDecode(NamedTuple):
    items: List[str]
    mode: str   # "empty" | "strict" | "permissive"


class Rejection(NamedTuple):
    reason: str   # "too_few_fields" | "no_ingredients" | "no_steps"
    detail: str = ""


def parse_csv_line(line: str) -> List[str]:
    """큰따옴표 이스케이프("" → ") 를 지키며 한 줄을 필드로 분리"""
    fields: List[str] = []
    buf: List[str] = []
    in_quotes = False
    i, n = 0, len(line)
    while i < n:
        ch = line[i]
        if in_quotes:
            if ch == '"':
                if i + 1 < n and line[i + 1] == '"':
                    buf.append('"')
                    i += 1
                else:
                    in_quotes = False
            else:
                buf.append(ch)
        elif ch == '"':
            in_quotes = True
        elif ch == ",":
            fields.append("".join(buf))
            buf = []
        else:
            buf.append(ch)
        i += 1
    fields.append("".join(buf))
    return fields


def _clean(items: list) -> List[str]:
    # 양끝 공백 제거, 빈 원소 제외 (permissive 쪽과 같은 규칙)
    out = []
    for x in items:
        s = str(x).strip()
        if s:
            out.append(s)
    return out


def _strict_list(raw: str) -> List[str]:
    # 1) 파이썬 리스트 리터럴 그대로 (["don't stir", 'a, b'] 같이 따옴표 섞인 경우 포함)
    # 2) 안 되면 따옴표 통일 후 JSON
    try:
        obj = ast.literal_eval(raw)
    except (ValueError, TypeError, SyntaxError, MemoryError, RecursionError):
        obj = json.loads(raw.replace("'", '"'))
    if not isinstance(obj, list):
        raise ValueError(f"not a list literal: {type(obj).__name__}")
    return _clean(obj)


def _permissive_list(raw: str) -> List[str]:
    # 괄호 제거 → 콤마 분리 → 양끝 따옴표 제거, 빈 값 제외
    body = _BRACKETS_RE.sub("", raw)
    out = []
    for part in body.split(","):
        s = _EDGE_QUOTES_RE.sub("", part.strip())
        if s:
            out.append(s)
    return out


def decode_list(raw: str | None) -> ListDecode:
    """"['a', 'b']" 형태의 문자열 → 리스트. 실패해도 예외 없이 permissive 결과를 돌려준다"""
    raw = (raw or "").strip()
    if not raw or raw == "[]":
        return ListDecode([], "empty")
    try:
        return ListDecode(_strict_list(raw), "strict")
    except (ValueError, RecursionError):   # JSONDecodeError, 아주 깊은 중첩 포함
        return ListDecode(_permissive_list(raw), "permissive")


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def parse_nutrition(raw: str | None) -> Nutrition:
    """
    [calories, fat_pdv, sugar_pdv, sodium_pdv, protein_pdv, sat_fat_pdv, carbs_pdv]
    → kcal + 단백질/지방/탄수 g. 7개 미만/파싱 실패는 전부 0
    """
    if not raw:
        return Nutrition.zero()
    try:
        nums = json.loads(raw)
        if not isinstance(nums, list) or len(nums) < 7:
            return Nutrition.zero()
        vals = [float(x) for x in nums[:7]]
    except (ValueError, TypeError, RecursionError):
        return Nutrition.zero()

    # sugar(2) / sodium(3) / sat_fat(5) 는 사용 안 함
    # 환산 후 값으로 검사 (1e308 × 3 → inf, NaN/Infinity 토큰 포함)
    amounts = (
        vals[0],
        vals[1] * FAT_G_PER_PDV,
        vals[4] * PROTEIN_G_PER_PDV,
        vals[6] * CARBS_G_PER_PDV,
    )
    if not all(math.isfinite(v) and v < STORE_INT_MAX for v in amounts):
        return Nutrition.zero()

    calories, fat_g, protein_g, carbs_g = (max(0, _round_half_up(v)) for v in amounts)
    return Nutrition(calories=calories, fat_g=fat_g, protein_g=protein_g, carbs_g=carbs_g)


def parse_int(raw: str | None) -> int:
    # 앞쪽 정수만 취함 ("45" → 45, "12.5" → 12, "abc" → 0), 음수와 저장 범위 밖은 0
    m = _LEADING_INT_RE.match(raw or "")
    if not m or len(m.group(1).lstrip("+-0")) > 10:   # int() 자릿수 제한 전에 거름
        return 0
    v = int(m.group(1))
    return v if 0 <= v <= STORE_INT_MAX else 0


def decode_row(fields: Sequence[str]) -> Union[RecipeRecord, Rejection]:
    if len(fields) < len(COLUMNS):
        return Rejection("too_few_fields", f"{len(fields)} < {len(COLUMNS)}")

    ingredients = decode_list(fields[COL["ingredients"]]).items
    if not ingredients:
        return Rejection("no_ingredients")
    steps = decode_list(fields[COL["steps"]]).items
    if not steps:
        return Rejection("no_steps")

    # 카운트 컬럼이 비었거나 깨졌으면 실제 길이로
    n_ingredients = parse_int(fields[COL["n_ingredients"]]) or len(ingredients)
    n_steps = parse_int(fields[COL["n_steps"]]) or len(steps)

    try:
        return RecipeRecord(
            title=fields[COL["name"]],
            ingredients=ingredients,
            steps=steps,
            minutes=parse_int(fields[COL["minutes"]]),
            nutrition=parse_nutrition(fields[COL["nutrition"]]),
            tags=decode_list(fields[COL["tags"]]).items,
            n_ingredients=n_ingredients,
            n_steps=n_steps,
        )
    except ValidationError as e:
        # 위에서 다 걸러지므로 정상 데이터에서는 오지 않음
        return Rejection("invalid", str(e.errors()[:1]))
