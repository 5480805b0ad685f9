# app/services/enrich.py
# Gemini로 레시피 팁/변형 한 줄 생성 (선택 기능)
# - GEMINI_API_KEY 없으면 호출 안 함
# - 실패해도 검색 응답은 막지 않는다 (None / 빈 변형 반환 + 경고 로그)

from __future__ import annotations
import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import settings

log = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
_JSON_OBJ_RE = re.compile(r"\{[\s\S]*\}")

TIP_PROMPT = """You are a helpful cooking assistant. Given this recipe and detected ingredients, provide ONE concise, practical cooking tip or insight (max 2 sentences).

Recipe: {title}
Detected Ingredients: {detected}
Recipe Ingredients: {ingredients}

Tip:"""

VARIATIONS_PROMPT = """You are a cooking expert. Given this recipe and detected ingredients, suggest quick modifications (max 1-2 sentences total).

Recipe: {title}
Detected Ingredients: {detected}

Provide:
1. A healthier version tip (1 sentence)
2. A faster version tip (1 sentence)

Format as JSON: {{"healthier": "...", "faster": "..."}}"""


def empty_variations() -> Dict[str, Optional[str]]:
    return {"healthier": None, "faster": None}


def enabled() -> bool:
    return bool(settings.GEMINI_API_KEY)


def _reply_text(payload: Dict[str, Any]) -> str:
    try:
        parts = payload["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return ""
    return "".join(str(p.get("text") or "") for p in parts if isinstance(p, dict)).strip()


async def generate_text(prompt: str, client: Optional[httpx.AsyncClient] = None) -> str:
    url = GEMINI_URL.format(model=settings.GEMINI_MODEL)
    body = {"contents": [{"parts": [{"text": prompt}]}]}
    own = client is None
    cli = client or httpx.AsyncClient(timeout=settings.GEMINI_TIMEOUT)
    try:
        r = await cli.post(url, params={"key": settings.GEMINI_API_KEY}, json=body)
        r.raise_for_status()
        return _reply_text(r.json())
    finally:
        if own:
            await cli.aclose()


def parse_variations(text: str) -> Dict[str, Optional[str]]:
    # 응답 안의 첫 JSON 객체만 사용
    m = _JSON_OBJ_RE.search(text or "")
    if not m:
        return empty_variations()
    try:
        obj = json.loads(m.group(0))
    except ValueError:
        return empty_variations()
    if not isinstance(obj, dict):
        return empty_variations()
    return {k: (str(obj[k]) if obj.get(k) else None) for k in ("healthier", "faster")}


async def cooking_tip(title: str, ingredients: List[str], detected: List[str],
                      client: Optional[httpx.AsyncClient] = None) -> Optional[str]:
    prompt = TIP_PROMPT.format(
        title=title,
        detected=", ".join(detected) or "none",
        ingredients=", ".join(ingredients),
    )
    try:
        return await generate_text(prompt, client) or None
    except (httpx.HTTPError, ValueError) as e:
        log.warning("gemini tip failed: %s", e)
        return None


async def recipe_variations(title: str, detected: List[str],
                            client: Optional[httpx.AsyncClient] = None) -> Dict[str, Optional[str]]:
    prompt = VARIATIONS_PROMPT.format(title=title, detected=", ".join(detected) or "none")
    try:
        return parse_variations(await generate_text(prompt, client))
    except (httpx.HTTPError, ValueError) as e:
        log.warning("gemini variations failed: %s", e)
        return empty_variations()


async def annotate(title: str, ingredients: List[str], detected: List[str],
                   client: Optional[httpx.AsyncClient] = None) -> Dict[str, Any]:
    # {"tip": str|None, "variations": {"healthier", "faster"}}
    if not enabled():
        return {"tip": None, "variations": empty_variations()}
    tip, variations = await asyncio.gather(
        cooking_tip(title, ingredients, detected, client),
        recipe_variations(title, detected, client),
    )
    return {"tip": tip, "variations": variations}
