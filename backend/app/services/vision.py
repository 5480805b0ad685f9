# app/services/vision.py
# 냉장고 사진 → 재료 라벨 (Roboflow serverless workflow)
# - 키 없으면 VisionNotReady, 업스트림 실패는 VisionError (빈 결과로 숨기지 않음)

from __future__ import annotations
import base64
import logging
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import settings

log = logging.getLogger(__name__)


class VisionNotReady(Exception):
    """Vision API 설정(키) 없음"""


class VisionError(Exception):
    """Vision API 호출/응답 오류"""


def _b64(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")


def _predictions(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    # outputs[0].predictions 가 list 이거나 {"predictions": [...]} 로 한 번 더 감싸져 옴
    outputs = payload.get("outputs") or []
    if not outputs or not isinstance(outputs[0], dict):
        return []
    preds = outputs[0].get("predictions")
    if isinstance(preds, dict):
        preds = preds.get("predictions")
    return [p for p in (preds or []) if isinstance(p, dict)]


def labels_from_response(payload: Dict[str, Any]) -> List[str]:
    # class 이름만, 소문자/중복 제거 (순서 유지)
    out: List[str] = []
    for p in _predictions(payload):
        name = str(p.get("class") or "").strip().lower()
        if name and name not in out:
            out.append(name)
    return out


async def detect_ingredients(image_bytes: bytes, client: Optional[httpx.AsyncClient] = None) -> List[str]:
    if not settings.ROBOFLOW_API_KEY:
        raise VisionNotReady("ROBOFLOW_API_KEY not set")
    if not image_bytes:
        return []

    body = {
        "api_key": settings.ROBOFLOW_API_KEY,
        "inputs": {"image": {"type": "base64", "value": _b64(image_bytes)}},
    }
    own = client is None
    cli = client or httpx.AsyncClient(timeout=settings.VISION_TIMEOUT)
    try:
        r = await cli.post(settings.ROBOFLOW_WORKFLOW_URL, json=body)
        r.raise_for_status()
        payload = r.json()
    except httpx.HTTPStatusError as e:
        raise VisionError(f"Detection failed {e.response.status_code}: {e.response.text[:200]}") from e
    except (httpx.HTTPError, ValueError) as e:
        raise VisionError(f"Detection failed: {e}") from e
    finally:
        if own:
            await cli.aclose()

    labels = labels_from_response(payload if isinstance(payload, dict) else {})
    log.info("vision labels=%s (bytes=%d)", labels, len(image_bytes))
    return labels
