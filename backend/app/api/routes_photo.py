# app/api/routes_photo.py
# 냉장고 사진 → 재료 감지 (→ 바로 레시피 검색)

from __future__ import annotations
import logging
from typing import List

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncEngine

from app.api.routes_recipes import respond, run_search
from app.db.warehouse import get_engine
from app.models.schemas import DetectOut, GenerateOut
from app.services.vision import VisionError, VisionNotReady, detect_ingredients

log = logging.getLogger(__name__)

router = APIRouter(prefix="/photo", tags=["photo"])

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")


async def _read_image(file: UploadFile) -> bytes:
    if (file.content_type or "").lower() not in IMAGE_TYPES:
        raise HTTPException(status_code=400, detail="Only image uploads are supported")
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Empty file")
    if len(data) > MAX_FILE_SIZE:
        raise HTTPException(status_code=400, detail="File must be 10MB or smaller")
    return data


async def _detect(data: bytes) -> List[str]:
    try:
        return await detect_ingredients(data)
    except VisionNotReady as e:
        log.warning("VisionNotReady: %s", e)
        raise HTTPException(status_code=503, detail=str(e))
    except VisionError as e:
        log.warning("vision error: %s", e)
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/detect", response_model=DetectOut)
async def detect(file: UploadFile = File(...)):
    data = await _read_image(file)
    return DetectOut(ingredients=await _detect(data))


@router.post("/recommend", response_model=GenerateOut)
async def recommend(
    file: UploadFile = File(...),
    prompt: str = Form(""),
    engine: AsyncEngine = Depends(get_engine),
):
    data = await _read_image(file)
    detected = await _detect(data)
    log.info("photo recommend detected=%s prompt=%r", detected, prompt)
    result = await run_search(detected, prompt, engine)
    return await respond(result)
