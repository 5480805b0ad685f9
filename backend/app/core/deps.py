# app/core/deps.py
# 방문자 식별: 로그인 없이 anon_id 쿠키로 북마크 소유자를 구분
from __future__ import annotations
import uuid
from typing import Optional

from fastapi import Request, Response

COOKIE = "anon_id"
MAX_AGE = 60 * 60 * 24 * 365  # 1년


def read_anon_id(request: Request) -> Optional[str]:
    # 조회 전용: 쿠키가 없으면 None (새로 발급하지 않음)
    v = (request.cookies.get(COOKIE) or "").strip()
    return v or None


def get_or_set_anon_id(request: Request, response: Response) -> str:
    # 저장 시: 없으면 발급해서 응답 쿠키로 내려준다
    v = read_anon_id(request)
    if v is None:
        v = uuid.uuid4().hex
        response.set_cookie(COOKIE, v, max_age=MAX_AGE, httponly=True, samesite="lax")
    return v
