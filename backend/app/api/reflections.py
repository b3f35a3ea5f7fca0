"""Reflection API"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import Reflection
from ..schemas import ReflectionCreate, ReflectionEligibilityUpdate, ReflectionResponse, known_mood
from ..utils.crypto import decrypt_if_encrypted, encrypt_if_possible
from .deps import get_current_user_id

router = APIRouter(prefix="/reflections", tags=["reflections"])
logger = logging.getLogger(__name__)


def count_words(text: str | None) -> int:
    """按空白切分计数（写入时计算一次，之后不再更新）。"""
    if not text:
        return 0
    return len(text.split())


def _to_response(reflection: Reflection) -> ReflectionResponse:
    return ReflectionResponse(
        id=reflection.id,
        date=reflection.date,
        prompt_text=reflection.prompt_text or "",
        reflection_text=decrypt_if_encrypted(reflection.reflection_text) or "",
        mood=known_mood(reflection.mood),
        word_count=int(reflection.word_count or 0),
        resurfacing_eligible=bool(reflection.resurfacing_eligible),
        created_at=reflection.created_at,
    )


@router.post("", response_model=ReflectionResponse, status_code=201)
async def create_reflection(
    req: ReflectionCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """新建一条反思（正文按配置加密保存）"""
    text = req.reflection_text.strip()
    if not text:
        raise HTTPException(status_code=400, detail="REFLECTION_TEXT_REQUIRED")

    reflection = Reflection(
        user_id=user_id,
        date=req.date or datetime.now(timezone.utc).date(),
        prompt_text=req.prompt_text.strip(),
        reflection_text=encrypt_if_possible(text),
        mood=req.mood,
        word_count=count_words(text),
        resurfacing_eligible=True,
    )
    db.add(reflection)
    await db.commit()
    await db.refresh(reflection)

    logger.info(
        "[REFLECTION] created user=%s reflection=%s words=%s",
        user_id,
        reflection.id,
        reflection.word_count,
    )
    return _to_response(reflection)


@router.get("", response_model=list[ReflectionResponse])
async def list_reflections(
    start: date | None = Query(None, description="起始日期（含）"),
    end: date | None = Query(None, description="结束日期（含）"),
    limit: int = Query(50, ge=1, le=500),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """获取自己的反思记录（按日期倒序）"""
    if start and end and start > end:
        raise HTTPException(status_code=400, detail="INVALID_DATE_RANGE")

    query = select(Reflection).where(Reflection.user_id == user_id)
    if start:
        query = query.where(Reflection.date >= start)
    if end:
        query = query.where(Reflection.date <= end)
    query = query.order_by(Reflection.date.desc(), Reflection.created_at.desc()).limit(limit)

    rows = await db.scalars(query)
    return [_to_response(r) for r in rows.all()]


@router.patch("/{reflection_id}/resurfacing", response_model=ReflectionResponse)
async def update_resurfacing_eligibility(
    reflection_id: str,
    req: ReflectionEligibilityUpdate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """设置某条反思是否允许被回顾"""
    reflection = await db.scalar(
        select(Reflection).where(
            Reflection.id == reflection_id,
            Reflection.user_id == user_id,
        )
    )
    if reflection is None:
        raise HTTPException(status_code=404, detail="REFLECTION_NOT_FOUND")

    reflection.resurfacing_eligible = bool(req.eligible)
    await db.commit()
    await db.refresh(reflection)
    return _to_response(reflection)
