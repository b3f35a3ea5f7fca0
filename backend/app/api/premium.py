"""高级功能 API（From your past）"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas import FromYourPastData, FromYourPastResponse
from ..services import ResurfacingService
from .deps import require_premium_user

router = APIRouter(prefix="/premium", tags=["premium"])


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@router.get("/from-your-past", response_model=FromYourPastResponse)
async def get_from_your_past(
    user_id: str = Depends(require_premium_user),
    db: AsyncSession = Depends(get_db),
):
    """返回今天回顾的一条旧反思；今天不回顾时 data 为 null（原因只写日志，不对外暴露）。"""
    surfaced = await ResurfacingService(db).decide(user_id, _utcnow())
    if surfaced is None:
        return FromYourPastResponse(data=None)
    return FromYourPastResponse(data=FromYourPastData(reflection=surfaced))
