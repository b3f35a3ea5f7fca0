"""鉴权依赖：从会话 token 中取出当前用户 id。

登录本身由外部身份服务完成；这里只信任用 SESSION_SECRET 签名的 token，
来源依次为 `Authorization: Bearer <token>` 与会话 Cookie。
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db
from ..models import Profile
from ..utils.session_token import verify_token


def _extract_token(request: Request) -> str | None:
    auth = request.headers.get("authorization") or ""
    scheme, _, value = auth.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return request.cookies.get(settings.session_cookie_name)


async def get_current_user_id(request: Request) -> str:
    ok, _reason, payload = verify_token(
        _extract_token(request),
        secret=settings.session_secret or "",
    )
    if not ok or payload is None:
        raise HTTPException(status_code=401, detail="UNAUTHORIZED")

    user_id = str(payload["sub"]).strip()
    # 访问日志会带上 user
    request.state.user_id = user_id
    return user_id


async def require_premium_user(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> str:
    profile = await db.get(Profile, user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="PROFILE_NOT_FOUND")
    if profile.subscription_tier != "premium" or profile.subscription_status != "active":
        raise HTTPException(status_code=403, detail="PREMIUM_REQUIRED")
    return user_id
