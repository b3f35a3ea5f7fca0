"""本地开发用：创建/更新一个用户资料并签发会话 token

使用方式（从 backend 目录执行）：
   uv run python issue_session.py --user-id <uuid> --premium

输出的 token 可放在 `Authorization: Bearer <token>` 里调用 API。
"""

from __future__ import annotations

import argparse
import asyncio
import uuid

from app.config import settings
from app.database import AsyncSessionLocal, init_db
from app.models import Profile
from app.utils.session_token import issue_token


async def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--user-id", type=str, default="", help="用户 id（不传则随机生成）")
    parser.add_argument("--email", type=str, default="", help="邮箱（可选）")
    parser.add_argument("--premium", action="store_true", help="设为 premium/active")
    args = parser.parse_args()

    user_id = args.user_id.strip() or str(uuid.uuid4())

    await init_db()
    async with AsyncSessionLocal() as db:
        profile = await db.get(Profile, user_id)
        if profile is None:
            profile = Profile(id=user_id)
            db.add(profile)
        if args.email:
            profile.email = args.email.strip()
        profile.subscription_tier = "premium" if args.premium else "freemium"
        profile.subscription_status = "active"
        await db.commit()

    token = issue_token(
        secret=settings.session_secret or "",
        user_id=user_id,
        days=settings.session_days,
    )
    print(f"user_id: {user_id}")
    print(f"token:   {token}")
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
