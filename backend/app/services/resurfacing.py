"""回顾服务（From your past）

在某一天决定是否把用户自己的一条旧反思重新展示给他，以及展示哪一条。

规则（依次判断，任一不满足即“今天不回顾”）：
1. 冷却期：距上次回顾不足 `30 + hash(user_id) % 16` 天。
2. 近 7 天心情：末尾连续 3 条低落心情。
3. 活跃度骤降：前一周活跃 >=3 天而本周 <=1 天，或前一周 >=4 天而本周 <=2 天。
4. 候选池：eligible、至少 90 天前、最近的 12 条，去掉回顾过的和字数 < 80 的。
5. 按 `hash(user_id-YYYY-MM-DD)` 从候选池确定性地取一条，同一天重复调用选中同一条。

选中后写入一条回顾事件并提交；唯一约束冲突（并发请求抢先写入）视为今天不回顾。
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..models import Reflection, ResurfacingEvent
from ..schemas import ResurfacedReflection, known_mood
from ..utils.crypto import decrypt_if_encrypted

logger = logging.getLogger(__name__)

LOW_MOODS = frozenset({"😔"})

_RECENT_WINDOW_DAYS = 7


def stable_hash(value: str) -> int:
    """32 位多项式滚动哈希（h = h * 31 + unit，按 UTF-16 码元），取绝对值。

    纯函数、跨进程稳定；不追求密码学强度。
    """
    raw = value.encode("utf-16-le")
    h = 0
    for i in range(0, len(raw), 2):
        unit = raw[i] | (raw[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def cooldown_days(user_id: str) -> int:
    base = settings.resurfacing_cooldown_base_days
    spread = settings.resurfacing_cooldown_spread_days
    return base + stable_hash(user_id) % spread


def has_low_mood_streak(moods: Sequence[str | None], min_streak: int) -> bool:
    """从最近一条往前数连续低落心情的条数是否 >= min_streak（无心情的记录不参与）。"""
    streak = 0
    for mood in reversed([m for m in moods if m]):
        if mood not in LOW_MOODS:
            break
        streak += 1
    return streak >= min_streak


def is_disengagement_dip(recent_days_with_entries: int, prior_days_with_entries: int) -> bool:
    if prior_days_with_entries >= 3 and recent_days_with_entries <= 1:
        return True
    if prior_days_with_entries >= 4 and recent_days_with_entries <= 2:
        return True
    return False


def _as_utc(value: datetime) -> datetime:
    # SQLite 读回的是 naive datetime（写入时即为 UTC）
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ResurfacingService:
    """回顾决策服务"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _last_surfaced_at(self, user_id: str) -> datetime | None:
        return await self.db.scalar(
            select(ResurfacingEvent.surfaced_at)
            .where(ResurfacingEvent.user_id == user_id)
            .order_by(ResurfacingEvent.surfaced_at.desc())
            .limit(1)
        )

    async def _entries_between(self, user_id: str, start: date, end: date) -> list[tuple[date, str | None]]:
        result = await self.db.execute(
            select(Reflection.date, Reflection.mood)
            .where(
                Reflection.user_id == user_id,
                Reflection.date >= start,
                Reflection.date <= end,
            )
            .order_by(Reflection.date.asc(), Reflection.created_at.asc(), Reflection.id.asc())
        )
        return [(row[0], row[1]) for row in result.all()]

    async def _surfaced_reflection_ids(self, user_id: str) -> set[str]:
        result = await self.db.scalars(
            select(ResurfacingEvent.reflection_id).where(ResurfacingEvent.user_id == user_id)
        )
        return {rid for rid in result.all() if rid}

    async def _candidate_reflections(self, user_id: str, oldest_allowed: date) -> list[Reflection]:
        result = await self.db.scalars(
            select(Reflection)
            .where(
                Reflection.user_id == user_id,
                Reflection.resurfacing_eligible.is_(True),
                Reflection.date <= oldest_allowed,
            )
            .order_by(Reflection.date.desc(), Reflection.id.desc())
            .limit(settings.resurfacing_candidate_limit)
        )
        return list(result.all())

    async def _event_exists(self, user_id: str, reflection_id: str) -> bool:
        found = await self.db.scalar(
            select(ResurfacingEvent.id)
            .where(
                ResurfacingEvent.user_id == user_id,
                ResurfacingEvent.reflection_id == reflection_id,
            )
            .limit(1)
        )
        return found is not None

    async def decide(self, user_id: str, now: datetime) -> ResurfacedReflection | None:
        """决定今天是否回顾、回顾哪一条；选中时写入回顾事件。

        返回 None 表示今天不回顾（业务结果，不是错误）。读库失败直接抛出；
        写入事件失败（唯一约束冲突除外）同样抛出，保证“返回即已记录”。
        """
        now = _as_utc(now)
        today = now.date()

        last = await self._last_surfaced_at(user_id)
        if last is not None:
            days_since = (now - _as_utc(last)) // timedelta(days=1)
            if days_since < cooldown_days(user_id):
                logger.info("[RESURFACE] user=%s skipped reason=cooldown", user_id)
                return None

        recent = await self._entries_between(
            user_id, today - timedelta(days=_RECENT_WINDOW_DAYS - 1), today
        )
        if has_low_mood_streak([mood for _, mood in recent], settings.resurfacing_low_mood_streak):
            logger.info("[RESURFACE] user=%s skipped reason=low_mood", user_id)
            return None

        prior = await self._entries_between(
            user_id,
            today - timedelta(days=2 * _RECENT_WINDOW_DAYS - 1),
            today - timedelta(days=_RECENT_WINDOW_DAYS),
        )
        recent_days = len({d for d, _ in recent})
        prior_days = len({d for d, _ in prior})
        if is_disengagement_dip(recent_days, prior_days):
            logger.info("[RESURFACE] user=%s skipped reason=disengagement_dip", user_id)
            return None

        oldest_allowed = today - timedelta(days=settings.resurfacing_min_age_days)
        surfaced_ids = await self._surfaced_reflection_ids(user_id)
        candidates = await self._candidate_reflections(user_id, oldest_allowed)
        pool = [
            r
            for r in candidates
            if r.id not in surfaced_ids
            and int(r.word_count or 0) >= settings.resurfacing_min_word_count
        ]
        if not pool:
            logger.info("[RESURFACE] user=%s skipped reason=empty_pool", user_id)
            return None

        picked = pool[stable_hash(f"{user_id}-{today.isoformat()}") % len(pool)]
        picked_id = picked.id

        surfaced = ResurfacedReflection(
            id=picked_id,
            date=picked.date,
            prompt_text=picked.prompt_text or "",
            reflection_text=decrypt_if_encrypted(picked.reflection_text) or picked.reflection_text or "",
            mood=known_mood(picked.mood),
            word_count=int(picked.word_count or 0),
        )

        self.db.add(ResurfacingEvent(user_id=user_id, reflection_id=picked_id, surfaced_at=now))
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            # 只有“同一条已被并发请求记录”才算正常结果；外键失败等其它约束错误照常抛出
            if not await self._event_exists(user_id, picked_id):
                raise
            logger.info("[RESURFACE] user=%s skipped reason=race_lost", user_id)
            return None

        logger.info(
            "[RESURFACE] user=%s surfaced reflection=%s pool=%s",
            user_id,
            picked_id,
            len(pool),
        )
        return surfaced
