from __future__ import annotations

import datetime as dt
from typing import Literal, get_args

from pydantic import BaseModel, Field

MoodType = Literal["😔", "😐", "😊", "😄", "🤔", "😌", "🙏", "💪"]

MOOD_VALUES: frozenset[str] = frozenset(get_args(MoodType))


def known_mood(value: str | None) -> str | None:
    """库里的心情不在当前枚举内（旧数据/外部写入）时按“无心情”处理。"""
    return value if value in MOOD_VALUES else None


class ReflectionCreate(BaseModel):
    prompt_text: str = Field(default="", max_length=2000)
    reflection_text: str = Field(min_length=1, max_length=20000)
    mood: MoodType | None = None
    # 不传时使用当天（UTC）
    date: dt.date | None = None


class ReflectionEligibilityUpdate(BaseModel):
    eligible: bool


class ReflectionResponse(BaseModel):
    """反思记录响应模型（reflection_text 已解密）"""
    id: str
    date: dt.date
    prompt_text: str
    reflection_text: str
    mood: MoodType | None
    word_count: int
    resurfacing_eligible: bool
    created_at: dt.datetime | None = None

    class Config:
        from_attributes = True
