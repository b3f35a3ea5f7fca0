from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from .reflection import MoodType

FROM_YOUR_PAST_LABEL = "Three months ago, you wrote:"


class ResurfacedReflection(BaseModel):
    """被选中回顾的一条记录（正文已解密）。

    对外序列化使用 camelCase（promptText / reflectionText / wordCount）。
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    date: dt.date
    prompt_text: str = Field(alias="promptText")
    reflection_text: str = Field(alias="reflectionText")
    mood: MoodType | None = None
    word_count: int = Field(alias="wordCount")


class FromYourPastData(BaseModel):
    label: str = FROM_YOUR_PAST_LABEL
    reflection: ResurfacedReflection


class FromYourPastResponse(BaseModel):
    success: bool = True
    # None 表示“今天没有回顾”，与错误响应区分
    data: FromYourPastData | None = None
