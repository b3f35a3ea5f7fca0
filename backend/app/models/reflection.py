import uuid

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.sql import func

from ..database import Base


class Reflection(Base):
    """反思记录表

    说明：
    - reflection_text 可能是密文（`enc:v1:` 前缀），读取方负责按需解密。
    - word_count 在写入时计算，之后不随正文变化重新统计。
    - date 为撰写日期（仅日期粒度），创建后不再修改。
    - resurfacing_eligible=False 的记录永远不会进入“回顾”候选池。
    """

    __tablename__ = "reflections"
    __table_args__ = (
        Index("idx_reflections_user_date", "user_id", "date"),
        Index("idx_reflections_user_eligible_date", "user_id", "resurfacing_eligible", "date"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    prompt_text = Column(Text, nullable=False, default="")
    reflection_text = Column(Text, nullable=False, default="")
    mood = Column(String(16))
    word_count = Column(Integer, nullable=False, default=0)
    resurfacing_eligible = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
