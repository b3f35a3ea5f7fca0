from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint

from ..database import Base


class ResurfacingEvent(Base):
    """回顾事件表 - 只追加，记录某条反思在何时被展示给了它的作者。

    (user_id, reflection_id) 唯一：同一条记录对同一用户最多回顾一次。
    """

    __tablename__ = "reflection_resurfacing_events"
    __table_args__ = (
        UniqueConstraint("user_id", "reflection_id", name="uq_resurfacing_events_user_reflection"),
        Index("idx_resurfacing_events_user_surfaced_at", "user_id", "surfaced_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    reflection_id = Column(String(36), ForeignKey("reflections.id"), nullable=False)
    surfaced_at = Column(DateTime(timezone=True), nullable=False)
