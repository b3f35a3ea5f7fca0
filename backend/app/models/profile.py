from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from ..database import Base


class Profile(Base):
    """用户资料表 - 订阅档位决定是否可用高级功能"""
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)
    email = Column(String(255))
    full_name = Column(String(255))
    subscription_tier = Column(String(20), nullable=False, default="freemium")  # 'freemium' | 'premium'
    subscription_status = Column(String(20), nullable=False, default="active")  # 'active' | 'cancelled' | 'expired'
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
