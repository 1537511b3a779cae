from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from fitclub.core.base import Base
from datetime import datetime

class Member(Base):
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, index=True)
    # sub из токена хостинга авторизации
    auth_id = Column(String, unique=True, nullable=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False)
    phone = Column(String, nullable=True)
    plan = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    assignments = relationship("WorkoutAssignment", back_populates="member", cascade="all, delete")
    logs = relationship("WorkoutLog", back_populates="member", cascade="all, delete")
