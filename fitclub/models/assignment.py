import enum
from sqlalchemy import Column, Integer, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from fitclub.core.base import Base
from datetime import datetime

class AssignmentStatus(str, enum.Enum):
    active = "active"
    completed = "completed"
    cancelled = "cancelled"

class WorkoutAssignment(Base):
    __tablename__ = "workout_assignments"

    id = Column(Integer, primary_key=True)
    member_id = Column(Integer, ForeignKey("members.id"), nullable=False, index=True)
    workout_id = Column(Integer, ForeignKey("workouts.id"), nullable=False, index=True)
    status = Column(Enum(AssignmentStatus), default=AssignmentStatus.active, nullable=False, index=True)
    assigned_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    member = relationship("Member", back_populates="assignments")
    workout = relationship("Workout")
