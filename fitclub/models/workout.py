from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Float, Text
from sqlalchemy.orm import relationship
from fitclub.core.base import Base
from datetime import datetime

class Workout(Base):
    __tablename__ = "workouts"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    body_part = Column(String, nullable=True)
    difficulty = Column(String, nullable=False, default="beginner")
    duration = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    exercises = relationship(
        "WorkoutExercise",
        back_populates="workout",
        cascade="all, delete-orphan",
        order_by="WorkoutExercise.order_index",
    )

class WorkoutExercise(Base):
    __tablename__ = "workout_exercises"

    id = Column(Integer, primary_key=True)
    workout_id = Column(Integer, ForeignKey("workouts.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    sets = Column(Integer, default=3, nullable=False)
    # Тренеры пишут повторы и отдых свободным текстом: "8-12", "90s", "2 min"
    reps = Column(String, default="10", nullable=False)
    rest = Column(String, default="60s", nullable=False)
    weight = Column(Float, default=0, nullable=False)
    notes = Column(Text, nullable=True)
    order_index = Column(Integer, default=0, nullable=False)
    animation_url = Column(String, nullable=True)

    workout = relationship("Workout", back_populates="exercises")
