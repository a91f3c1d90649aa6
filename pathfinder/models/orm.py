from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import uuid

from sqlalchemy import DateTime, ForeignKey, Index, Integer, JSON, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pathfinder.core.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    bio: Mapped[Optional[str]] = mapped_column(Text)
    location: Mapped[Optional[str]] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)


# ========== Content Models ==========

class Track(Base):
    __tablename__ = "tracks"
    __table_args__ = (
        Index("idx_tracks_created", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    difficulty: Mapped[Optional[str]] = mapped_column(String(50))
    category: Mapped[Optional[str]] = mapped_column(String(100))
    prerequisites: Mapped[Optional[List[str]]] = mapped_column(JSON)
    creator_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    modules: Mapped[List["Module"]] = relationship(
        back_populates="track", cascade="all, delete-orphan", order_by="Module.order"
    )

    def summary(self) -> Dict[str, Any]:
        """JSON-safe snapshot stored on assessments."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "difficulty": self.difficulty,
            "category": self.category,
        }


class Module(Base):
    __tablename__ = "modules"
    __table_args__ = (
        Index("idx_modules_track", "track_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    track_id: Mapped[str] = mapped_column(String(36), ForeignKey("tracks.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    content: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    order: Mapped[int] = mapped_column(Integer, default=0)

    track: Mapped["Track"] = relationship(back_populates="modules")
    lessons: Mapped[List["Lesson"]] = relationship(
        back_populates="module", cascade="all, delete-orphan", order_by="Lesson.order"
    )
    questions: Mapped[List["Question"]] = relationship(back_populates="module", cascade="all, delete-orphan")


class Lesson(Base):
    __tablename__ = "lessons"
    __table_args__ = (
        Index("idx_lessons_module", "module_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    module_id: Mapped[str] = mapped_column(String(36), ForeignKey("modules.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    subtitle: Mapped[Optional[str]] = mapped_column(String(255))
    body: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    resources: Mapped[Optional[Any]] = mapped_column(JSON)
    order: Mapped[int] = mapped_column(Integer, default=0)
    estimated_mins: Mapped[Optional[int]] = mapped_column(Integer)

    module: Mapped["Module"] = relationship(back_populates="lessons")


class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        Index("idx_questions_module", "module_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    stem: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(50), default="mcq")
    tags: Mapped[List[str]] = mapped_column(JSON, default=list)
    options: Mapped[Any] = mapped_column(JSON, default=list)
    correct: Mapped[Any] = mapped_column(JSON)
    weight: Mapped[int] = mapped_column(Integer, default=1)
    module_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("modules.id", ondelete="CASCADE"))

    module: Mapped[Optional["Module"]] = relationship(back_populates="questions")


# ========== Assessment & Progress Models ==========

class Assessment(Base):
    __tablename__ = "assessments"
    __table_args__ = (
        Index("idx_assessments_user_created", "user_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    raw_answers: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False)
    score_vector: Mapped[Dict[str, int]] = mapped_column(JSON, nullable=False)
    recommended_tracks: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list)
    ai_feedback: Mapped[Optional[str]] = mapped_column(Text)
    ai_career_path: Mapped[Optional[str]] = mapped_column(Text)
    ai_next_steps: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, nullable=False)


class TrackProgress(Base):
    __tablename__ = "track_progress"
    __table_args__ = (
        Index("idx_tp_track", "track_id"),
        UniqueConstraint("user_id", "track_id", name="uq_track_progress"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    track_id: Mapped[str] = mapped_column(String(36), ForeignKey("tracks.id", ondelete="CASCADE"), nullable=False)
    completed_modules: Mapped[List[str]] = mapped_column(JSON, default=list)
    completed_games: Mapped[List[str]] = mapped_column(JSON, default=list)
    achievements: Mapped[Optional[Any]] = mapped_column(JSON)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)
