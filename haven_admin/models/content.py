"""
Learning content models: Module -> Lesson -> LessonStep
"""

from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from haven_admin.database import Base
from haven_admin.models.common import generate_uuid, utcnow
import enum


class ModuleCategory(str, enum.Enum):
    MENTAL_HEALTH = "Mental Health"
    FAITH_AND_SPIRIT = "Faith & Spirit"
    RELATIONSHIPS = "Relationships"
    MINDFULNESS = "Mindfulness"
    PERSONAL_GROWTH = "Personal Growth"


class StepType(str, enum.Enum):
    TEXT = "text"
    VIDEO = "video"
    PROMPT = "prompt"
    REFLECTION = "reflection"

    @classmethod
    def parse(cls, value: str) -> "StepType":
        """Accepts any casing ("TEXT", "Prompt", ...)."""
        return cls(value.strip().lower())

    @property
    def takes_prompt(self) -> bool:
        return self in (StepType.PROMPT, StepType.REFLECTION)


class Module(Base):
    __tablename__ = "modules"

    id = Column(String, primary_key=True, default=generate_uuid)
    title = Column(String, nullable=False)
    subtitle = Column(String, nullable=True)
    image_url = Column(String, nullable=False)
    category = Column(String, nullable=False, default=ModuleCategory.MENTAL_HEALTH.value)
    author_id = Column(String, nullable=True, index=True)

    created_at = Column(DateTime, default=utcnow)

    lessons = relationship(
        "Lesson",
        back_populates="module",
        cascade="all, delete-orphan",
        order_by="Lesson.order",
    )
    author = relationship(
        "Profile",
        primaryjoin="foreign(Module.author_id) == Profile.id",
        viewonly=True,
    )


class Lesson(Base):
    __tablename__ = "lessons"

    id = Column(String, primary_key=True, default=generate_uuid)
    module_id = Column(String, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    order = Column("order", Integer, nullable=False)

    created_at = Column(DateTime, default=utcnow)

    module = relationship("Module", back_populates="lessons")
    steps = relationship(
        "LessonStep",
        back_populates="lesson",
        cascade="all, delete-orphan",
        order_by="LessonStep.order",
    )


class LessonStep(Base):
    __tablename__ = "lesson_steps"

    id = Column(String, primary_key=True, default=generate_uuid)
    lesson_id = Column(String, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False, index=True)
    order = Column("order", Integer, nullable=False)
    type = Column(String, nullable=False, default=StepType.TEXT.value)
    content = Column(Text, nullable=True)
    prompt_question = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow)

    lesson = relationship("Lesson", back_populates="steps")
